"""Invocation governors for the generative capability."""

from .ai_governor import AIInvocationGovernor
from .models import AIInvocationResult, CacheEntry, GovernorState, InvocationStatus
from .suggestions import (
    EMPTY_SUGGESTION,
    SuggestionGovernor,
    SuggestionResult,
    SuggestionState,
    accept_suggestion,
)

__all__ = [
    "AIInvocationGovernor",
    "AIInvocationResult",
    "CacheEntry",
    "GovernorState",
    "InvocationStatus",
    "SuggestionGovernor",
    "SuggestionResult",
    "SuggestionState",
    "EMPTY_SUGGESTION",
    "accept_suggestion",
]
