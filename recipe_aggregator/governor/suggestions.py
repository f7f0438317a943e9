"""Suggestion governor for query autocomplete.

A two-state machine over the shared GovernorState:

    IDLE --quota exceeded--> COOLING --cooldown elapsed (checked lazily)--> IDLE

Short queries never reach the capability, and a completion is only returned
when it extends the typed text.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional

from recipe_aggregator.generation.capability import GenerativeCapability
from recipe_aggregator.generation.exceptions import QuotaExceeded
from recipe_aggregator.logging import get_logger
from recipe_aggregator.utils.timestamps import format_timestamp_for_log, utc_now

from .models import GovernorState

logger = get_logger(__name__, component="suggestions")

# Queries this short never reach the capability, whatever the configured length
MIN_QUERY_LENGTH_FLOOR = 3


class SuggestionState(str, Enum):
    IDLE = "idle"
    COOLING = "cooling"


@dataclass(frozen=True)
class SuggestionResult:
    """Autocomplete outcome; an empty suggestion means nothing to offer."""

    suggestion: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.suggestion


EMPTY_SUGGESTION = SuggestionResult()


def accept_suggestion(partial_query: str, candidate: Optional[str]) -> str:
    """Apply the acceptance rule to a capability completion.

    The trimmed candidate must be non-empty, strictly longer than the query
    and start with the query (case-insensitive).

    Returns:
        The accepted suggestion, or "" when it is discarded

    Example:
        >>> accept_suggestion("piz", "pizza margherita")
        'pizza margherita'
        >>> accept_suggestion("piz", "piz")
        ''
    """
    if not isinstance(candidate, str):
        return ""
    suggestion = candidate.strip()
    if len(suggestion) <= len(partial_query):
        return ""
    if not suggestion.lower().startswith(partial_query.lower()):
        return ""
    return suggestion


class SuggestionGovernor:
    """Gates autocomplete calls to the generative capability.

    suggest() is total: every failure becomes an empty suggestion.
    """

    def __init__(
        self,
        state: GovernorState,
        capability: Optional[GenerativeCapability],
        cooldown: float = 60.0,
        min_query_length: int = 3,
        enabled: bool = True,
        clock: Callable[[], datetime] = utc_now,
        logger_instance: Optional[logging.LoggerAdapter] = None,
    ):
        self.state = state
        self.capability = capability
        self.cooldown = timedelta(seconds=cooldown)
        self.min_query_length = max(min_query_length, MIN_QUERY_LENGTH_FLOOR)
        self.enabled = enabled and capability is not None
        self.clock = clock
        self.logger = logger_instance or logger

    @property
    def current_state(self) -> SuggestionState:
        if self.state.suggestion_cooling(self.clock()):
            return SuggestionState.COOLING
        return SuggestionState.IDLE

    def suggest(self, partial_query: Optional[str]) -> SuggestionResult:
        """Return a completion for partially typed text, or an empty result."""
        query = partial_query.strip() if isinstance(partial_query, str) else ""

        if not self.enabled or len(query) < self.min_query_length:
            return EMPTY_SUGGESTION

        now = self.clock()
        if self.state.suggestion_cooling(now):
            self.logger.debug(
                "Skipping suggestion while cooling",
                extra={"event": "suggestions.skipped", "query": query},
            )
            return EMPTY_SUGGESTION

        try:
            candidate = self.capability.complete(query)
        except QuotaExceeded as e:
            until = self.state.enter_suggestion_cooldown(now, self.cooldown)
            self.logger.warning(
                "Suggestion quota exceeded; cooling down",
                extra={
                    "event": "suggestions.quota_exceeded",
                    "query": query,
                    "error_kind": "quota_exceeded",
                    "error": str(e),
                    "occurred_at": format_timestamp_for_log(now),
                    "cooldown_until": format_timestamp_for_log(until),
                },
            )
            return EMPTY_SUGGESTION
        except Exception as e:
            self.logger.warning(
                f"Suggestion call failed: {e}",
                extra={
                    "event": "suggestions.failed",
                    "query": query,
                    "error_type": type(e).__name__,
                    "occurred_at": format_timestamp_for_log(now),
                },
            )
            return EMPTY_SUGGESTION

        suggestion = accept_suggestion(query, candidate)
        if not suggestion:
            self.logger.debug(
                "Discarded suggestion that does not extend the query",
                extra={"event": "suggestions.rejected", "query": query, "candidate": candidate},
            )
            return EMPTY_SUGGESTION

        return SuggestionResult(suggestion=suggestion)
