"""Search orchestration and result models."""

from .models import SearchResult, SourceRunStats
from .orchestrator import SearchOrchestrator

__all__ = ["SearchOrchestrator", "SearchResult", "SourceRunStats"]
