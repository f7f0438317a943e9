"""Data models for search execution results."""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional

from recipe_aggregator.domain.models import Recipe, SourceTag
from recipe_aggregator.governor.models import InvocationStatus


@dataclass
class SourceRunStats:
    """
    Statistics for a single source within one search.

    Attributes:
        source: Source tag
        fetched_count: Raw records returned by the source
        normalized_count: Records that normalized into a Recipe
        rejected_count: Records dropped during normalization
        duration_seconds: Time spent fetching from the source
        had_errors: Whether the source failed
        error_message: Error message if the source failed
    """

    source: SourceTag
    fetched_count: int = 0
    normalized_count: int = 0
    rejected_count: int = 0
    duration_seconds: float = 0.0
    had_errors: bool = False
    error_message: Optional[str] = None


@dataclass
class SearchResult:
    """
    Result of one aggregated search.

    Attributes:
        recipes: Deduplicated recipes in deterministic order
        contributing_sources: Sources that returned at least one raw record
        ai_status: Outcome of the governed AI invocation (None if AI is disabled)
        source_stats: Per-source execution statistics in priority order
        search_id: Identifier carried by every log line of the search
    """

    recipes: List[Recipe] = field(default_factory=list)
    contributing_sources: FrozenSet[SourceTag] = frozenset()
    ai_status: Optional[InvocationStatus] = None
    source_stats: List[SourceRunStats] = field(default_factory=list)
    search_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly representation used by the CLI."""
        return {
            "search_id": self.search_id,
            "recipes": [recipe.model_dump(mode="json") for recipe in self.recipes],
            "contributing_sources": sorted(tag.value for tag in self.contributing_sources),
            "ai_status": self.ai_status.value if self.ai_status else None,
            "source_stats": [
                {
                    "source": stats.source.value,
                    "fetched": stats.fetched_count,
                    "normalized": stats.normalized_count,
                    "rejected": stats.rejected_count,
                    "duration_ms": int(stats.duration_seconds * 1000),
                    "error": stats.error_message,
                }
                for stats in self.source_stats
            ],
        }
