"""Search orchestration across the user store, external API and AI sources."""

import contextvars
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
from uuid import uuid4

from recipe_aggregator.config.models import DEFAULT_SOURCE_PRIORITY
from recipe_aggregator.connectors.base import BaseConnector
from recipe_aggregator.connectors.exceptions import ConnectorError
from recipe_aggregator.connectors.identity import ClientContext, IdentityContext
from recipe_aggregator.dedup.engine import DedupEngine
from recipe_aggregator.domain.exceptions import AggregateUnavailable
from recipe_aggregator.domain.models import RawRecord, Recipe, SearchMode, SearchQuery, SourceTag
from recipe_aggregator.governor.ai_governor import AIInvocationGovernor
from recipe_aggregator.governor.models import AIInvocationResult, InvocationStatus
from recipe_aggregator.governor.suggestions import (
    EMPTY_SUGGESTION,
    SuggestionGovernor,
    SuggestionResult,
)
from recipe_aggregator.logging import get_logger
from recipe_aggregator.logging.context import log_context
from recipe_aggregator.normalization.service import RecipeNormalizer

from .models import SearchResult, SourceRunStats

logger = get_logger(__name__, component="pipeline")


@dataclass
class _FetchOutcome:
    records: List[RawRecord] = field(default_factory=list)
    stats: Optional[SourceRunStats] = None


class SearchOrchestrator:
    """
    Runs one aggregated search across every enabled source.

    Connector fetches and the governed AI invocation run concurrently on a
    per-search thread pool. Normalization and dedup run on the calling thread
    once every task has finished.
    """

    def __init__(
        self,
        connectors: Dict[SourceTag, BaseConnector],
        normalizer: RecipeNormalizer,
        dedup_engine: DedupEngine,
        ai_governor: Optional[AIInvocationGovernor] = None,
        suggestion_governor: Optional[SuggestionGovernor] = None,
        source_priority: Sequence[SourceTag] = DEFAULT_SOURCE_PRIORITY,
    ):
        """
        Initialize the orchestrator.

        Args:
            connectors: Enabled fetch connectors (user store, external API)
            normalizer: Raw record normalizer
            dedup_engine: Cross-source dedup engine
            ai_governor: Governor around the AI connector; None disables AI
            suggestion_governor: Autocomplete governor; None disables suggestions
            source_priority: Concatenation order before dedup
        """
        self.connectors = dict(connectors)
        self.normalizer = normalizer
        self.dedup_engine = dedup_engine
        self.ai_governor = ai_governor
        self.suggestion_governor = suggestion_governor
        self.source_priority = list(source_priority)

    def search(
        self,
        query: Optional[str],
        mode: Optional[SearchMode] = None,
        context: Optional[IdentityContext] = None,
    ) -> SearchResult:
        """
        Search every enabled source and return deduplicated recipes.

        Args:
            query: Raw query text
            mode: Search mode; inferred from the query when None
            context: Caller identity; an anonymous restricted context when None

        Returns:
            SearchResult with recipes, contributing sources and per-source stats

        Raises:
            InvalidQuery: If the query is empty or whitespace-only (no I/O is done)
            AggregateUnavailable: If every enabled source failed
        """
        parsed = SearchQuery.parse(query, mode)
        context = context if context is not None else ClientContext()
        search_id = uuid4().hex

        with log_context(search_id=search_id):
            logger.info(
                "Search started",
                extra={
                    "event": "search.run.started",
                    "query": parsed.text,
                    "mode": parsed.mode,
                    "sources": [tag.value for tag in self._enabled_sources()],
                },
            )
            search_start = time.time()

            outcomes, ai_result = self._gather(parsed, context)

            recipes_by_source: Dict[SourceTag, List[Recipe]] = {}
            for tag, outcome in outcomes.items():
                recipes = self.normalizer.normalize_batch(outcome.records, tag)
                outcome.stats.normalized_count = len(recipes)
                outcome.stats.rejected_count = len(outcome.records) - len(recipes)
                recipes_by_source[tag] = recipes

            if ai_result is not None:
                recipes_by_source[SourceTag.AI] = ai_result.recipes
                outcomes[SourceTag.AI] = _FetchOutcome(stats=self._ai_stats(ai_result))

            self._raise_if_all_failed(outcomes, ai_result)

            ordered: List[Recipe] = []
            for tag in self.source_priority:
                ordered.extend(recipes_by_source.get(tag, []))
            recipes = self.dedup_engine.dedup(ordered)

            result = SearchResult(
                recipes=recipes,
                contributing_sources=frozenset(
                    tag for tag, outcome in outcomes.items() if outcome.stats.fetched_count > 0
                ),
                ai_status=ai_result.status if ai_result else None,
                source_stats=[outcomes[tag].stats for tag in self.source_priority if tag in outcomes],
                search_id=search_id,
            )

            logger.info(
                "Search completed",
                extra={
                    "event": "search.run.completed",
                    "duration_ms": int((time.time() - search_start) * 1000),
                    "result_count": len(recipes),
                    "merged_count": len(ordered) - len(recipes),
                    "contributing_sources": sorted(tag.value for tag in result.contributing_sources),
                    "ai_status": result.ai_status,
                },
            )
            return result

    def suggest(self, partial_query: Optional[str]) -> SuggestionResult:
        """Autocomplete a partial query; never raises."""
        if self.suggestion_governor is None:
            return EMPTY_SUGGESTION
        return self.suggestion_governor.suggest(partial_query)

    def _enabled_sources(self) -> List[SourceTag]:
        enabled = set(self.connectors)
        if self.ai_governor is not None:
            enabled.add(SourceTag.AI)
        return [tag for tag in self.source_priority if tag in enabled]

    def _gather(self, query: SearchQuery, context: IdentityContext):
        """Run connector fetches and the AI invocation concurrently."""
        task_count = len(self.connectors) + (1 if self.ai_governor else 0)
        fetch_futures: Dict[SourceTag, Future] = {}
        ai_future: Optional[Future] = None

        with ThreadPoolExecutor(max_workers=max(task_count, 1), thread_name_prefix="search") as pool:
            for tag, connector in self.connectors.items():
                fetch_futures[tag] = pool.submit(
                    contextvars.copy_context().run, self._fetch, tag, connector, query, context
                )

            if self.ai_governor is not None:

                def other_sources_empty() -> bool:
                    return all(not f.result().records for f in fetch_futures.values())

                ai_future = pool.submit(
                    contextvars.copy_context().run,
                    self.ai_governor.invoke,
                    query.text,
                    query.mode,
                    other_sources_empty if fetch_futures else None,
                )

            outcomes = {tag: future.result() for tag, future in fetch_futures.items()}
            ai_result = ai_future.result() if ai_future is not None else None

        return outcomes, ai_result

    def _fetch(
        self,
        tag: SourceTag,
        connector: BaseConnector,
        query: SearchQuery,
        context: IdentityContext,
    ) -> _FetchOutcome:
        """Fetch from one connector; failures yield an empty outcome."""
        stats = SourceRunStats(source=tag)
        start = time.time()

        try:
            records = list(connector.fetch(query.text, query.mode, context) or [])
        except ConnectorError as e:
            stats.had_errors = True
            stats.error_message = f"{type(e).__name__}: {e}"
            logger.warning(
                f"Source {tag.value} failed: {e}",
                extra={
                    "event": "source.fetch.failed",
                    "source": tag,
                    "error_type": type(e).__name__,
                },
            )
            records = []
        except Exception as e:
            stats.had_errors = True
            stats.error_message = f"{type(e).__name__}: {e}"
            logger.error(
                f"Unexpected error fetching from {tag.value}: {e}",
                extra={
                    "event": "source.fetch.failed",
                    "source": tag,
                    "error_type": type(e).__name__,
                },
                exc_info=True,
            )
            records = []

        stats.fetched_count = len(records)
        stats.duration_seconds = time.time() - start
        return _FetchOutcome(records=records, stats=stats)

    @staticmethod
    def _ai_stats(ai_result: AIInvocationResult) -> SourceRunStats:
        return SourceRunStats(
            source=SourceTag.AI,
            fetched_count=ai_result.raw_count,
            normalized_count=len(ai_result.recipes),
            rejected_count=max(ai_result.raw_count - len(ai_result.recipes), 0),
            had_errors=ai_result.status == InvocationStatus.FAILED,
            error_message=ai_result.error_kind,
        )

    def _raise_if_all_failed(
        self,
        outcomes: Dict[SourceTag, _FetchOutcome],
        ai_result: Optional[AIInvocationResult],
    ) -> None:
        """Raise AggregateUnavailable when no enabled source succeeded."""
        connectors_failed = all(
            outcomes[tag].stats.had_errors for tag in self.connectors
        )
        ai_failed = ai_result is None or ai_result.is_failure
        if not (connectors_failed and ai_failed):
            return

        failures = {
            tag.value: outcomes[tag].stats.error_message or "failed"
            for tag in self.connectors
        }
        if ai_result is not None:
            failures[SourceTag.AI.value] = f"{ai_result.status.value}: {ai_result.error_kind}"

        logger.error(
            "Every source failed for this search",
            extra={"event": "search.run.unavailable", "failures": failures},
        )
        raise AggregateUnavailable("Every enabled source failed for this search", failures=failures)
