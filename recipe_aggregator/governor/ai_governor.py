"""AI invocation governor.

Every call to the generative capability during a search goes through
AIInvocationGovernor.invoke(), which applies, in order:
1. TTL cache lookup keyed by (normalized query, mode)
2. Cooldown gate after a quota-exceeded signal
3. A bounded first attempt, then at most one extended-timeout retry on a
   transient failure when no other source produced anything
4. Validation of the output and a cache write on success

Failures never reach the caller: they become an empty AIInvocationResult with
an error kind, logged as a structured diagnostic.
"""

import contextvars
import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from recipe_aggregator.config.models import GovernorConfig
from recipe_aggregator.connectors.ai import AIRecipeConnector
from recipe_aggregator.connectors.exceptions import SourceUnavailable
from recipe_aggregator.domain.models import SearchMode
from recipe_aggregator.generation.exceptions import (
    GenerationConfigurationError,
    GenerationTimeout,
    GenerationUnavailable,
    InvalidOutput,
    QuotaExceeded,
)
from recipe_aggregator.logging import get_logger
from recipe_aggregator.normalization.service import RecipeNormalizer
from recipe_aggregator.utils.text import canonical_key
from recipe_aggregator.utils.timestamps import format_timestamp_for_log, utc_now

from .models import AIInvocationResult, CacheKey, GovernorState, InvocationStatus

logger = get_logger(__name__, component="governor")

# Failures that qualify for the single extended-timeout retry
TRANSIENT_ERRORS = (GenerationTimeout, GenerationUnavailable, SourceUnavailable)


def _error_kind(error: BaseException) -> str:
    if isinstance(error, QuotaExceeded):
        return "quota_exceeded"
    if isinstance(error, InvalidOutput):
        return "invalid_output"
    if isinstance(error, GenerationTimeout):
        return "timeout"
    if isinstance(error, (GenerationUnavailable, SourceUnavailable)):
        return "unavailable"
    if isinstance(error, GenerationConfigurationError):
        return "configuration"
    return "unexpected"


class AIInvocationGovernor:
    """Gates, caches and retries calls to the AI connector.

    Capability calls run on the governor's own executor so a call can be
    abandoned when its timeout expires. Only the calling thread writes results
    into GovernorState, so a response that arrives after its timeout is
    dropped. A worker stamps last_invocation_ts when it starts the call, so
    attempts still queued behind abandoned calls are never counted.

    Attributes:
        state: Process-wide governor state (shared, passed in)
        connector: AI connector wrapping the generative capability
        normalizer: Validates generated records into Recipes
        clock: Returns the current UTC datetime (injectable for tests)
    """

    def __init__(
        self,
        state: GovernorState,
        connector: AIRecipeConnector,
        normalizer: RecipeNormalizer,
        ai_timeout: float = 10.0,
        extended_timeout: float = 30.0,
        cooldown: float = 60.0,
        cache_ttl: float = 300.0,
        clock: Callable[[], datetime] = utc_now,
        max_workers: int = 4,
        executor: Optional[ThreadPoolExecutor] = None,
        logger_instance: Optional[logging.LoggerAdapter] = None,
    ):
        """Initialize AIInvocationGovernor.

        Args:
            state: Shared GovernorState
            connector: AI connector
            normalizer: Normalizer used to validate generated output
            ai_timeout: Seconds allowed for the first attempt
            extended_timeout: Seconds allowed for the single retry
            cooldown: Seconds to skip AI calls after a quota-exceeded signal
            cache_ttl: Seconds a successful result stays cached
            clock: Current-time source
            max_workers: Size of the executor created when none is given
            executor: Executor for capability calls (created if omitted)
            logger_instance: Logger instance (defaults to module logger)
        """
        self.state = state
        self.connector = connector
        self.normalizer = normalizer
        self.ai_timeout = ai_timeout
        self.extended_timeout = extended_timeout
        self.cooldown = timedelta(seconds=cooldown)
        self.cache_ttl = timedelta(seconds=cache_ttl)
        self.clock = clock
        self.logger = logger_instance or logger

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="ai-governor"
        )

    @classmethod
    def from_config(
        cls,
        state: GovernorState,
        connector: AIRecipeConnector,
        normalizer: RecipeNormalizer,
        config: GovernorConfig,
        **kwargs: Any,
    ) -> "AIInvocationGovernor":
        """Build a governor from the governor section of AppConfig."""
        return cls(
            state,
            connector,
            normalizer,
            ai_timeout=config.ai_timeout_seconds,
            extended_timeout=config.extended_timeout_seconds,
            cooldown=config.cooldown_seconds,
            cache_ttl=config.cache_ttl_seconds,
            max_workers=config.max_concurrent_calls,
            **kwargs,
        )

    def invoke(
        self,
        query: str,
        mode: SearchMode,
        other_sources_empty: Optional[Callable[[], bool]] = None,
    ) -> AIInvocationResult:
        """Run one governed AI invocation. Never raises.

        Args:
            query: Trimmed query text
            mode: Search mode
            other_sources_empty: Reports whether every other source of the
                current search produced zero records; may block until they
                finish. None means there are no other sources.

        Returns:
            AIInvocationResult tagged cached, success, skipped or failed
        """
        mode = SearchMode(mode)
        key: CacheKey = (canonical_key(query), mode)
        now = self.clock()

        cached = self.state.get_live(key, now)
        if cached is not None:
            self.logger.info(
                "Serving AI recipes from cache",
                extra={
                    "event": "governor.ai.cache_hit",
                    "query": query,
                    "mode": mode,
                    "count": len(cached),
                },
            )
            return AIInvocationResult(
                status=InvocationStatus.CACHED, recipes=cached, raw_count=len(cached)
            )

        if self.state.in_cooldown(now):
            self.logger.info(
                "Skipping AI invocation during cooldown",
                extra={
                    "event": "governor.ai.skipped",
                    "query": query,
                    "mode": mode,
                    "cooldown_until": format_timestamp_for_log(self.state.cooldown_until_ts),
                },
            )
            return AIInvocationResult(status=InvocationStatus.SKIPPED, error_kind="cooldown")

        attempts = 1
        try:
            raw = self._call(query, mode, self.ai_timeout)
        except TRANSIENT_ERRORS as first_error:
            if not self._retry_allowed(first_error, query, mode, other_sources_empty):
                return self._absorb(first_error, query, mode, attempts)

            attempts = 2
            try:
                raw = self._call(query, mode, self.extended_timeout)
            except Exception as retry_error:
                return self._absorb(retry_error, query, mode, attempts)
        except Exception as e:
            return self._absorb(e, query, mode, attempts)

        return self._accept(key, raw, query, mode, attempts)

    def shutdown(self, wait: bool = False) -> None:
        """Shut down the executor if the governor created it."""
        if self._owns_executor:
            self._executor.shutdown(wait=wait, cancel_futures=True)

    def _call(self, query: str, mode: SearchMode, timeout: float) -> Any:
        """Call the connector on the executor and wait at most timeout seconds."""
        ctx = contextvars.copy_context()
        future = self._executor.submit(ctx.run, self._run_connector, query, mode)

        self.logger.debug(
            "Invoking AI capability",
            extra={
                "event": "governor.ai.invoked",
                "query": query,
                "mode": mode,
                "timeout": timeout,
            },
        )

        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError as e:
            if future.cancel():
                raise GenerationTimeout(
                    f"AI capability call did not start within {timeout} seconds "
                    "(all governor workers busy)",
                    timeout=timeout,
                ) from e
            raise GenerationTimeout(
                f"AI capability did not answer within {timeout} seconds", timeout=timeout
            ) from e

    def _run_connector(self, query: str, mode: SearchMode) -> Any:
        self.state.record_invocation(self.clock())
        return self.connector.fetch(query, mode)

    def _retry_allowed(
        self,
        error: BaseException,
        query: str,
        mode: SearchMode,
        other_sources_empty: Optional[Callable[[], bool]],
    ) -> bool:
        allowed = other_sources_empty is None or other_sources_empty()
        self.logger.info(
            "Retrying AI invocation with extended timeout"
            if allowed
            else "Skipping extended retry; other sources produced results",
            extra={
                "event": "governor.ai.retry" if allowed else "governor.ai.retry_skipped",
                "query": query,
                "mode": mode,
                "error_kind": _error_kind(error),
                "extended_timeout": self.extended_timeout,
            },
        )
        return allowed

    def _accept(
        self, key: CacheKey, raw: Any, query: str, mode: SearchMode, attempts: int
    ) -> AIInvocationResult:
        if raw is not None and not isinstance(raw, list):
            return self._absorb(
                InvalidOutput(f"Expected a list of records, got {type(raw).__name__}"),
                query,
                mode,
                attempts,
            )

        validation = self.normalizer.validate_ai_output(raw)
        recipes = validation.accepted
        self.state.put(key, recipes, self.clock(), self.cache_ttl)

        self.logger.info(
            "AI invocation succeeded",
            extra={
                "event": "governor.ai.succeeded",
                "query": query,
                "mode": mode,
                "raw_count": len(raw or []),
                "accepted": len(recipes),
                "rejected": validation.rejected_count,
                "attempts": attempts,
            },
        )
        return AIInvocationResult(
            status=InvocationStatus.SUCCESS,
            recipes=recipes,
            raw_count=len(raw or []),
            attempts=attempts,
        )

    def _absorb(
        self, error: BaseException, query: str, mode: SearchMode, attempts: int
    ) -> AIInvocationResult:
        """Turn a capability failure into an empty failed result."""
        now = self.clock()
        kind = _error_kind(error)
        extra = {
            "event": f"governor.ai.{kind}",
            "query": query,
            "mode": mode,
            "error_kind": kind,
            "error": str(error),
            "attempts": attempts,
            "occurred_at": format_timestamp_for_log(now),
        }

        if isinstance(error, QuotaExceeded):
            until = self.state.enter_cooldown(now, self.cooldown)
            extra["cooldown_until"] = format_timestamp_for_log(until)
            self.logger.warning("AI quota exceeded; entering cooldown", extra=extra)
        elif kind == "unexpected":
            self.logger.error("Unexpected AI capability failure", extra=extra, exc_info=error)
        else:
            self.logger.warning(f"AI invocation failed: {kind}", extra=extra)

        return AIInvocationResult(
            status=InvocationStatus.FAILED, error_kind=kind, attempts=attempts
        )
