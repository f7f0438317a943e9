"""Unit tests for the search orchestrator.

Tests the SearchOrchestrator including:
- Tolerance of single-source failures
- Invalid queries rejected before any I/O
- Cross-source merge and deterministic ordering
- Extended AI retry only when the other sources came back empty
- AggregateUnavailable when every enabled source fails
"""

import threading
from datetime import timedelta

import pytest

from recipe_aggregator.connectors.exceptions import (
    ConnectorHTTPError,
    PermissionDenied,
    SourceUnavailable,
)
from recipe_aggregator.connectors.ai import AIRecipeConnector
from recipe_aggregator.connectors.identity import ClientContext, ServerContext
from recipe_aggregator.dedup import DedupEngine
from recipe_aggregator.domain.exceptions import AggregateUnavailable, InvalidQuery
from recipe_aggregator.domain.models import SearchMode, SourceTag
from recipe_aggregator.generation.exceptions import QuotaExceeded
from recipe_aggregator.governor import (
    AIInvocationGovernor,
    GovernorState,
    InvocationStatus,
    SuggestionGovernor,
)
from recipe_aggregator.normalization import RecipeNormalizer
from recipe_aggregator.pipeline import SearchOrchestrator
from tests.helpers import (
    FakeCapability,
    FakeClock,
    FakeConnector,
    ai_record,
    blocking,
    meal_record,
    user_record,
)

TOMATO_MEAL = meal_record(
    "52777",
    "tomato soup",
    strIngredient1="tomato",
    strIngredient2="basil",
    strIngredient3="salt",
)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def state():
    return GovernorState()


@pytest.fixture
def release():
    event = threading.Event()
    yield event
    event.set()


@pytest.fixture
def build(state, clock, release):
    """Build an orchestrator over fake sources; returns (orchestrator, capability)."""
    governors = []

    def _build(
        user_store=None,
        external_api=None,
        capability=None,
        ai_enabled=True,
        source_priority=None,
    ):
        normalizer = RecipeNormalizer()
        connectors = {}
        if user_store is not None:
            connectors[SourceTag.USER_STORE] = user_store
        if external_api is not None:
            connectors[SourceTag.EXTERNAL_API] = external_api

        capability = capability or FakeCapability(responses=[[]])
        governor = None
        if ai_enabled:
            governor = AIInvocationGovernor(
                state,
                AIRecipeConnector(capability),
                normalizer,
                ai_timeout=0.05,
                extended_timeout=0.5,
                clock=clock,
            )
            governors.append(governor)

        kwargs = {"source_priority": source_priority} if source_priority else {}
        orchestrator = SearchOrchestrator(
            connectors=connectors,
            normalizer=normalizer,
            dedup_engine=DedupEngine(),
            ai_governor=governor,
            suggestion_governor=SuggestionGovernor(state, capability, clock=clock),
            **kwargs,
        )
        return orchestrator, capability

    yield _build

    release.set()
    for governor in governors:
        governor.shutdown(wait=True)


def users(*records, error=None):
    return FakeConnector(SourceTag.USER_STORE, records=list(records), error=error)


def external(*records, error=None):
    return FakeConnector(SourceTag.EXTERNAL_API, records=list(records), error=error)


class TestInvalidQuery:
    """Invalid input is rejected before any I/O."""

    @pytest.mark.parametrize("query", ["", "   ", "\n\t", None])
    def test_empty_query_raises_without_invocations(self, build, query):
        user_store, api = users(user_record("u1", "Soup")), external(TOMATO_MEAL)
        orchestrator, capability = build(user_store, api)

        with pytest.raises(InvalidQuery):
            orchestrator.search(query, context=ServerContext())

        assert user_store.call_count == 0
        assert api.call_count == 0
        assert capability.generate_count == 0


class TestFailureTolerance:
    """A single failing source never aborts the search."""

    def test_user_store_failure(self, build):
        orchestrator, _ = build(
            users(error=SourceUnavailable("db down")),
            external(TOMATO_MEAL),
        )

        result = orchestrator.search("tomato soup", context=ServerContext())

        assert [r.id for r in result.recipes] == ["mealdb-52777"]
        assert result.contributing_sources == frozenset({SourceTag.EXTERNAL_API})
        user_stats = result.source_stats[0]
        assert user_stats.source == SourceTag.USER_STORE
        assert user_stats.had_errors
        assert "db down" in user_stats.error_message

    def test_external_api_failure(self, build):
        orchestrator, _ = build(
            users(user_record("u1", "Tomato Soup")),
            external(error=ConnectorHTTPError("boom", status_code=500, url="https://x")),
        )

        result = orchestrator.search("tomato soup", context=ServerContext())

        assert [r.id for r in result.recipes] == ["u1"]
        assert result.contributing_sources == frozenset({SourceTag.USER_STORE})

    def test_ai_failure(self, build):
        orchestrator, _ = build(
            users(user_record("u1", "Tomato Soup")),
            external(TOMATO_MEAL),
            capability=FakeCapability(responses=[QuotaExceeded("429")]),
        )

        result = orchestrator.search("tomato soup", context=ServerContext())

        assert result.ai_status == InvocationStatus.FAILED
        assert len(result.recipes) == 1
        assert result.contributing_sources == frozenset({SourceTag.USER_STORE, SourceTag.EXTERNAL_API})

    def test_permission_denied_is_absorbed(self, build):
        orchestrator, _ = build(
            users(error=PermissionDenied("anonymous")),
            external(TOMATO_MEAL),
        )

        result = orchestrator.search("tomato soup")

        assert [r.id for r in result.recipes] == ["mealdb-52777"]

    def test_unexpected_connector_error_is_absorbed(self, build):
        orchestrator, _ = build(
            users(error=RuntimeError("bug")),
            external(TOMATO_MEAL),
        )

        result = orchestrator.search("tomato soup", context=ServerContext())

        assert len(result.recipes) == 1
        assert result.source_stats[0].had_errors


class TestAggregateUnavailable:
    """Only total failure surfaces to the caller."""

    def test_every_source_failing_raises(self, build):
        orchestrator, _ = build(
            users(error=SourceUnavailable("db down")),
            external(error=SourceUnavailable("api down")),
            capability=FakeCapability(responses=[QuotaExceeded("429")]),
        )

        with pytest.raises(AggregateUnavailable) as exc_info:
            orchestrator.search("tomato soup", context=ServerContext())

        assert set(exc_info.value.failures) == {"user_store", "external_api", "ai"}

    def test_ai_skipped_counts_as_failed(self, build, state, clock):
        state.enter_cooldown(clock.now, timedelta(seconds=60))
        orchestrator, capability = build(
            users(error=SourceUnavailable("db down")),
            external(error=SourceUnavailable("api down")),
        )

        with pytest.raises(AggregateUnavailable):
            orchestrator.search("tomato soup", context=ServerContext())
        assert capability.generate_count == 0

    def test_ai_success_with_empty_result_is_not_failure(self, build):
        orchestrator, _ = build(
            users(error=SourceUnavailable("db down")),
            external(error=SourceUnavailable("api down")),
            capability=FakeCapability(responses=[[]]),
        )

        result = orchestrator.search("tomato soup", context=ServerContext())

        assert result.recipes == []
        assert result.ai_status == InvocationStatus.SUCCESS

    def test_empty_sources_are_not_failures(self, build):
        orchestrator, _ = build(users(), external(), ai_enabled=False)

        result = orchestrator.search("tomato soup", context=ServerContext())

        assert result.recipes == []
        assert result.contributing_sources == frozenset()

    def test_disabled_sources_not_counted(self, build):
        api = external(error=SourceUnavailable("api down"))
        orchestrator, _ = build(external_api=api, ai_enabled=False)

        with pytest.raises(AggregateUnavailable) as exc_info:
            orchestrator.search("tomato soup")

        assert set(exc_info.value.failures) == {"external_api"}


class TestMergeAndOrdering:
    """Cross-source merge and deterministic ordering."""

    def test_tomato_soup_merged_across_sources(self, build):
        orchestrator, _ = build(
            users(user_record("u1", "Tomato Soup", ["tomato"])),
            external(TOMATO_MEAL),
        )

        result = orchestrator.search("tomato soup", context=ServerContext())

        assert len(result.recipes) == 1
        merged = result.recipes[0]
        assert merged.source == SourceTag.COMBINED
        assert merged.ingredients == ["tomato", "basil", "salt"]
        assert merged.canonical_key == "tomato soup"
        assert merged.id == "u1"

    def test_default_priority_order(self, build):
        orchestrator, _ = build(
            users(user_record("u1", "Soup A")),
            external(meal_record("1", "Soup B")),
            capability=FakeCapability(responses=[[ai_record("Soup C")]]),
        )

        result = orchestrator.search("soup", context=ServerContext())

        assert [r.name for r in result.recipes] == ["Soup A", "Soup B", "Soup C"]
        assert [s.source for s in result.source_stats] == [
            SourceTag.USER_STORE,
            SourceTag.EXTERNAL_API,
            SourceTag.AI,
        ]

    def test_custom_priority_order(self, build):
        orchestrator, _ = build(
            users(user_record("u1", "Soup", ["a"])),
            external(meal_record("1", "Soup")),
            capability=FakeCapability(responses=[[ai_record("Soup", ["x", "y"])]]),
            source_priority=[SourceTag.AI, SourceTag.EXTERNAL_API, SourceTag.USER_STORE],
        )

        result = orchestrator.search("soup", context=ServerContext())

        assert result.recipes[0].id == "ai-soup"
        assert result.recipes[0].ingredients == ["x", "y"]

    def test_repeat_search_is_deterministic(self, build):
        orchestrator, _ = build(
            users(user_record("u1", "Soup A"), user_record("u2", "Soup B")),
            external(meal_record("1", "Soup B"), meal_record("2", "Soup C")),
            capability=FakeCapability(responses=[[ai_record("Soup D"), ai_record("Soup A")]]),
        )

        first = orchestrator.search("soup", context=ServerContext())
        second = orchestrator.search("soup", context=ServerContext())

        assert [r.model_dump() for r in first.recipes] == [r.model_dump() for r in second.recipes]
        assert second.ai_status == InvocationStatus.CACHED

    def test_rejected_records_still_count_as_contribution(self, build):
        orchestrator, _ = build(users({"id": "u1", "name": " "}), external(), ai_enabled=False)

        result = orchestrator.search("soup", context=ServerContext())

        assert result.recipes == []
        assert result.contributing_sources == frozenset({SourceTag.USER_STORE})
        assert result.source_stats[0].rejected_count == 1


class TestExtendedRetry:
    """The AI retry depends on what the other sources produced."""

    def test_retry_when_other_sources_empty(self, build, release):
        capability = FakeCapability(responses=[blocking(release), [ai_record("Tomato Soup")]])
        orchestrator, _ = build(users(), external(), capability=capability)

        result = orchestrator.search("tomato soup", context=ServerContext())

        assert capability.generate_count == 2
        assert [r.source for r in result.recipes] == [SourceTag.AI]

    def test_no_retry_when_external_api_has_results(self, build, release):
        capability = FakeCapability(responses=[blocking(release), [ai_record("Tomato Soup")]])
        orchestrator, _ = build(users(), external(TOMATO_MEAL), capability=capability)

        result = orchestrator.search("tomato soup", context=ServerContext())

        assert capability.generate_count == 1
        assert result.ai_status == InvocationStatus.FAILED
        assert [r.id for r in result.recipes] == ["mealdb-52777"]

    def test_failed_sources_count_as_empty(self, build, release):
        capability = FakeCapability(responses=[blocking(release), [ai_record("Tomato Soup")]])
        orchestrator, _ = build(
            users(error=SourceUnavailable("db down")),
            external(),
            capability=capability,
        )

        orchestrator.search("tomato soup", context=ServerContext())

        assert capability.generate_count == 2


class TestQueryRouting:
    """Mode inference and identity context."""

    def test_separator_routes_to_ingredient_mode(self, build):
        user_store, api = users(), external()
        orchestrator, _ = build(user_store, api, ai_enabled=False)

        orchestrator.search("chicken, rice", context=ServerContext())

        assert user_store.calls[0]["mode"] == SearchMode.BY_INGREDIENT
        assert api.calls[0]["mode"] == SearchMode.BY_INGREDIENT
        assert api.calls[0]["query"] == "chicken, rice"

    def test_explicit_mode(self, build):
        api = external()
        orchestrator, _ = build(external_api=api, ai_enabled=False)

        orchestrator.search("chicken", mode=SearchMode.BY_INGREDIENT)

        assert api.calls[0]["mode"] == SearchMode.BY_INGREDIENT

    def test_context_passed_to_connectors(self, build):
        user_store = users()
        orchestrator, _ = build(user_store, ai_enabled=False)
        context = ClientContext(acting_user_id="alice")

        orchestrator.search("soup", context=context)

        assert user_store.calls[0]["context"] is context

    def test_default_context_is_anonymous_client(self, build):
        user_store = users()
        orchestrator, _ = build(user_store, ai_enabled=False)

        orchestrator.search("soup")

        context = user_store.calls[0]["context"]
        assert not context.is_elevated()
        assert context.user_id() is None

    def test_search_id_assigned(self, build):
        orchestrator, _ = build(users(), ai_enabled=False)

        first = orchestrator.search("soup")
        second = orchestrator.search("soup")

        assert first.search_id and second.search_id
        assert first.search_id != second.search_id


class TestSuggest:
    def test_suggest_delegates_to_governor(self, build):
        orchestrator, _ = build(
            users(), capability=FakeCapability(responses=[[]], completions=["pizza margherita"])
        )

        assert orchestrator.suggest("piz").suggestion == "pizza margherita"

    def test_suggest_without_governor(self):
        orchestrator = SearchOrchestrator(
            connectors={}, normalizer=RecipeNormalizer(), dedup_engine=DedupEngine()
        )

        assert orchestrator.suggest("piz").suggestion == ""

    def test_to_dict(self, build):
        orchestrator, _ = build(users(user_record("u1", "Soup")), ai_enabled=False)

        data = orchestrator.search("soup", context=ServerContext()).to_dict()

        assert data["recipes"][0]["source"] == "user_store"
        assert data["contributing_sources"] == ["user_store"]
        assert data["ai_status"] is None
        assert data["source_stats"][0]["fetched"] == 1
