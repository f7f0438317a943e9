"""Unit tests for the main entry point.

Tests the main() function including:
- CLI argument parsing and identity context selection
- Configuration loading with priority (CLI > env > config)
- Orchestrator wiring
- Exit code handling
"""

import json
from pathlib import Path
from unittest.mock import MagicMock, Mock, patch

import pytest

from recipe_aggregator.config.environment import EnvironmentConfig
from recipe_aggregator.config.exceptions import ConfigurationError
from recipe_aggregator.config.models import AIConfig, AppConfig, LoggingConfig, SuggestionConfig, UserStoreConfig
from recipe_aggregator.connectors import ClientContext, ServerContext
from recipe_aggregator.domain.exceptions import AggregateUnavailable, InvalidQuery
from recipe_aggregator.domain.models import Recipe, SearchMode, SourceTag
from recipe_aggregator.governor.models import GovernorState, InvocationStatus
from recipe_aggregator.governor.suggestions import SuggestionResult
from recipe_aggregator.main import (
    EXIT_ERROR,
    EXIT_INVALID_QUERY,
    EXIT_OK,
    build_capability,
    build_orchestrator,
    build_parser,
    load_runtime_config,
    main,
    resolve_context,
)
from recipe_aggregator.pipeline.models import SearchResult, SourceRunStats
from tests.helpers import FakeCapability

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "config"


class TestLoadRuntimeConfig:
    """Test suite for load_runtime_config helper."""

    def test_log_level_priority(self):
        """Log level priority: CLI > env > config."""
        app_config = AppConfig(logging=LoggingConfig(level="WARNING"))
        env_config = EnvironmentConfig(log_level="INFO")

        with patch("recipe_aggregator.main.load_config", return_value=(app_config, env_config)):
            _, resolved = load_runtime_config(None, "DEBUG")
            assert resolved.log_level == "DEBUG"

            env_config.log_level = "INFO"
            _, resolved = load_runtime_config(None, None)
            assert resolved.log_level == "INFO"

            env_config.log_level = None
            _, resolved = load_runtime_config(None, None)
            assert resolved.log_level == "WARNING"

    def test_configuration_error_propagates(self):
        with patch("recipe_aggregator.main.load_config", side_effect=ConfigurationError("bad config")):
            with pytest.raises(ConfigurationError):
                load_runtime_config(Path("config.yaml"), None)


class TestParser:
    def test_search_defaults(self):
        args = build_parser().parse_args(["search", "tomato soup"])

        assert args.command == "search"
        assert args.query == "tomato soup"
        assert args.mode is None
        assert args.elevated is False
        assert args.user_id is None

    def test_search_options(self):
        args = build_parser().parse_args(
            ["--log-level", "DEBUG", "search", "chicken, rice", "--mode", "by_ingredient", "--user-id", "alice"]
        )

        assert args.log_level == "DEBUG"
        assert args.mode == "by_ingredient"
        assert args.user_id == "alice"

    def test_elevated_and_user_id_are_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["search", "soup", "--elevated", "--user-id", "alice"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_invalid_mode(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["search", "soup", "--mode", "fuzzy"])

    def test_resolve_context(self):
        parser = build_parser()

        assert resolve_context(parser.parse_args(["search", "soup", "--elevated"])) == ServerContext()
        assert resolve_context(parser.parse_args(["search", "soup", "--user-id", "alice"])) == ClientContext(
            acting_user_id="alice"
        )
        assert resolve_context(parser.parse_args(["search", "soup"])) == ClientContext()


class TestWiring:
    """Tests for capability and orchestrator construction."""

    def test_build_capability_disabled(self):
        config = AppConfig(ai=AIConfig(enabled=False), suggestions=SuggestionConfig(enabled=False))

        assert build_capability(config, EnvironmentConfig()) is None

    def test_build_capability_uses_model_and_timeout(self):
        with patch("recipe_aggregator.main.GeminiRecipeGenerator") as generator_class:
            build_capability(AppConfig(), EnvironmentConfig(gemini_api_key="key"))

        generator_class.assert_called_once_with(api_key="key", model_name="gemini-2.5-flash", request_timeout=30)

    def test_build_orchestrator_full(self):
        orchestrator = build_orchestrator(
            AppConfig(), GovernorState(), FakeCapability(), store=Mock(), session=MagicMock()
        )

        try:
            assert set(orchestrator.connectors) == {SourceTag.USER_STORE, SourceTag.EXTERNAL_API}
            assert orchestrator.ai_governor is not None
            assert orchestrator.ai_governor.ai_timeout == 10
            assert orchestrator.suggestion_governor is not None
            assert orchestrator.suggestion_governor.state is orchestrator.ai_governor.state
        finally:
            orchestrator.ai_governor.shutdown()

    def test_build_orchestrator_without_ai(self):
        config = AppConfig(
            ai=AIConfig(enabled=False),
            suggestions=SuggestionConfig(enabled=False),
            user_store=UserStoreConfig(enabled=False),
        )

        orchestrator = build_orchestrator(config, GovernorState(), None, session=MagicMock())

        assert list(orchestrator.connectors) == [SourceTag.EXTERNAL_API]
        assert orchestrator.ai_governor is None
        assert orchestrator.suggestion_governor is None


@pytest.fixture
def runtime():
    """Patch config loading, logging, database and orchestrator construction."""
    app_config = AppConfig()
    env_config = EnvironmentConfig(gemini_api_key="key", log_level="INFO")
    orchestrator = Mock()

    with patch("recipe_aggregator.main.load_dotenv"), patch(
        "recipe_aggregator.main.load_runtime_config", return_value=(app_config, env_config)
    ) as load_mock, patch("recipe_aggregator.main.configure_logging") as logging_mock, patch(
        "recipe_aggregator.main.init_database"
    ) as init_db_mock, patch(
        "recipe_aggregator.main.close_database"
    ) as close_db_mock, patch(
        "recipe_aggregator.main.build_capability", return_value=FakeCapability()
    ), patch(
        "recipe_aggregator.main.build_orchestrator", return_value=orchestrator
    ):
        yield {
            "orchestrator": orchestrator,
            "load_runtime_config": load_mock,
            "configure_logging": logging_mock,
            "init_database": init_db_mock,
            "close_database": close_db_mock,
            "env_config": env_config,
        }


class TestMain:
    """Test suite for main() exit codes and output."""

    def test_search_prints_json(self, runtime, capsys):
        runtime["orchestrator"].search.return_value = SearchResult(
            recipes=[Recipe(id="mealdb-1", name="Tomato Soup", source=SourceTag.EXTERNAL_API)],
            contributing_sources=frozenset({SourceTag.EXTERNAL_API}),
            ai_status=InvocationStatus.SKIPPED,
            source_stats=[SourceRunStats(source=SourceTag.EXTERNAL_API, fetched_count=1, normalized_count=1)],
            search_id="abc123",
        )

        exit_code = main(["search", "tomato soup", "--elevated", "--mode", "by_name"])

        assert exit_code == EXIT_OK
        output = json.loads(capsys.readouterr().out)
        assert output["search_id"] == "abc123"
        assert output["recipes"][0]["name"] == "Tomato Soup"
        assert output["contributing_sources"] == ["external_api"]
        assert output["ai_status"] == "skipped"

        runtime["orchestrator"].search.assert_called_once_with(
            "tomato soup", mode=SearchMode.BY_NAME, context=ServerContext()
        )
        runtime["init_database"].assert_called_once_with(runtime["env_config"].database_url)
        runtime["configure_logging"].assert_called_once_with(
            level="INFO", format_type="key-value", environment="local"
        )

    def test_invalid_query_exit_code(self, runtime, capsys):
        runtime["orchestrator"].search.side_effect = InvalidQuery()

        assert main(["search", "   "]) == EXIT_INVALID_QUERY
        assert "Invalid query" in capsys.readouterr().err

    def test_aggregate_unavailable_lists_failures(self, runtime, capsys):
        runtime["orchestrator"].search.side_effect = AggregateUnavailable(
            "Every enabled source failed for this search",
            failures={"external_api": "ConnectorTimeoutError: slow", "ai": "failed: timeout"},
        )

        assert main(["search", "soup"]) == EXIT_ERROR

        err = capsys.readouterr().err
        assert "external_api: ConnectorTimeoutError: slow" in err
        assert "ai: failed: timeout" in err

    def test_configuration_error_exit_code(self, runtime, capsys):
        runtime["load_runtime_config"].side_effect = ConfigurationError("Configuration file not found")

        assert main(["search", "soup"]) == EXIT_ERROR
        assert "Configuration Error" in capsys.readouterr().err

    def test_unexpected_error_exit_code(self, runtime, capsys):
        runtime["orchestrator"].search.side_effect = RuntimeError("boom")

        assert main(["search", "soup"]) == EXIT_ERROR
        assert "Fatal error: boom" in capsys.readouterr().err

    def test_suggest_prints_suggestion(self, runtime, capsys):
        runtime["orchestrator"].suggest.return_value = SuggestionResult(suggestion="pizza margherita")

        assert main(["suggest", "piz"]) == EXIT_OK
        assert json.loads(capsys.readouterr().out) == {"suggestion": "pizza margherita"}

    def test_cleanup_runs_after_search(self, runtime):
        runtime["orchestrator"].search.return_value = SearchResult()

        main(["search", "soup"])

        runtime["orchestrator"].ai_governor.shutdown.assert_called_once_with()
        runtime["close_database"].assert_called_once_with()

    def test_user_store_disabled_skips_database(self, runtime):
        app_config = AppConfig(user_store=UserStoreConfig(enabled=False))
        runtime["load_runtime_config"].return_value = (app_config, runtime["env_config"])
        runtime["orchestrator"].search.return_value = SearchResult()

        assert main(["search", "soup"]) == EXIT_OK
        runtime["init_database"].assert_not_called()


class TestValidateConfigCommand:
    def test_valid_file(self, capsys):
        with patch("recipe_aggregator.main.load_dotenv"):
            exit_code = main(["--config", str(FIXTURES_DIR / "valid_config.yaml"), "validate-config"])

        assert exit_code == EXIT_OK
        assert "is valid" in capsys.readouterr().out

    def test_invalid_file(self):
        with patch("recipe_aggregator.main.load_dotenv"):
            exit_code = main(["--config", str(FIXTURES_DIR / "invalid_no_sources.yaml"), "validate-config"])

        assert exit_code == EXIT_ERROR

    def test_missing_file(self, capsys):
        with patch("recipe_aggregator.main.load_dotenv"):
            exit_code = main(["--config", "does-not-exist.yaml", "validate-config"])

        assert exit_code == EXIT_ERROR
        assert "Configuration Error" in capsys.readouterr().err
