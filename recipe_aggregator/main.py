"""Command-line entry point for the recipe aggregator."""

import argparse
import json
import sys
import time
from pathlib import Path
from typing import List, Optional, Tuple

import requests
from dotenv import load_dotenv

from recipe_aggregator.config.environment import EnvironmentConfig
from recipe_aggregator.config.exceptions import ConfigurationError
from recipe_aggregator.config.loader import find_config_file, load_config, validate_config_file
from recipe_aggregator.config.models import AppConfig
from recipe_aggregator.connectors.factory import build_ai_connector, get_connectors
from recipe_aggregator.connectors.identity import ClientContext, IdentityContext, ServerContext
from recipe_aggregator.connectors.user_store import UserRecipeStore
from recipe_aggregator.dedup.engine import DedupEngine
from recipe_aggregator.domain.exceptions import AggregateUnavailable, InvalidQuery
from recipe_aggregator.domain.models import SearchMode
from recipe_aggregator.generation.capability import GenerativeCapability
from recipe_aggregator.generation.gemini import GeminiRecipeGenerator
from recipe_aggregator.governor.ai_governor import AIInvocationGovernor
from recipe_aggregator.governor.models import GovernorState
from recipe_aggregator.governor.suggestions import SuggestionGovernor
from recipe_aggregator.logging import get_logger
from recipe_aggregator.logging.config import configure_logging
from recipe_aggregator.normalization.service import RecipeNormalizer
from recipe_aggregator.persistence.database import close_database, init_database
from recipe_aggregator.pipeline.orchestrator import SearchOrchestrator

logger = get_logger(__name__, component="cli")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INVALID_QUERY = 2


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and resolve the effective log level.

    Log level priority: CLI > LOG_LEVEL environment variable > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level or "INFO"

    return app_config, env_config


def build_capability(app_config: AppConfig, env_config: EnvironmentConfig) -> Optional[GenerativeCapability]:
    """Create the Gemini capability when AI search or suggestions are enabled."""
    if not (app_config.ai.enabled or app_config.suggestions.enabled):
        return None
    return GeminiRecipeGenerator(
        api_key=env_config.gemini_api_key,
        model_name=app_config.ai.model_name,
        request_timeout=app_config.governor.extended_timeout_seconds,
    )


def build_orchestrator(
    app_config: AppConfig,
    state: GovernorState,
    capability: Optional[GenerativeCapability],
    store: Optional[UserRecipeStore] = None,
    session: Optional[requests.Session] = None,
) -> SearchOrchestrator:
    """
    Wire connectors, governors, normalizer and dedup engine into an orchestrator.

    Args:
        app_config: Application configuration
        state: The process-wide governor state
        capability: Generative capability (None when AI and suggestions are off)
        store: User recipe store override (defaults to the database store)
        session: Optional requests session for the external API

    Returns:
        Configured SearchOrchestrator
    """
    normalizer = RecipeNormalizer(max_ingredient_index=app_config.external_api.max_ingredient_index)

    ai_governor = None
    ai_connector = build_ai_connector(app_config, capability)
    if ai_connector is not None:
        ai_governor = AIInvocationGovernor.from_config(
            state, ai_connector, normalizer, app_config.governor
        )

    suggestion_governor = None
    if app_config.suggestions.enabled and capability is not None:
        suggestion_governor = SuggestionGovernor(
            state,
            capability,
            cooldown=app_config.suggestions.cooldown_seconds,
            min_query_length=app_config.suggestions.min_query_length,
        )

    return SearchOrchestrator(
        connectors=get_connectors(app_config, store=store, session=session),
        normalizer=normalizer,
        dedup_engine=DedupEngine(),
        ai_governor=ai_governor,
        suggestion_governor=suggestion_governor,
        source_priority=app_config.source_priority,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="recipe-aggregator",
        description="Recipe Aggregator - search user, public API and AI recipes in one call",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml or config/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    search_parser = subparsers.add_parser("search", help="Search recipes across all sources")
    search_parser.add_argument("query", help="Recipe name, or comma-separated ingredients")
    search_parser.add_argument(
        "--mode",
        choices=[mode.value for mode in SearchMode],
        default=None,
        help="Search mode (default: inferred from the query)",
    )
    identity = search_parser.add_mutually_exclusive_group()
    identity.add_argument(
        "--elevated",
        action="store_true",
        help="Search as the server, seeing every user-submitted recipe",
    )
    identity.add_argument(
        "--user-id",
        default=None,
        help="Search as this user, seeing their own and public recipes",
    )

    suggest_parser = subparsers.add_parser("suggest", help="Autocomplete a partial query")
    suggest_parser.add_argument("partial_query", help="Partially typed search text")

    subparsers.add_parser("validate-config", help="Validate the configuration file and exit")

    return parser


def resolve_context(args: argparse.Namespace) -> IdentityContext:
    if args.elevated:
        return ServerContext()
    return ClientContext(acting_user_id=args.user_id)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the recipe aggregator CLI.

    Returns:
        Exit code (0 success, 1 error, 2 invalid query).
    """
    load_dotenv()
    start_time = time.time()
    args = build_parser().parse_args(argv)

    if args.command == "validate-config":
        try:
            config_file = find_config_file(args.config)
        except ConfigurationError as e:
            print(f"Configuration Error: {e}", file=sys.stderr)
            return EXIT_ERROR
        return EXIT_OK if validate_config_file(config_file) else EXIT_ERROR

    orchestrator = None
    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)
        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )

        logger.info(
            "Recipe aggregator starting",
            extra={
                "event": "service.starting",
                "command": args.command,
                "log_level": env_config.log_level,
                "sources": [tag.value for tag in app_config.enabled_sources()],
            },
        )

        if app_config.user_store.enabled:
            init_database(env_config.database_url)

        # One governor state per process, shared by every call below
        state = GovernorState()
        orchestrator = build_orchestrator(app_config, state, build_capability(app_config, env_config))

        if args.command == "suggest":
            result = orchestrator.suggest(args.partial_query)
            print(json.dumps({"suggestion": result.suggestion}, ensure_ascii=False))
            return EXIT_OK

        search_result = orchestrator.search(
            args.query,
            mode=SearchMode(args.mode) if args.mode else None,
            context=resolve_context(args),
        )
        print(json.dumps(search_result.to_dict(), indent=2, ensure_ascii=False))
        return EXIT_OK

    except InvalidQuery as e:
        print(f"Invalid query: {e}", file=sys.stderr)
        return EXIT_INVALID_QUERY
    except AggregateUnavailable as e:
        print(f"All sources unavailable: {e}", file=sys.stderr)
        for source, message in sorted(e.failures.items()):
            print(f"  - {source}: {message}", file=sys.stderr)
        return EXIT_ERROR
    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return EXIT_ERROR
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error",
            extra={
                "event": "service.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return EXIT_ERROR
    finally:
        if orchestrator is not None and orchestrator.ai_governor is not None:
            orchestrator.ai_governor.shutdown()
        close_database()
        logger.debug(
            "Recipe aggregator stopped",
            extra={
                "event": "service.stopping",
                "uptime_seconds": round(time.time() - start_time, 2),
            },
        )


if __name__ == "__main__":
    sys.exit(main())
