"""Factory functions for instantiating source connectors."""

import logging
from typing import Dict, Optional

import requests

from recipe_aggregator.config.models import AppConfig
from recipe_aggregator.domain.models import SourceTag
from recipe_aggregator.generation.capability import GenerativeCapability

from .ai import AIRecipeConnector
from .base import BaseConnector
from .exceptions import ConnectorConfigurationError
from .external_api import ExternalApiConnector, MealDBClient
from .user_store import DatabaseUserStore, UserRecipeStore, UserStoreConnector

logger = logging.getLogger(__name__)


def get_connectors(
    app_config: AppConfig,
    store: Optional[UserRecipeStore] = None,
    session: Optional[requests.Session] = None,
) -> Dict[SourceTag, BaseConnector]:
    """Build the enabled fetch connectors (user store and external API).

    The AI connector is built separately with build_ai_connector() because it
    is only ever called through the governor.

    Args:
        app_config: Application configuration
        store: User recipe store (defaults to DatabaseUserStore)
        session: Optional requests session for the external API client

    Returns:
        Mapping of source tag to connector, disabled sources omitted

    Raises:
        ConnectorConfigurationError: If a connector cannot be created
    """
    connectors: Dict[SourceTag, BaseConnector] = {}

    if app_config.user_store.enabled:
        connectors[SourceTag.USER_STORE] = UserStoreConnector(
            store=store or DatabaseUserStore(),
            max_results=app_config.user_store.max_results,
        )

    if app_config.external_api.enabled:
        api_config = app_config.external_api
        try:
            client = MealDBClient(
                base_url=api_config.base_url,
                timeout=api_config.http_request_timeout,
                user_agent=api_config.user_agent,
                session=session,
            )
        except ConnectorConfigurationError:
            raise
        except Exception as e:
            raise ConnectorConfigurationError(f"Failed to create external API client: {e}") from e
        connectors[SourceTag.EXTERNAL_API] = ExternalApiConnector(
            client=client,
            max_results=api_config.max_results,
            detail_lookups=api_config.detail_lookups,
        )

    logger.debug(
        "Created connectors",
        extra={
            "event": "connector.factory.created",
            "sources": [tag.value for tag in connectors],
        },
    )
    return connectors


def build_ai_connector(
    app_config: AppConfig, capability: Optional[GenerativeCapability]
) -> Optional[AIRecipeConnector]:
    """Build the AI connector, or None when AI is disabled.

    Raises:
        ConnectorConfigurationError: If AI is enabled but no capability is given
    """
    if not app_config.ai.enabled:
        return None
    if capability is None:
        raise ConnectorConfigurationError("AI source is enabled but no generative capability was provided")
    return AIRecipeConnector(capability=capability, max_recipes=app_config.ai.max_recipes)
