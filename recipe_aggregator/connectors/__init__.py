"""Source connectors: user store, external recipe API and the AI capability."""

from .ai import AIRecipeConnector
from .base import BaseConnector, BaseHTTPClient
from .exceptions import (
    ConnectorConfigurationError,
    ConnectorError,
    ConnectorHTTPError,
    ConnectorResponseError,
    ConnectorTimeoutError,
    NotFound,
    PermissionDenied,
    RateLimited,
    SourceUnavailable,
)
from .external_api import ExternalApiConnector, MealDBClient
from .factory import build_ai_connector, get_connectors
from .identity import ClientContext, IdentityContext, ServerContext
from .user_store import DatabaseUserStore, UserRecipeStore, UserStoreConnector

__all__ = [
    "BaseConnector",
    "BaseHTTPClient",
    "AIRecipeConnector",
    "ExternalApiConnector",
    "MealDBClient",
    "UserStoreConnector",
    "UserRecipeStore",
    "DatabaseUserStore",
    "IdentityContext",
    "ServerContext",
    "ClientContext",
    "get_connectors",
    "build_ai_connector",
    "ConnectorError",
    "SourceUnavailable",
    "ConnectorHTTPError",
    "ConnectorTimeoutError",
    "ConnectorResponseError",
    "RateLimited",
    "NotFound",
    "PermissionDenied",
    "ConnectorConfigurationError",
]
