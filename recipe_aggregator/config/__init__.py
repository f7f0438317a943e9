"""Configuration management for the recipe aggregator."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import find_config_file, load_config, parse_app_config, validate_config_file
from .models import (
    AIConfig,
    AppConfig,
    ExternalApiConfig,
    GovernorConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    SuggestionConfig,
    UserStoreConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "find_config_file",
    "parse_app_config",
    "validate_config_file",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "GovernorConfig",
    "SuggestionConfig",
    "ExternalApiConfig",
    "UserStoreConfig",
    "AIConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    # Enums
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
