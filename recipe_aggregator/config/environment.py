"""Environment variable loading and validation."""

import os
from typing import Optional

from .exceptions import ConfigurationError

DEFAULT_DATABASE_URL = "sqlite:///./data/recipes.db"
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class EnvironmentConfig:
    """Environment variable configuration holder."""

    def __init__(
        self,
        gemini_api_key: Optional[str] = None,
        database_url: Optional[str] = None,
        log_level: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        self.gemini_api_key = gemini_api_key
        self.database_url = database_url or DEFAULT_DATABASE_URL
        self.log_level = log_level
        self.environment = environment or "local"


def load_environment_config(require_api_key: bool = False) -> EnvironmentConfig:
    """Load and validate environment variables.

    Environment variables:
    - GEMINI_API_KEY: API key for the generative capability (GOOGLE_API_KEY is
      accepted as a fallback); required when the AI source is enabled
    - DATABASE_URL: user store database URL (default: sqlite:///./data/recipes.db)
    - LOG_LEVEL: override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - ENVIRONMENT: environment label attached to every log record

    Args:
        require_api_key: Whether a missing API key is an error

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: If required variables are missing or invalid
    """
    errors = []

    gemini_api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
    database_url = os.getenv("DATABASE_URL")
    log_level = os.getenv("LOG_LEVEL")
    environment = os.getenv("ENVIRONMENT")

    if require_api_key and not (gemini_api_key and gemini_api_key.strip()):
        errors.append("Missing required environment variable: GEMINI_API_KEY")

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if database_url is not None and not database_url.strip():
        errors.append("DATABASE_URL is set but empty")

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Set ai.enabled: false in config.yaml to run without a Gemini API key",
            ],
        )

    return EnvironmentConfig(
        gemini_api_key=gemini_api_key.strip() if gemini_api_key else None,
        database_url=database_url.strip() if database_url else None,
        log_level=log_level.upper() if log_level else None,
        environment=environment,
    )
