"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from recipe_aggregator.domain.models import SourceTag

from .duration import DurationParseError, parse_duration, validate_duration_range

DEFAULT_SOURCE_PRIORITY = [SourceTag.USER_STORE, SourceTag.EXTERNAL_API, SourceTag.AI]


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


def _checked_duration(value: str, min_seconds: int, max_seconds: int, label: str) -> str:
    """Validate a duration string inside a field validator."""
    try:
        seconds = parse_duration(value)
        validate_duration_range(seconds, min_seconds=min_seconds, max_seconds=max_seconds, label=label)
        return value
    except DurationParseError as e:
        raise ValueError(str(e)) from e


class GovernorConfig(BaseModel):
    """AI invocation governor policy."""

    ai_timeout: str = Field("10s", description="Timeout for the first AI attempt")
    extended_timeout: str = Field("30s", description="Timeout for the single extended retry")
    cooldown: str = Field("1m", description="Cooldown after a quota-exceeded signal")
    cache_ttl: str = Field("5m", description="Time-to-live of cached AI results")
    max_concurrent_calls: int = Field(
        4, ge=1, le=32, description="Worker threads for AI calls, including abandoned ones still running"
    )

    # Computed fields
    ai_timeout_seconds: Optional[int] = None
    extended_timeout_seconds: Optional[int] = None
    cooldown_seconds: Optional[int] = None
    cache_ttl_seconds: Optional[int] = None

    @field_validator("ai_timeout", "extended_timeout")
    @classmethod
    def validate_timeouts(cls, v: str) -> str:
        return _checked_duration(v, min_seconds=1, max_seconds=300, label="AI timeout")

    @field_validator("cooldown")
    @classmethod
    def validate_cooldown(cls, v: str) -> str:
        return _checked_duration(v, min_seconds=1, max_seconds=86400, label="Cooldown")

    @field_validator("cache_ttl")
    @classmethod
    def validate_cache_ttl(cls, v: str) -> str:
        return _checked_duration(v, min_seconds=1, max_seconds=86400, label="Cache TTL")

    @model_validator(mode="after")
    def compute_seconds(self):
        """Compute durations in seconds and check the retry is actually longer."""
        self.ai_timeout_seconds = parse_duration(self.ai_timeout)
        self.extended_timeout_seconds = parse_duration(self.extended_timeout)
        self.cooldown_seconds = parse_duration(self.cooldown)
        self.cache_ttl_seconds = parse_duration(self.cache_ttl)

        if self.extended_timeout_seconds < self.ai_timeout_seconds:
            raise ValueError(
                "extended_timeout must be at least as long as ai_timeout "
                f"({self.extended_timeout} < {self.ai_timeout})"
            )
        return self


class SuggestionConfig(BaseModel):
    """Autocomplete governor policy."""

    enabled: bool = Field(True, description="Whether suggestions call the AI capability")
    cooldown: str = Field("1m", description="Cooling duration after a quota-exceeded signal")
    min_query_length: int = Field(
        3, ge=3, le=20, description="Shorter queries never invoke the capability (at least 3)"
    )

    cooldown_seconds: Optional[int] = None

    @field_validator("cooldown")
    @classmethod
    def validate_cooldown(cls, v: str) -> str:
        return _checked_duration(v, min_seconds=1, max_seconds=86400, label="Suggestion cooldown")

    @model_validator(mode="after")
    def compute_seconds(self):
        self.cooldown_seconds = parse_duration(self.cooldown)
        return self


class ExternalApiConfig(BaseModel):
    """Public recipe API connector settings."""

    enabled: bool = Field(True, description="Whether to query the external API")
    base_url: str = Field(
        "https://www.themealdb.com/api/json/v1/1",
        min_length=1,
        description="Base URL of the recipe API",
    )
    http_request_timeout: int = Field(
        10, ge=1, le=120, description="Request timeout for recipe API calls (seconds)"
    )
    user_agent: str = Field(
        "RecipeAggregator/0.1",
        min_length=1,
        description="User-Agent string for HTTP requests",
    )
    max_ingredient_index: int = Field(
        20, ge=1, le=50, description="Highest indexed ingredient field scanned per record"
    )
    max_results: int = Field(50, ge=0, description="Maximum records kept per query (0 = unlimited)")
    detail_lookups: int = Field(
        10, ge=0, le=50, description="Ingredient-mode records completed via lookup.php (0 = none)"
    )

    @field_validator("base_url", "user_agent")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"base_url must start with http:// or https://, got: {v}")
        return v.rstrip("/")


class UserStoreConfig(BaseModel):
    """User-submitted recipe store settings."""

    enabled: bool = Field(True, description="Whether to query the user store")
    max_results: int = Field(50, ge=0, description="Maximum records kept per query (0 = unlimited)")


class AIConfig(BaseModel):
    """Generative capability settings."""

    enabled: bool = Field(True, description="Whether to ask the AI model for recipes")
    model_name: str = Field("gemini-2.5-flash", min_length=1, description="Gemini model name")
    max_recipes: int = Field(3, ge=1, le=10, description="Recipes requested per query")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for the recipe aggregator."""

    governor: GovernorConfig = Field(default_factory=GovernorConfig)
    suggestions: SuggestionConfig = Field(default_factory=SuggestionConfig)
    external_api: ExternalApiConfig = Field(default_factory=ExternalApiConfig)
    user_store: UserStoreConfig = Field(default_factory=UserStoreConfig)
    ai: AIConfig = Field(default_factory=AIConfig)
    source_priority: List[SourceTag] = Field(
        default_factory=lambda: list(DEFAULT_SOURCE_PRIORITY),
        description="Concatenation order before dedup; earlier sources win ties",
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("source_priority")
    @classmethod
    def validate_source_priority(cls, v: List[SourceTag]) -> List[SourceTag]:
        """Require a permutation of the three origin sources."""
        if SourceTag.COMBINED in v:
            raise ValueError("source_priority cannot contain 'combined'")
        if len(v) != len(DEFAULT_SOURCE_PRIORITY) or set(v) != set(DEFAULT_SOURCE_PRIORITY):
            expected = ", ".join(tag.value for tag in DEFAULT_SOURCE_PRIORITY)
            raise ValueError(f"source_priority must list each of: {expected} exactly once")
        return v

    @model_validator(mode="after")
    def validate_any_source_enabled(self):
        if not (self.user_store.enabled or self.external_api.enabled or self.ai.enabled):
            raise ValueError(
                "At least one source must be enabled (user_store, external_api or ai)."
            )
        return self

    def enabled_sources(self) -> List[SourceTag]:
        """Enabled origin sources in priority order."""
        enabled = {
            SourceTag.USER_STORE: self.user_store.enabled,
            SourceTag.EXTERNAL_API: self.external_api.enabled,
            SourceTag.AI: self.ai.enabled,
        }
        return [tag for tag in self.source_priority if enabled[tag]]
