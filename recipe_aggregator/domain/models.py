"""Core domain models for recipes and search queries.

This module defines the data structures used throughout the application:
- RawRecord: loosely-typed payload as received from a connector
- Recipe: canonical, normalized recipe shared by every source
- SearchQuery: validated query text plus search mode
- SourceTag / SearchMode: provenance and query shape enums
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from recipe_aggregator.utils.text import (
    LIST_SEPARATOR,
    canonical_key,
    collapse_whitespace,
    leading_token,
)

from .exceptions import InvalidQuery

# Raw payload as returned by a connector; never leaves the normalizer boundary
RawRecord = Dict[str, Any]


class SourceTag(str, Enum):
    """Provenance of a recipe."""

    USER_STORE = "user_store"
    EXTERNAL_API = "external_api"
    AI = "ai"
    COMBINED = "combined"


class SearchMode(str, Enum):
    """Shape of a search query."""

    BY_NAME = "by_name"
    BY_INGREDIENT = "by_ingredient"


class Recipe(BaseModel):
    """Canonical recipe record.

    The canonical_key is always derived from the name (lower-cased,
    whitespace-collapsed) and is the grouping key for deduplication. Any value
    passed in for it is overwritten.
    """

    id: str = Field(..., description="Source-scoped recipe identifier")
    name: str = Field(..., description="Display name")
    canonical_key: str = Field("", description="Derived dedup grouping key")
    ingredients: List[str] = Field(default_factory=list, description="Ordered ingredient lines")
    instructions: str = Field("", description="Preparation instructions")
    image_url: Optional[str] = Field(None, description="Image URL, if any")
    source: SourceTag = Field(..., description="Provenance tag")
    owner_id: Optional[str] = Field(None, description="Submitting user for user-store recipes")

    @field_validator("id", "name")
    @classmethod
    def strip_required(cls, v: str) -> str:
        """Collapse whitespace on required string fields."""
        cleaned = collapse_whitespace(v)
        if not cleaned:
            raise ValueError("Field cannot be empty or whitespace-only")
        return cleaned

    @field_validator("ingredients")
    @classmethod
    def clean_ingredients(cls, v: List[str]) -> List[str]:
        """Trim ingredient lines and drop blank ones, preserving order."""
        return [item for item in (collapse_whitespace(i) for i in v) if item]

    @field_validator("instructions")
    @classmethod
    def strip_instructions(cls, v: Optional[str]) -> str:
        return (v or "").strip()

    @field_validator("image_url", "owner_id")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        stripped = v.strip()
        return stripped if stripped else None

    @model_validator(mode="after")
    def derive_canonical_key(self):
        self.canonical_key = canonical_key(self.name)
        return self

    model_config = {"json_schema_extra": {"example": {
        "id": "mealdb-52777",
        "name": "Tomato Soup",
        "canonical_key": "tomato soup",
        "ingredients": ["1kg tomato", "2 tbs basil", "1 tsp salt"],
        "instructions": "Roast the tomatoes, then blend with basil.",
        "image_url": "https://www.themealdb.com/images/media/meals/tomato.jpg",
        "source": "external_api",
        "owner_id": None,
    }}}


class SearchQuery(BaseModel):
    """Validated search query.

    Construct through SearchQuery.parse(), which raises InvalidQuery for
    empty input and infers the mode from the presence of a list separator
    when none is given.
    """

    text: str
    mode: SearchMode

    @classmethod
    def parse(cls, raw_query: Optional[str], mode: Optional[SearchMode] = None) -> "SearchQuery":
        """Validate raw query text and resolve the search mode.

        Args:
            raw_query: Query as typed by the caller
            mode: Explicit mode; inferred from the query shape when None

        Returns:
            SearchQuery with trimmed, whitespace-collapsed text

        Raises:
            InvalidQuery: If the query is None, empty or whitespace-only
        """
        text = collapse_whitespace(raw_query if isinstance(raw_query, str) else None)
        if not text:
            raise InvalidQuery()

        if mode is None:
            mode = SearchMode.BY_INGREDIENT if LIST_SEPARATOR in text else SearchMode.BY_NAME

        return cls(text=text, mode=SearchMode(mode))

    @property
    def normalized(self) -> str:
        """Lower-cased query text, the cache-key form."""
        return canonical_key(self.text)

    @property
    def leading_token(self) -> str:
        """First non-empty separator-delimited token (the leading ingredient)."""
        return leading_token(self.text)
