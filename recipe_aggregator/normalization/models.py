"""Data models for the normalization layer.

AIRecipePayload is the explicit schema that generated recipes must satisfy
before they become canonical Recipe records. AIValidationResult is the tagged
outcome of validating one generated batch.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from recipe_aggregator.domain.models import Recipe
from recipe_aggregator.utils.text import collapse_whitespace


class AIRecipePayload(BaseModel):
    """Schema of one generated recipe."""

    name: str = Field(..., min_length=1, description="Recipe name")
    ingredients: List[str] = Field(
        ..., min_length=1, description="Ingredient lines with quantities"
    )
    instructions: str = Field(..., min_length=1, description="Preparation steps")
    image_url: Optional[str] = Field(None, description="Optional image URL")

    @field_validator("name", "instructions")
    @classmethod
    def strip_required(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError("Field cannot be empty or whitespace-only")
        return cleaned

    @field_validator("ingredients")
    @classmethod
    def require_ingredients(cls, v: List[str]) -> List[str]:
        """Drop blank lines and require at least one ingredient to remain."""
        cleaned = [item for item in (collapse_whitespace(i) for i in v) if item]
        if not cleaned:
            raise ValueError("At least one non-blank ingredient is required")
        return cleaned


@dataclass
class AIRejection:
    """A generated record that failed validation.

    Attributes:
        index: Position of the record in the generated batch
        reason: Human-readable validation failure
    """

    index: int
    reason: str


@dataclass
class AIValidationResult:
    """Outcome of validating a generated batch.

    Attributes:
        accepted: Records that passed validation, in batch order
        rejections: Records dropped with the reason they were dropped
    """

    accepted: List[Recipe] = field(default_factory=list)
    rejections: List[AIRejection] = field(default_factory=list)

    @property
    def rejected_count(self) -> int:
        return len(self.rejections)
