"""Normalization of raw source records into canonical recipes."""

from .models import AIRecipePayload, AIRejection, AIValidationResult
from .service import DEFAULT_MAX_INGREDIENT_INDEX, RecipeNormalizer

__all__ = [
    "AIRecipePayload",
    "AIRejection",
    "AIValidationResult",
    "RecipeNormalizer",
    "DEFAULT_MAX_INGREDIENT_INDEX",
]
