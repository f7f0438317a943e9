"""Generative capability contract, prompts and the Gemini adapter."""

from .capability import GenerativeCapability
from .exceptions import (
    GenerationConfigurationError,
    GenerationError,
    GenerationTimeout,
    GenerationUnavailable,
    InvalidOutput,
    QuotaExceeded,
)
from .gemini import GeminiRecipeGenerator, parse_generated_json, strip_code_fences
from .prompts import build_recipe_prompt, build_suggestion_prompt, recipe_list_schema

__all__ = [
    "GenerativeCapability",
    "GenerationError",
    "QuotaExceeded",
    "GenerationTimeout",
    "InvalidOutput",
    "GenerationUnavailable",
    "GenerationConfigurationError",
    "GeminiRecipeGenerator",
    "strip_code_fences",
    "parse_generated_json",
    "build_recipe_prompt",
    "build_suggestion_prompt",
    "recipe_list_schema",
]
