"""Prompt templates for recipe generation and query completion."""

import json
from typing import Any, Dict

from recipe_aggregator.domain.models import SearchMode
from recipe_aggregator.normalization.models import AIRecipePayload

RECIPE_SYSTEM_INSTRUCTION = (
    "You are a recipe assistant. Answer only with JSON that matches the schema "
    "you are given. Do not add commentary or markdown."
)

SUGGESTION_SYSTEM_INSTRUCTION = (
    "You complete partially typed recipe searches. Answer with a single line "
    "containing the full search text and nothing else."
)

_NAME_TEMPLATE = (
    "Suggest up to {max_recipes} recipes whose name matches \"{query}\".\n"
    "Return a JSON array where every item follows this schema:\n{schema}"
)

_INGREDIENT_TEMPLATE = (
    "Suggest up to {max_recipes} recipes that can be cooked with: {query}.\n"
    "Return a JSON array where every item follows this schema:\n{schema}"
)

_SUGGESTION_TEMPLATE = "Complete this recipe search: {partial_query}"


def recipe_list_schema() -> Dict[str, Any]:
    """JSON schema of a generated recipe list."""
    return {"type": "array", "items": AIRecipePayload.model_json_schema()}


def build_recipe_prompt(query: str, mode: SearchMode, schema: Dict[str, Any], max_recipes: int) -> str:
    """Render the recipe prompt for a query and search mode."""
    template = _INGREDIENT_TEMPLATE if mode == SearchMode.BY_INGREDIENT else _NAME_TEMPLATE
    item_schema = schema.get("items", schema)
    return template.format(
        max_recipes=max_recipes,
        query=query,
        schema=json.dumps(item_schema, indent=2, ensure_ascii=False),
    )


def build_suggestion_prompt(partial_query: str) -> str:
    return _SUGGESTION_TEMPLATE.format(partial_query=partial_query)
