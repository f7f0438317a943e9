"""Recipe normalization service for converting raw source records to Recipes.

Each source has its own record shape:
1. User store rows carry the canonical field names already
2. External API (TheMealDB) records spread ingredients over indexed fields
3. Generated records are validated against AIRecipePayload first

A record that cannot be normalized is skipped and logged; it never fails the
batch it arrived in.
"""

import logging
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from recipe_aggregator.domain.models import RawRecord, Recipe, SourceTag
from recipe_aggregator.logging import get_logger
from recipe_aggregator.utils.text import collapse_whitespace, slugify, split_list

from .models import AIRecipePayload, AIRejection, AIValidationResult

logger = get_logger(__name__, component="normalization")

DEFAULT_MAX_INGREDIENT_INDEX = 20


def _text(value: Any) -> str:
    """Coerce a loosely-typed field to cleaned text."""
    if value is None:
        return ""
    return collapse_whitespace(str(value))


def _first_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "record"
    return f"{location}: {first.get('msg', 'invalid value')}"


class RecipeNormalizer:
    """Normalizes raw connector records into canonical Recipe models.

    Stateless apart from its configuration, so one instance is shared by the
    orchestrator and the AI governor.
    """

    def __init__(
        self,
        max_ingredient_index: int = DEFAULT_MAX_INGREDIENT_INDEX,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize RecipeNormalizer.

        Args:
            max_ingredient_index: Highest strIngredientN field scanned for external records
            logger_instance: Logger instance (defaults to module logger)
        """
        self.max_ingredient_index = max_ingredient_index
        self.logger = logger_instance or logger

    def normalize(self, raw: RawRecord, source: SourceTag) -> Optional[Recipe]:
        """Normalize one raw record.

        Args:
            raw: Record as returned by the connector for ``source``
            source: Source tag the record came from

        Returns:
            Recipe, or None when the record is unusable (logged)
        """
        if not isinstance(raw, dict):
            self._reject(source, f"expected a mapping, got {type(raw).__name__}")
            return None

        try:
            if source == SourceTag.USER_STORE:
                return self._from_user_store(raw)
            if source == SourceTag.EXTERNAL_API:
                return self._from_external_api(raw)
            if source == SourceTag.AI:
                return self._from_ai(AIRecipePayload.model_validate(raw))
        except ValidationError as e:
            self._reject(source, _first_error(e))
            return None
        except (TypeError, ValueError) as e:
            self._reject(source, str(e))
            return None

        self._reject(source, f"no normalization rule for source {source}")
        return None

    def normalize_batch(self, raw_records: Iterable[RawRecord], source: SourceTag) -> List[Recipe]:
        """Normalize records independently, dropping the unusable ones."""
        recipes = []
        for raw in raw_records or []:
            recipe = self.normalize(raw, source)
            if recipe is not None:
                recipes.append(recipe)
        return recipes

    def validate_ai_output(self, payload: Any) -> AIValidationResult:
        """Validate a generated batch against the recipe schema.

        None, a non-list or an empty list yield an empty result. Invalid
        records are rejected one by one with their index and reason; the rest
        of the batch is accepted.
        """
        result = AIValidationResult()

        if not isinstance(payload, list):
            if payload is not None:
                self.logger.warning(
                    "Generated output is not a list; treating as empty",
                    extra={
                        "event": "normalization.ai.invalid_batch",
                        "payload_type": type(payload).__name__,
                    },
                )
            return result

        for index, item in enumerate(payload):
            if not isinstance(item, dict):
                result.rejections.append(
                    AIRejection(index=index, reason=f"expected an object, got {type(item).__name__}")
                )
                continue
            try:
                result.accepted.append(self._from_ai(AIRecipePayload.model_validate(item)))
            except ValidationError as e:
                result.rejections.append(AIRejection(index=index, reason=_first_error(e)))

        for rejection in result.rejections:
            self.logger.warning(
                "Dropped invalid generated recipe",
                extra={
                    "event": "normalization.ai.record_rejected",
                    "index": rejection.index,
                    "reason": rejection.reason,
                },
            )

        return result

    def _from_user_store(self, raw: RawRecord) -> Optional[Recipe]:
        name = _text(raw.get("name"))
        if not name:
            self._reject(SourceTag.USER_STORE, "missing name", record_id=raw.get("id"))
            return None

        ingredients = raw.get("ingredients") or []
        if isinstance(ingredients, str):
            ingredients = split_list(ingredients)

        return Recipe(
            id=_text(raw.get("id")) or f"user-{slugify(name)}",
            name=name,
            ingredients=[_text(item) for item in ingredients],
            instructions=_text(raw.get("instructions")),
            image_url=raw.get("image_url"),
            source=SourceTag.USER_STORE,
            owner_id=_text(raw.get("owner_id")) or None,
        )

    def _from_external_api(self, raw: RawRecord) -> Optional[Recipe]:
        name = _text(raw.get("strMeal"))
        if not name:
            self._reject(SourceTag.EXTERNAL_API, "missing strMeal", record_id=raw.get("idMeal"))
            return None

        meal_id = _text(raw.get("idMeal")) or slugify(name)
        return Recipe(
            id=f"mealdb-{meal_id}",
            name=name,
            ingredients=self._indexed_ingredients(raw),
            instructions=_text(raw.get("strInstructions")),
            image_url=raw.get("strMealThumb"),
            source=SourceTag.EXTERNAL_API,
        )

    def _indexed_ingredients(self, raw: RawRecord) -> List[str]:
        """Pair strIngredientK with strMeasureK for K = 1..max_ingredient_index.

        The scan stops at the first empty slot, absent or blank. A measure
        without an ingredient never yields an entry.
        """
        ingredients = []
        for index in range(1, self.max_ingredient_index + 1):
            ingredient = _text(raw.get(f"strIngredient{index}"))
            if not ingredient:
                break

            measure = _text(raw.get(f"strMeasure{index}"))
            ingredients.append(f"{measure} {ingredient}".strip())
        return ingredients

    def _from_ai(self, payload: AIRecipePayload) -> Recipe:
        return Recipe(
            id=f"ai-{slugify(payload.name)}",
            name=payload.name,
            ingredients=payload.ingredients,
            instructions=payload.instructions,
            image_url=payload.image_url,
            source=SourceTag.AI,
        )

    def _reject(self, source: SourceTag, reason: str, record_id: Any = None) -> None:
        self.logger.warning(
            f"Skipping unusable {source.value} record: {reason}",
            extra={
                "event": "normalization.record.rejected",
                "source": source,
                "record_id": record_id,
                "reason": reason,
            },
        )
