"""Tests for domain models (Recipe and SearchQuery)."""

import pytest
from pydantic import ValidationError

from recipe_aggregator.domain.exceptions import AggregateUnavailable, InvalidQuery, SearchError
from recipe_aggregator.domain.models import Recipe, SearchMode, SearchQuery, SourceTag


class TestRecipe:
    """Tests for the canonical Recipe model."""

    def test_canonical_key_is_derived_from_name(self):
        recipe = Recipe(id="r1", name="  Tomato   SOUP ", source=SourceTag.USER_STORE)

        assert recipe.name == "Tomato SOUP"
        assert recipe.canonical_key == "tomato soup"

    def test_canonical_key_ignores_supplied_value(self):
        recipe = Recipe(id="r1", name="Pad Thai", canonical_key="something else", source=SourceTag.AI)

        assert recipe.canonical_key == "pad thai"

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            Recipe(id="r1", name="   ", source=SourceTag.USER_STORE)

    def test_ingredients_trimmed_and_blank_dropped(self):
        recipe = Recipe(
            id="r1",
            name="Salad",
            ingredients=[" lettuce ", "", "  ", "olive  oil"],
            source=SourceTag.USER_STORE,
        )

        assert recipe.ingredients == ["lettuce", "olive oil"]

    def test_blank_optional_fields_become_none(self):
        recipe = Recipe(id="r1", name="Salad", image_url="  ", owner_id="", source=SourceTag.USER_STORE)

        assert recipe.image_url is None
        assert recipe.owner_id is None

    def test_source_accepts_string_value(self):
        recipe = Recipe(id="r1", name="Salad", source="external_api")

        assert recipe.source == SourceTag.EXTERNAL_API


class TestSearchQuery:
    """Tests for SearchQuery.parse()."""

    @pytest.mark.parametrize("raw", ["", "   ", "\t\n", None])
    def test_empty_query_is_invalid(self, raw):
        with pytest.raises(InvalidQuery):
            SearchQuery.parse(raw)

    def test_text_is_trimmed_and_collapsed(self):
        query = SearchQuery.parse("  tomato    soup ")

        assert query.text == "tomato soup"

    def test_mode_defaults_to_by_name(self):
        assert SearchQuery.parse("tomato soup").mode == SearchMode.BY_NAME

    def test_separator_implies_ingredient_mode(self):
        assert SearchQuery.parse("chicken, rice").mode == SearchMode.BY_INGREDIENT

    def test_explicit_mode_wins(self):
        query = SearchQuery.parse("chicken", mode=SearchMode.BY_INGREDIENT)

        assert query.mode == SearchMode.BY_INGREDIENT

    def test_normalized_is_lower_case(self):
        assert SearchQuery.parse("Tomato Soup").normalized == "tomato soup"

    def test_leading_token(self):
        assert SearchQuery.parse(" , Chicken , rice").leading_token == "Chicken"


class TestSearchErrors:
    def test_errors_share_base(self):
        assert issubclass(InvalidQuery, SearchError)
        assert issubclass(AggregateUnavailable, SearchError)

    def test_aggregate_unavailable_keeps_failures(self):
        error = AggregateUnavailable("all down", failures={"ai": "failed: timeout"})

        assert error.failures == {"ai": "failed: timeout"}
        assert str(error) == "all down"
