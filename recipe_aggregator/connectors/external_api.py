"""Public recipe API connector (TheMealDB).

API Details:
    Name search:        GET {base_url}/search.php?s={name}
    Ingredient search:  GET {base_url}/filter.php?i={ingredient}
    Detail lookup:      GET {base_url}/lookup.php?i={idMeal}
    Authentication:     None (public test key embedded in the base URL)
    Response:           JSON object with a 'meals' array, or 'meals': null
"""

from typing import Any, List, Optional

import requests

from recipe_aggregator.domain.models import RawRecord, SearchMode, SourceTag
from recipe_aggregator.logging import get_logger
from recipe_aggregator.utils.text import leading_token

from .base import BaseConnector, BaseHTTPClient
from .exceptions import ConnectorError, ConnectorResponseError, NotFound
from .identity import IdentityContext

logger = get_logger(__name__, component="connector")

DEFAULT_BASE_URL = "https://www.themealdb.com/api/json/v1/1"


class MealDBClient(BaseHTTPClient):
    """HTTP client for the two TheMealDB query shapes."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: int = 10,
        user_agent: str = "RecipeAggregator/0.1",
        session: Optional[requests.Session] = None,
    ) -> None:
        super().__init__(timeout=timeout, user_agent=user_agent, session=session)
        self.base_url = base_url.rstrip("/")

    def search_by_name(self, name: str) -> List[RawRecord]:
        """Full-name search; returns full meal records.

        Raises:
            NotFound, RateLimited, SourceUnavailable
        """
        return self._meals(f"{self.base_url}/search.php", {"s": name})

    def search_by_ingredient(self, token: str) -> List[RawRecord]:
        """Single-ingredient filter; returns abbreviated meal records.

        Raises:
            NotFound, RateLimited, SourceUnavailable
        """
        return self._meals(f"{self.base_url}/filter.php", {"i": token})

    def lookup_by_id(self, meal_id: str) -> Optional[RawRecord]:
        """Full record for one meal id, or None when the API has no such meal."""
        meals = self._meals(f"{self.base_url}/lookup.php", {"i": meal_id})
        return meals[0] if meals else None

    def _meals(self, url: str, params: dict) -> List[RawRecord]:
        payload = self._make_request(url, params=params)

        if not isinstance(payload, dict):
            raise ConnectorResponseError(
                f"Expected JSON object response, got {type(payload).__name__}"
            )

        meals: Any = payload.get("meals")
        # The API answers {"meals": null} (and occasionally a string) for no match
        if meals is None or isinstance(meals, str):
            return []
        if not isinstance(meals, list):
            raise ConnectorResponseError(
                f"Expected 'meals' field to be array, got {type(meals).__name__}"
            )

        return [meal for meal in meals if isinstance(meal, dict)]


class ExternalApiConnector(BaseConnector):
    """Connector over the public recipe API.

    Name mode sends the whole query; ingredient mode sends only the leading
    ingredient token because the API filters by a single ingredient. The
    filter endpoint answers with abbreviated records (id, name, thumbnail),
    so the first detail_lookups of them are replaced by their full record
    from lookup.php. Records past that limit, or whose lookup fails, stay
    abbreviated and normalize with no ingredients or instructions.
    """

    source = SourceTag.EXTERNAL_API

    def __init__(self, client: MealDBClient, max_results: int = 50, detail_lookups: int = 10) -> None:
        super().__init__(max_results=max_results)
        self.client = client
        self.detail_lookups = detail_lookups

    def fetch(self, query: str, mode: SearchMode, context: IdentityContext) -> List[RawRecord]:
        """Fetch raw meal records for the query.

        A 404 from the API means "nothing for this query" and yields an empty
        list; every other failure propagates as SourceUnavailable.
        """
        by_ingredient = mode == SearchMode.BY_INGREDIENT
        term = leading_token(query) if by_ingredient else query

        logger.info(
            "Fetching recipes from external API",
            extra={
                "event": "connector.fetch.started",
                "source": self.source,
                "query_shape": "ingredient" if by_ingredient else "name",
                "term": term,
            },
        )

        try:
            if by_ingredient:
                records = self.client.search_by_ingredient(term)
            else:
                records = self.client.search_by_name(term)
        except NotFound:
            logger.warning(
                "External API returned not found",
                extra={
                    "event": "connector.fetch.not_found",
                    "source": self.source,
                    "term": term,
                },
            )
            return []

        records = self._truncate(records)
        if by_ingredient and self.detail_lookups:
            records = self._with_details(records)

        logger.info(
            "Fetched recipes from external API",
            extra={
                "event": "connector.fetch.completed",
                "source": self.source,
                "count": len(records),
            },
        )
        return records

    def _with_details(self, records: List[RawRecord]) -> List[RawRecord]:
        """Swap abbreviated filter records for full ones, stopping at the first failed lookup."""
        detailed: List[RawRecord] = []
        for position, record in enumerate(records):
            meal_id = record.get("idMeal")
            if position >= self.detail_lookups or not meal_id:
                detailed.append(record)
                continue

            try:
                full = self.client.lookup_by_id(str(meal_id))
            except ConnectorError as e:
                logger.warning(
                    f"Meal detail lookup failed: {e}",
                    extra={
                        "event": "connector.lookup.failed",
                        "source": self.source,
                        "meal_id": meal_id,
                        "error_type": type(e).__name__,
                    },
                )
                return detailed + records[position:]

            detailed.append(full or record)
        return detailed
