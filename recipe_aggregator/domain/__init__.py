"""Domain models and errors for recipe search aggregation."""

from .exceptions import AggregateUnavailable, InvalidQuery, SearchError
from .models import RawRecord, Recipe, SearchMode, SearchQuery, SourceTag

__all__ = [
    "Recipe",
    "RawRecord",
    "SearchMode",
    "SearchQuery",
    "SourceTag",
    "SearchError",
    "InvalidQuery",
    "AggregateUnavailable",
]
