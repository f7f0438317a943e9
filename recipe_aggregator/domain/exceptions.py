"""Errors surfaced to callers of the search operation.

Only these two failures are user-visible: everything else (connector outages,
AI quota, malformed records) degrades into a smaller result set.
"""

from typing import Dict, Optional


class SearchError(Exception):
    """Base exception for errors returned by search()."""

    pass


class InvalidQuery(SearchError):
    """The query was empty or whitespace-only after trimming.

    Raised before any connector or capability is invoked.
    """

    def __init__(self, message: str = "Search query cannot be empty or whitespace-only") -> None:
        super().__init__(message)


class AggregateUnavailable(SearchError):
    """Every source failed for the same search call.

    Attributes:
        failures: Mapping of source tag value to the error message it produced
    """

    def __init__(self, message: str, failures: Optional[Dict[str, str]] = None) -> None:
        super().__init__(message)
        self.failures = failures or {}
