"""Base classes shared by all source connectors.

BaseConnector defines the fetch() contract the orchestrator relies on.
BaseHTTPClient provides shared HTTP request handling, error mapping and
request logging for connectors that talk to a web API.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests

from recipe_aggregator.domain.models import RawRecord, SearchMode, SourceTag
from recipe_aggregator.logging import get_logger

from .exceptions import (
    ConnectorConfigurationError,
    ConnectorHTTPError,
    ConnectorResponseError,
    ConnectorTimeoutError,
    NotFound,
    RateLimited,
)
from .identity import IdentityContext

logger = get_logger(__name__, component="connector")


class BaseConnector(ABC):
    """Base class for all source connectors.

    Attributes:
        source: Provenance tag of the records this connector returns
        max_results: Maximum raw records returned per fetch (0 = unlimited)
    """

    source: SourceTag

    def __init__(self, max_results: int = 50) -> None:
        self.max_results = max_results

    @abstractmethod
    def fetch(self, query: str, mode: SearchMode, context: IdentityContext) -> List[RawRecord]:
        """Fetch raw records for a validated query.

        Args:
            query: Trimmed, non-empty query text
            mode: Search mode (by name or by ingredient)
            context: Identity of the caller

        Returns:
            List of raw records, empty when the source has nothing

        Raises:
            SourceUnavailable: When the source cannot be reached
            PermissionDenied: When the context may not read the source (user store only)
        """
        pass

    def _truncate(self, records: List[RawRecord]) -> List[RawRecord]:
        """Truncate records to max_results if configured."""
        if self.max_results > 0 and len(records) > self.max_results:
            logger.warning(
                "Truncating records to max_results limit",
                extra={
                    "event": "connector.fetch.truncated",
                    "source": self.source,
                    "total": len(records),
                    "max": self.max_results,
                },
            )
            return records[: self.max_results]
        return records


class BaseHTTPClient:
    """Shared HTTP plumbing for web API clients.

    Attributes:
        timeout: HTTP request timeout in seconds
        user_agent: User-Agent header for HTTP requests
    """

    def __init__(
        self,
        timeout: int = 10,
        user_agent: str = "RecipeAggregator/0.1",
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize client.

        Args:
            timeout: HTTP request timeout in seconds (range 1-120)
            user_agent: User-Agent header for requests
            session: Optional pre-built session (tests inject a mock)

        Raises:
            ConnectorConfigurationError: If timeout is outside valid range or user_agent is empty
        """
        if not 1 <= timeout <= 120:
            raise ConnectorConfigurationError(
                f"Timeout must be between 1 and 120 seconds, got: {timeout}"
            )
        if not user_agent or not user_agent.strip():
            raise ConnectorConfigurationError("user_agent cannot be empty")

        self.timeout = timeout
        self.user_agent = user_agent.strip()

        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": self.user_agent})

    def _make_request(
        self,
        url: str,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Make a GET request and return the parsed JSON body.

        Raises:
            NotFound: On HTTP 404
            RateLimited: On HTTP 429
            ConnectorHTTPError: On other 4xx/5xx statuses or connection failures
            ConnectorTimeoutError: On request timeout
            ConnectorResponseError: On invalid JSON
        """
        try:
            logger.debug(
                f"HTTP GET request to {url}",
                extra={
                    "event": "connector.fetch.request",
                    "url": url,
                    "params": params or {},
                    "timeout": self.timeout,
                },
            )

            response = self._session.get(url, params=params, timeout=self.timeout)

        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Request to {url} timed out after {self.timeout} seconds",
                extra={
                    "event": "connector.fetch.retryable_error",
                    "error_type": "Timeout",
                    "url": url,
                    "timeout": self.timeout,
                },
            )
            raise ConnectorTimeoutError(
                f"Request to {url} timed out after {self.timeout} seconds",
                url=url,
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Request to {url} failed: {e}",
                extra={
                    "event": "connector.fetch.error",
                    "error_type": type(e).__name__,
                    "url": url,
                },
            )
            raise ConnectorHTTPError(
                f"Request to {url} failed: {e}",
                status_code=0,
                url=url,
            ) from e

        if response.status_code >= 400:
            self._raise_for_status(response, url)

        try:
            data = response.json()
        except ValueError as e:
            logger.error(
                f"Failed to parse JSON response from {url}",
                extra={
                    "event": "connector.fetch.error",
                    "error_type": "JSONDecodeError",
                    "url": url,
                },
            )
            raise ConnectorResponseError(
                f"Failed to parse JSON response from {url}: {e}"
            ) from e

        logger.debug(
            "HTTP request succeeded",
            extra={
                "event": "connector.fetch.succeeded",
                "status_code": response.status_code,
                "url": url,
            },
        )
        return data

    def _raise_for_status(self, response: requests.Response, url: str) -> None:
        status = response.status_code
        is_retryable = status == 429 or status >= 500
        logger.log(
            logging.WARNING if is_retryable else logging.ERROR,
            f"HTTP {status} error from {url}",
            extra={
                "event": "connector.fetch.retryable_error" if is_retryable else "connector.fetch.error",
                "status_code": status,
                "url": url,
            },
        )

        if status == 404:
            raise NotFound(f"HTTP 404: nothing found at {url}", url=url)
        if status == 429:
            raise RateLimited(
                f"HTTP 429: rate limited by {url}",
                url=url,
                retry_after=response.headers.get("Retry-After"),
            )
        raise ConnectorHTTPError(
            f"HTTP {status}: {response.reason}",
            status_code=status,
            url=url,
        )
