"""Custom exceptions for source connectors."""

from typing import Optional


class ConnectorError(Exception):
    """Base exception for all connector errors.

    The orchestrator catches this at the source boundary: a connector error
    contributes zero records for that source and never aborts sibling
    fetches.
    """

    pass


class SourceUnavailable(ConnectorError):
    """The source could not be reached or did not answer usefully."""

    pass


class ConnectorHTTPError(SourceUnavailable):
    """HTTP request failed (4xx/5xx status or connection failure)."""

    def __init__(self, message: str, status_code: int, url: str) -> None:
        """Initialize HTTP error with status code and URL.

        Args:
            message: Human-readable error message
            status_code: HTTP status code (0 for connection-level failures)
            url: URL that failed
        """
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class RateLimited(ConnectorHTTPError):
    """The external API answered 429 Too Many Requests."""

    def __init__(self, message: str, url: str, retry_after: Optional[str] = None) -> None:
        super().__init__(message, status_code=429, url=url)
        self.retry_after = retry_after


class ConnectorTimeoutError(SourceUnavailable):
    """HTTP request timed out."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class ConnectorResponseError(SourceUnavailable):
    """Response parsing or shape validation failed (e.g., invalid JSON)."""

    pass


class NotFound(ConnectorError):
    """The external API reported that nothing exists for the query."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class PermissionDenied(ConnectorError):
    """The identity context is not allowed to read the user store."""

    pass


class ConnectorConfigurationError(ConnectorError):
    """Invalid connector configuration (timeouts, user agent, base URL)."""

    pass
