"""Exception hierarchy for the generative capability."""

from typing import Optional


class GenerationError(Exception):
    """Base exception for all generative capability errors."""

    pass


class QuotaExceeded(GenerationError):
    """Raised when the provider signals that the quota or rate limit is exhausted."""

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class GenerationTimeout(GenerationError):
    """Raised when the provider does not answer within the allotted time."""

    def __init__(self, message: str, timeout: Optional[float] = None):
        super().__init__(message)
        self.timeout = timeout


class InvalidOutput(GenerationError):
    """Raised when model output cannot be parsed into the expected shape."""

    def __init__(self, message: str, raw_output: Optional[str] = None):
        super().__init__(message)
        self.raw_output = raw_output


class GenerationUnavailable(GenerationError):
    """Raised on transient provider failures (5xx, connection resets)."""

    pass


class GenerationConfigurationError(GenerationError):
    """Raised when the capability is misconfigured (missing API key, bad model)."""

    pass
