"""Structured logging for the recipe aggregator.

Every log call should carry an ``event`` name in ``extra`` so that JSON output
can be filtered by event (``search.run.completed``, ``governor.ai.cache_hit``,
``connector.fetch.error`` and so on).
"""

import logging
from typing import Optional, Union


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges a default component with per-call extra fields."""

    def process(self, msg, kwargs):
        """Merge adapter extra with call extra; call extra takes precedence."""
        extra = kwargs.get("extra", {})
        kwargs["extra"] = {**self.extra, **extra}
        return msg, kwargs


def get_logger(
    name: str, component: Optional[str] = None
) -> Union[logging.Logger, ComponentLoggerAdapter]:
    """Get a logger with an optional default ``component`` field.

    Args:
        name: Logger name (typically __name__)
        component: Optional component identifier injected into all records

    Returns:
        Logger or ComponentLoggerAdapter instance

    Example:
        >>> logger = get_logger(__name__, component="governor")
        >>> logger.info("Cache hit", extra={"event": "governor.ai.cache_hit"})
    """
    logger = logging.getLogger(name)

    if component:
        return ComponentLoggerAdapter(logger, {"component": component})

    return logger
