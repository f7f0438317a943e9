"""Soft configuration checks that warn instead of failing."""

import warnings
from typing import Any, Dict, List

from .duration import DurationParseError, parse_duration


def _seconds_or_none(value: Any):
    if not isinstance(value, str):
        return None
    try:
        return parse_duration(value)
    except DurationParseError:
        return None


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """Check configuration for potential issues and return warning messages.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    for section in ("user_store", "external_api", "ai"):
        block = config_dict.get(section, {})
        if isinstance(block, dict) and block.get("enabled") is False:
            warning_messages.append(f"Source '{section}' is disabled and will be skipped")

    governor = config_dict.get("governor", {})
    if isinstance(governor, dict):
        cooldown = _seconds_or_none(governor.get("cooldown"))
        if cooldown is not None and cooldown < 10:
            warning_messages.append(
                f"Short governor cooldown ({governor['cooldown']}) may keep hitting the AI quota"
            )

        cache_ttl = _seconds_or_none(governor.get("cache_ttl"))
        if cache_ttl is not None and cache_ttl > 3600:
            warning_messages.append(
                f"Long cache_ttl ({governor['cache_ttl']}) keeps stale AI results for over an hour"
            )

    external_api = config_dict.get("external_api", {})
    if isinstance(external_api, dict):
        max_results = external_api.get("max_results")
        if isinstance(max_results, int) and max_results == 0:
            warning_messages.append("external_api.max_results is 0: results will not be truncated")

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit warning messages using Python's warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
