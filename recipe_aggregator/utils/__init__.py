"""Utility functions for text normalization and UTC time handling."""

from .text import canonical_key, collapse_whitespace, leading_token, slugify, split_list
from .timestamps import ensure_utc, format_timestamp, format_timestamp_for_log, utc_now

__all__ = [
    # Text
    "canonical_key",
    "collapse_whitespace",
    "leading_token",
    "slugify",
    "split_list",
    # Timestamps
    "utc_now",
    "ensure_utc",
    "format_timestamp",
    "format_timestamp_for_log",
]
