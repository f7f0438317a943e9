"""Text normalization helpers shared by normalization, dedup and the governors.

The canonical key is the single grouping key used to decide that two recipes
from different sources describe the same dish, so every caller must derive it
through canonical_key().
"""

import re
from typing import List, Optional

LIST_SEPARATOR = ","

_WHITESPACE_RE = re.compile(r"\s+")
_SLUG_RE = re.compile(r"[^a-z0-9]+")


def collapse_whitespace(text: Optional[str]) -> str:
    """Trim text and collapse internal whitespace runs to a single space.

    Args:
        text: Text to clean (None is treated as empty)

    Returns:
        Cleaned text, empty string if input is None/blank

    Example:
        >>> collapse_whitespace("  Tomato \\n  Soup ")
        'Tomato Soup'
    """
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text.strip())


def canonical_key(name: Optional[str]) -> str:
    """Compute the dedup grouping key for a recipe name.

    Lower-cases the name and collapses whitespace. Deterministic for a given
    input.

    Args:
        name: Recipe name as received from any source

    Returns:
        Canonical key string

    Example:
        >>> canonical_key("  Tomato   SOUP")
        'tomato soup'
    """
    return collapse_whitespace(name).lower()


def slugify(text: str) -> str:
    """Convert text to a lowercase, dash-separated identifier fragment."""
    return _SLUG_RE.sub("-", canonical_key(text)).strip("-")


def split_list(text: Optional[str], separator: str = LIST_SEPARATOR) -> List[str]:
    """Split a separator-delimited string into trimmed, non-empty items.

    Example:
        >>> split_list(" tomato, , basil ,salt")
        ['tomato', 'basil', 'salt']
    """
    if not text:
        return []
    return [item for item in (collapse_whitespace(part) for part in text.split(separator)) if item]


def leading_token(text: str, separator: str = LIST_SEPARATOR) -> str:
    """Return the first non-empty separator-delimited token of text.

    Falls back to the whole (trimmed) text when it holds no usable token.

    Example:
        >>> leading_token(" , chicken, rice")
        'chicken'
    """
    tokens = split_list(text, separator)
    return tokens[0] if tokens else collapse_whitespace(text)
