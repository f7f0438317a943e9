"""Cross-source recipe deduplication."""

from .engine import DedupEngine

__all__ = ["DedupEngine"]
