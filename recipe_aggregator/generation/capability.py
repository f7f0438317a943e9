"""Typed contract of the generative capability."""

from typing import Any, Dict, List, Protocol, runtime_checkable

from recipe_aggregator.domain.models import RawRecord


@runtime_checkable
class GenerativeCapability(Protocol):
    """Opaque text-generation capability used for recipes and suggestions.

    Implementations raise the exceptions in
    ``recipe_aggregator.generation.exceptions``: ``QuotaExceeded``,
    ``GenerationTimeout``, ``InvalidOutput`` and ``GenerationUnavailable``.
    """

    def generate(self, prompt: str, schema: Dict[str, Any]) -> List[RawRecord]:
        """Generate records shaped by the given JSON schema."""
        ...

    def complete(self, partial_query: str) -> str:
        """Return a single completion for a partially typed query."""
        ...
