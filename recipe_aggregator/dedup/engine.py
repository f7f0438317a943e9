"""Deduplication engine merging same-dish recipes across sources.

Recipes are grouped by canonical_key in first-occurrence order. A group with a
single member passes through untouched. A larger group collapses into one
COMBINED record:
1. ingredients from the member with the most ingredients
2. instructions from the member with the longest text
3. id, name and owner_id from the first member
4. image_url from the first member that has one

Ties on (1) and (2) go to the earlier member, so the caller controls
precedence through the order of the input list.
"""

import logging
from typing import Dict, List

from recipe_aggregator.domain.models import Recipe, SourceTag

logger = logging.getLogger(__name__)


class DedupEngine:
    """Collapses recipes describing the same dish into a single record."""

    def __init__(self, logger_instance: logging.Logger = None):
        self.logger = logger_instance or logger

    def dedup(self, recipes: List[Recipe]) -> List[Recipe]:
        """Merge recipes sharing a canonical key.

        Applying dedup to its own output returns an equal list, since every
        canonical key in the output is unique.

        Args:
            recipes: Normalized recipes concatenated in source-priority order

        Returns:
            One recipe per canonical key, in first-occurrence order
        """
        groups: Dict[str, List[Recipe]] = {}
        for recipe in recipes:
            groups.setdefault(recipe.canonical_key, []).append(recipe)

        merged = [members[0] if len(members) == 1 else self._merge(members) for members in groups.values()]

        if len(merged) < len(recipes):
            self.logger.debug(
                "Merged duplicate recipes",
                extra={
                    "event": "dedup.completed",
                    "input_count": len(recipes),
                    "output_count": len(merged),
                },
            )
        return merged

    def _merge(self, members: List[Recipe]) -> Recipe:
        first = members[0]

        # max() returns the first maximal element, which keeps ties with the earlier member
        richest = max(members, key=lambda r: len(r.ingredients))
        most_detailed = max(members, key=lambda r: len(r.instructions))
        image_url = next((r.image_url for r in members if r.image_url), None)

        return first.model_copy(
            update={
                "ingredients": list(richest.ingredients),
                "instructions": most_detailed.instructions,
                "image_url": image_url,
                "source": SourceTag.COMBINED,
            }
        )
