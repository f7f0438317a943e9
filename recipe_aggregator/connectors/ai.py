"""Connector over the generative capability.

Only the AI invocation governor calls this connector; it adds caching,
cooldown and timeout handling around fetch().
"""

from typing import List, Optional

from recipe_aggregator.domain.models import RawRecord, SearchMode, SourceTag
from recipe_aggregator.generation.capability import GenerativeCapability
from recipe_aggregator.generation.prompts import build_recipe_prompt, recipe_list_schema
from recipe_aggregator.logging import get_logger

from .base import BaseConnector
from .identity import IdentityContext

logger = get_logger(__name__, component="connector")


class AIRecipeConnector(BaseConnector):
    """Asks the generative capability for recipes matching a query.

    Errors raised by the capability (QuotaExceeded, GenerationTimeout,
    InvalidOutput, GenerationUnavailable) propagate unchanged to the governor.
    """

    source = SourceTag.AI

    def __init__(self, capability: GenerativeCapability, max_recipes: int = 3) -> None:
        super().__init__(max_results=max_recipes)
        self.capability = capability
        self.max_recipes = max_recipes
        self.schema = recipe_list_schema()

    def fetch(
        self,
        query: str,
        mode: SearchMode,
        context: Optional[IdentityContext] = None,
    ) -> List[RawRecord]:
        """Generate raw recipe records; the identity context is not used."""
        prompt = build_recipe_prompt(query, mode, self.schema, self.max_recipes)

        logger.debug(
            "Requesting generated recipes",
            extra={
                "event": "connector.fetch.started",
                "source": self.source,
                "mode": mode,
                "prompt_length": len(prompt),
            },
        )
        return self.capability.generate(prompt, self.schema)
