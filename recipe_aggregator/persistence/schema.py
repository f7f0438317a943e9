"""ORM models for the user recipe store.

Only the canonical record shape is stored, plus an is_public flag used for
client-side visibility.
"""

import json
from typing import Any, Dict

from sqlalchemy import Boolean, Column, Index, String, Text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from recipe_aggregator.logging import get_logger

logger = get_logger(__name__, component="database")

Base = declarative_base()


class UserRecipeModel(Base):
    """ORM model for the user_recipes table."""

    __tablename__ = "user_recipes"

    id = Column(String(64), primary_key=True, nullable=False)
    name = Column(Text, nullable=False)
    canonical_key = Column(Text, nullable=False)
    # JSON-encoded list of ingredient lines, order preserved
    ingredients = Column(Text, nullable=False, default="[]")
    instructions = Column(Text, nullable=False, default="")
    image_url = Column(Text, nullable=True)
    owner_id = Column(String(64), nullable=True)
    is_public = Column(Boolean, nullable=False, default=False)
    created_at = Column(String(50), nullable=False)

    __table_args__ = (
        Index("idx_user_recipes_canonical_key", "canonical_key"),
        Index("idx_user_recipes_owner", "owner_id"),
    )

    def to_record(self) -> Dict[str, Any]:
        """Convert the row to the raw record shape the normalizer expects."""
        return {
            "id": self.id,
            "name": self.name,
            "ingredients": json.loads(self.ingredients or "[]"),
            "instructions": self.instructions,
            "image_url": self.image_url,
            "owner_id": self.owner_id,
            "is_public": bool(self.is_public),
        }


def create_schema(engine: Engine) -> None:
    """Create all tables that do not exist yet (idempotent)."""
    Base.metadata.create_all(engine)
    logger.debug("Database schema ensured", extra={"event": "database.schema.ensured"})
