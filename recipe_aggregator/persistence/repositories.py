"""Data access layer for user-submitted recipes.

Visibility is decided by the caller: repositories take either
``include_all=True`` (elevated access) or the ``viewer_id`` whose own and
public records may be returned.
"""

import json
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from recipe_aggregator.logging import get_logger
from recipe_aggregator.utils.text import canonical_key, collapse_whitespace
from recipe_aggregator.utils.timestamps import format_timestamp, utc_now

from .exceptions import DataIntegrityError, PersistenceError
from .schema import UserRecipeModel

logger = get_logger(__name__, component="database")


def _like_pattern(fragment: str) -> str:
    """Build a contains-pattern with LIKE wildcards escaped."""
    escaped = fragment.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class UserRecipeRepository:
    """Repository for user recipe database operations."""

    def __init__(self, session: Session):
        self.session = session

    def add(
        self,
        name: str,
        ingredients: List[str],
        instructions: str,
        owner_id: Optional[str] = None,
        image_url: Optional[str] = None,
        is_public: bool = False,
        recipe_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Insert a user-submitted recipe.

        Returns:
            The stored record in raw record shape

        Raises:
            DataIntegrityError: If a recipe with the same id exists
            PersistenceError: On any other database error
        """
        cleaned_name = collapse_whitespace(name)
        if not cleaned_name:
            raise PersistenceError("Recipe name cannot be empty")

        model = UserRecipeModel(
            id=recipe_id or uuid4().hex,
            name=cleaned_name,
            canonical_key=canonical_key(cleaned_name),
            ingredients=json.dumps([collapse_whitespace(i) for i in ingredients if collapse_whitespace(i)]),
            instructions=(instructions or "").strip(),
            image_url=image_url,
            owner_id=owner_id,
            is_public=is_public,
            created_at=format_timestamp(utc_now(), include_microseconds=True),
        )

        try:
            self.session.add(model)
            self.session.flush()
        except IntegrityError as e:
            logger.error(f"Integrity error adding recipe {model.id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to add recipe due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error adding recipe {model.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to add recipe: {e}") from e

        return model.to_record()

    def get(self, recipe_id: str) -> Optional[Dict[str, Any]]:
        """Retrieve a recipe by id, or None if it does not exist."""
        try:
            model = self.session.get(UserRecipeModel, recipe_id)
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving recipe {recipe_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve recipe: {e}") from e
        return model.to_record() if model else None

    def find_by_name_fragment(
        self,
        fragment: str,
        viewer_id: Optional[str] = None,
        include_all: bool = False,
    ) -> List[Dict[str, Any]]:
        """Case-insensitive name search restricted to visible records.

        Args:
            fragment: Text that must appear in the recipe name
            viewer_id: User whose own records are visible alongside public ones
            include_all: Skip visibility filtering (elevated access)

        Raises:
            PersistenceError: If database error occurs
        """
        condition = UserRecipeModel.canonical_key.like(_like_pattern(canonical_key(fragment)), escape="\\")
        return self._find(condition, viewer_id, include_all)

    def find_by_ingredient(
        self,
        token: str,
        viewer_id: Optional[str] = None,
        include_all: bool = False,
    ) -> List[Dict[str, Any]]:
        """Case-insensitive ingredient search restricted to visible records."""
        condition = UserRecipeModel.ingredients.ilike(_like_pattern(collapse_whitespace(token)), escape="\\")
        return self._find(condition, viewer_id, include_all)

    def _find(self, condition, viewer_id: Optional[str], include_all: bool) -> List[Dict[str, Any]]:
        stmt = select(UserRecipeModel).where(condition)

        if not include_all:
            visible = UserRecipeModel.is_public.is_(True)
            if viewer_id:
                visible = or_(visible, UserRecipeModel.owner_id == viewer_id)
            stmt = stmt.where(visible)

        stmt = stmt.order_by(UserRecipeModel.canonical_key, UserRecipeModel.id)

        try:
            models = self.session.execute(stmt).scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Error searching user recipes: {e}", exc_info=True)
            raise PersistenceError(f"Failed to search user recipes: {e}") from e

        return [model.to_record() for model in models]
