"""User-submitted recipe store connector.

The connector never decides visibility itself: it hands the identity context
to the store, and the store asks the context whether it is elevated.
"""

from typing import List, Optional, Protocol, Tuple

from recipe_aggregator.domain.models import RawRecord, SearchMode, SourceTag
from recipe_aggregator.logging import get_logger
from recipe_aggregator.persistence.database import get_session
from recipe_aggregator.persistence.exceptions import PersistenceError
from recipe_aggregator.persistence.repositories import UserRecipeRepository
from recipe_aggregator.utils.text import leading_token

from .base import BaseConnector
from .exceptions import PermissionDenied, SourceUnavailable
from .identity import IdentityContext

logger = get_logger(__name__, component="connector")


class UserRecipeStore(Protocol):
    """Store of user-submitted recipes."""

    def find_by_name_fragment(self, fragment: str, context: IdentityContext) -> List[RawRecord]:
        """Records whose name contains fragment and that context may see.

        Raises:
            PermissionDenied, SourceUnavailable
        """
        ...

    def find_by_ingredient(self, token: str, context: IdentityContext) -> List[RawRecord]:
        """Records listing the ingredient token that context may see.

        Raises:
            PermissionDenied, SourceUnavailable
        """
        ...


class DatabaseUserStore:
    """UserRecipeStore backed by the SQLAlchemy persistence layer.

    Elevated contexts see the full collection. Restricted contexts see their
    own records plus public ones; a restricted context without a user id is
    refused.
    """

    def find_by_name_fragment(self, fragment: str, context: IdentityContext) -> List[RawRecord]:
        include_all, viewer_id = self._visibility(context)
        try:
            with get_session() as session:
                return UserRecipeRepository(session).find_by_name_fragment(
                    fragment, viewer_id=viewer_id, include_all=include_all
                )
        except PersistenceError as e:
            raise SourceUnavailable(f"User store query failed: {e}") from e

    def find_by_ingredient(self, token: str, context: IdentityContext) -> List[RawRecord]:
        include_all, viewer_id = self._visibility(context)
        try:
            with get_session() as session:
                return UserRecipeRepository(session).find_by_ingredient(
                    token, viewer_id=viewer_id, include_all=include_all
                )
        except PersistenceError as e:
            raise SourceUnavailable(f"User store query failed: {e}") from e

    @staticmethod
    def _visibility(context: IdentityContext) -> Tuple[bool, Optional[str]]:
        if context.is_elevated():
            return True, None

        viewer_id = context.user_id()
        if not viewer_id:
            raise PermissionDenied("Restricted context without a user id cannot read the user store")
        return False, viewer_id


class UserStoreConnector(BaseConnector):
    """Connector over the user-submitted recipe store."""

    source = SourceTag.USER_STORE

    def __init__(self, store: UserRecipeStore, max_results: int = 50) -> None:
        super().__init__(max_results=max_results)
        self.store = store

    def fetch(self, query: str, mode: SearchMode, context: IdentityContext) -> List[RawRecord]:
        """Fetch user recipes visible to the context.

        Name mode matches the whole query against recipe names; ingredient
        mode matches the leading ingredient token against ingredient lines.
        """
        logger.info(
            "Fetching recipes from user store",
            extra={
                "event": "connector.fetch.started",
                "source": self.source,
                "elevated": context.is_elevated(),
            },
        )

        if mode == SearchMode.BY_INGREDIENT:
            records = self.store.find_by_ingredient(leading_token(query), context)
        else:
            records = self.store.find_by_name_fragment(query, context)

        records = self._truncate(list(records or []))
        logger.info(
            "Fetched recipes from user store",
            extra={
                "event": "connector.fetch.completed",
                "source": self.source,
                "count": len(records),
            },
        )
        return records
