"""Persistence layer for the user-submitted recipe store.

Public API:
    - init_database(database_url) / get_session() / close_database() / get_engine()
    - UserRecipeRepository: add, get, find_by_name_fragment, find_by_ingredient
    - PersistenceError, DatabaseConnectionError, DataIntegrityError

Example usage:
    >>> init_database("sqlite:///./data/recipes.db")
    >>> with get_session() as session:
    ...     repo = UserRecipeRepository(session)
    ...     repo.add("Tomato Soup", ["tomato"], "Simmer.", owner_id="u1", is_public=True)
"""

from .database import close_database, get_engine, get_session, init_database
from .exceptions import DatabaseConnectionError, DataIntegrityError, PersistenceError
from .repositories import UserRecipeRepository

__all__ = [
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    "UserRecipeRepository",
    "PersistenceError",
    "DatabaseConnectionError",
    "DataIntegrityError",
]
