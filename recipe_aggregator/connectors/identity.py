"""Identity contexts passed into the user store.

Which records a caller may see is a property of the context object, not of
the connector's code path: the store asks the context, it never inspects the
runtime environment.
"""

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class IdentityContext(Protocol):
    """Identity of the caller on whose behalf a search runs."""

    def is_elevated(self) -> bool:
        """True when the caller may read the full collection."""
        ...

    def user_id(self) -> Optional[str]:
        """Identifier of the end user, if any."""
        ...


@dataclass(frozen=True)
class ServerContext:
    """Elevated, server-side context: sees every record."""

    acting_user_id: Optional[str] = None

    def is_elevated(self) -> bool:
        return True

    def user_id(self) -> Optional[str]:
        return self.acting_user_id


@dataclass(frozen=True)
class ClientContext:
    """Restricted, client-side context: sees its own and public records only."""

    acting_user_id: Optional[str] = None

    def is_elevated(self) -> bool:
        return False

    def user_id(self) -> Optional[str]:
        return self.acting_user_id
