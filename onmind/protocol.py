"""
Protocol definitions for onmind and its storage backends.

Defines interface contracts at two levels:
- EntryStoreProtocol: the session-scoped store used by the consistency engines
- DocumentStoreProtocol / AuthProviderProtocol: backends behind it
  (SQLite locally, a hosted document database elsewhere)
"""

from typing import Any, Callable, Optional, Protocol, runtime_checkable

from .types import Entry, Session, User


@runtime_checkable
class EntryStoreProtocol(Protocol):
    """
    Owner-scoped entry operations.

    Implemented by:
    - EntryStore (session-bound adapter over a DocumentStoreProtocol)
    """

    def create(self, fields: dict[str, Any]) -> Entry: ...

    def update(self, id: str, fields: dict[str, Any]) -> None: ...

    def delete(self, id: str) -> None: ...

    def list(self) -> list[Entry]: ...

    def get(self, id: str) -> Optional[Entry]: ...


@runtime_checkable
class DocumentStoreProtocol(Protocol):
    """
    Abstract entry persistence backend. Every call names the owner.

    Implemented by:
    - DocumentStore (local SQLite)
    """

    # -- Write --

    def insert(self, owner: str, fields: dict[str, Any]) -> Entry: ...

    def update(self, owner: str, id: str, fields: dict[str, Any]) -> bool: ...

    def update_many(
        self, owner: str, updates: dict[str, dict[str, Any]]
    ) -> int: ...

    def delete(self, owner: str, id: str) -> bool: ...

    # -- Read --

    def get(self, owner: str, id: str) -> Optional[Entry]: ...

    def list_entries(self, owner: str) -> list[Entry]: ...

    def count(self, owner: str) -> int: ...

    # -- Lifecycle --

    def close(self) -> None: ...


@runtime_checkable
class AuthProviderProtocol(Protocol):
    """
    Identity and session lifecycle.

    Implemented by:
    - LocalAuthProvider (SQLite user table)
    """

    def sign_up(self, email: str, password: str) -> User: ...

    def sign_in(self, email: str, password: str) -> Session: ...

    def sign_in_with_oauth(self, provider: str, email: str) -> Session: ...

    def sign_out(self) -> None: ...

    def on_auth_state_change(
        self, callback: Callable[[str, Optional[Session]], None]
    ) -> Callable[[], None]: ...

    def get_current_user(self) -> Optional[User]: ...

    def get_session(self) -> Optional[Session]: ...


@runtime_checkable
class MetadataFetcherProtocol(Protocol):
    """
    URL to title/description/channel lookup.

    Implemented by:
    - MetadataProvider (YouTube oEmbed, then a page-metadata endpoint)
    """

    def fetch(self, url: str) -> Any: ...
