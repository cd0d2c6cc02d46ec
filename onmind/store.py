"""
Entry store adapter.

Binds a document store to the current auth session. Every call is scoped to
the signed-in owner and fails with Unauthorized when nobody is signed in.
This is also where the stored shape of an entry is enforced: non-empty
title, content never empty (a single space instead), category never empty.
"""

import logging
from typing import Any, Optional

from .errors import EntryNotFound, InvalidEntry, Unauthorized
from .protocol import AuthProviderProtocol, DocumentStoreProtocol
from .types import (
    EDITABLE_FIELDS,
    EMPTY_CONTENT,
    UNCATEGORIZED,
    Entry,
    normalize_timestamp,
)

logger = logging.getLogger(__name__)


def normalize_fields(fields: dict[str, Any], *, creating: bool) -> dict[str, Any]:
    """
    Validate and canonicalise entry fields before they reach storage.

    Unknown keys raise InvalidEntry. On create, missing content and category
    get their defaults; on update only the keys present are touched.
    """
    allowed = EDITABLE_FIELDS | ({"created_at"} if creating else set())
    unknown = set(fields) - allowed
    if unknown:
        raise InvalidEntry(f"Cannot set field(s): {', '.join(sorted(unknown))}")

    out = dict(fields)
    if creating or "title" in out:
        title = (out.get("title") or "").strip()
        if not title:
            raise InvalidEntry("Entry title must not be empty")
        out["title"] = title
    if creating or "content" in out:
        out["content"] = out.get("content") or EMPTY_CONTENT
    if creating or "category" in out:
        out["category"] = (out.get("category") or "").strip() or UNCATEGORIZED
    if creating or "tags" in out:
        out["tags"] = [t for t in (out.get("tags") or []) if t]
    if "explanation" in out and out["explanation"] == "":
        out["explanation"] = None
    if "url" in out:
        out["url"] = (out["url"] or "").strip() or None
    if out.get("created_at"):
        out["created_at"] = normalize_timestamp(out["created_at"])
    else:
        out.pop("created_at", None)
    return out


class EntryStore:
    """
    Session-scoped entry operations.

    Satisfies EntryStoreProtocol. The owner is read from the auth provider
    on every call, so signing out immediately revokes access.
    """

    def __init__(self, documents: DocumentStoreProtocol, auth: AuthProviderProtocol):
        self._documents = documents
        self._auth = auth

    def _owner(self) -> str:
        user = self._auth.get_current_user()
        if user is None:
            raise Unauthorized()
        return user.id

    def create(self, fields: dict[str, Any]) -> Entry:
        owner = self._owner()
        entry = self._documents.insert(owner, normalize_fields(fields, creating=True))
        logger.info("Created entry %s [%s]", entry.id, entry.category)
        return entry

    def update(self, id: str, fields: dict[str, Any]) -> None:
        owner = self._owner()
        if not self._documents.update(owner, id, normalize_fields(fields, creating=False)):
            raise EntryNotFound(id)
        logger.debug("Updated entry %s: %s", id, sorted(fields))

    def update_many(self, updates: dict[str, dict[str, Any]]) -> None:
        """Apply updates to several entries in one transaction."""
        owner = self._owner()
        normalized = {
            entry_id: normalize_fields(fields, creating=False)
            for entry_id, fields in updates.items()
        }
        try:
            self._documents.update_many(owner, normalized)
        except KeyError as e:
            raise EntryNotFound(e.args[0]) from None

    def delete(self, id: str) -> None:
        owner = self._owner()
        if not self._documents.delete(owner, id):
            raise EntryNotFound(id)
        logger.info("Deleted entry %s", id)

    def list(self) -> list[Entry]:
        """All of the owner's entries: pinned first, then newest first."""
        return self._documents.list_entries(self._owner())

    def get(self, id: str) -> Optional[Entry]:
        return self._documents.get(self._owner(), id)
