"""
Entry store using SQLite.

The document store is the source of truth for:
- Entry identity (store-assigned id) and ownership
- Title, content, explanation, URL
- Category and ordered tags
- Favourite / pinned flags and timestamps

Every query is scoped by owner. Tags are kept as a JSON array so their
order survives a round trip.
"""

import json
import logging
import sqlite3
import uuid
from pathlib import Path
from typing import Any, Optional

from .types import EDITABLE_FIELDS, EMPTY_CONTENT, UNCATEGORIZED, Entry, utc_now

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, owner, title, content, explanation, url, category, tags_json, "
    "is_favorite, is_pinned, created_at, updated_at"
)


class DocumentStore:
    """
    SQLite-backed store for entries.

    Base ordering for list_entries(): pinned first, then most recently
    created, then most recently inserted.
    """

    def __init__(self, store_path: Path):
        """
        Args:
            store_path: Path to SQLite database file
        """
        self._db_path = Path(store_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._init_db()

    def _init_db(self) -> None:
        """Initialize the SQLite database."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row

        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS entries (
                id TEXT PRIMARY KEY,
                owner TEXT NOT NULL,
                title TEXT NOT NULL,
                content TEXT NOT NULL,
                explanation TEXT,
                url TEXT,
                category TEXT NOT NULL,
                tags_json TEXT NOT NULL DEFAULT '[]',
                is_favorite INTEGER NOT NULL DEFAULT 0,
                is_pinned INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)

        # Index for owner-scoped listing in base order
        self._conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_entries_owner
            ON entries(owner, is_pinned, created_at)
        """)

        self._conn.commit()

    def _row_to_entry(self, row: sqlite3.Row) -> Entry:
        return Entry(
            id=row["id"],
            owner=row["owner"],
            title=row["title"],
            content=row["content"],
            explanation=row["explanation"],
            url=row["url"],
            category=row["category"],
            tags=json.loads(row["tags_json"]),
            is_favorite=bool(row["is_favorite"]),
            is_pinned=bool(row["is_pinned"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @staticmethod
    def _columns_for(fields: dict[str, Any]) -> dict[str, Any]:
        """Map entry fields to column values, dropping anything not editable."""
        cols: dict[str, Any] = {}
        for key, value in fields.items():
            if key not in EDITABLE_FIELDS:
                continue
            if key == "tags":
                cols["tags_json"] = json.dumps(list(value or []), ensure_ascii=False)
            elif key in ("is_favorite", "is_pinned"):
                cols[key] = 1 if value else 0
            else:
                cols[key] = value
        return cols

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    def insert(self, owner: str, fields: dict[str, Any]) -> Entry:
        """
        Insert a new entry.

        ``created_at`` is honoured when present in fields; ``updated_at`` is
        always assigned here.

        Returns:
            The stored Entry
        """
        now = utc_now()
        entry_id = uuid.uuid4().hex
        tags = list(fields.get("tags") or [])
        self._conn.execute(f"""
            INSERT INTO entries ({_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            entry_id,
            owner,
            fields.get("title", ""),
            fields.get("content") or EMPTY_CONTENT,
            fields.get("explanation"),
            fields.get("url"),
            fields.get("category") or UNCATEGORIZED,
            json.dumps(tags, ensure_ascii=False),
            1 if fields.get("is_favorite") else 0,
            1 if fields.get("is_pinned") else 0,
            fields.get("created_at") or now,
            now,
        ))
        self._conn.commit()
        return self.get(owner, entry_id)

    def _apply_update(self, owner: str, id: str, fields: dict[str, Any], now: str) -> int:
        cols = self._columns_for(fields)
        cols["updated_at"] = now
        assignments = ", ".join(f"{name} = ?" for name in cols)
        cursor = self._conn.execute(
            f"UPDATE entries SET {assignments} WHERE id = ? AND owner = ?",
            (*cols.values(), id, owner),
        )
        return cursor.rowcount

    def update(self, owner: str, id: str, fields: dict[str, Any]) -> bool:
        """
        Update fields of an existing entry. updated_at is always refreshed.

        Returns:
            True if the entry was found and updated, False otherwise
        """
        rowcount = self._apply_update(owner, id, fields, utc_now())
        self._conn.commit()
        return rowcount > 0

    def update_many(self, owner: str, updates: dict[str, dict[str, Any]]) -> int:
        """
        Apply several entry updates in one transaction.

        Either every listed entry is updated or none is.

        Returns:
            Number of entries updated

        Raises:
            KeyError: An entry does not exist; nothing is written
        """
        now = utc_now()
        total = 0
        try:
            for entry_id, fields in updates.items():
                if not self._apply_update(owner, entry_id, fields, now):
                    raise KeyError(entry_id)
                total += 1
        except (sqlite3.Error, KeyError):
            self._conn.rollback()
            raise
        self._conn.commit()
        return total

    def delete(self, owner: str, id: str) -> bool:
        """
        Delete an entry.

        Returns:
            True if the entry existed and was deleted
        """
        cursor = self._conn.execute("""
            DELETE FROM entries
            WHERE id = ? AND owner = ?
        """, (id, owner))
        self._conn.commit()
        return cursor.rowcount > 0

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    def get(self, owner: str, id: str) -> Optional[Entry]:
        cursor = self._conn.execute(f"""
            SELECT {_COLUMNS} FROM entries
            WHERE id = ? AND owner = ?
        """, (id, owner))
        row = cursor.fetchone()
        if row is None:
            return None
        return self._row_to_entry(row)

    def list_entries(self, owner: str) -> list[Entry]:
        """List all of an owner's entries in base order."""
        cursor = self._conn.execute(f"""
            SELECT {_COLUMNS} FROM entries
            WHERE owner = ?
            ORDER BY is_pinned DESC, created_at DESC, rowid DESC
        """, (owner,))
        return [self._row_to_entry(row) for row in cursor]

    def count(self, owner: str) -> int:
        cursor = self._conn.execute("""
            SELECT COUNT(*) FROM entries
            WHERE owner = ?
        """, (owner,))
        return cursor.fetchone()[0]

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __del__(self):
        self.close()
