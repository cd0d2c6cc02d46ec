"""
Import and export of entries: CSV for spreadsheets, JSON for full backups.
"""

import csv
import io
import json
import logging
from typing import Any, Iterable, TextIO

from .errors import InvalidEntry, OnMindError, Unauthorized
from .protocol import EntryStoreProtocol
from .types import EMPTY_CONTENT, Entry, utc_now

logger = logging.getLogger(__name__)

EXPORT_FORMAT = "onmind-export"
EXPORT_VERSION = 1

CSV_HEADERS = [
    "Title", "Content", "Explanation", "URL", "Category",
    "Tags", "Favorite", "Pinned", "Created At", "Updated At",
]
CSV_REQUIRED = ("title", "content", "category")
CSV_TAG_SEPARATOR = "; "

_TEMPLATE_ROW = [
    "Example Title",
    "Example content goes here",
    "Optional explanation or notes about the entry",
    "https://example.com",
    "Main",
    "tag1; tag2; tag3",
    "No",
    "No",
]


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


# ---- CSV ----

def export_csv(entries: Iterable[Entry], fp: TextIO) -> int:
    """
    Write entries as CSV.

    Returns:
        Number of rows written
    """
    writer = csv.writer(fp, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    count = 0
    for e in entries:
        writer.writerow([
            e.title,
            e.content,
            e.explanation or "",
            e.url or "",
            e.category,
            CSV_TAG_SEPARATOR.join(e.tags),
            _yes_no(e.is_favorite),
            _yes_no(e.is_pinned),
            e.created_at,
            e.updated_at,
        ])
        count += 1
    return count


def csv_template(fp: TextIO) -> None:
    """Write a header row and one sample row showing the import format."""
    writer = csv.writer(fp, lineterminator="\n")
    writer.writerow(CSV_HEADERS[:8])
    writer.writerow(_TEMPLATE_ROW)


def parse_csv(fp: TextIO) -> list[dict[str, Any]]:
    """
    Read entry fields from CSV.

    Column names are matched case-insensitively; title, content and
    category are required. Tags are split on ";". Rows without a title
    are dropped.

    Raises:
        InvalidEntry: Empty file or a required column is missing
    """
    reader = csv.reader(fp)
    try:
        header = next(reader)
    except StopIteration:
        raise InvalidEntry("CSV file is empty or invalid") from None
    columns = {name.strip().lower(): i for i, name in enumerate(header)}
    for required in CSV_REQUIRED:
        if required not in columns:
            raise InvalidEntry(f"Missing required column: {required}")

    def cell(row: list[str], name: str) -> str:
        i = columns.get(name)
        if i is None or i >= len(row):
            return ""
        return row[i].strip()

    rows = []
    for row in reader:
        if not any(v.strip() for v in row):
            continue
        title = cell(row, "title")
        if not title:
            logger.warning("Skipping CSV row with no title: %r", row)
            continue
        fields: dict[str, Any] = {
            "title": title,
            "content": cell(row, "content") or EMPTY_CONTENT,
            "category": cell(row, "category"),
            "explanation": cell(row, "explanation") or None,
            "url": cell(row, "url") or None,
            "tags": [t.strip() for t in cell(row, "tags").split(";") if t.strip()],
            "is_favorite": cell(row, "favorite").lower() == "yes",
            "is_pinned": cell(row, "pinned").lower() == "yes",
        }
        created = cell(row, "created at")
        if created:
            fields["created_at"] = created
        rows.append(fields)
    return rows


def import_csv(store: EntryStoreProtocol, fp: TextIO) -> dict[str, int]:
    """
    Create an entry per CSV row.

    Returns:
        Dict with stats: {imported, failed}
    """
    return _create_all(store, parse_csv(fp), "CSV")


# ---- JSON ----

def parse_pg_array(value: str) -> list[str]:
    """
    Parse a Postgres array literal such as ``{a,"b c"}``.

    Older exports stored tags this way.
    """
    value = value.strip()
    if not (value.startswith("{") and value.endswith("}")):
        raise InvalidEntry(f"Not an array literal: {value!r}")
    inner = value[1:-1]
    if not inner.strip():
        return []
    row = next(csv.reader(io.StringIO(inner), escapechar="\\"))
    return [v.strip() for v in row if v.strip() and v.strip() != "NULL"]


def _coerce_tags(tags: Any) -> list[str]:
    if tags is None:
        return []
    if isinstance(tags, str):
        return parse_pg_array(tags) if tags.strip().startswith("{") else [tags]
    return [str(t) for t in tags if t]


def export_data(entries: Iterable[Entry]) -> dict:
    """
    Export entries as a dict in onmind-export format (version 1).

    Ids and owners are left out; they are reassigned on import.
    """
    records = []
    for e in entries:
        d = e.to_dict()
        d.pop("id", None)
        d.pop("owner", None)
        records.append(d)
    return {
        "format": EXPORT_FORMAT,
        "version": EXPORT_VERSION,
        "exported_at": utc_now(),
        "entries": records,
    }


def import_data(store: EntryStoreProtocol, data: dict) -> dict[str, int]:
    """
    Create entries from an onmind-export dict.

    created_at is preserved. Tags may be a list or a ``{a,b}`` literal.

    Returns:
        Dict with stats: {imported, failed}

    Raises:
        InvalidEntry: Not an onmind export, or a newer version
    """
    if not isinstance(data, dict) or data.get("format") != EXPORT_FORMAT:
        raise InvalidEntry(f"Invalid export format (expected {EXPORT_FORMAT!r})")
    version = data.get("version", 0)
    if not isinstance(version, int):
        raise InvalidEntry(f"Invalid export version {version!r}")
    if version > EXPORT_VERSION:
        raise InvalidEntry(
            f"Export format version {data['version']} is not supported "
            f"(this version supports up to {EXPORT_VERSION})"
        )

    records = data.get("entries", [])
    if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
        raise InvalidEntry("Export entries must be a list of objects")

    rows = []
    for record in records:
        fields = {
            "title": record.get("title") or "",
            "content": record.get("content") or EMPTY_CONTENT,
            "explanation": record.get("explanation"),
            "url": record.get("url"),
            "category": record.get("category") or "",
            "tags": _coerce_tags(record.get("tags")),
            "is_favorite": bool(record.get("is_favorite", False)),
            "is_pinned": bool(record.get("is_pinned", False)),
        }
        if record.get("created_at"):
            fields["created_at"] = record["created_at"]
        rows.append(fields)
    return _create_all(store, rows, "JSON")


def load_json(fp: TextIO) -> dict:
    try:
        return json.load(fp)
    except json.JSONDecodeError as e:
        raise InvalidEntry(f"Not valid JSON: {e}") from e


def _create_all(store: EntryStoreProtocol, rows: list[dict[str, Any]], source: str) -> dict[str, int]:
    imported = failed = 0
    for fields in rows:
        try:
            store.create(fields)
        except Unauthorized:
            raise
        except (OnMindError, ValueError) as e:
            logger.warning("Skipping %s record %r: %s", source, fields.get("title"), e)
            failed += 1
            continue
        imported += 1
    logger.info("Imported %d entries from %s (%d failed)", imported, source, failed)
    return {"imported": imported, "failed": failed}
