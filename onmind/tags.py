"""
Tag consistency and tag listing.

Tags are free-form strings. Renaming or deleting one rewrites every entry
that carries it. Renaming onto a tag that already exists merges the two;
that is intended.
"""

import logging
from collections import Counter
from typing import Iterable, Optional

from .fanout import apply_updates
from .filtering import FilterState
from .protocol import EntryStoreProtocol
from .types import ALL_CATEGORIES, FAVORITES, Entry
from .video import extract_youtube_video_id

logger = logging.getLogger(__name__)

SORT_A_Z = "a-z"
SORT_Z_A = "z-a"
SORT_FREQUENCY = "frequency"
SORT_RECENT = "recent"
SORT_OPTIONS = (SORT_A_Z, SORT_Z_A, SORT_FREQUENCY, SORT_RECENT)


def _fold(tag: str) -> str:
    return tag.lower()


def list_tags(entries: Iterable[Entry]) -> list[str]:
    """Every distinct tag in use, sorted case-insensitively."""
    tags = {tag for entry in entries for tag in entry.tags}
    return sorted(tags, key=lambda t: (_fold(t), t))


def tag_counts(entries: Iterable[Entry]) -> Counter:
    """Number of entries carrying each tag."""
    counts: Counter = Counter()
    for entry in entries:
        counts.update(set(entry.tags))
    return counts


def delete_tag(
    store: EntryStoreProtocol,
    entries: Iterable[Entry],
    tag: str,
    filters: Optional[FilterState] = None,
    *,
    atomic: bool = False,
) -> list[str]:
    """
    Remove a tag from every entry that carries it.

    The tag is also dropped from the active selection once all writes
    succeed. Re-running after a partial failure finishes the job.

    Returns:
        Ids of the entries rewritten
    """
    updates = {
        entry.id: {"tags": [t for t in entry.tags if t != tag]}
        for entry in entries
        if tag in entry.tags
    }
    written = apply_updates(store, f"delete tag {tag!r}", updates, atomic=atomic)
    if filters is not None:
        filters.remove_tag(tag)
    return written


def rename_tag(
    store: EntryStoreProtocol,
    entries: Iterable[Entry],
    old_tag: str,
    new_tag: str,
    filters: Optional[FilterState] = None,
    *,
    atomic: bool = False,
) -> list[str]:
    """
    Replace ``old_tag`` with ``new_tag`` in place on every entry carrying it.

    A blank new name, or one equal to the old name, is a no-op. If the
    entry already carries ``new_tag`` both occurrences are kept as they
    fall; tag identity is by string.

    Returns:
        Ids of the entries rewritten
    """
    new_tag = new_tag.strip()
    if not new_tag or new_tag == old_tag:
        return []

    updates = {
        entry.id: {"tags": [new_tag if t == old_tag else t for t in entry.tags]}
        for entry in entries
        if old_tag in entry.tags
    }
    written = apply_updates(
        store, f"rename tag {old_tag!r} -> {new_tag!r}", updates, atomic=atomic
    )
    if filters is not None:
        filters.replace_tag(old_tag, new_tag)
    return written


def entries_in_scope(entries: Iterable[Entry], selected_category: str) -> list[Entry]:
    """
    Entries whose tags are offered in the tag filter.

    No category selected offers nothing; "All" offers every entry;
    "Favorites" offers favourited entries.
    """
    if not selected_category:
        return []
    if selected_category == ALL_CATEGORIES:
        return list(entries)
    if selected_category == FAVORITES:
        return [e for e in entries if e.is_favorite]
    return [e for e in entries if e.category == selected_category]


def sort_tags(tags: Iterable[str], entries: Iterable[Entry], sort: str = SORT_A_Z) -> list[str]:
    """
    Order tags for the tag list.

    Args:
        tags: Tags to order
        entries: Entries used for frequency and recency
        sort: One of "a-z", "z-a", "frequency", "recent"
    """
    tags = list(tags)
    entries = list(entries)
    if sort == SORT_A_Z:
        return sorted(tags, key=_fold)
    if sort == SORT_Z_A:
        return sorted(tags, key=_fold, reverse=True)
    if sort == SORT_FREQUENCY:
        counts = tag_counts(entries)
        return sorted(tags, key=lambda t: (-counts[t], _fold(t)))
    if sort == SORT_RECENT:
        latest: dict[str, str] = {}
        for entry in entries:
            for t in entry.tags:
                if entry.created_at > latest.get(t, ""):
                    latest[t] = entry.created_at
        # Alphabetical first; the stable sort keeps it among equal timestamps
        tags = sorted(tags, key=_fold)
        return sorted(tags, key=lambda t: latest.get(t, ""), reverse=True)
    raise ValueError(f"Unknown tag sort {sort!r}; expected one of {', '.join(SORT_OPTIONS)}")


def tag_suggestions(
    entries: Iterable[Entry],
    selected_category: str,
    sort: str = SORT_A_Z,
) -> list[str]:
    """Tags on entries in the selected category, in the requested order."""
    scoped = entries_in_scope(entries, selected_category)
    seen: dict[str, None] = {}
    for entry in scoped:
        for t in entry.tags:
            seen.setdefault(t, None)
    return sort_tags(seen, scoped, sort)


def videos_for_tag(tag: str, entries: Iterable[Entry]) -> list[Entry]:
    """Entries carrying ``tag`` whose URL is a YouTube video, in input order."""
    return [
        e for e in entries
        if tag in e.tags and e.url and extract_youtube_video_id(e.url)
    ]


def youtube_counts(tags: Iterable[str], entries: Iterable[Entry]) -> dict[str, int]:
    """Number of YouTube entries per tag, across all entries."""
    entries = list(entries)
    return {t: len(videos_for_tag(t, entries)) for t in tags}
