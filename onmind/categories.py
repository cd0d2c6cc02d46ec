"""
Category consistency.

Categories are single-valued. The defaults always exist and are protected;
any other value is a custom category, known only because some entry uses it.
Deleting a category reassigns its entries; it never deletes them.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from .config import CategoryConfig
from .errors import CannotDeleteDefault, CannotRenameDefault, DuplicateCategory, InvalidEntry
from .fanout import apply_updates
from .filtering import FilterState
from .protocol import EntryStoreProtocol
from .types import (
    DEFAULT_CATEGORIES,
    EMPTY_CONTENT,
    PLACEHOLDER_TITLE,
    SYSTEM_TAG,
    Entry,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeprecatedCategoryMatcher:
    """
    A legacy category value that deletion of any category also cleans up.

    Either an exact ``literal`` or a regular expression ``pattern``.
    Pattern matchers also hide their values from the category list.
    """
    literal: Optional[str] = None
    pattern: Optional[str] = None

    def matches(self, category: str) -> bool:
        if self.literal is not None and category == self.literal:
            return True
        if self.pattern is not None and re.search(self.pattern, category):
            return True
        return False

    @property
    def hides(self) -> bool:
        return self.pattern is not None


def matchers_from_config(config: Optional[CategoryConfig] = None) -> list[DeprecatedCategoryMatcher]:
    """Build the deprecated-category matchers from ``[categories]`` config."""
    config = config or CategoryConfig()
    matchers = [DeprecatedCategoryMatcher(pattern=p) for p in config.deprecated_patterns]
    matchers.extend(DeprecatedCategoryMatcher(literal=name) for name in config.deprecated)
    return matchers


def is_default_category(name: str) -> bool:
    return name in DEFAULT_CATEGORIES


def custom_categories(
    entries: Iterable[Entry],
    matchers: Optional[Iterable[DeprecatedCategoryMatcher]] = None,
) -> list[str]:
    """Distinct non-default categories in use, sorted case-insensitively."""
    hidden = [m for m in (matchers if matchers is not None else matchers_from_config()) if m.hides]
    seen = {
        e.category for e in entries
        if e.category
        and e.category not in DEFAULT_CATEGORIES
        and not any(m.matches(e.category) for m in hidden)
    }
    return sorted(seen, key=lambda c: (c.lower(), c))


def list_categories(
    entries: Iterable[Entry],
    matchers: Optional[Iterable[DeprecatedCategoryMatcher]] = None,
) -> list[str]:
    """Defaults in their fixed order, then custom categories."""
    return [*DEFAULT_CATEGORIES, *custom_categories(entries, matchers)]


def add_category(
    store: EntryStoreProtocol,
    name: str,
    existing: Iterable[str],
) -> Entry:
    """
    Make a new custom category visible.

    A category exists only while an entry uses it, so this creates a
    placeholder entry tagged "system".

    Raises:
        InvalidEntry: Blank name
        DuplicateCategory: Name is a default or already in use
    """
    name = name.strip()
    if not name:
        raise InvalidEntry("Category name must not be empty")
    if name in DEFAULT_CATEGORIES or name in set(existing):
        raise DuplicateCategory(name)

    logger.info("Adding category %r", name)
    return store.create({
        "title": PLACEHOLDER_TITLE,
        "content": EMPTY_CONTENT,
        "category": name,
        "tags": [SYSTEM_TAG],
    })


def delete_category(
    store: EntryStoreProtocol,
    entries: Iterable[Entry],
    target: str,
    replacement: str,
    matchers: Optional[Iterable[DeprecatedCategoryMatcher]] = None,
    filters: Optional[FilterState] = None,
    *,
    atomic: bool = False,
) -> list[str]:
    """
    Delete a custom category by moving its entries to ``replacement``.

    Entries in any deprecated category are swept into the same
    reassignment.

    Raises:
        CannotDeleteDefault: ``target`` is a default category
        PartialFanoutFailure: A write failed part way through

    Returns:
        Ids of the entries reassigned
    """
    if is_default_category(target):
        raise CannotDeleteDefault(target)
    replacement = replacement.strip()
    if not replacement:
        raise InvalidEntry("Replacement category must not be empty")

    matchers = list(matchers if matchers is not None else matchers_from_config())
    updates = {
        e.id: {"category": replacement}
        for e in entries
        if e.category != replacement
        and (e.category == target or any(m.matches(e.category) for m in matchers))
    }
    written = apply_updates(
        store, f"delete category {target!r} -> {replacement!r}", updates, atomic=atomic
    )
    if filters is not None:
        filters.replace_category(target, replacement)
    return written


def rename_category(
    store: EntryStoreProtocol,
    entries: Iterable[Entry],
    old_name: str,
    new_name: str,
    existing: Iterable[str],
    filters: Optional[FilterState] = None,
    *,
    atomic: bool = False,
) -> list[str]:
    """
    Rename a custom category on every entry that uses it.

    Raises:
        CannotRenameDefault: ``old_name`` is a default category
        DuplicateCategory: ``new_name`` already exists
        PartialFanoutFailure: A write failed part way through

    Returns:
        Ids of the entries rewritten
    """
    if is_default_category(old_name):
        raise CannotRenameDefault(old_name)
    new_name = new_name.strip()
    if not new_name:
        return []
    if new_name == old_name or new_name in DEFAULT_CATEGORIES or new_name in set(existing):
        raise DuplicateCategory(new_name)

    updates = {e.id: {"category": new_name} for e in entries if e.category == old_name}
    written = apply_updates(
        store, f"rename category {old_name!r} -> {new_name!r}", updates, atomic=atomic
    )
    if filters is not None:
        filters.replace_category(old_name, new_name)
    return written
