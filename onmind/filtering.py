"""
Entry filtering.

FilterState holds the user's current selection (search text, category,
tags, show-all switch). visible() is a pure function of the entries and a
FilterState; it never re-sorts, so the store's base order (pinned first,
then newest) carries through.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from .types import FAVORITES, Entry


@dataclass
class FilterState:
    """
    Externally owned filter selection.

    With everything empty and show_all_entries False, nothing is visible:
    the user has to search, pick a category or tag, or ask for all entries.
    """
    search_query: str = ""
    selected_category: str = ""
    selected_tags: list[str] = field(default_factory=list)
    show_all_entries: bool = False
    hide_placeholders: bool = False

    @property
    def is_idle(self) -> bool:
        return (
            not self.show_all_entries
            and not self.selected_category
            and not self.selected_tags
            and not self.search_query
        )

    # -- Category selection --

    def select_category(self, category: str) -> None:
        """Select a category; selecting the current one again clears it."""
        if category == self.selected_category:
            self.selected_category = ""
        else:
            self.selected_category = category

    def set_category(self, category: str) -> None:
        self.selected_category = category

    def click_category(self, category: str) -> None:
        """Category chip on an entry: select it and drop the tag selection."""
        self.select_category(category)
        self.selected_tags = []

    def replace_category(self, old: str, new: str) -> None:
        """Follow a rename or deletion of the selected category."""
        if self.selected_category == old:
            self.selected_category = new

    # -- Tag selection --

    def toggle_tag(self, tag: str) -> None:
        if tag in self.selected_tags:
            self.selected_tags = [t for t in self.selected_tags if t != tag]
        else:
            self.selected_tags = [*self.selected_tags, tag]

    def clear_tags(self) -> None:
        self.selected_tags = []

    def click_tag(self, tag: str) -> None:
        """Tag chip on an entry: make it the only selected tag."""
        self.selected_tags = [tag]

    def remove_tag(self, tag: str) -> None:
        self.selected_tags = [t for t in self.selected_tags if t != tag]

    def replace_tag(self, old: str, new: str) -> None:
        """
        Follow a tag rename.

        ``new`` takes the old tag's position and appears exactly once, even
        if it was already selected.
        """
        if old not in self.selected_tags:
            return
        result: list[str] = []
        for t in self.selected_tags:
            candidate = new if t == old else t
            if candidate not in result:
                result.append(candidate)
        self.selected_tags = result

    def reset(self) -> None:
        self.search_query = ""
        self.selected_category = ""
        self.selected_tags = []
        self.show_all_entries = False


def matches_search(entry: Entry, query: str) -> bool:
    """Case-insensitive substring match on title, content, explanation or any tag."""
    q = query.lower()
    return (
        q in entry.title.lower()
        or q in entry.content.lower()
        or (entry.explanation is not None and q in entry.explanation.lower())
        or any(q in tag.lower() for tag in entry.tags)
    )


def matches_category(entry: Entry, category: str) -> bool:
    if category == FAVORITES:
        return entry.is_favorite
    return entry.category == category


def matches_tags(entry: Entry, tags: Iterable[str]) -> bool:
    """Entry must carry every selected tag."""
    return all(tag in entry.tags for tag in tags)


def visible(
    entries: Iterable[Entry],
    search_query: str = "",
    selected_category: str = "",
    selected_tags: Optional[Iterable[str]] = None,
    show_all_entries: bool = False,
    *,
    hide_placeholders: bool = False,
) -> list[Entry]:
    """
    Compute the visible subset of entries, preserving input order.

    Args:
        entries: Entries in base order
        search_query: Substring filter (empty = no search)
        selected_category: Category, or "Favorites" for favourited entries
        selected_tags: Tags that must all be present
        show_all_entries: Reveal entries even with no other filter active
        hide_placeholders: Drop category placeholder entries

    Returns:
        Matching entries, same relative order as the input
    """
    tags = list(selected_tags or [])
    if not show_all_entries and not selected_category and not tags and not search_query:
        return []

    result = []
    for entry in entries:
        if hide_placeholders and entry.is_placeholder:
            continue
        if search_query and not matches_search(entry, search_query):
            continue
        if selected_category and not matches_category(entry, selected_category):
            continue
        if tags and not matches_tags(entry, tags):
            continue
        result.append(entry)
    return result


def apply_filter(entries: Iterable[Entry], state: FilterState) -> list[Entry]:
    """visible() driven by a FilterState."""
    return visible(
        entries,
        state.search_query,
        state.selected_category,
        state.selected_tags,
        state.show_all_entries,
        hide_placeholders=state.hide_placeholders,
    )
