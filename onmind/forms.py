"""
Form state machine and entry drafts.

Only one form is open at a time. Opening any form closes the others and
discards unsaved edits. A draft holds the editable view of an entry: reserved
tags and the journal mood line are kept out of it and rebuilt on save.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .config import YouTubeConfig
from .errors import InvalidEntry
from .filtering import FilterState
from .modes import (
    MODE_PROFILES,
    EntryMode,
    decode_mood,
    editable_tags,
    encode_mood_content,
    known_mood,
    mode_for_entry,
    normalize_tags_on_save,
    validate_mood,
)
from .types import EMPTY_CONTENT, Entry, normalize_timestamp, utc_now
from .video import extract_youtube_video_id

logger = logging.getLogger(__name__)


class FormState(str, Enum):
    CLOSED = "closed"
    STANDARD = "editingStandard"
    QUICK_NOTE = "editingQuickNote"
    IDEA = "editingIdea"
    JOURNAL = "editingJournal"
    NOTE = "editingNote"


_STATE_FOR_MODE = {
    EntryMode.IDEA: FormState.IDEA,
    EntryMode.QUICK_NOTE: FormState.QUICK_NOTE,
    EntryMode.JOURNAL: FormState.JOURNAL,
    EntryMode.FLASH_CARD: FormState.STANDARD,
    EntryMode.STANDARD: FormState.STANDARD,
    EntryMode.NOTE: FormState.NOTE,
}


def state_for_mode(mode: EntryMode) -> FormState:
    return _STATE_FOR_MODE[mode]


def _journal_date(value) -> str:
    try:
        return normalize_timestamp(value)
    except ValueError as e:
        raise InvalidEntry(f"Invalid journal date {value!r}") from e


@dataclass
class EntryDraft:
    """
    Editable fields of an entry being created or edited.

    ``tags`` never holds the mode's reserved tag or (for journals) mood
    tags; ``content`` never holds the mood line. to_fields() puts them back.
    """
    mode: EntryMode
    entry_id: Optional[str] = None
    title: str = ""
    content: str = ""
    explanation: str = ""
    url: str = ""
    category: str = ""
    tags: list[str] = field(default_factory=list)
    is_favorite: bool = False
    is_pinned: bool = False
    mood: Optional[str] = None
    # Journal only: the date the entry is filed under
    journal_date: Optional[str] = None
    channel_name: str = ""

    @property
    def is_new(self) -> bool:
        return self.entry_id is None

    @classmethod
    def new(cls, mode: EntryMode) -> "EntryDraft":
        draft = cls(mode=mode, category=MODE_PROFILES[mode].category)
        if mode is EntryMode.JOURNAL:
            draft.journal_date = utc_now()
        return draft

    @classmethod
    def from_entry(cls, entry: Entry, mode: Optional[EntryMode] = None) -> "EntryDraft":
        mode = mode or mode_for_entry(entry)
        mood: Optional[str] = None
        body = entry.content
        if mode is EntryMode.JOURNAL:
            mood, body = decode_mood(entry.content, entry.tags)
            if mood and known_mood(mood) is None:
                # Unrecognised mood: the stored text stays in the body as written
                mood = None
                body = entry.content if entry.content.strip() else ""
            mood = known_mood(mood)
        elif body == EMPTY_CONTENT:
            body = ""
        return cls(
            mode=mode,
            entry_id=entry.id,
            title=entry.title,
            content=body,
            explanation=entry.explanation or "",
            url=entry.url or "",
            category=entry.category,
            tags=editable_tags(mode, entry.tags),
            is_favorite=entry.is_favorite,
            is_pinned=entry.is_pinned,
            mood=mood,
            journal_date=entry.created_at or None,
        )

    def set_mood(self, mood: Optional[str]) -> None:
        if mood and self.mode is not EntryMode.JOURNAL:
            raise InvalidEntry("A mood can only be set on journal entries")
        self.mood = validate_mood(mood) if mood else None

    def set_journal_date(self, value: str) -> None:
        if self.mode is not EntryMode.JOURNAL:
            raise InvalidEntry("A date can only be set on journal entries")
        self.journal_date = _journal_date(value)

    def _journal_timestamp(self) -> str:
        return _journal_date(self.journal_date) if self.journal_date else utc_now()

    def to_fields(self) -> dict[str, Any]:
        """
        Entry fields to persist.

        A journal with no title is titled by its date. Empty content is
        stored as a single space. created_at is sent only when creating a
        journal entry.
        """
        title = self.title.strip()
        content = self.content
        created_at = None
        if self.mode is EntryMode.JOURNAL:
            created_at = self._journal_timestamp()
            if not title:
                title = created_at[:10]
            content = encode_mood_content(self.mood, content)

        fields: dict[str, Any] = {
            "title": title,
            "content": content or EMPTY_CONTENT,
            "explanation": self.explanation.strip() or None,
            "url": self.url.strip() or None,
            "category": self.category.strip() or MODE_PROFILES[self.mode].category,
            "tags": normalize_tags_on_save(self.mode, self.tags, self.mood),
            "is_favorite": self.is_favorite,
            "is_pinned": self.is_pinned,
        }
        if created_at and self.is_new:
            fields["created_at"] = created_at
        return fields

    def apply_metadata(self, result, youtube: Optional[YouTubeConfig] = None) -> bool:
        """
        Fill the draft from a metadata lookup.

        Only a successful result with a title changes anything. YouTube
        links move the draft to the YouTube category (flash cards stay in
        Flash Card), and the channel can be added as a tag.

        Returns:
            True if the draft changed
        """
        if not result.success or not result.title:
            return False
        youtube = youtube or YouTubeConfig()
        self.title = result.title
        self.explanation = result.description or ""
        self.channel_name = result.channel_name or ""
        if extract_youtube_video_id(self.url):
            if self.mode is EntryMode.FLASH_CARD:
                self.category = MODE_PROFILES[EntryMode.FLASH_CARD].category
            else:
                self.category = youtube.category
        if youtube.auto_add_channel_as_tag and self.channel_name and self.channel_name not in self.tags:
            self.tags.append(self.channel_name)
        return True


class FormManager:
    """
    Which form is open, and on what.

    Opening a mode-specific form also selects that mode's category in the
    filter, so the new entry shows up in the list after saving. Editing
    selects the entry's own category.
    """

    def __init__(self, filters: Optional[FilterState] = None):
        self.filters = filters
        self.state = FormState.CLOSED
        self.draft: Optional[EntryDraft] = None
        self.editing_entry: Optional[Entry] = None

    @property
    def is_open(self) -> bool:
        return self.state is not FormState.CLOSED

    @property
    def mode(self) -> Optional[EntryMode]:
        return self.draft.mode if self.draft else None

    def _open(self, mode: EntryMode, select_category: bool = True) -> EntryDraft:
        self.state = state_for_mode(mode)
        self.editing_entry = None
        self.draft = EntryDraft.new(mode)
        if select_category and self.filters is not None:
            self.filters.set_category(MODE_PROFILES[mode].category)
        logger.debug("Opened %s form", self.state.value)
        return self.draft

    def create_idea(self) -> EntryDraft:
        return self._open(EntryMode.IDEA)

    def create_quick_note(self) -> EntryDraft:
        return self._open(EntryMode.QUICK_NOTE)

    def create_journal(self) -> EntryDraft:
        return self._open(EntryMode.JOURNAL)

    def create_flash_card(self) -> EntryDraft:
        return self._open(EntryMode.FLASH_CARD)

    def create_note(self) -> EntryDraft:
        # The note form lets the user pick any category; leave the filter alone
        return self._open(EntryMode.NOTE, select_category=False)

    def create(self, mode: EntryMode) -> EntryDraft:
        if mode is EntryMode.STANDARD:
            return self._open(mode, select_category=False)
        return {
            EntryMode.IDEA: self.create_idea,
            EntryMode.QUICK_NOTE: self.create_quick_note,
            EntryMode.JOURNAL: self.create_journal,
            EntryMode.FLASH_CARD: self.create_flash_card,
            EntryMode.NOTE: self.create_note,
        }[mode]()

    def edit_entry(self, entry: Entry) -> EntryDraft:
        mode = mode_for_entry(entry)
        self.state = state_for_mode(mode)
        self.editing_entry = entry
        self.draft = EntryDraft.from_entry(entry, mode)
        if self.filters is not None:
            self.filters.set_category(entry.category)
        logger.debug("Editing %s in %s form", entry.id, self.state.value)
        return self.draft

    def close_form(self) -> None:
        self.state = FormState.CLOSED
        self.draft = None
        self.editing_entry = None
