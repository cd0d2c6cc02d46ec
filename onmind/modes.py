"""
Entry modes.

Each form variant is a mode that decides the category a new entry starts
in and the reserved tag its save path guarantees. Journal entries also
carry a mood, stored twice: as a ``Mood: <mood>`` line at the top of the
content and as a ``mood:<mood>`` tag. Loading for edit strips both back out.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from .errors import InvalidEntry
from .types import (
    FLASH_CARD_TAG,
    IDEA_TAG,
    JOURNAL_TAG,
    MOODS,
    NOTE_TAG,
    QUICK_NOTE_TAG,
    UNCATEGORIZED,
    Entry,
    is_mood_tag,
    mood_tag,
)


class EntryMode(str, Enum):
    IDEA = "idea"
    QUICK_NOTE = "quick-note"
    JOURNAL = "journal"
    FLASH_CARD = "flash"
    NOTE = "note"
    # Standard form for entries in any other category; no reserved tag
    STANDARD = "standard"


@dataclass(frozen=True)
class ModeProfile:
    category: str
    reserved_tag: Optional[str]


MODE_PROFILES: dict[EntryMode, ModeProfile] = {
    EntryMode.IDEA: ModeProfile("Ideas", IDEA_TAG),
    EntryMode.QUICK_NOTE: ModeProfile("Quick Note", QUICK_NOTE_TAG),
    EntryMode.JOURNAL: ModeProfile("Journal", JOURNAL_TAG),
    EntryMode.FLASH_CARD: ModeProfile("Flash Card", FLASH_CARD_TAG),
    EntryMode.NOTE: ModeProfile(UNCATEGORIZED, NOTE_TAG),
    EntryMode.STANDARD: ModeProfile(UNCATEGORIZED, None),
}


def parse_mode(value) -> EntryMode:
    """Mode from its name or value (``"idea"``, ``"flash"``, ``"QUICK_NOTE"``...)."""
    if isinstance(value, EntryMode):
        return value
    text = str(value).strip()
    try:
        return EntryMode(text.lower())
    except ValueError:
        pass
    try:
        return EntryMode[text.upper().replace("-", "_")]
    except KeyError:
        choices = ", ".join(m.value for m in EntryMode)
        raise InvalidEntry(f"Unknown entry mode {value!r}; expected one of {choices}") from None


def seed_defaults(mode: EntryMode) -> dict:
    """Starting category and tags for a new entry in this mode."""
    profile = MODE_PROFILES[mode]
    return {
        "category": profile.category,
        "tags": [profile.reserved_tag] if profile.reserved_tag else [],
    }


def _clean(tags: Iterable[str]) -> list[str]:
    result: list[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in result:
            result.append(tag)
    return result


def normalize_tags_on_save(
    mode: EntryMode,
    user_tags: Iterable[str],
    mood: Optional[str] = None,
) -> list[str]:
    """
    Final tag list for a save in ``mode``.

    The reserved tag goes first if the user removed it. For journal
    entries the mood tag is appended, replacing any stale mood tag.
    """
    tags = _clean(user_tags)
    profile = MODE_PROFILES[mode]
    if profile.reserved_tag and profile.reserved_tag not in tags:
        tags.insert(0, profile.reserved_tag)
    if mode is EntryMode.JOURNAL:
        tags = [t for t in tags if not is_mood_tag(t)]
        if mood:
            tags.append(mood_tag(validate_mood(mood)))
    return tags


def editable_tags(mode: EntryMode, tags: Iterable[str]) -> list[str]:
    """Tags shown in the editor: the reserved tag (and mood tags for journals) removed."""
    reserved = MODE_PROFILES[mode].reserved_tag
    result = [t for t in tags if t != reserved]
    if mode is EntryMode.JOURNAL:
        result = [t for t in result if not is_mood_tag(t)]
    return result


# -- Mood --

_MOOD_PREFIX_RE = re.compile(r"^Mood: (.*?)\n---\n")


def validate_mood(mood: str) -> str:
    mood = mood.strip().lower()
    if mood not in MOODS:
        raise InvalidEntry(f"Unknown mood {mood!r}; expected one of {', '.join(MOODS)}")
    return mood


def known_mood(mood: Optional[str]) -> Optional[str]:
    """Lowercased ``mood`` if it is one of MOODS, else None."""
    if not mood:
        return None
    mood = mood.strip().lower()
    return mood if mood in MOODS else None


def encode_mood_content(mood: Optional[str], body: str) -> str:
    """Prefix ``body`` with the mood line, or return it unchanged when no mood."""
    if not mood:
        return body
    return f"Mood: {validate_mood(mood)}\n---\n{body}"


def decode_mood(content: str, tags: Iterable[str] = ()) -> tuple[Optional[str], str]:
    """
    Split stored journal content into (mood, body).

    The content prefix is authoritative; a ``mood:`` tag is used when the
    prefix is missing. The single-space empty-content marker decodes to "".
    """
    match = _MOOD_PREFIX_RE.match(content)
    if match:
        mood: Optional[str] = match.group(1)
        body = content[match.end():]
    else:
        mood = next((t[len("mood:"):] for t in tags if is_mood_tag(t)), None)
        body = content
    if body.strip() == "":
        body = ""
    return mood or None, body


def mode_for_entry(entry: Entry) -> EntryMode:
    """
    Which form edits ``entry``.

    A "Note" tag outside the Quick Note category means the note form.
    Otherwise the category decides, then a reserved tag (a flash card moved
    to a custom category is still a flash card). Anything else gets the
    standard form.
    """
    if NOTE_TAG in entry.tags and entry.category != "Quick Note":
        return EntryMode.NOTE
    for mode in _DISPATCH_ORDER:
        if entry.category == MODE_PROFILES[mode].category:
            return mode
    for mode in _DISPATCH_ORDER:
        if MODE_PROFILES[mode].reserved_tag in entry.tags:
            return mode
    return EntryMode.STANDARD


_DISPATCH_ORDER = (EntryMode.JOURNAL, EntryMode.IDEA, EntryMode.QUICK_NOTE, EntryMode.FLASH_CARD)
