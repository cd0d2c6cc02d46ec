"""
Data types for the onmind knowledge base.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Optional


# Categories that always exist, in display order. They cannot be renamed or deleted.
DEFAULT_CATEGORIES = (
    "Ideas",
    "Quick Note",
    "Journal",
    "Flash Card",
    "YouTube",
    "Code Vault",
    "Reference",
    "Uncategorized",
)

UNCATEGORIZED = "Uncategorized"

# Pseudo-category: selects favourited entries regardless of their category
FAVORITES = "Favorites"

# Pseudo-category for tag suggestions: scope to every entry
ALL_CATEGORIES = "All"

# Mode marker tags, injected automatically by the save path
IDEA_TAG = "idea"
JOURNAL_TAG = "Journal"
FLASH_CARD_TAG = "Flash Card"
QUICK_NOTE_TAG = "Quick Note"
NOTE_TAG = "Note"

# Tag carried by placeholder entries that exist only to make a category visible
SYSTEM_TAG = "system"
PLACEHOLDER_TITLE = "Category Created"

MOOD_TAG_PREFIX = "mood:"
MOODS = ("joyful", "calm", "anxious", "sad", "angry")

# Stored in place of empty content; content is never the empty string
EMPTY_CONTENT = " "

# Fields a caller may set on an entry. id, owner and timestamps are store-managed.
EDITABLE_FIELDS = frozenset({
    "title", "content", "explanation", "url", "category", "tags",
    "is_favorite", "is_pinned",
})


def utc_now() -> str:
    """Current UTC timestamp in canonical format: YYYY-MM-DDTHH:MM:SS.

    All timestamps in onmind are UTC, stored without timezone suffix.
    """
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")


def parse_utc_timestamp(ts: str) -> datetime:
    """Parse a stored timestamp string to a timezone-aware UTC datetime.

    Handles both the canonical format (no suffix) and ISO strings carrying
    microseconds, 'Z', or an explicit offset.
    """
    ts = ts.replace("Z", "+00:00")
    dt = datetime.fromisoformat(ts)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def normalize_timestamp(value) -> str:
    """Coerce a datetime or ISO string to the canonical stored format."""
    if isinstance(value, datetime):
        dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    else:
        dt = parse_utc_timestamp(str(value).strip())
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")


def is_mood_tag(tag: str) -> bool:
    return tag.startswith(MOOD_TAG_PREFIX)


def mood_tag(mood: str) -> str:
    return f"{MOOD_TAG_PREFIX}{mood}"


@dataclass(frozen=True)
class Entry:
    """
    A single knowledge item: note, idea, journal entry, flash card or video link.

    This is a read-only snapshot of what the store holds. Mutations go through
    the entry store, and a re-fetch produces new Entry objects.

    Attributes:
        id: Store-assigned identifier
        owner: Identity of the user who created the entry
        title: Display title (never empty)
        content: Body text; a single space when nothing was provided
        category: Single category value (never empty)
        tags: Ordered tag list
    """
    id: str
    owner: str
    title: str
    content: str = EMPTY_CONTENT
    explanation: Optional[str] = None
    url: Optional[str] = None
    category: str = UNCATEGORIZED
    tags: list[str] = field(default_factory=list)
    is_favorite: bool = False
    is_pinned: bool = False
    created_at: str = ""
    updated_at: str = ""

    @property
    def is_placeholder(self) -> bool:
        """True for the minimal entries created only to materialise a category."""
        return SYSTEM_TAG in self.tags and self.title == PLACEHOLDER_TITLE

    def to_dict(self) -> dict:
        """Serialize to JSON-ready dict."""
        d = asdict(self)
        d["tags"] = list(self.tags)
        return d

    def __str__(self) -> str:
        marks = ("*" if self.is_pinned else "") + ("+" if self.is_favorite else "")
        return f"{self.id}{marks} [{self.category}] {self.title[:60]}"


@dataclass(frozen=True)
class User:
    """An authenticated user identity."""
    id: str
    email: str
    name: Optional[str] = None
    provider: str = "email"


@dataclass(frozen=True)
class Session:
    """An active sign-in. ``user.id`` is the owner reference for entry queries."""
    user: User
    created_at: str = field(default_factory=utc_now)

    @property
    def owner(self) -> str:
        return self.user.id
