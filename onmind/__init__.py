"""
onmind: a personal knowledge base of notes, ideas, journal entries,
flash cards and saved videos, organised by tags and categories.

Quick start:
    from onmind import Notebook

    nb = Notebook()
    nb.sign_in("me@example.com", "secret")
    nb.create({"title": "Read SICP", "category": "Ideas", "tags": ["books"]})
"""

__version__ = "0.1.0"

from .api import Notebook
from .errors import (
    AuthError,
    CannotDeleteDefault,
    CannotRenameDefault,
    DuplicateCategory,
    EntryNotFound,
    InvalidEntry,
    MetadataFetchFailure,
    OnMindError,
    PartialFanoutFailure,
    Unauthorized,
)
from .filtering import FilterState, visible
from .forms import EntryDraft, FormManager, FormState
from .modes import EntryMode
from .playlist import PlaylistCursor
from .types import DEFAULT_CATEGORIES, Entry, Session, User

__all__ = [
    "__version__",
    "Notebook",
    "Entry",
    "User",
    "Session",
    "DEFAULT_CATEGORIES",
    "FilterState",
    "visible",
    "EntryMode",
    "EntryDraft",
    "FormManager",
    "FormState",
    "PlaylistCursor",
    "OnMindError",
    "Unauthorized",
    "AuthError",
    "EntryNotFound",
    "InvalidEntry",
    "DuplicateCategory",
    "CannotDeleteDefault",
    "CannotRenameDefault",
    "PartialFanoutFailure",
    "MetadataFetchFailure",
]
