"""
Core API for onmind.

Notebook wires the entry store, auth, filters, forms, playlist and metadata
lookup together. After every mutation it re-fetches the owner's entries;
that re-fetch is the only thing that keeps the cached list in step with the
store.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Optional, Sequence, TextIO

from . import categories as _categories
from . import data_io
from . import tags as _tags
from .auth import SIGNED_IN, SIGNED_OUT
from .config import StoreConfig, get_store_path, load_or_create_config
from .errors import EntryNotFound
from .filtering import FilterState, apply_filter
from .forms import EntryDraft, FormManager
from .logging_config import configure_ops_log, remove_ops_log
from .modes import EntryMode
from .playlist import PlaylistCursor
from .protocol import AuthProviderProtocol, DocumentStoreProtocol, MetadataFetcherProtocol
from .providers.metadata import MetadataProvider, MetadataResult
from .store import EntryStore
from .types import UNCATEGORIZED, Entry, Session, User

logger = logging.getLogger(__name__)


class Notebook:
    """
    A user's knowledge base: entries, their tags and categories, and the
    current view onto them.

    Example:
        nb = Notebook()
        nb.sign_in("me@example.com", "secret")
        nb.create({"title": "Read SICP", "category": "Ideas", "tags": ["books"]})
        nb.filters.select_category("Ideas")
        for entry in nb.visible_entries():
            print(entry)
    """

    def __init__(
        self,
        store_path: Optional[str | Path] = None,
        *,
        config: Optional[StoreConfig] = None,
        doc_store: Optional[DocumentStoreProtocol] = None,
        auth: Optional[AuthProviderProtocol] = None,
        metadata: Optional[MetadataFetcherProtocol] = None,
    ) -> None:
        """
        Open (or create) a notebook store.

        Args:
            store_path: Store directory. Defaults to ONMIND_STORE_PATH or ~/.onmind.
            config: Pre-loaded StoreConfig (skips filesystem config discovery).
            doc_store: Injected document store (skips default backend creation).
            auth: Injected auth provider (skips default backend creation).
            metadata: Injected metadata fetcher (tests, custom endpoints).
        """
        # --- Config resolution ---
        if config is not None:
            self._config = config
        else:
            self._config = load_or_create_config(get_store_path(store_path))
        self._store_path = self._config.path

        # --- Persistent operations log ---
        self._ops_log_handler = configure_ops_log(self._store_path)

        # --- Storage backends (injected or factory-created) ---
        if doc_store is not None and auth is not None:
            self._document_store = doc_store
            self._auth = auth
        else:
            from .backend import create_stores
            bundle = create_stores(self._config)
            self._document_store = bundle.doc_store
            self._auth = bundle.auth
        self._entry_store = EntryStore(self._document_store, self._auth)

        self._metadata = metadata or MetadataProvider(self._config.metadata)
        self._matchers = _categories.matchers_from_config(self._config.categories)

        # --- View state ---
        self.filters = FilterState()
        self.forms = FormManager(self.filters)
        self.playlist = PlaylistCursor()
        self._entries: list[Entry] = []

        self._unsubscribe_auth: Optional[Callable[[], None]] = (
            self._auth.on_auth_state_change(self._on_auth_state_change)
        )
        if self._auth.get_current_user() is not None:
            self.refresh()

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def store_path(self) -> Path:
        return self._store_path

    @property
    def store(self) -> EntryStore:
        return self._entry_store

    # -------------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------------

    def _on_auth_state_change(self, event: str, session: Optional[Session]) -> None:
        if event == SIGNED_IN:
            self.refresh()
        elif event == SIGNED_OUT:
            self._entries = []
            self.filters.reset()
            self.forms.close_form()
            self.playlist.stop()

    def sign_up(self, email: str, password: str) -> User:
        return self._auth.sign_up(email, password)

    def sign_in(self, email: str, password: str) -> Session:
        return self._auth.sign_in(email, password)

    def sign_in_with_oauth(self, provider: str, email: str) -> Session:
        return self._auth.sign_in_with_oauth(provider, email)

    def sign_out(self) -> None:
        self._auth.sign_out()

    def on_auth_state_change(
        self, callback: Callable[[str, Optional[Session]], None]
    ) -> Callable[[], None]:
        return self._auth.on_auth_state_change(callback)

    @property
    def current_user(self) -> Optional[User]:
        return self._auth.get_current_user()

    # -------------------------------------------------------------------------
    # Entries
    # -------------------------------------------------------------------------

    def refresh(self) -> list[Entry]:
        """Re-fetch the owner's entries from the store."""
        self._entries = self._entry_store.list()
        logger.debug("Fetched %d entries", len(self._entries))
        return self._entries

    def _after_mutation(self) -> None:
        if self._auth.get_current_user() is not None:
            self.refresh()

    @property
    def entries(self) -> list[Entry]:
        """Entries as of the last re-fetch, pinned first then newest."""
        return list(self._entries)

    def get(self, id: str) -> Entry:
        entry = self._entry_store.get(id)
        if entry is None:
            raise EntryNotFound(id)
        return entry

    def create(self, fields: dict[str, Any]) -> Entry:
        try:
            return self._entry_store.create(fields)
        finally:
            self._after_mutation()

    def update(self, id: str, fields: dict[str, Any]) -> Entry:
        try:
            self._entry_store.update(id, fields)
        finally:
            self._after_mutation()
        return self.get(id)

    def delete(self, id: str) -> None:
        try:
            self._entry_store.delete(id)
        finally:
            self._after_mutation()

    def toggle_favorite(self, id: str) -> Entry:
        entry = self.get(id)
        return self.update(id, {"is_favorite": not entry.is_favorite})

    def toggle_pin(self, id: str) -> Entry:
        entry = self.get(id)
        return self.update(id, {"is_pinned": not entry.is_pinned})

    def visible_entries(self) -> list[Entry]:
        """The cached entries narrowed by the current filter selection."""
        return apply_filter(self._entries, self.filters)

    # -------------------------------------------------------------------------
    # Tags
    # -------------------------------------------------------------------------

    def tags(self) -> list[str]:
        return _tags.list_tags(self._entries)

    def tag_suggestions(self, sort: str = _tags.SORT_A_Z) -> list[str]:
        """Tags offered for the currently selected category."""
        return _tags.tag_suggestions(self._entries, self.filters.selected_category, sort)

    def tag_counts(self) -> dict[str, int]:
        return dict(_tags.tag_counts(self._entries))

    def youtube_counts(self) -> dict[str, int]:
        return _tags.youtube_counts(self.tags(), self._entries)

    def delete_tag(self, tag: str) -> list[str]:
        """
        Remove ``tag`` from every entry.

        Raises:
            PartialFanoutFailure: Some entries were not rewritten; the
                cached entries reflect what actually happened
        """
        try:
            return _tags.delete_tag(
                self._entry_store, self._entry_store.list(), tag, self.filters,
                atomic=self._config.atomic_fanout,
            )
        finally:
            self._after_mutation()

    def rename_tag(self, old_tag: str, new_tag: str) -> list[str]:
        """
        Rename ``old_tag`` on every entry. Collisions merge.

        Raises:
            PartialFanoutFailure: Some entries were not rewritten
        """
        try:
            return _tags.rename_tag(
                self._entry_store, self._entry_store.list(), old_tag, new_tag, self.filters,
                atomic=self._config.atomic_fanout,
            )
        finally:
            self._after_mutation()

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    def categories(self) -> list[str]:
        return _categories.list_categories(self._entries, self._matchers)

    def custom_categories(self) -> list[str]:
        return _categories.custom_categories(self._entries, self._matchers)

    def add_category(self, name: str) -> Entry:
        try:
            return _categories.add_category(self._entry_store, name, self.categories())
        finally:
            self._after_mutation()

    def delete_category(self, target: str, replacement: str = UNCATEGORIZED) -> list[str]:
        """
        Move every entry in ``target`` (and in deprecated categories) to
        ``replacement``.
        """
        try:
            return _categories.delete_category(
                self._entry_store, self._entry_store.list(), target, replacement,
                self._matchers, self.filters, atomic=self._config.atomic_fanout,
            )
        finally:
            self._after_mutation()

    def rename_category(self, old_name: str, new_name: str) -> list[str]:
        entries = self._entry_store.list()
        existing = _categories.list_categories(entries, self._matchers)
        try:
            return _categories.rename_category(
                self._entry_store, entries, old_name, new_name,
                existing, self.filters, atomic=self._config.atomic_fanout,
            )
        finally:
            self._after_mutation()

    # -------------------------------------------------------------------------
    # Forms
    # -------------------------------------------------------------------------

    def create_idea(self) -> EntryDraft:
        return self.forms.create_idea()

    def create_quick_note(self) -> EntryDraft:
        return self.forms.create_quick_note()

    def create_journal(self) -> EntryDraft:
        return self.forms.create_journal()

    def create_flash_card(self) -> EntryDraft:
        return self.forms.create_flash_card()

    def create_note(self) -> EntryDraft:
        return self.forms.create_note()

    def open_form(self, mode: EntryMode) -> EntryDraft:
        return self.forms.create(mode)

    def edit_entry(self, entry: Entry | str) -> EntryDraft:
        if isinstance(entry, str):
            entry = self.get(entry)
        return self.forms.edit_entry(entry)

    def close_form(self) -> None:
        self.forms.close_form()

    def save_form(self) -> Entry:
        """
        Persist the open form's draft and close the form.

        The form stays open if the save fails.
        """
        draft = self.forms.draft
        if draft is None:
            raise RuntimeError("No form is open")
        fields = draft.to_fields()
        if draft.is_new:
            entry = self.create(fields)
        else:
            entry = self.update(draft.entry_id, fields)
        self.forms.close_form()
        return entry

    def autofill_draft(self) -> MetadataResult:
        """Look up the open draft's URL and fill title, description and category."""
        draft = self.forms.draft
        if draft is None:
            raise RuntimeError("No form is open")
        result = self.fetch_metadata(draft.url)
        draft.apply_metadata(result, self._config.youtube)
        return result

    # -------------------------------------------------------------------------
    # Playlist and metadata
    # -------------------------------------------------------------------------

    def play(self, videos: Sequence[Entry], start_index: int = 0) -> int:
        self.playlist.start(videos, start_index)
        return self.playlist.total

    def play_tag(self, tag: str) -> int:
        """
        Start a playlist of the YouTube entries carrying ``tag``.

        Returns:
            Number of videos queued (0 leaves any current playlist alone)
        """
        videos = _tags.videos_for_tag(tag, self._entries)
        if not videos:
            return 0
        return self.play(videos)

    def fetch_metadata(self, url: str) -> MetadataResult:
        """Never raises; failures come back with ``success=False``."""
        return self._metadata.fetch(url)

    # -------------------------------------------------------------------------
    # Import / export
    # -------------------------------------------------------------------------

    def export_csv(self, fp: TextIO) -> int:
        return data_io.export_csv(self._entry_store.list(), fp)

    def import_csv(self, fp: TextIO) -> dict[str, int]:
        try:
            return data_io.import_csv(self._entry_store, fp)
        finally:
            self._after_mutation()

    def export_data(self) -> dict:
        return data_io.export_data(self._entry_store.list())

    def import_data(self, data: dict) -> dict[str, int]:
        try:
            return data_io.import_data(self._entry_store, data)
        finally:
            self._after_mutation()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Close stores and detach the operations log."""
        if getattr(self, "_unsubscribe_auth", None) is not None:
            self._unsubscribe_auth()
            self._unsubscribe_auth = None

        if getattr(self, "_document_store", None) is not None:
            self._document_store.close()
            self._document_store = None

        if getattr(self, "_auth", None) is not None and hasattr(self._auth, "close"):
            self._auth.close()

        if getattr(self, "_ops_log_handler", None) is not None:
            remove_ops_log(self._ops_log_handler)
            self._ops_log_handler = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
