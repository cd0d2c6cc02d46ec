"""
Tests for the Notebook facade: entry mutations, re-fetching, forms and
injected backends.
"""

import pytest

from onmind.api import Notebook
from onmind.auth import LocalAuthProvider
from onmind.config import StoreConfig
from onmind.document_store import DocumentStore
from onmind.errors import EntryNotFound, InvalidEntry, log_exception
from onmind.modes import EntryMode


class TestEntryMutations:
    """Every mutation is followed by a re-fetch."""

    def test_create_refreshes(self, nb):
        entry = nb.create({"title": "New", "category": "Ideas"})
        assert nb.entries == [entry]

    def test_update(self, nb):
        entry = nb.create({"title": "Old"})
        updated = nb.update(entry.id, {"title": "New", "tags": ["t"]})
        assert updated.title == "New"
        assert nb.entries[0].tags == ["t"]

    def test_delete(self, nb):
        entry = nb.create({"title": "Gone"})
        nb.delete(entry.id)
        assert nb.entries == []
        with pytest.raises(EntryNotFound):
            nb.get(entry.id)

    def test_failed_create_still_refetches(self, nb):
        nb.store.create({"title": "Behind the cache"})
        with pytest.raises(InvalidEntry):
            nb.create({"title": ""})
        assert [e.title for e in nb.entries] == ["Behind the cache"]

    def test_toggles(self, nb):
        entry = nb.create({"title": "T"})
        assert nb.toggle_favorite(entry.id).is_favorite
        assert not nb.toggle_favorite(entry.id).is_favorite
        assert nb.toggle_pin(entry.id).is_pinned

    def test_pinned_first(self, nb):
        older = nb.create({"title": "Older", "created_at": "2020-01-01T00:00:00"})
        nb.create({"title": "Newer"})
        nb.toggle_pin(older.id)
        assert [e.title for e in nb.entries] == ["Older", "Newer"]

    def test_visible_entries(self, nb):
        nb.create({"title": "A", "category": "Ideas"})
        nb.create({"title": "B", "category": "Work"})
        assert nb.visible_entries() == []
        nb.filters.select_category("Work")
        assert [e.title for e in nb.visible_entries()] == ["B"]


class TestSaveForm:
    """Forms persist through save_form()."""

    def test_save_new_idea(self, nb):
        draft = nb.create_idea()
        draft.title = "Build a boat"
        draft.tags = ["projects"]
        entry = nb.save_form()
        assert entry.category == "Ideas"
        assert entry.tags == ["idea", "projects"]
        assert not nb.forms.is_open
        assert nb.visible_entries() == [entry]

    def test_save_edit(self, nb):
        entry = nb.create({"title": "Plain", "category": "Books", "tags": ["x"]})
        draft = nb.edit_entry(entry)
        assert draft.mode is EntryMode.STANDARD
        draft.content = "Now with body"
        saved = nb.save_form()
        assert saved.id == entry.id
        assert saved.content == "Now with body"
        assert saved.tags == ["x"]

    def test_failed_save_keeps_form_open(self, nb):
        nb.create_note()
        with pytest.raises(InvalidEntry):
            nb.save_form()
        assert nb.forms.is_open

    def test_save_without_form(self, nb):
        with pytest.raises(RuntimeError):
            nb.save_form()

    def test_note_mode(self, nb):
        draft = nb.open_form(EntryMode.NOTE)
        draft.title = "Meeting"
        draft.category = "Work"
        entry = nb.save_form()
        assert entry.tags == ["Note"]
        assert nb.edit_entry(entry.id).mode is EntryMode.NOTE

    def test_flash_card(self, nb):
        draft = nb.create_flash_card()
        draft.title = "hola"
        draft.explanation = "hello"
        entry = nb.save_form()
        assert entry.category == "Flash Card"
        assert entry.tags == ["Flash Card"]
        assert nb.filters.selected_category == "Flash Card"


class TestInjectedBackends:
    """Stores can be passed in instead of created from config."""

    def test_injected(self, tmp_path, metadata_fetcher):
        db = tmp_path / "custom.db"
        docs = DocumentStore(db)
        auth = LocalAuthProvider(db)
        config = StoreConfig(path=tmp_path)
        with Notebook(config=config, doc_store=docs, auth=auth, metadata=metadata_fetcher) as nb:
            nb.sign_in_with_oauth("google", "a@example.com")
            nb.create({"title": "T"})
            assert nb.store_path == tmp_path
            assert docs.count(nb.current_user.id) == 1

    def test_unknown_backend(self, tmp_path):
        config = StoreConfig(path=tmp_path, backend="does-not-exist")
        with pytest.raises(ValueError, match="Unknown backend"):
            Notebook(config=config)


class TestErrorLog:
    """Unexpected CLI errors are written with their traceback."""

    def test_log_exception(self, store_path):
        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            path = log_exception(e, context="test")
        assert path == store_path / "onmind-errors.log"
        text = path.read_text()
        assert "RuntimeError: boom" in text
        assert "test" in text
