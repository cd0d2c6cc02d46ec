"""
Shared pytest fixtures for onmind tests.

Real SQLite stores in tmp_path; no network. Metadata lookups go through
a stub fetcher unless a test patches requests itself.
"""

import itertools
from typing import Any

import pytest

from onmind.api import Notebook
from onmind.errors import OnMindError
from onmind.providers.metadata import MetadataResult
from onmind.types import Entry

EMAIL = "me@example.com"
PASSWORD = "secret123"


class StubMetadataFetcher:
    """Returns a canned result and records the URLs asked for."""

    def __init__(self, result: MetadataResult | None = None):
        self.result = result or MetadataResult(success=False, error="offline")
        self.calls: list[str] = []

    def fetch(self, url: str) -> MetadataResult:
        self.calls.append(url)
        return self.result


class FlakyStore:
    """
    Wraps an entry store and fails the Nth update (1-based).

    Used to simulate a fan-out that breaks part way through.
    """

    def __init__(self, inner, fail_on: int, times: int = 1):
        self._inner = inner
        self.fail_on = fail_on
        self.remaining_failures = times
        self.update_calls = 0

    def update(self, id: str, fields: dict[str, Any]) -> None:
        self.update_calls += 1
        if self.update_calls == self.fail_on and self.remaining_failures > 0:
            self.remaining_failures -= 1
            raise OnMindError(f"simulated write failure on {id}")
        self._inner.update(id, fields)

    def __getattr__(self, name):
        return getattr(self._inner, name)


@pytest.fixture
def metadata_fetcher():
    return StubMetadataFetcher()


@pytest.fixture
def store_path(tmp_path, monkeypatch):
    """Store directory; also used for the error log."""
    monkeypatch.setenv("ONMIND_STORE_PATH", str(tmp_path))
    return tmp_path


@pytest.fixture
def notebook(store_path, metadata_fetcher):
    """A notebook with a registered, signed-out user."""
    nb = Notebook(store_path, metadata=metadata_fetcher)
    nb.sign_up(EMAIL, PASSWORD)
    yield nb
    nb.close()


@pytest.fixture
def nb(notebook):
    """A signed-in notebook."""
    notebook.sign_in(EMAIL, PASSWORD)
    return notebook


@pytest.fixture
def make_entry():
    """Factory for in-memory entries (no store)."""
    counter = itertools.count(1)

    def _make(title: str = "", **fields) -> Entry:
        n = next(counter)
        fields.setdefault("created_at", f"2024-01-{n:02d}T00:00:00")
        fields.setdefault("updated_at", fields["created_at"])
        return Entry(id=f"e{n}", owner="u1", title=title or f"Entry {n}", **fields)

    return _make
