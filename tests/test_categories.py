"""
Tests for category listing, creation, rename and deletion.
"""

import pytest

from onmind.categories import (
    DeprecatedCategoryMatcher,
    add_category,
    custom_categories,
    delete_category,
    list_categories,
    matchers_from_config,
    rename_category,
)
from onmind.config import CategoryConfig
from onmind.errors import (
    CannotDeleteDefault,
    CannotRenameDefault,
    DuplicateCategory,
    InvalidEntry,
    PartialFanoutFailure,
)
from onmind.filtering import FilterState
from onmind.types import DEFAULT_CATEGORIES

from tests.conftest import FlakyStore


class TestListCategories:
    """Defaults in fixed order, then customs."""

    def test_defaults_always_listed(self):
        assert list_categories([]) == list(DEFAULT_CATEGORIES)

    def test_customs_sorted_after_defaults(self, make_entry):
        entries = [
            make_entry(category="work"),
            make_entry(category="Books"),
            make_entry(category="Ideas"),
            make_entry(category="Books"),
        ]
        assert list_categories(entries) == [*DEFAULT_CATEGORIES, "Books", "work"]

    def test_numeric_placeholders_hidden(self, make_entry):
        """Legacy values shaped like (123) are not listed."""
        entries = [make_entry(category="(42)"), make_entry(category="Real")]
        assert custom_categories(entries) == ["Real"]

    def test_custom_patterns_from_config(self, make_entry):
        matchers = matchers_from_config(CategoryConfig(deprecated=[], deprecated_patterns=["^tmp-"]))
        entries = [make_entry(category="tmp-1"), make_entry(category="(42)")]
        assert custom_categories(entries, matchers) == ["(42)"]


class TestMatchers:
    """Deprecated-category matchers."""

    def test_literal(self):
        m = DeprecatedCategoryMatcher(literal="Code Vault")
        assert m.matches("Code Vault")
        assert not m.matches("Code")
        assert not m.hides

    def test_pattern(self):
        m = DeprecatedCategoryMatcher(pattern=r"^\(\d+\)$")
        assert m.matches("(7)")
        assert not m.matches("(x)")
        assert m.hides


class TestAddCategory:
    """New categories become visible through a placeholder entry."""

    def test_add_creates_placeholder(self, nb):
        entry = nb.add_category("Books")
        assert entry.category == "Books"
        assert entry.tags == ["system"]
        assert entry.content == " "
        assert entry.is_placeholder
        assert "Books" in nb.categories()

    def test_duplicate_custom(self, nb):
        nb.add_category("Books")
        with pytest.raises(DuplicateCategory):
            nb.add_category("Books")

    def test_duplicate_default(self, nb):
        with pytest.raises(DuplicateCategory):
            nb.add_category("Journal")
        assert nb.entries == []

    def test_blank_name(self, nb):
        with pytest.raises(InvalidEntry):
            add_category(nb.store, "   ", [])


class TestDeleteCategory:
    """Deleting a category moves its entries."""

    def test_default_protected(self, nb):
        """Deleting a default category fails and changes nothing."""
        entry = nb.create({"title": "Dear diary", "category": "Journal"})
        with pytest.raises(CannotDeleteDefault):
            nb.delete_category("Journal", "Reference")
        assert nb.get(entry.id).category == "Journal"

    def test_entries_reassigned_not_deleted(self, nb):
        a = nb.create({"title": "A", "category": "Books"})
        b = nb.create({"title": "B", "category": "Books"})
        other = nb.create({"title": "C", "category": "Music"})
        nb.delete_category("Books", "Reference")
        assert nb.get(a.id).category == "Reference"
        assert nb.get(b.id).category == "Reference"
        assert nb.get(other.id).category == "Music"
        assert "Books" not in nb.categories()
        assert len(nb.entries) == 3

    def test_sweeps_deprecated_values(self, nb):
        """Numeric placeholders and the deprecated literal move too."""
        target = nb.create({"title": "A", "category": "Books"})
        numeric = nb.create({"title": "B", "category": "(12)"})
        legacy = nb.create({"title": "C", "category": "Code Vault"})
        nb.delete_category("Books", "Uncategorized")
        for entry in (target, numeric, legacy):
            assert nb.get(entry.id).category == "Uncategorized"

    def test_selection_follows_replacement(self, nb):
        nb.create({"title": "A", "category": "Books"})
        nb.filters.selected_category = "Books"
        nb.delete_category("Books", "Reference")
        assert nb.filters.selected_category == "Reference"

    def test_partial_failure(self, nb):
        for i in range(3):
            nb.create({"title": f"E{i}", "category": "Books"})
        flaky = FlakyStore(nb.store, fail_on=2)
        filters = FilterState(selected_category="Books")
        with pytest.raises(PartialFanoutFailure) as exc_info:
            delete_category(flaky, nb.store.list(), "Books", "Reference", filters=filters)
        assert len(exc_info.value.updated) == 1
        assert filters.selected_category == "Books"
        categories = sorted(e.category for e in nb.store.list())
        assert categories == ["Books", "Books", "Reference"]


class TestRenameCategory:
    """Renaming a custom category rewrites its entries."""

    def test_rename(self, nb):
        a = nb.create({"title": "A", "category": "Books"})
        nb.filters.selected_category = "Books"
        nb.rename_category("Books", "Reading")
        assert nb.get(a.id).category == "Reading"
        assert nb.filters.selected_category == "Reading"
        assert "Books" not in nb.categories()

    def test_default_protected(self, nb):
        with pytest.raises(CannotRenameDefault):
            nb.rename_category("Ideas", "Thoughts")

    def test_duplicate_target(self, nb):
        nb.create({"title": "A", "category": "Books"})
        nb.create({"title": "B", "category": "Music"})
        with pytest.raises(DuplicateCategory):
            nb.rename_category("Books", "Music")
        with pytest.raises(DuplicateCategory):
            nb.rename_category("Books", "Reference")

    def test_same_name_rejected(self, make_entry):
        entries = [make_entry(category="Books")]
        with pytest.raises(DuplicateCategory):
            rename_category(None, entries, "Books", "Books", ["Books"])
