"""
Tests for the onmind command line.
"""

import json

import pytest
from typer.testing import CliRunner

from onmind.cli import app

from tests.conftest import EMAIL, PASSWORD

runner = CliRunner()


@pytest.fixture
def cli(store_path):
    """Invoke the CLI against the test store."""
    def _invoke(*args, input=None):
        return runner.invoke(app, list(args), input=input,
                             env={"ONMIND_STORE_PATH": str(store_path)})
    return _invoke


@pytest.fixture
def signed_in(cli):
    assert cli("signup", EMAIL, "--password", PASSWORD).exit_code == 0
    assert cli("login", EMAIL, "--password", PASSWORD).exit_code == 0
    return cli


def _add(cli, *args) -> dict:
    result = cli("--json", "add", *args)
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


class TestAuthCommands:
    """Sign up, in and out."""

    def test_whoami_requires_login(self, cli):
        result = cli("whoami")
        assert result.exit_code == 1
        assert "Not signed in" in result.output

    def test_login_persists(self, signed_in):
        result = signed_in("whoami")
        assert result.exit_code == 0
        assert EMAIL in result.output

    def test_bad_password(self, cli):
        cli("signup", EMAIL, "--password", PASSWORD)
        result = cli("login", EMAIL, "--password", "wrong-one")
        assert result.exit_code == 1
        assert "Invalid login credentials" in result.output

    def test_password_prompt(self, cli):
        cli("signup", EMAIL, "--password", PASSWORD)
        result = cli("login", EMAIL, input=f"{PASSWORD}\n")
        assert result.exit_code == 0
        assert "Signed in" in result.output

    def test_oauth(self, cli):
        result = cli("login", "g@example.com", "--oauth", "google")
        assert result.exit_code == 0
        assert "google" in cli("whoami").output

    def test_logout(self, signed_in):
        assert signed_in("logout").exit_code == 0
        assert signed_in("list", "--all").exit_code == 1

    def test_version(self, cli):
        result = cli("--version")
        assert result.exit_code == 0
        assert result.output.startswith("onmind ")


class TestEntryCommands:
    """Add, edit, list, show, delete."""

    def test_add_idea(self, signed_in):
        entry = _add(signed_in, "Read SICP", "--mode", "idea", "--tag", "books")
        assert entry["category"] == "Ideas"
        assert entry["tags"] == ["idea", "books"]

    def test_add_journal(self, signed_in):
        entry = _add(signed_in, "--mode", "journal", "--mood", "calm",
                     "-c", "Today was fine", "--date", "2024-03-04")
        assert entry["title"] == "2024-03-04"
        assert entry["content"] == "Mood: calm\n---\nToday was fine"
        assert entry["tags"] == ["Journal", "mood:calm"]

    def test_add_requires_title(self, signed_in):
        result = signed_in("add", "--mode", "idea")
        assert result.exit_code == 1
        assert "title" in result.output

    def test_add_unknown_mode(self, signed_in):
        result = signed_in("add", "X", "--mode", "poem")
        assert result.exit_code == 1
        assert "Unknown entry mode" in result.output

    def test_add_rejects_journal_options_elsewhere(self, signed_in):
        result = signed_in("add", "X", "--date", "2024-03-04")
        assert result.exit_code == 1
        assert "Error:" in result.output
        result = signed_in("add", "X", "--mode", "idea", "--mood", "calm")
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_add_bad_date(self, signed_in):
        result = signed_in("add", "--mode", "journal", "--date", "someday")
        assert result.exit_code == 1
        assert "Invalid journal date" in result.output

    def test_edit_mood_outside_journal(self, signed_in):
        entry = _add(signed_in, "Plain")
        result = signed_in("edit", entry["id"], "--mood", "calm")
        assert result.exit_code == 1
        assert "journal" in result.output

    def test_edit_keeps_reserved_tag(self, signed_in):
        entry = _add(signed_in, "Idea", "--mode", "idea", "-t", "a")
        result = signed_in("--json", "edit", entry["id"], "--title", "Better", "-t", "b", "-r", "a")
        assert result.exit_code == 0, result.output
        edited = json.loads(result.stdout)
        assert edited["title"] == "Better"
        assert edited["tags"] == ["idea", "b"]

    def test_list_requires_filter(self, signed_in):
        _add(signed_in, "A")
        result = signed_in("list")
        assert result.exit_code == 0
        assert "--all" in result.output

    def test_list_filters(self, signed_in):
        _add(signed_in, "Alpha", "-C", "Books", "-t", "x")
        _add(signed_in, "Beta", "-C", "Music")
        result = signed_in("--json", "list", "--category", "Books")
        assert [e["title"] for e in json.loads(result.stdout)] == ["Alpha"]
        result = signed_in("--json", "list", "beta")
        assert [e["title"] for e in json.loads(result.stdout)] == ["Beta"]

    def test_show_and_delete(self, signed_in):
        entry = _add(signed_in, "Gone soon")
        assert "Gone soon" in signed_in("show", entry["id"]).output
        assert signed_in("delete", entry["id"]).exit_code == 0
        result = signed_in("show", entry["id"])
        assert result.exit_code == 1
        assert "not found" in result.output.lower()

    def test_fav_and_pin(self, signed_in):
        entry = _add(signed_in, "Star")
        assert "favorited" in signed_in("fav", entry["id"]).output
        assert "pinned" in signed_in("pin", entry["id"]).output
        result = signed_in("--json", "list", "--category", "Favorites")
        listed = json.loads(result.stdout)
        assert listed[0]["is_pinned"] and listed[0]["is_favorite"]


class TestTagAndCategoryCommands:
    """Fan-out commands."""

    def test_tag_rename(self, signed_in):
        _add(signed_in, "A", "-t", "draft")
        _add(signed_in, "B", "-t", "draft", "-t", "x")
        result = signed_in("tag-rename", "draft", "final")
        assert result.exit_code == 0
        assert "2 entries updated" in result.output
        tags = signed_in("tags").output.split()
        assert "final" in tags
        assert "draft" not in tags

    def test_tag_delete(self, signed_in):
        _add(signed_in, "A", "-t", "draft")
        assert signed_in("tag-delete", "draft").exit_code == 0
        assert "draft" not in signed_in("tags").output

    def test_tag_counts(self, signed_in):
        _add(signed_in, "V", "-t", "music", "-u", "https://youtu.be/abc")
        _add(signed_in, "P", "-t", "music")
        result = signed_in("--json", "tags")
        assert {"tag": "music", "entries": 2, "videos": 1} in json.loads(result.stdout)

    def test_bad_sort(self, signed_in):
        result = signed_in("tags", "--sort", "random")
        assert result.exit_code == 1

    def test_categories(self, signed_in):
        assert signed_in("category-add", "Books").exit_code == 0
        result = signed_in("--json", "categories")
        cats = json.loads(result.stdout)
        assert cats[0] == {"name": "Ideas", "custom": False}
        assert {"name": "Books", "custom": True} in cats

    def test_category_delete_default_refused(self, signed_in):
        result = signed_in("category-delete", "Journal")
        assert result.exit_code == 1
        assert "Journal" in result.output

    def test_category_rename_and_delete(self, signed_in):
        entry = _add(signed_in, "A", "-C", "Books")
        assert signed_in("category-rename", "Books", "Reading").exit_code == 0
        assert signed_in("category-delete", "Reading", "--to", "Reference").exit_code == 0
        shown = json.loads(signed_in("--json", "show", entry["id"]).stdout)
        assert shown["category"] == "Reference"


class TestMiscCommands:
    """Playlist, metadata, import/export."""

    def test_playlist(self, signed_in):
        _add(signed_in, "One", "-t", "music", "-u", "https://youtu.be/one")
        _add(signed_in, "Two", "-t", "music", "-u", "https://youtu.be/two")
        result = signed_in("playlist", "music")
        assert result.exit_code == 0
        assert "1/2" in result.output and "2/2" in result.output
        result = signed_in("playlist", "music", "--start", "2")
        assert "1/2" not in result.output
        assert signed_in("playlist", "music", "--start", "3").exit_code == 1

    def test_playlist_no_videos(self, signed_in):
        assert signed_in("playlist", "nothing").exit_code == 1

    def test_meta_empty_url(self, cli):
        result = cli("meta", "")
        assert result.exit_code == 1
        assert "No URL provided" in result.output

    def test_export_import_json(self, signed_in, tmp_path):
        _add(signed_in, "Keep me", "-t", "a")
        out = tmp_path / "backup.json"
        assert signed_in("export", str(out)).exit_code == 0
        assert json.loads(out.read_text())["entries"][0]["title"] == "Keep me"

        result = signed_in("--json", "import", str(out))
        assert json.loads(result.stdout) == {"imported": 1, "failed": 0}

    def test_export_csv_stdout(self, signed_in):
        _add(signed_in, "Row")
        result = signed_in("export", "-", "--format", "csv")
        assert result.exit_code == 0
        assert result.stdout.splitlines()[0].startswith("Title,Content")

    def test_template(self, cli, tmp_path):
        out = tmp_path / "template.csv"
        assert cli("export", str(out), "--template").exit_code == 0
        assert "Example Title" in out.read_text()

    def test_import_missing_file(self, signed_in, tmp_path):
        result = signed_in("import", str(tmp_path / "nope.csv"))
        assert result.exit_code == 1

    def test_import_unsupported_format(self, signed_in, tmp_path):
        path = tmp_path / "data.xml"
        path.write_text("<x/>")
        assert signed_in("import", str(path)).exit_code == 1

    def test_failed_export_keeps_existing_file(self, cli, tmp_path):
        backup = tmp_path / "backup.json"
        backup.write_text('{"entries": ["precious"]}')
        result = cli("export", str(backup))
        assert result.exit_code == 1
        assert "precious" in backup.read_text()
