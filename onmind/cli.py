"""
CLI interface for onmind.

Usage:
    onmind login me@example.com
    onmind add "Read SICP" --mode idea --tag books
    onmind list --category Ideas
    onmind tag-rename draft final
"""

import io
import json
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer
from typing_extensions import Annotated

from .api import Notebook
from .errors import OnMindError
from .logging_config import configure_quiet_mode, enable_debug_mode
from .modes import EntryMode, parse_mode
from .tags import SORT_A_Z, SORT_OPTIONS
from .types import ALL_CATEGORIES, UNCATEGORIZED, Entry


# Configure quiet mode by default (suppress verbose library output)
# Set ONMIND_VERBOSE=1 to enable debug mode via environment
if os.environ.get("ONMIND_VERBOSE") == "1":
    enable_debug_mode()
else:
    configure_quiet_mode(quiet=True)


def _version_callback(value: bool):
    if value:
        from . import __version__
        print(f"onmind {__version__}")
        raise typer.Exit()


def _verbose_callback(value: bool):
    if value:
        enable_debug_mode()


# Global state for CLI options
_json_output = False
_store_override: Optional[Path] = None


def _json_callback(value: bool):
    global _json_output
    _json_output = value


def _get_json_output() -> bool:
    return _json_output


def _store_callback(value: Optional[Path]):
    global _store_override
    if value is not None:
        _store_override = value


def _get_store_override() -> Optional[Path]:
    return _store_override


app = typer.Typer(
    name="onmind",
    help="Personal knowledge base: notes, ideas, journal, flash cards and videos.",
    no_args_is_help=True,
    rich_markup_mode=None,
)


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option(
        "--verbose", "-v",
        help="Enable debug-level logging to stderr",
        callback=_verbose_callback,
        is_eager=True,
    )] = False,
    output_json: Annotated[bool, typer.Option(
        "--json", "-j",
        help="Output as JSON",
        callback=_json_callback,
        is_eager=True,
    )] = False,
    version: Annotated[Optional[bool], typer.Option(
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    )] = None,
    store: Annotated[Optional[Path], typer.Option(
        "--store", "-s",
        envvar="ONMIND_STORE_PATH",
        help="Path to the store directory",
        callback=_store_callback,
        is_eager=True,
    )] = None,
):
    """Personal knowledge base: notes, ideas, journal, flash cards and videos."""


# -----------------------------------------------------------------------------
# Common Options
# -----------------------------------------------------------------------------

StoreOption = Annotated[
    Optional[Path],
    typer.Option(
        "--store", "-s",
        envvar="ONMIND_STORE_PATH",
        help="Path to the store directory (default: ~/.onmind/)"
    )
]

TagOption = Annotated[
    Optional[list[str]],
    typer.Option("--tag", "-t", help="Tag (repeatable)")
]


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def _get_notebook(store: Optional[Path]) -> Notebook:
    """Open the notebook, handling errors gracefully."""
    import atexit

    actual_store = store if store is not None else _get_store_override()
    try:
        nb = Notebook(actual_store)
    except (OSError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    atexit.register(nb.close)
    return nb


@contextmanager
def _user_errors() -> Iterator[None]:
    """Report onmind errors as a one-line message and exit 1."""
    try:
        yield
    except OnMindError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def _require_user(nb: Notebook) -> None:
    if nb.current_user is None:
        typer.echo("Not signed in. Run: onmind login EMAIL", err=True)
        raise typer.Exit(1)


def _format_entry(entry: Entry) -> str:
    tags = f"  #{' #'.join(entry.tags)}" if entry.tags else ""
    return f"{entry}{tags}"


def _format_full(entry: Entry) -> str:
    lines = [
        "---",
        f"id: {entry.id}",
        f"title: {entry.title}",
        f"category: {entry.category}",
        f"tags: [{', '.join(entry.tags)}]",
    ]
    if entry.url:
        lines.append(f"url: {entry.url}")
    if entry.explanation:
        lines.append(f"explanation: {entry.explanation}")
    if entry.is_favorite:
        lines.append("favorite: true")
    if entry.is_pinned:
        lines.append("pinned: true")
    lines.append(f"created: {entry.created_at}")
    lines.append(f"updated: {entry.updated_at}")
    lines.append("---")
    if entry.content.strip():
        lines.append(entry.content)
    return "\n".join(lines)


def _echo_entries(entries: list[Entry]) -> None:
    if _get_json_output():
        typer.echo(json.dumps([e.to_dict() for e in entries], indent=2))
        return
    for entry in entries:
        typer.echo(_format_entry(entry))


def _echo_entry(entry: Entry) -> None:
    if _get_json_output():
        typer.echo(json.dumps(entry.to_dict(), indent=2))
    else:
        typer.echo(_format_full(entry))


def _echo_ids(label: str, ids: list[str]) -> None:
    if _get_json_output():
        typer.echo(json.dumps({"updated": ids}))
    else:
        typer.echo(f"{label}: {len(ids)} entries updated")


# -----------------------------------------------------------------------------
# Auth
# -----------------------------------------------------------------------------

@app.command()
def signup(
    email: Annotated[str, typer.Argument(help="Email address")],
    password: Annotated[str, typer.Option(
        "--password", "-p",
        prompt=True, hide_input=True, confirmation_prompt=True,
        help="Password (prompted if omitted)",
    )],
    store: StoreOption = None,
):
    """Create an account. Sign in afterwards with `onmind login`."""
    nb = _get_notebook(store)
    with _user_errors():
        user = nb.sign_up(email, password)
    typer.echo(f"Created account for {user.email}")


@app.command()
def login(
    email: Annotated[str, typer.Argument(help="Email address")],
    password: Annotated[Optional[str], typer.Option(
        "--password", "-p",
        help="Password (prompted if omitted)",
    )] = None,
    oauth: Annotated[Optional[str], typer.Option(
        "--oauth",
        help="Sign in through an external identity provider (e.g. google)",
    )] = None,
    store: StoreOption = None,
):
    """Sign in. The session is kept until `onmind logout`."""
    nb = _get_notebook(store)
    with _user_errors():
        if oauth:
            session = nb.sign_in_with_oauth(oauth, email)
        else:
            if password is None:
                password = typer.prompt("Password", hide_input=True)
            session = nb.sign_in(email, password)
    typer.echo(f"Signed in as {session.user.email}")


@app.command()
def logout(store: StoreOption = None):
    """Sign out."""
    nb = _get_notebook(store)
    nb.sign_out()
    typer.echo("Signed out")


@app.command()
def whoami(store: StoreOption = None):
    """Show the signed-in user."""
    nb = _get_notebook(store)
    user = nb.current_user
    if user is None:
        typer.echo("Not signed in", err=True)
        raise typer.Exit(1)
    if _get_json_output():
        typer.echo(json.dumps({"id": user.id, "email": user.email, "provider": user.provider}))
    else:
        typer.echo(f"{user.email} ({user.provider})")


# -----------------------------------------------------------------------------
# Entries
# -----------------------------------------------------------------------------

@app.command()
def add(
    title: Annotated[str, typer.Argument(help="Entry title (optional for journal: defaults to the date)")] = "",
    content: Annotated[str, typer.Option("--content", "-c", help="Body text")] = "",
    mode: Annotated[str, typer.Option(
        "--mode", "-m",
        help="idea, quick-note, journal, flash, note or standard",
    )] = EntryMode.STANDARD.value,
    category: Annotated[Optional[str], typer.Option("--category", "-C", help="Category")] = None,
    tags: TagOption = None,
    url: Annotated[str, typer.Option("--url", "-u", help="Link (YouTube/Vimeo links are playable)")] = "",
    explanation: Annotated[str, typer.Option("--explanation", "-e", help="Explanation or notes")] = "",
    mood: Annotated[Optional[str], typer.Option("--mood", help="Journal mood: joyful, calm, anxious, sad, angry")] = None,
    date: Annotated[Optional[str], typer.Option("--date", help="Journal date (YYYY-MM-DD)")] = None,
    favorite: Annotated[bool, typer.Option("--fav", help="Mark as favorite")] = False,
    pinned: Annotated[bool, typer.Option("--pin", help="Pin to the top")] = False,
    autofill: Annotated[bool, typer.Option("--autofill", help="Fill title and description from the URL")] = False,
    store: StoreOption = None,
):
    """
    Add an entry.

    \b
    Examples:
        onmind add "Read SICP" --mode idea --tag books
        onmind add --mode journal --mood calm -c "Today was fine"
        onmind add "" --url https://youtu.be/abc --autofill
    """
    nb = _get_notebook(store)
    _require_user(nb)
    with _user_errors():
        draft = nb.open_form(parse_mode(mode))
        draft.title = title
        draft.content = content
        draft.url = url
        draft.explanation = explanation
        draft.tags = list(tags or [])
        draft.is_favorite = favorite
        draft.is_pinned = pinned
        if category:
            draft.category = category
        if mood:
            draft.set_mood(mood)
        if date:
            draft.set_journal_date(date)
        if autofill and url:
            result = nb.autofill_draft()
            if not result.success:
                typer.echo(f"Could not fetch metadata: {result.error}", err=True)
        entry = nb.save_form()
    _echo_entry(entry)


@app.command()
def edit(
    id: Annotated[str, typer.Argument(help="Entry ID")],
    title: Annotated[Optional[str], typer.Option("--title", help="New title")] = None,
    content: Annotated[Optional[str], typer.Option("--content", "-c", help="New body text")] = None,
    category: Annotated[Optional[str], typer.Option("--category", "-C", help="New category")] = None,
    tags: TagOption = None,
    remove_tags: Annotated[Optional[list[str]], typer.Option(
        "--remove-tag", "-r", help="Tag to remove (repeatable)",
    )] = None,
    url: Annotated[Optional[str], typer.Option("--url", "-u", help="New link")] = None,
    explanation: Annotated[Optional[str], typer.Option("--explanation", "-e", help="New explanation")] = None,
    mood: Annotated[Optional[str], typer.Option("--mood", help="Journal mood")] = None,
    autofill: Annotated[bool, typer.Option("--autofill", help="Refill title and description from the URL")] = False,
    store: StoreOption = None,
):
    """
    Edit an entry in the form that matches it.

    Reserved tags (idea, Journal, Flash Card, Quick Note, moods) are kept
    automatically.
    """
    nb = _get_notebook(store)
    _require_user(nb)
    with _user_errors():
        draft = nb.edit_entry(id)
        if title is not None:
            draft.title = title
        if content is not None:
            draft.content = content
        if category is not None:
            draft.category = category
        if url is not None:
            draft.url = url
        if explanation is not None:
            draft.explanation = explanation
        if mood is not None:
            draft.set_mood(mood)
        for tag in tags or []:
            if tag not in draft.tags:
                draft.tags.append(tag)
        if remove_tags:
            draft.tags = [t for t in draft.tags if t not in remove_tags]
        if autofill and draft.url:
            nb.autofill_draft()
        entry = nb.save_form()
    _echo_entry(entry)


@app.command()
def show(
    id: Annotated[str, typer.Argument(help="Entry ID")],
    store: StoreOption = None,
):
    """Show one entry in full."""
    nb = _get_notebook(store)
    _require_user(nb)
    with _user_errors():
        entry = nb.get(id)
    _echo_entry(entry)


@app.command("list")
def list_entries(
    query: Annotated[Optional[str], typer.Argument(
        help="Search title, content, explanation and tags",
    )] = None,
    category: Annotated[Optional[str], typer.Option(
        "--category", "-C",
        help="Only this category ('Favorites' for favorites)",
    )] = None,
    tags: Annotated[Optional[list[str]], typer.Option(
        "--tag", "-t",
        help="Require tag (repeatable; all must match)",
    )] = None,
    show_all: Annotated[bool, typer.Option(
        "--all", "-a",
        help="List entries even with no other filter",
    )] = False,
    hide_placeholders: Annotated[bool, typer.Option(
        "--hide-placeholders",
        help="Leave out entries created only to hold a new category",
    )] = False,
    store: StoreOption = None,
):
    """
    List entries, pinned first then newest.

    Nothing is listed unless a query, category, tag or --all is given.
    """
    nb = _get_notebook(store)
    _require_user(nb)
    nb.filters.search_query = query or ""
    nb.filters.selected_category = category or ""
    nb.filters.selected_tags = list(tags or [])
    nb.filters.show_all_entries = show_all
    nb.filters.hide_placeholders = hide_placeholders
    if nb.filters.is_idle:
        typer.echo("Give a query, --category, --tag or --all to list entries.", err=True)
        return
    _echo_entries(nb.visible_entries())


@app.command()
def delete(
    id: Annotated[str, typer.Argument(help="Entry ID")],
    store: StoreOption = None,
):
    """Delete an entry."""
    nb = _get_notebook(store)
    _require_user(nb)
    with _user_errors():
        nb.delete(id)
    typer.echo(f"Deleted {id}")


@app.command()
def fav(
    id: Annotated[str, typer.Argument(help="Entry ID")],
    store: StoreOption = None,
):
    """Toggle favorite."""
    nb = _get_notebook(store)
    _require_user(nb)
    with _user_errors():
        entry = nb.toggle_favorite(id)
    typer.echo(f"{entry.id} {'favorited' if entry.is_favorite else 'unfavorited'}")


@app.command()
def pin(
    id: Annotated[str, typer.Argument(help="Entry ID")],
    store: StoreOption = None,
):
    """Toggle pin."""
    nb = _get_notebook(store)
    _require_user(nb)
    with _user_errors():
        entry = nb.toggle_pin(id)
    typer.echo(f"{entry.id} {'pinned' if entry.is_pinned else 'unpinned'}")


# -----------------------------------------------------------------------------
# Tags
# -----------------------------------------------------------------------------

@app.command("tags")
def list_tags(
    category: Annotated[Optional[str], typer.Option(
        "--category", "-C",
        help="Only tags used in this category ('All', 'Favorites', or a category)",
    )] = None,
    sort: Annotated[str, typer.Option(
        "--sort",
        help=f"Sort order: {', '.join(SORT_OPTIONS)}",
    )] = SORT_A_Z,
    counts: Annotated[bool, typer.Option("--counts", help="Show entry and video counts")] = False,
    store: StoreOption = None,
):
    """List tags in use."""
    nb = _get_notebook(store)
    _require_user(nb)
    nb.filters.selected_category = category or ALL_CATEGORIES
    try:
        tags = nb.tag_suggestions(sort)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    tag_counts = nb.tag_counts()
    video_counts = nb.youtube_counts()
    if _get_json_output():
        typer.echo(json.dumps([
            {"tag": t, "entries": tag_counts.get(t, 0), "videos": video_counts.get(t, 0)}
            for t in tags
        ], indent=2))
        return
    for tag in tags:
        if counts:
            videos = video_counts.get(tag, 0)
            suffix = f", {videos} videos" if videos else ""
            typer.echo(f"{tag}  ({tag_counts.get(tag, 0)}{suffix})")
        else:
            typer.echo(tag)


@app.command("tag-rename")
def tag_rename(
    old: Annotated[str, typer.Argument(help="Current tag")],
    new: Annotated[str, typer.Argument(help="New tag (merges if it already exists)")],
    store: StoreOption = None,
):
    """Rename a tag on every entry."""
    nb = _get_notebook(store)
    _require_user(nb)
    with _user_errors():
        ids = nb.rename_tag(old, new)
    _echo_ids(f"Renamed tag {old!r} to {new!r}", ids)


@app.command("tag-delete")
def tag_delete(
    tag: Annotated[str, typer.Argument(help="Tag to remove from every entry")],
    store: StoreOption = None,
):
    """Remove a tag from every entry. Safe to re-run after a failure."""
    nb = _get_notebook(store)
    _require_user(nb)
    with _user_errors():
        ids = nb.delete_tag(tag)
    _echo_ids(f"Deleted tag {tag!r}", ids)


# -----------------------------------------------------------------------------
# Categories
# -----------------------------------------------------------------------------

@app.command("categories")
def list_categories(store: StoreOption = None):
    """List categories: defaults first, then your own."""
    nb = _get_notebook(store)
    _require_user(nb)
    custom = set(nb.custom_categories())
    cats = nb.categories()
    if _get_json_output():
        typer.echo(json.dumps([{"name": c, "custom": c in custom} for c in cats], indent=2))
        return
    for c in cats:
        typer.echo(f"{c}{'  (custom)' if c in custom else ''}")


@app.command("category-add")
def category_add(
    name: Annotated[str, typer.Argument(help="New category name")],
    store: StoreOption = None,
):
    """Add a custom category."""
    nb = _get_notebook(store)
    _require_user(nb)
    with _user_errors():
        nb.add_category(name)
    typer.echo(f"Added category {name!r}")


@app.command("category-rename")
def category_rename(
    old: Annotated[str, typer.Argument(help="Current custom category")],
    new: Annotated[str, typer.Argument(help="New name")],
    store: StoreOption = None,
):
    """Rename a custom category on every entry."""
    nb = _get_notebook(store)
    _require_user(nb)
    with _user_errors():
        ids = nb.rename_category(old, new)
    _echo_ids(f"Renamed category {old!r} to {new!r}", ids)


@app.command("category-delete")
def category_delete(
    name: Annotated[str, typer.Argument(help="Custom category to delete")],
    to: Annotated[str, typer.Option(
        "--to",
        help="Category its entries move to",
    )] = UNCATEGORIZED,
    store: StoreOption = None,
):
    """Delete a custom category. Its entries are moved, never deleted."""
    nb = _get_notebook(store)
    _require_user(nb)
    with _user_errors():
        ids = nb.delete_category(name, to)
    _echo_ids(f"Deleted category {name!r}, entries moved to {to!r}", ids)


# -----------------------------------------------------------------------------
# Metadata, playlist, import/export
# -----------------------------------------------------------------------------

@app.command()
def meta(
    url: Annotated[str, typer.Argument(help="URL to look up")],
    store: StoreOption = None,
):
    """Fetch title and description for a URL."""
    nb = _get_notebook(store)
    result = nb.fetch_metadata(url)
    if _get_json_output():
        typer.echo(json.dumps({
            "success": result.success,
            "title": result.title,
            "description": result.description,
            "channel_name": result.channel_name,
            "error": result.error,
        }, indent=2))
        if not result.success:
            raise typer.Exit(1)
        return
    if not result.success:
        typer.echo(f"Error: {result.error}", err=True)
        raise typer.Exit(1)
    typer.echo(f"title: {result.title}")
    if result.description:
        typer.echo(f"description: {result.description}")
    if result.channel_name:
        typer.echo(f"channel: {result.channel_name}")


@app.command()
def playlist(
    tag: Annotated[str, typer.Argument(help="Play the YouTube entries carrying this tag")],
    start: Annotated[int, typer.Option("--start", help="Position to start from (1-based)")] = 1,
    store: StoreOption = None,
):
    """Show the playlist for a tag, starting at --start."""
    nb = _get_notebook(store)
    _require_user(nb)
    if not nb.play_tag(tag):
        typer.echo(f"No YouTube videos tagged {tag!r}", err=True)
        raise typer.Exit(1)
    if not 1 <= start <= nb.playlist.total:
        typer.echo(f"Error: --start must be between 1 and {nb.playlist.total}", err=True)
        raise typer.Exit(1)
    while nb.playlist.current_index < start - 1:
        nb.playlist.next()
    rows = []
    while True:
        entry = nb.playlist.current()
        rows.append((nb.playlist.current_index + 1, entry))
        if not nb.playlist.next():
            break
    if _get_json_output():
        typer.echo(json.dumps([
            {"position": pos, "id": e.id, "title": e.title, "url": e.url} for pos, e in rows
        ], indent=2))
        return
    for pos, entry in rows:
        typer.echo(f"{pos}/{nb.playlist.total}  {entry.title}  {entry.url}")


def _detect_format(path: Path, fmt: Optional[str]) -> str:
    fmt = (fmt or path.suffix.lstrip(".") or "json").lower()
    if fmt not in ("csv", "json"):
        typer.echo(f"Error: unsupported format {fmt!r} (use csv or json)", err=True)
        raise typer.Exit(1)
    return fmt


@app.command("export")
def export_cmd(
    path: Annotated[Path, typer.Argument(help="Output file ('-' for stdout)")],
    fmt: Annotated[Optional[str], typer.Option(
        "--format", "-f", help="csv or json (default: from the file suffix)",
    )] = None,
    template: Annotated[bool, typer.Option(
        "--template", help="Write an empty CSV import template instead",
    )] = False,
    store: StoreOption = None,
):
    """Export all entries to CSV or JSON."""
    from . import data_io

    to_stdout = str(path) == "-"
    fmt = "csv" if template else _detect_format(path, fmt if not to_stdout else (fmt or "json"))
    # Built in memory first; the target is only opened once the export succeeded
    buf = io.StringIO(newline="")
    if template:
        data_io.csv_template(buf)
        count = 0
    else:
        nb = _get_notebook(store)
        _require_user(nb)
        with _user_errors():
            if fmt == "csv":
                count = nb.export_csv(buf)
            else:
                data = nb.export_data()
                json.dump(data, buf, indent=2)
                buf.write("\n")
                count = len(data["entries"])
    if to_stdout:
        sys.stdout.write(buf.getvalue())
    else:
        with open(path, "w", encoding="utf-8", newline="") as out:
            out.write(buf.getvalue())
        typer.echo(f"Wrote {count} entries to {path}" if not template else f"Wrote template to {path}")


@app.command("import")
def import_cmd(
    path: Annotated[Path, typer.Argument(help="CSV or JSON file to import")],
    fmt: Annotated[Optional[str], typer.Option(
        "--format", "-f", help="csv or json (default: from the file suffix)",
    )] = None,
    store: StoreOption = None,
):
    """Import entries from a CSV or onmind JSON export."""
    from . import data_io

    if not path.exists():
        typer.echo(f"Error: file not found: {path}", err=True)
        raise typer.Exit(1)
    fmt = _detect_format(path, fmt)
    nb = _get_notebook(store)
    _require_user(nb)
    with _user_errors():
        with open(path, encoding="utf-8", newline="") as f:
            if fmt == "csv":
                stats = nb.import_csv(f)
            else:
                stats = nb.import_data(data_io.load_json(f))
    if _get_json_output():
        typer.echo(json.dumps(stats))
    else:
        typer.echo(f"Imported {stats['imported']} entries ({stats['failed']} failed)")


def main():
    try:
        app()
    except SystemExit:
        raise  # Let typer handle exit codes
    except KeyboardInterrupt:
        raise SystemExit(130)  # Standard exit code for Ctrl+C
    except Exception as e:
        # Log full traceback to file, show clean message to user
        from .errors import log_exception
        log_path = log_exception(e, context="onmind CLI")
        typer.echo(f"Error: {e}", err=True)
        typer.echo(f"Details logged to {log_path}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
