"""
Errors raised by onmind, and error logging for the CLI.

Logs full stack traces for debugging while showing clean messages to users.
"""

import os
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


class OnMindError(Exception):
    """Base class for errors surfaced to the user as a one-line notification."""


class Unauthorized(OnMindError):
    """An entry-store operation was attempted with no active session."""

    def __init__(self, message: str = "No active session"):
        super().__init__(message)


class AuthError(OnMindError):
    """Sign-up or sign-in was rejected."""


class EntryNotFound(OnMindError):
    """No entry with this id exists for the current owner."""

    def __init__(self, entry_id: str):
        super().__init__(f"Entry not found: {entry_id}")
        self.entry_id = entry_id


class InvalidEntry(OnMindError, ValueError):
    """Entry fields failed validation."""


class DuplicateCategory(OnMindError):
    def __init__(self, name: str):
        super().__init__(f"This category already exists: {name!r}")
        self.name = name


class CannotDeleteDefault(OnMindError):
    def __init__(self, name: str):
        super().__init__(f"Cannot delete default category {name!r}")
        self.name = name


class CannotRenameDefault(OnMindError):
    def __init__(self, name: str):
        super().__init__(f"Cannot rename default category {name!r}")
        self.name = name


class PartialFanoutFailure(OnMindError):
    """
    A rename/delete fan-out stopped after a failed write.

    Entries listed in ``updated`` keep their new value; nothing is rolled back.
    Re-running the same operation is safe and completes the migration.
    """

    def __init__(
        self,
        operation: str,
        updated: list[str],
        failed_id: str,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(
            f"Failed to {operation}: entry {failed_id} could not be saved "
            f"({len(updated)} already updated)"
        )
        self.operation = operation
        self.updated = list(updated)
        self.failed_id = failed_id
        self.cause = cause


class MetadataFetchFailure(OnMindError):
    """URL metadata lookup failed or returned unusable data."""


def _error_log_path() -> Path:
    """Resolve error log path, respecting ONMIND_STORE_PATH."""
    store = os.environ.get("ONMIND_STORE_PATH")
    if store:
        return Path(store) / "onmind-errors.log"
    return Path.home() / ".onmind" / "onmind-errors.log"


def log_exception(exc: Exception, context: str = "") -> Path:
    """
    Log exception with full traceback to file.

    Args:
        exc: The exception that occurred
        context: Optional context string (e.g., command name)

    Returns:
        Path to the error log file
    """
    log_path = _error_log_path()
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
        with os.fdopen(fd, "a") as f:
            f.write(f"\n{'='*60}\n")
            f.write(f"[{timestamp}]")
            if context:
                f.write(f" {context}")
            f.write("\n")
            f.write("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    except OSError:
        pass  # Can't write error log; don't crash over it
    return log_path
