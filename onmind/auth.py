"""
Local authentication provider.

Users live in a SQLite table beside the entries. A session is the signed-in
user; its id is the owner reference that scopes every entry query. When a
session file is configured the session survives process restarts (the CLI
relies on this).
"""

import hashlib
import hmac
import json
import logging
import secrets
import sqlite3
import uuid
from pathlib import Path
from typing import Callable, Optional

from .errors import AuthError
from .types import Session, User, utc_now

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"

_PBKDF2_ITERATIONS = 200_000
MIN_PASSWORD_LENGTH = 6

AuthCallback = Callable[[str, Optional[Session]], None]


def _hash_password(password: str, salt: bytes) -> str:
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, _PBKDF2_ITERATIONS)
    return digest.hex()


def _normalize_email(email: str) -> str:
    email = (email or "").strip().lower()
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        raise AuthError(f"Invalid email address: {email!r}")
    return email


class LocalAuthProvider:
    """
    Email/password and OAuth sign-in backed by SQLite.

    OAuth sign-in trusts the identity provider to have verified the email;
    the first OAuth sign-in for an email creates the user.
    """

    def __init__(self, db_path: Path, session_path: Optional[Path] = None):
        """
        Args:
            db_path: SQLite database file (shared with the document store)
            session_path: Optional JSON file that persists the active session
        """
        self._db_path = Path(db_path)
        self._session_path = Path(session_path) if session_path else None
        self._session: Optional[Session] = None
        self._listeners: list[AuthCallback] = []
        self._conn: Optional[sqlite3.Connection] = None
        self._init_db()
        self._restore_session()

    def _init_db(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                email TEXT NOT NULL UNIQUE,
                name TEXT,
                provider TEXT NOT NULL,
                password_hash TEXT,
                salt TEXT,
                created_at TEXT NOT NULL,
                last_sign_in_at TEXT
            )
        """)
        self._conn.commit()

    # -------------------------------------------------------------------------
    # Session persistence
    # -------------------------------------------------------------------------

    def _restore_session(self) -> None:
        if self._session_path is None or not self._session_path.exists():
            return
        try:
            data = json.loads(self._session_path.read_text())
            user_id = data["user_id"]
        except (OSError, ValueError, KeyError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self._session_path, e)
            return
        user = self._get_user_by_id(user_id)
        if user is None:
            logger.info("Session refers to unknown user %s; discarding", user_id)
            return
        self._session = Session(user=user, created_at=data.get("created_at", utc_now()))

    def _persist_session(self) -> None:
        if self._session_path is None:
            return
        if self._session is None:
            self._session_path.unlink(missing_ok=True)
            return
        self._session_path.parent.mkdir(parents=True, exist_ok=True)
        self._session_path.write_text(json.dumps({
            "user_id": self._session.user.id,
            "created_at": self._session.created_at,
        }))

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(id=row["id"], email=row["email"], name=row["name"], provider=row["provider"])

    def _get_user_by_id(self, user_id: str) -> Optional[User]:
        row = self._conn.execute(
            "SELECT * FROM users WHERE id = ?", (user_id,)
        ).fetchone()
        return self._row_to_user(row) if row else None

    def _get_row_by_email(self, email: str) -> Optional[sqlite3.Row]:
        return self._conn.execute(
            "SELECT * FROM users WHERE email = ?", (email,)
        ).fetchone()

    def _insert_user(self, email: str, provider: str, password: Optional[str] = None) -> User:
        user_id = uuid.uuid4().hex
        password_hash = salt_hex = None
        if password is not None:
            salt = secrets.token_bytes(16)
            salt_hex = salt.hex()
            password_hash = _hash_password(password, salt)
        self._conn.execute("""
            INSERT INTO users (id, email, name, provider, password_hash, salt, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (user_id, email, None, provider, password_hash, salt_hex, utc_now()))
        self._conn.commit()
        return User(id=user_id, email=email, provider=provider)

    def _start_session(self, user: User) -> Session:
        self._conn.execute(
            "UPDATE users SET last_sign_in_at = ? WHERE id = ?", (utc_now(), user.id)
        )
        self._conn.commit()
        self._session = Session(user=user)
        self._persist_session()
        logger.info("Signed in %s via %s", user.email, user.provider)
        self._notify(SIGNED_IN, self._session)
        return self._session

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def sign_up(self, email: str, password: str) -> User:
        """Register a new email/password user. Does not sign in."""
        email = _normalize_email(email)
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AuthError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if self._get_row_by_email(email) is not None:
            raise AuthError(f"User already registered: {email}")
        return self._insert_user(email, "email", password)

    def sign_in(self, email: str, password: str) -> Session:
        email = _normalize_email(email)
        row = self._get_row_by_email(email)
        if row is None or row["password_hash"] is None:
            raise AuthError("Invalid login credentials")
        expected = row["password_hash"]
        actual = _hash_password(password or "", bytes.fromhex(row["salt"]))
        if not hmac.compare_digest(expected, actual):
            raise AuthError("Invalid login credentials")
        return self._start_session(self._row_to_user(row))

    def sign_in_with_oauth(self, provider: str, email: str) -> Session:
        """Sign in with an identity already verified by an external provider."""
        if not provider:
            raise AuthError("OAuth provider is required")
        email = _normalize_email(email)
        row = self._get_row_by_email(email)
        user = self._row_to_user(row) if row else self._insert_user(email, provider)
        return self._start_session(user)

    def sign_out(self) -> None:
        if self._session is None:
            return
        logger.info("Signed out %s", self._session.user.email)
        self._session = None
        self._persist_session()
        self._notify(SIGNED_OUT, None)

    def on_auth_state_change(self, callback: AuthCallback) -> Callable[[], None]:
        """
        Register a listener for sign-in/sign-out events.

        Returns:
            A function that unsubscribes the listener
        """
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self, event: str, session: Optional[Session]) -> None:
        for callback in list(self._listeners):
            callback(event, session)

    def get_current_user(self) -> Optional[User]:
        return self._session.user if self._session else None

    def get_session(self) -> Optional[Session]:
        return self._session

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __del__(self):
        self.close()
