"""Session store adapters.

Both implement SessionStorePort for the auth component. Keys are session
token hashes, never raw tokens.
"""

import sqlite3
from datetime import datetime
from uuid import UUID

from sculp.adapters.sqlite.repos import SQLiteRepoBase
from sculp.domain.entities import Session


class InMemorySessionStore:
    """In-memory session storage - suitable for tests and single-process dev."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def get(self, token: str) -> Session | None:
        return self._sessions.get(token)

    def save(self, token: str, session: Session) -> None:
        self._sessions[token] = session

    def delete(self, token: str) -> None:
        self._sessions.pop(token, None)

    def delete_by_user(self, user_id: UUID) -> int:
        """Delete all sessions for a user. Returns count deleted."""
        tokens_to_remove = [k for k, v in self._sessions.items() if str(v.user_id) == str(user_id)]
        for token in tokens_to_remove:
            del self._sessions[token]
        return len(tokens_to_remove)

    def clear(self) -> None:
        """Clear all sessions - useful for testing."""
        self._sessions.clear()


class SQLiteSessionStore(SQLiteRepoBase):
    """Sessions persisted in the ``sessions`` table so they survive restarts."""

    def get(self, token: str) -> Session | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM sessions WHERE token_hash = ?", (token,)
            ).fetchone()
            if not row:
                return None
            return Session(
                id=row["id"],
                user_id=UUID(row["user_id"]),
                token_hash=row["token_hash"],
                expires_at=datetime.fromisoformat(row["expires_at"]),
                created_at=datetime.fromisoformat(row["created_at"]),
            )
        finally:
            if self._should_close():
                conn.close()

    def save(self, token: str, session: Session) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO sessions (id, user_id, token_hash, expires_at, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(token_hash) DO UPDATE SET
                    expires_at=excluded.expires_at
                """,
                (
                    session.id,
                    str(session.user_id),
                    token,
                    session.expires_at.isoformat(),
                    session.created_at.isoformat(),
                ),
            )
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise
        finally:
            if self._should_close():
                conn.close()

    def delete(self, token: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM sessions WHERE token_hash = ?", (token,))
            conn.commit()
        finally:
            if self._should_close():
                conn.close()

    def delete_by_user(self, user_id: UUID) -> int:
        conn = self._get_conn()
        try:
            cursor = conn.execute("DELETE FROM sessions WHERE user_id = ?", (str(user_id),))
            conn.commit()
            return cursor.rowcount
        finally:
            if self._should_close():
                conn.close()
