from datetime import datetime
from typing import Protocol
from uuid import UUID

from sculp.domain.entities import Session, User


class UserRepoPort(Protocol):
    def get_by_email(self, email: str) -> User | None: ...
    def get_by_id(self, user_id: UUID) -> User | None: ...
    def save(self, user: User) -> User: ...


class AuthAdapterPort(Protocol):
    def verify_password(self, plain: str, hashed: str) -> bool: ...
    def hash_password(self, plain: str) -> str: ...
    def hash_token(self, token: str) -> str: ...
    def create_token(self, user_id: object, ttl_minutes: int) -> str: ...
    def validate_token(self, token: str) -> str | None: ...


class TimePort(Protocol):
    """Port for time operations - enables deterministic testing."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...


class SessionStorePort(Protocol):
    """Port for session storage, keyed by the (hashed) session token."""

    def get(self, token: str) -> Session | None:
        """Get session by token."""
        ...

    def save(self, token: str, session: Session) -> None:
        """Save session with token as key."""
        ...

    def delete(self, token: str) -> None:
        """Delete session by token."""
        ...

    def delete_by_user(self, user_id: UUID) -> int:
        """Delete all sessions for a user. Returns count deleted."""
        ...
