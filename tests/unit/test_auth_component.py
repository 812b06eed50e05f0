"""
Tests for the auth component: credentials, sessions, sign-up.
"""

from __future__ import annotations

from uuid import UUID, uuid4

import pytest

from sculp.adapters.auth.crypto import JWTAuthAdapter
from sculp.adapters.auth.session_store import InMemorySessionStore
from sculp.components.auth import (
    INVALID_CREDENTIALS,
    CreateSessionInput,
    CreateUserInput,
    DestroySessionInput,
    LoginInput,
    VerifySessionInput,
    run_create_session,
    run_create_user,
    run_destroy_session,
    run_login,
    run_revoke_user_sessions,
    run_verify_session,
)
from sculp.domain.entities import User

# --- Mocks ---


class MockUserRepo:
    """In-memory user repository."""

    def __init__(self) -> None:
        self._users: dict[UUID, User] = {}

    def get_by_id(self, user_id: UUID) -> User | None:
        return self._users.get(user_id)

    def get_by_email(self, email: str) -> User | None:
        for user in self._users.values():
            if user.email == email:
                return user
        return None

    def save(self, user: User) -> User:
        self._users[user.id] = user
        return user


# --- Fixtures ---


@pytest.fixture
def adapter() -> JWTAuthAdapter:
    return JWTAuthAdapter()


@pytest.fixture
def user_repo() -> MockUserRepo:
    return MockUserRepo()


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def user(user_repo: MockUserRepo, adapter: JWTAuthAdapter) -> User:
    u = User(email="lifter@example.com", password_hash=adapter.hash_password("correct-horse"))
    user_repo.save(u)
    return u


# --- Login ---


class TestLogin:
    def test_valid_credentials(self, user: User, user_repo, adapter) -> None:
        result = run_login(LoginInput("lifter@example.com", "correct-horse"), user_repo, adapter)
        assert result.success
        assert result.user is not None
        assert result.user.id == user.id

    def test_email_is_case_insensitive(self, user: User, user_repo, adapter) -> None:
        inp = LoginInput(" Lifter@Example.com ", "correct-horse")
        result = run_login(inp, user_repo, adapter)
        assert result.success

    def test_wrong_password(self, user: User, user_repo, adapter) -> None:
        result = run_login(LoginInput("lifter@example.com", "wrong-horse"), user_repo, adapter)
        assert not result.success
        assert result.error == INVALID_CREDENTIALS

    def test_unknown_email_has_same_message(self, user_repo, adapter) -> None:
        result = run_login(LoginInput("nobody@example.com", "correct-horse"), user_repo, adapter)
        assert not result.success
        assert result.error == INVALID_CREDENTIALS

    def test_unrecognised_hash_fails_closed(self, user_repo, adapter) -> None:
        user_repo.save(User(email="legacy@example.com", password_hash="not-a-hash"))
        result = run_login(LoginInput("legacy@example.com", "anything1"), user_repo, adapter)
        assert not result.success


# --- Sessions ---


class TestSessions:
    def test_create_and_verify(self, user: User, user_repo, adapter, store, clock) -> None:
        created = run_create_session(CreateSessionInput(user=user), adapter, store, clock)
        assert created.success
        assert created.token_raw

        verified = run_verify_session(
            VerifySessionInput(token=created.token_raw), user_repo, adapter, store, clock
        )
        assert verified.success
        assert verified.user is not None
        assert verified.user.id == user.id

    def test_store_holds_token_hash_only(self, user: User, adapter, store, clock) -> None:
        created = run_create_session(CreateSessionInput(user=user), adapter, store, clock)
        assert store.get(created.token_raw) is None
        assert store.get(adapter.hash_token(created.token_raw)) is not None

    def test_sessions_are_distinct(self, user: User, adapter, store, clock) -> None:
        first = run_create_session(CreateSessionInput(user=user), adapter, store, clock)
        second = run_create_session(CreateSessionInput(user=user), adapter, store, clock)
        assert first.token_raw != second.token_raw

    def test_expired_session_is_deleted(
        self, user: User, user_repo, adapter, store, clock
    ) -> None:
        created = run_create_session(
            CreateSessionInput(user=user, ttl_minutes=10), adapter, store, clock
        )
        clock.advance(11 * 60)

        verified = run_verify_session(
            VerifySessionInput(token=created.token_raw), user_repo, adapter, store, clock
        )
        assert not verified.success
        assert verified.error == "Session expired"
        assert store.get(adapter.hash_token(created.token_raw)) is None

    def test_garbage_token(self, user_repo, adapter, store, clock) -> None:
        verified = run_verify_session(
            VerifySessionInput(token="garbage"), user_repo, adapter, store, clock
        )
        assert not verified.success

    def test_signed_token_without_session(
        self, user: User, user_repo, adapter, store, clock
    ) -> None:
        token = adapter.create_token(user.id, 60)
        verified = run_verify_session(
            VerifySessionInput(token=token), user_repo, adapter, store, clock
        )
        assert not verified.success
        assert verified.error == "Session not found"

    def test_destroy(self, user: User, user_repo, adapter, store, clock) -> None:
        created = run_create_session(CreateSessionInput(user=user), adapter, store, clock)
        run_destroy_session(DestroySessionInput(token=created.token_raw), adapter, store)

        verified = run_verify_session(
            VerifySessionInput(token=created.token_raw), user_repo, adapter, store, clock
        )
        assert not verified.success

    def test_revoke_user_sessions(self, user: User, adapter, store, clock) -> None:
        run_create_session(CreateSessionInput(user=user), adapter, store, clock)
        run_create_session(CreateSessionInput(user=user), adapter, store, clock)
        assert run_revoke_user_sessions(user.id, store) == 2
        assert run_revoke_user_sessions(uuid4(), store) == 0


# --- Sign-up ---


class TestCreateUser:
    def test_creates_user_with_hashed_password(self, user_repo, adapter, clock) -> None:
        result = run_create_user(
            CreateUserInput("New@Example.com", "long-enough"), user_repo, adapter, clock
        )
        assert result.success
        assert result.user is not None
        assert result.user.email == "new@example.com"
        assert result.user.password_hash != "long-enough"
        assert adapter.verify_password("long-enough", result.user.password_hash)
        assert result.user.created_at == clock.now_utc()

    def test_duplicate_email(self, user: User, user_repo, adapter, clock) -> None:
        result = run_create_user(
            CreateUserInput("lifter@example.com", "long-enough"), user_repo, adapter, clock
        )
        assert not result.success
        assert result.error == "An account with this email already exists."
