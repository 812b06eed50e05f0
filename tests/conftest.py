from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from sculp.adapters.payments.checkout_stub import CheckoutStubAdapter
from sculp.adapters.sqlite.migrator import SQLiteMigrator
from sculp.adapters.sqlite.repos import SQLiteUserRepo
from sculp.api.auth_utils import get_password_hash
from sculp.api.deps import Settings, get_checkout_gateway, get_rate_limiter, get_settings
from sculp.api.main import app
from sculp.app_shell.rate_limit import RateLimiter
from sculp.domain.entities import Subscription, User
from sculp.rules.loader import load_rules
from sculp.rules.models import Rules

PROJECT_ROOT = Path(__file__).resolve().parent.parent
TEST_PASSWORD = "correct-horse"


class MockTimePort:
    """Deterministic clock for components and adapters."""

    def __init__(self, now: datetime | None = None) -> None:
        self._now = now or datetime(2025, 1, 1, 12, 0, tzinfo=UTC)

    def now_utc(self) -> datetime:
        return self._now

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: int) -> None:
        self._now += timedelta(seconds=seconds)


@pytest.fixture
def rules_path() -> Path:
    """The real rules file from the project root."""
    return PROJECT_ROOT / "rules.yaml"


@pytest.fixture
def rules(rules_path: Path) -> Rules:
    return load_rules(rules_path)


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """Temporary database with all migrations applied."""
    path = str(tmp_path / "data" / "sculp.db")
    SQLiteMigrator(path).run_migrations()
    return path


@pytest.fixture
def settings(tmp_path: Path, db_path: str, rules_path: Path) -> Settings:
    s = Settings()
    s.data_dir = tmp_path / "data"
    s.db_path = db_path
    s.rules_path = rules_path
    s.base_url = "http://testserver"
    s.stripe_secret_key = None
    s.stripe_price_id = "price_test"
    s.stripe_webhook_secret = "whsec_test"
    return s


@pytest.fixture
def checkout_stub() -> CheckoutStubAdapter:
    return CheckoutStubAdapter(base_url="http://testserver")


@pytest.fixture
def client(
    settings: Settings, checkout_stub: CheckoutStubAdapter, rules: Rules
) -> Iterator[TestClient]:
    """
    App client on a temporary database.

    Redirects are not followed so tests can assert on them. The lifespan is
    not entered; the database is migrated by the db_path fixture.
    """
    limiter = RateLimiter(rules.rate_limits)
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_checkout_gateway] = lambda: checkout_stub
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    yield TestClient(app, follow_redirects=False)
    app.dependency_overrides.clear()


@pytest.fixture
def user_repo(db_path: str) -> SQLiteUserRepo:
    return SQLiteUserRepo(db_path)


@pytest.fixture
def make_user(user_repo: SQLiteUserRepo):
    """Factory for stored users; subscribed users can use the app."""

    def _make(
        email: str = "lifter@example.com",
        password: str = TEST_PASSWORD,
        subscribed: bool = True,
        customer_id: str | None = None,
    ) -> User:
        user = User(
            id=uuid4(),
            email=email,
            password_hash=get_password_hash(password),
            stripe_customer_id=customer_id,
        )
        if subscribed:
            user.stripe_customer_id = customer_id or "cus_test"
            user.subscription = Subscription(stripe_subscription_id="sub_test", status="trialing")
        user_repo.save(user)
        return user

    return _make


@pytest.fixture
def signed_in(client: TestClient, make_user) -> User:
    """A subscribed user whose session cookie is held by the client."""
    user = make_user()
    response = client.post(
        "/auth/sign-in", data={"email": user.email, "password": TEST_PASSWORD}
    )
    assert response.status_code == 302
    return user


@pytest.fixture
def clock() -> MockTimePort:
    return MockTimePort()
