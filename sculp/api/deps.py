import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends, Request

from sculp.adapters.auth.crypto import JWTAuthAdapter
from sculp.adapters.auth.session_store import SQLiteSessionStore
from sculp.adapters.clock import SystemClock
from sculp.adapters.payments.checkout_stub import CheckoutStubAdapter
from sculp.adapters.payments.stripe_checkout import StripeCheckoutAdapter
from sculp.adapters.sqlite.repos import (
    SQLiteExerciseRepo,
    SQLiteFolderRepo,
    SQLiteMesocycleRepo,
    SQLiteUserRepo,
)
from sculp.api.errors import AuthRedirect
from sculp.app_shell.rate_limit import RateLimiter
from sculp.components.auth import VerifySessionInput, run_verify_session
from sculp.components.checkout import CheckoutConfig, CheckoutGatewayPort
from sculp.config_routes import config_routes
from sculp.domain.entities import User
from sculp.rules.loader import load_rules
from sculp.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("SCULP_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "sculp.db")
        self.rules_path = self.base_dir / "rules.yaml"
        self.base_url = os.environ.get("SCULP_BASE_URL", "http://localhost:8000")
        self.stripe_secret_key = os.environ.get("STRIPE_SECRET_KEY")
        self.stripe_price_id = os.environ.get("STRIPE_PRICE_ID", "price_dev")
        # The dev secret only signs stub checkouts; a real gateway needs its own
        self.stripe_webhook_secret = os.environ.get("STRIPE_WEBHOOK_SECRET") or (
            "whsec_dev" if self.uses_checkout_stub else None
        )

    @property
    def uses_checkout_stub(self) -> bool:
        return not self.stripe_secret_key


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def _load_rules_cached(path: str) -> Rules:
    return load_rules(Path(path))


def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return _load_rules_cached(str(settings.rules_path))


# --- Repos ---
def get_user_repo(settings: Settings = Depends(get_settings)) -> SQLiteUserRepo:
    return SQLiteUserRepo(settings.db_path)


def get_folder_repo(settings: Settings = Depends(get_settings)) -> SQLiteFolderRepo:
    return SQLiteFolderRepo(settings.db_path)


def get_exercise_repo(settings: Settings = Depends(get_settings)) -> SQLiteExerciseRepo:
    return SQLiteExerciseRepo(settings.db_path)


def get_mesocycle_repo(settings: Settings = Depends(get_settings)) -> SQLiteMesocycleRepo:
    return SQLiteMesocycleRepo(settings.db_path)


def get_session_store(settings: Settings = Depends(get_settings)) -> SQLiteSessionStore:
    return SQLiteSessionStore(settings.db_path)


# --- Adapters ---
def get_auth_adapter() -> JWTAuthAdapter:
    return JWTAuthAdapter()


_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


_rate_limiter_instance: RateLimiter | None = None


def get_rate_limiter(rules: Rules = Depends(get_rules)) -> RateLimiter:
    """Get rate limiter singleton; history must outlive a single request."""
    global _rate_limiter_instance
    if _rate_limiter_instance is None:
        _rate_limiter_instance = RateLimiter(rules.rate_limits)
    return _rate_limiter_instance


_checkout_stub_instance: CheckoutStubAdapter | None = None


def get_checkout_gateway(settings: Settings = Depends(get_settings)) -> CheckoutGatewayPort:
    global _checkout_stub_instance
    if settings.stripe_secret_key:
        return StripeCheckoutAdapter(secret_key=settings.stripe_secret_key)
    if _checkout_stub_instance is None:
        _checkout_stub_instance = CheckoutStubAdapter(base_url=settings.base_url)
    return _checkout_stub_instance


def get_checkout_config(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> CheckoutConfig:
    return CheckoutConfig(
        base_url=settings.base_url,
        price_id=settings.stripe_price_id,
        trial_days=rules.checkout.trial_days,
        success_path=config_routes.app_root,
    )


# --- Auth ---
def get_session_token(request: Request, rules: Rules = Depends(get_rules)) -> str | None:
    return request.cookies.get(rules.auth.sessions.cookie.name) or None


def get_optional_user(
    token: str | None = Depends(get_session_token),
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    auth_adapter: JWTAuthAdapter = Depends(get_auth_adapter),
    session_store: SQLiteSessionStore = Depends(get_session_store),
    clock: SystemClock = Depends(get_clock),
) -> User | None:
    """Root loader: the signed-in user, or None."""
    if not token:
        return None
    result = run_verify_session(
        VerifySessionInput(token=token), user_repo, auth_adapter, session_store, clock
    )
    return result.user if result.success else None


def require_user(
    request: Request,
    user: User | None = Depends(get_optional_user),
) -> User:
    """Guard for /app pages: a signed-in user with a subscription."""
    if user is None or user.subscription is None:
        raise AuthRedirect(redirect_to=request.url.path)
    return user
