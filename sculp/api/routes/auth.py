"""
Auth pages: sign in, get started (sign up), sign out.

Sign-in and get-started share one credentials form. A user without a
subscription is sent to the hosted checkout instead of getting a session;
the checkout's cancel URL brings them back here with a ``canceled_id`` that
shows a toast.
"""

import logging
from uuid import uuid4

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from sculp.adapters.auth.crypto import JWTAuthAdapter
from sculp.adapters.auth.session_store import SQLiteSessionStore
from sculp.adapters.clock import SystemClock
from sculp.adapters.sqlite.repos import SQLiteUserRepo
from sculp.api.deps import (
    get_auth_adapter,
    get_checkout_config,
    get_checkout_gateway,
    get_clock,
    get_optional_user,
    get_rate_limiter,
    get_rules,
    get_session_store,
    get_session_token,
    get_user_repo,
)
from sculp.api.forms import FORM_ERROR_KEY, SUBMIT_INTENT, Submission, parse_submission
from sculp.api.render import (
    error_message,
    escape,
    hidden_input,
    input_field,
    render_document,
    submit_button,
    toast,
)
from sculp.app_shell.rate_limit import RateLimiter
from sculp.components.auth import (
    CreateSessionInput,
    CreateUserInput,
    DestroySessionInput,
    LoginInput,
    run_create_session,
    run_create_user,
    run_destroy_session,
    run_login,
)
from sculp.components.checkout import (
    CheckoutConfig,
    CheckoutError,
    CheckoutGatewayPort,
    CheckoutInput,
    run_create_checkout_session,
)
from sculp.config_routes import config_routes
from sculp.domain.entities import User
from sculp.domain.schemas import GetStartedSchema, SignInSchema
from sculp.rules.models import Rules

logger = logging.getLogger(__name__)

router = APIRouter()

TOO_MANY_ATTEMPTS = "Too many sign-in attempts. Please wait a minute and try again."


# --- Cookies ---


def set_session_cookie(response: Response, token: str, rules: Rules) -> None:
    sessions = rules.auth.sessions
    cookie = sessions.cookie
    response.set_cookie(
        key=cookie.name,
        value=token,
        max_age=sessions.ttl_minutes * 60,
        path="/",
        httponly=cookie.http_only,
        secure=cookie.secure,
        samesite=cookie.same_site,
    )


def clear_session_cookie(response: Response, rules: Rules) -> None:
    cookie = rules.auth.sessions.cookie
    response.delete_cookie(
        key=cookie.name,
        path="/",
        httponly=cookie.http_only,
        secure=cookie.secure,
        samesite=cookie.same_site,
    )


def safe_redirect_target(target: str | None) -> str:
    """Only same-site absolute paths are followed after sign-in."""
    if target and target.startswith("/") and not target.startswith("//"):
        return target
    return config_routes.app_root


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


# --- Rendering ---


def render_credentials_form(
    submission: Submission | None,
    *,
    action: str,
    submit_text: str,
    password_autocomplete: str,
    redirect_to: str | None = None,
) -> str:
    payload = submission.payload if submission else {}
    errors = submission.error if submission else {}
    form_error = errors.get(FORM_ERROR_KEY)
    return f"""<form method="post" action="{escape(action)}" novalidate>
    {hidden_input("redirectTo", redirect_to) if redirect_to else ""}
    {input_field("email", "Email address", payload.get("email"), errors.get("email"),
                 type="email", autocomplete="email")}
    {input_field("password", "Password", None, errors.get("password"),
                 type="password", autocomplete=password_autocomplete)}
    {error_message(form_error) if form_error else ""}
    {submit_button(submit_text)}
</form>"""


def render_sign_in_page(
    submission: Submission | None = None,
    redirect_to: str | None = None,
    toasts: list[str] | None = None,
) -> str:
    form = render_credentials_form(
        submission,
        action=config_routes.auth.sign_in,
        submit_text="Sign in",
        password_autocomplete="current-password",
        redirect_to=redirect_to,
    )
    body = f"""<main class="auth-page">
    <h1>Sign in to your account</h1>
    {form}
    <p><a href="{config_routes.auth.forgot_password}">Forgot password?</a></p>
    <p>Not a member? <a href="{config_routes.auth.get_started}">Start a 30-day free trial</a></p>
</main>"""
    return render_document(body, title="Sign in | Sculp", toasts=toasts or [])


def render_get_started_page(submission: Submission | None = None) -> str:
    form = render_credentials_form(
        submission,
        action=config_routes.auth.get_started,
        submit_text="Get started",
        password_autocomplete="new-password",
    )
    body = f"""<main class="auth-page">
    <h1>Start your 30-day free trial</h1>
    {form}
    <p>Already a member? <a href="{config_routes.auth.sign_in}">Sign in</a></p>
</main>"""
    return render_document(body, title="Get started | Sculp")


def start_checkout(
    user: User, gateway: CheckoutGatewayPort, config: CheckoutConfig
) -> RedirectResponse:
    """Redirect to a new checkout session; cancelling returns to sign-in with a toast."""
    cancel_path = f"{config_routes.auth.sign_in}?canceled_id={uuid4().hex}"
    result = run_create_checkout_session(
        CheckoutInput(
            user_id=user.id,
            email=user.email,
            cancel_path=cancel_path,
            customer_id=user.stripe_customer_id,
        ),
        gateway,
        config,
    )
    if not result.success or not result.url:
        raise CheckoutError(result.error or "Checkout session could not be created")
    return RedirectResponse(url=result.url, status_code=303)


# --- Sign in ---


@router.get("/sign-in", response_model=None)
def sign_in_page(
    canceled_id: str | None = Query(None),
    redirect_to: str | None = Query(None, alias="redirectTo"),
    user: User | None = Depends(get_optional_user),
) -> Response:
    if user is not None and user.subscription is not None:
        return RedirectResponse(url=config_routes.app_root, status_code=302)

    toasts = []
    if canceled_id:
        toasts.append(
            toast(
                canceled_id,
                "Free trial canceled",
                "Your free trial registration has been canceled.",
            )
        )
    return HTMLResponse(render_sign_in_page(redirect_to=redirect_to, toasts=toasts))


@router.post("/sign-in", response_model=None)
async def sign_in_action(
    request: Request,
    rules: Rules = Depends(get_rules),
    limiter: RateLimiter = Depends(get_rate_limiter),
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    auth_adapter: JWTAuthAdapter = Depends(get_auth_adapter),
    session_store: SQLiteSessionStore = Depends(get_session_store),
    clock: SystemClock = Depends(get_clock),
    gateway: CheckoutGatewayPort = Depends(get_checkout_gateway),
    checkout_config: CheckoutConfig = Depends(get_checkout_config),
) -> Response:
    form = await request.form()
    redirect_to = form.get("redirectTo")
    redirect_to = redirect_to if isinstance(redirect_to, str) else None

    ip = client_ip(request)
    if not limiter.check("sign_in", ip):
        logger.warning("Sign-in rate limit hit for %s", ip)
        limited = Submission(
            intent=SUBMIT_INTENT, payload={}, error={FORM_ERROR_KEY: TOO_MANY_ATTEMPTS}
        )
        return HTMLResponse(
            render_sign_in_page(limited, redirect_to=redirect_to),
            status_code=429,
            headers={"Retry-After": str(rules.rate_limits.sign_in.window_seconds)},
        )

    submission = parse_submission(form.multi_items(), SignInSchema)
    if not submission.is_valid:
        page = render_sign_in_page(submission, redirect_to=redirect_to)
        return HTMLResponse(page, status_code=400)

    result = run_login(
        LoginInput(email=submission.value.email, password=submission.value.password),
        user_repo,
        auth_adapter,
    )
    if not result.success or result.user is None:
        submission.error[FORM_ERROR_KEY] = result.error or "Sign in failed."
        page = render_sign_in_page(submission, redirect_to=redirect_to)
        return HTMLResponse(page, status_code=400)

    user = result.user
    if user.subscription is None:
        return start_checkout(user, gateway, checkout_config)

    session = run_create_session(
        CreateSessionInput(user=user, ttl_minutes=rules.auth.sessions.ttl_minutes),
        auth_adapter,
        session_store,
        clock,
    )
    assert session.token_raw is not None
    response = RedirectResponse(url=safe_redirect_target(redirect_to), status_code=302)
    set_session_cookie(response, session.token_raw, rules)
    logger.info("User %s signed in", user.id)
    return response


# --- Get started ---


@router.get("/get-started", response_model=None)
def get_started_page(user: User | None = Depends(get_optional_user)) -> Response:
    if user is not None and user.subscription is not None:
        return RedirectResponse(url=config_routes.app_root, status_code=302)
    return HTMLResponse(render_get_started_page())


@router.post("/get-started", response_model=None)
async def get_started_action(
    request: Request,
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    auth_adapter: JWTAuthAdapter = Depends(get_auth_adapter),
    clock: SystemClock = Depends(get_clock),
    gateway: CheckoutGatewayPort = Depends(get_checkout_gateway),
    checkout_config: CheckoutConfig = Depends(get_checkout_config),
) -> Response:
    form = await request.form()
    submission = parse_submission(form.multi_items(), GetStartedSchema)
    if not submission.is_valid:
        return HTMLResponse(render_get_started_page(submission), status_code=400)

    result = run_create_user(
        CreateUserInput(email=submission.value.email, password=submission.value.password),
        user_repo,
        auth_adapter,
        clock,
    )
    if not result.success or result.user is None:
        submission.error["email"] = result.error or "Account could not be created."
        return HTMLResponse(render_get_started_page(submission), status_code=400)

    return start_checkout(result.user, gateway, checkout_config)


# --- Sign out ---


@router.post("/sign-out")
def sign_out(
    token: str | None = Depends(get_session_token),
    rules: Rules = Depends(get_rules),
    auth_adapter: JWTAuthAdapter = Depends(get_auth_adapter),
    session_store: SQLiteSessionStore = Depends(get_session_store),
) -> RedirectResponse:
    if token:
        run_destroy_session(DestroySessionInput(token=token), auth_adapter, session_store)
    response = RedirectResponse(url=config_routes.home, status_code=303)
    clear_session_cookie(response, rules)
    return response


# --- Forgot password ---


@router.get("/forgot-password", response_class=HTMLResponse)
def forgot_password_page() -> str:
    body = f"""<main class="auth-page">
    <h1>Forgot your password?</h1>
    <p>Password reset is not available yet. Please contact support.</p>
    <p><a href="{config_routes.auth.sign_in}">Back to sign in</a></p>
</main>"""
    return render_document(body, title="Forgot password | Sculp")
