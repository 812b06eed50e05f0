import logging
from datetime import timedelta
from uuid import UUID, uuid4

from sculp.domain.entities import Session, User

from .models import (
    AuthOutput,
    CreateSessionInput,
    CreateUserInput,
    DestroySessionInput,
    LoginInput,
    UserOutput,
    VerifySessionInput,
)
from .ports import AuthAdapterPort, SessionStorePort, TimePort, UserRepoPort

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "You have entered an invalid email or password."


def run_login(
    inp: LoginInput, user_repo: UserRepoPort, auth_adapter: AuthAdapterPort
) -> AuthOutput:
    user = user_repo.get_by_email(inp.email.strip().lower())
    if not user:
        logger.info("Sign-in failed: unknown email %s", inp.email)
        return AuthOutput(success=False, error=INVALID_CREDENTIALS)

    if not auth_adapter.verify_password(inp.password, user.password_hash):
        logger.info("Sign-in failed: wrong password for %s", inp.email)
        return AuthOutput(success=False, error=INVALID_CREDENTIALS)

    return AuthOutput(user=user, success=True)


def run_create_session(
    inp: CreateSessionInput,
    auth_adapter: AuthAdapterPort,
    session_store: SessionStorePort,
    time: TimePort,
) -> AuthOutput:
    token = auth_adapter.create_token(inp.user.id, inp.ttl_minutes)
    token_hash = auth_adapter.hash_token(token)
    now = time.now_utc()

    session = Session(
        id=str(uuid4()),
        user_id=inp.user.id,
        token_hash=token_hash,
        expires_at=now + timedelta(minutes=inp.ttl_minutes),
        created_at=now,
    )
    session_store.save(token_hash, session)
    return AuthOutput(user=inp.user, session=session, token_raw=token, success=True)


def run_verify_session(
    inp: VerifySessionInput,
    user_repo: UserRepoPort,
    auth_adapter: AuthAdapterPort,
    session_store: SessionStorePort,
    time: TimePort,
) -> AuthOutput:
    subject = auth_adapter.validate_token(inp.token)
    if subject is None:
        return AuthOutput(success=False, error="Invalid session token")

    token_hash = auth_adapter.hash_token(inp.token)
    session = session_store.get(token_hash)
    if not session:
        return AuthOutput(success=False, error="Session not found")

    if session.expires_at < time.now_utc():
        session_store.delete(token_hash)
        return AuthOutput(success=False, error="Session expired")

    if str(session.user_id) != str(subject):
        return AuthOutput(success=False, error="Session does not match token")

    user = user_repo.get_by_id(session.user_id)
    if not user:
        session_store.delete(token_hash)
        return AuthOutput(success=False, error="User not found")

    return AuthOutput(user=user, session=session, success=True)


def run_destroy_session(
    inp: DestroySessionInput,
    auth_adapter: AuthAdapterPort,
    session_store: SessionStorePort,
) -> AuthOutput:
    session_store.delete(auth_adapter.hash_token(inp.token))
    return AuthOutput(success=True)


def run_create_user(
    inp: CreateUserInput,
    user_repo: UserRepoPort,
    auth_adapter: AuthAdapterPort,
    time: TimePort,
) -> UserOutput:
    email = inp.email.strip().lower()
    if user_repo.get_by_email(email):
        return UserOutput(success=False, error="An account with this email already exists.")

    now = time.now_utc()
    user = User(
        id=uuid4(),
        email=email,
        password_hash=auth_adapter.hash_password(inp.password),
        created_at=now,
        updated_at=now,
    )
    user_repo.save(user)
    logger.info("Created user %s", user.id)
    return UserOutput(user=user, success=True)


def run_revoke_user_sessions(user_id: UUID, session_store: SessionStorePort) -> int:
    return session_store.delete_by_user(user_id)
