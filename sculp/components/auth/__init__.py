"""
Auth component - credential checks and session lifecycle.
"""

from .component import (
    INVALID_CREDENTIALS,
    run_create_session,
    run_create_user,
    run_destroy_session,
    run_login,
    run_revoke_user_sessions,
    run_verify_session,
)
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

__all__ = [
    # Entry points
    "run_create_session",
    "run_create_user",
    "run_destroy_session",
    "run_login",
    "run_revoke_user_sessions",
    "run_verify_session",
    "INVALID_CREDENTIALS",
    # Models
    "AuthOutput",
    "CreateSessionInput",
    "CreateUserInput",
    "DestroySessionInput",
    "LoginInput",
    "UserOutput",
    "VerifySessionInput",
    # Ports
    "AuthAdapterPort",
    "SessionStorePort",
    "TimePort",
    "UserRepoPort",
]
