import hashlib
import secrets
from datetime import timedelta

from sculp.api.auth_utils import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)


class JWTAuthAdapter:
    """Auth adapter that uses signed JWT session tokens and argon2 password hashes."""

    def hash_password(self, password: str) -> str:
        return get_password_hash(password)

    def verify_password(self, plain: str, hashed: str) -> bool:
        return verify_password(plain, hashed)

    def hash_token(self, token: str) -> str:
        return hashlib.sha256(token.encode()).hexdigest()

    def create_token(self, user_id: object, ttl_minutes: int) -> str:
        # jti keeps two sessions created in the same second distinct
        return create_access_token(
            {"sub": str(user_id), "jti": secrets.token_urlsafe(16)},
            timedelta(minutes=ttl_minutes),
        )

    def validate_token(self, token: str) -> str | None:
        payload = decode_access_token(token)
        if not payload:
            return None
        subject = payload.get("sub")
        return subject if isinstance(subject, str) else None
