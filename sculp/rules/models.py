from typing import Literal

from pydantic import BaseModel


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class PasswordHashingRules(BaseModel):
    algorithm: str
    min_length: int


class SessionCookieRules(BaseModel):
    name: str = "__session"
    secure: bool
    http_only: bool
    same_site: Literal["lax", "strict", "none"] = "lax"


class SessionsRules(BaseModel):
    ttl_minutes: int
    store_tokens_hashed: bool
    cookie: SessionCookieRules


class AuthRules(BaseModel):
    password_hashing: PasswordHashingRules
    sessions: SessionsRules


class RateLimitWindow(BaseModel):
    window_seconds: int
    max_attempts: int = 10
    # Prefix of the per-client key; defaults to the rule name
    key_prefix: str | None = None


class RateLimitRules(BaseModel):
    sign_in: RateLimitWindow


class FormsRules(BaseModel):
    debounce_ms: int


class CheckoutRules(BaseModel):
    trial_days: int
    webhook_tolerance_seconds: int = 300


class OpsRules(BaseModel):
    data_dir_required: bool
    required_env: list[str]


class Rules(BaseModel):
    project: ProjectRules
    auth: AuthRules
    rate_limits: RateLimitRules
    forms: FormsRules
    checkout: CheckoutRules
    ops: OpsRules
