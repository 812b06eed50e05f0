from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from sculp.domain.entities import User


class CheckoutError(Exception):
    """Raised when a checkout session cannot be created."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class WebhookSignatureError(CheckoutError):
    """Raised when a webhook payload fails signature verification."""


@dataclass(frozen=True)
class CheckoutConfig:
    base_url: str
    price_id: str
    trial_days: int = 30
    success_path: str = "/app"


@dataclass(frozen=True)
class CheckoutInput:
    user_id: UUID
    email: str
    cancel_path: str
    customer_id: str | None = None


@dataclass(frozen=True)
class CheckoutRequest:
    """Fully resolved parameters handed to the gateway."""

    client_reference_id: str
    price_id: str
    success_url: str
    cancel_url: str
    trial_days: int
    customer_id: str | None = None
    customer_email: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class CheckoutOutput:
    url: str | None = None
    success: bool = False
    error: str | None = None


@dataclass
class WebhookOutput:
    event_type: str
    handled: bool = False
    user: User | None = None
    sessions_revoked: int = 0
    detail: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
