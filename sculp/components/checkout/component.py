"""
Checkout component.

Creates hosted subscription checkout sessions for users who have not
subscribed yet, and applies the processor's webhook events to the user's
subscription record.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from datetime import UTC, datetime
from typing import Any, get_args
from uuid import UUID

from sculp.components.auth.ports import SessionStorePort, TimePort
from sculp.domain.entities import Subscription, SubscriptionStatus, User

from .models import (
    CheckoutConfig,
    CheckoutError,
    CheckoutInput,
    CheckoutOutput,
    CheckoutRequest,
    WebhookOutput,
    WebhookSignatureError,
)
from .ports import CheckoutGatewayPort, SubscriberRepoPort

logger = logging.getLogger(__name__)

_KNOWN_STATUSES = set(get_args(SubscriptionStatus))


# --- Checkout sessions ---


def build_checkout_request(inp: CheckoutInput, config: CheckoutConfig) -> CheckoutRequest:
    base_url = config.base_url.rstrip("/")
    return CheckoutRequest(
        client_reference_id=str(inp.user_id),
        price_id=config.price_id,
        success_url=f"{base_url}{config.success_path}",
        cancel_url=f"{base_url}{inp.cancel_path}",
        trial_days=config.trial_days,
        customer_id=inp.customer_id,
        # The processor rejects customer_email alongside an existing customer
        customer_email=None if inp.customer_id else inp.email,
        metadata={"user_id": str(inp.user_id)},
    )


def run_create_checkout_session(
    inp: CheckoutInput,
    gateway: CheckoutGatewayPort,
    config: CheckoutConfig,
) -> CheckoutOutput:
    request = build_checkout_request(inp, config)
    try:
        url = gateway.create_checkout_session(request)
    except CheckoutError as e:
        logger.error("Checkout session creation failed for user %s: %s", inp.user_id, e)
        return CheckoutOutput(success=False, error=str(e))

    logger.info("Created checkout session for user %s", inp.user_id)
    return CheckoutOutput(url=url, success=True)


# --- Webhooks ---


def compute_signature(payload: bytes, timestamp: int, secret: str) -> str:
    signed_payload = f"{timestamp}.".encode() + payload
    return hmac.new(secret.encode(), signed_payload, hashlib.sha256).hexdigest()


def verify_webhook_signature(
    payload: bytes,
    signature_header: str | None,
    secret: str,
    now: datetime,
    tolerance_seconds: int = 300,
) -> dict[str, Any]:
    """
    Verify a ``Stripe-Signature`` header and return the decoded event.

    The header carries ``t=<unix ts>`` and one or more ``v1=<hex hmac>``
    entries. The HMAC-SHA256 covers ``"<t>.<raw body>"``.

    Raises:
        WebhookSignatureError: header missing/malformed, no matching
            signature, timestamp outside tolerance, or body not JSON.
    """
    if not signature_header:
        raise WebhookSignatureError("Missing signature header")

    timestamp: int | None = None
    signatures: list[str] = []
    for part in signature_header.split(","):
        key, _, value = part.strip().partition("=")
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError as e:
                raise WebhookSignatureError("Malformed signature timestamp") from e
        elif key == "v1":
            signatures.append(value)

    if timestamp is None or not signatures:
        raise WebhookSignatureError("Malformed signature header")

    expected = compute_signature(payload, timestamp, secret)
    if not any(hmac.compare_digest(expected, candidate) for candidate in signatures):
        raise WebhookSignatureError("No matching signature")

    if abs(now.timestamp() - timestamp) > tolerance_seconds:
        raise WebhookSignatureError("Signature timestamp outside tolerance")

    try:
        event = json.loads(payload)
    except json.JSONDecodeError as e:
        raise WebhookSignatureError("Payload is not valid JSON") from e

    if not isinstance(event, dict):
        raise WebhookSignatureError("Payload is not an event object")
    return event


def _status(raw: Any) -> SubscriptionStatus:
    if raw in _KNOWN_STATUSES:
        return raw  # type: ignore[no-any-return]
    return "incomplete"


def _period_end(raw: Any) -> datetime | None:
    if isinstance(raw, int | float):
        return datetime.fromtimestamp(raw, UTC)
    return None


def _is_stale(user: User, obj: dict[str, Any]) -> bool:
    # Events for a subscription the user has since replaced
    current = user.subscription
    return current is not None and current.stripe_subscription_id != str(obj.get("id", ""))


def run_handle_webhook_event(
    event: dict[str, Any],
    repo: SubscriberRepoPort,
    session_store: SessionStorePort,
    time: TimePort,
) -> WebhookOutput:
    event_type = str(event.get("type", ""))
    data = event.get("data")
    obj = data.get("object") if isinstance(data, dict) else None
    if not isinstance(obj, dict):
        obj = {}
    out = WebhookOutput(event_type=event_type, data=obj)

    if event_type == "checkout.session.completed":
        reference = obj.get("client_reference_id")
        try:
            user_id = UUID(str(reference))
        except ValueError:
            out.detail = "Missing or invalid client_reference_id"
            return out

        user = repo.get_by_id(user_id)
        if not user:
            out.detail = f"User {user_id} not found"
            return out

        if obj.get("customer"):
            user.stripe_customer_id = str(obj["customer"])
        if obj.get("subscription"):
            user.subscription = Subscription(
                stripe_subscription_id=str(obj["subscription"]),
                status="trialing" if obj.get("mode") == "subscription" else "active",
                updated_at=time.now_utc(),
            )
        user.updated_at = time.now_utc()
        repo.save(user)
        out.user = user
        out.handled = True
        logger.info("Checkout completed for user %s", user.id)
        return out

    if event_type in ("customer.subscription.created", "customer.subscription.updated"):
        user = repo.get_by_stripe_customer_id(str(obj.get("customer", "")))
        if not user:
            out.detail = "Customer not found"
            return out
        if event_type == "customer.subscription.updated" and _is_stale(user, obj):
            out.detail = "Stale subscription"
            return out

        user.subscription = Subscription(
            stripe_subscription_id=str(obj.get("id", "")),
            status=_status(obj.get("status")),
            current_period_end=_period_end(obj.get("current_period_end")),
            updated_at=time.now_utc(),
        )
        user.updated_at = time.now_utc()
        repo.save(user)
        out.user = user
        out.handled = True
        return out

    if event_type == "customer.subscription.deleted":
        user = repo.get_by_stripe_customer_id(str(obj.get("customer", "")))
        if not user:
            out.detail = "Customer not found"
            return out
        if _is_stale(user, obj):
            out.detail = "Stale subscription"
            return out

        user.subscription = None
        user.updated_at = time.now_utc()
        repo.save(user)
        out.sessions_revoked = session_store.delete_by_user(user.id)
        out.user = user
        out.handled = True
        logger.info(
            "Subscription ended for user %s, revoked %d sessions", user.id, out.sessions_revoked
        )
        return out

    out.detail = "Ignored event type"
    return out
