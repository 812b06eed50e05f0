"""
Tests for the checkout component and payment adapters.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from urllib.parse import parse_qs
from uuid import UUID, uuid4

import httpx
import pytest

from sculp.adapters.auth.session_store import InMemorySessionStore
from sculp.adapters.payments.checkout_stub import CheckoutStubAdapter
from sculp.adapters.payments.stripe_checkout import StripeCheckoutAdapter, encode_checkout_params
from sculp.components.checkout import (
    CheckoutConfig,
    CheckoutError,
    CheckoutInput,
    WebhookSignatureError,
    build_checkout_request,
    compute_signature,
    run_create_checkout_session,
    run_handle_webhook_event,
    verify_webhook_signature,
)
from sculp.domain.entities import Session, Subscription, User

SECRET = "whsec_test"
NOW = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)

# --- Mocks ---


class MockSubscriberRepo:
    def __init__(self) -> None:
        self._users: dict[UUID, User] = {}

    def get_by_id(self, user_id: UUID) -> User | None:
        return self._users.get(user_id)

    def get_by_stripe_customer_id(self, customer_id: str) -> User | None:
        for user in self._users.values():
            if user.stripe_customer_id == customer_id:
                return user
        return None

    def save(self, user: User) -> User:
        self._users[user.id] = user
        return user


@pytest.fixture
def config() -> CheckoutConfig:
    return CheckoutConfig(base_url="https://sculp.test/", price_id="price_123", trial_days=30)


@pytest.fixture
def repo() -> MockSubscriberRepo:
    return MockSubscriberRepo()


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


def sign(payload: bytes, timestamp: int, secret: str = SECRET) -> str:
    return f"t={timestamp},v1={compute_signature(payload, timestamp, secret)}"


# --- Checkout sessions ---


class TestBuildCheckoutRequest:
    def test_new_customer_uses_email(self, config: CheckoutConfig) -> None:
        user_id = uuid4()
        inp = CheckoutInput(
            user_id=user_id, email="a@b.co", cancel_path="/auth/sign-in?canceled_id=x"
        )
        request = build_checkout_request(inp, config)
        assert request.client_reference_id == str(user_id)
        assert request.success_url == "https://sculp.test/app"
        assert request.cancel_url == "https://sculp.test/auth/sign-in?canceled_id=x"
        assert request.trial_days == 30
        assert request.customer_email == "a@b.co"
        assert request.customer_id is None

    def test_known_customer_is_reused(self, config: CheckoutConfig) -> None:
        request = build_checkout_request(
            CheckoutInput(user_id=uuid4(), email="a@b.co", cancel_path="/", customer_id="cus_1"),
            config,
        )
        assert request.customer_id == "cus_1"
        assert request.customer_email is None


class TestCreateCheckoutSession:
    def test_returns_gateway_url(self, config: CheckoutConfig) -> None:
        stub = CheckoutStubAdapter(base_url="https://sculp.test")
        user_id = uuid4()
        result = run_create_checkout_session(
            CheckoutInput(user_id=user_id, email="a@b.co", cancel_path="/"), stub, config
        )
        assert result.success
        assert result.url == f"https://sculp.test/dev/checkout?session=1&user={user_id}"
        assert len(stub.requests) == 1

    def test_gateway_failure(self, config: CheckoutConfig) -> None:
        stub = CheckoutStubAdapter(fail_with="card network down")
        result = run_create_checkout_session(
            CheckoutInput(user_id=uuid4(), email="a@b.co", cancel_path="/"), stub, config
        )
        assert not result.success
        assert result.error == "card network down"


class TestStripeAdapter:
    def test_encodes_subscription_params(self, config: CheckoutConfig) -> None:
        request = build_checkout_request(
            CheckoutInput(user_id=uuid4(), email="a@b.co", cancel_path="/"), config
        )
        params = encode_checkout_params(request)
        assert params["mode"] == "subscription"
        assert params["line_items[0][price]"] == "price_123"
        assert params["line_items[0][quantity]"] == "1"
        assert params["subscription_data[trial_period_days]"] == "30"
        assert params["customer_email"] == "a@b.co"
        assert "customer" not in params

    def test_posts_form_and_returns_url(self, config: CheckoutConfig) -> None:
        seen: dict[str, object] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["form"] = parse_qs(request.content.decode())
            return httpx.Response(200, json={"id": "cs_1", "url": "https://checkout.test/cs_1"})

        adapter = StripeCheckoutAdapter("sk_test", transport=httpx.MockTransport(handler))
        request = build_checkout_request(
            CheckoutInput(user_id=uuid4(), email="a@b.co", cancel_path="/"), config
        )
        assert adapter.create_checkout_session(request) == "https://checkout.test/cs_1"
        assert seen["url"] == "https://api.stripe.com/v1/checkout/sessions"
        assert seen["auth"] == "Bearer sk_test"
        assert seen["form"]["client_reference_id"] == [request.client_reference_id]

    def test_error_response_raises(self, config: CheckoutConfig) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": {"message": "No such price"}})

        adapter = StripeCheckoutAdapter("sk_test", transport=httpx.MockTransport(handler))
        request = build_checkout_request(
            CheckoutInput(user_id=uuid4(), email="a@b.co", cancel_path="/"), config
        )
        with pytest.raises(CheckoutError) as exc_info:
            adapter.create_checkout_session(request)
        assert str(exc_info.value) == "No such price"
        assert exc_info.value.status_code == 400

    def test_transport_error_raises(self, config: CheckoutConfig) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        adapter = StripeCheckoutAdapter("sk_test", transport=httpx.MockTransport(handler))
        request = build_checkout_request(
            CheckoutInput(user_id=uuid4(), email="a@b.co", cancel_path="/"), config
        )
        with pytest.raises(CheckoutError):
            adapter.create_checkout_session(request)


# --- Webhook signatures ---


class TestWebhookSignature:
    def test_valid_signature(self) -> None:
        payload = json.dumps({"type": "ping"}).encode()
        ts = int(NOW.timestamp())
        event = verify_webhook_signature(payload, sign(payload, ts), SECRET, NOW)
        assert event == {"type": "ping"}

    def test_any_matching_v1_is_accepted(self) -> None:
        payload = b'{"type": "ping"}'
        ts = int(NOW.timestamp())
        header = f"t={ts},v1=deadbeef,v1={compute_signature(payload, ts, SECRET)}"
        assert verify_webhook_signature(payload, header, SECRET, NOW)["type"] == "ping"

    @pytest.mark.parametrize("header", [None, "", "v1=abc", "t=notanumber,v1=abc"])
    def test_malformed_header(self, header: str | None) -> None:
        with pytest.raises(WebhookSignatureError):
            verify_webhook_signature(b"{}", header, SECRET, NOW)

    def test_wrong_secret(self) -> None:
        payload = b"{}"
        ts = int(NOW.timestamp())
        with pytest.raises(WebhookSignatureError):
            verify_webhook_signature(payload, sign(payload, ts, "whsec_other"), SECRET, NOW)

    def test_tampered_body(self) -> None:
        ts = int(NOW.timestamp())
        header = sign(b'{"amount": 1}', ts)
        with pytest.raises(WebhookSignatureError):
            verify_webhook_signature(b'{"amount": 1000}', header, SECRET, NOW)

    def test_outside_tolerance(self) -> None:
        payload = b"{}"
        ts = int(NOW.timestamp()) - 301
        with pytest.raises(WebhookSignatureError):
            verify_webhook_signature(payload, sign(payload, ts), SECRET, NOW, tolerance_seconds=300)


# --- Webhook events ---


def completed_event(user_id: UUID, customer: str = "cus_1", subscription: str = "sub_1") -> dict:
    return {
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "client_reference_id": str(user_id),
                "customer": customer,
                "subscription": subscription,
                "mode": "subscription",
            }
        },
    }


class TestWebhookEvents:
    def test_checkout_completed_stores_subscription(self, repo, store, clock) -> None:
        user = repo.save(User(email="a@b.co", password_hash="h"))
        result = run_handle_webhook_event(completed_event(user.id), repo, store, clock)

        assert result.handled
        stored = repo.get_by_id(user.id)
        assert stored.stripe_customer_id == "cus_1"
        assert stored.subscription is not None
        assert stored.subscription.stripe_subscription_id == "sub_1"
        assert stored.subscription.status == "trialing"

    def test_checkout_completed_unknown_user(self, repo, store, clock) -> None:
        result = run_handle_webhook_event(completed_event(uuid4()), repo, store, clock)
        assert not result.handled

    def test_subscription_updated(self, repo, store, clock) -> None:
        user = repo.save(
            User(
                email="a@b.co",
                password_hash="h",
                stripe_customer_id="cus_1",
                subscription=Subscription(stripe_subscription_id="sub_1"),
            )
        )
        event = {
            "type": "customer.subscription.updated",
            "data": {
                "object": {
                    "id": "sub_1",
                    "customer": "cus_1",
                    "status": "active",
                    "current_period_end": 1767225600,
                }
            },
        }
        result = run_handle_webhook_event(event, repo, store, clock)

        assert result.handled
        subscription = repo.get_by_id(user.id).subscription
        assert subscription.status == "active"
        assert subscription.current_period_end == datetime(2026, 1, 1, tzinfo=UTC)

    def test_unknown_status_is_incomplete(self, repo, store, clock) -> None:
        user = repo.save(User(email="a@b.co", password_hash="h", stripe_customer_id="cus_1"))
        event = {
            "type": "customer.subscription.created",
            "data": {"object": {"id": "sub_1", "customer": "cus_1", "status": "weird"}},
        }
        run_handle_webhook_event(event, repo, store, clock)
        assert repo.get_by_id(user.id).subscription.status == "incomplete"

    def test_subscription_deleted_revokes_sessions(self, repo, store, clock) -> None:
        user = repo.save(
            User(
                email="a@b.co",
                password_hash="h",
                stripe_customer_id="cus_1",
                subscription=Subscription(stripe_subscription_id="sub_1"),
            )
        )
        store.save(
            "hash",
            Session(id="s1", user_id=user.id, token_hash="hash", expires_at=NOW),
        )
        event = {
            "type": "customer.subscription.deleted",
            "data": {"object": {"id": "sub_1", "customer": "cus_1"}},
        }
        result = run_handle_webhook_event(event, repo, store, clock)

        assert result.handled
        assert result.sessions_revoked == 1
        assert repo.get_by_id(user.id).subscription is None
        assert store.get("hash") is None

    def test_ignored_event(self, repo, store, clock) -> None:
        result = run_handle_webhook_event({"type": "invoice.paid"}, repo, store, clock)
        assert not result.handled
        assert result.detail == "Ignored event type"

    def test_deletion_of_replaced_subscription_is_ignored(self, repo, store, clock) -> None:
        user = repo.save(
            User(
                email="a@b.co",
                password_hash="h",
                stripe_customer_id="cus_1",
                subscription=Subscription(stripe_subscription_id="sub_new", status="active"),
            )
        )
        store.save("hash", Session(id="s1", user_id=user.id, token_hash="hash", expires_at=NOW))
        event = {
            "type": "customer.subscription.deleted",
            "data": {"object": {"id": "sub_old", "customer": "cus_1"}},
        }
        result = run_handle_webhook_event(event, repo, store, clock)

        assert not result.handled
        assert result.detail == "Stale subscription"
        assert repo.get_by_id(user.id).subscription.stripe_subscription_id == "sub_new"
        assert store.get("hash") is not None

    def test_update_of_replaced_subscription_is_ignored(self, repo, store, clock) -> None:
        user = repo.save(
            User(
                email="a@b.co",
                password_hash="h",
                stripe_customer_id="cus_1",
                subscription=Subscription(stripe_subscription_id="sub_new", status="active"),
            )
        )
        event = {
            "type": "customer.subscription.updated",
            "data": {"object": {"id": "sub_old", "customer": "cus_1", "status": "canceled"}},
        }
        result = run_handle_webhook_event(event, repo, store, clock)

        assert result.detail == "Stale subscription"
        subscription = repo.get_by_id(user.id).subscription
        assert (subscription.stripe_subscription_id, subscription.status) == ("sub_new", "active")

    @pytest.mark.parametrize("data", [None, "oops", {"object": None}, {"object": ["x"]}])
    def test_malformed_event_data(self, repo, store, clock, data) -> None:
        event = {"type": "checkout.session.completed", "data": data}
        result = run_handle_webhook_event(event, repo, store, clock)

        assert not result.handled
        assert result.detail == "Missing or invalid client_reference_id"
