import json
import time

from fastapi.testclient import TestClient

from sculp.adapters.payments.stripe_checkout import StripeCheckoutAdapter
from sculp.adapters.sqlite.repos import SQLiteUserRepo
from sculp.api.deps import Settings, get_checkout_gateway
from sculp.api.main import app
from sculp.components.checkout import compute_signature

SECRET = "whsec_test"


def post_event(client: TestClient, event: dict, secret: str = SECRET):
    payload = json.dumps(event).encode()
    timestamp = int(time.time())
    signature = compute_signature(payload, timestamp, secret)
    return client.post(
        "/webhooks/stripe",
        content=payload,
        headers={"Stripe-Signature": f"t={timestamp},v1={signature}"},
    )


class TestStripeWebhook:
    def test_checkout_completed(
        self, client: TestClient, make_user, user_repo: SQLiteUserRepo
    ) -> None:
        user = make_user(subscribed=False)
        response = post_event(
            client,
            {
                "id": "evt_1",
                "type": "checkout.session.completed",
                "data": {
                    "object": {
                        "client_reference_id": str(user.id),
                        "customer": "cus_new",
                        "subscription": "sub_new",
                        "mode": "subscription",
                    }
                },
            },
        )
        assert response.status_code == 200
        assert response.json() == {"received": True, "handled": True}

        stored = user_repo.get_by_id(user.id)
        assert stored.stripe_customer_id == "cus_new"
        assert stored.subscription.status == "trialing"

    def test_subscription_deleted_signs_user_out(
        self, client: TestClient, signed_in, user_repo: SQLiteUserRepo
    ) -> None:
        assert client.get("/app").status_code == 200

        response = post_event(
            client,
            {
                "type": "customer.subscription.deleted",
                "data": {"object": {"id": "sub_test", "customer": "cus_test"}},
            },
        )
        assert response.json()["handled"] is True
        assert user_repo.get_by_id(signed_in.id).subscription is None
        assert client.get("/app").status_code == 302

    def test_ignored_event(self, client: TestClient) -> None:
        response = post_event(client, {"type": "invoice.paid", "data": {"object": {}}})
        assert response.status_code == 200
        assert response.json() == {"received": True, "handled": False}

    def test_bad_signature(self, client: TestClient) -> None:
        response = post_event(client, {"type": "invoice.paid"}, secret="whsec_wrong")
        assert response.status_code == 400
        assert response.json() == {"error": "No matching signature"}

    def test_missing_signature(self, client: TestClient) -> None:
        response = client.post("/webhooks/stripe", content=b"{}")
        assert response.status_code == 400
        assert response.json() == {"error": "Missing signature header"}


class TestDevCheckout:
    def test_unknown_session(self, client: TestClient) -> None:
        assert client.get("/dev/checkout", params={"session": "5"}).status_code == 404
        assert client.post("/dev/checkout", data={"session": "5"}).status_code == 404

    def test_disabled_with_real_gateway(self, client: TestClient) -> None:
        app.dependency_overrides[get_checkout_gateway] = lambda: StripeCheckoutAdapter("sk_test")
        response = client.get("/dev/checkout", params={"session": "1"})
        assert response.status_code == 404

    def test_cancel_link(self, client: TestClient, make_user) -> None:
        user = make_user(subscribed=False)
        client.post("/auth/sign-in", data={"email": user.email, "password": "correct-horse"})

        page = client.get("/dev/checkout", params={"session": "1"})
        assert page.status_code == 200
        assert "http://testserver/auth/sign-in?canceled_id=" in page.text
        assert user.email in page.text


class TestWebhookSecret:
    def test_dev_secret_only_with_stub(self, monkeypatch) -> None:
        monkeypatch.delenv("STRIPE_SECRET_KEY", raising=False)
        monkeypatch.delenv("STRIPE_WEBHOOK_SECRET", raising=False)
        assert Settings().stripe_webhook_secret == "whsec_dev"

        monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_live_x")
        assert Settings().stripe_webhook_secret is None

        monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "whsec_real")
        assert Settings().stripe_webhook_secret == "whsec_real"

    def test_rejected_without_secret(
        self, client: TestClient, settings, make_user, user_repo: SQLiteUserRepo
    ) -> None:
        settings.stripe_secret_key = "sk_live_x"
        settings.stripe_webhook_secret = None
        user = make_user(subscribed=False)

        # Signed with the public dev secret
        response = post_event(
            client,
            {
                "type": "checkout.session.completed",
                "data": {"object": {"client_reference_id": str(user.id), "subscription": "s"}},
            },
            secret="whsec_dev",
        )
        assert response.status_code == 503
        assert response.json() == {"error": "Webhook secret not configured"}
        assert user_repo.get_by_id(user.id).subscription is None
