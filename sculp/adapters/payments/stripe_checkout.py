"""
Stripe Checkout adapter.

Creates hosted checkout sessions through the Stripe REST API. Requests are
form-encoded with Stripe's bracket notation for nested parameters.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from sculp.components.checkout import CheckoutError, CheckoutRequest

logger = logging.getLogger(__name__)

STRIPE_API_BASE = "https://api.stripe.com"


def encode_checkout_params(request: CheckoutRequest) -> dict[str, str]:
    """Flatten a CheckoutRequest into Stripe form parameters."""
    params: dict[str, str] = {
        "mode": "subscription",
        "client_reference_id": request.client_reference_id,
        "success_url": request.success_url,
        "cancel_url": request.cancel_url,
        "line_items[0][price]": request.price_id,
        "line_items[0][quantity]": "1",
    }
    if request.trial_days > 0:
        params["subscription_data[trial_period_days]"] = str(request.trial_days)
    if request.customer_id:
        params["customer"] = request.customer_id
    elif request.customer_email:
        params["customer_email"] = request.customer_email
    for key, value in request.metadata.items():
        params[f"metadata[{key}]"] = value
        params[f"subscription_data[metadata][{key}]"] = value
    return params


class StripeCheckoutAdapter:
    """HTTP client for Stripe Checkout session creation."""

    def __init__(
        self,
        secret_key: str,
        base_url: str = STRIPE_API_BASE,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Args:
            secret_key: Stripe secret API key
            base_url: API base URL (overridable for tests)
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self._secret_key = secret_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def create_checkout_session(self, request: CheckoutRequest) -> str:
        params = encode_checkout_params(request)
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(
                    f"{self._base_url}/v1/checkout/sessions",
                    data=params,
                    headers={"Authorization": f"Bearer {self._secret_key}"},
                )
        except httpx.HTTPError as e:
            logger.error("Stripe unreachable: %s", e)
            raise CheckoutError(f"Payment processor unavailable: {e}") from e

        if response.status_code >= 400:
            message = _error_message(response)
            logger.error("Stripe checkout error %s: %s", response.status_code, message)
            raise CheckoutError(message, status_code=response.status_code)

        url = response.json().get("url")
        if not url:
            raise CheckoutError("Checkout session has no URL", status_code=response.status_code)
        return str(url)


def _error_message(response: httpx.Response) -> str:
    try:
        body: Any = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return str(body["error"].get("message", f"HTTP {response.status_code}"))
    return f"HTTP {response.status_code}"
