"""
Checkout component ports.

External interfaces for the subscription payment processor.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from sculp.domain.entities import User

from .models import CheckoutRequest


class CheckoutGatewayPort(Protocol):
    """
    Port for creating hosted checkout sessions.

    Implementations:
    - StripeCheckoutAdapter: Stripe Checkout over HTTPS
    - CheckoutStubAdapter: local URL, no network (dev/tests)
    """

    def create_checkout_session(self, request: CheckoutRequest) -> str:
        """
        Create a hosted checkout session.

        Returns:
            URL the browser should be redirected to.

        Raises:
            CheckoutError: the processor rejected the request or is unreachable.
        """
        ...


class SubscriberRepoPort(Protocol):
    def get_by_id(self, user_id: UUID) -> User | None: ...
    def get_by_stripe_customer_id(self, customer_id: str) -> User | None: ...
    def save(self, user: User) -> User: ...
