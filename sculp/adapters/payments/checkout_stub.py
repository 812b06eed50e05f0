"""
Checkout stub adapter (dev/tests).

Stands in for the payment processor when no API key is configured. Records
every request and returns a local URL instead of a hosted checkout page.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from urllib.parse import urlencode

from sculp.components.checkout import CheckoutError, CheckoutRequest

logger = logging.getLogger(__name__)


@dataclass
class CheckoutStubAdapter:
    base_url: str = "http://localhost:8000"
    requests: list[CheckoutRequest] = field(default_factory=list)
    # Set to make the next calls fail, for testing error paths
    fail_with: str | None = None

    def create_checkout_session(self, request: CheckoutRequest) -> str:
        if self.fail_with:
            raise CheckoutError(self.fail_with, status_code=502)

        self.requests.append(request)
        logger.debug(
            "CheckoutStubAdapter.create_checkout_session: user=%s", request.client_reference_id
        )
        query = urlencode({"session": len(self.requests), "user": request.client_reference_id})
        return f"{self.base_url.rstrip('/')}/dev/checkout?{query}"
