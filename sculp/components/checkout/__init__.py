"""
Checkout component - subscription checkout sessions and webhook handling.
"""

from .component import (
    build_checkout_request,
    compute_signature,
    run_create_checkout_session,
    run_handle_webhook_event,
    verify_webhook_signature,
)
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

__all__ = [
    "build_checkout_request",
    "compute_signature",
    "run_create_checkout_session",
    "run_handle_webhook_event",
    "verify_webhook_signature",
    "CheckoutConfig",
    "CheckoutError",
    "CheckoutInput",
    "CheckoutOutput",
    "CheckoutRequest",
    "WebhookOutput",
    "WebhookSignatureError",
    "CheckoutGatewayPort",
    "SubscriberRepoPort",
]
