"""Payment processor webhooks."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from sculp.adapters.auth.session_store import SQLiteSessionStore
from sculp.adapters.clock import SystemClock
from sculp.adapters.sqlite.repos import SQLiteUserRepo
from sculp.api.deps import (
    Settings,
    get_clock,
    get_rules,
    get_session_store,
    get_settings,
    get_user_repo,
)
from sculp.components.checkout import (
    WebhookSignatureError,
    run_handle_webhook_event,
    verify_webhook_signature,
)
from sculp.rules.models import Rules

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/stripe", response_model=None)
async def stripe_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    session_store: SQLiteSessionStore = Depends(get_session_store),
    clock: SystemClock = Depends(get_clock),
) -> JSONResponse | dict[str, Any]:
    if not settings.stripe_webhook_secret:
        logger.error("Rejected webhook: STRIPE_WEBHOOK_SECRET is not set")
        return JSONResponse({"error": "Webhook secret not configured"}, status_code=503)

    payload = await request.body()
    try:
        event = verify_webhook_signature(
            payload,
            request.headers.get("Stripe-Signature"),
            settings.stripe_webhook_secret,
            clock.now_utc(),
            rules.checkout.webhook_tolerance_seconds,
        )
    except WebhookSignatureError as e:
        logger.warning("Rejected webhook: %s", e)
        return JSONResponse({"error": str(e)}, status_code=400)

    result = run_handle_webhook_event(event, user_repo, session_store, clock)
    logger.info(
        "Webhook %s %s handled=%s detail=%s",
        event.get("id"),
        result.event_type,
        result.handled,
        result.detail,
    )
    return {"received": True, "handled": result.handled}
