"""
Dev-only checkout page.

Stands in for the hosted checkout while the stub gateway is active.
Completing it applies the same ``checkout.session.completed`` event the
processor would deliver by webhook. With a real gateway these routes 404.
"""

import logging
from uuid import uuid4

from fastapi import APIRouter, Depends, Form, HTTPException, Query
from fastapi.responses import HTMLResponse, RedirectResponse

from sculp.adapters.auth.session_store import SQLiteSessionStore
from sculp.adapters.clock import SystemClock
from sculp.adapters.payments.checkout_stub import CheckoutStubAdapter
from sculp.adapters.sqlite.repos import SQLiteUserRepo
from sculp.api.deps import get_checkout_gateway, get_clock, get_session_store, get_user_repo
from sculp.api.render import escape, hidden_input, render_document, submit_button
from sculp.components.checkout import (
    CheckoutGatewayPort,
    CheckoutRequest,
    run_handle_webhook_event,
)
from sculp.config_routes import config_routes

logger = logging.getLogger(__name__)

router = APIRouter()


def _stub_request(gateway: CheckoutGatewayPort, session: int) -> CheckoutRequest:
    if not isinstance(gateway, CheckoutStubAdapter):
        raise HTTPException(status_code=404, detail="Dev checkout is disabled")
    if session < 1 or session > len(gateway.requests):
        raise HTTPException(status_code=404, detail="Checkout session not found")
    return gateway.requests[session - 1]


@router.get("/checkout", response_class=HTMLResponse)
def dev_checkout_page(
    session: int = Query(...),
    gateway: CheckoutGatewayPort = Depends(get_checkout_gateway),
) -> str:
    request = _stub_request(gateway, session)
    email = request.customer_email or request.customer_id or ""
    body = f"""<main class="dev-checkout">
    <h1>Dev checkout</h1>
    <p>{escape(email)}: {request.trial_days}-day free trial of {escape(request.price_id)}</p>
    <form method="post" action="{config_routes.dev_checkout}">
        {hidden_input("session", session)}
        {submit_button("Start free trial")}
    </form>
    <a href="{escape(request.cancel_url)}">Cancel</a>
</main>"""
    return render_document(body, title="Dev checkout | Sculp")


@router.post("/checkout")
def dev_checkout_complete(
    session: int = Form(...),
    gateway: CheckoutGatewayPort = Depends(get_checkout_gateway),
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    session_store: SQLiteSessionStore = Depends(get_session_store),
    clock: SystemClock = Depends(get_clock),
) -> RedirectResponse:
    request = _stub_request(gateway, session)
    event = {
        "id": f"evt_dev_{uuid4().hex}",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "client_reference_id": request.client_reference_id,
                "customer": request.customer_id or f"cus_dev_{uuid4().hex[:14]}",
                "subscription": f"sub_dev_{uuid4().hex[:14]}",
                "mode": "subscription",
            }
        },
    }
    result = run_handle_webhook_event(event, user_repo, session_store, clock)
    if not result.handled:
        raise HTTPException(status_code=400, detail=result.detail)
    logger.info("Dev checkout completed for user %s", request.client_reference_id)
    return RedirectResponse(url=request.success_url, status_code=303)
