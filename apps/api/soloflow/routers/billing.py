"""Billing page, Stripe Checkout and the Stripe webhook."""

import logging

import anyio
from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from soloflow.core.deps import get_db, require_csrf, require_permission
from soloflow.core.rate_limit import limiter
from soloflow.db.enums import SubscriptionPlan
from soloflow.services import billing_service
from soloflow.templating import render, render_error

router = APIRouter(tags=["billing"])
webhook_router = APIRouter(tags=["webhooks"])
logger = logging.getLogger(__name__)


@router.get("/dashboard/billing")
def billing_page(
    request: Request,
    checkout: str | None = None,
    user=Depends(require_permission("billing.view")),
):
    return render(
        request,
        "billing.html",
        {
            "user": user,
            "current_plan": billing_service.get_effective_plan(user),
            "plans": list(billing_service.PLANS.values()),
            "checkout": checkout,
        },
    )


@router.post("/dashboard/billing/checkout", dependencies=[Depends(require_csrf)])
def start_checkout(
    request: Request,
    plan: SubscriptionPlan = Form(...),
    interval: str = Form("monthly", pattern="^(monthly|yearly)$"),
    user=Depends(require_permission("billing.view")),
):
    """Start a Stripe Checkout session for the signed-in user and redirect to it."""
    try:
        url = billing_service.create_checkout_session(user, plan, yearly=interval == "yearly")
    except billing_service.BillingError as e:
        return render_error(request, str(e), status_code=502, title="Billing unavailable")
    return RedirectResponse(url=url, status_code=303)


@webhook_router.post("/stripe")
@limiter.exempt
async def stripe_webhook(request: Request, db: Session = Depends(get_db)):
    """
    Receive Stripe events.

    The signature is verified against STRIPE_WEBHOOK_SECRET before any
    processing; unknown event types are acknowledged and ignored.
    """
    payload = await request.body()
    signature = request.headers.get("stripe-signature", "")
    try:
        event = billing_service.construct_event(payload, signature)
    except billing_service.InvalidWebhook as e:
        logger.warning("Stripe webhook rejected: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    handled = await anyio.to_thread.run_sync(billing_service.handle_event, db, event)
    return {"received": True, "handled": handled}
