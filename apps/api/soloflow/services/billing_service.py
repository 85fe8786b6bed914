"""Subscription billing - plan catalogue, Stripe Checkout and webhook handling."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

import stripe
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from soloflow.core.config import settings
from soloflow.db.enums import SubscriptionPlan
from soloflow.db.models import User
from soloflow.services import activity_service, user_service

logger = logging.getLogger(__name__)


class BillingError(Exception):
    """Checkout could not be started (misconfiguration or Stripe failure)."""


class InvalidWebhook(Exception):
    """Webhook payload or signature did not verify."""


@dataclass(frozen=True)
class PlanInfo:
    plan: SubscriptionPlan
    name: str
    description: str
    monthly_price: int  # EUR
    yearly_price: int  # EUR

    @property
    def is_paid(self) -> bool:
        return self.monthly_price > 0


PLANS: dict[SubscriptionPlan, PlanInfo] = {
    SubscriptionPlan.FREE: PlanInfo(
        SubscriptionPlan.FREE, "Free", "One project, manual publishing.", 0, 0
    ),
    SubscriptionPlan.PRO: PlanInfo(
        SubscriptionPlan.PRO, "Pro", "Unlimited projects and scheduled posts.", 19, 190
    ),
    SubscriptionPlan.BUSINESS: PlanInfo(
        SubscriptionPlan.BUSINESS, "Business", "Team seats and priority support.", 49, 490
    ),
}


def _price_id(plan: SubscriptionPlan, yearly: bool) -> str:
    key = f"STRIPE_PRICE_{plan.value.upper()}_{'YEARLY' if yearly else 'MONTHLY'}"
    return getattr(settings, key, "")


def get_effective_plan(user: User, now: datetime | None = None) -> PlanInfo:
    """The user's plan, falling back to Free once the subscription has expired."""
    now = now or datetime.now(timezone.utc)
    try:
        plan = SubscriptionPlan(user.subscription_plan)
    except ValueError:
        plan = SubscriptionPlan.FREE

    expires_at = user.subscription_expires_at
    if expires_at is not None:
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        if expires_at <= now:
            plan = SubscriptionPlan.FREE
    return PLANS[plan]


def create_checkout_session(user: User, plan: SubscriptionPlan, yearly: bool) -> str:
    """
    Start a Stripe Checkout session for a paid plan.

    Returns:
        The hosted checkout URL

    Raises:
        BillingError: unknown/free plan, missing price id or Stripe failure
    """
    if not PLANS[plan].is_paid:
        raise BillingError("Plan is not purchasable")
    price_id = _price_id(plan, yearly)
    if not price_id or not settings.STRIPE_API_KEY:
        logger.warning("Stripe not configured for plan=%s yearly=%s", plan.value, yearly)
        raise BillingError("Billing is not configured")

    base_url = settings.APP_URL.rstrip("/")
    params: dict[str, Any] = {
        "mode": "subscription",
        "line_items": [{"price": price_id, "quantity": 1}],
        "success_url": f"{base_url}/dashboard/billing?checkout=success",
        "cancel_url": f"{base_url}/dashboard/billing?checkout=cancelled",
        "client_reference_id": str(user.id),
        "metadata": {"user_id": str(user.id), "plan": plan.value},
    }
    if user.stripe_customer_id:
        params["customer"] = user.stripe_customer_id
    else:
        params["customer_email"] = user.email

    try:
        session = stripe.checkout.Session.create(api_key=settings.STRIPE_API_KEY, **params)
    except stripe.StripeError as e:
        logger.error("Stripe checkout failed user=%s plan=%s: %s", user.id, plan.value, e)
        raise BillingError("Payment service unavailable") from e

    logger.info("Created Stripe checkout session user=%s plan=%s", user.id, plan.value)
    return session.url


def construct_event(payload: bytes, sig_header: str):
    """
    Validate and construct a Stripe webhook event.

    Raises:
        InvalidWebhook: bad payload or signature, or no secret configured
    """
    if not settings.STRIPE_WEBHOOK_SECRET:
        raise InvalidWebhook("Stripe webhook secret not configured")
    try:
        return stripe.Webhook.construct_event(payload, sig_header, settings.STRIPE_WEBHOOK_SECRET)
    except ValueError as e:
        raise InvalidWebhook("Invalid payload") from e
    except stripe.SignatureVerificationError as e:
        raise InvalidWebhook("Invalid signature") from e


def _field(obj: Any, key: str) -> Any:
    try:
        return obj[key]
    except (KeyError, TypeError):
        return None


def _set_plan(
    db: Session,
    user: User,
    plan: SubscriptionPlan,
    customer_id: str | None = None,
) -> bool:
    previous = user.subscription_plan
    user.subscription_plan = plan.value
    user.subscription_expires_at = None
    if customer_id:
        user.stripe_customer_id = customer_id
    try:
        db.commit()
    except SQLAlchemyError:
        logger.exception("Failed to update plan user=%s", user.id)
        db.rollback()
        return False

    activity_service.log_success(
        db,
        user_id=user.id,
        action=activity_service.SUBSCRIPTION_CHANGED,
        resource_type="subscription",
        resource_id=customer_id or user.stripe_customer_id,
        details={"from": previous, "to": plan.value},
    )
    return True


def handle_event(db: Session, event: Any) -> bool:
    """
    Apply a verified webhook event.

    - checkout.session.completed: set the purchased plan and customer id
    - customer.subscription.deleted: back to Free

    Returns:
        True if the event changed a user, False if it was ignored
    """
    event_type = _field(event, "type")
    obj = _field(_field(event, "data"), "object")

    if event_type == "checkout.session.completed":
        metadata = _field(obj, "metadata") or {}
        raw_user_id = _field(metadata, "user_id") or _field(obj, "client_reference_id")
        try:
            plan = SubscriptionPlan(_field(metadata, "plan"))
            user_id = UUID(str(raw_user_id))
        except ValueError:
            logger.warning("Checkout event without usable metadata")
            return False
        user = user_service.get_user_by_id(db, user_id)
        if user is None:
            logger.warning("Checkout event for unknown user=%s", user_id)
            return False
        return _set_plan(db, user, plan, customer_id=_field(obj, "customer"))

    if event_type == "customer.subscription.deleted":
        customer_id = _field(obj, "customer")
        if not customer_id:
            return False
        try:
            user = db.query(User).filter(User.stripe_customer_id == customer_id).first()
        except SQLAlchemyError:
            logger.exception("Failed to load user by Stripe customer")
            db.rollback()
            return False
        if user is None:
            logger.warning("Subscription deleted for unknown customer")
            return False
        return _set_plan(db, user, SubscriptionPlan.FREE)

    logger.debug("Ignoring Stripe event type=%s", event_type)
    return False
