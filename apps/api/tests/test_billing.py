"""Tests for plans, Stripe Checkout and the Stripe webhook."""

import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
import stripe
from httpx import AsyncClient
from sqlalchemy.orm import Session

from soloflow.core.config import settings
from soloflow.db.enums import SubscriptionPlan
from soloflow.db.models import Activity, User
from soloflow.services import billing_service


@pytest.fixture
def stripe_configured(monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_API_KEY", "sk_test_123")
    monkeypatch.setattr(settings, "STRIPE_PRICE_PRO_MONTHLY", "price_pro_m")
    monkeypatch.setattr(settings, "STRIPE_PRICE_PRO_YEARLY", "price_pro_y")
    monkeypatch.setattr(settings, "APP_URL", "https://app.example.com")


# =============================================================================
# Plans
# =============================================================================

def test_effective_plan_falls_back_to_free_when_expired():
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    user = User(subscription_plan="pro", subscription_expires_at=now - timedelta(days=1))
    assert billing_service.get_effective_plan(user, now=now).plan == SubscriptionPlan.FREE

    user.subscription_expires_at = now + timedelta(days=1)
    assert billing_service.get_effective_plan(user, now=now).plan == SubscriptionPlan.PRO

    user.subscription_expires_at = None
    assert billing_service.get_effective_plan(user, now=now).plan == SubscriptionPlan.PRO


def test_unknown_stored_plan_is_free():
    user = User(subscription_plan="platinum")
    assert billing_service.get_effective_plan(user).plan == SubscriptionPlan.FREE


# =============================================================================
# Checkout
# =============================================================================

def test_checkout_session_params(stripe_configured, monkeypatch):
    captured = {}

    def fake_create(**params):
        captured.update(params)
        return SimpleNamespace(url="https://checkout.stripe.com/c/pay/cs_test")

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
    user = User(email="buyer@example.com")
    user.id = uuid.uuid4()

    url = billing_service.create_checkout_session(user, SubscriptionPlan.PRO, yearly=True)

    assert url == "https://checkout.stripe.com/c/pay/cs_test"
    assert captured["api_key"] == "sk_test_123"
    assert captured["line_items"] == [{"price": "price_pro_y", "quantity": 1}]
    assert captured["customer_email"] == "buyer@example.com"
    assert captured["metadata"] == {"user_id": str(user.id), "plan": "pro"}
    assert captured["success_url"].startswith("https://app.example.com/dashboard/billing")


def test_checkout_rejects_free_and_unconfigured_plans(stripe_configured):
    user = User(email="buyer@example.com")
    with pytest.raises(billing_service.BillingError):
        billing_service.create_checkout_session(user, SubscriptionPlan.FREE, yearly=False)
    with pytest.raises(billing_service.BillingError):
        billing_service.create_checkout_session(user, SubscriptionPlan.BUSINESS, yearly=False)


def test_checkout_wraps_stripe_errors(stripe_configured, monkeypatch):
    def failing_create(**params):
        raise stripe.APIConnectionError("network down")

    monkeypatch.setattr(stripe.checkout.Session, "create", failing_create)
    with pytest.raises(billing_service.BillingError):
        billing_service.create_checkout_session(User(email="b@example.com"), SubscriptionPlan.PRO, yearly=False)


@pytest.mark.asyncio
async def test_billing_page_shows_current_plan(authed_client: AsyncClient):
    response = await authed_client.get("/dashboard/billing")
    assert response.status_code == 200
    assert 'id="current-plan">Free<' in response.text


@pytest.mark.asyncio
async def test_checkout_route_redirects_to_stripe(authed_client: AsyncClient, monkeypatch):
    monkeypatch.setattr(
        billing_service,
        "create_checkout_session",
        lambda user, plan, yearly: f"https://checkout.stripe.com/{plan.value}/{'y' if yearly else 'm'}",
    )

    response = await authed_client.post(
        "/dashboard/billing/checkout", data={"plan": "business", "interval": "yearly"}
    )

    assert response.status_code == 303
    assert response.headers["location"] == "https://checkout.stripe.com/business/y"


@pytest.mark.asyncio
async def test_checkout_route_reports_billing_errors(authed_client: AsyncClient):
    # No Stripe keys configured in tests
    response = await authed_client.post("/dashboard/billing/checkout", data={"plan": "pro"})
    assert response.status_code == 502
    assert "Billing unavailable" in response.text


# =============================================================================
# Webhook
# =============================================================================

def _checkout_completed(user_id, plan="pro", customer="cus_123") -> dict:
    return {
        "type": "checkout.session.completed",
        "data": {"object": {
            "customer": customer,
            "client_reference_id": str(user_id),
            "metadata": {"user_id": str(user_id), "plan": plan},
        }},
    }


def test_checkout_completed_sets_plan(db: Session, test_user):
    assert billing_service.handle_event(db, _checkout_completed(test_user.id)) is True

    db.expire_all()
    user = db.get(User, test_user.id)
    assert user.subscription_plan == "pro"
    assert user.stripe_customer_id == "cus_123"
    activity = db.query(Activity).filter(Activity.action == "subscription_changed").one()
    assert activity.details == {"from": "free", "to": "pro"}


def test_subscription_deleted_reverts_to_free(db: Session, test_user):
    billing_service.handle_event(db, _checkout_completed(test_user.id, plan="business"))

    handled = billing_service.handle_event(
        db,
        {"type": "customer.subscription.deleted", "data": {"object": {"customer": "cus_123"}}},
    )

    assert handled is True
    db.expire_all()
    assert db.get(User, test_user.id).subscription_plan == "free"


def test_irrelevant_events_are_ignored(db: Session, test_user):
    assert billing_service.handle_event(db, {"type": "invoice.paid", "data": {"object": {}}}) is False
    assert billing_service.handle_event(
        db, {"type": "customer.subscription.deleted", "data": {"object": {"customer": "cus_unknown"}}}
    ) is False
    assert billing_service.handle_event(
        db, {"type": "checkout.session.completed", "data": {"object": {"metadata": {"plan": "gold"}}}}
    ) is False


@pytest.mark.asyncio
async def test_webhook_rejects_unverified_payload(client: AsyncClient):
    response = await client.post("/webhooks/stripe", content=b"{}", headers={"stripe-signature": "t=1,v1=bad"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_webhook_rejects_bad_signature(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", "whsec_test")
    response = await client.post("/webhooks/stripe", content=b"{}", headers={"stripe-signature": "t=1,v1=bad"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_webhook_applies_verified_event(client: AsyncClient, db: Session, test_user, monkeypatch):
    event = _checkout_completed(test_user.id)
    monkeypatch.setattr(billing_service, "construct_event", lambda payload, signature: event)

    response = await client.post("/webhooks/stripe", content=b"{}", headers={"stripe-signature": "sig"})

    assert response.status_code == 200
    assert response.json() == {"received": True, "handled": True}
    db.expire_all()
    assert db.get(User, test_user.id).subscription_plan == "pro"
