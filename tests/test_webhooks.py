import json
import os
import time
from unittest.mock import AsyncMock, patch

import pytest

from bikeregistry.domain.billing.dodo_service import dodo_service
from bikeregistry.models import Payment, PromoCode, Subscription
from bikeregistry.webhook_security import compute_webhook_signature

SECRET = os.environ["DODO_PAYMENTS_WEBHOOK_SECRET"]


def send_webhook(client, event: dict, webhook_id: str = "msg_1", secret: str = SECRET):
    body = json.dumps(event).encode("utf-8")
    timestamp = str(int(time.time()))
    signature = compute_webhook_signature(secret, webhook_id, timestamp, body)
    return client.post(
        "/webhooks/payments",
        content=body,
        headers={
            "webhook-id": webhook_id,
            "webhook-timestamp": timestamp,
            "webhook-signature": f"v1,{signature}",
            "content-type": "application/json",
        },
    )


def activation_event(user, plan_type="standard", subscription_id="sub_new", **metadata):
    return {
        "type": "subscription.active",
        "data": {
            "subscription_id": subscription_id,
            "customer": {"customer_id": "cus_9", "email": user.email},
            "next_billing_date": "2030-01-15T00:00:00Z",
            "metadata": {"user_id": str(user.id), "plan_type": plan_type, **metadata},
        },
    }


class TestSignature:
    def test_missing_headers(self, client):
        response = client.post("/webhooks/payments", json={"type": "subscription.active"})
        assert response.status_code == 401

    def test_wrong_secret(self, client, user):
        response = send_webhook(client, activation_event(user), secret="whsec_d3Jvbmc=")
        assert response.status_code == 401

    def test_stale_timestamp(self, client):
        body = b'{"type": "payment.succeeded", "data": {}}'
        timestamp = str(int(time.time()) - 3600)
        signature = compute_webhook_signature(SECRET, "msg_old", timestamp, body)
        response = client.post(
            "/webhooks/payments",
            content=body,
            headers={
                "webhook-id": "msg_old",
                "webhook-timestamp": timestamp,
                "webhook-signature": f"v1,{signature}",
            },
        )
        assert response.status_code == 401


class TestActivation:
    def test_activates_subscription(self, client, db, user, emails):
        response = send_webhook(client, activation_event(user))

        assert response.status_code == 200
        assert response.json()["status"] == "activated"

        subscription = db.query(Subscription).filter(Subscription.subscription_id == "sub_new").one()
        assert subscription.user_id == user.id
        assert subscription.status == "active"
        assert subscription.plan_type == "standard"
        assert subscription.bicycle_limit == 2
        assert subscription.customer_id == "cus_9"
        assert subscription.current_period_end.year == 2030
        emails["subscription_activated"].assert_awaited_once()

    def test_replaces_previous_active_subscription(self, client, db, user, make_subscription):
        old = make_subscription(user, plan_type="basic", subscription_id="sub_old")

        send_webhook(client, activation_event(user))

        db.refresh(old)
        assert old.status == "canceled"
        active = db.query(Subscription).filter(Subscription.status == "active").all()
        assert [s.subscription_id for s in active] == ["sub_new"]

    def test_user_resolved_by_email(self, client, db, user):
        event = activation_event(user)
        del event["data"]["metadata"]["user_id"]

        send_webhook(client, event)

        assert db.query(Subscription).filter(Subscription.user_id == user.id).count() == 1

    def test_counts_promo_code_usage(self, client, db, user):
        db.add(PromoCode(code="RODADA25", discount_type="percentage", discount_value=25))
        db.commit()

        send_webhook(client, activation_event(user, promo_code="RODADA25"))

        promo = db.query(PromoCode).filter(PromoCode.code == "RODADA25").one()
        db.refresh(promo)
        assert promo.current_uses == 1

    def test_promo_counted_once_per_subscription(self, client, db, user):
        db.add(PromoCode(code="RODADA25", discount_type="percentage", discount_value=25))
        db.commit()
        checkout = activation_event(user, promo_code="RODADA25")
        checkout["type"] = "checkout.session.completed"

        send_webhook(client, checkout, webhook_id="msg_checkout")
        send_webhook(client, activation_event(user, promo_code="RODADA25"), webhook_id="msg_active")
        send_webhook(client, activation_event(user, promo_code="RODADA25"), webhook_id="msg_again")

        promo = db.query(PromoCode).filter(PromoCode.code == "RODADA25").one()
        db.refresh(promo)
        assert promo.current_uses == 1

    def test_checkout_session_completed_activates(self, client, db, user):
        event = activation_event(user, plan_type="family")
        event["type"] = "checkout.session.completed"

        response = send_webhook(client, event)

        assert response.json()["status"] == "activated"
        subscription = db.query(Subscription).one()
        assert subscription.subscription_id == "sub_new"
        assert subscription.bicycle_limit == 4

    def test_checkout_without_subscription_id_is_skipped(self, client, db, user, emails):
        event = activation_event(user)
        event["type"] = "checkout.session.completed"
        del event["data"]["subscription_id"]

        response = send_webhook(client, event)

        assert response.json()["status"] == "missing_subscription_id"
        assert db.query(Subscription).count() == 0
        emails["subscription_activated"].assert_not_awaited()

    def test_row_without_provider_id_is_replaced(
        self, client, db, user, auth_headers, make_subscription
    ):
        orphan = make_subscription(user, subscription_id=None)

        send_webhook(client, activation_event(user), webhook_id="msg_active")
        db.refresh(orphan)
        assert orphan.status == "canceled"

        send_webhook(
            client,
            {"type": "subscription.cancelled", "data": {"subscription_id": "sub_new"}},
            webhook_id="msg_cancel",
        )

        body = client.get("/subscriptions/check", headers=auth_headers).json()
        assert body["hasActiveSubscription"] is False

    def test_email_failure_is_not_fatal(self, client, user, emails):
        emails["subscription_activated"].side_effect = Exception("Resend down")
        response = send_webhook(client, activation_event(user))
        assert response.status_code == 200

    def test_unknown_user(self, client, db):
        event = {
            "type": "subscription.active",
            "data": {"subscription_id": "sub_x", "metadata": {"plan_type": "basic"}},
        }
        response = send_webhook(client, event)
        assert response.json()["status"] == "user_not_found"
        assert db.query(Subscription).count() == 0


class TestIdempotency:
    def test_duplicate_delivery_is_skipped(self, client, db, user):
        first = send_webhook(client, activation_event(user), webhook_id="msg_dup")
        second = send_webhook(client, activation_event(user), webhook_id="msg_dup")

        assert first.json()["received"] is True
        assert second.json() == {"status": "already_processed", "webhook_id": "msg_dup"}
        assert db.query(Subscription).count() == 1

    def test_failed_delivery_can_be_retried(self, client, user, fake_cache):
        with patch(
            "bikeregistry.domain.billing.webhooks.WebhookProcessor.handle",
            AsyncMock(side_effect=RuntimeError("db down")),
        ):
            response = send_webhook(client, activation_event(user), webhook_id="msg_retry")

        assert response.status_code == 500
        assert "webhook_processed:msg_retry" not in fake_cache.store

        retry = send_webhook(client, activation_event(user), webhook_id="msg_retry")
        assert retry.json()["status"] == "activated"


class TestLifecycle:
    def test_payment_succeeded_records_payment(self, client, db, user, make_subscription):
        make_subscription(user, subscription_id="sub_123", status="past_due")
        event = {
            "type": "payment.succeeded",
            "data": {
                "payment_id": "pay_77",
                "subscription_id": "sub_123",
                "total_amount": 6000,
                "currency": "mxn",
                "customer": {"email": user.email},
            },
        }

        send_webhook(client, event, webhook_id="msg_pay")
        duplicate = send_webhook(client, event, webhook_id="msg_pay_retry")

        assert duplicate.json()["status"] == "already_recorded"
        payment = db.query(Payment).one()
        assert payment.amount == 6000
        assert payment.currency == "MXN"
        assert payment.payment_status == "completed"
        assert db.query(Subscription).one().status == "active"

    def test_payment_failed_marks_past_due(self, client, db, user, make_subscription):
        subscription = make_subscription(user, subscription_id="sub_123")
        send_webhook(client, {"type": "payment.failed", "data": {"subscription_id": "sub_123"}})
        db.refresh(subscription)
        assert subscription.status == "past_due"

    def test_cancellation(self, client, db, user, make_subscription, emails):
        subscription = make_subscription(user, subscription_id="sub_123")

        response = send_webhook(
            client, {"type": "subscription.cancelled", "data": {"subscription_id": "sub_123"}}
        )

        assert response.json()["status"] == "canceled"
        db.refresh(subscription)
        assert subscription.status == "canceled"
        emails["subscription_canceled"].assert_awaited_once()

    def test_renewal_applies_pending_downgrade(self, client, db, user, make_subscription):
        subscription = make_subscription(user, plan_type="premium", subscription_id="sub_123")
        subscription.pending_plan_change = "basic"
        db.commit()

        with patch.object(dodo_service, "change_plan", AsyncMock(return_value={})) as change_plan:
            response = send_webhook(
                client,
                {
                    "type": "subscription.renewed",
                    "data": {"subscription_id": "sub_123", "next_billing_date": "2030-03-01T00:00:00Z"},
                },
            )

        assert response.json()["plan_type"] == "basic"
        change_plan.assert_awaited_once_with("sub_123", "pdt_basic")
        db.refresh(subscription)
        assert subscription.bicycle_limit == 1
        assert subscription.pending_plan_change is None

    def test_unhandled_event(self, client):
        response = send_webhook(client, {"type": "refund.succeeded", "data": {}})
        assert response.status_code == 200
        assert response.json()["status"] == "ignored"

    def test_invalid_json(self, client):
        body = b"not json"
        timestamp = str(int(time.time()))
        signature = compute_webhook_signature(SECRET, "msg_bad", timestamp, body)
        response = client.post(
            "/webhooks/payments",
            content=body,
            headers={
                "webhook-id": "msg_bad",
                "webhook-timestamp": timestamp,
                "webhook-signature": f"v1,{signature}",
            },
        )
        assert response.status_code == 400


@pytest.fixture(autouse=True)
def dodo_available():
    with patch.object(dodo_service, "is_available", return_value=True):
        yield
