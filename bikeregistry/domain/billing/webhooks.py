"""Dodo Payments webhook receiver - Subscription and payment lifecycle events"""

import json
import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from ...cache import is_webhook_processed, mark_webhook_processed, unmark_webhook_processed
from ...config import DODO_PAYMENTS_WEBHOOK_SECRET
from ...database import get_db
from ...email_service import send_subscription_activated_email, send_subscription_canceled_email
from ...models import Payment, Subscription, User
from ...plan_limits import PLANS, get_bicycle_limit, is_valid_plan
from ...rate_limiter import create_rate_limiter
from ...webhook_security import verify_payment_webhook
from ..promo_codes.service import PromoCodeService
from .dodo_service import dodo_service
from .repository import BillingRepository
from .subscription_service import get_product_id

logger = logging.getLogger(__name__)

webhooks_router = APIRouter(tags=["Webhooks"])

# Rate limiter for payment webhooks - 100 requests per minute
rate_limit_payment_webhook = create_rate_limiter(
    limit=100,
    window_seconds=60,
    key_prefix="webhook_payments",
    use_ip=False,  # Global limit for all webhooks
)

BILLING_PERIOD_DAYS = 30

ACTIVATION_EVENTS = ("subscription.active", "checkout.session.completed")
PAST_DUE_EVENTS = ("payment.failed", "subscription.failed", "subscription.on_hold")
CANCELED_EVENTS = ("subscription.cancelled", "subscription.expired")


def _parse_datetime(value) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp from the provider into a naive UTC datetime"""
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            logger.warning(f"⚠️ Could not parse provider datetime: {value}")
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.replace(tzinfo=None) - (parsed.utcoffset() or timedelta(0))
    return parsed


def _customer_email(data: dict) -> Optional[str]:
    customer = data.get("customer")
    email = customer.get("email") if isinstance(customer, dict) else None
    return email or data.get("email")


def _customer_id(data: dict) -> Optional[str]:
    customer = data.get("customer")
    if isinstance(customer, dict) and (customer.get("customer_id") or customer.get("id")):
        return customer.get("customer_id") or customer.get("id")
    return data.get("customer_id")


def _subscription_id(data: dict, event_type: str) -> Optional[str]:
    if event_type.startswith("subscription."):
        return data.get("subscription_id") or data.get("id")
    return data.get("subscription_id")


class WebhookProcessor:
    """Applies a verified webhook event to local subscription and payment rows"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BillingRepository()

    def resolve_user(self, data: dict) -> Optional[User]:
        """Find the user from metadata user_id, falling back to the customer email"""
        meta = data.get("metadata") or {}
        user = None

        raw_user_id = meta.get("user_id")
        if raw_user_id:
            try:
                user = self.repo.get_user_by_id(self.db, int(raw_user_id))
            except (TypeError, ValueError):
                logger.warning(f"⚠️ Invalid user_id in webhook metadata: {raw_user_id}")
            logger.info(f"🔍 User lookup by user_id {raw_user_id}: {'found' if user else 'not found'}")

        email = _customer_email(data)
        if not user and email:
            user = self.repo.get_user_by_email(self.db, email)
            logger.info(f"🔍 User lookup by email: {'found' if user else 'not found'}")

        return user

    def find_subscription(self, data: dict, event_type: str) -> Optional[Subscription]:
        subscription_id = _subscription_id(data, event_type)
        if not subscription_id:
            return None
        return self.repo.get_by_provider_id(self.db, subscription_id)

    async def handle(self, event_type: str, data: dict) -> dict:
        if event_type in ACTIVATION_EVENTS:
            return await self.handle_activation(event_type, data)
        if event_type == "subscription.renewed":
            return await self.handle_renewal(data)
        if event_type == "payment.succeeded":
            return self.handle_payment_succeeded(data)
        if event_type in PAST_DUE_EVENTS:
            return self.set_status(event_type, data, "past_due")
        if event_type in CANCELED_EVENTS:
            return await self.handle_cancellation(event_type, data)

        logger.info(f"ℹ️ Ignoring unhandled webhook event type: {event_type}")
        return {"status": "ignored", "event_type": event_type}

    async def handle_activation(self, event_type: str, data: dict) -> dict:
        meta = data.get("metadata") or {}
        user = self.resolve_user(data)
        if not user:
            logger.warning(f"❌ User not found for {event_type}; skipping")
            return {"status": "user_not_found"}

        subscription_id = _subscription_id(data, event_type)
        if not subscription_id:
            logger.warning(f"⚠️ No subscription_id in {event_type} for user {user.id}; skipping")
            return {"status": "missing_subscription_id"}

        subscription = self.repo.get_by_provider_id(self.db, subscription_id)
        # Promo usage is counted once, when the subscription first turns active
        newly_active = subscription is None or subscription.status != "active"

        plan_type = meta.get("plan_type")
        if not is_valid_plan(plan_type):
            plan_type = subscription.plan_type if subscription else None
        if not plan_type:
            logger.warning(f"⚠️ No plan_type in metadata for {event_type}; skipping")
            return {"status": "missing_plan"}

        now = datetime.utcnow()
        period_end = _parse_datetime(data.get("next_billing_date")) or now + timedelta(
            days=BILLING_PERIOD_DAYS
        )

        try:
            canceled = self.repo.cancel_other_active_subscriptions(
                self.db, user.id, subscription_id
            )
            if canceled:
                logger.info(f"🔄 Canceled {canceled} previous subscription(s) for user {user.id}")

            if not subscription:
                subscription = Subscription(user_id=user.id, subscription_id=subscription_id)
                self.db.add(subscription)

            subscription.customer_id = _customer_id(data) or subscription.customer_id
            subscription.plan_type = plan_type
            subscription.bicycle_limit = get_bicycle_limit(plan_type)
            subscription.status = "active"
            subscription.current_period_start = now
            subscription.current_period_end = period_end
            subscription.cancel_at_period_end = False
            self.db.commit()
            self.db.refresh(subscription)
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"✅ Subscription {subscription_id} active for user {user.id} ({plan_type}, "
            f"{subscription.bicycle_limit} bicycles)"
        )

        promo_code = meta.get("promo_code")
        if promo_code and newly_active:
            PromoCodeService(self.db).increment_usage(promo_code)

        try:
            await send_subscription_activated_email(
                to=user.email,
                user_name=user.full_name,
                plan_name=PLANS[plan_type]["name"],
                bicycle_limit=subscription.bicycle_limit,
                period_end=subscription.current_period_end,
            )
        except Exception as e:
            logger.error(f"❌ Failed to send subscription email to user {user.id}: {e}")

        return {"status": "activated", "subscription_id": subscription_id}

    async def handle_renewal(self, data: dict) -> dict:
        subscription = self.find_subscription(data, "subscription.renewed")
        if not subscription:
            logger.warning("⚠️ Renewal for unknown subscription; skipping")
            return {"status": "subscription_not_found"}

        now = datetime.utcnow()
        pending_plan = subscription.pending_plan_change

        if pending_plan and subscription.subscription_id:
            product_id = get_product_id(pending_plan)
            await dodo_service.change_plan(subscription.subscription_id, product_id)
            logger.info(
                f"🔄 Applied pending plan change {subscription.plan_type} -> {pending_plan} "
                f"for subscription {subscription.subscription_id}"
            )

        try:
            if pending_plan:
                subscription.plan_type = pending_plan
                subscription.bicycle_limit = get_bicycle_limit(pending_plan)
                subscription.pending_plan_change = None
                subscription.pending_plan_change_date = None
            subscription.status = "active"
            subscription.current_period_start = now
            subscription.current_period_end = _parse_datetime(
                data.get("next_billing_date")
            ) or now + timedelta(days=BILLING_PERIOD_DAYS)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"✅ Subscription {subscription.subscription_id} renewed")
        return {"status": "renewed", "plan_type": subscription.plan_type}

    def handle_payment_succeeded(self, data: dict) -> dict:
        payment_id = data.get("payment_id") or data.get("id")
        if payment_id and self.repo.get_payment_by_provider_id(self.db, payment_id):
            logger.info(f"🔄 Payment {payment_id} already recorded")
            return {"status": "already_recorded"}

        user = self.resolve_user(data)
        if not user:
            logger.warning(f"❌ User not found for payment {payment_id}; skipping")
            return {"status": "user_not_found"}

        subscription_id = data.get("subscription_id")
        try:
            payment = Payment(
                user_id=user.id,
                provider_payment_id=payment_id,
                amount=int(data.get("total_amount") or data.get("amount") or 0),
                currency=(data.get("currency") or "MXN").upper(),
                payment_status="completed",
                payment_type="subscription",
                subscription_id=subscription_id,
                payment_date=_parse_datetime(data.get("created_at")) or datetime.utcnow(),
            )
            self.db.add(payment)

            subscription = self.find_subscription(data, "payment.succeeded")
            if subscription and subscription.status != "canceled":
                subscription.status = "active"

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"💾 Recorded payment {payment_id} for user {user.id}: {payment.amount}")
        return {"status": "payment_recorded", "payment_id": payment_id}

    def set_status(self, event_type: str, data: dict, status: str) -> dict:
        subscription = self.find_subscription(data, event_type)
        if not subscription:
            logger.warning(f"⚠️ {event_type} for unknown subscription; skipping")
            return {"status": "subscription_not_found"}

        try:
            subscription.status = status
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"🔄 Subscription {subscription.subscription_id} set to {status} ({event_type})")
        return {"status": status}

    async def handle_cancellation(self, event_type: str, data: dict) -> dict:
        result = self.set_status(event_type, data, "canceled")
        if result["status"] != "canceled":
            return result

        subscription = self.find_subscription(data, event_type)
        user = subscription.user
        try:
            await send_subscription_canceled_email(
                to=user.email,
                user_name=user.full_name,
                cancel_date=datetime.utcnow(),
            )
        except Exception as e:
            logger.error(f"❌ Failed to send cancellation email to user {user.id}: {e}")

        return result


@webhooks_router.post("/webhooks/payments")
async def handle_payment_webhook(
    request: Request,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_payment_webhook),
):
    """
    Verify signature and process subscription lifecycle events - Rate limited to 100 requests per minute.

    Headers:
      - 'webhook-signature': 'v1,{base64(hmac_sha256(webhook-id.webhook-timestamp.payload))}'
      - 'webhook-id': Unique webhook ID for idempotency
      - 'webhook-timestamp': Unix timestamp (seconds)
    """
    if not DODO_PAYMENTS_WEBHOOK_SECRET:
        logger.error("❌ DODO_PAYMENTS_WEBHOOK_SECRET not configured")
        raise HTTPException(status_code=500, detail="Webhook not configured")

    raw_body = await verify_payment_webhook(request, DODO_PAYMENTS_WEBHOOK_SECRET)
    webhook_id = request.headers.get("webhook-id", "unknown")

    if is_webhook_processed(webhook_id):
        logger.info(f"🔄 Webhook {webhook_id} already processed, skipping (idempotency)")
        return {"status": "already_processed", "webhook_id": webhook_id}

    try:
        event = json.loads(raw_body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error(f"Failed to parse webhook JSON: {e}")
        raise HTTPException(status_code=400, detail="Invalid JSON payload") from e

    event_type = event.get("type") or ""
    data = event.get("data") or {}
    logger.info(f"🔔 Webhook received id={webhook_id} type={event_type}")

    mark_webhook_processed(webhook_id)

    try:
        result = await WebhookProcessor(db).handle(event_type, data)
    except HTTPException:
        unmark_webhook_processed(webhook_id)
        raise
    except Exception as e:
        unmark_webhook_processed(webhook_id)
        logger.error(f"❌ Failed to process webhook {webhook_id} ({event_type}): {e}")
        raise HTTPException(status_code=500, detail="Failed to process webhook") from e

    return {"received": True, "event_type": event_type, **result}
