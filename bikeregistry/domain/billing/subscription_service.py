"""Subscription service - Business logic for subscription management"""

import logging
from datetime import datetime

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import DODO_PRODUCT_IDS, FRONTEND_URL
from ...models import Subscription, User
from ...plan_limits import (
    PLAN_ORDER,
    PLANS,
    count_registered_bicycles,
    format_currency,
    get_bicycle_limit,
    is_upgrade,
    is_valid_plan,
)
from ..promo_codes.service import PromoCodeService
from .dodo_service import dodo_service
from .repository import BillingRepository
from .schemas import CancelRequest, ChangePlanRequest, CreateSubscriptionRequest

logger = logging.getLogger(__name__)

DEFAULT_RETURN_PATH = "/subscription/success"


def get_product_id(plan_type: str) -> str:
    """Dodo product ID for a plan; 503 when the product is not configured"""
    product_id = DODO_PRODUCT_IDS.get(plan_type)
    if not product_id:
        logger.error(f"❌ No Dodo product configured for plan {plan_type}")
        raise HTTPException(status_code=503, detail="Billing service temporarily unavailable")
    return product_id


class SubscriptionService:
    """Service for subscription management"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BillingRepository()

    def list_plans(self) -> list[dict]:
        return [
            {
                "id": plan_id,
                "name": PLANS[plan_id]["name"],
                "bicycle_limit": PLANS[plan_id]["bicycle_limit"],
                "price": PLANS[plan_id]["price"],
                "currency": "MXN",
            }
            for plan_id in PLAN_ORDER
        ]

    def _require_active_subscription(self, user: User) -> Subscription:
        subscription = self.repo.get_active_subscription(self.db, user.id)
        if not subscription:
            raise HTTPException(status_code=404, detail="No active subscription found")
        return subscription

    async def create_subscription(self, request: CreateSubscriptionRequest, user: User) -> dict:
        """Start a Dodo checkout for a plan, optionally with a promo code"""
        plan_type = request.planType
        if not is_valid_plan(plan_type):
            raise HTTPException(status_code=400, detail="Invalid plan")

        metadata = {
            "user_id": str(user.id),
            "plan_type": plan_type,
            "bicycle_limit": str(get_bicycle_limit(plan_type)),
        }

        discount_code = None
        if request.promoCode:
            promo_service = PromoCodeService(self.db)
            validation = promo_service.validate(request.promoCode, plan_type)
            discount_code = validation["code"]
            metadata["promo_code"] = discount_code
            metadata["original_price"] = str(validation["original_price"])
            metadata["final_price"] = str(validation["discounted_price"])

        if not dodo_service.is_available():
            raise HTTPException(status_code=503, detail="Billing service temporarily unavailable")

        product_id = get_product_id(plan_type)
        return_url = f"{FRONTEND_URL}{request.returnPath or DEFAULT_RETURN_PATH}"

        try:
            session = await dodo_service.create_checkout_session(
                product_id=product_id,
                customer_email=user.email,
                customer_name=user.full_name,
                return_url=return_url,
                metadata=metadata,
                discount_code=discount_code,
            )
        except Exception as e:
            logger.error(f"❌ Failed to create checkout session for user {user.id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to create checkout session") from e

        logger.info(
            f"✅ Created checkout session for user {user.id}: {session.get('session_id')} ({plan_type})"
        )
        return {
            "checkout_url": session.get("checkout_url"),
            "session_id": session.get("session_id"),
        }

    def check_subscription(self, user: User) -> dict:
        subscription = self.repo.get_active_subscription(self.db, user.id)
        return {
            "hasActiveSubscription": subscription is not None,
            "subscription": subscription,
            "bicyclesRegistered": count_registered_bicycles(user, self.db),
        }

    async def cancel_subscription(self, request: CancelRequest, user: User) -> dict:
        """Cancel now or at the end of the current billing period"""
        subscription = self._require_active_subscription(user)

        if subscription.subscription_id:
            if not dodo_service.is_available():
                raise HTTPException(
                    status_code=503, detail="Billing service temporarily unavailable"
                )
            try:
                await dodo_service.cancel_subscription(
                    subscription.subscription_id, immediate=request.immediate
                )
            except Exception as e:
                logger.error(f"❌ Failed to cancel subscription for user {user.id}: {e}")
                raise HTTPException(status_code=500, detail="Failed to cancel subscription") from e

        try:
            if request.immediate:
                subscription.status = "canceled"
                subscription.cancel_at_period_end = False
                subscription.pending_plan_change = None
                subscription.pending_plan_change_date = None
            else:
                subscription.cancel_at_period_end = True
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"✅ Canceled subscription {subscription.subscription_id} for user {user.id} "
            f"(immediate={request.immediate})"
        )

        if request.immediate:
            return {"message": "Subscription canceled", "status": subscription.status}

        return {
            "message": "Subscription will be canceled at the end of the billing period",
            "status": subscription.status,
            "cancelDate": subscription.current_period_end,
        }

    async def change_plan(self, request: ChangePlanRequest, user: User) -> dict:
        """Upgrade immediately with proration, or schedule a downgrade for the next renewal"""
        new_plan = request.newPlan
        if not is_valid_plan(new_plan):
            raise HTTPException(status_code=400, detail="Invalid plan")

        subscription = self._require_active_subscription(user)

        if subscription.plan_type == new_plan:
            raise HTTPException(status_code=400, detail="You already have this plan")

        new_limit = get_bicycle_limit(new_plan)

        if is_upgrade(subscription.plan_type, new_plan):
            if subscription.subscription_id:
                if not dodo_service.is_available():
                    raise HTTPException(
                        status_code=503, detail="Billing service temporarily unavailable"
                    )
                product_id = get_product_id(new_plan)
                try:
                    await dodo_service.change_plan(
                        subscription.subscription_id,
                        product_id,
                        proration_billing_mode="prorated_immediately",
                    )
                except Exception as e:
                    logger.error(f"❌ Failed to change plan for user {user.id}: {e}")
                    raise HTTPException(status_code=500, detail="Failed to change plan") from e

            try:
                subscription.plan_type = new_plan
                subscription.bicycle_limit = new_limit
                subscription.pending_plan_change = None
                subscription.pending_plan_change_date = None
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

            logger.info(f"✅ Upgraded user {user.id} to {new_plan}")
            return {
                "message": "Plan upgraded successfully",
                "planType": new_plan,
                "bicycleLimit": new_limit,
                "effective": "immediate",
            }

        registered = count_registered_bicycles(user, self.db)
        if registered > new_limit:
            raise HTTPException(
                status_code=400,
                detail=(
                    f"You have {registered} registered bicycles and the {new_plan} plan "
                    f"allows {new_limit}. Remove bicycles before downgrading."
                ),
            )

        effective_date = subscription.current_period_end or datetime.utcnow()
        try:
            subscription.pending_plan_change = new_plan
            subscription.pending_plan_change_date = effective_date
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"📅 Scheduled downgrade for user {user.id} to {new_plan} on {effective_date}")
        return {
            "message": "Plan change scheduled for the end of the billing period",
            "planType": subscription.plan_type,
            "pendingPlanChange": new_plan,
            "effectiveDate": effective_date,
        }

    def get_payments(self, user: User) -> list[dict]:
        """User's payment history, newest first"""
        return [
            {
                "id": payment.id,
                "provider_payment_id": payment.provider_payment_id,
                "bicycle_id": payment.bicycle_id,
                "amount": payment.amount,
                "currency": payment.currency,
                "amount_display": format_currency(payment.amount, payment.currency),
                "payment_status": payment.payment_status,
                "payment_type": payment.payment_type,
                "subscription_id": payment.subscription_id,
                "payment_date": payment.payment_date,
            }
            for payment in self.repo.list_payments(self.db, user.id)
        ]
