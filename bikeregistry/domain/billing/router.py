"""Billing router - FastAPI endpoints for subscription operations"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import (
    CancelRequest,
    ChangePlanRequest,
    CreateSubscriptionRequest,
    PaymentResponse,
    PlanResponse,
    SubscriptionCheckResponse,
)
from .subscription_service import SubscriptionService
from .webhooks import webhooks_router

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


def get_subscription_service(db: Session = Depends(get_db)) -> SubscriptionService:
    """Dependency injection for SubscriptionService"""
    return SubscriptionService(db)


# ============================================================================
# PLANS
# ============================================================================


@router.get("/plans", response_model=list[PlanResponse])
async def list_plans(service: SubscriptionService = Depends(get_subscription_service)):
    """Public plan catalogue"""
    return service.list_plans()


# ============================================================================
# SUBSCRIPTION MANAGEMENT
# ============================================================================


@router.post("/create")
async def create_subscription(
    body: CreateSubscriptionRequest,
    user: User = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Create a checkout session for a plan"""
    return await service.create_subscription(body, user)


@router.get("/check", response_model=SubscriptionCheckResponse)
async def check_subscription(
    user: User = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Whether the user has an active subscription"""
    return service.check_subscription(user)


@router.post("/cancel")
async def cancel_subscription(
    body: CancelRequest,
    user: User = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Cancel subscription"""
    return await service.cancel_subscription(body, user)


@router.post("/change-plan")
async def change_subscription_plan(
    body: ChangePlanRequest,
    user: User = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Change subscription plan"""
    return await service.change_plan(body, user)


# ============================================================================
# PAYMENT INFORMATION
# ============================================================================


@router.get("/payments", response_model=list[PaymentResponse])
async def get_user_payments(
    user: User = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Get user's payment history"""
    return service.get_payments(user)


__all__ = ["router", "webhooks_router"]
