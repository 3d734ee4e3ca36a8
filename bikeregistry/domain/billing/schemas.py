"""Billing domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


def _normalize_plan(v: str) -> str:
    # Unknown plans are rejected by the service with a 400
    return (v or "").strip().lower()


class CreateSubscriptionRequest(BaseModel):
    """Schema for starting a subscription checkout"""

    planType: str
    promoCode: Optional[str] = None
    returnPath: Optional[str] = None  # e.g. "/subscription/success"

    @field_validator("planType")
    @classmethod
    def normalize_plan_type(cls, v: str) -> str:
        return _normalize_plan(v)

    @field_validator("promoCode")
    @classmethod
    def normalize_promo_code(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip().upper()


class CancelRequest(BaseModel):
    """Schema for canceling subscription"""

    immediate: bool = False


class ChangePlanRequest(BaseModel):
    """Schema for changing subscription plan"""

    newPlan: str

    @field_validator("newPlan")
    @classmethod
    def normalize_new_plan(cls, v: str) -> str:
        return _normalize_plan(v)


class PlanResponse(BaseModel):
    id: str
    name: str
    bicycle_limit: int
    price: int
    currency: str = "MXN"


class SubscriptionResponse(BaseModel):
    id: int
    subscription_id: Optional[str]
    plan_type: str
    bicycle_limit: int
    status: str
    current_period_start: Optional[datetime]
    current_period_end: Optional[datetime]
    cancel_at_period_end: bool
    pending_plan_change: Optional[str]
    pending_plan_change_date: Optional[datetime]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class SubscriptionCheckResponse(BaseModel):
    hasActiveSubscription: bool
    subscription: Optional[SubscriptionResponse] = None
    bicyclesRegistered: int = 0


class PaymentResponse(BaseModel):
    id: int
    provider_payment_id: Optional[str]
    bicycle_id: Optional[int]
    amount: int
    currency: str
    amount_display: str
    payment_status: str
    payment_type: str
    subscription_id: Optional[str]
    payment_date: Optional[datetime]


class UpdatePaymentStatusRequest(BaseModel):
    paymentId: int
