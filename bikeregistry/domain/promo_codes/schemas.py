"""Promo code schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...plan_limits import PLANS


class ValidatePromoCodeRequest(BaseModel):
    code: str
    planType: str

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("planType")
    @classmethod
    def normalize_plan(cls, v: str) -> str:
        return v.strip().lower()


class PromoCodeValidationResponse(BaseModel):
    valid: bool
    code: str
    discount_type: str
    discount_value: float
    original_price: int
    discounted_price: int


class PromoCodeCreate(BaseModel):
    """Admin payload for a new promo code"""

    code: str = Field(..., min_length=3, max_length=50)
    discount_type: str = Field(..., pattern="^(percentage|fixed)$")
    discount_value: float = Field(..., gt=0)
    max_uses: Optional[int] = Field(None, ge=1)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    is_active: bool = True
    applicable_plans: Optional[list[str]] = None

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        v = v.strip().upper()
        if not v.replace("-", "").replace("_", "").isalnum():
            raise ValueError("Code may only contain letters, numbers, '-' and '_'")
        return v

    @field_validator("applicable_plans")
    @classmethod
    def validate_plans(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        if v is None:
            return v
        plans = [p.strip().lower() for p in v]
        unknown = [p for p in plans if p not in PLANS]
        if unknown:
            raise ValueError(f"Unknown plans: {', '.join(unknown)}")
        return plans

    @field_validator("discount_value")
    @classmethod
    def validate_percentage(cls, v: float, info) -> float:
        if info.data.get("discount_type") == "percentage" and v > 100:
            raise ValueError("Percentage discounts cannot exceed 100")
        return v


class PromoCodeResponse(BaseModel):
    id: int
    code: str
    discount_type: str
    discount_value: float
    max_uses: Optional[int]
    current_uses: int
    valid_from: Optional[datetime]
    valid_until: Optional[datetime]
    is_active: bool
    applicable_plans: Optional[list[str]]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True
