"""Promo code service - Validation and discount calculation"""

import logging
from datetime import datetime

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import PromoCode
from ...plan_limits import get_plan_price, is_valid_plan
from .repository import PromoCodeRepository
from .schemas import PromoCodeCreate

logger = logging.getLogger(__name__)


def calculate_discounted_price(price: int, discount_type: str, discount_value: float) -> int:
    """Apply a promo discount to a plan price (MXN, rounded to whole pesos)"""
    if discount_type == "percentage":
        discounted = price - (price * discount_value / 100)
    else:
        discounted = price - discount_value
    return max(round(discounted), 0)


class PromoCodeService:
    """Service for promo code operations"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PromoCodeRepository()

    def get_valid_promo(self, code: str, plan_type: str) -> PromoCode:
        """Return the promo code if it can be applied to the plan; raise HTTPException otherwise"""
        if not is_valid_plan(plan_type):
            raise HTTPException(status_code=400, detail="Invalid plan")

        promo = self.repo.get_active_by_code(self.db, code)
        if not promo:
            logger.info(f"🔍 Promo code not found or inactive: {code}")
            raise HTTPException(status_code=404, detail="Invalid promo code")

        now = datetime.utcnow()
        if promo.valid_from and promo.valid_from > now:
            raise HTTPException(status_code=400, detail="This promo code is not yet valid")

        if promo.valid_until and promo.valid_until < now:
            raise HTTPException(status_code=400, detail="This promo code has expired")

        if promo.max_uses is not None and (promo.current_uses or 0) >= promo.max_uses:
            raise HTTPException(
                status_code=400, detail="This promo code has reached its usage limit"
            )

        if promo.applicable_plans and plan_type not in promo.applicable_plans:
            raise HTTPException(status_code=400, detail="This promo code is not valid for this plan")

        return promo

    def validate(self, code: str, plan_type: str) -> dict:
        promo = self.get_valid_promo(code, plan_type)
        original_price = get_plan_price(plan_type)

        return {
            "valid": True,
            "code": promo.code,
            "discount_type": promo.discount_type,
            "discount_value": promo.discount_value,
            "original_price": original_price,
            "discounted_price": calculate_discounted_price(
                original_price, promo.discount_type, promo.discount_value
            ),
        }

    def increment_usage(self, code: str) -> bool:
        """Count one redemption of a promo code. Returns False when the code does not exist."""
        promo = self.repo.get_by_code(self.db, code)
        if not promo:
            logger.warning(f"⚠️ Cannot increment usage of unknown promo code {code}")
            return False

        self.repo.increment_usage(self.db, promo)
        logger.info(f"✅ Promo code {promo.code} used {promo.current_uses} time(s)")
        return True

    def list_promo_codes(self) -> list[PromoCode]:
        return self.repo.list_all(self.db)

    def create_promo_code(self, data: PromoCodeCreate) -> PromoCode:
        if self.repo.get_by_code(self.db, data.code):
            raise HTTPException(status_code=409, detail="A promo code with this code already exists")

        promo_data = data.model_dump(exclude_none=True)
        try:
            promo = self.repo.create(self.db, promo_data)
        except IntegrityError as e:
            self.db.rollback()
            raise HTTPException(
                status_code=409, detail="A promo code with this code already exists"
            ) from e

        logger.info(f"💾 Created promo code {promo.code} ({promo.discount_type} {promo.discount_value})")
        return promo
