"""Promo codes router - Public promo code validation"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import PromoCodeValidationResponse, ValidatePromoCodeRequest
from .service import PromoCodeService

router = APIRouter(prefix="/promo-codes", tags=["Promo Codes"])


def get_promo_code_service(db: Session = Depends(get_db)) -> PromoCodeService:
    """Dependency injection for PromoCodeService"""
    return PromoCodeService(db)


@router.post("/validate", response_model=PromoCodeValidationResponse)
async def validate_promo_code(
    body: ValidatePromoCodeRequest,
    service: PromoCodeService = Depends(get_promo_code_service),
):
    """Check a promo code against a plan and return the discounted price"""
    return service.validate(body.code, body.planType)
