import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..domain.billing.repository import BillingRepository
from ..domain.billing.schemas import UpdatePaymentStatusRequest
from ..models import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/update-status")
def update_payment_status(
    data: UpdatePaymentStatusRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Mark a pending payment as completed and its bicycle as paid"""
    payment = BillingRepository.get_payment(db, data.paymentId, user.id)
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    if payment.payment_status != "pending":
        logger.warning(
            f"⚠️ Payment {payment.id} is {payment.payment_status}; refusing status update"
        )
        raise HTTPException(status_code=400, detail="Payment is not pending")

    try:
        payment.payment_status = "completed"
        if payment.bicycle:
            payment.bicycle.payment_status = True
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"✅ Payment {payment.id} completed for user {user.id} (bicycle {payment.bicycle_id})")
    return {
        "success": True,
        "paymentId": payment.id,
        "payment_status": payment.payment_status,
        "bicycleId": payment.bicycle_id,
    }
