import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, joinedload, selectinload

from ..auth import get_current_admin
from ..database import get_db
from ..domain.promo_codes.schemas import PromoCodeCreate, PromoCodeResponse
from ..domain.promo_codes.service import PromoCodeService
from ..models import Bicycle, Subscription, User
from ..schemas import AdminStatsResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


def _paginate(query, page: int, limit: int) -> dict:
    total = query.count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return {"items": items, "total": total, "page": page, "limit": limit}


# ============================================================================
# DASHBOARD
# ============================================================================


@router.get("/stats", response_model=AdminStatsResponse)
def get_stats(admin: User = Depends(get_current_admin), db: Session = Depends(get_db)):
    return {
        "total_users": db.query(User).count(),
        "total_bicycles": db.query(Bicycle).count(),
        "active_subscriptions": db.query(Subscription)
        .filter(Subscription.status == "active")
        .count(),
        "stolen_bicycles": db.query(Bicycle)
        .filter(Bicycle.theft_status == "reported_stolen")
        .count(),
    }


@router.get("/users")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """Paginated user listing, newest first"""
    query = (
        db.query(User)
        .options(selectinload(User.bicycles))
        .order_by(User.created_at.desc(), User.id.desc())
    )
    result = _paginate(query, page, limit)
    result["items"] = [
        {
            "id": user.id,
            "email": user.email,
            "full_name": user.full_name,
            "phone": user.phone,
            "role": user.role,
            "bicycles": len(user.bicycles),
            "created_at": user.created_at,
        }
        for user in result["items"]
    ]
    return result


@router.get("/bicycles")
def list_bicycles(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """Paginated bicycle listing with owner, newest first"""
    query = (
        db.query(Bicycle)
        .options(joinedload(Bicycle.owner))
        .order_by(Bicycle.created_at.desc(), Bicycle.id.desc())
    )
    result = _paginate(query, page, limit)
    result["items"] = [
        {
            "id": bicycle.id,
            "public_id": bicycle.public_id,
            "serial_number": bicycle.serial_number,
            "brand": bicycle.brand,
            "model": bicycle.model,
            "color": bicycle.color,
            "payment_status": bicycle.payment_status,
            "theft_status": bicycle.theft_status,
            "owner_email": bicycle.owner.email if bicycle.owner else None,
            "registration_date": bicycle.registration_date,
        }
        for bicycle in result["items"]
    ]
    return result


# ============================================================================
# PROMO CODES
# ============================================================================


@router.get("/promo-codes", response_model=list[PromoCodeResponse])
def list_promo_codes(admin: User = Depends(get_current_admin), db: Session = Depends(get_db)):
    return PromoCodeService(db).list_promo_codes()


@router.post("/promo-codes", response_model=PromoCodeResponse, status_code=201)
def create_promo_code(
    data: PromoCodeCreate,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    promo = PromoCodeService(db).create_promo_code(data)
    logger.info(f"✅ Admin {admin.id} created promo code {promo.code}")
    return promo
