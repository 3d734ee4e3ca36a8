import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..models import User
from ..schemas import UserResponse, UserUpdate
from ..security_utils import strip_html
from ..shared.validators import validate_curp, validate_mx_phone

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserResponse)
def get_me(user: User = Depends(get_current_user)):
    """Get the current user's profile"""
    return user


@router.put("/me", response_model=UserResponse)
def update_me(
    data: UserUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update profile fields; email and role cannot be changed here"""
    updates = data.model_dump(exclude_unset=True)

    try:
        if "curp" in updates:
            updates["curp"] = validate_curp(updates["curp"])
        if "phone" in updates:
            updates["phone"] = validate_mx_phone(updates["phone"])
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    for field in ("full_name", "address"):
        if field in updates:
            updates[field] = strip_html(updates[field])

    if "full_name" in updates and not updates["full_name"]:
        raise HTTPException(status_code=400, detail="Full name cannot be empty")

    try:
        for key, value in updates.items():
            setattr(user, key, value)
        db.commit()
        db.refresh(user)
    except Exception:
        db.rollback()
        raise

    logger.info(f"💾 Updated profile for user {user.id}: {list(updates.keys())}")
    return user
