import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import FRONTEND_URL
from ..database import get_db
from ..email_service import send_password_reset_email, send_welcome_email
from ..models import User
from ..rate_limiter import create_rate_limiter
from ..schemas import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    UpdatePasswordRequest,
)
from ..security_utils import (
    check_password_strength,
    create_access_token,
    create_password_reset_token,
    hash_password,
    password_fingerprint,
    read_password_reset_token,
    strip_html,
    verify_password,
)
from ..shared.validators import validate_curp, validate_email, validate_mx_phone

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

rate_limit_login = create_rate_limiter(limit=10, window_seconds=300, key_prefix="login")
rate_limit_register = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="register")
rate_limit_reset = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="password_reset")

RESET_REQUESTED_MESSAGE = (
    "If an account exists for this email, you will receive a link to reset your password"
)


def _weak_password(strength: dict) -> HTTPException:
    return HTTPException(
        status_code=400,
        detail={
            "message": "Password is too weak",
            "strength": strength["strength"],
            "feedback": strength["feedback"],
        },
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    data: RegisterRequest,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_register),
):
    """Create an account with the owner's identity data"""
    required = {
        "email": data.email,
        "password": data.password,
        "fullName": data.fullName,
        "birthDate": data.birthDate,
        "curp": data.curp,
        "address": data.address,
        "phone": data.phone,
    }
    missing = [field for field, value in required.items() if not value]
    if missing:
        raise HTTPException(
            status_code=400, detail=f"Missing required fields: {', '.join(missing)}"
        )

    try:
        email = validate_email(data.email)
        curp = validate_curp(data.curp)
        phone = validate_mx_phone(data.phone)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    strength = check_password_strength(data.password)
    if not strength["is_valid"]:
        raise _weak_password(strength)

    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=409, detail="An account with this email already exists")

    user = User(
        email=email,
        password_hash=hash_password(data.password),
        full_name=strip_html(data.fullName),
        birth_date=data.birthDate,
        curp=curp,
        address=strip_html(data.address),
        phone=phone,
        role="user",
    )
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError as e:
        db.rollback()
        raise HTTPException(
            status_code=409, detail="An account with this email already exists"
        ) from e

    logger.info(f"✅ User registered: {user.id}")

    try:
        await send_welcome_email(user.email, user.full_name)
    except Exception as e:
        logger.error(f"❌ Failed to send welcome email to user {user.id}: {e}")

    return {"access_token": create_access_token(user.id), "token_type": "bearer", "user": user}


@router.post("/login", response_model=AuthResponse)
async def login(
    data: LoginRequest,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_login),
):
    user = db.query(User).filter(User.email == data.email.strip().lower()).first()
    if not user or not verify_password(data.password, user.password_hash):
        logger.warning("⚠️ Failed login attempt")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    logger.info(f"✅ User {user.id} logged in")
    return {"access_token": create_access_token(user.id), "token_type": "bearer", "user": user}


@router.post("/reset-password", response_model=MessageResponse)
async def request_password_reset(
    data: ResetPasswordRequest,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_reset),
):
    """Email a one hour reset link. The response is the same whether or not the account exists."""
    email = (data.email or "").strip().lower()
    user = db.query(User).filter(User.email == email).first() if email else None

    if user:
        token = create_password_reset_token(user.id, user.password_hash)
        reset_link = f"{FRONTEND_URL}/auth/reset-password/confirm?token={token}"
        try:
            await send_password_reset_email(user.email, user.full_name, reset_link)
            logger.info(f"📧 Password reset email sent to user {user.id}")
        except Exception as e:
            logger.error(f"❌ Failed to send password reset email to user {user.id}: {e}")
    else:
        logger.info("🔍 Password reset requested for unknown email")

    return {"message": RESET_REQUESTED_MESSAGE}


@router.post("/update-password", response_model=MessageResponse)
async def update_password(
    data: UpdatePasswordRequest,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_reset),
):
    """Set a new password with a reset token"""
    payload = read_password_reset_token(data.token)
    if not payload:
        raise HTTPException(status_code=400, detail="Invalid or expired reset link")

    user = db.query(User).filter(User.id == payload.get("uid")).first()
    # The token carries a fingerprint of the old hash, so it stops working once used
    if not user or payload.get("pfp") != password_fingerprint(user.password_hash):
        raise HTTPException(status_code=400, detail="Invalid or expired reset link")

    strength = check_password_strength(data.password)
    if not strength["is_valid"]:
        raise _weak_password(strength)

    try:
        user.password_hash = hash_password(data.password)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"✅ Password updated for user {user.id}")
    return {"message": "Password updated successfully"}
