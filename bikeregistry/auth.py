import logging

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .models import User
from .security_utils import verify_jwt_token

logger = logging.getLogger(__name__)

security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current user from the Bearer access token"""
    token = credentials.credentials

    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received, length: {len(token)}")
        raise HTTPException(
            status_code=401, detail="Invalid token format. Expected a valid JWT token."
        )

    payload = verify_jwt_token(token)
    if not payload:
        raise HTTPException(
            status_code=401,
            detail="Token is invalid or has expired. Please sign in again.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError) as e:
        logger.error(f"❌ Token missing user ID claim. Available claims: {list(payload.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims") from e

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        logger.warning(f"⚠️ Token references unknown user {user_id}")
        raise HTTPException(status_code=401, detail="User not found")

    logger.debug(f"✅ User authenticated: {user.email}")
    return user


async def get_current_admin(user: User = Depends(get_current_user)) -> User:
    """
    Get current user and verify they have the admin role.
    Use this dependency for every /admin route.
    """
    if user.role != "admin":
        logger.warning(f"🚫 User {user.email} attempted to access an admin route")
        raise HTTPException(status_code=403, detail="Administrator access required")
    return user
