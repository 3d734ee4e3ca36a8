"""
Security Utilities
Password hashing, tokens and input cleaning built on industry-standard libraries
"""

import hashlib
import html
import logging
import os
import re
import secrets
from datetime import datetime, timedelta
from typing import Any, Optional

# Input sanitization
import bleach

# Token generation and validation
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from jose import JWTError
from jose import jwt as jose_jwt

# Password hashing
from passlib.context import CryptContext

from .config import ACCESS_TOKEN_EXPIRE_MINUTES, SECRET_KEY

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
PASSWORD_RESET_SALT = "password-reset"
PASSWORD_RESET_MAX_AGE = 3600  # 1 hour

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password(password: str) -> str:
    """Hash password using bcrypt"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against bcrypt hash"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception as e:
        logger.error(f"Password verification error: {e}")
        return False


def check_password_strength(password: str) -> dict[str, Any]:
    """
    Check password strength and return detailed feedback

    Returns:
        dict with 'score' (0-4), 'strength' (weak/fair/good/strong),
        'feedback' (list of suggestions), and 'is_valid' (bool)
    """
    score = 0
    feedback = []

    if len(password) < 8:
        feedback.append("Password must be at least 8 characters long")
    elif len(password) >= 12:
        score += 2
    else:
        score += 1

    if re.search(r"[a-z]", password):
        score += 1
    else:
        feedback.append("Add lowercase letters")

    if re.search(r"[A-Z]", password):
        score += 1
    else:
        feedback.append("Add uppercase letters")

    if re.search(r"\d", password):
        score += 1
    else:
        feedback.append("Add numbers")

    if re.search(r'[!@#$%^&*(),.?":{}|<>_\-]', password):
        score += 1
    else:
        feedback.append("Add special characters")

    common_passwords = ["password", "12345678", "qwerty123", "bicicleta", "contraseña"]
    if password.lower() in common_passwords:
        score = 0
        feedback.append("This is a commonly used password - choose something unique")

    if score <= 1:
        strength = "weak"
    elif score == 2:
        strength = "fair"
    elif score == 3:
        strength = "good"
    else:
        strength = "strong"

    return {
        "score": min(score, 4),
        "strength": strength,
        "feedback": feedback,
        "is_valid": len(password) >= 8 and score >= 3,
    }


# ============================================================================
# TOKEN GENERATION & VALIDATION
# ============================================================================


def generate_secure_token(length: int = 32) -> str:
    """Generate a cryptographically secure random token"""
    return secrets.token_urlsafe(length)


def generate_timed_token(data: dict[str, Any], salt: str = "security-token") -> str:
    """
    Generate a time-limited token using itsdangerous.
    Expiry is enforced on load through max_age.
    """
    serializer = URLSafeTimedSerializer(SECRET_KEY)
    return serializer.dumps(data, salt=salt)


def verify_timed_token(
    token: str, max_age: int = 3600, salt: str = "security-token"
) -> Optional[dict[str, Any]]:
    """
    Verify and decode a timed token

    Returns:
        Decoded data if valid, None if invalid or expired
    """
    serializer = URLSafeTimedSerializer(SECRET_KEY)
    try:
        return serializer.loads(token, salt=salt, max_age=max_age)
    except SignatureExpired:
        logger.warning("Token expired")
        return None
    except BadSignature:
        logger.warning("Invalid token signature")
        return None


def password_fingerprint(password_hash: str) -> str:
    """Short digest of the stored hash; changes whenever the password changes"""
    return hashlib.sha256(password_hash.encode("utf-8")).hexdigest()[:16]


def create_password_reset_token(user_id: int, password_hash: str) -> str:
    """Reset token bound to the current password so it can only be used once"""
    return generate_timed_token(
        {"uid": user_id, "pfp": password_fingerprint(password_hash)}, salt=PASSWORD_RESET_SALT
    )


def read_password_reset_token(token: str) -> Optional[dict[str, Any]]:
    return verify_timed_token(token, max_age=PASSWORD_RESET_MAX_AGE, salt=PASSWORD_RESET_SALT)


def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT access token for a user

    Args:
        user_id: Local user ID, stored in the 'sub' claim
        expires_delta: Token lifetime (default ACCESS_TOKEN_EXPIRE_MINUTES)
    """
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {"sub": str(user_id), "exp": expire, "iat": datetime.utcnow()}
    return jose_jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def verify_jwt_token(token: str) -> Optional[dict[str, Any]]:
    """
    Verify and decode a JWT token

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None


# ============================================================================
# INPUT SANITIZATION
# ============================================================================


def strip_html(text: Optional[str]) -> Optional[str]:
    """Remove every HTML tag from free-text input; the result is stored as plain text"""
    if text is None:
        return None
    # bleach escapes what it keeps; output is escaped again where it is rendered
    return html.unescape(bleach.clean(text, tags=[], attributes={}, strip=True)).strip()


def sanitize_filename(filename: str) -> str:
    """
    Sanitize filename to prevent directory traversal and other attacks

    Args:
        filename: Original filename

    Returns:
        Safe filename
    """
    filename = os.path.basename(filename)
    filename = re.sub(r"[^\w\s\-\.]", "", filename)
    filename = filename.strip(". ").replace(" ", "-")

    if len(filename) > 255:
        name, ext = os.path.splitext(filename)
        filename = name[: 255 - len(ext)] + ext

    if not filename:
        filename = f"file_{generate_secure_token(8)}"

    return filename
