import logging

from fastapi import APIRouter, Depends, HTTPException

from ..email_service import send_contact_message
from ..rate_limiter import create_rate_limiter
from ..schemas import ContactRequest
from ..security_utils import strip_html
from ..shared.validators import validate_email

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Contact"])

# 5 messages per hour per IP
rate_limit_contact = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="contact")


@router.post("/contact")
async def send_contact_form(data: ContactRequest, _: None = Depends(rate_limit_contact)):
    """Forward a contact form message to the support inbox"""
    name = strip_html(data.name)
    subject = strip_html(data.subject)
    message = strip_html(data.message)

    if not name or not data.email or not subject or not message:
        raise HTTPException(status_code=400, detail="All fields are required")

    try:
        email = validate_email(data.email)
    except ValueError as e:
        raise HTTPException(status_code=400, detail="Invalid email format") from e

    try:
        await send_contact_message(name=name, email=email, subject=subject, message=message)
    except Exception as e:
        logger.error(f"❌ Failed to send contact message: {e}")
        raise HTTPException(status_code=500, detail="Failed to send message") from e

    logger.info("📧 Contact message forwarded to support")
    return {"success": True, "message": "Message sent successfully"}
