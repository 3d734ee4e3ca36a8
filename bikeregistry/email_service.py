"""
Email Service using Resend
Provides email functionality using MJML templates for responsive design
"""

import logging
from datetime import datetime
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, FRONTEND_URL, RESEND_API_KEY, SUPPORT_EMAIL
from .email_templates import (
    contact_message_template,
    password_reset_template,
    subscription_activated_template,
    subscription_canceled_template,
    theft_report_confirmation_template,
    welcome_email_template,
)
from .utils.sanitization import sanitize_dict, sanitize_string

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # mjml_to_html returns a mapping with 'html' and 'errors' keys
        if hasattr(result, "get"):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
    reply_to: Optional[str] = None,
    attachments: Optional[list[dict]] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address
        reply_to: Optional Reply-To address
        attachments: Optional list of {"filename", "content"} dicts

    Returns:
        Send response dict
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise Exception("Email service not configured")

    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    email_data = {
        "from": from_address or EMAIL_FROM_ADDRESS,
        "to": recipients,
        "subject": subject,
        "html": html_content,
    }
    if reply_to:
        email_data["reply_to"] = reply_to
    if attachments:
        email_data["attachments"] = [
            {"filename": attachment["filename"], "content": attachment["content"]}
            for attachment in attachments
        ]

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = resend.Emails.send(email_data)
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise Exception(f"Failed to send email: {str(e)}") from e


# ============================================
# Pre-built Email Templates for Common Events
# ============================================


async def send_welcome_email(to: str, user_name: str) -> dict:
    """Send welcome email to new users"""
    return await send_email(
        to=to,
        subject="Bienvenido a Registro Nacional de Bicis",
        mjml_content=welcome_email_template(sanitize_string(user_name)),
    )


async def send_password_reset_email(to: str, user_name: str, reset_link: str) -> dict:
    """Send password reset email"""
    return await send_email(
        to=to,
        subject="Recuperar contraseña - Registro Nacional de Bicis",
        mjml_content=password_reset_template(sanitize_string(user_name), reset_link),
    )


async def send_contact_message(name: str, email: str, subject: str, message: str) -> dict:
    """Forward a contact form message to the support inbox; replies go to the sender"""
    safe = sanitize_dict({"name": name, "email": email, "subject": subject, "message": message})
    sent_at = datetime.utcnow().strftime("%d/%m/%Y %H:%M UTC")
    return await send_email(
        to=SUPPORT_EMAIL,
        subject=f"Nuevo mensaje de contacto: {subject}",
        mjml_content=contact_message_template(sent_at=sent_at, **safe),
        reply_to=email,
    )


async def send_subscription_activated_email(
    to: str, user_name: str, plan_name: str, bicycle_limit: int, period_end: Optional[datetime]
) -> dict:
    return await send_email(
        to=to,
        subject=f"Tu plan {plan_name} está activo",
        mjml_content=subscription_activated_template(
            sanitize_string(user_name),
            plan_name,
            bicycle_limit,
            period_end.strftime("%d/%m/%Y") if period_end else None,
        ),
    )


async def send_subscription_canceled_email(
    to: str, user_name: str, cancel_date: Optional[datetime]
) -> dict:
    return await send_email(
        to=to,
        subject="Confirmación de cancelación de suscripción",
        mjml_content=subscription_canceled_template(
            sanitize_string(user_name), cancel_date.strftime("%d/%m/%Y") if cancel_date else None
        ),
    )


async def send_theft_report_confirmation(
    to: str,
    user_name: str,
    bicycle_label: str,
    serial_number: str,
    location: str,
    report_date: datetime,
    public_id: str,
) -> dict:
    """Confirm a theft report to the bicycle owner"""
    safe = sanitize_dict(
        {
            "user_name": user_name,
            "bicycle_label": bicycle_label,
            "serial_number": serial_number,
            "location": location,
        }
    )
    return await send_email(
        to=to,
        subject=f"Reporte de robo registrado: {bicycle_label}",
        mjml_content=theft_report_confirmation_template(
            report_date=report_date.strftime("%d/%m/%Y %H:%M"),
            verify_url=f"{FRONTEND_URL}/verify/{public_id}",
            **safe,
        ),
    )
