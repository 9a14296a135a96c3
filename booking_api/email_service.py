"""
Email Service using Resend
Booking emails use MJML templates compiled to responsive HTML
"""

import asyncio
import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .email_templates import (
    appointment_admin_alert_template,
    appointment_confirmation_template,
    listing_submitted_template,
)
from .errors import DownstreamNotificationError

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    result = mjml_to_html(mjml_content)
    errors = getattr(result, "errors", None)
    if errors:
        logger.warning(f"MJML compilation warnings: {errors}")
    html = getattr(result, "html", None)
    if html is None and isinstance(result, dict):
        html = result.get("html")
    if html is None:
        html = str(result)
    return html


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email via Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Send response dict

    Raises:
        DownstreamNotificationError: If Resend isn't configured or rejects the send
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise DownstreamNotificationError("Email service not configured")

    recipients = [to] if isinstance(to, str) else to
    email_data = {
        "from": from_address or EMAIL_FROM_ADDRESS,
        "to": recipients,
        "subject": subject,
        "html": compile_mjml_to_html(mjml_content),
    }

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        # Resend's SDK is blocking
        response = await asyncio.to_thread(resend.Emails.send, email_data)
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise DownstreamNotificationError(f"Failed to send email: {str(e)}") from e

    logger.info(f"✅ Email sent successfully via Resend: {response}")
    return response


# ============================================
# Booking emails
# ============================================


async def send_appointment_confirmation_email(to: str, payload: dict) -> dict:
    """Confirmation to the customer after their deposit clears"""
    mjml_content = appointment_confirmation_template(
        full_name=payload["full_name"],
        services=payload.get("services") or [],
        appointment_date=str(payload["appointment_date"]),
        appointment_time=str(payload["appointment_time"]),
    )
    return await send_email(
        to=to, subject="Your appointment is confirmed", mjml_content=mjml_content
    )


async def send_appointment_admin_alert_email(to: str, payload: dict) -> dict:
    """New-booking alert for the business inbox"""
    mjml_content = appointment_admin_alert_template(
        full_name=payload["full_name"],
        email=payload["email"],
        phone=payload.get("phone"),
        services=payload.get("services") or [],
        appointment_date=str(payload["appointment_date"]),
        appointment_time=str(payload["appointment_time"]),
        description=payload.get("description"),
        review_reason=payload.get("review_reason"),
    )
    subject = f"New appointment: {payload['full_name']} on {payload['appointment_date']}"
    if payload.get("review_reason"):
        subject = f"[Needs review] {subject}"
    return await send_email(to=to, subject=subject, mjml_content=mjml_content)


async def send_listing_submitted_email(to: str, payload: dict) -> dict:
    """Receipt to the listing owner; the listing itself still awaits review"""
    mjml_content = listing_submitted_template(
        contact_name=payload["contact_name"],
        title=payload["title"],
        address=payload["address"],
    )
    return await send_email(
        to=to, subject=f"Listing submitted: {payload['title']}", mjml_content=mjml_content
    )
