"""
Twilio SMS Service
Sends booking confirmations to customers by SMS
"""

import logging

import httpx

from .. import config
from ..config import BUSINESS_NAME
from ..errors import DownstreamNotificationError
from ..shared.validators import normalize_phone

logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


def is_configured() -> bool:
    return bool(
        config.TWILIO_ACCOUNT_SID and config.TWILIO_AUTH_TOKEN and config.TWILIO_FROM_NUMBER
    )


async def send_sms(to_phone: str, message_body: str, message_type: str) -> str:
    """
    Send SMS via Twilio

    Args:
        to_phone: Recipient phone number, normalized to E.164 before sending
        message_body: SMS message content
        message_type: Type of message (for logging)

    Returns:
        Twilio message SID

    Raises:
        DownstreamNotificationError: If Twilio isn't configured or rejects the message
    """
    if not is_configured():
        raise DownstreamNotificationError("Twilio SMS not configured")

    try:
        formatted_phone = normalize_phone(to_phone)
    except ValueError as e:
        raise DownstreamNotificationError(f"Invalid phone number: {to_phone}") from e
    if not formatted_phone:
        raise DownstreamNotificationError("No phone number provided")

    account_sid = config.TWILIO_ACCOUNT_SID
    data = {"To": formatted_phone, "From": config.TWILIO_FROM_NUMBER, "Body": message_body}

    logger.info(f"🚀 Sending {message_type} SMS to Twilio API for {formatted_phone}")
    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{TWILIO_API_BASE}/Accounts/{account_sid}/Messages.json",
                auth=(account_sid, config.TWILIO_AUTH_TOKEN),
                data=data,
                timeout=10.0,
            )
    except httpx.HTTPError as e:
        logger.error(f"Twilio API error: {str(e)}")
        raise DownstreamNotificationError(f"Twilio request failed: {e}") from e

    logger.info(f"📡 Twilio API response status: {response.status_code}")
    if response.status_code not in (200, 201):
        error_data = response.json()
        error_message = error_data.get("message", "Unknown error")
        error_code = error_data.get("code")
        logger.error(f"❌ Twilio API error [{error_code}]: {error_message}")
        raise DownstreamNotificationError(
            f"[{error_code}] {error_message}" if error_code else error_message
        )

    message_sid = response.json().get("sid")
    logger.info(f"✅ SMS sent successfully: {message_type} to {formatted_phone} (SID: {message_sid})")
    return message_sid


async def send_appointment_confirmation_sms(to_phone: str, payload: dict) -> str:
    """Send SMS when an appointment is confirmed"""
    message = (
        f"Hi {payload['full_name']}! Your appointment is confirmed for "
        f"{payload['appointment_date']} at {payload['appointment_time']}. - {BUSINESS_NAME}"
    )
    return await send_sms(to_phone, message, message_type="appointment_confirmation")
