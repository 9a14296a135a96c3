"""
WhatsApp Cloud API Service
Pushes new-booking alerts to the business owner's WhatsApp
"""

import logging
import re

import httpx

from .. import config
from ..errors import DownstreamNotificationError

logger = logging.getLogger(__name__)

GRAPH_API_BASE = "https://graph.facebook.com/v18.0"


def is_configured() -> bool:
    return bool(config.WHATSAPP_ACCESS_TOKEN and config.WHATSAPP_PHONE_NUMBER_ID)


def format_booking_alert(payload: dict) -> str:
    """Message body for a new appointment alert (WhatsApp markdown)"""
    services = "\n".join(f"• {s}" for s in payload.get("services") or [])
    lines = [
        "🔔 *New Appointment Booking*",
        "",
        f"👤 *Customer:* {payload.get('full_name')}",
        f"📧 *Email:* {payload.get('email')}",
        f"📱 *Phone:* {payload.get('phone') or 'Not provided'}",
        "",
        f"📅 *Date:* {payload.get('appointment_date')}",
        f"🕐 *Time:* {payload.get('appointment_time')}",
        "",
        "📋 *Services:*",
        services,
    ]
    if payload.get("description"):
        lines += ["", f"📝 *Details:*\n{payload['description']}"]
    if payload.get("review_reason"):
        lines += ["", f"⚠️ *Needs review:* {payload['review_reason']}"]
    return "\n".join(lines)


async def send_whatsapp_message(to_number: str, body: str) -> dict:
    """
    Send a plain text WhatsApp message.

    Raises:
        DownstreamNotificationError: If WhatsApp isn't configured or the API rejects the message
    """
    if not is_configured():
        raise DownstreamNotificationError("WhatsApp credentials not configured")
    recipient = re.sub(r"\D", "", to_number or "")
    if not recipient:
        raise DownstreamNotificationError("No WhatsApp recipient number")

    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{GRAPH_API_BASE}/{config.WHATSAPP_PHONE_NUMBER_ID}/messages",
                headers={"Authorization": f"Bearer {config.WHATSAPP_ACCESS_TOKEN}"},
                json={
                    "messaging_product": "whatsapp",
                    "recipient_type": "individual",
                    "to": recipient,
                    "type": "text",
                    "text": {"body": body},
                },
                timeout=10.0,
            )
    except httpx.HTTPError as e:
        logger.error(f"❌ WhatsApp API request failed: {e}")
        raise DownstreamNotificationError(f"WhatsApp request failed: {e}") from e

    data = response.json()
    if response.status_code >= 400:
        logger.error(f"❌ WhatsApp API error: {data}")
        raise DownstreamNotificationError(f"WhatsApp API error: {data}")

    logger.info(f"✅ WhatsApp alert sent to {recipient}")
    return data


async def send_booking_alert(to_number: str, payload: dict) -> dict:
    return await send_whatsapp_message(to_number, format_booking_alert(payload))
