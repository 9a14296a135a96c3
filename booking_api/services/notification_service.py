"""
Unified Notification Service
Routes post-commit booking notifications to email, SMS and WhatsApp channels.
Delivery failures are logged here and never reach the caller.
"""

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from .. import config
from ..email_service import (
    send_appointment_admin_alert_email,
    send_appointment_confirmation_email,
    send_listing_submitted_email,
)
from .twilio_service import send_appointment_confirmation_sms
from .whatsapp_service import send_booking_alert

logger = logging.getLogger(__name__)

APPOINTMENT_CONFIRMATION = "appointment_confirmation"
APPOINTMENT_ADMIN_ALERT = "appointment_admin_alert"
APPOINTMENT_WHATSAPP_ALERT = "appointment_whatsapp_alert"
APPOINTMENT_SMS_CONFIRMATION = "appointment_sms_confirmation"
LISTING_SUBMITTED = "listing_submitted"

Sender = Callable[[str, dict], Awaitable[object]]

DEFAULT_SENDERS: dict[str, Sender] = {
    APPOINTMENT_CONFIRMATION: send_appointment_confirmation_email,
    APPOINTMENT_ADMIN_ALERT: send_appointment_admin_alert_email,
    APPOINTMENT_WHATSAPP_ALERT: send_booking_alert,
    APPOINTMENT_SMS_CONFIRMATION: send_appointment_confirmation_sms,
    LISTING_SUBMITTED: send_listing_submitted_email,
}


@dataclass
class Notification:
    kind: str
    recipient: Optional[str]
    payload: dict = field(default_factory=dict)


class NotificationDispatcher:
    """Fire-and-forget delivery of booking notifications"""

    def __init__(self, senders: Optional[dict[str, Sender]] = None):
        self.senders = dict(DEFAULT_SENDERS)
        if senders:
            self.senders.update(senders)

    async def send(self, kind: str, recipient: Optional[str], payload: dict) -> bool:
        """
        Deliver one notification.

        Returns:
            True if the channel accepted it, False otherwise
        """
        sender = self.senders.get(kind)
        if sender is None:
            logger.error(f"❌ Unknown notification kind: {kind}")
            return False
        if not recipient:
            logger.debug(f"⚠️ No recipient for {kind} notification, skipping")
            return False

        try:
            await sender(recipient, payload)
        except Exception as e:
            logger.error(f"❌ Failed to send {kind} notification to {recipient}: {e}")
            return False

        logger.info(f"✅ {kind} notification sent to {recipient}")
        return True

    async def send_all(self, notifications: list[Notification]) -> dict[str, bool]:
        """Send each notification independently; one failure doesn't stop the rest"""
        results = {}
        for notification in notifications:
            results[notification.kind] = await self.send(
                notification.kind, notification.recipient, notification.payload
            )
        return results


def build_appointment_notifications(
    payload: dict, include_admin: bool = True
) -> list[Notification]:
    """Customer confirmation (email, SMS when a phone is given) plus admin alerts"""
    notifications = [Notification(APPOINTMENT_CONFIRMATION, payload.get("email"), payload)]
    if payload.get("phone"):
        notifications.append(Notification(APPOINTMENT_SMS_CONFIRMATION, payload["phone"], payload))
    if include_admin:
        notifications.append(
            Notification(APPOINTMENT_ADMIN_ALERT, config.ADMIN_NOTIFICATION_EMAIL, payload)
        )
        notifications.append(
            Notification(APPOINTMENT_WHATSAPP_ALERT, config.ADMIN_WHATSAPP_NUMBER, payload)
        )
    return notifications


def build_listing_notifications(payload: dict) -> list[Notification]:
    return [Notification(LISTING_SUBMITTED, payload.get("contact_email"), payload)]


_dispatcher: Optional[NotificationDispatcher] = None


def get_notification_dispatcher() -> NotificationDispatcher:
    """Dependency injection for the process-wide NotificationDispatcher"""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = NotificationDispatcher()
    return _dispatcher
