"""Webhooks router - payment provider events"""

import json
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from ... import config
from ...database import get_db
from ...errors import AuthenticationError
from ...rate_limiter import rate_limit_webhook
from ...services.notification_service import (
    NotificationDispatcher,
    get_notification_dispatcher,
)
from ...webhook_security import verify_webhook_signature
from .reconciler import WebhookEvent, WebhookReconciler

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Webhooks"])


def get_webhook_reconciler(
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> WebhookReconciler:
    """Dependency injection for WebhookReconciler"""
    return WebhookReconciler(db, dispatcher)


@router.post("/webhook")
async def handle_payment_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    reconciler: WebhookReconciler = Depends(get_webhook_reconciler),
    _: None = Depends(rate_limit_webhook),
):
    """
    Verify and reconcile a payment provider event - Rate limited to 100 requests per minute.

    Headers:
      - 'webhook-signature': 'v1,{base64(hmac_sha256(webhook-id.webhook-timestamp.payload))}'
      - 'webhook-id': Unique webhook message id
      - 'webhook-timestamp': Unix timestamp (seconds)

    Responses:
      - 200 once the event is committed, already committed, or deliberately ignored
      - 400 when the signature or JSON body is invalid (not retried)
      - 500 when reconciliation fails before commit (provider retries)
    """
    # Raw body BEFORE any parsing; the signature covers exact bytes
    raw_body = await request.body()

    try:
        webhook_id = verify_webhook_signature(
            raw_body, request.headers, config.DODO_PAYMENTS_WEBHOOK_SECRET
        )
    except AuthenticationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e

    try:
        event = WebhookEvent.from_payload(json.loads(raw_body.decode("utf-8")), webhook_id)
    except ValueError as e:
        logger.error(f"Failed to parse webhook JSON: {e}")
        raise HTTPException(status_code=400, detail="Invalid JSON payload") from e

    logger.info(f"🔔 Webhook received id={webhook_id} type={event.event_type}")

    # BookingError subclasses propagate to the app-level handler as 5xx
    result = reconciler.reconcile(event)

    if result.notifications:
        background_tasks.add_task(reconciler.dispatch_notifications, result)

    return {"received": True, "event": event.event_type, "status": result.status}
