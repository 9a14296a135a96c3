"""
Webhook reconciler - turns a verified payment event into exactly one record.

Per event: classify → idempotency check → decode → conflict check → commit.
Everything before the commit raises (the provider retries on 5xx); everything
after it is best-effort. The provider session id is the idempotency key and
the unique constraint on it is the only cross-process guard.
"""

import logging
import warnings
from dataclasses import dataclass, field
from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import BookingError, ConflictWarning, DecodeError, ReconciliationError
from ...services.notification_service import (
    Notification,
    NotificationDispatcher,
    build_appointment_notifications,
    build_listing_notifications,
)
from ...shared.validators import parse_slot_string
from ..checkout import codec
from ..checkout.schemas import PAYLOAD_MODELS, BookingRequest
from ..records.repository import RecordRepository

logger = logging.getLogger(__name__)

EVENT_SESSION_COMPLETED = "checkout.session.completed"
EVENT_SESSION_EXPIRED = "checkout.session.expired"

STATUS_COMMITTED = "committed"
STATUS_ALREADY_PROCESSED = "already_processed"
STATUS_EXPIRED = "expired"
STATUS_IGNORED = "ignored"


@dataclass
class WebhookEvent:
    event_id: Optional[str]
    event_type: str
    data: dict = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict, event_id: Optional[str] = None) -> "WebhookEvent":
        if not isinstance(payload, dict):
            raise ValueError("Webhook payload must be a JSON object")
        data = payload.get("data")
        return cls(
            event_id=event_id or payload.get("id"),
            event_type=payload.get("type") or "",
            data=data if isinstance(data, dict) else {},
        )

    @property
    def metadata(self) -> dict:
        return self.data.get("metadata") or {}

    @property
    def session_id(self) -> Optional[str]:
        return (
            self.data.get("checkout_session_id")
            or self.data.get("session_id")
            or self.data.get("id")
        )

    @property
    def payment_id(self) -> Optional[str]:
        return (
            self.data.get("payment_id")
            or self.data.get("payment_intent")
            or self.data.get("subscription_id")
        )


@dataclass
class ReconcileResult:
    status: str
    kind: Optional[str] = None
    record_id: Optional[int] = None
    session_id: Optional[str] = None
    needs_review: bool = False
    notifications: list[Notification] = field(default_factory=list)


class WebhookReconciler:
    """Idempotent single-writer for payment-confirmed records"""

    def __init__(self, db: Session, dispatcher: Optional[NotificationDispatcher] = None):
        self.db = db
        self.repo = RecordRepository()
        self.dispatcher = dispatcher or NotificationDispatcher()
        self.handlers: dict[str, Callable[[WebhookEvent], ReconcileResult]] = {
            EVENT_SESSION_COMPLETED: self.handle_session_completed,
            EVENT_SESSION_EXPIRED: self.handle_session_expired,
        }

    def reconcile(self, event: WebhookEvent) -> ReconcileResult:
        """
        Apply one verified event.

        Raises:
            DecodeError: Metadata missing chunks or failing validation
            ReconciliationError: Any other failure before the record is committed
        """
        handler = self.handlers.get(event.event_type)
        if handler is None:
            logger.info(f"ℹ️ Ignoring unhandled webhook event type: {event.event_type}")
            return ReconcileResult(status=STATUS_IGNORED)
        return handler(event)

    def handle_session_expired(self, event: WebhookEvent) -> ReconcileResult:
        # Nothing was persisted at initiation, so there's nothing to undo
        logger.info(f"⌛ Checkout session expired: {event.session_id}")
        return ReconcileResult(status=STATUS_EXPIRED, session_id=event.session_id)

    def handle_session_completed(self, event: WebhookEvent) -> ReconcileResult:
        try:
            return self._commit_completed_session(event)
        except BookingError as e:
            self._record_failure(event, e)
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            error = ReconciliationError(
                "Database error reconciling checkout session", details={"error": str(e)}
            )
            self._record_failure(event, error)
            raise error from e

    def _commit_completed_session(self, event: WebhookEvent) -> ReconcileResult:
        session_id = event.session_id
        if not session_id:
            raise ReconciliationError("Completed event carries no checkout session id")

        metadata = event.metadata
        kind = codec.payload_kind(metadata)

        existing = self.repo.get_by_session_id(self.db, kind, session_id)
        if existing is not None:
            logger.info(f"🔄 Session {session_id} already processed, skipping (idempotency)")
            return ReconcileResult(
                status=STATUS_ALREADY_PROCESSED,
                kind=kind,
                record_id=existing.id,
                session_id=session_id,
            )

        payload = self._decode_payload(kind, metadata)
        values = payload.model_dump()

        needs_review = False
        review_reason = None
        if isinstance(payload, BookingRequest):
            values["appointment_time"] = parse_slot_string(payload.appointment_time)
            review_reason = self._check_conflicts(payload, values)
            needs_review = review_reason is not None

        try:
            record = self.repo.insert_record(
                self.db,
                kind,
                values,
                session_id=session_id,
                payment_id=event.payment_id,
                needs_review=needs_review,
                review_reason=review_reason,
            )
        except IntegrityError as e:
            self.db.rollback()
            existing = self.repo.get_by_session_id(self.db, kind, session_id)
            if existing is None:
                raise ReconciliationError(
                    f"Integrity error inserting {kind}", details={"error": str(e.orig)}
                ) from e
            # A concurrent delivery of the same session won the insert
            logger.info(f"🔄 Session {session_id} committed concurrently, treating as processed")
            return ReconcileResult(
                status=STATUS_ALREADY_PROCESSED,
                kind=kind,
                record_id=existing.id,
                session_id=session_id,
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to insert {kind} for session {session_id}: {e}")
            raise ReconciliationError(
                f"Database error inserting {kind}", details={"error": str(e)}
            ) from e

        logger.info(
            f"✅ {kind} {record.id} committed for session {session_id}"
            + (" (needs review)" if needs_review else "")
        )

        notification_payload = payload.model_dump(mode="json")
        notification_payload["review_reason"] = review_reason
        if isinstance(payload, BookingRequest):
            notifications = build_appointment_notifications(notification_payload)
        else:
            notifications = build_listing_notifications(notification_payload)

        return ReconcileResult(
            status=STATUS_COMMITTED,
            kind=kind,
            record_id=record.id,
            session_id=session_id,
            needs_review=needs_review,
            notifications=notifications,
        )

    def _decode_payload(self, kind: str, metadata: dict):
        raw = codec.decode(metadata)
        try:
            return PAYLOAD_MODELS[kind].model_validate(raw)
        except PydanticValidationError as e:
            raise DecodeError(
                f"Decoded {kind} payload failed validation",
                details={"errors": e.errors(include_url=False, include_context=False)},
            ) from e

    def _check_conflicts(self, booking: BookingRequest, values: dict) -> Optional[str]:
        """Advisory only: a taken slot flags the record for review, never blocks it"""
        conflicts = self.repo.find_slot_conflicts(
            self.db, booking.appointment_date, values["appointment_time"]
        )
        if not conflicts:
            return None

        reason = (
            f"Slot {booking.appointment_date} {booking.appointment_time} already held by "
            f"appointment(s) {', '.join(str(c.id) for c in conflicts)}"
        )
        warnings.warn(reason, ConflictWarning, stacklevel=2)
        logger.warning(f"⚠️ Booking conflict: {reason}")
        return reason

    def _record_failure(self, event: WebhookEvent, error: BookingError) -> None:
        logger.error(f"❌ Webhook {event.event_id} ({event.event_type}) failed: {error.message}")
        try:
            self.repo.log_webhook_error(
                self.db,
                event_id=event.event_id,
                event_type=event.event_type,
                error_message=error.message,
                error_details={"error_type": type(error).__name__, **error.details},
                raw_metadata=event.metadata,
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to write webhook error log: {e}")

    async def dispatch_notifications(self, result: ReconcileResult) -> dict[str, bool]:
        """Post-commit delivery; failures are logged by the dispatcher and never raised"""
        if not result.notifications:
            return {}
        return await self.dispatcher.send_all(result.notifications)
