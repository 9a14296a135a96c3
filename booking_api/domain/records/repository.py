"""Record repository - Database operations for confirmed appointments and listings"""

import json
import logging
from datetime import date, time
from typing import Optional, Union

from sqlalchemy.orm import Session

from ...models import (
    PAYMENT_STATUS_PAID,
    STATUS_CANCELLED,
    STATUS_CONFIRMED,
    STATUS_PENDING_REVIEW,
    Appointment,
    RentalListing,
    WebhookErrorLog,
)
from ..checkout.codec import KIND_APPOINTMENT, KIND_RENTAL_LISTING

logger = logging.getLogger(__name__)

ConfirmedRecord = Union[Appointment, RentalListing]

RECORD_MODELS = {
    KIND_APPOINTMENT: Appointment,
    KIND_RENTAL_LISTING: RentalListing,
}

# Status a freshly paid record starts in
INITIAL_STATUS = {
    KIND_APPOINTMENT: STATUS_CONFIRMED,
    KIND_RENTAL_LISTING: STATUS_PENDING_REVIEW,
}


class RecordRepository:
    """Repository for payment-confirmed records"""

    @staticmethod
    def get_by_session_id(db: Session, kind: str, session_id: str) -> Optional[ConfirmedRecord]:
        model = RECORD_MODELS[kind]
        return db.query(model).filter(model.provider_session_id == session_id).first()

    @staticmethod
    def find_slot_conflicts(
        db: Session, appointment_date: date, appointment_time: time
    ) -> list[Appointment]:
        """Non-cancelled appointments already holding a date/time"""
        return (
            db.query(Appointment)
            .filter(
                Appointment.appointment_date == appointment_date,
                Appointment.appointment_time == appointment_time,
                Appointment.status != STATUS_CANCELLED,
            )
            .order_by(Appointment.id)
            .all()
        )

    @staticmethod
    def insert_record(
        db: Session,
        kind: str,
        values: dict,
        session_id: str,
        payment_id: Optional[str] = None,
        needs_review: bool = False,
        review_reason: Optional[str] = None,
    ) -> ConfirmedRecord:
        """
        Insert and commit a paid record.

        Raises:
            IntegrityError: Another delivery already committed this session
        """
        record = RECORD_MODELS[kind](
            **values,
            payment_status=PAYMENT_STATUS_PAID,
            provider_session_id=session_id,
            provider_payment_id=payment_id,
            status=INITIAL_STATUS[kind],
            needs_review=needs_review,
            review_reason=review_reason,
        )
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def log_webhook_error(
        db: Session,
        event_id: Optional[str],
        event_type: Optional[str],
        error_message: str,
        error_details: Optional[dict] = None,
        raw_metadata: Optional[dict] = None,
    ) -> WebhookErrorLog:
        """Append a diagnostic row in its own transaction"""
        db.rollback()
        row = WebhookErrorLog(
            event_id=event_id,
            event_type=event_type,
            error_message=error_message,
            error_details=json.dumps(error_details, default=str) if error_details else None,
            raw_metadata=raw_metadata,
        )
        db.add(row)
        db.commit()
        return row

    # ------------------------------------------------------------------
    # Admin operations
    # ------------------------------------------------------------------

    @staticmethod
    def list_appointments(
        db: Session,
        status: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        needs_review: Optional[bool] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Appointment]:
        query = db.query(Appointment)
        if status:
            query = query.filter(Appointment.status == status)
        if start:
            query = query.filter(Appointment.appointment_date >= start)
        if end:
            query = query.filter(Appointment.appointment_date <= end)
        if needs_review is not None:
            query = query.filter(Appointment.needs_review == needs_review)
        return (
            query.order_by(Appointment.appointment_date, Appointment.appointment_time)
            .offset(offset)
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_appointment(db: Session, appointment_id: int) -> Optional[Appointment]:
        return db.query(Appointment).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def update_record(db: Session, record: ConfirmedRecord, **values) -> ConfirmedRecord:
        for key, value in values.items():
            setattr(record, key, value)
        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def delete_appointments(db: Session, appointment_ids: list[int]) -> int:
        """Delete appointments by id; returns how many existed"""
        deleted = (
            db.query(Appointment)
            .filter(Appointment.id.in_(appointment_ids))
            .delete(synchronize_session=False)
        )
        db.commit()
        return deleted

    @staticmethod
    def list_rental_listings(
        db: Session,
        status: Optional[str] = None,
        user_id: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[RentalListing]:
        query = db.query(RentalListing)
        if status:
            query = query.filter(RentalListing.status == status)
        if user_id:
            query = query.filter(RentalListing.user_id == user_id)
        return (
            query.order_by(RentalListing.created_at.desc(), RentalListing.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_rental_listing(db: Session, listing_id: int) -> Optional[RentalListing]:
        return db.query(RentalListing).filter(RentalListing.id == listing_id).first()
