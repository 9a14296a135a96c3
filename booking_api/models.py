from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    Time,
)
from sqlalchemy.sql import func

from .database import Base

# Record status values
STATUS_CONFIRMED = "confirmed"
STATUS_PENDING_REVIEW = "pending_review"
STATUS_CANCELLED = "cancelled"
RECORD_STATUSES = (STATUS_CONFIRMED, STATUS_PENDING_REVIEW, STATUS_CANCELLED)

PAYMENT_STATUS_PAID = "paid"


class WorkingHour(Base):
    __tablename__ = "working_hours"

    id = Column(Integer, primary_key=True, index=True)
    # 0 = Monday ... 6 = Sunday (date.weekday())
    day_of_week = Column(Integer, unique=True, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    slot_duration_minutes = Column(Integer, nullable=False, default=30)
    is_active = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class BlockedDate(Base):
    __tablename__ = "blocked_dates"

    id = Column(Integer, primary_key=True, index=True)
    blocked_date = Column(Date, unique=True, nullable=False, index=True)
    reason = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    contact_method = Column(String(50), nullable=False)
    location = Column(String(100), nullable=False)  # Country
    state = Column(String(100), nullable=False)
    city = Column(String(100), nullable=False)
    services = Column(JSON, nullable=False, default=list)
    description = Column(Text, nullable=True)
    appointment_date = Column(Date, nullable=False)
    appointment_time = Column(Time, nullable=False)
    file_url = Column(String(1000), nullable=True)  # Object storage URL, uploaded before checkout
    how_heard = Column(String(100), nullable=True)

    # Payment info - the session id is the idempotency key for webhook retries
    payment_status = Column(String(20), nullable=False, default=PAYMENT_STATUS_PAID)
    provider_session_id = Column(String(255), unique=True, nullable=False)
    provider_payment_id = Column(String(255), nullable=True)

    status = Column(String(20), nullable=False, default=STATUS_CONFIRMED)
    needs_review = Column(Boolean, nullable=False, default=False)
    review_reason = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (Index("ix_appointments_slot", "appointment_date", "appointment_time"),)


class RentalListing(Base):
    __tablename__ = "rental_listings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    address = Column(String(500), nullable=False)
    property_type = Column(String(100), nullable=False)
    price = Column(Float, nullable=False)
    features = Column(JSON, nullable=False, default=list)
    images = Column(JSON, nullable=False, default=list)
    contact_name = Column(String(100), nullable=False)
    contact_phone = Column(String(50), nullable=False)
    contact_email = Column(String(255), nullable=False)

    payment_status = Column(String(20), nullable=False, default=PAYMENT_STATUS_PAID)
    provider_session_id = Column(String(255), unique=True, nullable=False)
    # Payment id for one-off checkouts, subscription id for recurring ones
    provider_payment_id = Column(String(255), nullable=True)

    status = Column(String(20), nullable=False, default=STATUS_PENDING_REVIEW)
    needs_review = Column(Boolean, nullable=False, default=False)
    review_reason = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class WebhookErrorLog(Base):
    """Append-only diagnostic trail for events that failed to reconcile"""

    __tablename__ = "webhook_errors"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(String(255), nullable=True, index=True)
    event_type = Column(String(100), nullable=True)
    error_message = Column(Text, nullable=False)
    error_details = Column(Text, nullable=True)
    raw_metadata = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
