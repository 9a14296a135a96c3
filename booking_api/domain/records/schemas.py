"""Record domain schemas - Pydantic models for confirmed bookings and listings"""

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...models import RECORD_STATUSES


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    email: str
    phone: Optional[str] = None
    contact_method: str
    location: str
    state: str
    city: str
    services: list[str]
    description: Optional[str] = None
    appointment_date: date
    appointment_time: time
    file_url: Optional[str] = None
    how_heard: Optional[str] = None
    payment_status: str
    provider_session_id: str
    provider_payment_id: Optional[str] = None
    status: str
    needs_review: bool
    review_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RentalListingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    title: str
    description: str
    address: str
    property_type: str
    price: float
    features: list[str]
    images: list[str]
    contact_name: str
    contact_phone: str
    contact_email: str
    payment_status: str
    provider_session_id: str
    provider_payment_id: Optional[str] = None
    status: str
    needs_review: bool
    review_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RecordStatusUpdate(BaseModel):
    """Admin status change; clearing needs_review marks a conflict as handled"""

    status: Optional[str] = None
    needs_review: Optional[bool] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in RECORD_STATUSES:
            raise ValueError(f"status must be one of: {', '.join(RECORD_STATUSES)}")
        return v


class BatchDeleteRequest(BaseModel):
    ids: list[int] = Field(..., min_length=1, max_length=500)


class ConfirmationResponse(BaseModel):
    """Success-page poll result; found stays False until the webhook commits"""

    found: bool
    session_id: str
    status: Optional[str] = None
    record_id: Optional[int] = None
    poll_interval_seconds: int
    max_attempts: int
