"""Checkout domain schemas - Pydantic models for validation"""

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import parse_slot_string, sanitize_string, validate_email
from .codec import KIND_APPOINTMENT, KIND_RENTAL_LISTING


class BookingRequest(BaseModel):
    """Appointment booking submitted from the booking form"""

    full_name: str = Field(..., min_length=2, max_length=100)
    email: str
    phone: Optional[str] = None
    contact_method: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)  # Country
    state: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    services: list[str] = Field(..., min_length=1)
    description: Optional[str] = Field(default=None, max_length=1000)
    appointment_date: date
    appointment_time: str  # "HH:MM"
    file_url: Optional[str] = None
    how_heard: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v: str) -> str:
        return validate_email(v)

    @field_validator("appointment_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        parse_slot_string(v)
        return v

    @field_validator("phone", "description", "file_url", "how_heard")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_string(v)

    @field_validator("services")
    @classmethod
    def validate_services(cls, v: list[str]) -> list[str]:
        services = [s.strip() for s in v if s and s.strip()]
        if not services:
            raise ValueError("At least one service is required")
        return services


class RentalListingRequest(BaseModel):
    """Rental property listing submitted by a signed-in user"""

    user_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=5, max_length=255)
    description: str = Field(..., min_length=20)
    address: str = Field(..., min_length=5)
    property_type: str = Field(..., min_length=1)
    price: float = Field(..., ge=50)
    contact_name: str = Field(..., min_length=2, max_length=100)
    contact_phone: str = Field(..., min_length=10)
    contact_email: str
    features: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)

    @field_validator("contact_email")
    @classmethod
    def validate_email_field(cls, v: str) -> str:
        return validate_email(v)


class PriceSpec(BaseModel):
    """What the customer is charged for a checkout"""

    product_id: str
    quantity: int = 1
    mode: Literal["payment", "subscription"] = "payment"

    @field_validator("product_id")
    @classmethod
    def validate_product_id(cls, v: str) -> str:
        if not v or not isinstance(v, str):
            raise ValueError("product_id is required")
        return v

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v: int) -> int:
        if v < 1:
            raise ValueError("quantity must be at least 1")
        return v


class CheckoutResponse(BaseModel):
    url: str
    session_id: str


# Schema each payload kind is validated against, at initiation and again after decode
PAYLOAD_MODELS = {
    KIND_APPOINTMENT: BookingRequest,
    KIND_RENTAL_LISTING: RentalListingRequest,
}
