"""Checkout service - validates a booking and opens a payment session for it"""

import logging
from typing import Optional, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from ...config import APPOINTMENT_PRODUCT_ID, FRONTEND_URL, RENTAL_LISTING_PRODUCT_ID
from ...errors import CheckoutProviderError, ValidationError
from ...shared.validators import parse_slot_string
from ..scheduling.availability_service import AvailabilityService
from . import codec
from .provider import PaymentCheckoutProvider
from .schemas import PAYLOAD_MODELS, BookingRequest, CheckoutResponse, PriceSpec

logger = logging.getLogger(__name__)

# Provider substitutes the real id into this placeholder on redirect
SESSION_ID_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"

def default_price_spec(kind: str) -> PriceSpec:
    if kind == codec.KIND_RENTAL_LISTING:
        product_id, mode = RENTAL_LISTING_PRODUCT_ID, "subscription"
    else:
        product_id, mode = APPOINTMENT_PRODUCT_ID, "payment"
    if not product_id:
        logger.error(f"❌ No product configured for {kind} checkout")
        raise CheckoutProviderError(f"No payment product configured for {kind}")
    return PriceSpec(product_id=product_id, mode=mode)


def build_return_url(kind: str) -> str:
    base = FRONTEND_URL.rstrip("/")
    if kind == codec.KIND_RENTAL_LISTING:
        return f"{base}/dashboard/listings?checkout=success&session_id={SESSION_ID_PLACEHOLDER}"
    return f"{base}/appointment-success?session_id={SESSION_ID_PLACEHOLDER}"


class CheckoutService:
    """
    Turns a validated booking into a hosted checkout session.

    Nothing is persisted here. The booking only exists inside the session
    metadata until the payment webhook arrives.
    """

    def __init__(self, db: Session, provider: PaymentCheckoutProvider):
        self.db = db
        self.provider = provider
        self.availability = AvailabilityService(db)

    def validate_payload(self, payload: Union[dict, BaseModel], kind: str) -> BaseModel:
        """Re-validate the payload server-side regardless of what the client checked"""
        model = PAYLOAD_MODELS.get(kind)
        if model is None:
            raise ValidationError(f"Unknown booking type: {kind}")

        data = payload.model_dump(mode="json") if isinstance(payload, BaseModel) else payload
        try:
            validated = model.model_validate(data)
        except PydanticValidationError as e:
            errors = e.errors(include_url=False, include_context=False)
            raise ValidationError("Invalid booking data", details={"errors": errors}) from e

        if isinstance(validated, BookingRequest):
            self._check_slot_offerable(validated)
        return validated

    def _check_slot_offerable(self, booking: BookingRequest) -> None:
        # Only the working-hour grid is checked; a booked slot is caught later as a conflict
        if self.availability.is_date_disabled(booking.appointment_date):
            raise ValidationError(
                "Selected date is not available",
                details={"appointment_date": booking.appointment_date.isoformat()},
            )
        requested = parse_slot_string(booking.appointment_time)
        if requested not in self.availability.get_candidate_slots(booking.appointment_date):
            raise ValidationError(
                "Selected time is outside working hours",
                details={"appointment_time": booking.appointment_time},
            )

    async def initiate(
        self,
        payload: Union[dict, BaseModel],
        kind: str = codec.KIND_APPOINTMENT,
        price_spec: Optional[PriceSpec] = None,
    ) -> CheckoutResponse:
        """
        Validate, encode and open a checkout session.

        Raises:
            ValidationError: Malformed payload or unofferable slot
            PayloadTooLargeError: Payload exceeds metadata limits
            CheckoutProviderError: Provider misconfigured or rejected the session
        """
        validated = self.validate_payload(payload, kind)
        price_spec = price_spec or default_price_spec(kind)

        metadata = codec.encode(validated.model_dump(mode="json"), kind=kind)

        if isinstance(validated, BookingRequest):
            customer_email = validated.email
        else:
            customer_email = validated.contact_email

        session = await self.provider.create_session(
            metadata=metadata,
            price_spec=price_spec,
            customer_email=customer_email,
            return_url=build_return_url(kind),
        )
        logger.info(
            f"💳 {kind} checkout initiated: session={session.session_id} "
            f"chunks={metadata[codec.COUNT_KEY]}"
        )
        return CheckoutResponse(url=session.url, session_id=session.session_id)
