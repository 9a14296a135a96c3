"""Checkout router - opens hosted payment sessions for bookings and listings"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...rate_limiter import rate_limit_checkout
from . import codec
from .provider import DodoCheckoutProvider, PaymentCheckoutProvider
from .schemas import BookingRequest, CheckoutResponse, RentalListingRequest
from .service import CheckoutService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/checkout", tags=["Checkout"])

_provider = None


def get_checkout_provider() -> PaymentCheckoutProvider:
    """Dependency injection for the payment provider (one client per process)"""
    global _provider
    if _provider is None:
        _provider = DodoCheckoutProvider()
    return _provider


def get_checkout_service(
    db: Session = Depends(get_db),
    provider: PaymentCheckoutProvider = Depends(get_checkout_provider),
) -> CheckoutService:
    """Dependency injection for CheckoutService"""
    return CheckoutService(db, provider)


@router.post(
    "/appointment",
    response_model=CheckoutResponse,
    dependencies=[Depends(rate_limit_checkout)],
)
async def create_appointment_checkout(
    body: BookingRequest,
    service: CheckoutService = Depends(get_checkout_service),
):
    """Create a checkout session for an appointment deposit"""
    return await service.initiate(body, kind=codec.KIND_APPOINTMENT)


@router.post(
    "/rental-listing",
    response_model=CheckoutResponse,
    dependencies=[Depends(rate_limit_checkout)],
)
async def create_rental_listing_checkout(
    body: RentalListingRequest,
    service: CheckoutService = Depends(get_checkout_service),
):
    """Create a subscription checkout session for a rental listing"""
    return await service.initiate(body, kind=codec.KIND_RENTAL_LISTING)
