"""
Error taxonomy for the booking flow.

Everything raised before a record is durably committed is loud and
retryable; everything after the commit is logged and swallowed.
"""

from typing import Optional


class BookingError(Exception):
    """Base class for booking-flow errors"""

    status_code = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class AuthenticationError(BookingError):
    """Caller could not prove who it is; rejected without side effects"""

    status_code = 400


class WebhookSignatureError(AuthenticationError):
    """Raised when webhook signature verification fails"""


class ValidationError(BookingError):
    """Malformed booking payload at checkout initiation"""

    status_code = 422


class PayloadTooLargeError(ValidationError):
    """Payload does not fit in the provider's metadata limits"""


class DecodeError(BookingError):
    """Checkout metadata is missing chunks or cannot be parsed"""

    status_code = 500


class ReconciliationError(BookingError):
    """Any other failure before the record is committed"""

    status_code = 500


class CheckoutProviderError(BookingError):
    """The payment provider could not create a checkout session"""

    status_code = 502


class DownstreamNotificationError(BookingError):
    """Email/SMS/chat delivery failed; never affects the commit outcome"""


class ConflictWarning(UserWarning):
    """Slot already held by another non-cancelled record"""
