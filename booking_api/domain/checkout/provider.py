"""Payment checkout providers - Dodo Payments hosted checkout"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from dodopayments import AsyncDodoPayments  # type: ignore

from ...config import DODO_PAYMENTS_API_KEY, DODO_PAYMENTS_ENVIRONMENT
from ...errors import CheckoutProviderError
from .schemas import PriceSpec

logger = logging.getLogger(__name__)


@dataclass
class CheckoutSessionResult:
    url: str
    session_id: str


class PaymentCheckoutProvider(Protocol):
    """Anything that can open a hosted checkout session carrying metadata"""

    async def create_session(
        self,
        metadata: dict[str, str],
        price_spec: PriceSpec,
        customer_email: str,
        return_url: str,
    ) -> CheckoutSessionResult: ...


def normalize_dodo_environment(env: Optional[str]) -> str:
    """Normalize Dodo environment value to expected format"""
    value = (env or "test_mode").strip().lower()
    if value in {"live", "production", "prod"}:
        return "live_mode"
    if value in {"test", "sandbox", "staging", "dev", "development"}:
        return "test_mode"
    if value in {"test_mode", "live_mode"}:
        return value
    logger.warning(f"Unknown DODO environment '{env}', defaulting to test_mode")
    return "test_mode"


def _field(response, name: str) -> Optional[str]:
    if isinstance(response, dict):
        return response.get(name)
    return getattr(response, name, None)


class DodoCheckoutProvider:
    """Creates Dodo Payments checkout sessions"""

    def __init__(self, api_key: Optional[str] = None, environment: Optional[str] = None):
        self.api_key = api_key or DODO_PAYMENTS_API_KEY
        self.environment = normalize_dodo_environment(environment or DODO_PAYMENTS_ENVIRONMENT)
        self.client = None

        if not self.api_key:
            logger.warning(
                "DODO_PAYMENTS_API_KEY not set; checkout endpoints will fail until configured"
            )
        else:
            self.client = AsyncDodoPayments(
                bearer_token=self.api_key,
                environment=self.environment,
            )
            logger.info(f"Dodo Payments client initialized (env={self.environment})")

    def is_available(self) -> bool:
        """Check if Dodo Payments client is available"""
        return self.client is not None

    async def create_session(
        self,
        metadata: dict[str, str],
        price_spec: PriceSpec,
        customer_email: str,
        return_url: str,
    ) -> CheckoutSessionResult:
        if not self.is_available():
            raise CheckoutProviderError("Dodo Payments client not initialized")

        # Subscription vs one-off is decided by the product itself on Dodo's side
        try:
            response = await self.client.checkout_sessions.create(
                product_cart=[
                    {"product_id": price_spec.product_id, "quantity": price_spec.quantity}
                ],
                customer={"email": customer_email},
                return_url=return_url,
                metadata=metadata,
            )
        except Exception as e:
            logger.error(f"❌ Failed to create checkout session: {e}")
            raise CheckoutProviderError(f"Failed to create checkout session: {e}") from e

        url = _field(response, "checkout_url")
        session_id = _field(response, "session_id")
        if not url or not session_id:
            logger.error(f"❌ Checkout response missing url or session id: {response}")
            raise CheckoutProviderError("Payment provider returned an incomplete session")

        logger.info(f"✅ Checkout session created: {session_id} ({price_spec.mode})")
        return CheckoutSessionResult(url=url, session_id=session_id)
