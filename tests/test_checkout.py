from datetime import time

import pytest

from booking_api.domain.checkout import codec
from booking_api.domain.checkout.provider import DodoCheckoutProvider
from booking_api.domain.checkout.schemas import PriceSpec
from booking_api.domain.checkout.service import CheckoutService
from booking_api.errors import CheckoutProviderError, ValidationError
from booking_api.models import Appointment


class TestCheckoutService:
    async def test_initiate_encodes_payload_into_metadata(
        self, db_session, provider, monday_hours, booking_payload
    ):
        service = CheckoutService(db_session, provider)

        response = await service.initiate(booking_payload)

        assert response.session_id == "cs_test_1"
        assert response.url.endswith("cs_test_1")
        call = provider.calls[0]
        assert call["customer_email"] == "ada@example.com"
        assert call["price_spec"].product_id == "pdt_appointment"
        assert call["price_spec"].mode == "payment"
        assert "appointment-success?session_id={CHECKOUT_SESSION_ID}" in call["return_url"]

        decoded = codec.decode(call["metadata"])
        assert decoded["full_name"] == "Ada Lovelace"
        assert decoded["appointment_time"] == "10:00"
        assert codec.payload_kind(call["metadata"]) == codec.KIND_APPOINTMENT

    async def test_initiate_never_writes_records(
        self, db_session, provider, monday_hours, booking_payload
    ):
        await CheckoutService(db_session, provider).initiate(booking_payload)
        assert db_session.query(Appointment).count() == 0

    async def test_rental_listing_uses_subscription_product(
        self, db_session, provider, listing_payload
    ):
        service = CheckoutService(db_session, provider)

        await service.initiate(listing_payload, kind=codec.KIND_RENTAL_LISTING)

        call = provider.calls[0]
        assert call["price_spec"].mode == "subscription"
        assert call["price_spec"].product_id == "pdt_listing"
        assert call["customer_email"] == "grace@example.com"
        assert "/dashboard/listings" in call["return_url"]

    async def test_explicit_price_spec(self, db_session, provider, monday_hours, booking_payload):
        price = PriceSpec(product_id="pdt_custom", quantity=2)
        await CheckoutService(db_session, provider).initiate(booking_payload, price_spec=price)
        assert provider.calls[0]["price_spec"] is price

    async def test_unconfigured_dodo_provider_refuses(self):
        provider = DodoCheckoutProvider(api_key=None)

        assert not provider.is_available()
        with pytest.raises(CheckoutProviderError, match="not initialized"):
            await provider.create_session(
                {"type": codec.KIND_APPOINTMENT},
                PriceSpec(product_id="pdt_appointment"),
                "ada@example.com",
                "https://example.com/done",
            )

    async def test_invalid_payload(self, db_session, provider, monday_hours, booking_payload):
        booking_payload["services"] = []
        with pytest.raises(ValidationError):
            await CheckoutService(db_session, provider).initiate(booking_payload)
        assert provider.calls == []

    async def test_time_off_grid_rejected(
        self, db_session, provider, monday_hours, booking_payload
    ):
        booking_payload["appointment_time"] = "10:15"
        with pytest.raises(ValidationError, match="outside working hours"):
            await CheckoutService(db_session, provider).initiate(booking_payload)

    async def test_closed_day_rejected(self, db_session, provider, booking_payload):
        # No working hours configured at all
        with pytest.raises(ValidationError, match="not available"):
            await CheckoutService(db_session, provider).initiate(booking_payload)

    async def test_booked_slot_still_allowed(
        self, db_session, provider, monday, monday_hours, booking_payload
    ):
        db_session.add(
            Appointment(
                full_name="Earlier Customer",
                email="e@example.com",
                contact_method="phone",
                location="US",
                state="NY",
                city="NYC",
                services=["x"],
                appointment_date=monday,
                appointment_time=time(10, 0),
                provider_session_id="cs_earlier",
            )
        )
        db_session.commit()

        response = await CheckoutService(db_session, provider).initiate(booking_payload)
        assert response.session_id


class TestCheckoutEndpoints:
    def test_appointment_checkout(self, client, monday_hours, booking_payload, provider):
        response = client.post("/checkout/appointment", json=booking_payload)

        assert response.status_code == 200
        assert response.json() == {
            "url": "https://checkout.example.com/cs_test_1",
            "session_id": "cs_test_1",
        }
        assert len(provider.calls) == 1

    def test_schema_failure_is_422(self, client, monday_hours, booking_payload):
        booking_payload["email"] = "not-an-email"
        response = client.post("/checkout/appointment", json=booking_payload)
        assert response.status_code == 422

    def test_off_grid_time_is_422(self, client, monday_hours, booking_payload):
        booking_payload["appointment_time"] = "13:00"
        response = client.post("/checkout/appointment", json=booking_payload)
        assert response.status_code == 422
        assert response.json()["detail"] == "Selected time is outside working hours"

    def test_provider_failure_is_502(self, client, monday_hours, booking_payload, provider):
        provider.fail_with = CheckoutProviderError("Dodo Payments client not initialized")
        response = client.post("/checkout/appointment", json=booking_payload)
        assert response.status_code == 502

    def test_rental_listing_checkout(self, client, listing_payload, provider):
        response = client.post("/checkout/rental-listing", json=listing_payload)

        assert response.status_code == 200
        assert provider.calls[0]["price_spec"].mode == "subscription"

    def test_rental_listing_price_floor(self, client, listing_payload):
        listing_payload["price"] = 10
        response = client.post("/checkout/rental-listing", json=listing_payload)
        assert response.status_code == 422
