import base64
import os

# Must be set before the app modules read configuration
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ["DODO_PAYMENTS_WEBHOOK_SECRET"] = "whsec_" + base64.b64encode(
    b"test-webhook-signing-key-32bytes"
).decode()
os.environ["APPOINTMENT_PRODUCT_ID"] = "pdt_appointment"
os.environ["RENTAL_LISTING_PRODUCT_ID"] = "pdt_listing"
os.environ["ADMIN_NOTIFICATION_EMAIL"] = "owner@example.com"
os.environ["ADMIN_WHATSAPP_NUMBER"] = "+15550001111"
for key in ("REDIS_URL", "RESEND_API_KEY", "DODO_PAYMENTS_API_KEY"):
    os.environ.pop(key, None)

from datetime import date, time, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from booking_api import auth  # noqa: E402
from booking_api.database import Base, get_db  # noqa: E402
from booking_api.domain.checkout.provider import CheckoutSessionResult  # noqa: E402
from booking_api.domain.checkout.router import get_checkout_provider  # noqa: E402
from booking_api.main import app  # noqa: E402
from booking_api.models import WorkingHour  # noqa: E402
from booking_api.services.notification_service import (  # noqa: E402
    NotificationDispatcher,
    get_notification_dispatcher,
)

ADMIN_TOKEN = "test-admin-token"
WEBHOOK_SECRET = os.environ["DODO_PAYMENTS_WEBHOOK_SECRET"]


class FakeCheckoutProvider:
    """Records create_session calls and hands back predictable sessions"""

    def __init__(self):
        self.calls = []
        self.fail_with = None

    async def create_session(self, metadata, price_spec, customer_email, return_url):
        if self.fail_with is not None:
            raise self.fail_with
        self.calls.append(
            {
                "metadata": metadata,
                "price_spec": price_spec,
                "customer_email": customer_email,
                "return_url": return_url,
            }
        )
        session_id = f"cs_test_{len(self.calls)}"
        return CheckoutSessionResult(
            url=f"https://checkout.example.com/{session_id}", session_id=session_id
        )


class RecordingDispatcher(NotificationDispatcher):
    """Dispatcher whose channels record deliveries instead of sending them"""

    def __init__(self, failing_kinds=()):
        self.sent = []
        self.failing_kinds = set(failing_kinds)
        super().__init__()
        self.senders = {kind: self._make_sender(kind) for kind in self.senders}

    def _make_sender(self, kind):
        async def sender(recipient, payload):
            if kind in self.failing_kinds:
                raise RuntimeError(f"{kind} channel down")
            self.sent.append((kind, recipient, payload))

        return sender

    def kinds(self):
        return [kind for kind, _, _ in self.sent]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def provider():
    return FakeCheckoutProvider()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def client(engine, provider, dispatcher, monkeypatch):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    monkeypatch.setattr(auth, "ADMIN_API_TOKEN", ADMIN_TOKEN)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_checkout_provider] = lambda: provider
    app.dependency_overrides[get_notification_dispatcher] = lambda: dispatcher
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


def next_weekday(weekday: int, after: date = None) -> date:
    """First date strictly after `after` (default today) falling on weekday"""
    start = (after or date.today()) + timedelta(days=1)
    return start + timedelta(days=(weekday - start.weekday()) % 7)


@pytest.fixture
def monday():
    return next_weekday(0)


@pytest.fixture
def monday_hours(db_session):
    rule = WorkingHour(
        day_of_week=0,
        start_time=time(9, 0),
        end_time=time(12, 0),
        slot_duration_minutes=30,
        is_active=True,
    )
    db_session.add(rule)
    db_session.commit()
    return rule


@pytest.fixture
def booking_payload(monday):
    return {
        "full_name": "Ada Lovelace",
        "email": "ada@example.com",
        "phone": "+1 (555) 010-2030",
        "contact_method": "email",
        "location": "United States",
        "state": "NY",
        "city": "New York",
        "services": ["Visa application", "Document review"],
        "description": "Need help with a tourist visa.",
        "appointment_date": monday.isoformat(),
        "appointment_time": "10:00",
        "how_heard": "friend",
    }


@pytest.fixture
def listing_payload():
    return {
        "user_id": "user_42",
        "title": "Sunny two bedroom flat",
        "description": "Bright apartment close to the park with a large balcony.",
        "address": "12 Park Lane, Springfield",
        "property_type": "apartment",
        "price": 1200,
        "contact_name": "Grace Hopper",
        "contact_phone": "5550102030",
        "contact_email": "grace@example.com",
        "features": ["balcony", "parking"],
        "images": ["https://cdn.example.com/a.jpg"],
    }
