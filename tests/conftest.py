"""Test configuration and fixtures"""

import hashlib
import hmac
import json
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import pytest
from httpx import AsyncClient, ASGITransport

from canteen_api.config import Settings
from canteen_api.container import build_services
from canteen_api.database import create_engine, create_session_factory, create_tables
from canteen_api.errors import UpstreamUnavailable
from canteen_api.main import create_app
from canteen_api.notifications import Notifier
from canteen_api.services.events import EventPublisher
from canteen_api.services.gateway import PaymentGateway, PaymentIntent

WEBHOOK_SECRET = "test-webhook-secret"
ADMIN_KEY = "test-admin-key"


class FakeClock:
    """Controllable naive-UTC clock"""

    def __init__(self, start: datetime = datetime(2026, 1, 15, 12, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingPublisher(EventPublisher):
    def __init__(self):
        self.events = []

    def publish(self, event) -> None:
        self.events.append(event)


class FakeGateway(PaymentGateway):
    name = "razorpay"

    def __init__(self):
        self.calls = []
        self.fail = False

    async def create_intent(self, amount_minor, currency, reference, metadata) -> PaymentIntent:
        self.calls.append(
            {
                "amount_minor": amount_minor,
                "currency": currency,
                "reference": reference,
                "metadata": metadata,
            }
        )
        if self.fail:
            raise UpstreamUnavailable("Payment gateway is unavailable", reference=reference)
        return PaymentIntent(
            provider=self.name,
            intent_id=f"order_TEST{len(self.calls):010d}",
            amount_minor=amount_minor,
            currency=currency,
            receipt=reference[:40],
            notes=metadata,
            key_id="rzp_test_key",
        )


class FakeNotifier(Notifier):
    def __init__(self):
        self.emails = []
        self.alerts = []
        self.fail_email = False
        self.fail_alert = False

    async def send_email(self, to: str, subject: str, body: str) -> None:
        if self.fail_email:
            raise UpstreamUnavailable("Email delivery failed", to=to)
        self.emails.append({"to": to, "subject": subject, "body": body})

    async def send_canteen_alert(self, canteen: str, message: str) -> None:
        if self.fail_alert:
            raise UpstreamUnavailable("Alert delivery failed", canteen=canteen)
        self.alerts.append({"canteen": canteen, "message": message})


def sign(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def captured_payment_event(
    payment_id: str = "pay_TEST0000000001",
    receipt: Optional[str] = None,
    note_order_id: Optional[str] = None,
    provider_order_id: str = "order_TEST0000000001",
    event: str = "payment.captured",
    amount: int = 2000,
) -> Dict[str, Any]:
    """Razorpay-shaped webhook payload"""
    payload: Dict[str, Any] = {
        "payment": {
            "entity": {
                "id": payment_id,
                "entity": "payment",
                "amount": amount,
                "currency": "INR",
                "status": "captured",
                "order_id": provider_order_id,
                "method": "upi",
                "notes": {"orderId": note_order_id} if note_order_id else [],
            }
        }
    }
    if receipt is not None:
        payload["order"] = {"entity": {"id": provider_order_id, "receipt": receipt}}
    return {
        "entity": "event",
        "account_id": "acc_TEST",
        "event": event,
        "contains": list(payload),
        "payload": payload,
        "created_at": 1768478400,
    }


def encode(event: Dict[str, Any]) -> bytes:
    return json.dumps(event).encode()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        razorpay_webhook_secret=WEBHOOK_SECRET,
        admin_api_key=ADMIN_KEY,
        log_format="console",
    )


@pytest.fixture
async def session_factory(settings):
    """File-backed SQLite database, created fresh per test"""
    engine = create_engine(settings.database_url)
    await create_tables(engine)

    yield create_session_factory(engine)

    await engine.dispose()


@pytest.fixture
def services(settings, session_factory, gateway, notifier, publisher, clock):
    return build_services(
        settings,
        session_factory=session_factory,
        gateway=gateway,
        notifier=notifier,
        events=publisher,
        clock=clock,
    )


@pytest.fixture
def store(services):
    return services.order_store


@pytest.fixture
def lifecycle(services):
    return services.lifecycle


@pytest.fixture
def reconciler(services):
    return services.reconciler


@pytest.fixture
def otp_service(services):
    return services.otp


@pytest.fixture
async def client(settings, services):
    """Test client over the ASGI app with injected services"""
    app = create_app(settings, services=services)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def admin_headers():
    return {"X-Admin-Key": ADMIN_KEY}


@pytest.fixture
async def pending_order(lifecycle):
    return await lifecycle.create(
        "AZAD Hall",
        [{"id": "1", "name": "Roti", "qty": 2, "price": 10}],
        20,
    )
