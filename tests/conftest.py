from datetime import datetime, timedelta

import pytest

from app import create_app
from config import Config
from models import db
from models.payment import Payment
from services import booking_lifecycle

ADMIN_TOKEN = "test-admin-token"


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    ADMIN_API_TOKEN = ADMIN_TOKEN
    SMTP_HOST = None
    STRIPE_SECRET_KEY = "sk_test_dummy"
    STRIPE_WEBHOOK_SECRET = "whsec_dummy"
    STRIPE_SUCCESS_URL = "http://localhost:3000/provider/commission?paid=1"
    STRIPE_CANCEL_URL = "http://localhost:3000/provider/commission"


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def ctx(app):
    """App context for calling services directly."""
    with app.app_context():
        yield
        db.session.remove()


@pytest.fixture
def admin_headers():
    return {"X-Admin-Token": ADMIN_TOKEN}


@pytest.fixture
def booking_payload():
    def _payload(**overrides):
        data = {
            "customer_id": "cust-1",
            "provider_id": "prov-1",
            "device_id": "iphone-13",
            "service_id": "screen-replacement",
            "appointment_time": (datetime.utcnow() + timedelta(days=1)).replace(microsecond=0).isoformat(),
            "total_amount": 1000,
            "location_type": "provider_location",
            "issue_description": "Cracked screen",
            "selected_issues": [{"name": "Screen Replacement"}],
        }
        data.update(overrides)
        return {k: v for k, v in data.items() if v is not None}
    return _payload


@pytest.fixture
def make_booking(ctx, booking_payload):
    def _make(status=None, payment_status=None, **overrides):
        booking = booking_lifecycle.create_booking(booking_payload(**overrides)).booking
        if status or payment_status:
            # seed a state directly; the engine only moves forward
            booking.status = status or booking.status
            booking.payment_status = payment_status or booking.payment_status
            db.session.commit()
        return booking
    return _make


@pytest.fixture
def make_payment(ctx):
    def _make(booking, payment_method="COD", commission_amount=None, **fields):
        payment = Payment(
            booking_id=booking.id,
            payment_method=payment_method,
            amount=booking.total_amount,
            commission_amount=commission_amount if commission_amount is not None else 0,
            is_commission_settled=fields.pop("is_commission_settled", False),
            **fields,
        )
        db.session.add(payment)
        db.session.commit()
        return payment
    return _make
