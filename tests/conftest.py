"""
Shared pytest fixtures

Environment variables are set before any bikeregistry import so config.py
picks up the test database, secrets and product IDs.
"""

import base64
import os
from datetime import date, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

os.environ["DATABASE_URL"] = "sqlite:///./test_bikeregistry.db"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["RESEND_API_KEY"] = "re_test"
os.environ["DODO_PAYMENTS_WEBHOOK_SECRET"] = "whsec_" + base64.b64encode(
    b"test-webhook-signing-key"
).decode()
os.environ["DODO_PRODUCT_BASIC"] = "pdt_basic"
os.environ["DODO_PRODUCT_STANDARD"] = "pdt_standard"
os.environ["DODO_PRODUCT_FAMILY"] = "pdt_family"
os.environ["DODO_PRODUCT_PREMIUM"] = "pdt_premium"
os.environ["R2_PUBLIC_URL"] = "https://media.test"
os.environ["FRONTEND_URL"] = "http://localhost:3000"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

from fastapi.testclient import TestClient  # noqa: E402

from bikeregistry.database import Base, engine, get_db, SessionLocal  # noqa: E402
from bikeregistry.main import app  # noqa: E402
from bikeregistry.models import Bicycle, Subscription, User  # noqa: E402
from bikeregistry.plan_limits import get_bicycle_limit  # noqa: E402
from bikeregistry.security_utils import create_access_token, hash_password  # noqa: E402

TEST_PASSWORD = "Bici$egura2024"


class FakeCache:
    """Dict-backed stand-in for the Redis cache"""

    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value, ttl=3600):
        self.store[key] = value
        return True

    def delete(self, key):
        return self.store.pop(key, None) is not None


# ============================================================================
# DATABASE & CLIENT
# ============================================================================


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def fake_cache():
    cache = FakeCache()
    with patch("bikeregistry.cache.cache", cache):
        yield cache


@pytest.fixture(autouse=True)
def r2_client():
    """Object storage client; every upload and delete lands on this mock"""
    r2 = MagicMock()
    with patch("bikeregistry.utils.storage.get_r2_client", return_value=r2):
        yield r2


@pytest.fixture(autouse=True)
def emails():
    """Every outgoing email, keyed by the function name"""
    mocks = {
        "welcome": AsyncMock(return_value={"id": "email_1"}),
        "password_reset": AsyncMock(return_value={"id": "email_2"}),
        "theft_report": AsyncMock(return_value={"id": "email_3"}),
        "subscription_activated": AsyncMock(return_value={"id": "email_4"}),
        "subscription_canceled": AsyncMock(return_value={"id": "email_5"}),
        "contact": AsyncMock(return_value={"id": "email_6"}),
    }
    with patch("bikeregistry.routes.auth.send_welcome_email", mocks["welcome"]), patch(
        "bikeregistry.routes.auth.send_password_reset_email", mocks["password_reset"]
    ), patch(
        "bikeregistry.domain.theft_reports.service.send_theft_report_confirmation",
        mocks["theft_report"],
    ), patch(
        "bikeregistry.domain.billing.webhooks.send_subscription_activated_email",
        mocks["subscription_activated"],
    ), patch(
        "bikeregistry.domain.billing.webhooks.send_subscription_canceled_email",
        mocks["subscription_canceled"],
    ), patch(
        "bikeregistry.routes.contact.send_contact_message", mocks["contact"]
    ):
        yield mocks


# ============================================================================
# FACTORIES
# ============================================================================


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(email=None, role="user", full_name="María López", password=TEST_PASSWORD):
        counter["n"] += 1
        user = User(
            email=email or f"ciclista{counter['n']}@example.com",
            password_hash=hash_password(password),
            full_name=full_name,
            birth_date=date(1990, 5, 17),
            curp="LOMM900517MDFPRR09",
            address="Av. Reforma 100, CDMX",
            phone="5512345678",
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_subscription(db):
    def _make_subscription(user, plan_type="basic", status="active", subscription_id="sub_123"):
        now = datetime.utcnow()
        subscription = Subscription(
            user_id=user.id,
            subscription_id=subscription_id,
            customer_id="cus_123",
            plan_type=plan_type,
            bicycle_limit=get_bicycle_limit(plan_type),
            status=status,
            current_period_start=now,
            current_period_end=now + timedelta(days=30),
        )
        db.add(subscription)
        db.commit()
        db.refresh(subscription)
        return subscription

    return _make_subscription


@pytest.fixture
def make_bicycle(db):
    counter = {"n": 0}

    def _make_bicycle(user, serial_number=None, payment_status=True, **fields):
        counter["n"] += 1
        values = {
            "brand": "Trek",
            "model": "Marlin 7",
            "color": "Rojo",
            "bike_type": "mountain",
            "year": 2022,
            "wheel_size": "29",
        }
        values.update(fields)
        bicycle = Bicycle(
            user_id=user.id,
            serial_number=serial_number or f"WTU{counter['n']:06d}X",
            payment_status=payment_status,
            **values,
        )
        db.add(bicycle)
        db.commit()
        db.refresh(bicycle)
        return bicycle

    return _make_bicycle


@pytest.fixture
def user(make_user):
    return make_user(email="maria@example.com")


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def admin_user(make_user):
    return make_user(email="admin@example.com", role="admin", full_name="Admin RNB")


@pytest.fixture
def admin_headers(admin_user):
    return {"Authorization": f"Bearer {create_access_token(admin_user.id)}"}


@pytest.fixture
def headers_for():
    def _headers_for(user):
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers_for
