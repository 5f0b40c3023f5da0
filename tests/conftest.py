"""Pytest fixtures for storefront tests."""

import os

# przed importem storefront: bez postgresa, smtp i prawdziwego sekretu
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["SMTP_HOST"] = ""
os.environ.setdefault("APP_SECRET", "test-secret")
os.environ.setdefault("APP_URL", "http://testserver")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import RedisError
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import storefront.data.models  # noqa: F401
from storefront.api import create_app
from storefront.api.deps import (
    get_email_service,
    get_link_signer,
    get_lock_service,
    get_notifier,
    get_stripe_client,
)
from storefront.data.database import Base, get_db
from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.product import ProductModel, SizeModel
from storefront.data.models.user import UserModel
from storefront.services.email_service import EmailService
from storefront.services.setting_service import SettingService
from storefront.services.stripe_client import StripeClient
from storefront.services.verification_link import VerificationLinkSigner
from storefront.utils.clock import utcnow

WEBHOOK_SECRET = "whsec_test_secret"


class FakeMailer:
    """Records every send instead of talking to SMTP."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def send(self, template_id, recipient, context) -> bool:
        if self.fail:
            return False
        self.sent.append((template_id, recipient, context))
        return True

    def templates(self):
        return [t for t, _, _ in self.sent]


class FakeStripeClient:
    def __init__(self, sessions=None, error: Exception | None = None):
        self.sessions = dict(sessions or {})
        self.error = error
        self.retrieved = []

    def retrieve_checkout_session(self, session_id):
        self.retrieved.append(session_id)
        if self.error is not None:
            raise self.error
        return self.sessions[session_id]


class FakeLockService:
    def __init__(self, unavailable: bool = False):
        self.unavailable = unavailable
        self.locks = {}
        self.released = []
        self.throttled = set()

    def acquire_session_lock(self, session_id, ttl):
        if self.unavailable:
            raise RedisError("connection refused")
        if session_id in self.locks:
            return None
        owner = f"owner-{len(self.locks) + 1}"
        self.locks[session_id] = owner
        return owner

    def release_session_lock(self, session_id, owner):
        if self.locks.get(session_id) != owner:
            return False
        del self.locks[session_id]
        self.released.append(session_id)
        return True

    def throttle(self, key, ttl):
        if self.unavailable:
            raise RedisError("connection refused")
        if key in self.throttled:
            return False
        self.throttled.add(key)
        return True


class FakeNotifier:
    def __init__(self):
        self.verification = []
        self.welcome = []

    def send_verification_email(self, email, name, verification_url):
        self.verification.append((email, name, verification_url))

    def send_welcome_email(self, user_id):
        self.welcome.append(user_id)


@pytest.fixture
def engine():
    """In-memory SQLite shared by every session in a test."""
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
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def email_service(db, mailer):
    return EmailService(db, mailer=mailer, settings=SettingService(db, cache={}))


@pytest.fixture
def locks():
    return FakeLockService()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def signer():
    return VerificationLinkSigner(secret="link-secret", base_url="http://testserver", ttl_hours=24)


@pytest.fixture
def stripe_client():
    return StripeClient(api_key="sk_test_123", webhook_secret=WEBHOOK_SECRET)


@pytest.fixture
def client(db, notifier, signer, locks, stripe_client, email_service):
    """Test client with every external collaborator replaced."""
    app = create_app()

    def override_db():
        yield db

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_link_signer] = lambda: signer
    app.dependency_overrides[get_lock_service] = lambda: locks
    app.dependency_overrides[get_stripe_client] = lambda: stripe_client
    app.dependency_overrides[get_email_service] = lambda: email_service

    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(db):
    def _make(email="bob@example.com", name="Bob Smith", role="customer", verified=True):
        user = UserModel(
            name=name,
            email=email,
            password="hash",
            role=role,
            email_verified_at=utcnow() if verified else None,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_cart(db):
    """make_cart([(price, quantity, size_shipping_cost or None), ...])"""

    def _make(lines, user_id=None, session_id=None):
        cart = CartModel(user_id=user_id, session_id=session_id)
        db.add(cart)
        db.flush()

        for n, (price, quantity, shipping) in enumerate(lines, start=1):
            product = ProductModel(name=f"Product {n}", price=Decimal(price))
            db.add(product)
            size = None
            if shipping is not None:
                size = SizeModel(name=f"Size {n}", shipping_cost=Decimal(shipping))
                db.add(size)
            db.flush()
            db.add(
                CartItemModel(
                    cart_id=cart.id,
                    product_id=product.id,
                    size_id=size.id if size else None,
                    quantity=quantity,
                    price=Decimal(price),
                )
            )

        db.commit()
        return cart

    return _make


@pytest.fixture
def checkout_session():
    """Stripe checkout session payload (subset the core reads)."""

    def _make(session_id="cs_test_1", amount_total=2500, metadata=None, **overrides):
        session = {
            "id": session_id,
            "object": "checkout.session",
            "payment_status": "paid",
            "amount_total": amount_total,
            "currency": "usd",
            "payment_intent": "pi_test_1",
            "customer_details": {
                "email": "guest@example.com",
                "phone": "+15550100",
                "name": "Jane Doe",
                "address": {
                    "line1": "1 Main St",
                    "line2": None,
                    "city": "Springfield",
                    "state": "IL",
                    "postal_code": "62701",
                    "country": "US",
                },
            },
            "total_details": {"amount_tax": 0, "amount_shipping": 0},
            "metadata": metadata or {},
        }
        session.update(overrides)
        return session

    return _make


def completed_event(session, event_id="evt_test_1"):
    return {
        "id": event_id,
        "type": "checkout.session.completed",
        "data": {"object": session},
    }
