"""
Pytest configuration: SQLite in memory, fake lock and payment gateway,
TestClient with dependency overrides.
"""
import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ADMIN_EMAILS"] = "admin@bistro.com"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="bistro-uploads-")
os.environ["FRONTEND_URL"] = "http://shop.test"

from contextlib import contextmanager
from decimal import Decimal
from itertools import count
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from bistro.api.deps import get_lock_service, get_payment_gateway, get_notification_service
from bistro.data.database import Base, engine, SessionLocal
from bistro.data.models.item import ItemModel
from bistro.data.models.user import UserModel
from bistro.domain.errors import ConflictError, GatewayError
from bistro.main import app
from bistro.services.notification_service import NotificationService
from bistro.services.payment_gateway import CheckoutSession, SessionStatus
from bistro.utils.security import create_access_token, hash_password


class FakeLockService:
    """Lock w pamieci o tej samej semantyce co LockService (NX + zwalnianie tokenem)."""

    def __init__(self):
        self.held: dict[int, str] = {}

    def acquire_cart_lock(self, user_id: int, token: str, ttl: int = 5) -> bool:
        if user_id in self.held:
            return False
        self.held[user_id] = token
        return True

    def release_cart_lock(self, user_id: int, token: str) -> bool:
        if self.held.get(user_id) == token:
            del self.held[user_id]
            return True
        return False

    @contextmanager
    def cart_lock(self, user_id: int):
        token = f"t-{user_id}"
        if not self.acquire_cart_lock(user_id, token):
            raise ConflictError("Cart is being updated, please retry")
        try:
            yield
        finally:
            self.release_cart_lock(user_id, token)


class FakeGateway:
    """Bramka platnosci w pamieci: sesje sa 'open' dopoki test nie oznaczy ich jako paid/expired."""

    def __init__(self):
        self._ids = count(1)
        self.sessions: dict[str, dict] = {}
        self.created: list[dict] = []
        self.fail_create = False
        self.fail_retrieve = False

    def create_checkout_session(self, lines, customer_email=None, metadata=None, idempotency_key=None):
        if self.fail_create:
            raise GatewayError("Payment gateway error: timeout")
        session_id = f"cs_test_{next(self._ids)}"
        lines = list(lines)
        self.created.append(
            {
                "id": session_id,
                "lines": lines,
                "email": customer_email,
                "metadata": metadata,
                "idempotency_key": idempotency_key,
            }
        )
        self.sessions[session_id] = {"status": "open", "paid": False, "metadata": metadata or {}}
        return CheckoutSession(id=session_id, url=f"https://checkout.stripe.test/{session_id}", payment_intent_id=None)

    def retrieve_session(self, session_id):
        if self.fail_retrieve:
            raise GatewayError("Payment gateway error: unavailable")
        session = self.sessions.get(session_id)
        if session is None:
            raise GatewayError(f"Payment gateway error: No such checkout.session: {session_id}")
        order_id = session["metadata"].get("order_id")
        return SessionStatus(
            id=session_id,
            paid=session["paid"],
            status=session["status"],
            payment_intent_id="pi_test_1" if session["paid"] else None,
            order_id=int(order_id) if order_id is not None else None,
        )

    def mark_paid(self, session_id):
        self.sessions[session_id].update(status="complete", paid=True)

    def mark_expired(self, session_id):
        self.sessions[session_id].update(status="expired", paid=False)


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
def lock_service() -> FakeLockService:
    return FakeLockService()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def notifier() -> MagicMock:
    return MagicMock(spec=NotificationService)


@pytest.fixture
def client(db, lock_service, gateway, notifier):
    app.dependency_overrides[get_lock_service] = lambda: lock_service
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_notification_service] = lambda: notifier
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(email="alice@mail.com", name="Alice", password="password1", is_admin=False) -> UserModel:
        user = UserModel(name=name, email=email, password_hash=hash_password(password), is_admin=is_admin)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def user(make_user) -> UserModel:
    return make_user()


@pytest.fixture
def other_user(make_user) -> UserModel:
    return make_user(email="bob@mail.com", name="Bob")


@pytest.fixture
def admin(make_user) -> UserModel:
    return make_user(email="admin@bistro.com", name="Admin", is_admin=True)


@pytest.fixture
def auth_headers():
    def _headers(user: UserModel) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers


@pytest.fixture
def make_item(db):
    def _make(name="Margherita", price="100.00", category="Italian", image_url=None) -> ItemModel:
        item = ItemModel(
            name=name,
            description=f"{name} description",
            category=category,
            price=Decimal(price),
            rating=4.5,
            hearts=0,
            image_url=image_url,
        )
        db.add(item)
        db.commit()
        db.refresh(item)
        return item

    return _make


@pytest.fixture
def item(make_item) -> ItemModel:
    return make_item()


@pytest.fixture
def order_payload():
    def _payload(items, payment_method="cod", **overrides) -> dict:
        payload = {
            "first_name": "Alice",
            "last_name": "Smith",
            "phone": "5551234",
            "email": "alice@mail.com",
            "address": "1 Main St",
            "city": "Pune",
            "zipcode": "411001",
            "payment_method": payment_method,
            "items": items,
        }
        payload.update(overrides)
        return payload

    return _payload
