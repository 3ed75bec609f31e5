"""Pytest fixtures for the LumBarong API tests."""

from dataclasses import dataclass
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from lumbarong.api.deps import get_broadcaster, get_notification_sink
from lumbarong.core.security import Principal, create_access_token, get_db, get_password_hash
from lumbarong.db.base import Base
from lumbarong.db.session import build_engine
from lumbarong.main import app
from lumbarong.models.notification import NotificationType
from lumbarong.models.product import Product
from lumbarong.models.user import RoleEnum, User
from lumbarong.services.notifications import DatabaseNotificationSink
from lumbarong.services.orders import OrderService


@dataclass
class Actor:
    id: int
    role: RoleEnum
    token: str

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"}

    @property
    def principal(self) -> Principal:
        return Principal(user_id=self.id, role=self.role)


class RecordingSink(DatabaseNotificationSink):
    """Writes notifications like production and remembers what was sent."""

    def __init__(self, session_factory):
        super().__init__(session_factory)
        self.sent: list[tuple[int, str, NotificationType]] = []

    def send(self, user_id, message, type=NotificationType.system):
        self.sent.append((user_id, message, type))
        super().send(user_id, message, type)

    def messages_for(self, user_id: int) -> list[str]:
        return [message for recipient, message, _ in self.sent if recipient == user_id]


class RecordingBroadcaster:
    def __init__(self):
        self.events: list[str] = []

    def publish(self, event: str) -> None:
        self.events.append(event)


@pytest.fixture
def engine(tmp_path):
    """File-backed SQLite so that each thread gets its own connection."""
    engine = build_engine(f"sqlite:///{tmp_path / 'lumbarong_test.db'}", lock_timeout=15)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def sink(session_factory):
    return RecordingSink(session_factory)


@pytest.fixture
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture
def client(session_factory, sink, broadcaster):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_sink] = lambda: sink
    app.dependency_overrides[get_broadcaster] = lambda: broadcaster
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_factory):
    counter = {"n": 0}

    def _make(role: RoleEnum, verified: bool = True, name: str | None = None) -> Actor:
        counter["n"] += 1
        with session_factory() as session:
            user = User(
                name=name or f"{role.value} {counter['n']}",
                email=f"{role.value}{counter['n']}@example.ph",
                hashed_password=get_password_hash("secret123"),
                role=role,
                is_verified=verified,
            )
            session.add(user)
            session.commit()
            user_id = user.id
        return Actor(id=user_id, role=role, token=create_access_token(str(user_id), role.value))

    return _make


@pytest.fixture
def make_product(session_factory):
    def _make(seller: Actor, stock: int = 10, price: str = "100.00", name: str = "Classic Piña Barong") -> int:
        with session_factory() as session:
            product = Product(seller_id=seller.id, name=name, price=Decimal(price), stock=stock)
            session.add(product)
            session.commit()
            return product.id

    return _make


@pytest.fixture
def stock_of(session_factory):
    def _stock(product_id: int) -> int:
        with session_factory() as session:
            return session.get(Product, product_id).stock

    return _stock


@pytest.fixture
def seller(make_user):
    return make_user(RoleEnum.seller, name="Maria Clara")


@pytest.fixture
def customer(make_user):
    return make_user(RoleEnum.customer, name="Juan Dela Cruz")


@pytest.fixture
def admin(make_user):
    return make_user(RoleEnum.admin)


@pytest.fixture
def product(make_product, seller):
    return make_product(seller, stock=10, price="100.00")


@pytest.fixture
def service_for(session_factory, sink, broadcaster):
    """Builds an OrderService bound to a fresh session, as one request would."""
    sessions = []

    def _service(notifier=None) -> OrderService:
        db = session_factory()
        sessions.append(db)
        return OrderService(db, notifier or sink, broadcaster)

    yield _service
    for db in sessions:
        db.close()


def order_body(product_id: int, quantity: int = 3, price: float = 100, **overrides) -> dict:
    body = {
        "items": [{"product": product_id, "quantity": quantity, "price": price}],
        "totalAmount": quantity * price,
        "paymentMethod": "COD",
        "shippingAddress": "123 Rizal St, Lumban, Laguna",
    }
    body.update(overrides)
    return body
