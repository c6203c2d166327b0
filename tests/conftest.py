import os

# przed importem storefront, zeby engine modulu nie wskazywal na postgresa
os.environ.setdefault("DATABASE_URL", "sqlite://")

import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, update
from sqlalchemy.orm import sessionmaker

from storefront.api.deps import (
    get_idempotency_service,
    get_notification_service,
    get_product_client,
)
from storefront.data.database import Base, get_db
from storefront.data.models.order import OrderModel
from storefront.domain.schemas import CatalogProduct, OrderStatus, ShippingAddress
from storefront.main import create_app
from storefront.services.cart_service import CartService
from storefront.services.order_service import OrderService

import storefront.data.models  # noqa: F401


class FakeCatalog:
    """Katalog w pamieci z tym samym interfejsem co ProductClient."""

    def __init__(self):
        self.products = {}

    def add(self, product_id, name, price, images=None, in_stock=True, stock_quantity=100):
        self.products[product_id] = {
            "id": product_id,
            "name": name,
            "price": price,
            "images": images if images is not None else [f"/img/{product_id}.jpg"],
            "in_stock": in_stock,
            "stock_quantity": stock_quantity,
        }

    def set_price(self, product_id, price):
        self.products[product_id]["price"] = price

    def remove(self, product_id):
        del self.products[product_id]

    def fetch_product(self, product_id):
        data = self.products.get(product_id)
        if data is None:
            return None
        return CatalogProduct.model_validate(data)


class FakeIdempotency:
    def __init__(self):
        self.claims = {}
        self.released = []

    def claim(self, user_id, idempotency_key):
        key = (user_id, idempotency_key)
        if key in self.claims:
            return None
        token = uuid.uuid4().hex
        self.claims[key] = token
        return token

    def release(self, user_id, idempotency_key, token):
        key = (user_id, idempotency_key)
        self.released.append(key)
        if self.claims.get(key) == token:
            del self.claims[key]
            return True
        return False


class RecordingNotifier:
    def __init__(self):
        self.placed = []
        self.cancelled = []

    def send_order_placed(self, user_id, order_id):
        self.placed.append((user_id, order_id))

    def send_order_cancelled(self, user_id, order_id):
        self.cancelled.append((user_id, order_id))


@pytest.fixture()
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'storefront.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def catalog():
    catalog = FakeCatalog()
    catalog.add("P1", "Keyboard", 100, images=["/img/kb-front.jpg", "/img/kb-side.jpg"])
    catalog.add("P2", "Mouse", 50)
    catalog.add("P3", "Cable", 15, images=[])
    return catalog


@pytest.fixture()
def idempotency():
    return FakeIdempotency()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def cart_service(db, catalog):
    return CartService(db=db, product_client=catalog)


@pytest.fixture()
def order_service(db, catalog, idempotency, notifier):
    return OrderService(
        db=db,
        product_client=catalog,
        idempotency=idempotency,
        notification_service=notifier,
    )


@pytest.fixture()
def address():
    return ShippingAddress(
        full_name="Jan Kowalski",
        phone="+48 600 100 200",
        address="ul. Dluga 5",
        city="Krakow",
        state="Malopolskie",
        pincode="30-001",
    )


@pytest.fixture()
def client(session_factory, catalog, idempotency, notifier):
    app = create_app()

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_product_client] = lambda: catalog
    app.dependency_overrides[get_idempotency_service] = lambda: idempotency
    app.dependency_overrides[get_notification_service] = lambda: notifier
    return TestClient(app)


@pytest.fixture()
def set_order_status(session_factory):
    """Zmiana statusu z zewnatrz (panel admina), osobna sesja jak w produkcji."""

    def _set(order_id, status):
        session = session_factory()
        try:
            session.execute(
                update(OrderModel)
                .where(OrderModel.id == order_id)
                .values(order_status=OrderStatus(status).value)
            )
            session.commit()
        finally:
            session.close()

    return _set
