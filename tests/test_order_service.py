"""Checkout (cart -> order) and the order status state machine."""

import pytest
from sqlalchemy import func, select

from storefront.data.models.order import OrderModel
from storefront.domain.errors import (
    DependencyError,
    DuplicateRequestError,
    InvalidStateError,
    NotFoundError,
)
from storefront.domain.schemas import OrderStatus, PaymentMethod
from storefront.repos.cart_repo import CartRepo
from storefront.services.order_service import OrderService


def _order_count(db):
    return db.execute(select(func.count(OrderModel.id))).scalar_one()


def during_catalog_read(monkeypatch, catalog, session_factory, change):
    """Rownolegla zmiana koszyka user-1 (osobna sesja) przy pierwszym odczycie katalogu."""
    original_fetch = catalog.fetch_product
    calls = []

    def fetch_and_change(product_id):
        if not calls:
            session = session_factory()
            try:
                repo = CartRepo(session)
                change(repo, repo.get_cart_by_owner("user-1"))
                repo.commit()
            finally:
                session.close()
        calls.append(product_id)
        return original_fetch(product_id)

    monkeypatch.setattr(catalog, "fetch_product", fetch_and_change)


@pytest.fixture()
def filled_cart(cart_service):
    cart_service.add_item("user-1", "P1", 2)
    cart_service.add_item("user-1", "P2", 1)
    return cart_service


class TestCreateOrder:
    def test_empty_cart_fails_and_creates_nothing(self, order_service, cart_service, address, db):
        cart_service.get_cart("user-1")

        with pytest.raises(InvalidStateError, match="Cart is empty"):
            order_service.create_order("user-1", address)

        assert _order_count(db) == 0

    def test_user_without_cart_cannot_checkout(self, order_service, address, db):
        with pytest.raises(InvalidStateError):
            order_service.create_order("nobody", address)

        assert _order_count(db) == 0

    def test_snapshot_total_and_cart_cleared(self, filled_cart, order_service, address):
        order = order_service.create_order("user-1", address)

        assert order["total_amount"] == 250
        assert len(order["items"]) == 2
        lines = {line["product_id"]: line for line in order["items"]}
        assert lines["P1"]["unit_price"] == 100
        assert lines["P1"]["quantity"] == 2
        assert lines["P1"]["name"] == "Keyboard"
        assert lines["P2"]["unit_price"] == 50
        assert filled_cart.get_cart("user-1")["items"] == []

    def test_defaults_to_placed_pending_cod(self, filled_cart, order_service, address):
        order = order_service.create_order("user-1", address)

        assert order["order_status"] == "placed"
        assert order["payment_status"] == "pending"
        assert order["payment_method"] == "COD"
        assert order["owner_id"] == "user-1"
        assert order["shipping_address"]["city"] == "Krakow"

    def test_card_payment_is_recorded_but_still_pending(self, filled_cart, order_service, address):
        order = order_service.create_order("user-1", address, PaymentMethod.CARD)

        assert order["payment_method"] == "CARD"
        assert order["payment_status"] == "pending"

    def test_first_image_or_empty_string(self, cart_service, order_service, address):
        cart_service.add_item("user-1", "P1", 1)
        cart_service.add_item("user-1", "P3", 1)

        order = order_service.create_order("user-1", address)

        images = {line["product_id"]: line["image"] for line in order["items"]}
        assert images == {"P1": "/img/kb-front.jpg", "P3": ""}

    def test_later_price_change_does_not_touch_order(self, filled_cart, order_service, catalog, address):
        order = order_service.create_order("user-1", address)
        catalog.set_price("P1", 999)

        stored = order_service.get_order("user-1", order["id"])

        lines = {line["product_id"]: line for line in stored["items"]}
        assert lines["P1"]["unit_price"] == 100
        assert stored["total_amount"] == 250

    def test_uses_price_at_checkout_time(self, filled_cart, order_service, catalog, address):
        catalog.set_price("P2", 70)

        order = order_service.create_order("user-1", address)

        assert order["total_amount"] == 2 * 100 + 70

    def test_stock_not_enforced_by_default(self, cart_service, order_service, catalog, address):
        catalog.add("P9", "Rare", 10, stock_quantity=1)
        cart_service.add_item("user-1", "P9", 5)

        order = order_service.create_order("user-1", address)

        assert order["items"][0]["quantity"] == 5

    def test_stock_enforced_when_enabled(self, cart_service, db, catalog, notifier, address):
        catalog.add("P9", "Rare", 10, stock_quantity=1)
        cart_service.add_item("user-1", "P9", 5)
        service = OrderService(
            db=db, product_client=catalog, notification_service=notifier, enforce_stock=True
        )

        with pytest.raises(InvalidStateError, match="Insufficient stock"):
            service.create_order("user-1", address)

        assert _order_count(db) == 0
        assert len(cart_service.get_cart("user-1")["items"]) == 1

    def test_product_gone_from_catalog_aborts_checkout(self, filled_cart, order_service, catalog, address, db):
        catalog.remove("P2")

        with pytest.raises(NotFoundError):
            order_service.create_order("user-1", address)

        assert _order_count(db) == 0
        assert len(filled_cart.get_cart("user-1")["items"]) == 1

    def test_notification_sent_for_placed_order(self, filled_cart, order_service, notifier, address):
        order = order_service.create_order("user-1", address)

        assert notifier.placed == [("user-1", order["id"])]


class TestCheckoutAtomicity:
    def test_failed_order_write_keeps_cart(self, filled_cart, order_service, address, db, monkeypatch):
        from sqlalchemy.exc import OperationalError

        def broken_consume(snapshot):
            raise OperationalError("DELETE", {}, Exception("disk I/O error"))

        monkeypatch.setattr(order_service.cart_repo, "consume_items", broken_consume)

        with pytest.raises(DependencyError):
            order_service.create_order("user-1", address)

        # zamowienie i czyszczenie koszyka w jednej transakcji - oba wycofane
        assert _order_count(db) == 0
        assert len(filled_cart.get_cart("user-1")["items"]) == 2

    def test_lines_added_after_snapshot_survive(self, filled_cart, order_service, address, db):
        repo = order_service.cart_repo
        original_consume = repo.consume_items

        def add_then_consume(snapshot):
            cart = repo.get_cart_by_owner("user-1")
            repo.upsert_cart_item(cart.id, "P3", 1, None)
            return original_consume(snapshot)

        repo.consume_items = add_then_consume

        order = order_service.create_order("user-1", address)

        assert {line["product_id"] for line in order["items"]} == {"P1", "P2"}
        remaining = filled_cart.get_cart("user-1")["items"]
        assert [line["product_id"] for line in remaining] == ["P3"]

    def test_increment_during_checkout_stays_in_cart(
        self, filled_cart, order_service, catalog, session_factory, address, monkeypatch
    ):
        during_catalog_read(
            monkeypatch, catalog, session_factory,
            lambda repo, cart: repo.upsert_cart_item(cart.id, "P1", 3, None),
        )

        order = order_service.create_order("user-1", address)

        ordered = {line["product_id"]: line["quantity"] for line in order["items"]}
        assert ordered == {"P1": 2, "P2": 1}
        remaining = filled_cart.get_cart("user-1")["items"]
        assert [(line["product_id"], line["quantity"]) for line in remaining] == [("P1", 3)]

    def test_line_removed_during_checkout_aborts(
        self, filled_cart, order_service, catalog, session_factory, idempotency, address, db, monkeypatch
    ):
        during_catalog_read(
            monkeypatch, catalog, session_factory,
            lambda repo, cart: repo.delete_cart_item(cart.id, "P2"),
        )

        with pytest.raises(InvalidStateError, match="Cart changed during checkout"):
            order_service.create_order("user-1", address, idempotency_key="k-1")

        assert _order_count(db) == 0
        remaining = filled_cart.get_cart("user-1")["items"]
        assert [(line["product_id"], line["quantity"]) for line in remaining] == [("P1", 2)]
        assert idempotency.claims == {}

    def test_quantity_lowered_during_checkout_aborts(
        self, filled_cart, order_service, catalog, session_factory, address, db, monkeypatch
    ):
        during_catalog_read(
            monkeypatch, catalog, session_factory,
            lambda repo, cart: repo.set_item_quantity(cart.id, "P1", 1),
        )

        with pytest.raises(InvalidStateError):
            order_service.create_order("user-1", address)

        assert _order_count(db) == 0


class TestIdempotentCheckout:
    def test_duplicate_key_is_rejected(self, cart_service, order_service, address, db):
        cart_service.add_item("user-1", "P1", 1)
        order_service.create_order("user-1", address, idempotency_key="k-1")
        cart_service.add_item("user-1", "P1", 1)

        with pytest.raises(DuplicateRequestError):
            order_service.create_order("user-1", address, idempotency_key="k-1")

        assert _order_count(db) == 1

    def test_empty_cart_does_not_claim_key(self, order_service, idempotency, address):
        with pytest.raises(InvalidStateError):
            order_service.create_order("user-1", address, idempotency_key="k-1")

        assert idempotency.claims == {}

    def test_failed_checkout_releases_key(self, filled_cart, order_service, catalog, idempotency, address):
        catalog.remove("P2")

        with pytest.raises(NotFoundError):
            order_service.create_order("user-1", address, idempotency_key="k-1")

        assert idempotency.claims == {}
        assert idempotency.released == [("user-1", "k-1")]

    def test_same_key_for_different_users_is_independent(self, cart_service, order_service, address, db):
        cart_service.add_item("user-1", "P1", 1)
        cart_service.add_item("user-2", "P1", 1)

        order_service.create_order("user-1", address, idempotency_key="k-1")
        order_service.create_order("user-2", address, idempotency_key="k-1")

        assert _order_count(db) == 2


class TestOrderQueries:
    def test_list_orders_newest_first(self, cart_service, order_service, address):
        ids = []
        for _ in range(3):
            cart_service.add_item("user-1", "P1", 1)
            ids.append(order_service.create_order("user-1", address)["id"])

        orders = order_service.list_orders("user-1")

        assert [o["id"] for o in orders] == list(reversed(ids))

    def test_list_orders_only_own(self, cart_service, order_service, address):
        cart_service.add_item("user-1", "P1", 1)
        order_service.create_order("user-1", address)

        assert order_service.list_orders("user-2") == []

    def test_get_own_order(self, filled_cart, order_service, address):
        created = order_service.create_order("user-1", address)

        fetched = order_service.get_order("user-1", created["id"])

        assert fetched["id"] == created["id"]
        assert fetched["total_amount"] == 250

    def test_foreign_order_is_not_found(self, filled_cart, order_service, address):
        created = order_service.create_order("user-1", address)

        with pytest.raises(NotFoundError, match="Order not found"):
            order_service.get_order("user-2", created["id"])

    def test_unknown_order_is_not_found(self, order_service):
        with pytest.raises(NotFoundError):
            order_service.get_order("user-1", 4242)


class TestCancelOrder:
    def test_cancel_placed_order(self, filled_cart, order_service, notifier, address):
        created = order_service.create_order("user-1", address)

        cancelled = order_service.cancel_order("user-1", created["id"])

        assert cancelled["order_status"] == "cancelled"
        assert notifier.cancelled == [("user-1", created["id"])]

    def test_cancel_twice_is_noop(self, filled_cart, order_service, notifier, address):
        created = order_service.create_order("user-1", address)
        order_service.cancel_order("user-1", created["id"])

        again = order_service.cancel_order("user-1", created["id"])

        assert again["order_status"] == "cancelled"
        assert len(notifier.cancelled) == 1

    def test_cancel_confirmed_order(self, filled_cart, order_service, set_order_status, address):
        created = order_service.create_order("user-1", address)
        set_order_status(created["id"], OrderStatus.CONFIRMED)

        cancelled = order_service.cancel_order("user-1", created["id"])

        assert cancelled["order_status"] == "cancelled"

    @pytest.mark.parametrize("status", [OrderStatus.SHIPPED, OrderStatus.DELIVERED])
    def test_cannot_cancel_after_shipping(self, filled_cart, order_service, set_order_status, address, status):
        created = order_service.create_order("user-1", address)
        set_order_status(created["id"], status)

        with pytest.raises(InvalidStateError, match="Cannot cancel shipped or delivered orders"):
            order_service.cancel_order("user-1", created["id"])

        assert order_service.get_order("user-1", created["id"])["order_status"] == status.value

    def test_cannot_cancel_foreign_order(self, filled_cart, order_service, address):
        created = order_service.create_order("user-1", address)

        with pytest.raises(NotFoundError):
            order_service.cancel_order("user-2", created["id"])

        assert order_service.get_order("user-1", created["id"])["order_status"] == "placed"

    def test_cancel_keeps_total_and_lines(self, filled_cart, order_service, address):
        created = order_service.create_order("user-1", address)

        cancelled = order_service.cancel_order("user-1", created["id"])

        assert cancelled["total_amount"] == created["total_amount"]
        assert cancelled["items"] == created["items"]
