# storefront/services/order_service.py
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.errors import (
    DuplicateRequestError,
    InvalidStateError,
    NotFoundError,
    storage_errors,
)
from storefront.domain.schemas import (
    LOCKED_STATUSES,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    ShippingAddress,
)
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.services.idempotency_service import IdempotencyService
from storefront.services.notification_service import NotificationService
from storefront.services.product_client import ProductClient
from storefront.utils.settings import ENFORCE_STOCK
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class OrderService:
    """
    Serwis odpowiedzialny za domene zamowien: koszyk -> zamowienie,
    odczyt zamowien i anulowanie.
    """

    def __init__(
        self,
        db: Session,
        product_client: ProductClient,
        idempotency: IdempotencyService | None = None,
        notification_service: NotificationService | None = None,
        enforce_stock: bool = ENFORCE_STOCK,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.cart_repo = CartRepo(db)
        self.product_client = product_client
        self.idempotency = idempotency
        self.notification_service = notification_service or NotificationService()
        self.enforce_stock = enforce_stock

    def create_order(
        self,
        user_id: str,
        shipping_address: ShippingAddress,
        payment_method: PaymentMethod = PaymentMethod.COD,
        idempotency_key: str | None = None,
    ) -> Dict[str, Any]:
        """
        Use Case: Tworzenie zamowienia z koszyka.

        1. Pusty koszyk -> InvalidStateError, nic wiecej sie nie dzieje
        2. Opcjonalnie rejestruje Idempotency-Key (duplikat -> 409)
        3. Snapshot pozycji z katalogu (nazwa, cena, pierwsze zdjecie)
        4. Zapis zamowienia i zdjecie ilosci ze snapshotu z koszyka w jednej
           transakcji; pozycja zmieniona w miedzyczasie -> InvalidStateError
        5. Powiadomienie (async)
        """
        with storage_errors(self.db, "read cart for checkout"):
            cart = self.cart_repo.get_cart_by_owner(user_id)
            items = self.cart_repo.get_cart_items(cart.id) if cart else []

        if not items:
            raise InvalidStateError("Cart is empty")

        claim_token = None
        if idempotency_key:
            if self.idempotency is None:
                raise RuntimeError("Idempotency key given but no idempotency service configured")
            claim_token = self.idempotency.claim(user_id, idempotency_key)
            if claim_token is None:
                logger.warning(f"Duplicate checkout for user {user_id}, key {idempotency_key}")
                raise DuplicateRequestError("Duplicate order submission")

        try:
            order_items = [self._snapshot_line(item) for item in items]
            total = sum(i.unit_price * i.quantity for i in order_items)

            order = OrderModel(
                owner_id=user_id,
                shipping_address=shipping_address.model_dump(),
                payment_method=PaymentMethod(payment_method).value,
                # bez bramki platnosci status zawsze pending
                payment_status=PaymentStatus.PENDING.value,
                order_status=OrderStatus.PLACED.value,
                total_amount=total,
                idempotency_key=idempotency_key,
                items=order_items,
            )

            with storage_errors(self.db, "create order"):
                self.repo.add_order(order)
                # zdejmujemy ilosci ze snapshotu, to co doszlo w trakcie zostaje w koszyku
                snapshot = [(item.id, item.quantity) for item in items]
                consumed = self.cart_repo.consume_items(snapshot)
                if consumed < len(snapshot):
                    # pozycja zmniejszona albo usunieta w trakcie checkoutu
                    self.repo.rollback()
                    logger.warning(f"Cart {cart.id} changed during checkout for user {user_id}")
                    raise InvalidStateError("Cart changed during checkout, please retry")
                self.cart_repo.touch_cart(cart.id)
                self.repo.commit()
                self.db.refresh(order)
        except Exception:
            if claim_token:
                self.idempotency.release(user_id, idempotency_key, claim_token)
            raise

        logger.info(f"Order {order.id} created from cart {cart.id}, total {total}")

        self.notification_service.send_order_placed(user_id, order.id)

        return self._to_dict(order)

    def list_orders(self, user_id: str) -> List[Dict[str, Any]]:
        with storage_errors(self.db, "list orders"):
            orders = self.repo.list_orders(user_id)
            return [self._to_dict(o) for o in orders]

    def get_order(self, user_id: str, order_id: int) -> Dict[str, Any]:
        """
        Use Case: Pobranie zamowienia (Query).
        """
        with storage_errors(self.db, "get order"):
            order = self.repo.get_owned_order(order_id, user_id)
            if not order:
                raise NotFoundError("Order not found")
            return self._to_dict(order)

    def cancel_order(self, user_id: str, order_id: int) -> Dict[str, Any]:
        with storage_errors(self.db, "cancel order"):
            # placed|confirmed -> cancelled jednym UPDATE z warunkiem na statusie
            rowcount = self.repo.cancel_order(order_id, user_id)
            if rowcount:
                self.repo.commit()
            else:
                self.repo.rollback()

            order = self.repo.get_owned_order(order_id, user_id)
            if not order:
                raise NotFoundError("Order not found")

            if not rowcount and OrderStatus(order.order_status) in LOCKED_STATUSES:
                raise InvalidStateError("Cannot cancel shipped or delivered orders")

            result = self._to_dict(order)

        if rowcount:
            logger.info(f"Order {order_id} cancelled by user {user_id}")
            self.notification_service.send_order_cancelled(user_id, order_id)
        else:
            logger.info(f"Order {order_id} already cancelled")

        return result

    def _snapshot_line(self, item: CartItemModel) -> OrderItemModel:
        product = self.product_client.fetch_product(item.product_id)
        if product is None:
            raise NotFoundError(f"Product {item.product_id} not found")

        if self.enforce_stock and (not product.in_stock or item.quantity > product.stock_quantity):
            raise InvalidStateError(f"Insufficient stock for {product.name}")

        return OrderItemModel(
            product_id=item.product_id,
            name=product.name,
            unit_price=product.price,
            quantity=item.quantity,
            image=product.image,
        )

    @staticmethod
    def _to_dict(order: OrderModel) -> Dict[str, Any]:
        return {
            "id": order.id,
            "owner_id": order.owner_id,
            "items": [
                {
                    "product_id": i.product_id,
                    "name": i.name,
                    "unit_price": i.unit_price,
                    "quantity": i.quantity,
                    "image": i.image,
                }
                for i in order.items
            ],
            "shipping_address": order.shipping_address,
            "payment_method": order.payment_method,
            "payment_status": order.payment_status,
            "order_status": order.order_status,
            "total_amount": order.total_amount,
            "created_at": order.created_at,
        }
