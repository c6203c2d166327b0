# storefront/api/deps.py
from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.services.cart_service import CartService
from storefront.services.idempotency_service import IdempotencyService
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderService
from storefront.services.product_client import ProductClient


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """
    Tozsamosc weryfikuje gateway i wstrzykuje ja w naglowku X-User-Id,
    tutaj tylko sprawdzamy czy jest.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Not authorized, no user identity")
    return x_user_id.strip()


def get_product_client() -> ProductClient:
    return ProductClient()


def get_idempotency_service() -> IdempotencyService:
    return IdempotencyService()


def get_notification_service() -> NotificationService:
    return NotificationService()


def get_cart_service(
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
) -> CartService:
    return CartService(db=db, product_client=product_client)


def get_order_service(
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
    idempotency: IdempotencyService = Depends(get_idempotency_service),
    notification_service: NotificationService = Depends(get_notification_service),
) -> OrderService:
    return OrderService(
        db=db,
        product_client=product_client,
        idempotency=idempotency,
        notification_service=notification_service,
    )
