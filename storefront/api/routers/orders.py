# storefront/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, Header

from storefront.api.deps import get_current_user_id, get_order_service
from storefront.domain.schemas import OrderCreate, OrderOut
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post("", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderCreate,
    idempotency_key: str | None = Header(default=None),
    user_id: str = Depends(get_current_user_id),
    svc: OrderService = Depends(get_order_service),
):
    """
    Tworzy zamowienie z koszyka uzytkownika i czysci koszyk.
    Wysyla powiadomienie asynchronicznie.
    """
    return svc.create_order(
        user_id=user_id,
        shipping_address=payload.shipping_address,
        payment_method=payload.payment_method,
        idempotency_key=idempotency_key,
    )


@router.get("", response_model=List[OrderOut])
def list_orders(
    user_id: str = Depends(get_current_user_id),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_orders(user_id)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    user_id: str = Depends(get_current_user_id),
    svc: OrderService = Depends(get_order_service),
):
    """
    Pobiera szczegoly zamowienia.
    """
    return svc.get_order(user_id, order_id)


@router.put("/{order_id}/cancel", response_model=OrderOut)
def cancel_order(
    order_id: int,
    user_id: str = Depends(get_current_user_id),
    svc: OrderService = Depends(get_order_service),
):
    return svc.cancel_order(user_id, order_id)
