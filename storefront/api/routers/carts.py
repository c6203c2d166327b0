#storefront/api/routers/carts.py
from fastapi import APIRouter, Depends

from storefront.api.deps import get_cart_service, get_current_user_id
from storefront.domain.schemas import (
    CartClearedOut,
    CartOut,
    ItemIn,
    ItemUpdateIn,
)
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/api/cart", tags=["cart"])


@router.get("", response_model=CartOut)
def get_cart(
    user_id: str = Depends(get_current_user_id),
    svc: CartService = Depends(get_cart_service),
):
    return svc.get_cart(user_id)


@router.post("/add", response_model=CartOut)
def add_item(
    payload: ItemIn,
    user_id: str = Depends(get_current_user_id),
    svc: CartService = Depends(get_cart_service),
):
    return svc.add_item(
        user_id=user_id,
        product_id=payload.product_id,
        quantity=payload.quantity,
        variant=payload.variant,
    )


@router.put("/update/{product_id}", response_model=CartOut)
def update_item(
    product_id: str,
    payload: ItemUpdateIn,
    user_id: str = Depends(get_current_user_id),
    svc: CartService = Depends(get_cart_service),
):
    return svc.update_item(user_id, product_id, payload.quantity)


@router.delete("/remove/{product_id}", response_model=CartOut)
def remove_item(
    product_id: str,
    user_id: str = Depends(get_current_user_id),
    svc: CartService = Depends(get_cart_service),
):
    return svc.remove_item(user_id, product_id)


@router.delete("/clear", response_model=CartClearedOut)
def clear_cart(
    user_id: str = Depends(get_current_user_id),
    svc: CartService = Depends(get_cart_service),
):
    return svc.clear(user_id)
