# storefront/domain/schemas.py
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Dict, List, Optional
from datetime import datetime


class PaymentMethod(str, Enum):
    COD = "COD"
    CARD = "CARD"
    UPI = "UPI"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class OrderStatus(str, Enum):
    PLACED = "placed"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# anulowac mozna tylko przed wysylka
CANCELLABLE_STATUSES = (OrderStatus.PLACED, OrderStatus.CONFIRMED)
LOCKED_STATUSES = (OrderStatus.SHIPPED, OrderStatus.DELIVERED)


class CatalogProduct(BaseModel):
    """Rekord produktu z product-service (tylko pola potrzebne koszykowi)."""

    id: str
    name: str
    price: int
    images: List[str] = []
    in_stock: bool = True
    stock_quantity: int = 0

    model_config = ConfigDict(extra="ignore")

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v):
        return str(v)

    @property
    def image(self) -> str:
        return self.images[0] if self.images else ""


class ItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: str = Field(..., min_length=1, description="ID produktu z katalogu")
    quantity: int = Field(1, description="Ilosc, domyslnie 1")
    variant: Optional[Dict[str, str]] = Field(None, description="np. {'size': 'M'}")


class ItemUpdateIn(BaseModel):
    quantity: int


class CartProductOut(BaseModel):
    id: str
    name: str
    price: int
    image: str
    in_stock: bool


class CartItemOut(BaseModel):
    """Schema dla produktu w koszyku (response)."""

    product_id: str
    quantity: int
    variant: Optional[Dict[str, str]] = None
    product: Optional[CartProductOut] = None
    line_total: int


class CartOut(BaseModel):
    """Schema dla koszyka (response)."""

    cart_id: int
    owner_id: str
    items: List[CartItemOut]
    total: int
    item_count: int
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class CartClearedOut(BaseModel):
    message: str
    items: List[CartItemOut] = []


class ShippingAddress(BaseModel):
    """Adres dostawy, wszystkie pola wymagane."""

    full_name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    pincode: str = Field(..., min_length=1)

    model_config = ConfigDict(str_strip_whitespace=True)


class OrderCreate(BaseModel):
    """Schema dla tworzenia zamowienia."""

    shipping_address: ShippingAddress
    payment_method: PaymentMethod = PaymentMethod.COD


class OrderItemOut(BaseModel):
    product_id: str
    name: str
    unit_price: int
    quantity: int
    image: str

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    """Schema dla zamowienia (response)."""

    id: int
    owner_id: str
    items: List[OrderItemOut]
    shipping_address: ShippingAddress
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    order_status: OrderStatus
    total_amount: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
