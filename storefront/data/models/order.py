from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from storefront.data.database import Base


def _now():
    return datetime.now(timezone.utc)


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String(64), nullable=False, index=True)

    shipping_address = Column(JSON, nullable=False)
    payment_method = Column(String(8), nullable=False, default="COD")  # COD, CARD, UPI
    payment_status = Column(String(16), nullable=False, default="pending")  # pending, paid, failed
    order_status = Column(String(16), nullable=False, default="placed")  # placed, confirmed, shipped, delivered, cancelled

    # suma unit_price * quantity z pozycji, liczona raz przy tworzeniu
    total_amount = Column(Integer, nullable=False)
    idempotency_key = Column(String(128), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
    )
