# storefront/repos/order_repo.py
from typing import List

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.order import OrderModel
from storefront.domain.schemas import CANCELLABLE_STATUSES, OrderStatus


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        # bez commita, commit razem z czyszczeniem koszyka w serwisie
        self.db.add(order)
        self.db.flush()
        return order

    def get_owned_order(self, order_id: int, owner_id: str) -> OrderModel | None:
        # wlasciciel jest czescia predykatu, cudze zamowienie == brak zamowienia
        return self.db.execute(
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.id == order_id, OrderModel.owner_id == owner_id)
        ).scalar_one_or_none()

    def list_orders(self, owner_id: str) -> List[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .options(selectinload(OrderModel.items))
                .where(OrderModel.owner_id == owner_id)
                .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            ).scalars().all()
        )

    def cancel_order(self, order_id: int, owner_id: str) -> int:
        """UPDATE warunkowy na statusie, 0 wierszy gdy nie ma czego anulowac."""
        result = self.db.execute(
            update(OrderModel)
            .where(
                OrderModel.id == order_id,
                OrderModel.owner_id == owner_id,
                OrderModel.order_status.in_([s.value for s in CANCELLABLE_STATUSES]),
            )
            .values(order_status=OrderStatus.CANCELLED.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
