# storefront/repos/cart_repo.py
from datetime import datetime, timezone
from typing import Iterable, List, Tuple

from sqlalchemy import select, update, delete
from sqlalchemy.orm import Session

from storefront.data.database import UPSERT_INSERTS
from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel


def _insert_for(db: Session, model):
    """INSERT z obsluga ON CONFLICT dla dialektu polaczenia."""
    # dialekt sprawdzany przy tworzeniu engine (ensure_supported_dialect)
    return UPSERT_INSERTS[db.get_bind().dialect.name](model)


class CartRepo:
    """
    Kazda zmiana pozycji to jedno zapytanie SQL zawezone do (cart_id, product_id),
    bez wczytywania calego koszyka i zapisu z powrotem.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_cart_by_owner(self, owner_id: str) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(CartModel.owner_id == owner_id)
        ).scalar_one_or_none()

    def ensure_cart(self, owner_id: str) -> CartModel:
        # insert-if-absent, dwa rownolegle pierwsze dostepy koncza na jednym koszyku
        stmt = _insert_for(self.db, CartModel).values(
            owner_id=owner_id,
            updated_at=datetime.now(timezone.utc),
        )
        self.db.execute(stmt.on_conflict_do_nothing(index_elements=["owner_id"]))
        return self.get_cart_by_owner(owner_id)

    def get_cart_items(self, cart_id: int) -> List[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.cart_id == cart_id)
                .order_by(CartItemModel.id)
            ).scalars().all()
        )

    def upsert_cart_item(
        self,
        cart_id: int,
        product_id: str,
        quantity: int,
        variant: dict | None,
    ) -> None:
        stmt = _insert_for(self.db, CartItemModel).values(
            cart_id=cart_id,
            product_id=product_id,
            quantity=quantity,
            variant=variant,
        )
        #jesli pozycja istnieje: quantity = quantity + nowa ilosc, wariant bez zmian
        stmt = stmt.on_conflict_do_update(
            index_elements=["cart_id", "product_id"],
            set_={"quantity": CartItemModel.quantity + stmt.excluded.quantity},
        )
        self.db.execute(stmt)

    def set_item_quantity(self, cart_id: int, product_id: str, quantity: int) -> int:
        result = self.db.execute(
            update(CartItemModel)
            .where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
            .values(quantity=quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def delete_cart_item(self, cart_id: int, product_id: str) -> int:
        result = self.db.execute(
            delete(CartItemModel)
            .where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def consume_items(self, snapshot: Iterable[Tuple[int, int]]) -> int:
        """
        Zdejmuje z koszyka ilosci ze snapshotu checkoutu: (item_id, quantity).
        Nadwyzka dodana w trakcie checkoutu zostaje w koszyku. Zwraca liczbe
        pozycji rozliczonych w calosci.
        """
        consumed = 0
        for item_id, quantity in snapshot:
            result = self.db.execute(
                update(CartItemModel)
                .where(CartItemModel.id == item_id, CartItemModel.quantity > quantity)
                .values(quantity=CartItemModel.quantity - quantity)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount:
                consumed += 1
                continue

            result = self.db.execute(
                delete(CartItemModel)
                .where(CartItemModel.id == item_id, CartItemModel.quantity == quantity)
                .execution_options(synchronize_session=False)
            )
            consumed += result.rowcount
        return consumed

    def clear_cart_items(self, cart_id: int) -> int:
        result = self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.cart_id == cart_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def touch_cart(self, cart_id: int) -> None:
        self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id)
            .values(updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
