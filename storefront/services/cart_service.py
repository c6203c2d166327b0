# storefront/services/cart_service.py
from typing import Dict, Any

from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.domain.errors import NotFoundError, ValidationError, storage_errors
from storefront.repos.cart_repo import CartRepo
from storefront.services.product_client import ProductClient
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Prosta implementacja cqrs i proste use case dla domeny cart
    commands (add, update, remove, clear) modyfikuja stan
    query (get) tylko odczyt, koszyk tworzony leniwie
    """

    def __init__(self, db: Session, product_client: ProductClient):
        self.db = db
        self.repo = CartRepo(db)
        self.product_client = product_client

    #query - odczyt
    def get_or_create_cart(self, user_id: str) -> CartModel:
        with storage_errors(self.db, "get cart"):
            cart = self.repo.get_cart_by_owner(user_id)
            if cart:
                return cart

            cart = self.repo.ensure_cart(user_id)
            self.repo.commit()

        logger.info(f"Utworzono nowy koszyk {cart.id} dla uzytkownika {user_id}")
        return cart

    def get_cart(self, user_id: str) -> Dict[str, Any]:
        cart = self.get_or_create_cart(user_id)
        return self._render(cart)

    #commands
    def add_item(
        self,
        user_id: str,
        product_id: str,
        quantity: int = 1,
        variant: dict | None = None,
    ) -> Dict[str, Any]:
        # Walidacje
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")

        logger.info(f"Pobieranie danych produktu {product_id} z product-service")
        product = self.product_client.fetch_product(product_id)
        if product is None:
            raise NotFoundError("Product not found")

        with storage_errors(self.db, "add to cart"):
            cart = self.repo.ensure_cart(user_id)
            # jedno zapytanie: insert albo quantity += quantity
            self.repo.upsert_cart_item(cart.id, product_id, quantity, variant)
            self.repo.touch_cart(cart.id)
            self.repo.commit()

        logger.info(f"Produkt {product_id} (+{quantity}) dodany do koszyka {cart.id}")
        return self._render(cart)

    def update_item(self, user_id: str, product_id: str, quantity: int) -> Dict[str, Any]:
        # zero i ujemne nie usuwaja pozycji, od tego jest remove
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")

        with storage_errors(self.db, "update cart item"):
            cart = self.repo.get_cart_by_owner(user_id)
            if not cart:
                raise NotFoundError("Cart not found")

            rowcount = self.repo.set_item_quantity(cart.id, product_id, quantity)
            if rowcount == 0:
                self.repo.rollback()
                raise NotFoundError("Item not in cart")

            self.repo.touch_cart(cart.id)
            self.repo.commit()

        logger.info(f"Ilosc produktu {product_id} w koszyku {cart.id} ustawiona na {quantity}")
        return self._render(cart)

    def remove_item(self, user_id: str, product_id: str) -> Dict[str, Any]:
        with storage_errors(self.db, "remove cart item"):
            cart = self.repo.get_cart_by_owner(user_id)
            if not cart:
                raise NotFoundError("Cart not found")

            #brak pozycji to tez sukces
            removed = self.repo.delete_cart_item(cart.id, product_id)
            self.repo.touch_cart(cart.id)
            self.repo.commit()

        if removed:
            logger.info(f"Produkt {product_id} usuniety z koszyka {cart.id}")
        return self._render(cart)

    def clear(self, user_id: str) -> Dict[str, Any]:
        with storage_errors(self.db, "clear cart"):
            cart = self.repo.ensure_cart(user_id)
            removed = self.repo.clear_cart_items(cart.id)
            self.repo.touch_cart(cart.id)
            self.repo.commit()

        logger.info(f"Koszyk {cart.id} wyczyszczony ({removed} pozycji)")
        return {"message": "Cart cleared", "items": []}

    def _render(self, cart: CartModel) -> Dict[str, Any]:
        """Koszyk z pozycjami rozwiazanymi w katalogu (ceny biezace)."""
        with storage_errors(self.db, "read cart"):
            self.db.refresh(cart)
            items = self.repo.get_cart_items(cart.id)

        lines = []
        for item in items:
            product = self.product_client.fetch_product(item.product_id)
            # produkt zniknal z katalogu - pozycja zostaje, bez ceny
            line_total = product.price * item.quantity if product else 0
            lines.append(
                {
                    "product_id": item.product_id,
                    "quantity": item.quantity,
                    "variant": item.variant,
                    "product": {
                        "id": product.id,
                        "name": product.name,
                        "price": product.price,
                        "image": product.image,
                        "in_stock": product.in_stock,
                    } if product else None,
                    "line_total": line_total,
                }
            )

        return {
            "cart_id": cart.id,
            "owner_id": cart.owner_id,
            "items": lines,
            "total": sum(line["line_total"] for line in lines),
            "item_count": sum(line["quantity"] for line in lines),
            "updated_at": cart.updated_at,
        }
