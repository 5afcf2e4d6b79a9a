"""Cart persistence and the user-facing cart operations."""

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from catalogue.product.product import ProductCatalog
from ordering.cart.cart import Cart
from shared.exceptions import BadRequestError, NotFoundError

logger = structlog.get_logger(__name__)


class CartStore:
    """Loads, mutates and commits carts. One commit per operation."""

    def __init__(self, session: Session, catalog: ProductCatalog):
        self.session = session
        self.catalog = catalog

    def find(self, user_id: str) -> Cart | None:
        return self.session.scalars(select(Cart).where(Cart.user_id == str(user_id))).one_or_none()

    def get(self, user_id: str) -> Cart:
        cart = self.find(user_id)
        if cart is None:
            raise NotFoundError("Cart not found")
        return cart

    def get_or_create(self, user_id: str) -> Cart:
        """Return the user's cart, creating an empty one on first access."""
        cart = self.find(user_id)
        if cart is not None:
            return cart

        cart = Cart.create(str(user_id))
        self.session.add(cart)
        try:
            self.session.commit()
        except IntegrityError:
            # Another request created it first
            self.session.rollback()
            return self.get(user_id)

        logger.info("Cart created", user_id=str(user_id), cart_id=cart.id)
        return cart

    def add_item(self, user_id: str, product_id: str, quantity: int = 1) -> Cart:
        product = self.catalog.find(product_id)
        if product is None:
            raise NotFoundError("Product not found")
        if product.out_of_stock:
            raise BadRequestError("Product is out of stock")

        cart = self.get_or_create(user_id)
        cart.add_item(product.id, product.price, quantity)
        self.session.commit()

        logger.info(
            "Item added to cart",
            user_id=str(user_id),
            product_id=product.id,
            quantity=quantity,
            total_amount=cart.total_amount,
        )
        return cart

    def update_item(self, user_id: str, product_id: str, quantity: int) -> Cart:
        cart = self.get(user_id)
        cart.set_quantity(product_id, quantity)
        self.session.commit()
        return cart

    def remove_item(self, user_id: str, product_id: str) -> Cart:
        cart = self.get(user_id)
        cart.remove_item(product_id)
        self.session.commit()
        return cart

    def clear(self, user_id: str) -> Cart:
        cart = self.get(user_id)
        cart.clear()
        self.session.commit()
        logger.info("Cart cleared", user_id=str(user_id), cart_id=cart.id)
        return cart

    def count(self, user_id: str) -> int:
        cart = self.find(user_id)
        return cart.item_count() if cart else 0

    def validate(self, user_id: str) -> dict:
        """Check every line against the catalogue's current state."""
        cart = self.find(user_id)
        if cart is None or cart.is_empty:
            return {"is_valid": True, "errors": []}

        errors = []
        for item in cart.items:
            product = self.catalog.find(item.product_id)
            if product is None:
                errors.append(f"Product {item.product_id} no longer exists")
            elif product.out_of_stock:
                errors.append(f"{product.name} is out of stock")
            elif product.price != item.unit_price:
                errors.append(f"Price changed for {product.name}")

        return {"is_valid": not errors, "errors": errors}
