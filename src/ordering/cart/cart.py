"""Shopping cart: the user's pending, mutable selection of products.

One cart per user. Each line keeps the unit price seen when the product was
added; ``total_amount`` is recomputed from the lines on every mutation. At
checkout the order copies what it needs and the cart is cleared, never
deleted and never linked to the order.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import CheckConstraint, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.db import Base, utcnow
from shared.exceptions import BadRequestError, NotFoundError


class CartItem(Base):
    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("cart_id", "product_id"),
        CheckConstraint("quantity >= 1", name="cart_item_quantity_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    cart_id: Mapped[str] = mapped_column(ForeignKey("carts.id", ondelete="CASCADE"))
    product_id: Mapped[str] = mapped_column(String(36))
    quantity: Mapped[int] = mapped_column(Integer)
    unit_price: Mapped[float] = mapped_column(Float)
    added_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


class Cart(Base):
    __tablename__ = "carts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id: Mapped[str] = mapped_column(String(36), unique=True)
    total_amount: Mapped[float] = mapped_column(Float, default=0.0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    items: Mapped[list[CartItem]] = relationship(
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by=CartItem.id,
    )

    @classmethod
    def create(cls, user_id: str) -> "Cart":
        now = utcnow()
        return cls(user_id=user_id, items=[], total_amount=0.0, created_at=now, updated_at=now)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_empty(self) -> bool:
        return not self.items

    def find_item(self, product_id: str) -> CartItem | None:
        return next((item for item in self.items if item.product_id == str(product_id)), None)

    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def add_item(self, product_id: str, unit_price: float, quantity: int) -> CartItem:
        """Add a product, or increase its quantity if it is already in the cart."""
        if quantity < 1:
            raise BadRequestError("Quantity must be at least 1")

        item = self.find_item(product_id)
        if item:
            item.quantity += quantity
        else:
            item = CartItem(product_id=str(product_id), quantity=quantity, unit_price=unit_price, added_at=utcnow())
            self.items.append(item)

        self._touch()
        return item

    def set_quantity(self, product_id: str, quantity: int) -> None:
        """Set a line's quantity; zero removes the line."""
        if quantity < 0:
            raise BadRequestError("Quantity cannot be negative")

        item = self.find_item(product_id)
        if item is None:
            raise NotFoundError("Item not found in cart")

        if quantity == 0:
            self.items.remove(item)
        else:
            item.quantity = quantity
        self._touch()

    def remove_item(self, product_id: str) -> None:
        item = self.find_item(product_id)
        if item is None:
            raise NotFoundError("Item not found in cart")
        self.items.remove(item)
        self._touch()

    def clear(self) -> None:
        self.items.clear()
        self._touch()

    def recalculate_total(self) -> float:
        self.total_amount = sum(item.line_total for item in self.items)
        return self.total_amount

    def _touch(self) -> None:
        self.recalculate_total()
        self.updated_at = utcnow()
