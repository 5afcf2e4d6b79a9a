"""Order records and their lifecycle rules.

An order is created once from a cart snapshot. Its items, total, shipping
address and owner never change afterwards; only the status pair
(``order_status``, ``payment_status``), the active payment reference and
gateway metadata move.

Order lifecycle:
    pending → processing | cancelled      (payment success / cancel)
    processing → shipped | delivered | cancelled
    shipped → delivered
    delivered, cancelled: terminal

Payment lifecycle:
    pending → success | failed            (webhooks only)
    failed → pending                      (payment re-initialization)
    refunded: terminal, independent of the order status

Every payment attempt is kept in the ``payment_attempts`` ledger so that a
webhook carrying a superseded reference still resolves to its order.
"""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.db import Base, utcnow


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    REFUNDED = "refunded"


class AttemptStatus(Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    SUPERSEDED = "superseded"


# Transitions that follow the normal fulfilment path
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

CANCELLABLE_STATES = {OrderStatus.PENDING, OrderStatus.PROCESSING}
TERMINAL_STATES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

SHIPPING_FIELDS = ("first_name", "last_name", "address", "city", "state", "country", "zip_code", "phone")


def is_valid_transition(current: OrderStatus, new: OrderStatus) -> bool:
    return new in _VALID_TRANSITIONS[current]


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------
class OrderItem(Base):
    """A purchased line, priced at the moment the order was placed."""

    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), index=True)
    product_id: Mapped[str] = mapped_column(String(36))
    name: Mapped[str] = mapped_column(String(255))
    quantity: Mapped[int] = mapped_column(Integer)
    price: Mapped[float] = mapped_column(Float)

    @property
    def line_total(self) -> float:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "quantity": self.quantity,
            "price": self.price,
        }


class PaymentAttempt(Base):
    """One gateway reference issued for an order."""

    __tablename__ = "payment_attempts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    reference: Mapped[str] = mapped_column(String(100), unique=True)
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), index=True)
    gateway: Mapped[str] = mapped_column(String(50))
    status: Mapped[str] = mapped_column(String(20), default=AttemptStatus.PENDING.value)
    gateway_transaction_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    total_amount: Mapped[float] = mapped_column(Float)
    shipping_address: Mapped[dict] = mapped_column(JSON)
    payment_method: Mapped[str] = mapped_column(String(50))
    order_status: Mapped[str] = mapped_column(String(20), default=OrderStatus.PENDING.value, index=True)
    payment_status: Mapped[str] = mapped_column(String(20), default=PaymentStatus.PENDING.value, index=True)
    payment_reference: Mapped[str] = mapped_column(String(100), unique=True)
    gateway_transaction_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    items: Mapped[list[OrderItem]] = relationship(
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by=OrderItem.id,
    )
    attempts: Mapped[list[PaymentAttempt]] = relationship(
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by=PaymentAttempt.id,
    )

    @classmethod
    def create(
        cls,
        user_id: str,
        lines: list[dict],
        shipping_address: dict,
        payment_method: str,
        reference: str,
        gateway: str,
    ) -> "Order":
        """Build a pending order and its first payment attempt.

        ``lines`` carry ``product_id``, ``name``, ``quantity`` and ``price`` as
        read from the catalogue at checkout time.
        """
        now = utcnow()
        items = [
            OrderItem(
                product_id=str(line["product_id"]),
                name=line["name"],
                quantity=line["quantity"],
                price=line["price"],
            )
            for line in lines
        ]
        return cls(
            user_id=str(user_id),
            items=items,
            total_amount=sum(item.line_total for item in items),
            shipping_address={field: shipping_address[field] for field in SHIPPING_FIELDS},
            payment_method=payment_method,
            order_status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            payment_reference=reference,
            attempts=[
                PaymentAttempt(
                    reference=reference,
                    gateway=gateway,
                    status=AttemptStatus.PENDING.value,
                    created_at=now,
                    updated_at=now,
                )
            ],
            created_at=now,
            updated_at=now,
        )

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.SUCCESS.value

    @property
    def is_cancellable(self) -> bool:
        return OrderStatus(self.order_status) in CANCELLABLE_STATES

    @property
    def active_attempt(self) -> PaymentAttempt | None:
        return next((a for a in self.attempts if a.reference == self.payment_reference), None)
