"""Order persistence.

Every status change after creation is a single conditional ``UPDATE``. The
caller learns whether the write took effect from the matched row count, so
two requests racing on the same order can never both apply a transition.
"""

from datetime import datetime
from math import ceil

from sqlalchemy import case, func, select, update
from sqlalchemy.orm import Session

from ordering.order.order import (
    CANCELLABLE_STATES,
    AttemptStatus,
    Order,
    OrderStatus,
    PaymentAttempt,
    PaymentStatus,
)
from shared.db import utcnow

MAX_PAGE_SIZE = 100


def paginate(total: int, page: int, limit: int) -> dict:
    total_pages = ceil(total / limit) if total else 0
    return {
        "current_page": page,
        "total_pages": total_pages,
        "total_items": total,
        "has_next_page": page < total_pages,
        "has_previous_page": page > 1,
        "limit": limit,
    }


class OrderStore:
    def __init__(self, session: Session):
        self.session = session

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def find(self, order_id: str, user_id: str | None = None) -> Order | None:
        stmt = select(Order).where(Order.id == str(order_id))
        if user_id is not None:
            stmt = stmt.where(Order.user_id == str(user_id))
        return self.session.scalars(stmt.execution_options(populate_existing=True)).one_or_none()

    def find_by_reference(self, reference: str) -> Order | None:
        """Resolve a reference to its order, current or superseded."""
        order = self.session.scalars(
            select(Order).where(Order.payment_reference == reference).execution_options(populate_existing=True)
        ).one_or_none()
        if order is not None:
            return order

        attempt = self.find_attempt(reference)
        return self.find(attempt.order_id) if attempt else None

    def find_attempt(self, reference: str) -> PaymentAttempt | None:
        stmt = select(PaymentAttempt).where(PaymentAttempt.reference == reference)
        return self.session.scalars(stmt.execution_options(populate_existing=True)).one_or_none()

    def search(
        self,
        user_id: str | None = None,
        order_status: OrderStatus | None = None,
        payment_status: PaymentStatus | None = None,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Order], dict]:
        """Filtered orders, newest first, with pagination metadata."""
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)

        criteria = []
        if user_id is not None:
            criteria.append(Order.user_id == str(user_id))
        if order_status is not None:
            criteria.append(Order.order_status == order_status.value)
        if payment_status is not None:
            criteria.append(Order.payment_status == payment_status.value)
        if created_from is not None:
            criteria.append(Order.created_at >= created_from)
        if created_to is not None:
            criteria.append(Order.created_at <= created_to)

        total = self.session.scalar(select(func.count()).select_from(Order).where(*criteria))
        orders = self.session.scalars(
            select(Order)
            .where(*criteria)
            .order_by(Order.created_at.desc(), Order.id)
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()
        return list(orders), paginate(total, page, limit)

    def last_shipping_address(self, user_id: str) -> dict | None:
        address = self.session.scalars(
            select(Order.shipping_address)
            .where(Order.user_id == str(user_id))
            .order_by(Order.created_at.desc())
            .limit(1)
        ).first()
        return dict(address) if address else None

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def add(self, order: Order) -> Order:
        """Persist a new order with its items and first attempt in one commit."""
        self.session.add(order)
        self.session.commit()
        return order

    def mark_paid(
        self,
        order_id: str,
        reference: str,
        transaction_id: str | None = None,
        payment_method: str | None = None,
    ) -> bool:
        """Settle a pending payment as successful.

        A pending order moves to processing; any other order status (a
        cancelled order in particular) is left as it is.
        """
        values = {
            "payment_status": PaymentStatus.SUCCESS.value,
            "order_status": case(
                (Order.order_status == OrderStatus.PENDING.value, OrderStatus.PROCESSING.value),
                else_=Order.order_status,
            ),
            "updated_at": utcnow(),
        }
        if transaction_id:
            values["gateway_transaction_id"] = transaction_id
        if payment_method:
            values["payment_method"] = payment_method

        stmt = update(Order).where(Order.id == order_id, Order.payment_status == PaymentStatus.PENDING.value)
        return self._apply(stmt.values(**values), order_id, reference, AttemptStatus.SUCCESS, transaction_id)

    def mark_failed(self, order_id: str, reference: str, transaction_id: str | None = None) -> bool:
        """Record a failed payment, only while ``reference`` is the active one."""
        stmt = (
            update(Order)
            .where(
                Order.id == order_id,
                Order.payment_status == PaymentStatus.PENDING.value,
                Order.payment_reference == reference,
            )
            .values(payment_status=PaymentStatus.FAILED.value, updated_at=utcnow())
        )
        return self._apply(stmt, order_id, reference, AttemptStatus.FAILED, transaction_id)

    def swap_reference(self, order_id: str, old_reference: str, new_reference: str, gateway: str) -> bool:
        """Replace the active reference, provided nobody paid or replaced it meanwhile."""
        now = utcnow()
        stmt = (
            update(Order)
            .where(
                Order.id == order_id,
                Order.payment_reference == old_reference,
                Order.payment_status != PaymentStatus.SUCCESS.value,
                Order.order_status != OrderStatus.CANCELLED.value,
            )
            .values(
                payment_reference=new_reference,
                payment_status=case(
                    (Order.payment_status == PaymentStatus.FAILED.value, PaymentStatus.PENDING.value),
                    else_=Order.payment_status,
                ),
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if self.session.execute(stmt).rowcount != 1:
            self.session.rollback()
            return False

        self.session.execute(
            update(PaymentAttempt)
            .where(PaymentAttempt.reference == old_reference)
            .values(status=AttemptStatus.SUPERSEDED.value, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        self.session.add(
            PaymentAttempt(
                reference=new_reference,
                order_id=order_id,
                gateway=gateway,
                status=AttemptStatus.PENDING.value,
                created_at=now,
                updated_at=now,
            )
        )
        self.session.commit()
        return True

    def cancel(self, order_id: str, user_id: str | None = None) -> bool:
        stmt = update(Order).where(
            Order.id == order_id,
            Order.order_status.in_([status.value for status in CANCELLABLE_STATES]),
        )
        if user_id is not None:
            stmt = stmt.where(Order.user_id == str(user_id))
        stmt = stmt.values(order_status=OrderStatus.CANCELLED.value, updated_at=utcnow())

        if self.session.execute(stmt.execution_options(synchronize_session=False)).rowcount != 1:
            self.session.rollback()
            return False
        self.session.commit()
        return True

    def overwrite_status(self, order: Order, status: OrderStatus) -> Order:
        order.order_status = status.value
        order.updated_at = utcnow()
        self.session.commit()
        return order

    def _apply(
        self,
        stmt,
        order_id: str,
        reference: str,
        outcome: AttemptStatus,
        transaction_id: str | None,
    ) -> bool:
        """Run a conditional order update and, if it matched, settle the attempt."""
        if self.session.execute(stmt.execution_options(synchronize_session=False)).rowcount != 1:
            self.session.rollback()
            return False

        self.session.execute(
            update(PaymentAttempt)
            .where(PaymentAttempt.reference == reference, PaymentAttempt.order_id == order_id)
            .values(status=outcome.value, gateway_transaction_id=transaction_id, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        return True
