"""Admin dashboard aggregates.

Read-only. Only *qualifying* orders count towards revenue, orders and
customers: payment succeeded and the order was not cancelled afterwards.
Windows are calendar months in UTC, both ends inclusive.
"""

from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy import distinct, func, select
from sqlalchemy.orm import Session

from catalogue.product.product import ProductCatalog
from ordering.order.order import Order, OrderStatus, PaymentStatus
from shared.db import utcnow

_ONE_TICK = timedelta(microseconds=1)


def calculate_percentage_change(current: float, previous: float) -> dict:
    if previous > 0:
        percentage = (current - previous) / previous * 100
        if percentage > 0:
            change_type = "increase"
        elif percentage < 0:
            change_type = "decrease"
        else:
            change_type = "no-change"
    elif current > 0:
        percentage, change_type = 100.0, "increase"
    else:
        percentage, change_type = 0.0, "no-change"

    return {"percentage": round(percentage, 2), "change_type": change_type}


def month_window(moment: datetime) -> tuple[datetime, datetime]:
    """First and last instant of the calendar month containing ``moment``."""
    start = moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    next_start = (start + timedelta(days=32)).replace(day=1)
    return start, next_start - _ONE_TICK


class DashboardAggregator:
    def __init__(self, session: Session, catalog: ProductCatalog, clock: Callable[[], datetime] = utcnow):
        self.session = session
        self.catalog = catalog
        self.clock = clock

    def dashboard_stats(self) -> dict:
        current_start, current_end = month_window(self.clock())
        previous_start, previous_end = month_window(current_start - _ONE_TICK)

        current = (current_start, current_end)
        previous = (previous_start, previous_end)
        return {
            "revenue": self._metric(self._revenue, current, previous),
            "orders": self._metric(self._order_count, current, previous),
            "customers": self._metric(self._customer_count, current, previous),
            "products": {
                **self._compare(
                    self.catalog.count_created_between(*current),
                    self.catalog.count_created_between(*previous),
                ),
                "total": self.catalog.count(),
            },
            "period": {
                "current_month": {"start": current_start, "end": current_end},
                "previous_month": {"start": previous_start, "end": previous_end},
            },
        }

    def order_stats(self) -> dict:
        """Number of orders in each order status, plus the overall count."""
        rows = self.session.execute(select(Order.order_status, func.count()).group_by(Order.order_status)).all()
        by_status = {status.value: 0 for status in OrderStatus}
        by_status.update({status: count for status, count in rows})
        return {"total_orders": sum(by_status.values()), **by_status}

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _metric(self, query: Callable, current: tuple, previous: tuple) -> dict:
        return {**self._compare(query(*current), query(*previous)), "total": query()}

    @staticmethod
    def _compare(current_value, previous_value) -> dict:
        change = calculate_percentage_change(current_value, previous_value)
        return {
            "current_month": current_value,
            "previous_month": previous_value,
            "percentage_change": change["percentage"],
            "change_type": change["change_type"],
        }

    @staticmethod
    def _qualifying(start: datetime | None = None, end: datetime | None = None) -> list:
        criteria = [
            Order.payment_status == PaymentStatus.SUCCESS.value,
            Order.order_status != OrderStatus.CANCELLED.value,
        ]
        if start is not None:
            criteria.append(Order.created_at >= start)
        if end is not None:
            criteria.append(Order.created_at <= end)
        return criteria

    def _revenue(self, start: datetime | None = None, end: datetime | None = None) -> float:
        total = self.session.scalar(select(func.sum(Order.total_amount)).where(*self._qualifying(start, end)))
        return float(total or 0.0)

    def _order_count(self, start: datetime | None = None, end: datetime | None = None) -> int:
        return self.session.scalar(select(func.count(Order.id)).where(*self._qualifying(start, end)))

    def _customer_count(self, start: datetime | None = None, end: datetime | None = None) -> int:
        return self.session.scalar(select(func.count(distinct(Order.user_id))).where(*self._qualifying(start, end)))
