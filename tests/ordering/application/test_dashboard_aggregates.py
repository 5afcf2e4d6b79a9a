"""Tests for the admin dashboard aggregates."""

from datetime import datetime

import pytest
from freezegun import freeze_time

from ordering.order.order import Order, OrderStatus, PaymentStatus
from ordering.reporting.dashboard import DashboardAggregator


def _create_order(orders, user_id, total, created_at, payment_status, order_status=OrderStatus.PROCESSING):
    order = Order.create(
        user_id=user_id,
        lines=[{"product_id": "prod-001", "name": "Clay Mug", "quantity": 1, "price": total}],
        shipping_address={
            "first_name": "Ada",
            "last_name": "Obi",
            "address": "12 Marina Road",
            "city": "Lagos",
            "state": "Lagos",
            "country": "Nigeria",
            "zip_code": "101001",
            "phone": "+2348012345678",
        },
        payment_method="fake",
        reference=f"ref-{user_id}-{created_at.isoformat()}-{total}",
        gateway="fake",
    )
    order.created_at = created_at
    order.payment_status = payment_status.value
    order.order_status = order_status.value
    return orders.add(order)


@pytest.fixture()
def dashboard(session, catalog):
    return DashboardAggregator(session, catalog, clock=lambda: datetime(2024, 3, 20, 12, 0))


class TestDashboardStats:
    def test_revenue_excludes_cancelled_and_unpaid(self, orders, dashboard):
        _create_order(orders, "u1", 1000.0, datetime(2024, 3, 2), PaymentStatus.SUCCESS)
        _create_order(orders, "u2", 500.0, datetime(2024, 3, 3), PaymentStatus.SUCCESS, OrderStatus.CANCELLED)
        _create_order(orders, "u3", 700.0, datetime(2024, 3, 4), PaymentStatus.PENDING, OrderStatus.PENDING)
        _create_order(orders, "u4", 300.0, datetime(2024, 3, 5), PaymentStatus.FAILED, OrderStatus.PENDING)

        stats = dashboard.dashboard_stats()

        assert stats["revenue"]["current_month"] == 1000.0
        assert stats["revenue"]["total"] == 1000.0
        assert stats["orders"]["current_month"] == 1

    def test_period_over_period(self, orders, dashboard):
        _create_order(orders, "u1", 1000.0, datetime(2024, 2, 10), PaymentStatus.SUCCESS)
        _create_order(orders, "u1", 500.0, datetime(2024, 3, 1), PaymentStatus.SUCCESS)
        _create_order(orders, "u2", 1000.0, datetime(2024, 3, 31, 23, 59, 59), PaymentStatus.SUCCESS)
        _create_order(orders, "u3", 9000.0, datetime(2024, 1, 31), PaymentStatus.SUCCESS)

        stats = dashboard.dashboard_stats()

        assert stats["revenue"] == {
            "current_month": 1500.0,
            "previous_month": 1000.0,
            "percentage_change": 50.0,
            "change_type": "increase",
            "total": 11500.0,
        }
        assert stats["orders"]["current_month"] == 2
        assert stats["orders"]["previous_month"] == 1
        assert stats["orders"]["percentage_change"] == 100.0

    def test_customers_are_distinct(self, orders, dashboard):
        _create_order(orders, "u1", 100.0, datetime(2024, 3, 2), PaymentStatus.SUCCESS)
        _create_order(orders, "u1", 200.0, datetime(2024, 3, 3), PaymentStatus.SUCCESS)
        _create_order(orders, "u2", 300.0, datetime(2024, 3, 4), PaymentStatus.SUCCESS)

        stats = dashboard.dashboard_stats()

        assert stats["customers"]["current_month"] == 2
        assert stats["customers"]["previous_month"] == 0
        assert stats["customers"]["change_type"] == "increase"

    def test_products_created_in_window(self, catalog, dashboard):
        with freeze_time("2024-02-20"):
            catalog.add(name="Old Product", price=10.0)
        with freeze_time("2024-03-05"):
            catalog.add(name="New Product", price=10.0)
            catalog.add(name="Newer Product", price=10.0)

        products = dashboard.dashboard_stats()["products"]

        assert products["total"] == 3
        assert products["current_month"] == 2
        assert products["previous_month"] == 1
        assert products["percentage_change"] == 100.0

    def test_empty_store(self, dashboard):
        stats = dashboard.dashboard_stats()
        assert stats["revenue"]["total"] == 0.0
        assert stats["orders"]["change_type"] == "no-change"

    def test_period_bounds(self, dashboard):
        period = dashboard.dashboard_stats()["period"]
        assert period["current_month"] == {
            "start": datetime(2024, 3, 1),
            "end": datetime(2024, 3, 31, 23, 59, 59, 999999),
        }
        assert period["previous_month"] == {
            "start": datetime(2024, 2, 1),
            "end": datetime(2024, 2, 29, 23, 59, 59, 999999),
        }

    def test_default_clock_uses_current_time(self, session, catalog):
        with freeze_time("2025-01-10 08:00:00"):
            period = DashboardAggregator(session, catalog).dashboard_stats()["period"]
        assert period["previous_month"]["start"] == datetime(2024, 12, 1)


class TestOrderStats:
    def test_counts_per_status(self, orders, dashboard):
        _create_order(orders, "u1", 100.0, datetime(2024, 3, 2), PaymentStatus.SUCCESS)
        _create_order(orders, "u2", 100.0, datetime(2024, 3, 2), PaymentStatus.PENDING, OrderStatus.PENDING)
        _create_order(orders, "u3", 100.0, datetime(2024, 3, 2), PaymentStatus.SUCCESS, OrderStatus.CANCELLED)

        assert dashboard.order_stats() == {
            "total_orders": 3,
            "pending": 1,
            "processing": 1,
            "shipped": 0,
            "delivered": 0,
            "cancelled": 1,
        }
