"""Tests for re-opening payment on an unpaid order."""

import pytest

from ordering.order.order import AttemptStatus, PaymentStatus
from payments.gateway.port import PaymentGatewayError
from shared.exceptions import BadRequestError, NotFoundError


@pytest.fixture()
def placed_order(engine, carts, orders, customer, products, shipping_address):
    carts.add_item(customer.id, products["shirt"].id, 1)
    result = engine.create_order(customer.id, shipping_address)
    return orders.find(result["order_id"])


class TestReinitializePayment:
    def test_issues_new_reference_for_same_amount(self, engine, orders, gateway, customer, placed_order):
        old_reference = placed_order.payment_reference

        result = engine.reinitialize_payment(placed_order.id, customer.id)

        assert result["reference"] != old_reference
        assert result["payment_url"].endswith(result["reference"])
        assert gateway.calls[-1]["amount"] == 15000.0
        assert orders.find(placed_order.id).payment_reference == result["reference"]

    def test_supersedes_previous_attempt(self, engine, orders, customer, placed_order):
        old_reference = placed_order.payment_reference

        result = engine.reinitialize_payment(placed_order.id, customer.id)

        assert orders.find_attempt(old_reference).status == AttemptStatus.SUPERSEDED.value
        assert orders.find_attempt(result["reference"]).status == AttemptStatus.PENDING.value
        assert len(orders.find(placed_order.id).attempts) == 2

    def test_resets_failed_payment_to_pending(self, engine, orders, customer, placed_order):
        engine.handle_failed_payment(placed_order.payment_reference)

        engine.reinitialize_payment(placed_order.id, customer.id)

        assert orders.find(placed_order.id).payment_status == PaymentStatus.PENDING.value

    def test_already_paid_order_rejected(self, engine, customer, placed_order):
        engine.handle_successful_payment(placed_order.payment_reference)

        with pytest.raises(BadRequestError, match="Order already paid"):
            engine.reinitialize_payment(placed_order.id, customer.id)

    def test_cancelled_order(self, engine, customer, placed_order):
        engine.cancel_order(placed_order.id, scope_user_id=customer.id)

        with pytest.raises(BadRequestError):
            engine.reinitialize_payment(placed_order.id, customer.id)

    def test_other_users_order(self, engine, other_customer, placed_order):
        with pytest.raises(NotFoundError, match="Order not found"):
            engine.reinitialize_payment(placed_order.id, other_customer.id)

    def test_unknown_user(self, engine, placed_order):
        with pytest.raises(NotFoundError, match="User not found"):
            engine.reinitialize_payment(placed_order.id, "ghost")

    def test_gateway_failure_leaves_order_untouched(self, engine, orders, gateway, customer, placed_order):
        old_reference = placed_order.payment_reference
        gateway.configure(should_succeed=False)

        with pytest.raises(PaymentGatewayError):
            engine.reinitialize_payment(placed_order.id, customer.id)

        order = orders.find(placed_order.id)
        assert order.payment_reference == old_reference
        assert orders.find_attempt(old_reference).status == AttemptStatus.PENDING.value


class TestSwapReference:
    def test_swap_only_from_expected_reference(self, orders, placed_order):
        old_reference = placed_order.payment_reference

        assert orders.swap_reference(placed_order.id, old_reference, "fake_2_b", "fake") is True
        assert orders.swap_reference(placed_order.id, old_reference, "fake_3_c", "fake") is False
        assert orders.find(placed_order.id).payment_reference == "fake_2_b"
        assert orders.find_attempt("fake_3_c") is None
