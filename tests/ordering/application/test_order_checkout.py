"""Tests for turning a cart into an order and opening its payment."""

import httpx
import pytest

from ordering.order.order import AttemptStatus, OrderStatus, PaymentStatus
from payments.gateway.paystack_adapter import PaystackGateway
from payments.gateway.port import PaymentGatewayError
from shared.exceptions import BadRequestError, NotFoundError


def _fill_cart(carts, user, products):
    carts.add_item(user.id, products["shirt"].id, 2)
    carts.add_item(user.id, products["sandals"].id, 1)


class TestCreateOrder:
    def test_returns_payment_url_and_reference(self, engine, carts, customer, products, shipping_address):
        _fill_cart(carts, customer, products)

        result = engine.create_order(customer.id, shipping_address)

        assert result["payment_url"] == f"https://pay.example.test/{result['reference']}"
        assert result["reference"].startswith("fake_")
        assert result["order_id"]

    def test_persists_pending_order_with_snapshot(self, engine, carts, orders, customer, products, shipping_address):
        _fill_cart(carts, customer, products)

        result = engine.create_order(customer.id, shipping_address)
        order = orders.find(result["order_id"])

        assert order.order_status == OrderStatus.PENDING.value
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.payment_reference == result["reference"]
        assert order.payment_method == "fake"
        assert order.total_amount == 52000.0
        assert order.shipping_address == shipping_address
        assert sorted((item.name, item.quantity, item.price) for item in order.items) == [
            ("Ankara Print Shirt", 2, 15000.0),
            ("Leather Sandals", 1, 22000.0),
        ]
        assert [a.status for a in order.attempts] == [AttemptStatus.PENDING.value]

    def test_uses_current_catalogue_price(
        self, engine, carts, orders, catalog, session, customer, products, shipping_address
    ):
        carts.add_item(customer.id, products["shirt"].id, 2)
        products["shirt"].price = 18000.0
        session.commit()

        result = engine.create_order(customer.id, shipping_address)

        assert orders.find(result["order_id"]).total_amount == 36000.0

    def test_gateway_receives_order_metadata(self, engine, carts, gateway, customer, products, shipping_address):
        _fill_cart(carts, customer, products)

        result = engine.create_order(customer.id, shipping_address)

        call = gateway.calls[-1]
        assert call["email"] == "ada@example.com"
        assert call["amount"] == 52000.0
        assert call["reference"] == result["reference"]
        assert call["metadata"] == {
            "order_id": result["order_id"],
            "user_id": customer.id,
            "customer_name": "Ada Obi",
        }

    def test_customer_name_comes_from_shipping_address(
        self, engine, carts, gateway, customer, products, shipping_address
    ):
        _fill_cart(carts, customer, products)

        engine.create_order(customer.id, {**shipping_address, "first_name": "Ngozi", "last_name": "Eze"})

        assert gateway.calls[-1]["metadata"]["customer_name"] == "Ngozi Eze"

    def test_clears_cart(self, engine, carts, customer, products, shipping_address):
        _fill_cart(carts, customer, products)

        engine.create_order(customer.id, shipping_address)

        cart = carts.get(customer.id)
        assert cart.is_empty
        assert cart.total_amount == 0.0


class TestCreateOrderRejections:
    def test_unknown_user(self, engine, shipping_address):
        with pytest.raises(NotFoundError, match="User not found"):
            engine.create_order("no-such-user", shipping_address)

    def test_missing_cart(self, engine, customer, shipping_address):
        with pytest.raises(BadRequestError, match="Cart is empty"):
            engine.create_order(customer.id, shipping_address)

    def test_empty_cart(self, engine, carts, customer, shipping_address):
        carts.get_or_create(customer.id)
        with pytest.raises(BadRequestError, match="Cart is empty"):
            engine.create_order(customer.id, shipping_address)

    def test_unknown_payment_method(self, engine, carts, customer, products, shipping_address):
        _fill_cart(carts, customer, products)
        with pytest.raises(BadRequestError, match="Unsupported payment method"):
            engine.create_order(customer.id, shipping_address, payment_method="cheque")

    def test_out_of_stock_rejects_whole_order(
        self, engine, carts, orders, session, customer, products, shipping_address
    ):
        _fill_cart(carts, customer, products)
        products["sandals"].out_of_stock = True
        session.commit()

        with pytest.raises(BadRequestError, match="Product Leather Sandals is out of stock"):
            engine.create_order(customer.id, shipping_address)

        orders_list, pagination = orders.search(user_id=customer.id)
        assert orders_list == []
        assert pagination["total_items"] == 0
        cart = carts.get(customer.id)
        assert len(cart.items) == 2
        assert cart.total_amount == 52000.0

    def test_deleted_product_rejects_order(self, engine, carts, session, customer, products, shipping_address):
        _fill_cart(carts, customer, products)
        session.delete(products["shirt"])
        session.commit()

        with pytest.raises(BadRequestError, match=f"Product {products['shirt'].id} not found"):
            engine.create_order(customer.id, shipping_address)


class TestGatewayFailureDuringCheckout:
    def test_order_stays_pending_and_is_retryable(
        self, engine, carts, orders, gateway, customer, products, shipping_address
    ):
        _fill_cart(carts, customer, products)
        gateway.configure(should_succeed=False, failure_reason="Gateway timeout")

        with pytest.raises(PaymentGatewayError, match="Gateway timeout"):
            engine.create_order(customer.id, shipping_address)

        stored, _ = orders.search(user_id=customer.id)
        assert len(stored) == 1
        assert stored[0].order_status == OrderStatus.PENDING.value
        assert stored[0].payment_status == PaymentStatus.PENDING.value
        assert carts.get(customer.id).is_empty

        gateway.configure(should_succeed=True)
        result = engine.reinitialize_payment(stored[0].id, customer.id)
        assert result["order_id"] == stored[0].id

    def test_malformed_gateway_response_leaves_order_pending(
        self, engine, carts, orders, gateways, customer, products, shipping_address
    ):
        def handler(request):
            return httpx.Response(200, json={"status": True, "data": {}})

        gateways.register(
            PaystackGateway(secret_key="sk_test", base_url="https://paystack.test", transport=httpx.MockTransport(handler))
        )
        _fill_cart(carts, customer, products)

        with pytest.raises(BadRequestError, match="invalid gateway response"):
            engine.create_order(customer.id, shipping_address, payment_method="paystack")

        stored, _ = orders.search(user_id=customer.id)
        assert stored[0].order_status == OrderStatus.PENDING.value
        assert stored[0].payment_status == PaymentStatus.PENDING.value
        assert stored[0].payment_reference.startswith("ps_")
