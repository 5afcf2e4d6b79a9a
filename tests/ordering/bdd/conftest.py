"""Shared BDD fixtures and step definitions for order payment flows."""

import pytest
from pytest_bdd import given, parsers, then, when

from ordering.order.order import Order


@pytest.fixture()
def stock():
    return {}


def _checkout(engine, orders, customer, shipping_address):
    result = engine.create_order(customer.id, shipping_address)
    order = orders.find(result["order_id"])
    return {"order_id": order.id, "reference": order.payment_reference}


def _deliver(engine, gateway, checkout, orders, payload):
    event = gateway.parse_event(payload)
    engine.handle_webhook(gateway.name, event)
    return orders.find(checkout["order_id"])


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a catalogue product "{name}" priced {price:d}'), target_fixture="stock")
def _(catalog, stock, name, price):
    stock[name] = catalog.add(name=name, price=float(price))
    return stock


@given(parsers.cfparse('the customer has {quantity:d} "{name}" in the cart'))
def _(carts, customer, stock, quantity, name):
    carts.add_item(customer.id, stock[name].id, quantity)


@given("the customer checked out", target_fixture="checkout")
def _(engine, orders, customer, shipping_address):
    return _checkout(engine, orders, customer, shipping_address)


@given("the gateway reported a successful payment")
def _(engine, gateway, checkout, orders):
    _deliver(engine, gateway, checkout, orders, {"reference": checkout["reference"], "status": "success"})


@given("the gateway reported a failed payment")
def _(engine, gateway, checkout, orders):
    _deliver(engine, gateway, checkout, orders, {"reference": checkout["reference"], "status": "failed"})


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the customer checks out", target_fixture="checkout")
def _(engine, orders, customer, shipping_address):
    return _checkout(engine, orders, customer, shipping_address)


@when(parsers.cfparse('the gateway reports a successful payment "{transaction_id}"'))
def _(engine, gateway, checkout, orders, transaction_id):
    _deliver(
        engine,
        gateway,
        checkout,
        orders,
        {"reference": checkout["reference"], "status": "success", "transaction_id": transaction_id},
    )


@when("the gateway reports a failed payment")
def _(engine, gateway, checkout, orders):
    _deliver(engine, gateway, checkout, orders, {"reference": checkout["reference"], "status": "failed"})


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
def _order(orders, checkout) -> Order:
    return orders.find(checkout["order_id"])


@then(parsers.cfparse('the payment status is "{status}"'))
def _(orders, checkout, status):
    assert _order(orders, checkout).payment_status == status


@then(parsers.cfparse('the order status is "{status}"'))
def _(orders, checkout, status):
    assert _order(orders, checkout).order_status == status


@then(parsers.cfparse("the order total is {total:d}"))
def _(orders, checkout, total):
    assert _order(orders, checkout).total_amount == float(total)


@then(parsers.cfparse('the gateway transaction is "{transaction_id}"'))
def _(orders, checkout, transaction_id):
    assert _order(orders, checkout).gateway_transaction_id == transaction_id


@then("the cart is empty")
def _(carts, customer):
    assert carts.get(customer.id).is_empty


@then(parsers.cfparse('{count:d} email is sent with subject "{subject}"'))
def _(email, checkout, count, subject):
    assert len(email.sent_emails) == count
    assert email.sent_emails[-1]["subject"] == subject.format(order_id=checkout["order_id"])


@then("no email is sent")
def _(email):
    assert email.sent_emails == []
