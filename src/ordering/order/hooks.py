"""Side effects that follow a committed payment transition.

Hooks run only after the order store confirmed the transition took effect,
so a duplicate webhook never raises a second event. Inventory adjusters run
first; then a PaymentSucceeded or PaymentFailed event is handed to the
Notifications domain, whose handlers render and dispatch the email. A
failing hook is logged and never undoes the committed state.
"""

import json
from collections.abc import Callable

import structlog

from identity.user.user import User
from notifications.domain import notifications
from notifications.notification.ordering_events import OrderPaymentEventsHandler
from ordering.order.order import Order
from shared.db import utcnow
from shared.events.ordering import PaymentFailed, PaymentSucceeded

logger = structlog.get_logger(__name__)

InventoryAdjuster = Callable[[Order], None]


def shipping_name(order: Order) -> str:
    """Name on the order's shipping address, as shown to the gateway and in emails."""
    address = order.shipping_address or {}
    return " ".join(part for part in (address.get("first_name"), address.get("last_name")) if part)


class OrderHooks:
    def __init__(self, currency: str = "NGN", inventory_adjusters: list[InventoryAdjuster] | None = None):
        self.currency = currency
        self.inventory_adjusters = list(inventory_adjusters or [])

    def on_payment_succeeded(self, order: Order, user: User | None) -> None:
        for adjust in self.inventory_adjusters:
            self._run("inventory_adjustment", order, adjust, order)
        if user is not None:
            self._run("payment_succeeded", order, self._raise_succeeded, order, user)

    def on_payment_failed(self, order: Order, user: User | None) -> None:
        if user is not None:
            self._run("payment_failed", order, self._raise_failed, order, user)

    def _raise_succeeded(self, order: Order, user: User) -> None:
        with notifications.domain_context():
            event = PaymentSucceeded(
                order_id=order.id,
                customer_id=user.id,
                customer_email=user.email,
                customer_name=shipping_name(order) or user.name,
                reference=order.payment_reference,
                transaction_id=order.gateway_transaction_id,
                items=json.dumps([item.to_dict() for item in order.items]),
                total_amount=order.total_amount,
                currency=self.currency,
                order_status=order.order_status,
                succeeded_at=utcnow(),
            )
            OrderPaymentEventsHandler().on_payment_succeeded(event)

    def _raise_failed(self, order: Order, user: User) -> None:
        with notifications.domain_context():
            event = PaymentFailed(
                order_id=order.id,
                customer_id=user.id,
                customer_email=user.email,
                customer_name=shipping_name(order) or user.name,
                reference=order.payment_reference,
                transaction_id=order.gateway_transaction_id,
                total_amount=order.total_amount,
                currency=self.currency,
                failed_at=utcnow(),
            )
            OrderPaymentEventsHandler().on_payment_failed(event)

    def _run(self, hook: str, order: Order, func: Callable, *args) -> None:
        try:
            func(*args)
        except Exception:
            logger.exception("Order hook failed", hook=hook, order_id=order.id)
