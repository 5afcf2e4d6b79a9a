"""Cross-domain event contracts for order payment outcomes.

Raised by the ordering engine once a payment transition has been committed
and consumed by the Notifications domain. They are registered there as
external events with matching ``__type__`` strings.
"""

from protean.core.event import BaseEvent
from protean.fields import DateTime, Float, Identifier, String, Text


class PaymentSucceeded(BaseEvent):
    """The gateway confirmed payment for an order."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    customer_email = String(required=True)
    customer_name = String()
    reference = String(required=True)
    transaction_id = String()
    items = Text(required=True)  # JSON list of order items
    total_amount = Float(required=True)
    currency = String(default="NGN")
    order_status = String(required=True)
    succeeded_at = DateTime(required=True)


class PaymentFailed(BaseEvent):
    """The gateway reported a failed charge for the order's active reference."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    customer_email = String(required=True)
    customer_name = String()
    reference = String(required=True)
    transaction_id = String()
    total_amount = Float(required=True)
    currency = String(default="NGN")
    failed_at = DateTime(required=True)
