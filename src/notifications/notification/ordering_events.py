"""Inbound cross-domain event handler: Notifications reacts to order payments.

PaymentSucceeded sends the order confirmation, PaymentFailed the failure
notice with a pointer to retry.
"""

import json

from notifications.domain import notifications
from notifications.notification.helpers import create_email_notification
from notifications.notification.notification import Notification, NotificationType
from protean.utils.mixins import handle
from shared.events.ordering import PaymentFailed, PaymentSucceeded

notifications.register_external_event(PaymentSucceeded, "Ordering.PaymentSucceeded.v1")
notifications.register_external_event(PaymentFailed, "Ordering.PaymentFailed.v1")


@notifications.event_handler(part_of=Notification, stream_category="ordering::order")
class OrderPaymentEventsHandler:
    """Reacts to order payment outcomes with customer emails."""

    @handle(PaymentSucceeded)
    def on_payment_succeeded(self, event: PaymentSucceeded) -> None:
        create_email_notification(
            customer_id=str(event.customer_id),
            email=event.customer_email,
            notification_type=NotificationType.ORDER_CONFIRMATION.value,
            context={
                "order_id": str(event.order_id),
                "customer_name": event.customer_name,
                "total_amount": event.total_amount,
                "currency": event.currency,
                "items": json.loads(event.items),
            },
            source_event_type="Ordering.PaymentSucceeded.v1",
        )

    @handle(PaymentFailed)
    def on_payment_failed(self, event: PaymentFailed) -> None:
        create_email_notification(
            customer_id=str(event.customer_id),
            email=event.customer_email,
            notification_type=NotificationType.PAYMENT_FAILED.value,
            context={
                "order_id": str(event.order_id),
                "customer_name": event.customer_name,
                "total_amount": event.total_amount,
                "currency": event.currency,
            },
            source_event_type="Ordering.PaymentFailed.v1",
        )
