"""Template registry: maps NotificationType to template classes.

Each template renders ``subject``, ``text`` and ``html`` from a context dict.
"""

from notifications.notification.notification import NotificationType
from notifications.templates.order_confirmation import OrderConfirmationTemplate
from notifications.templates.payment_failed import PaymentFailedTemplate

TEMPLATE_REGISTRY: dict[str, type] = {
    NotificationType.ORDER_CONFIRMATION.value: OrderConfirmationTemplate,
    NotificationType.PAYMENT_FAILED.value: PaymentFailedTemplate,
}


def get_template(notification_type: str):
    """Look up a template class by notification type string."""
    template_cls = TEMPLATE_REGISTRY.get(notification_type)
    if template_cls is None:
        raise ValueError(f"No template registered for notification type: {notification_type}")
    return template_cls
