"""Shared helper for notification event handlers: render, then record."""

import json

import structlog
from notifications.notification.notification import Notification, NotificationChannel
from notifications.templates import get_template
from protean.utils.globals import current_domain

logger = structlog.get_logger(__name__)


def create_email_notification(
    customer_id: str,
    email: str,
    notification_type: str,
    context: dict,
    source_event_type: str | None = None,
) -> str:
    """Render the template for ``notification_type`` and persist a Notification.

    Persisting raises NotificationCreated, which dispatches the email.

    Returns:
        The notification ID.
    """
    template_cls = get_template(notification_type)
    rendered = template_cls.render(context)

    notification = Notification.create(
        recipient_id=customer_id,
        recipient_address=email,
        notification_type=notification_type,
        channel=NotificationChannel.EMAIL.value,
        subject=rendered["subject"],
        body=rendered["text"],
        html_body=rendered.get("html"),
        template_name=template_cls.__name__,
        order_id=context.get("order_id"),
        source_event_type=source_event_type,
        context_data=json.dumps(context),
    )
    current_domain.repository_for(Notification).add(notification)

    logger.info(
        "Notification created",
        customer_id=customer_id,
        notification_type=notification_type,
        notification_id=str(notification.id),
    )
    return str(notification.id)
