"""Dispatch handler: sends a notification through its channel adapter.

Reacts to NotificationCreated and records the adapter's verdict on the
notification as SENT or FAILED.
"""

import structlog
from notifications.channel import get_channel
from notifications.domain import notifications
from notifications.notification.events import NotificationCreated
from notifications.notification.notification import Notification, NotificationStatus
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

logger = structlog.get_logger(__name__)


@notifications.event_handler(part_of=Notification)
class NotificationDispatcher:
    @handle(NotificationCreated)
    def on_notification_created(self, event: NotificationCreated) -> None:
        repo = current_domain.repository_for(Notification)
        notification = repo.get(event.notification_id)

        if NotificationStatus(notification.status) != NotificationStatus.PENDING:
            logger.info(
                "Notification not in PENDING status, skipping dispatch",
                notification_id=str(notification.id),
                status=notification.status,
            )
            return

        try:
            adapter = get_channel(notification.channel)
            result = adapter.send(
                to=notification.recipient_address,
                subject=notification.subject or "",
                text=notification.body,
                html=notification.html_body,
            )
            if result.get("status") == "sent":
                notification.mark_sent(message_id=result.get("message_id"))
            else:
                notification.mark_failed(result.get("error") or "Unknown dispatch error")
        except Exception as exc:
            notification.mark_failed(str(exc))

        if notification.status == NotificationStatus.SENT.value:
            logger.info(
                "Notification sent",
                notification_id=str(notification.id),
                notification_type=notification.notification_type,
                order_id=notification.order_id,
                message_id=notification.message_id,
            )
        else:
            logger.warning(
                "Notification not delivered",
                notification_id=str(notification.id),
                notification_type=notification.notification_type,
                order_id=notification.order_id,
                error=notification.failure_reason,
            )

        repo.add(notification)
