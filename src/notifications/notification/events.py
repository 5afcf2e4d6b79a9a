"""Domain events for the Notification aggregate."""

from notifications.domain import notifications
from protean.fields import DateTime, Identifier, Integer, String


@notifications.event(part_of="Notification")
class NotificationCreated:
    """A notification was rendered and queued for dispatch."""

    __version__ = 1

    notification_id: Identifier(required=True)
    recipient_id: Identifier(required=True)
    notification_type: String(required=True)
    channel: String(required=True)
    subject: String()
    order_id: String()
    source_event_type: String()
    created_at: DateTime(required=True)


@notifications.event(part_of="Notification")
class NotificationSent:
    """The channel adapter accepted the notification."""

    __version__ = 1

    notification_id: Identifier(required=True)
    recipient_id: Identifier(required=True)
    channel: String(required=True)
    message_id: String()
    sent_at: DateTime(required=True)


@notifications.event(part_of="Notification")
class NotificationFailed:
    """The channel adapter rejected the notification or raised."""

    __version__ = 1

    notification_id: Identifier(required=True)
    recipient_id: Identifier(required=True)
    channel: String(required=True)
    reason: String(required=True)
    retry_count: Integer(required=True)
    failed_at: DateTime(required=True)
