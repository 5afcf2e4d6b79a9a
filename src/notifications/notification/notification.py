"""Notification aggregate: one rendered message to one recipient.

Notifications are created from order payment events and dispatched by
``NotificationDispatcher`` as soon as they are persisted.

State Machine:
    PENDING → SENT
    PENDING → FAILED
"""

from datetime import UTC, datetime
from enum import Enum

from notifications.domain import notifications
from notifications.notification.events import (
    NotificationCreated,
    NotificationFailed,
    NotificationSent,
)
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class NotificationType(Enum):
    ORDER_CONFIRMATION = "order_confirmation"
    PAYMENT_FAILED = "payment_failed"


class NotificationChannel(Enum):
    EMAIL = "Email"


class NotificationStatus(Enum):
    PENDING = "Pending"
    SENT = "Sent"
    FAILED = "Failed"


_VALID_TRANSITIONS = {
    NotificationStatus.PENDING: {NotificationStatus.SENT, NotificationStatus.FAILED},
    NotificationStatus.SENT: set(),
    NotificationStatus.FAILED: set(),
}


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@notifications.aggregate
class Notification:
    """A customer message and its delivery outcome, kept for audit."""

    # Recipient
    recipient_id: Identifier(required=True)
    recipient_address: String(max_length=320, required=True)

    notification_type: String(choices=NotificationType, required=True)
    channel: String(choices=NotificationChannel, default=NotificationChannel.EMAIL.value)

    # Content
    subject: String(max_length=500)
    body: Text(required=True)
    html_body: Text()
    template_name: String(max_length=200)

    # Source correlation
    order_id: String(max_length=50)
    source_event_type: String(max_length=200)
    context_data: Text()  # JSON used to render the template

    # Delivery
    status: String(choices=NotificationStatus, default=NotificationStatus.PENDING.value)
    message_id: String(max_length=200)
    sent_at: DateTime()
    failure_reason: String(max_length=500)
    retry_count: Integer(default=0)

    created_at: DateTime()
    updated_at: DateTime()

    @classmethod
    def create(
        cls,
        recipient_id,
        recipient_address,
        notification_type,
        body,
        subject=None,
        html_body=None,
        channel=NotificationChannel.EMAIL.value,
        template_name=None,
        order_id=None,
        source_event_type=None,
        context_data=None,
    ):
        """Create a new notification in PENDING status."""
        now = datetime.now(UTC)

        notification = cls(
            recipient_id=recipient_id,
            recipient_address=recipient_address,
            notification_type=notification_type,
            channel=channel,
            subject=subject,
            body=body,
            html_body=html_body,
            template_name=template_name,
            order_id=order_id,
            source_event_type=source_event_type,
            context_data=context_data,
            status=NotificationStatus.PENDING.value,
            retry_count=0,
            created_at=now,
            updated_at=now,
        )

        notification.raise_(
            NotificationCreated(
                notification_id=str(notification.id),
                recipient_id=str(recipient_id),
                notification_type=notification_type,
                channel=channel,
                subject=subject,
                order_id=order_id,
                source_event_type=source_event_type,
                created_at=now,
            )
        )

        return notification

    def _assert_can_transition(self, target_status):
        current = NotificationStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def mark_sent(self, message_id=None):
        self._assert_can_transition(NotificationStatus.SENT)

        now = datetime.now(UTC)
        self.status = NotificationStatus.SENT.value
        self.message_id = message_id
        self.sent_at = now
        self.updated_at = now

        self.raise_(
            NotificationSent(
                notification_id=str(self.id),
                recipient_id=str(self.recipient_id),
                channel=self.channel,
                message_id=message_id,
                sent_at=now,
            )
        )

    def mark_failed(self, reason):
        self._assert_can_transition(NotificationStatus.FAILED)

        now = datetime.now(UTC)
        self.status = NotificationStatus.FAILED.value
        self.failure_reason = reason
        self.retry_count = self.retry_count + 1
        self.updated_at = now

        self.raise_(
            NotificationFailed(
                notification_id=str(self.id),
                recipient_id=str(self.recipient_id),
                channel=self.channel,
                reason=reason,
                retry_count=self.retry_count,
                failed_at=now,
            )
        )
