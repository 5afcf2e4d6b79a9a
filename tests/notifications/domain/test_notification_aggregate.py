"""Domain tests for the Notification aggregate state machine."""

import pytest

from notifications.notification.events import NotificationCreated, NotificationFailed, NotificationSent
from notifications.notification.notification import (
    Notification,
    NotificationChannel,
    NotificationStatus,
    NotificationType,
)
from protean.exceptions import ValidationError


def _make_notification(**overrides):
    defaults = {
        "recipient_id": "cust-001",
        "recipient_address": "ada@example.com",
        "notification_type": NotificationType.ORDER_CONFIRMATION.value,
        "subject": "Order #ord-1 Confirmed",
        "body": "Hi Ada",
        "order_id": "ord-1",
    }
    defaults.update(overrides)
    return Notification.create(**defaults)


class TestNotificationCreation:
    def test_starts_pending_on_email(self):
        n = _make_notification()
        assert n.status == NotificationStatus.PENDING.value
        assert n.channel == NotificationChannel.EMAIL.value
        assert n.retry_count == 0

    def test_raises_created_event(self):
        n = _make_notification()
        assert len(n._events) == 1
        event = n._events[0]
        assert isinstance(event, NotificationCreated)
        assert event.order_id == "ord-1"
        assert event.notification_type == NotificationType.ORDER_CONFIRMATION.value


class TestNotificationTransitions:
    def test_mark_sent(self):
        n = _make_notification()
        n.mark_sent(message_id="email-abc")
        assert n.status == NotificationStatus.SENT.value
        assert n.message_id == "email-abc"
        assert n.sent_at is not None
        assert isinstance(n._events[-1], NotificationSent)

    def test_mark_failed(self):
        n = _make_notification()
        n.mark_failed("Mailbox unavailable")
        assert n.status == NotificationStatus.FAILED.value
        assert n.failure_reason == "Mailbox unavailable"
        assert n.retry_count == 1
        assert isinstance(n._events[-1], NotificationFailed)

    def test_sent_is_terminal(self):
        n = _make_notification()
        n.mark_sent()
        with pytest.raises(ValidationError):
            n.mark_failed("late bounce")

    def test_failed_cannot_be_sent(self):
        n = _make_notification()
        n.mark_failed("Mailbox unavailable")
        with pytest.raises(ValidationError):
            n.mark_sent()
