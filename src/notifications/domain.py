"""Notifications bounded context: customer emails for order payment outcomes.

Consumes payment events raised by the ordering engine, renders the matching
template and records one Notification per message. Dispatch through the
email channel happens in an event handler reacting to NotificationCreated.
"""

import structlog
from protean.domain import Domain

notifications = Domain(name="notifications")

# Handlers run inside the unit of work that persisted the notification.
notifications.config["event_processing"] = "sync"
notifications.config["command_processing"] = "sync"

logger = structlog.get_logger(__name__)
