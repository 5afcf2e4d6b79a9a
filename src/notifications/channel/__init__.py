"""Channel adapter registry.

Holds one adapter per channel type. The application installs the adapter
built from settings (SendGrid when an API key is configured); anything not
installed falls back to the in-memory fake.
"""

from notifications.channel.email_port import EmailPort
from notifications.channel.fake_email import FakeEmailAdapter
from notifications.channel.sendgrid_email import SendGridEmailAdapter
from notifications.notification.notification import NotificationChannel
from shared.config import Settings

_channel_instances: dict[str, object] = {}


def build_email_channel(settings: Settings) -> EmailPort:
    if settings.sendgrid_api_key:
        return SendGridEmailAdapter(api_key=settings.sendgrid_api_key, from_address=settings.mail_from)
    return FakeEmailAdapter()


def set_channel(channel_type: str, adapter) -> None:
    _channel_instances[channel_type] = adapter


def get_channel(channel_type: str):
    """Return the adapter for ``channel_type`` ("Email")."""
    if channel_type not in _channel_instances:
        if channel_type == NotificationChannel.EMAIL.value:
            _channel_instances[channel_type] = FakeEmailAdapter()
        else:
            raise ValueError(f"Unknown channel type: {channel_type}")

    return _channel_instances[channel_type]


def reset_channels():
    """Forget installed adapters (used between tests)."""
    _channel_instances.clear()
