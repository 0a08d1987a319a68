"""Channel adapter registry — pluggable notification dispatch channels.

Provides singleton access to channel adapters. Uses the fake email adapter
by default; EMAIL_ADAPTER=sendgrid selects SendGrid in production.
"""

import os

EMAIL = "Email"

_channel_instances: dict[str, object] = {}


def get_channel(channel_type: str = EMAIL):
    """Return the configured channel adapter (singleton per channel type)."""
    if channel_type not in _channel_instances:
        if channel_type != EMAIL:
            raise ValueError(f"Unknown channel type: {channel_type}")

        adapter = os.environ.get("EMAIL_ADAPTER", "fake")
        if adapter == "fake":
            from notifications.channel.fake_email import FakeEmailAdapter

            _channel_instances[channel_type] = FakeEmailAdapter()
        elif adapter == "sendgrid":
            from notifications.channel.sendgrid_email import SendGridEmailAdapter

            _channel_instances[channel_type] = SendGridEmailAdapter(
                api_key=os.environ.get("SENDGRID_API_KEY", ""),
                from_email=os.environ.get("SENDGRID_FROM_EMAIL", "orders@example.com"),
                from_name=os.environ.get("SENDGRID_FROM_NAME", "Orders"),
            )
        else:
            raise ValueError(f"Unknown email adapter: {adapter}")

    return _channel_instances[channel_type]


def set_channel(channel_type: str, adapter) -> None:
    """Override a channel adapter (useful for tests)."""
    _channel_instances[channel_type] = adapter


def reset_channels():
    """Reset all channel singletons (useful for testing)."""
    _channel_instances.clear()
