"""Channel adapter registry — Email and SMS dispatch channels.

One adapter instance per channel type. Only the in-memory fake ships
with the project; a real provider plugs in through `set_channel`.
"""

from notifications.channel.fake import FakeChannel
from notifications.channel.port import ChannelPort
from notifications.notification.notification import NotificationChannel

_channel_instances: dict[str, ChannelPort] = {}


def get_channel(channel_type: str) -> ChannelPort:
    """Return the adapter for a channel type ("Email" or "SMS")."""
    if channel_type not in _channel_instances:
        if channel_type not in {c.value for c in NotificationChannel}:
            raise ValueError(f"Unknown channel type: {channel_type}")
        _channel_instances[channel_type] = FakeChannel(channel_type)

    return _channel_instances[channel_type]


def set_channel(channel_type: str, adapter: ChannelPort) -> None:
    _channel_instances[channel_type] = adapter


def reset_channels():
    """Reset all channel singletons (useful for testing)."""
    _channel_instances.clear()
