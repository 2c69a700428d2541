"""Channel port — abstract interface every dispatch channel implements."""

from abc import ABC, abstractmethod


class ChannelPort(ABC):
    """Delivers a rendered message to a single recipient.

    Email adapters use `subject`; SMS adapters ignore it.
    """

    channel_type: str

    @abstractmethod
    def send(self, to: str, body: str, subject: str | None = None) -> dict:
        """Send one message.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
