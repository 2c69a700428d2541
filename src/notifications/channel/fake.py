"""Fake channel adapter — records outgoing messages for testing and local runs."""

from uuid import uuid4

from notifications.channel.port import ChannelPort


class FakeChannel(ChannelPort):
    """Channel that keeps every sent message in memory for test assertions."""

    def __init__(self, channel_type: str):
        self.channel_type = channel_type
        self.sent: list[dict] = []
        self.should_succeed = True
        self.failure_reason = f"{channel_type} delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str | None = None):
        self.should_succeed = should_succeed
        if failure_reason:
            self.failure_reason = failure_reason

    def send(self, to: str, body: str, subject: str | None = None) -> dict:
        if not self.should_succeed:
            return {"message_id": None, "status": "failed", "error": self.failure_reason}

        message_id = f"{self.channel_type.lower()}-{uuid4().hex[:12]}"
        self.sent.append({"message_id": message_id, "to": to, "subject": subject, "body": body})
        return {"message_id": message_id, "status": "sent"}

    def reset(self):
        self.sent.clear()
        self.should_succeed = True
        self.failure_reason = f"{self.channel_type} delivery failed"
