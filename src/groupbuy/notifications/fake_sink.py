"""Fake notification sink — records enqueued messages for testing."""

from groupbuy.notifications.port import NotificationSink


class FakeNotificationSink(NotificationSink):
    """Sink that keeps messages in memory for test assertions."""

    def __init__(self):
        self.messages: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Notification queue unavailable"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Notification queue unavailable"):
        """Configure the fake sink behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def enqueue(self, notification_type: str, payload: dict) -> None:
        if not self.should_succeed:
            raise ConnectionError(self.failure_reason)
        self.messages.append({"type": notification_type, "payload": dict(payload)})

    def of_type(self, notification_type: str) -> list[dict]:
        return [m for m in self.messages if m["type"] == notification_type]

    def reset(self):
        """Clear recorded messages (useful between tests)."""
        self.messages.clear()
        self.should_succeed = True
        self.failure_reason = "Notification queue unavailable"
