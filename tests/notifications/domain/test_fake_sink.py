import pytest
from groupbuy.notifications.fake_sink import FakeNotificationSink


class TestFakeNotificationSink:
    def test_records_messages(self):
        sink = FakeNotificationSink()
        sink.enqueue("order_notification", {"id": 1})
        sink.enqueue("review", {"id": 2})

        assert sink.of_type("order_notification") == [{"type": "order_notification", "payload": {"id": 1}}]
        assert len(sink.messages) == 2

    def test_configured_failure(self):
        sink = FakeNotificationSink()
        sink.configure(should_succeed=False, failure_reason="down")
        with pytest.raises(ConnectionError, match="down"):
            sink.enqueue("order_notification", {"id": 1})

    def test_reset(self):
        sink = FakeNotificationSink()
        sink.configure(should_succeed=False)
        sink.reset()
        sink.enqueue("order_notification", {"id": 1})
        assert len(sink.messages) == 1
