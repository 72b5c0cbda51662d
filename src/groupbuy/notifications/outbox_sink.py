"""Outbox notification sink — persists messages as OutboundMessage rows."""

import json

from protean.utils.globals import current_domain

from groupbuy.notifications.outbound import EnqueueNotification
from groupbuy.notifications.port import NotificationSink


class OutboxNotificationSink(NotificationSink):
    """Writes each message to the outbox in its own unit of work."""

    def enqueue(self, notification_type: str, payload: dict) -> None:
        current_domain.process(
            EnqueueNotification(message_type=notification_type, payload=json.dumps(payload)),
            asynchronous=False,
        )
