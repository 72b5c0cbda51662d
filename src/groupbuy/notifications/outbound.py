"""OutboundMessage aggregate — the outbox the external delivery worker drains.

State Machine:
    PENDING → SENT
    PENDING → PENDING   (failed attempt, rescheduled with backoff)
    PENDING → FAILED    (attempts exhausted)
"""

import json
from datetime import UTC, datetime, timedelta
from enum import Enum

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Integer, String, Text
from protean.utils.globals import current_domain

from groupbuy.domain import groupbuy
from groupbuy.notifications.port import NotificationType

DEFAULT_MAX_ATTEMPTS = 5
BASE_RETRY_DELAY = timedelta(minutes=5)


class MessageStatus(Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


@groupbuy.aggregate
class OutboundMessage:
    message_type: String(choices=NotificationType, required=True)
    payload: Text(required=True)  # JSON
    status: String(choices=MessageStatus, default=MessageStatus.PENDING.value)
    attempts: Integer(default=0, min_value=0)
    max_attempts: Integer(default=DEFAULT_MAX_ATTEMPTS, min_value=1)
    scheduled_for: DateTime()
    sent_at: DateTime()
    last_error: String(max_length=1000)
    created_at: DateTime()
    updated_at: DateTime()

    @classmethod
    def create(cls, message_type, payload, scheduled_for=None, max_attempts=DEFAULT_MAX_ATTEMPTS):
        now = datetime.now(UTC)
        return cls(
            message_type=message_type,
            payload=json.dumps(payload, sort_keys=True),
            status=MessageStatus.PENDING.value,
            attempts=0,
            max_attempts=max_attempts,
            scheduled_for=scheduled_for or now,
            created_at=now,
            updated_at=now,
        )

    @property
    def data(self) -> dict:
        return json.loads(self.payload)

    def _assert_pending(self):
        if self.status != MessageStatus.PENDING.value:
            raise ValidationError({"status": [f"Message is {self.status}, not PENDING"]})

    def mark_sent(self, sent_at=None):
        self._assert_pending()
        now = sent_at or datetime.now(UTC)
        self.status = MessageStatus.SENT.value
        self.sent_at = now
        self.updated_at = now

    def mark_failed(self, reason, now=None):
        """Record a failed delivery attempt; reschedule or give up after ``max_attempts``."""
        self._assert_pending()
        now = now or datetime.now(UTC)
        self.attempts = self.attempts + 1
        self.last_error = str(reason)[:1000]
        self.updated_at = now

        if self.attempts >= self.max_attempts:
            self.status = MessageStatus.FAILED.value
        else:
            self.scheduled_for = now + retry_delay(self.attempts)


def retry_delay(attempts: int) -> timedelta:
    """Exponential backoff: 5, 10, 20, 40... minutes after the n-th failure."""
    return BASE_RETRY_DELAY * (2 ** max(attempts - 1, 0))


@groupbuy.repository(part_of=OutboundMessage)
class OutboundMessageRepository:
    def due(self, now=None, limit=10) -> list:
        """PENDING messages whose time has come, oldest schedule first."""
        now = now or datetime.now(UTC)
        pending = self._dao.query.filter(status=MessageStatus.PENDING.value).limit(None).all().items
        ready = [m for m in pending if m.scheduled_for is None or m.scheduled_for <= now]
        return sorted(ready, key=lambda m: m.scheduled_for or now)[:limit]


@groupbuy.command(part_of="OutboundMessage")
class EnqueueNotification:
    message_type: String(choices=NotificationType, required=True)
    payload: Text(required=True)  # JSON


@groupbuy.command_handler(part_of=OutboundMessage)
class OutboundMessageHandler:
    @handle(EnqueueNotification)
    def enqueue(self, command: EnqueueNotification):
        payload = json.loads(command.payload) if isinstance(command.payload, str) else command.payload
        message = OutboundMessage.create(command.message_type, payload)
        current_domain.repository_for(OutboundMessage).add(message)
        return str(message.id)
