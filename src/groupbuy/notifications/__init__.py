"""Notification sink registry — where the engine hands off outbound messages.

Uses the outbox sink by default; tests swap in the recording fake with
``set_sink``.
"""

import structlog

from groupbuy.notifications.port import NotificationSink

logger = structlog.get_logger(__name__)

_sink: NotificationSink | None = None


def get_sink() -> NotificationSink:
    """Return the configured sink (singleton)."""
    global _sink
    if _sink is None:
        from groupbuy.notifications.outbox_sink import OutboxNotificationSink

        _sink = OutboxNotificationSink()
    return _sink


def set_sink(sink: NotificationSink) -> None:
    global _sink
    _sink = sink


def reset_sink() -> None:
    """Reset the sink singleton (useful for testing)."""
    global _sink
    _sink = None


def notify_safely(notification_type: str, payload: dict) -> bool:
    """Enqueue a message; failures are logged and never propagated."""
    try:
        get_sink().enqueue(notification_type, payload)
    except Exception:
        logger.exception("notification_enqueue_failed", notification_type=notification_type, payload=payload)
        return False
    return True
