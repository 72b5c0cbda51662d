"""Notification sink port — abstract interface for queueing outbound messages."""

from abc import ABC, abstractmethod
from enum import Enum


class NotificationType(Enum):
    ORDER_NOTIFICATION = "order_notification"
    REVIEW = "review"
    RECIPE = "recipe"


class NotificationSink(ABC):
    """Fire-and-forget queue of messages for the external delivery worker."""

    @abstractmethod
    def enqueue(self, notification_type: str, payload: dict) -> None:
        """Queue a message. Delivery happens elsewhere and is never awaited."""
        ...
