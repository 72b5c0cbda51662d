"""Collection aggregate — a time-boxed sales period.

Several collections may be ACTIVE at once; every cart line and order is scoped
to exactly one of them.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, String

from groupbuy.catalogue.events import CollectionActivated, CollectionClosed, CollectionCreated
from groupbuy.domain import groupbuy


class CollectionStatus(Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"


_VALID_TRANSITIONS = {
    CollectionStatus.DRAFT: {CollectionStatus.ACTIVE},
    CollectionStatus.ACTIVE: {CollectionStatus.CLOSED},
    CollectionStatus.CLOSED: set(),
}


@groupbuy.aggregate
class Collection:
    title: String(required=True, max_length=255)
    status: String(choices=CollectionStatus, default=CollectionStatus.DRAFT.value)
    starts_at: DateTime()
    ends_at: DateTime()
    created_at: DateTime()
    updated_at: DateTime()

    @classmethod
    def create(cls, title, starts_at=None, ends_at=None):
        now = datetime.now(UTC)
        collection = cls(
            title=title,
            starts_at=starts_at,
            ends_at=ends_at,
            status=CollectionStatus.DRAFT.value,
            created_at=now,
            updated_at=now,
        )
        collection.raise_(CollectionCreated(collection_id=str(collection.id), title=title, created_at=now))
        return collection

    @property
    def is_active(self) -> bool:
        return self.status == CollectionStatus.ACTIVE.value

    def _assert_can_transition(self, target):
        current = CollectionStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target.value}"]})

    def activate(self, starts_at=None):
        self._assert_can_transition(CollectionStatus.ACTIVE)
        now = datetime.now(UTC)
        self.status = CollectionStatus.ACTIVE.value
        self.starts_at = starts_at or self.starts_at or now
        self.updated_at = now
        self.raise_(CollectionActivated(collection_id=str(self.id), activated_at=now))

    def close(self, ends_at=None):
        self._assert_can_transition(CollectionStatus.CLOSED)
        now = datetime.now(UTC)
        self.status = CollectionStatus.CLOSED.value
        self.ends_at = ends_at or self.ends_at or now
        self.updated_at = now
        self.raise_(CollectionClosed(collection_id=str(self.id), closed_at=now))


def _start_key(collection):
    # Collections without a start date sort after dated ones
    starts_at = collection.starts_at
    return (starts_at is None, starts_at.timestamp() if starts_at else 0, str(collection.id))


@groupbuy.repository(part_of=Collection)
class CollectionRepository:
    def active(self) -> list:
        """ACTIVE collections ordered by start date, then id."""
        records = self._dao.query.filter(status=CollectionStatus.ACTIVE.value).limit(None).all().items
        return sorted(records, key=_start_key)

    def closed(self) -> list:
        return self._dao.query.filter(status=CollectionStatus.CLOSED.value).limit(None).all().items
