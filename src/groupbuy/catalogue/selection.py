"""Choosing the collection a cart operation or checkout applies to."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from groupbuy.catalogue.collection import Collection
from groupbuy.shared.errors import ErrorCode, business_error


def active_collections() -> list:
    """ACTIVE collections ordered by start date, then id."""
    return current_domain.repository_for(Collection).active()


def require_active_collection(collection_id):
    """Load a collection that carts and orders may use right now."""
    try:
        collection = current_domain.repository_for(Collection).get(collection_id)
    except ObjectNotFoundError:
        raise business_error(
            ErrorCode.COLLECTION_NOT_FOUND, "Collection does not exist", collection_id=collection_id
        ) from None

    if not collection.is_active:
        raise business_error(
            ErrorCode.COLLECTION_NOT_ACTIVE,
            f"Collection is {collection.status}, not ACTIVE",
            collection_id=collection_id,
        )
    return collection


def resolve_collection_selection(collection_id=None, active=None, require_explicit=False):
    """Pick one ACTIVE collection.

    An explicit ``collection_id`` must be among the active ones. Without one,
    the single active collection is used; when several are active the caller
    must choose, unless ``require_explicit`` is false, in which case the
    earliest-starting one wins.
    """
    active = active_collections() if active is None else active
    if not active:
        raise business_error(ErrorCode.NO_ACTIVE_COLLECTION, "There is no active collection")

    if collection_id is not None:
        for collection in active:
            if str(collection.id) == str(collection_id):
                return collection
        raise business_error(
            ErrorCode.COLLECTION_NOT_FOUND,
            "Collection is not found among active collections",
            collection_id=collection_id,
        )

    if len(active) > 1 and require_explicit:
        raise business_error(
            ErrorCode.COLLECTION_SELECTION_REQUIRED,
            "Several collections are active; choose one",
            collection_ids=",".join(str(c.id) for c in active),
        )
    return active[0]
