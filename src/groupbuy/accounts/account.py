"""UserAccount and Favorite aggregates.

Only the parts of a customer account that an account merge has to reconcile
live here: profile fields, loyalty points, the referral back-reference, the
linked Telegram identity, and favorites.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Identifier, Integer, String

from groupbuy.domain import groupbuy

# Profile fields where a merge keeps the target's value and falls back to the source's
PREFERRED_FIELDS = (
    "name",
    "first_name",
    "last_name",
    "phone",
    "email",
    "email_verified_at",
    "address_street",
    "address_house",
    "address_apartment",
    "avatar_path",
)


@groupbuy.aggregate
class UserAccount:
    """A registered customer."""

    name: String(max_length=255)
    first_name: String(max_length=100)
    last_name: String(max_length=100)
    phone: String(max_length=50)
    email: String(max_length=255)
    email_verified_at: DateTime()
    address_street: String(max_length=255)
    address_house: String(max_length=50)
    address_apartment: String(max_length=50)
    avatar_path: String(max_length=500)
    loyalty_points: Integer(default=0, min_value=0)
    referred_by: Identifier()
    telegram_id: String(max_length=50)
    telegram_username: String(max_length=100)
    telegram_photo_url: String(max_length=500)
    created_at: DateTime()
    updated_at: DateTime()

    @classmethod
    def register(cls, **profile):
        now = datetime.now(UTC)
        return cls(created_at=now, updated_at=now, **profile)

    def absorb_profile(self, source):
        """Fill empty profile fields from ``source`` and add its loyalty points."""
        for field_name in PREFERRED_FIELDS:
            if not getattr(self, field_name) and getattr(source, field_name):
                setattr(self, field_name, getattr(source, field_name))
        self.loyalty_points = (self.loyalty_points or 0) + (source.loyalty_points or 0)
        self.updated_at = datetime.now(UTC)

    def link_telegram(self, telegram_id, username=None, photo_url=None, name=None, first_name=None, last_name=None):
        """Attach a Telegram identity; names only fill empty fields."""
        self.telegram_id = telegram_id
        self.telegram_username = username
        self.telegram_photo_url = photo_url
        if not self.name and name:
            self.name = name
        if not self.first_name and first_name:
            self.first_name = first_name
        if not self.last_name and last_name:
            self.last_name = last_name
        self.updated_at = datetime.now(UTC)


@groupbuy.repository(part_of=UserAccount)
class UserAccountRepository:
    def referred_by(self, user_id) -> list:
        return self._dao.query.filter(referred_by=str(user_id)).limit(None).all().items

    def remove(self, account):
        self._dao.delete(account)


@groupbuy.aggregate
class Favorite:
    user_id: Identifier(required=True)
    product_id: Identifier(required=True)
    created_at: DateTime()


@groupbuy.repository(part_of=Favorite)
class FavoriteRepository:
    def for_user(self, user_id) -> list:
        return self._dao.query.filter(user_id=str(user_id)).limit(None).all().items

    def remove(self, favorite):
        self._dao.delete(favorite)
