"""Owner key for carts and orders — a user id xor a guest session id."""

from dataclasses import dataclass

from groupbuy.shared.errors import ErrorCode, business_error


@dataclass(frozen=True)
class Owner:
    user_id: str | None = None
    session_id: str | None = None

    def __post_init__(self):
        if bool(self.user_id) == bool(self.session_id):
            raise business_error(
                ErrorCode.OWNER_REQUIRED,
                "Exactly one of user_id or session_id must be provided",
            )

    @property
    def is_guest(self) -> bool:
        return self.session_id is not None and not self.user_id

    def as_filter(self) -> dict:
        """Repository filter kwargs selecting rows owned by this key."""
        if self.is_guest:
            return {"session_id": self.session_id}
        return {"user_id": str(self.user_id)}

    def owns(self, record) -> bool:
        """True when ``record`` (cart item or order) belongs to this key."""
        if self.is_guest:
            return record.session_id == self.session_id and not record.user_id
        return record.user_id is not None and str(record.user_id) == str(self.user_id)
