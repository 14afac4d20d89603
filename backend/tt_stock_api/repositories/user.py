"""User repository: credential lookups and login bookkeeping."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import cast
from uuid import UUID

from sqlalchemy import select, update

from tt_stock_api.models.user import User
from tt_stock_api.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    It NEVER verifies PINs or issues tokens; the authentication service does.
    """

    model = User

    def _filterable_fields(self):
        return {"phone_number": User.phone_number}

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_phone_number(self, phone_number: str) -> User | None:
        """Fetch a user by exact phone number.

        :param phone_number: Already-validated phone number.
        :type phone_number: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.phone_number == phone_number.strip())
        result = self.session.execute(stmt).scalars().first()
        return cast(User | None, result)

    def exists_by_phone_number(self, phone_number: str) -> bool:
        """Return ``True`` when a user with the phone number exists."""
        stmt = select(User.id).where(User.phone_number == phone_number.strip())
        return bool(self.session.execute(stmt).first())

    # ---------------------------- Bookkeeping ----------------------------

    def touch_last_login(self, user_id: UUID, *, at: datetime | None = None) -> bool:
        """Stamp ``last_login_at`` with a single UPDATE.

        :param user_id: Identity whose row is stamped.
        :type user_id: uuid.UUID
        :param at: Timestamp to record; defaults to now (UTC).
        :type at: datetime | None
        :returns: ``True`` if a row was updated.
        :rtype: bool
        """
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(last_login_at=at or datetime.now(UTC))
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        return bool(result.rowcount)
