"""Repository for revoked-token rows."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import cast
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from tt_stock_api.models.token_blacklist import TokenBlacklistEntry
from tt_stock_api.repositories.base import BaseRepository


def _utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC (SQLite drops tzinfo on the way back)."""
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


class TokenBlacklistRepository(BaseRepository[TokenBlacklistEntry]):
    """Persistence-only access to ``token_blacklist``.

    Entries are keyed by the SHA-256 digest of the token string; see
    :func:`tt_stock_api.services._shared.ports.blacklist_store.token_digest`.
    """

    model = TokenBlacklistEntry

    def get_by_key(self, token_key: str) -> TokenBlacklistEntry | None:
        stmt = select(TokenBlacklistEntry).where(TokenBlacklistEntry.token_key == token_key)
        return cast(TokenBlacklistEntry | None, self.session.execute(stmt).scalars().first())

    def exists_active(self, token_key: str, *, now: datetime) -> bool:
        """Return ``True`` if the key is blacklisted and the token has not expired yet.

        Expired rows are kept until purged but no longer count as members.
        """
        stmt = select(TokenBlacklistEntry.expires_at).where(
            TokenBlacklistEntry.token_key == token_key
        )
        expires_at = self.session.execute(stmt).scalar()
        if expires_at is None:
            return False
        return _utc(expires_at) > now

    def add_entry(
        self,
        *,
        token_key: str,
        user_id: UUID,
        token_type: str,
        expires_at: datetime,
        blacklisted_at: datetime | None = None,
    ) -> bool:
        """Insert an entry unless the key is already present.

        The insert runs inside a SAVEPOINT so a concurrent duplicate only
        rolls back the nested scope.

        :returns: ``True`` when a new row was written, ``False`` if it existed.
        :rtype: bool
        """
        if self.get_by_key(token_key) is not None:
            return False

        entry = TokenBlacklistEntry(
            token_key=token_key,
            user_id=user_id,
            token_type=token_type,
            expires_at=expires_at,
            blacklisted_at=blacklisted_at or datetime.now(UTC),
        )
        try:
            with self.session.begin_nested():
                self.session.add(entry)
        except IntegrityError:
            return False
        return True

    def delete_expired(self, *, now: datetime) -> int:
        """Delete rows whose token expired at or before ``now``.

        :returns: Number of rows removed.
        :rtype: int
        """
        stmt = (
            delete(TokenBlacklistEntry)
            .where(TokenBlacklistEntry.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        return int(result.rowcount or 0)
