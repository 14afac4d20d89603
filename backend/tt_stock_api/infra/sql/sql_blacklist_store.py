from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from tt_stock_api.services._shared.errors import StoreError
from tt_stock_api.services._shared.ports.blacklist_store import TokenBlacklistStore, token_digest
from tt_stock_api.services._shared.ports.token_engine import TokenKind
from tt_stock_api.uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork


class SQLTokenBlacklistStore(TokenBlacklistStore):
    """
    Blacklist persisted in the ``token_blacklist`` table.

    Every call opens its own unit of work so writes are committed before the
    method returns.
    """

    def __init__(
        self,
        *,
        rw_uow: Callable[[], SQLAlchemyUnitOfWork] = SQLAlchemyUnitOfWork,
        ro_uow: Callable[[], SQLAlchemyReadOnlyUnitOfWork] = SQLAlchemyReadOnlyUnitOfWork,
    ) -> None:
        self._rw_uow = rw_uow
        self._ro_uow = ro_uow

    def is_blacklisted(self, token: str) -> bool:
        try:
            with self._ro_uow() as uow:
                return uow.token_blacklist.exists_active(
                    token_digest(token), now=datetime.now(UTC)
                )
        except SQLAlchemyError as exc:
            raise StoreError("blacklist lookup failed") from exc

    def add(self, *, token: str, user_id: UUID, kind: TokenKind, expires_at: datetime) -> bool:
        try:
            with self._rw_uow() as uow:
                created = uow.token_blacklist.add_entry(
                    token_key=token_digest(token),
                    user_id=user_id,
                    token_type=kind.value,
                    expires_at=expires_at,
                )
        except SQLAlchemyError as exc:
            raise StoreError("blacklist write failed") from exc
        return created

    def purge_expired(self, now: datetime | None = None) -> int:
        cutoff = now or datetime.now(UTC)
        try:
            with self._rw_uow() as uow:
                removed = uow.token_blacklist.delete_expired(now=cutoff)
        except SQLAlchemyError as exc:
            raise StoreError("blacklist purge failed") from exc
        return removed
