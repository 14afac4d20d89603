from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import cast
from uuid import UUID

import redis  # type: ignore[import-untyped]
from redis.exceptions import RedisError  # type: ignore[import-untyped]

from tt_stock_api.services._shared.errors import StoreError
from tt_stock_api.services._shared.ports.blacklist_store import TokenBlacklistStore, token_digest
from tt_stock_api.services._shared.ports.token_engine import TokenKind


class RedisTokenBlacklistStore(TokenBlacklistStore):
    """
    Blacklist kept as one Redis hash per revoked token.

    Keys expire together with the token they describe, so Redis does the
    sweeping and :meth:`purge_expired` has nothing to delete.
    """

    def __init__(self, r: redis.Redis, *, prefix: str = "blacklist"):
        self.r = r
        self.prefix = prefix

    def _k(self, token: str) -> str:
        return f"{self.prefix}:{token_digest(token)}"

    def is_blacklisted(self, token: str) -> bool:
        try:
            return cast(int, self.r.exists(self._k(token))) == 1
        except RedisError as exc:
            raise StoreError("blacklist lookup failed") from exc

    def add(self, *, token: str, user_id: UUID, kind: TokenKind, expires_at: datetime) -> bool:
        """
        Claim the entry with ``HSETNX`` and fill in the rest only if it won.

        ``HSETNX`` on ``blacklisted_at`` is atomic in Redis, so concurrent
        callers race on that single command and exactly one sees ``1``.
        """
        key = self._k(token)
        now = datetime.now(UTC)
        ttl = max(1, math.ceil((expires_at - now).total_seconds()))
        try:
            if not self.r.hsetnx(key, "blacklisted_at", now.isoformat()):
                return False
            pipe = self.r.pipeline(transaction=True)
            pipe.hset(
                key,
                mapping={
                    "user_id": str(user_id),
                    "token_type": kind.value,
                    "expires_at": expires_at.isoformat(),
                },
            )
            pipe.expire(key, ttl)
            pipe.execute()
        except RedisError as exc:
            raise StoreError("blacklist write failed") from exc
        return True

    def purge_expired(self, now: datetime | None = None) -> int:
        # Keys carry their own TTL.
        return 0
