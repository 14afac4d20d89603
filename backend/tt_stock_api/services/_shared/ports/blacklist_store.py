from __future__ import annotations

import hashlib
import threading
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from tt_stock_api.services._shared.ports.token_engine import TokenKind


def token_digest(token: str) -> str:
    """Return the SHA-256 hex digest used as the blacklist key for ``token``."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


@dataclass(frozen=True, slots=True)
class BlacklistEntryView:
    """
    Read-model for a blacklisted token.

    :ivar token_key: Digest of the exact token string.
    :ivar user_id: Owning identity.
    :ivar kind: Token kind.
    :ivar expires_at: The token's own expiry (UTC).
    :ivar blacklisted_at: When the revocation was recorded (UTC).
    """

    token_key: str
    user_id: UUID
    kind: TokenKind
    expires_at: datetime
    blacklisted_at: datetime


class TokenBlacklistStore(Protocol):
    """
    Durable set of revoked tokens.

    Implementations MUST make :meth:`add` visible to every later
    :meth:`is_blacklisted` call and MUST wrap driver failures in
    :class:`~tt_stock_api.services._shared.errors.StoreError`.
    Entries whose token already expired are ignored by :meth:`is_blacklisted`.
    """

    def is_blacklisted(self, token: str) -> bool: ...

    def add(self, *, token: str, user_id: UUID, kind: TokenKind, expires_at: datetime) -> bool:
        """
        Record a revoked token.

        The write is an atomic claim: of several concurrent calls for the same
        token exactly one returns ``True``. Every other call, and any later
        call, returns ``False`` and leaves the stored entry unchanged.
        """

    def purge_expired(self, now: datetime | None = None) -> int:
        """Delete entries whose token expired at or before ``now``; return the count."""


class InMemoryTokenBlacklistStore(TokenBlacklistStore):
    """Process-local blacklist used by unit tests."""

    def __init__(self) -> None:
        self._entries: dict[str, BlacklistEntryView] = {}
        self._lock = threading.Lock()

    def is_blacklisted(self, token: str) -> bool:
        entry = self._entries.get(token_digest(token))
        return entry is not None and entry.expires_at > datetime.now(UTC)

    def add(self, *, token: str, user_id: UUID, kind: TokenKind, expires_at: datetime) -> bool:
        key = token_digest(token)
        with self._lock:
            if key in self._entries:
                return False
            self._entries[key] = BlacklistEntryView(
                token_key=key,
                user_id=user_id,
                kind=kind,
                expires_at=expires_at,
                blacklisted_at=datetime.now(UTC),
            )
            return True

    def purge_expired(self, now: datetime | None = None) -> int:
        cutoff = now or datetime.now(UTC)
        with self._lock:
            stale = [k for k, v in self._entries.items() if v.expires_at <= cutoff]
            for k in stale:
                del self._entries[k]
            return len(stale)

    def get(self, token: str) -> BlacklistEntryView | None:
        """Return the stored entry for ``token`` (test helper)."""
        return self._entries.get(token_digest(token))
