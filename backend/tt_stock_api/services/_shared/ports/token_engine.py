from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Protocol
from uuid import UUID


class TokenKind(str, Enum):
    """Discriminant embedded in every token (``token_type`` claim)."""

    ACCESS = "access"
    REFRESH = "refresh"

    @property
    def ttl(self) -> timedelta:
        """Lifetime of a token of this kind."""
        return TOKEN_TTLS[self]

    @classmethod
    def parse(cls, raw: object) -> TokenKind | None:
        """Return the kind for ``raw`` or ``None`` if it is not a known kind."""
        try:
            return cls(raw)
        except ValueError:
            return None


# Contract values other systems rely on: 900 s and 86 400 s.
TOKEN_TTLS: dict[TokenKind, timedelta] = {
    TokenKind.ACCESS: timedelta(minutes=15),
    TokenKind.REFRESH: timedelta(days=1),
}

ACCESS_TOKEN_TTL_SECONDS = int(TOKEN_TTLS[TokenKind.ACCESS].total_seconds())


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """
    Verified claims of a token.

    :ivar user_id: Identity the token was issued to.
    :ivar phone_number: Phone number at issuance (denormalized).
    :ivar kind: Access or refresh.
    :ivar issued_at: ``iat`` (UTC).
    :ivar not_before: ``nbf`` (UTC).
    :ivar expires_at: ``exp`` (UTC).
    :ivar issuer: ``iss``.
    :ivar subject: ``sub`` (string form of ``user_id``).
    :ivar token_id: ``jti``; makes every issued token string unique.
    """

    user_id: UUID
    phone_number: str
    kind: TokenKind
    issued_at: datetime
    not_before: datetime
    expires_at: datetime
    issuer: str
    subject: str
    token_id: str


class TokenEngine(Protocol):
    """Port for minting and verifying signed, time-bounded tokens."""

    def issue(self, user_id: UUID, phone_number: str, kind: TokenKind) -> str: ...

    def parse(self, token: str) -> TokenClaims: ...
