# tt_stock_api/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from uuid import UUID

from tt_stock_api.services._shared.ports.token_engine import ACCESS_TOKEN_TTL_SECONDS

TOKEN_TYPE_BEARER = "Bearer"

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param phone_number: Phone number as typed by the user.
    :type phone_number: str
    :param pin: Raw 6-digit PIN (to be verified, never stored).
    :type pin: str
    """

    phone_number: str
    pin: str

    def __repr__(self) -> str:
        return f"LoginIn(phone_number={self.phone_number!r}, pin='***')"


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    refresh_token: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout.

    :param access_token: Encoded access JWT taken from the ``Authorization`` header.
    :type access_token: str
    :param refresh_token: Optional refresh JWT revoked alongside, best-effort.
    :type refresh_token: str | None
    """

    access_token: str
    refresh_token: str | None = None


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class IdentityOut:
    """
    Authenticated identity.

    :param id: Immutable identity id.
    :type id: uuid.UUID
    :param phone_number: Login phone number.
    :type phone_number: str
    """

    id: UUID
    phone_number: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": str(self.id), "phone_number": self.phone_number}


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Encoded access JWT.
    :param refresh_token: Encoded refresh JWT.
    :param token_type: Always ``"Bearer"``.
    :param expires_in: Access token lifetime in seconds (900).
    """

    access_token: str
    refresh_token: str
    token_type: str = TOKEN_TYPE_BEARER
    expires_in: int = ACCESS_TOKEN_TTL_SECONDS


@dataclass(frozen=True, slots=True)
class SessionOut:
    """Token pair plus the identity it was issued to."""

    tokens: TokenPairOut
    user: IdentityOut

    def to_dict(self) -> dict[str, Any]:
        return {
            "access_token": self.tokens.access_token,
            "refresh_token": self.tokens.refresh_token,
            "token_type": self.tokens.token_type,
            "expires_in": self.tokens.expires_in,
            "user": self.user.to_dict(),
        }
