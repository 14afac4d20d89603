# tt_stock_api/infra/jwt/jwt_token_engine.py
from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

import jwt

from tt_stock_api.services._shared.errors import (
    InvalidTokenError,
    TokenExpiredError,
    TokenSigningError,
)
from tt_stock_api.services._shared.ports import TokenClaims, TokenEngine, TokenKind

DEFAULT_ISSUER = "tt-stock-api"
DEFAULT_ALGORITHM = "HS256"

# Claims every token must carry; PyJWT rejects tokens missing any of them.
REQUIRED_CLAIMS = ["exp", "iat", "nbf", "iss", "sub", "jti"]


def _utc_now() -> datetime:
    return datetime.now(UTC)


class JWTTokenEngine(TokenEngine):
    """
    HMAC-signed JWT adapter built on PyJWT.

    The shared secret is handed in at construction; nothing is read from
    global configuration, so two engines with different secrets can coexist.

    :param secret_key: Shared HMAC secret (must be non-empty).
    :param issuer: ``iss`` claim written and required on parse.
    :param algorithm: HMAC algorithm; tokens signed otherwise are rejected.
    :param clock: Returns the current UTC time. Drives ``iat``/``nbf``/``exp``
        and the explicit expiry re-check in :meth:`parse`.
    """

    def __init__(
        self,
        secret_key: str,
        *,
        issuer: str = DEFAULT_ISSUER,
        algorithm: str = DEFAULT_ALGORITHM,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if not secret_key:
            raise ValueError("JWT secret key must be a non-empty string.")
        if not algorithm.startswith("HS"):
            raise ValueError(f"Only HMAC algorithms are supported, got {algorithm!r}.")
        self._secret_key = secret_key
        self.issuer = issuer
        self.algorithm = algorithm
        self._clock = clock or _utc_now

    # ------------------------------------------------------------------ #
    # Issue
    # ------------------------------------------------------------------ #

    def issue(self, user_id: UUID, phone_number: str, kind: TokenKind) -> str:
        """
        Mint a signed token for ``user_id``.

        :raises TokenSigningError: If the signer rejects the key/algorithm.
        """
        issued_at = int(self._clock().timestamp())
        payload: dict[str, Any] = {
            "user_id": str(user_id),
            "phone_number": phone_number,
            "token_type": kind.value,
            "iss": self.issuer,
            "sub": str(user_id),
            "iat": issued_at,
            "nbf": issued_at,
            "exp": issued_at + int(kind.ttl.total_seconds()),
            "jti": uuid4().hex,
        }
        try:
            return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)
        except (jwt.PyJWTError, NotImplementedError, TypeError, ValueError) as exc:
            raise TokenSigningError(f"failed to generate {kind.value} token") from exc

    # ------------------------------------------------------------------ #
    # Parse
    # ------------------------------------------------------------------ #

    def parse(self, token: str) -> TokenClaims:
        """
        Verify ``token`` and return its claims.

        :raises TokenExpiredError: When ``exp`` is in the past.
        :raises InvalidTokenError: For every other structural failure.
        """
        if not token:
            raise InvalidTokenError("token is required")

        try:
            raw = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError() from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError() from exc

        claims = self._to_claims(raw)

        # Re-check against our own clock; both checks must agree.
        if claims.expires_at <= self._clock():
            raise TokenExpiredError()
        return claims

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _to_claims(raw: dict[str, Any]) -> TokenClaims:
        kind = TokenKind.parse(raw.get("token_type"))
        if kind is None:
            raise InvalidTokenError("invalid token claims")

        phone_number = raw.get("phone_number")
        if not isinstance(phone_number, str):
            raise InvalidTokenError("invalid token claims")

        try:
            user_id = UUID(str(raw.get("user_id")))
        except ValueError as exc:
            raise InvalidTokenError("invalid token claims") from exc
        if str(user_id) != raw["sub"]:
            raise InvalidTokenError("invalid token claims")

        def _ts(name: str) -> datetime:
            return datetime.fromtimestamp(int(raw[name]), tz=UTC)

        return TokenClaims(
            user_id=user_id,
            phone_number=phone_number,
            kind=kind,
            issued_at=_ts("iat"),
            not_before=_ts("nbf"),
            expires_at=_ts("exp"),
            issuer=str(raw["iss"]),
            subject=str(raw["sub"]),
            token_id=str(raw["jti"]),
        )
