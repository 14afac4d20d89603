# tt_stock_api/services/auth/service.py
from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from tt_stock_api.services._shared.base import BaseService, ServiceContext
from tt_stock_api.services._shared.errors import (
    AuthenticationError,
    InternalError,
    InvalidTokenError,
    StoreError,
    TokenExpiredError,
    TokenRevokedError,
    WrongTokenTypeError,
)
from tt_stock_api.services._shared.policies.credentials import check_phone_number, check_pin
from tt_stock_api.services._shared.ports import (
    PinHasher,
    TokenBlacklistStore,
    TokenClaims,
    TokenEngine,
    TokenKind,
)
from tt_stock_api.services.auth.dto import (
    IdentityOut,
    LoginIn,
    LogoutIn,
    RefreshIn,
    SessionOut,
    TokenPairOut,
)

log = logging.getLogger(__name__)


class AuthService(BaseService):
    """
    Authentication lifecycle service (login / refresh / logout).

    PINs are verified against the stored bcrypt hash, tokens are minted and
    parsed by a :class:`TokenEngine`, and revocation is recorded in a
    :class:`TokenBlacklistStore`. Every token check consults the blacklist
    before the signature, so a revoked token is reported as revoked rather
    than as malformed or of the wrong kind.
    """

    def __init__(
        self,
        *,
        token_engine: TokenEngine,
        pin_hasher: PinHasher,
        blacklist_store: TokenBlacklistStore,
        ctx: ServiceContext | None = None,
    ) -> None:
        """
        :param token_engine: Adapter for issuing/parsing signed tokens.
        :param pin_hasher: Salted one-way PIN hashing.
        :param blacklist_store: Durable set of revoked tokens.
        """
        super().__init__(ctx=ctx)
        self.tokens = token_engine
        self.hasher = pin_hasher
        self.blacklist = blacklist_store

    # ------------------------------------------------------------------ #
    # Input validation
    # ------------------------------------------------------------------ #

    @staticmethod
    def validate_phone_number(value: str | None) -> None:
        """:raises ValidationError: When empty or not ``^0[0-9]{9}$``."""
        check_phone_number(value)

    @staticmethod
    def validate_pin(value: str | None) -> None:
        """:raises ValidationError: When empty or not exactly 6 digits."""
        check_pin(value)

    # ------------------------------------------------------------------ #
    # Credentials
    # ------------------------------------------------------------------ #

    def authenticate(self, dto: LoginIn) -> IdentityOut:
        """
        Verify a phone number + PIN pair.

        Unknown phone numbers, wrong PINs and lookup failures all raise the
        same generic error.

        :raises ValidationError: If either field is malformed (checked before
            any store access).
        :raises AuthenticationError: ``"invalid credentials"``.
        """
        self.validate_phone_number(dto.phone_number)
        self.validate_pin(dto.pin)

        try:
            with self.ro_uow() as uow:
                user = uow.users.get_by_phone_number(dto.phone_number)
                record = (user.id, user.phone_number, user.pin_hash) if user else None
        except (SQLAlchemyError, StoreError):
            log.error(
                "Credential lookup failed",
                exc_info=True,
                extra={"event": "auth.login.failed", "reason": "lookup_error"},
            )
            raise AuthenticationError() from None

        if record is None:
            log.info("Login rejected", extra={"event": "auth.login.failed", "reason": "unknown_phone"})
            raise AuthenticationError()

        user_id, phone_number, pin_hash = record
        if not self.hasher.verify(dto.pin, pin_hash):
            log.info(
                "Login rejected",
                extra={"event": "auth.login.failed", "reason": "pin_mismatch", "user_id": str(user_id)},
            )
            raise AuthenticationError()

        self._record_last_login(user_id)
        log.info("Login succeeded", extra={"event": "auth.login.succeeded", "user_id": str(user_id)})
        return IdentityOut(id=user_id, phone_number=phone_number)

    # ------------------------------------------------------------------ #
    # Tokens
    # ------------------------------------------------------------------ #

    def issue_token_pair(self, identity: IdentityOut) -> TokenPairOut:
        """
        Mint an access + refresh pair for ``identity``.

        :raises TokenSigningError: If the signer is misconfigured.
        """
        access = self.tokens.issue(identity.id, identity.phone_number, TokenKind.ACCESS)
        refresh = self.tokens.issue(identity.id, identity.phone_number, TokenKind.REFRESH)
        return TokenPairOut(access_token=access, refresh_token=refresh)

    def validate_and_authorize(self, token: str, required_kind: TokenKind) -> TokenClaims:
        """
        Accept ``token`` only if it is not revoked, parses, and has the right kind.

        Checks run in this order: blacklist, signature/claims/expiry, kind.

        :raises InternalError: If the blacklist cannot be consulted.
        :raises TokenRevokedError: If the token was revoked.
        :raises TokenExpiredError: If the token is past ``exp``.
        :raises InvalidTokenError: For any other parse failure.
        :raises WrongTokenTypeError: If the kind differs from ``required_kind``.
        """
        try:
            revoked = self.blacklist.is_blacklisted(token)
        except StoreError as exc:
            log.error("Blacklist lookup failed", exc_info=True, extra={"event": "auth.blacklist.error"})
            raise InternalError("failed to check token status") from exc

        if revoked:
            log.info(
                "Token rejected",
                extra={"event": "auth.token.rejected", "reason": "revoked", "token_kind": required_kind.value},
            )
            raise TokenRevokedError()

        claims = self.tokens.parse(token)

        if claims.kind is not required_kind:
            log.info(
                "Token rejected",
                extra={"event": "auth.token.rejected", "reason": "wrong_kind", "token_kind": claims.kind.value},
            )
            raise WrongTokenTypeError(required_kind.value, claims.kind.value)

        return claims

    def revoke(self, token: str) -> bool:
        """
        Blacklist ``token`` until its own expiry.

        Expired tokens cannot be revoked. Revoking a token that is already
        blacklisted leaves the stored entry as it was.

        :returns: ``True`` if this call created the entry, ``False`` if another
            revocation got there first.
        :raises InvalidTokenError: If the token does not parse.
        :raises InternalError: If the blacklist write fails.
        """
        try:
            claims = self.tokens.parse(token)
        except TokenExpiredError as exc:
            raise InvalidTokenError(exc.message) from exc

        try:
            created = self.blacklist.add(
                token=token,
                user_id=claims.user_id,
                kind=claims.kind,
                expires_at=claims.expires_at,
            )
        except StoreError as exc:
            log.error("Blacklist write failed", exc_info=True, extra={"event": "auth.blacklist.error"})
            raise InternalError("failed to invalidate token") from exc

        if created:
            log.info(
                "Token revoked",
                extra={
                    "event": "auth.token.revoked",
                    "user_id": str(claims.user_id),
                    "token_kind": claims.kind.value,
                },
            )
        return created

    # ------------------------------------------------------------------ #
    # Use cases
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> SessionOut:
        """Authenticate and issue a fresh token pair."""
        identity = self.authenticate(dto)
        return SessionOut(tokens=self.issue_token_pair(identity), user=identity)

    def refresh(self, dto: RefreshIn) -> SessionOut:
        """
        Exchange a refresh token for a new pair; the old one is single-use.

        The presented refresh token is revoked *before* anything is issued, so
        a failed revocation leaves the caller with no new tokens. Of several
        concurrent refreshes with the same token only the one whose revocation
        creates the blacklist entry gets a new pair.

        :raises TokenRevokedError: If the token was already revoked, including
            by a concurrent refresh that passed the blacklist check alongside
            this one.
        """
        claims = self.validate_and_authorize(dto.refresh_token, TokenKind.REFRESH)
        if not self.revoke(dto.refresh_token):
            log.info(
                "Token rejected",
                extra={"event": "auth.token.rejected", "reason": "reused", "token_kind": TokenKind.REFRESH.value},
            )
            raise TokenRevokedError()

        identity = IdentityOut(id=claims.user_id, phone_number=claims.phone_number)
        return SessionOut(tokens=self.issue_token_pair(identity), user=identity)

    def logout(self, dto: LogoutIn) -> None:
        """
        Revoke the access token and, best-effort, the optional refresh token.

        :raises AuthenticationError: If the access token fails validation.
        :raises InternalError: If the access token cannot be blacklisted.
        """
        claims = self.validate_and_authorize(dto.access_token, TokenKind.ACCESS)
        self.revoke(dto.access_token)

        if dto.refresh_token:
            self._revoke_best_effort(dto.refresh_token)

        log.info("Logout completed", extra={"event": "auth.logout", "user_id": str(claims.user_id)})

    def purge_expired_blacklist(self) -> int:
        """
        Delete blacklist entries whose token already expired.

        :returns: Number of entries removed.
        :raises InternalError: If the store cannot be swept.
        """
        try:
            removed = self.blacklist.purge_expired(self.now_utc())
        except StoreError as exc:
            log.error("Blacklist purge failed", exc_info=True, extra={"event": "auth.blacklist.error"})
            raise InternalError("failed to purge blacklist") from exc
        log.info(
            "Expired blacklist entries purged (%d)", removed, extra={"event": "auth.blacklist.purged"}
        )
        return removed

    # ------------------------------------------------------------------ #
    # Best-effort side channels (never raise)
    # ------------------------------------------------------------------ #

    def _record_last_login(self, user_id: UUID) -> bool:
        try:
            with self.rw_uow() as uow:
                uow.users.touch_last_login(user_id, at=self.now_utc())
        except SQLAlchemyError:
            log.warning(
                "Could not record last login",
                exc_info=True,
                extra={"event": "auth.last_login.update_failed", "user_id": str(user_id)},
            )
            return False
        return True

    def _revoke_best_effort(self, token: str) -> bool:
        try:
            self.revoke(token)
        except (AuthenticationError, InternalError) as exc:
            log.warning(
                "Could not revoke refresh token on logout: %s",
                exc,
                extra={"event": "auth.logout.refresh_revoke_failed"},
            )
            return False
        return True
