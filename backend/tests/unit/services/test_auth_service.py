# tests/unit/services/test_auth_service.py
from __future__ import annotations

import threading
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from tests.conftest import TEST_PIN, TEST_SECRET
from tests.factories.user import UserFactory
from tt_stock_api.infra.jwt.jwt_token_engine import JWTTokenEngine
from tt_stock_api.models import User
from tt_stock_api.repositories.user import UserRepository
from tt_stock_api.services._shared.errors import (
    AuthenticationError,
    InternalError,
    InvalidTokenError,
    StoreError,
    TokenExpiredError,
    TokenRevokedError,
    ValidationError,
    WrongTokenTypeError,
)
from tt_stock_api.services._shared.ports import InMemoryTokenBlacklistStore, TokenKind
from tt_stock_api.services.auth.dto import IdentityOut, LoginIn, LogoutIn, RefreshIn, SessionOut
from tt_stock_api.services.auth.service import AuthService


class FlakyBlacklistStore(InMemoryTokenBlacklistStore):
    """In-memory blacklist that can be told to fail reads or writes."""

    def __init__(self, *, fail_reads: bool = False, fail_writes: bool = False) -> None:
        super().__init__()
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes

    def is_blacklisted(self, token):
        if self.fail_reads:
            raise StoreError("down")
        return super().is_blacklisted(token)

    def add(self, **kwargs):
        if self.fail_writes:
            raise StoreError("down")
        return super().add(**kwargs)

    def purge_expired(self, now=None):
        if self.fail_writes:
            raise StoreError("down")
        return super().purge_expired(now)


class LockstepBlacklistStore(InMemoryTokenBlacklistStore):
    """Blacklist whose reads wait until ``parties`` callers have all read."""

    def __init__(self, parties: int = 2) -> None:
        super().__init__()
        self.barrier = threading.Barrier(parties, timeout=5)

    def is_blacklisted(self, token):
        seen = super().is_blacklisted(token)
        self.barrier.wait()
        return seen


def _expired_token(identity: IdentityOut, kind: TokenKind) -> str:
    """Token whose ``exp`` is one second in the past."""
    ttl = int(kind.ttl.total_seconds())
    past = JWTTokenEngine(TEST_SECRET, clock=lambda: datetime.now(UTC) - timedelta(seconds=ttl + 1))
    return past.issue(identity.id, identity.phone_number, kind)


@pytest.fixture()
def user(session) -> User:
    u = UserFactory(phone_number="0812345678")
    session.flush()
    return u


@pytest.fixture()
def identity(user) -> IdentityOut:
    return IdentityOut(id=user.id, phone_number=user.phone_number)


# ------------------------------ Validation -------------------------------- #
class TestInputValidation:
    @pytest.mark.parametrize(
        ("value", "message"),
        [
            ("", "phone number is required"),
            (None, "phone number is required"),
            ("812345678", "invalid phone number format: must be 10 digits starting with 0"),
            ("1812345678", "invalid phone number format: must be 10 digits starting with 0"),
            ("08123456789", "invalid phone number format: must be 10 digits starting with 0"),
            ("08123x5678", "invalid phone number format: must be 10 digits starting with 0"),
        ],
    )
    def test_phone_number_errors(self, value, message):
        with pytest.raises(ValidationError) as exc:
            AuthService.validate_phone_number(value)
        assert exc.value.message == message

    def test_phone_number_accepts_valid(self):
        AuthService.validate_phone_number("0812345678")

    @pytest.mark.parametrize(
        ("value", "message"),
        [
            ("", "PIN is required"),
            ("12345", "invalid PIN format: must be exactly 6 digits"),
            ("1234567", "invalid PIN format: must be exactly 6 digits"),
            ("12a456", "invalid PIN format: must be exactly 6 digits"),
        ],
    )
    def test_pin_errors(self, value, message):
        with pytest.raises(ValidationError) as exc:
            AuthService.validate_pin(value)
        assert exc.value.message == message

    def test_validation_runs_before_lookup(self, auth_service, monkeypatch):
        def _boom(*args, **kwargs):
            raise AssertionError("store must not be consulted")

        monkeypatch.setattr(UserRepository, "get_by_phone_number", _boom)
        with pytest.raises(ValidationError, match="phone number"):
            auth_service.authenticate(LoginIn(phone_number="123", pin=TEST_PIN))
        with pytest.raises(ValidationError, match="PIN"):
            auth_service.authenticate(LoginIn(phone_number="0812345678", pin="12"))


# ---------------------------- Authentication ------------------------------ #
class TestAuthenticate:
    def test_returns_identity_and_stamps_last_login(self, auth_service, user, session):
        user_id = user.id
        identity = auth_service.authenticate(LoginIn(phone_number="0812345678", pin=TEST_PIN))

        assert identity == IdentityOut(id=user_id, phone_number="0812345678")
        assert session.get(User, user_id).last_login_at is not None

    def test_unknown_phone_and_wrong_pin_share_message(self, auth_service, user):
        with pytest.raises(AuthenticationError) as unknown:
            auth_service.authenticate(LoginIn(phone_number="0899999999", pin=TEST_PIN))
        with pytest.raises(AuthenticationError) as wrong:
            auth_service.authenticate(LoginIn(phone_number="0812345678", pin="654321"))

        assert unknown.value.message == wrong.value.message == "invalid credentials"
        assert type(unknown.value) is type(wrong.value) is AuthenticationError

    def test_lookup_failure_is_reported_as_invalid_credentials(self, auth_service, monkeypatch):
        def _down(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("db down"))

        monkeypatch.setattr(UserRepository, "get_by_phone_number", _down)
        with pytest.raises(AuthenticationError, match="invalid credentials"):
            auth_service.authenticate(LoginIn(phone_number="0812345678", pin=TEST_PIN))

    def test_last_login_failure_does_not_fail_login(self, auth_service, user, monkeypatch):
        user_id = user.id

        def _down(*args, **kwargs):
            raise OperationalError("UPDATE", {}, Exception("db down"))

        monkeypatch.setattr(UserRepository, "touch_last_login", _down)
        identity = auth_service.authenticate(LoginIn(phone_number="0812345678", pin=TEST_PIN))
        assert identity.id == user_id


# -------------------------------- Login ----------------------------------- #
class TestLogin:
    def test_login_issues_bearer_pair(self, auth_service, user, token_engine):
        session_out = auth_service.login(LoginIn(phone_number="0812345678", pin=TEST_PIN))

        assert isinstance(session_out, SessionOut)
        assert session_out.tokens.token_type == "Bearer"
        assert session_out.tokens.expires_in == 900
        assert session_out.user.phone_number == "0812345678"

        access = token_engine.parse(session_out.tokens.access_token)
        refresh = token_engine.parse(session_out.tokens.refresh_token)
        assert access.kind is TokenKind.ACCESS
        assert refresh.kind is TokenKind.REFRESH
        assert access.user_id == refresh.user_id == user.id
        assert (access.expires_at - access.issued_at).total_seconds() == 900
        assert (refresh.expires_at - refresh.issued_at).total_seconds() == 86400

    def test_two_logins_yield_distinct_tokens(self, auth_service, user):
        first = auth_service.login(LoginIn(phone_number="0812345678", pin=TEST_PIN))
        second = auth_service.login(LoginIn(phone_number="0812345678", pin=TEST_PIN))
        assert first.tokens.access_token != second.tokens.access_token
        assert first.tokens.refresh_token != second.tokens.refresh_token


# ------------------------------ Validation -------------------------------- #
class TestValidateAndAuthorize:
    def test_accepts_matching_kind(self, auth_service, identity):
        pair = auth_service.issue_token_pair(identity)
        claims = auth_service.validate_and_authorize(pair.access_token, TokenKind.ACCESS)
        assert claims.user_id == identity.id
        assert claims.phone_number == identity.phone_number

    def test_wrong_kind(self, auth_service, identity):
        pair = auth_service.issue_token_pair(identity)
        with pytest.raises(WrongTokenTypeError, match="invalid token type: access token required"):
            auth_service.validate_and_authorize(pair.refresh_token, TokenKind.ACCESS)
        with pytest.raises(WrongTokenTypeError, match="invalid token type: refresh token required"):
            auth_service.validate_and_authorize(pair.access_token, TokenKind.REFRESH)

    def test_revoked_is_checked_before_kind(self, auth_service, identity):
        pair = auth_service.issue_token_pair(identity)
        auth_service.revoke(pair.refresh_token)
        with pytest.raises(TokenRevokedError, match="token has been invalidated"):
            auth_service.validate_and_authorize(pair.refresh_token, TokenKind.ACCESS)

    def test_expired(self, auth_service, identity):
        token = _expired_token(identity, TokenKind.ACCESS)
        with pytest.raises(TokenExpiredError):
            auth_service.validate_and_authorize(token, TokenKind.ACCESS)

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
    def test_malformed(self, auth_service, token):
        with pytest.raises(InvalidTokenError) as exc:
            auth_service.validate_and_authorize(token, TokenKind.ACCESS)
        assert not isinstance(exc.value, TokenExpiredError)

    def test_store_failure_is_internal(self, token_engine, pin_hasher, identity):
        service = AuthService(
            token_engine=token_engine,
            pin_hasher=pin_hasher,
            blacklist_store=FlakyBlacklistStore(fail_reads=True),
        )
        pair = service.issue_token_pair(identity)
        with pytest.raises(InternalError):
            service.validate_and_authorize(pair.access_token, TokenKind.ACCESS)


# -------------------------------- Revoke ---------------------------------- #
class TestRevoke:
    def test_revoke_records_entry_until_token_expiry(self, auth_service, blacklist, identity, token_engine):
        pair = auth_service.issue_token_pair(identity)
        auth_service.revoke(pair.access_token)

        entry = blacklist.get(pair.access_token)
        assert entry is not None
        assert entry.user_id == identity.id
        assert entry.kind is TokenKind.ACCESS
        assert entry.expires_at == token_engine.parse(pair.access_token).expires_at

    def test_revoke_twice_keeps_first_entry(self, auth_service, blacklist, identity):
        pair = auth_service.issue_token_pair(identity)
        assert auth_service.revoke(pair.access_token) is True
        first = blacklist.get(pair.access_token)
        assert auth_service.revoke(pair.access_token) is False
        assert blacklist.get(pair.access_token) == first

    def test_revoke_rejects_garbage(self, auth_service):
        with pytest.raises(InvalidTokenError):
            auth_service.revoke("not-a-token")

    def test_revoke_rejects_expired_as_invalid(self, auth_service, identity):
        token = _expired_token(identity, TokenKind.REFRESH)
        with pytest.raises(InvalidTokenError) as exc:
            auth_service.revoke(token)
        assert type(exc.value) is InvalidTokenError

    def test_revoke_store_failure_is_internal(self, token_engine, pin_hasher, identity):
        service = AuthService(
            token_engine=token_engine,
            pin_hasher=pin_hasher,
            blacklist_store=FlakyBlacklistStore(fail_writes=True),
        )
        pair = service.issue_token_pair(identity)
        with pytest.raises(InternalError):
            service.revoke(pair.access_token)


# -------------------------------- Refresh --------------------------------- #
class TestRefresh:
    def test_rotation_is_single_use(self, auth_service, identity):
        pair = auth_service.issue_token_pair(identity)

        rotated = auth_service.refresh(RefreshIn(refresh_token=pair.refresh_token))
        assert rotated.user == identity
        assert rotated.tokens.refresh_token != pair.refresh_token

        with pytest.raises(TokenRevokedError):
            auth_service.refresh(RefreshIn(refresh_token=pair.refresh_token))

        again = auth_service.refresh(RefreshIn(refresh_token=rotated.tokens.refresh_token))
        assert again.tokens.access_token

    def test_access_token_is_refused_and_not_revoked(self, auth_service, blacklist, identity):
        pair = auth_service.issue_token_pair(identity)
        with pytest.raises(WrongTokenTypeError):
            auth_service.refresh(RefreshIn(refresh_token=pair.access_token))
        assert blacklist.get(pair.access_token) is None

    def test_failed_revocation_issues_nothing(self, token_engine, pin_hasher, identity, monkeypatch):
        store = FlakyBlacklistStore(fail_writes=True)
        service = AuthService(token_engine=token_engine, pin_hasher=pin_hasher, blacklist_store=store)
        pair = service.issue_token_pair(identity)

        issued: list[str] = []
        original_issue = token_engine.issue
        monkeypatch.setattr(
            token_engine, "issue", lambda *a, **k: issued.append("x") or original_issue(*a, **k)
        )

        with pytest.raises(InternalError):
            service.refresh(RefreshIn(refresh_token=pair.refresh_token))
        assert issued == []

    def test_concurrent_refresh_with_same_token_succeeds_once(self, token_engine, pin_hasher):
        store = LockstepBlacklistStore(parties=2)
        service = AuthService(token_engine=token_engine, pin_hasher=pin_hasher, blacklist_store=store)
        pair = service.issue_token_pair(IdentityOut(id=uuid4(), phone_number="0812345678"))

        sessions: list[SessionOut] = []
        errors: list[Exception] = []

        def _refresh() -> None:
            try:
                sessions.append(service.refresh(RefreshIn(refresh_token=pair.refresh_token)))
            except Exception as exc:  # noqa: BLE001
                errors.append(exc)

        threads = [threading.Thread(target=_refresh) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert len(sessions) == 1
        assert len(errors) == 1
        assert isinstance(errors[0], TokenRevokedError)
        assert store.get(pair.refresh_token) is not None


# -------------------------------- Logout ---------------------------------- #
class TestLogout:
    def test_logout_revokes_access_and_refresh(self, auth_service, blacklist, identity):
        pair = auth_service.issue_token_pair(identity)
        auth_service.logout(LogoutIn(access_token=pair.access_token, refresh_token=pair.refresh_token))

        assert blacklist.is_blacklisted(pair.access_token)
        assert blacklist.is_blacklisted(pair.refresh_token)

    def test_logout_without_refresh_keeps_refresh_usable(self, auth_service, identity):
        pair = auth_service.issue_token_pair(identity)
        auth_service.logout(LogoutIn(access_token=pair.access_token))

        with pytest.raises(TokenRevokedError):
            auth_service.validate_and_authorize(pair.access_token, TokenKind.ACCESS)
        auth_service.validate_and_authorize(pair.refresh_token, TokenKind.REFRESH)

    def test_bad_refresh_token_is_best_effort(self, auth_service, blacklist, identity):
        pair = auth_service.issue_token_pair(identity)
        auth_service.logout(LogoutIn(access_token=pair.access_token, refresh_token="garbage"))
        assert blacklist.is_blacklisted(pair.access_token)

    def test_refresh_token_cannot_log_out(self, auth_service, identity):
        pair = auth_service.issue_token_pair(identity)
        with pytest.raises(WrongTokenTypeError):
            auth_service.logout(LogoutIn(access_token=pair.refresh_token))

    def test_logout_twice_is_rejected(self, auth_service, identity):
        pair = auth_service.issue_token_pair(identity)
        auth_service.logout(LogoutIn(access_token=pair.access_token))
        with pytest.raises(TokenRevokedError):
            auth_service.logout(LogoutIn(access_token=pair.access_token))


# -------------------------------- Sweep ----------------------------------- #
class TestPurge:
    def test_purge_removes_only_expired(self, auth_service, blacklist, identity):
        pair = auth_service.issue_token_pair(identity)
        auth_service.revoke(pair.access_token)
        blacklist.add(
            token="stale",
            user_id=identity.id,
            kind=TokenKind.ACCESS,
            expires_at=datetime.now(UTC) - timedelta(seconds=1),
        )

        assert auth_service.purge_expired_blacklist() == 1
        assert blacklist.get("stale") is None
        assert blacklist.get(pair.access_token) is not None

    def test_purge_failure_is_internal(self, token_engine, pin_hasher):
        service = AuthService(
            token_engine=token_engine,
            pin_hasher=pin_hasher,
            blacklist_store=FlakyBlacklistStore(fail_writes=True),
        )
        with pytest.raises(InternalError):
            service.purge_expired_blacklist()
