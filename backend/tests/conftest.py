"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside a SAVEPOINT-backed transaction against an in-memory
SQLite database so data changes never leak between cases.
"""

from __future__ import annotations

import os
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker

from tt_stock_api.core.config import TestingConfig
from tt_stock_api.core.extensions import db as _db  # Flask-SQLAlchemy instance
from tt_stock_api.factory import create_app  # application factory under test
from tt_stock_api.infra.jwt.jwt_token_engine import JWTTokenEngine
from tt_stock_api.infra.security.bcrypt_pin_hasher import BcryptPinHasher
from tt_stock_api.services._shared.ports import InMemoryTokenBlacklistStore
from tt_stock_api.services.auth.service import AuthService

TEST_PIN = "123456"
TEST_SECRET = TestingConfig.JWT_SECRET_KEY


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestingConfig` applied and logging
        noise reduced.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestingConfig)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(scope="session")
def db(app):
    """Create database tables once per test session.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Keep a dedicated DBAPI connection open for the whole session."""
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Provide a SQLAlchemy session wrapped in a nested transaction.

    Notes
    -----
    The fixture mirrors the SQLAlchemy 2.0 pattern for transactional tests: it
    begins a top-level transaction, starts a SAVEPOINT per test, and reinstalls
    the SAVEPOINT whenever SQLAlchemy ends one. ``session.commit()`` in a test
    only releases the session's own SAVEPOINT; everything is rolled back at
    teardown.
    """
    top_trans = connection.begin()

    SessionFactory = sessionmaker(bind=connection, future=True)
    scoped = scoped_session(SessionFactory)

    nested = connection.begin_nested()

    @event.listens_for(scoped(), "after_transaction_end")
    def _restart_savepoint(sess, trans):  # pragma: no cover
        if trans.nested and not trans._parent.nested:
            nonlocal nested
            nested = connection.begin_nested()

    # Monkey-patch db.session so app code uses this scoped session
    original_session = db.session
    db.session.remove()
    db.session = scoped

    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        top_trans.rollback()


@pytest.fixture()
def client(app, session):
    """Flask test client sharing the transactional session."""
    return app.test_client()


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(request):
    """Wire Factory Boy's session helper to the transactional session fixture.

    Pure unit tests that never request ``session`` stay database-free.
    """
    from tests.factories import SQLAlchemySession

    if "session" in request.fixturenames:
        SQLAlchemySession.set(request.getfixturevalue("session"))
    yield
    SQLAlchemySession.set(None)


# -- Auth wiring ---------------------------------------------------------------
class MutableClock:
    """Callable clock whose current time tests can move."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime.now(UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture()
def clock() -> MutableClock:
    return MutableClock()


@pytest.fixture()
def token_engine() -> JWTTokenEngine:
    return JWTTokenEngine(TEST_SECRET)


@pytest.fixture()
def pin_hasher() -> BcryptPinHasher:
    return BcryptPinHasher(rounds=4)


@pytest.fixture()
def blacklist() -> InMemoryTokenBlacklistStore:
    return InMemoryTokenBlacklistStore()


@pytest.fixture()
def auth_service(app, session, token_engine, pin_hasher, blacklist) -> AuthService:
    """AuthService on the real credential tables with an in-memory blacklist."""
    return AuthService(token_engine=token_engine, pin_hasher=pin_hasher, blacklist_store=blacklist)
