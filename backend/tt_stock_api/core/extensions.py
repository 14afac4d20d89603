"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

import redis  # type: ignore[import-untyped]
from flask import Flask
from flask_cors import CORS
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData
from werkzeug.middleware.proxy_fix import ProxyFix

# Global naming convention for all constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Global singletons (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
migrate = Migrate(render_as_batch=True)
redis_client: redis.Redis | None = None


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy, migrations, Redis, CORS and proxy handling.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. Models are imported so
        SQLAlchemy metadata is complete before migrations run.
    """
    db.init_app(app)

    from tt_stock_api import models as _models  # noqa: F401

    migrate.init_app(app, db)
    _init_cors(app)
    _init_proxy(app)

    global redis_client
    redis_url = app.config.get("REDIS_URL")
    if not redis_url:
        redis_client = None
        app.extensions.pop("redis_client", None)
        return

    timeout = app.config.get("REDIS_SOCKET_TIMEOUT")
    redis_client = redis.Redis.from_url(
        redis_url,
        socket_timeout=timeout,
        socket_connect_timeout=timeout,
    )
    try:
        redis_client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}") from exc
    app.extensions["redis_client"] = redis_client


def get_redis() -> redis.Redis:
    """Return the initialized Redis client."""
    if redis_client is None:
        raise RuntimeError("Redis client is not initialized. Set REDIS_URL and call init_app().")
    return redis_client


def init_auth_service(app: Flask) -> None:
    """Build the :class:`AuthService` for ``app`` and store it in ``app.extensions``.

    The blacklist lives in Redis when ``BLACKLIST_BACKEND == "redis"``,
    otherwise in the ``token_blacklist`` table.
    """
    from tt_stock_api.infra.jwt.jwt_token_engine import JWTTokenEngine
    from tt_stock_api.infra.redis.redis_blacklist_store import RedisTokenBlacklistStore
    from tt_stock_api.infra.security.bcrypt_pin_hasher import BcryptPinHasher
    from tt_stock_api.infra.sql.sql_blacklist_store import SQLTokenBlacklistStore
    from tt_stock_api.services.auth.service import AuthService

    if app.config.get("BLACKLIST_BACKEND", "database") == "redis":
        blacklist = RedisTokenBlacklistStore(get_redis())
    else:
        blacklist = SQLTokenBlacklistStore()

    app.extensions["auth_service"] = AuthService(
        token_engine=JWTTokenEngine(
            app.config["JWT_SECRET_KEY"],
            issuer=app.config.get("JWT_ISSUER", "tt-stock-api"),
        ),
        pin_hasher=BcryptPinHasher(rounds=int(app.config.get("BCRYPT_ROUNDS", 12))),
        blacklist_store=blacklist,
    )


def _init_cors(app: Flask) -> None:
    """Allow the configured origins on ``/api/*``; ``*`` disables credentials."""
    origins = [o.strip() for o in str(app.config.get("CORS_ORIGINS", "")).split(",") if o.strip()]
    wildcard = not origins or origins == ["*"]
    CORS(
        app,
        resources={r"/api/*": {"origins": "*" if wildcard else origins}},
        supports_credentials=not wildcard,
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )


def _init_proxy(app: Flask) -> None:
    """Trust one hop of ``X-Forwarded-*`` headers when ``USE_PROXYFIX`` is on."""
    if app.config.get("USE_PROXYFIX", True):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)  # type: ignore[method-assign]
