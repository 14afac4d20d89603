"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, Final
from urllib.parse import quote_plus

from dotenv import load_dotenv

# Public selector env var
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

MIN_JWT_SECRET_LENGTH: Final[int] = 32
MIN_DB_PASSWORD_LENGTH: Final[int] = 8

# Load .env during development (no-op when the file is absent)
load_dotenv()


class ConfigurationError(RuntimeError):
    """Raised at start-up when required settings are missing or unsafe.

    :param problems: One human-readable message per offending variable.
    :type problems: list[str]
    """

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        lines = "\n".join(f"- {p}" for p in self.problems)
        super().__init__(f"Environment configuration error:\n{lines}")


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer environment variable, falling back on bad input."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    try:
        return int(val)
    except ValueError:
        return default


def build_database_url() -> str:
    """Return the SQLAlchemy database URL.

    ``DATABASE_URL`` wins when set. Otherwise, when ``DB_HOST`` is present, a
    PostgreSQL URL is assembled from the ``DB_*`` parts (the Docker layout);
    the password is URL-encoded so special characters survive. Without either,
    a local SQLite file is used.
    """
    explicit = os.getenv("DATABASE_URL")
    if explicit:
        return explicit
    if not os.getenv("DB_HOST"):
        return "sqlite:///./dev.db"

    host = os.getenv("DB_HOST", "localhost")
    port = os.getenv("DB_PORT", "5432")
    user = os.getenv("DB_USER", "postgres")
    password = quote_plus(os.getenv("DB_PASSWORD", ""))
    name = os.getenv("DB_NAME", "tt_stock_db")
    sslmode = os.getenv("DB_SSLMODE", "disable")
    return f"postgresql+psycopg://{user}:{password}@{host}:{port}/{name}?sslmode={sslmode}"


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    JWT_SECRET_KEY: str
        Shared HMAC secret handed to the token engine at construction time.
    JWT_ISSUER: str
        ``iss`` claim written into (and required on) every token.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    REDIS_URL: str | None
        Optional Redis connection string; required when
        ``BLACKLIST_BACKEND == "redis"``.
    BLACKLIST_BACKEND: str
        ``"database"`` (durable table, default) or ``"redis"`` (TTL keys).
    BCRYPT_ROUNDS: int
        bcrypt work factor for PIN hashes.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.
    VALIDATE_ENV: bool
        When ``True`` the factory runs :func:`validate_config` at start-up.
    """

    API_BASE_PREFIX = "/api"
    APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
    APP_ENV = os.getenv(ENV_VAR, "development")

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET", os.getenv("JWT_SECRET_KEY", "CHANGE_ME_JWT"))
    JWT_ISSUER = os.getenv("JWT_ISSUER", "tt-stock-api")
    BCRYPT_ROUNDS = env_int("BCRYPT_ROUNDS", 12)

    # DB
    SQLALCHEMY_DATABASE_URI = build_database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    SQLALCHEMY_ENGINE_OPTIONS: dict[str, Any] = {"pool_pre_ping": True}

    # Token blacklist
    BLACKLIST_BACKEND = os.getenv("BLACKLIST_BACKEND", "database").strip().lower()
    REDIS_URL = os.getenv("REDIS_URL")
    REDIS_SOCKET_TIMEOUT = float(os.getenv("REDIS_SOCKET_TIMEOUT", "2.0"))

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging, CORS & proxy
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    CORS_MAX_AGE = 600
    USE_PROXYFIX = env_bool("USE_PROXYFIX", True)

    VALIDATE_ENV = False
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development."""

    DEBUG = env_bool("FLASK_DEBUG", True)


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Keeps bcrypt cheap and never touches Redis.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ENGINE_OPTIONS: dict[str, Any] = {}
    JWT_SECRET_KEY = "testing-secret-key-with-at-least-32-chars"
    BCRYPT_ROUNDS = 4
    BLACKLIST_BACKEND = "database"
    REDIS_URL = None
    USE_PROXYFIX = False
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Start-up fails fast through :func:`validate_config` when secrets are
    missing or too short.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    SQLALCHEMY_ENGINE_OPTIONS: dict[str, Any] = {
        "pool_pre_ping": True,
        "pool_timeout": env_int("DB_POOL_TIMEOUT", 10),
    }
    PROPAGATE_EXCEPTIONS = False
    VALIDATE_ENV = True


CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def validate_config(config: Mapping[str, Any], environ: Mapping[str, str] | None = None) -> None:
    """Validate security-relevant settings, collecting every problem.

    :param config: Loaded Flask config (or any mapping with the same keys).
    :param environ: Environment used to decide whether the DB URL was built
        from ``DB_*`` parts. Defaults to :data:`os.environ`.
    :raises ConfigurationError: When at least one setting is invalid.
    """
    env = os.environ if environ is None else environ
    problems: list[str] = []

    secret = str(config.get("JWT_SECRET_KEY") or "")
    if not secret or secret == "CHANGE_ME_JWT":
        problems.append("JWT_SECRET_KEY is required and must be set (no default in production)")
    elif len(secret) < MIN_JWT_SECRET_LENGTH:
        problems.append(
            f"JWT_SECRET_KEY must be at least {MIN_JWT_SECRET_LENGTH} characters long"
        )

    if not env.get("DATABASE_URL"):
        password = env.get("DB_PASSWORD", "")
        if not password:
            problems.append("DB_PASSWORD is required and must be set (no default in production)")
        elif len(password) < MIN_DB_PASSWORD_LENGTH:
            problems.append(
                f"DB_PASSWORD must be at least {MIN_DB_PASSWORD_LENGTH} characters long"
            )
        for name, description in (
            ("DB_HOST", "database host"),
            ("DB_NAME", "database name"),
            ("DB_USER", "database user"),
        ):
            if not env.get(name):
                problems.append(f"{name} is required ({description})")

    backend = str(config.get("BLACKLIST_BACKEND", "database"))
    if backend not in {"database", "redis"}:
        problems.append("BLACKLIST_BACKEND must be 'database' or 'redis'")
    elif backend == "redis" and not config.get("REDIS_URL"):
        problems.append("REDIS_URL is required when BLACKLIST_BACKEND is 'redis'")

    if problems:
        raise ConfigurationError(problems)
