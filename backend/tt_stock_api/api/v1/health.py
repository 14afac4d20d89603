"""Liveness, readiness and health endpoints (mounted at the application root)."""

from __future__ import annotations

import time
from datetime import UTC, datetime

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from tt_stock_api.api.deps import json_response, timing
from tt_stock_api.core.errors import ServiceUnavailable
from tt_stock_api.core.extensions import db

bp = Blueprint("health", __name__)

_STARTED_AT = time.monotonic()


def _check_database() -> tuple[bool, float]:
    """Run ``SELECT 1``; return ``(ok, elapsed_ms)``."""

    start = time.perf_counter()
    try:
        db.session.execute(text("SELECT 1"))
        ok = True
    except SQLAlchemyError:
        current_app.logger.exception("healthcheck.db_error", extra={"event": "health.db_error"})
        db.session.rollback()
        ok = False
    return ok, round((time.perf_counter() - start) * 1000, 2)


@bp.get("/health")
@timing
def healthcheck():
    """Return application and database health information (503 when the DB is down)."""

    db_ok, db_ms = _check_database()
    payload = {
        "status": "healthy" if db_ok else "unhealthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "version": current_app.config.get("APP_VERSION", "dev"),
        "environment": current_app.config.get("APP_ENV", "development"),
        "uptime_seconds": round(time.monotonic() - _STARTED_AT, 3),
        "database": {
            "status": "healthy" if db_ok else "unhealthy",
            "response_time_ms": db_ms,
        },
    }
    return json_response(payload, status=200 if db_ok else 503)


@bp.get("/ready")
def readiness():
    """Ready to serve only when the database answers."""

    db_ok, _ = _check_database()
    if not db_ok:
        raise ServiceUnavailable("Database is not reachable", code="service_not_ready")
    return json_response({"status": "ready"})


@bp.get("/live")
def liveness():
    """The process is up and answering requests."""

    return json_response({"status": "alive"})
