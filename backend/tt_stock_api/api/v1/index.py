"""API root listing the available endpoints."""

from __future__ import annotations

from flask import Blueprint, current_app

from tt_stock_api.api.deps import json_response

bp = Blueprint("index", __name__)

ENDPOINTS = {
    "login": "POST /auth/login",
    "refresh": "POST /auth/refresh",
    "logout": "POST /auth/logout",
    "profile": "GET /protected/profile",
}


@bp.get("/")
def index():
    """Describe the service and its routes (relative to this prefix)."""

    payload = {
        "name": "TT Stock API",
        "version": current_app.config.get("APP_VERSION", "dev"),
        "endpoints": ENDPOINTS,
    }
    return json_response(payload)
