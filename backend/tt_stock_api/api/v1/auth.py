"""Authentication endpoints using the service layer."""

from __future__ import annotations

from flask import Blueprint, current_app, request
from marshmallow import ValidationError as MarshmallowValidationError

from tt_stock_api.api.deps import bearer_token, get_auth_service, json_response, timing
from tt_stock_api.schemas import LoginSchema, LogoutSchema, RefreshSchema, SessionSchema
from tt_stock_api.services.auth.dto import LoginIn, LogoutIn, RefreshIn

bp = Blueprint("auth", __name__)

login_schema = LoginSchema()
refresh_schema = RefreshSchema()
logout_schema = LogoutSchema()
session_schema = SessionSchema()


@bp.post("/login")
@timing
def login():
    """Verify phone number + PIN and issue an access/refresh token pair."""

    data = login_schema.load(request.get_json(silent=True) or {})
    session = get_auth_service().login(LoginIn(phone_number=data["phone_number"], pin=data["pin"]))
    return json_response({"data": session_schema.dump(session.to_dict())})


@bp.post("/refresh")
@timing
def refresh():
    """Exchange a refresh token for a new pair; the presented one is revoked."""

    data = refresh_schema.load(request.get_json(silent=True) or {})
    session = get_auth_service().refresh(RefreshIn(refresh_token=data["refresh_token"]))
    return json_response({"data": session_schema.dump(session.to_dict())})


@bp.post("/logout")
@timing
def logout():
    """Revoke the bearer access token and, if supplied, the refresh token.

    The body is optional. One that does not parse is logged and ignored, so
    the access token is still revoked.
    """

    token = bearer_token()
    try:
        refresh_token = logout_schema.load(request.get_json(silent=True) or {})["refresh_token"]
    except MarshmallowValidationError as exc:
        current_app.logger.warning(
            "Ignoring malformed logout body: %s",
            exc.messages,
            extra={"event": "auth.logout.body_ignored"},
        )
        refresh_token = None
    get_auth_service().logout(LogoutIn(access_token=token, refresh_token=refresh_token))
    return json_response({"message": "Logout successful"})
