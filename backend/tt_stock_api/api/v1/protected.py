"""Example resource guarded by an access token."""

from __future__ import annotations

from flask import Blueprint

from tt_stock_api.api.deps import current_claims, json_response, require_access_token, timing
from tt_stock_api.schemas import ProfileSchema

bp = Blueprint("protected", __name__)

profile_schema = ProfileSchema()


@bp.get("/profile")
@timing
@require_access_token
def profile():
    """Return the identity carried by the caller's access token."""

    claims = current_claims()
    body = profile_schema.dump({"user_id": claims.user_id, "phone_number": claims.phone_number})
    return json_response({"data": body})
