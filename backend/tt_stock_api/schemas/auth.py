"""Authentication-related Marshmallow schemas.

Format rules (phone pattern, PIN length) are enforced by the service so the
error messages stay identical across every entry point; these schemas only
shape the payload.
"""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate


class LoginSchema(Schema):
    """Input payload for ``POST /auth/login``."""

    class Meta:
        unknown = EXCLUDE

    phone_number = fields.String(load_default="")
    pin = fields.String(load_default="", load_only=True)


class RefreshSchema(Schema):
    """Input payload for ``POST /auth/refresh``."""

    class Meta:
        unknown = EXCLUDE

    refresh_token = fields.String(
        required=True,
        validate=validate.Length(min=1, error="refresh token is required"),
        error_messages={"required": "refresh token is required"},
    )


class LogoutSchema(Schema):
    """Optional body of ``POST /auth/logout``."""

    class Meta:
        unknown = EXCLUDE

    refresh_token = fields.String(load_default=None, allow_none=True)


class IdentitySchema(Schema):
    """Public view of an authenticated identity."""

    id = fields.UUID(required=True)
    phone_number = fields.String(required=True)


class SessionSchema(Schema):
    """Response payload of login and refresh."""

    access_token = fields.String(required=True)
    refresh_token = fields.String(required=True)
    token_type = fields.String(required=True)
    expires_in = fields.Integer(required=True)
    user = fields.Nested(IdentitySchema, required=True)


class ProfileSchema(Schema):
    """Claims echoed by ``GET /protected/profile``."""

    user_id = fields.UUID(required=True)
    phone_number = fields.String(required=True)
