"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    IdentitySchema,
    LoginSchema,
    LogoutSchema,
    ProfileSchema,
    RefreshSchema,
    SessionSchema,
)

__all__ = [
    "IdentitySchema",
    "LoginSchema",
    "LogoutSchema",
    "ProfileSchema",
    "RefreshSchema",
    "SessionSchema",
]
