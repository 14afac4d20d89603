"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never import Flask or HTTP
helpers. They are the stable contract between adapters, repositories and
application services.

The translation to HTTP responses (RFC 7807) is handled by
``tt_stock_api/core/errors.py`` via ``BaseService.translate_exceptions()``.

Hierarchy
---------
::

    ServiceError
    ├── ValidationError
    ├── AuthenticationError
    │   ├── InvalidTokenError
    │   │   └── TokenExpiredError
    │   ├── TokenRevokedError
    │   └── WrongTokenTypeError
    ├── InternalError
    │   └── TokenSigningError
    └── StoreError
"""

from __future__ import annotations

# --------------------------------------------------------------------------- #
# Base type
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The API layer translates them through ``BaseService.translate_exceptions``.
    """

    default_message = "Service error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# --------------------------------------------------------------------------- #
# Caller errors
# --------------------------------------------------------------------------- #


class ValidationError(ServiceError):
    """Malformed input (shape or format). Safe to echo back to the caller."""

    default_message = "Validation failed"


class AuthenticationError(ServiceError):
    """
    Bad credentials or an unusable token.

    Credential failures always use the generic ``"invalid credentials"``
    message so callers cannot tell unknown phone numbers from wrong PINs.
    """

    default_message = "invalid credentials"


class InvalidTokenError(AuthenticationError):
    """Token is empty, malformed, wrongly signed or carries bad claims."""

    default_message = "invalid token"


class TokenExpiredError(InvalidTokenError):
    """Token is structurally valid but past its ``exp``; a refresh may help."""

    default_message = "token has expired"


class TokenRevokedError(AuthenticationError):
    """Token was blacklisted; the client must sign in again."""

    default_message = "token has been invalidated"


class WrongTokenTypeError(AuthenticationError):
    """An access token was used where a refresh token is required, or vice versa.

    :param required: Kind demanded by the operation.
    :type required: str
    :param actual: Kind carried by the token.
    :type actual: str
    """

    def __init__(self, required: str, actual: str) -> None:
        self.required = required
        self.actual = actual
        super().__init__(f"invalid token type: {required} token required")


# --------------------------------------------------------------------------- #
# Infrastructure errors
# --------------------------------------------------------------------------- #


class InternalError(ServiceError):
    """Infrastructure failure (store, signer). Opaque to the caller."""

    default_message = "internal error"


class TokenSigningError(InternalError):
    """The token signer is misconfigured and cannot produce tokens."""

    default_message = "failed to sign token"


class StoreError(ServiceError):
    """
    A persistence adapter (database, Redis) failed.

    Adapters wrap driver exceptions in this type; services decide whether it
    surfaces as :class:`InternalError` or is collapsed into a generic failure.
    """

    default_message = "store unavailable"
