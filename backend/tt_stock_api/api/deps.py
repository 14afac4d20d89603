"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar, cast

from flask import Response, current_app, g, jsonify, request

from tt_stock_api.core.errors import Unauthorized
from tt_stock_api.services._shared.ports import TokenClaims, TokenKind
from tt_stock_api.services.auth.service import AuthService

F = TypeVar("F", bound=Callable[..., Any])

BEARER_PREFIX = "Bearer "


def get_auth_service() -> AuthService:
    """Return the :class:`AuthService` built for the current application."""

    return cast(AuthService, current_app.extensions["auth_service"])


def bearer_token() -> str:
    """Extract the token from ``Authorization: Bearer <token>``.

    :raises Unauthorized: When the header is missing or not a bearer token.
    """

    header = request.headers.get("Authorization", "")
    if not header:
        raise Unauthorized("Authorization header required")
    if not header.startswith(BEARER_PREFIX) or not header[len(BEARER_PREFIX) :].strip():
        raise Unauthorized("Invalid authorization header format")
    return header[len(BEARER_PREFIX) :].strip()


def require_access_token(func: F) -> F:
    """Ensure the request carries a valid, non-revoked access token.

    Verified claims are exposed to the view as ``g.token_claims``.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        token = bearer_token()
        g.token_claims = get_auth_service().validate_and_authorize(token, TokenKind.ACCESS)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def current_claims() -> TokenClaims:
    """Return the claims stored by :func:`require_access_token`."""

    return cast(TokenClaims, g.token_claims)


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
