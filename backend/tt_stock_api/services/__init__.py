"""Service layer public API.

This package exposes the essential building blocks for the service layer so that
callers can import from :mod:`tt_stock_api.services` without knowing internal
structure.

Re-exports
----------
- Base primitives (from ``tt_stock_api.services._shared.base``)
    * :class:`BaseService`
    * :class:`ServiceContext`

- Auth service (from ``tt_stock_api.services.auth``)
    * :class:`AuthService`
    * DTOs: :class:`LoginIn`, :class:`RefreshIn`, :class:`LogoutIn`,
      :class:`IdentityOut`, :class:`TokenPairOut`, :class:`SessionOut`
"""

from __future__ import annotations

from ._shared.base import BaseService, ServiceContext
from .auth.dto import IdentityOut, LoginIn, LogoutIn, RefreshIn, SessionOut, TokenPairOut
from .auth.service import AuthService

__all__ = [
    "AuthService",
    "BaseService",
    "IdentityOut",
    "LoginIn",
    "LogoutIn",
    "RefreshIn",
    "ServiceContext",
    "SessionOut",
    "TokenPairOut",
]
