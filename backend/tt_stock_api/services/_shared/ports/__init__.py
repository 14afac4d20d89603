"""
tt_stock_api.services._shared.ports
===================================

*Ports* (hexagonal interfaces) for the authentication infrastructure.

These ports decouple the service layer from concrete token signing, PIN
hashing and revocation storage.

Modules
-------
- :mod:`token_engine`:
    :class:`~.TokenKind`, :class:`~.TokenClaims` and :class:`~.TokenEngine`.

- :mod:`blacklist_store`:
    :class:`~.TokenBlacklistStore` plus the in-memory double used by tests.

- :mod:`pin_hasher`:
    :class:`~.PinHasher`, salted one-way PIN hashing.

Concrete adapters live under ``tt_stock_api.infra``.
"""

from __future__ import annotations

from .blacklist_store import (
    BlacklistEntryView,
    InMemoryTokenBlacklistStore,
    TokenBlacklistStore,
    token_digest,
)
from .pin_hasher import PinHasher
from .token_engine import (
    ACCESS_TOKEN_TTL_SECONDS,
    TOKEN_TTLS,
    TokenClaims,
    TokenEngine,
    TokenKind,
)

__all__ = [
    "ACCESS_TOKEN_TTL_SECONDS",
    "TOKEN_TTLS",
    "BlacklistEntryView",
    "InMemoryTokenBlacklistStore",
    "PinHasher",
    "TokenBlacklistStore",
    "TokenClaims",
    "TokenEngine",
    "TokenKind",
    "token_digest",
]
