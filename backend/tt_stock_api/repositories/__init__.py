"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from tt_stock_api.repositories.base import BaseRepository
from tt_stock_api.repositories.token_blacklist import TokenBlacklistRepository
from tt_stock_api.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "TokenBlacklistRepository",
    "UserRepository",
]
