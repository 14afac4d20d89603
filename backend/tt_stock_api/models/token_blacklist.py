"""Persistent record of tokens revoked before their natural expiry."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, Index, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from tt_stock_api.core.extensions import db

from .base import PKMixin, ReprMixin


class TokenBlacklistEntry(PKMixin, ReprMixin, db.Model):
    """
    One revoked token.

    ``token_key`` is the SHA-256 digest of the exact token string, so the
    row identifies the token without storing a usable bearer credential.
    Rows are never updated; they may be deleted once ``expires_at`` passes.
    """

    __tablename__ = "token_blacklist"

    token_key: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    token_type: Mapped[str] = mapped_column(String(16), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    blacklisted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_token_blacklist_user_id", "user_id"),
        Index("ix_token_blacklist_expires_at", "expires_at"),
    )
