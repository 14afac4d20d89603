"""Credential model: who may sign in, and with which PIN hash."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, validates

from tt_stock_api.core.extensions import db

from .base import ReprMixin, TimestampMixin, UUIDPKMixin


class User(UUIDPKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Authentication identity and its stored credential.

    Users are created out-of-band by an administrator (``flask users
    create``); the API only reads them and stamps ``last_login_at``.

    Fields
    ------
    id : uuid.UUID
        Immutable identifier (from mixin).
    phone_number : str
        Login key, ``^0[0-9]{9}$``, unique.
    pin_hash : str
        bcrypt hash of the PIN. The raw PIN is never stored.
    last_login_at : datetime | None
        Last successful authentication.
    created_at, updated_at : datetime
        Row timestamps (from mixin).
    """

    __tablename__ = "users"

    phone_number: Mapped[str] = mapped_column(String(10), nullable=False)
    pin_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (UniqueConstraint("phone_number", name="uq_users_phone_number"),)

    @property
    def pin(self) -> Any:  # pragma: no cover - explicit write-only contract
        """PINs are never readable from the model."""
        raise AttributeError("PIN is write-only; store a hash via pin_hash.")

    @validates("phone_number")
    def _validate_phone_number(self, key: str, value: str) -> str:
        """
        Trim and validate the phone number.

        :raises ValueError: If the value is not a 10-digit number starting with 0.
        """
        from tt_stock_api.services._shared.policies.credentials import is_valid_phone_number

        v = value.strip() if isinstance(value, str) else value
        if not is_valid_phone_number(v):
            raise ValueError("Phone number must be 10 digits starting with 0.")
        return v

    @validates("pin_hash")
    def _validate_pin_hash(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value:
            raise ValueError("PIN hash must be a non-empty string.")
        return value
