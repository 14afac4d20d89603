"""Credential format policies shared by the service layer and the models."""

from __future__ import annotations

import re
from typing import Final

from tt_stock_api.services._shared.errors import ValidationError

# Thai mobile numbers: a leading 0 followed by 9 digits.
PHONE_NUMBER_PATTERN: Final[re.Pattern[str]] = re.compile(r"^0[0-9]{9}$")
PIN_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[0-9]{6}$")


def is_valid_phone_number(value: str | None) -> bool:
    """Return True if ``value`` is a 10-digit number starting with ``0``."""
    return isinstance(value, str) and PHONE_NUMBER_PATTERN.fullmatch(value) is not None


def check_phone_number(value: str | None) -> None:
    """
    Validate a login phone number.

    :raises ValidationError: ``"phone number is required"`` when empty,
        a format message otherwise.
    """
    if not value:
        raise ValidationError("phone number is required")
    if not is_valid_phone_number(value):
        raise ValidationError("invalid phone number format: must be 10 digits starting with 0")


def check_pin(value: str | None) -> None:
    """
    Validate a 6-digit PIN.

    :raises ValidationError: ``"PIN is required"`` when empty, a format
        message otherwise.
    """
    if not value:
        raise ValidationError("PIN is required")
    if not isinstance(value, str) or PIN_PATTERN.fullmatch(value) is None:
        raise ValidationError("invalid PIN format: must be exactly 6 digits")
