from __future__ import annotations

from typing import Protocol


class PinHasher(Protocol):
    """One-way salted hash for PINs."""

    def hash(self, pin: str) -> str: ...

    def verify(self, pin: str, pin_hash: str) -> bool:
        """Return True when ``pin`` matches ``pin_hash``; never raises on mismatch."""
