from __future__ import annotations

from dataclasses import dataclass

import bcrypt

from tt_stock_api.services._shared.ports import PinHasher


@dataclass(frozen=True, slots=True)
class BcryptPinHasher(PinHasher):
    """
    bcrypt-backed PIN hasher.

    :param rounds: bcrypt work factor (log2 of iterations). 12 in production,
        the library minimum (4) keeps tests fast.
    """

    rounds: int = 12

    def hash(self, pin: str) -> str:
        # bcrypt generates a fresh salt per hash.
        return bcrypt.hashpw(pin.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("ascii")

    def verify(self, pin: str, pin_hash: str) -> bool:
        if not pin or not pin_hash:
            return False
        try:
            return bcrypt.checkpw(pin.encode("utf-8"), pin_hash.encode("ascii"))
        except ValueError:
            # Corrupt or non-bcrypt hash in storage.
            return False
