"""Factory Boy definition for :class:`tt_stock_api.models.user.User`."""

from __future__ import annotations

import factory

from tests.factories import BaseFactory
from tt_stock_api.infra.security.bcrypt_pin_hasher import BcryptPinHasher
from tt_stock_api.models.user import User

DEFAULT_PIN = "123456"

_hasher = BcryptPinHasher(rounds=4)


class UserFactory(BaseFactory):
    """
    Build persisted :class:`tt_stock_api.models.user.User` instances.

    Notes
    -----
    - Pass ``pin="654321"`` to choose the PIN; the factory stores its bcrypt
      hash, never the raw value.
    """

    class Meta:
        model = User

    phone_number = factory.Sequence(lambda n: f"08{n:08d}")
    pin_hash = factory.LazyFunction(lambda: _hasher.hash(DEFAULT_PIN))

    @factory.post_generation
    def pin(obj, create, extracted, **kwargs):
        """Hash an explicit PIN onto the instance."""
        if extracted:
            obj.pin_hash = _hasher.hash(extracted)
