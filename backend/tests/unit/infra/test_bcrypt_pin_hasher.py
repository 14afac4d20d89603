# tests/unit/infra/test_bcrypt_pin_hasher.py
from __future__ import annotations

import pytest

from tt_stock_api.infra.security.bcrypt_pin_hasher import BcryptPinHasher


def test_hash_is_salted_and_verifiable(pin_hasher):
    first = pin_hasher.hash("123456")
    second = pin_hasher.hash("123456")

    assert first != second
    assert first.startswith("$2")
    assert "123456" not in first
    assert pin_hasher.verify("123456", first)
    assert pin_hasher.verify("123456", second)


def test_wrong_pin_does_not_verify(pin_hasher):
    assert not pin_hasher.verify("654321", pin_hasher.hash("123456"))


@pytest.mark.parametrize(
    ("pin", "pin_hash"),
    [("", "$2b$04$abc"), ("123456", ""), ("123456", "not-a-bcrypt-hash")],
)
def test_degenerate_inputs_never_raise(pin_hasher, pin, pin_hash):
    assert pin_hasher.verify(pin, pin_hash) is False


def test_work_factor_is_encoded_in_hash():
    assert BcryptPinHasher(rounds=5).hash("123456").split("$")[2] == "05"


def test_default_work_factor():
    assert BcryptPinHasher().rounds == 12
