"""Tests for the canonical Address type."""

import pytest

from evmsnap.core.address import Address

EIP55_LOWER = "0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed"
EIP55_CHECKSUM = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


def test_checksums_lowercase_input():
    assert Address(EIP55_LOWER) == EIP55_CHECKSUM


def test_case_variants_are_equal_keys():
    states = {Address(EIP55_LOWER): "state"}
    assert states[Address(EIP55_CHECKSUM.upper().replace("0X", "0x"))] == "state"


def test_accepts_missing_prefix():
    assert Address(EIP55_LOWER[2:]) == EIP55_CHECKSUM


def test_idempotent():
    address = Address(EIP55_LOWER)
    assert Address(address) is address


def test_from_stack_word_keeps_low_160_bits():
    word = (0xDEADBEEF << 160) | int(EIP55_LOWER, 16)
    assert Address.from_stack_word(word) == EIP55_CHECKSUM


def test_from_padded_word_string():
    padded = "0x" + "0" * 24 + EIP55_LOWER[2:]
    assert Address(padded) == EIP55_CHECKSUM


def test_from_bytes():
    raw = bytes.fromhex(EIP55_LOWER[2:])
    assert Address(raw) == EIP55_CHECKSUM
    assert Address(b"\x00" * 12 + raw) == EIP55_CHECKSUM
    assert Address(raw).to_bytes() == raw


def test_small_int_is_precompile_address():
    assert Address(1) == "0x0000000000000000000000000000000000000001"


@pytest.mark.parametrize("value", ["", "0x", "0xzz", "0x" + "1" * 65, -1, b"\x01\x02"])
def test_rejects_invalid(value):
    with pytest.raises(ValueError):
        Address(value)


def test_rejects_unsupported_type():
    with pytest.raises(TypeError):
        Address(1.5)


@pytest.mark.parametrize("value", [
    "0x" + "1" + "0" * 23 + EIP55_LOWER[2:],
    "0x1" + EIP55_LOWER[2:],
    "0x1234",
    b"\x01" + b"\x00" * 11 + bytes.fromhex(EIP55_LOWER[2:]),
    1 << 160,
])
def test_rejects_non_zero_high_bytes_and_odd_lengths(value):
    with pytest.raises(ValueError):
        Address(value)
