"""
Canonical account addresses.

Nodes hand out addresses in several shapes: checksummed or lowercase hex
strings, raw 20-byte values, and 32-byte stack words whose low 160 bits hold
the address. Every address-keyed map in evmsnap is keyed by ``Address`` so
that all of these compare equal.
"""

from typing import Union

from eth_utils import is_hex, to_checksum_address

ADDRESS_MASK = (1 << 160) - 1

AddressLike = Union[str, bytes, int]


class Address(str):
    """An EIP-55 checksummed account address.

    ``Address`` is a ``str`` so it can be used directly as a dict key and
    serialized without conversion. The constructor is the only normalizing
    step; it is idempotent.
    """

    __slots__ = ()

    def __new__(cls, value: AddressLike) -> "Address":
        if isinstance(value, Address):
            return value
        return super().__new__(cls, _normalize(value))

    @classmethod
    def from_stack_word(cls, word: int) -> "Address":
        """Take the low 160 bits of a 256-bit stack word."""
        return cls(int(word) & ADDRESS_MASK)

    def to_bytes(self) -> bytes:
        return bytes.fromhex(self[2:])

    def __repr__(self) -> str:
        return f"Address({str.__repr__(self)})"


def _normalize(value: AddressLike) -> str:
    if isinstance(value, bool):
        raise ValueError(f"Invalid address: {value!r}")

    if isinstance(value, int):
        if value < 0 or value > ADDRESS_MASK:
            raise ValueError(f"Invalid address: {value}")
        return to_checksum_address(value.to_bytes(20, 'big'))

    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
        if len(raw) == 32:
            if any(raw[:12]):
                raise ValueError(f"Invalid address: high bytes set in {raw.hex()}")
            raw = raw[-20:]
        if len(raw) != 20:
            raise ValueError(f"Invalid address: expected 20 or 32 bytes, got {len(raw)}")
        return to_checksum_address(raw)

    if isinstance(value, str):
        text = value.strip()
        if not text.startswith(('0x', '0X')):
            text = '0x' + text
        if not is_hex(text):
            raise ValueError(f"Invalid address: {value!r}")
        digits = text[2:].lower()
        # A left-padded 32-byte word is accepted only when the padding is zero
        if len(digits) == 64 and not digits[:24].strip('0'):
            digits = digits[24:]
        if len(digits) != 40:
            raise ValueError(f"Invalid address: {value!r}")
        return to_checksum_address('0x' + digits)

    raise TypeError(f"Cannot build an address from {type(value).__name__}")
