"""Bit-field extraction from 112-bit Mode S messages.

All field access goes through extract_bits(). Offsets are 0-indexed from the
first (most significant) bit of the message.

Field layout (DF17/18 extended squitter):
- DF    [0, 5)    Downlink Format
- CA    [5, 8)    Capability
- ICAO  [8, 32)   Aircraft address
- ME    [32, 88)  Message Extended field (first 5 bits = Type Code)
- PI    [88, 112) Parity / interrogator ID
"""

from __future__ import annotations

from .errors import OutOfRangeError

MESSAGE_BITS = 112

# (offset, width) pairs
DF_FIELD = (0, 5)
CA_FIELD = (5, 3)
ICAO_FIELD = (8, 24)
TC_FIELD = (32, 5)
ME_OFFSET = 32
ME_BITS = 56


def extract_bits(raw: bytes, offset: int, width: int) -> int:
    """Return the unsigned integer formed by `width` bits starting at `offset`.

    Bits are read most-significant first.

    Raises:
        OutOfRangeError: if the field does not lie inside the 112-bit message.
    """
    total = len(raw) * 8
    if offset < 0 or width < 0 or offset + width > MESSAGE_BITS or offset + width > total:
        raise OutOfRangeError(
            f"Bit range [{offset}:{offset + width}] exceeds {min(total, MESSAGE_BITS)}-bit message"
        )
    if width == 0:
        return 0

    value = int.from_bytes(raw, "big")
    shift = total - offset - width
    return (value >> shift) & ((1 << width) - 1)


def to_bit_string(raw: bytes) -> str:
    """Render message bytes as a string of '0'/'1' characters."""
    return "".join(f"{b:08b}" for b in raw)
