"""Parse raw hex strings into structured Mode S frames.

Responsibilities:
- Reject anything that is not exactly 28 hex characters (112 bits)
- Reject non-hex characters before any field is read
- Extract the header fields: DF, CA, ICAO address, Type Code
- Package into a ModeFrame dataclass

CRC/parity validation happens upstream; frames reaching this module are
assumed to be intact.
"""

from __future__ import annotations

import string
from dataclasses import dataclass

from .bits import (
    CA_FIELD,
    DF_FIELD,
    ICAO_FIELD,
    ME_BITS,
    ME_OFFSET,
    MESSAGE_BITS,
    TC_FIELD,
    extract_bits,
    to_bit_string,
)
from .errors import InvalidHexEncodingError, InvalidMessageLengthError

MESSAGE_HEX_CHARS = MESSAGE_BITS // 4  # 28

_HEX_DIGITS = frozenset(string.hexdigits)


# Downlink Format names
DF_INFO: dict[int, str] = {
    0: "Short air-air surveillance",
    4: "Surveillance altitude reply",
    5: "Surveillance identity reply",
    11: "All-call reply",
    16: "Long air-air surveillance",
    17: "ADS-B extended squitter",
    18: "TIS-B / ADS-R",
    19: "Military extended squitter",
    20: "Comm-B altitude reply",
    21: "Comm-B identity reply",
}

# DFs that carry an ADS-B ME field
EXTENDED_SQUITTER_DFS = frozenset({17, 18})


@dataclass(frozen=True)
class ModeFrame:
    """A parsed 112-bit Mode S frame (header decoded, payload untouched)."""

    df: int  # Downlink Format (0-31)
    capability: int  # CA (0-7)
    icao_address: int  # 24-bit address
    type_code: int  # First 5 bits of ME (0-31)
    raw: bytes  # Full 14 message bytes
    timestamp: float  # Unix timestamp of reception

    @property
    def icao(self) -> str:
        """ICAO address as 6 upper-case hex digits."""
        return f"{self.icao_address:06X}"

    @property
    def df_name(self) -> str:
        """Human-readable Downlink Format name."""
        return DF_INFO.get(self.df, f"Unknown DF{self.df}")

    @property
    def is_extended_squitter(self) -> bool:
        """True for DF17/18, the only formats whose ME field we decode."""
        return self.df in EXTENDED_SQUITTER_DFS

    @property
    def me(self) -> int:
        """Message Extended field (56 bits) as an integer."""
        return extract_bits(self.raw, ME_OFFSET, ME_BITS)

    @property
    def raw_bits(self) -> str:
        return to_bit_string(self.raw)

    def field(self, offset: int, width: int) -> int:
        """Extract an arbitrary field from this frame's bits."""
        return extract_bits(self.raw, offset, width)


def parse_frame(hex_str: str, timestamp: float = 0.0) -> ModeFrame:
    """Parse a hex string into a ModeFrame.

    Args:
        hex_str: Hex-encoded 112-bit Mode S message (case-insensitive).
        timestamp: Unix timestamp of reception.

    Raises:
        InvalidMessageLengthError: not exactly 28 characters.
        InvalidHexEncodingError: contains a non-hex character.
    """
    hex_str = hex_str.strip()

    if len(hex_str) != MESSAGE_HEX_CHARS:
        raise InvalidMessageLengthError(
            f"Message has {len(hex_str)} hex characters, expected {MESSAGE_HEX_CHARS}"
        )

    bad = next((c for c in hex_str if c not in _HEX_DIGITS), None)
    if bad is not None:
        raise InvalidHexEncodingError(f"Non-hex character {bad!r} in message {hex_str!r}")

    raw = bytes.fromhex(hex_str)

    return ModeFrame(
        df=extract_bits(raw, *DF_FIELD),
        capability=extract_bits(raw, *CA_FIELD),
        icao_address=extract_bits(raw, *ICAO_FIELD),
        type_code=extract_bits(raw, *TC_FIELD),
        raw=raw,
        timestamp=timestamp,
    )
