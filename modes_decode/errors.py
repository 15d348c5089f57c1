"""Typed decode failures.

Parse errors (hex, length, bit range) mean the message is unusable.
Payload errors mean the ME field holds a value we refuse to guess at.
CPR errors are recoverable: the track keeps buffering and the next frame
may resolve.
"""

from __future__ import annotations


class DecodeError(ValueError):
    """Base class for every decode failure."""


# --- Parse errors ---


class InvalidHexEncodingError(DecodeError):
    """Message contains a character that is not a hex digit."""


class InvalidMessageLengthError(DecodeError):
    """Message is not exactly 28 hex characters (112 bits)."""


class OutOfRangeError(DecodeError):
    """Bit field extends past the end of the message."""


# --- Payload errors ---


class UnsupportedTypeCodeError(DecodeError):
    """No payload decoder exists for this DF/TC combination."""

    message = "No payload decoder for DF{df} TC{type_code}"

    def __init__(self, df: int, type_code: int):
        super().__init__(self.message.format(df=df, type_code=type_code))
        self.df = df
        self.type_code = type_code


class InvalidCallsignCharacterError(DecodeError):
    """6-bit callsign code outside the ICAO character set."""

    def __init__(self, value: int, index: int):
        super().__init__(f"Invalid callsign character code {value} at position {index}")
        self.value = value
        self.index = index


class UnknownCategoryError(DecodeError):
    """Emitter category not assigned for this type code."""

    def __init__(self, type_code: int, category: int):
        super().__init__(f"No wake category for TC{type_code} CA{category}")
        self.type_code = type_code
        self.category = category


class NoPositionPayloadError(UnsupportedTypeCodeError):
    """A position was asked of a message type that does not carry one."""

    message = "DF{df} TC{type_code} carries no airborne position"


# --- CPR errors ---


class CprError(DecodeError):
    """Position could not be resolved from the buffered CPR frames."""


class IncompleteCprPairError(CprError):
    """Only one CPR format has been received for this aircraft."""


class StaleCprPairError(CprError):
    """Even and odd frames are too far apart in time to pair."""


class CprZoneMismatchError(CprError):
    """Even and odd latitudes fall in different longitude zone counts."""


class InvalidCprLatitudeError(CprError):
    """Decoded latitude falls outside -90..90 degrees."""


class NoReferencePositionError(CprError):
    """Local decode needs a recent resolved position and there is none."""
