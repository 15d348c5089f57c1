"""Decode Mode S frames into typed aircraft messages.

Handles the extended squitter subset (DF17/18):
- TC 1-4:   Aircraft identification (callsign + wake turbulence category)
- TC 9-18:  Airborne position (barometric alt + CPR-encoded lat/lon)
- TC 20-22: Airborne position (GNSS altitude, not decoded)

Every other DF/TC is decoded at the header level only (DF, CA, ICAO, TC).

Output: ModeSMessage dataclass.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from .bits import to_bit_string
from .config import load_config
from .cpr import CprFrame
from .errors import (
    CprError,
    InvalidCallsignCharacterError,
    NoPositionPayloadError,
    UnknownCategoryError,
    UnsupportedTypeCodeError,
)
from .frame_parser import ModeFrame, parse_frame
from .tracker import AircraftTrack, PositionResolver


class MessageKind(enum.Enum):
    """Which payload decoder a frame is routed to."""

    IDENTIFICATION = "identification"
    AIRBORNE_POSITION = "airborne_position"
    HEADER_ONLY = "header_only"


@dataclass(frozen=True)
class PositionReport:
    """TC 9-18/20-22: Airborne position fields."""

    surveillance_status: int
    altitude_ft: int | None  # None for GNSS altitude or unavailable
    cpr: CprFrame


@dataclass(frozen=True)
class ModeSMessage:
    """One decoded downlink message."""

    df: int
    capability: int
    icao_address: int
    type_code: int
    kind: MessageKind
    raw: bytes
    timestamp: float = 0.0

    # TC 1-4
    callsign: str | None = None
    wake_category: str | None = None

    # TC 9-18/20-22
    altitude_ft: int | None = None
    surveillance_status: int | None = None
    cpr: CprFrame | None = None
    position: tuple[float, float] | None = None
    position_error: CprError | None = field(default=None, compare=False)

    @property
    def icao(self) -> str:
        """ICAO address as 6 upper-case hex digits."""
        return f"{self.icao_address:06X}"

    @property
    def raw_bits(self) -> str:
        """The original 112-bit message as a '0'/'1' string."""
        return to_bit_string(self.raw)

    def require_position(self) -> tuple[float, float]:
        """Return the resolved position or raise why it is missing.

        Raises:
            CprError: the position message could not be resolved; this is
                the error stored in position_error.
            NoPositionPayloadError: the message is not an airborne position
                (identification or header only).
        """
        if self.position is not None:
            return self.position
        if self.position_error is not None:
            raise self.position_error
        raise NoPositionPayloadError(self.df, self.type_code)


# --- Wake turbulence category ---

_WAKE_CATEGORIES: dict[tuple[int, int], str] = {
    (2, 1): "Surface emergency vehicle",
    (2, 3): "Surface service vehicle",
    (2, 4): "Ground obstruction",
    (2, 5): "Ground obstruction",
    (2, 6): "Ground obstruction",
    (2, 7): "Ground obstruction",
    (3, 1): "Glider, sailplane",
    (3, 2): "Lighter-than-air",
    (3, 3): "Parachutist, skydiver",
    (3, 4): "Ultralight, hang-glider, paraglider",
    (3, 5): "Reserved",
    (3, 6): "Unmanned aerial vehicle",
    (3, 7): "Space or transatmospheric vehicle",
    (4, 1): "Light (less than 7000 kg)",
    (4, 2): "Medium 1 (between 7000 kg and 34000 kg)",
    (4, 3): "Medium 2 (between 34000 kg and 136000 kg)",
    (4, 4): "High vortex aircraft",
    (4, 5): "Heavy (larger than 136000 kg)",
    (4, 6): "High performance (>5 g acceleration and high speed (>400 kt))",
    (4, 7): "Rotorcraft",
}


def wake_category(type_code: int, category: int) -> str:
    """Map (TC, emitter category) to a wake turbulence description.

    TC 1 is reserved regardless of category; category 0 means the aircraft
    did not report one.

    Raises:
        UnknownCategoryError: the pair has no assigned meaning.
    """
    if type_code == 1:
        return "Reserved"
    if category == 0:
        return "No category information"
    try:
        return _WAKE_CATEGORIES[(type_code, category)]
    except KeyError:
        raise UnknownCategoryError(type_code, category) from None


# --- Callsign decoding ---


def decode_callsign_char(value: int, index: int = 0) -> str:
    """Decode one 6-bit ICAO character code."""
    if 1 <= value <= 26:
        return chr(value + 64)
    if 48 <= value <= 57 or value == 32:
        return chr(value)
    raise InvalidCallsignCharacterError(value, index)


# --- Altitude decoding ---


def decode_altitude(alt_code: int) -> int | None:
    """Decode 12-bit altitude code from DF17 airborne position.

    The 12-bit altitude field uses two encoding modes based on the Q-bit
    (bit index 4 from LSB in the 12-bit field).

    Returns altitude in feet, or None if not available.
    """
    if alt_code == 0:
        return None

    q_bit = (alt_code >> 4) & 1

    if q_bit:
        # 25-ft resolution mode: remove the Q-bit to get the 11-bit altitude code
        n = ((alt_code >> 5) << 4) | (alt_code & 0x0F)
        return n * 25 - 1000

    # 100-ft Gillham gray code is rare in ADS-B and not decoded
    return None


# --- Classification ---


def classify(frame: ModeFrame, require_payload: bool = False) -> MessageKind:
    """Route a frame to its payload decoder by DF and TC.

    Raises:
        UnsupportedTypeCodeError: only when require_payload is set and the
            frame would otherwise be HEADER_ONLY.
    """
    if frame.is_extended_squitter:
        tc = frame.type_code
        if 1 <= tc <= 4:
            return MessageKind.IDENTIFICATION
        if 9 <= tc <= 18 or 20 <= tc <= 22:
            return MessageKind.AIRBORNE_POSITION

    if require_payload:
        raise UnsupportedTypeCodeError(frame.df, frame.type_code)
    return MessageKind.HEADER_ONLY


# --- Payload decoders ---


def decode_identification(frame: ModeFrame) -> tuple[str, str]:
    """Decode TC 1-4: Aircraft identification.

    ME field layout (56 bits, message bits 32-87):
    - TC (5 bits): Type code 1-4
    - CA (3 bits): Emitter category
    - Callsign (48 bits): 8 characters x 6 bits each

    Returns:
        (callsign, wake_category). The callsign is always 8 characters;
        trailing spaces are kept.
    """
    tc = frame.field(32, 5)
    category = frame.field(37, 3)
    wake = wake_category(tc, category)

    chars = [decode_callsign_char(frame.field(40 + i * 6, 6), i) for i in range(8)]
    return "".join(chars), wake


def decode_position(frame: ModeFrame) -> PositionReport:
    """Decode TC 9-18/20-22: Airborne position.

    ME field layout (message bits):
    - TC (32-36): Type code
    - SS (37-38): Surveillance status
    - SAF (39): Single antenna flag
    - ALT (40-51): Altitude code
    - T (52): UTC sync flag
    - F (53): CPR format (0=even, 1=odd)
    - LAT_CPR (54-70): CPR latitude
    - LON_CPR (71-87): CPR longitude
    """
    altitude_ft = None
    if 9 <= frame.type_code <= 18:
        altitude_ft = decode_altitude(frame.field(40, 12))

    return PositionReport(
        surveillance_status=frame.field(37, 2),
        altitude_ft=altitude_ft,
        cpr=CprFrame(
            odd=bool(frame.field(53, 1)),
            lat_cpr=frame.field(54, 17),
            lon_cpr=frame.field(71, 17),
            timestamp=frame.timestamp,
        ),
    )


def decode_frame(
    frame: ModeFrame,
    resolver: PositionResolver,
    require_payload: bool = False,
) -> ModeSMessage:
    """Decode a parsed frame into a ModeSMessage.

    Position frames are fed to the resolver; a CPR failure is attached to
    the message as position_error rather than raised.
    """
    kind = classify(frame, require_payload=require_payload)
    header = dict(
        df=frame.df,
        capability=frame.capability,
        icao_address=frame.icao_address,
        type_code=frame.type_code,
        kind=kind,
        raw=frame.raw,
        timestamp=frame.timestamp,
    )

    if kind is MessageKind.IDENTIFICATION:
        callsign, wake = decode_identification(frame)
        return ModeSMessage(**header, callsign=callsign, wake_category=wake)

    if kind is MessageKind.AIRBORNE_POSITION:
        report = decode_position(frame)
        position = None
        error = None
        try:
            position = resolver.resolve(frame.icao_address, report.cpr)
        except CprError as e:
            error = e
        return ModeSMessage(
            **header,
            altitude_ft=report.altitude_ft,
            surveillance_status=report.surveillance_status,
            cpr=report.cpr,
            position=position,
            position_error=error,
        )

    return ModeSMessage(**header)


def _section(cfg: dict, name: str) -> dict:
    # A scalar where a section is expected is treated as an empty section
    value = cfg.get(name)
    return value if isinstance(value, dict) else {}


class Decoder:
    """Decode hex messages from one receiver feed.

    Owns a PositionResolver, whose track map may be injected so several
    decoders can share or checkpoint CPR state.
    """

    def __init__(self, resolver: PositionResolver | None = None):
        self.resolver = resolver if resolver is not None else PositionResolver()

    @classmethod
    def from_config(
        cls,
        config: dict | None = None,
        tracks: dict[int, AircraftTrack] | None = None,
    ) -> Decoder:
        """Build a decoder from a config dict (see config.load_config)."""
        cfg = config if config is not None else load_config()
        receiver = _section(cfg, "receiver")
        cpr_cfg = _section(cfg, "cpr")
        dec_cfg = _section(cfg, "decoder")
        resolver = PositionResolver(
            tracks=tracks,
            max_pair_age=cpr_cfg.get("pair_window", 10.0),
            reference_max_age=cpr_cfg.get("reference_max_age", 180.0),
            ref_lat=receiver.get("lat"),
            ref_lon=receiver.get("lon"),
            lock_buckets=dec_cfg.get("lock_buckets", 64),
        )
        return cls(resolver)

    @property
    def tracks(self):
        return self.resolver.tracks

    def decode(
        self,
        hex_str: str,
        timestamp: float = 0.0,
        require_payload: bool = False,
    ) -> ModeSMessage:
        """Parse and decode one 28-character hex message.

        Raises:
            InvalidMessageLengthError, InvalidHexEncodingError: bad input.
            InvalidCallsignCharacterError, UnknownCategoryError: bad
                identification payload.
            UnsupportedTypeCodeError: require_payload is set and the frame
                has no payload decoder.
        """
        frame = parse_frame(hex_str, timestamp=timestamp)
        return decode_frame(frame, self.resolver, require_payload=require_payload)
