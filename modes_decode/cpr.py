"""CPR position decoding for airborne position messages.

An airborne position message carries latitude and longitude as 17-bit
fractions of a zone (a CprFrame), in one of two formats: even (60 latitude
zones) or odd (59). The zone itself is not transmitted and is recovered either
from an even/odd pair received close together (global_decode) or from a
nearby known position (local_decode).

Both functions return (lat, lon) in degrees rounded to 6 places, longitude in
(-180, 180]. Any failure raises a CprError subclass instead of returning a
guessed position.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from .errors import CprZoneMismatchError, InvalidCprLatitudeError, StaleCprPairError

NZ = 15  # Number of latitude zones per hemisphere
NB = 17  # Bits per coordinate
CPR_MAX = 2**NB  # 131072

# Maximum time between even/odd frames for global decode (seconds)
MAX_PAIR_AGE = 10.0

DLAT_EVEN = 360.0 / (4 * NZ)  # 6.0 degrees
DLAT_ODD = 360.0 / (4 * NZ - 1)  # ~6.1017 degrees

_NL_A = 1 - math.cos(math.pi / (2 * NZ))


@dataclass(frozen=True)
class CprFrame:
    """One airborne position report fragment."""

    odd: bool  # CPR format bit: False = even, True = odd
    lat_cpr: int  # 17-bit encoded latitude
    lon_cpr: int  # 17-bit encoded longitude
    timestamp: float

    @property
    def format_name(self) -> str:
        return "odd" if self.odd else "even"


def nl(lat: float) -> int:
    """Number of longitude zones at a given latitude (NL function).

    Ranges from NL=59 at the equator to NL=1 beyond 87 degrees.
    """
    if lat == 0:
        return 59
    if abs(lat) == 87:
        return 2
    if abs(lat) > 87:
        return 1

    # NL formula from ICAO Doc 9871; acos argument clamped to [-1, 1]
    b = math.cos(math.pi / 180 * lat) ** 2
    arg = min(1.0, max(-1.0, 1 - _NL_A / b))
    # Latitudes within float noise of 0 would otherwise give 60
    return min(math.floor(2 * math.pi / math.acos(arg)), 59)


def _mod(x: float, y: float) -> float:
    """Modulo that always returns non-negative result."""
    return x - y * math.floor(x / y)


def _check_latitude(lat: float, source: str) -> None:
    if not -90.0 <= lat <= 90.0:
        raise InvalidCprLatitudeError(f"Decoded {source} latitude {lat:.4f} is outside -90..90")


def _normalize_lon(lon: float) -> float:
    """Wrap longitude into (-180, 180]."""
    if lon > 180:
        lon -= 360
    elif lon <= -180:
        lon += 360
    return lon


def global_decode(
    even: CprFrame,
    odd: CprFrame,
    max_pair_age: float = MAX_PAIR_AGE,
) -> tuple[float, float]:
    """Global CPR decode from an even/odd frame pair.

    The most recent of the two frames determines which latitude candidate
    and which longitude zone count are used.

    Returns:
        (latitude, longitude) in degrees.

    Raises:
        StaleCprPairError: frames are more than max_pair_age seconds apart.
        CprZoneMismatchError: the pair straddles a longitude-zone boundary.
        InvalidCprLatitudeError: a latitude candidate is outside -90..90.
    """
    if abs(even.timestamp - odd.timestamp) > max_pair_age:
        raise StaleCprPairError(
            f"Even/odd frames {abs(even.timestamp - odd.timestamp):.1f}s apart "
            f"(limit {max_pair_age:.1f}s)"
        )

    # Normalize CPR values to [0, 1)
    lat_even_cpr = even.lat_cpr / CPR_MAX
    lon_even_cpr = even.lon_cpr / CPR_MAX
    lat_odd_cpr = odd.lat_cpr / CPR_MAX
    lon_odd_cpr = odd.lon_cpr / CPR_MAX

    # Latitude zone index
    j = math.floor(59 * lat_even_cpr - 60 * lat_odd_cpr + 0.5)

    lat_e = DLAT_EVEN * (_mod(j, 60) + lat_even_cpr)
    lat_o = DLAT_ODD * (_mod(j, 59) + lat_odd_cpr)

    # Southern hemisphere
    if lat_e >= 270:
        lat_e -= 360
    if lat_o >= 270:
        lat_o -= 360
    _check_latitude(lat_e, "even")
    _check_latitude(lat_o, "odd")

    nl_e = nl(lat_e)
    nl_o = nl(lat_o)
    if nl_e != nl_o:
        raise CprZoneMismatchError(
            f"Even latitude {lat_e:.4f} (NL={nl_e}) and odd latitude "
            f"{lat_o:.4f} (NL={nl_o}) are in different zones"
        )

    use_odd = odd.timestamp > even.timestamp
    lat = lat_o if use_odd else lat_e
    nl_lat = nl_e

    i = 1 if use_odd else 0
    n_lon = max(nl_lat - i, 1)
    dlon = 360.0 / n_lon
    m = math.floor(lon_even_cpr * (nl_lat - 1) - lon_odd_cpr * nl_lat + 0.5)
    lon_cpr = lon_odd_cpr if use_odd else lon_even_cpr
    lon = dlon * (_mod(m, n_lon) + lon_cpr)

    return (round(lat, 6), round(_normalize_lon(lon), 6))


def _zone_index(ref: float, size: float, frac: float) -> int:
    # Zone whose copy of frac lies within half a zone of ref
    return math.floor(ref / size) + math.floor(_mod(ref, size) / size - frac + 0.5)


def local_decode(
    frame: CprFrame,
    ref_lat: float,
    ref_lon: float,
) -> tuple[float, float]:
    """Decode a single CprFrame against a nearby reference position.

    The reference is a previously resolved position of the same aircraft or
    the receiver's own location. The result is only meaningful when the
    aircraft is within half a latitude zone (about 180 NM) of it.

    Raises:
        InvalidCprLatitudeError: the decoded latitude is outside -90..90,
            which happens when the reference sits near a pole.
    """
    fmt = int(frame.odd)
    lat_frac = frame.lat_cpr / CPR_MAX
    lon_frac = frame.lon_cpr / CPR_MAX

    dlat = DLAT_ODD if frame.odd else DLAT_EVEN
    lat = dlat * (_zone_index(ref_lat, dlat, lat_frac) + lat_frac)
    _check_latitude(lat, frame.format_name)

    dlon = 360.0 / max(nl(lat) - fmt, 1)
    lon = dlon * (_zone_index(ref_lon, dlon, lon_frac) + lon_frac)

    return (round(lat, 6), round(_normalize_lon(lon), 6))
