"""Per-aircraft CPR state with frame pairing.

PositionResolver maintains a mapping of AircraftTrack objects keyed by
24-bit ICAO address. Each track holds:
- The last even and last odd CPR frame (for global decode)
- The last resolved position and when it was resolved (for local decode)

The mapping is supplied by the caller, so decode state can be shared,
checkpointed or inspected. Updates to one aircraft happen under a lock
striped by ICAO address; aircraft in different buckets never contend.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import MutableMapping
from dataclasses import dataclass

from . import cpr
from .cpr import CprFrame
from .errors import (
    CprError,
    CprZoneMismatchError,
    IncompleteCprPairError,
    InvalidCprLatitudeError,
    NoReferencePositionError,
    StaleCprPairError,
)

logger = logging.getLogger(__name__)

# A resolved position older than this is no longer a valid local reference
REFERENCE_MAX_AGE = 180.0

DEFAULT_LOCK_BUCKETS = 64


@dataclass
class AircraftTrack:
    """Mutable CPR decode state for a single aircraft."""

    last_even: CprFrame | None = None
    last_odd: CprFrame | None = None
    last_position: tuple[float, float] | None = None
    last_position_time: float = 0.0

    @property
    def has_position(self) -> bool:
        return self.last_position is not None

    @property
    def last_seen(self) -> float:
        """Timestamp of the most recent buffered frame."""
        times = [f.timestamp for f in (self.last_even, self.last_odd) if f is not None]
        return max(times, default=self.last_position_time)

    def store(self, frame: CprFrame) -> bool:
        """Buffer frame unless a newer frame of its format is already held."""
        held = self.last_odd if frame.odd else self.last_even
        if held is not None and frame.timestamp < held.timestamp:
            return False
        if frame.odd:
            self.last_odd = frame
        else:
            self.last_even = frame
        return True

    def opposite(self, frame: CprFrame) -> CprFrame | None:
        return self.last_even if frame.odd else self.last_odd

    def discard_opposite(self, frame: CprFrame) -> None:
        if frame.odd:
            self.last_even = None
        else:
            self.last_odd = None


class PositionResolver:
    """Resolve CPR frames into positions, one track per aircraft.

    Attempts global decode first (needs even+odd pair).
    Falls back to local decode against the track's last position, or the
    receiver position when one is configured.
    """

    def __init__(
        self,
        tracks: MutableMapping[int, AircraftTrack] | None = None,
        max_pair_age: float = cpr.MAX_PAIR_AGE,
        reference_max_age: float = REFERENCE_MAX_AGE,
        ref_lat: float | None = None,
        ref_lon: float | None = None,
        lock_buckets: int = DEFAULT_LOCK_BUCKETS,
    ):
        """Initialize resolver.

        Args:
            tracks: Caller-owned track map keyed by ICAO address. A new
                dict is used when omitted.
            max_pair_age: Maximum seconds between even and odd frames.
            reference_max_age: Maximum age of a track's last position for
                it to serve as a local decode reference.
            ref_lat: Receiver latitude for local CPR decode.
            ref_lon: Receiver longitude for local CPR decode.
            lock_buckets: Number of lock stripes over ICAO addresses.
        """
        self.tracks: MutableMapping[int, AircraftTrack] = tracks if tracks is not None else {}
        self.max_pair_age = max_pair_age
        self.reference_max_age = reference_max_age
        self.ref_lat = ref_lat
        self.ref_lon = ref_lon
        self._locks = [threading.Lock() for _ in range(max(lock_buckets, 1))]
        # Guards insertion of new tracks into the shared map
        self._map_lock = threading.Lock()

    def _lock_for(self, icao: int) -> threading.Lock:
        return self._locks[icao % len(self._locks)]

    def _get_or_create(self, icao: int) -> AircraftTrack:
        track = self.tracks.get(icao)
        if track is None:
            with self._map_lock:
                track = self.tracks.get(icao)
                if track is None:
                    track = AircraftTrack()
                    self.tracks[icao] = track
                    logger.debug("New track %06X", icao)
        return track

    def resolve(self, icao: int, frame: CprFrame) -> tuple[float, float]:
        """Buffer a CPR frame and resolve the aircraft's position.

        Returns:
            (latitude, longitude) in degrees.

        Raises:
            IncompleteCprPairError: no opposite-format frame and no usable reference.
            StaleCprPairError: pair too far apart and no usable reference.
            CprZoneMismatchError: pair straddles a zone boundary and no usable
                reference. The older frame of the pair is discarded.
            InvalidCprLatitudeError: pair decodes outside -90..90 and no usable
                reference. The older frame of the pair is discarded.

        A frame older than the buffered frame of its format is never paired;
        it is resolved by local decode only (StaleCprPairError without a
        reference) and leaves the buffered frames and track position alone.
        """
        with self._lock_for(icao):
            track = self._get_or_create(icao)
            stored = track.store(frame)

            try:
                if not stored:
                    raise StaleCprPairError(
                        f"{frame.format_name.capitalize()} frame at {frame.timestamp} is older "
                        f"than the buffered one"
                    )
                position = self._global(track, frame)
            except CprError as global_err:
                try:
                    position = self._local(track, frame)
                except NoReferencePositionError:
                    raise global_err from None

            self._record(track, position, frame.timestamp)
            return position

    def decode_local(self, icao: int, frame: CprFrame) -> tuple[float, float]:
        """Buffer a CPR frame and resolve it against a reference only.

        Raises:
            NoReferencePositionError: no fresh track position and no receiver
                position configured.
        """
        with self._lock_for(icao):
            track = self._get_or_create(icao)
            track.store(frame)
            position = self._local(track, frame)
            self._record(track, position, frame.timestamp)
            return position

    def _global(self, track: AircraftTrack, frame: CprFrame) -> tuple[float, float]:
        other = track.opposite(frame)
        if other is None:
            raise IncompleteCprPairError(
                f"No {'even' if frame.odd else 'odd'} frame buffered to pair with"
            )

        even, odd = (other, frame) if frame.odd else (frame, other)
        try:
            return cpr.global_decode(even, odd, max_pair_age=self.max_pair_age)
        except (CprZoneMismatchError, InvalidCprLatitudeError) as e:
            logger.debug("Discarding %s frame: %s", other.format_name, e)
            track.discard_opposite(frame)
            raise

    def _local(self, track: AircraftTrack, frame: CprFrame) -> tuple[float, float]:
        reference = self._reference(track, frame.timestamp)
        if reference is None:
            raise NoReferencePositionError("No recent position or receiver reference")
        return cpr.local_decode(frame, *reference)

    def _reference(self, track: AircraftTrack, now: float) -> tuple[float, float] | None:
        if track.last_position is not None:
            if now - track.last_position_time <= self.reference_max_age:
                return track.last_position
        if self.ref_lat is not None and self.ref_lon is not None:
            return (self.ref_lat, self.ref_lon)
        return None

    def _record(self, track: AircraftTrack, position: tuple[float, float], timestamp: float):
        if track.last_position is not None and timestamp < track.last_position_time:
            return
        track.last_position = position
        track.last_position_time = timestamp

    def prune(self, now: float, max_age: float) -> int:
        """Remove tracks idle for more than max_age seconds. Returns count removed."""
        with self._map_lock:
            candidates = [k for k, v in list(self.tracks.items()) if now - v.last_seen > max_age]

        removed = 0
        for icao in candidates:
            # Bucket before map, the same order resolve() takes them in
            with self._lock_for(icao), self._map_lock:
                track = self.tracks.get(icao)
                if track is not None and now - track.last_seen > max_age:
                    del self.tracks[icao]
                    removed += 1
        if removed:
            logger.debug("Pruned %d idle tracks", removed)
        return removed
