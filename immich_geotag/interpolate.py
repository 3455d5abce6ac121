"""
Position lookup for a capture time.

A photo is placed by finding the first track segment whose time range covers
the capture time, taking the two track points around it and interpolating
longitude and latitude linearly. Coordinates are treated as flat axes, so a
segment crossing the antimeridian interpolates the long way round.
"""

from datetime import datetime, timedelta
from typing import Optional, Sequence, Tuple

from immich_geotag.errors import InterpolationError
from immich_geotag.tracks import TrackPoint, TrackSegment


def find_segment(capture_time: datetime, segments: Sequence[TrackSegment]) -> Optional[TrackSegment]:
    """Return the first non-empty segment whose time range contains capture_time."""
    for segment in segments:
        if segment and segment[0].time <= capture_time <= segment[-1].time:
            return segment
    return None


def bracketing_pair(segment: TrackSegment, capture_time: datetime) -> Tuple[TrackPoint, TrackPoint]:
    """
    Find the two points surrounding capture_time in a time-sorted segment.

    The first and last points are duplicated at the ends so a capture time on
    the first point, or past the last one, still yields a pair. That pair has
    zero spread and resolves to the boundary point itself.
    """
    if not segment:
        raise InterpolationError("segment should contain at least one point around the capture time")

    padded = [segment[0], *segment, segment[-1]]
    for a, b in zip(padded, padded[1:]):
        # skip pairs that end strictly before the capture time
        if b.time >= capture_time:
            return a, b
    return padded[-2], padded[-1]


def whole_seconds(delta: timedelta) -> int:
    """Duration in whole seconds, truncated toward zero."""
    return int(delta.total_seconds())


def interpolate_between(a: TrackPoint, b: TrackPoint, capture_time: datetime) -> Tuple[float, float]:
    """Linear (lat, lon) between a and b at capture_time."""
    # Floors of one second keep the division defined for equal timestamps
    points_dt = max(1, whole_seconds(b.time - a.time))
    capture_dt = max(1, whole_seconds(capture_time - a.time))

    longitude = a.longitude + (b.longitude - a.longitude) * capture_dt / points_dt
    latitude = a.latitude + (b.latitude - a.latitude) * capture_dt / points_dt
    return latitude, longitude


def interpolate(capture_time: datetime, segments: Sequence[TrackSegment]) -> Optional[Tuple[float, float]]:
    """
    Find the position at capture_time.

    Returns (latitude, longitude), or None if no segment covers the time.
    When segments overlap, the first one in load order wins.
    """
    segment = find_segment(capture_time, segments)
    if segment is None:
        return None

    a, b = bracketing_pair(segment, capture_time)
    return interpolate_between(a, b, capture_time)
