"""Load GPX track logs into time-sorted segments."""

import codecs
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Union
from xml.etree import ElementTree

import gpxpy
from gpxpy.gpx import GPXException
from gpxpy.gpxfield import parse_time

from immich_geotag.errors import TrackFileError, TrackParseError

logger = logging.getLogger(__name__)

# <?xml ...?> declaration, and the encoding it names
XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")
XML_ENCODING = re.compile(rb"""<\?xml[^>]*?encoding\s*=\s*["']([A-Za-z][\w.-]*)["']""")


@dataclass(frozen=True)
class TrackPoint:
    """A timestamped position from a GPX track."""
    time: datetime  # aware, UTC
    longitude: float
    latitude: float


# One <trkseg>, sorted by time once loaded
TrackSegment = List[TrackPoint]


def to_utc(value: datetime) -> datetime:
    """Normalise a time to an aware UTC datetime (naive times are UTC already)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def decode_xml(data: bytes) -> str:
    """Decode raw GPX bytes using the BOM or the XML declaration (UTF-8 otherwise)."""
    if data.startswith(codecs.BOM_UTF8):
        text = data[len(codecs.BOM_UTF8):].decode('utf-8')
    elif data.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        text = data.decode('utf-16')
    else:
        match = XML_ENCODING.match(data)
        text = data.decode(match.group(1).decode('ascii') if match else 'utf-8')
    # the declaration no longer describes the decoded text
    return XML_DECLARATION.sub('', text, count=1)


def check_times(root: ElementTree.Element, gpx_path: Path):
    """
    Raise TrackParseError on the first <time> value gpxpy cannot parse.

    gpxpy reads an unparseable <time> as a missing one, which would quietly
    drop the point. A broken time means a broken file, so every time element
    of the document is checked here, whatever its parent or namespace.
    """
    for element in root.iter():
        if not isinstance(element.tag, str) or element.tag.rsplit('}', 1)[-1] != 'time':
            continue
        value = (element.text or '').strip()
        if not value:
            continue
        try:
            parsed = parse_time(value)
        except (GPXException, ValueError) as e:
            raise TrackParseError(f"invalid time {value!r} in {gpx_path}: {e}") from e
        if parsed is None:
            raise TrackParseError(f"invalid time {value!r} in {gpx_path}")


def load_gpx_file(gpx_path: Union[str, Path]) -> List[TrackSegment]:
    """
    Parse a GPX file and return one sorted segment per <trkseg>.

    Points without a time are dropped. Routes and waypoints are ignored.
    """
    gpx_path = Path(gpx_path)
    try:
        with open(gpx_path, 'rb') as f:
            data = f.read()
    except OSError as e:
        raise TrackFileError(f"could not open {gpx_path} for reading: {e}") from e

    # The XML parser honours the declared encoding and skips comments
    try:
        root = ElementTree.fromstring(data)
    except ElementTree.ParseError as e:
        raise TrackParseError(f"could not read gpx data from {gpx_path}: {e}") from e
    check_times(root, gpx_path)

    try:
        gpx = gpxpy.parse(decode_xml(data))
    except (GPXException, ValueError, LookupError) as e:
        raise TrackParseError(f"could not read gpx data from {gpx_path}: {e}") from e

    segments = []
    kept = 0
    dropped = 0
    for track in gpx.tracks:
        for segment in track.segments:
            points = []
            for point in segment.points:
                if point.time is None:
                    dropped += 1
                    continue
                points.append(TrackPoint(
                    time=to_utc(point.time),
                    longitude=point.longitude,
                    latitude=point.latitude,
                ))
            points.sort(key=lambda p: p.time)
            kept += len(points)
            segments.append(points)

    logger.debug(
        "%s: %d segment(s), %d point(s), %d untimed point(s) dropped",
        gpx_path.name, len(segments), kept, dropped,
    )
    return segments


def load_gpx_files(gpx_paths: Iterable[Union[str, Path]]) -> List[TrackSegment]:
    """Load every file and pool all segments, in file order."""
    segments = []
    for gpx_path in gpx_paths:
        segments.extend(load_gpx_file(gpx_path))
    return segments
