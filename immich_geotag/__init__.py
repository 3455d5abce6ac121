"""Set missing photo locations on an Immich server from GPX track logs."""

from immich_geotag.errors import (
    ConfigurationError,
    GeotagError,
    InterpolationError,
    ServerError,
    TrackFileError,
    TrackParseError,
)
from immich_geotag.interpolate import interpolate
from immich_geotag.tracks import TrackPoint, load_gpx_file, load_gpx_files

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "GeotagError",
    "InterpolationError",
    "ServerError",
    "TrackFileError",
    "TrackParseError",
    "TrackPoint",
    "interpolate",
    "load_gpx_file",
    "load_gpx_files",
]
