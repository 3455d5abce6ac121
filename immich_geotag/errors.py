"""Exceptions raised by immich_geotag.

Every error here is fatal for a run; the CLI turns a GeotagError into a
message and a non-zero exit status.
"""


class GeotagError(Exception):
    """Base class for errors that abort a geotagging run."""


class ConfigurationError(GeotagError):
    """Missing or unusable settings, e.g. no API key in the environment."""


class TrackFileError(GeotagError):
    """A GPX file could not be opened or read."""


class TrackParseError(TrackFileError):
    """A GPX file was read but its content (XML or a time value) is malformed."""


class ServerError(GeotagError):
    """A request to the Immich server failed or returned an unexpected body."""


class InterpolationError(RuntimeError):
    """No bracketing pair could be taken from a segment that covers the capture time.

    This is a programming error, not a user error, so it is kept outside the
    GeotagError tree and is never caught by the CLI.
    """
