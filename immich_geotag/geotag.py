"""
Geotag workflow:
- Loads GPX tracks into time-sorted segments
- Fetches one page of photos from Immich
- Keeps photos that have no location yet
- Interpolates a position from the track at each capture time
- Writes the position back (or only reports it in dry-run mode)
"""

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from tqdm import tqdm

from immich_geotag.config import Settings
from immich_geotag.immich import ImmichClient, PhotoRecord
from immich_geotag.interpolate import interpolate
from immich_geotag.tracks import TrackSegment, load_gpx_files

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Counters for one pass over a page of photos."""
    dry_run: bool
    fetched: int = 0
    candidates: int = 0
    matched: int = 0
    unmatched: int = 0


def needs_location(photo: PhotoRecord, owner: Optional[str] = None) -> bool:
    """True if the photo belongs to owner (when given) and has no coordinates."""
    if owner is not None and photo.owner_id != owner:
        return False
    # A photo with only one of the two coordinates is left alone too
    return photo.latitude is None and photo.longitude is None


def select_candidates(photos: Iterable[PhotoRecord], owner: Optional[str] = None) -> List[PhotoRecord]:
    return [photo for photo in photos if needs_location(photo, owner)]


def geotag_photos(
    photos: Sequence[PhotoRecord],
    segments: Sequence[TrackSegment],
    settings: Settings,
    client,
    summary: RunSummary,
    show_progress: bool = True
):
    """Place each photo on the tracks and update it, one at a time, in order."""
    for photo in tqdm(photos, desc="Geotagging photos", unit="photo", disable=not show_progress):
        position = interpolate(photo.capture_time, segments)
        if position is None:
            logger.debug("%s: no track covers %s, skipping", photo.id, photo.capture_time.isoformat())
            summary.unmatched += 1
            continue

        latitude, longitude = position
        tqdm.write(f"setting location {latitude}, {longitude} for image {settings.photo_url(photo.id)}")
        if not settings.dry_run:
            client.update_location(photo.id, latitude, longitude)
        summary.matched += 1


def run(
    settings: Settings,
    gpx_files: Iterable[Union[str, Path]],
    client=None,
    show_progress: bool = True
) -> RunSummary:
    """Run a full pass: load tracks, fetch a page, geotag the candidates."""
    segments = load_gpx_files(gpx_files)
    logger.debug("loaded %d segment(s)", len(segments))

    own_client = client is None
    if own_client:
        client = ImmichClient.from_settings(settings)

    summary = RunSummary(dry_run=settings.dry_run)
    try:
        photos = client.search_assets(
            settings.page,
            make=settings.camera_brand,
            model=settings.camera_model,
        )
        summary.fetched = len(photos)

        candidates = select_candidates(photos, settings.owner)
        summary.candidates = len(candidates)

        geotag_photos(candidates, segments, settings, client, summary, show_progress)
    finally:
        if own_client:
            client.close()

    return summary


def print_summary(summary: RunSummary, file=None):
    if file is None:
        file = sys.stderr
    print("\n" + "="*60, file=file)
    print("SUMMARY", file=file)
    print("="*60, file=file)
    print(f"Mode:                    {'DRY RUN' if summary.dry_run else 'LIVE'}", file=file)
    print(f"Photos fetched:          {summary.fetched}", file=file)
    print(f"Without location:        {summary.candidates}", file=file)
    if summary.candidates > 0:
        print(f"Matched to a track:      {summary.matched} ({100*summary.matched/summary.candidates:.1f}%)", file=file)
    else:
        print(f"Matched to a track:      0", file=file)
    print(f"Outside every track:     {summary.unmatched}", file=file)
    print("="*60, file=file)
