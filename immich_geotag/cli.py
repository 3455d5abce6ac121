"""
Command-line entry point.

Usage:
    # Preview positions for the latest page of photos without location
    immich-geotag --server https://immich.example.com --dry-run track1.gpx track2.gpx

    # Only photos from one camera, owned by one user, second page
    immich-geotag --server https://immich.example.com --owner <user-id> \
        --camera-brand FUJIFILM --camera-model X-T5 --page 2 *.gpx

The API key is read from IMMICH_API_KEY (or a .env file).
"""

import argparse
import logging
import sys
from typing import List, Optional

from immich_geotag.config import DEFAULT_PAGE, MAX_PAGE, Settings, load_api_key
from immich_geotag.errors import GeotagError
from immich_geotag.geotag import print_summary, run


def _page_number(value: str) -> int:
    try:
        page = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid page number: {value!r}")
    if page < 0:
        raise argparse.ArgumentTypeError(f"page number must not be negative: {page}")
    if page > MAX_PAGE:
        raise argparse.ArgumentTypeError(f"page number must be at most {MAX_PAGE}: {page}")
    return page


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="immich-geotag",
        description="Set missing photo locations in Immich from GPX track logs"
    )
    parser.add_argument(
        'gpx_files',
        nargs='*',
        help='Paths to GPX input files'
    )
    parser.add_argument(
        '--server',
        required=True,
        help='URL of the Immich server, e.g. https://immich.example.com'
    )
    parser.add_argument(
        '-n', '--dry-run',
        action='store_true',
        help="Don't actually send updates to Immich"
    )
    parser.add_argument(
        '--owner',
        default=None,
        help='Only apply to assets owned by the user with this ID'
    )
    parser.add_argument(
        '--camera-brand',
        default=None,
        help='Only apply to assets taken with a camera of this brand'
    )
    parser.add_argument(
        '--camera-model',
        default=None,
        help='Only apply to assets taken with this camera model'
    )
    parser.add_argument(
        '-p', '--page',
        type=_page_number,
        default=DEFAULT_PAGE,
        help='Page number when searching assets (pages hold ~250 assets; default: 1)'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Log debug details to stderr'
    )
    parser.add_argument(
        '--no-progress',
        action='store_true',
        help='Hide the progress bar'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        settings = Settings.from_args(args, load_api_key())

        print("="*60, file=sys.stderr)
        print("Immich GPX Geotag", file=sys.stderr)
        print("="*60, file=sys.stderr)
        print(f"Server:      {settings.server}", file=sys.stderr)
        print(f"GPX files:   {len(args.gpx_files)}", file=sys.stderr)
        print(f"Page:        {settings.page}", file=sys.stderr)
        print(f"Mode:        {'DRY RUN' if settings.dry_run else 'LIVE'}", file=sys.stderr)
        print("="*60 + "\n", file=sys.stderr)

        summary = run(settings, args.gpx_files, show_progress=not args.no_progress)
    except GeotagError as e:
        print(f"✗ Error: {e}", file=sys.stderr)
        return 1

    print_summary(summary)
    print("\n✓ Done!", file=sys.stderr)
    return 0
