"""Module entry point: python -m immich_geotag ..."""

from immich_geotag.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
