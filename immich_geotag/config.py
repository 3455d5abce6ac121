"""Run configuration: constants, credential loading and the Settings record."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import dotenv_values, find_dotenv

from immich_geotag.errors import ConfigurationError

# =============================================================================
# CONFIGURATION
# =============================================================================

# Environment variable holding the Immich API key
API_KEY_ENV = "IMMICH_API_KEY"

# Header Immich expects the API key in
API_KEY_HEADER = "x-api-key"

# All API routes live under <server>/api
API_PREFIX = "/api"

# Search pages hold ~250 assets, so page 1 covers the latest 250 photos
DEFAULT_PAGE = 1

# Page numbers are unsigned 32-bit values
MAX_PAGE = 2**32 - 1

# Seconds before a request to the server gives up
REQUEST_TIMEOUT_SECONDS = 30

# =============================================================================


def load_api_key(environ: Optional[Mapping[str, str]] = None, dotenv_path: Optional[str] = None) -> str:
    """
    Read the API key from the environment, falling back to a .env file.

    The process environment is never modified. Raises ConfigurationError if
    the key is missing or is not ASCII.
    """
    if environ is None:
        environ = os.environ

    api_key = environ.get(API_KEY_ENV)
    if api_key is None:
        if dotenv_path is None:
            dotenv_path = find_dotenv(usecwd=True)
        if dotenv_path:
            api_key = dotenv_values(dotenv_path).get(API_KEY_ENV)

    if not api_key:
        raise ConfigurationError(f"missing Immich API key: set {API_KEY_ENV}")
    if not api_key.isascii():
        raise ConfigurationError("API key must be ASCII")
    return api_key


@dataclass(frozen=True)
class Settings:
    """Everything a run needs, built once at startup."""
    server: str
    api_key: str
    dry_run: bool = False
    owner: Optional[str] = None
    camera_brand: Optional[str] = None
    camera_model: Optional[str] = None
    page: int = DEFAULT_PAGE
    timeout: float = REQUEST_TIMEOUT_SECONDS

    @classmethod
    def from_args(cls, args, api_key: str) -> "Settings":
        server = args.server.rstrip("/")
        if not server:
            raise ConfigurationError("--server must not be empty")
        return cls(
            server=server,
            api_key=api_key,
            dry_run=args.dry_run,
            owner=args.owner,
            camera_brand=args.camera_brand,
            camera_model=args.camera_model,
            page=args.page,
        )

    def photo_url(self, asset_id: str) -> str:
        """Web viewer URL for a single asset."""
        return f"{self.server}/photos/{asset_id}"
