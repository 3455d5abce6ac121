"""
Minimal Immich API client.

Only the two calls the geotagger needs are covered: a metadata search for
assets with EXIF data, and a location update for a single asset. Request and
response bodies are pydantic models so a change in the server's schema shows
up as a ServerError at the boundary instead of a KeyError further in.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

import requests
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from immich_geotag.config import API_KEY_HEADER, API_PREFIX, Settings
from immich_geotag.errors import ServerError
from immich_geotag.tracks import to_utc

logger = logging.getLogger(__name__)


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SearchMetadataRequest(ApiModel):
    page: int
    with_exif: bool = True
    country: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None


class ExifResponse(ApiModel):
    date_time_original: datetime
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @field_validator("date_time_original")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return to_utc(value)


class AssetResponse(ApiModel):
    id: str
    owner_id: str
    exif_info: ExifResponse


class SearchAssetPage(ApiModel):
    items: List[AssetResponse]


class SearchResponse(ApiModel):
    assets: SearchAssetPage


class AssetLocationUpdate(ApiModel):
    latitude: float
    longitude: float


@dataclass(frozen=True)
class PhotoRecord:
    """A photo as the geotagger sees it."""
    id: str
    owner_id: str
    capture_time: datetime
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @classmethod
    def from_asset(cls, asset: AssetResponse) -> "PhotoRecord":
        return cls(
            id=asset.id,
            owner_id=asset.owner_id,
            capture_time=asset.exif_info.date_time_original,
            latitude=asset.exif_info.latitude,
            longitude=asset.exif_info.longitude,
        )


class ImmichClient:
    """Talks to <server>/api with the API key sent on every request."""

    def __init__(self, server: str, api_key: str, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        self.base_url = f"{server.rstrip('/')}{API_PREFIX}"
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()
        self.session.headers.update({API_KEY_HEADER: api_key})

    @classmethod
    def from_settings(cls, settings: Settings) -> "ImmichClient":
        return cls(settings.server, settings.api_key, timeout=settings.timeout)

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _send(self, method: str, path: str, body: ApiModel, action: str) -> requests.Response:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(
                method,
                url,
                json=body.model_dump(mode="json", by_alias=True),
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise ServerError(f"failed to {action}: {e}") from e
        return response

    def search_assets(self, page: int, make: Optional[str] = None,
                      model: Optional[str] = None) -> List[PhotoRecord]:
        """Fetch one page of assets, with EXIF data, from the metadata search."""
        body = SearchMetadataRequest(page=page, make=make, model=model)
        response = self._send("POST", "/search/metadata", body, "get assets from immich")

        try:
            result = SearchResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise ServerError(f"unexpected search response from immich: {e}") from e

        return [PhotoRecord.from_asset(asset) for asset in result.assets.items]

    def update_location(self, asset_id: str, latitude: float, longitude: float):
        """Set latitude/longitude on a single asset."""
        body = AssetLocationUpdate(latitude=latitude, longitude=longitude)
        self._send("PUT", f"/assets/{asset_id}", body, f"update asset {asset_id}")
