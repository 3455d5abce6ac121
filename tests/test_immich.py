import json
import unittest
from datetime import datetime, timezone
from unittest import mock

import requests

from immich_geotag.errors import ServerError
from immich_geotag.immich import ImmichClient, PhotoRecord, SearchMetadataRequest


def make_response(payload, status_code: int = 200) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response._content = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
    return response


def asset(asset_id: str, owner: str = "owner-1", latitude=None, longitude=None,
          taken: str = "2024-05-01T10:00:05.000Z") -> dict:
    return {
        "id": asset_id,
        "ownerId": owner,
        "type": "IMAGE",
        "exifInfo": {
            "dateTimeOriginal": taken,
            "latitude": latitude,
            "longitude": longitude,
            "make": "FUJIFILM",
        },
    }


class ImmichClientTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session = mock.Mock()
        self.session.headers = {}
        self.client = ImmichClient("https://immich.example.com/", "secret", timeout=5, session=self.session)

    def test_api_key_header_is_set_on_session(self) -> None:
        self.assertEqual(self.session.headers, {"x-api-key": "secret"})
        self.assertEqual(self.client.base_url, "https://immich.example.com/api")

    def test_search_request_body(self) -> None:
        self.session.request.return_value = make_response({"assets": {"items": []}})

        self.assertEqual(self.client.search_assets(2, make="FUJIFILM"), [])

        self.session.request.assert_called_once_with(
            "POST",
            "https://immich.example.com/api/search/metadata",
            json={"page": 2, "withExif": True, "country": None, "make": "FUJIFILM", "model": None},
            timeout=5,
        )

    def test_search_parses_assets(self) -> None:
        self.session.request.return_value = make_response({
            "assets": {
                "total": 2,
                "items": [asset("a1"), asset("a2", owner="owner-2", latitude=1.5, longitude=2.5)],
                "nextPage": None,
            },
        })

        photos = self.client.search_assets(1)

        self.assertEqual(photos[0], PhotoRecord(
            id="a1",
            owner_id="owner-1",
            capture_time=datetime(2024, 5, 1, 10, 0, 5, tzinfo=timezone.utc),
        ))
        self.assertEqual(photos[1].owner_id, "owner-2")
        self.assertEqual((photos[1].latitude, photos[1].longitude), (1.5, 2.5))

    def test_capture_time_is_normalised_to_utc(self) -> None:
        self.session.request.return_value = make_response(
            {"assets": {"items": [asset("a1", taken="2024-05-01T19:00:05+09:00")]}}
        )
        photo = self.client.search_assets(1)[0]
        self.assertEqual(photo.capture_time, datetime(2024, 5, 1, 10, 0, 5, tzinfo=timezone.utc))
        self.assertEqual(photo.capture_time.utcoffset().total_seconds(), 0)

    def test_search_schema_mismatch(self) -> None:
        broken = asset("a1")
        del broken["exifInfo"]["dateTimeOriginal"]
        self.session.request.return_value = make_response({"assets": {"items": [broken]}})
        with self.assertRaises(ServerError):
            self.client.search_assets(1)

    def test_search_invalid_json(self) -> None:
        self.session.request.return_value = make_response(b"<html>bad gateway</html>")
        with self.assertRaises(ServerError):
            self.client.search_assets(1)

    def test_search_http_error(self) -> None:
        self.session.request.return_value = make_response({"message": "Unauthorized"}, status_code=401)
        with self.assertRaises(ServerError):
            self.client.search_assets(1)

    def test_search_connection_error(self) -> None:
        self.session.request.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(ServerError) as ctx:
            self.client.search_assets(1)
        self.assertIn("failed to get assets from immich", str(ctx.exception))

    def test_update_location(self) -> None:
        self.session.request.return_value = make_response({"id": "a1"})

        self.client.update_location("a1", 48.1, 11.5)

        self.session.request.assert_called_once_with(
            "PUT",
            "https://immich.example.com/api/assets/a1",
            json={"latitude": 48.1, "longitude": 11.5},
            timeout=5,
        )

    def test_update_failure_raises(self) -> None:
        self.session.request.return_value = make_response({"message": "Not found"}, status_code=404)
        with self.assertRaises(ServerError) as ctx:
            self.client.update_location("a1", 48.1, 11.5)
        self.assertIn("update asset a1", str(ctx.exception))

    def test_context_manager_closes_session(self) -> None:
        with self.client:
            pass
        self.session.close.assert_called_once_with()


class SearchMetadataRequestTests(unittest.TestCase):
    def test_camel_case_body(self) -> None:
        body = SearchMetadataRequest(page=1, model="X-T5").model_dump(mode="json", by_alias=True)
        self.assertEqual(body, {"page": 1, "withExif": True, "country": None, "make": None, "model": "X-T5"})


if __name__ == "__main__":
    unittest.main()
