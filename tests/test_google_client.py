"""Tests for the Google Maps Platform client with a mocked HTTP session."""

import threading
from unittest.mock import MagicMock

import pytest
import requests

from ecomap_app.constants import AIR_QUALITY_URL, SOLAR_URL
from ecomap_app.google import (
    GoogleMapsClient,
    ProviderError,
    parse_bounds,
    parse_latlng,
    parse_place,
)
from ecomap_app.models import LatLng


def _client(payload=None, error=None):
    session = MagicMock()
    response = MagicMock()
    response.json.return_value = payload or {}
    if error is not None:
        response.raise_for_status.side_effect = error
    session.request.return_value = response
    return GoogleMapsClient("test-key", session=session), session


PARK = {
    "place_id": "abc",
    "name": "Victoria Park",
    "geometry": {
        "location": {"lat": 43.447, "lng": -80.497},
        "viewport": {
            "northeast": {"lat": 43.449, "lng": -80.494},
            "southwest": {"lat": 43.445, "lng": -80.500},
        },
    },
    "types": ["park", "point_of_interest"],
    "rating": 4.6,
    "user_ratings_total": 2412,
}


class TestParsers:
    def test_latlng_shapes(self):
        assert parse_latlng({"lat": 1, "lng": 2}) == LatLng(1.0, 2.0)
        assert parse_latlng({"latitude": 1, "longitude": 2}) == LatLng(1.0, 2.0)
        assert parse_latlng({"lat": 1}) is None
        assert parse_latlng(None) is None

    def test_bounds_shapes(self):
        box = parse_bounds({"sw": {"latitude": 1, "longitude": 2}, "ne": {"latitude": 3, "longitude": 4}})
        assert box.lat_span == 2 and box.lng_span == 2
        assert parse_bounds({"sw": {"lat": 1, "lng": 2}}) is None

    def test_place(self):
        place = parse_place(PARK)
        assert place.name == "Victoria Park"
        assert place.rating == pytest.approx(4.6)
        assert place.types == ("park", "point_of_interest")
        assert place.viewport.ne == LatLng(43.449, -80.494)

    def test_place_without_location(self):
        assert parse_place({"name": "Nowhere"}) is None


class TestGoogleMapsClient:
    def test_requires_api_key(self):
        with pytest.raises(ProviderError):
            GoogleMapsClient("")

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "env-key")
        assert GoogleMapsClient.from_env().api_key == "env-key"

    def test_from_env_without_key(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_MAPS_API_KEY", raising=False)
        with pytest.raises(ProviderError):
            GoogleMapsClient.from_env()

    def test_each_thread_gets_its_own_session(self):
        client = GoogleMapsClient("test-key")
        main_session = client.session
        seen = []

        worker = threading.Thread(target=lambda: seen.append(client.session))
        worker.start()
        worker.join()

        assert client.session is main_session
        assert isinstance(seen[0], requests.Session)
        assert seen[0] is not main_session

    def test_places_nearby(self):
        client, session = _client({"status": "OK", "results": [PARK, {"name": "broken"}]})
        places = client.places_nearby(43.4, -80.4, "park", 2000)

        assert [place.place_id for place in places] == ["abc"]
        method, url = session.request.call_args.args
        params = session.request.call_args.kwargs["params"]
        assert method == "GET"
        assert url.endswith("/place/nearbysearch/json")
        assert params["type"] == "park"
        assert params["radius"] == 2000
        assert params["location"] == "43.4,-80.4"
        assert session.request.call_args.kwargs["timeout"] == GoogleMapsClient.DEFAULT_TIMEOUT

    def test_places_zero_results(self):
        client, _ = _client({"status": "ZERO_RESULTS", "results": []})
        assert client.places_nearby(43.4, -80.4, "cafe") == []

    def test_places_denied(self):
        client, _ = _client({"status": "REQUEST_DENIED"})
        with pytest.raises(ProviderError, match="REQUEST_DENIED"):
            client.places_nearby(43.4, -80.4, "cafe")

    def test_geocode_prefers_place_id(self):
        client, session = _client(
            {"status": "OK", "results": [{"geometry": {"location": {"lat": 43.45, "lng": -80.49}}}]}
        )
        assert client.geocode(address="Kitchener", place_id="pid") == LatLng(43.45, -80.49)
        params = session.request.call_args.kwargs["params"]
        assert params["place_id"] == "pid"
        assert "address" not in params

    def test_geocode_failure(self):
        client, _ = _client({"status": "ZERO_RESULTS", "results": []})
        with pytest.raises(ProviderError):
            client.geocode(address="nowhere at all")

    def test_geocode_needs_input(self):
        client, _ = _client()
        with pytest.raises(ValueError):
            client.geocode()

    def test_air_quality_posts_body(self):
        client, session = _client({"indexes": []})
        client.air_quality(43.4, -80.4)

        method, url = session.request.call_args.args
        body = session.request.call_args.kwargs["json"]
        assert (method, url) == ("POST", AIR_QUALITY_URL)
        assert body["location"] == {"latitude": 43.4, "longitude": -80.4}
        assert "HEALTH_RECOMMENDATIONS" in body["extraComputations"]

    def test_building_insights(self):
        client, session = _client({"name": "buildings/1"})
        assert client.building_insights(43.4, -80.4) == {"name": "buildings/1"}
        method, url = session.request.call_args.args
        assert (method, url) == ("GET", SOLAR_URL)
        assert session.request.call_args.kwargs["params"]["location.latitude"] == 43.4

    def test_transport_error_is_wrapped(self):
        client, session = _client()
        session.request.side_effect = requests.ConnectionError("down")
        with pytest.raises(ProviderError, match="air_quality"):
            client.air_quality(43.4, -80.4)

    def test_http_error_is_wrapped(self):
        client, _ = _client(error=requests.HTTPError("404"))
        with pytest.raises(ProviderError):
            client.building_insights(43.4, -80.4)

    def test_invalid_json_is_wrapped(self):
        client, session = _client()
        session.request.return_value.json.side_effect = ValueError("not json")
        with pytest.raises(ProviderError, match="invalid JSON"):
            client.building_insights(43.4, -80.4)
