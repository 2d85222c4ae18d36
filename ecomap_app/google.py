"""Thin client for the Google Maps Platform lookups used by the providers."""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

import requests

from .constants import (
    AIR_QUALITY_EXTRA_COMPUTATIONS,
    AIR_QUALITY_URL,
    GOOGLE_MAPS_BASE_URL,
    REQUEST_TIMEOUT,
    SOLAR_URL,
    google_api_key,
)
from .models import BoundingBox, LatLng, Place

logger = logging.getLogger(__name__)


class ProviderError(RuntimeError):
    """Raised when an external lookup fails."""


def parse_latlng(raw: Optional[Dict[str, Any]]) -> Optional[LatLng]:
    """Accept both ``{lat, lng}`` and ``{latitude, longitude}`` shapes."""

    if not raw:
        return None
    lat = raw.get("lat", raw.get("latitude"))
    lng = raw.get("lng", raw.get("longitude"))
    if lat is None or lng is None:
        return None
    try:
        return LatLng(float(lat), float(lng))
    except (TypeError, ValueError):
        return None


def parse_bounds(raw: Optional[Dict[str, Any]]) -> Optional[BoundingBox]:
    if not raw:
        return None
    sw = parse_latlng(raw.get("sw") or raw.get("southwest"))
    ne = parse_latlng(raw.get("ne") or raw.get("northeast"))
    if sw is None or ne is None:
        return None
    return BoundingBox(sw=sw, ne=ne)


def parse_place(raw: Dict[str, Any]) -> Optional[Place]:
    geometry = raw.get("geometry") or {}
    location = parse_latlng(geometry.get("location"))
    if location is None:
        return None
    rating = raw.get("rating")
    return Place(
        place_id=raw.get("place_id", ""),
        name=raw.get("name", "Unnamed place"),
        lat=location.lat,
        lng=location.lng,
        types=tuple(raw.get("types") or ()),
        rating=float(rating) if rating is not None else None,
        user_ratings_total=raw.get("user_ratings_total"),
        viewport=parse_bounds(geometry.get("viewport")),
    )


class GoogleMapsClient:
    """Client for the Places, Geocoding, Air Quality and Solar APIs."""

    DEFAULT_TIMEOUT = REQUEST_TIMEOUT

    def __init__(self, api_key: str, session: Optional[requests.Session] = None):
        if not api_key:
            raise ProviderError(
                "GOOGLE_MAPS_API_KEY environment variable is not set. "
                "Provide a key before loading map layers."
            )
        self.api_key = api_key
        self.base_url = GOOGLE_MAPS_BASE_URL
        self._shared_session = session
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        """HTTP session for the calling thread.

        Lookups run in worker threads and requests.Session is not thread-safe,
        so each thread lazily opens its own unless one was passed in.
        """

        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
        return session

    @classmethod
    def from_env(cls) -> "GoogleMapsClient":
        return cls(google_api_key() or "")

    def _request(self, endpoint_name: str, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = self.session.request(method, url, timeout=self.DEFAULT_TIMEOUT, **kwargs)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as exc:
            raise ProviderError(f"{endpoint_name} request failed: {exc}") from exc
        except ValueError as exc:
            raise ProviderError(f"{endpoint_name} returned invalid JSON") from exc

    def geocode(self, address: Optional[str] = None, place_id: Optional[str] = None) -> LatLng:
        """Resolve a place id (preferred) or free-text address to coordinates."""

        if not address and not place_id:
            raise ValueError("geocode needs an address or a place_id")
        params = {"key": self.api_key}
        if place_id:
            params["place_id"] = place_id
        else:
            params["address"] = address
        data = self._request("geocode", "GET", f"{self.base_url}/geocode/json", params=params)

        if data.get("status") != "OK" or not data.get("results"):
            raise ProviderError(f"Geocoding failed: {data.get('status')}")
        location = parse_latlng(data["results"][0].get("geometry", {}).get("location"))
        if location is None:
            raise ProviderError("Geocoding returned no location")
        return location

    def places_nearby(
        self, lat: float, lng: float, place_type: str, radius_meters: int = 2000
    ) -> List[Place]:
        """Search for places of one type near a location."""

        params = {
            "location": f"{lat},{lng}",
            "radius": radius_meters,
            "type": place_type,
            "key": self.api_key,
        }
        data = self._request(
            "places_nearby", "GET", f"{self.base_url}/place/nearbysearch/json", params=params
        )

        if data.get("status") not in ("OK", "ZERO_RESULTS"):
            raise ProviderError(f"Places search failed: {data.get('status')}")

        places = []
        for raw in data.get("results", []):
            place = parse_place(raw)
            if place is None:
                logger.debug("Skipping place without a location: %s", raw.get("name"))
                continue
            places.append(place)
        return places

    def air_quality(self, lat: float, lng: float) -> Dict[str, Any]:
        """Current air-quality conditions for a coordinate."""

        body = {
            "location": {"latitude": lat, "longitude": lng},
            "extraComputations": AIR_QUALITY_EXTRA_COMPUTATIONS,
        }
        return self._request(
            "air_quality", "POST", AIR_QUALITY_URL, params={"key": self.api_key}, json=body
        )

    def building_insights(self, lat: float, lng: float) -> Dict[str, Any]:
        """Solar building insights for the building closest to a coordinate."""

        params = {
            "location.latitude": lat,
            "location.longitude": lng,
            "key": self.api_key,
        }
        return self._request("building_insights", "GET", SOLAR_URL, params=params)


__all__ = [
    "ProviderError",
    "GoogleMapsClient",
    "parse_latlng",
    "parse_bounds",
    "parse_place",
]
