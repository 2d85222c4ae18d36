"""Distance and local tangent-plane helpers."""

from __future__ import annotations

import math
from typing import List, Tuple

from .constants import EARTH_RADIUS_KM, METERS_PER_DEGREE_LAT
from .models import BoundingBox, LatLng, Vertex


def haversine_km(a: LatLng, b: LatLng) -> float:
    """Great-circle distance between two points in kilometres."""

    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def meters_per_degree(lat: float) -> Tuple[float, float]:
    """Return (metres per degree latitude, metres per degree longitude) at ``lat``."""

    return METERS_PER_DEGREE_LAT, METERS_PER_DEGREE_LAT * math.cos(math.radians(lat))


def offset_to_latlng(origin: LatLng, dx_m: float, dy_m: float) -> LatLng:
    """Shift ``origin`` by ``dx_m`` metres east and ``dy_m`` metres north."""

    per_lat, per_lng = meters_per_degree(origin.lat)
    return LatLng(origin.lat + dy_m / per_lat, origin.lng + dx_m / per_lng)


def circle_ring(center: LatLng, radius_m: float, points: int, altitude: float = 0.0) -> List[Vertex]:
    """Closed ring of ``points + 1`` vertices approximating a circle."""

    ring: List[Vertex] = []
    for i in range(points):
        angle = i / points * 2 * math.pi
        shifted = offset_to_latlng(center, radius_m * math.sin(angle), radius_m * math.cos(angle))
        ring.append((shifted.lat, shifted.lng, altitude))
    ring.append(ring[0])
    return ring


def rectangle_ring(box: BoundingBox, altitude: float = 0.0) -> List[Vertex]:
    sw, ne = box.sw, box.ne
    ring = [
        (sw.lat, sw.lng, altitude),
        (sw.lat, ne.lng, altitude),
        (ne.lat, ne.lng, altitude),
        (ne.lat, sw.lng, altitude),
    ]
    ring.append(ring[0])
    return ring


def viewport_area_m2(box: BoundingBox) -> float:
    """Approximate area of a viewport rectangle in square metres."""

    height_km = haversine_km(LatLng(box.ne.lat, box.ne.lng), LatLng(box.sw.lat, box.ne.lng))
    width_km = haversine_km(LatLng(box.ne.lat, box.ne.lng), LatLng(box.ne.lat, box.sw.lng))
    return height_km * width_km * 1_000_000


__all__ = [
    "haversine_km",
    "meters_per_degree",
    "offset_to_latlng",
    "circle_ring",
    "rectangle_ring",
    "viewport_area_m2",
]
