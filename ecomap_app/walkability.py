"""Walkability layer: amenities reachable within a short walk."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Dict, List, Sequence, Tuple

from .constants import WALKABLE_PLACE_TYPES, WALKING_RADIUS_KM, WALKING_RING_POINTS
from .geomath import circle_ring, haversine_km
from .google import GoogleMapsClient, ProviderError
from .models import (
    Amenity,
    AltitudeMode,
    LatLng,
    LayerResult,
    Location,
    MarkerPrimitive,
    Place,
    PolygonPrimitive,
    Primitive,
    WalkabilityMetrics,
)

logger = logging.getLogger(__name__)

WALK_MINUTES_AT_RADIUS = 15


async def _search_type(
    client: GoogleMapsClient, location: Location, place_type: str
) -> Tuple[str, List[Place]]:
    try:
        places = await asyncio.to_thread(
            client.places_nearby,
            location.lat,
            location.lng,
            place_type,
            int(WALKING_RADIUS_KM * 1000),
        )
    except ProviderError:
        logger.debug("places_nearby failed for type %s", place_type, exc_info=True)
        return place_type, []
    return place_type, places


def walkability_metrics(
    results: Dict[str, Sequence[Place]], location: Location
) -> WalkabilityMetrics:
    """Keep only places within the walking radius, grouped by searched type."""

    amenities: Dict[str, Tuple[Amenity, ...]] = {}
    for place_type, places in results.items():
        kept = []
        for place in places:
            distance = haversine_km(location.point, LatLng(place.lat, place.lng))
            if distance > WALKING_RADIUS_KM:
                continue
            kept.append(
                Amenity(
                    name=place.name,
                    type=place_type,
                    distance_km=distance,
                    lat=place.lat,
                    lng=place.lng,
                )
            )
        amenities[place_type] = tuple(kept)
    return WalkabilityMetrics(amenities=amenities)


def walking_minutes(distance_km: float) -> int:
    return math.floor(distance_km / WALKING_RADIUS_KM * WALK_MINUTES_AT_RADIUS + 0.5)


def walkability_percentage(metrics: WalkabilityMetrics) -> int:
    """Headline 0-100 figure: twenty amenities in range counts as fully walkable."""

    return min(math.floor(metrics.total_amenities / 20 * 100 + 0.5), 100)


def walkability_primitives(location: Location, metrics: WalkabilityMetrics) -> List[Primitive]:
    ring = tuple(circle_ring(location.point, WALKING_RADIUS_KM * 1000, WALKING_RING_POINTS, 50.0))
    primitives: List[Primitive] = [
        PolygonPrimitive(
            ring=ring,
            fill_color=(76, 175, 80, 20),
            stroke_color=(76, 175, 80, 230),
            stroke_width=5,
            altitude_mode=AltitudeMode.RELATIVE_TO_GROUND,
            extruded=True,
            label=f"{WALK_MINUTES_AT_RADIUS}-minute walking radius",
        ),
        PolygonPrimitive(
            ring=ring,
            fill_color=(76, 175, 80, 26),
            stroke_color=(76, 175, 80, 102),
            stroke_width=1,
            altitude_mode=AltitudeMode.RELATIVE_TO_GROUND,
        ),
    ]
    for place_type, places in metrics.amenities.items():
        color = tuple(WALKABLE_PLACE_TYPES.get(place_type, [158, 158, 158])) + (255,)
        readable = place_type.replace("_", " ")
        for amenity in places:
            primitives.append(
                MarkerPrimitive(
                    position=(amenity.lat, amenity.lng, 0.0),
                    color=color,
                    label=(
                        f"{amenity.name} - {readable} ({amenity.distance_km:.2f}km, "
                        f"~{walking_minutes(amenity.distance_km)} min walk)"
                    ),
                )
            )
    return primitives


async def load_walkability(client: GoogleMapsClient, location: Location) -> LayerResult:
    searches = [_search_type(client, location, place_type) for place_type in WALKABLE_PLACE_TYPES]
    results = dict(await asyncio.gather(*searches))
    metrics = walkability_metrics(results, location)
    message = (
        f"Walkability Score: {walkability_percentage(metrics)}/100 "
        f"({metrics.total_amenities} amenities within {WALK_MINUTES_AT_RADIUS}-min walk)"
    )
    return LayerResult(
        primitives=tuple(walkability_primitives(location, metrics)),
        payload=metrics,
        message=message,
    )


__all__ = [
    "walkability_metrics",
    "walking_minutes",
    "walkability_percentage",
    "walkability_primitives",
    "load_walkability",
]
