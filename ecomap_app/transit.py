"""Transit layer: stations within walking range and lines back to the viewer."""

from __future__ import annotations

import asyncio
from typing import Dict, List, Sequence

from .constants import (
    CONNECTION_ALTITUDE_M,
    STATION_ALTITUDE_M,
    STATION_RADIUS_M,
    TRANSIT_PLACE_TYPES,
    TRANSIT_RADIUS_M,
)
from .geomath import circle_ring, haversine_km
from .google import GoogleMapsClient
from .models import (
    AltitudeMode,
    LatLng,
    LayerResult,
    Location,
    Place,
    PolygonPrimitive,
    PolylinePrimitive,
    Primitive,
    TransitMetrics,
    TransitStation,
)


def station_type(place: Place) -> str:
    for kind in place.types:
        if kind in TRANSIT_PLACE_TYPES:
            return kind
    return "transit_station"


def merge_stations(batches: Sequence[Sequence[Place]]) -> List[Place]:
    """Flatten per-type search results, keeping the first copy of each place."""

    seen: Dict[str, Place] = {}
    for batch in batches:
        for place in batch:
            key = place.place_id or f"{place.lat},{place.lng}"
            seen.setdefault(key, place)
    return list(seen.values())


def transit_metrics(places: Sequence[Place], location: Location) -> TransitMetrics:
    return TransitMetrics(
        stations=tuple(
            TransitStation(
                place_id=place.place_id,
                name=place.name,
                lat=place.lat,
                lng=place.lng,
                type=station_type(place),
                distance_km=haversine_km(LatLng(place.lat, place.lng), location.point),
            )
            for place in places
        )
    )


def transit_primitives(location: Location, metrics: TransitMetrics) -> List[Primitive]:
    primitives: List[Primitive] = []
    for station in metrics.stations:
        center = LatLng(station.lat, station.lng)
        primitives.append(
            PolygonPrimitive(
                ring=tuple(circle_ring(center, STATION_RADIUS_M, 32, STATION_ALTITUDE_M)),
                fill_color=(33, 150, 243, 77),
                stroke_color=(33, 150, 243, 255),
                stroke_width=2,
                altitude_mode=AltitudeMode.RELATIVE_TO_GROUND,
                extruded=True,
                label=f"{station.name} - {station.distance_km:.2f}km away",
            )
        )
        primitives.append(
            PolylinePrimitive(
                path=(
                    (location.lat, location.lng, CONNECTION_ALTITUDE_M),
                    (station.lat, station.lng, CONNECTION_ALTITUDE_M),
                ),
                stroke_color=(33, 150, 243, 128),
                stroke_width=3,
                label=station.name,
            )
        )
    return primitives


async def load_transit(client: GoogleMapsClient, location: Location) -> LayerResult:
    batches = await asyncio.gather(
        *(
            asyncio.to_thread(
                client.places_nearby, location.lat, location.lng, place_type, TRANSIT_RADIUS_M
            )
            for place_type in TRANSIT_PLACE_TYPES
        )
    )
    metrics = transit_metrics(merge_stations(batches), location)
    return LayerResult(primitives=tuple(transit_primitives(location, metrics)), payload=metrics)


__all__ = [
    "station_type",
    "merge_stations",
    "transit_metrics",
    "transit_primitives",
    "load_transit",
]
