"""Green spaces layer: parks within a short distance of the viewed location."""

from __future__ import annotations

import asyncio
from typing import List, Sequence

from .constants import CANOPY_HEIGHT_M, GREEN_SPACE_RADIUS_M
from .geomath import haversine_km, rectangle_ring, viewport_area_m2
from .google import GoogleMapsClient
from .models import (
    AltitudeMode,
    GreenSpace,
    GreenSpacesMetrics,
    LatLng,
    LayerResult,
    Location,
    Place,
    PolygonPrimitive,
    Primitive,
)


def green_spaces_metrics(places: Sequence[Place], location: Location) -> GreenSpacesMetrics:
    spaces = tuple(
        GreenSpace(
            place_id=place.place_id,
            name=place.name,
            lat=place.lat,
            lng=place.lng,
            area_m2=viewport_area_m2(place.viewport) if place.viewport else 0.0,
            distance_km=haversine_km(LatLng(place.lat, place.lng), location.point),
            rating=place.rating,
            ratings_total=place.user_ratings_total or 0,
            types=place.types,
        )
        for place in places
    )
    return GreenSpacesMetrics(spaces=spaces)


def green_space_primitives(places: Sequence[Place]) -> List[Primitive]:
    """A ground footprint plus a translucent canopy for every park viewport."""

    primitives: List[Primitive] = []
    for place in places:
        if place.viewport is None:
            continue
        label = f"{place.name} - Green Space"
        primitives.append(
            PolygonPrimitive(
                ring=tuple(rectangle_ring(place.viewport, 0.0)),
                fill_color=(0, 255, 0, 77),
                stroke_color=(0, 255, 0, 255),
                stroke_width=2,
                altitude_mode=AltitudeMode.CLAMP_TO_GROUND,
                label=label,
            )
        )
        primitives.append(
            PolygonPrimitive(
                ring=tuple(rectangle_ring(place.viewport, CANOPY_HEIGHT_M)),
                fill_color=(0, 200, 0, 51),
                stroke_color=(0, 200, 0, 153),
                stroke_width=1,
                altitude_mode=AltitudeMode.RELATIVE_TO_GROUND,
                extruded=True,
                label=label,
            )
        )
    return primitives


async def load_green_spaces(client: GoogleMapsClient, location: Location) -> LayerResult:
    places = await asyncio.to_thread(
        client.places_nearby, location.lat, location.lng, "park", GREEN_SPACE_RADIUS_M
    )
    return LayerResult(
        primitives=tuple(green_space_primitives(places)),
        payload=green_spaces_metrics(places, location),
    )


__all__ = ["green_spaces_metrics", "green_space_primitives", "load_green_spaces"]
