"""Air quality layer backed by the Google Air Quality API."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Tuple

from .constants import AIR_QUALITY_RING_POINTS, AIR_QUALITY_RING_RADII_KM
from .geomath import circle_ring
from .google import GoogleMapsClient
from .models import (
    AirQualityMetrics,
    AltitudeMode,
    LayerResult,
    Location,
    PolygonPrimitive,
)


def _coerce(value: Any) -> Optional[float]:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _channel(value: Any) -> int:
    # API colours are 0-1 floats and omit zero channels
    number = _coerce(value) or 0.0
    return max(0, min(255, round(number * 255)))


def air_quality_metrics(raw: Dict[str, Any]) -> AirQualityMetrics:
    """Normalize a ``currentConditions:lookup`` response."""

    indexes = raw.get("indexes") or []
    primary = indexes[0] if indexes else {}
    aqi = _coerce(primary.get("aqi"))
    if aqi is None:
        aqi = _coerce(primary.get("aqiDisplay"))
    color = primary.get("color") or {}
    return AirQualityMetrics(
        aqi=aqi,
        aqi_display=primary.get("aqiDisplay"),
        category=primary.get("category"),
        color=(_channel(color.get("red")), _channel(color.get("green")), _channel(color.get("blue"))),
        index_name=primary.get("displayName"),
        dominant_pollutant=raw.get("dominantPollutant") or primary.get("dominantPollutant"),
        health_recommendations=dict(raw.get("healthRecommendations") or {}),
        updated_at=raw.get("dateTime"),
    )


def _alpha(fraction: float) -> int:
    return max(0, min(255, round(fraction * 255)))


def air_quality_rings(location: Location, aqi: Optional[float]) -> List[PolygonPrimitive]:
    """Stacked concentric rings whose opacity follows the AQI."""

    strength = min((aqi or 0.0) / 200, 1.0)
    rings = []
    for i, radius_km in enumerate(AIR_QUALITY_RING_RADII_KM):
        ring = circle_ring(location.point, radius_km * 1000, AIR_QUALITY_RING_POINTS, 200 + i * 50)
        rings.append(
            PolygonPrimitive(
                ring=tuple(ring),
                fill_color=(255, 0, 0, _alpha(strength * (0.2 - i * 0.05))),
                stroke_color=(255, 0, 0, _alpha(strength * 0.8)),
                stroke_width=1,
                altitude_mode=AltitudeMode.RELATIVE_TO_GROUND,
                extruded=True,
                label=f"AQI {aqi:.0f} within {radius_km:g} km" if aqi is not None else "AQI unavailable",
            )
        )
    return rings


def health_recommendation_rows(metrics: AirQualityMetrics) -> List[Tuple[str, str]]:
    """(group, advice) pairs with the API's camelCase groups made readable."""

    rows = []
    for group, advice in metrics.health_recommendations.items():
        label = "".join(f" {c.lower()}" if c.isupper() else c for c in group).strip()
        rows.append((label.capitalize(), advice))
    return rows


async def load_air_quality(client: GoogleMapsClient, location: Location) -> LayerResult:
    raw = await asyncio.to_thread(client.air_quality, location.lat, location.lng)
    metrics = air_quality_metrics(raw)
    return LayerResult(primitives=tuple(air_quality_rings(location, metrics.aqi)), payload=metrics)


__all__ = [
    "air_quality_metrics",
    "air_quality_rings",
    "health_recommendation_rows",
    "load_air_quality",
]
