"""Solar potential layer backed by the Google Solar API."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from .constants import BUILDING_FILL, BUILDING_OUTLINE_CLEARANCE_M, WHITE
from .geomath import rectangle_ring
from .google import GoogleMapsClient, parse_bounds, parse_latlng
from .models import (
    AltitudeMode,
    LatLng,
    LayerResult,
    Location,
    PolygonPrimitive,
    Primitive,
    RoofSegment,
    RoofSegmentStats,
    SolarMetrics,
)
from .roof import roof_segment_polygon

logger = logging.getLogger(__name__)


def _float(value: Any, fallback: float = 0.0) -> float:
    try:
        return float(value) if value is not None else fallback
    except (TypeError, ValueError):
        return fallback


def _optional_float(value: Any) -> Optional[float]:
    return _float(value) if value is not None else None


def parse_roof_segment(raw: Dict[str, Any], fallback_center: LatLng) -> RoofSegment:
    stats = raw.get("stats") or {}
    quantiles = tuple(_float(q) for q in stats.get("sunshineQuantiles") or ())
    return RoofSegment(
        pitch_degrees=_float(raw.get("pitchDegrees")),
        azimuth_degrees=_float(raw.get("azimuthDegrees")),
        plane_height_at_center_meters=_float(raw.get("planeHeightAtCenterMeters")),
        center=parse_latlng(raw.get("center")) or fallback_center,
        bounding_box=parse_bounds(raw.get("boundingBox")),
        stats=RoofSegmentStats(
            area_meters2=_float(stats.get("areaMeters2")),
            sunshine_quantiles=quantiles,
        ),
    )


def solar_metrics(raw: Dict[str, Any], location: Location) -> SolarMetrics:
    """Normalize a ``buildingInsights:findClosest`` response."""

    potential = raw.get("solarPotential")
    bounding_box = parse_bounds(raw.get("boundingBox"))
    if not potential:
        return SolarMetrics(bounding_box=bounding_box)

    fallback = parse_latlng(raw.get("center")) or location.point
    segments = tuple(
        parse_roof_segment(segment, fallback) for segment in potential.get("roofSegmentStats") or ()
    )
    return SolarMetrics(
        segments=segments,
        bounding_box=bounding_box,
        max_sunshine_hours_per_year=_optional_float(potential.get("maxSunshineHoursPerYear")),
        max_array_area_meters2=_optional_float(potential.get("maxArrayAreaMeters2")),
        carbon_offset_factor_kg_per_mwh=_optional_float(
            potential.get("carbonOffsetFactorKgPerMwh")
        ),
        panel_config_count=len(potential.get("solarPanelConfigs") or ()),
        has_potential=True,
    )


def building_outline(metrics: SolarMetrics) -> Optional[PolygonPrimitive]:
    """Extruded footprint sitting just above the largest roof segment."""

    if not metrics.segments or metrics.bounding_box is None:
        return None
    main = max(metrics.segments, key=lambda segment: segment.stats.area_meters2)
    height = main.plane_height_at_center_meters + BUILDING_OUTLINE_CLEARANCE_M
    return PolygonPrimitive(
        ring=tuple(rectangle_ring(metrics.bounding_box, height)),
        fill_color=tuple(BUILDING_FILL),
        stroke_color=tuple(WHITE),
        stroke_width=2,
        altitude_mode=AltitudeMode.ABSOLUTE,
        extruded=True,
        label="Building outline",
    )


def solar_primitives(metrics: SolarMetrics) -> List[Primitive]:
    primitives: List[Primitive] = []
    outline = building_outline(metrics)
    if outline is not None:
        primitives.append(outline)
    for index, segment in enumerate(metrics.segments):
        primitives.append(roof_segment_polygon(segment, index))
    logger.debug("Built %d solar primitives", len(primitives))
    return primitives


async def load_solar(client: GoogleMapsClient, location: Location) -> LayerResult:
    raw = await asyncio.to_thread(client.building_insights, location.lat, location.lng)
    metrics = solar_metrics(raw, location)
    return LayerResult(primitives=tuple(solar_primitives(metrics)), payload=metrics)


__all__ = [
    "parse_roof_segment",
    "solar_metrics",
    "building_outline",
    "solar_primitives",
    "load_solar",
]
