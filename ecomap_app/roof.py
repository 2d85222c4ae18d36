"""Project Solar API roof segments into tilted 3D polygons."""

from __future__ import annotations

import logging
import math
from typing import List, Sequence

from .constants import (
    DEGENERATE_ROOF_SIZE_M,
    MIN_ROOF_PITCH_DEGREES,
    ROOF_SCALE_FACTOR,
    SOLAR_COLORS,
    SOLAR_THRESHOLDS,
    WHITE,
)
from .geomath import meters_per_degree
from .models import AltitudeMode, PolygonPrimitive, RoofSegment, Vertex

logger = logging.getLogger(__name__)


def project_roof_segment(segment: RoofSegment) -> List[Vertex]:
    """Return a closed 5-vertex ring describing the segment's roof plane.

    The bounding box is shrunk by ``ROOF_SCALE_FACTOR`` so the facet stays
    inside the building outline, rotated by the segment azimuth (plus 180°
    to line up with the footprint) and tilted along the rotated depth axis
    only. A missing or zero-area bounding box falls back to a small square
    around the segment centre instead of failing.
    """

    pitch = math.radians(max(segment.pitch_degrees or 0.0, MIN_ROOF_PITCH_DEGREES))
    azimuth = math.radians(((segment.azimuth_degrees or 0.0) + 180) % 360)

    center = segment.center
    per_lat, per_lng = meters_per_degree(center.lat)
    box = segment.bounding_box
    width = abs(box.lng_span * per_lng) if box else 0.0
    length = abs(box.lat_span * per_lat) if box else 0.0
    degenerate = width == 0.0 or length == 0.0
    if degenerate:
        width = length = DEGENERATE_ROOF_SIZE_M

    half_w = width * ROOF_SCALE_FACTOR / 2
    half_l = length * ROOF_SCALE_FACTOR / 2
    corners = [(-half_w, -half_l), (half_w, -half_l), (half_w, half_l), (-half_w, half_l)]

    cos_az, sin_az = math.cos(azimuth), math.sin(azimuth)
    slope = math.sin(pitch)
    ring: List[Vertex] = []
    for dx, dy in corners:
        rx = dx * cos_az - dy * sin_az
        ry = dx * sin_az + dy * cos_az
        ring.append(
            (
                center.lat + ry / per_lat,
                center.lng + rx / per_lng,
                segment.plane_height_at_center_meters + slope * ry,
            )
        )
    ring.append(ring[0])

    if degenerate:
        logger.debug("Roof segment at %s has no usable bounding box, using a %sm square", center, width)
    logger.debug(
        "Projected roof segment pitch=%s azimuth=%s height=%s -> %s",
        segment.pitch_degrees,
        segment.azimuth_degrees,
        segment.plane_height_at_center_meters,
        ring,
    )
    return ring


def solar_efficiency(sunshine_quantiles: Sequence[float]) -> str:
    """Bucket a segment by its mean annual sunshine (kWh/m²/year)."""

    if not sunshine_quantiles:
        return "unknown"
    average = sum(sunshine_quantiles) / len(sunshine_quantiles)
    if average >= SOLAR_THRESHOLDS["excellent"]:
        return "excellent"
    if average >= SOLAR_THRESHOLDS["good"]:
        return "good"
    if average >= SOLAR_THRESHOLDS["fair"]:
        return "fair"
    if average > 0:
        return "poor"
    return "unknown"


def roof_segment_polygon(segment: RoofSegment, index: int = 0) -> PolygonPrimitive:
    efficiency = solar_efficiency(segment.stats.sunshine_quantiles)
    return PolygonPrimitive(
        ring=tuple(project_roof_segment(segment)),
        fill_color=tuple(SOLAR_COLORS[efficiency]),
        stroke_color=tuple(WHITE),
        stroke_width=2,
        altitude_mode=AltitudeMode.ABSOLUTE,
        label=f"Roof segment {index + 1} ({efficiency})",
    )


__all__ = ["project_roof_segment", "solar_efficiency", "roof_segment_polygon"]
