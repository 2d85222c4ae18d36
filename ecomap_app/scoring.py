"""Sustainability scoring: per-layer sub-scores, composite score and grade."""

from __future__ import annotations

import math
from typing import Dict, List, Mapping, Optional, Tuple

from .constants import DEFAULT_GRADE_COLOR, GRADE_COLORS
from .models import (
    ALL_LAYERS,
    AirQualityMetrics,
    CompositeScore,
    GreenSpacesMetrics,
    LayerId,
    MetricPayload,
    ScoreBreakdown,
    SolarMetrics,
    TransitMetrics,
    WalkabilityMetrics,
)

MAX_SCORES: Dict[LayerId, float] = {
    LayerId.SOLAR: 40,
    LayerId.WALKABILITY: 30,
    LayerId.AIR_QUALITY: 20,
    LayerId.GREEN_SPACES: 30,
    LayerId.TRANSIT: 30,
}

GRADE_THRESHOLDS: List[Tuple[int, str]] = [
    (90, "A+"),
    (80, "A"),
    (70, "B+"),
    (60, "B"),
    (50, "C+"),
    (40, "C"),
    (30, "D"),
]

Components = Dict[str, float]


def clamp_value(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(maximum, value))


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _proximity(average_km: Optional[float], cap: float) -> float:
    if average_km is None:
        return 0.0
    return clamp_value(10 - average_km * 2, 0, cap)


def walkability_score(metrics: WalkabilityMetrics) -> Tuple[float, Components]:
    components = {
        "amenities": min(metrics.total_amenities * 2, 15),
        "diversity": min(len(metrics.amenity_types) * 2, 10),
        "proximity": _proximity(metrics.average_distance_km, 5),
    }
    return min(sum(components.values()), 30), components


def air_quality_score(aqi: Optional[float]) -> float:
    """Map the universal AQI (higher is cleaner) onto 0-20 in five linear bands."""

    if aqi is None or aqi < 1:
        return 0.0
    if aqi >= 80:
        score = 16 + (aqi - 80) / 20 * 4
    elif aqi >= 60:
        score = 12 + (aqi - 60) / 19 * 3.8
    elif aqi >= 40:
        score = 8 + (aqi - 40) / 19 * 3.8
    elif aqi >= 20:
        score = 4 + (aqi - 20) / 19 * 3.8
    else:
        score = 0.2 + (aqi - 1) / 18 * 3.6
    return clamp_value(score, 0, 20)


def solar_score(metrics: SolarMetrics) -> Tuple[float, Components]:
    if not metrics.has_potential:
        return 0.0, {}
    average = metrics.average_sunshine
    return min(average / 50, 40), {"average_sunshine": average, "total_area": metrics.total_area}


def green_spaces_score(metrics: GreenSpacesMetrics) -> Tuple[float, Components]:
    if not metrics.count:
        return 0.0, {}
    components = {
        "quantity": min(metrics.count * 3, 10),
        "proximity": _proximity(metrics.average_distance_km, 10),
        "quality": min(
            metrics.average_rating / 5 * 5
            + (3 if metrics.has_large_parks else 0)
            + len(metrics.park_types) * 0.5,
            10,
        ),
    }
    return min(sum(components.values()), 30), components


def transit_score(metrics: TransitMetrics) -> Tuple[float, Components]:
    if not metrics.count:
        return 0.0, {}
    components = {
        "stations": metrics.count * 3,
        "variety": len(metrics.station_types) * 5,
        "proximity": _proximity(metrics.average_distance_km, 10),
    }
    return min(sum(components.values()), 30), components


def layer_score(layer: LayerId, payload: Optional[MetricPayload]) -> Tuple[float, Components]:
    if payload is None:
        return 0.0, {}
    if layer is LayerId.WALKABILITY and isinstance(payload, WalkabilityMetrics):
        return walkability_score(payload)
    if layer is LayerId.AIR_QUALITY and isinstance(payload, AirQualityMetrics):
        return air_quality_score(payload.aqi), {}
    if layer is LayerId.SOLAR and isinstance(payload, SolarMetrics):
        return solar_score(payload)
    if layer is LayerId.GREEN_SPACES and isinstance(payload, GreenSpacesMetrics):
        return green_spaces_score(payload)
    if layer is LayerId.TRANSIT and isinstance(payload, TransitMetrics):
        return transit_score(payload)
    raise TypeError(f"{type(payload).__name__} is not a payload for layer {layer.value}")


def score_breakdown(
    activation: Mapping[LayerId, bool],
    payloads: Mapping[LayerId, Optional[MetricPayload]],
) -> List[ScoreBreakdown]:
    rows = []
    for layer in ALL_LAYERS:
        payload = payloads.get(layer)
        score, components = layer_score(layer, payload)
        maximum = MAX_SCORES[layer]
        rows.append(
            ScoreBreakdown(
                layer=layer,
                raw_score=clamp_value(score, 0, maximum),
                max_score=maximum,
                active=bool(activation.get(layer, False)),
                has_data=payload is not None,
                components=components,
            )
        )
    return rows


def grade_for(total: float) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if total >= threshold:
            return grade
    return "F"


def composite_score(breakdown: List[ScoreBreakdown]) -> CompositeScore:
    """Share of the reachable points actually earned by the active layers.

    Active layers still loading add their maximum to the denominator but
    nothing to the numerator, so incomplete data lowers the score.
    """

    earned = 0.0
    possible = 0.0
    for row in breakdown:
        if not row.active:
            continue
        possible += row.max_score
        if row.has_data:
            earned += row.raw_score
    total = round_half_up(earned / possible * 100) if possible > 0 else 0
    total = int(clamp_value(total, 0, 100))
    return CompositeScore(total=total, grade=grade_for(total))


def score_status(score: float, max_score: float) -> str:
    percentage = score / max_score * 100 if max_score else 0
    if percentage >= 80:
        return "success"
    if percentage >= 60:
        return "warning"
    return "error"


def grade_color(grade: Optional[str]) -> str:
    if not grade:
        return DEFAULT_GRADE_COLOR
    return GRADE_COLORS.get(grade[0], DEFAULT_GRADE_COLOR)


def layer_status_text(row: ScoreBreakdown) -> str:
    if not row.active:
        return "Disabled"
    if not row.has_data:
        return "Loading..."
    score = round_half_up(row.raw_score)
    contribution = round_half_up(score / row.max_score * 100) if score and row.max_score else 0
    return f"{score}/{row.max_score:g} ({contribution}%)"


def format_number(value: object) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return "N/A"
    return f"{round_half_up(value):,}"


def format_distance(distance: object) -> str:
    if isinstance(distance, bool) or not isinstance(distance, (int, float)):
        return "N/A"
    return f"{distance:.1f} km"


__all__ = [
    "MAX_SCORES",
    "clamp_value",
    "round_half_up",
    "walkability_score",
    "air_quality_score",
    "solar_score",
    "green_spaces_score",
    "transit_score",
    "layer_score",
    "score_breakdown",
    "grade_for",
    "composite_score",
    "score_status",
    "grade_color",
    "layer_status_text",
    "format_number",
    "format_distance",
]
