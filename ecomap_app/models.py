"""Data models shared by the providers, the layer manager and the scorer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from statistics import mean
from typing import Dict, Optional, Tuple, Union

from .constants import DEFAULT_LOCATION, GENERIC_PLACE_TYPES, LARGE_PARK_AREA_M2


class LayerId(str, Enum):
    AIR_QUALITY = "air_quality"
    SOLAR = "solar"
    WALKABILITY = "walkability"
    GREEN_SPACES = "green_spaces"
    TRANSIT = "transit"

    @property
    def display_name(self) -> str:
        return LAYER_INFO[self][0]

    @property
    def description(self) -> str:
        return LAYER_INFO[self][1]


LAYER_INFO: Dict[LayerId, Tuple[str, str]] = {
    LayerId.AIR_QUALITY: ("Air Quality", "Real-time AQI data"),
    LayerId.SOLAR: ("Solar Potential", "Rooftop solar analysis"),
    LayerId.WALKABILITY: ("Walkability", "Walkability score"),
    LayerId.GREEN_SPACES: ("Green Spaces", "Parks and natural areas"),
    LayerId.TRANSIT: ("Transit", "Public transport access"),
}

ALL_LAYERS: Tuple[LayerId, ...] = tuple(LayerId)


class LocationOrigin(str, Enum):
    SEARCH = "search"
    MAP = "map"
    INITIAL = "initial"


class AltitudeMode(str, Enum):
    ABSOLUTE = "absolute"
    RELATIVE_TO_GROUND = "relative_to_ground"
    CLAMP_TO_GROUND = "clamp_to_ground"


@dataclass(frozen=True)
class LatLng:
    lat: float
    lng: float


@dataclass(frozen=True)
class Location:
    lat: float
    lng: float
    altitude: float = 0.0
    origin: LocationOrigin = LocationOrigin.INITIAL

    @property
    def point(self) -> LatLng:
        return LatLng(self.lat, self.lng)


DEFAULT_START = Location(
    lat=DEFAULT_LOCATION["lat"],
    lng=DEFAULT_LOCATION["lng"],
    altitude=DEFAULT_LOCATION["altitude"],
    origin=LocationOrigin.INITIAL,
)


@dataclass(frozen=True)
class BoundingBox:
    sw: LatLng
    ne: LatLng

    @property
    def lat_span(self) -> float:
        return self.ne.lat - self.sw.lat

    @property
    def lng_span(self) -> float:
        return self.ne.lng - self.sw.lng


@dataclass(frozen=True)
class RoofSegmentStats:
    area_meters2: float = 0.0
    sunshine_quantiles: Tuple[float, ...] = ()

    @property
    def mean_sunshine(self) -> float:
        if not self.sunshine_quantiles:
            return 0.0
        return mean(self.sunshine_quantiles)


@dataclass(frozen=True)
class RoofSegment:
    pitch_degrees: float
    azimuth_degrees: float
    plane_height_at_center_meters: float
    center: LatLng
    bounding_box: Optional[BoundingBox]
    stats: RoofSegmentStats = field(default_factory=RoofSegmentStats)


# (lat, lng, altitude)
Vertex = Tuple[float, float, float]
RGBA = Tuple[int, int, int, int]


@dataclass(frozen=True)
class PolygonPrimitive:
    ring: Tuple[Vertex, ...]
    fill_color: RGBA
    stroke_color: RGBA
    stroke_width: float = 1.0
    altitude_mode: AltitudeMode = AltitudeMode.ABSOLUTE
    extruded: bool = False
    label: str = ""


@dataclass(frozen=True)
class PolylinePrimitive:
    path: Tuple[Vertex, ...]
    stroke_color: RGBA
    stroke_width: float = 1.0
    altitude_mode: AltitudeMode = AltitudeMode.RELATIVE_TO_GROUND
    label: str = ""


@dataclass(frozen=True)
class MarkerPrimitive:
    position: Vertex
    color: RGBA
    altitude_mode: AltitudeMode = AltitudeMode.RELATIVE_TO_GROUND
    label: str = ""


Primitive = Union[PolygonPrimitive, PolylinePrimitive, MarkerPrimitive]


@dataclass(frozen=True)
class Place:
    """A normalized Places nearby-search result."""

    place_id: str
    name: str
    lat: float
    lng: float
    types: Tuple[str, ...] = ()
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = None
    viewport: Optional[BoundingBox] = None


@dataclass(frozen=True)
class SolarMetrics:
    segments: Tuple[RoofSegment, ...] = ()
    bounding_box: Optional[BoundingBox] = None
    max_sunshine_hours_per_year: Optional[float] = None
    max_array_area_meters2: Optional[float] = None
    carbon_offset_factor_kg_per_mwh: Optional[float] = None
    panel_config_count: int = 0
    has_potential: bool = False

    @property
    def total_area(self) -> float:
        return sum(segment.stats.area_meters2 for segment in self.segments)

    @property
    def average_sunshine(self) -> float:
        """Area-weighted mean of each segment's own sunshine quantile average."""

        total = self.total_area
        if total <= 0:
            return 0.0
        weighted = sum(s.stats.mean_sunshine * s.stats.area_meters2 for s in self.segments)
        return weighted / total


@dataclass(frozen=True)
class AirQualityMetrics:
    aqi: Optional[float] = None
    aqi_display: Optional[str] = None
    category: Optional[str] = None
    color: Tuple[int, int, int] = (0, 0, 0)
    index_name: Optional[str] = None
    dominant_pollutant: Optional[str] = None
    health_recommendations: Dict[str, str] = field(default_factory=dict)
    updated_at: Optional[str] = None

    @property
    def color_hex(self) -> str:
        return "#{:02x}{:02x}{:02x}".format(*self.color)


@dataclass(frozen=True)
class Amenity:
    name: str
    type: str
    distance_km: float
    lat: float
    lng: float


@dataclass(frozen=True)
class WalkabilityMetrics:
    amenities: Dict[str, Tuple[Amenity, ...]] = field(default_factory=dict)

    @property
    def total_amenities(self) -> int:
        return sum(len(places) for places in self.amenities.values())

    @property
    def amenity_types(self) -> Dict[str, int]:
        return {kind: len(places) for kind, places in self.amenities.items() if places}

    @property
    def average_distance_km(self) -> Optional[float]:
        distances = [place.distance_km for places in self.amenities.values() for place in places]
        return mean(distances) if distances else None


@dataclass(frozen=True)
class GreenSpace:
    place_id: str
    name: str
    lat: float
    lng: float
    area_m2: float
    distance_km: float
    rating: Optional[float] = None
    ratings_total: int = 0
    types: Tuple[str, ...] = ()


@dataclass(frozen=True)
class GreenSpacesMetrics:
    spaces: Tuple[GreenSpace, ...] = ()

    @property
    def count(self) -> int:
        return len(self.spaces)

    @property
    def total_area(self) -> float:
        return sum(space.area_m2 for space in self.spaces)

    @property
    def average_distance_km(self) -> Optional[float]:
        return mean(space.distance_km for space in self.spaces) if self.spaces else None

    @property
    def average_rating(self) -> float:
        # unrated parks count as zero
        if not self.spaces:
            return 0.0
        return mean(space.rating or 0.0 for space in self.spaces)

    @property
    def total_reviews(self) -> int:
        return sum(space.ratings_total for space in self.spaces)

    @property
    def has_large_parks(self) -> bool:
        return any(space.area_m2 > LARGE_PARK_AREA_M2 for space in self.spaces)

    @property
    def park_types(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for space in self.spaces:
            for kind in space.types:
                if kind in GENERIC_PLACE_TYPES:
                    continue
                counts[kind] = counts.get(kind, 0) + 1
        return counts


@dataclass(frozen=True)
class TransitStation:
    place_id: str
    name: str
    lat: float
    lng: float
    type: str
    distance_km: float


@dataclass(frozen=True)
class TransitMetrics:
    stations: Tuple[TransitStation, ...] = ()

    @property
    def count(self) -> int:
        return len(self.stations)

    @property
    def station_types(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for station in self.stations:
            counts[station.type] = counts.get(station.type, 0) + 1
        return counts

    @property
    def average_distance_km(self) -> Optional[float]:
        return mean(s.distance_km for s in self.stations) if self.stations else None


MetricPayload = Union[
    SolarMetrics, AirQualityMetrics, WalkabilityMetrics, GreenSpacesMetrics, TransitMetrics
]


@dataclass(frozen=True)
class LayerResult:
    primitives: Tuple[Primitive, ...]
    payload: MetricPayload
    message: Optional[str] = None


@dataclass(frozen=True)
class ScoreBreakdown:
    layer: LayerId
    raw_score: float
    max_score: float
    active: bool
    has_data: bool
    components: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class CompositeScore:
    total: int
    grade: str


@dataclass(frozen=True)
class Notification:
    message: str
    severity: str = "info"


__all__ = [
    "LayerId",
    "LAYER_INFO",
    "ALL_LAYERS",
    "LocationOrigin",
    "AltitudeMode",
    "LatLng",
    "Location",
    "DEFAULT_START",
    "BoundingBox",
    "RoofSegmentStats",
    "RoofSegment",
    "Vertex",
    "RGBA",
    "PolygonPrimitive",
    "PolylinePrimitive",
    "MarkerPrimitive",
    "Primitive",
    "Place",
    "SolarMetrics",
    "AirQualityMetrics",
    "Amenity",
    "WalkabilityMetrics",
    "GreenSpace",
    "GreenSpacesMetrics",
    "TransitStation",
    "TransitMetrics",
    "MetricPayload",
    "LayerResult",
    "ScoreBreakdown",
    "CompositeScore",
    "Notification",
]
