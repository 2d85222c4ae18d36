"""Shared constants for the EcoMap 3D Streamlit app."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional


ROOT_DIR = Path(__file__).resolve().parent.parent

GOOGLE_API_KEY_ENV = "GOOGLE_MAPS_API_KEY"
INSIGHTS_URL_ENV = "ECOMAP_INSIGHTS_URL"
LOG_LEVEL_ENV = "ECOMAP_LOG_LEVEL"


def google_api_key() -> Optional[str]:
    return os.getenv(GOOGLE_API_KEY_ENV) or None


def insights_url() -> Optional[str]:
    value = os.getenv(INSIGHTS_URL_ENV)
    return value.rstrip("/") if value else None


def log_level() -> str:
    return os.getenv(LOG_LEVEL_ENV, "INFO").upper()


GOOGLE_MAPS_BASE_URL = "https://maps.googleapis.com/maps/api"
AIR_QUALITY_URL = "https://airquality.googleapis.com/v1/currentConditions:lookup"
SOLAR_URL = "https://solar.googleapis.com/v1/buildingInsights:findClosest"
REQUEST_TIMEOUT = 10  # seconds

DEFAULT_LOCATION = {"lat": 43.4330471, "lng": -80.4475974, "altitude": 400.0}
SEARCH_ALTITUDE = 400.0

EARTH_RADIUS_KM = 6371.0
METERS_PER_DEGREE_LAT = 111111.0

# Roof projection
MIN_ROOF_PITCH_DEGREES = 0.2436
ROOF_SCALE_FACTOR = 0.8
DEGENERATE_ROOF_SIZE_M = 1.0  # footprint used when the bounding box is missing or flat
BUILDING_OUTLINE_CLEARANCE_M = 1.0

SOLAR_THRESHOLDS = {
    "excellent": 1200.0,  # kWh/m²/year
    "good": 1000.0,
    "fair": 800.0,
}

SOLAR_COLORS = {
    "excellent": [0, 150, 0, 178],
    "good": [150, 150, 0, 178],
    "fair": [150, 100, 0, 178],
    "poor": [150, 0, 0, 178],
    "unknown": [128, 128, 128, 128],
}

WHITE = [255, 255, 255, 255]
BUILDING_FILL = [100, 100, 100, 128]

# Provider search radii
AIR_QUALITY_RING_RADII_KM = (2.0, 1.5, 1.0, 0.5)
AIR_QUALITY_RING_POINTS = 32
WALKING_RADIUS_KM = 1.2  # roughly a 15 minute walk
WALKING_RING_POINTS = 64
GREEN_SPACE_RADIUS_M = 2000
CANOPY_HEIGHT_M = 30.0
TRANSIT_RADIUS_M = 1500
STATION_RADIUS_M = 20.0
STATION_ALTITUDE_M = 30.0
CONNECTION_ALTITUDE_M = 20.0

AIR_QUALITY_EXTRA_COMPUTATIONS = [
    "HEALTH_RECOMMENDATIONS",
    "DOMINANT_POLLUTANT_CONCENTRATION",
    "POLLUTANT_CONCENTRATION",
    "LOCAL_AQI",
    "POLLUTANT_ADDITIONAL_INFO",
]

WALKABLE_PLACE_TYPES = {
    "restaurant": [255, 82, 82],
    "cafe": [255, 152, 0],
    "grocery_or_supermarket": [76, 175, 80],
    "park": [102, 187, 106],
    "pharmacy": [233, 30, 99],
    "school": [33, 150, 243],
    "shopping_mall": [156, 39, 176],
    "convenience_store": [0, 188, 212],
    "bus_station": [255, 193, 7],
    "subway_station": [63, 81, 181],
    "train_station": [103, 58, 183],
}

TRANSIT_PLACE_TYPES = ["transit_station", "subway_station", "train_station", "bus_station"]

GENERIC_PLACE_TYPES = {"point_of_interest", "establishment"}
LARGE_PARK_AREA_M2 = 10_000

GRADE_COLORS = {
    "A": "#4CAF50",
    "B": "#8BC34A",
    "C": "#FFC107",
    "D": "#FF9800",
}
DEFAULT_GRADE_COLOR = "#F44336"


__all__ = [
    "ROOT_DIR",
    "google_api_key",
    "insights_url",
    "log_level",
    "GOOGLE_MAPS_BASE_URL",
    "AIR_QUALITY_URL",
    "SOLAR_URL",
    "REQUEST_TIMEOUT",
    "DEFAULT_LOCATION",
    "SEARCH_ALTITUDE",
    "EARTH_RADIUS_KM",
    "METERS_PER_DEGREE_LAT",
    "MIN_ROOF_PITCH_DEGREES",
    "ROOF_SCALE_FACTOR",
    "DEGENERATE_ROOF_SIZE_M",
    "BUILDING_OUTLINE_CLEARANCE_M",
    "SOLAR_THRESHOLDS",
    "SOLAR_COLORS",
    "WHITE",
    "BUILDING_FILL",
    "AIR_QUALITY_RING_RADII_KM",
    "AIR_QUALITY_RING_POINTS",
    "WALKING_RADIUS_KM",
    "WALKING_RING_POINTS",
    "GREEN_SPACE_RADIUS_M",
    "CANOPY_HEIGHT_M",
    "TRANSIT_RADIUS_M",
    "STATION_RADIUS_M",
    "STATION_ALTITUDE_M",
    "CONNECTION_ALTITUDE_M",
    "AIR_QUALITY_EXTRA_COMPUTATIONS",
    "WALKABLE_PLACE_TYPES",
    "TRANSIT_PLACE_TYPES",
    "GENERIC_PLACE_TYPES",
    "LARGE_PARK_AREA_M2",
    "GRADE_COLORS",
    "DEFAULT_GRADE_COLOR",
]
