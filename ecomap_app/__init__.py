"""Support modules for the EcoMap 3D Streamlit app."""

from . import (  # noqa: F401
    airquality,
    constants,
    geomath,
    google,
    greenspaces,
    insights,
    layers,
    maps,
    models,
    roof,
    scoring,
    solar,
    transit,
    walkability,
)

__all__ = [
    "airquality",
    "constants",
    "geomath",
    "google",
    "greenspaces",
    "insights",
    "layers",
    "maps",
    "models",
    "roof",
    "scoring",
    "solar",
    "transit",
    "walkability",
]
