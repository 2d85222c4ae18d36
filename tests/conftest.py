"""Shared fixtures for the EcoMap test suite.

Provides a recording render surface, scriptable async providers whose
calls can be held open to simulate slow lookups, and representative
metric payloads for every layer.
"""

import asyncio
from functools import partial
from typing import Dict, List, Optional, Set, Tuple

import pytest

from ecomap_app.google import ProviderError
from ecomap_app.models import (
    ALL_LAYERS,
    AirQualityMetrics,
    Amenity,
    BoundingBox,
    GreenSpace,
    GreenSpacesMetrics,
    LatLng,
    LayerId,
    LayerResult,
    Location,
    MarkerPrimitive,
    RoofSegment,
    RoofSegmentStats,
    SolarMetrics,
    TransitMetrics,
    TransitStation,
    WalkabilityMetrics,
)


def make_segment(area=100.0, sunshine=1600.0, pitch=20.0, azimuth=180.0, height=10.0):
    return RoofSegment(
        pitch_degrees=pitch,
        azimuth_degrees=azimuth,
        plane_height_at_center_meters=height,
        center=LatLng(43.0, -80.0),
        bounding_box=BoundingBox(LatLng(42.9999, -80.0001), LatLng(43.0001, -79.9999)),
        stats=RoofSegmentStats(area_meters2=area, sunshine_quantiles=(sunshine,) * 11),
    )


def sample_payload(layer: LayerId):
    """A typical payload per layer (not maxed out)."""
    if layer is LayerId.SOLAR:
        # one segment at 1600 kWh/m²/yr -> 32/40
        return SolarMetrics(segments=(make_segment(),), panel_config_count=2, has_potential=True)
    if layer is LayerId.AIR_QUALITY:
        return AirQualityMetrics(aqi=45, category="Good air quality", dominant_pollutant="o3")
    if layer is LayerId.WALKABILITY:
        return WalkabilityMetrics(
            amenities={
                "cafe": tuple(Amenity(f"Cafe {i}", "cafe", 0.6, 43.0, -80.0) for i in range(3)),
                "park": tuple(Amenity(f"Park {i}", "park", 0.6, 43.0, -80.0) for i in range(3)),
                "school": tuple(Amenity(f"School {i}", "school", 0.6, 43.0, -80.0) for i in range(2)),
            }
        )
    if layer is LayerId.GREEN_SPACES:
        return GreenSpacesMetrics(
            spaces=(
                GreenSpace("p1", "Victoria Park", 43.0, -80.0, 20_000, 0.5, 4.0, 120, ("park", "point_of_interest")),
                GreenSpace("p2", "Riverside", 43.0, -80.0, 5_000, 1.5, 5.0, 30, ("park", "tourist_attraction", "establishment")),
            )
        )
    if layer is LayerId.TRANSIT:
        return TransitMetrics(
            stations=(
                TransitStation("t1", "King St", 43.0, -80.0, "bus_station", 0.5),
                TransitStation("t2", "Queen St", 43.0, -80.0, "bus_station", 1.0),
                TransitStation("t3", "Central", 43.0, -80.0, "subway_station", 1.5),
            )
        )
    raise AssertionError(layer)


class RecordingSurface:
    """Render surface that tracks attached primitives by identity."""

    def __init__(self):
        self.attached: List = []
        self.events: List[Tuple[str, object]] = []

    def attach(self, primitive):
        self.attached.append(primitive)
        self.events.append(("attach", primitive))

    def detach(self, primitive):
        for index, candidate in enumerate(self.attached):
            if candidate is primitive:
                del self.attached[index]
                self.events.append(("detach", primitive))
                return
        raise AssertionError("detached a primitive that was never attached")


class ScriptedProviders:
    """Async providers that can be held open or made to fail per layer."""

    def __init__(self, primitives_per_call: int = 2):
        self.primitives_per_call = primitives_per_call
        self.calls: List[Tuple[LayerId, Location]] = []
        self.blocked: Set[LayerId] = set()
        self.failing: Set[LayerId] = set()
        self.raising: Dict[LayerId, Exception] = {}
        self.failing_at: Set[Tuple[LayerId, Location]] = set()
        self._gates: Dict[LayerId, asyncio.Event] = {}

    def _gate(self, layer: LayerId) -> asyncio.Event:
        if layer not in self._gates:
            self._gates[layer] = asyncio.Event()
        return self._gates[layer]

    def block(self, layer: LayerId) -> None:
        self.blocked.add(layer)

    def release(self, layer: LayerId) -> None:
        self.blocked.discard(layer)
        self._gate(layer).set()

    def calls_for(self, layer: LayerId) -> List[Location]:
        return [location for called, location in self.calls if called is layer]

    def mapping(self):
        return {layer: partial(self._load, layer) for layer in ALL_LAYERS}

    async def _load(self, layer: LayerId, location: Location) -> LayerResult:
        self.calls.append((layer, location))
        if layer in self.blocked:
            await self._gate(layer).wait()
        if layer in self.failing or (layer, location) in self.failing_at:
            raise ProviderError(f"{layer.value} lookup failed")
        if layer in self.raising:
            raise self.raising[layer]
        primitives = tuple(
            MarkerPrimitive(position=(location.lat, location.lng, 0.0), color=(0, 0, 0, 255), label=f"{layer.value}-{i}")
            for i in range(self.primitives_per_call)
        )
        message: Optional[str] = "Walkability Score: 40/100" if layer is LayerId.WALKABILITY else None
        return LayerResult(primitives=primitives, payload=sample_payload(layer), message=message)


@pytest.fixture()
def surface():
    return RecordingSurface()


@pytest.fixture()
def providers():
    return ScriptedProviders()


@pytest.fixture()
def location():
    return Location(43.4330471, -80.4475974, 400.0)
