"""pydeck render surface and map interaction utilities."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Tuple

import numpy as np
import pandas as pd
import pydeck as pdk

from .models import (
    AltitudeMode,
    Location,
    MarkerPrimitive,
    PolygonPrimitive,
    PolylinePrimitive,
    Primitive,
    Vertex,
)


class RenderSurface(Protocol):
    def attach(self, primitive: Primitive) -> None: ...

    def detach(self, primitive: Primitive) -> None: ...


def click_grid(center: Location, span: float = 0.01, step: float = 0.0005) -> pd.DataFrame:
    """Invisible pickable points so a map click can move the analysis location."""

    lat_values = np.arange(center.lat - span, center.lat + span + step / 2, step)
    lng_values = np.arange(center.lng - span, center.lng + span + step / 2, step)
    lng_grid, lat_grid = np.meshgrid(lng_values, lat_values)
    df = pd.DataFrame({"lng": lng_grid.ravel(), "lat": lat_grid.ravel()})
    df["label"] = df.apply(lambda row: f"{row['lat']:.5f}, {row['lng']:.5f}", axis=1)
    return df


def _position(vertex: Vertex, mode: AltitudeMode) -> List[float]:
    lat, lng, altitude = vertex
    return [lng, lat, 0.0 if mode is AltitudeMode.CLAMP_TO_GROUND else altitude]


class DeckSurface:
    """Keeps the attached primitives and renders them as pydeck layers."""

    def __init__(self) -> None:
        self._attached: List[Primitive] = []

    @property
    def attached(self) -> Tuple[Primitive, ...]:
        return tuple(self._attached)

    def attach(self, primitive: Primitive) -> None:
        self._attached.append(primitive)

    def detach(self, primitive: Primitive) -> None:
        # identity, not equality: two layers may attach identical geometry
        for index, candidate in enumerate(self._attached):
            if candidate is primitive:
                del self._attached[index]
                return
        raise ValueError("primitive is not attached to this surface")

    def _polygon_frame(self, extruded: bool) -> pd.DataFrame:
        rows = []
        for primitive in self._attached:
            if not isinstance(primitive, PolygonPrimitive) or primitive.extruded != extruded:
                continue
            mode = primitive.altitude_mode
            rows.append(
                {
                    "polygon": [_position(vertex, mode) for vertex in primitive.ring],
                    "fill_color": list(primitive.fill_color),
                    "line_color": list(primitive.stroke_color),
                    "line_width": primitive.stroke_width,
                    "elevation": max((vertex[2] for vertex in primitive.ring), default=0.0),
                    "label": primitive.label,
                }
            )
        return pd.DataFrame(rows)

    def _path_frame(self) -> pd.DataFrame:
        rows = [
            {
                "path": [_position(vertex, p.altitude_mode) for vertex in p.path],
                "color": list(p.stroke_color),
                "width": p.stroke_width,
                "label": p.label,
            }
            for p in self._attached
            if isinstance(p, PolylinePrimitive)
        ]
        return pd.DataFrame(rows)

    def _marker_frame(self) -> pd.DataFrame:
        rows = []
        for p in self._attached:
            if not isinstance(p, MarkerPrimitive):
                continue
            lng, lat, altitude = _position(p.position, p.altitude_mode)
            rows.append(
                {"lng": lng, "lat": lat, "altitude": altitude, "color": list(p.color), "label": p.label}
            )
        return pd.DataFrame(rows)

    def layers(self) -> List[pdk.Layer]:
        layers: List[pdk.Layer] = []
        flat = self._polygon_frame(extruded=False)
        if not flat.empty:
            layers.append(
                pdk.Layer(
                    "PolygonLayer",
                    data=flat,
                    id="surface-polygons",
                    get_polygon="polygon",
                    get_fill_color="fill_color",
                    get_line_color="line_color",
                    get_line_width="line_width",
                    line_width_units="pixels",
                    stroked=True,
                    pickable=True,
                )
            )
        extruded = self._polygon_frame(extruded=True)
        if not extruded.empty:
            layers.append(
                pdk.Layer(
                    "PolygonLayer",
                    data=extruded,
                    id="surface-extruded",
                    get_polygon="polygon",
                    get_fill_color="fill_color",
                    get_line_color="line_color",
                    get_elevation="elevation",
                    extruded=True,
                    wireframe=True,
                    pickable=True,
                )
            )
        paths = self._path_frame()
        if not paths.empty:
            layers.append(
                pdk.Layer(
                    "PathLayer",
                    data=paths,
                    id="surface-paths",
                    get_path="path",
                    get_color="color",
                    get_width="width",
                    width_units="pixels",
                    pickable=True,
                )
            )
        markers = self._marker_frame()
        if not markers.empty:
            layers.append(
                pdk.Layer(
                    "ScatterplotLayer",
                    data=markers,
                    id="surface-markers",
                    get_position="[lng, lat, altitude]",
                    get_fill_color="color",
                    get_line_color=[255, 255, 255, 255],
                    get_radius=12,
                    radius_min_pixels=5,
                    stroked=True,
                    pickable=True,
                )
            )
        return layers

    def deck(self, location: Location, basemap_tile_url: Optional[str] = None) -> pdk.Deck:
        view_state = pdk.ViewState(
            latitude=location.lat, longitude=location.lng, zoom=16, pitch=60, bearing=0
        )
        layers: List[pdk.Layer] = []
        if basemap_tile_url:
            layers.append(
                pdk.Layer(
                    "TileLayer",
                    data=basemap_tile_url,
                    id="base-map",
                    min_zoom=0,
                    max_zoom=19,
                    tile_size=256,
                    pickable=False,
                )
            )
        layers.append(
            pdk.Layer(
                "ScatterplotLayer",
                data=click_grid(location),
                id="map-click-grid",
                get_position="[lng, lat]",
                get_radius=25,
                get_fill_color="[255, 255, 255, 12]",
                opacity=0.06,
                stroked=False,
                pickable=True,
            )
        )
        layers.extend(self.layers())
        layers.append(
            pdk.Layer(
                "ScatterplotLayer",
                data=pd.DataFrame(
                    [{"lat": location.lat, "lng": location.lng, "label": "Current location"}]
                ),
                id="selected-point",
                get_position="[lng, lat]",
                get_radius=15,
                get_fill_color=[17, 24, 39, 255],
                get_line_color=[248, 250, 252, 200],
                line_width_min_pixels=1,
                pickable=True,
            )
        )
        return pdk.Deck(
            map_style=None,
            initial_view_state=view_state,
            layers=layers,
            tooltip={"html": "{label}", "style": {"backgroundColor": "#0f172a", "color": "#f8fafc"}},
        )


def _first_float(mapping: Dict[str, Any], keys: Tuple[str, ...]) -> Optional[float]:
    for key in keys:
        value = mapping.get(key)
        if value is None:
            continue
        try:
            return float(value)
        except (TypeError, ValueError):
            continue
    return None


def _point_from_object(obj: Dict[str, Any]) -> Optional[Tuple[float, float]]:
    lat = _first_float(obj, ("lat", "latitude"))
    lng = _first_float(obj, ("lng", "lon", "longitude"))
    if lat is not None and lng is not None:
        return lat, lng
    return None


def _selected_objects(selection: Optional[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    if not selection:
        return {}
    event = selection.get("selection")
    if not event:
        return {}
    return event.get("objects") or {}


def selection_to_point(selection: Optional[Dict[str, Any]]) -> Optional[Tuple[float, float]]:
    """Coordinates of a click on the invisible grid, if any."""

    for obj in _selected_objects(selection).get("map-click-grid", []):
        point = _point_from_object(obj)
        if point:
            return point
    return None


def selection_label(selection: Optional[Dict[str, Any]]) -> Optional[str]:
    """Label of a clicked overlay primitive (station, park, amenity...)."""

    objects = _selected_objects(selection)
    for layer_id in ("surface-markers", "surface-extruded", "surface-polygons", "surface-paths"):
        for obj in objects.get(layer_id, []):
            if obj.get("label"):
                return obj["label"]
    return None


__all__ = [
    "RenderSurface",
    "DeckSurface",
    "click_grid",
    "selection_to_point",
    "selection_label",
]
