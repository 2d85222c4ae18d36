"""Tests for the pydeck render surface and map selection helpers."""

import pytest

from ecomap_app.maps import DeckSurface, click_grid, selection_label, selection_to_point
from ecomap_app.models import (
    AltitudeMode,
    Location,
    MarkerPrimitive,
    PolygonPrimitive,
    PolylinePrimitive,
)

HERE = Location(43.0, -80.0, 400.0)
RING = ((43.0, -80.0, 5.0), (43.001, -80.0, 5.0), (43.001, -80.001, 5.0), (43.0, -80.0, 5.0))


def _polygon(extruded=False, mode=AltitudeMode.ABSOLUTE):
    return PolygonPrimitive(
        ring=RING,
        fill_color=(0, 255, 0, 77),
        stroke_color=(0, 255, 0, 255),
        altitude_mode=mode,
        extruded=extruded,
        label="Park",
    )


class TestDeckSurface:
    def test_detach_by_identity(self):
        surface = DeckSurface()
        first, second = _polygon(), _polygon()
        surface.attach(first)
        surface.attach(second)

        surface.detach(second)

        assert len(surface.attached) == 1
        assert surface.attached[0] is first

    def test_detach_unknown_primitive(self):
        surface = DeckSurface()
        surface.attach(_polygon())
        with pytest.raises(ValueError):
            surface.detach(_polygon())

    def test_layers_group_primitives_by_kind(self):
        surface = DeckSurface()
        surface.attach(_polygon())
        surface.attach(_polygon(extruded=True))
        surface.attach(PolylinePrimitive(path=RING[:2], stroke_color=(0, 0, 255, 128), label="Line"))
        surface.attach(MarkerPrimitive(position=RING[0], color=(255, 0, 0, 255), label="Cafe"))

        ids = [layer.id for layer in surface.layers()]

        assert ids == ["surface-polygons", "surface-extruded", "surface-paths", "surface-markers"]

    def test_empty_surface_has_no_overlay_layers(self):
        assert DeckSurface().layers() == []

    def test_clamped_polygons_lie_on_the_ground(self):
        surface = DeckSurface()
        surface.attach(_polygon(mode=AltitudeMode.CLAMP_TO_GROUND))
        frame = surface._polygon_frame(extruded=False)
        assert {vertex[2] for vertex in frame.iloc[0]["polygon"]} == {0.0}

    def test_deck_includes_click_grid_and_location(self):
        surface = DeckSurface()
        surface.attach(_polygon())
        deck = surface.deck(HERE, "https://tiles.example/{z}/{x}/{y}.png")

        ids = [layer.id for layer in deck.layers]

        assert ids == ["base-map", "map-click-grid", "surface-polygons", "selected-point"]


def test_click_grid_is_centred():
    grid = click_grid(HERE, span=0.001, step=0.0005)

    assert len(grid) == 25
    assert grid["lat"].min() == pytest.approx(42.999)
    assert grid["lng"].max() == pytest.approx(-79.999)
    assert "label" in grid.columns


class TestSelection:
    def test_point_from_grid_click(self):
        selection = {"selection": {"objects": {"map-click-grid": [{"lat": 43.1, "lng": -80.2}]}}}
        assert selection_to_point(selection) == (43.1, -80.2)

    def test_clicks_on_other_layers_do_not_move(self):
        selection = {"selection": {"objects": {"surface-markers": [{"lat": 43.1, "lng": -80.2, "label": "Cafe"}]}}}
        assert selection_to_point(selection) is None
        assert selection_label(selection) == "Cafe"

    def test_empty_selection(self):
        assert selection_to_point(None) is None
        assert selection_to_point({"selection": {}}) is None
        assert selection_label({}) is None
