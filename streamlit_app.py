"""Streamlit front-end for EcoMap 3D.

Five overlays (air quality, solar potential, walkability, green spaces and
transit) are toggled from the sidebar. Only one overlay is drawn on the
pydeck map at a time; every active overlay still counts towards the
sustainability score shown next to the map. Click the map or search for an
address to move the analysis location.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine, List, Optional

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from ecomap_app.airquality import health_recommendation_rows
from ecomap_app.constants import SEARCH_ALTITUDE, log_level
from ecomap_app.google import GoogleMapsClient, ProviderError
from ecomap_app.layers import LayerLifecycleManager, default_providers
from ecomap_app.maps import DeckSurface, selection_label, selection_to_point
from ecomap_app.models import (
    ALL_LAYERS,
    AirQualityMetrics,
    GreenSpacesMetrics,
    LayerId,
    Location,
    LocationOrigin,
    ScoreBreakdown,
    SolarMetrics,
    TransitMetrics,
    WalkabilityMetrics,
)
from ecomap_app.scoring import (
    format_distance,
    format_number,
    grade_color,
    layer_status_text,
    score_status,
)
from ecomap_app.walkability import walkability_percentage

logging.basicConfig(level=log_level())
logger = logging.getLogger(__name__)

st.set_page_config(page_title="EcoMap 3D: Sustainability Explorer", layout="wide")


LAYER_ICONS = {
    LayerId.AIR_QUALITY: "💨",
    LayerId.SOLAR: "☀️",
    LayerId.WALKABILITY: "🚶",
    LayerId.GREEN_SPACES: "🌳",
    LayerId.TRANSIT: "🚆",
}

BASEMAP_TEMPLATES = {
    "None": None,
    "Street view": "https://a.tile.openstreetmap.org/{z}/{x}/{y}.png",
    "Satellite view": "https://services.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
}

STATUS_ICONS = {"success": "✅", "warning": "⚠️", "error": "❌", "info": "ℹ️"}


def _run(coro: Coroutine[Any, Any, Any]) -> Any:
    return asyncio.run(coro)


def _manager() -> LayerLifecycleManager:
    return st.session_state.manager


def _initialise_session_state() -> None:
    if "manager" in st.session_state:
        return
    try:
        client = GoogleMapsClient.from_env()
    except ProviderError as exc:
        st.error(str(exc))
        st.stop()
    st.session_state.client = client
    st.session_state.manager = LayerLifecycleManager(DeckSurface(), default_providers(client))


def _toggle_layer(layer: LayerId) -> None:
    _run(_manager().toggle(layer))


def _select_panel() -> None:
    label = st.session_state.get("panel_choice")
    layer = next((item for item in ALL_LAYERS if item.display_name == label), None)
    _run(_manager().select_panel(layer))


def _search_location() -> None:
    query = (st.session_state.get("search_query") or "").strip()
    if not query:
        return
    try:
        point = st.session_state.client.geocode(address=query)
    except ProviderError as exc:
        logger.warning("Geocoding %r failed: %s", query, exc)
        _manager().notify(f"Could not find '{query}'", "error")
        return
    location = Location(point.lat, point.lng, SEARCH_ALTITUDE, LocationOrigin.SEARCH)
    _run(_manager().on_location_change(location))


def _radar_chart(breakdown: List[ScoreBreakdown]) -> go.Figure:
    rows = [row for row in breakdown if row.active]
    categories = [row.layer.display_name for row in rows]
    values = [round(row.raw_score / row.max_score * 100) if row.has_data else 0 for row in rows]
    return go.Figure(
        data=go.Scatterpolar(
            r=values + values[:1], theta=categories + categories[:1], fill="toself"
        )
    ).update_layout(
        polar={"radialaxis": {"visible": True, "range": [0, 100]}},
        showlegend=False,
        margin=dict(l=20, r=20, t=20, b=20),
    )


def _air_quality_panel(metrics: AirQualityMetrics) -> None:
    if metrics.aqi is None:
        st.info("No air quality index reported for this location.")
        return
    st.markdown(
        f"<div style='font-size:2.2rem;font-weight:700;color:{metrics.color_hex}'>"
        f"{metrics.aqi_display or format_number(metrics.aqi)}</div>",
        unsafe_allow_html=True,
    )
    st.write(f"**{metrics.category or 'Unknown category'}** · {metrics.index_name or ''}")
    if metrics.dominant_pollutant:
        st.caption(f"Dominant pollutant: {metrics.dominant_pollutant.upper()}")
    for group, advice in health_recommendation_rows(metrics):
        with st.expander(group):
            st.write(advice)
    if metrics.updated_at:
        st.caption(f"Last updated: {metrics.updated_at}")


def _solar_panel(metrics: SolarMetrics) -> None:
    if not metrics.has_potential:
        st.info("No solar potential data for the closest building.")
        return
    col_a, col_b = st.columns(2)
    col_a.metric("Max sunshine", f"{format_number(metrics.max_sunshine_hours_per_year)} h/yr")
    col_b.metric("Max array area", f"{format_number(metrics.max_array_area_meters2)} m²")
    col_a.metric("Carbon offset", f"{format_number(metrics.carbon_offset_factor_kg_per_mwh)} kg/MWh")
    col_b.metric("Panel configurations", metrics.panel_config_count)
    st.caption(
        f"{len(metrics.segments)} roof segments · "
        f"{format_number(metrics.total_area)} m² · "
        f"average sunshine {format_number(metrics.average_sunshine)} kWh/m²/yr"
    )


def _walkability_panel(metrics: WalkabilityMetrics) -> None:
    st.metric("Walkability", f"{walkability_percentage(metrics)}/100")
    st.caption(
        f"{metrics.total_amenities} amenities · average {format_distance(metrics.average_distance_km)}"
    )
    rows = [
        {"Type": kind.replace("_", " ").title(), "Count": len(places)}
        for kind, places in metrics.amenities.items()
        if places
    ]
    if rows:
        st.dataframe(pd.DataFrame(rows), hide_index=True, use_container_width=True)


def _green_spaces_panel(metrics: GreenSpacesMetrics) -> None:
    if not metrics.count:
        st.info("No parks found within 2 km.")
        return
    st.caption(
        f"{metrics.count} green spaces · {format_number(metrics.total_area)} m² · "
        f"average rating {metrics.average_rating:.1f} ({metrics.total_reviews} reviews)"
    )
    rows = [
        {
            "Name": space.name,
            "Distance": format_distance(space.distance_km),
            "Rating": space.rating if space.rating is not None else "N/A",
            "Area (m²)": format_number(space.area_m2),
        }
        for space in sorted(metrics.spaces, key=lambda space: space.distance_km)
    ]
    st.dataframe(pd.DataFrame(rows), hide_index=True, use_container_width=True)


def _transit_panel(metrics: TransitMetrics) -> None:
    if not metrics.count:
        st.info("No transit stations found within 1.5 km.")
        return
    st.caption(
        ", ".join(f"{kind.replace('_', ' ')}: {count}" for kind, count in metrics.station_types.items())
    )
    rows = [
        {
            "Station": station.name,
            "Type": station.type.replace("_", " "),
            "Distance": format_distance(station.distance_km),
        }
        for station in sorted(metrics.stations, key=lambda station: station.distance_km)
    ]
    st.dataframe(pd.DataFrame(rows), hide_index=True, use_container_width=True)


PANELS = {
    LayerId.AIR_QUALITY: _air_quality_panel,
    LayerId.SOLAR: _solar_panel,
    LayerId.WALKABILITY: _walkability_panel,
    LayerId.GREEN_SPACES: _green_spaces_panel,
    LayerId.TRANSIT: _transit_panel,
}


def _detail_panel(manager: LayerLifecycleManager) -> None:
    layer = manager.selected_panel
    if layer is None or not manager.is_active(layer):
        return
    st.subheader(f"{LAYER_ICONS[layer]} {layer.display_name}")
    payload = manager.payload(layer)
    if payload is None:
        if manager.loading is layer:
            st.caption("Loading...")
        else:
            st.caption("Show this layer on the map to load its data.")
        return
    PANELS[layer](payload)


def _score_panel(manager: LayerLifecycleManager) -> None:
    breakdown = manager.breakdown()
    composite = manager.composite()
    st.subheader("Sustainability score")
    st.markdown(
        f"<div style='font-size:3rem;font-weight:800;color:{grade_color(composite.grade)}'>"
        f"{composite.grade} <span style='font-size:1.4rem'>{composite.total}/100</span></div>",
        unsafe_allow_html=True,
    )
    for row in breakdown:
        status = layer_status_text(row)
        icon = ""
        if row.active and row.has_data:
            icon = STATUS_ICONS[score_status(row.raw_score, row.max_score)]
        st.write(f"{LAYER_ICONS[row.layer]} **{row.layer.display_name}** · {status} {icon}")
        if row.active and row.has_data:
            st.progress(min(row.raw_score / row.max_score, 1.0))
    if any(row.active for row in breakdown):
        st.plotly_chart(_radar_chart(breakdown), use_container_width=True)

    st.divider()
    st.subheader("🧠 AI insights")
    if manager.insights.insights:
        st.markdown(manager.insights.insights)
    elif manager.insights.fired:
        st.caption("Insights could not be generated for this session.")
    else:
        st.caption("Activate all five layers to generate AI insights.")


def main() -> None:
    _initialise_session_state()
    manager = _manager()

    st.sidebar.header("Location")
    st.sidebar.text_input("Search address", key="search_query", on_change=_search_location)
    st.sidebar.caption(f"📍 {manager.location.lat:.5f}, {manager.location.lng:.5f}")

    st.sidebar.header("Layers")
    for layer in ALL_LAYERS:
        st.sidebar.checkbox(
            f"{LAYER_ICONS[layer]} {layer.display_name}",
            value=manager.is_active(layer),
            help=layer.description,
            key=f"layer-{layer.value}",
            on_change=_toggle_layer,
            args=(layer,),
        )

    active = manager.active_layers()
    if active:
        labels = [layer.display_name for layer in active]
        current = manager.selected_panel
        index = labels.index(current.display_name) if current in active else None
        st.sidebar.radio(
            "Details panel",
            labels,
            index=index,
            key="panel_choice",
            on_change=_select_panel,
        )

    basemap_choice = st.sidebar.selectbox("Basemap", list(BASEMAP_TEMPLATES), index=1)

    st.title("🌍 EcoMap 3D: Sustainability Explorer")
    col_map, col_score = st.columns([1.8, 1.2], gap="large")

    with col_map:
        shown: Optional[LayerId] = manager.visible
        if manager.loading is not None:
            st.caption(f"Loading {manager.loading.display_name}…")
        elif shown is not None:
            st.caption(f"Showing {LAYER_ICONS[shown]} {shown.display_name}")
        deck = manager.surface.deck(manager.location, BASEMAP_TEMPLATES[basemap_choice])
        selection_state = st.pydeck_chart(
            deck,
            use_container_width=True,
            selection_mode="single-object",
            on_select="rerun",
            key="map-explorer",
        )
        label = selection_label(selection_state)
        if label:
            st.toast(label)
        selected_point = selection_to_point(selection_state)
        if selected_point:
            lat, lng = selected_point
            if abs(manager.location.lat - lat) > 1e-6 or abs(manager.location.lng - lng) > 1e-6:
                location = Location(lat, lng, manager.location.altitude, LocationOrigin.MAP)
                _run(manager.on_location_change(location))
                st.rerun()
        st.caption("Tip: click the map to move the analysis location.")
        _detail_panel(manager)

    with col_score:
        _score_panel(manager)

    for notification in manager.drain_notifications():
        st.toast(notification.message, icon=STATUS_ICONS.get(notification.severity))


if __name__ == "__main__":
    main()
