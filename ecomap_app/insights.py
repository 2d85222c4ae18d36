"""Narrative sustainability insights generated once all layers are active."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Callable, Mapping, Optional

import requests
from openai import OpenAI

from .constants import REQUEST_TIMEOUT, TRANSIT_RADIUS_M, WALKING_RADIUS_KM, insights_url
from .models import (
    ALL_LAYERS,
    AirQualityMetrics,
    GreenSpacesMetrics,
    LayerId,
    MetricPayload,
    SolarMetrics,
    TransitMetrics,
    WalkabilityMetrics,
)

logger = logging.getLogger(__name__)

MODEL_NAME = "gpt-5-nano"
INSTRUCTIONS = (
    "You are an urban sustainability analyst. "
    "Use only the metrics provided, highlight strengths before weaknesses, "
    "and answer in well-structured markdown."
)

Backend = Callable[[str], str]


class InsightsUnavailable(RuntimeError):
    """Raised when the narrative service cannot produce insights."""


def _solar_section(metrics: Optional[MetricPayload]) -> Optional[str]:
    if not isinstance(metrics, SolarMetrics) or not metrics.has_potential:
        return None
    return (
        "Solar Potential Highlights:\n"
        f"- Maximum Sunshine Hours: {metrics.max_sunshine_hours_per_year} hours/year\n"
        f"- Maximum Array Area: {metrics.max_array_area_meters2} m²\n"
        f"- Carbon Offset Factor: {metrics.carbon_offset_factor_kg_per_mwh} kg/MWh"
    )


def _air_section(metrics: Optional[MetricPayload]) -> Optional[str]:
    if not isinstance(metrics, AirQualityMetrics) or metrics.aqi is None:
        return None
    return (
        "Air Quality Overview:\n"
        f"- AQI: {metrics.aqi:g}\n"
        f"- Category: {metrics.category}\n"
        f"- Dominant Pollutant: {metrics.dominant_pollutant}"
    )


def _green_section(metrics: Optional[MetricPayload]) -> Optional[str]:
    if not isinstance(metrics, GreenSpacesMetrics) or not metrics.count:
        return None
    return (
        "Green Space Assessment:\n"
        f"- Number of Areas: {metrics.count}\n"
        f"- Average Rating: {metrics.average_rating:.1f}"
    )


def _transit_section(metrics: Optional[MetricPayload]) -> Optional[str]:
    if not isinstance(metrics, TransitMetrics) or not metrics.count:
        return None
    distribution = ", ".join(f"{kind}: {count}" for kind, count in metrics.station_types.items())
    return (
        f"Transit Accessibility ({TRANSIT_RADIUS_M}m radius):\n"
        f"- Number of Stations: {metrics.count}\n"
        f"- Distribution: {distribution}"
    )


def _walkability_section(metrics: Optional[MetricPayload]) -> Optional[str]:
    if not isinstance(metrics, WalkabilityMetrics) or not metrics.amenities:
        return None
    lines = [f"- {kind}: {len(places)} locations" for kind, places in metrics.amenities.items()]
    return f"Walkability Analysis ({WALKING_RADIUS_KM * 1000:.0f}m radius):\n" + "\n".join(lines)


def build_prompt(payloads: Mapping[LayerId, Optional[MetricPayload]]) -> str:
    """Format whatever metrics are present into the analysis prompt."""

    sections = [
        _solar_section(payloads.get(LayerId.SOLAR)),
        _air_section(payloads.get(LayerId.AIR_QUALITY)),
        _green_section(payloads.get(LayerId.GREEN_SPACES)),
        _transit_section(payloads.get(LayerId.TRANSIT)),
        _walkability_section(payloads.get(LayerId.WALKABILITY)),
    ]
    body = "\n\n".join(section for section in sections if section)
    return (
        "Analyze the available sustainability metrics for this location. "
        "Focus on the strengths and opportunities based on the following data:\n\n"
        f"{body}\n\n"
        "Based on the available data above, please provide in markdown format:\n"
        "1. Key sustainability strengths of this location\n"
        "2. Specific opportunities for improvement\n"
        "3. Overall sustainability assessment\n\n"
        "Please ensure your response uses proper markdown formatting with headers, bullet points, "
        "and emphasis where appropriate. Focus your analysis on the metrics that are present, "
        "providing actionable insights for the available data."
    )


def _openai_client() -> OpenAI:
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise InsightsUnavailable(
            "Neither ECOMAP_INSIGHTS_URL nor OPENAI_API_KEY is set. "
            "Configure one before requesting AI insights."
        )
    return OpenAI(api_key=api_key)


def openai_backend(prompt: str) -> str:
    """Call the OpenAI Responses API and return the generated markdown."""

    client = _openai_client()
    try:
        response = client.responses.create(model=MODEL_NAME, input=prompt, instructions=INSTRUCTIONS)
    except Exception as exc:  # pragma: no cover - depends on network/LLM availability
        raise InsightsUnavailable(f"LLM request failed: {exc}") from exc
    return (response.output_text or "").strip()


def http_backend(base_url: str, session: Optional[requests.Session] = None) -> Backend:
    """Backend posting ``{"prompt": ...}`` to ``{base_url}/api/insights``."""

    http = session or requests.Session()

    def call(prompt: str) -> str:
        try:
            response = http.post(
                f"{base_url}/api/insights", json={"prompt": prompt}, timeout=REQUEST_TIMEOUT * 6
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise InsightsUnavailable(f"Insights request failed: {exc}") from exc
        if not isinstance(data, dict):
            raise InsightsUnavailable("Insights service returned an unexpected payload")
        body = data.get("body")
        insights = data.get("insights") or (body.get("insights") if isinstance(body, dict) else None)
        if not insights or not isinstance(insights, str):
            raise InsightsUnavailable("Insights service returned no insights")
        return insights

    return call


def default_backend() -> Backend:
    url = insights_url()
    return http_backend(url) if url else openai_backend


class InsightsRequester:
    """Fires one insights request per session, the first time every layer is on."""

    def __init__(self, backend: Optional[Backend] = None):
        self._backend = backend
        self.fired = False
        self.prompt: Optional[str] = None
        self.insights: Optional[str] = None

    def trigger(
        self,
        activation: Mapping[LayerId, bool],
        payloads: Mapping[LayerId, Optional[MetricPayload]],
    ) -> Optional[str]:
        """Return the prompt to submit if this activation change should fire."""

        if self.fired or not all(activation.get(layer, False) for layer in ALL_LAYERS):
            return None
        self.fired = True
        self.prompt = build_prompt(payloads)
        return self.prompt

    async def submit(self, prompt: str) -> Optional[str]:
        backend = self._backend or default_backend()
        try:
            text = await asyncio.to_thread(backend, prompt)
        except InsightsUnavailable as exc:
            logger.warning("AI insights unavailable: %s", exc)
            return None
        self.insights = text
        logger.info("Stored AI insights (%d characters)", len(text))
        return text


__all__ = [
    "InsightsUnavailable",
    "InsightsRequester",
    "build_prompt",
    "openai_backend",
    "http_backend",
    "default_backend",
]
