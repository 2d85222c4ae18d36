"""Layer lifecycle: activation flags, the single rendered layer, location changes.

Provider calls suspend, so the user can toggle layers or move the viewpoint
before a call resolves. Every call captures the generation counter and the
location when it starts; a result whose generation is no longer current is
dropped without touching the render surface, the handles or ``visible``.
"""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Awaitable, Callable, Dict, List, Mapping, Optional, Tuple

from .airquality import load_air_quality
from .google import GoogleMapsClient, ProviderError
from .greenspaces import load_green_spaces
from .insights import InsightsRequester
from .maps import RenderSurface
from .models import (
    ALL_LAYERS,
    DEFAULT_START,
    CompositeScore,
    LayerId,
    LayerResult,
    Location,
    MetricPayload,
    Notification,
    Primitive,
    ScoreBreakdown,
)
from .scoring import composite_score, score_breakdown
from .solar import load_solar
from .transit import load_transit
from .walkability import load_walkability

logger = logging.getLogger(__name__)

Provider = Callable[[Location], Awaitable[LayerResult]]


def default_providers(client: GoogleMapsClient) -> Dict[LayerId, Provider]:
    return {
        LayerId.AIR_QUALITY: partial(load_air_quality, client),
        LayerId.SOLAR: partial(load_solar, client),
        LayerId.WALKABILITY: partial(load_walkability, client),
        LayerId.GREEN_SPACES: partial(load_green_spaces, client),
        LayerId.TRANSIT: partial(load_transit, client),
    }


class LayerLifecycleManager:
    """Single owner of layer state and of everything attached to the surface."""

    def __init__(
        self,
        surface: RenderSurface,
        providers: Mapping[LayerId, Provider],
        location: Location = DEFAULT_START,
        insights: Optional[InsightsRequester] = None,
    ):
        missing = [layer.value for layer in ALL_LAYERS if layer not in providers]
        if missing:
            raise ValueError(f"No provider registered for: {', '.join(missing)}")
        self.surface = surface
        self._providers = dict(providers)
        self.location = location
        self.activation: Dict[LayerId, bool] = {}
        self.visible: Optional[LayerId] = None
        self.loading: Optional[LayerId] = None
        self.handles: Dict[LayerId, Tuple[Primitive, ...]] = {}
        self.payloads: Dict[LayerId, MetricPayload] = {}
        self.generation = 0
        self.selected_panel: Optional[LayerId] = None
        self.insights = insights or InsightsRequester()
        self._notifications: List[Notification] = []

    # -- queries -----------------------------------------------------------

    def is_active(self, layer: LayerId) -> bool:
        return self.activation.get(layer, False)

    def active_layers(self) -> List[LayerId]:
        return [layer for layer in ALL_LAYERS if self.is_active(layer)]

    def payload(self, layer: LayerId) -> Optional[MetricPayload]:
        return self.payloads.get(layer)

    def breakdown(self) -> List[ScoreBreakdown]:
        return score_breakdown(self.activation, self.payloads)

    def composite(self) -> CompositeScore:
        return composite_score(self.breakdown())

    def notify(self, message: str, severity: str = "info") -> None:
        self._notifications.append(Notification(message, severity))

    def drain_notifications(self) -> List[Notification]:
        drained, self._notifications = self._notifications, []
        return drained

    # -- activation --------------------------------------------------------

    async def activate(self, layer: LayerId) -> None:
        if self.is_active(layer):
            return
        self.activation[layer] = True
        logger.info("Activated %s layer", layer.value)
        prompt = self.insights.trigger(self.activation, self.payloads)
        if prompt is None:
            await self.set_visible(layer)
        else:
            await asyncio.gather(self.set_visible(layer), self.insights.submit(prompt))

    async def deactivate(self, layer: LayerId) -> None:
        self.activation[layer] = False
        self.payloads.pop(layer, None)
        logger.info("Deactivated %s layer", layer.value)
        if layer in (self.visible, self.loading):
            await self.set_visible(None)

    async def toggle(self, layer: LayerId) -> None:
        if self.is_active(layer):
            await self.deactivate(layer)
        else:
            await self.activate(layer)

    async def select_panel(self, layer: Optional[LayerId]) -> None:
        self.selected_panel = layer
        if layer is not None and self.is_active(layer):
            await self.set_visible(layer)

    # -- rendering ---------------------------------------------------------

    def _teardown_all(self) -> None:
        # at most one handle should exist; clear any stray one as well
        for layer, handle in list(self.handles.items()):
            for primitive in handle:
                self.surface.detach(primitive)
            logger.debug("Detached %d primitives for %s", len(handle), layer.value)
        self.handles.clear()
        self.visible = None

    async def set_visible(self, layer: Optional[LayerId]) -> None:
        if layer is not None and layer in (self.visible, self.loading):
            return
        if layer is None and self.visible is None and self.loading is None:
            return
        if layer is not None and not self.is_active(layer):
            logger.warning("Ignoring request to show inactive layer %s", layer.value)
            return

        self._teardown_all()
        if layer is None:
            self.generation += 1
            self.loading = None
            return
        await self._load(layer)

    async def _load(self, layer: LayerId) -> None:
        self.generation += 1
        my_generation = self.generation
        location = self.location
        self.loading = layer

        try:
            result = await self._providers[layer](location)
        except Exception as exc:
            if my_generation != self.generation:
                logger.debug("Ignoring stale %s failure: %s", layer.value, exc)
                return
            self.loading = None
            self.payloads.pop(layer, None)
            if isinstance(exc, ProviderError):
                logger.warning("Failed to load %s layer: %s", layer.value, exc)
            else:
                logger.exception("Unexpected error while loading %s layer", layer.value)
            self.notify(f"Failed to load {layer.display_name.lower()} data", "error")
            return

        if my_generation != self.generation:
            logger.debug(
                "Discarding stale %s result (generation %d, current %d)",
                layer.value,
                my_generation,
                self.generation,
            )
            return

        self.loading = None
        self._teardown_all()
        for primitive in result.primitives:
            self.surface.attach(primitive)
        self.handles[layer] = result.primitives
        self.payloads[layer] = result.payload
        self.visible = layer
        if result.message:
            self.notify(result.message, "success")
        logger.info(
            "Showing %s layer with %d primitives at %.5f, %.5f",
            layer.value,
            len(result.primitives),
            location.lat,
            location.lng,
        )

    # -- location ----------------------------------------------------------

    async def on_location_change(self, location: Location) -> None:
        """Replace the location, invalidate active payloads, refresh the shown layer."""

        self.location = location
        for layer in self.active_layers():
            self.payloads.pop(layer, None)
        target = self.visible or self.loading
        logger.info(
            "Location changed to %.5f, %.5f (%s)", location.lat, location.lng, location.origin.value
        )
        self._teardown_all()
        if target is None:
            self.generation += 1
            return
        await self._load(target)


__all__ = ["Provider", "default_providers", "LayerLifecycleManager"]
