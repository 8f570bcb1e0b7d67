"""
Main route calculation service
Sequences geocoding, directions and tile rendering, and degrades to
estimated values instead of failing when a provider is unavailable
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional

from app.config import RoutingConfig, settings
from app.models.request import RouteRequest
from app.models.response import Coordinate, RouteOutcome, RouteResult
from app.services.map.errors import MapServiceError
from app.services.map.map_service import MapService
from app.services.map.ors_map_service import OpenRouteServiceMapService
from app.services.map.tile_service import TileService
from app.services.route import FallbackService

logger = logging.getLogger(__name__)


class RouteState(str, Enum):
    START = "start"
    CHECK_CREDENTIAL = "check_credential"
    RESOLVE = "resolve"
    ESTIMATE = "estimate"
    FALLBACK = "fallback"
    RENDER_TILE = "render_tile"
    SKIP_TILE = "skip_tile"
    DONE = "done"


@dataclass
class RouteContext:
    """Per-calculation working state; never shared between requests"""
    request: RouteRequest
    origin: Optional[Coordinate] = None
    destination: Optional[Coordinate] = None
    result: Optional[RouteResult] = None
    map_image_ref: Optional[str] = None
    degraded: bool = False
    failures: List[str] = field(default_factory=list)
    visited: List[RouteState] = field(default_factory=list)

    @property
    def has_coordinates(self) -> bool:
        return self.origin is not None and self.destination is not None


class RouteService:
    """
    Route calculation orchestrator

    Flow: Check credential → Resolve → Estimate → Render tile, with the
    fallback estimator substituted wherever real data is unavailable
    """

    def __init__(
        self,
        config: Optional[RoutingConfig] = None,
        map_service: Optional[MapService] = None,
        tile_service: Optional[TileService] = None,
        fallback_service: Optional[FallbackService] = None,
    ):
        self.config = config or settings.routing_config()
        self.map_service = map_service or OpenRouteServiceMapService(self.config)
        self.tile_service = tile_service or TileService(self.config.tile_base_url)
        self.fallback_service = fallback_service or FallbackService()

        self._handlers: Dict[RouteState, Callable[[RouteContext], Awaitable[RouteState]]] = {
            RouteState.START: self._start,
            RouteState.CHECK_CREDENTIAL: self._check_credential,
            RouteState.RESOLVE: self._resolve,
            RouteState.ESTIMATE: self._estimate,
            RouteState.FALLBACK: self._fallback,
            RouteState.RENDER_TILE: self._render_tile,
            RouteState.SKIP_TILE: self._skip_tile,
        }

    async def calculate_route(self, request: RouteRequest) -> RouteOutcome:
        """Run the pipeline; always returns an outcome with numbers populated"""
        logger.info(
            "Calculating route from %s to %s using %s",
            request.from_location,
            request.to_location,
            request.transport_type,
        )

        context = RouteContext(request=request)
        state = RouteState.START
        while state is not RouteState.DONE:
            context.visited.append(state)
            state = await self._handlers[state](context)
        context.visited.append(state)

        outcome = self._build_outcome(context)
        logger.info(
            "Route calculation finished: distance=%skm, time=%smin",
            outcome.distance_km,
            outcome.duration_min,
            extra={
                "degraded": outcome.degraded,
                "failure_kind": ",".join(outcome.failures) or None,
            },
        )
        return outcome

    async def _start(self, context: RouteContext) -> RouteState:
        return RouteState.CHECK_CREDENTIAL

    async def _check_credential(self, context: RouteContext) -> RouteState:
        if self.config.has_credential:
            return RouteState.RESOLVE

        # Feature disabled, not a provider failure
        context.failures.append("routing:no_credential")
        logger.warning(
            "Routing API key not configured, using estimated route values",
            extra={"stage": RouteState.CHECK_CREDENTIAL.value, "failure_kind": "no_credential"},
        )
        return RouteState.FALLBACK

    async def _resolve(self, context: RouteContext) -> RouteState:
        request = context.request
        # The two lookups are independent
        results = await asyncio.gather(
            self.map_service.resolve(request.from_location),
            self.map_service.resolve(request.to_location),
            return_exceptions=True,
        )

        resolved: List[Optional[Coordinate]] = []
        for location, result in zip((request.from_location, request.to_location), results):
            if isinstance(result, MapServiceError):
                self._record_failure(context, RouteState.RESOLVE, result, location=location)
                resolved.append(None)
            elif isinstance(result, Exception):
                self._record_unexpected(context, RouteState.RESOLVE, "geocode", result, location=location)
                resolved.append(None)
            elif isinstance(result, BaseException):
                raise result
            else:
                resolved.append(result)

        context.origin, context.destination = resolved
        if not context.has_coordinates:
            return RouteState.FALLBACK
        return RouteState.ESTIMATE

    async def _estimate(self, context: RouteContext) -> RouteState:
        try:
            context.result = await self.map_service.estimate(
                context.origin, context.destination, context.request.transport_type
            )
        except MapServiceError as exc:
            self._record_failure(context, RouteState.ESTIMATE, exc)
            return RouteState.FALLBACK
        except Exception as exc:
            self._record_unexpected(context, RouteState.ESTIMATE, "directions", exc)
            return RouteState.FALLBACK
        return RouteState.RENDER_TILE

    async def _fallback(self, context: RouteContext) -> RouteState:
        logger.info(
            "Using estimated route values for %s -> %s",
            context.request.from_location,
            context.request.to_location,
            extra={"stage": RouteState.FALLBACK.value},
        )
        context.result = self.fallback_service.fallback(context.request)
        context.degraded = True

        if context.has_coordinates:
            return RouteState.RENDER_TILE
        return RouteState.SKIP_TILE

    async def _render_tile(self, context: RouteContext) -> RouteState:
        try:
            context.map_image_ref = await self.tile_service.fetch_tile(
                context.origin, context.destination, self.config.image_base_path
            )
        except MapServiceError as exc:
            # Image is optional: keep the numbers, drop the picture
            self._record_failure(context, RouteState.RENDER_TILE, exc)
            context.map_image_ref = None
        except Exception as exc:
            self._record_unexpected(context, RouteState.RENDER_TILE, "image", exc)
            context.map_image_ref = None
        return RouteState.DONE

    async def _skip_tile(self, context: RouteContext) -> RouteState:
        logger.debug("No coordinates available, skipping route image")
        return RouteState.DONE

    def _record_failure(
        self,
        context: RouteContext,
        state: RouteState,
        error: MapServiceError,
        location: Optional[str] = None,
    ) -> None:
        context.failures.append(error.diagnostic)
        logger.warning(
            "%s failed: %s",
            error.stage.capitalize(),
            error.message,
            extra={
                "stage": state.value,
                "failure_kind": error.kind.value,
                "location": location,
            },
        )

    def _record_unexpected(
        self,
        context: RouteContext,
        state: RouteState,
        stage: str,
        error: Exception,
        location: Optional[str] = None,
    ) -> None:
        context.failures.append(f"{stage}:unexpected")
        logger.error(
            "%s failed unexpectedly: %s",
            stage.capitalize(),
            error,
            exc_info=error,
            extra={
                "stage": state.value,
                "failure_kind": "unexpected",
                "location": location,
            },
        )

    def _build_outcome(self, context: RouteContext) -> RouteOutcome:
        result = context.result or self.fallback_service.fallback(context.request)
        return RouteOutcome(
            distance_km=result.distance_km,
            duration_min=result.duration_min,
            map_image_ref=context.map_image_ref,
            degraded=context.degraded,
            failures=list(context.failures),
        )
