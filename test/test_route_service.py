"""Tests for the route calculation pipeline and its degrade policy."""

import asyncio
import itertools

import httpx
import pytest

from app.config import RoutingConfig
from app.models.request import RouteRequest
from app.models.response import Coordinate, RouteResult
from app.services.map.errors import (
    DirectionsError,
    DirectionsFailure,
    GeocodeError,
    GeocodeFailure,
    ImageError,
    ImageFailure,
)
from app.services.map.ors_map_service import OpenRouteServiceMapService
from app.services.map.tile_service import TileService
from app.services.route_service import RouteService, RouteState

VIENNA = Coordinate(longitude=16.37, latitude=48.21)
SALZBURG = Coordinate(longitude=13.04, latitude=47.80)


class StubMapService:
    def __init__(self, locations=None, estimate=None):
        self.locations = locations or {}
        self.estimate_result = estimate
        self.resolved = []
        self.estimated = []

    async def resolve(self, location_text):
        self.resolved.append(location_text)
        value = self.locations.get(
            location_text, GeocodeError(GeocodeFailure.NO_RESULTS)
        )
        if isinstance(value, BaseException):
            raise value
        return value

    async def estimate(self, origin, destination, transport_type):
        self.estimated.append((origin, destination, transport_type))
        if isinstance(self.estimate_result, BaseException):
            raise self.estimate_result
        return self.estimate_result


class StubTileService:
    def __init__(self, result="route_test.png"):
        self.result = result
        self.calls = []

    async def fetch_tile(self, origin, destination, storage_dir):
        self.calls.append((origin, destination, storage_dir))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def _config(api_key="secret-key", image_base_path="./resources/images"):
    return RoutingConfig(routing_api_key=api_key, image_base_path=image_base_path)


def _request(**kwargs):
    values = {"from_location": "Vienna", "to_location": "Salzburg", "transport_type": "car"}
    values.update(kwargs)
    return RouteRequest(**values)


def _run(service, request=None):
    return asyncio.run(service.calculate_route(request or _request()))


def test_missing_credential_degrades_without_calling_providers():
    map_service = StubMapService()
    tile_service = StubTileService()
    service = RouteService(_config(api_key=""), map_service, tile_service)

    outcome = _run(service)

    assert outcome.distance_km == 100.0
    assert outcome.duration_min == 120
    assert outcome.map_image_ref is None
    assert outcome.degraded is True
    assert outcome.failures == ["routing:no_credential"]
    assert map_service.resolved == []
    assert tile_service.calls == []


def test_destination_geocode_failure_falls_back_and_skips_tile():
    map_service = StubMapService(
        locations={
            "Vienna": VIENNA,
            "Salzburg": GeocodeError(GeocodeFailure.NO_RESULTS),
        },
        estimate=RouteResult(distance_km=295.4, duration_min=179),
    )
    tile_service = StubTileService()
    service = RouteService(_config(), map_service, tile_service)

    outcome = _run(service)

    assert outcome.model_dump() == {
        "distance_km": 100.0,
        "duration_min": 120,
        "map_image_ref": None,
        "degraded": True,
        "failures": ["geocode:no_results"],
    }
    assert sorted(map_service.resolved) == ["Salzburg", "Vienna"]
    assert map_service.estimated == []
    assert tile_service.calls == []


def test_full_success_uses_provider_values_and_stores_image():
    map_service = StubMapService(
        locations={"Vienna": VIENNA, "Salzburg": SALZBURG},
        estimate=RouteResult(distance_km=295.4327, duration_min=179),
    )
    tile_service = StubTileService("route_0b5c.png")
    service = RouteService(_config(image_base_path="/srv/images"), map_service, tile_service)

    outcome = _run(service)

    assert outcome.degraded is False
    assert outcome.distance_km == 295.4327
    assert outcome.duration_min == 179
    assert outcome.map_image_ref == "route_0b5c.png"
    assert outcome.failures == []
    assert map_service.estimated == [(VIENNA, SALZBURG, "car")]
    assert tile_service.calls == [(VIENNA, SALZBURG, "/srv/images")]


def test_directions_failure_falls_back_but_still_renders_tile():
    map_service = StubMapService(
        locations={"Vienna": VIENNA, "Salzburg": SALZBURG},
        estimate=DirectionsError(DirectionsFailure.NO_ROUTE),
    )
    tile_service = StubTileService("route_tile.png")
    service = RouteService(_config(), map_service, tile_service)

    outcome = _run(service, _request(distance_km=42.0))

    assert outcome.degraded is True
    assert outcome.distance_km == 42.0
    assert outcome.duration_min == 120
    assert outcome.map_image_ref == "route_tile.png"
    assert outcome.failures == ["directions:no_route"]


def test_tile_failure_is_not_fatal_and_keeps_real_numbers():
    map_service = StubMapService(
        locations={"Vienna": VIENNA, "Salzburg": SALZBURG},
        estimate=RouteResult(distance_km=10.0, duration_min=12),
    )
    tile_service = StubTileService(ImageError(ImageFailure.WRITE_FAILURE))
    service = RouteService(_config(), map_service, tile_service)

    outcome = _run(service)

    assert outcome.degraded is False
    assert outcome.distance_km == 10.0
    assert outcome.duration_min == 12
    assert outcome.map_image_ref is None
    assert outcome.failures == ["image:write_failure"]


def test_unexpected_geocode_error_degrades_instead_of_raising():
    map_service = StubMapService(
        locations={"Vienna": RuntimeError("bad payload"), "Salzburg": SALZBURG},
        estimate=RouteResult(distance_km=5.0, duration_min=6),
    )
    tile_service = StubTileService()
    service = RouteService(_config(), map_service, tile_service)

    outcome = _run(service)

    assert outcome.degraded is True
    assert outcome.distance_km == 100.0
    assert outcome.duration_min == 120
    assert outcome.map_image_ref is None
    assert outcome.failures == ["geocode:unexpected"]
    assert map_service.estimated == []
    assert tile_service.calls == []


def test_unexpected_directions_error_falls_back_and_renders_tile():
    map_service = StubMapService(
        locations={"Vienna": VIENNA, "Salzburg": SALZBURG},
        estimate=TypeError("summary is not a dict"),
    )
    service = RouteService(_config(), map_service, StubTileService("route_y.png"))

    outcome = _run(service)

    assert outcome.degraded is True
    assert (outcome.distance_km, outcome.duration_min) == (100.0, 120)
    assert outcome.map_image_ref == "route_y.png"
    assert outcome.failures == ["directions:unexpected"]


def test_unexpected_tile_error_only_drops_image():
    map_service = StubMapService(
        locations={"Vienna": VIENNA, "Salzburg": SALZBURG},
        estimate=RouteResult(distance_km=5.0, duration_min=6),
    )
    service = RouteService(_config(), map_service, StubTileService(ValueError("math domain error")))

    outcome = _run(service)

    assert outcome.degraded is False
    assert (outcome.distance_km, outcome.duration_min) == (5.0, 6)
    assert outcome.map_image_ref is None
    assert outcome.failures == ["image:unexpected"]


def test_cancellation_is_not_turned_into_fallback():
    map_service = StubMapService(
        locations={"Vienna": asyncio.CancelledError(), "Salzburg": SALZBURG}
    )
    service = RouteService(_config(), map_service, StubTileService())

    with pytest.raises(asyncio.CancelledError):
        _run(service)


GEOCODE_OUTCOMES = [VIENNA] + [GeocodeError(kind) for kind in GeocodeFailure]
DIRECTIONS_OUTCOMES = [RouteResult(distance_km=5.5, duration_min=7)] + [
    DirectionsError(kind) for kind in DirectionsFailure
]
TILE_OUTCOMES = ["route_x.png"] + [ImageError(kind) for kind in ImageFailure]


@pytest.mark.parametrize(
    "origin, destination, estimate, tile",
    list(
        itertools.product(
            GEOCODE_OUTCOMES, GEOCODE_OUTCOMES, DIRECTIONS_OUTCOMES, TILE_OUTCOMES
        )
    ),
)
def test_every_stage_combination_yields_populated_outcome(origin, destination, estimate, tile):
    map_service = StubMapService(
        locations={"Vienna": origin, "Salzburg": destination}, estimate=estimate
    )
    service = RouteService(_config(), map_service, StubTileService(tile))

    outcome = _run(service)

    assert outcome.distance_km > 0
    assert outcome.duration_min > 0
    resolved = isinstance(origin, Coordinate) and isinstance(destination, Coordinate)
    real_data = resolved and isinstance(estimate, RouteResult)
    assert outcome.degraded is not real_data
    if not resolved:
        assert outcome.map_image_ref is None


def test_visited_states_follow_fallback_path():
    visited = []
    service = RouteService(_config(api_key=""), StubMapService(), StubTileService())
    original = service._handlers[RouteState.FALLBACK]

    async def spy(context):
        visited.extend(context.visited)
        return await original(context)

    service._handlers[RouteState.FALLBACK] = spy
    _run(service)

    assert visited == [
        RouteState.START,
        RouteState.CHECK_CREDENTIAL,
        RouteState.FALLBACK,
    ]


def test_pipeline_end_to_end_against_mocked_providers(tmp_path):
    def handler(request):
        if request.url.host == "tiles.test":
            return httpx.Response(200, content=b"\x89PNG tile")
        if request.url.path == "/geocode/search":
            text = request.url.params["text"]
            coordinates = [16.37, 48.21] if text == "Vienna" else [13.04, 47.80]
            return httpx.Response(
                200, json={"features": [{"geometry": {"coordinates": coordinates}}]}
            )
        if request.url.path == "/v2/directions/driving-car":
            return httpx.Response(
                200, json={"routes": [{"summary": {"distance": 295432.0, "duration": 10800.0}}]}
            )
        return httpx.Response(404)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    config = RoutingConfig(
        routing_api_key="secret-key",
        routing_base_url="https://ors.test",
        tile_base_url="https://tiles.test",
        image_base_path=str(tmp_path / "images"),
    )
    service = RouteService(
        config,
        OpenRouteServiceMapService(config, client=client),
        TileService(config.tile_base_url, id_factory=lambda: "e2e", client=client),
    )

    outcome = _run(service)

    assert outcome.degraded is False
    assert outcome.distance_km == pytest.approx(295.432)
    assert outcome.duration_min == 180
    assert outcome.map_image_ref == "route_e2e.png"
    assert (tmp_path / "images" / "route_e2e.png").read_bytes() == b"\x89PNG tile"


def _mocked_service(tmp_path, geocode_payload):
    def handler(request):
        if request.url.host == "tiles.test":
            return httpx.Response(200, content=b"\x89PNG tile")
        if request.url.path == "/geocode/search":
            return httpx.Response(200, json=geocode_payload)
        return httpx.Response(
            200, json={"routes": [{"summary": {"distance": 1000.0, "duration": 600.0}}]}
        )

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    config = RoutingConfig(
        routing_api_key="secret-key",
        routing_base_url="https://ors.test",
        tile_base_url="https://tiles.test",
        image_base_path=str(tmp_path / "images"),
    )
    return RouteService(
        config,
        OpenRouteServiceMapService(config, client=client),
        TileService(config.tile_base_url, id_factory=lambda: "pole", client=client),
    )


def test_malformed_geocoder_features_degrade_the_pipeline(tmp_path):
    service = _mocked_service(tmp_path, {"features": {"unexpected": 1}})

    outcome = _run(service)

    assert outcome.degraded is True
    assert (outcome.distance_km, outcome.duration_min) == (100.0, 120)
    assert outcome.map_image_ref is None
    assert outcome.failures == ["geocode:no_results", "geocode:no_results"]


def test_south_pole_coordinates_still_produce_an_image(tmp_path):
    service = _mocked_service(
        tmp_path, {"features": [{"geometry": {"coordinates": [0.0, -90.0]}}]}
    )

    outcome = _run(service)

    assert outcome.degraded is False
    assert (outcome.distance_km, outcome.duration_min) == (1.0, 10)
    assert outcome.map_image_ref == "route_pole.png"
    assert outcome.failures == []
