from .request import RouteRequest
from .response import (
    Coordinate,
    RouteCalculationResponse,
    RouteOutcome,
    RouteResult,
    TileCoordinate,
)

__all__ = [
    "Coordinate",
    "RouteCalculationResponse",
    "RouteOutcome",
    "RouteRequest",
    "RouteResult",
    "TileCoordinate",
]
