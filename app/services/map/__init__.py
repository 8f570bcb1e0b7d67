"""Map provider package: geocoding, directions and tile download."""
from .errors import (
    DirectionsError,
    GeocodeError,
    ImageError,
    MapServiceError,
)
from .map_service import MapService
from .ors_map_service import OpenRouteServiceMapService
from .tile_service import TileService

__all__ = [
    "DirectionsError",
    "GeocodeError",
    "ImageError",
    "MapService",
    "MapServiceError",
    "OpenRouteServiceMapService",
    "TileService",
]
