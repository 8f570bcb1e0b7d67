"""
Coordinate and Web-Mercator projection helpers used to pick the map tile
for a route. Pure functions, no I/O.
"""
import math

from app.models.response import Coordinate, TileCoordinate

# (max coordinate delta in degrees, zoom), checked in order with strict ">"
ZOOM_BREAKPOINTS = (
    (10.0, 5),
    (5.0, 7),
    (1.0, 9),
    (0.5, 11),
    (0.1, 13),
)
MAX_ZOOM = 15

# Web-Mercator is undefined at the poles
MAX_MERCATOR_LATITUDE = 85.0511287798


def is_valid_coordinate(longitude: float, latitude: float) -> bool:
    """Check that a point lies inside the longitude/latitude ranges (NaN fails)."""
    return -180.0 <= longitude <= 180.0 and -90.0 <= latitude <= 90.0


def choose_zoom(a: Coordinate, b: Coordinate) -> int:
    """Pick a zoom level from the larger of the two coordinate deltas."""
    delta = max(abs(a.longitude - b.longitude), abs(a.latitude - b.latitude))
    for threshold, zoom in ZOOM_BREAKPOINTS:
        if delta > threshold:
            return zoom
    return MAX_ZOOM


def midpoint(a: Coordinate, b: Coordinate) -> Coordinate:
    # Plain average, only used to choose one illustrative tile
    return Coordinate(
        longitude=(a.longitude + b.longitude) / 2,
        latitude=(a.latitude + b.latitude) / 2,
    )


def to_tile(point: Coordinate, zoom: int) -> TileCoordinate:
    """Project a point onto the slippy-map tile grid at the given zoom."""
    n = 2 ** zoom
    latitude = max(-MAX_MERCATOR_LATITUDE, min(MAX_MERCATOR_LATITUDE, point.latitude))
    lat_rad = math.radians(latitude)

    x = math.floor((point.longitude + 180.0) / 360.0 * n)
    y = math.floor(
        (1.0 - math.log(math.tan(lat_rad) + 1.0 / math.cos(lat_rad)) / math.pi)
        / 2.0
        * n
    )
    # Edge values (lon 180, clamped lat) land one past the last tile
    return TileCoordinate(zoom=zoom, x=min(max(x, 0), n - 1), y=min(max(y, 0), n - 1))
