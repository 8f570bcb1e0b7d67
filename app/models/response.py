"""
Value models for the route calculation pipeline and its API response
"""
from typing import List, Optional
from pydantic import BaseModel


class Coordinate(BaseModel):
    """Geographic point in provider order (longitude first)"""
    longitude: float
    latitude: float

    def as_lon_lat(self) -> List[float]:
        return [self.longitude, self.latitude]


class TileCoordinate(BaseModel):
    """Slippy-map tile address"""
    zoom: int
    x: int
    y: int


class RouteResult(BaseModel):
    """Distance/duration estimate from one provider round trip"""
    distance_km: float
    duration_min: int


class RouteOutcome(BaseModel):
    """Result handed back to the caller; numeric fields are always set"""
    distance_km: float
    duration_min: int
    map_image_ref: Optional[str] = None
    degraded: bool = False
    failures: List[str] = []  # "<stage>:<kind>" diagnostics


class RouteCalculationResponse(BaseModel):
    """Route calculation API response"""
    from_location: str
    to_location: str
    transport_type: str
    distance: float
    estimated_time: int  # Minutes
    route_image_path: Optional[str] = None
    degraded: bool = False
    success: bool = True
    message: str = "Route calculated successfully"
