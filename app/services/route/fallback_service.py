"""
Fallback estimator - synthetic distance/duration used when the routing
providers cannot be used. Only fills in values the caller did not supply.
"""
from typing import Optional, Union

from app.models.request import RouteRequest
from app.models.response import RouteOutcome, RouteResult

DEFAULT_DISTANCE_KM = 100.0
DEFAULT_DURATION_MIN = 120


class FallbackService:
    """Field-level patch of missing route numbers"""

    def __init__(
        self,
        default_distance_km: float = DEFAULT_DISTANCE_KM,
        default_duration_min: int = DEFAULT_DURATION_MIN,
    ):
        self.default_distance_km = default_distance_km
        self.default_duration_min = default_duration_min

    def fallback(
        self, existing: Optional[Union[RouteRequest, RouteOutcome, RouteResult]] = None
    ) -> RouteResult:
        distance = getattr(existing, "distance_km", None)
        duration = getattr(existing, "duration_min", None)

        # Zero counts as unset
        if not distance:
            distance = self.default_distance_km
        if not duration:
            duration = self.default_duration_min

        return RouteResult(distance_km=distance, duration_min=duration)
