from typing import Optional
from pydantic import BaseModel, field_validator


class RouteRequest(BaseModel):
    """Route calculation request, validated before the pipeline runs"""
    from_location: str
    to_location: str
    transport_type: str
    # Values entered manually on the tour; kept when providers are unavailable
    distance_km: Optional[float] = None
    duration_min: Optional[int] = None

    @field_validator("from_location", "to_location", "transport_type")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value
