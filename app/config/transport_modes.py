"""
Transport Mode Configuration for Route Calculation
Fixed lookup between tour transport types and OpenRouteService profiles.
"""

from enum import Enum
from typing import Dict, Optional


class TransportMode(str, Enum):
    CAR = "car"
    BICYCLE = "bicycle"
    WALKING = "walking"
    PUBLIC_TRANSPORT = "public_transport"
    OTHER = "other"


DEFAULT_PROFILE = "driving-car"

# OpenRouteService has no public transport profile, so it routes by car
TRANSPORT_MODE_PROFILES: Dict[TransportMode, str] = {
    TransportMode.CAR: "driving-car",
    TransportMode.BICYCLE: "cycling-regular",
    TransportMode.WALKING: "foot-walking",
    TransportMode.PUBLIC_TRANSPORT: "driving-car",
    TransportMode.OTHER: "driving-car",
}

# Spellings seen from the tour forms
TRANSPORT_MODE_ALIASES: Dict[str, TransportMode] = {
    "bike": TransportMode.BICYCLE,
    "cycling": TransportMode.BICYCLE,
    "walk": TransportMode.WALKING,
    "foot": TransportMode.WALKING,
    "hiking": TransportMode.WALKING,
    "public": TransportMode.PUBLIC_TRANSPORT,
    "driving": TransportMode.CAR,
}


def parse_transport_mode(transport_type: Optional[str]) -> Optional[TransportMode]:
    """Normalize a free-form transport type, or None if it is not recognized."""
    if isinstance(transport_type, TransportMode):
        return transport_type
    if not transport_type:
        return None

    key = transport_type.strip().lower().replace("-", " ")
    key = "_".join(key.split())

    try:
        return TransportMode(key)
    except ValueError:
        return TRANSPORT_MODE_ALIASES.get(key)


def map_transport_type_to_profile(transport_type: Optional[str]) -> str:
    """Return the routing profile for a transport type; never fails."""
    mode = parse_transport_mode(transport_type)
    if mode is None:
        return DEFAULT_PROFILE
    return TRANSPORT_MODE_PROFILES.get(mode, DEFAULT_PROFILE)
