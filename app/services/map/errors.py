"""Failure types raised by the map providers, one per pipeline stage."""
from enum import Enum


class GeocodeFailure(str, Enum):
    NO_CREDENTIAL = "no_credential"
    NO_RESULTS = "no_results"
    INVALID_COORDINATE = "invalid_coordinate"
    TRANSPORT = "transport"


class DirectionsFailure(str, Enum):
    NO_CREDENTIAL = "no_credential"
    NO_ROUTE = "no_route"
    TRANSPORT = "transport"


class ImageFailure(str, Enum):
    TRANSPORT = "transport"
    WRITE_FAILURE = "write_failure"


class MapServiceError(Exception):
    """Base class for provider failures; ``kind`` says what went wrong."""

    stage = "map"

    def __init__(self, kind: Enum, message: str = "") -> None:
        self.kind = kind
        self.message = message or kind.value
        super().__init__(self.message)

    @property
    def diagnostic(self) -> str:
        return f"{self.stage}:{self.kind.value}"


class GeocodeError(MapServiceError):
    stage = "geocode"


class DirectionsError(MapServiceError):
    stage = "directions"


class ImageError(MapServiceError):
    stage = "image"
