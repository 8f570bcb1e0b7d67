from abc import ABC, abstractmethod

from app.models.response import Coordinate, RouteResult


class MapService(ABC):
    """Map service abstract interface"""

    @abstractmethod
    async def resolve(self, location_text: str) -> Coordinate:
        """Resolve a free-text location to coordinates

        Raises:
            GeocodeError: credential missing, no match, invalid coordinate
                or transport failure
        """
        pass

    @abstractmethod
    async def estimate(
        self,
        origin: Coordinate,
        destination: Coordinate,
        transport_type: str,
    ) -> RouteResult:
        """Get distance/duration between two points

        Args:
            origin: Start coordinates
            destination: End coordinates
            transport_type: Tour transport type, mapped to a routing profile

        Raises:
            DirectionsError: credential missing, no route or transport failure
        """
        pass
