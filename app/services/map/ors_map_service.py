import logging
import math
from typing import Any, Dict, Optional

import httpx

from app.config import RoutingConfig, settings
from app.config.transport_modes import map_transport_type_to_profile
from app.models.response import Coordinate, RouteResult
from app.services.map.errors import (
    DirectionsError,
    DirectionsFailure,
    GeocodeError,
    GeocodeFailure,
)
from app.services.map.map_service import MapService
from app.services.map.projection import is_valid_coordinate

logger = logging.getLogger(__name__)

DIRECTIONS_ACCEPT = (
    "application/json, application/geo+json, application/gpx+xml, img/png; charset=utf-8"
)


class OpenRouteServiceMapService(MapService):
    """OpenRouteService implementation: Pelias geocoding and v2 directions"""

    def __init__(
        self,
        config: Optional[RoutingConfig] = None,
        *,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config or settings.routing_config()
        self.base_url = self.config.routing_base_url.rstrip("/")
        self.geocode_url = f"{self.base_url}/geocode/search"
        self._timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self._client = client

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Send a single request with the configured timeout, no retries."""
        if self._client is not None:
            response = await self._client.request(
                method, url, timeout=self._timeout, **kwargs
            )
        else:
            async with httpx.AsyncClient() as client:
                response = await client.request(
                    method, url, timeout=self._timeout, **kwargs
                )
        response.raise_for_status()
        return response

    async def resolve(self, location_text: str) -> Coordinate:
        """Geocode a location using the Pelias search endpoint"""
        if not self.config.has_credential:
            raise GeocodeError(
                GeocodeFailure.NO_CREDENTIAL, "Routing API key is not configured"
            )

        try:
            response = await self._request(
                "GET",
                self.geocode_url,
                params={
                    "api_key": self.config.routing_api_key,
                    "text": location_text,
                    "size": 1,
                },
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPStatusError as exc:
            raise GeocodeError(
                GeocodeFailure.TRANSPORT,
                f"Geocoding API error: {exc.response.status_code}",
            ) from exc
        except httpx.HTTPError as exc:
            raise GeocodeError(
                GeocodeFailure.TRANSPORT, f"Geocoding request failed: {exc}"
            ) from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise GeocodeError(
                GeocodeFailure.NO_RESULTS, "Geocoding API returned invalid JSON"
            ) from exc

        features = data.get("features") if isinstance(data, dict) else None
        if not isinstance(features, list) or not features:
            raise GeocodeError(
                GeocodeFailure.NO_RESULTS, f"No geocoding results for {location_text!r}"
            )

        coordinate = self._parse_feature_coordinate(features[0])
        if coordinate is None:
            raise GeocodeError(
                GeocodeFailure.INVALID_COORDINATE,
                f"Invalid coordinates for {location_text!r}",
            )

        logger.debug(
            "Geocoded %s to [%s, %s]",
            location_text,
            coordinate.longitude,
            coordinate.latitude,
        )
        return coordinate

    async def estimate(
        self,
        origin: Coordinate,
        destination: Coordinate,
        transport_type: str,
    ) -> RouteResult:
        """Get distance and duration from the v2 directions endpoint"""
        if not self.config.has_credential:
            raise DirectionsError(
                DirectionsFailure.NO_CREDENTIAL, "Routing API key is not configured"
            )

        profile = map_transport_type_to_profile(transport_type)
        url = f"{self.base_url}/v2/directions/{profile}"

        try:
            response = await self._request(
                "POST",
                url,
                headers={
                    "Accept": DIRECTIONS_ACCEPT,
                    "Content-Type": "application/json; charset=utf-8",
                    "Authorization": self.config.routing_api_key,
                },
                json={"coordinates": [origin.as_lon_lat(), destination.as_lon_lat()]},
            )
        except httpx.HTTPStatusError as exc:
            raise DirectionsError(
                DirectionsFailure.TRANSPORT,
                f"Directions API error: {exc.response.status_code}",
            ) from exc
        except httpx.HTTPError as exc:
            raise DirectionsError(
                DirectionsFailure.TRANSPORT, f"Directions request failed: {exc}"
            ) from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise DirectionsError(
                DirectionsFailure.NO_ROUTE, "Directions API returned invalid JSON"
            ) from exc

        result = self._convert_directions_response(data)
        if result is None:
            raise DirectionsError(
                DirectionsFailure.NO_ROUTE,
                f"Could not parse route summary for profile {profile}",
            )
        return result

    @staticmethod
    def _parse_feature_coordinate(feature: Any) -> Optional[Coordinate]:
        """Read geometry.coordinates = [lon, lat], None if missing or out of range"""
        try:
            raw = feature["geometry"]["coordinates"]
            longitude = float(raw[0])
            latitude = float(raw[1])
        except (KeyError, IndexError, TypeError, ValueError):
            return None

        if not is_valid_coordinate(longitude, latitude):
            return None
        return Coordinate(longitude=longitude, latitude=latitude)

    @staticmethod
    def _convert_directions_response(data: Dict) -> Optional[RouteResult]:
        """Convert the first route summary to kilometers and whole minutes"""
        routes = data.get("routes") if isinstance(data, dict) else None
        if not routes:
            return None

        try:
            summary = routes[0]["summary"]
            distance_m = float(summary["distance"])
            duration_s = float(summary["duration"])
        except (KeyError, IndexError, TypeError, ValueError):
            return None

        if not (math.isfinite(distance_m) and math.isfinite(duration_s)):
            return None

        return RouteResult(
            distance_km=distance_m / 1000,
            duration_min=math.floor(duration_s / 60),
        )
