"""
Map tile service - downloads the OpenStreetMap tile covering a route and
stores it as a PNG under the image directory
"""
import logging
import uuid
from pathlib import Path
from typing import Callable, Optional, Union

import httpx
from fastapi.concurrency import run_in_threadpool

from app.config import settings
from app.models.response import Coordinate, TileCoordinate
from app.services.map.errors import ImageError, ImageFailure
from app.services.map.projection import choose_zoom, midpoint, to_tile

logger = logging.getLogger(__name__)


def _random_id() -> str:
    return str(uuid.uuid4())


class TileService:
    """Fetches a single raster tile for the route's midpoint"""

    def __init__(
        self,
        tile_base_url: Optional[str] = None,
        *,
        id_factory: Callable[[], str] = _random_id,
        user_agent: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.tile_base_url = (tile_base_url or settings.tile_base_url).rstrip("/")
        self._id_factory = id_factory
        self._user_agent = user_agent or settings.tile_user_agent
        self._timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self._client = client

    def tile_url(self, tile: TileCoordinate) -> str:
        return f"{self.tile_base_url}/{tile.zoom}/{tile.x}/{tile.y}.png"

    async def fetch_tile(
        self,
        origin: Coordinate,
        destination: Coordinate,
        storage_dir: Union[str, Path],
    ) -> str:
        """Download the route tile and return the stored file name

        Raises:
            ImageError: download failed (TRANSPORT) or the file could not be
                written (WRITE_FAILURE)
        """
        zoom = choose_zoom(origin, destination)
        tile = to_tile(midpoint(origin, destination), zoom)
        url = self.tile_url(tile)

        content = await self._download(url)

        file_name = f"route_{self._id_factory()}.png"
        try:
            await run_in_threadpool(self._write, Path(storage_dir), file_name, content)
        except OSError as exc:
            raise ImageError(
                ImageFailure.WRITE_FAILURE,
                f"Could not store route image in {storage_dir}: {exc}",
            ) from exc

        logger.info(
            "Generated route image %s",
            file_name,
            extra={"stage": "image", "path": url},
        )
        return file_name

    async def _download(self, url: str) -> bytes:
        headers = {"User-Agent": self._user_agent}
        try:
            if self._client is not None:
                response = await self._client.get(
                    url, headers=headers, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.get(
                        url, headers=headers, timeout=self._timeout
                    )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ImageError(
                ImageFailure.TRANSPORT,
                f"Tile server error: {exc.response.status_code}",
            ) from exc
        except httpx.HTTPError as exc:
            raise ImageError(
                ImageFailure.TRANSPORT, f"Tile download failed: {exc}"
            ) from exc

        return response.content

    @staticmethod
    def _write(storage_dir: Path, file_name: str, content: bytes) -> None:
        # exist_ok: another request may create the directory first
        storage_dir.mkdir(parents=True, exist_ok=True)
        (storage_dir / file_name).write_bytes(content)
