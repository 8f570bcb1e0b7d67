from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class RoutingConfig(BaseModel):
    """Options the route pipeline needs from its environment"""

    # Empty key forces the fallback path
    routing_api_key: str = ""
    routing_base_url: str = "https://api.openrouteservice.org"
    tile_base_url: str = "https://tile.openstreetmap.org"
    image_base_path: str = "./resources/images"

    @property
    def has_credential(self) -> bool:
        return bool(self.routing_api_key.strip())


class Settings(BaseSettings):
    # OpenRouteService configuration
    routing_api_key: str = ""
    routing_base_url: str = "https://api.openrouteservice.org"

    # OpenStreetMap tile server configuration
    tile_base_url: str = "https://tile.openstreetmap.org"
    tile_user_agent: str = "tourplanner-routing/1.0"

    # Route image storage
    image_base_path: str = "./resources/images"
    image_cache_seconds: int = 3600

    # API configuration
    api_version: str = "1.0"

    # Single attempt per outbound call, no retries
    request_timeout_seconds: float = 10.0

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    def routing_config(self) -> RoutingConfig:
        return RoutingConfig(
            routing_api_key=self.routing_api_key,
            routing_base_url=self.routing_base_url,
            tile_base_url=self.tile_base_url,
            image_base_path=self.image_base_path,
        )


settings = Settings()
