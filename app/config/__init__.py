from .config import RoutingConfig, Settings, settings

__all__ = ["RoutingConfig", "Settings", "settings"]
