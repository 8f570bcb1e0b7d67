# Route service package
from .fallback_service import FallbackService

__all__ = ["FallbackService"]
