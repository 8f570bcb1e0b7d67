import logging
import time
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse

from app.config import settings
from app.logging_setup import configure_logging
from app.models.request import RouteRequest
from app.models.response import RouteCalculationResponse
from app.services.route_service import RouteService

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Tour Planner Routing API",
    description="Route distance, duration and map image calculation for tours",
    version=settings.api_version,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

route_service = RouteService()


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "request_completed",
        extra={
            "path": request.url.path,
            "method": request.method,
            "status_code": response.status_code,
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
        },
    )
    return response


@app.post("/api/routes/calculate", response_model=RouteCalculationResponse)
async def calculate_route(request: RouteRequest):
    """Calculate distance, duration and map image without storing anything"""
    outcome = await route_service.calculate_route(request)

    if outcome.degraded:
        message = "Route providers unavailable, estimated values used"
    else:
        message = "Route calculated successfully"

    return RouteCalculationResponse(
        from_location=request.from_location,
        to_location=request.to_location,
        transport_type=request.transport_type,
        distance=outcome.distance_km,
        estimated_time=outcome.duration_min,
        route_image_path=outcome.map_image_ref,
        degraded=outcome.degraded,
        message=message,
    )


@app.get("/api/images/{file_name}")
async def get_image(file_name: str):
    """Serve a stored route image"""
    # Prevent directory traversal
    if ".." in file_name or "/" in file_name or "\\" in file_name:
        logger.warning("Invalid image file name requested: %s", file_name)
        raise HTTPException(status_code=400, detail="Invalid file name")

    image_path = Path(settings.image_base_path) / file_name
    if not image_path.is_file():
        raise HTTPException(status_code=404, detail="Image not found")

    media_type = "image/png"
    if file_name.lower().endswith((".jpg", ".jpeg")):
        media_type = "image/jpeg"

    return FileResponse(
        image_path,
        media_type=media_type,
        headers={"Cache-Control": f"max-age={settings.image_cache_seconds}"},
    )


@app.get("/health")
async def health_check():
    """Health check"""
    return {
        "status": "healthy",
        "version": settings.api_version,
        "routing_enabled": settings.routing_config().has_credential,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
