"""
Vision Lab - Main FastAPI Application
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.exceptions import register_exception_handlers
from api.routers import (
    calibration,
    features,
    filter,
    geometry,
    image,
    ml,
    morphology,
    motion,
    pointcloud,
    transform,
)
from config import get_settings
from core.image_manager import ImageManager
from domain_types import SystemConstants

VERSION = "1.0.0"

# Get configuration
settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.system.log_level),
    format=SystemConstants.LOG_FORMAT,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle"""
    logger.info("Starting Vision Lab server...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Debug mode: {settings.system.debug}")

    image_manager = ImageManager(
        max_size_mb=settings.image.max_memory_mb,
        max_images=settings.image.max_images,
        thumbnail_width=settings.image.thumbnail_width,
        thumbnail_quality=settings.image.thumbnail_quality,
    )
    if not settings.ml.yolo_available:
        logger.info("YOLO model files not configured, /api/ml/detect is disabled")

    # Store state for access by the dependencies
    app.state.image_manager = image_manager
    app.state.settings = settings
    app.state.debug = settings.system.debug

    yield

    logger.info("Shutting down Vision Lab server...")
    image_manager.cleanup()
    logger.info("Server shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Vision Lab",
    description="Image processing and computer vision operations over an in-memory image store",
    version=VERSION,
    lifespan=lifespan,
)

if settings.api.cors_enabled:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Register exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(image.router, prefix="/api/image", tags=["Image"])
app.include_router(transform.router, prefix="/api/transform", tags=["Transform"])
app.include_router(filter.router, prefix="/api/filter", tags=["Filter"])
app.include_router(geometry.router, prefix="/api/geometry", tags=["Geometry"])
app.include_router(morphology.router, prefix="/api/morphology", tags=["Morphology"])
app.include_router(features.router, prefix="/api/features", tags=["Features"])
app.include_router(motion.router, prefix="/api/motion", tags=["Motion"])
app.include_router(calibration.router, prefix="/api/calibration", tags=["Calibration"])
app.include_router(ml.router, prefix="/api/ml", tags=["Machine Learning"])
app.include_router(pointcloud.router, prefix="/api/pointcloud", tags=["Point Cloud"])


# Root endpoint
@app.get("/")
async def root():
    return {
        "name": "Vision Lab",
        "status": "running",
        "version": VERSION,
        "endpoints": {
            "image": "/api/image",
            "transform": "/api/transform",
            "filter": "/api/filter",
            "geometry": "/api/geometry",
            "morphology": "/api/morphology",
            "features": "/api/features",
            "motion": "/api/motion",
            "calibration": "/api/calibration",
            "ml": "/api/ml",
            "pointcloud": "/api/pointcloud",
            "docs": "/docs",
        },
    }


# Health check endpoint
@app.get("/health")
async def health_check():
    image_manager = getattr(app.state, "image_manager", None)
    return {
        "status": "healthy",
        "services": {
            "image_manager": image_manager is not None,
            "yolo": settings.ml.yolo_available,
        },
        "images": image_manager.get_stats()["total_images"] if image_manager else 0,
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.system.debug,
        log_level=settings.system.log_level.lower(),
    )
