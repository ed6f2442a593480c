"""
Shared FastAPI dependencies for the Vision Lab API.
Centralizes manager and service construction for the routers.
"""

import logging

from fastapi import Depends, HTTPException, Request

from config import Settings, get_settings
from core.image_manager import ImageManager
from services.analysis_service import AnalysisService
from services.image_service import ImageService
from services.processing_service import ProcessingService

logger = logging.getLogger(__name__)


def get_image_manager(request: Request) -> ImageManager:
    """
    Get the image store from app state.

    Raises:
        HTTPException: If the store was not initialized
    """
    try:
        return request.app.state.image_manager
    except AttributeError as e:
        logger.error(f"Image manager not initialized in app state: {e}")
        raise HTTPException(
            status_code=500, detail="Internal server error: Image manager not initialized"
        )


def get_app_settings(request: Request) -> Settings:
    """Settings stored by the lifespan handler, or the cached defaults."""
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        logger.debug("Settings not found in app state, using get_settings()")
        return get_settings()
    return settings


# Service layer dependencies
def get_image_service(image_manager: ImageManager = Depends(get_image_manager)) -> ImageService:
    """
    Get image service instance.

    Args:
        image_manager: Image manager dependency

    Returns:
        ImageService instance
    """
    return ImageService(image_manager=image_manager)


def get_processing_service(
    image_manager: ImageManager = Depends(get_image_manager),
    settings: Settings = Depends(get_app_settings),
) -> ProcessingService:
    return ProcessingService(image_manager=image_manager, config=settings.processing)


def get_analysis_service(
    image_manager: ImageManager = Depends(get_image_manager),
    settings: Settings = Depends(get_app_settings),
) -> AnalysisService:
    """
    Get analysis service instance.

    Args:
        image_manager: Image manager dependency
        settings: Application settings (object detection model paths)

    Returns:
        AnalysisService instance
    """
    return AnalysisService(image_manager=image_manager, ml_config=settings.ml)
