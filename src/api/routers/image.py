"""
Image API Router - image store operations
"""

import logging
from typing import List

from fastapi import APIRouter, Depends

from api.dependencies import get_image_service, get_processing_service
from api.exceptions import safe_endpoint
from schemas.common import ImageInfo, ProcessingResponse
from schemas.image import (
    ImageImportRequest,
    ImageResponse,
    ImageUploadRequest,
    PatternRequest,
    ROIExtractRequest,
    StoreStats,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _stored(image_service, image_id: str, image) -> ImageResponse:
    info = image_service.get_info(image_id)
    return ImageResponse(
        image_id=image_id,
        width=info["width"],
        height=info["height"],
        channels=info["channels"],
        thumbnail_base64=image_service.thumbnail(image, image_id),
        metadata=info["metadata"],
    )


@router.post("/upload")
@safe_endpoint
async def upload_image(
    request: ImageUploadRequest, image_service=Depends(get_image_service)
) -> ImageResponse:
    """
    Store a base64 encoded image.

    Raises:
        HTTPException 400: If the payload is not a decodable image
    """
    image_id, image = image_service.upload(request.data, request.grayscale, request.name)
    return _stored(image_service, image_id, image)


@router.post("/import")
@safe_endpoint
async def import_image(
    request: ImageImportRequest, image_service=Depends(get_image_service)
) -> ImageResponse:
    """
    Import image from file system.

    Loads an image from the file system (JPG, PNG, BMP, etc.) and stores it.

    Raises:
        HTTPException 404: If file not found
        HTTPException 400: If file cannot be loaded as image
    """
    image_id, image, _ = image_service.import_from_file(request.file_path, request.grayscale)
    return _stored(image_service, image_id, image)


@router.post("/pattern")
@safe_endpoint
async def create_pattern(
    request: PatternRequest, image_service=Depends(get_image_service)
) -> ImageResponse:
    """Generate a synthetic test image."""
    image_id, image = image_service.create_pattern(request.pattern, request.width, request.height)
    return _stored(image_service, image_id, image)


@router.post("/extract-roi")
@safe_endpoint
async def extract_roi(
    request: ROIExtractRequest, processing_service=Depends(get_processing_service)
) -> ProcessingResponse:
    """
    Store the region of interest of an image as a new image.

    The ROI is clipped to the image bounds; metadata["roi_offset"] is the
    origin of the clipped rectangle.
    """
    return processing_service.crop(request.image_id, request.roi)


@router.get("/list")
@safe_endpoint
async def list_images(image_service=Depends(get_image_service)) -> List[ImageInfo]:
    return [ImageInfo(**info) for info in image_service.list_images()]


@router.get("/stats")
@safe_endpoint
async def get_stats(image_service=Depends(get_image_service)) -> StoreStats:
    return StoreStats(**image_service.get_stats())


@router.get("/{image_id}")
@safe_endpoint
async def get_image_info(image_id: str, image_service=Depends(get_image_service)) -> ImageInfo:
    return ImageInfo(**image_service.get_info(image_id))


@router.get("/{image_id}/thumbnail")
@safe_endpoint
async def get_thumbnail(image_id: str, image_service=Depends(get_image_service)) -> dict:
    image = image_service.get_image(image_id)
    return {"image_id": image_id, "thumbnail_base64": image_service.thumbnail(image, image_id)}


@router.delete("/{image_id}")
@safe_endpoint
async def delete_image(image_id: str, image_service=Depends(get_image_service)) -> dict:
    image_service.delete_image(image_id)
    return {"success": True, "image_id": image_id}


@router.delete("")
@safe_endpoint
async def clear_images(image_service=Depends(get_image_service)) -> dict:
    """Remove every stored image."""
    removed = image_service.cleanup()
    return {"success": True, "removed": removed}
