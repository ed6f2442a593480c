"""
Morphology API Router - erosion/dilation family, thinning and flood fill
"""

import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_processing_service
from api.exceptions import safe_endpoint
from schemas.common import ProcessingResponse
from schemas.processing import FloodFillRequest, MorphContourRequest, MorphRequest, ThinRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/operation")
@safe_endpoint
async def morph(
    request: MorphRequest, processing_service=Depends(get_processing_service)
) -> ProcessingResponse:
    """Erode, dilate, open, close, gradient, top-hat or black-hat."""
    return processing_service.morph(request)


@router.post("/contour")
@safe_endpoint
async def morph_contour(
    request: MorphContourRequest, processing_service=Depends(get_processing_service)
) -> ProcessingResponse:
    return processing_service.morph_contour(request)


@router.post("/thin")
@safe_endpoint
async def thin(
    request: ThinRequest, processing_service=Depends(get_processing_service)
) -> ProcessingResponse:
    """Threshold, then reduce the foreground to a one pixel wide skeleton."""
    return processing_service.thin(request)


@router.post("/flood-fill")
@safe_endpoint
async def flood_fill(
    request: FloodFillRequest, processing_service=Depends(get_processing_service)
) -> ProcessingResponse:
    return processing_service.flood_fill(request)
