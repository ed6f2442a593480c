"""
Geometry API Router - translation, rotation, scaling and affine warps
"""

import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_processing_service
from api.exceptions import safe_endpoint
from schemas.common import ProcessingResponse
from schemas.processing import (
    AffineRequest,
    ResizeRequest,
    RotateRequest,
    ScaleRequest,
    TranslateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/translate")
@safe_endpoint
async def translate(
    request: TranslateRequest, processing_service=Depends(get_processing_service)
) -> ProcessingResponse:
    return processing_service.translate(request)


@router.post("/rotate")
@safe_endpoint
async def rotate(
    request: RotateRequest, processing_service=Depends(get_processing_service)
) -> ProcessingResponse:
    """Rotate about the given center (image center by default), keeping the size."""
    return processing_service.rotate(request)


@router.post("/resize")
@safe_endpoint
async def resize(
    request: ResizeRequest, processing_service=Depends(get_processing_service)
) -> ProcessingResponse:
    return processing_service.resize(request)


@router.post("/scale")
@safe_endpoint
async def scale(
    request: ScaleRequest, processing_service=Depends(get_processing_service)
) -> ProcessingResponse:
    """Double the size, or halve it with area averaging."""
    return processing_service.scale(request)


@router.post("/affine")
@safe_endpoint
async def affine(
    request: AffineRequest, processing_service=Depends(get_processing_service)
) -> ProcessingResponse:
    """Affine warp from three point pairs (a fixed shear when none are given)."""
    return processing_service.affine(request)
