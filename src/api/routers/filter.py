"""
Filter API Router - pixel, color, kernel and histogram operations
"""

import logging
from typing import List

from fastapi import APIRouter, Depends

from api.dependencies import get_processing_service
from api.exceptions import safe_endpoint
from schemas.common import ProcessingResponse
from schemas.processing import (
    ChannelsResponse,
    ColorConvertRequest,
    HistogramCompareRequest,
    HistogramCompareResponse,
    HistogramMatchRequest,
    HistogramRequest,
    HistogramResponse,
    ImageOperationRequest,
    KernelRequest,
    LogicRequest,
    MergeChannelsRequest,
    PixelRequest,
    PreprocessRequest,
    SmoothRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# Pixel and logic operations
@router.post("/pixel")
@safe_endpoint
async def pixel_operation(
    request: PixelRequest, processing_service=Depends(get_processing_service)
) -> ProcessingResponse:
    """Invert, threshold or threshold-then-invert every pixel."""
    return processing_service.pixel_operation(request)


@router.post("/logic")
@safe_endpoint
async def logic(
    request: LogicRequest, processing_service=Depends(get_processing_service)
) -> ProcessingResponse:
    return processing_service.logic(request)


@router.post("/circle-masks")
@safe_endpoint
async def circle_masks(
    processing_service=Depends(get_processing_service),
) -> List[ProcessingResponse]:
    """Store the two overlapping circle masks used as logic operands."""
    return processing_service.circle_masks()


# Color
@router.post("/color")
@safe_endpoint
async def convert_color(
    request: ColorConvertRequest, processing_service=Depends(get_processing_service)
) -> ProcessingResponse:
    return processing_service.convert_color(request)


@router.post("/split")
@safe_endpoint
async def split_channels(
    request: ImageOperationRequest, processing_service=Depends(get_processing_service)
) -> ChannelsResponse:
    return processing_service.split_channels(request)


@router.post("/merge")
@safe_endpoint
async def merge_channels(
    request: MergeChannelsRequest, processing_service=Depends(get_processing_service)
) -> ProcessingResponse:
    return processing_service.merge_channels(request.image_ids)


# Kernels and smoothing
@router.post("/kernel")
@safe_endpoint
async def apply_kernel(
    request: KernelRequest, processing_service=Depends(get_processing_service)
) -> ProcessingResponse:
    """Convolve with a predefined or custom kernel."""
    return processing_service.apply_kernel(request)


@router.post("/smooth")
@safe_endpoint
async def smooth(
    request: SmoothRequest, processing_service=Depends(get_processing_service)
) -> ProcessingResponse:
    return processing_service.smooth(request)


@router.post("/preprocess")
@safe_endpoint
async def preprocess(
    request: PreprocessRequest, processing_service=Depends(get_processing_service)
) -> ProcessingResponse:
    """Run the enabled preprocessing steps in order."""
    return processing_service.preprocess(request)


# Histograms
@router.post("/equalize")
@safe_endpoint
async def equalize(
    request: ImageOperationRequest, processing_service=Depends(get_processing_service)
) -> ProcessingResponse:
    return processing_service.equalize(request)


@router.post("/histogram")
@safe_endpoint
async def histogram(
    request: HistogramRequest, processing_service=Depends(get_processing_service)
) -> HistogramResponse:
    return processing_service.histograms(request)


@router.post("/histogram/compare")
@safe_endpoint
async def compare_histograms(
    request: HistogramCompareRequest, processing_service=Depends(get_processing_service)
) -> HistogramCompareResponse:
    return processing_service.compare_histograms(request)


@router.post("/histogram/match")
@safe_endpoint
async def match_histogram(
    request: HistogramMatchRequest, processing_service=Depends(get_processing_service)
) -> ProcessingResponse:
    """Remap the source so its histogram follows the reference histogram."""
    return processing_service.match_histogram(request)
