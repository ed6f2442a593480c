"""
Motion API Router - optical flow and frame differencing
"""

import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_analysis_service
from api.exceptions import safe_endpoint
from schemas.common import ProcessingResponse
from schemas.processing import FrameDifferenceRequest, FramePairRequest, SparseFlowRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/sparse")
@safe_endpoint
async def sparse_flow(
    request: SparseFlowRequest, analysis_service=Depends(get_analysis_service)
) -> ProcessingResponse:
    """Shi-Tomasi features tracked with pyramidal Lucas-Kanade."""
    return analysis_service.sparse_flow(request)


@router.post("/dense")
@safe_endpoint
async def dense_flow(
    request: FramePairRequest, analysis_service=Depends(get_analysis_service)
) -> ProcessingResponse:
    """Farneback flow as an HSV rendering."""
    return analysis_service.dense_flow(request)


@router.post("/difference")
@safe_endpoint
async def frame_difference(
    request: FrameDifferenceRequest, analysis_service=Depends(get_analysis_service)
) -> ProcessingResponse:
    return analysis_service.frame_difference(request)
