"""
Features API Router - detector endpoints

All detector endpoints follow the same pattern:
1. Parse the request (image id, optional ROI, detector parameters)
2. Call the analysis service, which runs the detector and stores the result image
3. Return VisionResponse (objects in full-image coordinates, thumbnail, timing)
"""

import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_analysis_service
from api.exceptions import safe_endpoint
from schemas.analysis import (
    AlignRequest,
    ContourRequest,
    CornerDetectRequest,
    EdgeDetectRequest,
    LineDetectRequest,
    ThresholdRequest,
)
from schemas.common import VisionResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/edges")
@safe_endpoint
async def detect_edges(
    request: EdgeDetectRequest, analysis_service=Depends(get_analysis_service)
) -> VisionResponse:
    """
    Edge detection (Canny, Sobel, Laplacian, Scharr).

    The edge map is stored as a separate image; its id is
    metadata["edges_image_id"].
    """
    return analysis_service.detect_edges(request)


@router.post("/corners")
@safe_endpoint
async def detect_corners(
    request: CornerDetectRequest, analysis_service=Depends(get_analysis_service)
) -> VisionResponse:
    """Harris corners above the normalized response threshold."""
    return analysis_service.detect_corners(request)


@router.post("/threshold")
@safe_endpoint
async def threshold(
    request: ThresholdRequest, analysis_service=Depends(get_analysis_service)
) -> VisionResponse:
    return analysis_service.threshold(request)


@router.post("/contours")
@safe_endpoint
async def analyze_contours(
    request: ContourRequest, analysis_service=Depends(get_analysis_service)
) -> VisionResponse:
    """Contours with moments, centroids, areas and perimeters."""
    return analysis_service.analyze_contours(request)


@router.post("/lines")
@safe_endpoint
async def detect_lines(
    request: LineDetectRequest, analysis_service=Depends(get_analysis_service)
) -> VisionResponse:
    return analysis_service.detect_lines(request)


@router.post("/align")
@safe_endpoint
async def align(
    request: AlignRequest, analysis_service=Depends(get_analysis_service)
) -> VisionResponse:
    """
    Align an image to a reference with ORB features and a RANSAC homography.

    Raises:
        HTTPException 400: If too few features match
    """
    return analysis_service.align(request)
