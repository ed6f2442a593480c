"""
Calibration API Router - chessboard calibration, undistortion and stereo disparity
"""

import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_analysis_service
from api.exceptions import safe_endpoint
from schemas.common import ProcessingResponse
from schemas.processing import (
    CalibrateRequest,
    CalibrationResponse,
    ChessboardRequest,
    DisparityRequest,
    UndistortRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/chessboard")
@safe_endpoint
async def find_chessboard(
    request: ChessboardRequest, analysis_service=Depends(get_analysis_service)
) -> ProcessingResponse:
    """Detect and draw chessboard corners; metadata["found"] reports success."""
    return analysis_service.find_chessboard(request)


@router.post("/calibrate")
@safe_endpoint
async def calibrate(
    request: CalibrateRequest, analysis_service=Depends(get_analysis_service)
) -> CalibrationResponse:
    """
    Camera intrinsics from chessboard views.

    Raises:
        HTTPException 422: If no image contains the pattern
    """
    return analysis_service.calibrate(request)


@router.post("/undistort")
@safe_endpoint
async def undistort(
    request: UndistortRequest, analysis_service=Depends(get_analysis_service)
) -> ProcessingResponse:
    return analysis_service.undistort(request)


@router.post("/disparity")
@safe_endpoint
async def disparity(
    request: DisparityRequest, analysis_service=Depends(get_analysis_service)
) -> ProcessingResponse:
    """
    Disparity of a rectified stereo pair.

    Raises:
        HTTPException 400: If max_disparity is not a multiple of 16 or sizes differ
        HTTPException 500: If WLS filtering is requested without opencv-contrib
    """
    return analysis_service.disparity(request)
