"""
Machine Learning API Router - classifiers, k-means and object detection
"""

import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_analysis_service
from api.exceptions import safe_endpoint
from schemas.analysis import (
    ClassifyRequest,
    ClassifyResponse,
    KMeansRequest,
    KMeansResponse,
    ObjectDetectRequest,
)
from schemas.common import VisionResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/classify")
@safe_endpoint
async def classify(
    request: ClassifyRequest, analysis_service=Depends(get_analysis_service)
) -> ClassifyResponse:
    """
    Train a classifier on 2D points and render its decision regions.

    Without samples the two-class SVM demo dataset is used.
    """
    return analysis_service.classify(request)


@router.post("/kmeans")
@safe_endpoint
async def kmeans(
    request: KMeansRequest, analysis_service=Depends(get_analysis_service)
) -> KMeansResponse:
    return analysis_service.kmeans(request)


@router.post("/detect")
@safe_endpoint
async def detect_objects(
    request: ObjectDetectRequest, analysis_service=Depends(get_analysis_service)
) -> VisionResponse:
    """
    YOLO object detection.

    Raises:
        HTTPException 503: If the network files are not configured
    """
    return analysis_service.detect_objects(request)
