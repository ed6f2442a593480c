"""
Point Cloud API Router - PCD codec, synthetic clouds, RANSAC fitting and ICP

Clouds are not stored server-side; every request carries its points.
"""

import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_analysis_service
from api.exceptions import safe_endpoint
from schemas.analysis import (
    CloudGenerateRequest,
    PcdParseRequest,
    PointCloud,
    RegisterRequest,
    RegisterResponse,
    SegmentRequest,
    SegmentResponse,
    TransformCloudRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/generate")
@safe_endpoint
async def generate(
    request: CloudGenerateRequest, analysis_service=Depends(get_analysis_service)
) -> PointCloud:
    """Synthetic plane or sphere cloud with outliers, plus its PCD text."""
    return analysis_service.generate_cloud(request)


@router.post("/parse")
@safe_endpoint
async def parse(
    request: PcdParseRequest, analysis_service=Depends(get_analysis_service)
) -> PointCloud:
    return analysis_service.parse_cloud(request)


@router.post("/segment")
@safe_endpoint
async def segment(
    request: SegmentRequest, analysis_service=Depends(get_analysis_service)
) -> SegmentResponse:
    """RANSAC plane or sphere fit with inlier indices."""
    return analysis_service.segment_cloud(request)


@router.post("/register")
@safe_endpoint
async def register(
    request: RegisterRequest, analysis_service=Depends(get_analysis_service)
) -> RegisterResponse:
    """Iterative closest point alignment of source onto target."""
    return analysis_service.register_clouds(request)


@router.post("/transform")
@safe_endpoint
async def transform(
    request: TransformCloudRequest, analysis_service=Depends(get_analysis_service)
) -> PointCloud:
    return analysis_service.transform_cloud(request)
