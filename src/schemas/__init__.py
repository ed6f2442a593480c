"""
Schemas Package

Pydantic models for request validation and response serialization,
organized by domain:

- common: VisionObject and the shared response models
- params: detector and preprocessing parameters
- image: image store requests
- processing: image-to-image operation requests
- analysis: detector, machine learning and point cloud requests
"""

# Re-export geometry types for convenience
from domain_types import ROI, Point

# Base schemas
from .base import BaseOperationParams

# Common models (core data structures)
from .common import ImageInfo, ProcessingResponse, Size, VisionObject, VisionResponse

# Image store models
from .image import (
    ImageImportRequest,
    ImageResponse,
    ImageUploadRequest,
    PatternRequest,
    ROIExtractRequest,
    StoreStats,
)

# Detector parameters
from .params import (
    AlignmentParams,
    ContourAnalysisParams,
    CornerDetectionParams,
    EdgeDetectionParams,
    LineDetectionParams,
    PreprocessingParams,
    ThresholdParams,
)

__all__ = [
    # Geometry
    "Point",
    "ROI",
    "Size",
    # Base
    "BaseOperationParams",
    # Responses
    "ImageInfo",
    "ProcessingResponse",
    "VisionObject",
    "VisionResponse",
    # Image store
    "ImageImportRequest",
    "ImageResponse",
    "ImageUploadRequest",
    "PatternRequest",
    "ROIExtractRequest",
    "StoreStats",
    # Parameters
    "AlignmentParams",
    "ContourAnalysisParams",
    "CornerDetectionParams",
    "EdgeDetectionParams",
    "LineDetectionParams",
    "PreprocessingParams",
    "ThresholdParams",
]
