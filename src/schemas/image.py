"""
Image store API models.

- Upload of encoded images as base64
- Import from the file system
- Generated test patterns
- ROI extraction
"""

from typing import Any, Dict

from pydantic import BaseModel, Field

from domain_types import ROI, ImageConstants, PatternType


class ImageUploadRequest(BaseModel):
    """Encoded image (PNG, JPEG, BMP, ...) as base64, optionally a data URI"""

    data: str = Field(..., description="Base64 encoded image bytes")
    grayscale: bool = Field(False, description="Decode as single channel")
    name: str = Field("", description="Optional label stored in the metadata")


class ImageImportRequest(BaseModel):
    """Request to import image from file system"""

    file_path: str = Field(..., description="Path to image file (JPG, PNG, BMP, etc.)")
    grayscale: bool = Field(False, description="Load as single channel")


class PatternRequest(BaseModel):
    """Request to generate a synthetic test image"""

    pattern: PatternType = Field(PatternType.SHAPES, description="Pattern to generate")
    width: int = Field(
        ImageConstants.DEFAULT_PATTERN_WIDTH, ge=16, le=ImageConstants.MAX_IMAGE_DIMENSION
    )
    height: int = Field(
        ImageConstants.DEFAULT_PATTERN_HEIGHT, ge=16, le=ImageConstants.MAX_IMAGE_DIMENSION
    )


class ROIExtractRequest(BaseModel):
    """Request to extract ROI from image"""

    image_id: str
    roi: ROI = Field(..., description="Region of interest to extract")


class ImageResponse(BaseModel):
    """A newly stored image"""

    image_id: str
    width: int
    height: int
    channels: int
    thumbnail_base64: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


class StoreStats(BaseModel):
    total_images: int
    max_images: int
    total_size_mb: float
    max_size_mb: float
    usage_percent: float
    cached_thumbnails: int
