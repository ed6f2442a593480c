"""
Common models shared across the API.

- VisionObject: one detected entity (contour, corner, line, region, detection)
- VisionResponse: detector output with a visualization thumbnail
- ProcessingResponse: result of an image-to-image operation
- ImageInfo / Size: stored image description
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from domain_types import ROI, Point


class Size(BaseModel):
    """Image size"""

    width: int
    height: int


class VisionObject(BaseModel):
    """
    Universal interface for any detected object.

    Provides standardized location, geometry, and quality information;
    detector-specific values go into properties.
    """

    # Identification
    object_id: str = Field(..., description="Unique ID of this object")
    object_type: str = Field(
        ..., description="Type: edge_contour, corner, contour, line, flood_region, detection"
    )

    # Position & Geometry
    bounding_box: ROI = Field(
        ..., description="Bounding box of detected object in {x, y, width, height} format"
    )
    center: Point = Field(..., description="Center point of the object")

    # Quality
    confidence: float = Field(..., ge=0.0, le=1.0, description="Confidence score (0.0 - 1.0)")

    # Optional geometry
    area: Optional[float] = Field(None, description="Area in pixels")
    perimeter: Optional[float] = Field(None, description="Perimeter in pixels")

    # Type-specific properties
    properties: Dict[str, Any] = Field(default_factory=dict, description="Type-specific properties")

    # Raw data (optional)
    contour: Optional[List] = Field(None, description="Contour points [[x, y], ...]")


class VisionResponse(BaseModel):
    """Response for detector endpoints."""

    objects: List[VisionObject] = Field(default_factory=list, description="List of vision objects")
    thumbnail_base64: str = Field(..., description="Base64-encoded thumbnail with visualization")
    processing_time_ms: int = Field(..., description="Processing time in milliseconds")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Detector-specific values")


class ProcessingResponse(BaseModel):
    """Response for operations that produce a new stored image."""

    image_id: str = Field(..., description="ID of the stored result image")
    source_image_id: Optional[str] = Field(None, description="ID of the input image")
    operation: str = Field(..., description="Name of the applied operation")
    width: int
    height: int
    thumbnail_base64: str = Field(..., description="Base64-encoded thumbnail of the result")
    processing_time_ms: int = Field(..., description="Processing time in milliseconds")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Operation-specific values")


class ImageInfo(BaseModel):
    """Description of a stored image."""

    image_id: str
    width: int
    height: int
    channels: int
    dtype: str
    size: int = Field(..., description="Size in bytes")
    timestamp: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
