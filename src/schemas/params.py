"""
Operation parameters for detectors and the preprocessing pipeline.

Centralized location for all Pydantic parameter classes. Detectors receive
these as plain dictionaries through to_dict(), so field names match the
keys the detectors read.
"""

from typing import Optional

from pydantic import Field, field_validator, model_validator

from domain_types import (
    BlurMethod,
    EdgeMethod,
    HoughMethod,
    MorphOperation,
    PixelConstants,
    ThresholdMethod,
    VisionConstants,
)
from schemas.base import BaseOperationParams


class EdgeDetectionParams(BaseOperationParams):
    """
    Edge detection parameters (flat structure).

    Method-specific values are ignored by the other methods.
    """

    # === Method selection ===
    method: EdgeMethod = Field(default=EdgeMethod.CANNY, description="Edge detection method")

    # === Canny ===
    canny_low: int = Field(
        default=VisionConstants.CANNY_LOW_THRESHOLD_DEFAULT,
        ge=0,
        le=VisionConstants.CANNY_THRESHOLD_MAX,
        description="Canny low threshold",
    )
    canny_high: int = Field(
        default=VisionConstants.CANNY_HIGH_THRESHOLD_DEFAULT,
        ge=0,
        le=VisionConstants.CANNY_THRESHOLD_MAX,
        description="Canny high threshold",
    )
    canny_aperture: int = Field(default=3, ge=3, le=7, description="Canny aperture (odd)")

    # === Gradient methods ===
    sobel_kernel: int = Field(default=3, ge=1, le=7, description="Sobel kernel size (odd)")
    laplacian_kernel: int = Field(default=3, ge=1, le=7, description="Laplacian kernel (odd)")
    edge_threshold: float = Field(
        default=50.0, ge=0, le=255, description="Magnitude threshold for gradient methods"
    )

    # === Contour filtering ===
    min_contour_area: float = Field(
        default=VisionConstants.MIN_CONTOUR_AREA_DEFAULT, ge=0, description="Minimum contour area"
    )
    max_contours: int = Field(
        default=VisionConstants.MAX_CONTOURS_DEFAULT, ge=1, description="Maximum contours returned"
    )
    show_centers: bool = Field(default=True, description="Draw contour centers")

    @field_validator("canny_aperture", "sobel_kernel", "laplacian_kernel")
    @classmethod
    def validate_odd(cls, v):
        """Kernel sizes must be odd."""
        if v % 2 == 0:
            raise ValueError(f"Kernel size must be odd, got {v}")
        return v

    @model_validator(mode="after")
    def validate_canny_order(self):
        if self.canny_low > self.canny_high:
            raise ValueError(
                f"canny_low ({self.canny_low}) must not exceed canny_high ({self.canny_high})"
            )
        return self


class CornerDetectionParams(BaseOperationParams):
    """Harris corner parameters."""

    block_size: int = Field(default=VisionConstants.HARRIS_BLOCK_SIZE, ge=1, le=31)
    aperture: int = Field(default=VisionConstants.HARRIS_APERTURE, ge=1, le=31)
    k: float = Field(default=VisionConstants.HARRIS_K, gt=0, lt=1)
    threshold: float = Field(
        default=VisionConstants.HARRIS_THRESHOLD,
        ge=0,
        le=255,
        description="Minimum normalized response (0-255)",
    )
    max_corners: int = Field(default=500, ge=1, description="Maximum corners returned")

    @field_validator("aperture")
    @classmethod
    def validate_aperture(cls, v):
        if v % 2 == 0:
            raise ValueError(f"Sobel aperture must be odd, got {v}")
        return v


class ThresholdParams(BaseOperationParams):
    """Global, Otsu and adaptive thresholding."""

    method: ThresholdMethod = Field(default=ThresholdMethod.BINARY)
    threshold: float = Field(
        default=VisionConstants.BINARY_THRESHOLD_DEFAULT, ge=0, le=255, description="Binary level"
    )
    max_value: int = Field(default=255, ge=1, le=255)
    block_size: int = Field(default=11, ge=3, description="Adaptive neighbourhood (odd)")
    c: float = Field(default=2.0, description="Constant subtracted from the adaptive mean")


class ContourAnalysisParams(BaseOperationParams):
    """Contour extraction and moment analysis."""

    blur_kernel: int = Field(default=5, ge=1, le=31, description="Gaussian kernel (odd)")
    canny_low: int = Field(default=50, ge=0, le=VisionConstants.CANNY_THRESHOLD_MAX)
    canny_high: int = Field(default=100, ge=0, le=VisionConstants.CANNY_THRESHOLD_MAX)
    min_contour_area: float = Field(default=0.0, ge=0)
    max_contours: int = Field(default=VisionConstants.MAX_CONTOURS_DEFAULT, ge=1)

    @field_validator("blur_kernel")
    @classmethod
    def validate_odd(cls, v):
        if v % 2 == 0:
            raise ValueError(f"Blur kernel must be odd, got {v}")
        return v


class LineDetectionParams(BaseOperationParams):
    """Hough line parameters; thresholds default per method when omitted."""

    method: HoughMethod = Field(default=HoughMethod.PROBABILISTIC)
    canny_low: int = Field(default=50, ge=0, le=VisionConstants.CANNY_THRESHOLD_MAX)
    canny_high: int = Field(default=200, ge=0, le=VisionConstants.CANNY_THRESHOLD_MAX)
    threshold: Optional[int] = Field(default=None, ge=1, description="Accumulator threshold")
    min_line_length: float = Field(default=VisionConstants.HOUGH_MIN_LINE_LENGTH, ge=0)
    max_line_gap: float = Field(default=VisionConstants.HOUGH_MAX_LINE_GAP, ge=0)


class AlignmentParams(BaseOperationParams):
    """ORB feature alignment."""

    max_features: int = Field(default=VisionConstants.ORB_FEATURES, ge=10, le=100000)
    good_match_fraction: float = Field(
        default=VisionConstants.GOOD_MATCH_FRACTION,
        gt=0,
        le=1,
        description="Share of the best matches kept for the homography",
    )


class PreprocessingParams(BaseOperationParams):
    """Steps of the preprocessing pipeline; disabled steps are skipped."""

    grayscale_enabled: bool = False

    smooth_enabled: bool = False
    smooth_method: BlurMethod = BlurMethod.GAUSSIAN
    smooth_kernel: int = Field(
        default=VisionConstants.BLUR_SIZE_DEFAULT,
        ge=VisionConstants.BLUR_SIZE_MIN,
        le=VisionConstants.BLUR_SIZE_MAX,
    )

    equalize_enabled: bool = False

    threshold_enabled: bool = False
    threshold_otsu: bool = False
    threshold_value: int = Field(default=PixelConstants.THRESHOLD_DEFAULT, ge=0, le=255)

    morphology_enabled: bool = False
    morphology_operation: MorphOperation = MorphOperation.CLOSE
    morphology_size: int = Field(
        default=VisionConstants.MORPH_SIZE_DEFAULT, ge=0, le=VisionConstants.MORPH_SIZE_MAX
    )

    invert_enabled: bool = False

    @field_validator("smooth_kernel")
    @classmethod
    def validate_odd(cls, v):
        if v % 2 == 0:
            raise ValueError(f"Smoothing kernel must be odd, got {v}")
        return v

    @field_validator("morphology_operation")
    @classmethod
    def validate_basic_morphology(cls, v):
        """The pipeline supports the four basic operations only."""
        allowed = (
            MorphOperation.ERODE,
            MorphOperation.DILATE,
            MorphOperation.OPEN,
            MorphOperation.CLOSE,
        )
        if v not in allowed:
            raise ValueError(f"Unsupported pipeline morphology: {v.value}")
        return v
