"""
Request models for image-to-image operations.

Every request names a stored image; the optional roi limits the operation to
a region, and the result is stored as a new image.
"""

from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

from domain_types import (
    ROI,
    BlurMethod,
    CalibrationConstants,
    ColorSpace,
    ContourMode,
    ElementShape,
    FloodFillMode,
    GeometryConstants,
    HistCompareMethod,
    InterpolationMethod,
    KernelType,
    LogicOperation,
    MorphOperation,
    PixelConstants,
    ShrinkageType,
    StereoAlgorithm,
    ThinningMethod,
    TransformConstants,
    VisionConstants,
)
from schemas.params import PreprocessingParams


class ImageOperationRequest(BaseModel):
    """Base request: stored image plus optional region of interest"""

    image_id: str = Field(..., description="ID of the input image")
    roi: Optional[ROI] = Field(None, description="Restrict the operation to this region")


# ==============================================================================
# Frequency domain
# ==============================================================================


class WaveletRequest(ImageOperationRequest):
    """Haar decomposition, optionally reconstructed with shrinkage"""

    levels: Optional[int] = Field(
        None, ge=0, le=TransformConstants.WAVELET_LEVELS_MAX, description="Decomposition levels"
    )
    shrinkage: Optional[ShrinkageType] = Field(None, description="Detail shrinkage rule")
    threshold: Optional[float] = Field(None, ge=0, description="Shrinkage threshold")
    reconstruct: bool = Field(
        False, description="Return the reconstruction instead of the coefficient plane"
    )


class DftRequest(ImageOperationRequest):
    """Magnitude spectrum of the discrete Fourier transform"""

    shift: bool = Field(True, description="Move the zero frequency to the center")


class DftReconstructRequest(ImageOperationRequest):
    """Rebuild the image from its lowest frequencies"""

    max_frequency: int = Field(..., ge=0, description="Highest u and v kept")


class FrequencyFilterRequest(ImageOperationRequest):
    """Ideal circular low or high pass filter"""

    radius: int = Field(30, ge=1, description="Cut-off radius in frequency samples")
    high_pass: bool = False


class BasisWaveRequest(BaseModel):
    """Single 2D Fourier basis function cos(2pi(ux/M + vy/N))"""

    u: int = Field(..., ge=0)
    v: int = Field(..., ge=0)
    width: int = Field(TransformConstants.BASIS_WAVE_SIZE, ge=2, le=4096)
    height: int = Field(TransformConstants.BASIS_WAVE_SIZE, ge=2, le=4096)


class DctRequest(ImageOperationRequest):
    """DCT spectrum, or compression keeping the top-left keep x keep block"""

    keep: Optional[int] = Field(None, ge=1, description="Coefficients kept per axis")


# ==============================================================================
# Pixels, color, filters, histograms
# ==============================================================================


class PixelRequest(ImageOperationRequest):
    """Point operations"""

    operation: Literal["invert", "threshold", "invert_threshold"] = "invert"
    value: Optional[int] = Field(None, ge=0, le=255, description="Threshold level")


class LogicRequest(BaseModel):
    """Bitwise combination of two stored images (NOT uses only the first)"""

    image_id: str
    second_image_id: Optional[str] = None
    operation: LogicOperation = LogicOperation.AND

    @model_validator(mode="after")
    def validate_second_image(self):
        if self.operation != LogicOperation.NOT and not self.second_image_id:
            raise ValueError(f"Operation {self.operation.value} requires second_image_id")
        return self


class ColorConvertRequest(ImageOperationRequest):
    space: ColorSpace = ColorSpace.GRAY


class MergeChannelsRequest(BaseModel):
    image_ids: List[str] = Field(..., min_length=1, max_length=4, description="One per channel")


class KernelRequest(ImageOperationRequest):
    """Predefined 3x3 kernel or a custom one"""

    kernel: Optional[KernelType] = Field(KernelType.SHARPEN, description="Predefined kernel")
    custom_kernel: Optional[List[List[float]]] = Field(
        None, description="Custom kernel rows; overrides kernel"
    )

    @field_validator("custom_kernel")
    @classmethod
    def validate_rectangular(cls, v):
        if v is None:
            return v
        if not v or not v[0] or any(len(row) != len(v[0]) for row in v):
            raise ValueError("Custom kernel must be a non-empty rectangular matrix")
        return v


class SmoothRequest(ImageOperationRequest):
    method: BlurMethod = BlurMethod.GAUSSIAN
    kernel_size: Optional[int] = Field(
        None, ge=VisionConstants.BLUR_SIZE_MIN, le=VisionConstants.BLUR_SIZE_MAX
    )

    @field_validator("kernel_size")
    @classmethod
    def validate_odd(cls, v):
        if v is not None and v % 2 == 0:
            raise ValueError(f"Kernel size must be odd, got {v}")
        return v


class PreprocessRequest(ImageOperationRequest):
    params: PreprocessingParams = Field(default_factory=PreprocessingParams)


class HistogramRequest(ImageOperationRequest):
    bins: int = Field(256, ge=2, le=256)


class HistogramCompareRequest(BaseModel):
    image_id: str
    second_image_id: str
    method: HistCompareMethod = HistCompareMethod.CORRELATION


class HistogramMatchRequest(BaseModel):
    """Map the source histogram onto the reference one"""

    image_id: str = Field(..., description="Source image")
    reference_image_id: str
    source_roi: Optional[ROI] = Field(None, description="Region whose histogram is used")
    reference_roi: Optional[ROI] = None


# ==============================================================================
# Geometry
# ==============================================================================


class TranslateRequest(ImageOperationRequest):
    tx: float = GeometryConstants.TRANSLATION_DEFAULT[0]
    ty: float = GeometryConstants.TRANSLATION_DEFAULT[1]


class RotateRequest(ImageOperationRequest):
    angle: float = Field(GeometryConstants.ROTATION_ANGLE_DEFAULT, description="Degrees, CCW")
    scale: float = Field(GeometryConstants.ROTATION_SCALE_DEFAULT, gt=0)
    center: Optional[Tuple[float, float]] = Field(None, description="Defaults to image center")


class ResizeRequest(ImageOperationRequest):
    fx: float = Field(..., gt=0, le=16)
    fy: float = Field(..., gt=0, le=16)
    interpolation: InterpolationMethod = InterpolationMethod.LINEAR


class ScaleRequest(ImageOperationRequest):
    direction: Literal["up", "down"] = "up"
    interpolation: InterpolationMethod = InterpolationMethod.LINEAR


class AffineRequest(ImageOperationRequest):
    """Three source points mapped onto three destination points"""

    src_points: Optional[List[Tuple[float, float]]] = Field(
        None, description="Defaults to the shear reference points"
    )
    dst_points: Optional[List[Tuple[float, float]]] = None

    @model_validator(mode="after")
    def validate_points(self):
        if (self.src_points is None) != (self.dst_points is None):
            raise ValueError("src_points and dst_points must be given together")
        for points in (self.src_points, self.dst_points):
            if points is not None and len(points) != 3:
                raise ValueError(f"Affine warp needs exactly 3 points, got {len(points)}")
        return self


# ==============================================================================
# Morphology
# ==============================================================================


class MorphRequest(ImageOperationRequest):
    operation: MorphOperation = MorphOperation.ERODE
    shape: ElementShape = ElementShape.RECT
    size: int = Field(VisionConstants.MORPH_SIZE_DEFAULT, ge=0, le=VisionConstants.MORPH_SIZE_MAX)
    iterations: int = Field(1, ge=1, le=50)


class MorphContourRequest(ImageOperationRequest):
    mode: ContourMode = ContourMode.INNER
    shape: ElementShape = ElementShape.RECT
    size: int = Field(VisionConstants.MORPH_SIZE_DEFAULT, ge=0, le=VisionConstants.MORPH_SIZE_MAX)


class ThinRequest(ImageOperationRequest):
    method: ThinningMethod = ThinningMethod.ZHANG_SUEN
    threshold: int = Field(
        PixelConstants.THRESHOLD_DEFAULT, ge=0, le=255, description="Binarization level"
    )


class FloodFillRequest(BaseModel):
    image_id: str
    seed: Tuple[int, int] = Field(..., description="Seed pixel (x, y)")
    mode: FloodFillMode = FloodFillMode.FIXED
    lo_diff: int = Field(VisionConstants.FLOOD_DIFF_DEFAULT, ge=0, le=255)
    up_diff: int = Field(VisionConstants.FLOOD_DIFF_DEFAULT, ge=0, le=255)
    connectivity: Literal[4, 8] = 4
    new_value: Optional[Tuple[int, int, int]] = Field(None, description="Fill color (B, G, R)")
    use_mask: bool = False


# ==============================================================================
# Motion
# ==============================================================================


class FramePairRequest(BaseModel):
    prev_image_id: str
    next_image_id: str


class SparseFlowRequest(FramePairRequest):
    max_corners: int = Field(100, ge=1, le=10000)
    quality: float = Field(0.3, gt=0, le=1)
    min_distance: float = Field(7, ge=0)


class FrameDifferenceRequest(BaseModel):
    image_ids: List[str] = Field(..., min_length=2, description="First frame is the reference")


# ==============================================================================
# Calibration and stereo
# ==============================================================================


class ChessboardRequest(BaseModel):
    image_id: str
    pattern_size: Tuple[int, int] = Field(
        CalibrationConstants.PATTERN_SIZE, description="Inner corners per row and column"
    )


class CalibrateRequest(BaseModel):
    image_ids: List[str] = Field(..., min_length=1)
    pattern_size: Tuple[int, int] = CalibrationConstants.PATTERN_SIZE
    square_size: float = Field(1.0, gt=0)


class UndistortRequest(ImageOperationRequest):
    camera_matrix: List[List[float]] = Field(..., description="3x3 intrinsic matrix")
    dist_coeffs: List[float] = Field(..., min_length=4, max_length=14)


class DisparityRequest(BaseModel):
    left_image_id: str
    right_image_id: str
    algorithm: StereoAlgorithm = StereoAlgorithm.SGBM
    max_disparity: int = Field(160, ge=16, le=1024)
    window_size: Optional[int] = Field(None, ge=1, le=255)
    wls: bool = Field(False, description="Apply the WLS filter (needs opencv-contrib)")


# ==============================================================================
# Responses without a single result image
# ==============================================================================


class ChannelsResponse(BaseModel):
    source_image_id: str
    channel_image_ids: List[str]
    processing_time_ms: int


class HistogramResponse(BaseModel):
    image_id: str
    bins: int
    histograms: List[List[float]] = Field(..., description="One histogram per channel")
    processing_time_ms: int


class HistogramCompareResponse(BaseModel):
    method: str
    score: float
    processing_time_ms: int


class CalibrationResponse(BaseModel):
    rms: float
    camera_matrix: List[List[float]]
    dist_coeffs: List[float]
    image_size: Tuple[int, int]
    used_image_ids: List[str]
    skipped_image_ids: List[str]
    processing_time_ms: int
