"""
Central types module for the vision lab.

This module consolidates the fundamental types, enums, and constants used throughout
the system. It has no dependencies on other project modules (only stdlib and Pydantic).

Contents:
- Base Models: Point, ROI (geometric primitives)
- Enums: operation selectors (ShrinkageType, ColorSpace, MorphOperation, etc.)
- Constants: default values and limits organized by domain

IMPORTANT: This module must NOT import from schemas, core, services, image,
transforms, algorithms, or api to avoid circular dependencies.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field

# ==============================================================================
# Base Data Models
# ==============================================================================


class Point(BaseModel):
    """2D Point"""

    x: float
    y: float

    def as_int_tuple(self) -> tuple[int, int]:
        """Pixel coordinates as an (x, y) integer tuple."""
        return int(round(self.x)), int(round(self.y))


class ROI(BaseModel):
    """
    Region of Interest.

    Represents a rectangular region in an image with the helpers needed to
    crop and bound-check it.
    """

    x: int = Field(..., ge=0, description="X coordinate")
    y: int = Field(..., ge=0, description="Y coordinate")
    width: int = Field(..., gt=0, description="Width")
    height: int = Field(..., gt=0, description="Height")

    def to_dict(self) -> Dict[str, int]:
        """Convert to dictionary for service layer compatibility."""
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_rect(cls, rect) -> "ROI":
        """Create ROI from an OpenCV (x, y, w, h) rectangle."""
        x, y, w, h = (int(v) for v in rect)
        return cls(x=x, y=y, width=max(w, 1), height=max(h, 1))

    @property
    def x2(self) -> int:
        """Get right edge coordinate."""
        return self.x + self.width

    @property
    def y2(self) -> int:
        """Get bottom edge coordinate."""
        return self.y + self.height

    def clip(self, image_width: int, image_height: int) -> Optional["ROI"]:
        """
        Clip ROI to image bounds.

        Returns:
            Clipped ROI, or None when nothing of the ROI lies inside the image
        """
        x1 = max(0, min(self.x, image_width))
        y1 = max(0, min(self.y, image_height))
        x2 = max(0, min(self.x2, image_width))
        y2 = max(0, min(self.y2, image_height))

        if x2 <= x1 or y2 <= y1:
            return None
        return ROI(x=x1, y=y1, width=x2 - x1, height=y2 - y1)


# ==============================================================================
# Enumerations
# ==============================================================================


# Frequency domain
class ShrinkageType(str, Enum):
    """Wavelet detail coefficient shrinkage rules."""

    NONE = "none"
    HARD = "hard"
    SOFT = "soft"
    GARROTE = "garrote"


# Spatial domain
class ColorSpace(str, Enum):
    """Color spaces reachable from BGR."""

    BGR = "bgr"
    GRAY = "gray"
    HSV = "hsv"
    LAB = "lab"
    YCRCB = "ycrcb"
    CMY = "cmy"
    HSI = "hsi"


class LogicOperation(str, Enum):
    """Bitwise operations between masks."""

    AND = "and"
    OR = "or"
    XOR = "xor"
    NOT = "not"


class KernelType(str, Enum):
    """Fixed 3x3 convolution kernels."""

    BOX = "box"
    SOBEL_X = "sobel_x"
    SOBEL_Y = "sobel_y"
    LAPLACIAN = "laplacian"
    SHARPEN = "sharpen"


class BlurMethod(str, Enum):
    """Smoothing filters."""

    BOX = "box"
    GAUSSIAN = "gaussian"
    MEDIAN = "median"
    BILATERAL = "bilateral"


class InterpolationMethod(str, Enum):
    """Resampling interpolation."""

    NEAREST = "nearest"
    LINEAR = "linear"
    CUBIC = "cubic"
    AREA = "area"
    LANCZOS = "lanczos"


class HistCompareMethod(str, Enum):
    """Histogram comparison metrics."""

    CORRELATION = "correlation"
    CHI_SQUARE = "chi_square"
    INTERSECTION = "intersection"
    BHATTACHARYYA = "bhattacharyya"


# Morphology
class ElementShape(str, Enum):
    """Structuring element shapes."""

    RECT = "rect"
    CROSS = "cross"
    ELLIPSE = "ellipse"


class MorphOperation(str, Enum):
    """Morphological operators."""

    ERODE = "erode"
    DILATE = "dilate"
    OPEN = "open"
    CLOSE = "close"
    GRADIENT = "gradient"
    TOPHAT = "tophat"
    BLACKHAT = "blackhat"


class ContourMode(str, Enum):
    """Morphological contour side."""

    INNER = "inner"
    OUTER = "outer"


class ThinningMethod(str, Enum):
    """Skeletonization algorithms."""

    ZHANG_SUEN = "zhang_suen"
    GUO_HALL = "guo_hall"


class FloodFillMode(str, Enum):
    """Flood fill range modes."""

    SIMPLE = "simple"
    FIXED = "fixed"
    GRADIENT = "gradient"


# Features
class EdgeMethod(str, Enum):
    """Available edge detection methods."""

    CANNY = "canny"
    SOBEL = "sobel"
    SOBEL_MANUAL = "sobel_manual"
    LAPLACIAN = "laplacian"
    SCHARR = "scharr"


class ThresholdMethod(str, Enum):
    """Global and adaptive thresholding methods."""

    BINARY = "binary"
    OTSU = "otsu"
    BINARY_OTSU = "binary_otsu"
    ADAPTIVE = "adaptive"


class HoughMethod(str, Enum):
    """Hough line transform variants."""

    STANDARD = "standard"
    PROBABILISTIC = "probabilistic"


# 3D vision
class StereoAlgorithm(str, Enum):
    """Stereo block matchers."""

    BM = "bm"
    SGBM = "sgbm"


# Machine learning
class ClassifierType(str, Enum):
    """OpenCV ml models usable as point classifiers."""

    NORMAL_BAYES = "normal_bayes"
    KNN = "knn"
    SVM = "svm"
    DECISION_TREE = "decision_tree"
    BOOST = "boost"
    RANDOM_TREES = "random_trees"
    ANN_MLP = "ann_mlp"
    EM = "em"


class SvmKernel(str, Enum):
    """SVM kernel types."""

    LINEAR = "linear"
    POLY = "poly"
    RBF = "rbf"


# Generated inputs
class PatternType(str, Enum):
    """Synthetic images available without file I/O."""

    GRADIENT = "gradient"
    CHECKERBOARD = "checkerboard"
    SHAPES = "shapes"
    NOISE = "noise"
    CIRCLES = "circles"
    CHESSBOARD = "chessboard"


# Vision object type enums
class VisionObjectType(str, Enum):
    """Types of objects reported by detectors."""

    EDGE_CONTOUR = "edge_contour"
    CORNER = "corner"
    CONTOUR = "contour"
    LINE = "line"
    FLOOD_REGION = "flood_region"
    DETECTION = "detection"


# ==============================================================================
# Constants
# ==============================================================================


# Image Management Constants
class ImageConstants:
    """Constants related to image storage and thumbnails."""

    # Storage limits
    DEFAULT_MAX_IMAGES = 100
    DEFAULT_MAX_MEMORY_MB = 500
    MIN_IMAGES = 1
    MAX_IMAGES = 1000

    # Image dimensions
    MAX_IMAGE_DIMENSION = 8192
    DEFAULT_PATTERN_WIDTH = 512
    DEFAULT_PATTERN_HEIGHT = 512

    # Thumbnail settings
    DEFAULT_THUMBNAIL_WIDTH = 320
    MIN_THUMBNAIL_WIDTH = 50
    MAX_THUMBNAIL_WIDTH = 2000
    THUMBNAIL_JPEG_QUALITY = 70


class TransformConstants:
    """Defaults for the frequency-domain transforms."""

    WAVELET_LEVELS_DEFAULT = 4
    WAVELET_LEVELS_MAX = 10
    WAVELET_THRESHOLD_DEFAULT = 50.0
    WAVELET_DENOISE_THRESHOLD = 30.0

    BASIS_WAVE_SIZE = 500
    DCT_KEEP_DEFAULT = 64


class PixelConstants:
    """Defaults for point and logic operations."""

    THRESHOLD_DEFAULT = 128
    INVERSE_THRESHOLD_DEFAULT = 150
    MASK_SIZE = (400, 400)
    MASK_RADIUS = 100
    MASK_CENTERS = ((180, 200), (220, 200))


class GeometryConstants:
    """Defaults for geometric transforms."""

    TRANSLATION_DEFAULT = (100, 100)
    ROTATION_ANGLE_DEFAULT = -50.0
    ROTATION_SCALE_DEFAULT = 0.6

    # Shear reference points as fractions of (width, height)
    SHEAR_DST_FRACTIONS = ((0.0, 0.33), (0.85, 0.25), (0.15, 0.7))


class HistogramConstants:
    """Histogram binning and matching constants."""

    BINS = 256
    HUE_BINS = 50
    SATURATION_BINS = 60
    MATCH_EPSILON = 0.000001


# Vision Processing Constants
class VisionConstants:
    """Constants for feature and region operations."""

    # Canny edge detection
    CANNY_LOW_THRESHOLD_DEFAULT = 50
    CANNY_HIGH_THRESHOLD_DEFAULT = 150
    CANNY_THRESHOLD_MAX = 500

    # Smoothing kernels
    BLUR_SIZE_DEFAULT = 5
    BLUR_SIZE_MIN = 1
    BLUR_SIZE_MAX = 31

    # Morphology
    MORPH_SIZE_DEFAULT = 1
    MORPH_SIZE_MAX = 21

    # Flood fill
    FLOOD_DIFF_DEFAULT = 20

    # Harris corners
    HARRIS_BLOCK_SIZE = 2
    HARRIS_APERTURE = 3
    HARRIS_K = 0.04
    HARRIS_THRESHOLD = 200

    # Thresholding
    BINARY_THRESHOLD_DEFAULT = 100

    # Hough
    HOUGH_THRESHOLD_STANDARD = 200
    HOUGH_THRESHOLD_PROBABILISTIC = 50
    HOUGH_MIN_LINE_LENGTH = 50
    HOUGH_MAX_LINE_GAP = 10

    # Contours
    MIN_CONTOUR_AREA_DEFAULT = 10
    MAX_CONTOURS_DEFAULT = 100
    CONTOUR_APPROX_EPSILON_FACTOR = 0.02

    # Feature alignment
    ORB_FEATURES = 500
    GOOD_MATCH_FRACTION = 0.15


class CalibrationConstants:
    """Chessboard calibration constants."""

    PATTERN_SIZE = (24, 17)
    SUBPIX_WINDOW = (11, 11)
    SUBPIX_MAX_ITER = 30
    SUBPIX_EPS = 0.1


class StereoConstants:
    """Stereo matching constants."""

    MAX_DISPARITY_DEFAULT = 160
    WINDOW_SGBM_DEFAULT = 3
    WINDOW_BM_DEFAULT = 15
    WINDOW_BM_MIN = 5
    PRE_FILTER_CAP = 63
    WLS_LAMBDA = 8000.0
    WLS_SIGMA = 1.5


class PointCloudConstants:
    """Point cloud fitting constants."""

    RANSAC_DISTANCE_THRESHOLD = 0.01
    RANSAC_MAX_ITERATIONS = 1000
    ICP_MAX_ITERATIONS = 50
    ICP_TOLERANCE = 1e-6
    NEIGHBOUR_CHUNK_SIZE = 1024


class FlowConstants:
    """Optical flow constants."""

    MAX_CORNERS = 100
    QUALITY_LEVEL = 0.3
    MIN_DISTANCE = 7
    BLOCK_SIZE = 7
    LK_WINDOW = 15
    LK_MAX_LEVEL = 2
    DIFFERENCE_FRAMES = 4


class MLConstants:
    """Machine learning demo constants."""

    SAMPLES_PER_CLASS = 100
    LINEAR_FRACTION = 0.9
    DATASET_SIZE = 512
    DATASET_SEED = 100
    DECISION_STEP = 5
    KNN_K_DEFAULT = 3
    EM_COMPONENTS = 3
    KMEANS_ATTEMPTS = 3
    MAX_CLUSTERS = 5

    YOLO_INPUT_SIZE = 416
    YOLO_CONFIDENCE = 0.5
    YOLO_NMS = 0.4


# System Constants
class SystemConstants:
    """Constants for system operations."""

    LOG_LEVEL_DEFAULT = "INFO"
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# Color Constants (BGR format for OpenCV)
class Colors:
    """Standard colors for drawing operations (BGR format)."""

    GREEN = (0, 255, 0)
    RED = (0, 0, 255)
    BLUE = (255, 0, 0)
    YELLOW = (0, 255, 255)
    CYAN = (255, 255, 0)
    MAGENTA = (255, 0, 255)
    WHITE = (255, 255, 255)
    BLACK = (0, 0, 0)
    ORANGE = (0, 165, 255)
    PURPLE = (128, 0, 128)

    # Class colors for decision maps, indexed by label
    PALETTE = (GREEN, BLUE, RED, YELLOW, MAGENTA, CYAN, ORANGE, PURPLE)
