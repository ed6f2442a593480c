"""
Analysis API models.

Detector requests wrap the parameter models from schemas.params; machine
learning and point cloud requests carry their data inline because neither
is stored in the image store.
"""

from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field, model_validator

from domain_types import (
    ROI,
    ClassifierType,
    MLConstants,
    PointCloudConstants,
    SvmKernel,
)
from schemas.params import (
    AlignmentParams,
    ContourAnalysisParams,
    CornerDetectionParams,
    EdgeDetectionParams,
    LineDetectionParams,
    ThresholdParams,
)

Point3 = Tuple[float, float, float]


# ==============================================================================
# Feature detection
# ==============================================================================


class DetectionRequest(BaseModel):
    image_id: str
    roi: Optional[ROI] = Field(None, description="Region of interest to limit the search area")


class EdgeDetectRequest(DetectionRequest):
    params: EdgeDetectionParams = Field(default_factory=EdgeDetectionParams)


class CornerDetectRequest(DetectionRequest):
    params: CornerDetectionParams = Field(default_factory=CornerDetectionParams)


class ThresholdRequest(DetectionRequest):
    params: ThresholdParams = Field(default_factory=ThresholdParams)


class ContourRequest(DetectionRequest):
    params: ContourAnalysisParams = Field(default_factory=ContourAnalysisParams)


class LineDetectRequest(DetectionRequest):
    params: LineDetectionParams = Field(default_factory=LineDetectionParams)


class AlignRequest(BaseModel):
    """Warp image_id onto the frame of reference_image_id"""

    image_id: str
    reference_image_id: str
    params: AlignmentParams = Field(default_factory=AlignmentParams)


# ==============================================================================
# Machine learning
# ==============================================================================


class ClassifyRequest(BaseModel):
    """
    Train a classifier on 2D points and paint its decision regions.

    Without samples the two-class SVM demo dataset is generated.
    """

    classifier: ClassifierType = ClassifierType.SVM
    samples: Optional[List[Tuple[float, float]]] = None
    labels: Optional[List[int]] = None
    width: int = Field(MLConstants.DATASET_SIZE, ge=8, le=2048)
    height: int = Field(MLConstants.DATASET_SIZE, ge=8, le=2048)
    step: int = Field(MLConstants.DECISION_STEP, ge=1, le=64)
    query_points: List[Tuple[float, float]] = Field(default_factory=list)

    # Classifier options
    k: int = Field(MLConstants.KNN_K_DEFAULT, ge=1, le=50)
    svm_kernel: SvmKernel = SvmKernel.LINEAR
    c: Optional[float] = Field(None, gt=0)
    max_depth: Optional[int] = Field(None, ge=1, le=64)
    iterations: int = Field(300, ge=1, le=100000)

    @model_validator(mode="after")
    def validate_samples(self):
        if (self.samples is None) != (self.labels is None):
            raise ValueError("samples and labels must be given together")
        if self.samples is not None and len(self.samples) != len(self.labels):
            raise ValueError(f"{len(self.samples)} samples but {len(self.labels)} labels")
        return self

    def options(self) -> Dict[str, Any]:
        """Classifier options for train_classifier."""
        options: Dict[str, Any] = {
            "k": self.k,
            "svm_kernel": self.svm_kernel,
            "iterations": self.iterations,
        }
        if self.c is not None:
            options["c"] = self.c
        if self.max_depth is not None:
            options["max_depth"] = self.max_depth
        return options


class ClassifyResponse(BaseModel):
    image_id: str = Field(..., description="Stored decision map")
    thumbnail_base64: str
    classifier: str
    classes: List[int]
    training_accuracy: float
    predictions: List[int] = Field(default_factory=list, description="Labels of query_points")
    support_vectors: List[List[float]] = Field(default_factory=list)
    processing_time_ms: int


class KMeansRequest(BaseModel):
    """Cluster 2D points; without points three Gaussian blobs are generated"""

    points: Optional[List[Tuple[float, float]]] = None
    clusters: int = Field(3, ge=1, le=64)
    attempts: int = Field(MLConstants.KMEANS_ATTEMPTS, ge=1, le=50)
    seed: int = 0


class KMeansResponse(BaseModel):
    image_id: str
    thumbnail_base64: str
    labels: List[int]
    centers: List[List[float]]
    compactness: float
    processing_time_ms: int


class ObjectDetectRequest(DetectionRequest):
    confidence: Optional[float] = Field(None, ge=0, le=1)
    nms: Optional[float] = Field(None, ge=0, le=1)


# ==============================================================================
# Point clouds
# ==============================================================================


class CloudGenerateRequest(BaseModel):
    shape: Literal["plane", "sphere"] = "plane"
    points: int = Field(500, ge=4, le=1_000_000)
    outlier_ratio: float = Field(0.5, ge=0, lt=1)
    radius: float = Field(1.0, gt=0)
    center: Point3 = (0.0, 0.0, 0.0)
    seed: int = 0


class PointCloud(BaseModel):
    points: List[Point3]
    pcd: Optional[str] = Field(None, description="ASCII PCD text of the points")


class PcdParseRequest(BaseModel):
    pcd: str = Field(..., description="ASCII PCD file content")


class SegmentRequest(BaseModel):
    points: List[Point3] = Field(..., min_length=3)
    model: Literal["plane", "sphere"] = "plane"
    distance_threshold: float = Field(PointCloudConstants.RANSAC_DISTANCE_THRESHOLD, gt=0)
    max_iterations: Optional[int] = Field(None, ge=1, le=100000)
    seed: int = 0


class SegmentResponse(BaseModel):
    model: str
    coefficients: List[float]
    inliers: List[int]
    inlier_count: int
    processing_time_ms: int


class RegisterRequest(BaseModel):
    """ICP alignment of source onto target"""

    source: List[Point3] = Field(..., min_length=3)
    target: List[Point3] = Field(..., min_length=3)
    max_iterations: int = Field(PointCloudConstants.ICP_MAX_ITERATIONS, ge=1, le=10000)
    tolerance: float = Field(PointCloudConstants.ICP_TOLERANCE, gt=0)
    max_correspondence_distance: Optional[float] = Field(None, gt=0)


class RegisterResponse(BaseModel):
    transformation: List[List[float]]
    fitness: float
    converged: bool
    iterations: int
    aligned: List[Point3]
    processing_time_ms: int


class TransformCloudRequest(BaseModel):
    points: List[Point3]
    rotation_deg: Point3 = (0.0, 0.0, 0.0)
    translation: Point3 = (0.0, 0.0, 0.0)
