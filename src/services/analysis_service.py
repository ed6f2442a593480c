"""
Analysis Service - detectors, motion, calibration, stereo, machine learning
and point clouds.

Detectors follow one template: fetch the image, restrict it to the ROI, run
the detector, shift object coordinates back into full-image space and store
the visualization. Array-valued detector metadata (edge maps, responses,
match drawings) is stored as images and replaced by their ids.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from algorithms.alignment import FeatureAligner
from algorithms.contour_analysis import ContourDetector, ThresholdDetector
from algorithms.corner_detection import CornerDetector
from algorithms.edge_detection import EdgeDetector
from algorithms.line_detection import LineDetector
from api.exceptions import (
    CalibrationException,
    ModelNotConfiguredException,
    ProcessingException,
)
from calibration import camera, stereo
from config import MLConfig
from core.image_manager import ImageManager
from core.utils import parse_enum, timer
from domain_types import (
    ROI,
    EdgeMethod,
    HoughMethod,
    Point,
    PointCloudConstants,
    ThresholdMethod,
    VisionObjectType,
)
from ml import classifiers, clustering, datasets
from ml.detection import YoloDetector, draw_detections
from motion import optical_flow
from pointcloud import cloud, registration, segmentation
from schemas.analysis import (
    AlignRequest,
    ClassifyRequest,
    ClassifyResponse,
    CloudGenerateRequest,
    ContourRequest,
    CornerDetectRequest,
    EdgeDetectRequest,
    KMeansRequest,
    KMeansResponse,
    LineDetectRequest,
    ObjectDetectRequest,
    PcdParseRequest,
    PointCloud,
    RegisterRequest,
    RegisterResponse,
    SegmentRequest,
    SegmentResponse,
    ThresholdRequest,
    TransformCloudRequest,
)
from schemas.common import ProcessingResponse, VisionObject, VisionResponse
from schemas.processing import (
    CalibrateRequest,
    CalibrationResponse,
    ChessboardRequest,
    DisparityRequest,
    FrameDifferenceRequest,
    FramePairRequest,
    SparseFlowRequest,
    UndistortRequest,
)
from services.processing_service import ProcessingService

logger = logging.getLogger(__name__)

BLOB_CENTERS = ((128.0, 128.0), (384.0, 160.0), (256.0, 384.0))


class AnalysisService:
    """
    Service for operations that extract information from images or data.
    """

    def __init__(self, image_manager: ImageManager, ml_config: Optional[MLConfig] = None):
        """
        Initialize analysis service.

        Args:
            image_manager: Image manager instance
            ml_config: Object detection model settings
        """
        self.image_manager = image_manager
        self.processing = ProcessingService(image_manager)
        self.images = self.processing.images
        self.ml_config = ml_config or MLConfig()

        self.edge_detector = EdgeDetector()
        self.corner_detector = CornerDetector()
        self.threshold_detector = ThresholdDetector()
        self.contour_detector = ContourDetector()
        self.line_detector = LineDetector()
        self.aligner = FeatureAligner()
        self._yolo: Optional[YoloDetector] = None

    # ==========================================================================
    # Detection template
    # ==========================================================================

    @staticmethod
    def _adjust_for_roi_offset(objects: List[VisionObject], roi_offset: Tuple[int, int]) -> None:
        """
        Shift object coordinates by the ROI offset, in place.

        Bounding boxes, centers, contour points and line endpoints are moved.
        Polar lines keep theta; rho grows by the offset projected on the normal.
        """
        if roi_offset == (0, 0):
            return

        x_offset, y_offset = roi_offset
        for obj in objects:
            obj.bounding_box.x += x_offset
            obj.bounding_box.y += y_offset
            obj.center.x += x_offset
            obj.center.y += y_offset

            if obj.contour:
                obj.contour = [[x + x_offset, y + y_offset] for x, y in obj.contour]

            for key in ("x1", "x2"):
                if key in obj.properties:
                    obj.properties[key] += x_offset
            for key in ("y1", "y2"):
                if key in obj.properties:
                    obj.properties[key] += y_offset

            if "rho" in obj.properties and "theta" in obj.properties:
                theta = obj.properties["theta"]
                shift = x_offset * np.cos(theta) + y_offset * np.sin(theta)
                obj.properties["rho"] += float(shift)

    def _store_metadata_images(self, operation: str, image_id: str, metadata: Dict) -> Dict:
        """Replace ndarray values by the ids of stored images."""
        result = {}
        for key, value in metadata.items():
            if isinstance(value, np.ndarray):
                result[f"{key}_image_id"] = self.images.store_image(
                    value, {"operation": f"{operation}_{key}", "source_image_id": image_id}
                )
            else:
                result[key] = value
        return result

    def _execute_detection(
        self,
        operation: str,
        image_id: str,
        detector_func,
        roi: Optional[ROI] = None,
        **detector_kwargs,
    ) -> VisionResponse:
        """
        Template method for detection operations.

        detector_func receives the (cropped) image plus detector_kwargs and
        returns a detector result dictionary.
        """
        with timer() as t:
            image, roi_offset = self.images.get_region(image_id, roi)

            result = detector_func(image, **detector_kwargs)
            self._adjust_for_roi_offset(result["objects"], roi_offset)

            metadata = self._store_metadata_images(operation, image_id, result["metadata"])
            result_id = self.images.store_image(
                result["image"], {"operation": operation, "source_image_id": image_id}
            )
            metadata["image_id"] = result_id
            if roi is not None:
                metadata["roi_offset"] = list(roi_offset)

            thumbnail_base64 = self.images.thumbnail(result["image"], result_id)

        logger.info(f"{operation}: {len(result['objects'])} objects in {t['ms']} ms")
        return VisionResponse(
            objects=result["objects"],
            thumbnail_base64=thumbnail_base64,
            processing_time_ms=t["ms"],
            metadata=metadata,
        )

    def detect_edges(self, request: EdgeDetectRequest) -> VisionResponse:
        params = request.params.to_dict()
        method = parse_enum(params.pop("method", None), EdgeMethod, EdgeMethod.CANNY)
        return self._execute_detection(
            "edge_detection",
            request.image_id,
            self.edge_detector.detect,
            request.roi,
            method=method,
            params=params,
        )

    def detect_corners(self, request: CornerDetectRequest) -> VisionResponse:
        return self._execute_detection(
            "corner_detection",
            request.image_id,
            self.corner_detector.detect,
            request.roi,
            params=request.params.to_dict(),
        )

    def threshold(self, request: ThresholdRequest) -> VisionResponse:
        params = request.params.to_dict()
        method = parse_enum(params.pop("method", None), ThresholdMethod, ThresholdMethod.BINARY)
        return self._execute_detection(
            "threshold",
            request.image_id,
            self.threshold_detector.detect,
            request.roi,
            method=method,
            params=params,
        )

    def analyze_contours(self, request: ContourRequest) -> VisionResponse:
        return self._execute_detection(
            "contour_analysis",
            request.image_id,
            self.contour_detector.detect,
            request.roi,
            params=request.params.to_dict(),
        )

    def detect_lines(self, request: LineDetectRequest) -> VisionResponse:
        params = request.params.to_dict()
        method = parse_enum(params.pop("method", None), HoughMethod, HoughMethod.PROBABILISTIC)
        return self._execute_detection(
            "line_detection",
            request.image_id,
            self.line_detector.detect,
            request.roi,
            method=method,
            params=params,
        )

    def align(self, request: AlignRequest) -> VisionResponse:
        """Warp an image onto a reference image (ORB + homography)."""
        reference = self.images.get_image(request.reference_image_id)
        response = self._execute_detection(
            "alignment",
            request.image_id,
            self.aligner.detect,
            params=request.params.to_dict(),
            reference=reference,
        )
        response.metadata["reference_image_id"] = request.reference_image_id
        return response

    # ==========================================================================
    # Object detection
    # ==========================================================================

    def _get_yolo(self) -> YoloDetector:
        if not self.ml_config.yolo_available:
            raise ModelNotConfiguredException(
                "yolo", "set VL_ML_YOLO_CONFIG and VL_ML_YOLO_WEIGHTS to existing files"
            )
        if self._yolo is None:
            self._yolo = YoloDetector(
                self.ml_config.yolo_config,
                self.ml_config.yolo_weights,
                self.ml_config.yolo_names,
                self.ml_config.yolo_input_size,
            )
        return self._yolo

    def _run_yolo(self, image: np.ndarray, confidence: float, nms: float) -> Dict[str, Any]:
        detections = self._get_yolo().detect(image, confidence, nms)
        image_height, image_width = image.shape[:2]
        objects = []
        for index, det in enumerate(detections):
            left, top, width, height = det.box
            # Boxes of objects cut by the frame edge reach outside the image
            x1, y1 = max(left, 0), max(top, 0)
            x2, y2 = min(left + width, image_width), min(top + height, image_height)
            if x2 <= x1 or y2 <= y1:
                logger.debug(f"Dropping detection {index} outside the image: {det.box}")
                continue
            objects.append(
                VisionObject(
                    object_id=f"detection_{index}",
                    object_type=VisionObjectType.DETECTION.value,
                    bounding_box=ROI(x=x1, y=y1, width=x2 - x1, height=y2 - y1),
                    center=Point(x=(x1 + x2) / 2, y=(y1 + y2) / 2),
                    confidence=min(max(det.confidence, 0.0), 1.0),
                    properties={
                        "class_id": det.class_id,
                        "label": det.label,
                        "raw_box": [int(v) for v in det.box],
                    },
                )
            )
        return {
            "success": True,
            "objects": objects,
            "image": draw_detections(image, detections),
            "metadata": {"detection_count": len(objects)},
        }

    def detect_objects(self, request: ObjectDetectRequest) -> VisionResponse:
        """
        YOLO object detection.

        Raises:
            ModelNotConfiguredException: If the network files are not configured
        """
        self._get_yolo()
        confidence = request.confidence
        if confidence is None:
            confidence = self.ml_config.confidence_threshold
        nms = self.ml_config.nms_threshold if request.nms is None else request.nms
        return self._execute_detection(
            "object_detection",
            request.image_id,
            self._run_yolo,
            request.roi,
            confidence=confidence,
            nms=nms,
        )

    # ==========================================================================
    # Motion
    # ==========================================================================

    def _frame_pair(self, request: FramePairRequest) -> Tuple[np.ndarray, np.ndarray]:
        return (
            self.images.get_image(request.prev_image_id),
            self.images.get_image(request.next_image_id),
        )

    def sparse_flow(self, request: SparseFlowRequest) -> ProcessingResponse:
        """Lucas-Kanade tracks drawn on the next frame."""
        with timer() as t:
            prev, next_ = self._frame_pair(request)
            flow = optical_flow.track_features(
                prev,
                next_,
                max_corners=request.max_corners,
                quality=request.quality,
                min_distance=request.min_distance,
            )
            result = optical_flow.draw_tracks(next_, flow)

        displacements = flow.displacements
        mean = displacements.mean(axis=0).tolist() if len(flow) else [0.0, 0.0]
        metadata = {
            "next_image_id": request.next_image_id,
            "tracked_points": len(flow),
            "mean_displacement": mean,
            "tracks": np.hstack([flow.points_prev, flow.points_next]).tolist(),
        }
        return self.processing.store_result(
            "sparse_flow", result, request.prev_image_id, metadata, t["ms"]
        )

    def dense_flow(self, request: FramePairRequest) -> ProcessingResponse:
        """Farneback flow rendered as hue (direction) and value (magnitude)."""
        with timer() as t:
            prev, next_ = self._frame_pair(request)
            flow = optical_flow.dense_flow(prev, next_)
            result = optical_flow.flow_to_color(flow)

        magnitude = np.linalg.norm(flow, axis=2)
        metadata = {
            "next_image_id": request.next_image_id,
            "mean_magnitude": float(magnitude.mean()),
            "max_magnitude": float(magnitude.max()),
        }
        return self.processing.store_result(
            "dense_flow", result, request.prev_image_id, metadata, t["ms"]
        )

    def frame_difference(self, request: FrameDifferenceRequest) -> ProcessingResponse:
        with timer() as t:
            frames = [self.images.get_image(i) for i in request.image_ids]
            result = optical_flow.accumulate_differences(frames)
        return self.processing.store_result(
            "frame_difference",
            result,
            request.image_ids[0],
            {"frame_image_ids": request.image_ids},
            t["ms"],
        )

    # ==========================================================================
    # Calibration and stereo
    # ==========================================================================

    def find_chessboard(self, request: ChessboardRequest) -> ProcessingResponse:
        """Detect chessboard corners and draw them (image unchanged when not found)."""
        with timer() as t:
            image = self.images.get_image(request.image_id)
            corners = camera.find_chessboard_corners(image, request.pattern_size)
            result = camera.draw_corners(image, request.pattern_size, corners)

        metadata = {
            "found": corners is not None,
            "pattern_size": list(request.pattern_size),
            "corners": [] if corners is None else corners.reshape(-1, 2).tolist(),
        }
        return self.processing.store_result(
            "chessboard", result, request.image_id, metadata, t["ms"]
        )

    def calibrate(self, request: CalibrateRequest) -> CalibrationResponse:
        """
        Calibrate a camera from chessboard views.

        Raises:
            CalibrationException: If sizes differ or no view contains the board
        """
        with timer() as t:
            images = [self.images.get_image(i) for i in request.image_ids]
            try:
                result, used = camera.calibrate_from_images(
                    images, request.pattern_size, request.square_size
                )
            except ValueError as e:
                raise CalibrationException(str(e), {"image_ids": request.image_ids})

        used_ids = [request.image_ids[i] for i in used]
        skipped_ids = [i for index, i in enumerate(request.image_ids) if index not in used]
        return CalibrationResponse(
            rms=result.rms,
            camera_matrix=result.camera_matrix.tolist(),
            dist_coeffs=result.dist_coeffs.flatten().tolist(),
            image_size=result.image_size,
            used_image_ids=used_ids,
            skipped_image_ids=skipped_ids,
            processing_time_ms=t["ms"],
        )

    def undistort(self, request: UndistortRequest) -> ProcessingResponse:
        def run(image):
            return camera.undistort(image, request.camera_matrix, request.dist_coeffs)

        return self.processing.execute("undistort", request.image_id, request.roi, run)

    def disparity(self, request: DisparityRequest) -> ProcessingResponse:
        """
        Disparity map of a rectified pair scaled to 0..255.

        Raises:
            ProcessingException: If WLS filtering is requested without opencv-contrib
        """
        with timer() as t:
            left = self.images.get_image(request.left_image_id)
            right = self.images.get_image(request.right_image_id)
            if request.wls:
                try:
                    disparity = stereo.compute_filtered_disparity(
                        left, right, request.algorithm, request.max_disparity, request.window_size
                    )
                except RuntimeError as e:
                    raise ProcessingException("disparity", str(e))
            else:
                disparity = stereo.compute_disparity(
                    left, right, request.algorithm, request.max_disparity, request.window_size
                )
            result = stereo.disparity_to_image(disparity, request.max_disparity)

        valid = disparity[disparity > 0]
        metadata = {
            "right_image_id": request.right_image_id,
            "algorithm": request.algorithm.value,
            "wls": request.wls,
            "max_disparity": request.max_disparity,
            "valid_fraction": float(valid.size / disparity.size),
            "median_disparity": float(np.median(valid)) if valid.size else 0.0,
        }
        return self.processing.store_result(
            "disparity", result, request.left_image_id, metadata, t["ms"]
        )

    # ==========================================================================
    # Machine learning
    # ==========================================================================

    def classify(self, request: ClassifyRequest) -> ClassifyResponse:
        """Train a classifier, paint its decision regions and classify query points."""
        with timer() as t:
            if request.samples is None:
                samples, labels = datasets.make_svm_dataset(size=min(request.width, request.height))
            else:
                samples = np.asarray(request.samples, dtype=np.float32)
                labels = np.asarray(request.labels, dtype=np.int32)

            model = classifiers.train_classifier(
                samples, labels, request.classifier, **request.options()
            )
            accuracy = float(np.mean(model.predict(samples) == labels))
            _, canvas = classifiers.decision_map(model, request.width, request.height, request.step)
            canvas = classifiers.draw_samples(canvas, samples, labels, model.classes)
            predictions = model.predict(request.query_points).tolist()

            image_id = self.images.store_image(
                canvas, {"operation": "classify", "classifier": request.classifier.value}
            )
            thumbnail_base64 = self.images.thumbnail(canvas, image_id)

        logger.info(f"{request.classifier.value}: training accuracy {accuracy:.3f}")
        return ClassifyResponse(
            image_id=image_id,
            thumbnail_base64=thumbnail_base64,
            classifier=request.classifier.value,
            classes=[int(c) for c in model.classes],
            training_accuracy=accuracy,
            predictions=predictions,
            support_vectors=model.support_vectors().tolist(),
            processing_time_ms=t["ms"],
        )

    def kmeans(self, request: KMeansRequest) -> KMeansResponse:
        """Cluster 2D points and draw them colored by cluster."""
        with timer() as t:
            if request.points is None:
                points, _ = datasets.make_blobs(BLOB_CENTERS, seed=request.seed)
            else:
                points = np.asarray(request.points, dtype=np.float32)

            result = clustering.kmeans(points, request.clusters, request.attempts)
            canvas = clustering.draw_clusters(points, result)
            image_id = self.images.store_image(
                canvas, {"operation": "kmeans", "clusters": request.clusters}
            )
            thumbnail_base64 = self.images.thumbnail(canvas, image_id)

        return KMeansResponse(
            image_id=image_id,
            thumbnail_base64=thumbnail_base64,
            labels=result.labels.tolist(),
            centers=result.centers.tolist(),
            compactness=result.compactness,
            processing_time_ms=t["ms"],
        )

    # ==========================================================================
    # Point clouds
    # ==========================================================================

    def generate_cloud(self, request: CloudGenerateRequest) -> PointCloud:
        if request.shape == "sphere":
            points = cloud.make_sphere_cloud(
                request.points,
                request.radius,
                request.center,
                request.outlier_ratio,
                request.seed,
            )
        else:
            points = cloud.make_plane_cloud(request.points, request.outlier_ratio, request.seed)
        return PointCloud(points=points.tolist(), pcd=cloud.format_pcd(points))

    def parse_cloud(self, request: PcdParseRequest) -> PointCloud:
        """Parse ASCII PCD text; a malformed document raises ValueError."""
        points = cloud.parse_pcd(request.pcd)
        logger.info(f"Parsed PCD with {len(points)} points")
        return PointCloud(points=points.tolist())

    def segment_cloud(self, request: SegmentRequest) -> SegmentResponse:
        """RANSAC plane or sphere fit."""
        max_iterations = request.max_iterations or PointCloudConstants.RANSAC_MAX_ITERATIONS
        fit = (
            segmentation.fit_sphere_ransac
            if request.model == "sphere"
            else segmentation.fit_plane_ransac
        )
        with timer() as t:
            model = fit(request.points, request.distance_threshold, max_iterations, request.seed)

        return SegmentResponse(
            model=request.model,
            coefficients=model.coefficients.tolist(),
            inliers=model.inliers.tolist(),
            inlier_count=len(model.inliers),
            processing_time_ms=t["ms"],
        )

    def register_clouds(self, request: RegisterRequest) -> RegisterResponse:
        with timer() as t:
            result = registration.icp(
                request.source,
                request.target,
                request.max_iterations,
                request.tolerance,
                request.max_correspondence_distance,
            )

        return RegisterResponse(
            transformation=result.transformation.tolist(),
            fitness=result.fitness,
            converged=result.converged,
            iterations=result.iterations,
            aligned=result.aligned.tolist(),
            processing_time_ms=t["ms"],
        )

    def transform_cloud(self, request: TransformCloudRequest) -> PointCloud:
        matrix = cloud.make_transform(request.rotation_deg, request.translation)
        points = cloud.transform_points(request.points, matrix)
        return PointCloud(points=points.tolist())
