"""
YOLO object detection through the OpenCV dnn module.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from domain_types import Colors, MLConstants
from image.converters import ensure_bgr

logger = logging.getLogger(__name__)


@dataclass
class Detection:
    """One detected object; box is (left, top, width, height) in pixels."""

    class_id: int
    confidence: float
    box: Tuple[int, int, int, int]
    label: str = field(default="")

    def to_dict(self) -> dict:
        return {
            "class_id": self.class_id,
            "label": self.label,
            "confidence": self.confidence,
            "box": list(self.box),
        }


def load_class_names(path) -> List[str]:
    """One class name per line; blank lines are skipped."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Class names file not found: {path}")
    with open(path, "r") as f:
        return [line.strip() for line in f if line.strip()]


def postprocess_detections(
    outputs: Sequence[np.ndarray],
    width: int,
    height: int,
    confidence: float = MLConstants.YOLO_CONFIDENCE,
    nms: float = MLConstants.YOLO_NMS,
    class_names: Optional[Sequence[str]] = None,
) -> List[Detection]:
    """
    Decode YOLO output rows and apply non-maximum suppression.

    Each row is [cx, cy, w, h, objectness, class scores...] with box values
    relative to the image size. Rows whose best class score does not exceed
    the confidence threshold are dropped.
    """
    class_ids: List[int] = []
    confidences: List[float] = []
    boxes: List[List[int]] = []

    for output in outputs:
        rows = np.asarray(output, dtype=np.float32)
        if rows.ndim == 0 or rows.shape[-1] <= 5:
            continue
        rows = rows.reshape(-1, rows.shape[-1])
        if len(rows) == 0:
            continue
        for row in rows:
            scores = row[5:]
            class_id = int(np.argmax(scores))
            score = float(scores[class_id])
            if score <= confidence:
                continue
            center_x = int(row[0] * width)
            center_y = int(row[1] * height)
            box_width = int(row[2] * width)
            box_height = int(row[3] * height)
            left = int(center_x - box_width / 2)
            top = int(center_y - box_height / 2)
            class_ids.append(class_id)
            confidences.append(score)
            boxes.append([left, top, box_width, box_height])

    if not boxes:
        return []

    keep = np.array(cv2.dnn.NMSBoxes(boxes, confidences, confidence, nms)).flatten()
    detections = []
    for index in keep:
        class_id = class_ids[index]
        label = ""
        if class_names is not None and class_id < len(class_names):
            label = class_names[class_id]
        detections.append(
            Detection(class_id, confidences[index], tuple(boxes[index]), label)
        )
    return detections


class YoloDetector:
    """Darknet YOLO network loaded with cv2.dnn."""

    def __init__(
        self,
        config_path,
        weights_path,
        names_path=None,
        input_size: int = MLConstants.YOLO_INPUT_SIZE,
    ):
        for path in (config_path, weights_path):
            if not Path(path).exists():
                raise FileNotFoundError(f"YOLO model file not found: {path}")

        self.input_size = input_size
        self.class_names = load_class_names(names_path) if names_path else None
        self.net = cv2.dnn.readNetFromDarknet(str(config_path), str(weights_path))
        self.net.setPreferableBackend(cv2.dnn.DNN_BACKEND_OPENCV)
        self.net.setPreferableTarget(cv2.dnn.DNN_TARGET_CPU)
        self.output_names = self.net.getUnconnectedOutLayersNames()
        logger.info(f"Loaded YOLO network from {config_path} ({len(self.output_names)} outputs)")

    def detect(
        self,
        image: np.ndarray,
        confidence: float = MLConstants.YOLO_CONFIDENCE,
        nms: float = MLConstants.YOLO_NMS,
    ) -> List[Detection]:
        height, width = image.shape[:2]
        blob = cv2.dnn.blobFromImage(
            image, 1 / 255.0, (self.input_size, self.input_size), (0, 0, 0), swapRB=True, crop=False
        )
        self.net.setInput(blob)
        outputs = self.net.forward(self.output_names)
        detections = postprocess_detections(
            outputs, width, height, confidence, nms, self.class_names
        )
        logger.debug(f"YOLO: {len(detections)} detections")
        return detections


def draw_detections(image: np.ndarray, detections: Sequence[Detection]) -> np.ndarray:
    """Boxes with "label: confidence" captions, one palette color per class."""
    result = ensure_bgr(image).copy()
    for det in detections:
        left, top, width, height = det.box
        color = Colors.PALETTE[det.class_id % len(Colors.PALETTE)]
        cv2.rectangle(result, (left, top), (left + width, top + height), color, 2)
        name = det.label or str(det.class_id)
        text = f"{name}: {det.confidence:.2f}"
        origin = (left, max(top - 5, 12))
        cv2.putText(result, text, origin, cv2.FONT_HERSHEY_SIMPLEX, 0.5, color, 1, cv2.LINE_AA)
    return result
