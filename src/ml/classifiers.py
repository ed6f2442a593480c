"""
Point classifiers built on cv2.ml.

Every classifier is trained on (N, 2) float samples with integer labels and
predicts labels from the same set. Models that work on class indices (ANN,
EM) map back to the original labels.
"""

import logging
from typing import Any, Dict, List, Union

import cv2
import numpy as np

from domain_types import ClassifierType, Colors, MLConstants, SvmKernel

logger = logging.getLogger(__name__)

FLT_EPSILON = float(np.finfo(np.float32).eps)


class TrainedClassifier:
    """A trained model together with the label set it was trained on."""

    def __init__(self, kind: ClassifierType, model: Any, classes: np.ndarray, **options):
        self.kind = kind
        self.model = model
        self.classes = classes
        self.options = options

    def predict(self, points) -> np.ndarray:
        """Predicted labels (int32) for an (N, 2) array of points."""
        samples = np.asarray(points, dtype=np.float32).reshape(-1, 2)
        if len(samples) == 0:
            return np.empty(0, dtype=np.int32)

        if self.kind == ClassifierType.KNN:
            k = self.options.get("k", MLConstants.KNN_K_DEFAULT)
            _, results, _, _ = self.model.findNearest(samples, k)
            return results.flatten().astype(np.int32)

        if self.kind == ClassifierType.ANN_MLP:
            _, outputs = self.model.predict(samples)
            return self.classes[np.argmax(outputs, axis=1)]

        if self.kind == ClassifierType.EM:
            scores = np.full((len(samples), len(self.model)), -np.inf)
            for index, em in enumerate(self.model):
                for row, sample in enumerate(samples):
                    retval, _ = em.predict2(sample.reshape(1, 2))
                    scores[row, index] = retval[0]
            return self.classes[np.argmax(scores, axis=1)]

        _, results = self.model.predict(samples)
        return np.rint(results.flatten()).astype(np.int32)

    def support_vectors(self) -> np.ndarray:
        """Uncompressed support vectors of an SVM (empty for other models)."""
        if self.kind != ClassifierType.SVM:
            return np.empty((0, 2), dtype=np.float32)
        return self.model.getUncompressedSupportVectors()


def _create_svm(options: Dict[str, Any]):
    kernel = SvmKernel(options.get("svm_kernel", SvmKernel.LINEAR))
    svm = cv2.ml.SVM_create()
    svm.setType(cv2.ml.SVM_C_SVC)

    if kernel == SvmKernel.LINEAR:
        svm.setKernel(cv2.ml.SVM_LINEAR)
        svm.setC(options.get("c", 0.1))
        svm.setTermCriteria((cv2.TERM_CRITERIA_MAX_ITER + cv2.TERM_CRITERIA_EPS, int(1e7), 1e-6))
    elif kernel == SvmKernel.POLY:
        svm.setKernel(cv2.ml.SVM_POLY)
        svm.setDegree(options.get("degree", 0.5))
        svm.setGamma(options.get("gamma", 1.0))
        svm.setCoef0(options.get("coef0", 1.0))
        svm.setNu(0.5)
        svm.setP(0)
        svm.setC(options.get("c", 1.0))
        svm.setTermCriteria((cv2.TERM_CRITERIA_MAX_ITER + cv2.TERM_CRITERIA_EPS, 1000, 0.01))
    else:
        svm.setKernel(cv2.ml.SVM_RBF)
        svm.setGamma(options.get("gamma", 1e-4))
        svm.setC(options.get("c", 1.0))
        svm.setTermCriteria((cv2.TERM_CRITERIA_MAX_ITER + cv2.TERM_CRITERIA_EPS, 1000, 0.01))
    return svm


def _create_dtree(options: Dict[str, Any]):
    dtree = cv2.ml.DTrees_create()
    dtree.setMaxDepth(options.get("max_depth", 8))
    dtree.setMinSampleCount(2)
    dtree.setUseSurrogates(False)
    dtree.setCVFolds(0)
    dtree.setUse1SERule(False)
    dtree.setTruncatePrunedTree(False)
    return dtree


def _create_boost(options: Dict[str, Any]):
    boost = cv2.ml.Boost_create()
    boost.setBoostType(cv2.ml.BOOST_DISCRETE)
    boost.setWeakCount(options.get("weak_count", 100))
    boost.setWeightTrimRate(0.95)
    boost.setMaxDepth(options.get("max_depth", 2))
    boost.setUseSurrogates(False)
    return boost


def _create_rtrees(options: Dict[str, Any]):
    rtrees = cv2.ml.RTrees_create()
    rtrees.setMaxDepth(options.get("max_depth", 4))
    rtrees.setMinSampleCount(2)
    rtrees.setRegressionAccuracy(0)
    rtrees.setUseSurrogates(False)
    rtrees.setMaxCategories(16)
    rtrees.setCalculateVarImportance(False)
    rtrees.setActiveVarCount(1)
    rtrees.setTermCriteria((cv2.TERM_CRITERIA_MAX_ITER, 5, 0))
    return rtrees


def _train_ann(samples: np.ndarray, indices: np.ndarray, n_classes: int, options: Dict[str, Any]):
    targets = np.zeros((len(samples), n_classes), dtype=np.float32)
    targets[np.arange(len(samples)), indices] = 1.0

    ann = cv2.ml.ANN_MLP_create()
    ann.setLayerSizes(np.array([2, options.get("hidden", 5), n_classes], dtype=np.int32))
    ann.setActivationFunction(cv2.ml.ANN_MLP_SIGMOID_SYM, 1, 1)
    iterations = int(options.get("iterations", 300))
    criteria = (cv2.TERM_CRITERIA_MAX_ITER + cv2.TERM_CRITERIA_EPS, iterations, FLT_EPSILON)
    ann.setTermCriteria(criteria)
    ann.setTrainMethod(cv2.ml.ANN_MLP_BACKPROP, 0.001)
    ann.train(samples, cv2.ml.ROW_SAMPLE, targets)
    return ann


def _train_em(samples: np.ndarray, indices: np.ndarray, n_classes: int) -> List[Any]:
    models = []
    for index in range(n_classes):
        class_samples = samples[indices == index]
        if len(class_samples) < MLConstants.EM_COMPONENTS:
            raise ValueError(
                f"EM needs at least {MLConstants.EM_COMPONENTS} samples per class, "
                f"class index {index} has {len(class_samples)}"
            )
        em = cv2.ml.EM_create()
        em.setClustersNumber(MLConstants.EM_COMPONENTS)
        em.setCovarianceMatrixType(cv2.ml.EM_COV_MAT_DIAGONAL)
        em.trainEM(class_samples)
        models.append(em)
    return models


def train_classifier(
    samples,
    labels,
    kind: Union[ClassifierType, str] = ClassifierType.KNN,
    **options,
) -> TrainedClassifier:
    """
    Train one of the supported classifiers.

    Args:
        samples: (N, 2) training points
        labels: N integer labels
        kind: Classifier type
        **options: k (KNN), svm_kernel/c/degree/gamma/coef0 (SVM),
            max_depth (trees), weak_count (Boost), hidden/iterations (ANN)

    Raises:
        ValueError: On mismatched inputs, a single class, or Boost with more than two classes
    """
    kind = ClassifierType(kind)
    samples = np.asarray(samples, dtype=np.float32).reshape(-1, 2)
    labels = np.asarray(labels, dtype=np.int32).flatten()
    if len(samples) != len(labels):
        raise ValueError(f"{len(samples)} samples but {len(labels)} labels")

    classes, indices = np.unique(labels, return_inverse=True)
    if len(classes) < 2:
        raise ValueError("At least two classes are required")

    if kind == ClassifierType.ANN_MLP:
        model = _train_ann(samples, indices, len(classes), options)
    elif kind == ClassifierType.EM:
        model = _train_em(samples, indices, len(classes))
    else:
        if kind == ClassifierType.NORMAL_BAYES:
            model = cv2.ml.NormalBayesClassifier_create()
        elif kind == ClassifierType.KNN:
            model = cv2.ml.KNearest_create()
            model.setDefaultK(options.get("k", MLConstants.KNN_K_DEFAULT))
            model.setIsClassifier(True)
        elif kind == ClassifierType.SVM:
            model = _create_svm(options)
        elif kind == ClassifierType.DECISION_TREE:
            model = _create_dtree(options)
        elif kind == ClassifierType.BOOST:
            if len(classes) != 2:
                raise ValueError(f"Boost supports two classes only, got {len(classes)}")
            model = _create_boost(options)
        else:
            model = _create_rtrees(options)

        model.train(cv2.ml.TrainData_create(samples, cv2.ml.ROW_SAMPLE, labels.reshape(-1, 1)))

    logger.info(f"Trained {kind.value} on {len(samples)} samples, {len(classes)} classes")
    return TrainedClassifier(kind, model, classes, **options)


def class_palette(classes) -> Dict[int, tuple]:
    """Palette color per class label, in label order."""
    return {int(label): Colors.PALETTE[i % len(Colors.PALETTE)] for i, label in enumerate(classes)}


def decision_map(
    classifier: TrainedClassifier,
    width: int,
    height: int,
    step: int = MLConstants.DECISION_STEP,
) -> tuple:
    """
    Classify a regular grid of pixel positions.

    Returns:
        (labels of shape (ceil(h/step), ceil(w/step)), BGR image with each
        step x step cell painted in its class color)
    """
    if width <= 0 or height <= 0 or step <= 0:
        raise ValueError(f"Invalid decision map geometry {width}x{height}, step {step}")

    xs = np.arange(0, width, step)
    ys = np.arange(0, height, step)
    grid_x, grid_y = np.meshgrid(xs, ys)
    points = np.column_stack([grid_x.ravel(), grid_y.ravel()]).astype(np.float32)
    labels = classifier.predict(points).reshape(len(ys), len(xs))

    palette = class_palette(classifier.classes)
    canvas = np.zeros((height, width, 3), dtype=np.uint8)
    for row, y in enumerate(ys):
        for col, x in enumerate(xs):
            canvas[y : y + step, x : x + step] = palette.get(int(labels[row, col]), Colors.WHITE)
    return labels, canvas


def draw_samples(canvas: np.ndarray, samples, labels, classes) -> np.ndarray:
    """Training points as dark-outlined dots in their class color."""
    result = canvas.copy()
    palette = class_palette(classes)
    for (x, y), label in zip(np.asarray(samples), np.asarray(labels)):
        center = (int(x), int(y))
        cv2.circle(result, center, 4, palette.get(int(label), Colors.WHITE), -1)
        cv2.circle(result, center, 4, Colors.BLACK, 1)
    return result
