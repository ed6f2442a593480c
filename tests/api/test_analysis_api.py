"""
API Integration Tests for feature, motion, calibration, ml and point cloud endpoints
"""

import base64

import cv2
import numpy as np
import pytest

from image.geometry import translate
from pointcloud.cloud import make_plane_cloud


def upload(client, image: np.ndarray) -> str:
    """Store image through the upload endpoint and return its ID"""
    _, buffer = cv2.imencode(".png", image)
    data = base64.b64encode(buffer.tobytes()).decode("utf-8")
    response = client.post("/api/image/upload", json={"data": data, "grayscale": image.ndim == 2})
    assert response.status_code == 200
    return response.json()["image_id"]


class TestFeaturesAPI:
    """Detector endpoints"""

    @pytest.mark.parametrize(
        "path", ["edges", "corners", "threshold", "contours", "lines"]
    )
    def test_detectors(self, client, pattern_id, path):
        """Every detector returns objects and a stored visualization"""
        response = client.post(f"/api/features/{path}", json={"image_id": pattern_id})

        assert response.status_code == 200, response.text
        data = response.json()
        assert data["thumbnail_base64"].startswith("data:image/jpeg")
        assert client.get(f"/api/image/{data['metadata']['image_id']}").status_code == 200

    def test_edges_with_params_and_roi(self, client, pattern_id):
        """Parameters and ROI are honoured"""
        response = client.post(
            "/api/features/edges",
            json={
                "image_id": pattern_id,
                "roi": {"x": 32, "y": 32, "width": 200, "height": 200},
                "params": {"method": "sobel", "edge_threshold": 40},
            },
        )

        data = response.json()
        assert response.status_code == 200
        assert data["metadata"]["method"] == "sobel"
        assert data["metadata"]["roi_offset"] == [32, 32]
        assert all(obj["bounding_box"]["x"] >= 32 for obj in data["objects"])

    def test_edges_invalid_thresholds(self, client, pattern_id):
        """Canny low above high fails validation"""
        response = client.post(
            "/api/features/edges",
            json={"image_id": pattern_id, "params": {"canny_low": 200, "canny_high": 100}},
        )
        assert response.status_code == 422

    def test_align(self, client, noise_image):
        """Alignment reports the homography"""
        reference = upload(client, noise_image)
        moved = upload(client, translate(noise_image, 12, 8))

        response = client.post(
            "/api/features/align", json={"image_id": moved, "reference_image_id": reference}
        )

        assert response.status_code == 200
        homography = np.array(response.json()["metadata"]["homography"])
        assert homography[0, 2] == pytest.approx(-12, abs=1.0)

    def test_align_featureless(self, client):
        """Blank images have nothing to match"""
        blank = upload(client, np.zeros((100, 100), dtype=np.uint8))
        response = client.post(
            "/api/features/align", json={"image_id": blank, "reference_image_id": blank}
        )
        assert response.status_code == 400


class TestMotionAPI:
    """Optical flow endpoints"""

    @pytest.fixture
    def frames(self, client, gray_image):
        return upload(client, gray_image), upload(client, translate(gray_image, 3, 2))

    def test_sparse(self, client, frames):
        """Tracks follow the shift"""
        prev_id, next_id = frames
        response = client.post(
            "/api/motion/sparse", json={"prev_image_id": prev_id, "next_image_id": next_id}
        )

        assert response.status_code == 200
        dx, dy = response.json()["metadata"]["mean_displacement"]
        assert dx == pytest.approx(3, abs=0.5)
        assert dy == pytest.approx(2, abs=0.5)

    def test_dense_and_difference(self, client, frames):
        """Dense flow and frame differences are stored"""
        prev_id, next_id = frames
        dense = client.post(
            "/api/motion/dense", json={"prev_image_id": prev_id, "next_image_id": next_id}
        )
        difference = client.post("/api/motion/difference", json={"image_ids": list(frames)})

        assert dense.status_code == 200
        assert difference.status_code == 200

    def test_difference_needs_two_frames(self, client, frames):
        """A single frame fails validation"""
        response = client.post("/api/motion/difference", json={"image_ids": [frames[0]]})
        assert response.status_code == 422

    def test_size_mismatch(self, client, frames, pattern_id):
        """Frames of different sizes return 400"""
        response = client.post(
            "/api/motion/dense", json={"prev_image_id": frames[0], "next_image_id": pattern_id}
        )
        assert response.status_code == 400


class TestCalibrationAPI:
    """Chessboard, calibration, undistortion and stereo"""

    def test_chessboard(self, client):
        """The generated chessboard is found"""
        board = client.post("/api/image/pattern", json={"pattern": "chessboard"}).json()
        response = client.post(
            "/api/calibration/chessboard",
            json={"image_id": board["image_id"], "pattern_size": [9, 6]},
        )

        assert response.status_code == 200
        assert response.json()["metadata"]["found"] is True

    def test_calibrate_no_board(self, client, pattern_id):
        """Calibration without any board returns 422"""
        response = client.post(
            "/api/calibration/calibrate", json={"image_ids": [pattern_id], "pattern_size": [9, 6]}
        )

        assert response.status_code == 422
        assert response.json()["type"] == "CalibrationException"

    def test_undistort(self, client, pattern_id):
        """Zero distortion keeps the size"""
        response = client.post(
            "/api/calibration/undistort",
            json={
                "image_id": pattern_id,
                "camera_matrix": [[500, 0, 256], [0, 500, 256], [0, 0, 1]],
                "dist_coeffs": [0, 0, 0, 0, 0],
            },
        )
        assert response.status_code == 200
        assert response.json()["width"] == 512

    def test_disparity(self, client, noise_image):
        """A 10 pixel shift gives a median disparity near 10"""
        left = upload(client, noise_image)
        right = upload(client, translate(noise_image, -10, 0))

        response = client.post(
            "/api/calibration/disparity",
            json={"left_image_id": left, "right_image_id": right, "max_disparity": 64},
        )

        assert response.status_code == 200
        assert 5 < response.json()["metadata"]["median_disparity"] < 15

    def test_disparity_not_multiple_of_16(self, client, noise_image):
        """max_disparity must be a multiple of 16"""
        left = upload(client, noise_image)
        response = client.post(
            "/api/calibration/disparity",
            json={"left_image_id": left, "right_image_id": left, "max_disparity": 50},
        )
        assert response.status_code == 400


class TestMachineLearningAPI:
    """Classification, clustering and detection"""

    @pytest.mark.parametrize("classifier", ["normal_bayes", "knn", "svm", "decision_tree"])
    def test_classify_demo(self, client, classifier):
        """Demo data is classified and the decision map stored"""
        response = client.post(
            "/api/ml/classify",
            json={"classifier": classifier, "width": 256, "height": 256, "step": 8},
        )

        assert response.status_code == 200, response.text
        data = response.json()
        assert data["classes"] == [1, 2]
        assert data["training_accuracy"] > 0.7
        assert client.get(f"/api/image/{data['image_id']}").json()["width"] == 256

    def test_classify_labels_without_samples(self, client):
        """labels without samples fail validation"""
        response = client.post("/api/ml/classify", json={"labels": [1, 2]})
        assert response.status_code == 422

    def test_classify_single_class(self, client):
        """A single class returns 400"""
        response = client.post(
            "/api/ml/classify",
            json={"classifier": "knn", "samples": [[1, 1], [2, 2]], "labels": [1, 1]},
        )
        assert response.status_code == 400

    def test_kmeans(self, client):
        """Inline points are clustered"""
        points = [[10, 10], [12, 11], [11, 13], [200, 200], [202, 198], [199, 201]]
        response = client.post("/api/ml/kmeans", json={"points": points, "clusters": 2})

        assert response.status_code == 200
        labels = response.json()["labels"]
        assert labels[0] == labels[1] == labels[2]
        assert labels[3] == labels[4] == labels[5] != labels[0]

    def test_kmeans_too_many_clusters(self, client):
        """More clusters than points returns 400"""
        response = client.post("/api/ml/kmeans", json={"points": [[0, 0], [1, 1]], "clusters": 3})
        assert response.status_code == 400

    def test_detect_not_configured(self, client, pattern_id):
        """Without model files detection is unavailable"""
        response = client.post("/api/ml/detect", json={"image_id": pattern_id})

        assert response.status_code == 503
        assert response.json()["type"] == "ModelNotConfiguredException"


class TestPointCloudAPI:
    """Point cloud endpoints"""

    def test_generate_and_parse(self, client):
        """Generated PCD text parses back to the same points"""
        generated = client.post(
            "/api/pointcloud/generate", json={"shape": "sphere", "points": 100, "radius": 2}
        ).json()
        parsed = client.post("/api/pointcloud/parse", json={"pcd": generated["pcd"]})

        assert parsed.status_code == 200
        np.testing.assert_allclose(parsed.json()["points"], generated["points"], atol=1e-5)

    def test_parse_invalid(self, client):
        """Malformed documents return 400"""
        response = client.post("/api/pointcloud/parse", json={"pcd": "VERSION 0.7\n"})
        assert response.status_code == 400

    def test_segment(self, client):
        """RANSAC finds the plane"""
        points = make_plane_cloud(300, 0.3).tolist()
        response = client.post("/api/pointcloud/segment", json={"points": points})

        assert response.status_code == 200
        assert response.json()["inlier_count"] > 150

    def test_segment_too_few_points(self, client):
        """At least three points are required"""
        response = client.post("/api/pointcloud/segment", json={"points": [[0, 0, 0]]})
        assert response.status_code == 422

    def test_register_and_transform(self, client):
        """A transformed copy is registered back"""
        source = np.random.default_rng(0).uniform(0, 10, size=(200, 3)).tolist()
        moved = client.post(
            "/api/pointcloud/transform",
            json={"points": source, "translation": [0.2, 0.1, 0.0]},
        ).json()["points"]

        response = client.post(
            "/api/pointcloud/register",
            json={"source": source, "target": moved, "max_iterations": 100},
        )

        assert response.status_code == 200
        transformation = np.array(response.json()["transformation"])
        np.testing.assert_allclose(transformation[:3, 3], [0.2, 0.1, 0.0], atol=0.05)
