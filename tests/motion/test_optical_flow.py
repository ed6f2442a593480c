"""
Tests for motion.optical_flow module.
"""

import numpy as np
import pytest

from image.geometry import translate
from motion.optical_flow import (
    SparseFlow,
    accumulate_differences,
    dense_flow,
    draw_tracks,
    flow_to_color,
    track_features,
)


class TestTrackFeatures:
    """Tests for sparse Lucas-Kanade tracking."""

    def test_translation(self, gray_image):
        """Corners of the rectangle move with the frame."""
        flow = track_features(gray_image, translate(gray_image, 3, 2))

        assert len(flow) > 0
        mean = flow.displacements.mean(axis=0)
        assert mean[0] == pytest.approx(3.0, abs=0.5)
        assert mean[1] == pytest.approx(2.0, abs=0.5)

    def test_static_frames(self, test_image):
        """Tracking a frame onto itself gives no motion."""
        flow = track_features(test_image, test_image)
        np.testing.assert_allclose(flow.displacements, 0.0, atol=0.1)

    def test_no_features(self):
        """A flat frame gives an empty result."""
        frame = np.zeros((100, 100), dtype=np.uint8)
        flow = track_features(frame, frame)

        assert len(flow) == 0
        assert flow.displacements.shape == (0, 2)

    def test_size_mismatch(self, gray_image):
        """Frames must share a size."""
        with pytest.raises(ValueError, match="differ"):
            track_features(gray_image, gray_image[:100])

    def test_draw_tracks(self, test_image):
        """Tracks are drawn on a color copy."""
        flow = SparseFlow(
            points_prev=np.array([[10.0, 10.0]], dtype=np.float32),
            points_next=np.array([[20.0, 15.0]], dtype=np.float32),
        )
        canvas = draw_tracks(np.zeros((50, 50), np.uint8), flow)
        assert canvas.shape == (50, 50, 3)
        assert canvas[15, 20].any()


class TestDenseFlow:
    """Tests for Farneback flow and its visualization."""

    def test_translation(self, noise_image):
        """The field follows a horizontal shift."""
        flow = dense_flow(noise_image, translate(noise_image, 2, 0))

        assert flow.shape == noise_image.shape + (2,)
        center = flow[60:180, 80:240]
        assert np.median(center[..., 0]) == pytest.approx(2.0, abs=0.5)
        assert np.median(center[..., 1]) == pytest.approx(0.0, abs=0.5)

    def test_flow_to_color(self):
        """The visualization is a BGR image of the field size."""
        flow = np.zeros((20, 30, 2), dtype=np.float32)
        flow[:, 15:, 0] = 5.0
        color = flow_to_color(flow)

        assert color.shape == (20, 30, 3)
        assert not color[:, :15].any()
        assert color[:, 15:].any()

    def test_flow_to_color_shape(self):
        """Fields must have two planes."""
        with pytest.raises(ValueError, match="shape"):
            flow_to_color(np.zeros((10, 10), dtype=np.float32))


class TestAccumulateDifferences:
    """Tests for frame differencing."""

    def test_changed_region(self):
        """Only pixels that changed are bright."""
        base = np.zeros((40, 40), dtype=np.uint8)
        moved = base.copy()
        moved[10:20, 10:20] = 200

        result = accumulate_differences([base, moved, moved])

        assert result.dtype == np.uint8
        assert result[15, 15] >= 254
        assert result[30, 30] == 0

    def test_color_frames(self, test_image):
        """Color frames are compared in grayscale."""
        result = accumulate_differences([test_image, translate(test_image, 5, 0)])
        assert result.shape == test_image.shape[:2]

    def test_single_frame(self, test_image):
        """At least two frames are needed."""
        with pytest.raises(ValueError, match="two frames"):
            accumulate_differences([test_image])

    def test_size_mismatch(self, gray_image):
        """All frames must share a size."""
        with pytest.raises(ValueError, match="differ"):
            accumulate_differences([gray_image, gray_image[:, :100]])
