"""
Tests for morphology.skeleton module.
"""

import numpy as np
import pytest

from domain_types import ThinningMethod
from morphology.skeleton import thin


@pytest.fixture
def bar():
    """Horizontal bar, 5 pixels thick and 30 long."""
    image = np.zeros((20, 50), dtype=np.uint8)
    image[8:13, 10:40] = 255
    return image


@pytest.mark.parametrize("method", list(ThinningMethod))
class TestThin:
    """Tests shared by both thinning algorithms."""

    def test_output_is_binary(self, bar, method):
        """The skeleton uses 0 and 255 only."""
        skeleton = thin(bar, method)
        assert skeleton.dtype == np.uint8
        assert set(np.unique(skeleton)) <= {0, 255}

    def test_skeleton_is_thin(self, bar, method):
        """Columns in the middle of the bar keep at most two pixels."""
        skeleton = thin(bar, method)
        column_counts = np.count_nonzero(skeleton[:, 15:35], axis=0)
        assert np.count_nonzero(skeleton) > 0
        assert column_counts.max() <= 2

    def test_only_removes_pixels(self, bar, method):
        """Thinning never adds foreground."""
        skeleton = thin(bar, method)
        assert np.count_nonzero(skeleton[bar == 0]) == 0
        assert np.count_nonzero(skeleton) < np.count_nonzero(bar)

    def test_line_is_stable(self, method):
        """A one-pixel line is already a skeleton."""
        image = np.zeros((11, 30), dtype=np.uint8)
        image[5, 5:25] = 255
        np.testing.assert_array_equal(thin(image, method), image)

    def test_empty_image(self, method):
        """An image without foreground stays empty."""
        assert np.count_nonzero(thin(np.zeros((10, 10), np.uint8), method)) == 0


class TestThinValidation:
    """Input validation."""

    def test_color_rejected(self):
        """Thinning needs one plane."""
        with pytest.raises(ValueError, match="single-channel"):
            thin(np.zeros((10, 10, 3), dtype=np.uint8))

    def test_unknown_method(self):
        """Unknown methods raise ValueError."""
        with pytest.raises(ValueError):
            thin(np.zeros((10, 10), dtype=np.uint8), "medial_axis")
