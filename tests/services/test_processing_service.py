"""
Tests for ProcessingService against a real image store
"""

import numpy as np
import pytest

from api.exceptions import ImageNotFoundException, InvalidROIException
from domain_types import ROI, ColorSpace, FloodFillMode, LogicOperation, MorphOperation
from schemas.processing import (
    BasisWaveRequest,
    ColorConvertRequest,
    DctRequest,
    FloodFillRequest,
    HistogramCompareRequest,
    HistogramRequest,
    ImageOperationRequest,
    KernelRequest,
    LogicRequest,
    MorphRequest,
    PixelRequest,
    ResizeRequest,
    ThinRequest,
    WaveletRequest,
)


@pytest.fixture
def stored(processing_service, test_image):
    """Id of test_image in the store"""
    return processing_service.images.store_image(test_image)


class TestExecuteTemplate:
    """Behaviour shared by every image-to-image operation"""

    def test_result_is_stored(self, processing_service, stored, test_image):
        """The result gets a new id and records its source"""
        response = processing_service.pixel_operation(PixelRequest(image_id=stored))

        assert response.image_id != stored
        assert response.source_image_id == stored
        assert response.operation == "invert"
        assert (response.width, response.height) == (640, 480)
        assert response.thumbnail_base64.startswith("data:image/jpeg")

        result = processing_service.images.get_image(response.image_id)
        np.testing.assert_array_equal(result, 255 - test_image)
        info = processing_service.images.get_info(response.image_id)
        assert info["metadata"]["source_image_id"] == stored

    def test_roi_limits_operation(self, processing_service, stored):
        """Only the region is processed and its offset is reported"""
        roi = ROI(x=100, y=100, width=50, height=40)
        response = processing_service.pixel_operation(PixelRequest(image_id=stored, roi=roi))

        assert (response.width, response.height) == (50, 40)
        assert response.metadata["roi_offset"] == [100, 100]

    def test_roi_outside_image(self, processing_service, stored):
        """ROIs that miss the image are rejected"""
        roi = ROI(x=1000, y=0, width=10, height=10)
        with pytest.raises(InvalidROIException):
            processing_service.pixel_operation(PixelRequest(image_id=stored, roi=roi))

    def test_missing_image(self, processing_service):
        """Unknown ids raise ImageNotFoundException"""
        with pytest.raises(ImageNotFoundException):
            processing_service.pixel_operation(PixelRequest(image_id="missing"))

    def test_threshold_default_value(self, processing_service, stored):
        """Threshold falls back to the default level"""
        response = processing_service.pixel_operation(
            PixelRequest(image_id=stored, operation="threshold")
        )
        assert "value" in response.metadata


class TestPixelsAndColor:
    """Logic, color and channel operations"""

    def test_logic_on_circle_masks(self, processing_service):
        """AND of the two masks is their overlap"""
        first, second = processing_service.circle_masks()
        response = processing_service.logic(
            LogicRequest(
                image_id=first.image_id,
                second_image_id=second.image_id,
                operation=LogicOperation.AND,
            )
        )

        overlap = processing_service.images.get_image(response.image_id)
        mask = processing_service.images.get_image(first.image_id)
        assert response.operation == "logic_and"
        assert 0 < np.count_nonzero(overlap) < np.count_nonzero(mask)

    def test_logic_not(self, processing_service, stored, test_image):
        """NOT needs only the first image"""
        response = processing_service.logic(
            LogicRequest(image_id=stored, operation=LogicOperation.NOT)
        )
        result = processing_service.images.get_image(response.image_id)
        np.testing.assert_array_equal(result, 255 - test_image)

    def test_convert_color(self, processing_service, stored):
        """Conversion to gray gives a single plane"""
        response = processing_service.convert_color(
            ColorConvertRequest(image_id=stored, space=ColorSpace.GRAY)
        )
        assert processing_service.images.get_image(response.image_id).ndim == 2
        assert response.metadata["space"] == "gray"

    def test_split_and_merge(self, processing_service, stored, test_image):
        """Splitting then merging restores the image"""
        split = processing_service.split_channels(ImageOperationRequest(image_id=stored))
        assert len(split.channel_image_ids) == 3

        merged = processing_service.merge_channels(split.channel_image_ids)
        result = processing_service.images.get_image(merged.image_id)
        np.testing.assert_array_equal(result, test_image)

    def test_custom_kernel(self, processing_service, stored):
        """A custom identity kernel leaves the image unchanged"""
        request = KernelRequest(
            image_id=stored, custom_kernel=[[0, 0, 0], [0, 1, 0], [0, 0, 0]]
        )
        response = processing_service.apply_kernel(request)
        assert response.metadata["kernel"] == "custom"

    def test_kernel_required(self, processing_service, stored):
        """Requests without any kernel raise ValueError"""
        with pytest.raises(ValueError, match="kernel"):
            processing_service.apply_kernel(KernelRequest(image_id=stored, kernel=None))


class TestHistogramsAndTransforms:
    """Histogram and frequency domain operations"""

    def test_histograms(self, processing_service, stored):
        """One histogram per channel summing to the pixel count"""
        response = processing_service.histograms(HistogramRequest(image_id=stored, bins=32))

        assert len(response.histograms) == 3
        assert all(len(h) == 32 for h in response.histograms)
        assert sum(response.histograms[0]) == pytest.approx(480 * 640)

    def test_compare_with_itself(self, processing_service, stored):
        """Correlation of identical images is 1"""
        response = processing_service.compare_histograms(
            HistogramCompareRequest(image_id=stored, second_image_id=stored)
        )
        assert response.score == pytest.approx(1.0)

    def test_wavelet_forward(self, processing_service, stored):
        """Coefficient planes use the configured level count"""
        response = processing_service.wavelet_transform(WaveletRequest(image_id=stored))

        assert response.operation == "wavelet_forward"
        assert response.metadata["levels"] == processing_service.config.wavelet_levels

    def test_wavelet_denoise(self, processing_service, stored):
        """Reconstruction keeps the image size"""
        response = processing_service.wavelet_transform(
            WaveletRequest(image_id=stored, reconstruct=True, levels=2)
        )
        assert response.operation == "wavelet_denoise"
        assert (response.width, response.height) == (640, 480)

    def test_dct_compress(self, processing_service, stored):
        """Compression reports its ratio"""
        response = processing_service.dct(DctRequest(image_id=stored, keep=64))

        assert response.operation == "dct_compress"
        assert response.metadata["compression_ratio"] == pytest.approx(480 * 640 / 64**2)

    def test_basis_wave_has_no_source(self, processing_service):
        """Generated waves have no source image"""
        response = processing_service.basis_wave(BasisWaveRequest(u=2, v=1, width=64, height=32))

        assert response.source_image_id is None
        assert (response.width, response.height) == (64, 32)


class TestGeometryAndMorphology:
    """Geometry, morphology and fills"""

    def test_resize(self, processing_service, stored):
        """Factors scale the result size"""
        response = processing_service.resize(ResizeRequest(image_id=stored, fx=0.5, fy=0.25))
        assert (response.width, response.height) == (320, 120)

    def test_crop(self, processing_service, stored):
        """Crop stores the region"""
        response = processing_service.crop(stored, ROI(x=10, y=20, width=30, height=40))
        assert (response.width, response.height) == (30, 40)

    def test_morph(self, processing_service, stored):
        """Dilation grows the white square"""
        response = processing_service.morph(
            MorphRequest(image_id=stored, operation=MorphOperation.DILATE, size=2)
        )
        source = processing_service.images.get_image(stored)
        result = processing_service.images.get_image(response.image_id)
        assert np.count_nonzero(result) > np.count_nonzero(source)

    def test_thin(self, processing_service, stored):
        """Thinning reports the remaining foreground"""
        roi = ROI(x=80, y=80, width=240, height=240)
        response = processing_service.thin(ThinRequest(image_id=stored, roi=roi))
        assert response.metadata["foreground_pixels"] > 0

    def test_flood_fill_with_mask(self, processing_service, stored):
        """The fill mask is stored as its own image"""
        response = processing_service.flood_fill(
            FloodFillRequest(
                image_id=stored,
                seed=(200, 200),
                mode=FloodFillMode.FIXED,
                new_value=(0, 0, 255),
                use_mask=True,
            )
        )

        assert response.metadata["area"] == 201 * 201
        assert processing_service.images.get_image(response.metadata["mask_image_id"]) is not None
