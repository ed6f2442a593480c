"""
Tests for transforms.fourier and transforms.cosine modules.
"""

import numpy as np
import pytest

from transforms import cosine, fourier


class TestFourier:
    """Tests for DFT helpers."""

    def test_compute_dft_pads_to_optimal_size(self):
        """The complex spectrum has two planes and an optimal size."""
        image = np.zeros((97, 101), dtype=np.uint8)
        dft = fourier.compute_dft(image)
        assert dft.shape[2] == 2
        assert dft.shape[0] >= 97 and dft.shape[1] >= 101

    def test_compute_dft_without_padding(self):
        """pad=False keeps the input size."""
        dft = fourier.compute_dft(np.zeros((97, 101), dtype=np.uint8), pad=False)
        assert dft.shape == (97, 101, 2)

    def test_fft_shift_twice_is_identity(self):
        """Swapping quadrants twice restores the (even-cropped) input."""
        spectrum = np.arange(35, dtype=np.float32).reshape(5, 7)
        twice = fourier.fft_shift(fourier.fft_shift(spectrum))
        np.testing.assert_array_equal(twice, spectrum[:4, :6])

    def test_magnitude_spectrum_centered_peak(self, gray_image):
        """The DC term is the brightest value and sits in the center after shifting."""
        spectrum = fourier.magnitude_spectrum(fourier.compute_dft(gray_image, pad=False))
        rows, cols = spectrum.shape
        assert spectrum.dtype == np.uint8
        assert np.unravel_index(np.argmax(spectrum), spectrum.shape) == (rows // 2, cols // 2)

    def test_inverse_dft_round_trip(self, gray_image):
        """The scaled inverse reproduces the input."""
        dft = fourier.compute_dft(gray_image)
        restored = fourier.inverse_dft(dft, gray_image.shape)
        np.testing.assert_allclose(restored, gray_image, atol=1e-2)

    def test_basis_wave_values(self):
        """Z(0, 0) = 1 and the wave has u periods along x."""
        wave = fourier.basis_wave(2, 0, width=100, height=10)
        assert wave.shape == (10, 100)
        assert wave[0, 0] == pytest.approx(1.0)
        assert wave[0, 25] == pytest.approx(-1.0, abs=1e-6)
        assert wave[0, 50] == pytest.approx(1.0, abs=1e-6)

    def test_basis_wave_invalid_size(self):
        """Non-positive sizes are rejected."""
        with pytest.raises(ValueError):
            fourier.basis_wave(1, 1, width=0)

    def test_partial_reconstruction_full(self, gray_image):
        """Keeping every frequency reproduces the image."""
        small = gray_image[90:122, 90:122]
        restored = fourier.partial_reconstruction(small, max_frequency=31)
        np.testing.assert_allclose(restored, small, atol=1e-2)

    def test_partial_reconstruction_dc_only(self, gray_image):
        """Keeping only (0, 0) gives the mean value everywhere."""
        restored = fourier.partial_reconstruction(gray_image, max_frequency=0)
        np.testing.assert_allclose(restored, gray_image.mean(), atol=1e-2)

    def test_partial_reconstruction_negative(self, gray_image):
        """A negative frequency limit raises ValueError."""
        with pytest.raises(ValueError):
            fourier.partial_reconstruction(gray_image, -1)

    def test_low_pass_preserves_mean(self, gray_image):
        """The zero frequency passes the low-pass filter."""
        filtered = fourier.frequency_filter(gray_image, radius=10)
        assert filtered.shape == gray_image.shape
        assert filtered.mean() == pytest.approx(gray_image.mean(), abs=0.5)

    def test_high_pass_removes_mean(self, gray_image):
        """The high-pass result has zero mean."""
        filtered = fourier.frequency_filter(gray_image, radius=10, high_pass=True)
        assert filtered.mean() == pytest.approx(0.0, abs=0.5)

    def test_filter_invalid_radius(self, gray_image):
        """The filter radius must be positive."""
        with pytest.raises(ValueError):
            fourier.frequency_filter(gray_image, radius=0)


class TestCosine:
    """Tests for DCT helpers."""

    def test_pad_to_even(self):
        """Odd sides grow by one."""
        assert cosine.pad_to_even(np.zeros((5, 7), dtype=np.uint8)).shape == (6, 8)

    def test_inverse_dct_round_trip(self, gray_image):
        """The inverse DCT reproduces the 8-bit image."""
        restored = cosine.inverse_dct(cosine.compute_dct(gray_image))
        assert np.abs(restored.astype(int) - gray_image.astype(int)).max() <= 1

    def test_spectrum_is_uint8(self, gray_image):
        """The log spectrum is a displayable image."""
        spectrum = cosine.dct_spectrum(cosine.compute_dct(gray_image))
        assert spectrum.dtype == np.uint8
        assert spectrum.shape == gray_image.shape

    def test_compress_ratio_and_quality(self, gray_image):
        """Keeping a 64x64 block of 480x640 coefficients gives a 75:1 ratio."""
        result = cosine.compress(gray_image, keep=64)

        assert result.image.shape == gray_image.shape
        assert result.keep == 64
        assert result.compression_ratio == pytest.approx(480 * 640 / (64 * 64))
        assert result.psnr > 15

    def test_more_coefficients_better_quality(self, gray_image):
        """PSNR grows with the retained block."""
        coarse = cosine.compress(gray_image, keep=16)
        fine = cosine.compress(gray_image, keep=128)
        assert fine.psnr > coarse.psnr

    def test_keep_clamped(self):
        """keep larger than the image keeps every coefficient."""
        image = np.random.default_rng(0).integers(0, 256, (32, 32)).astype(np.uint8)
        result = cosine.compress(image, keep=1000)
        assert result.keep == 32
        assert result.compression_ratio == pytest.approx(1.0)

    def test_keep_must_be_positive(self, gray_image):
        """keep=0 raises ValueError."""
        with pytest.raises(ValueError):
            cosine.compress(gray_image, keep=0)
