"""
Processing Service - image-to-image operations.

Every operation reads a stored image (optionally restricted to a ROI), runs
one library function on it and stores the result as a new image. The
response carries the new id, a thumbnail, timing and operation metadata.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import numpy as np

from config import ProcessingConfig
from core.image_manager import ImageManager
from core.utils import enum_to_string, timer
from domain_types import ROI, LogicOperation, PixelConstants
from image import color, filters, geometry, histogram, pixel
from image.converters import ensure_grayscale, normalize_to_uint8, to_uint8
from image.preprocessing import PreprocessingPipeline
from morphology import fill, operations, skeleton
from schemas.common import ProcessingResponse
from schemas.processing import (
    AffineRequest,
    BasisWaveRequest,
    ChannelsResponse,
    ColorConvertRequest,
    DctRequest,
    DftReconstructRequest,
    DftRequest,
    FloodFillRequest,
    FrequencyFilterRequest,
    HistogramCompareRequest,
    HistogramCompareResponse,
    HistogramMatchRequest,
    HistogramRequest,
    HistogramResponse,
    ImageOperationRequest,
    KernelRequest,
    LogicRequest,
    MorphContourRequest,
    MorphRequest,
    PixelRequest,
    PreprocessRequest,
    ResizeRequest,
    RotateRequest,
    ScaleRequest,
    SmoothRequest,
    ThinRequest,
    TranslateRequest,
    WaveletRequest,
)
from services.image_service import ImageService
from transforms import cosine, fourier, wavelet

logger = logging.getLogger(__name__)

OperationResult = Union[np.ndarray, Tuple[np.ndarray, Dict[str, Any]]]


class ProcessingService:
    """
    Service for operations that turn one stored image into another.
    """

    def __init__(self, image_manager: ImageManager, config: Optional[ProcessingConfig] = None):
        """
        Initialize processing service.

        Args:
            image_manager: Image manager instance
            config: Defaults for parameters a request leaves out
        """
        self.image_manager = image_manager
        self.images = ImageService(image_manager)
        self.config = config or ProcessingConfig()
        self.pipeline = PreprocessingPipeline()

    def store_result(
        self,
        operation: str,
        result: np.ndarray,
        source_image_id: Optional[str],
        metadata: Dict[str, Any],
        processing_time_ms: int,
    ) -> ProcessingResponse:
        result = to_uint8(result)
        image_id = self.images.store_image(
            result, {"operation": operation, "source_image_id": source_image_id, **metadata}
        )
        height, width = result.shape[:2]
        logger.info(f"{operation}: stored {image_id} ({width}x{height})")
        return ProcessingResponse(
            image_id=image_id,
            source_image_id=source_image_id,
            operation=operation,
            width=width,
            height=height,
            thumbnail_base64=self.images.thumbnail(result, image_id),
            processing_time_ms=processing_time_ms,
            metadata=metadata,
        )

    def execute(
        self,
        operation: str,
        image_id: str,
        roi: Optional[ROI],
        func: Callable[[np.ndarray], OperationResult],
    ) -> ProcessingResponse:
        """
        Template method for image-to-image operations.

        func receives the (cropped) image and returns the result image, or a
        tuple of result image and JSON-serializable metadata.
        """
        with timer() as t:
            image, offset = self.images.get_region(image_id, roi)
            output = func(image)
            if isinstance(output, tuple):
                result, metadata = output
            else:
                result, metadata = output, {}
            if roi is not None:
                metadata = {**metadata, "roi_offset": list(offset)}

        return self.store_result(operation, result, image_id, metadata, t["ms"])

    def _execute_request(
        self, operation: str, request: ImageOperationRequest, func
    ) -> ProcessingResponse:
        return self.execute(operation, request.image_id, request.roi, func)

    # ==========================================================================
    # Frequency domain
    # ==========================================================================

    def wavelet_transform(self, request: WaveletRequest) -> ProcessingResponse:
        """Haar coefficient plane, or the shrinkage reconstruction (denoising)."""
        levels = self.config.wavelet_levels if request.levels is None else request.levels
        shrinkage = request.shrinkage or self.config.wavelet_shrinkage
        threshold = (
            self.config.wavelet_threshold if request.threshold is None else request.threshold
        )

        def run(image):
            if request.reconstruct:
                result = wavelet.wavelet_denoise(image, levels, shrinkage, threshold)
                return result, {
                    "levels": levels,
                    "shrinkage": enum_to_string(shrinkage),
                    "threshold": threshold,
                }
            gray = ensure_grayscale(image)
            coefficients = wavelet.haar_forward(wavelet.pad_for_levels(gray, levels), levels)
            return wavelet.coefficients_to_image(coefficients), {
                "levels": levels,
                "coefficient_shape": list(coefficients.shape),
            }

        name = "wavelet_denoise" if request.reconstruct else "wavelet_forward"
        return self._execute_request(name, request, run)

    def dft_spectrum(self, request: DftRequest) -> ProcessingResponse:
        def run(image):
            dft = fourier.compute_dft(image)
            return fourier.magnitude_spectrum(dft, shift=request.shift), {
                "dft_size": [int(dft.shape[1]), int(dft.shape[0])],
                "shifted": request.shift,
            }

        return self._execute_request("dft_spectrum", request, run)

    def dft_reconstruct(self, request: DftReconstructRequest) -> ProcessingResponse:
        def run(image):
            result = fourier.partial_reconstruction(image, request.max_frequency)
            return result, {"max_frequency": request.max_frequency}

        return self._execute_request("dft_reconstruct", request, run)

    def frequency_filter(self, request: FrequencyFilterRequest) -> ProcessingResponse:
        def run(image):
            result = fourier.frequency_filter(image, request.radius, request.high_pass)
            # High-pass output is signed; stretch it for display
            if request.high_pass:
                result = normalize_to_uint8(result)
            return result, {"radius": request.radius, "high_pass": request.high_pass}

        return self._execute_request("frequency_filter", request, run)

    def basis_wave(self, request: BasisWaveRequest) -> ProcessingResponse:
        """Generated image; there is no source image."""
        with timer() as t:
            wave = fourier.basis_wave(request.u, request.v, request.width, request.height)
            result = (wave + 1.0) * 127.5
        return self.store_result(
            "basis_wave", result, None, {"u": request.u, "v": request.v}, t["ms"]
        )

    def dct(self, request: DctRequest) -> ProcessingResponse:
        """DCT spectrum, or low-frequency compression when keep is given."""

        def run(image):
            if request.keep is None:
                return cosine.dct_spectrum(cosine.compute_dct(image)), {}
            compression = cosine.compress(image, request.keep)
            return compression.image, {
                "keep": compression.keep,
                "compression_ratio": compression.compression_ratio,
                "psnr": compression.psnr,
            }

        name = "dct_spectrum" if request.keep is None else "dct_compress"
        return self._execute_request(name, request, run)

    # ==========================================================================
    # Pixels, color, filters, histograms
    # ==========================================================================

    def pixel_operation(self, request: PixelRequest) -> ProcessingResponse:
        def run(image):
            if request.operation == "invert":
                return pixel.invert(image)
            if request.operation == "threshold":
                value = PixelConstants.THRESHOLD_DEFAULT if request.value is None else request.value
                return pixel.threshold(image, value), {"value": value}
            value = (
                PixelConstants.INVERSE_THRESHOLD_DEFAULT if request.value is None else request.value
            )
            return pixel.invert_threshold(image, value), {"value": value}

        return self._execute_request(request.operation, request, run)

    def logic(self, request: LogicRequest) -> ProcessingResponse:
        with timer() as t:
            first = self.images.get_image(request.image_id)
            second = None
            if request.operation != LogicOperation.NOT:
                second = self.images.get_image(request.second_image_id)
            result = pixel.logic_operation(first, second, request.operation)

        metadata = {"second_image_id": request.second_image_id}
        name = f"logic_{request.operation.value}"
        return self.store_result(name, result, request.image_id, metadata, t["ms"])

    def circle_masks(self) -> List[ProcessingResponse]:
        """The two overlapping circle masks used by the logic examples."""
        responses = []
        with timer() as t:
            masks = pixel.overlapping_circles()
        for index, mask in enumerate(masks):
            responses.append(
                self.store_result("circle_mask", mask, None, {"index": index}, t["ms"])
            )
        return responses

    def convert_color(self, request: ColorConvertRequest) -> ProcessingResponse:
        def run(image):
            return color.convert_color(image, request.space), {"space": request.space.value}

        return self._execute_request("convert_color", request, run)

    def split_channels(self, request: ImageOperationRequest) -> ChannelsResponse:
        with timer() as t:
            image, _ = self.images.get_region(request.image_id, request.roi)
            channels = color.split_channels(image)
            ids = [
                self.images.store_image(
                    channel,
                    {
                        "operation": "split_channels",
                        "source_image_id": request.image_id,
                        "channel": i,
                    },
                )
                for i, channel in enumerate(channels)
            ]
        return ChannelsResponse(
            source_image_id=request.image_id, channel_image_ids=ids, processing_time_ms=t["ms"]
        )

    def merge_channels(self, image_ids: List[str]) -> ProcessingResponse:
        with timer() as t:
            channels = [ensure_grayscale(self.images.get_image(i)) for i in image_ids]
            result = color.merge_channels(channels)
        return self.store_result(
            "merge_channels", result, image_ids[0], {"channel_image_ids": image_ids}, t["ms"]
        )

    def apply_kernel(self, request: KernelRequest) -> ProcessingResponse:
        if request.custom_kernel is not None:
            kernel = np.array(request.custom_kernel, dtype=np.float32)
            kernel_name = "custom"
        elif request.kernel is not None:
            kernel = request.kernel
            kernel_name = request.kernel.value
        else:
            raise ValueError("Either kernel or custom_kernel is required")

        def run(image):
            return filters.to_display(filters.apply_kernel(image, kernel)), {"kernel": kernel_name}

        return self._execute_request("apply_kernel", request, run)

    def smooth(self, request: SmoothRequest) -> ProcessingResponse:
        kernel_size = request.kernel_size or self.config.blur_size

        def run(image):
            result = filters.smooth(image, request.method, kernel_size)
            return result, {"method": request.method.value, "kernel_size": kernel_size}

        return self._execute_request("smooth", request, run)

    def preprocess(self, request: PreprocessRequest) -> ProcessingResponse:
        def run(image):
            result, applied = self.pipeline.process(image, request.params.to_dict())
            return result, {"applied": applied}

        return self._execute_request("preprocess", request, run)

    def equalize(self, request: ImageOperationRequest) -> ProcessingResponse:
        return self._execute_request("equalize", request, histogram.equalize)

    def histograms(self, request: HistogramRequest) -> HistogramResponse:
        with timer() as t:
            image, _ = self.images.get_region(request.image_id, request.roi)
            hists = histogram.calc_histograms(image, bins=request.bins)
        return HistogramResponse(
            image_id=request.image_id,
            bins=request.bins,
            histograms=[h.flatten().tolist() for h in hists],
            processing_time_ms=t["ms"],
        )

    def compare_histograms(self, request: HistogramCompareRequest) -> HistogramCompareResponse:
        with timer() as t:
            first = self.images.get_image(request.image_id)
            second = self.images.get_image(request.second_image_id)
            score = histogram.compare_histograms(first, second, request.method)
        return HistogramCompareResponse(
            method=request.method.value, score=float(score), processing_time_ms=t["ms"]
        )

    def _roi_mask(self, image: np.ndarray, roi: Optional[ROI]) -> Optional[np.ndarray]:
        if roi is None:
            return None
        region = geometry.crop(image, roi)
        clipped = roi.clip(image.shape[1], image.shape[0])
        mask = np.zeros(image.shape[:2], dtype=np.uint8)
        mask[clipped.y : clipped.y + region.shape[0], clipped.x : clipped.x + region.shape[1]] = 255
        return mask

    def match_histogram(self, request: HistogramMatchRequest) -> ProcessingResponse:
        with timer() as t:
            source = self.images.get_image(request.image_id)
            reference = self.images.get_image(request.reference_image_id)
            result = histogram.match_histogram(
                source,
                reference,
                self._roi_mask(source, request.source_roi),
                self._roi_mask(reference, request.reference_roi),
            )
        metadata = {"reference_image_id": request.reference_image_id}
        return self.store_result("match_histogram", result, request.image_id, metadata, t["ms"])

    # ==========================================================================
    # Geometry
    # ==========================================================================

    def translate(self, request: TranslateRequest) -> ProcessingResponse:
        def run(image):
            return geometry.translate(image, request.tx, request.ty), {
                "tx": request.tx,
                "ty": request.ty,
            }

        return self._execute_request("translate", request, run)

    def rotate(self, request: RotateRequest) -> ProcessingResponse:
        def run(image):
            result = geometry.rotate(image, request.angle, request.scale, request.center)
            return result, {"angle": request.angle, "scale": request.scale}

        return self._execute_request("rotate", request, run)

    def resize(self, request: ResizeRequest) -> ProcessingResponse:
        def run(image):
            result = geometry.resize(image, request.fx, request.fy, request.interpolation)
            return result, {"fx": request.fx, "fy": request.fy}

        return self._execute_request("resize", request, run)

    def scale(self, request: ScaleRequest) -> ProcessingResponse:
        def run(image):
            if request.direction == "up":
                return geometry.scale_up(image, request.interpolation)
            return geometry.scale_down(image)

        return self._execute_request(f"scale_{request.direction}", request, run)

    def affine(self, request: AffineRequest) -> ProcessingResponse:
        def run(image):
            if request.src_points is None:
                return geometry.shear(image), {"preset": "shear"}
            result = geometry.affine_warp(image, request.src_points, request.dst_points)
            return result, {"src_points": request.src_points, "dst_points": request.dst_points}

        return self._execute_request("affine_warp", request, run)

    def crop(self, image_id: str, roi: ROI) -> ProcessingResponse:
        return self.execute("crop", image_id, roi, lambda image: image.copy())

    # ==========================================================================
    # Morphology
    # ==========================================================================

    def morph(self, request: MorphRequest) -> ProcessingResponse:
        def run(image):
            result = operations.morph(
                image, request.operation, request.shape, request.size, request.iterations
            )
            return result, {
                "operation": request.operation.value,
                "shape": request.shape.value,
                "size": request.size,
            }

        return self._execute_request("morph", request, run)

    def morph_contour(self, request: MorphContourRequest) -> ProcessingResponse:
        def run(image):
            result = operations.morphological_contour(
                image, request.mode, request.shape, request.size
            )
            return result, {"mode": request.mode.value, "size": request.size}

        return self._execute_request("morph_contour", request, run)

    def thin(self, request: ThinRequest) -> ProcessingResponse:
        def run(image):
            binary = pixel.threshold(image, request.threshold)
            result = skeleton.thin(binary, request.method)
            return result, {
                "method": request.method.value,
                "foreground_pixels": int(np.count_nonzero(result)),
            }

        return self._execute_request("thin", request, run)

    def flood_fill(self, request: FloodFillRequest) -> ProcessingResponse:
        with timer() as t:
            image = self.images.get_image(request.image_id)
            result = fill.flood_fill(
                image,
                request.seed,
                request.mode,
                request.lo_diff,
                request.up_diff,
                request.connectivity,
                request.new_value,
                request.use_mask,
            )
            metadata: Dict[str, Any] = {
                "mode": request.mode.value,
                "area": result.area,
                "bounding_box": result.bounding_box.to_dict(),
            }
            if result.mask is not None:
                metadata["mask_image_id"] = self.images.store_image(
                    result.mask,
                    {"operation": "flood_fill_mask", "source_image_id": request.image_id},
                )

        return self.store_result("flood_fill", result.image, request.image_id, metadata, t["ms"])

