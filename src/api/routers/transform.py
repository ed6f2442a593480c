"""
Transform API Router - frequency domain operations (wavelet, DFT, DCT)
"""

import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_processing_service
from api.exceptions import safe_endpoint
from schemas.common import ProcessingResponse
from schemas.processing import (
    BasisWaveRequest,
    DctRequest,
    DftReconstructRequest,
    DftRequest,
    FrequencyFilterRequest,
    WaveletRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/wavelet")
@safe_endpoint
async def wavelet(
    request: WaveletRequest, processing_service=Depends(get_processing_service)
) -> ProcessingResponse:
    """
    Haar wavelet decomposition.

    With reconstruct=true the coefficients are shrunk and the image is
    reconstructed (denoising); otherwise the coefficient plane is returned.
    """
    return processing_service.wavelet_transform(request)


@router.post("/dft")
@safe_endpoint
async def dft(
    request: DftRequest, processing_service=Depends(get_processing_service)
) -> ProcessingResponse:
    """Log-magnitude DFT spectrum."""
    return processing_service.dft_spectrum(request)


@router.post("/dft/reconstruct")
@safe_endpoint
async def dft_reconstruct(
    request: DftReconstructRequest, processing_service=Depends(get_processing_service)
) -> ProcessingResponse:
    return processing_service.dft_reconstruct(request)


@router.post("/frequency-filter")
@safe_endpoint
async def frequency_filter(
    request: FrequencyFilterRequest, processing_service=Depends(get_processing_service)
) -> ProcessingResponse:
    """Ideal circular low-pass or high-pass filter in the DFT domain."""
    return processing_service.frequency_filter(request)


@router.post("/basis-wave")
@safe_endpoint
async def basis_wave(
    request: BasisWaveRequest, processing_service=Depends(get_processing_service)
) -> ProcessingResponse:
    return processing_service.basis_wave(request)


@router.post("/dct")
@safe_endpoint
async def dct(
    request: DctRequest, processing_service=Depends(get_processing_service)
) -> ProcessingResponse:
    """DCT spectrum, or a reconstruction keeping the top-left keep x keep block."""
    return processing_service.dct(request)
