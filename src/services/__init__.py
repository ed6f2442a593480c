"""
Service Layer - Business logic layer between routers and the image store.

Services fetch images by id, call the library functions and store their
results, translating library errors into API exceptions.
"""

from .analysis_service import AnalysisService
from .image_service import ImageService
from .processing_service import ProcessingService

__all__ = ["AnalysisService", "ImageService", "ProcessingService"]
