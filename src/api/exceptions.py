"""
Custom exceptions and error handlers for the Vision Lab API.
Provides consistent error handling across all endpoints.
"""

import asyncio
import logging
import traceback
from functools import wraps
from typing import Dict, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

logger = logging.getLogger(__name__)


# Custom exception classes
class VisionLabException(Exception):
    """Base exception for Vision Lab."""

    def __init__(self, message: str, status_code: int = 500, details: Optional[Dict] = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ImageNotFoundException(VisionLabException):
    """Exception raised when image is not found."""

    def __init__(self, image_id: str):
        super().__init__(
            message=f"Image not found: {image_id}", status_code=404, details={"image_id": image_id}
        )


class ImageLoadException(VisionLabException):
    """Exception raised when an image buffer or file cannot be decoded."""

    def __init__(self, source: str, reason: str):
        super().__init__(
            message=f"Could not open or find the image: {reason}",
            status_code=400,
            details={"source": source, "reason": reason},
        )


class InvalidROIException(VisionLabException):
    """Exception raised when ROI is invalid."""

    def __init__(self, roi: Dict, reason: str):
        super().__init__(
            message=f"Invalid ROI: {reason}",
            status_code=400,
            details={"roi": roi, "reason": reason},
        )


class ProcessingException(VisionLabException):
    """Exception raised when image processing fails."""

    def __init__(self, operation: str, reason: str):
        super().__init__(
            message=f"Processing failed for {operation}: {reason}",
            status_code=500,
            details={"operation": operation, "reason": reason},
        )


class CalibrationException(VisionLabException):
    """Exception raised when calibration has no usable views."""

    def __init__(self, reason: str, details: Optional[Dict] = None):
        super().__init__(
            message=f"Calibration failed: {reason}",
            status_code=422,
            details={"reason": reason, **(details or {})},
        )


class ModelNotConfiguredException(VisionLabException):
    """Exception raised when a model needs files that are not configured."""

    def __init__(self, model: str, reason: str):
        super().__init__(
            message=f"Model {model} is not available: {reason}",
            status_code=503,
            details={"model": model, "reason": reason},
        )


class StorageException(VisionLabException):
    """Exception raised when storage operations fail."""

    def __init__(self, operation: str, reason: str):
        super().__init__(
            message=f"Storage operation failed: {operation} - {reason}",
            status_code=507,  # Insufficient Storage
            details={"operation": operation, "reason": reason},
        )


class ConfigurationException(VisionLabException):
    """Exception raised when configuration is invalid."""

    def __init__(self, config_key: str, reason: str):
        super().__init__(
            message=f"Invalid configuration for {config_key}: {reason}",
            status_code=500,
            details={"config_key": config_key, "reason": reason},
        )


# Exception handlers for FastAPI
async def vision_lab_exception_handler(request: Request, exc: VisionLabException) -> JSONResponse:
    """
    Handler for domain exceptions.

    Args:
        request: FastAPI request
        exc: VisionLabException instance

    Returns:
        JSON response with error details
    """
    logger.error(f"{exc.__class__.__name__}: {exc.message}", extra={"details": exc.details})

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "details": exc.details, "type": exc.__class__.__name__},
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handler for request validation errors.

    Args:
        request: FastAPI request
        exc: Validation exception

    Returns:
        JSON response with validation error details
    """
    errors = []
    for error in exc.errors():
        errors.append(
            {
                "field": ".".join(str(loc) for loc in error["loc"][1:]),
                "message": error["msg"],
                "type": error["type"],
            }
        )

    logger.warning(f"Validation error: {errors}")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "Validation failed", "details": errors, "type": "ValidationError"},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handler for unexpected exceptions.

    Tracebacks are only included when the app runs in debug mode.
    """
    logger.error(f"Unexpected error: {exc}", exc_info=True)

    debug_mode = getattr(request.app.state, "debug", False)

    if debug_mode:
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "details": {
                    "exception": str(exc),
                    "type": exc.__class__.__name__,
                    "traceback": traceback.format_exc(),
                },
                "type": "InternalError",
            },
        )
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "details": {}, "type": "InternalError"},
    )


# Exception mapping for safe_endpoint decorator
# Maps exception types to (status_code, error_message, log_level, detail_builder)
EXCEPTION_MAPPING = {
    ValidationError: (400, "Validation failed", "warning", lambda e: {"details": e.errors()}),
    KeyError: (400, "Missing required field", "error", lambda e: {"field": str(e)}),
    ValueError: (400, "Invalid value", "error", lambda e: {"details": str(e)}),
    FileNotFoundError: (404, "File not found", "error", lambda e: {"details": str(e)}),
    PermissionError: (403, "Permission denied", "error", lambda e: {"details": str(e)}),
    TimeoutError: (504, "Operation timed out", "error", lambda e: {"details": str(e)}),
}


# Decorator for safe endpoint execution
def safe_endpoint(func):
    """
    Decorator to wrap endpoint functions with error handling.

    Domain exceptions and HTTPExceptions pass through to their handlers;
    exceptions listed in EXCEPTION_MAPPING become HTTPExceptions, anything
    else becomes a 500.
    """

    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            # Handle both sync and async functions
            if asyncio.iscoroutinefunction(func):
                return await func(*args, **kwargs)
            else:
                return func(*args, **kwargs)

        except (VisionLabException, HTTPException):
            # Re-raise custom exceptions (handled by exception handler)
            raise

        except Exception as e:
            exception_type = type(e)

            if exception_type in EXCEPTION_MAPPING:
                status_code, error_msg, log_level, detail_builder = EXCEPTION_MAPPING[
                    exception_type
                ]

                log_message = f"{exception_type.__name__} in {func.__name__}: {e}"
                if log_level == "warning":
                    logger.warning(log_message)
                else:
                    logger.error(log_message)

                detail = {"error": error_msg}
                detail.update(detail_builder(e))

                raise HTTPException(status_code=status_code, detail=detail)

            logger.error(f"Unexpected error in {func.__name__}: {e}", exc_info=True)
            raise HTTPException(
                status_code=500, detail={"error": "Internal server error", "details": str(e)}
            )

    return wrapper


# Helper function to register all exception handlers
def register_exception_handlers(app):
    """
    Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(VisionLabException, vision_lab_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.info("Exception handlers registered")
