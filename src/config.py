"""
Configuration management using Pydantic for Vision Lab.
Provides type-safe configuration with validation and environment variable support.
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from domain_types import (
    ImageConstants,
    MLConstants,
    PointCloudConstants,
    ShrinkageType,
    SystemConstants,
    TransformConstants,
    VisionConstants,
)

logger = logging.getLogger(__name__)


class ImageConfig(BaseSettings):
    """Image store configuration."""

    max_images: int = Field(
        default=ImageConstants.DEFAULT_MAX_IMAGES,
        ge=ImageConstants.MIN_IMAGES,
        le=ImageConstants.MAX_IMAGES,
        description="Maximum number of images to keep in memory",
    )
    max_memory_mb: int = Field(
        default=ImageConstants.DEFAULT_MAX_MEMORY_MB,
        ge=10,
        le=10000,
        description="Maximum memory for image storage in MB",
    )
    thumbnail_width: int = Field(
        default=ImageConstants.DEFAULT_THUMBNAIL_WIDTH,
        ge=ImageConstants.MIN_THUMBNAIL_WIDTH,
        le=ImageConstants.MAX_THUMBNAIL_WIDTH,
        description="Default thumbnail width in pixels",
    )
    thumbnail_quality: int = Field(
        default=ImageConstants.THUMBNAIL_JPEG_QUALITY,
        ge=1,
        le=100,
        description="JPEG quality for thumbnails",
    )

    model_config = SettingsConfigDict(env_prefix="VL_IMAGE_", extra="ignore")


class ProcessingConfig(BaseSettings):
    """Defaults for processing operations when a request leaves them out."""

    wavelet_levels: int = Field(
        default=TransformConstants.WAVELET_LEVELS_DEFAULT,
        ge=1,
        le=TransformConstants.WAVELET_LEVELS_MAX,
        description="Haar decomposition levels",
    )
    wavelet_threshold: float = Field(
        default=TransformConstants.WAVELET_DENOISE_THRESHOLD,
        ge=0.0,
        description="Shrinkage threshold for wavelet denoising",
    )
    wavelet_shrinkage: ShrinkageType = Field(
        default=ShrinkageType.GARROTE, description="Shrinkage rule for wavelet denoising"
    )
    canny_low_threshold: int = Field(
        default=VisionConstants.CANNY_LOW_THRESHOLD_DEFAULT,
        ge=0,
        le=VisionConstants.CANNY_THRESHOLD_MAX,
        description="Default Canny low threshold",
    )
    canny_high_threshold: int = Field(
        default=VisionConstants.CANNY_HIGH_THRESHOLD_DEFAULT,
        ge=0,
        le=VisionConstants.CANNY_THRESHOLD_MAX,
        description="Default Canny high threshold",
    )
    blur_size: int = Field(
        default=VisionConstants.BLUR_SIZE_DEFAULT,
        ge=VisionConstants.BLUR_SIZE_MIN,
        le=VisionConstants.BLUR_SIZE_MAX,
        description="Default smoothing kernel size",
    )
    ransac_iterations: int = Field(
        default=PointCloudConstants.RANSAC_MAX_ITERATIONS,
        ge=10,
        le=100000,
        description="Iterations for point cloud RANSAC fitting",
    )

    @field_validator("blur_size")
    @classmethod
    def validate_odd_number(cls, v):
        """Ensure kernel size is odd."""
        if v % 2 == 0:
            return v + 1
        return v

    model_config = SettingsConfigDict(env_prefix="VL_PROCESSING_", extra="ignore")


class MLConfig(BaseSettings):
    """Model files and thresholds for object detection."""

    yolo_config: Optional[str] = Field(default=None, description="Darknet .cfg path")
    yolo_weights: Optional[str] = Field(default=None, description="Darknet .weights path")
    yolo_names: Optional[str] = Field(default=None, description="Class names file, one per line")
    yolo_input_size: int = Field(
        default=MLConstants.YOLO_INPUT_SIZE, ge=32, le=1024, description="Network input size"
    )
    confidence_threshold: float = Field(
        default=MLConstants.YOLO_CONFIDENCE, ge=0.0, le=1.0, description="Detection confidence"
    )
    nms_threshold: float = Field(
        default=MLConstants.YOLO_NMS, ge=0.0, le=1.0, description="Non-maximum suppression"
    )

    @field_validator("yolo_input_size")
    @classmethod
    def validate_multiple_of_32(cls, v):
        """Darknet inputs must be a multiple of 32."""
        if v % 32 != 0:
            raise ValueError(f"Invalid YOLO input size: {v}. Must be a multiple of 32")
        return v

    @property
    def yolo_available(self) -> bool:
        """True when both network files are configured and present."""
        return bool(
            self.yolo_config
            and self.yolo_weights
            and Path(self.yolo_config).exists()
            and Path(self.yolo_weights).exists()
        )

    model_config = SettingsConfigDict(env_prefix="VL_ML_", extra="ignore")


class APIConfig(BaseSettings):
    """API configuration."""

    host: str = Field(default="0.0.0.0", description="API host address")
    port: int = Field(default=8000, ge=1, le=65535, description="API port")
    cors_enabled: bool = Field(default=True, description="Enable CORS")
    cors_origins: List[str] = Field(default=["*"], description="CORS allowed origins")

    model_config = SettingsConfigDict(env_prefix="VL_API_", extra="ignore")


class SystemConfig(BaseSettings):
    """System configuration."""

    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default=SystemConstants.LOG_LEVEL_DEFAULT, description="Logging level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    model_config = SettingsConfigDict(env_prefix="VL_SYSTEM_", extra="ignore")


class Settings(BaseSettings):
    """Main application settings."""

    # Sub-configurations
    image: ImageConfig = Field(default_factory=ImageConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    ml: MLConfig = Field(default_factory=MLConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    system: SystemConfig = Field(default_factory=SystemConfig)

    # Environment
    environment: str = Field(
        default="production", description="Environment (development, staging, production)"
    )

    # Config file support
    config_file: Optional[str] = Field(default=None, description="Path to YAML config file")

    @model_validator(mode="before")
    @classmethod
    def load_config_file(cls, values):
        """Load configuration from YAML file if specified."""
        if not isinstance(values, dict):
            return values

        config_file = values.get("config_file") or os.getenv("VL_CONFIG_FILE")

        if config_file and Path(config_file).exists():
            import yaml

            try:
                with open(config_file, "r") as f:
                    file_config = yaml.safe_load(f)
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config file {config_file}: {e}")
                return values

            if file_config:
                # Explicit values take precedence over the file
                for key, value in file_config.items():
                    if key not in values or values[key] is None:
                        values[key] = value

        return values

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment value."""
        valid_envs = ["development", "staging", "production", "test"]
        if v not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of {valid_envs}")
        return v

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        return self.model_dump(mode="json", exclude_none=True)

    def save_to_file(self, path: str) -> None:
        """Save current configuration to YAML file."""
        import yaml

        with open(path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False)

    model_config = SettingsConfigDict(
        env_prefix="VL_",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings object with validated configuration
    """
    return Settings()


def reload_settings() -> Settings:
    """
    Reload settings, clearing the cache.

    Returns:
        Fresh Settings object
    """
    get_settings.cache_clear()
    return get_settings()
