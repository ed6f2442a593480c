"""
Core modules for Vision Lab
"""

from .image_manager import ImageManager

__all__ = [
    "ImageManager",
]
