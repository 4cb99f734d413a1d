"""
HueSort Configuration
Manages environment variables and defaults for the sorting service.
"""
import os
import re
from typing import Optional


def _optional_int(name: str) -> Optional[int]:
    value = os.environ.get(name, "").strip()
    return int(value) if value else None


class Config:
    """Configuration class for HueSort services."""
    
    # Upload limits
    MAX_FILE_MB: int = int(os.environ.get("HUESORT_MAX_FILE_MB", "25"))
    MAX_BATCH_FILES: int = int(os.environ.get("HUESORT_MAX_BATCH_FILES", "500"))
    
    # Sampling
    MAX_DIMENSION: int = int(os.environ.get("HUESORT_MAX_DIMENSION", "200"))
    ALPHA_THRESHOLD: int = int(os.environ.get("HUESORT_ALPHA_THRESHOLD", "128"))
    
    # Analysis defaults
    DEFAULT_STRATEGY: str = os.environ.get("HUESORT_DEFAULT_STRATEGY", "histogram")
    DEFAULT_TEMPLATE: str = os.environ.get("HUESORT_DEFAULT_TEMPLATE", "{index}_{basename}")
    KMEANS_SEED: Optional[int] = _optional_int("HUESORT_KMEANS_SEED")
    RENAME_NEUTRAL: bool = bool(int(os.environ.get("HUESORT_RENAME_NEUTRAL", "0")))
    
    # Batch fan-out
    MAX_CONCURRENCY: int = int(os.environ.get("HUESORT_MAX_CONCURRENCY", "8"))
    
    # Export
    GIF_MAX_EDGE: int = int(os.environ.get("HUESORT_GIF_MAX_EDGE", "1000"))
    GIF_FRAME_MS: int = int(os.environ.get("HUESORT_GIF_FRAME_MS", "500"))
    ZIP_FILENAME: str = os.environ.get("HUESORT_ZIP_FILENAME", "HueSorted_Images.zip")
    GIF_FILENAME: str = os.environ.get("HUESORT_GIF_FILENAME", "color-sorted-images.gif")
    
    # Logging
    LOG_LEVEL: str = os.environ.get("HUESORT_LOG_LEVEL", "INFO")
    
    # CORS settings
    ALLOWED_ORIGINS: str = os.environ.get("HUESORT_ALLOWED_ORIGINS", "http://localhost:3000")
    
    # Supported image formats
    SUPPORTED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp", ".tif", ".tiff"}
    STRATEGIES = ("histogram", "perceptual", "kmeans")
    
    @classmethod
    def validate_strategy(cls, strategy: str) -> bool:
        """Validate analysis strategy name."""
        return strategy in cls.STRATEGIES
    
    @classmethod
    def validate_template(cls, template: str) -> bool:
        """Validate filename template (non-empty, no path separators)."""
        return bool(template) and not re.search(r"[\\/]", template)
    
    @classmethod
    def validate_max_dimension(cls, max_dimension: int) -> bool:
        """Validate downsample cap."""
        return 16 <= max_dimension <= 1024
    
    @classmethod
    def validate_frame_duration(cls, duration_ms: int) -> bool:
        """Validate per-frame animation duration."""
        return 20 <= duration_ms <= 10000


# Global config instance
config = Config()
