"""
HueSort Imaging Utilities
Decodes raster images, bounds their size and yields alpha-filtered pixel buffers.
"""
import io
from dataclasses import dataclass
from typing import Tuple

import cv2
import numpy as np
from loguru import logger
from PIL import Image, ImageOps, UnidentifiedImageError

from huesort.config import config
from huesort.exceptions import DecodeError, UnsupportedContext


@dataclass(frozen=True)
class PixelBuffer:
    """
    Opaque pixels of a downsampled image.

    Attributes:
        rgb: (N, 3) uint8 colors of pixels whose alpha passed the threshold
        positions: (N, 2) float64 pixel-center offsets from the image center,
            normalized so the image spans [-1, 1] on both axes
        width: Sampled image width in pixels
        height: Sampled image height in pixels
    """
    rgb: np.ndarray
    positions: np.ndarray
    width: int
    height: int

    @property
    def count(self) -> int:
        return int(self.rgb.shape[0])

    @property
    def total_pixels(self) -> int:
        return self.width * self.height

    @property
    def is_empty(self) -> bool:
        return self.count == 0

    @classmethod
    def from_rgba(cls, rgba: np.ndarray, alpha_threshold: int = 128) -> "PixelBuffer":
        """
        Build a buffer from an (H, W, 4) uint8 array, dropping pixels whose
        alpha is below ``alpha_threshold``.
        """
        if rgba.ndim != 3 or rgba.shape[2] != 4:
            raise ValueError(f"Expected (H, W, 4) RGBA array, got shape {rgba.shape}")

        height, width = rgba.shape[:2]
        xs = ((np.arange(width) + 0.5) / width - 0.5) * 2.0
        ys = ((np.arange(height) + 0.5) / height - 0.5) * 2.0
        grid_x, grid_y = np.meshgrid(xs, ys)

        keep = rgba[:, :, 3] >= alpha_threshold
        rgb = np.ascontiguousarray(rgba[:, :, :3][keep], dtype=np.uint8)
        positions = np.column_stack([grid_x[keep], grid_y[keep]])
        return cls(rgb=rgb, positions=positions, width=width, height=height)


def decode_image(image_bytes: bytes) -> Image.Image:
    """
    Decode raw bytes to an upright PIL image.

    Raises:
        DecodeError: If the bytes are not a supported raster format
    """
    if not image_bytes:
        raise DecodeError("Empty file")

    try:
        image = Image.open(io.BytesIO(image_bytes))
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError) as e:
        raise DecodeError(f"Unsupported image format: {e}")
    except (OSError, ValueError, SyntaxError) as e:
        raise DecodeError(f"Failed to decode image: {e}")

    # Respect camera orientation so center weighting sees the upright image
    try:
        image = ImageOps.exif_transpose(image)
    except (OSError, ValueError) as e:
        logger.debug(f"Ignoring unreadable EXIF orientation: {e}")

    return image


def target_dimensions(width: int, height: int, max_edge: int) -> Tuple[int, int]:
    """Aspect-preserving size whose longer edge is at most ``max_edge``."""
    if width >= height:
        if width > max_edge:
            return max_edge, max(1, round(height * max_edge / width))
    elif height > max_edge:
        return max(1, round(width * max_edge / height)), max_edge
    return width, height


def resize_long_edge(img_rgba: np.ndarray, max_edge: int = None) -> np.ndarray:
    """
    Resize image so the longest edge is at most max_edge pixels.

    Args:
        img_rgba: Input image as (H, W, 4) uint8
        max_edge: Maximum edge size (default from config)

    Returns:
        Resized image

    Raises:
        UnsupportedContext: If the resize surface could not be allocated
    """
    if max_edge is None:
        max_edge = config.MAX_DIMENSION

    height, width = img_rgba.shape[:2]
    new_width, new_height = target_dimensions(width, height, max_edge)
    if (new_width, new_height) == (width, height):
        return img_rgba

    try:
        # INTER_AREA averages source pixels, the right filter for downscaling
        return cv2.resize(img_rgba, (new_width, new_height), interpolation=cv2.INTER_AREA)
    except (cv2.error, MemoryError) as e:
        raise UnsupportedContext(f"Could not allocate {new_width}x{new_height} sampling surface: {e}")


def sample(image_bytes: bytes, max_dimension: int = None, alpha_threshold: int = None) -> PixelBuffer:
    """
    Decode, downsample and alpha-filter an image.

    Args:
        image_bytes: Raw file bytes
        max_dimension: Longest edge after downsampling (default from config)
        alpha_threshold: Pixels with alpha below this are dropped (default from config)

    Returns:
        PixelBuffer; empty (not an error) when every pixel is transparent

    Raises:
        DecodeError: For unreadable or unsupported files
        UnsupportedContext: When the sampling surface cannot be allocated
    """
    if max_dimension is None:
        max_dimension = config.MAX_DIMENSION
    if alpha_threshold is None:
        alpha_threshold = config.ALPHA_THRESHOLD

    image = decode_image(image_bytes)
    source_size = image.size

    try:
        rgba = np.array(image.convert("RGBA"), dtype=np.uint8)
    except (OSError, ValueError) as e:
        raise DecodeError(f"Failed to convert image to RGBA: {e}")
    except MemoryError as e:
        raise UnsupportedContext(f"Could not allocate decode surface: {e}")
    finally:
        image.close()

    rgba = resize_long_edge(rgba, max_dimension)
    buffer = PixelBuffer.from_rgba(rgba, alpha_threshold)

    logger.debug(
        f"Sampled {source_size[0]}x{source_size[1]} -> {buffer.width}x{buffer.height}, "
        f"{buffer.count}/{buffer.total_pixels} opaque pixels"
    )
    return buffer
