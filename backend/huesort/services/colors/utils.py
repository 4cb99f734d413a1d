"""
Shared helpers for the dominant color strategies.
"""

import numpy as np

from huesort.models import ColorSignature
from huesort.services.colors.colorspace import rgb_to_hsv_array, rgb_to_lch_array
from huesort.services.imaging import PixelBuffer

# Fallback lightness when there is no opaque pixel at all
DEFAULT_LIGHTNESS = 0.5
ACHROMATIC_CONFIDENCE = 0.1


def rgb_to_hex(rgb) -> str:
    """Convert an RGB triple to a hex color string."""
    r, g, b = [int(x) for x in rgb]
    return f"#{r:02X}{g:02X}{b:02X}"


def hue_bins(hues: np.ndarray, bin_count: int) -> np.ndarray:
    """Index of the equal-width hue bin for each hue in degrees."""
    bin_width = 360.0 / bin_count
    return np.minimum((hues // bin_width).astype(np.int64), bin_count - 1)


def round_rgb(rgb: np.ndarray) -> np.ndarray:
    """Round float RGB to the nearest 8-bit value, halves rounding up."""
    return np.clip(np.floor(np.asarray(rgb, dtype=np.float64) + 0.5), 0, 255).astype(np.int64)


def signature_from_lch(l: float, c: float, h: float, confidence: float) -> ColorSignature:
    """Normalize Lab-unit LCh (L 0-100, C ~0-140) into a signature."""
    lightness = float(min(max(l / 100.0, 0.0), 1.0))
    if c <= 0:
        return ColorSignature.neutral(lightness=lightness, confidence=confidence)
    return ColorSignature(
        hue=float(h),
        chroma=float(min(c / 100.0, 1.0)),
        lightness=lightness,
        confidence=float(min(max(confidence, 0.0), 1.0)),
    )


def mean_value_lightness(pixels: PixelBuffer) -> float:
    """Mean HSV value over all opaque pixels, used as a lightness proxy."""
    if pixels.is_empty:
        return DEFAULT_LIGHTNESS
    return float(rgb_to_hsv_array(pixels.rgb)[:, 2].mean())


def mean_lab_lightness(lch: np.ndarray) -> float:
    """Mean Lab lightness over opaque pixels, normalized to [0, 1]."""
    if lch.shape[0] == 0:
        return DEFAULT_LIGHTNESS
    return float(lch[:, 0].mean() / 100.0)


def pixel_lch(pixels: PixelBuffer) -> np.ndarray:
    """LCh of every opaque pixel, (N, 3)."""
    if pixels.is_empty:
        return np.zeros((0, 3), dtype=np.float64)
    return rgb_to_lch_array(pixels.rgb)


def achromatic_signature(pixels: PixelBuffer) -> ColorSignature:
    """Neutral signature for images with no pixel above the chroma threshold."""
    return ColorSignature.neutral(
        lightness=mean_value_lightness(pixels),
        confidence=ACHROMATIC_CONFIDENCE,
    )
