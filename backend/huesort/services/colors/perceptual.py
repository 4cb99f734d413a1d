"""
Perceptually weighted dominant color strategy.

Each opaque pixel contributes to a hue histogram with weight

    neutrality_mask x center_weight x lightness_weight x chroma^2

so saturated, mid-tone, center-of-frame pixels dominate while gray
backgrounds and near-black/near-white noise fade out. Images that are mostly
gray are classified neutral unless a small, vivid accent ("pop color") carries
enough of the weight.
"""

import numpy as np
from loguru import logger

from huesort.models import ColorSignature, PerceptualWeighted
from huesort.services.colors.colorspace import lab_to_lch, rgb_to_lab_array, lab_to_lch_array
from huesort.services.colors.utils import hue_bins, mean_lab_lightness, signature_from_lch
from huesort.services.imaging import PixelBuffer

NEUTRAL_CONFIDENCE = 0.2


def neutrality_mask(chroma: np.ndarray, low: float = 7.0, high: float = 15.0) -> np.ndarray:
    """Soft ramp from 0 (gray) to 1 (chromatic) between ``low`` and ``high`` chroma."""
    return np.clip((chroma - low) / (high - low), 0.0, 1.0)


def center_weight(positions: np.ndarray, sigma_sq: float = 0.5) -> np.ndarray:
    """Gaussian falloff by distance from the image center (normalized units)."""
    dist_sq = np.sum(positions ** 2, axis=1)
    return np.exp(-dist_sq / (2.0 * sigma_sq))


def lightness_weight(lightness: np.ndarray) -> np.ndarray:
    """Favor mid-tones: 1.0 at L=0.5, 0.7 at pure black or white."""
    return 0.7 + 0.3 * (1.0 - np.abs(lightness - 0.5) / 0.5)


def smooth_circular(histogram: np.ndarray, kernel=(0.25, 0.5, 0.25)) -> np.ndarray:
    """Convolve a hue histogram with a 3-tap kernel that wraps at 0/360."""
    left, center, right = kernel
    return left * np.roll(histogram, 1) + center * histogram + right * np.roll(histogram, -1)


def extract_perceptual(pixels: PixelBuffer, strategy: PerceptualWeighted) -> ColorSignature:
    """
    Weighted histogram extraction with neutral classification.

    Args:
        pixels: Alpha-filtered pixel buffer
        strategy: Thresholds and weights for this strategy

    Returns:
        Signature from the weighted (a, b, L) centroid of the dominant bin,
        or a neutral signature
    """
    opaque_pixels = pixels.count
    if opaque_pixels == 0:
        logger.debug("Perceptual: no opaque pixels")
        return ColorSignature.neutral(lightness=0.5, confidence=NEUTRAL_CONFIDENCE)

    lab = rgb_to_lab_array(pixels.rgb)
    lch = lab_to_lch_array(lab)
    chroma = lch[:, 1]
    mean_lightness = mean_lab_lightness(lch)

    # 1) Neutral pixels are only counted
    mask = neutrality_mask(chroma, strategy.neutral_low, strategy.neutral_high)
    is_neutral = mask < strategy.neutral_mask_floor
    neutral_weight = int(is_neutral.sum())
    neutral_ratio = neutral_weight / opaque_pixels

    keep = ~is_neutral
    if not np.any(keep):
        logger.debug("Perceptual: every pixel is near-gray")
        return ColorSignature.neutral(lightness=mean_lightness, confidence=NEUTRAL_CONFIDENCE)

    # 2) Composite weight for the remaining pixels
    lab_kept = lab[keep]
    chroma_kept = chroma[keep]
    weights = (
        mask[keep]
        * center_weight(pixels.positions[keep], strategy.center_sigma_sq)
        * lightness_weight(lab_kept[:, 0] / 100.0)
        * chroma_kept ** 2
    )

    # 3) Weighted hue histogram
    bins = hue_bins(lch[keep, 2], strategy.bin_count)
    bin_weight = np.bincount(bins, weights=weights, minlength=strategy.bin_count)
    total_weight = float(bin_weight.sum())
    if total_weight <= 0:
        return ColorSignature.neutral(lightness=mean_lightness, confidence=NEUTRAL_CONFIDENCE)

    # 4) Smooth, then pick the heaviest bin that actually holds pixels
    smoothed = smooth_circular(bin_weight, strategy.smoothing)
    smoothed = np.where(bin_weight > 0, smoothed, -np.inf)
    dominant = int(np.argmax(smoothed))

    in_bin = bins == dominant
    dominant_share = float(bin_weight[dominant] / total_weight)
    dominant_chroma = float(chroma_kept[in_bin].mean())

    # 5) Neutral classification with pop-color override
    pop_color = dominant_share > strategy.pop_share and dominant_chroma > strategy.pop_chroma
    if neutral_ratio > strategy.neutral_ratio and not pop_color:
        logger.debug(
            f"Perceptual: neutral ({neutral_ratio:.0%} near-gray, "
            f"bin {dominant} share={dominant_share:.2f} chroma={dominant_chroma:.1f})"
        )
        return ColorSignature.neutral(lightness=mean_lightness, confidence=NEUTRAL_CONFIDENCE)
    if pop_color and neutral_ratio > strategy.neutral_ratio:
        logger.debug(f"Perceptual: pop color override in bin {dominant} (chroma={dominant_chroma:.1f})")

    # 6) Weighted centroid of the dominant bin
    w = weights[in_bin]
    centroid_l, centroid_a, centroid_b = (lab_kept[in_bin] * w[:, None]).sum(axis=0) / w.sum()
    l, c, h = lab_to_lch(centroid_l, centroid_a, centroid_b)

    return signature_from_lch(l, c, h, min(1.0, 2.0 * dominant_share))
