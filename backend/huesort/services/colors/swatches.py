"""
Swatch Rendering Module

Visual helpers for UI collaborators: signature display colors, a gradient
strip of a sorted batch, and the hue distribution histogram data.
"""

import base64
from typing import Any, Dict, List, Optional, Sequence, Tuple

import cv2
import numpy as np
from loguru import logger

from huesort.models import ColorSignature, ImageRecord
from huesort.services.colors.colorspace import lch_to_rgb
from huesort.services.colors.utils import rgb_to_hex

# 15 degrees per bin
DISTRIBUTION_BINS = 24


def signature_to_rgb(signature: ColorSignature) -> Tuple[int, int, int]:
    """Displayable sRGB color of a signature; neutral signatures render gray."""
    lightness = signature.lightness * 100.0
    if signature.is_neutral:
        return lch_to_rgb(lightness, 0.0, 0.0)
    return lch_to_rgb(lightness, signature.chroma * 100.0, signature.hue)


def signature_to_hex(signature: ColorSignature) -> str:
    return rgb_to_hex(signature_to_rgb(signature))


def render_swatch_strip(signatures: Sequence[ColorSignature],
                        chip_size: int = 40,
                        highlight_index: Optional[int] = None,
                        border_color: Tuple[int, int, int] = (0, 0, 0),
                        border_width: int = 2) -> str:
    """
    Render a horizontal strip of signature colors, in the given order.

    Args:
        signatures: Signatures to render left to right
        chip_size: Size of each color chip in pixels
        highlight_index: Index of a chip to outline
        border_color: BGR color for highlight border
        border_width: Width of highlight border in pixels

    Returns:
        Base64-encoded PNG image string
    """
    validate_swatch_params(signatures, chip_size, highlight_index)

    k = len(signatures)
    img = np.zeros((chip_size, chip_size * k, 3), dtype=np.uint8)

    for i, signature in enumerate(signatures):
        r, g, b = signature_to_rgb(signature)
        img[:, i * chip_size:(i + 1) * chip_size, :] = (b, g, r)  # BGR for OpenCV

    if highlight_index is not None:
        x_start = highlight_index * chip_size
        cv2.rectangle(
            img,
            (x_start, 0),
            (x_start + chip_size - 1, chip_size - 1),
            border_color,
            border_width
        )

    success, buffer = cv2.imencode('.png', img)
    if not success:
        raise RuntimeError("Failed to encode swatch strip as PNG")

    b64_string = base64.b64encode(buffer.tobytes()).decode('ascii')
    logger.debug(f"Encoded swatch strip: {k} chips -> {len(b64_string)} chars")
    return b64_string


def validate_swatch_params(signatures: Sequence[ColorSignature], chip_size: int,
                           highlight_index: Optional[int]) -> None:
    """Validate swatch rendering parameters."""
    if not signatures:
        raise ValueError("signatures cannot be empty")

    if chip_size <= 0:
        raise ValueError("chip_size must be positive")

    if highlight_index is not None and not 0 <= highlight_index < len(signatures):
        raise ValueError(f"highlight_index {highlight_index} out of range [0, {len(signatures)})")


def hue_distribution(records: Sequence[ImageRecord], bins: int = DISTRIBUTION_BINS) -> List[Dict[str, Any]]:
    """
    Count chromatic signatures per hue bin for the distribution chart.

    Neutral and failed records are not counted.

    Returns:
        One entry per bin: label (bin start), center hue and count
    """
    bin_width = 360.0 / bins
    counts = [0] * bins
    for record in records:
        signature = record.signature
        if signature is None or signature.is_neutral or signature.chroma <= 0:
            continue
        counts[min(int(signature.hue // bin_width), bins - 1)] += 1

    return [
        {
            "label": f"{i * bin_width:g}°",
            "hue": i * bin_width + bin_width / 2,
            "count": count,
        }
        for i, count in enumerate(counts)
    ]
