"""
Color Space Conversions

Pure sRGB -> HSV and sRGB -> CIE Lab -> LCh conversions. Each conversion has a
scalar form for single colors and a vectorized numpy form for pixel buffers;
both follow the same sRGB/D65 constants so results agree to double precision.
"""

import math
from typing import Tuple

import numpy as np

# D65 reference white (XYZ scaled to Y=100)
REF_X = 95.047
REF_Y = 100.0
REF_Z = 108.883

# sRGB primaries, linear RGB -> XYZ
_RGB_TO_XYZ = np.array([
    [0.4124, 0.3576, 0.1805],
    [0.2126, 0.7152, 0.0722],
    [0.0193, 0.1192, 0.9505],
])
_XYZ_TO_RGB = np.array([
    [3.2406, -1.5372, -0.4986],
    [-0.9689, 1.8758, 0.0415],
    [0.0557, -0.2040, 1.0570],
])

_LAB_EPSILON = 0.008856
_LAB_SLOPE = 7.787
_LAB_OFFSET = 16.0 / 116.0


def rgb_to_hsv(r: int, g: int, b: int) -> Tuple[float, float, float]:
    """
    Convert 8-bit RGB to HSV.

    Returns:
        (h in [0, 360), s in [0, 1], v in [0, 1]); h is 0 when s is 0
    """
    r, g, b = r / 255.0, g / 255.0, b / 255.0
    cmax = max(r, g, b)
    cmin = min(r, g, b)
    delta = cmax - cmin

    s = 0.0 if cmax == 0 else delta / cmax
    h = 0.0
    if delta != 0:
        if cmax == r:
            h = (g - b) / delta + (6.0 if g < b else 0.0)
        elif cmax == g:
            h = (b - r) / delta + 2.0
        else:
            h = (r - g) / delta + 4.0
        h /= 6.0
    return (h * 360.0) % 360.0, s, cmax


def _linearize(channel: float) -> float:
    c = channel / 255.0
    return ((c + 0.055) / 1.055) ** 2.4 if c > 0.04045 else c / 12.92


def _lab_f(t: float) -> float:
    return t ** (1.0 / 3.0) if t > _LAB_EPSILON else _LAB_SLOPE * t + _LAB_OFFSET


def rgb_to_lab(r: int, g: int, b: int) -> Tuple[float, float, float]:
    """Convert 8-bit sRGB to CIE Lab (D65), L in [0, 100]."""
    lr, lg, lb = _linearize(r), _linearize(g), _linearize(b)

    x = (lr * 0.4124 + lg * 0.3576 + lb * 0.1805) * 100.0
    y = (lr * 0.2126 + lg * 0.7152 + lb * 0.0722) * 100.0
    z = (lr * 0.0193 + lg * 0.1192 + lb * 0.9505) * 100.0

    fx = _lab_f(x / REF_X)
    fy = _lab_f(y / REF_Y)
    fz = _lab_f(z / REF_Z)

    return 116.0 * fy - 16.0, 500.0 * (fx - fy), 200.0 * (fy - fz)


def lab_to_lch(l: float, a: float, b: float) -> Tuple[float, float, float]:
    """Convert Lab to cylindrical LCh with hue in degrees [0, 360)."""
    c = math.sqrt(a * a + b * b)
    h = math.degrees(math.atan2(b, a))
    if h < 0:
        h += 360.0
    return l, c, h % 360.0


def rgb_to_lch(r: int, g: int, b: int) -> Tuple[float, float, float]:
    return lab_to_lch(*rgb_to_lab(r, g, b))


# ============================================================================
# VECTORIZED FORMS
# ============================================================================

def rgb_to_hsv_array(rgb: np.ndarray) -> np.ndarray:
    """Convert (N, 3) uint8 RGB to (N, 3) float64 HSV (h degrees, s, v in [0, 1])."""
    rgb_norm = rgb.astype(np.float64) / 255.0
    r, g, b = rgb_norm[:, 0], rgb_norm[:, 1], rgb_norm[:, 2]
    cmax = rgb_norm.max(axis=1)
    cmin = rgb_norm.min(axis=1)
    diff = cmax - cmin

    hue = np.zeros_like(cmax)
    mask = diff != 0
    safe_diff = np.where(mask, diff, 1.0)

    # Same precedence as the scalar form: red, then green, then blue
    rmax = mask & (cmax == r)
    gmax = mask & (cmax == g) & ~rmax
    bmax = mask & ~rmax & ~gmax
    hue[rmax] = ((g - b)[rmax] / safe_diff[rmax] + np.where((g < b)[rmax], 6.0, 0.0))
    hue[gmax] = (b - r)[gmax] / safe_diff[gmax] + 2.0
    hue[bmax] = (r - g)[bmax] / safe_diff[bmax] + 4.0
    hue = (hue / 6.0 * 360.0) % 360.0

    sat = np.where(cmax > 0, diff / np.where(cmax > 0, cmax, 1.0), 0.0)
    return np.column_stack([hue, sat, cmax])


def rgb_to_lab_array(rgb: np.ndarray) -> np.ndarray:
    """Convert (N, 3) uint8 RGB to (N, 3) float64 Lab."""
    rgb_norm = rgb.astype(np.float64) / 255.0
    linear = np.where(rgb_norm > 0.04045, ((rgb_norm + 0.055) / 1.055) ** 2.4, rgb_norm / 12.92)

    xyz = linear @ _RGB_TO_XYZ.T * 100.0
    xyz = xyz / np.array([REF_X, REF_Y, REF_Z])

    f = np.where(xyz > _LAB_EPSILON, np.cbrt(xyz), _LAB_SLOPE * xyz + _LAB_OFFSET)
    fx, fy, fz = f[:, 0], f[:, 1], f[:, 2]

    return np.column_stack([116.0 * fy - 16.0, 500.0 * (fx - fy), 200.0 * (fy - fz)])


def lab_to_lch_array(lab: np.ndarray) -> np.ndarray:
    """Convert (N, 3) Lab to (N, 3) LCh, hue in degrees [0, 360)."""
    a, b = lab[:, 1], lab[:, 2]
    c = np.hypot(a, b)
    h = np.degrees(np.arctan2(b, a)) % 360.0
    return np.column_stack([lab[:, 0], c, h])


def rgb_to_lch_array(rgb: np.ndarray) -> np.ndarray:
    return lab_to_lch_array(rgb_to_lab_array(rgb))


# ============================================================================
# INVERSE (swatch rendering)
# ============================================================================

def lch_to_rgb(l: float, c: float, h: float) -> Tuple[int, int, int]:
    """Convert LCh back to 8-bit sRGB, clipping out-of-gamut values."""
    a = c * math.cos(math.radians(h))
    b = c * math.sin(math.radians(h))

    fy = (l + 16.0) / 116.0
    fx = a / 500.0 + fy
    fz = fy - b / 200.0

    def _finv(t: float) -> float:
        return t ** 3 if t ** 3 > _LAB_EPSILON else (t - _LAB_OFFSET) / _LAB_SLOPE

    xyz = np.array([_finv(fx) * REF_X, _finv(fy) * REF_Y, _finv(fz) * REF_Z]) / 100.0
    linear = _XYZ_TO_RGB @ xyz
    linear = np.clip(linear, 0.0, 1.0)
    srgb = np.where(linear > 0.0031308, 1.055 * np.power(linear, 1 / 2.4) - 0.055, 12.92 * linear)
    r, g, b_out = (int(round(v)) for v in np.clip(srgb * 255.0, 0, 255))
    return r, g, b_out
