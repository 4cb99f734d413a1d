"""
Dominant color extraction service.

Turns a sampled pixel buffer into a single ColorSignature. Three strategies
share the sampling and color space stages:

- HistogramMath: chroma-scored 20 degree hue bins (fast baseline)
- PerceptualWeighted: center/lightness/chroma weighted bins with a neutral
  classifier and pop-color override (see ``perceptual.py``)
- ClusterKMeans: Lloyd clustering in RGB space (see ``clustering.py``)

Extraction never fails: an image without chromatic evidence is classified
neutral instead.
"""

import time
from typing import Optional

import numpy as np
from loguru import logger

from huesort.models import (
    ClusterKMeans, ColorSignature, HistogramMath, PerceptualWeighted, PipelineConfig
)
from huesort.services.colors.clustering import extract_kmeans
from huesort.services.colors.colorspace import rgb_to_lch
from huesort.services.colors.perceptual import extract_perceptual
from huesort.services.colors.utils import (
    achromatic_signature, hue_bins, pixel_lch, round_rgb, signature_from_lch
)
from huesort.services.imaging import PixelBuffer


def extract_histogram(pixels: PixelBuffer, strategy: HistogramMath) -> ColorSignature:
    """
    Pick the hue bin with the highest count x mean chroma score.

    The reported color is the mean RGB of the winning bin converted back to
    LCh, which avoids averaging hue angles across the 0/360 seam.
    """
    lch = pixel_lch(pixels)
    qualifying = lch[:, 1] > strategy.min_chroma
    total_qualifying = int(qualifying.sum())

    if total_qualifying == 0:
        logger.debug("No chromatic pixels, using achromatic fallback")
        return achromatic_signature(pixels)

    chroma = lch[qualifying, 1]
    bins = hue_bins(lch[qualifying, 2], strategy.bin_count)

    counts = np.bincount(bins, minlength=strategy.bin_count)
    chroma_sums = np.bincount(bins, weights=chroma, minlength=strategy.bin_count)
    mean_chroma = np.divide(chroma_sums, counts, out=np.zeros_like(chroma_sums), where=counts > 0)
    scores = counts * mean_chroma

    dominant = int(np.argmax(scores))
    in_bin = bins == dominant
    bin_count = int(counts[dominant])

    avg_rgb = round_rgb(pixels.rgb[qualifying][in_bin].mean(axis=0))
    l, c, h = rgb_to_lch(*avg_rgb)
    confidence = min(1.0, 2.0 * bin_count / total_qualifying)

    logger.debug(
        f"Histogram: bin {dominant} holds {bin_count}/{total_qualifying} chromatic pixels, "
        f"avg RGB {tuple(int(v) for v in avg_rgb)}"
    )
    return signature_from_lch(l, c, h, confidence)


def extract(pixels: PixelBuffer, config: Optional[PipelineConfig] = None,
            rng: Optional[np.random.Generator] = None) -> ColorSignature:
    """
    Compute the dominant color signature of a pixel buffer.

    Args:
        pixels: Alpha-filtered pixels from the sampler
        config: Pipeline configuration carrying the selected strategy
        rng: Random source for ClusterKMeans seeding; defaults to one seeded
            from the strategy's ``seed`` (unseeded when that is None)

    Returns:
        ColorSignature; neutral when no chromatic evidence exists
    """
    if config is None:
        config = PipelineConfig()
    strategy = config.strategy

    start_time = time.time()
    if isinstance(strategy, HistogramMath):
        signature = extract_histogram(pixels, strategy)
    elif isinstance(strategy, PerceptualWeighted):
        signature = extract_perceptual(pixels, strategy)
    elif isinstance(strategy, ClusterKMeans):
        if rng is None:
            rng = np.random.default_rng(strategy.seed)
        signature = extract_kmeans(pixels, strategy, rng)
    else:
        raise TypeError(f"Unknown analysis strategy: {strategy!r}")

    duration_ms = (time.time() - start_time) * 1000
    logger.debug(
        f"Extracted {strategy.name.value} signature hue={signature.hue:.1f} "
        f"chroma={signature.chroma:.3f} in {duration_ms:.1f}ms"
    )
    return signature
