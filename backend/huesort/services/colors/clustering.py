"""
k-means dominant color strategy.

Clusters chromatic pixels in RGB space and reports the centroid of the most
populated cluster. Centroids are seeded by uniform random sampling, so the
result is only reproducible when the caller fixes the random source.
"""

from typing import Tuple

import numpy as np
from loguru import logger
from sklearn.metrics import pairwise_distances_argmin

from huesort.models import ClusterKMeans, ColorSignature
from huesort.services.colors.colorspace import rgb_to_hsv, rgb_to_lch
from huesort.services.colors.utils import (
    achromatic_signature, pixel_lch, rgb_to_hex, round_rgb, signature_from_lch
)
from huesort.services.imaging import PixelBuffer


def lloyd_kmeans(points: np.ndarray, k: int, iterations: int,
                 rng: np.random.Generator) -> Tuple[np.ndarray, np.ndarray]:
    """
    Run a fixed number of Lloyd iterations.

    Args:
        points: (N, 3) float64 RGB points, N >= k
        k: Number of clusters
        iterations: Exact number of assign/update rounds
        rng: Random source for centroid seeding

    Returns:
        Tuple of (centroids (k, 3), labels (N,)) where labels are the
        assignment the final centroids were computed from
    """
    seeds = rng.choice(points.shape[0], size=k, replace=False)
    centroids = points[seeds].copy()
    labels = np.zeros(points.shape[0], dtype=np.int64)

    for _ in range(iterations):
        labels = pairwise_distances_argmin(points, centroids)
        for j in range(k):
            members = points[labels == j]
            # Empty clusters keep their previous centroid
            if members.shape[0]:
                centroids[j] = members.mean(axis=0)

    return centroids, labels


def _signature_for_rgb(rgb: np.ndarray, color_space: str, confidence: float) -> ColorSignature:
    r, g, b = (int(v) for v in round_rgb(rgb))
    if color_space == "hsv":
        h, s, v = rgb_to_hsv(r, g, b)
        if s == 0:
            return ColorSignature.neutral(lightness=v, confidence=confidence)
        return ColorSignature(hue=h, chroma=s, lightness=v, confidence=min(1.0, confidence))
    return signature_from_lch(*rgb_to_lch(r, g, b), confidence)


def extract_kmeans(pixels: PixelBuffer, strategy: ClusterKMeans,
                   rng: np.random.Generator) -> ColorSignature:
    """
    Dominant color as the centroid of the largest k-means cluster.

    Falls back to the plain RGB mean when fewer chromatic pixels than
    clusters remain, and to the achromatic signature when none remain.
    """
    lch = pixel_lch(pixels)
    qualifying = lch[:, 1] > strategy.min_chroma
    points = pixels.rgb[qualifying].astype(np.float64)
    n_points = points.shape[0]

    if n_points == 0:
        logger.debug("k-means: no chromatic pixels, using achromatic fallback")
        return achromatic_signature(pixels)

    if n_points < strategy.k:
        logger.debug(f"k-means: only {n_points} chromatic pixels for k={strategy.k}, averaging")
        return _signature_for_rgb(points.mean(axis=0), strategy.color_space, n_points / pixels.count)

    centroids, labels = lloyd_kmeans(points, strategy.k, strategy.iterations, rng)
    counts = np.bincount(labels, minlength=strategy.k)
    largest = int(np.argmax(counts))

    logger.debug(
        f"k-means: cluster sizes {counts.tolist()}, dominant "
        f"{rgb_to_hex(round_rgb(centroids[largest]))}"
    )
    return _signature_for_rgb(
        centroids[largest], strategy.color_space, 2.0 * counts[largest] / n_points
    )
