"""
Unit tests for dominant color extraction.

Tests the three extraction strategies over synthetic pixel buffers:
- histogram binning with chroma scoring
- perceptual weighting with neutral classification and pop-color override
- k-means clustering with injected seeds
"""

import numpy as np
import pytest

from huesort.models import (
    NEUTRAL_HUE, ClusterKMeans, HistogramMath, PerceptualWeighted, PipelineConfig
)
from huesort.services.colors.clustering import extract_kmeans, lloyd_kmeans
from huesort.services.colors.colorspace import rgb_to_lch
from huesort.services.colors.extraction import extract, extract_histogram
from huesort.services.colors.perceptual import (
    center_weight, extract_perceptual, lightness_weight, neutrality_mask, smooth_circular
)
from huesort.services.colors.utils import hue_bins, rgb_to_hex, round_rgb
from huesort.services.imaging import PixelBuffer

RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)
GRAY = (128, 128, 128)

ALL_STRATEGIES = [HistogramMath(), PerceptualWeighted(), ClusterKMeans(seed=3)]


def solid(color, size=(20, 20)) -> PixelBuffer:
    rgba = np.zeros((size[1], size[0], 4), dtype=np.uint8)
    rgba[:, :] = (*color, 255)
    return PixelBuffer.from_rgba(rgba)


def mixture(colors_and_counts, width=20) -> PixelBuffer:
    """Buffer holding the given colors in the given proportions, row-major."""
    flat = []
    for color, count in colors_and_counts:
        flat.extend([(*color, 255)] * count)
    height = len(flat) // width
    rgba = np.array(flat[:width * height], dtype=np.uint8).reshape(height, width, 4)
    return PixelBuffer.from_rgba(rgba)


def red_with_hue(lo: float, hi: float):
    """A vivid (255, 0, b) color whose LCh hue falls in [lo, hi)."""
    for b in range(256):
        if lo <= rgb_to_lch(255, 0, b)[2] < hi:
            return 255, 0, b
    raise AssertionError(f"no (255, 0, b) color with hue in [{lo}, {hi})")


class TestUtils:
    """Test shared helpers"""

    def test_rgb_to_hex(self):
        assert rgb_to_hex(np.array([255, 0, 0])) == "#FF0000"
        assert rgb_to_hex(np.array([31, 78, 121])) == "#1F4E79"

    def test_round_rgb_half_up(self):
        np.testing.assert_array_equal(round_rgb([0.5, 1.5, 254.49]), [1, 2, 254])

    def test_hue_bins_edges(self):
        bins = hue_bins(np.array([0.0, 19.999, 20.0, 359.999]), 18)
        np.testing.assert_array_equal(bins, [0, 0, 1, 17])


class TestHistogramMath:
    """Test the baseline histogram strategy"""

    def test_solid_red(self):
        signature = extract_histogram(solid(RED), HistogramMath())
        assert 35 < signature.hue < 45
        assert signature.chroma == pytest.approx(1.0)
        assert signature.lightness == pytest.approx(0.532, abs=0.01)
        assert signature.confidence == pytest.approx(1.0)

    def test_gray_is_neutral(self):
        signature = extract_histogram(solid(GRAY), HistogramMath())
        assert signature.is_neutral
        assert signature.hue == NEUTRAL_HUE
        assert signature.chroma == 0.0
        assert signature.lightness == pytest.approx(128 / 255)
        assert signature.confidence == pytest.approx(0.1)

    def test_empty_buffer_is_neutral(self):
        empty = PixelBuffer.from_rgba(np.zeros((8, 8, 4), dtype=np.uint8))
        signature = extract_histogram(empty, HistogramMath())
        assert signature.is_neutral
        assert signature.lightness == pytest.approx(0.5)

    def test_majority_color_wins(self):
        pixels = mixture([(BLUE, 280), (RED, 120)])
        signature = extract_histogram(pixels, HistogramMath())
        assert 290 < signature.hue < 320
        # 280 of 400 chromatic pixels, doubled and capped
        assert signature.confidence == pytest.approx(1.0)

    def test_confidence_below_half_share(self):
        pixels = mixture([(BLUE, 100), (RED, 60), (GREEN, 80), ((255, 200, 0), 160)])
        signature = extract_histogram(pixels, HistogramMath())
        assert 0.0 < signature.confidence <= 1.0

    def test_gray_pixels_ignored(self):
        pixels = mixture([(GRAY, 360), (GREEN, 40)])
        signature = extract_histogram(pixels, HistogramMath())
        assert 120 < signature.hue < 150
        assert not signature.is_neutral

    def test_deterministic(self):
        pixels = mixture([(BLUE, 150), (RED, 150), (GREEN, 100)])
        assert extract_histogram(pixels, HistogramMath()) == extract_histogram(pixels, HistogramMath())

    def test_hue_wraparound_red_family(self):
        """Reds on both sides of 0/360 yield one red, never a blend across the circle."""
        warm = red_with_hue(2.0, 10.0)
        cool = red_with_hue(350.0, 358.0)
        pixels = mixture([(warm, 500), (cool, 400), (GRAY, 100)], width=50)

        signature = extract_histogram(pixels, HistogramMath())
        assert not signature.is_neutral
        assert (340.0 <= signature.hue < 360.0) or (0.0 <= signature.hue <= 20.0)
        assert signature.chroma > 0.5


class TestPerceptualHelpers:
    """Test the weight components"""

    def test_neutrality_mask_ramp(self):
        mask = neutrality_mask(np.array([0.0, 7.0, 11.0, 15.0, 40.0]))
        np.testing.assert_allclose(mask, [0.0, 0.0, 0.5, 1.0, 1.0])

    def test_center_weight_falls_off(self):
        weights = center_weight(np.array([[0.0, 0.0], [0.5, 0.0], [1.0, 1.0]]))
        assert weights[0] == pytest.approx(1.0)
        assert weights[0] > weights[1] > weights[2]
        assert weights[2] == pytest.approx(np.exp(-2.0))

    def test_lightness_weight_favors_mid_tones(self):
        weights = lightness_weight(np.array([0.0, 0.5, 1.0]))
        np.testing.assert_allclose(weights, [0.7, 1.0, 0.7])

    def test_smoothing_wraps(self):
        histogram = np.zeros(18)
        histogram[0] = 4.0
        smoothed = smooth_circular(histogram)
        assert smoothed[0] == pytest.approx(2.0)
        assert smoothed[1] == pytest.approx(1.0)
        assert smoothed[17] == pytest.approx(1.0)
        assert smoothed.sum() == pytest.approx(histogram.sum())


class TestPerceptualWeighted:
    """Test the perceptual strategy"""

    def test_solid_red(self):
        signature = extract_perceptual(solid(RED), PerceptualWeighted())
        assert 35 < signature.hue < 45
        assert signature.confidence == pytest.approx(1.0)

    def test_gray_is_neutral(self):
        signature = extract_perceptual(solid(GRAY), PerceptualWeighted())
        assert signature.is_neutral
        assert signature.confidence == pytest.approx(0.2)
        expected_lightness = rgb_to_lch(*GRAY)[0] / 100.0
        assert signature.lightness == pytest.approx(expected_lightness)

    def test_transparent_is_neutral(self):
        empty = PixelBuffer.from_rgba(np.zeros((8, 8, 4), dtype=np.uint8))
        signature = extract_perceptual(empty, PerceptualWeighted())
        assert signature.is_neutral
        assert signature.lightness == pytest.approx(0.5)

    def test_pop_color_overrides_gray_background(self):
        pixels = mixture([(GRAY, 340), (BLUE, 60)])
        signature = extract_perceptual(pixels, PerceptualWeighted())
        assert not signature.is_neutral
        assert 290 < signature.hue < 320

    def test_dull_accent_on_gray_is_neutral(self):
        dull = next(
            (r, 128, 128) for r in range(128, 256) if 16 < rgb_to_lch(r, 128, 128)[1] < 27
        )
        pixels = mixture([(GRAY, 340), (dull, 60)])
        signature = extract_perceptual(pixels, PerceptualWeighted())
        assert signature.is_neutral

    def test_hue_wraparound_merges_red_family(self):
        """Two half-populated red bins across 0/360 beat one fuller green bin."""
        warm = red_with_hue(2.0, 10.0)
        cool = red_with_hue(350.0, 358.0)
        # Flat center weighting keeps the arithmetic position-independent
        strategy = PerceptualWeighted(center_sigma_sq=1e6)
        pixels = mixture([(warm, 900), (cool, 900), (GREEN, 700)], width=50)

        signature = extract_perceptual(pixels, strategy)
        assert signature.hue >= 340 or signature.hue <= 20

        unsmoothed = extract_perceptual(
            pixels, PerceptualWeighted(center_sigma_sq=1e6, smoothing=(0.0, 1.0, 0.0))
        )
        assert 120 < unsmoothed.hue < 150

    def test_neutral_ratio_ignores_transparent_pixels(self):
        """85% of the opaque pixels are gray, though only 42.5% of the canvas."""
        rgba = np.zeros((20, 20, 4), dtype=np.uint8)
        opaque = rgba[10:].reshape(-1, 4)
        opaque[:170] = (*GRAY, 255)
        opaque[170:] = (150, 110, 100, 255)  # muted, chroma ~19
        pixels = PixelBuffer.from_rgba(rgba)
        assert pixels.count == 200

        assert extract_perceptual(pixels, PerceptualWeighted()).is_neutral

    def test_centroid_stays_in_dominant_bin(self):
        pixels = mixture([((200, 30, 30), 200), ((230, 60, 40), 200)])
        signature = extract_perceptual(pixels, PerceptualWeighted())
        lo = min(rgb_to_lch(200, 30, 30)[2], rgb_to_lch(230, 60, 40)[2])
        hi = max(rgb_to_lch(200, 30, 30)[2], rgb_to_lch(230, 60, 40)[2])
        assert lo - 1e-6 <= signature.hue <= hi + 1e-6


class TestClusterKMeans:
    """Test the k-means strategy"""

    def test_lloyd_separates_two_colors(self):
        points = np.array([RED] * 30 + [BLUE] * 70, dtype=np.float64)
        centroids, labels = lloyd_kmeans(points, 2, 10, np.random.default_rng(0))
        counts = np.bincount(labels, minlength=2)
        assert sorted(counts.tolist()) == [30, 70]
        np.testing.assert_allclose(centroids[int(np.argmax(counts))], BLUE)

    def test_largest_cluster_wins(self):
        pixels = mixture([(BLUE, 280), (RED, 120)])
        signature = extract_kmeans(pixels, ClusterKMeans(), np.random.default_rng(11))
        assert 290 < signature.hue < 320

    def test_same_seed_same_result(self):
        pixels = mixture([(BLUE, 120), (RED, 140), (GREEN, 100), ((255, 200, 0), 40)])
        config = PipelineConfig(strategy=ClusterKMeans(seed=42))
        assert extract(pixels, config) == extract(pixels, config)

    def test_fewer_pixels_than_clusters_averages(self):
        pixels = mixture([(GRAY, 397), (RED, 3)])
        signature = extract_kmeans(pixels, ClusterKMeans(), np.random.default_rng(0))
        assert 35 < signature.hue < 45
        assert signature.confidence == pytest.approx(3 / 400)

    def test_gray_is_neutral(self):
        signature = extract_kmeans(solid(GRAY), ClusterKMeans(), np.random.default_rng(0))
        assert signature.is_neutral
        assert signature.confidence == pytest.approx(0.1)

    def test_hsv_output(self):
        signature = extract_kmeans(solid(RED), ClusterKMeans(color_space="hsv"), np.random.default_rng(0))
        assert signature.hue == pytest.approx(0.0)
        assert signature.chroma == pytest.approx(1.0)
        assert signature.lightness == pytest.approx(1.0)


class TestExtractDispatch:
    """Test strategy dispatch and shared guarantees"""

    @pytest.mark.parametrize("strategy", ALL_STRATEGIES, ids=lambda s: s.name.value)
    def test_hue_is_angle_iff_chromatic(self, strategy):
        for pixels in (solid(RED), solid(GRAY), mixture([(GREEN, 200), (GRAY, 200)])):
            signature = extract(pixels, PipelineConfig(strategy=strategy))
            if signature.is_neutral:
                assert signature.chroma == 0.0
            else:
                assert 0.0 <= signature.hue < 360.0
                assert signature.chroma > 0.0
            assert 0.0 <= signature.lightness <= 1.0
            assert 0.0 <= signature.confidence <= 1.0

    @pytest.mark.parametrize("strategy", ALL_STRATEGIES, ids=lambda s: s.name.value)
    def test_fully_transparent(self, strategy):
        empty = PixelBuffer.from_rgba(np.zeros((10, 10, 4), dtype=np.uint8))
        assert extract(empty, PipelineConfig(strategy=strategy)).is_neutral

    def test_default_strategy_is_histogram(self):
        pixels = solid(BLUE)
        assert extract(pixels) == extract_histogram(pixels, HistogramMath())

    def test_unknown_strategy(self):
        with pytest.raises(TypeError):
            extract(solid(RED), PipelineConfig(strategy="bogus"))
