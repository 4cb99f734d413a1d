"""
Unit tests for color space conversions.
"""

import numpy as np
import pytest

from huesort.services.colors.colorspace import (
    lab_to_lch, lch_to_rgb, rgb_to_hsv, rgb_to_hsv_array, rgb_to_lab, rgb_to_lab_array,
    rgb_to_lch, rgb_to_lch_array
)


class TestRgbToHsv:
    """Test scalar and vectorized HSV conversion"""

    def test_primaries(self):
        assert rgb_to_hsv(255, 0, 0) == pytest.approx((0.0, 1.0, 1.0))
        assert rgb_to_hsv(0, 255, 0) == pytest.approx((120.0, 1.0, 1.0))
        assert rgb_to_hsv(0, 0, 255) == pytest.approx((240.0, 1.0, 1.0))

    def test_gray_has_zero_saturation(self):
        h, s, v = rgb_to_hsv(128, 128, 128)
        assert h == 0.0
        assert s == 0.0
        assert v == pytest.approx(128 / 255)

    def test_black(self):
        assert rgb_to_hsv(0, 0, 0) == (0.0, 0.0, 0.0)

    def test_magenta_side_wraps_below_360(self):
        h, _, _ = rgb_to_hsv(255, 0, 128)
        assert 300 < h < 360

    def test_array_matches_scalar(self):
        colors = np.array([
            [255, 0, 0], [0, 255, 0], [0, 0, 255], [255, 0, 128],
            [12, 200, 90], [128, 128, 128], [0, 0, 0], [250, 250, 10],
        ], dtype=np.uint8)
        vectorized = rgb_to_hsv_array(colors)
        for row, color in zip(vectorized, colors):
            np.testing.assert_allclose(row, rgb_to_hsv(*color.tolist()), atol=1e-9)


class TestRgbToLab:
    """Test sRGB -> Lab -> LCh against reference values"""

    def test_red_reference(self):
        l, a, b = rgb_to_lab(255, 0, 0)
        assert l == pytest.approx(53.2, abs=0.5)
        assert a == pytest.approx(80.1, abs=0.5)
        assert b == pytest.approx(67.2, abs=0.5)

    def test_white_is_achromatic(self):
        l, c, _ = rgb_to_lch(255, 255, 255)
        assert l == pytest.approx(100.0, abs=0.1)
        assert c < 0.1

    def test_black_is_zero(self):
        l, c, _ = rgb_to_lch(0, 0, 0)
        assert l == pytest.approx(0.0, abs=1e-9)
        assert c == pytest.approx(0.0, abs=1e-9)

    def test_mid_gray_chroma_below_threshold(self):
        _, c, _ = rgb_to_lch(128, 128, 128)
        assert c < 1.0

    def test_primary_hue_order(self):
        red = rgb_to_lch(255, 0, 0)[2]
        green = rgb_to_lch(0, 255, 0)[2]
        blue = rgb_to_lch(0, 0, 255)[2]
        assert 30 < red < 50
        assert 120 < green < 150
        assert 290 < blue < 320
        assert red < green < blue

    def test_hue_range(self):
        _, _, h = lab_to_lch(50.0, 10.0, -0.001)
        assert 0.0 <= h < 360.0
        assert h > 359.0

    def test_array_matches_scalar(self):
        rng = np.random.default_rng(7)
        colors = rng.integers(0, 256, size=(64, 3), dtype=np.uint8)
        lab = rgb_to_lab_array(colors)
        lch = rgb_to_lch_array(colors)
        for i, color in enumerate(colors):
            np.testing.assert_allclose(lab[i], rgb_to_lab(*color.tolist()), atol=1e-9)
            l, c, h = rgb_to_lch(*color.tolist())
            assert lch[i, 0] == pytest.approx(l, abs=1e-9)
            assert lch[i, 1] == pytest.approx(c, abs=1e-9)
            if c > 1e-6:
                assert lch[i, 2] == pytest.approx(h, abs=1e-6)


class TestLchToRgb:
    """Test the inverse used for swatches"""

    @pytest.mark.parametrize("rgb", [(255, 0, 0), (0, 128, 255), (40, 160, 60), (200, 200, 200)])
    def test_inverse_recovers_color(self, rgb):
        recovered = lch_to_rgb(*rgb_to_lch(*rgb))
        for expected, actual in zip(rgb, recovered):
            assert abs(expected - actual) <= 2

    def test_out_of_gamut_is_clipped(self):
        r, g, b = lch_to_rgb(50.0, 200.0, 140.0)
        assert all(0 <= v <= 255 for v in (r, g, b))
