from pathlib import Path
import sys

import numpy as np
import pytest

# Add repo root to path
ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from escape_fractals.coloring import (
    BLACK,
    color_from_divergence,
    colorize_divergence,
    hsb_to_rgb,
    unpack_rgb,
)
from escape_fractals.fractal import mandelbrot

RED = 0xFF0000


def test_sentinel_is_black():
    spec = mandelbrot(max_iteration=100)
    assert color_from_divergence(99, spec) == BLACK


def test_zero_divergence_is_pure_red():
    spec = mandelbrot(max_iteration=100, color_function=(20.0, 1.0, 1.0))
    assert color_from_divergence(0, spec) == RED


def test_hue_wraps_modulo_one():
    # 5 * 20 / 100 = 1.0 -> hue 0
    spec = mandelbrot(max_iteration=100)
    assert color_from_divergence(5, spec) == RED
    assert int(hsb_to_rgb(1.25, 1.0, 1.0)) == int(hsb_to_rgb(0.25, 1.0, 1.0))


@pytest.mark.parametrize("hue,expected", [
    (0.0, 0xFF0000),
    (0.25, 0x80FF00),
    (0.5, 0x00FFFF),
    (0.75, 0x8000FF),
])
def test_hsb_sectors(hue, expected):
    assert int(hsb_to_rgb(hue, 1.0, 1.0)) == expected


def test_zero_saturation_is_grey():
    assert int(hsb_to_rgb(0.3, 0.0, 1.0)) == 0xFFFFFF
    assert int(hsb_to_rgb(0.3, 0.0, 0.0)) == 0x000000
    assert int(hsb_to_rgb(0.3, 0.0, 0.5)) == 0x808080


def test_saturation_and_brightness_are_clamped():
    assert int(hsb_to_rgb(0.0, 3.0, 7.0)) == RED
    assert int(hsb_to_rgb(0.0, 1.0, -1.0)) == 0


def test_hsb_to_rgb_keeps_shape():
    hues = np.linspace(0, 1, 12, dtype=np.float32).reshape(3, 4)
    assert hsb_to_rgb(hues, 1.0, 1.0).shape == (3, 4)


def test_colorize_matches_scalar_mapping():
    spec = mandelbrot(max_iteration=64, color_function=(3.5, 0.8, 0.9))
    grid = np.arange(64, dtype=np.int32).reshape(8, 8)
    colors = colorize_divergence(grid, spec)
    assert colors.shape == grid.shape
    for count in range(64):
        assert colors.flat[count] == color_from_divergence(count, spec)
    assert colors[7, 7] == BLACK


def test_unpack_rgb():
    rgb = unpack_rgb(np.array([0x123456, RED]))
    np.testing.assert_array_equal(rgb, [[0x12, 0x34, 0x56], [0xFF, 0, 0]])
    assert rgb.dtype == np.uint8
