"""
Divergence index -> RGB colour.

Points that never escaped (index == max_iteration - 1) are black. Every
other index n becomes the HSB colour

    hue        = n * alpha_color / max_iteration   (wraps modulo 1)
    saturation = beta_color
    brightness = gamma_color

converted to RGB with the standard single-precision HSB transform. All
arithmetic is carried out in float32 so the packed colours are
reproducible bit for bit.

Colours are packed as 0xRRGGBB integers.
"""

from __future__ import annotations

import numpy as np

from escape_fractals.fractal import FractalSpec
from escape_fractals.utils import clamp

BLACK = 0

_ONE = np.float32(1.0)
_SIX = np.float32(6.0)
_SCALE = np.float32(255.0)
_HALF = np.float32(0.5)


def _to_byte(x):
    return (x * _SCALE + _HALF).astype(np.int32)


def pack_rgb(r, g, b):
    return (np.asarray(r, dtype=np.int32) << 16) | (np.asarray(g, dtype=np.int32) << 8) | np.asarray(b, dtype=np.int32)


def unpack_rgb(packed: np.ndarray) -> np.ndarray:
    """0xRRGGBB integers -> uint8 array with a trailing RGB axis."""
    packed = np.asarray(packed, dtype=np.int32)
    rgb = np.stack([(packed >> 16) & 0xFF, (packed >> 8) & 0xFF, packed & 0xFF], axis=-1)
    return rgb.astype(np.uint8)


def hsb_to_rgb(hue, saturation: float, brightness: float) -> np.ndarray:
    """
    Vectorised HSB -> packed RGB.

    Args:
        hue: scalar or array, any real value (only the fractional part is used)
        saturation, brightness: clamped to [0, 1]

    Returns:
        int32 array of 0xRRGGBB with the shape of hue
    """
    hue = np.asarray(hue, dtype=np.float32)
    s = np.float32(clamp(float(saturation), 0.0, 1.0))
    v = np.float32(clamp(float(brightness), 0.0, 1.0))

    vb = np.full(hue.shape, _to_byte(np.asarray(v)), dtype=np.int32)
    if s == 0:
        return pack_rgb(vb, vb, vb)

    h = (hue - np.floor(hue)) * _SIX
    f = h - np.floor(h)
    p = _to_byte(np.broadcast_to(v * (_ONE - s), hue.shape))
    q = _to_byte(v * (_ONE - s * f))
    t = _to_byte(v * (_ONE - s * (_ONE - f)))

    # h can round up to exactly 6.0; that sector has no colour
    sector = h.astype(np.int32)
    conditions = [sector == k for k in range(6)]
    r = np.select(conditions, [vb, q, p, p, t, vb], default=0)
    g = np.select(conditions, [t, vb, vb, q, p, p], default=0)
    b = np.select(conditions, [p, p, t, vb, vb, q], default=0)
    return pack_rgb(r, g, b)


def divergence_hue(divergence, spec: FractalSpec) -> np.ndarray:
    counts = np.asarray(divergence).astype(np.float32)
    return counts * np.float32(spec.alpha_color) / np.float32(spec.max_iteration)


def color_from_divergence(divergence: int, spec: FractalSpec) -> int:
    """Packed RGB colour of a single divergence index."""
    if divergence == spec.sentinel:
        return BLACK
    rgb = hsb_to_rgb(divergence_hue(divergence, spec), spec.beta_color, spec.gamma_color)
    return int(rgb)


def colorize_divergence(grid: np.ndarray, spec: FractalSpec) -> np.ndarray:
    """Packed RGB colour of every cell of a divergence grid (same shape)."""
    grid = np.asarray(grid)
    rgb = hsb_to_rgb(divergence_hue(grid, spec), spec.beta_color, spec.gamma_color)
    return np.where(grid == spec.sentinel, BLACK, rgb).astype(np.int32)
