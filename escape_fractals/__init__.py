"""
Escape-time fractals (Julia and Mandelbrot) rendered over a rectangle of the
complex plane, with a text descriptor for saving and reloading parameters.

    spec = mandelbrot(discrete_step=0.005, max_iteration=200)
    pixels = render_pixels(spec, workers=4)
    text = serialize(spec)
    assert deserialize(text) == spec
"""

from escape_fractals.codec import DescriptorError, deserialize, load_descriptor, save_descriptor, serialize
from escape_fractals.coloring import color_from_divergence, colorize_divergence
from escape_fractals.complex_number import Complex
from escape_fractals.fractal import (
    RADIUS,
    FractalKind,
    FractalSpec,
    InvalidGeometryError,
    build_fractal,
    julia,
    mandelbrot,
    zoom,
)
from escape_fractals.grid import fill_divergence_grid
from escape_fractals.render import PixelGrid, render_pixels, render_to_files, save_png

__version__ = "0.1.0"
