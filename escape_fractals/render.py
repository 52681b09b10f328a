import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image

from escape_fractals.codec import save_descriptor
from escape_fractals.coloring import colorize_divergence, unpack_rgb
from escape_fractals.fractal import FractalSpec
from escape_fractals.grid import fill_divergence_grid

logger = logging.getLogger(__name__)

IMAGE_SUFFIX = ".png"


@dataclass(frozen=True)
class PixelGrid:
    """
    Packed 0xRRGGBB colours indexed like the divergence grid:
    colors[i, j] is column i (x axis), row j counted from the top.
    """
    colors: np.ndarray

    @property
    def width(self) -> int:
        return self.colors.shape[0]

    @property
    def height(self) -> int:
        return self.colors.shape[1]

    def rgb_at(self, i: int, j: int) -> int:
        return int(self.colors[i, j])

    def to_image_array(self) -> np.ndarray:
        """Row-major (height, width, 3) uint8 array, as image encoders expect."""
        return unpack_rgb(self.colors.T)


def render_pixels(spec: FractalSpec, **fill_options) -> PixelGrid:
    """
    Fill the divergence grid of spec and map it to colours.

    fill_options are passed to fill_divergence_grid (workers, threshold, backend).
    """
    divergence = fill_divergence_grid(spec, **fill_options)
    return PixelGrid(colorize_divergence(divergence, spec))


def save_png(pixels: PixelGrid, path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(pixels.to_image_array()).save(path, format="PNG")
    return path


def render_to_files(spec: FractalSpec, directory=".", **fill_options):
    """
    Render spec, then write <file_name>.png and its <file_name>.txt descriptor
    into directory. Returns (image_path, descriptor_path).
    """
    directory = Path(directory)
    pixels = render_pixels(spec, **fill_options)
    image_path = save_png(pixels, directory / f"{spec.file_name}{IMAGE_SUFFIX}")
    descriptor = save_descriptor(spec, directory)
    logger.info("Rendered %s (%dx%d) to %s", spec.file_name, pixels.width, pixels.height, image_path)
    return image_path, descriptor
