"""
Text descriptor of a fractal, one value per line in a fixed order:

    kind                      JULIA | MANDELBROT
    complex constant          "<re> <im>"   (JULIA only)
    alpha factor              "<re> <im>"   (JULIA only)
    beta factor               "<re> <im>"   (JULIA only)
    max iteration             int
    discrete step             float
    x min, x max, y min, y max
    image width, image height int
    file name                 rest of the line
    alpha, beta, gamma color  float (single precision)

The format has no version tag and no optional fields. Reading it back gives
a spec equal to the one written, field for field.
"""

from __future__ import annotations

import logging
import math
import re
from pathlib import Path
from typing import List, Union

import numpy as np

from escape_fractals.complex_number import Complex
from escape_fractals.fractal import FractalKind, FractalSpec, InvalidGeometryError, build_fractal

logger = logging.getLogger(__name__)

DESCRIPTOR_SUFFIX = ".txt"

# Plain decimal literals only: no surrounding blanks, underscores or named values
_REAL = r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?"
REAL_PATTERN = re.compile(_REAL, re.ASCII)
INTEGER_PATTERN = re.compile(r"[+-]?\d+", re.ASCII)
COMPLEX_PATTERN = re.compile(f"{_REAL} {_REAL}", re.ASCII)


class DescriptorError(ValueError):
    """Raised when a descriptor cannot be turned back into a fractal."""


def _format_real(value: float) -> str:
    return repr(float(value))


def _format_single(value: float) -> str:
    # shortest text that reads back to the same float32
    return str(np.float32(value))


def serialize(spec: FractalSpec) -> str:
    lines = [spec.kind.name]
    if spec.kind is FractalKind.JULIA:
        lines += [
            spec.complex_constant.to_string(),
            spec.alpha_factor.to_string(),
            spec.beta_factor.to_string(),
        ]
    lines += [
        str(int(spec.max_iteration)),
        _format_real(spec.discrete_step),
        _format_real(spec.x_min),
        _format_real(spec.x_max),
        _format_real(spec.y_min),
        _format_real(spec.y_max),
        str(int(spec.image_width)),
        str(int(spec.image_height)),
        spec.file_name,
        _format_single(spec.alpha_color),
        _format_single(spec.beta_color),
        _format_single(spec.gamma_color),
    ]
    return "\n".join(lines) + "\n"


class _LineReader:
    """Sequential access to descriptor lines with field-aware errors."""

    def __init__(self, lines: List[str]):
        self._lines = lines
        self._pos = 0

    def _next(self, field: str) -> str:
        if self._pos >= len(self._lines):
            raise DescriptorError(f"Descriptor ends before field '{field}' (line {self._pos + 1})")
        line = self._lines[self._pos]
        self._pos += 1
        return line

    def _fail(self, field: str, line: str, expected: str):
        logger.warning("Bad descriptor line %d (%s): %r", self._pos, field, line)
        raise DescriptorError(f"Line {self._pos}: cannot read {field} as {expected}: {line!r}")

    def kind(self) -> FractalKind:
        line = self._next("kind")
        try:
            return FractalKind.parse(line)
        except ValueError:
            self._fail("kind", line, "one of " + ", ".join(k.name for k in FractalKind))

    def complex(self, field: str) -> Complex:
        line = self._next(field)
        z = Complex.from_string(line) if COMPLEX_PATTERN.fullmatch(line) else None
        if z is None or not (math.isfinite(z.re) and math.isfinite(z.im)):
            self._fail(field, line, "'<re> <im>'")
        return z

    def integer(self, field: str) -> int:
        line = self._next(field)
        if not INTEGER_PATTERN.fullmatch(line):
            self._fail(field, line, "an integer")
        return int(line)

    def real(self, field: str) -> float:
        line = self._next(field)
        if not REAL_PATTERN.fullmatch(line):
            self._fail(field, line, "a number")
        value = float(line)
        if not math.isfinite(value):
            self._fail(field, line, "a finite number")
        return value

    def text(self, field: str) -> str:
        return self._next(field)

    def finish(self):
        rest = [line for line in self._lines[self._pos:] if line.strip()]
        if rest:
            raise DescriptorError(f"Unexpected content after line {self._pos}: {rest[0]!r}")


def deserialize(text: str) -> FractalSpec:
    """Parse a descriptor. Raises DescriptorError instead of guessing defaults."""
    reader = _LineReader(text.replace("\r\n", "\n").split("\n"))

    kind = reader.kind()
    julia_options = {}
    if kind is FractalKind.JULIA:
        constant = reader.complex("complex constant")
        alpha = reader.complex("alpha factor")
        beta = reader.complex("beta factor")
        julia_options = {"complex_constant": constant, "iteration_function": (alpha, beta)}

    max_iteration = reader.integer("max iteration")
    discrete_step = reader.real("discrete step")
    x_min = reader.real("x min")
    x_max = reader.real("x max")
    y_min = reader.real("y min")
    y_max = reader.real("y max")
    image_width = reader.integer("image width")
    image_height = reader.integer("image height")
    file_name = reader.text("file name")
    color_function = (
        reader.real("alpha color"),
        reader.real("beta color"),
        reader.real("gamma color"),
    )
    reader.finish()

    try:
        return build_fractal(
            kind,
            max_iteration=max_iteration,
            discrete_step=discrete_step,
            x_min=x_min,
            x_max=x_max,
            y_min=y_min,
            y_max=y_max,
            image_width=image_width,
            image_height=image_height,
            file_name=file_name,
            color_function=color_function,
            **julia_options,
        )
    except InvalidGeometryError as e:
        raise DescriptorError(f"Descriptor describes an invalid fractal: {e}") from e


def descriptor_path(spec: FractalSpec, directory: Union[str, Path] = ".") -> Path:
    return Path(directory) / f"{spec.file_name}{DESCRIPTOR_SUFFIX}"


def save_descriptor(spec: FractalSpec, directory: Union[str, Path] = ".") -> Path:
    """Write <file_name>.txt into directory and return its path."""
    path = descriptor_path(spec, directory)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(serialize(spec), encoding="utf-8")
    logger.info("Saved %s descriptor to %s", spec.kind.name, path)
    return path


def load_descriptor(path: Union[str, Path]) -> FractalSpec:
    path = Path(path)
    spec = deserialize(path.read_text(encoding="utf-8"))
    logger.info("Loaded %s descriptor from %s", spec.kind.name, path)
    return spec
