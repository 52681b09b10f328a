"""
Fractal parameter records and their escape-time rules.

A fractal is one immutable ``FractalSpec`` whose ``kind`` selects the
iteration rule:

- MANDELBROT: z_{n+1} = z_n^2 + c, z_0 = 0, c = the tested point
- JULIA:      z_{n+1} = alpha * z_n^2 + beta * z_n + constant, z_0 = the tested point

Specs are assembled with ``mandelbrot()`` / ``julia()`` (or
``build_fractal()``), which fill in defaults, derive the image size from
the plane rectangle when it is not given, and validate everything once.
"""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

import numpy as np

from escape_fractals.complex_number import Complex, ONE, ZERO


RADIUS = 2.0

DEFAULT_MAX_ITERATION = 1000
DEFAULT_DISCRETE_STEP = 0.00075
DEFAULT_COLOR_FUNCTION = (20.0, 1.0, 1.0)

ZOOM_FACTOR = 1.25
ZOOM_ZONES = ("TOP_LEFT", "TOP_RIGHT", "BOTTOM_LEFT", "BOTTOM_RIGHT")


class InvalidGeometryError(ValueError):
    """Raised when fractal parameters cannot describe a renderable grid."""


class FractalKind(Enum):
    JULIA = "JULIA"
    MANDELBROT = "MANDELBROT"

    @classmethod
    def parse(cls, token: str) -> "FractalKind":
        """Case-insensitive lookup of a kind name. Raises ValueError if unknown."""
        name = token.strip().upper()
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"Unknown fractal kind: {token.strip()!r}") from None


# Plane rectangle defaults per kind: (x_min, x_max, y_min, y_max)
DEFAULT_RECTANGLES = {
    FractalKind.MANDELBROT: (-2.0, 1.0, -1.0, 1.0),
    FractalKind.JULIA: (-1.0, 1.0, -1.0, 1.0),
}

DEFAULT_FILE_NAMES = {
    FractalKind.MANDELBROT: "Mandelbrot",
    FractalKind.JULIA: "Julia",
}


def single_precision(value: float) -> float:
    """Round a float to the nearest float32, returned as a Python float."""
    with np.errstate(over="ignore"):
        return float(np.float32(value))


def derived_dimension(low: float, high: float, discrete_step: float) -> int:
    """Number of samples along an axis: int((|low| + |high|) / step + 1)."""
    return int((abs(low) + abs(high)) / discrete_step + 1.0)


@dataclass(frozen=True)
class FractalSpec:
    kind: FractalKind
    max_iteration: int
    discrete_step: float
    x_min: float
    x_max: float
    y_min: float
    y_max: float
    image_width: int
    image_height: int
    file_name: str
    alpha_color: float
    beta_color: float
    gamma_color: float
    # Julia only
    complex_constant: Optional[Complex] = None
    alpha_factor: Optional[Complex] = None
    beta_factor: Optional[Complex] = None

    def __post_init__(self):
        if not isinstance(self.kind, FractalKind):
            raise InvalidGeometryError(f"kind must be a FractalKind, got {self.kind!r}")

        if isinstance(self.max_iteration, bool) or not isinstance(self.max_iteration, (int, np.integer)):
            raise InvalidGeometryError(f"max_iteration must be an integer, got {self.max_iteration!r}")
        if self.max_iteration <= 0:
            raise InvalidGeometryError(f"max_iteration must be > 0, got {self.max_iteration}")

        if not math.isfinite(self.discrete_step) or self.discrete_step <= 0:
            raise InvalidGeometryError(f"discrete_step must be > 0, got {self.discrete_step}")

        bounds = (self.x_min, self.x_max, self.y_min, self.y_max)
        if not all(math.isfinite(b) for b in bounds):
            raise InvalidGeometryError(f"plane rectangle must be finite, got {bounds}")
        if self.x_min >= self.x_max:
            raise InvalidGeometryError(f"x_min ({self.x_min}) must be < x_max ({self.x_max})")
        if self.y_min >= self.y_max:
            raise InvalidGeometryError(f"y_min ({self.y_min}) must be < y_max ({self.y_max})")

        for name in ("image_width", "image_height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value <= 0:
                raise InvalidGeometryError(f"{name} must be a positive integer, got {value!r}")

        if not isinstance(self.file_name, str) or "\n" in self.file_name or "\r" in self.file_name:
            raise InvalidGeometryError(f"file_name must be a single line of text, got {self.file_name!r}")

        julia_fields = (self.complex_constant, self.alpha_factor, self.beta_factor)
        if self.kind is FractalKind.JULIA:
            if not all(isinstance(f, Complex) for f in julia_fields):
                raise InvalidGeometryError("Julia fractals need complex_constant, alpha_factor and beta_factor")
            for f in julia_fields:
                if not (math.isfinite(f.re) and math.isfinite(f.im)):
                    raise InvalidGeometryError(f"Julia coefficients must be finite, got {f}")
        elif any(f is not None for f in julia_fields):
            raise InvalidGeometryError("Mandelbrot fractals take no Julia coefficients")

        # colour factors are stored at single precision
        for name in ("alpha_color", "beta_color", "gamma_color"):
            value = getattr(self, name)
            try:
                rounded = single_precision(value)
            except (TypeError, ValueError):
                raise InvalidGeometryError(f"{name} must be a number, got {value!r}") from None
            if not math.isfinite(rounded):
                raise InvalidGeometryError(f"{name} must be a finite single-precision number, got {value!r}")
            object.__setattr__(self, name, rounded)

    @property
    def sentinel(self) -> int:
        """Divergence index of points that never left the radius."""
        return self.max_iteration - 1

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.image_width, self.image_height)

    def point_at(self, i: int, j: int) -> Complex:
        """Plane point sampled by grid cell (i, j); row 0 is y_max."""
        return Complex(self.x_min + self.discrete_step * i,
                       self.y_max - self.discrete_step * j)

    def compute_divergence(self, z: Complex) -> int:
        """
        Escape-time count for one plane point, in [0, max_iteration - 1].

        The Complex arithmetic is unrolled into float operations in the same
        order as Complex.multiply / Complex.add, so results are identical.
        """
        limit = self.max_iteration - 1
        n = 0

        if self.kind is FractalKind.MANDELBROT:
            cr, ci = z.re, z.im
            zr, zi = 0.0, 0.0
            while n < limit and math.sqrt(zr * zr + zi * zi) <= RADIUS:
                zr, zi = (zr * zr - zi * zi) + cr, (zr * zi + zi * zr) + ci
                n += 1
            return n

        ar, ai = self.alpha_factor.re, self.alpha_factor.im
        br, bi = self.beta_factor.re, self.beta_factor.im
        cr, ci = self.complex_constant.re, self.complex_constant.im
        zr, zi = z.re, z.im
        while n < limit and math.sqrt(zr * zr + zi * zi) <= RADIUS:
            sr, si = zr * zr - zi * zi, zr * zi + zi * zr
            qr, qi = ar * sr - ai * si, ar * si + ai * sr
            lr, li = zr * br - zi * bi, zr * bi + zi * br
            zr, zi = (qr + lr) + cr, (qi + li) + ci
            n += 1
        return n

    def replace(self, **changes) -> "FractalSpec":
        return dataclasses.replace(self, **changes)


def _color_triple(color_function: Sequence[float]) -> Tuple[float, float, float]:
    values = tuple(color_function)
    if len(values) != 3:
        raise InvalidGeometryError(f"color_function takes 3 values, got {len(values)}")
    return values


def _build(
    kind: FractalKind,
    *,
    max_iteration: int,
    discrete_step: float,
    x_min: Optional[float],
    x_max: Optional[float],
    y_min: Optional[float],
    y_max: Optional[float],
    image_width: Optional[int],
    image_height: Optional[int],
    file_name: Optional[str],
    color_function: Sequence[float],
    **julia_fields,
) -> FractalSpec:
    dx_min, dx_max, dy_min, dy_max = DEFAULT_RECTANGLES[kind]
    x_min = dx_min if x_min is None else float(x_min)
    x_max = dx_max if x_max is None else float(x_max)
    y_min = dy_min if y_min is None else float(y_min)
    y_max = dy_max if y_max is None else float(y_max)
    discrete_step = float(discrete_step)

    if not math.isfinite(discrete_step) or discrete_step <= 0:
        raise InvalidGeometryError(f"discrete_step must be > 0, got {discrete_step}")

    if image_width is None:
        image_width = derived_dimension(x_min, x_max, discrete_step)
    if image_height is None:
        image_height = derived_dimension(y_min, y_max, discrete_step)

    alpha, beta, gamma = _color_triple(color_function)

    return FractalSpec(
        kind=kind,
        max_iteration=max_iteration,
        discrete_step=discrete_step,
        x_min=x_min,
        x_max=x_max,
        y_min=y_min,
        y_max=y_max,
        image_width=image_width,
        image_height=image_height,
        file_name=DEFAULT_FILE_NAMES[kind] if file_name is None else file_name,
        alpha_color=alpha,
        beta_color=beta,
        gamma_color=gamma,
        **julia_fields,
    )


def mandelbrot(
    *,
    max_iteration: int = DEFAULT_MAX_ITERATION,
    discrete_step: float = DEFAULT_DISCRETE_STEP,
    x_min: Optional[float] = None,
    x_max: Optional[float] = None,
    y_min: Optional[float] = None,
    y_max: Optional[float] = None,
    image_width: Optional[int] = None,
    image_height: Optional[int] = None,
    file_name: Optional[str] = None,
    color_function: Sequence[float] = DEFAULT_COLOR_FUNCTION,
) -> FractalSpec:
    """Build a Mandelbrot spec. Unset options take the documented defaults."""
    return _build(
        FractalKind.MANDELBROT,
        max_iteration=max_iteration,
        discrete_step=discrete_step,
        x_min=x_min, x_max=x_max, y_min=y_min, y_max=y_max,
        image_width=image_width,
        image_height=image_height,
        file_name=file_name,
        color_function=color_function,
    )


def julia(
    *,
    complex_constant: Complex = ZERO,
    iteration_function: Sequence[Complex] = (ONE, ZERO),
    max_iteration: int = DEFAULT_MAX_ITERATION,
    discrete_step: float = DEFAULT_DISCRETE_STEP,
    x_min: Optional[float] = None,
    x_max: Optional[float] = None,
    y_min: Optional[float] = None,
    y_max: Optional[float] = None,
    image_width: Optional[int] = None,
    image_height: Optional[int] = None,
    file_name: Optional[str] = None,
    color_function: Sequence[float] = DEFAULT_COLOR_FUNCTION,
) -> FractalSpec:
    """
    Build a Julia spec for f(z) = alpha * z^2 + beta * z + complex_constant.

    iteration_function is the (alpha, beta) pair; the default is z^2 + c.
    """
    factors = tuple(iteration_function)
    if len(factors) != 2:
        raise InvalidGeometryError(f"iteration_function takes (alpha, beta), got {len(factors)} values")
    alpha_factor, beta_factor = factors

    return _build(
        FractalKind.JULIA,
        max_iteration=max_iteration,
        discrete_step=discrete_step,
        x_min=x_min, x_max=x_max, y_min=y_min, y_max=y_max,
        image_width=image_width,
        image_height=image_height,
        file_name=file_name,
        color_function=color_function,
        complex_constant=complex_constant,
        alpha_factor=alpha_factor,
        beta_factor=beta_factor,
    )


def build_fractal(kind: FractalKind | str, **options) -> FractalSpec:
    """Dispatch to mandelbrot() or julia() by kind."""
    if isinstance(kind, str):
        kind = FractalKind.parse(kind)
    if kind is FractalKind.JULIA:
        return julia(**options)
    return mandelbrot(**options)


def zoom(spec: FractalSpec, zone: str) -> FractalSpec:
    """
    Zoom into one quadrant of a rendered fractal.

    The image shrinks by ZOOM_FACTOR per axis at the same discrete step and
    the bound named by the zone is halved:

        TOP_LEFT      x_max / 2
        TOP_RIGHT     x_min / 2
        BOTTOM_LEFT   y_max / 2
        BOTTOM_RIGHT  x_min / 2 and y_max / 2
    """
    name = zone.strip().upper().replace(" ", "_").replace("-", "_")
    x_min, x_max, y_min, y_max = spec.x_min, spec.x_max, spec.y_min, spec.y_max

    if name == "TOP_LEFT":
        x_max = x_max / 2
    elif name == "TOP_RIGHT":
        x_min = x_min / 2
    elif name == "BOTTOM_LEFT":
        y_max = y_max / 2
    elif name == "BOTTOM_RIGHT":
        x_min = x_min / 2
        y_max = y_max / 2
    else:
        raise ValueError(f"Unknown zoom zone: {zone!r} (expected one of {', '.join(ZOOM_ZONES)})")

    return spec.replace(
        x_min=x_min,
        x_max=x_max,
        y_min=y_min,
        y_max=y_max,
        image_width=int(spec.image_width / ZOOM_FACTOR),
        image_height=int(spec.image_height / ZOOM_FACTOR),
    )
