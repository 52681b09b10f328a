"""
YAML run configurations.

Example (configs/julia_spiral.yaml):

    fractal: julia
    max_iteration: 300
    discrete_step: 0.002
    complex_constant: [-0.4, 0.6]
    iteration_function: ["1 0", "0 0"]
    color_function: [20.0, 1.0, 1.0]
    render:
      workers: 4
      backend: thread
      output_dir: figures
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Tuple, Union

import yaml

from escape_fractals.fractal import FractalKind, FractalSpec, InvalidGeometryError, build_fractal
from escape_fractals.utils import parse_complex

COMMON_OPTIONS = {
    "max_iteration", "discrete_step",
    "x_min", "x_max", "y_min", "y_max",
    "image_width", "image_height",
    "file_name", "color_function",
}
JULIA_OPTIONS = {"complex_constant", "iteration_function"}
RENDER_OPTIONS = {"workers", "threshold", "backend", "output_dir"}


def _convert_option(key: str, value: Any) -> Any:
    if key == "complex_constant":
        return parse_complex(value)
    if key == "iteration_function":
        if not isinstance(value, (list, tuple)) or len(value) != 2:
            raise InvalidGeometryError(f"iteration_function takes [alpha, beta], got {value!r}")
        return tuple(parse_complex(v) for v in value)
    if key == "color_function":
        return tuple(float(v) for v in value)
    if key in ("max_iteration", "image_width", "image_height"):
        return int(value)
    if key == "file_name":
        return str(value)
    return float(value)


def config_to_spec(cfg: Dict[str, Any]) -> Tuple[FractalSpec, Dict[str, Any]]:
    """Build (spec, render_options) from an already-parsed config mapping."""
    cfg = dict(cfg)
    if "fractal" not in cfg:
        raise InvalidGeometryError("config needs a 'fractal' key (julia or mandelbrot)")
    try:
        kind = FractalKind.parse(str(cfg.pop("fractal")))
    except ValueError as e:
        raise InvalidGeometryError(str(e)) from e

    render = dict(cfg.pop("render", None) or {})
    unknown_render = set(render) - RENDER_OPTIONS
    if unknown_render:
        raise InvalidGeometryError(f"Unknown render options: {sorted(unknown_render)}")

    allowed = COMMON_OPTIONS | (JULIA_OPTIONS if kind is FractalKind.JULIA else set())
    unknown = set(cfg) - allowed
    if unknown:
        raise InvalidGeometryError(f"Unknown options for {kind.name}: {sorted(unknown)}")

    try:
        options = {key: _convert_option(key, value) for key, value in cfg.items()}
    except (TypeError, ValueError) as e:
        if isinstance(e, InvalidGeometryError):
            raise
        raise InvalidGeometryError(f"Bad config value: {e}") from e

    return build_fractal(kind, **options), render


def load_config(path: Union[str, Path]) -> Tuple[FractalSpec, Dict[str, Any]]:
    with open(path, "r") as f:
        cfg = yaml.safe_load(f) or {}
    if not isinstance(cfg, dict):
        raise InvalidGeometryError(f"{path}: top level of a config must be a mapping")
    return config_to_spec(cfg)
