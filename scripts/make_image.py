import argparse
import logging
import os
import sys
from pathlib import Path

# Ensure repository root is on sys.path so `from escape_fractals...` works when
# running this script directly (e.g. `python scripts/make_image.py`).
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from escape_fractals.codec import DescriptorError, load_descriptor
from escape_fractals.complex_number import Complex
from escape_fractals.config import load_config
from escape_fractals.fractal import ZOOM_ZONES, InvalidGeometryError, build_fractal, zoom
from escape_fractals.grid import BACKENDS, DEFAULT_BACKEND
from escape_fractals.render import render_to_files


def build_parser():
    parser = argparse.ArgumentParser(description="Render a Julia or Mandelbrot set to PNG + descriptor")

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--julia", action="store_true", help="Julia generation")
    source.add_argument("--mandelbrot", action="store_true", help="Mandelbrot generation")
    source.add_argument("--config", type=str, help="YAML run configuration")
    source.add_argument("--from-descriptor", type=str, help="Rebuild from a saved .txt descriptor")

    parser.add_argument("--max-iter", type=int, help="Maximal number of iterations")
    parser.add_argument("--step", type=float, help="Discrete step of the complex plane")
    parser.add_argument("--xmin", type=float)
    parser.add_argument("--xmax", type=float)
    parser.add_argument("--ymin", type=float)
    parser.add_argument("--ymax", type=float)
    parser.add_argument("--width", type=int)
    parser.add_argument("--height", type=int)
    parser.add_argument("--name", type=str, help="File name (without extension)")
    parser.add_argument("--color", type=float, nargs=3, metavar=("ALPHA", "BETA", "GAMMA"),
                        help="Color function factors")

    # Julia only
    parser.add_argument("--constant", type=float, nargs=2, metavar=("RE", "IM"),
                        help="Complex constant, e.g. --constant -0.4 0.6")
    parser.add_argument("--iter-fun", type=float, nargs=4, metavar=("A_RE", "A_IM", "B_RE", "B_IM"),
                        help="Iteration function factors alpha and beta, e.g. --iter-fun 1 0 0 0")

    parser.add_argument("--zoom", type=str, choices=ZOOM_ZONES, help="Zoom into a quadrant before rendering")
    parser.add_argument("--outdir", type=str, default=None)
    parser.add_argument("--workers", type=int, default=None)
    parser.add_argument("--backend", type=str, choices=BACKENDS, default=None)
    parser.add_argument("--verbose", action="store_true")
    return parser


def options_from_args(args):
    options = {}
    simple = {
        "max_iteration": args.max_iter,
        "discrete_step": args.step,
        "x_min": args.xmin,
        "x_max": args.xmax,
        "y_min": args.ymin,
        "y_max": args.ymax,
        "image_width": args.width,
        "image_height": args.height,
        "file_name": args.name,
        "color_function": args.color,
    }
    for key, value in simple.items():
        if value is not None:
            options[key] = value

    if args.julia:
        if args.constant is not None:
            options["complex_constant"] = Complex.of(*args.constant)
        if args.iter_fun is not None:
            a_re, a_im, b_re, b_im = args.iter_fun
            options["iteration_function"] = (Complex.of(a_re, a_im), Complex.of(b_re, b_im))
    elif args.constant is not None or args.iter_fun is not None:
        raise InvalidGeometryError("--constant and --iter-fun only apply to --julia")
    return options


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    render = {}
    try:
        if args.config:
            spec, render = load_config(args.config)
        elif args.from_descriptor:
            spec = load_descriptor(args.from_descriptor)
        else:
            spec = build_fractal("julia" if args.julia else "mandelbrot", **options_from_args(args))

        if args.zoom:
            spec = zoom(spec, args.zoom)
    except (InvalidGeometryError, DescriptorError, ValueError, OSError) as e:
        print(f"[error] {e}")
        return 1

    outdir = Path(args.outdir or render.get("output_dir") or "figures")
    fill_options = {
        "workers": args.workers if args.workers is not None else render.get("workers"),
        "backend": args.backend or render.get("backend", DEFAULT_BACKEND),
        "threshold": render.get("threshold"),
    }

    print(f"[run] {spec.kind.name} {spec.image_width}x{spec.image_height}, "
          f"max_iter={spec.max_iteration}, saving to {outdir}")
    image_path, descriptor = render_to_files(spec, outdir, **fill_options)
    print(f"[run] saved {image_path} and {descriptor}")
    print("[run] done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
