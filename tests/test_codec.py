from pathlib import Path
import sys

import pytest

# Add repo root to path
ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from escape_fractals.codec import DescriptorError, deserialize, load_descriptor, save_descriptor, serialize
from escape_fractals.complex_number import Complex, ONE, ZERO
from escape_fractals.fractal import FractalKind, FractalSpec, InvalidGeometryError, julia, mandelbrot

JULIA_DESCRIPTOR = """JULIA
-0.4 0.6
1.0 0.0
0.0 0.0
1000
7.5E-4
-1.0
1.0
-1.0
1.0
2667
2667
Julia
20.0
1.0
1.0
"""


def odd_julia():
    return julia(
        complex_constant=Complex(-0.4, 0.6),
        iteration_function=(Complex(1.5, -0.25), Complex(0.1, 0.0)),
        max_iteration=321,
        discrete_step=0.0013,
        x_min=-1.7, x_max=1.3, y_min=-0.9, y_max=1.1,
        file_name="my fractal v2",
        color_function=(0.1, 0.7, 0.9),
    )


@pytest.mark.parametrize("spec", [
    mandelbrot(),
    mandelbrot(discrete_step=0.5, image_width=3, image_height=9, file_name=""),
    julia(),
    odd_julia(),
])
def test_round_trip(spec):
    assert deserialize(serialize(spec)) == spec


def test_mandelbrot_layout():
    lines = serialize(mandelbrot(max_iteration=50, discrete_step=0.5)).splitlines()
    assert len(lines) == 13
    assert lines[0] == "MANDELBROT"
    assert lines[1] == "50"
    assert lines[2] == "0.5"
    assert lines[7:9] == ["7", "5"]
    assert lines[9] == "Mandelbrot"
    assert lines[10:] == ["20.0", "1.0", "1.0"]


def test_julia_layout():
    lines = serialize(odd_julia()).splitlines()
    assert len(lines) == 16
    assert lines[0] == "JULIA"
    assert lines[1:4] == ["-0.4 0.6", "1.5 -0.25", "0.1 0.0"]
    assert lines[12] == "my fractal v2"
    assert lines[13] == "0.1"


def test_reads_descriptor_with_upper_case_exponents():
    spec = deserialize(JULIA_DESCRIPTOR)
    assert spec.kind is FractalKind.JULIA
    assert spec.complex_constant == Complex(-0.4, 0.6)
    assert (spec.alpha_factor, spec.beta_factor) == (ONE, ZERO)
    assert spec.discrete_step == 0.00075
    assert spec.shape == (2667, 2667)
    assert spec.file_name == "Julia"


def test_kind_is_case_insensitive():
    text = serialize(mandelbrot()).replace("MANDELBROT", "Mandelbrot", 1)
    assert deserialize(text).kind is FractalKind.MANDELBROT


def test_unknown_kind_fails():
    text = JULIA_DESCRIPTOR.replace("JULIA", "Sierpinski", 1)
    with pytest.raises(DescriptorError, match="kind"):
        deserialize(text)


def test_truncated_descriptor_fails():
    lines = JULIA_DESCRIPTOR.splitlines()
    for n in range(len(lines)):
        with pytest.raises(DescriptorError):
            deserialize("\n".join(lines[:n]))


@pytest.mark.parametrize("line_no,bad", [
    (1, "-0.4"),        # complex constant with one token
    (2, "1.0 zero"),    # alpha factor
    (4, "1000.5"),      # max iteration
    (5, "small"),       # discrete step
    (10, "wide"),       # image width
    (13, "red"),        # alpha color
    (6, "nan"),         # x min
    (4, "1_000"),       # max iteration with digit separator
    (4, " 1000"),       # max iteration with leading blank
    (5, "7.5E-4 "),     # discrete step with trailing blank
    (7, "1e3\t"),       # x max with trailing tab
    (1, "-0.4  0.6"),   # complex constant with doubled separator
    (14, "Infinity"),   # beta color
    (5, "1e999"),       # discrete step overflowing to infinity
])
def test_unparsable_field_fails(line_no, bad):
    lines = JULIA_DESCRIPTOR.splitlines()
    lines[line_no] = bad
    with pytest.raises(DescriptorError):
        deserialize("\n".join(lines))


def test_invalid_geometry_fails_with_cause():
    lines = JULIA_DESCRIPTOR.splitlines()
    lines[6], lines[7] = "1.0", "-1.0"   # x_min > x_max
    with pytest.raises(DescriptorError) as excinfo:
        deserialize("\n".join(lines))
    assert isinstance(excinfo.value.__cause__, InvalidGeometryError)


def test_trailing_content_fails():
    with pytest.raises(DescriptorError):
        deserialize(JULIA_DESCRIPTOR + "extra\n")
    assert deserialize(JULIA_DESCRIPTOR + "\n\n").kind is FractalKind.JULIA


def test_windows_line_endings():
    assert deserialize(JULIA_DESCRIPTOR.replace("\n", "\r\n")) == deserialize(JULIA_DESCRIPTOR)


def test_save_and_load(tmp_path):
    spec = odd_julia()
    path = save_descriptor(spec, tmp_path)
    assert path == tmp_path / "my fractal v2.txt"
    assert load_descriptor(path) == spec


def test_load_missing_file(tmp_path):
    with pytest.raises(OSError):
        load_descriptor(tmp_path / "missing.txt")


def test_direct_spec_with_double_precision_colors_round_trips():
    spec = FractalSpec(
        kind=FractalKind.JULIA,
        max_iteration=40,
        discrete_step=0.25,
        x_min=-1.0, x_max=1.0, y_min=-1.0, y_max=1.0,
        image_width=9, image_height=9,
        file_name="direct",
        alpha_color=0.1, beta_color=0.7, gamma_color=0.9,
        complex_constant=Complex(-0.4, 0.6),
        alpha_factor=ONE,
        beta_factor=ZERO,
    )
    assert deserialize(serialize(spec)) == spec


@pytest.mark.parametrize("options", [
    {"complex_constant": Complex(float("inf"), 0.0)},
    {"iteration_function": (Complex(float("nan"), 0.0), ZERO)},
    {"color_function": (float("nan"), 1.0, 1.0)},
])
def test_unwritable_values_are_refused_before_saving(options, tmp_path):
    with pytest.raises(InvalidGeometryError):
        save_descriptor(julia(**options), tmp_path)
    assert not list(tmp_path.iterdir())
