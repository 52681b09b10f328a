import dataclasses
import math
from pathlib import Path
import sys

import pytest

# Add repo root to path
ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from escape_fractals.complex_number import Complex, I, ONE, ZERO


PAIRS = [
    (Complex(0.5, -1.25), Complex(2.0, 0.75)),
    (Complex(-3.75, 0.0), Complex(0.125, -8.0)),
    (Complex(0.0, 0.0), Complex(1.5, 1.5)),
]


@pytest.mark.parametrize("a,b", PAIRS)
def test_add_then_subtract_is_exact(a, b):
    assert a.add(b).subtract(b) == a


@pytest.mark.parametrize("a,b", PAIRS)
def test_multiply_by_one_is_identity(a, b):
    assert a.multiply(ONE) == a
    assert b.multiply(ONE) == b


def test_multiply():
    # (1+2i)(3+4i) = -5 + 10i
    assert Complex(1.0, 2.0).multiply(Complex(3.0, 4.0)) == Complex(-5.0, 10.0)
    assert I.multiply(I) == Complex(-1.0, 0.0)


def test_conjugate_modulus_argument():
    z = Complex(3.0, 4.0)
    assert z.conjugate() == Complex(3.0, -4.0)
    assert z.modulus() == 5.0
    assert I.argument() == pytest.approx(math.pi / 2)
    assert ZERO.modulus() == 0.0


def test_operations_return_new_values():
    z = Complex(1.0, 1.0)
    w = z.add(ONE)
    assert z == Complex(1.0, 1.0)
    assert w == Complex(2.0, 1.0)
    with pytest.raises(dataclasses.FrozenInstanceError):
        z.re = 5.0


def test_equality_is_exact():
    assert Complex(0.1, 0.2) != Complex(0.1 + 1e-16, 0.2)
    assert Complex.of(1, 2) == Complex(1.0, 2.0)


def test_string_round_trip():
    for z in [Complex(0.1, -1e-05), Complex(-0.4, 0.6), ZERO, Complex(123456.789, 2.5e-300)]:
        assert Complex.from_string(z.to_string()) == z
    assert Complex(1.0, 0.0).to_string() == "1.0 0.0"


def test_from_string_accepts_upper_case_exponents():
    assert Complex.from_string("7.5E-4 -1.0") == Complex(0.00075, -1.0)


@pytest.mark.parametrize("text", ["", "1.5", "a b", "1 2 3", "1.0 x"])
def test_from_string_rejects_malformed(text):
    assert Complex.from_string(text) is None
