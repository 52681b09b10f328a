"""
Immutable complex number used by the divergence rules and descriptor files.

The arithmetic is written out component-wise so that every fractal renders
the same grid on every platform; equality is exact, with no tolerance.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Complex:
    """Complex number ``re + i * im``. Every operation returns a new value."""

    re: float = 0.0
    im: float = 0.0

    @classmethod
    def of(cls, re: float, im: float) -> "Complex":
        return cls(float(re), float(im))

    @classmethod
    def from_string(cls, text: str) -> Optional["Complex"]:
        """Parse ``"<re> <im>"``. Returns None unless exactly two floats are found."""
        tokens = text.split()
        if len(tokens) != 2:
            return None
        try:
            return cls(float(tokens[0]), float(tokens[1]))
        except ValueError:
            return None

    def to_string(self) -> str:
        return f"{self.re!r} {self.im!r}"

    def __str__(self) -> str:
        return self.to_string()

    # ── Algebra ─────────────────────────────────────────────────────────────

    def add(self, addend: "Complex") -> "Complex":
        return Complex(self.re + addend.re, self.im + addend.im)

    def subtract(self, subtrahend: "Complex") -> "Complex":
        return Complex(self.re - subtrahend.re, self.im - subtrahend.im)

    def multiply(self, factor: "Complex") -> "Complex":
        """(a+bi)(c+di) = (ac-bd) + (ad+bc)i"""
        return Complex(
            self.re * factor.re - self.im * factor.im,
            self.re * factor.im + self.im * factor.re,
        )

    def conjugate(self) -> "Complex":
        return Complex(self.re, -self.im)

    def modulus(self) -> float:
        return math.sqrt(self.re * self.re + self.im * self.im)

    def argument(self) -> float:
        return math.atan2(self.im, self.re)


ZERO = Complex(0.0, 0.0)
ONE = Complex(1.0, 0.0)
I = Complex(0.0, 1.0)
