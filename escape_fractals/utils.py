# escape_fractals/utils.py
from escape_fractals.complex_number import Complex


def parse_complex(value) -> Complex:
    """
    Parse a complex value from the forms accepted on the command line and in
    config files: '0.3 0.5', '0.3;0.5', '0.3+0.5j', [0.3, 0.5] or a plain number.
    """
    if isinstance(value, Complex):
        return value
    if isinstance(value, (list, tuple)):
        if len(value) != 2:
            raise ValueError(f"Expected [re, im], got {value!r}")
        return Complex.of(float(value[0]), float(value[1]))
    if isinstance(value, (int, float)):
        return Complex.of(float(value), 0.0)

    s = str(value).strip()
    parsed = Complex.from_string(s.replace(";", " ").replace(",", " "))
    if parsed is not None:
        return parsed
    s = s.lower().replace(" ", "")
    if s.endswith("j") or s.endswith("i"):
        z = complex(s[:-1] + "j")
        return Complex.of(z.real, z.imag)
    return Complex.of(float(s), 0.0)


def clamp(v, vmin, vmax):
    return max(vmin, min(v, vmax))
