import math

import pytest

from songprint.complex_number import Complex


def test_arithmetic():
    a = Complex(1.0, 2.0)
    b = Complex(3.0, -1.0)
    assert a.plus(b) == Complex(4.0, 1.0)
    assert a.minus(b) == Complex(-2.0, 3.0)
    # (1 + 2i)(3 - i) = 3 - i + 6i - 2i^2 = 5 + 5i
    assert a.times(b) == Complex(5.0, 5.0)
    assert a.scale(2) == Complex(2.0, 4.0)
    assert a + b == a.plus(b)
    assert a - b == a.minus(b)
    assert a * b == a.times(b)


def test_operations_return_new_values():
    a = Complex(1.0, 1.0)
    a.plus(Complex(5.0, 5.0))
    assert a == Complex(1.0, 1.0)
    with pytest.raises(AttributeError):
        a.re = 3.0


def test_abs_uses_hypot():
    assert Complex(3.0, 4.0).abs() == 5.0
    big = Complex(1e300, 1e300)
    assert math.isfinite(big.abs())
    assert big.abs() == pytest.approx(math.sqrt(2) * 1e300)


def test_conjugate():
    assert Complex(1.5, -2.0).conjugate() == Complex(1.5, 2.0)


@pytest.mark.parametrize("value, text", [
    (Complex(3.0, 0.0), "3.0"),
    (Complex(0.0, 2.0), "2.0i"),
    (Complex(1.0, -2.0), "1.0 - 2.0i"),
    (Complex(1.0, 2.0), "1.0 + 2.0i"),
])
def test_str(value, text):
    assert str(value) == text
