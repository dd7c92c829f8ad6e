"""
Radix-2 recursive Fourier transform.

Two renditions of the same recursion:
- fft / ifft work on sequences of Complex values (reference, one frame at a time)
- fft_array works on numpy arrays along the last axis, so a whole batch of frames
  is transformed with one call
"""

import math
from typing import List, Sequence

import numpy as np

from .complex_number import Complex
from .errors import InvalidInputError


def _check_length(n: int) -> None:
    # n & (n - 1) clears the lowest set bit: zero only for powers of two
    if n < 1 or n & (n - 1):
        raise InvalidInputError(f"FFT length must be a power of 2, got {n}")


def _fft(x: Sequence[Complex]) -> List[Complex]:
    n = len(x)
    if n == 1:
        return [x[0]]

    half = n // 2
    even = _fft(x[0::2])
    odd = _fft(x[1::2])

    # combine: y[k] = e[k] + w^k o[k], y[k + n/2] = e[k] - w^k o[k]
    y: List[Complex] = [Complex(0.0)] * n
    for k in range(half):
        kth = -2 * k * math.pi / n
        wk = Complex(math.cos(kth), math.sin(kth))
        t = wk.times(odd[k])
        y[k] = even[k].plus(t)
        y[k + half] = even[k].minus(t)
    return y


def fft(x: Sequence[Complex]) -> List[Complex]:
    """
    Compute the FFT of x.

    Args:
        x: sequence of Complex, length must be a power of 2

    Returns:
        list of Complex of the same length

    Raises:
        InvalidInputError: if len(x) is not a power of 2
    """
    _check_length(len(x))
    return _fft(list(x))


def ifft(x: Sequence[Complex]) -> List[Complex]:
    """Inverse FFT: conj(fft(conj(x))) / n."""
    _check_length(len(x))
    n = len(x)
    y = _fft([c.conjugate() for c in x])
    return [c.conjugate().scale(1.0 / n) for c in y]


def _fft_array(x: np.ndarray) -> np.ndarray:
    n = x.shape[-1]
    if n == 1:
        return x.copy()

    even = _fft_array(x[..., 0::2])
    odd = _fft_array(x[..., 1::2])

    twiddle = np.exp(-2j * np.pi * np.arange(n // 2) / n)
    t = twiddle * odd
    return np.concatenate([even + t, even - t], axis=-1)


def fft_array(x) -> np.ndarray:
    """
    Vectorized radix-2 FFT along the last axis.

    Args:
        x: array-like of shape (..., n), n a power of 2. Real input is promoted
           to complex with zero imaginary part.

    Returns:
        complex128 array of the same shape
    """
    x = np.asarray(x, dtype=np.complex128)
    if x.ndim == 0:
        raise InvalidInputError("FFT input must have at least one dimension")
    _check_length(x.shape[-1])
    return _fft_array(x)
