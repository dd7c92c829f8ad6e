import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Complex:
    """Immutable complex number used by the reference FFT."""

    re: float
    im: float = 0.0

    def abs(self) -> float:
        # hypot avoids overflow for large components
        return math.hypot(self.re, self.im)

    def plus(self, other: "Complex") -> "Complex":
        return Complex(self.re + other.re, self.im + other.im)

    def minus(self, other: "Complex") -> "Complex":
        return Complex(self.re - other.re, self.im - other.im)

    def times(self, other: "Complex") -> "Complex":
        return Complex(self.re * other.re - self.im * other.im,
                       self.re * other.im + self.im * other.re)

    def scale(self, alpha: float) -> "Complex":
        return Complex(alpha * self.re, alpha * self.im)

    def conjugate(self) -> "Complex":
        return Complex(self.re, -self.im)

    __add__ = plus
    __sub__ = minus
    __mul__ = times

    def __str__(self) -> str:
        if self.im == 0:
            return f"{self.re}"
        if self.re == 0:
            return f"{self.im}i"
        if self.im < 0:
            return f"{self.re} - {-self.im}i"
        return f"{self.re} + {self.im}i"
