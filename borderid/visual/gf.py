"""GF(2^8) arithmetic and polynomials for the Reed-Solomon layer.

Field elements are plain ints 0..255 under the primitive polynomial 0x11D
(x^8 + x^4 + x^3 + x^2 + 1) with generator alpha = 2.

Polynomials are held in a :class:`Poly`, whose coefficients are always stored
highest degree first.  Code that needs the ascending view goes through
``Poly.from_ascending`` / ``Poly.ascending()`` or ``Poly.coef(power)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

PRIMITIVE_POLY = 0x11D
FIELD_SIZE = 256
FIELD_ORDER = 255  # number of nonzero elements


class DivisionByZero(ZeroDivisionError):
    """Division by (or inversion of) the zero element."""


class GaloisField:
    """Log/antilog tables for GF(2^8).

    The exp table is doubled (512 entries) so that ``mul`` can add two logs
    without a modulo.  Tables are tuples and never change after __init__.
    """

    def __init__(self, prim: int = PRIMITIVE_POLY):
        self.prim = prim
        exp = [0] * (2 * FIELD_SIZE)
        log = [0] * FIELD_SIZE
        x = 1
        for i in range(FIELD_ORDER):
            exp[i] = x
            log[x] = i
            x <<= 1
            if x & 0x100:
                x ^= prim
        for i in range(FIELD_ORDER, 2 * FIELD_SIZE):
            exp[i] = exp[i - FIELD_ORDER]
        self._exp: tuple[int, ...] = tuple(exp)
        self._log: tuple[int, ...] = tuple(log)

    def exp(self, power: int) -> int:
        """alpha ** power."""
        return self._exp[power % FIELD_ORDER]

    def log(self, x: int) -> int:
        if x == 0:
            raise DivisionByZero("log of zero is undefined")
        return self._log[x]

    def mul(self, a: int, b: int) -> int:
        if a == 0 or b == 0:
            return 0
        return self._exp[self._log[a] + self._log[b]]

    def div(self, a: int, b: int) -> int:
        if b == 0:
            raise DivisionByZero("GF division by zero")
        if a == 0:
            return 0
        return self._exp[(self._log[a] + FIELD_ORDER - self._log[b]) % FIELD_ORDER]

    def pow(self, base: int, exponent: int) -> int:
        if base == 0:
            return 1 if exponent == 0 else 0
        return self._exp[(self._log[base] * exponent) % FIELD_ORDER]

    def inverse(self, x: int) -> int:
        if x == 0:
            raise DivisionByZero("GF inverse of zero")
        return self._exp[FIELD_ORDER - self._log[x]]


GF256 = GaloisField()


@dataclass(frozen=True)
class Poly:
    """Polynomial over GF(2^8), coefficients highest degree first.

    ``Poly((1, 3, 5))`` is ``x^2 + 3x + 5``.
    """

    coeffs: tuple[int, ...] = (0,)

    def __post_init__(self):
        if not self.coeffs:
            object.__setattr__(self, "coeffs", (0,))
        elif not isinstance(self.coeffs, tuple):
            object.__setattr__(self, "coeffs", tuple(self.coeffs))

    @classmethod
    def from_ascending(cls, coeffs: Iterable[int]) -> "Poly":
        """Build from lowest-degree-first coefficients."""
        return cls(tuple(reversed(tuple(coeffs))))

    @classmethod
    def from_bytes(cls, data: Sequence[int]) -> "Poly":
        """Byte ``data[0]`` becomes the highest-degree coefficient."""
        return cls(tuple(data))

    def ascending(self) -> tuple[int, ...]:
        return tuple(reversed(self.coeffs))

    def __len__(self) -> int:
        return len(self.coeffs)

    def __iter__(self):
        return iter(self.coeffs)

    @property
    def degree(self) -> int:
        return len(self.trim().coeffs) - 1

    def coef(self, power: int) -> int:
        """Coefficient of ``x**power`` (0 beyond the stored length)."""
        if power < 0 or power >= len(self.coeffs):
            return 0
        return self.coeffs[-1 - power]

    def trim(self) -> "Poly":
        """Drop leading zero coefficients (keeps at least one)."""
        i = 0
        while i < len(self.coeffs) - 1 and self.coeffs[i] == 0:
            i += 1
        return self if i == 0 else Poly(self.coeffs[i:])

    def is_zero(self) -> bool:
        return all(c == 0 for c in self.coeffs)

    def __add__(self, other: "Poly") -> "Poly":
        n = max(len(self.coeffs), len(other.coeffs))
        out = [0] * n
        for i, c in enumerate(self.coeffs):
            out[i + n - len(self.coeffs)] ^= c
        for i, c in enumerate(other.coeffs):
            out[i + n - len(other.coeffs)] ^= c
        return Poly(tuple(out))

    # subtraction is addition in characteristic 2
    __sub__ = __add__

    def __mul__(self, other: "Poly") -> "Poly":
        out = [0] * (len(self.coeffs) + len(other.coeffs) - 1)
        for i, a in enumerate(self.coeffs):
            if a == 0:
                continue
            for j, b in enumerate(other.coeffs):
                if b == 0:
                    continue
                out[i + j] ^= GF256.mul(a, b)
        return Poly(tuple(out))

    def scale(self, k: int) -> "Poly":
        return Poly(tuple(GF256.mul(c, k) for c in self.coeffs))

    def shift(self, n: int) -> "Poly":
        """Multiply by ``x**n``."""
        if n <= 0:
            return self
        return Poly(self.coeffs + (0,) * n)

    def mod_xn(self, n: int) -> "Poly":
        """Remainder modulo ``x**n``: keep the terms of degree < n."""
        if n <= 0:
            return Poly((0,))
        if len(self.coeffs) <= n:
            return self
        return Poly(self.coeffs[-n:])

    def eval(self, x: int) -> int:
        """Horner evaluation."""
        y = 0
        for c in self.coeffs:
            y = GF256.mul(y, x) ^ c
        return y

    def derivative(self) -> "Poly":
        """Formal derivative; only odd powers survive in characteristic 2."""
        asc = self.ascending()
        deriv = [asc[i] if i % 2 == 1 else 0 for i in range(1, len(asc))]
        return Poly.from_ascending(deriv).trim() if deriv else Poly((0,))
