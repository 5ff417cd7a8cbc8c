"""Analytic functions and the root sets used to classify them."""

from __future__ import annotations

import cmath
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Protocol

import numpy as np

from .errors import ConfigurationError


class AnalyticFunction(Protocol):
    """A complex function paired with its derivative."""

    def evaluate(self, z: Any) -> Any:
        ...

    def derivative(self, z: Any) -> Any:
        ...


@dataclass(frozen=True)
class ComplexFunction:
    """Wrap two plain callables as an :class:`AnalyticFunction`."""

    f: Callable[[Any], Any]
    f_dash: Callable[[Any], Any]

    def evaluate(self, z: Any) -> Any:
        return self.f(z)

    def derivative(self, z: Any) -> Any:
        return self.f_dash(z)


@dataclass(frozen=True)
class RootSet:
    """Ordered, immutable collection of known roots.

    The position of a root in ``roots`` is its root index everywhere
    downstream (classification, palettes, rendered index maps).
    """

    roots: tuple[complex, ...]

    def __post_init__(self) -> None:
        roots = tuple(complex(r) for r in self.roots)
        if not roots:
            raise ConfigurationError("A root set needs at least one root.")
        for root in roots:
            if not cmath.isfinite(root):
                raise ConfigurationError(f"Root {root!r} is not finite.")
        object.__setattr__(self, "roots", roots)

    def __len__(self) -> int:
        return len(self.roots)

    def __iter__(self):
        return iter(self.roots)

    def __getitem__(self, index: int) -> complex:
        return self.roots[index]

    def as_array(self) -> np.ndarray:
        return np.array(self.roots, dtype=np.complex128)


@dataclass(frozen=True)
class Polynomial:
    """Polynomial with complex coefficients, highest degree first.

    Evaluation uses Horner's scheme with plain ``*`` and ``+`` so the same
    object works on Python complex numbers, numpy arrays and TensorFlow
    tensors.
    """

    coefficients: tuple[complex, ...]

    def __post_init__(self) -> None:
        coefficients = tuple(complex(c) for c in self.coefficients)
        while len(coefficients) > 1 and coefficients[0] == 0:
            coefficients = coefficients[1:]
        if not coefficients:
            raise ConfigurationError("A polynomial needs at least one coefficient.")
        object.__setattr__(self, "coefficients", coefficients)

    @property
    def degree(self) -> int:
        return len(self.coefficients) - 1

    def evaluate(self, z: Any) -> Any:
        return _horner(self.coefficients, z)

    def derivative(self, z: Any) -> Any:
        n = self.degree
        if n == 0:
            return z * 0
        return _horner(tuple(c * (n - i) for i, c in enumerate(self.coefficients[:-1])), z)

    def roots(self) -> RootSet:
        """Numerically computed roots, in ``numpy.roots`` order."""

        if self.degree < 1:
            raise ConfigurationError("A constant polynomial has no roots to classify against.")
        return RootSet(tuple(complex(r) for r in np.roots(np.array(self.coefficients))))

    def __str__(self) -> str:
        terms = []
        for i, c in enumerate(self.coefficients):
            power = self.degree - i
            if c == 0 and self.degree > 0:
                continue
            if c.imag == 0:
                sign = "-" if c.real < 0 else "+"
                magnitude = abs(c.real)
                coeff = "" if magnitude == 1 and power > 0 else f"{magnitude:g}"
            else:
                sign, coeff = "+", f"({c:g})"
            var = "" if power == 0 else ("z" if power == 1 else f"z**{power}")
            terms.append((sign, f"{coeff}*{var}" if coeff and var else coeff or var))

        first_sign, text = terms[0]
        if first_sign == "-":
            text = f"-{text}"
        for sign, term in terms[1:]:
            text += f" {sign} {term}"
        return text


def _horner(coefficients: Iterable[complex], z: Any) -> Any:
    coefficients = tuple(coefficients)
    result = z * 0 + coefficients[0]
    for c in coefficients[1:]:
        result = result * z + c
    return result


_SQRT3_2 = 3 ** 0.5 / 2

# Sample data: z^3 - 1, whose basins give the classic three-armed picture.
CUBIC_UNITY = Polynomial((1, 0, 0, -1))
CUBIC_UNITY_ROOTS = RootSet((1 + 0j, complex(-0.5, _SQRT3_2), complex(-0.5, -_SQRT3_2)))
