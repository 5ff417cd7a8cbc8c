"""Newton iteration and nearest-root classification."""

from __future__ import annotations

import cmath
import math
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError
from .functions import AnalyticFunction, RootSet

# Root index reported for values that are not finite (the iteration blew up).
NO_ROOT = -1

_NAN = complex(math.nan, math.nan)


def distance(a: complex, b: complex) -> float:
    """``|a - b|``, or ``inf`` when the distance is too large for a float."""

    try:
        return abs(a - b)
    except OverflowError:
        return math.inf


@dataclass(frozen=True)
class SolverConfig:
    """Stopping discipline for :class:`NewtonSolver`.

    With ``use_exact_stop`` the solver stops at the first iterate within
    ``tolerance_radius`` of a root, falling back to nearest-root
    classification after ``max_iterations`` steps. Without it the solver
    always performs exactly ``max_iterations`` steps.
    """

    tolerance_radius: float = 1e-6
    max_iterations: int = 50
    use_exact_stop: bool = True

    def __post_init__(self) -> None:
        if isinstance(self.max_iterations, bool) or not isinstance(self.max_iterations, int):
            raise ConfigurationError("max_iterations must be an integer.")
        if self.max_iterations < 1:
            raise ConfigurationError("max_iterations must be positive.")
        if not math.isfinite(self.tolerance_radius) or self.tolerance_radius < 0:
            raise ConfigurationError("tolerance_radius must be a finite, nonnegative number.")


@dataclass(frozen=True)
class SolveResult:
    """Outcome of solving from a single starting point.

    ``root_index`` is :data:`NO_ROOT` when the iteration produced a
    non-finite value. ``converged`` is false for results that came from the
    nearest-root fallback rather than from landing within tolerance.
    """

    root_index: int
    iterations_used: int
    converged: bool = True


class RootClassifier:
    """Assign values to the nearest root of a :class:`RootSet`."""

    def __init__(self, roots: RootSet):
        self.roots = roots

    def classify(self, value: complex) -> int:
        """Index of the nearest root; equal distances resolve to the lowest index.

        Values with no finite distance to any root classify as :data:`NO_ROOT`.
        """

        if not cmath.isfinite(value):
            return NO_ROOT
        best_index = 0
        best_distance = distance(value, self.roots[0])
        for index in range(1, len(self.roots)):
            d = distance(value, self.roots[index])
            if d < best_distance:
                best_index = index
                best_distance = d
        if not math.isfinite(best_distance):
            return NO_ROOT
        return best_index

    def within_tolerance(self, value: complex, radius: float) -> Optional[int]:
        """First root, in index order, lying within ``radius`` of ``value``."""

        for index, root in enumerate(self.roots):
            if distance(value, root) <= radius:
                return index
        return None


class NewtonSolver:
    """Run Newton's method ``z <- z - f(z)/f'(z)`` under a :class:`SolverConfig`."""

    def __init__(self, function: AnalyticFunction, roots: RootSet, config: SolverConfig):
        self.function = function
        self.roots = roots
        self.config = config
        self.classifier = RootClassifier(roots)

    def step(self, z: complex) -> complex:
        # A vanishing derivative or an overflowing evaluation has no finite
        # Newton step; report it as NaN and let classification deal with it.
        try:
            return complex(z - self.function.evaluate(z) / self.function.derivative(z))
        except (ZeroDivisionError, OverflowError):
            return _NAN

    def iterate(self, z0: complex, n: Optional[int] = None) -> complex:
        """Apply exactly ``n`` steps (``max_iterations`` by default) and return the final value."""

        if n is None:
            n = self.config.max_iterations
        z = complex(z0)
        for _ in range(n):
            z = self.step(z)
        return z

    def solve(self, z0: complex) -> SolveResult:
        if self.config.use_exact_stop:
            return self._solve_exact(z0)
        return self._solve_fixed(z0)

    def _solve_fixed(self, z0: complex) -> SolveResult:
        z = self.iterate(z0)
        index = self.classifier.classify(z)
        converged = index != NO_ROOT and distance(z, self.roots[index]) <= self.config.tolerance_radius
        return SolveResult(index, self.config.max_iterations, converged)

    def _solve_exact(self, z0: complex) -> SolveResult:
        z = complex(z0)
        radius = self.config.tolerance_radius
        for i in range(1, self.config.max_iterations + 1):
            z = self.step(z)
            # Non-finite iterates, and finite ones too far out to measure, have diverged.
            if self.classifier.classify(z) == NO_ROOT:
                return SolveResult(NO_ROOT, i, False)
            index = self.classifier.within_tolerance(z, radius)
            if index is not None:
                return SolveResult(index, i, True)
        return SolveResult(self.classifier.classify(z), self.config.max_iterations, False)
