"""Gauss-Legendre quadrature on [-1, 1] and its tensor product on the square."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.polynomial.legendre import leggauss

from .errors import InvalidConfiguration

SUPPORTED_DEGREES = (1, 2, 3)


@dataclass(frozen=True)
class QuadratureRule:
    """n-point Gauss-Legendre rule, exact for polynomials of degree <= 2n-1."""

    n: int
    points: np.ndarray
    weights: np.ndarray

    def tensor(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Return (xi, eta, w) for the n^2-point rule on [-1, 1]^2.

        Ordering matches a double loop with the xi index outer.
        """
        xi, eta = np.meshgrid(self.points, self.points, indexing="ij")
        w = np.outer(self.weights, self.weights)
        return xi.ravel(), eta.ravel(), w.ravel()

    def integrate(self, fn) -> float:
        """Apply the 1D rule to a vectorized callable."""
        return float(np.sum(self.weights * fn(self.points)))


def _build(n: int) -> QuadratureRule:
    points, weights = leggauss(n)
    points.setflags(write=False)
    weights.setflags(write=False)
    return QuadratureRule(n=n, points=points, weights=weights)


_RULES = {n: _build(n) for n in SUPPORTED_DEGREES}


def gauss_legendre(n: int) -> QuadratureRule:
    """Return the precomputed n-point rule; only n = 1, 2, 3 are available."""
    if n not in _RULES:
        raise InvalidConfiguration(
            f"quadrature points n={n} not supported; use one of {SUPPORTED_DEGREES}"
        )
    return _RULES[n]
