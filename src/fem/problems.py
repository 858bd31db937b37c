"""Problem parameters and manufactured solutions.

Two variants of the same energy share the assembly engine:

    p-Laplacian   I[u] = int (1/p) |grad u|^p - f u         Dirichlet data
    p-Helmholtz   I[u] = int (1/p) |grad u|^p + u^2/2 - f u  Neumann

For each forcing family the exact solution u and a forcing f are closed-form
and consistent with the strong form

    - div( (|grad u|^2 + eps^2)^((p-2)/2) grad u ) [+ u] = f

where the bracketed reaction term belongs to the p-Helmholtz variant.
Regularization changes f but not u.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

import numpy as np

from .errors import InvalidConfiguration, UnsupportedForcingSelector
from .quadrature import SUPPORTED_DEGREES

log = logging.getLogger(__name__)


class Variant(Enum):
    P_LAPLACIAN = "plap"
    P_HELMHOLTZ = "phelm"

    @property
    def dirichlet(self) -> bool:
        return self is Variant.P_LAPLACIAN

    @property
    def reaction(self) -> bool:
        """Whether the energy carries the u^2/2 term."""
        return self is Variant.P_HELMHOLTZ


class ProblemType(Enum):
    CONSTANT = "constant"
    COSINES = "cosines"
    POLYNOMIAL = "polynomial"


def _as_variant(value) -> Variant:
    if isinstance(value, Variant):
        return value
    try:
        return Variant(str(value).lower())
    except ValueError:
        raise InvalidConfiguration(
            f"unknown variant {value!r}; use one of {[v.value for v in Variant]}"
        ) from None


def _as_problem(value) -> ProblemType:
    if isinstance(value, ProblemType):
        return value
    try:
        return ProblemType(str(value).lower())
    except ValueError:
        raise UnsupportedForcingSelector(
            f"unknown problem type {value!r}; use one of {[t.value for t in ProblemType]}"
        ) from None


@dataclass(frozen=True)
class ProblemParameters:
    """Immutable parameters threaded through every assembly call."""

    p: float = 2.0
    eps: float = 0.0
    quadpts: int = 2
    problem: ProblemType = ProblemType.COSINES
    alpha: float = 1.0
    variant: Variant = Variant.P_HELMHOLTZ

    def __post_init__(self):
        object.__setattr__(self, "variant", _as_variant(self.variant))
        object.__setattr__(self, "problem", _as_problem(self.problem))
        if self.p < 1.0:
            raise InvalidConfiguration(f"p >= 1 required (got p={self.p})")
        if self.quadpts not in SUPPORTED_DEGREES:
            raise InvalidConfiguration(
                f"quadrature points n={self.quadpts} not supported; use one of {SUPPORTED_DEGREES}"
            )
        if self.eps < 0.0:
            raise InvalidConfiguration(f"eps >= 0 required (got eps={self.eps})")
        if self.p == 1.0:
            log.warning("well-posedness only known for p > 1")

    @property
    def has_exact_solution(self) -> bool:
        """Whether exact_solution solves the equation with forcing.

        The constant family with Dirichlet data (u = 1 on the boundary, f = 1)
        is an assembly scenario only: -div(|grad 1|^(p-2) grad 1) = 0 != 1.
        """
        return not (self.problem is ProblemType.CONSTANT and self.variant.dirichlet)


# -----------------------------------------------------------------------------
# Forcing families
# -----------------------------------------------------------------------------


def _u_constant(x, y, params):
    # exact for p-Helmholtz; boundary data only for p-Laplacian
    return np.ones_like(np.asarray(x, dtype=float) + np.asarray(y, dtype=float))


def _f_constant(x, y, params):
    return np.ones_like(np.asarray(x, dtype=float) + np.asarray(y, dtype=float))


def _u_cosines(x, y, params):
    return np.cos(np.pi * x) * np.cos(np.pi * y)


def _f_cosines(x, y, params):
    p, eps = params.p, params.eps
    uu = _u_cosines(x, y, params)
    pi2 = np.pi * np.pi
    lapu = -2.0 * pi2 * uu
    if p == 2.0:
        f = -lapu
    else:
        ux = -np.pi * np.sin(np.pi * x) * np.cos(np.pi * y)
        uy = -np.pi * np.cos(np.pi * x) * np.sin(np.pi * y)
        w = ux * ux + uy * uy + eps * eps
        pi3 = pi2 * np.pi
        wx = pi3 * np.sin(2 * np.pi * x) * np.cos(2 * np.pi * y)
        wy = pi3 * np.cos(2 * np.pi * x) * np.sin(2 * np.pi * y)
        s = (p - 2.0) / 2.0
        dw = wx * ux + wy * uy
        # the chain term vanishes with grad u for p > 2; keep 0 * inf out of it
        with np.errstate(divide="ignore", invalid="ignore"):
            chain = np.where(dw == 0.0, 0.0, s * w ** (s - 1.0) * dw)
        f = -chain - w**s * lapu
    if params.variant.reaction:
        f = f + uu
    return f


def _u_polynomial(x, y, params):
    alf = params.alpha
    return 0.5 * (x + alf) ** 2 * (y + alf) ** 2


def _f_polynomial(x, y, params):
    p, eps, alf = params.p, params.eps, params.alpha
    XX = (x + alf) ** 2
    YY = (y + alf) ** 2
    D2 = XX + YY
    w0 = XX * YY * D2  # |grad u|^2
    w = w0 + eps * eps
    C = w ** ((p - 2.0) / 2.0)
    gamma1 = 1.0 / (x + alf) + (x + alf) / D2
    gamma2 = 1.0 / (y + alf) + (y + alf) / D2
    f = -(p - 2.0) * C * (w0 / w) * (gamma1 * (x + alf) * YY + gamma2 * XX * (y + alf)) - C * D2
    if params.variant.reaction:
        f = f + _u_polynomial(x, y, params)
    return f


_EXACT = {
    ProblemType.CONSTANT: _u_constant,
    ProblemType.COSINES: _u_cosines,
    ProblemType.POLYNOMIAL: _u_polynomial,
}

_FORCING = {
    ProblemType.CONSTANT: _f_constant,
    ProblemType.COSINES: _f_cosines,
    ProblemType.POLYNOMIAL: _f_polynomial,
}


def exact_solution(x, y, params: ProblemParameters):
    """Manufactured exact solution (also the Dirichlet data)."""
    return _EXACT[params.problem](x, y, params)


def forcing(x, y, params: ProblemParameters):
    """Right-hand side f consistent with exact_solution for (p, eps, variant)."""
    return _FORCING[params.problem](x, y, params)
