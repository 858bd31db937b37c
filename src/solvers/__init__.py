"""Nonlinear solver framework for the p-Laplacian / p-Helmholtz problems.

Solver Hierarchy:
-----------------
NonlinearFESolver (abstract base - defines problem, errors and bookkeeping)
├── NewtonSolver (serial Newton, colored FD Jacobian, BiCGSTAB + AMG)
└── SNESSolver (PETSc SNES on a DMDA, in solvers.snes; needs petsc4py)
"""

from .base import NonlinearFESolver
from .datastructures import (
    Parameters,
    Metrics,
    Fields,
    TimeSeries,
    NewtonParameters,
    SNESParameters,
)
from .metrics import convergence_rates, discrete_l2_error
from .newton import NewtonSolver


__all__ = [
    # Base solver
    "NonlinearFESolver",
    # Shared data structures
    "Parameters",
    "Metrics",
    "Fields",
    "TimeSeries",
    # Newton solver
    "NewtonSolver",
    "NewtonParameters",
    # SNES solver parameters (solver lives in solvers.snes)
    "SNESParameters",
    # Metrics
    "convergence_rates",
    "discrete_l2_error",
]
