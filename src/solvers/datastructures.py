"""Data structures for solver configuration and results.

Structure:
- Parameters: Input configuration (logged to MLflow at start)
- Metrics: Output results (logged to MLflow at end)
- Fields: Nodal solution data
- TimeSeries: Convergence history
"""

import time
from dataclasses import dataclass, asdict, field
from typing import List

import numpy as np
import pandas as pd

from fem import InvalidConfiguration, ProblemParameters, StructuredGrid


# ========================================================
# Parameters (Input Configuration)
# ========================================================


@dataclass
class Parameters:
    """Solver parameters - problem definition plus nonlinear iteration controls."""

    mx: int = 3
    my: int = 3
    variant: str = "phelm"
    problem: str = "cosines"
    p: float = 2.0
    eps: float = 0.0
    alpha: float = 1.0
    quadpts: int = 2
    exact_init: bool = False
    max_iterations: int = 50
    tolerance: float = 1e-8  # relative residual reduction
    atol: float = 1e-12
    method: str = ""
    name: str = ""  # config group name, e.g. "newton"

    def problem_parameters(self) -> ProblemParameters:
        """Validated immutable parameters for the assembly core."""
        return ProblemParameters(
            p=self.p,
            eps=self.eps,
            quadpts=self.quadpts,
            problem=self.problem,
            alpha=self.alpha,
            variant=self.variant,
        )

    def grid(self) -> StructuredGrid:
        return StructuredGrid.for_variant(self.mx, self.my, self.problem_parameters().variant)

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])

    def to_mlflow(self) -> dict:
        return {k: str(v) for k, v in asdict(self).items()}


@dataclass
class NewtonParameters(Parameters):
    """Serial Newton backend (colored FD Jacobian, BiCGSTAB + AMG)."""

    linear_solver_tol: float = 1e-10
    linesearch_max: int = 20  # maximum step halvings
    fd_step: float = 1.0e-7
    lag_preconditioner: int = 1  # rebuild the AMG hierarchy every this many iterations
    method: str = "Newton-FDColor"

    def __post_init__(self):
        if self.lag_preconditioner < 1:
            raise InvalidConfiguration(
                f"lag_preconditioner >= 1 required (got {self.lag_preconditioner})"
            )


@dataclass
class SNESParameters(Parameters):
    """PETSc SNES backend; further options come from the PETSc options database."""

    options_prefix: str = ""
    no_objective: bool = False
    no_gradient: bool = False  # residual by differencing the objective
    method: str = "PETSc-SNES"

    def __post_init__(self):
        if self.no_objective and self.no_gradient:
            raise InvalidConfiguration("no_objective and no_gradient leave nothing to solve with")


# ========================================================
# Metrics (Output Results)
# ========================================================


@dataclass
class Metrics:
    """Solver metrics - output results computed during/after solving."""

    iterations: int = 0
    converged: bool = False
    final_residual: float = float("inf")
    objective: float = 0.0
    error_inf: float = float("nan")
    error_l2: float = float("nan")
    relative_error: float = float("nan")
    wall_time_seconds: float = 0.0

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])

    def to_mlflow(self) -> dict:
        return {k: float(v) for k, v in asdict(self).items()}


# ========================================================
# Fields (Nodal Solution Data)
# ========================================================


@dataclass
class Fields:
    """Nodal solution u with exact solution and forcing on grid (x, y)."""

    u: np.ndarray
    u_exact: np.ndarray
    f: np.ndarray
    x: np.ndarray
    y: np.ndarray

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame with one row per grid node."""
        return pd.DataFrame({k: np.ravel(v) for k, v in asdict(self).items()})


# ========================================================
# Time Series (Convergence History)
# ========================================================


@dataclass
class TimeSeries:
    """Convergence history (one value per nonlinear iteration, iterate 0 first)."""

    residual_norm: List[float] = field(default_factory=list)
    objective: List[float] = field(default_factory=list)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(asdict(self))

    def to_mlflow_batch(self) -> list:
        from mlflow.entities import Metric

        timestamp = int(time.time() * 1000)
        return [
            Metric(key=name, value=float(value), timestamp=timestamp, step=step)
            for name, values in asdict(self).items()
            for step, value in enumerate(values)
        ]
