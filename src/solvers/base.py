"""Abstract base solver for the p-Laplacian / p-Helmholtz problems."""

from abc import ABC, abstractmethod
import logging
import time

import mlflow
import numpy as np

from fem import LocalInfo, exact_owned, forcing_owned, linf_error, serial_max, serial_sum
from .datastructures import Fields, Metrics, TimeSeries
from .metrics import discrete_l2_error

log = logging.getLogger(__name__)


class NonlinearFESolver(ABC):
    """Abstract base solver driving the Q1 assembly core to a solution.

    Handles:
    - Parameter management (input configuration)
    - Metrics tracking (output results)
    - Error against the manufactured solution
    - Live MLflow logging of the nonlinear iteration

    Subclasses must:
    - Set Parameters class attribute (e.g., NewtonParameters)
    - Set self.info (this process's LocalInfo) and, for distributed
      backends, self.allreduce_sum / self.allreduce_max
    - Implement _solve() returning the owned block of the solution
    """

    Parameters = None  # Subclasses set this to NewtonParameters or SNESParameters

    def __init__(self, params=None, **kwargs):
        """Initialize solver with parameters.

        Parameters
        ----------
        params : Parameters, optional
            Parameters object. If not provided, kwargs are used to create params.
        **kwargs
            Configuration parameters passed to Parameters class if params is None.
        """
        if params is None:
            if self.Parameters is None:
                raise ValueError("Subclass must define Parameters class attribute")
            params = self.Parameters(**kwargs)

        self.params = params
        # validates p, eps, quadrature and selectors before any assembly
        self.problem = params.problem_parameters()
        self.grid = params.grid()
        self.info = LocalInfo.serial(self.grid)
        self.allreduce_sum = serial_sum
        self.allreduce_max = serial_max

        self.metrics = Metrics()
        self.fields = None
        self.time_series = TimeSeries()

    @abstractmethod
    def _solve(self) -> dict:
        """Run the nonlinear iteration.

        Returns
        -------
        dict
            Keys 'u' (owned block, shape (ym, xm)), 'iterations',
            'converged', 'final_residual' and 'objective'.
        """
        pass

    def destroy(self):
        """Release backend resources; nothing to do for serial solvers."""

    def _record_iteration(self, iteration: int, residual_norm: float, objective: float):
        """Append to the time series, log, and mirror to MLflow if a run is active."""
        self.time_series.residual_norm.append(float(residual_norm))
        self.time_series.objective.append(float(objective))
        log.info(f"{iteration:3d} objective {objective:.12e}  |F| {residual_norm:.6e}")
        if mlflow.active_run():
            mlflow.log_metrics(
                {"residual_norm": float(residual_norm), "objective": float(objective)},
                step=iteration,
            )

    def _errors(self, u, u_exact):
        """Max-norm, L2 and relative max-norm errors against the exact solution.

        NaN when the problem has no exact solution to compare with.
        """
        if not self.problem.has_exact_solution:
            log.warning(
                f"{self.problem.problem.value} forcing has no exact solution for "
                f"{self.problem.variant.value}; errors not computed"
            )
            return float("nan"), float("nan"), float("nan")

        error_inf = linf_error(u, self.info, self.problem, allreduce=self.allreduce_max)
        local_l2 = discrete_l2_error(u_exact, u, self.grid.hx, self.grid.hy) ** 2
        error_l2 = float(np.sqrt(self.allreduce_sum(local_l2)))
        exact_norm = self.allreduce_max(np.max(np.abs(u_exact)) if u_exact.size else 0.0)
        relative_error = error_inf / exact_norm if exact_norm > 0 else float("nan")
        return error_inf, error_l2, relative_error

    def solve(self):
        """Solve and store results in self.fields, self.time_series and self.metrics."""
        self.time_series = TimeSeries()
        log.info(
            f"grid of {self.grid.mx} x {self.grid.my} nodes (element dims "
            f"{self.grid.hx:g}x{self.grid.hy:g}), {self.problem.variant.value} "
            f"p={self.problem.p:g} eps={self.problem.eps:g} problem={self.problem.problem.value}"
        )

        time_start = time.time()
        result = self._solve()
        wall_time = time.time() - time_start

        u = result["u"]
        u_exact = exact_owned(self.info, self.problem)
        error_inf, error_l2, relative_error = self._errors(u, u_exact)

        ii, jj = self.info.owned_indices()
        self.fields = Fields(
            u=u.copy(),
            u_exact=u_exact,
            f=forcing_owned(self.info, self.problem),
            x=self.grid.x(ii),
            y=self.grid.y(jj),
        )
        self.metrics = Metrics(
            iterations=result["iterations"],
            converged=result["converged"],
            final_residual=result["final_residual"],
            objective=result["objective"],
            error_inf=error_inf,
            error_l2=error_l2,
            relative_error=relative_error,
            wall_time_seconds=wall_time,
        )
        log.info(
            f"done on {self.grid.mx} x {self.grid.my} grid with p={self.problem.p:.3f}: "
            f"|u-u_exact|_inf = {error_inf:.3e} (relative {relative_error:.3e}), "
            f"converged={result['converged']} in {result['iterations']} iterations"
        )
        return self.fields
