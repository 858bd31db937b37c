"""Serial Newton solver driving the assembly core.

The Jacobian is never assembled analytically: it is a finite-difference
approximation of the residual built with a 9-color scheme.  Nodes with equal
(i mod 3, j mod 3) have disjoint 3x3 stencils, so one residual evaluation per
color recovers all columns of that color.
"""

import logging

import numpy as np
from scipy.sparse import csr_matrix

from fem import assemble_objective, assemble_residual, initial_iterate, scatter_to_local
from .base import NonlinearFESolver
from .datastructures import NewtonParameters
from .linear import scipy_solver

log = logging.getLogger(__name__)

ARMIJO = 1.0e-4


class NewtonSolver(NonlinearFESolver):
    """Newton iteration with colored FD Jacobian and backtracking line search.

    A step is accepted when it gives sufficient decrease of the objective or
    of the residual norm; the latter takes over near convergence where
    objective differences sink below rounding.
    """

    Parameters = NewtonParameters

    # -------------------------------------------------------------------------
    # Assembly wrappers on global (my, mx) arrays
    # -------------------------------------------------------------------------

    def objective(self, u: np.ndarray) -> float:
        return assemble_objective(self.info, scatter_to_local(u, self.info), self.problem)

    def residual(self, u: np.ndarray) -> np.ndarray:
        return assemble_residual(self.info, scatter_to_local(u, self.info), self.problem)

    def jacobian(self, u: np.ndarray, F: np.ndarray | None = None) -> csr_matrix:
        """Colored forward-difference Jacobian of the residual at u."""
        my, mx = u.shape
        if F is None:
            F = self.residual(u)
        steps = self.params.fd_step * np.maximum(1.0, np.abs(u))
        jj, ii = np.meshgrid(np.arange(my), np.arange(mx), indexing="ij")

        rows, cols, data = [], [], []
        for a in range(3):
            for b in range(3):
                color = (ii % 3 == a) & (jj % 3 == b)
                if not np.any(color):
                    continue
                dF = self.residual(u + steps * color) - F
                ci, cj = ii[color], jj[color]
                for dj in (-1, 0, 1):
                    for di in (-1, 0, 1):
                        ri, rj = ci + di, cj + dj
                        ok = (0 <= ri) & (ri < mx) & (0 <= rj) & (rj < my)
                        rows.append(rj[ok] * mx + ri[ok])
                        cols.append(cj[ok] * mx + ci[ok])
                        # each row sees exactly one perturbed column of this color
                        data.append(dF[rj[ok], ri[ok]] / steps[cj[ok], ci[ok]])
        n = mx * my
        return csr_matrix(
            (np.concatenate(data), (np.concatenate(rows), np.concatenate(cols))), shape=(n, n)
        )

    # -------------------------------------------------------------------------
    # Nonlinear iteration
    # -------------------------------------------------------------------------

    def _solve(self) -> dict:
        p = self.params
        u = initial_iterate(self.info, self.problem, exact_init=p.exact_init)
        F = self.residual(u)
        obj = self.objective(u)
        fnorm = fnorm0 = np.linalg.norm(F)
        self._record_iteration(0, fnorm, obj)

        target = max(p.atol, p.tolerance * fnorm0)
        converged = fnorm <= target
        iterations = 0
        M = None
        while not converged and iterations < p.max_iterations:
            J = self.jacobian(u, F)
            if iterations % p.lag_preconditioner == 0:
                M = None  # rebuild AMG on the current Jacobian
            delta, M = scipy_solver(J, -F.ravel(), M=M, tolerance=p.linear_solver_tol)
            delta = delta.reshape(u.shape)
            slope = float(np.dot(F.ravel(), delta.ravel()))

            lam = 1.0
            for _ in range(p.linesearch_max + 1):
                trial = u + lam * delta
                F_trial = self.residual(trial)
                obj_trial = self.objective(trial)
                fnorm_trial = np.linalg.norm(F_trial)
                if (obj_trial <= obj + ARMIJO * lam * slope
                        or fnorm_trial <= (1.0 - ARMIJO * lam) * fnorm):
                    break
                lam *= 0.5
            else:
                log.warning(f"line search failed at iteration {iterations + 1}")
                break

            u, F, obj, fnorm = trial, F_trial, obj_trial, fnorm_trial
            iterations += 1
            self._record_iteration(iterations, fnorm, obj)
            converged = fnorm <= target

        return {
            "u": u,
            "iterations": iterations,
            "converged": bool(converged),
            "final_residual": float(fnorm),
            "objective": float(obj),
        }
