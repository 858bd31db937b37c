"""Tests for the serial Newton solver."""

import logging

import numpy as np
import pytest

from fem import InvalidConfiguration, UnsupportedForcingSelector
from solvers import NewtonParameters, NewtonSolver


@pytest.fixture
def small_params():
    """Parameters for a small, quickly converging solve."""
    return {
        "mx": 5,
        "my": 5,
        "variant": "phelm",
        "problem": "cosines",
        "p": 2.0,
        "eps": 0.0,
        "quadpts": 2,
        "max_iterations": 20,
        "tolerance": 1e-10,
    }


class TestConfiguration:
    def test_kwargs_build_parameters(self, small_params):
        solver = NewtonSolver(**small_params)
        assert isinstance(solver.params, NewtonParameters)
        assert solver.grid.mx == 5 and not solver.grid.dirichlet

    def test_params_object(self):
        solver = NewtonSolver(params=NewtonParameters(mx=4, my=4, variant="plap"))
        assert solver.grid.dirichlet
        assert solver.grid.hx == pytest.approx(0.2)

    def test_invalid_exponent_raises(self, small_params):
        with pytest.raises(InvalidConfiguration):
            NewtonSolver(**{**small_params, "p": 0.5})

    def test_unknown_problem_raises(self, small_params):
        with pytest.raises(UnsupportedForcingSelector):
            NewtonSolver(**{**small_params, "problem": "bessel"})


class TestJacobian:
    def test_matches_dense_difference_quotients(self, small_params):
        """Colored Jacobian equals column-by-column forward differences."""
        solver = NewtonSolver(**{**small_params, "p": 3.0, "eps": 0.1})
        rng = np.random.default_rng(7)
        u = rng.random((5, 5))
        F = solver.residual(u)
        J = solver.jacobian(u, F).toarray()

        step = solver.params.fd_step
        dense = np.zeros((25, 25))
        for k in range(25):
            du = np.zeros(25)
            du[k] = step * max(1.0, abs(u.ravel()[k]))
            dense[:, k] = (solver.residual(u + du.reshape(5, 5)) - F).ravel() / du[k]
        assert np.allclose(J, dense, rtol=1e-9, atol=1e-9)

    def test_symmetric_for_linear_problem(self, small_params):
        solver = NewtonSolver(**small_params)
        J = solver.jacobian(np.full((5, 5), 0.5)).toarray()
        assert np.allclose(J, J.T, atol=1e-5)


class TestSolve:
    def test_linear_helmholtz_converges(self, small_params):
        solver = NewtonSolver(**small_params)
        fields = solver.solve()
        assert solver.metrics.converged
        assert solver.metrics.iterations >= 1
        assert fields.u.shape == (5, 5)
        assert solver.metrics.relative_error < 0.25
        assert len(solver.time_series.residual_norm) == solver.metrics.iterations + 1

    def test_exact_init_constant_needs_no_iteration(self):
        solver = NewtonSolver(mx=4, my=4, variant="phelm", problem="constant", exact_init=True)
        solver.solve()
        assert solver.metrics.converged
        assert solver.metrics.iterations == 0
        assert solver.metrics.error_inf == 0.0

    def test_second_order_convergence(self, small_params):
        """Halving h reduces the max-norm error by about four."""
        errors = []
        for mx in (9, 17):
            solver = NewtonSolver(**{**small_params, "mx": mx, "my": mx})
            solver.solve()
            assert solver.metrics.converged
            errors.append(solver.metrics.error_inf)
        assert 3.0 < errors[0] / errors[1] < 5.0

    def test_nonlinear_dirichlet_problem(self):
        """p = 4 with regularization reaches a small residual and error."""
        solver = NewtonSolver(
            mx=9, my=9, variant="plap", problem="polynomial", p=4.0, eps=0.1,
            max_iterations=50, tolerance=1e-9,
        )
        solver.solve()
        assert solver.metrics.converged
        assert solver.metrics.relative_error < 1e-2
        objective = solver.time_series.objective
        assert objective[-1] <= objective[0]

    def test_fields_dataframe(self, small_params):
        solver = NewtonSolver(**small_params)
        df = solver.solve().to_dataframe()
        assert list(df.columns) == ["u", "u_exact", "f", "x", "y"]
        assert len(df) == 25


class TestErrorReporting:
    def test_no_exact_solution_gives_nan_errors(self, caplog):
        """Constant forcing with Dirichlet data has nothing to compare against."""
        solver = NewtonSolver(mx=5, my=5, variant="plap", problem="constant", p=2.0)
        with caplog.at_level(logging.WARNING, logger="solvers.base"):
            solver.solve()
        assert solver.metrics.converged
        assert np.isnan(solver.metrics.error_inf)
        assert np.isnan(solver.metrics.error_l2)
        assert np.isnan(solver.metrics.relative_error)
        assert "no exact solution" in caplog.text

    def test_l2_error_reported(self, small_params):
        solver = NewtonSolver(**small_params)
        solver.solve()
        assert 0.0 < solver.metrics.error_l2 < 1.0

    def test_l2_error_second_order(self, small_params):
        errors = []
        for mx in (9, 17):
            solver = NewtonSolver(**{**small_params, "mx": mx, "my": mx})
            solver.solve()
            errors.append(solver.metrics.error_l2)
        assert 3.0 < errors[0] / errors[1] < 5.0


class TestLaggedPreconditioner:
    def test_lagged_amg_converges_to_same_solution(self):
        common = dict(mx=9, my=9, variant="plap", problem="polynomial", p=4.0, eps=0.1, tolerance=1e-9)
        fresh = NewtonSolver(**common)
        fresh.solve()
        lagged = NewtonSolver(**common, lag_preconditioner=100)
        lagged.solve()
        assert lagged.metrics.converged
        assert np.allclose(lagged.fields.u, fresh.fields.u, rtol=1e-6, atol=1e-8)

    def test_invalid_lag_raises(self):
        with pytest.raises(InvalidConfiguration):
            NewtonParameters(lag_preconditioner=0)
