"""Tests for the regularized power-law gradient norm."""

import pytest

from fem.operator import grad_inner_prod, grad_pow


class TestGradInnerProd:
    def test_scaling_by_element_size(self):
        """Reference derivatives scale by 2/hx and 2/hy."""
        hx, hy = 0.25, 0.5
        assert grad_inner_prod(1.0, 0.0, 1.0, 0.0, hx, hy) == pytest.approx(64.0)
        assert grad_inner_prod(0.0, 1.0, 0.0, 1.0, hx, hy) == pytest.approx(16.0)
        assert grad_inner_prod(1.0, 2.0, 3.0, -1.0, hx, hy) == pytest.approx(64.0 * 3 - 16.0 * 2)

    def test_symmetric(self):
        a = grad_inner_prod(0.3, -0.2, 1.1, 0.7, 0.1, 0.2)
        b = grad_inner_prod(1.1, 0.7, 0.3, -0.2, 0.1, 0.2)
        assert a == pytest.approx(b)


class TestGradPow:
    def test_exponent_zero_is_one(self):
        assert grad_pow(0.3, 0.4, 0.0, 0.0, 1.0, 1.0) == pytest.approx(1.0)

    def test_exponent_two_is_squared_norm(self):
        """P = 2 gives |grad u|^2 + eps^2."""
        hx = hy = 2.0  # physical gradient equals reference gradient
        assert grad_pow(3.0, 4.0, 2.0, 0.0, hx, hy) == pytest.approx(25.0)
        assert grad_pow(3.0, 4.0, 2.0, 1.0, hx, hy) == pytest.approx(26.0)

    @pytest.mark.parametrize("P", [1.0, 3.0, -0.5])
    def test_regularized_at_zero_gradient(self, P):
        """With eps > 0 the value at zero gradient is eps^P."""
        assert grad_pow(0.0, 0.0, P, 0.1, 0.5, 0.5) == pytest.approx(0.1**P)


    def test_unregularized_negative_power_is_infinite(self):
        """eps = 0 with P < 0 is left infinite at a zero gradient."""
        assert grad_pow(0.0, 0.0, -0.5, 0.0, 0.5, 0.5) == float("inf")
