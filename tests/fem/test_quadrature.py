"""Tests for the Gauss-Legendre rules."""

import numpy as np
import pytest

from fem import InvalidConfiguration, gauss_legendre


class TestGaussLegendre:
    """1D and tensor-product exactness, error handling."""

    @pytest.mark.parametrize("n", [1, 2, 3])
    def test_weights_sum_to_two(self, n):
        rule = gauss_legendre(n)
        assert len(rule.points) == n
        assert np.sum(rule.weights) == pytest.approx(2.0, abs=1e-14)

    @pytest.mark.parametrize("n", [1, 2, 3])
    def test_exact_up_to_degree(self, n):
        """x^k integrates exactly on [-1, 1] for k <= 2n - 1."""
        rule = gauss_legendre(n)
        for k in range(2 * n):
            exact = 0.0 if k % 2 else 2.0 / (k + 1)
            assert rule.integrate(lambda x: x**k) == pytest.approx(exact, abs=1e-14)

    @pytest.mark.parametrize("n", [1, 2, 3])
    def test_not_exact_beyond_degree(self, n):
        """The first even degree past 2n - 1 is not integrated exactly."""
        rule = gauss_legendre(n)
        k = 2 * n
        assert abs(rule.integrate(lambda x: x**k) - 2.0 / (k + 1)) > 1e-6

    def test_known_two_point_rule(self):
        rule = gauss_legendre(2)
        assert np.allclose(np.sort(rule.points), [-1 / np.sqrt(3), 1 / np.sqrt(3)], atol=1e-15)
        assert np.allclose(rule.weights, [1.0, 1.0], atol=1e-15)

    @pytest.mark.parametrize("n", [1, 2, 3])
    def test_tensor_rule_on_square(self, n):
        """Tensor rule integrates xi^a eta^b exactly for a, b <= 2n - 1."""
        xi, eta, w = gauss_legendre(n).tensor()
        assert len(w) == n * n
        for a in range(2 * n):
            for b in range(2 * n):
                exact = (0.0 if a % 2 else 2.0 / (a + 1)) * (0.0 if b % 2 else 2.0 / (b + 1))
                assert np.sum(w * xi**a * eta**b) == pytest.approx(exact, abs=1e-13)

    def test_rules_are_read_only(self):
        rule = gauss_legendre(3)
        with pytest.raises(ValueError):
            rule.points[0] = 0.0

    @pytest.mark.parametrize("n", [0, 4, -1])
    def test_unsupported_degree_raises(self, n):
        with pytest.raises(InvalidConfiguration):
            gauss_legendre(n)
