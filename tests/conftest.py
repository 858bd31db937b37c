"""Pytest configuration and fixtures for the assembly and solver tests."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def plap_constant():
    """p = 2 Dirichlet problem with f = 1 and boundary data 1."""
    from fem import ProblemParameters

    return ProblemParameters(p=2.0, eps=0.0, quadpts=2, problem="constant", variant="plap")


@pytest.fixture
def phelm_constant():
    """p = 2 Neumann problem with f = 1, whose exact solution is u = 1."""
    from fem import ProblemParameters

    return ProblemParameters(p=2.0, eps=0.0, quadpts=2, problem="constant", variant="phelm")


@pytest.fixture
def random_state():
    """Reproducible generator for random nodal fields."""
    return np.random.default_rng(20240611)


@pytest.fixture
def global_field(random_state):
    """Build a (my, mx) nodal array: constant if value is given, else random in [0, 1)."""

    def make(grid, value=None):
        if value is not None:
            return np.full((grid.my, grid.mx), float(value))
        return random_state.random((grid.my, grid.mx))

    return make
