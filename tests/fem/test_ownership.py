"""Tests for element ownership: every element contributes exactly once."""

import numpy as np
import pytest

from fem import (
    LocalInfo,
    ProblemParameters,
    StructuredGrid,
    owned_elements,
    owns_element,
    partition,
    scatter_to_local,
    touching_elements,
)
from fem.ownership import corner_values, element_corners

SPLITS = [(1, 1), (2, 1), (1, 2), (2, 2), (3, 2), (3, 3)]


def _all_elements(grid):
    (x0, x1), (y0, y1) = grid.element_range_x, grid.element_range_y
    return {(i, j) for j in range(y0, y1 + 1) for i in range(x0, x1 + 1)}


class TestOwnership:
    @pytest.mark.parametrize("dirichlet", [True, False])
    @pytest.mark.parametrize("px,py", SPLITS)
    def test_elements_partitioned_exactly_once(self, dirichlet, px, py):
        grid = StructuredGrid(mx=6, my=5, dirichlet=dirichlet)
        seen = []
        for info in partition(grid, px, py):
            seen.extend(map(tuple, owned_elements(info)))
        assert len(seen) == len(set(seen)) == grid.n_elements
        assert set(seen) == _all_elements(grid)

    def test_serial_owns_everything(self):
        grid = StructuredGrid(mx=3, my=3, dirichlet=True)
        elements = owned_elements(LocalInfo.serial(grid))
        assert len(elements) == 16
        # j outer, i inner
        assert tuple(elements[0]) == (0, 0) and tuple(elements[1]) == (1, 0)

    def test_boundary_column_goes_to_last_process(self):
        """Elements whose top-right node is the Dirichlet node i == mx."""
        grid = StructuredGrid(mx=4, my=2, dirichlet=True)
        left, right = partition(grid, 2, 1)
        assert not owns_element(4, 1, left)
        assert owns_element(4, 1, right)
        assert owns_element(2, 1, right) and not owns_element(2, 1, left)

    def test_neumann_has_no_boundary_elements(self):
        grid = StructuredGrid(mx=4, my=4, dirichlet=False)
        info = LocalInfo.serial(grid)
        assert not owns_element(0, 2, info)
        assert not owns_element(4, 2, info)
        assert owns_element(3, 3, info)

    @pytest.mark.parametrize("dirichlet", [True, False])
    def test_touching_elements_cover_owned_nodes(self, dirichlet):
        """Every element adjacent to an owned node is visited by the residual."""
        grid = StructuredGrid(mx=6, my=5, dirichlet=dirichlet)
        for info in partition(grid, 2, 2):
            touching = set(map(tuple, touching_elements(info)))
            assert set(map(tuple, owned_elements(info))) <= touching
            for j in range(info.ys, info.ye):
                for i in range(info.xs, info.xe):
                    for di in (0, 1):
                        for dj in (0, 1):
                            if grid.has_element(i + di, j + dj):
                                assert (i + di, j + dj) in touching


class TestCornerValues:
    def test_corner_order(self):
        ci, cj = element_corners(np.array([[2, 3]]))
        assert ci.tolist() == [[2, 1, 1, 2]]
        assert cj.tolist() == [[3, 3, 2, 2]]

    def test_dirichlet_corners_take_exact_data(self):
        params = ProblemParameters(problem="polynomial", variant="plap")
        grid = StructuredGrid(mx=3, my=3, dirichlet=True)
        info = LocalInfo.serial(grid)
        field = scatter_to_local(np.full((3, 3), 7.0), info)
        ci, cj = element_corners(np.array([[0, 0]]))
        values = corner_values(field, params, ci, cj)[0]
        assert values[0] == 7.0
        # (-1, 0), (-1, -1), (0, -1) are boundary nodes
        x, y = grid.x(ci[0]), grid.y(cj[0])
        expected = 0.5 * (x + 1.0) ** 2 * (y + 1.0) ** 2
        assert np.allclose(values[1:], expected[1:])
