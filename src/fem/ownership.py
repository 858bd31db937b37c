"""Element ownership and corner-value construction for the element loop.

Element (i, j) is the cell whose top-right node is (i, j).  A process with
owned nodes [xs, XE) x [ys, YE) visits top-right corners in the closed range
[xs, XE] x [ys, YE]: one extra column and row beyond its nodes.  For the
objective it keeps only the elements it owns:

    interior elements belong to the owner of their top-right node;
    the column (row) of elements whose top-right node is the Dirichlet node
    i == mx (j == my) belongs to the process whose owned range ends there.

Every element therefore has exactly one owner.  The residual needs all
elements adjacent to owned nodes, which is the whole visitation range.
"""

from __future__ import annotations

import numpy as np

from .grid import LocalField, LocalInfo
from .problems import ProblemParameters, exact_solution
from .reference import LI, LJ


def owns_node(i, j, info: LocalInfo):
    return (info.xs <= i) & (i < info.xe) & (info.ys <= j) & (j < info.ye)


def owns_element(i, j, info: LocalInfo):
    """True if this process contributes element (i, j) to the objective."""
    grid = info.grid
    own_x = ((info.xs <= i) & (i < info.xe)) | ((i == info.xe) & (info.xe == grid.mx))
    own_y = ((info.ys <= j) & (j < info.ye)) | ((j == info.ye) & (info.ye == grid.my))
    return grid.has_element(i, j) & own_x & own_y


def _visitation_range(info: LocalInfo) -> tuple[np.ndarray, np.ndarray]:
    # j outer, i inner
    jj, ii = np.meshgrid(
        np.arange(info.ys, info.ye + 1), np.arange(info.xs, info.xe + 1), indexing="ij"
    )
    return ii.ravel(), jj.ravel()


def owned_elements(info: LocalInfo) -> np.ndarray:
    """(n, 2) array of top-right corners (i, j) owned by this process."""
    ii, jj = _visitation_range(info)
    keep = owns_element(ii, jj, info)
    return np.column_stack([ii[keep], jj[keep]])


def touching_elements(info: LocalInfo) -> np.ndarray:
    """(n, 2) array of existing elements in the visitation range."""
    ii, jj = _visitation_range(info)
    keep = info.grid.has_element(ii, jj)
    return np.column_stack([ii[keep], jj[keep]])


def element_corners(elements: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Global node indices (n, 4) of the local corners of each element."""
    ci = elements[:, 0:1] + LI[np.newaxis, :]
    cj = elements[:, 1:2] + LJ[np.newaxis, :]
    return ci, cj


def corner_values(field: LocalField, params: ProblemParameters, ci, cj) -> np.ndarray:
    """Values at the given nodes: field lookup, or exact data on Dirichlet nodes."""
    info = field.info
    grid = info.grid
    boundary = grid.is_dirichlet(ci, cj)
    # clip so that boundary positions index safely; they are replaced below
    li = np.clip(ci - info.gxs, 0, info.gxm - 1)
    lj = np.clip(cj - info.gys, 0, info.gym - 1)
    values = field.array[lj, li]
    if np.any(boundary):
        exact = exact_solution(grid.x(ci), grid.y(cj), params)
        values = np.where(boundary, exact, values)
    return values
