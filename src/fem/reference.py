"""Bilinear Q1 basis on the reference square [-1, 1]^2.

Local node numbering follows the element's top-right corner and walks
counter-clockwise::

    1 ------- 0        L   (xi_L, eta_L)   grid node
    |         |        0   (+1, +1)        (i,   j)
    |         |        1   (-1, +1)        (i-1, j)
    2 ------- 3        2   (-1, -1)        (i-1, j-1)
                       3   (+1, -1)        (i,   j-1)

All functions are compiled with numba so the assembly kernels can call them
directly; they are equally usable from plain Python.
"""

import numpy as np
from numba import njit

XI_L = np.array([1.0, -1.0, -1.0, 1.0])
ETA_L = np.array([1.0, 1.0, -1.0, -1.0])

# offsets from the element's top-right node to local node L
LI = np.array([0, -1, -1, 0], dtype=np.int64)
LJ = np.array([0, 0, -1, -1], dtype=np.int64)


@njit(cache=True, nogil=True)
def shape(L, xi, eta):
    """Value of the shape function chi_L at (xi, eta)."""
    return 0.25 * (1.0 + XI_L[L] * xi) * (1.0 + ETA_L[L] * eta)


@njit(cache=True, nogil=True)
def grad_shape(L, xi, eta):
    """Reference gradient (d/dxi, d/deta) of chi_L."""
    return (0.25 * XI_L[L] * (1.0 + ETA_L[L] * eta),
            0.25 * ETA_L[L] * (1.0 + XI_L[L] * xi))


@njit(cache=True, nogil=True)
def evaluate(v, xi, eta):
    """Interpolate the corner values v[0..3] at (xi, eta)."""
    total = 0.0
    for L in range(4):
        total += v[L] * shape(L, xi, eta)
    return total


@njit(cache=True, nogil=True)
def evaluate_grad(v, xi, eta):
    """Reference gradient of the interpolant of v[0..3] at (xi, eta)."""
    dxi = 0.0
    deta = 0.0
    for L in range(4):
        gxi, geta = grad_shape(L, xi, eta)
        dxi += v[L] * gxi
        deta += v[L] * geta
    return dxi, deta
