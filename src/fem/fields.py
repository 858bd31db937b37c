"""Owned-node samples of closed-form functions: initial iterate, exact solution, error."""

from __future__ import annotations

import numpy as np

from .grid import LocalInfo
from .problems import ProblemParameters, Variant, exact_solution, forcing


def serial_max(value: float) -> float:
    """Global max on a single process."""
    return float(value)


def sample_owned(info: LocalInfo, fn, params: ProblemParameters) -> np.ndarray:
    """Evaluate fn(x, y, params) at the owned nodes, shape (ym, xm)."""
    grid = info.grid
    ii, jj = info.owned_indices()
    values = fn(grid.x(ii), grid.y(jj), params)
    return np.broadcast_to(values, ii.shape).astype(np.float64)


def exact_owned(info: LocalInfo, params: ProblemParameters) -> np.ndarray:
    return sample_owned(info, exact_solution, params)


def forcing_owned(info: LocalInfo, params: ProblemParameters) -> np.ndarray:
    return sample_owned(info, forcing, params)


def initial_iterate(info: LocalInfo, params: ProblemParameters, exact_init: bool = False) -> np.ndarray:
    """Starting iterate on the owned nodes.

    p-Laplacian: blend in x of the exact data on the left and right edges.
    p-Helmholtz: the constant 0.5.
    """
    if exact_init:
        return exact_owned(info, params)
    grid = info.grid
    if params.variant is Variant.P_LAPLACIAN:
        ii, jj = info.owned_indices()
        x, y = grid.x(ii), grid.y(jj)
        return ((1.0 - x) * exact_solution(0.0, y, params)
                + x * exact_solution(1.0, y, params)).astype(np.float64)
    return np.full((info.ym, info.xm), 0.5)


def linf_error(u_owned: np.ndarray, info: LocalInfo, params: ProblemParameters,
               allreduce=serial_max) -> float:
    """max |u - u_exact| over all processes' owned nodes."""
    local = np.max(np.abs(u_owned - exact_owned(info, params))) if u_owned.size else 0.0
    return allreduce(local)
