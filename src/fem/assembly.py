"""Objective and residual assembly over Q1 elements.

The Python layer selects elements and builds corner values (field or
Dirichlet data) and corner forcing values; the numba kernels evaluate the
quadrature sums.  Forcing is interpolated from its corner values, the same
way u is, so the residual is exactly the gradient of the objective.
"""

from __future__ import annotations

import numpy as np
from numba import njit

from .errors import InvalidConfiguration
from .grid import LocalField, LocalInfo
from .operator import grad_inner_prod, grad_pow
from .ownership import (
    corner_values,
    element_corners,
    owns_node,
    owned_elements,
    touching_elements,
)
from .problems import ProblemParameters, forcing
from .quadrature import gauss_legendre
from .reference import evaluate, evaluate_grad, grad_shape, shape


def serial_sum(value: float) -> float:
    """Global sum on a single process."""
    return float(value)


# -----------------------------------------------------------------------------
# Kernels
# -----------------------------------------------------------------------------


@njit(cache=True, nogil=True)
def objective_integrand(uu, ff, xi, eta, hx, hy, p, eps, reaction):
    du_xi, du_eta = evaluate_grad(uu, xi, eta)
    u = evaluate(uu, xi, eta)
    value = grad_pow(du_xi, du_eta, p, eps, hx, hy) / p - evaluate(ff, xi, eta) * u
    if reaction:
        value += 0.5 * u * u
    return value


@njit(cache=True, nogil=True)
def residual_integrand(L, uu, ff, xi, eta, hx, hy, p, eps, reaction):
    du_xi, du_eta = evaluate_grad(uu, xi, eta)
    dchi_xi, dchi_eta = grad_shape(L, xi, eta)
    source = evaluate(ff, xi, eta)
    if reaction:
        source = source - evaluate(uu, xi, eta)
    return (grad_pow(du_xi, du_eta, p - 2.0, eps, hx, hy)
            * grad_inner_prod(du_xi, du_eta, dchi_xi, dchi_eta, hx, hy)
            - source * shape(L, xi, eta))


@njit(cache=True, nogil=True)
def objective_kernel(uu, ff, zq, wq, hx, hy, p, eps, reaction):
    """Unscaled quadrature sum over all given elements."""
    total = 0.0
    n = zq.shape[0]
    for e in range(uu.shape[0]):
        for r in range(n):
            for s in range(n):
                total += wq[r] * wq[s] * objective_integrand(
                    uu[e], ff[e], zq[r], zq[s], hx, hy, p, eps, reaction
                )
    return total


@njit(cache=True, nogil=True)
def residual_kernel(uu, ff, targets, zq, wq, hx, hy, p, eps, reaction, FF):
    """Scatter corner contributions into the flat owned array FF.

    targets[e, L] is the flat index of corner L of element e in FF, or -1
    when that node is not owned here.
    """
    n = zq.shape[0]
    scale = 0.25 * hx * hy
    for e in range(uu.shape[0]):
        for L in range(4):
            k = targets[e, L]
            if k < 0:
                continue
            for r in range(n):
                for s in range(n):
                    FF[k] += scale * wq[r] * wq[s] * residual_integrand(
                        L, uu[e], ff[e], zq[r], zq[s], hx, hy, p, eps, reaction
                    )


# -----------------------------------------------------------------------------
# Assembly
# -----------------------------------------------------------------------------


def _check(info: LocalInfo, field: LocalField, params: ProblemParameters):
    if info.grid.dirichlet != params.variant.dirichlet:
        raise InvalidConfiguration(
            f"grid boundary (dirichlet={info.grid.dirichlet}) does not match "
            f"variant {params.variant.value}"
        )
    if field.info != info:
        raise ValueError("local field was built for a different ownership range")


def _element_data(info: LocalInfo, field: LocalField, params: ProblemParameters, elements):
    grid = info.grid
    ci, cj = element_corners(elements)
    uu = np.ascontiguousarray(corner_values(field, params, ci, cj), dtype=np.float64)
    ff = np.ascontiguousarray(
        np.broadcast_to(forcing(grid.x(ci), grid.y(cj), params), ci.shape), dtype=np.float64
    )
    return ci, cj, uu, ff


def assemble_objective(
    info: LocalInfo,
    field: LocalField,
    params: ProblemParameters,
    allreduce=serial_sum,
) -> float:
    """Objective I[u] summed over owned elements and reduced over processes.

    allreduce is a blocking collective: every process must call this the
    same number of times.
    """
    _check(info, field, params)
    grid = info.grid
    rule = gauss_legendre(params.quadpts)
    elements = owned_elements(info)
    lobj = 0.0
    if len(elements):
        _, _, uu, ff = _element_data(info, field, params, elements)
        lobj = objective_kernel(
            uu, ff, rule.points, rule.weights, grid.hx, grid.hy,
            float(params.p), float(params.eps), params.variant.reaction,
        )
    lobj *= grid.hx * grid.hy / 4.0  # change of variables
    return allreduce(lobj)


def assemble_residual(
    info: LocalInfo,
    field: LocalField,
    params: ProblemParameters,
    out: np.ndarray | None = None,
) -> np.ndarray:
    """Residual (gradient of the objective) at owned nodes, shape (ym, xm).

    Dirichlet nodes are not unknowns and never receive contributions.  If
    out is given it is zeroed and filled in place.
    """
    _check(info, field, params)
    grid = info.grid
    if out is None:
        out = np.zeros((info.ym, info.xm))
    elif out.shape != (info.ym, info.xm):
        raise ValueError(f"out has shape {out.shape}, expected {(info.ym, info.xm)}")
    out[...] = 0.0
    FF = np.zeros(info.ym * info.xm)

    rule = gauss_legendre(params.quadpts)
    elements = touching_elements(info)
    if len(elements):
        ci, cj, uu, ff = _element_data(info, field, params, elements)
        owned = owns_node(ci, cj, info) & ~grid.is_dirichlet(ci, cj)
        targets = np.where(owned, (cj - info.ys) * info.xm + (ci - info.xs), -1).astype(np.int64)
        residual_kernel(
            uu, ff, targets, rule.points, rule.weights, grid.hx, grid.hy,
            float(params.p), float(params.eps), params.variant.reaction, FF,
        )
    out[...] = FF.reshape(info.ym, info.xm)
    return out
