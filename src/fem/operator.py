"""Regularized power-law gradient norm used by the p-Laplacian integrands.

Gradients are carried in reference coordinates; an hx-by-hy element maps to
[-1, 1]^2 affinely, so d/dx = (2/hx) d/dxi and d/dy = (2/hy) d/deta.
"""

from numba import njit


@njit(cache=True, nogil=True)
def grad_inner_prod(du_xi, du_eta, dv_xi, dv_eta, hx, hy):
    """Physical inner product <grad u, grad v> from reference gradients."""
    cx = 4.0 / (hx * hx)
    cy = 4.0 / (hy * hy)
    return cx * du_xi * dv_xi + cy * du_eta * dv_eta


@njit(cache=True, nogil=True)
def grad_pow(du_xi, du_eta, P, eps, hx, hy):
    """(|grad u|^2 + eps^2)^(P/2).

    With eps = 0 and P < 0 this is infinite at a zero gradient.
    """
    return (grad_inner_prod(du_xi, du_eta, du_xi, du_eta, hx, hy) + eps * eps) ** (P / 2.0)
