"""Shared error norms and convergence-rate utilities for solvers."""

from __future__ import annotations

import numpy as np
import pandas as pd


# -----------------------------------------------------------------------------
# Norms / errors
# -----------------------------------------------------------------------------


def discrete_l2_error(u_exact: np.ndarray, u_num: np.ndarray, hx: float, hy: float) -> float:
    """Grid-weighted discrete L2 error between exact and numerical nodal values."""
    diff = np.asarray(u_num) - np.asarray(u_exact)
    return float(np.sqrt(hx * hy * np.sum(diff**2)))


# -----------------------------------------------------------------------------
# Refinement studies
# -----------------------------------------------------------------------------


def convergence_rates(
    df: pd.DataFrame, h_col: str = "h", error_col: str = "error_inf"
) -> pd.DataFrame:
    """Add observed orders log(e_k / e_{k+1}) / log(h_k / h_{k+1}) to a refinement table.

    Rows are sorted from coarse to fine; the first row has rate NaN.
    """
    out = df.sort_values(h_col, ascending=False).reset_index(drop=True)
    h = out[h_col].to_numpy(dtype=float)
    e = out[error_col].to_numpy(dtype=float)
    rates = np.full(len(out), np.nan)
    with np.errstate(divide="ignore", invalid="ignore"):
        rates[1:] = np.log(e[:-1] / e[1:]) / np.log(h[:-1] / h[1:])
    out[f"rate_{error_col}"] = rates
    return out
