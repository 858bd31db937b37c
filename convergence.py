#!/usr/bin/env python
"""Grid refinement study for the serial Newton solver.

Usage:
    python convergence.py --variant phelm --problem cosines --p 2 --levels 4
    python convergence.py --variant plap --problem polynomial --p 4 --eps 1e-3 --plot figures
"""

import argparse
import logging
import sys
from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd

sys.path.insert(0, str(Path(__file__).parent / "src"))

from cli import fail, header, ok, print_table  # noqa: E402
from solvers import NewtonSolver, convergence_rates  # noqa: E402

log = logging.getLogger(__name__)


def refinement_study(
    variant: str = "phelm",
    problem: str = "cosines",
    p: float = 2.0,
    eps: float = 0.0,
    quadpts: int = 2,
    coarse: int = 5,
    levels: int = 4,
) -> pd.DataFrame:
    """Solve on successively refined grids and tabulate errors with observed rates.

    Each level halves the element size: mx -> 2 mx - 1 keeps the Neumann
    grid nested, mx -> 2 mx + 1 the Dirichlet one.
    """
    rows = []
    mx = coarse
    for _ in range(levels):
        solver = NewtonSolver(
            mx=mx, my=mx, variant=variant, problem=problem, p=p, eps=eps, quadpts=quadpts
        )
        solver.solve()
        m = solver.metrics
        rows.append(
            {
                "mx": mx,
                "h": solver.grid.hx,
                "iterations": m.iterations,
                "converged": m.converged,
                "error_inf": m.error_inf,
                "error_l2": m.error_l2,
                "relative_error": m.relative_error,
            }
        )
        mx = 2 * mx + 1 if solver.grid.dirichlet else 2 * mx - 1
    df = convergence_rates(pd.DataFrame(rows), error_col="error_l2")
    return convergence_rates(df, error_col="error_inf")


def plot_convergence(df: pd.DataFrame, output_dir: Path, label: str):
    """Log-log plot of the max-norm error against h with an O(h^2) reference."""
    fig, ax = plt.subplots(figsize=(6, 4.5))
    ax.loglog(df["h"], df["error_inf"], "o-", linewidth=2, markersize=7, label=r"$\|u - u_{exact}\|_\infty$")
    ref = df["error_inf"].iloc[0] * (df["h"] / df["h"].iloc[0]) ** 2
    ax.loglog(df["h"], ref, "k:", linewidth=1.5, label=r"$\mathcal{O}(h^2)$")
    ax.set_xlabel(r"$h$")
    ax.set_ylabel("max-norm error")
    ax.set_title(label)
    ax.grid(True, which="both", alpha=0.4, linewidth=0.5)
    ax.legend(loc="lower right")
    plt.tight_layout()

    output_dir.mkdir(parents=True, exist_ok=True)
    output_file = output_dir / f"convergence_{label.replace(' ', '_')}.pdf"
    plt.savefig(output_file, bbox_inches="tight", dpi=300)
    plt.close(fig)
    return output_file


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--variant", default="phelm", choices=["plap", "phelm"])
    parser.add_argument("--problem", default="cosines", choices=["constant", "cosines", "polynomial"])
    parser.add_argument("--p", type=float, default=2.0)
    parser.add_argument("--eps", type=float, default=0.0)
    parser.add_argument("--quadpts", type=int, default=2)
    parser.add_argument("--coarse", type=int, default=5)
    parser.add_argument("--levels", type=int, default=4)
    parser.add_argument("--plot", type=Path, default=None, help="directory for the log-log plot")
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING)
    label = f"{args.variant} {args.problem} p={args.p:g}"
    header(f"Refinement study: {label}")
    df = refinement_study(
        args.variant, args.problem, args.p, args.eps, args.quadpts, args.coarse, args.levels
    )
    print_table(df, title=label)

    if df["converged"].all():
        ok("all levels converged")
    else:
        fail(f"{int((~df['converged']).sum())} level(s) did not converge")

    if args.plot is not None:
        ok(f"saved {plot_convergence(df, args.plot, label)}")


if __name__ == "__main__":
    main()
