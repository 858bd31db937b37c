"""PETSc SNES solver: DMDA partitioning, ghost exchange and global reductions.

The assembly core is called from the SNES objective and residual callbacks
with this process's LocalInfo and a ghosted local field.  Without a Jacobian
callback the default is -snes_fd_color; -snes_mf or -snes_fd override it.
Run in parallel with e.g. ``mpiexec -n 4 python main.py solver=snes``.
"""

import logging

import numpy as np
from petsc4py import PETSc

from fem import (
    LocalField,
    LocalInfo,
    StructuredGrid,
    assemble_objective,
    assemble_residual,
    initial_iterate,
)
from .base import NonlinearFESolver
from .datastructures import SNESParameters

log = logging.getLogger(__name__)


class PetscReduction:
    """Blocking global reduction of one float per process over a communicator."""

    def __init__(self, comm, op: str = "sum"):
        if op not in ("sum", "max"):
            raise ValueError(f"unsupported reduction {op!r}")
        self.op = op
        self._vec = PETSc.Vec().createMPI((1, PETSc.DECIDE), comm=comm)

    def __call__(self, value: float) -> float:
        self._vec.setArray(np.array([value], dtype=PETSc.ScalarType))
        if self.op == "sum":
            return float(self._vec.sum())
        return float(self._vec.max()[1])

    def destroy(self):
        self._vec.destroy()


class SNESSolver(NonlinearFESolver):
    """Distributed solver: PETSc chooses the partition, the core assembles."""

    Parameters = SNESParameters

    def __init__(self, comm=None, **kwargs):
        super().__init__(**kwargs)
        self.comm = comm if comm is not None else PETSc.COMM_WORLD

        # Dirichlet nodes live in the ghost layer, Neumann grids include the boundary
        boundary = (
            PETSc.DM.BoundaryType.GHOSTED if self.grid.dirichlet else PETSc.DM.BoundaryType.NONE
        )
        self.da = PETSc.DMDA().create(
            dim=2,
            dof=1,
            sizes=(self.grid.mx, self.grid.my),
            boundary_type=(boundary, boundary),
            stencil_type=PETSc.DMDA.StencilType.BOX,
            stencil_width=1,
            setup=False,
            comm=self.comm,
        )
        self.da.setFromOptions()  # honors -da_grid_x, -da_refine, ...
        self.da.setUp()

        mx, my = self.da.getSizes()
        if (mx, my) != (self.grid.mx, self.grid.my):
            self.grid = StructuredGrid(mx=mx, my=my, dirichlet=self.grid.dirichlet)
        (xs, xe), (ys, ye) = self.da.getRanges()
        self.info = LocalInfo(grid=self.grid, xs=xs, xm=xe - xs, ys=ys, ym=ye - ys)
        self.allreduce_sum = PetscReduction(self.comm, "sum")
        self.allreduce_max = PetscReduction(self.comm, "max")
        self._xloc = self.da.createLocalVec()

    # -------------------------------------------------------------------------
    # Callbacks
    # -------------------------------------------------------------------------

    def local_field(self, X) -> LocalField:
        """Ghost exchange of the global vector X into this process's local field."""
        self.da.globalToLocal(X, self._xloc)
        (gxs, gxe), (gys, gye) = self.da.getGhostRanges()
        arr = self._xloc.getArray(readonly=True).reshape(gye - gys, gxe - gxs)
        info = self.info
        local = np.zeros((info.gym, info.gxm))
        local[gys - info.gys:gye - info.gys, gxs - info.gxs:gxe - info.gxs] = arr
        return LocalField(local, info)

    def form_objective(self, snes, X) -> float:
        return assemble_objective(
            self.info, self.local_field(X), self.problem, allreduce=self.allreduce_sum
        )

    def form_function(self, snes, X, F):
        FF = assemble_residual(self.info, self.local_field(X), self.problem)
        F.setArray(FF.ravel())

    def _monitor(self, snes, its, fnorm):
        self._record_iteration(its, fnorm, self.form_objective(snes, snes.getSolution()))

    # -------------------------------------------------------------------------
    # Solve
    # -------------------------------------------------------------------------

    def _solve(self) -> dict:
        p = self.params
        prefix = p.options_prefix or None
        opts = PETSc.Options(prefix)
        defaults = {}
        if p.no_gradient:
            # objective-only: PETSc differences the objective for the residual
            defaults.update(snes_fd_function=True, snes_fd_function_eps=0.0)
        if not any(opts.hasName(name) for name in ("snes_mf", "snes_fd", "snes_fd_color")):
            defaults["snes_fd_color"] = True
        defaults = {k: v for k, v in defaults.items() if not opts.hasName(k)}
        for name, value in defaults.items():
            opts.setValue(name, value)

        snes = PETSc.SNES().create(comm=self.comm)
        if prefix:
            snes.setOptionsPrefix(prefix)
        snes.setDM(self.da)
        if not p.no_objective:
            snes.setObjective(self.form_objective)
        F = self.da.createGlobalVec()
        if not p.no_gradient:
            snes.setFunction(self.form_function, F)
        snes.setMonitor(self._monitor)
        snes.setTolerances(rtol=p.tolerance, atol=p.atol, max_it=p.max_iterations)
        snes.setFromOptions()

        u = self.da.createGlobalVec()
        u.setArray(initial_iterate(self.info, self.problem, exact_init=p.exact_init).ravel())
        snes.solve(None, u)

        reason = snes.getConvergedReason()
        log.info(f"SNES converged reason {reason}")
        result = {
            "u": u.getArray(readonly=True).reshape(self.info.ym, self.info.xm).copy(),
            "iterations": snes.getIterationNumber(),
            "converged": reason > 0,
            "final_residual": float(snes.getFunctionNorm()),
            "objective": self.form_objective(snes, u),
        }

        for name in defaults:
            opts.delValue(name)
        u.destroy()
        F.destroy()
        snes.destroy()
        return result

    def destroy(self):
        """Release the DMDA, the local work vector and the reduction vectors."""
        self.allreduce_sum.destroy()
        self.allreduce_max.destroy()
        self._xloc.destroy()
        self.da.destroy()
