"""Structured grid, per-process ownership descriptor and ghosted local field.

Arrays are stored row-major as ``a[j, i]`` (y index first), the layout a
DMDA local array has when reshaped to ``(gym, gxm)``.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .errors import InvalidConfiguration


@dataclass(frozen=True)
class StructuredGrid:
    """mx-by-my grid of unknowns on the unit square.

    dirichlet=True  (p-Laplacian): nodes are interior only, hx = 1/(mx+1),
                    node i sits at x = (i+1) hx; indices -1 and mx are the
                    Dirichlet boundary.
    dirichlet=False (p-Helmholtz): nodes include the boundary, hx = 1/(mx-1),
                    node i sits at x = i hx.
    """

    mx: int
    my: int
    dirichlet: bool = True

    def __post_init__(self):
        if self.mx < 2 or self.my < 2:
            raise InvalidConfiguration(f"grid needs mx, my >= 2 (got {self.mx} x {self.my})")

    @classmethod
    def for_variant(cls, mx: int, my: int, variant) -> "StructuredGrid":
        return cls(mx=mx, my=my, dirichlet=variant.dirichlet)

    @property
    def hx(self) -> float:
        return 1.0 / (self.mx + 1) if self.dirichlet else 1.0 / (self.mx - 1)

    @property
    def hy(self) -> float:
        return 1.0 / (self.my + 1) if self.dirichlet else 1.0 / (self.my - 1)

    def x(self, i):
        return self.hx * (np.asarray(i) + 1) if self.dirichlet else self.hx * np.asarray(i)

    def y(self, j):
        return self.hy * (np.asarray(j) + 1) if self.dirichlet else self.hy * np.asarray(j)

    # Elements are named by their top-right node (i, j).
    @property
    def element_range_x(self) -> tuple[int, int]:
        """Inclusive bounds of the top-right index i."""
        return (0, self.mx) if self.dirichlet else (1, self.mx - 1)

    @property
    def element_range_y(self) -> tuple[int, int]:
        return (0, self.my) if self.dirichlet else (1, self.my - 1)

    @property
    def n_elements(self) -> int:
        (x0, x1), (y0, y1) = self.element_range_x, self.element_range_y
        return (x1 - x0 + 1) * (y1 - y0 + 1)

    def has_element(self, i, j):
        (x0, x1), (y0, y1) = self.element_range_x, self.element_range_y
        return (x0 <= i) & (i <= x1) & (y0 <= j) & (j <= y1)

    def is_dirichlet(self, i, j):
        """True for nodes on the Dirichlet boundary (never unknowns)."""
        i, j = np.asarray(i), np.asarray(j)
        if not self.dirichlet:
            return np.zeros(np.broadcast(i, j).shape, dtype=bool)
        return (i == -1) | (i == self.mx) | (j == -1) | (j == self.my)

    def coordinates(self) -> tuple[np.ndarray, np.ndarray]:
        """Node coordinates as (my, mx) arrays."""
        return np.meshgrid(self.x(np.arange(self.mx)), self.y(np.arange(self.my)))


@dataclass(frozen=True)
class LocalInfo:
    """Owned node range plus a one-cell ghost margin for one process."""

    grid: StructuredGrid
    xs: int
    xm: int
    ys: int
    ym: int

    @classmethod
    def serial(cls, grid: StructuredGrid) -> "LocalInfo":
        return cls(grid=grid, xs=0, xm=grid.mx, ys=0, ym=grid.my)

    @property
    def xe(self) -> int:
        return self.xs + self.xm

    @property
    def ye(self) -> int:
        return self.ys + self.ym

    @property
    def gxs(self) -> int:
        return self.xs - 1

    @property
    def gys(self) -> int:
        return self.ys - 1

    @property
    def gxm(self) -> int:
        return self.xm + 2

    @property
    def gym(self) -> int:
        return self.ym + 2

    @property
    def owned(self) -> tuple[slice, slice]:
        """Slices of the owned block inside a ghosted local array."""
        return slice(1, 1 + self.ym), slice(1, 1 + self.xm)

    def owned_indices(self) -> tuple[np.ndarray, np.ndarray]:
        """Global (i, j) index arrays of the owned nodes, shaped (ym, xm)."""
        return np.meshgrid(np.arange(self.xs, self.xe), np.arange(self.ys, self.ye))


class LocalField:
    """Ghosted local array read by assembly, indexed by global (i, j)."""

    def __init__(self, array: np.ndarray, info: LocalInfo):
        array = np.asarray(array, dtype=np.float64)
        if array.shape != (info.gym, info.gxm):
            raise ValueError(
                f"local array has shape {array.shape}, expected {(info.gym, info.gxm)}"
            )
        self.array = array
        self.info = info

    def __getitem__(self, ij):
        i, j = ij
        return self.array[np.asarray(j) - self.info.gys, np.asarray(i) - self.info.gxs]

    @property
    def owned(self) -> np.ndarray:
        return self.array[self.info.owned]


def _split(m: int, p: int) -> list[int]:
    # PETSC_DECIDE sizing: the first m % p ranks get one extra node
    return [m // p + (1 if r < m % p else 0) for r in range(p)]


def partition(grid: StructuredGrid, px: int, py: int) -> list[LocalInfo]:
    """Owned ranges of a px-by-py process split, ranks ordered x fastest."""
    if px < 1 or py < 1 or px > grid.mx or py > grid.my:
        raise InvalidConfiguration(f"cannot split {grid.mx} x {grid.my} grid over {px} x {py}")
    xstarts = np.concatenate([[0], np.cumsum(_split(grid.mx, px))])
    ystarts = np.concatenate([[0], np.cumsum(_split(grid.my, py))])
    return [
        LocalInfo(
            grid=grid,
            xs=int(xstarts[a]),
            xm=int(xstarts[a + 1] - xstarts[a]),
            ys=int(ystarts[b]),
            ym=int(ystarts[b + 1] - ystarts[b]),
        )
        for b in range(py)
        for a in range(px)
    ]


def scatter_to_local(u_global: np.ndarray, info: LocalInfo) -> LocalField:
    """Fill a ghosted local field from a global (my, mx) array.

    Ghost positions outside the grid are left at zero.
    """
    grid = info.grid
    if u_global.shape != (grid.my, grid.mx):
        raise ValueError(f"global array has shape {u_global.shape}, expected {(grid.my, grid.mx)}")
    local = np.zeros((info.gym, info.gxm))
    j0, j1 = max(info.gys, 0), min(info.gys + info.gym, grid.my)
    i0, i1 = max(info.gxs, 0), min(info.gxs + info.gxm, grid.mx)
    local[j0 - info.gys:j1 - info.gys, i0 - info.gxs:i1 - info.gxs] = u_global[j0:j1, i0:i1]
    return LocalField(local, info)


def gather_owned(block: np.ndarray, info: LocalInfo, out: np.ndarray | None = None) -> np.ndarray:
    """Place an owned (ym, xm) block into a global (my, mx) array."""
    grid = info.grid
    if out is None:
        out = np.zeros((grid.my, grid.mx))
    out[info.ys:info.ye, info.xs:info.xe] = block
    return out
