"""Q1 finite-element assembly for the p-Laplacian family on structured grids.

Module layout:
-------------
reference   bilinear shape functions on [-1, 1]^2
quadrature  Gauss-Legendre rules (n = 1, 2, 3)
operator    regularized |grad u|^P
problems    variants, forcing families, ProblemParameters
grid        StructuredGrid, LocalInfo, LocalField, serial partitioning
ownership   element ownership predicate and corner values
assembly    objective and residual assembly
fields      owned-node samples and error norms
"""

from .assembly import assemble_objective, assemble_residual, serial_sum
from .errors import InvalidConfiguration, UnsupportedForcingSelector
from .fields import (
    exact_owned,
    forcing_owned,
    initial_iterate,
    linf_error,
    sample_owned,
    serial_max,
)
from .grid import (
    LocalField,
    LocalInfo,
    StructuredGrid,
    gather_owned,
    partition,
    scatter_to_local,
)
from .ownership import owned_elements, owns_element, owns_node, touching_elements
from .problems import (
    ProblemParameters,
    ProblemType,
    Variant,
    exact_solution,
    forcing,
)
from .quadrature import QuadratureRule, gauss_legendre

__all__ = [
    # Assembly
    "assemble_objective",
    "assemble_residual",
    "serial_sum",
    "serial_max",
    # Errors
    "InvalidConfiguration",
    "UnsupportedForcingSelector",
    # Grid and ownership
    "StructuredGrid",
    "LocalInfo",
    "LocalField",
    "partition",
    "scatter_to_local",
    "gather_owned",
    "owns_element",
    "owns_node",
    "owned_elements",
    "touching_elements",
    # Problems
    "ProblemParameters",
    "ProblemType",
    "Variant",
    "exact_solution",
    "forcing",
    "sample_owned",
    "exact_owned",
    "forcing_owned",
    "initial_iterate",
    "linf_error",
    # Quadrature
    "QuadratureRule",
    "gauss_legendre",
]
