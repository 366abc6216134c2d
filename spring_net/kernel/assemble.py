# spring_net/kernel/assemble.py
"""
ASSEMBLY: Incidence, Stiffness Diagonal and Global Stiffness
============================================================

PURPOSE:
--------
This module builds the three system matrices of a spring network:

    A  (m × n·dim)   incidence matrix, one row per spring
    C  (m × m)       diagonal of spring stiffnesses
    K  (n·dim × n·dim) = Aᵀ · C · A   global stiffness

Row i of A maps nodal displacement to the elongation of spring i:

    elongation_i = A[i, :] · u

SCALAR vs VECTOR ASSEMBLY:
--------------------------
There is a single assembler, parameterized by the DOF dimension. The
dimension selects one of two row builders:

- 'scalar' (dim=1): -1 at the start node, +1 at the end node.
  Motion is along one fixed axis, geometry is ignored.
- 'vector' (dim=2,3): direction cosines c = (x_end - x_start) / L
  -c_k at start·dim + k, +c_k at end·dim + k for each axis k.
  Springs shorter than DEGENERATE_LENGTH get c = 0 (no contribution).

Because C >= 0, K = AᵀCA is symmetric positive semi-definite by
construction:  uᵀKu = (Au)ᵀ C (Au) = Σ k_i (elongation_i)² >= 0.

In vector mode A depends on the current geometry, so the matrices must be
re-assembled when node positions change materially.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import numpy as np

from ..model import SpringNetwork
from .dof import DOFManager


logger = logging.getLogger(__name__)

# Edges shorter than this contribute no stiffness in vector mode
DEGENERATE_LENGTH = 1e-6


@dataclass(frozen=True)
class SystemMatrices:
    """
    The assembled matrices of one network configuration.

    Attributes:
    -----------
    A : np.ndarray
        Incidence matrix, shape (n_springs, ndof)
    C : np.ndarray
        Stiffness diagonal, shape (n_springs, n_springs)
    K : np.ndarray
        Global stiffness AᵀCA, shape (ndof, ndof)
    dof : DOFManager
        DOF indexing used to build the matrices
    """
    A: np.ndarray
    C: np.ndarray
    K: np.ndarray
    dof: DOFManager

    @property
    def ndof(self) -> int:
        return self.K.shape[0]


def assembly_mode(dim: int) -> str:
    """Closed set of assembly behaviours: 'scalar' for dim=1, 'vector' otherwise."""
    return 'scalar' if dim == 1 else 'vector'


def element_direction(p_start: np.ndarray, p_end: np.ndarray) -> np.ndarray:
    """
    Unit vector from start to end, or the zero vector for degenerate edges.

    >>> element_direction(np.array([0.0, 0.0]), np.array([3.0, 4.0]))
    array([0.6, 0.8])
    """
    delta = np.asarray(p_end, dtype=float) - np.asarray(p_start, dtype=float)
    length = float(np.linalg.norm(delta))
    if length <= DEGENERATE_LENGTH:
        return np.zeros_like(delta)
    return delta / length


def _scalar_row(row: np.ndarray, start: int, end: int, positions: np.ndarray, dof: DOFManager) -> None:
    row[start] = -1.0
    row[end] = 1.0


def _vector_row(row: np.ndarray, start: int, end: int, positions: np.ndarray, dof: DOFManager) -> None:
    c = element_direction(positions[start], positions[end])
    for k in range(dof.dof_per_node):
        row[dof.idx(start, k)] = -c[k]
        row[dof.idx(end, k)] = c[k]


_ROW_BUILDERS: Dict[str, Callable[..., None]] = {
    'scalar': _scalar_row,
    'vector': _vector_row,
}


def build_incidence_matrix(
    network: SpringNetwork,
    positions: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Build the incidence matrix A for the network.

    Parameters:
    -----------
    network : SpringNetwork
        Validated topology (endpoints already checked)
    positions : np.ndarray, optional
        Current node positions (n_nodes, dim). Defaults to the network's
        rest positions. Ignored in scalar mode.

    Returns:
    --------
    np.ndarray
        A, shape (n_springs, n_nodes * dim)
    """
    dof = DOFManager(dof_per_node=network.dim)
    if positions is None:
        positions = network.positions
    positions = np.asarray(positions, dtype=float).reshape(network.n_nodes, network.dim)

    build_row = _ROW_BUILDERS[assembly_mode(network.dim)]
    A = np.zeros((network.n_springs, dof.ndof(network.n_nodes)), dtype=float)
    for i, spring in enumerate(network.springs):
        build_row(A[i], spring.start, spring.end, positions, dof)
    return A


def build_stiffness_diagonal(network: SpringNetwork) -> np.ndarray:
    """C[i, i] = stiffness of spring i."""
    return np.diag(np.asarray(network.stiffness, dtype=float))


def assemble_global_K(A: np.ndarray, C: np.ndarray) -> np.ndarray:
    """
    Global stiffness K = Aᵀ · C · A.

    The result is symmetrized explicitly so K[i, j] == K[j, i] holds
    exactly, not only up to round-off.
    """
    K = A.T @ (C @ A)
    return 0.5 * (K + K.T)


def assemble_system(
    network: SpringNetwork,
    positions: Optional[np.ndarray] = None,
) -> SystemMatrices:
    """
    Build A, C and K in one pass.

    Call once at initialization, and again in vector mode whenever node
    positions have changed enough that the direction cosines are stale.
    """
    A = build_incidence_matrix(network, positions)
    C = build_stiffness_diagonal(network)
    K = assemble_global_K(A, C)
    logger.debug(
        "Assembled %s system: %d nodes, %d springs, K is %dx%d",
        assembly_mode(network.dim), network.n_nodes, network.n_springs, *K.shape,
    )
    return SystemMatrices(A=A, C=C, K=K, dof=DOFManager(dof_per_node=network.dim))


def internal_forces(matrices: SystemMatrices, u: np.ndarray) -> np.ndarray:
    """Elastic restoring force per DOF: f_int = Aᵀ C A u = K u."""
    return matrices.A.T @ (matrices.C @ (matrices.A @ u))


def spring_tensions(matrices: SystemMatrices, u: np.ndarray) -> np.ndarray:
    """
    Axial force in every spring from a displacement vector.

    Sign convention:
    - Positive = tension (spring elongated start -> end)
    - Negative = compression
    """
    return matrices.C @ (matrices.A @ u)


def find_rigid_modes(K: np.ndarray, tol: float = 1e-12) -> List[int]:
    """
    DOF indices whose stiffness diagonal is (near) zero.

    A zero diagonal means no spring resists motion along that DOF, so the
    system has a rigid or unconstrained mode there.
    """
    diag = np.abs(np.diag(K))
    # Relative to the stiffest DOF; an all-zero diagonal is entirely rigid
    scale = float(np.max(diag, initial=0.0))
    rigid = [int(i) for i in np.flatnonzero(diag <= tol * scale)]
    for i in rigid:
        logger.warning("Rigid body mode detected: zero diagonal at index %d", i)
    return rigid
