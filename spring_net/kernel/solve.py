# spring_net/kernel/solve.py
"""Linear solvers for K·u = f with displacement constraints, and singularity detection."""

import logging
from typing import Tuple

import numpy as np


logger = logging.getLogger(__name__)

SOLVER_METHODS = ('iterative', 'direct')


class SingularSystemError(RuntimeError):
    """Raised when a pivot or diagonal is ~0: the network has a rigid or unconstrained mode."""
    pass


def _as_mask(fixed, ndof: int) -> np.ndarray:
    mask = np.asarray(fixed, dtype=bool)
    if mask.shape != (ndof,):
        raise ValueError(f"Fixed mask must have shape ({ndof},), got {mask.shape}")
    return mask


def _pivot_threshold(K: np.ndarray, pivot_tol: float) -> float:
    # Relative to the stiffest DOF, so the unit of stiffness does not matter
    return pivot_tol * float(np.max(np.abs(np.diag(K)), initial=0.0))


def apply_constraints(
    K: np.ndarray,
    f: np.ndarray,
    fixed
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Decouple every fixed DOF without resizing the system.

    For each fixed DOF i: zero row i and column i, set K[i, i] = 1 and
    f[i] = 0, so the solved u[i] is exactly 0.

    Works on copies; the caller's K and f are left untouched.

    Returns:
        K_c, f_c: Constrained stiffness matrix and load vector
    """
    ndof = K.shape[0]
    mask = _as_mask(fixed, ndof)

    K_c = np.array(K, dtype=float, copy=True)
    f_c = np.array(f, dtype=float, copy=True)

    K_c[mask, :] = 0.0
    K_c[:, mask] = 0.0
    idx = np.flatnonzero(mask)
    K_c[idx, idx] = 1.0
    f_c[mask] = 0.0
    return K_c, f_c


def solve_gauss_seidel(
    K: np.ndarray,
    f: np.ndarray,
    fixed,
    max_iterations: int = 100,
    pivot_tol: float = 1e-9
) -> np.ndarray:
    """
    Gauss-Seidel relaxation with a fixed sweep budget.

    Each sweep updates every free DOF in place using the newest values:

        u[i] <- (f[i] - Σ_{j≠i} K[i,j]·u[j]) / K[i,i]

    Fixed DOFs are reset to 0 every sweep. There is no convergence check:
    the budget is a cap, not a guarantee. Rigid modes converge slowly or
    not at all.

    Args:
        K: Global stiffness matrix (ndof x ndof)
        f: Load vector (ndof,)
        fixed: Boolean mask of constrained DOFs (ndof,)
        max_iterations: Number of sweeps
        pivot_tol: Relative threshold for a usable diagonal

    Returns:
        u: Displacement vector (ndof,)

    Raises:
        SingularSystemError: If a free DOF has a near-zero diagonal
    """
    ndof = K.shape[0]
    mask = _as_mask(fixed, ndof)
    free = np.flatnonzero(~mask)

    diag = np.diag(K)
    threshold = _pivot_threshold(K, pivot_tol)
    weak = free[np.abs(diag[free]) <= threshold]
    if weak.size:
        raise SingularSystemError(
            f"Zero stiffness diagonal at free DOF(s) {weak.tolist()}. "
            f"Add constraints or springs to remove the rigid mode."
        )

    u = np.zeros(ndof, dtype=float)
    for _ in range(max_iterations):
        u[mask] = 0.0
        for i in free:
            # Row dot product includes the diagonal term; add it back
            s = f[i] - K[i] @ u + diag[i] * u[i]
            u[i] = s / diag[i]
    return u


def gaussian_elimination(
    K: np.ndarray,
    f: np.ndarray,
    pivot_tol: float = 1e-9
) -> np.ndarray:
    """
    Solve K x = f by Gaussian elimination with partial pivoting.

    At each step the row with the largest absolute value in the active
    column is swapped into the pivot position, then the column below the
    pivot is eliminated. Back substitution yields x.

    A pivot counts as zero when it is at most pivot_tol times the largest
    entry of its column in K. The test is relative per column, so it is
    independent of the stiffness unit and of the unit diagonal that
    constraint elimination writes into fixed rows.

    Raises:
        SingularSystemError: If a pivot is ~0 (singular system)
    """
    n = f.shape[0]
    mat = np.array(K, dtype=float, copy=True)
    vec = np.array(f, dtype=float, copy=True)
    col_threshold = pivot_tol * np.max(np.abs(mat), axis=0, initial=0.0)

    # Forward elimination
    for k in range(n):
        p = k + int(np.argmax(np.abs(mat[k:, k])))
        if abs(mat[p, k]) <= col_threshold[k]:
            raise SingularSystemError(
                f"Near-zero pivot {mat[p, k]:.2e} in column {k}. "
                f"The network has an unconstrained rigid mode."
            )
        if p != k:
            mat[[k, p]] = mat[[p, k]]
            vec[[k, p]] = vec[[p, k]]

        factors = mat[k + 1:, k] / mat[k, k]
        mat[k + 1:, k:] -= np.outer(factors, mat[k, k:])
        vec[k + 1:] -= factors * vec[k]

    # Back substitution
    x = np.zeros(n, dtype=float)
    for i in range(n - 1, -1, -1):
        x[i] = (vec[i] - mat[i, i + 1:] @ x[i + 1:]) / mat[i, i]
    return x


def solve_direct(
    K: np.ndarray,
    f: np.ndarray,
    fixed,
    pivot_tol: float = 1e-9
) -> np.ndarray:
    """
    Constraint elimination followed by Gaussian elimination.

    Deterministic and exact up to round-off, but raises SingularSystemError
    when a rigid mode survives the constraints.
    """
    mask = _as_mask(fixed, K.shape[0])
    K_c, f_c = apply_constraints(K, f, mask)
    u = gaussian_elimination(K_c, f_c, pivot_tol)
    u[mask] = 0.0
    return u


def solve_linear(
    K: np.ndarray,
    f: np.ndarray,
    fixed,
    method: str = 'iterative',
    max_iterations: int = 100,
    fallback: bool = True,
    pivot_tol: float = 1e-9
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Solve K·u = f with fixed DOFs held at zero.

    Args:
        K: Global stiffness matrix (ndof x ndof)
        f: Load vector (ndof,)
        fixed: Boolean mask of constrained DOFs (ndof,)
        method: 'iterative' (Gauss-Seidel) or 'direct' (elimination)
        max_iterations: Sweep budget for the iterative method
        fallback: Retry with the iterative method if the direct one hits
            a singular pivot
        pivot_tol: Relative threshold for usable pivots/diagonals

    Returns:
        u: Displacement vector (ndof,), exactly 0 at fixed DOFs
        R: Reaction vector R = K·u - f (ndof,)

    Raises:
        SingularSystemError: If the system cannot be solved, or the
            solution is not finite
    """
    if method not in SOLVER_METHODS:
        raise ValueError(f"Unknown solver method {method!r}, expected one of {SOLVER_METHODS}")
    mask = _as_mask(fixed, K.shape[0])

    if method == 'direct':
        try:
            u = solve_direct(K, f, mask, pivot_tol)
        except SingularSystemError as e:
            if not fallback:
                raise
            logger.warning("Direct solve failed (%s); falling back to Gauss-Seidel", e)
            u = solve_gauss_seidel(K, f, mask, max_iterations, pivot_tol)
    else:
        u = solve_gauss_seidel(K, f, mask, max_iterations, pivot_tol)

    if not np.all(np.isfinite(u)):
        raise SingularSystemError(
            f"Solution is not finite after {method} solve. Check supports."
        )

    R = K @ u - f
    return u, R
