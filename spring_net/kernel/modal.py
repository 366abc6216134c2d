# spring_net/kernel/modal.py
"""Modal analysis: lumped mass vector, natural frequencies and the explicit stability limit."""

import numpy as np
from scipy.linalg import eigh
from typing import Tuple

from .dof import DOFManager


def build_lumped_mass_vector(masses: np.ndarray, dof_manager: DOFManager) -> np.ndarray:
    """
    Per-DOF lumped mass: each node's scalar mass replicated across its DOFs.

    Args:
        masses: Node masses (n_nodes,)
        dof_manager: DOFManager instance

    Returns:
        m: Mass per DOF (ndof,). The diagonal of M.
    """
    return dof_manager.per_dof(np.asarray(masses, dtype=float)).astype(float)


def natural_frequencies(
    K: np.ndarray,
    mass_vector: np.ndarray,
    fixed,
    n_modes: int = 5
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute natural circular frequencies and mode shapes.

    Solves the generalized eigenvalue problem K·φ = ω²·M·φ on the free DOFs,
    with M = diag(mass_vector).

    Args:
        K: Global stiffness matrix
        mass_vector: Lumped mass per DOF
        fixed: Boolean mask of constrained DOFs
        n_modes: Number of modes to return (lowest first)

    Returns:
        omega: Circular frequencies in rad/s, ascending
        mode_shapes: Mode shape matrix (n_free_dofs x n_modes)

    Raises:
        ValueError: If there are no free DOFs or a free DOF has no mass
    """
    fixed = np.asarray(fixed, dtype=bool)
    free = np.flatnonzero(~fixed)

    if len(free) == 0:
        raise ValueError("No free DOFs - cannot compute modes")

    Kff = K[np.ix_(free, free)]
    m_free = np.asarray(mass_vector, dtype=float)[free]

    if np.any(m_free <= 0):
        raise ValueError("Mass vector has non-positive entries at free DOFs")

    n_actual = min(n_modes, len(free))
    eigenvalues, eigenvectors = eigh(Kff, np.diag(m_free), subset_by_index=[0, n_actual - 1])

    omega = np.sqrt(np.maximum(eigenvalues, 0))  # Clamp round-off negatives to 0
    return omega, eigenvectors


def highest_frequency(K: np.ndarray, mass_vector: np.ndarray, fixed) -> float:
    """
    Largest circular frequency ω_max of M⁻¹K on the free DOFs.

    Returns 0.0 when there are no free DOFs.
    """
    fixed = np.asarray(fixed, dtype=bool)
    free = np.flatnonzero(~fixed)
    if len(free) == 0:
        return 0.0

    Kff = K[np.ix_(free, free)]
    m_free = np.asarray(mass_vector, dtype=float)[free]
    if np.any(m_free <= 0):
        raise ValueError("Mass vector has non-positive entries at free DOFs")

    n = len(free)
    eigenvalues = eigh(Kff, np.diag(m_free), eigvals_only=True, subset_by_index=[n - 1, n - 1])
    return float(np.sqrt(max(eigenvalues[-1], 0.0)))


def critical_time_step(
    K: np.ndarray,
    mass_vector: np.ndarray,
    fixed,
    damping: float = 0.0
) -> float:
    """
    Stability limit of the central-difference scheme.

    The damping term removes α·(u - u_prev) every sub-step, so the
    recurrence per mode is

        λ² - (2 - α - ω²Δt²)·λ + (1 - α) = 0

    and both roots stay inside the unit circle only for 0 <= α < 2 and

        Δt_crit = √(4 - 2α) / ω_max     (= 2 / ω_max undamped)

    Stiffer springs or lighter masses raise ω_max and shrink the limit.
    Returns inf when no free DOF has stiffness (nothing can oscillate),
    and 0.0 when α >= 2 (no step is stable).
    """
    if damping >= 2.0:
        return 0.0
    omega_max = highest_frequency(K, mass_vector, fixed)
    if omega_max <= 0.0:
        return float('inf')
    return float(np.sqrt(4.0 - 2.0 * damping)) / omega_max
