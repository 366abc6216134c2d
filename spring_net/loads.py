# loads.py - Body-force load vectors for spring networks

import numpy as np

from .kernel.dof import DOFManager


def body_force_vector(
    masses: np.ndarray,
    fixed: np.ndarray,
    dof: DOFManager,
    gravity: float,
    horizontal_force: float = 0.0
) -> np.ndarray:
    """
    Assemble the external load vector f from per-unit-mass body forces.

    Gravity acts along the vertical axis of every free node:

        f[vertical DOF of node i] = m_i * gravity

    In vector mode (dim >= 2) an optional horizontal acceleration acts along
    the first axis (x):

        f[x DOF of node i] = m_i * horizontal_force

    Fixed nodes carry no load; their DOFs are constrained anyway.

    Parameters
    ----------
    masses : np.ndarray
        Node masses, shape (n_nodes,)
    fixed : np.ndarray
        Node fixed flags, shape (n_nodes,)
    dof : DOFManager
        DOF indexing for the network
    gravity : float
        Vertical acceleration (m/s^2). Negative = downward.
    horizontal_force : float
        Acceleration along x for vector networks. Ignored when dim = 1.

    Returns
    -------
    np.ndarray
        Load vector, shape (n_nodes * dim,)

    Examples
    --------
    >>> dof = DOFManager(dof_per_node=2)
    >>> body_force_vector(np.array([1.0, 2.0]), np.array([True, False]), dof, -9.81)
    array([  0.  ,   0.  ,   0.  , -19.62])
    """
    masses = np.asarray(masses, dtype=float)
    free = ~np.asarray(fixed, dtype=bool)
    n_nodes = masses.shape[0]

    f = np.zeros(dof.ndof(n_nodes), dtype=float)
    nodal = dof.to_nodal(f)  # view into f

    nodal[free, dof.vertical_axis] = masses[free] * gravity
    if dof.dof_per_node > 1 and horizontal_force != 0.0:
        nodal[free, 0] += masses[free] * horizontal_force
    return f
