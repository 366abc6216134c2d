# spring_net/kernel/dof.py
"""
DOF MANAGER: Degree of Freedom Indexing for 1D/2D/3D Networks
==============================================================

PURPOSE:
--------
This module handles the mapping from (node_id, axis) to global DOF indices.
It is the ONE thing that changes between the scalar and vector networks:

    Scalar (dim=1):  1 DOF/node  (u)
    Planar (dim=2):  2 DOF/node  (ux, uy)
    Spatial (dim=3): 3 DOF/node  (ux, uy, uz)

Numbering is node-major: global index = dof_per_node * node_id + axis.

It also knows which axis is "vertical" (the axis gravity acts along):
the sole axis when dim=1, the second axis (y) when dim >= 2.

USAGE:
------
    dof = DOFManager(dof_per_node=2)
    dof.idx(node_id=3, local_dof=1)   # -> 7
    dof.vertical_axis                 # -> 1
    dof.per_dof(masses)               # lumped mass vector, length 2n
"""

from dataclasses import dataclass
from typing import List

import numpy as np


@dataclass(frozen=True)
class DOFManager:
    """
    Manages degree-of-freedom indexing for a spring network.

    Attributes:
    -----------
    dof_per_node : int
        1, 2 or 3.

    Examples:
    ---------
    >>> dof = DOFManager(dof_per_node=3)
    >>> dof.idx(1, 0)
    3
    >>> dof.ndof(4)
    12
    >>> dof.node_dofs(2)
    [6, 7, 8]
    """
    dof_per_node: int

    def idx(self, node_id: int, local_dof: int) -> int:
        """Global DOF index for a node's local axis."""
        return self.dof_per_node * node_id + local_dof

    def ndof(self, n_nodes: int) -> int:
        """Total DOFs for a network with n_nodes (size of K)."""
        return self.dof_per_node * n_nodes

    def node_dofs(self, node_id: int) -> List[int]:
        """All global DOF indices of one node."""
        base = self.dof_per_node * node_id
        return list(range(base, base + self.dof_per_node))

    @property
    def vertical_axis(self) -> int:
        """Axis gravity acts along: 0 for scalar networks, 1 (y) otherwise."""
        return 0 if self.dof_per_node == 1 else 1

    def per_dof(self, node_values: np.ndarray) -> np.ndarray:
        """
        Replicate one value per node across that node's DOFs.

        Used for the lumped mass vector and the fixed-DOF mask.
        """
        return np.repeat(np.asarray(node_values), self.dof_per_node)

    def to_nodal(self, vector: np.ndarray) -> np.ndarray:
        """Reshape a global DOF vector into (n_nodes, dof_per_node)."""
        return np.asarray(vector).reshape(-1, self.dof_per_node)
