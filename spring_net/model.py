# spring_net/model.py
"""
NETWORK MODEL: Nodes, Springs and the Validated Topology
=========================================================

PURPOSE:
--------
This module defines the static description of a mass-spring network:
- Node: a point mass with a position, an initial velocity and a fixed flag
- Spring: a linear axial spring connecting two nodes by index
- SpringNetwork: the validated NodeSet + SpringSet in a given DOF dimension

The network is immutable after construction. Topology edits at runtime are
not supported; build a new network instead.

VALIDATION:
-----------
SpringNetwork rejects, before any assembly happens:
- springs whose start == end (self-loops)
- springs referencing a node index outside [0, n)
- negative spring stiffness
- free nodes with mass <= 0 (integration divides by mass)
- positions/velocities whose length differs from the DOF dimension
"""

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

import numpy as np


SUPPORTED_DIMENSIONS = (1, 2, 3)


class ConfigurationError(ValueError):
    """Raised when a network or simulation is configured inconsistently."""
    pass


@dataclass(frozen=True)
class Node:
    """
    A point mass in the network.

    Parameters:
    -----------
    mass : float
        Scalar mass, replicated across the node's DOFs (lumped mass).
        Must be > 0 unless the node is fixed.
    position : tuple of float
        Rest position, one component per DOF (length 1, 2 or 3).
    fixed : bool
        Fixed nodes never move; their displacement reads 0.
    velocity : tuple of float
        Initial velocity. Defaults to zero.

    Examples:
    ---------
    >>> Node(mass=1.0, position=(0.0,), fixed=True)
    >>> Node(mass=0.5, position=(1.0, 2.0))
    """
    mass: float
    position: Tuple[float, ...]
    fixed: bool = False
    velocity: Tuple[float, ...] = ()


@dataclass(frozen=True)
class Spring:
    """
    A linear spring between two nodes.

    The direction start -> end defines the sign convention of the
    incidence matrix: positive tension means the spring is elongated.
    """
    start: int
    end: int
    stiffness: float = 10.0


@dataclass(frozen=True)
class SpringNetwork:
    """
    Validated topology and per-node attributes in a fixed DOF dimension.

    Array views (masses, fixed, positions, ...) are built once in
    __post_init__ and flagged read-only.
    """
    nodes: Tuple[Node, ...]
    springs: Tuple[Spring, ...]
    dim: int = 1

    masses: np.ndarray = field(init=False, repr=False, compare=False)
    fixed: np.ndarray = field(init=False, repr=False, compare=False)
    positions: np.ndarray = field(init=False, repr=False, compare=False)
    velocities: np.ndarray = field(init=False, repr=False, compare=False)
    spring_start: np.ndarray = field(init=False, repr=False, compare=False)
    spring_end: np.ndarray = field(init=False, repr=False, compare=False)
    stiffness: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        # Accept lists from callers but store tuples
        object.__setattr__(self, 'nodes', tuple(self.nodes))
        object.__setattr__(self, 'springs', tuple(self.springs))

        if self.dim not in SUPPORTED_DIMENSIONS:
            raise ConfigurationError(
                f"DOF dimension must be one of {SUPPORTED_DIMENSIONS}, got {self.dim}"
            )
        self._validate_nodes()
        self._validate_springs()

        n = len(self.nodes)
        positions = np.zeros((n, self.dim), dtype=float)
        velocities = np.zeros((n, self.dim), dtype=float)
        for i, node in enumerate(self.nodes):
            positions[i] = node.position
            if len(node.velocity):
                velocities[i] = node.velocity

        arrays = {
            'masses': np.array([node.mass for node in self.nodes], dtype=float),
            'fixed': np.array([node.fixed for node in self.nodes], dtype=bool),
            'positions': positions,
            'velocities': velocities,
            'spring_start': np.array([s.start for s in self.springs], dtype=int),
            'spring_end': np.array([s.end for s in self.springs], dtype=int),
            'stiffness': np.array([s.stiffness for s in self.springs], dtype=float),
        }
        for name, arr in arrays.items():
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)

    def _validate_nodes(self) -> None:
        for i, node in enumerate(self.nodes):
            if len(node.position) != self.dim:
                raise ConfigurationError(
                    f"Node {i} position {node.position} has {len(node.position)} "
                    f"components, expected {self.dim}"
                )
            if len(node.velocity) and len(node.velocity) != self.dim:
                raise ConfigurationError(
                    f"Node {i} velocity {node.velocity} has {len(node.velocity)} "
                    f"components, expected {self.dim}"
                )
            if not node.fixed and not node.mass > 0.0:
                raise ConfigurationError(
                    f"Free node {i} must have positive mass, got {node.mass}"
                )

    def _validate_springs(self) -> None:
        n = len(self.nodes)
        for k, spring in enumerate(self.springs):
            if spring.start == spring.end:
                raise ConfigurationError(
                    f"Spring {k} connects node {spring.start} to itself"
                )
            for endpoint in (spring.start, spring.end):
                if not 0 <= endpoint < n:
                    raise ConfigurationError(
                        f"Spring {k} references node {endpoint}, valid range is [0, {n})"
                    )
            if spring.stiffness < 0.0:
                raise ConfigurationError(
                    f"Spring {k} has negative stiffness {spring.stiffness}"
                )

    @property
    def n_nodes(self) -> int:
        return len(self.nodes)

    @property
    def n_springs(self) -> int:
        return len(self.springs)

    def free_nodes(self) -> List[int]:
        return [i for i, node in enumerate(self.nodes) if not node.fixed]


def network_from_arrays(
    positions: Sequence[Sequence[float]],
    edges: Sequence[Tuple[int, int]],
    masses: Sequence[float],
    fixed: Sequence[bool],
    stiffness: Sequence[float],
    dim: int,
) -> SpringNetwork:
    """
    Build a SpringNetwork from parallel arrays.

    Convenient for generators and for callers that already hold numpy data.
    """
    if not (len(positions) == len(masses) == len(fixed)):
        raise ConfigurationError("positions, masses and fixed must have equal length")
    if len(edges) != len(stiffness):
        raise ConfigurationError("edges and stiffness must have equal length")

    nodes = [
        Node(mass=float(m), position=tuple(float(c) for c in p), fixed=bool(f))
        for p, m, f in zip(positions, masses, fixed)
    ]
    springs = [
        Spring(start=int(a), end=int(b), stiffness=float(k))
        for (a, b), k in zip(edges, stiffness)
    ]
    return SpringNetwork(nodes=tuple(nodes), springs=tuple(springs), dim=dim)
