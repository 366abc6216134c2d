# spring_net/generative/grid.py
"""
GRID & CHAIN GENERATORS: Ready-Made Spring Network Topologies
=============================================================

PURPOSE:
--------
Produce validated SpringNetworks for common shapes, so hosts and demos do
not have to wire springs by hand.

GRID (membrane / water surface):
--------------------------------
A width × height lattice of nodes with:
- structural springs to the right and lower neighbours
- two shear springs (both diagonals) in every cell, at
  shear_ratio × stiffness
- boundary nodes fixed (optional)

Layout per dimension:
- dim=3: nodes in the x–z plane at y = 0
- dim=2: a vertical net in the x–y plane, rows going down along -y
- dim=1: positions collapse to 0, only the topology matters

CHAIN:
------
n nodes in a straight line, consecutive nodes connected, ends optionally
fixed. The classic hanging-chain / oscillator test topology.
"""

from dataclasses import dataclass
from typing import List, Tuple

from ..model import Node, Spring, SpringNetwork


@dataclass
class GridParams:
    """
    Parameters defining a rectangular grid network.

    width, height : int
        Nodes per row and number of rows (both >= 2)
    spacing : float
        Distance between neighbouring nodes
    mass : float
        Mass of every node
    stiffness : float
        Structural spring stiffness
    shear_ratio : float
        Shear spring stiffness as a fraction of `stiffness`
    fix_boundary : bool
        Fix every node on the outer ring
    dim : int
        DOF per node (1, 2 or 3)
    """
    width: int = 20
    height: int = 20
    spacing: float = 0.5
    mass: float = 1.0
    stiffness: float = 100.0
    shear_ratio: float = 0.7
    fix_boundary: bool = True
    dim: int = 3


def _grid_position(i: int, j: int, params: GridParams) -> Tuple[float, ...]:
    x = i * params.spacing
    z = j * params.spacing
    if params.dim == 3:
        return (x, 0.0, z)
    if params.dim == 2:
        return (x, -z)
    return (0.0,)


def make_grid(params: GridParams) -> SpringNetwork:
    """
    Build a grid network from parameters.

    Node index = j * width + i, with i along a row and j across rows.

    Example:
    --------
    >>> net = make_grid(GridParams(width=3, height=3, dim=3))
    >>> net.n_nodes, net.n_springs
    (9, 20)
    >>> net.free_nodes()
    [4]
    """
    w, h = params.width, params.height

    nodes: List[Node] = []
    for j in range(h):
        for i in range(w):
            on_edge = i == 0 or i == w - 1 or j == 0 or j == h - 1
            nodes.append(Node(
                mass=params.mass,
                position=_grid_position(i, j, params),
                fixed=params.fix_boundary and on_edge,
            ))

    shear = params.stiffness * params.shear_ratio
    springs: List[Spring] = []
    for j in range(h):
        for i in range(w):
            current = j * w + i

            # Structural: right and down neighbours
            if i < w - 1:
                springs.append(Spring(current, current + 1, params.stiffness))
            if j < h - 1:
                springs.append(Spring(current, current + w, params.stiffness))

            # Shear: both diagonals of the cell
            if i < w - 1 and j < h - 1:
                springs.append(Spring(current, current + w + 1, shear))
                springs.append(Spring(current + 1, current + w, shear))

    return SpringNetwork(nodes=tuple(nodes), springs=tuple(springs), dim=params.dim)


def make_chain(
    n_nodes: int,
    spacing: float = 1.0,
    mass: float = 1.0,
    stiffness: float = 100.0,
    dim: int = 1,
    fix_start: bool = True,
    fix_end: bool = False,
    vertical: bool = True
) -> SpringNetwork:
    """
    Build a straight chain of n_nodes.

    Parameters:
    -----------
    n_nodes : int
        Number of nodes (>= 2)
    spacing : float
        Rest distance between consecutive nodes
    mass, stiffness : float
        Node mass and spring stiffness
    dim : int
        DOF per node
    fix_start, fix_end : bool
        Fix the first / last node
    vertical : bool
        Hang the chain downward along the vertical axis (dim >= 2).
        Otherwise lay it along x. Ignored when dim = 1, where node k sits
        at position k * spacing.

    Example:
    --------
    >>> chain = make_chain(3, stiffness=100.0, fix_start=True, fix_end=True)
    >>> [n.fixed for n in chain.nodes]
    [True, False, True]
    """
    nodes = []
    for k in range(n_nodes):
        position = [0.0] * dim
        if dim == 1:
            position[0] = k * spacing
        elif vertical:
            position[1] = -k * spacing
        else:
            position[0] = k * spacing
        fixed = (k == 0 and fix_start) or (k == n_nodes - 1 and fix_end)
        nodes.append(Node(mass=mass, position=tuple(position), fixed=fixed))

    springs = [Spring(k, k + 1, stiffness) for k in range(n_nodes - 1)]
    return SpringNetwork(nodes=tuple(nodes), springs=tuple(springs), dim=dim)
