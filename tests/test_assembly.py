# tests/test_assembly.py
"""
ASSEMBLY TESTS: Incidence Rows, Direction Cosines and Degenerate Edges
======================================================================

Checks the two assembly behaviours against hand-computed matrices:
- scalar (dim=1): ±1 entries, geometry ignored
- vector (dim=2,3): ±direction cosines, zero-length edges contribute nothing
"""

import numpy as np

from spring_net.model import Node, Spring, SpringNetwork
from spring_net.kernel.assemble import (
    assemble_system,
    assembly_mode,
    build_incidence_matrix,
    build_stiffness_diagonal,
    element_direction,
    find_rigid_modes,
    internal_forces,
    spring_tensions,
)
from spring_net.generative.grid import GridParams, make_grid, make_chain


class TestScalarAssembly:
    """dim=1: one DOF per node, sign convention only."""

    def test_incidence_rows_are_minus_one_plus_one(self):
        net = make_chain(4, dim=1)
        A = build_incidence_matrix(net)

        expected = np.array([
            [-1.0, 1.0, 0.0, 0.0],
            [0.0, -1.0, 1.0, 0.0],
            [0.0, 0.0, -1.0, 1.0],
        ])
        np.testing.assert_array_equal(A, expected)

    def test_geometry_is_ignored(self):
        """Moving nodes around does not change the scalar incidence matrix."""
        net = make_chain(3, dim=1)
        A_rest = build_incidence_matrix(net)
        A_moved = build_incidence_matrix(net, positions=np.array([[5.0], [-2.0], [7.0]]))
        np.testing.assert_array_equal(A_rest, A_moved)

    def test_stiffness_diagonal(self):
        net = SpringNetwork(
            nodes=[Node(1.0, (0.0,)), Node(1.0, (1.0,)), Node(1.0, (2.0,))],
            springs=[Spring(0, 1, 3.0), Spring(1, 2, 7.0)],
            dim=1,
        )
        C = build_stiffness_diagonal(net)
        np.testing.assert_array_equal(C, np.diag([3.0, 7.0]))

    def test_chain_stiffness_is_tridiagonal(self):
        """Three springs of stiffness k: K = k * tridiag(-1, [1, 2, 2, 1], -1)."""
        k = 100.0
        K = assemble_system(make_chain(4, stiffness=k, dim=1)).K
        expected = k * np.array([
            [1.0, -1.0, 0.0, 0.0],
            [-1.0, 2.0, -1.0, 0.0],
            [0.0, -1.0, 2.0, -1.0],
            [0.0, 0.0, -1.0, 1.0],
        ])
        np.testing.assert_allclose(K, expected)


class TestVectorAssembly:
    """dim=2,3: direction cosines from current geometry."""

    def test_direction_cosines_2d(self):
        """Spring from (0,0) to (3,4): c = (0.6, 0.8)."""
        c = element_direction(np.array([0.0, 0.0]), np.array([3.0, 4.0]))
        np.testing.assert_allclose(c, [0.6, 0.8])

    def test_incidence_row_2d(self):
        net = SpringNetwork(
            nodes=[Node(1.0, (0.0, 0.0), fixed=True), Node(1.0, (3.0, 4.0))],
            springs=[Spring(0, 1, 10.0)],
            dim=2,
        )
        A = build_incidence_matrix(net)
        np.testing.assert_allclose(A, [[-0.6, -0.8, 0.6, 0.8]])

    def test_element_stiffness_block_structure(self):
        """
        For a single spring K = k * [[ B, -B], [-B, B]] with B = c cᵀ,
        the classic truss element matrix in global coordinates.
        """
        k = 25.0
        p0 = np.array([1.0, 2.0, -1.0])
        p1 = np.array([2.0, 0.0, 1.0])
        net = SpringNetwork(
            nodes=[Node(1.0, tuple(p0)), Node(1.0, tuple(p1))],
            springs=[Spring(0, 1, k)],
            dim=3,
        )
        K = assemble_system(net).K

        c = (p1 - p0) / np.linalg.norm(p1 - p0)
        B = np.outer(c, c)
        expected = k * np.block([[B, -B], [-B, B]])
        np.testing.assert_allclose(K, expected, atol=1e-12)

    def test_direction_cosines_are_unit_vectors(self):
        net = make_grid(GridParams(width=3, height=3, dim=3))
        A = build_incidence_matrix(net)
        for i, spring in enumerate(net.springs):
            end_block = A[i, 3 * spring.end:3 * spring.end + 3]
            assert np.isclose(np.sum(end_block ** 2), 1.0), \
                f"Spring {i}: direction cosines not normalized ({end_block})"

    def test_degenerate_edge_contributes_nothing(self):
        """Zero-length spring: direction is the zero vector, never NaN."""
        net = SpringNetwork(
            nodes=[Node(1.0, (1.0, 1.0)), Node(1.0, (1.0, 1.0))],
            springs=[Spring(0, 1, 50.0)],
            dim=2,
        )
        matrices = assemble_system(net)

        assert np.all(np.isfinite(matrices.A))
        np.testing.assert_array_equal(matrices.A, np.zeros((1, 4)))
        np.testing.assert_array_equal(matrices.K, np.zeros((4, 4)))

    def test_reassembly_follows_geometry(self):
        """Vector-mode matrices depend on where the nodes currently are."""
        net = make_chain(2, dim=2, vertical=True)
        K_rest = assemble_system(net).K
        K_rotated = assemble_system(net, positions=np.array([[0.0, 0.0], [1.0, 0.0]])).K
        assert not np.allclose(K_rest, K_rotated)


class TestModeSelection:

    def test_mode_by_dimension(self):
        assert assembly_mode(1) == 'scalar'
        assert assembly_mode(2) == 'vector'
        assert assembly_mode(3) == 'vector'


class TestDiagnostics:

    def test_internal_forces_equal_K_u(self):
        rng = np.random.default_rng(0)
        matrices = assemble_system(make_grid(GridParams(width=4, height=3, dim=2)))
        u = rng.normal(size=matrices.ndof)
        np.testing.assert_allclose(internal_forces(matrices, u), matrices.K @ u, atol=1e-10)

    def test_spring_tension_sign(self):
        """Pulling the end node away from the start puts the spring in tension."""
        k = 10.0
        net = SpringNetwork(
            nodes=[Node(1.0, (0.0, 0.0)), Node(1.0, (1.0, 0.0))],
            springs=[Spring(0, 1, k)],
            dim=2,
        )
        matrices = assemble_system(net)

        stretch = np.array([0.0, 0.0, 0.1, 0.0])
        squeeze = -stretch
        assert np.isclose(spring_tensions(matrices, stretch)[0], k * 0.1)
        assert np.isclose(spring_tensions(matrices, squeeze)[0], -k * 0.1)

    def test_rigid_modes_of_flat_grid(self):
        """
        A 3D grid lying in the x-z plane has no spring with a y-component,
        so every vertical DOF is a rigid mode.
        """
        net = make_grid(GridParams(width=3, height=3, dim=3))
        K = assemble_system(net).K
        rigid = find_rigid_modes(K)
        assert rigid == [3 * i + 1 for i in range(net.n_nodes)]

    def test_connected_scalar_grid_has_no_rigid_modes(self):
        net = make_grid(GridParams(width=4, height=4, dim=1))
        assert find_rigid_modes(assemble_system(net).K) == []

    def test_soft_springs_are_not_rigid_modes(self):
        net = make_grid(GridParams(width=4, height=4, stiffness=1e-10, dim=1))
        assert find_rigid_modes(assemble_system(net).K) == []
