# spring_net/simulation.py
"""
SIMULATION DRIVER: The Surface Seen by Hosts and Renderers
==========================================================

SpringMassSimulation ties the pieces together:

    SpringNetwork --assemble--> SystemMatrices --integrator--> State

A host calls `step(elapsed)` once per frame at whatever cadence it likes.
The simulation:
1. hands the current State to the active integrator,
2. receives a brand-new State (sub-stepped in dynamic mode),
3. optionally re-assembles A/C/K from the new geometry,
4. publishes the new State by swapping a single reference.

If any part of the tick raises, the published State and matrices are the
ones from the previous tick. Renderers read positions through the
accessors or by holding the `state` snapshot; both are read-only.

USAGE:
------
    network = make_chain(n_nodes=5, dim=2)
    sim = SpringMassSimulation(network, SimulationConfig(dim=2, integrator='dynamic'))
    for _ in range(60):
        sim.step(1 / 60)
    print(sim.position(4))
"""

import logging
from typing import Optional

import numpy as np

from .config import DEFAULT_CONFIG, SimulationConfig
from .integrators import DynamicIntegrator, State, make_integrator
from .kernel.assemble import (
    SystemMatrices,
    assemble_system,
    find_rigid_modes,
    internal_forces,
    spring_tensions,
)
from .kernel.modal import build_lumped_mass_vector, critical_time_step
from .model import ConfigurationError, SpringNetwork


logger = logging.getLogger(__name__)


class SpringMassSimulation:
    """
    Owns the assembled matrices, the active integrator and the published State.

    Parameters
    ----------
    network : SpringNetwork
        Validated topology. Its dim must match config.dim.
    config : SimulationConfig, optional
        Defaults to DEFAULT_CONFIG with the network's dimension.
    """

    def __init__(self, network: SpringNetwork, config: Optional[SimulationConfig] = None):
        if config is None:
            config = DEFAULT_CONFIG.with_changes(dim=network.dim)
        if config.dim != network.dim:
            raise ConfigurationError(
                f"Config dim {config.dim} does not match network dim {network.dim}"
            )
        self.network = network
        self.config = config

        self.matrices: SystemMatrices = assemble_system(network)
        find_rigid_modes(self.matrices.K)
        self.integrator = make_integrator(network, self.matrices, config)
        self._state: State = self.integrator.initial_state()

        logger.info(
            "Simulation ready: %d nodes, %d springs, dim=%d, %s integrator, %s solver",
            network.n_nodes, network.n_springs, network.dim, config.integrator, config.solver,
        )

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------

    def build_system_matrices(self, positions: Optional[np.ndarray] = None) -> SystemMatrices:
        """
        (Re)compute A, C and K from topology and geometry.

        In vector mode the direction cosines come from `positions`, which
        defaults to the current published positions.
        """
        if positions is None:
            positions = self._state.positions
        matrices = assemble_system(self.network, positions)
        # set_matrices validates before it commits; on failure neither side changes
        self.integrator.set_matrices(matrices)
        self.matrices = matrices
        return matrices

    def step(self, elapsed: float) -> State:
        """
        Advance by one host frame of `elapsed` seconds.

        Static mode: one re-solve. Dynamic mode: ceil(elapsed / time_step)
        sub-steps. Returns the newly published State.

        Raises
        ------
        ValueError
            If elapsed is negative.
        SingularSystemError
            If the static solve hits a rigid mode (state not advanced).
        """
        if elapsed < 0.0:
            raise ValueError(f"elapsed must be non-negative, got {elapsed}")
        if elapsed == 0.0:
            return self._state

        new_state = self.integrator.advance(self._state, elapsed)
        if new_state is self._state:
            # Tick rejected by the integrator
            return self._state

        if self.config.reassemble_each_tick and self.network.dim > 1:
            matrices = assemble_system(self.network, new_state.positions)
            self.integrator.set_matrices(matrices)
            self.matrices = matrices

        self._state = new_state
        return new_state

    def displace(self, node_id: int, offset) -> State:
        """
        Release a free node from rest at `offset` from its current displacement.

        Both u and u_prev are shifted, so the node starts with zero
        velocity. Dynamic mode only.
        """
        if not isinstance(self.integrator, DynamicIntegrator):
            raise ConfigurationError("displace() requires the dynamic integrator")
        if self.network.fixed[node_id]:
            raise ValueError(f"Node {node_id} is fixed and cannot be displaced")

        dof = self.matrices.dof
        delta = np.zeros(dof.ndof(self.network.n_nodes))
        delta[dof.node_dofs(node_id)] = np.broadcast_to(np.asarray(offset, dtype=float), (dof.dof_per_node,))

        state = self._state
        u = state.displacement + delta
        self._state = State(
            positions=state.positions + dof.to_nodal(delta),
            velocities=state.velocities,
            displacement=u,
            previous_displacement=state.previous_displacement + delta,
            time=state.time,
            tick=state.tick,
        )
        logger.debug("Displaced node %d by %s", node_id, offset)
        return self._state

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    @property
    def state(self) -> State:
        return self._state

    @property
    def interpretation(self):
        return self.integrator.interpretation

    def position(self, node_id: int) -> np.ndarray:
        return self._state.positions[node_id]

    def velocity(self, node_id: int) -> np.ndarray:
        return self._state.velocities[node_id]

    def displacement(self, node_id: int) -> np.ndarray:
        return self.matrices.dof.to_nodal(self._state.displacement)[node_id]

    def is_fixed(self, node_id: int) -> bool:
        return bool(self.network.fixed[node_id])

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def internal_forces(self) -> np.ndarray:
        """Elastic force per DOF for the published displacement."""
        return internal_forces(self.matrices, self._state.displacement)

    def spring_tensions(self) -> np.ndarray:
        """Axial force per spring for the published displacement (+ = tension)."""
        return spring_tensions(self.matrices, self._state.displacement)

    def critical_time_step(self) -> float:
        """Explicit stability limit √(4-2α)/ω_max for the current matrices."""
        dof = self.matrices.dof
        return critical_time_step(
            self.matrices.K,
            build_lumped_mass_vector(self.network.masses, dof),
            dof.per_dof(self.network.fixed),
            self.config.damping,
        )
