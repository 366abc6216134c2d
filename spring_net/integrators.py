# spring_net/integrators.py
"""
INTEGRATORS: Quasi-Static Re-Solve and Explicit Central Difference
==================================================================

Two ways to advance a spring network in time, sharing the same assembled
stiffness matrix K:

STATIC (quasi-static re-solve)
------------------------------
Every tick solves the force balance K·u = f from scratch and treats the
solution as a VELOCITY:

    position += u · Δt,   velocity = u

There is no memory of previous ticks. Unconditionally stable, but not a
second-order dynamic model.

DYNAMIC (explicit central difference)
-------------------------------------
Integrates  M·u'' + α·M·u' + K·u = f  with the recurrence

    u_next = [f·Δt² - α·M·(u - u_prev)·Δt - (K·u)·Δt²] / M + 2u - u_prev

and treats u as a DISPLACEMENT from the rest position:

    position = rest_position + u

The damping term removes α·(u - u_prev) every sub-step. The scheme is
conditionally stable: α must lie in [0, 2) and Δt must stay below
√(4 - 2α)/ω_max (2/ω_max undamped), where ω_max is the highest natural
frequency of M⁻¹K. Each tick is therefore
split into ceil(elapsed / Δt_nominal) equal sub-steps, so the effective
step never exceeds the configured nominal value, whatever the caller's
cadence.

TICK-SCOPED STATE
-----------------
Integrators never mutate a State. `advance` reads the previous State and
returns a new one built from fresh arrays; the caller publishes it. A tick
that fails leaves the previous State untouched.
"""

import logging
import math
import warnings
from dataclasses import dataclass
from enum import Enum

import numpy as np

from .config import SimulationConfig
from .kernel.assemble import SystemMatrices
from .kernel.modal import build_lumped_mass_vector, critical_time_step
from .kernel.solve import solve_linear
from .loads import body_force_vector
from .model import SpringNetwork


logger = logging.getLogger(__name__)

# Tolerance on elapsed / Δt so round-off does not add an extra sub-step
_SUBSTEP_EPS = 1e-9


class InstabilityWarning(RuntimeWarning):
    """Displacement is diverging: the time step is too large for the stiffness/mass ratio."""
    pass


class SolutionInterpretation(str, Enum):
    """How an integrator maps the solved DOF vector onto node motion."""
    VELOCITY = 'velocity'  # position += u·Δt (static re-solve)
    DISPLACEMENT = 'displacement'  # position = rest + u (dynamic)


class FixedDofPolicy(str, Enum):
    """What the dynamic integrator writes into a fixed DOF each sub-step."""
    ZERO = 'zero'  # forced to 0, fixed nodes always read displacement 0
    HOLD = 'hold'  # keep the current value


@dataclass(frozen=True)
class State:
    """
    Post-tick snapshot of the network.

    All arrays are read-only. Renderers may keep a reference to a State
    across ticks; it never changes.

    Attributes:
    -----------
    positions : np.ndarray
        Node positions, shape (n_nodes, dim)
    velocities : np.ndarray
        Node velocities, shape (n_nodes, dim)
    displacement : np.ndarray
        Solved DOF vector u of the last tick, shape (ndof,)
    previous_displacement : np.ndarray
        u of the tick before (dynamic history), shape (ndof,)
    time : float
        Simulated time
    tick : int
        Number of completed ticks
    """
    positions: np.ndarray
    velocities: np.ndarray
    displacement: np.ndarray
    previous_displacement: np.ndarray
    time: float = 0.0
    tick: int = 0

    def __post_init__(self):
        for name in ('positions', 'velocities', 'displacement', 'previous_displacement'):
            arr = np.array(getattr(self, name), dtype=float, copy=True)
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)


def substep_count(elapsed: float, time_step: float) -> int:
    """
    Number of equal sub-steps so that elapsed / n <= time_step.

    >>> substep_count(0.016, 0.005)
    4
    >>> substep_count(0.001, 0.005)
    1
    """
    return max(1, math.ceil(elapsed / time_step - _SUBSTEP_EPS))


class StaticIntegrator:
    """
    Re-solves K·u = f every tick and advances positions as if u were a velocity.
    """

    interpretation = SolutionInterpretation.VELOCITY

    def __init__(self, network: SpringNetwork, matrices: SystemMatrices, config: SimulationConfig):
        self.network = network
        self.config = config
        self.set_matrices(matrices)

    def set_matrices(self, matrices: SystemMatrices) -> None:
        self.matrices = matrices
        dof = matrices.dof
        self._fixed_dofs = dof.per_dof(self.network.fixed)
        self._load = body_force_vector(
            self.network.masses, self.network.fixed, dof,
            self.config.gravity, self.config.horizontal_force,
        )

    def initial_state(self) -> State:
        ndof = self.matrices.ndof
        return State(
            positions=self.network.positions,
            velocities=self.network.velocities,
            displacement=np.zeros(ndof),
            previous_displacement=np.zeros(ndof),
        )

    def solve(self) -> np.ndarray:
        """One force-balance solve; raises SingularSystemError on rigid modes."""
        u, _ = solve_linear(
            self.matrices.K,
            self._load,
            self._fixed_dofs,
            method=self.config.solver,
            max_iterations=self.config.max_iterations,
            fallback=self.config.fallback_to_iterative,
            pivot_tol=self.config.pivot_tolerance,
        )
        return u

    def advance(self, state: State, elapsed: float) -> State:
        u = self.solve()
        velocities = self.matrices.dof.to_nodal(u).copy()
        positions = state.positions + velocities * elapsed
        return State(
            positions=positions,
            velocities=velocities,
            displacement=u,
            previous_displacement=state.displacement,
            time=state.time + elapsed,
            tick=state.tick + 1,
        )


class DynamicIntegrator:
    """
    Explicit central-difference integration of the damped mass-spring ODE.

    The same recurrence handles 1, 2 and 3 DOF per node; gravity acts on the
    vertical axis only (see DOFManager.vertical_axis).
    """

    interpretation = SolutionInterpretation.DISPLACEMENT

    def __init__(self, network: SpringNetwork, matrices: SystemMatrices, config: SimulationConfig):
        self.network = network
        self.config = config
        self.policy = FixedDofPolicy(config.fixed_dof_policy)
        self.rest_positions = np.array(network.positions, dtype=float, copy=True)
        self.set_matrices(matrices)

    def set_matrices(self, matrices: SystemMatrices) -> None:
        """
        Switch to new matrices. The stability check runs first, so if it
        raises (warnings as errors) the integrator keeps its old matrices.
        """
        dof = matrices.dof
        fixed_dofs = dof.per_dof(self.network.fixed)
        mass = build_lumped_mass_vector(self.network.masses, dof)
        critical = critical_time_step(matrices.K, mass, fixed_dofs, self.config.damping)
        self._check_time_step(critical)

        self.matrices = matrices
        self.critical_step = critical
        self._fixed_dofs = fixed_dofs
        self._free_dofs = ~fixed_dofs
        self._mass = mass
        # Fixed DOFs may be massless; never divide by their mass
        self._safe_mass = np.where(self._free_dofs, mass, 1.0)
        self._load = body_force_vector(
            self.network.masses, self.network.fixed, dof,
            self.config.gravity, self.config.horizontal_force,
        )
        self._initial_velocity = self.network.velocities.reshape(-1) * self._free_dofs

    def _check_time_step(self, critical: float) -> None:
        dt = self.config.time_step
        alpha = self.config.damping
        logger.debug("Nominal Δt=%.3g, critical Δt=%.3g (α=%.3g)", dt, critical, alpha)
        if dt > critical:
            warnings.warn(
                f"Nominal time step {dt:.3g} exceeds the stability limit "
                f"{critical:.3g} (√(4-2α)/ω_max, α={alpha:.3g}). Halve the time step.",
                InstabilityWarning,
                stacklevel=3,
            )

    def initial_state(self) -> State:
        """
        Zero displacement. Node initial velocities are applied by the first
        tick, which seeds u_prev = u - v0·Δt_sub with its own sub-step length.
        """
        ndof = self.matrices.ndof
        return State(
            positions=self.rest_positions,
            velocities=self.network.velocities * self.matrices.dof.to_nodal(self._free_dofs),
            displacement=np.zeros(ndof),
            previous_displacement=np.zeros(ndof),
        )

    def substep(self, u: np.ndarray, u_prev: np.ndarray, dt: float) -> np.ndarray:
        """One central-difference step; returns u_next as a new array."""
        alpha = self.config.damping
        elastic = self.matrices.K @ u
        damping = alpha * self._mass * (u - u_prev) / dt

        numer = self._load * dt * dt - damping * dt - elastic * dt * dt
        u_next = numer / self._safe_mass + 2.0 * u - u_prev

        if self.policy is FixedDofPolicy.ZERO:
            u_next[self._fixed_dofs] = 0.0
        else:
            u_next[self._fixed_dofs] = u[self._fixed_dofs]
        return u_next

    def advance(self, state: State, elapsed: float) -> State:
        n_sub = substep_count(elapsed, self.config.time_step)
        dt = elapsed / n_sub

        u = np.array(state.displacement, copy=True)
        u_prev = np.array(state.previous_displacement, copy=True)
        if state.tick == 0:
            u_prev -= self._initial_velocity * dt
        warned = False

        with np.errstate(over='ignore', invalid='ignore'):
            for k in range(n_sub):
                u_next = self.substep(u, u_prev, dt)
                u_prev, u = u, u_next

                if not np.all(np.isfinite(u)):
                    warnings.warn(
                        f"Displacement became non-finite at sub-step {k + 1}/{n_sub} "
                        f"(Δt={dt:.3g}); tick rejected. Halve the time step.",
                        InstabilityWarning,
                        stacklevel=2,
                    )
                    return state

                peak = float(np.max(np.abs(u), initial=0.0))
                if not warned and peak > self.config.divergence_threshold:
                    warnings.warn(
                        f"Displacement {peak:.3g} exceeds {self.config.divergence_threshold:.3g} "
                        f"at sub-step {k + 1}/{n_sub} (Δt={dt:.3g}). Halve the time step.",
                        InstabilityWarning,
                        stacklevel=2,
                    )
                    warned = True

        dof = self.matrices.dof
        return State(
            positions=self.rest_positions + dof.to_nodal(u),
            velocities=dof.to_nodal((u - u_prev) / dt),
            displacement=u,
            previous_displacement=u_prev,
            time=state.time + elapsed,
            tick=state.tick + 1,
        )


def make_integrator(network: SpringNetwork, matrices: SystemMatrices, config: SimulationConfig):
    """Integrator selected by config.integrator ('static' or 'dynamic')."""
    if config.integrator == 'dynamic':
        return DynamicIntegrator(network, matrices, config)
    return StaticIntegrator(network, matrices, config)
