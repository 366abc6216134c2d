# spring_net/config.py
"""
Simulation configuration and defaults.
"""

from dataclasses import dataclass, replace

from .model import ConfigurationError, SUPPORTED_DIMENSIONS


INTEGRATORS = ('static', 'dynamic')
SOLVERS = ('iterative', 'direct')
FIXED_DOF_POLICIES = ('zero', 'hold')


@dataclass(frozen=True)
class SimulationConfig:
    """Parameters of one simulation run."""

    # Network
    dim: int = 1

    # Body forces (per unit mass)
    gravity: float = -9.81
    horizontal_force: float = 0.0  # along x, vector networks only

    # Time stepping
    integrator: str = 'static'
    time_step: float = 0.005  # nominal Δt; dynamic sub-steps never exceed it
    # α: fraction of (u - u_prev) removed per sub-step, 0 <= α < 2
    damping: float = 0.0

    # Linear solver (static integrator)
    solver: str = 'iterative'
    max_iterations: int = 100
    fallback_to_iterative: bool = True
    pivot_tolerance: float = 1e-9

    # Dynamic integrator policies
    fixed_dof_policy: str = 'zero'
    divergence_threshold: float = 1e6

    # Re-assemble A/C/K from current geometry after every tick
    reassemble_each_tick: bool = False

    def __post_init__(self):
        if self.dim not in SUPPORTED_DIMENSIONS:
            raise ConfigurationError(f"dim must be one of {SUPPORTED_DIMENSIONS}, got {self.dim}")
        if self.integrator not in INTEGRATORS:
            raise ConfigurationError(f"integrator must be one of {INTEGRATORS}, got {self.integrator!r}")
        if self.solver not in SOLVERS:
            raise ConfigurationError(f"solver must be one of {SOLVERS}, got {self.solver!r}")
        if self.fixed_dof_policy not in FIXED_DOF_POLICIES:
            raise ConfigurationError(
                f"fixed_dof_policy must be one of {FIXED_DOF_POLICIES}, got {self.fixed_dof_policy!r}"
            )
        if not self.time_step > 0.0:
            raise ConfigurationError(f"time_step must be positive, got {self.time_step}")
        if not 0.0 <= self.damping < 2.0:
            raise ConfigurationError(
                f"damping must be in [0, 2), got {self.damping}; "
                f"the central-difference recurrence diverges for α >= 2 at any time step"
            )
        if self.max_iterations < 1:
            raise ConfigurationError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if not self.pivot_tolerance > 0.0:
            raise ConfigurationError(f"pivot_tolerance must be positive, got {self.pivot_tolerance}")
        if not self.divergence_threshold > 0.0:
            raise ConfigurationError(
                f"divergence_threshold must be positive, got {self.divergence_threshold}"
            )

    def with_changes(self, **changes) -> 'SimulationConfig':
        """Copy with some fields replaced (validated again)."""
        return replace(self, **changes)


# Global default instance
DEFAULT_CONFIG = SimulationConfig()
