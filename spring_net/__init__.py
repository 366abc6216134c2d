# spring_net - Mass-spring network simulation
"""
SPRING_NET: Deformable Mass-Spring Networks
===========================================

This package animates networks of point masses joined by linear springs:
- assembly of the global stiffness K = AᵀCA for 1D, 2D and 3D networks
- quasi-static re-solve (Gauss-Seidel or direct elimination)
- explicit central-difference dynamics with stability sub-stepping

ARCHITECTURE:
-------------
    model.py        Node, Spring, SpringNetwork (validated topology)
    kernel/         DOF indexing, assembly, linear solvers, modal limits
    loads.py        Gravity / body-force load vectors
    integrators.py  StaticIntegrator, DynamicIntegrator, State
    simulation.py   SpringMassSimulation (host-facing driver)
    config.py       SimulationConfig
    generative/     Grid and chain topology generators
    history.py      Recording States and exporting to pandas
"""

from .model import Node, Spring, SpringNetwork, ConfigurationError
from .config import SimulationConfig, DEFAULT_CONFIG
from .kernel import DOFManager, SingularSystemError
from .integrators import (
    FixedDofPolicy,
    InstabilityWarning,
    SolutionInterpretation,
    State,
)
from .simulation import SpringMassSimulation

__version__ = "0.1.0"

__all__ = [
    'Node',
    'Spring',
    'SpringNetwork',
    'ConfigurationError',
    'SimulationConfig',
    'DEFAULT_CONFIG',
    'DOFManager',
    'SingularSystemError',
    'FixedDofPolicy',
    'InstabilityWarning',
    'SolutionInterpretation',
    'State',
    'SpringMassSimulation',
]
