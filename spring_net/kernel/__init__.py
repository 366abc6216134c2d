# spring_net/kernel - Dimension-parameterized numerical core
"""
KERNEL: ASSEMBLY, SOLVING AND STABILITY
=======================================

This package contains the numerically hard parts of the simulator, written
once for 1, 2 and 3 DOF per node:

- dof.py       (node_id, axis) -> global DOF index, vertical axis
- assemble.py  incidence A, stiffness diagonal C, K = AᵀCA
- solve.py     Gauss-Seidel and pivoted Gaussian elimination with
               constraint elimination, SingularSystemError
- modal.py     lumped mass, natural frequencies, critical time step

The dimension only changes how a spring's incidence row is built
(sign vs direction cosines); everything downstream is dimension-agnostic.
"""

from .dof import DOFManager
from .assemble import SystemMatrices, assemble_system
from .solve import solve_linear, SingularSystemError

__all__ = ['DOFManager', 'SystemMatrices', 'assemble_system', 'solve_linear', 'SingularSystemError']
