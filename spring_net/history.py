# spring_net/history.py
"""
HISTORY: Recording Published States for Post-Processing
=======================================================

Hosts that want more than the latest frame (plots, regression checks,
energy traces) attach a SimulationHistory and call `record` after each
tick. States are immutable, so recording keeps references, not copies.

    history = SimulationHistory()
    for _ in range(100):
        history.record(sim.step(0.01))
    df = history.to_frame()
    df[df.node == 3].plot(x='time', y='position_y')
"""

from typing import List

import numpy as np
import pandas as pd

from .integrators import State


_AXES = ('x', 'y', 'z')


class SimulationHistory:
    """Ordered list of published States with tabular export."""

    def __init__(self):
        self.states: List[State] = []

    def __len__(self) -> int:
        return len(self.states)

    def record(self, state: State) -> None:
        # Rejected or zero-length ticks publish the same State again
        if self.states and self.states[-1] is state:
            return
        self.states.append(state)

    def node_trajectory(self, node_id: int) -> np.ndarray:
        """Positions of one node over time, shape (n_states, dim)."""
        return np.array([s.positions[node_id] for s in self.states])

    def peak_displacement(self) -> float:
        """Largest |u| over all recorded states."""
        if not self.states:
            return 0.0
        return float(max(np.max(np.abs(s.displacement), initial=0.0) for s in self.states))

    def to_frame(self) -> pd.DataFrame:
        """
        One row per (tick, node).

        Columns: tick, time, node, position_<axis>, velocity_<axis>,
        displacement_<axis> for each axis of the network (x, y, z).
        """
        rows = []
        for state in self.states:
            n_nodes, dim = state.positions.shape
            u = state.displacement.reshape(n_nodes, dim)
            for node in range(n_nodes):
                row = {'tick': state.tick, 'time': state.time, 'node': node}
                for k in range(dim):
                    axis = _AXES[k]
                    row[f'position_{axis}'] = state.positions[node, k]
                    row[f'velocity_{axis}'] = state.velocities[node, k]
                    row[f'displacement_{axis}'] = u[node, k]
                rows.append(row)
        return pd.DataFrame(rows)
