#!/usr/bin/env python3
"""
RUN_STABILITY_BOUNDARY: Where Explicit Integration Blows Up
===========================================================

A single mass on a spring, released from a unit displacement, run with a
range of nominal time steps around the critical value 2/ω.

Below the limit the amplitude stays bounded; above it, the central
difference recurrence amplifies every step and InstabilityWarning fires.

Run with:
    python demos/run_stability_boundary.py
"""

import sys
import warnings
from pathlib import Path

import numpy as np

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from spring_net import InstabilityWarning, SimulationConfig, SpringMassSimulation
from spring_net.model import Node, Spring, SpringNetwork


def main():
    k, m = 100.0, 1.0
    network = SpringNetwork(
        nodes=[Node(mass=m, position=(0.0,), fixed=True), Node(mass=m, position=(1.0,))],
        springs=[Spring(0, 1, k)],
        dim=1,
    )
    dt_crit = 2.0 / np.sqrt(k / m)

    print("=" * 60)
    print(f"  STABILITY BOUNDARY (k={k}, m={m}, Δt_crit={dt_crit:.3f} s)")
    print("=" * 60)
    print(f"\n{'Δt/Δt_crit':>12} {'Δt [s]':>10} {'peak |u|':>14} {'warnings':>10}")

    for ratio in [0.25, 0.5, 0.9, 0.99, 1.01, 1.1, 1.5]:
        dt = ratio * dt_crit
        config = SimulationConfig(dim=1, integrator='dynamic', gravity=0.0, time_step=dt)

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", InstabilityWarning)
            sim = SpringMassSimulation(network, config)
            sim.displace(1, 1.0)
            peak = 0.0
            for _ in range(200):
                sim.step(dt)
                peak = max(peak, float(np.max(np.abs(sim.state.displacement))))

        n_warn = sum(issubclass(w.category, InstabilityWarning) for w in caught)
        print(f"{ratio:12.2f} {dt:10.4f} {peak:14.4g} {n_warn:10d}")


if __name__ == "__main__":
    main()
