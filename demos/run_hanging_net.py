#!/usr/bin/env python3
"""
RUN_HANGING_NET: Static vs Dynamic Response of a Spring Net
============================================================

This demo loads a vertical 2D spring net (boundary fixed) with gravity and
compares the two integrators:
1. Build the net and assemble K = AᵀCA
2. Solve the static equilibrium directly (the sag it should settle to)
3. Run the damped central-difference integrator until it settles
4. Print the most loaded springs and plot the deformed net

Run with:
    python demos/run_hanging_net.py
"""

import logging
import sys
from pathlib import Path

import numpy as np
import matplotlib.pyplot as plt

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from spring_net import SimulationConfig, SpringMassSimulation
from spring_net.generative.grid import GridParams, make_grid
from spring_net.history import SimulationHistory


def print_header(text: str):
    """Print a formatted section header."""
    print("\n" + "=" * 60)
    print(f"  {text}")
    print("=" * 60)


def draw_net(ax, network, positions, **style):
    for start, end in zip(network.spring_start, network.spring_end):
        ax.plot(*zip(positions[start], positions[end]), **style)


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print_header("HANGING NET")
    params = GridParams(width=7, height=7, spacing=0.5, stiffness=100.0, dim=2)
    network = make_grid(params)
    mid = (params.height // 2) * params.width + params.width // 2
    print(f"\nNodes: {network.n_nodes}, springs: {network.n_springs}")
    print(f"Free nodes: {len(network.free_nodes())}, center node: {mid}")

    # =========================================================================
    # STEP 1: STATIC EQUILIBRIUM
    # =========================================================================
    print_header("STEP 1: Static Equilibrium (direct solver)")

    static = SpringMassSimulation(network, SimulationConfig(dim=2, solver='direct'))
    u_static = static.integrator.solve()
    sag_static = network.positions + static.matrices.dof.to_nodal(u_static)
    print(f"\nCenter deflection: {u_static[static.matrices.dof.idx(mid, 1)]:.5f} m")

    # =========================================================================
    # STEP 2: DAMPED DYNAMICS
    # =========================================================================
    print_header("STEP 2: Damped Central Difference")

    config = SimulationConfig(dim=2, integrator='dynamic', damping=0.02, time_step=0.005)
    dynamic = SpringMassSimulation(network, config)
    print(f"\nNominal Δt: {config.time_step} s, critical Δt: {dynamic.critical_time_step():.4f} s")

    history = SimulationHistory()
    frame = 1.0 / 60.0
    for _ in range(600):
        history.record(dynamic.step(frame))

    print(f"Simulated {dynamic.state.time:.1f} s in {dynamic.state.tick} ticks")
    print(f"Peak |u| over the run: {history.peak_displacement():.5f} m")
    print(f"Final center deflection: {dynamic.displacement(mid)[1]:.5f} m")

    gap = np.max(np.abs(dynamic.state.displacement - u_static))
    print(f"Max |u_dynamic - u_static|: {gap:.2e} m")

    # =========================================================================
    # STEP 3: SPRING FORCES
    # =========================================================================
    print_header("STEP 3: Most Loaded Springs")

    tensions = dynamic.spring_tensions()
    for i in np.argsort(-np.abs(tensions))[:5]:
        t = tensions[i]
        kind = "tension" if t >= 0 else "compression"
        s, e = network.spring_start[i], network.spring_end[i]
        print(f"  Spring {i:3d} ({s:2d}-{e:2d}): {t:8.3f} N ({kind})")

    # =========================================================================
    # STEP 4: PLOT
    # =========================================================================
    df = history.to_frame()
    center = df[df.node == mid]

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(12, 5))
    scale = 0.25 / max(np.max(np.abs(u_static)), 1e-12)
    draw_net(ax1, network, network.positions, color='lightgray', linewidth=0.8)
    draw_net(ax1, network, network.positions + scale * (sag_static - network.positions),
             color='tab:blue', linewidth=1.0)
    ax1.set_aspect('equal')
    ax1.set_title(f'Static sag (x{scale:.0f})')

    ax2.plot(center.time, center.displacement_y)
    ax2.axhline(u_static[static.matrices.dof.idx(mid, 1)], color='k', linestyle='--', label='static')
    ax2.set_xlabel('time [s]')
    ax2.set_ylabel('center u_y [m]')
    ax2.set_title('Center displacement history')
    ax2.legend()
    ax2.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.show()


if __name__ == "__main__":
    main()
