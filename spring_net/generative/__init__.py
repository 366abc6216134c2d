# spring_net/generative - Topology generators
"""
Generators that turn a handful of parameters into a validated SpringNetwork.
"""

from .grid import GridParams, make_grid, make_chain

__all__ = ['GridParams', 'make_grid', 'make_chain']
