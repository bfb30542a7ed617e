"""SPH simulation scenarios (initial particle placements)."""

from .grid import (
    create_jittered_grid,
    generate_lattice_positions
)

__all__ = [
    'create_jittered_grid',
    'generate_lattice_positions'
]
