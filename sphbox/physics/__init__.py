"""Physics modules for SPH: density summation and pressure forces."""

from .density_vectorized import (
    compute_density_at,
    compute_density_vectorized
)
from .density_numba import compute_density_numba_wrapper
from .forces_vectorized import (
    density_to_pressure,
    shared_pressure,
    random_unit_vectors,
    find_coincident_pairs,
    add_coincident_pair_forces,
    compute_pressure_force,
    compute_pressure_forces_vectorized
)
from .forces_numba import compute_pressure_forces_numba_wrapper

__all__ = [
    'compute_density_at',
    'compute_density_vectorized',
    'compute_density_numba_wrapper',
    'density_to_pressure',
    'shared_pressure',
    'random_unit_vectors',
    'find_coincident_pairs',
    'add_coincident_pair_forces',
    'compute_pressure_force',
    'compute_pressure_forces_vectorized',
    'compute_pressure_forces_numba_wrapper'
]
