"""
Unified API for SPH with automatic backend dispatch.

This module provides a clean interface that dispatches the two particle-pair
phases (density and pressure forces) to the CPU or Numba implementation
based on the current backend.
"""

import numpy as np
from typing import Optional

from .core.backend import (
    Backend,
    backend_function,
    for_backend,
    dispatch,
    set_backend,
    get_backend,
    list_backends,
    auto_select_backend,
    print_backend_info
)
from .core.particles import ParticleArrays

from .physics.density_vectorized import compute_density_vectorized
from .physics.density_numba import compute_density_numba_wrapper
from .physics.forces_vectorized import compute_pressure_forces_vectorized
from .physics.forces_numba import compute_pressure_forces_numba_wrapper


# CPU implementations
@backend_function("compute_density")
@for_backend(Backend.CPU)
def _compute_density_cpu(particles: ParticleArrays, smoothing_radius: float) -> np.ndarray:
    return compute_density_vectorized(particles, smoothing_radius)


@backend_function("compute_pressure_forces")
@for_backend(Backend.CPU)
def _compute_pressure_forces_cpu(particles: ParticleArrays, densities: np.ndarray,
                                 smoothing_radius: float, target_density: float,
                                 pressure_factor: float,
                                 rng: Optional[np.random.Generator] = None) -> np.ndarray:
    return compute_pressure_forces_vectorized(particles, densities, smoothing_radius,
                                              target_density, pressure_factor, rng)


# Numba implementations
@backend_function("compute_density")
@for_backend(Backend.NUMBA)
def _compute_density_numba(particles: ParticleArrays, smoothing_radius: float) -> np.ndarray:
    return compute_density_numba_wrapper(particles, smoothing_radius)


@backend_function("compute_pressure_forces")
@for_backend(Backend.NUMBA)
def _compute_pressure_forces_numba(particles: ParticleArrays, densities: np.ndarray,
                                   smoothing_radius: float, target_density: float,
                                   pressure_factor: float,
                                   rng: Optional[np.random.Generator] = None) -> np.ndarray:
    return compute_pressure_forces_numba_wrapper(particles, densities, smoothing_radius,
                                                 target_density, pressure_factor, rng)


# Public API functions that dispatch to appropriate backend
def compute_density(particles: ParticleArrays, smoothing_radius: float,
                    backend: Optional[str] = None) -> np.ndarray:
    """Compute SPH density at every particle using current or specified backend.

    Args:
        particles: Particle arrays (read only)
        smoothing_radius: Kernel radius h
        backend: Override backend ('cpu', 'numba', or None for current)

    Returns:
        Fresh density array, shape (N,)
    """
    return dispatch("compute_density", particles, smoothing_radius, backend=backend)


def compute_pressure_forces(particles: ParticleArrays, densities: np.ndarray,
                            smoothing_radius: float, target_density: float,
                            pressure_factor: float,
                            rng: Optional[np.random.Generator] = None,
                            backend: Optional[str] = None) -> np.ndarray:
    """Compute pressure forces on every particle using current or specified backend.

    Args:
        particles: Particle arrays (read only)
        densities: Densities from the same frame
        smoothing_radius: Kernel radius h
        target_density: Rest density
        pressure_factor: Equation-of-state stiffness
        rng: Random generator for coincident particles
        backend: Override backend

    Returns:
        Fresh force array, shape (N, 3)
    """
    return dispatch("compute_pressure_forces", particles, densities, smoothing_radius,
                    target_density, pressure_factor, rng, backend=backend)


__all__ = [
    'compute_density',
    'compute_pressure_forces',
    'set_backend',
    'get_backend',
    'list_backends',
    'auto_select_backend',
    'print_backend_info'
]
