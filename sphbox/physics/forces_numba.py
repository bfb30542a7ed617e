"""
Numba-optimized pressure-force computation for SPH.

The pairwise loop is the main bottleneck (O(N²) per frame), so the outer
particle loop runs with prange. Coincident pairs are skipped inside the
kernel and resolved by the shared random-direction fallback afterwards, so
both backends draw from the same explicit generator.
"""

import numpy as np
import numba as nb
from typing import Optional

from ..core.particles import ParticleArrays
from ..core.integrator_vectorized import DENSITY_EPSILON
from .forces_vectorized import find_coincident_pairs, add_coincident_pair_forces


@nb.njit(cache=True)
def smoothing_kernel_derivative_scalar(r: float, h: float) -> float:
    """Kernel slope (scalar twin of core.kernels.smoothing_kernel_derivative)."""
    if r >= h:
        return 0.0
    scale = 12.0 / (np.pi * h ** 4)
    return (r - h) * scale


@nb.njit(parallel=True, cache=True)
def compute_pressure_forces_numba(positions: np.ndarray, mass: np.ndarray,
                                  density: np.ndarray, smoothing_radius: float,
                                  target_density: float, pressure_factor: float,
                                  density_epsilon: float) -> np.ndarray:
    """Pressure force on every particle, skipping coincident pairs."""
    n = positions.shape[0]
    forces = np.zeros((n, 3))

    for i in nb.prange(n):
        px = positions[i, 0]
        py = positions[i, 1]
        pz = positions[i, 2]
        pressure_i = pressure_factor * (target_density - density[i])

        fx = 0.0
        fy = 0.0
        fz = 0.0
        for j in range(n):
            if j == i:
                continue
            rho_j = density[j]
            if rho_j <= density_epsilon:
                continue

            dx = positions[j, 0] - px
            dy = positions[j, 1] - py
            dz = positions[j, 2] - pz
            r = np.sqrt(dx * dx + dy * dy + dz * dz)
            if r == 0.0 or r >= smoothing_radius:
                continue

            slope = smoothing_kernel_derivative_scalar(r, smoothing_radius)
            pressure_j = pressure_factor * (target_density - rho_j)
            shared = 0.5 * (pressure_j + pressure_i)

            scale = shared * slope * mass[j] / rho_j / r
            fx += scale * dx
            fy += scale * dy
            fz += scale * dz

        forces[i, 0] = fx
        forces[i, 1] = fy
        forces[i, 2] = fz

    return forces


def compute_pressure_forces_numba_wrapper(particles: ParticleArrays, densities: np.ndarray,
                                          smoothing_radius: float, target_density: float,
                                          pressure_factor: float,
                                          rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """Wrapper for Numba force computation, including the coincident-pair fallback."""
    positions = np.ascontiguousarray(particles.positions, dtype=np.float64)
    masses = np.ascontiguousarray(particles.mass, dtype=np.float64)
    densities = np.ascontiguousarray(densities, dtype=np.float64)

    forces = compute_pressure_forces_numba(
        positions, masses, densities,
        float(smoothing_radius), float(target_density), float(pressure_factor),
        DENSITY_EPSILON
    )

    pairs = find_coincident_pairs(positions)
    if len(pairs):
        if rng is None:
            rng = np.random.default_rng()
        add_coincident_pair_forces(forces, pairs, densities, masses, smoothing_radius,
                                   target_density, pressure_factor, rng)

    return forces
