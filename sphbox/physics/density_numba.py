"""
Numba-optimized density computation for SPH.

Same brute-force summation as density_vectorized, with the outer particle
loop parallelized.
"""

import numpy as np
import numba as nb

from ..core.particles import ParticleArrays


@nb.njit(cache=True)
def smoothing_kernel_scalar(r: float, h: float) -> float:
    """Quadratic smoothing kernel (scalar twin of core.kernels.smoothing_kernel)."""
    if r >= h:
        return 0.0
    volume = np.pi * h ** 4 / 6.0
    return (h - r) * (h - r) / volume


@nb.njit(parallel=True, cache=True)
def compute_density_numba(positions: np.ndarray, mass: np.ndarray,
                          smoothing_radius: float) -> np.ndarray:
    """Density at every particle position, one prange iteration per particle."""
    n = positions.shape[0]
    density = np.zeros(n)

    for i in nb.prange(n):
        px = positions[i, 0]
        py = positions[i, 1]
        pz = positions[i, 2]

        rho = 0.0
        for j in range(n):
            dx = positions[j, 0] - px
            dy = positions[j, 1] - py
            dz = positions[j, 2] - pz
            r = np.sqrt(dx * dx + dy * dy + dz * dz)
            rho += mass[j] * smoothing_kernel_scalar(r, smoothing_radius)
        density[i] = rho

    return density


def compute_density_numba_wrapper(particles: ParticleArrays, smoothing_radius: float) -> np.ndarray:
    """Wrapper for Numba density computation that matches the vectorized interface."""
    return compute_density_numba(
        np.ascontiguousarray(particles.positions, dtype=np.float64),
        np.ascontiguousarray(particles.mass, dtype=np.float64),
        float(smoothing_radius),
    )
