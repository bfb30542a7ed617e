"""
Vectorized density computation for SPH.

Direct summation over every particle (brute force, self included):

    ρ(p) = Σⱼ mⱼ W(|xⱼ - p|, h)

Evaluated once per particle per frame with the particle's own position as
sample point. The phase only reads the frame-start positions, so the result
is independent of evaluation order.
"""

import numpy as np

from ..core.particles import ParticleArrays
from ..core.kernels import smoothing_kernel


def compute_density_at(sample_point: np.ndarray, positions: np.ndarray,
                       masses: np.ndarray, smoothing_radius: float) -> float:
    """Density at an arbitrary point.

    Args:
        sample_point: Point to sample, shape (3,)
        positions: Particle positions, shape (N, 3)
        masses: Particle masses, shape (N,)
        smoothing_radius: Kernel radius h

    Returns:
        Σ mⱼ W(|xⱼ - p|, h)
    """
    if len(positions) == 0:
        return 0.0
    distances = np.linalg.norm(positions - np.asarray(sample_point, dtype=np.float64), axis=1)
    return float(np.sum(masses * smoothing_kernel(distances, smoothing_radius)))


def compute_density_vectorized(particles: ParticleArrays, smoothing_radius: float,
                               batch_size: int = 256) -> np.ndarray:
    """Density at every particle position.

    Rows are processed in batches so the pairwise distance block stays at
    (batch_size, N) instead of (N, N).

    Args:
        particles: Particle arrays (read only)
        smoothing_radius: Kernel radius h
        batch_size: Number of sample particles per batch

    Returns:
        Fresh density array, shape (N,)
    """
    positions = particles.positions
    masses = particles.mass
    n = positions.shape[0]
    density = np.zeros(n)

    for batch_start in range(0, n, batch_size):
        batch_end = min(batch_start + batch_size, n)

        # (B, N) distances from each sample particle to every particle
        offsets = positions[np.newaxis, :, :] - positions[batch_start:batch_end, np.newaxis, :]
        distances = np.sqrt(np.sum(offsets * offsets, axis=2))

        W = smoothing_kernel(distances, smoothing_radius)
        density[batch_start:batch_end] = np.sum(masses[np.newaxis, :] * W, axis=1)

    return density
