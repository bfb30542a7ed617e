"""
Initial particle placement: a jittered cubic lattice centred in the box.
"""

import logging
import numpy as np
from typing import Optional, Sequence

from ..core.particles import ParticleArrays

logger = logging.getLogger(__name__)

# Jitter at or below this is treated as "no jitter"
JITTER_EPSILON = 1e-4


def generate_lattice_positions(center: Sequence[float], count_per_axis: int,
                               spacing: float) -> np.ndarray:
    """Regular cubic lattice of count_per_axis³ sites centred on center.

    Sites are ordered x-major, z-minor: index = (ix * N + iy) * N + iz.

    Args:
        center: (x, y, z) lattice centre
        count_per_axis: Sites per axis N (>= 1)
        spacing: Distance between neighbouring sites

    Returns:
        Array of (x, y, z) positions, shape (N³, 3)
    """
    n = count_per_axis
    half_span = (n - 1) * spacing / 2.0
    axis = np.arange(n, dtype=np.float64) * spacing - half_span

    xx, yy, zz = np.meshgrid(axis, axis, axis, indexing='ij')
    offsets = np.column_stack([xx.ravel(), yy.ravel(), zz.ravel()])
    return np.asarray(center, dtype=np.float64) + offsets


def create_jittered_grid(center: Sequence[float] = (0.0, 0.0, 0.0),
                         count_per_axis: int = 8,
                         spacing: float = 30.0,
                         jitter_factor: float = 1.0,
                         radius: float = 10.0,
                         mass: float = 1.0,
                         rng: Optional[np.random.Generator] = None) -> ParticleArrays:
    """Create a block of particles on a jittered lattice, all at rest.

    Each lattice site is displaced independently on every axis by a uniform
    offset in [-jitter_factor, +jitter_factor] when jitter_factor exceeds a
    small epsilon. Without an injected rng a fresh generator is used, so
    placement is only reproducible when the caller seeds one.

    Args:
        center: Centre of the block (usually the box centre)
        count_per_axis: Particles per axis N; clamped to >= 1
        spacing: Lattice spacing
        jitter_factor: Max per-axis random offset
        radius: Radius of every particle
        mass: Mass of every particle
        rng: Random generator for the jitter

    Returns:
        ParticleArrays with N³ particles
    """
    if count_per_axis < 1:
        logger.warning("particle_count_per_axis=%s is below 1, clamping to 1", count_per_axis)
        count_per_axis = 1

    positions = generate_lattice_positions(center, count_per_axis, spacing)

    if jitter_factor > JITTER_EPSILON:
        if rng is None:
            rng = np.random.default_rng()
        positions += rng.uniform(-jitter_factor, jitter_factor, size=positions.shape)

    particles = ParticleArrays.allocate(positions.shape[0], radius=radius, mass=mass)
    particles.positions[:] = positions

    logger.debug("Generated %d particles (%d per axis, spacing %.3g, jitter %.3g)",
                 particles.n_particles, count_per_axis, spacing, jitter_factor)
    return particles
