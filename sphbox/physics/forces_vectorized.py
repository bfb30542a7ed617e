"""
Fully vectorized pressure-force computation for SPH.

Includes:
- Linear equation of state (density -> pressure)
- Symmetrized pair pressure
- Pairwise pressure forces, brute force over all particles
- Random-direction fallback for coincident particles

Sign convention: pressure is k·(ρ₀ - ρ), positive when a region is *under*
dense. With the non-positive kernel slope a positive shared pressure pushes
the pair apart and a negative one draws it together.
"""

import warnings
import numpy as np
from typing import Optional

from ..core.kernels import smoothing_kernel_derivative
from ..core.integrator_vectorized import DENSITY_EPSILON
from ..errors import DegenerateGeometryWarning


def density_to_pressure(density, target_density: float, pressure_factor: float):
    """Linear equation of state: P = k (ρ₀ - ρ).

    Args:
        density: Density value(s)
        target_density: Rest density ρ₀
        pressure_factor: Stiffness k

    Returns:
        Pressure value(s), zero exactly at the target density
    """
    return pressure_factor * (target_density - density)


def shared_pressure(density_a, density_b, target_density: float, pressure_factor: float):
    """Mean of the two particles' pressures, symmetric in its arguments."""
    pressure_a = density_to_pressure(density_a, target_density, pressure_factor)
    pressure_b = density_to_pressure(density_b, target_density, pressure_factor)
    return (pressure_a + pressure_b) / 2.0


def random_unit_vectors(rng: np.random.Generator, count: int) -> np.ndarray:
    """Directions drawn uniformly on the unit sphere, shape (count, 3)."""
    vectors = rng.standard_normal((count, 3))
    norms = np.linalg.norm(vectors, axis=1)

    # Redraw the (practically impossible) near-zero samples
    bad = norms < 1e-12
    while np.any(bad):
        vectors[bad] = rng.standard_normal((int(bad.sum()), 3))
        norms = np.linalg.norm(vectors, axis=1)
        bad = norms < 1e-12

    return vectors / norms[:, np.newaxis]


def find_coincident_pairs(positions: np.ndarray) -> np.ndarray:
    """All ordered pairs (i, j), i != j, of particles at exactly the same position.

    Args:
        positions: Particle positions, shape (N, 3)

    Returns:
        Integer array of shape (K, 2)
    """
    if positions.shape[0] < 2:
        return np.empty((0, 2), dtype=np.int64)

    _, inverse, counts = np.unique(positions, axis=0, return_inverse=True, return_counts=True)
    inverse = np.asarray(inverse).reshape(-1)

    pairs = []
    for group in np.flatnonzero(counts > 1):
        members = np.flatnonzero(inverse == group)
        for i in members:
            for j in members:
                if i != j:
                    pairs.append((i, j))

    if not pairs:
        return np.empty((0, 2), dtype=np.int64)
    return np.array(pairs, dtype=np.int64)


def add_coincident_pair_forces(forces: np.ndarray, pairs: np.ndarray,
                               densities: np.ndarray, masses: np.ndarray,
                               smoothing_radius: float, target_density: float,
                               pressure_factor: float,
                               rng: np.random.Generator) -> int:
    """Add the pressure force between coincident particles.

    The direction between two particles at the same spot is undefined, so a
    uniformly random unit vector is drawn for every ordered pair. The result
    is only reproducible when rng is seeded.

    Args:
        forces: Force accumulator, shape (N, 3), mutated in place
        pairs: Ordered (i, j) pairs from find_coincident_pairs
        densities: Densities from the same frame
        masses: Particle masses
        smoothing_radius: Kernel radius h
        target_density: Rest density ρ₀
        pressure_factor: Stiffness k
        rng: Random generator for the fallback directions

    Returns:
        Number of pairs handled
    """
    n_pairs = len(pairs)
    if n_pairs == 0:
        return 0

    warnings.warn(f"{n_pairs} coincident particle pair(s); using random force directions",
                  DegenerateGeometryWarning, stacklevel=3)

    slope = smoothing_kernel_derivative(0.0, smoothing_radius)
    directions = random_unit_vectors(rng, n_pairs)

    for (i, j), direction in zip(pairs, directions):
        rho_j = densities[j]
        if rho_j <= DENSITY_EPSILON:
            continue
        pressure = shared_pressure(rho_j, densities[i], target_density, pressure_factor)
        forces[i] += pressure * slope * direction * masses[j] / rho_j

    return n_pairs


def compute_pressure_force(particle_index: int, positions: np.ndarray, masses: np.ndarray,
                           densities: np.ndarray, smoothing_radius: float,
                           target_density: float, pressure_factor: float,
                           rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """Pressure force on a single particle.

        F_i = Σ_{j≠i} P_shared(ρ_j, ρ_i) · W'(r_ij) · dir_ij · m_j / ρ_j

    with dir_ij = (x_j - x_i) / r_ij, or a random unit vector when r_ij == 0.
    Neighbours with zero density contribute nothing.

    Args:
        particle_index: Index i of the particle
        positions: Particle positions, shape (N, 3)
        masses: Particle masses, shape (N,)
        densities: Densities from the same frame, shape (N,)
        smoothing_radius: Kernel radius h
        target_density: Rest density ρ₀
        pressure_factor: Stiffness k
        rng: Random generator for coincident particles (fresh one if None)

    Returns:
        Force vector, shape (3,)
    """
    i = particle_index
    offsets = positions - positions[i]
    distances = np.linalg.norm(offsets, axis=1)

    valid = densities > DENSITY_EPSILON
    valid[i] = False

    directions = np.zeros_like(offsets)
    apart = valid & (distances > 0.0)
    directions[apart] = offsets[apart] / distances[apart, np.newaxis]

    coincident = valid & (distances == 0.0)
    n_coincident = int(coincident.sum())
    if n_coincident:
        if rng is None:
            rng = np.random.default_rng()
        warnings.warn(f"particle {i} coincides with {n_coincident} other particle(s); "
                      f"using random force directions", DegenerateGeometryWarning, stacklevel=2)
        directions[coincident] = random_unit_vectors(rng, n_coincident)

    slope = smoothing_kernel_derivative(distances, smoothing_radius)
    pressure = shared_pressure(densities, densities[i], target_density, pressure_factor)

    scale = np.zeros_like(distances)
    scale[valid] = pressure[valid] * slope[valid] * masses[valid] / densities[valid]

    return np.sum(scale[:, np.newaxis] * directions, axis=0)


def compute_pressure_forces_vectorized(particles, densities: np.ndarray,
                                       smoothing_radius: float, target_density: float,
                                       pressure_factor: float,
                                       rng: Optional[np.random.Generator] = None,
                                       batch_size: int = 256) -> np.ndarray:
    """Pressure force on every particle.

    Reads the frame-start positions and the density snapshot only, so the
    result does not depend on particle order. Coincident pairs are resolved
    afterwards with add_coincident_pair_forces.

    Args:
        particles: Particle arrays (read only)
        densities: Densities from the same frame, shape (N,)
        smoothing_radius: Kernel radius h
        target_density: Rest density ρ₀
        pressure_factor: Stiffness k
        rng: Random generator for coincident particles (fresh one if None)
        batch_size: Number of particles per batch

    Returns:
        Fresh force array, shape (N, 3)
    """
    positions = particles.positions
    masses = particles.mass
    n = positions.shape[0]
    forces = np.zeros((n, 3))

    pressures = density_to_pressure(densities, target_density, pressure_factor)
    has_density = densities > DENSITY_EPSILON
    inv_density = np.zeros(n)
    inv_density[has_density] = 1.0 / densities[has_density]
    mass_over_rho = masses * inv_density

    for batch_start in range(0, n, batch_size):
        batch_end = min(batch_start + batch_size, n)

        # offsets[b, j] = x_j - x_i for i in batch
        offsets = positions[np.newaxis, :, :] - positions[batch_start:batch_end, np.newaxis, :]
        distances = np.sqrt(np.sum(offsets * offsets, axis=2))

        # Self and coincident pairs (r == 0) are handled separately
        valid = (distances > 0.0) & (distances < smoothing_radius)
        safe_dist = np.where(valid, distances, 1.0)

        slope = smoothing_kernel_derivative(distances, smoothing_radius)
        pair_pressure = 0.5 * (pressures[np.newaxis, :] + pressures[batch_start:batch_end, np.newaxis])

        scale = np.where(valid,
                         pair_pressure * slope * mass_over_rho[np.newaxis, :] / safe_dist,
                         0.0)
        forces[batch_start:batch_end] = np.sum(scale[:, :, np.newaxis] * offsets, axis=1)

    pairs = find_coincident_pairs(positions)
    if len(pairs):
        if rng is None:
            rng = np.random.default_rng()
        add_coincident_pair_forces(forces, pairs, densities, masses, smoothing_radius,
                                   target_density, pressure_factor, rng)

    return forces
