"""
Vectorized time integration and box collision handling.

Includes:
- Velocity update from gravity and pressure acceleration
- Position integration (symplectic Euler: kick, then drift)
- Axis-aligned box collisions with restitution and floor friction
"""

import numpy as np
from typing import Tuple

from .particles import ParticleArrays

# Densities at or below this are treated as "no fluid here"
DENSITY_EPSILON = 1e-12

# Vertical axis index (Z up)
VERTICAL_AXIS = 2


def pressure_accelerations(forces: np.ndarray, densities: np.ndarray) -> np.ndarray:
    """Convert pressure forces to accelerations, a = F / ρ.

    Density stands in for mass here. Particles with (near) zero density
    receive no pressure acceleration.

    Args:
        forces: Pressure forces, shape (N, 3)
        densities: Densities from the same frame, shape (N,)

    Returns:
        Accelerations, shape (N, 3)
    """
    accel = np.zeros_like(forces)
    ok = densities > DENSITY_EPSILON
    accel[ok] = forces[ok] / densities[ok, np.newaxis]
    return accel


def apply_accelerations(velocities: np.ndarray, forces: np.ndarray,
                        densities: np.ndarray, gravity: float, dt: float) -> np.ndarray:
    """New velocities after gravity and pressure for one frame.

    v' = v + (0, 0, -g)·dt + F/ρ·dt

    Pure function: reads the frame snapshot and returns a fresh array; the
    caller commits it once every particle has been evaluated.
    """
    new_vel = velocities.copy()
    new_vel[:, VERTICAL_AXIS] -= gravity * dt
    new_vel += pressure_accelerations(forces, densities) * dt
    return new_vel


def resolve_box_collisions(particles: ParticleArrays, dt: float,
                           bounds: Tuple[np.ndarray, np.ndarray],
                           restitution: float = 0.8,
                           floor_friction: float = 0.9):
    """Integrate positions and resolve collisions with the box faces.

    Each particle is moved by v·dt, then every axis is checked independently
    against the post-integration position:
    - minus face below the lower bound: clamp to lower + r, v_axis *= -e
    - else plus face above the upper bound: clamp to upper - r, v_axis *= -e
    Floor contact (lower Z face) also scales the horizontal velocity by
    floor_friction. Ceiling contact does not.

    Args:
        particles: Particle arrays, mutated in place
        dt: Time step (0 just clamps particles into the box)
        bounds: (min_corner, max_corner) of the box
        restitution: Fraction of normal velocity kept, in [0, 1]
        floor_friction: Horizontal velocity factor on floor contact

    Returns:
        (lower_hits, upper_hits) boolean masks of shape (N, 3)
    """
    min_corner, max_corner = bounds
    pos = particles.positions
    vel = particles.velocities
    r = particles.radius

    pos += vel * dt

    # Masks are all taken from the integrated position before any correction
    lower = pos - r[:, np.newaxis] < min_corner
    upper = ~lower & (pos + r[:, np.newaxis] > max_corner)

    for axis in range(3):
        hit_lo = lower[:, axis]
        hit_hi = upper[:, axis]

        pos[hit_lo, axis] = min_corner[axis] + r[hit_lo]
        vel[hit_lo, axis] *= -restitution

        pos[hit_hi, axis] = max_corner[axis] - r[hit_hi]
        vel[hit_hi, axis] *= -restitution

    floor = lower[:, VERTICAL_AXIS]
    vel[floor, 0] *= floor_friction
    vel[floor, 1] *= floor_friction

    return lower, upper
