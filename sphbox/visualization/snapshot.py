"""
Static PNG snapshots of the particle box.

Particles are drawn as a 3-D scatter coloured from yellow (slow) to red
(fast) by normalized speed, inside a wireframe of the collision box.
"""

import itertools
import numpy as np
import matplotlib.pyplot as plt
from matplotlib.colors import LinearSegmentedColormap
from typing import Optional, Sequence, Tuple

from ..core.particles import ParticleState

SPEED_CMAP = LinearSegmentedColormap.from_list('speed', ['yellow', 'red'])


def normalized_speeds(states: Sequence[ParticleState], min_speed: float = 0.0,
                      max_speed: Optional[float] = None) -> np.ndarray:
    """Speeds clamped to [min_speed, max_speed] and mapped to [0, 1].

    max_speed defaults to the fastest particle.
    """
    speeds = np.array([s.speed for s in states], dtype=np.float64)
    if max_speed is None:
        max_speed = float(speeds.max()) if len(speeds) else 0.0
    span = max_speed - min_speed
    if span <= 0.0:
        return np.zeros_like(speeds)
    return (np.clip(speeds, min_speed, max_speed) - min_speed) / span


def box_edges(min_corner, max_corner):
    """Yield the 12 edges of an axis-aligned box as pairs of corners."""
    lo = np.asarray(min_corner, dtype=np.float64)
    hi = np.asarray(max_corner, dtype=np.float64)
    corners = [np.array(c) for c in itertools.product(*zip(lo, hi))]
    for a, b in itertools.combinations(corners, 2):
        # Edges differ in exactly one coordinate
        if np.count_nonzero(a != b) == 1:
            yield a, b


def save_snapshot(states: Sequence[ParticleState],
                  bounds: Tuple[np.ndarray, np.ndarray],
                  path: str,
                  min_speed: float = 0.0,
                  max_speed: Optional[float] = None,
                  title: Optional[str] = None,
                  dpi: int = 100) -> str:
    """Render particles and the box to a PNG file.

    Args:
        states: Particle snapshot from FluidSimulation.get_particle_states()
        bounds: (min_corner, max_corner) of the box
        path: Output file
        min_speed: Speed drawn fully yellow
        max_speed: Speed drawn fully red (defaults to the fastest particle)
        title: Optional figure title
        dpi: Output resolution

    Returns:
        The path written
    """
    min_corner, max_corner = bounds

    fig = plt.figure(figsize=(8, 8))
    ax = fig.add_subplot(111, projection='3d')

    for a, b in box_edges(min_corner, max_corner):
        ax.plot([a[0], b[0]], [a[1], b[1]], [a[2], b[2]], color='gray', linewidth=0.8)

    if len(states) > 0:
        positions = np.array([s.position for s in states])
        radii = np.array([s.radius for s in states])
        colours = SPEED_CMAP(normalized_speeds(states, min_speed, max_speed))
        ax.scatter(positions[:, 0], positions[:, 1], positions[:, 2],
                   c=colours, s=np.maximum(radii, 1.0) * 2.0, depthshade=True)

    ax.set_xlim(min_corner[0], max_corner[0])
    ax.set_ylim(min_corner[1], max_corner[1])
    ax.set_zlim(min_corner[2], max_corner[2])
    ax.set_xlabel('X')
    ax.set_ylabel('Y')
    ax.set_zlabel('Z')
    if title:
        ax.set_title(title)

    fig.savefig(path, dpi=dpi, bbox_inches='tight')
    plt.close(fig)
    return path
