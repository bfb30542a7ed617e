"""
Particle data for the box simulation.

Two views of the same state:
- Particle: a plain record, used to hand particles in and out of the core
- ParticleArrays: Structure-of-Arrays storage the solver works on

The SoA layout keeps every per-particle column contiguous so the density and
pressure phases can run as vectorized (or numba-parallel) maps over the whole
set.
"""

import numpy as np
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ..errors import InvalidStateError

Vec3 = Tuple[float, float, float]


@dataclass
class Particle:
    """A single particle record (position, velocity, radius, mass)."""
    position: np.ndarray
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    radius: float = 10.0
    mass: float = 1.0

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=np.float64).reshape(3)
        self.velocity = np.asarray(self.velocity, dtype=np.float64).reshape(3)


@dataclass(frozen=True)
class ParticleState:
    """Read-only per-particle snapshot handed to renderers."""
    position: Vec3
    velocity: Vec3
    radius: float

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))


@dataclass
class ParticleArrays:
    """Structure of Arrays holding every particle's state.

    Index i identifies the same particle in every column for the lifetime of
    the simulation.
    """
    positions: np.ndarray       # shape: (N, 3) float64
    velocities: np.ndarray      # shape: (N, 3) float64
    radius: np.ndarray          # shape: (N,) float64
    mass: np.ndarray            # shape: (N,) float64
    density: np.ndarray         # shape: (N,) float64, cached per frame

    @staticmethod
    def allocate(n_particles: int, radius: float = 10.0,
                 mass: float = 1.0) -> 'ParticleArrays':
        """Allocate zeroed arrays for n_particles at rest at the origin.

        Args:
            n_particles: Number of particles
            radius: Radius assigned to every particle
            mass: Mass assigned to every particle

        Returns:
            New ParticleArrays instance
        """
        return ParticleArrays(
            positions=np.zeros((n_particles, 3)),
            velocities=np.zeros((n_particles, 3)),
            radius=np.full(n_particles, radius, dtype=np.float64),
            mass=np.full(n_particles, mass, dtype=np.float64),
            density=np.zeros(n_particles),
        )

    @staticmethod
    def from_particles(particles: Sequence[Particle]) -> 'ParticleArrays':
        """Pack a sequence of Particle records, preserving order."""
        n = len(particles)
        arrays = ParticleArrays.allocate(n)
        for i, p in enumerate(particles):
            arrays.positions[i] = p.position
            arrays.velocities[i] = p.velocity
            arrays.radius[i] = p.radius
            arrays.mass[i] = p.mass
        return arrays

    @property
    def n_particles(self) -> int:
        return self.positions.shape[0]

    def __len__(self) -> int:
        return self.n_particles

    def validate(self):
        """Check that every column describes the same number of particles.

        Raises:
            InvalidStateError: if any column length diverges from positions
        """
        n = self.positions.shape[0]
        if self.positions.ndim != 2 or self.positions.shape[1] != 3:
            raise InvalidStateError(f"positions must have shape (N, 3), got {self.positions.shape}")
        if self.velocities.shape != (n, 3):
            raise InvalidStateError(
                f"velocities shape {self.velocities.shape} does not match {n} particles")
        for name in ("radius", "mass", "density"):
            column = getattr(self, name)
            if column.shape != (n,):
                raise InvalidStateError(
                    f"{name} has shape {column.shape}, expected ({n},)")

    def copy(self) -> 'ParticleArrays':
        return ParticleArrays(
            positions=self.positions.copy(),
            velocities=self.velocities.copy(),
            radius=self.radius.copy(),
            mass=self.mass.copy(),
            density=self.density.copy(),
        )

    def to_particles(self) -> List[Particle]:
        """Unpack into Particle records (copies)."""
        return [
            Particle(position=self.positions[i].copy(),
                     velocity=self.velocities[i].copy(),
                     radius=float(self.radius[i]),
                     mass=float(self.mass[i]))
            for i in range(self.n_particles)
        ]

    def states(self) -> List[ParticleState]:
        """Immutable snapshot of position, velocity and radius."""
        return [
            ParticleState(position=tuple(float(c) for c in self.positions[i]),
                          velocity=tuple(float(c) for c in self.velocities[i]),
                          radius=float(self.radius[i]))
            for i in range(self.n_particles)
        ]

    def speeds(self) -> np.ndarray:
        return np.linalg.norm(self.velocities, axis=1)

    def kinetic_energy(self) -> float:
        """KE = ½ Σ m |v|²"""
        return float(0.5 * np.sum(self.mass * np.sum(self.velocities ** 2, axis=1)))

    def max_speed(self) -> float:
        if self.n_particles == 0:
            return 0.0
        return float(np.max(self.speeds()))

    def normalized_speed(self, min_speed: float, max_speed: float,
                         indices: Optional[np.ndarray] = None) -> np.ndarray:
        """Speed mapped to [0, 1] between min_speed and max_speed.

        Renderers use this to blend slow/fast colours. Speeds are clamped to
        the range first; an empty range maps everything to 0.
        """
        speeds = self.speeds() if indices is None else self.speeds()[indices]
        span = max_speed - min_speed
        if span <= 0.0:
            return np.zeros_like(speeds)
        return (np.clip(speeds, min_speed, max_speed) - min_speed) / span
