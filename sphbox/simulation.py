"""
Box-confined SPH fluid simulation.

FluidSimulation owns the particle set and advances it one frame at a time:

1. density at every particle            (pure map, barrier)
2. pressure force + gravity -> velocity (pure map over the density snapshot)
3. integrate positions, resolve box collisions

It is driven explicitly by an external loop (game loop, test harness or the
headless runner): initialize() / step(dt) / get_particle_states() / reset().
"""

import logging
import numpy as np
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from . import api
from .core.backend import resolve_backend
from .core.config import DomainConfig, ParticleGridConfig
from .core.particles import Particle, ParticleArrays, ParticleState
from .core.integrator_vectorized import apply_accelerations, resolve_box_collisions
from .physics.forces_vectorized import find_coincident_pairs
from .scenarios.grid import create_jittered_grid
from .errors import ConfigurationError, InvalidStateError

logger = logging.getLogger(__name__)


@dataclass
class SimulationStats:
    """Scalar diagnostics of the current simulation state."""
    time: float
    frame: int
    n_particles: int
    kinetic_energy: float
    max_speed: float
    min_density: float
    max_density: float
    mean_density: float
    coincident_pairs: int


class FluidSimulation:
    """SPH particles in an axis-aligned box.

    Args:
        domain: Box and SPH parameters (defaults to DomainConfig())
        backend: 'cpu', 'numba', or None to follow the global backend
        rng: Random generator for grid jitter and coincident-particle
            directions. Pass a seeded generator for reproducible runs.
        seed: Seed for a new generator when rng is not given
    """

    def __init__(self, domain: Optional[DomainConfig] = None,
                 backend: Optional[str] = None,
                 rng: Optional[np.random.Generator] = None,
                 seed: Optional[int] = None):
        self.domain = domain if domain is not None else DomainConfig()
        self.domain.validate()

        try:
            self.backend = resolve_backend(backend)
        except ValueError as e:
            raise ConfigurationError(f"Unknown backend: {backend!r}") from e

        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.grid: Optional[ParticleGridConfig] = None
        self.particles: Optional[ParticleArrays] = None
        self.time = 0.0
        self.frame = 0
        self.coincident_pairs = 0
        self._stepping = False

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def initialize(self, grid: Optional[ParticleGridConfig] = None) -> List[ParticleState]:
        """Spawn a jittered particle grid at the box centre.

        Args:
            grid: Grid settings; defaults to ParticleGridConfig() with the
                domain's particle mass

        Returns:
            Snapshot of the spawned particles
        """
        if grid is None:
            grid = ParticleGridConfig(particle_mass=self.domain.particle_mass)
        grid.validate()

        particles = create_jittered_grid(
            center=self.domain.box_center,
            count_per_axis=grid.particle_count_per_axis,
            spacing=grid.grid_spacing,
            jitter_factor=grid.jitter_factor,
            radius=grid.particle_radius,
            mass=grid.particle_mass,
            rng=self.rng,
        )
        self._install(particles)
        self.grid = grid
        logger.info("Spawned %d particles", particles.n_particles)
        return self.get_particle_states()

    def load_particles(self, particles: Union[Sequence[Particle], ParticleArrays]) -> List[ParticleState]:
        """Use externally supplied particle placements.

        Args:
            particles: Particle records or ready-made ParticleArrays (copied)

        Returns:
            Snapshot of the loaded particles
        """
        if isinstance(particles, ParticleArrays):
            arrays = particles.copy()
            arrays.density = np.zeros(arrays.n_particles)
        else:
            arrays = ParticleArrays.from_particles(particles)
        self._install(arrays)
        self.grid = None
        logger.info("Loaded %d particles", arrays.n_particles)
        return self.get_particle_states()

    def reset(self, grid: Optional[ParticleGridConfig] = None) -> List[ParticleState]:
        """Destroy the current particle set and spawn a new one.

        The new set is fully built before it replaces the old one, so a
        failed reset leaves the previous state untouched.
        """
        if grid is None:
            grid = self.grid
        logger.info("Resetting simulation")
        return self.initialize(grid)

    def set_domain(self, domain: DomainConfig):
        """Swap in new box/SPH parameters and clamp particles into the new box."""
        domain.validate()
        self.domain = domain
        if self.particles is not None:
            self._clamp_into_box(self.particles)

    def _install(self, particles: ParticleArrays):
        particles.density = np.zeros(particles.n_particles)
        particles.validate()
        self._clamp_into_box(particles)

        self.particles = particles
        self.time = 0.0
        self.frame = 0
        self.coincident_pairs = 0

    def _clamp_into_box(self, particles: ParticleArrays):
        # Zero-length step: only pushes overlapping particles back inside
        resolve_box_collisions(particles, 0.0, self.bounds,
                               self.domain.restitution, self.domain.floor_friction)

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------

    def step(self, dt: float):
        """Advance the simulation by one frame of length dt.

        Raises:
            ConfigurationError: if dt is negative
            InvalidStateError: if no particles are loaded, the particle
                columns are inconsistent, or step is re-entered
        """
        if dt < 0.0:
            raise ConfigurationError(f"dt must be >= 0, got {dt}")
        if self._stepping:
            raise InvalidStateError("step() re-entered while a step is in progress")

        particles = self._require_particles()
        particles.validate()
        domain = self.domain

        self._stepping = True
        try:
            # Phase 1: density for every particle, committed after the barrier
            densities = api.compute_density(particles, domain.smoothing_radius,
                                            backend=self.backend)
            particles.density[:] = densities

            # Phase 2: pressure + gravity, all reads from the frame snapshot
            self.coincident_pairs = len(find_coincident_pairs(particles.positions))
            forces = api.compute_pressure_forces(
                particles, densities, domain.smoothing_radius,
                domain.target_density, domain.pressure_factor,
                rng=self.rng, backend=self.backend)
            particles.velocities[:] = apply_accelerations(
                particles.velocities, forces, densities, domain.gravity, dt)

            # Phase 3: integrate and collide
            resolve_box_collisions(particles, dt, self.bounds,
                                   domain.restitution, domain.floor_friction)
        finally:
            self._stepping = False

        self.time += dt
        self.frame += 1
        logger.debug("frame %d t=%.4f max|v|=%.3f", self.frame, self.time, particles.max_speed())

    def run(self, n_steps: int, dt: float):
        """Advance n_steps frames of length dt."""
        for _ in range(n_steps):
            self.step(dt)

    def _require_particles(self) -> ParticleArrays:
        if self.particles is None:
            raise InvalidStateError("No particles loaded; call initialize() or load_particles() first")
        return self.particles

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        """(min_corner, max_corner) of the collision box."""
        return self.domain.min_bounds, self.domain.max_bounds

    @property
    def n_particles(self) -> int:
        return 0 if self.particles is None else self.particles.n_particles

    @property
    def densities(self) -> np.ndarray:
        """Densities cached by the last step (copy)."""
        return self._require_particles().density.copy()

    def get_particle_states(self) -> List[ParticleState]:
        """Read-only snapshot of position, velocity and radius per particle."""
        if self.particles is None:
            return []
        return self.particles.states()

    def diagnostics(self) -> SimulationStats:
        """Energy, speed and density summary; coincident_pairs counts the last step."""
        particles = self._require_particles()
        density = particles.density
        has_particles = particles.n_particles > 0
        return SimulationStats(
            time=self.time,
            frame=self.frame,
            n_particles=particles.n_particles,
            kinetic_energy=particles.kinetic_energy(),
            max_speed=particles.max_speed(),
            min_density=float(density.min()) if has_particles else 0.0,
            max_density=float(density.max()) if has_particles else 0.0,
            mean_density=float(density.mean()) if has_particles else 0.0,
            coincident_pairs=self.coincident_pairs,
        )
