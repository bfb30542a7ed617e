"""
Configuration dataclasses for the box-confined SPH simulation.

Two groups of settings:
- DomainConfig: the collision box and the SPH tuning constants
- ParticleGridConfig: how the initial particle block is spawned

Defaults reproduce the reference fluid box (Z up, centimetre-ish units).
"""

import json
from dataclasses import dataclass, field, asdict, fields
from typing import Any, Dict, Tuple

import numpy as np

from ..errors import ConfigurationError

Vec3 = Tuple[float, float, float]

# Horizontal velocity retained on floor contact
DEFAULT_FLOOR_FRICTION = 0.9


def _as_vec3(value, name: str) -> Vec3:
    arr = np.asarray(value, dtype=np.float64).reshape(-1)
    if arr.shape != (3,):
        raise ConfigurationError(f"{name} must have exactly 3 components, got {value!r}")
    return (float(arr[0]), float(arr[1]), float(arr[2]))


@dataclass
class DomainConfig:
    """Collision box and SPH equation-of-state parameters.

    Attributes:
        box_center: World-space centre of the box
        box_half_extents: Half size of the box along X, Y, Z (all > 0)
        gravity: Downward (-Z) acceleration magnitude
        restitution: Fraction of normal velocity kept on wall contact, in [0, 1]
        target_density: Rest density the pressure solver drives towards
        pressure_factor: Stiffness of the linear equation of state
        smoothing_radius: Kernel cut-off radius (> 0)
        particle_mass: Mass given to spawned particles
        floor_friction: Horizontal velocity factor applied on floor contact
    """
    box_center: Vec3 = (0.0, 0.0, 0.0)
    box_half_extents: Vec3 = (100.0, 200.0, 200.0)
    gravity: float = 200.0
    restitution: float = 0.8
    target_density: float = 3.0
    pressure_factor: float = 500.0
    smoothing_radius: float = 25.0
    particle_mass: float = 1.0
    floor_friction: float = DEFAULT_FLOOR_FRICTION

    def __post_init__(self):
        self.box_center = _as_vec3(self.box_center, "box_center")
        self.box_half_extents = _as_vec3(self.box_half_extents, "box_half_extents")
        self.validate()

    def validate(self):
        """Raise ConfigurationError if any parameter is out of range."""
        if not self.smoothing_radius > 0.0:
            raise ConfigurationError(
                f"smoothing_radius must be > 0, got {self.smoothing_radius}")
        if any(not h > 0.0 for h in self.box_half_extents):
            raise ConfigurationError(
                f"box_half_extents must all be > 0, got {self.box_half_extents}")
        if not 0.0 <= self.restitution <= 1.0:
            raise ConfigurationError(
                f"restitution must be within [0, 1], got {self.restitution}")
        if not 0.0 <= self.floor_friction <= 1.0:
            raise ConfigurationError(
                f"floor_friction must be within [0, 1], got {self.floor_friction}")
        if self.particle_mass < 0.0:
            raise ConfigurationError(
                f"particle_mass must be >= 0, got {self.particle_mass}")

    @property
    def min_bounds(self) -> np.ndarray:
        """Lower box corner."""
        return np.asarray(self.box_center) - np.asarray(self.box_half_extents)

    @property
    def max_bounds(self) -> np.ndarray:
        """Upper box corner."""
        return np.asarray(self.box_center) + np.asarray(self.box_half_extents)

    @property
    def gravity_vector(self) -> np.ndarray:
        """Gravity as an acceleration vector (Z is up)."""
        return np.array([0.0, 0.0, -self.gravity])

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DomainConfig":
        """Build from a mapping, ignoring keys that are not domain settings."""
        return cls(**_known_keys(cls, data))


@dataclass
class ParticleGridConfig:
    """Initial particle block spawned at the box centre.

    Attributes:
        particle_count_per_axis: Lattice size N; N**3 particles are created.
            Values below 1 are clamped to 1 by the initializer.
        grid_spacing: Distance between neighbouring lattice sites
        jitter_factor: Max per-axis random offset applied to each site
        particle_radius: Collision radius of every particle
        particle_mass: Mass of every particle
    """
    particle_count_per_axis: int = 8
    grid_spacing: float = 30.0
    jitter_factor: float = 1.0
    particle_radius: float = 10.0
    particle_mass: float = 1.0

    def __post_init__(self):
        self.particle_count_per_axis = int(self.particle_count_per_axis)
        self.validate()

    def validate(self):
        """Raise ConfigurationError for negative geometric quantities."""
        if self.grid_spacing < 0.0:
            raise ConfigurationError(f"grid_spacing must be >= 0, got {self.grid_spacing}")
        if self.jitter_factor < 0.0:
            raise ConfigurationError(f"jitter_factor must be >= 0, got {self.jitter_factor}")
        if self.particle_radius < 0.0:
            raise ConfigurationError(
                f"particle_radius must be >= 0, got {self.particle_radius}")
        if self.particle_mass < 0.0:
            raise ConfigurationError(f"particle_mass must be >= 0, got {self.particle_mass}")

    @property
    def particle_count(self) -> int:
        n = max(1, self.particle_count_per_axis)
        return n ** 3

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParticleGridConfig":
        return cls(**_known_keys(cls, data))


@dataclass
class SimulationConfig:
    """Domain and grid settings bundled together, e.g. for a JSON file.

    The JSON layout is::

        {"domain": {...DomainConfig fields...},
         "grid": {...ParticleGridConfig fields...}}
    """
    domain: DomainConfig = field(default_factory=DomainConfig)
    grid: ParticleGridConfig = field(default_factory=ParticleGridConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimulationConfig":
        return cls(
            domain=DomainConfig.from_dict(data.get("domain", {})),
            grid=ParticleGridConfig.from_dict(data.get("grid", {})),
        )

    @classmethod
    def from_json(cls, path: str) -> "SimulationConfig":
        """Load settings from a JSON file."""
        with open(path, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return {"domain": self.domain.to_dict(), "grid": self.grid.to_dict()}


def _known_keys(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}
