"""sphbox: Smoothed Particle Hydrodynamics fluid in an axis-aligned box."""

from . import core
from . import physics
from . import scenarios

# Import API to trigger backend registration
from . import api

from .api import (
    # Core functions
    compute_density,
    compute_pressure_forces,

    # Backend management
    set_backend,
    get_backend,
    list_backends,
    auto_select_backend,
    print_backend_info
)
from .core import (
    DomainConfig,
    ParticleGridConfig,
    SimulationConfig,
    Particle,
    ParticleArrays,
    ParticleState
)
from .errors import (
    SPHError,
    ConfigurationError,
    InvalidStateError,
    DegenerateGeometryWarning
)
from .simulation import FluidSimulation, SimulationStats

__version__ = "0.1.0"

__all__ = [
    # Modules
    'core',
    'physics',
    'scenarios',

    # Simulation
    'FluidSimulation',
    'SimulationStats',

    # API functions
    'compute_density',
    'compute_pressure_forces',

    # Backend management
    'set_backend',
    'get_backend',
    'list_backends',
    'auto_select_backend',
    'print_backend_info',

    # Core classes
    'DomainConfig',
    'ParticleGridConfig',
    'SimulationConfig',
    'Particle',
    'ParticleArrays',
    'ParticleState',

    # Errors
    'SPHError',
    'ConfigurationError',
    'InvalidStateError',
    'DegenerateGeometryWarning'
]
