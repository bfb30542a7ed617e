"""Core SPH components: configuration, particles, kernel, backends and integration."""

from .config import DomainConfig, ParticleGridConfig, SimulationConfig
from .particles import Particle, ParticleArrays, ParticleState
from .kernels import smoothing_kernel, smoothing_kernel_derivative, kernel_self_value
from .integrator_vectorized import (
    DENSITY_EPSILON,
    apply_accelerations,
    pressure_accelerations,
    resolve_box_collisions
)

__all__ = [
    'DomainConfig',
    'ParticleGridConfig',
    'SimulationConfig',
    'Particle',
    'ParticleArrays',
    'ParticleState',
    'smoothing_kernel',
    'smoothing_kernel_derivative',
    'kernel_self_value',
    'DENSITY_EPSILON',
    'apply_accelerations',
    'pressure_accelerations',
    'resolve_box_collisions'
]
