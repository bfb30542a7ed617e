"""
Test suite for SPH backend implementations.

Tests CPU and Numba backends for correctness and consistency.
"""

import numpy as np
import pytest

import sphbox
from sphbox.core.backend import Backend, BackendManager, NUMBA_MIN_PARTICLES
from sphbox.core.particles import ParticleArrays
from sphbox.errors import DegenerateGeometryWarning
from sphbox.scenarios.grid import create_jittered_grid

H = 25.0
TARGET = 3.0
K = 500.0


@pytest.fixture
def particles():
    """Small jittered block, dense enough that every particle has neighbours."""
    return create_jittered_grid(count_per_axis=5, spacing=12.0, jitter_factor=2.0,
                                rng=np.random.default_rng(2024))


class TestBackends:
    """Test all backend implementations for consistency."""

    def test_density_computation(self, backend, particles):
        density = sphbox.compute_density(particles, H)

        assert density.shape == (particles.n_particles,)
        assert np.all(density > 0)
        assert np.all(np.isfinite(density))

    def test_pressure_forces(self, backend, particles):
        density = sphbox.compute_density(particles, H)
        forces = sphbox.compute_pressure_forces(particles, density, H, TARGET, K)

        assert forces.shape == (particles.n_particles, 3)
        assert np.all(np.isfinite(forces))

    def test_backends_agree(self, particles):
        rho_cpu = sphbox.compute_density(particles, H, backend='cpu')
        rho_numba = sphbox.compute_density(particles, H, backend='numba')
        np.testing.assert_allclose(rho_numba, rho_cpu, rtol=1e-10)

        f_cpu = sphbox.compute_pressure_forces(particles, rho_cpu, H, TARGET, K, backend='cpu')
        f_numba = sphbox.compute_pressure_forces(particles, rho_cpu, H, TARGET, K, backend='numba')
        np.testing.assert_allclose(f_numba, f_cpu, rtol=1e-8, atol=1e-10)

    def test_coincident_fallback_on_both_backends(self, backend):
        particles = ParticleArrays.allocate(2)
        density = sphbox.compute_density(particles, H)

        with pytest.warns(DegenerateGeometryWarning):
            forces = sphbox.compute_pressure_forces(particles, density, H, TARGET, K,
                                                    rng=np.random.default_rng(0))
        assert np.all(np.isfinite(forces))
        assert np.linalg.norm(forces[0]) > 0.0


class TestBackendManagement:

    def test_list_backends(self):
        backends = sphbox.list_backends()
        assert backends == {'cpu': True, 'numba': True}

    def test_set_and_get(self):
        original = sphbox.get_backend()
        try:
            assert sphbox.set_backend('numba')
            assert sphbox.get_backend() == 'numba'
            assert sphbox.set_backend('CPU')
            assert sphbox.get_backend() == 'cpu'
        finally:
            sphbox.set_backend(original)

    def test_invalid_backend_keeps_current(self):
        original = sphbox.get_backend()
        with pytest.warns(UserWarning):
            assert not sphbox.set_backend('gpu')
        assert sphbox.get_backend() == original

    def test_auto_select(self):
        manager = BackendManager()
        assert manager.auto_select_backend(NUMBA_MIN_PARTICLES - 1) == Backend.CPU
        assert manager.auto_select_backend(NUMBA_MIN_PARTICLES) == Backend.NUMBA

    def test_missing_implementation_falls_back_to_cpu(self):
        manager = BackendManager()
        manager.register_implementation("f", Backend.CPU, lambda x: x + 1)
        with pytest.warns(UserWarning):
            assert manager.dispatch("f", 1, backend=Backend.NUMBA) == 2

    def test_unknown_function(self):
        with pytest.raises(ValueError):
            BackendManager().get_implementation("nope")

