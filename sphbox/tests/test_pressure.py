"""
Tests for the pressure solver: equation of state, shared pressure and
pairwise pressure forces, including the coincident-particle fallback.
"""

import warnings

import numpy as np
import pytest

from sphbox.core.particles import ParticleArrays
from sphbox.core.kernels import smoothing_kernel_derivative
from sphbox.errors import DegenerateGeometryWarning
from sphbox.physics.density_vectorized import compute_density_vectorized
from sphbox.physics.forces_vectorized import (
    density_to_pressure,
    shared_pressure,
    random_unit_vectors,
    find_coincident_pairs,
    compute_pressure_force,
    compute_pressure_forces_vectorized
)

H = 25.0
TARGET = 3.0
K = 500.0


def make_particles(positions, mass=1.0):
    positions = np.asarray(positions, dtype=np.float64)
    particles = ParticleArrays.allocate(len(positions), mass=mass)
    particles.positions[:] = positions
    return particles


class TestEquationOfState:

    def test_zero_at_target_density(self):
        assert density_to_pressure(TARGET, TARGET, K) == 0.0

    def test_scarcity_sign(self):
        assert density_to_pressure(1.0, TARGET, K) == pytest.approx(K * 2.0)
        assert density_to_pressure(5.0, TARGET, K) == pytest.approx(-K * 2.0)

    @pytest.mark.parametrize("a,b", [(0.0, 3.0), (1.5, 7.25), (3.0, 3.0), (10.0, 0.1)])
    def test_shared_pressure_symmetric(self, a, b):
        assert shared_pressure(a, b, TARGET, K) == shared_pressure(b, a, TARGET, K)

    def test_shared_pressure_is_mean(self):
        expected = (density_to_pressure(1.0, TARGET, K) + density_to_pressure(4.0, TARGET, K)) / 2
        assert shared_pressure(1.0, 4.0, TARGET, K) == pytest.approx(expected)

    def test_array_input(self):
        np.testing.assert_allclose(density_to_pressure(np.array([3.0, 4.0]), TARGET, K), [0.0, -K])


class TestPairForces:

    def test_single_pair_closed_form(self):
        positions = np.array([[0.0, 0.0, 0.0], [10.0, 0.0, 0.0]])
        masses = np.ones(2)
        densities = np.array([1.0, 2.0])

        force = compute_pressure_force(0, positions, masses, densities, H, TARGET, K)

        pressure = shared_pressure(2.0, 1.0, TARGET, K)
        expected = pressure * smoothing_kernel_derivative(10.0, H) * 1.0 / 2.0
        np.testing.assert_allclose(force, [expected, 0.0, 0.0])

    def test_under_dense_pair_pushed_apart(self):
        particles = make_particles([[0.0, 0.0, 0.0], [10.0, 0.0, 0.0]])
        densities = np.array([1.0, 1.0])
        forces = compute_pressure_forces_vectorized(particles, densities, H, TARGET, K)
        assert forces[0, 0] < 0.0
        assert forces[1, 0] > 0.0

    def test_equal_and_opposite(self, rng):
        # m / ρ_j enters the sum, so the pair is only antisymmetric at equal densities
        positions = rng.uniform(-5.0, 5.0, size=(2, 3))
        particles = make_particles(positions)
        densities = np.array([0.7, 0.7])
        forces = compute_pressure_forces_vectorized(particles, densities, H, TARGET, K)
        np.testing.assert_allclose(forces[0], -forces[1], atol=1e-12)

    def test_outside_radius_no_force(self):
        particles = make_particles([[0.0, 0.0, 0.0], [30.0, 0.0, 0.0]])
        forces = compute_pressure_forces_vectorized(particles, np.array([1.0, 1.0]), H, TARGET, K)
        np.testing.assert_array_equal(forces, np.zeros((2, 3)))

    def test_equilibrium_zero_force(self, rng):
        particles = make_particles(rng.uniform(-20.0, 20.0, size=(30, 3)))
        densities = np.full(30, TARGET)
        forces = compute_pressure_forces_vectorized(particles, densities, H, TARGET, K)
        np.testing.assert_allclose(forces, 0.0, atol=1e-12)

    def test_matches_single_particle_version(self, rng):
        particles = make_particles(rng.uniform(-15.0, 15.0, size=(40, 3)))
        densities = compute_density_vectorized(particles, H)
        forces = compute_pressure_forces_vectorized(particles, densities, H, TARGET, K, batch_size=16)
        for i in range(particles.n_particles):
            np.testing.assert_allclose(
                forces[i],
                compute_pressure_force(i, particles.positions, particles.mass, densities, H, TARGET, K),
                rtol=1e-9, atol=1e-12)

    def test_zero_density_neighbour_skipped(self):
        particles = make_particles([[0.0, 0.0, 0.0], [5.0, 0.0, 0.0]])
        densities = np.array([1.0, 0.0])
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            forces = compute_pressure_forces_vectorized(particles, densities, H, TARGET, K)
        assert np.all(np.isfinite(forces))
        np.testing.assert_array_equal(forces[0], np.zeros(3))


class TestCoincidentParticles:

    def test_find_coincident_pairs(self):
        positions = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 0.0]])
        pairs = {tuple(p) for p in find_coincident_pairs(positions)}
        assert pairs == {(0, 2), (2, 0)}

    def test_no_coincident_pairs(self):
        assert find_coincident_pairs(np.eye(3)).shape == (0, 2)
        assert find_coincident_pairs(np.zeros((1, 3))).shape == (0, 2)

    def test_random_unit_vectors(self, rng):
        v = random_unit_vectors(rng, 500)
        np.testing.assert_allclose(np.linalg.norm(v, axis=1), 1.0)
        # Roughly isotropic
        assert np.all(np.abs(v.mean(axis=0)) < 0.15)

    def test_coincident_force_finite_and_nonzero(self, rng):
        particles = make_particles([[0.0, 0.0, 0.0], [0.0, 0.0, 0.0]])
        densities = compute_density_vectorized(particles, H)

        with pytest.warns(DegenerateGeometryWarning):
            forces = compute_pressure_forces_vectorized(particles, densities, H, TARGET, K, rng=rng)

        assert np.all(np.isfinite(forces))
        assert np.linalg.norm(forces[0]) > 0.0
        # |F| = |P_shared · W'(0) · m / ρ| regardless of the drawn direction
        expected = abs(shared_pressure(densities[1], densities[0], TARGET, K)
                       * smoothing_kernel_derivative(0.0, H) / densities[1])
        assert np.linalg.norm(forces[0]) == pytest.approx(expected)

    def test_single_particle_version_warns(self, rng):
        positions = np.zeros((2, 3))
        with pytest.warns(DegenerateGeometryWarning):
            force = compute_pressure_force(0, positions, np.ones(2), np.ones(2), H, TARGET, K, rng=rng)
        assert np.all(np.isfinite(force))

    def test_seeded_generator_reproducible(self):
        particles = make_particles(np.zeros((3, 3)))
        densities = compute_density_vectorized(particles, H)

        with pytest.warns(DegenerateGeometryWarning):
            a = compute_pressure_forces_vectorized(particles, densities, H, TARGET, K,
                                                   rng=np.random.default_rng(7))
        with pytest.warns(DegenerateGeometryWarning):
            b = compute_pressure_forces_vectorized(particles, densities, H, TARGET, K,
                                                   rng=np.random.default_rng(7))
        np.testing.assert_array_equal(a, b)
