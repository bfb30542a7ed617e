"""
Tests for time integration and box collision handling.
"""

import numpy as np
import pytest

from sphbox.core.config import DomainConfig
from sphbox.core.particles import ParticleArrays
from sphbox.core.integrator_vectorized import (
    apply_accelerations,
    pressure_accelerations,
    resolve_box_collisions
)

DT = 1.0 / 60.0


@pytest.fixture
def bounds():
    domain = DomainConfig()
    return domain.min_bounds, domain.max_bounds


def single(position, velocity, radius=10.0):
    particles = ParticleArrays.allocate(1, radius=radius)
    particles.positions[0] = position
    particles.velocities[0] = velocity
    return particles


class TestVelocityUpdate:

    def test_gravity_only(self):
        vel = np.zeros((2, 3))
        new_vel = apply_accelerations(vel, np.zeros((2, 3)), np.ones(2), 200.0, 0.5)
        np.testing.assert_allclose(new_vel, [[0.0, 0.0, -100.0], [0.0, 0.0, -100.0]])
        # Input untouched
        np.testing.assert_array_equal(vel, np.zeros((2, 3)))

    def test_pressure_divided_by_density(self):
        forces = np.array([[4.0, 0.0, 0.0]])
        accel = pressure_accelerations(forces, np.array([2.0]))
        np.testing.assert_allclose(accel, [[2.0, 0.0, 0.0]])

    def test_zero_density_gets_no_pressure_acceleration(self):
        forces = np.array([[4.0, 1.0, 0.0], [1.0, 1.0, 1.0]])
        accel = pressure_accelerations(forces, np.array([0.0, 1.0]))
        np.testing.assert_array_equal(accel[0], np.zeros(3))
        np.testing.assert_array_equal(accel[1], forces[1])


class TestBoxCollisions:

    def test_free_flight(self, bounds):
        p = single([0.0, 0.0, 0.0], [60.0, -30.0, 12.0])
        lower, upper = resolve_box_collisions(p, DT, bounds)
        np.testing.assert_allclose(p.positions[0], [1.0, -0.5, 0.2])
        np.testing.assert_allclose(p.velocities[0], [60.0, -30.0, 12.0])
        assert not lower.any() and not upper.any()

    def test_floor_bounce_with_friction(self, bounds):
        p = single([0.0, 0.0, -185.0], [10.0, -20.0, -600.0])
        lower, _ = resolve_box_collisions(p, DT, bounds, restitution=0.8, floor_friction=0.9)

        assert lower[0, 2]
        assert p.positions[0, 2] == pytest.approx(-190.0)
        assert p.velocities[0, 2] == pytest.approx(480.0)
        assert p.velocities[0, 0] == pytest.approx(10.0 * 0.9)
        assert p.velocities[0, 1] == pytest.approx(-20.0 * 0.9)

    def test_ceiling_bounce_without_friction(self, bounds):
        p = single([0.0, 0.0, 185.0], [10.0, -20.0, 600.0])
        _, upper = resolve_box_collisions(p, DT, bounds, restitution=0.8, floor_friction=0.9)

        assert upper[0, 2]
        assert p.positions[0, 2] == pytest.approx(190.0)
        assert p.velocities[0, 2] == pytest.approx(-480.0)
        assert p.velocities[0, 0] == pytest.approx(10.0)
        assert p.velocities[0, 1] == pytest.approx(-20.0)

    @pytest.mark.parametrize("axis,extent", [(0, 100.0), (1, 200.0)])
    def test_side_walls(self, bounds, axis, extent):
        velocity = np.zeros(3)
        velocity[axis] = 1200.0
        position = np.zeros(3)
        position[axis] = extent - 15.0
        p = single(position, velocity)

        resolve_box_collisions(p, DT, bounds, restitution=0.5)

        assert p.positions[0, axis] == pytest.approx(extent - 10.0)
        assert p.velocities[0, axis] == pytest.approx(-600.0)

    def test_perfectly_elastic(self, bounds):
        p = single([0.0, 0.0, -185.0], [0.0, 0.0, -600.0])
        resolve_box_collisions(p, DT, bounds, restitution=1.0)
        assert p.velocities[0, 2] == pytest.approx(600.0)

    def test_zero_step_clamps_only(self, bounds):
        p = single([0.0, 0.0, -250.0], [0.0, 0.0, 0.0])
        resolve_box_collisions(p, 0.0, bounds)
        np.testing.assert_allclose(p.positions[0], [0.0, 0.0, -190.0])
        np.testing.assert_array_equal(p.velocities[0], np.zeros(3))

    def test_containment(self, bounds, rng):
        n = 500
        particles = ParticleArrays.allocate(n, radius=10.0)
        particles.positions[:] = rng.uniform([-90, -190, -190], [90, 190, 190], size=(n, 3))
        particles.velocities[:] = rng.uniform(-3000.0, 3000.0, size=(n, 3))

        for _ in range(20):
            resolve_box_collisions(particles, DT, bounds)

        min_corner, max_corner = bounds
        r = particles.radius[:, np.newaxis]
        assert np.all(particles.positions - r >= min_corner - 1e-9)
        assert np.all(particles.positions + r <= max_corner + 1e-9)
