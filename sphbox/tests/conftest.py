"""Pytest configuration for sphbox tests."""
import os

import numpy as np
import pytest

import sphbox
from sphbox.core.config import DomainConfig


def pytest_configure(config):
    """Render snapshots without a display."""
    os.environ['MPLBACKEND'] = 'Agg'


@pytest.fixture
def rng():
    """Seeded generator so jitter and coincident-pair directions are reproducible."""
    return np.random.default_rng(12345)


@pytest.fixture
def domain():
    """Default fluid box: half extents (100, 200, 200), gravity 200, restitution 0.8."""
    return DomainConfig()


@pytest.fixture(params=['cpu', 'numba'])
def backend(request):
    """Run a test once per backend, restoring the global backend afterwards."""
    original_backend = sphbox.get_backend()
    sphbox.set_backend(request.param)
    yield request.param
    sphbox.set_backend(original_backend)
