import numpy as np
import pytest

from tracking_layer.particle import ParticleEnsemble
from tracking_layer.random_source import RandomSource


@pytest.fixture
def rng():
    return RandomSource(1234)


def make_source(weights):
    """Ensemble whose particle i sits at x=i so copies can be traced back."""
    source = ParticleEnsemble(len(weights))
    source.posn_x[:] = np.arange(len(weights), dtype=np.float64)
    source.posn_y[:] = -np.arange(len(weights), dtype=np.float64)
    source.vel_r[:] = np.linspace(0.0, 2.0, len(weights))
    source.vel_t[:] = np.linspace(0.0, 6.0, len(weights))
    source.weight[:] = weights
    return source
