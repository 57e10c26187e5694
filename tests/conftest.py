import numpy as np
import pytest

from lagoon_opt.evolution.individual import Individual


def individual(energy, cost, n_half_tides=2, head=2.0):
    ind = Individual.from_genes([head] * (2 * n_half_tides))
    ind.set_objectives(energy, cost)
    return ind


@pytest.fixture
def make_individual():
    return individual


@pytest.fixture
def rng():
    return np.random.default_rng(12345)
