import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from guidemap import Guidemap


@pytest.fixture
def rng():
    return np.random.default_rng(7)


@pytest.fixture
def empty_map():
    return Guidemap(51, 51)


@pytest.fixture
def full_map():
    gm = Guidemap(51, 51)
    gm.grid[:] = True
    return gm
