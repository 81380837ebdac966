import matplotlib

matplotlib.use("Agg")

import pytest

from tdist.matrix_generators import MatrixGenerator


@pytest.fixture
def clustered():
    return MatrixGenerator.clustered_columns(20, 150, n_clusters=10, spread=0.05, seed=7)
