import numpy as np
import pytest
import scipy.sparse as sp

from tdist.projection import Projection, project


def test_coordinates_preserve_distances_at_full_rank():
    A = np.random.default_rng(0).standard_normal((4, 30))
    proj = project(A, 10)

    assert isinstance(proj, Projection)
    assert proj.rank == 4
    assert proj.coords.shape == (4, 30)
    d_full = np.linalg.norm(A[:, 2] - A[:, 9])
    d_proj = np.linalg.norm(proj.coords[:, 2] - proj.coords[:, 9])
    assert d_proj == pytest.approx(d_full)


def test_short_matrix_falls_back_to_dense_svd(caplog):
    A = np.random.default_rng(1).standard_normal((3, 50))
    with caplog.at_level("INFO", logger="tdist.projection"):
        proj = project(A, 10, tol=1e-8)

    assert proj.rank == 3
    assert proj.svd_time >= 0
    assert "dense SVD" in caplog.text


def test_svds_rank_below_row_count_is_kept():
    A = np.random.default_rng(2).standard_normal((20, 40))
    proj = project(A, 5)
    assert proj.rank == 5
    assert proj.coords.shape == (5, 40)


def test_sparse_short_matrix():
    A = sp.random(2, 25, density=0.5, format="csc", random_state=3)
    proj = project(A, 10)
    assert proj.rank == 2
    assert proj.coords.shape == (2, 25)
