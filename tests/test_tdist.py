import importlib

import numpy as np
import pandas as pd
import pytest
import scipy.sparse as sp
from scipy.sparse.linalg import ArpackNoConvergence

from tdist import (
    DimensionError,
    InvalidArgument,
    MatrixGenerator,
    NumericFailure,
    TdistResult,
    tdist,
)
from tdist.arguments import default_threshold
from tdist.benchmark_common import brute_force_pairs


THRESHOLDS = {"euclidean": 0.3, "manhattan": 1.1, "chebyshev": 0.15}


def test_identical_columns_scenario():
    A = np.array(
        [
            [1.0, 0.0, 0.0, 2.0, -1.0],
            [0.0, 1.0, 1.0, 0.5, 3.0],
            [2.0, 3.0, 3.0, -1.0, 0.0],
        ]
    )
    result = tdist(A, t=0.01)

    assert isinstance(result, TdistResult)
    assert result.indices.shape == (1, 3)
    assert result.indices[0].tolist() == [1.0, 2.0, 0.0]
    assert result.pairs() == {(1, 2)}
    assert result.p == 1


def test_all_columns_distant():
    A = 10.0 * MatrixGenerator.random_matrix(6, 8, seed=0)
    result = tdist(A, t=0.5, filter="local")

    assert result.indices.shape == (0, 3)
    assert result.n >= 0
    assert result.pairs() == set()
    assert result.to_frame().empty


def test_rank_reduced_for_few_columns():
    A = np.array(
        [
            [1.0, 2.0, 1.0],
            [0.0, 1.0, 0.0],
            [3.0, 0.0, 3.1],
            [1.0, 1.0, 1.0],
        ]
    )
    result = tdist(A, t=0.2, p=10)
    assert result.p == 1
    assert result.pairs() == {(0, 2)}
    assert result.indices[0, 2] == pytest.approx(0.1)


@pytest.mark.parametrize("method", ["euclidean", "manhattan", "chebyshev"])
@pytest.mark.parametrize("seed", range(5))
def test_no_false_negatives_or_positives(method, seed):
    A = MatrixGenerator.clustered_columns(20, 150, n_clusters=10, spread=0.05, seed=seed)
    t = THRESHOLDS[method]

    result = tdist(A, t=t, p=4, method=method, filter="local")

    expected = brute_force_pairs(A, t, method)
    assert result.pairs() == expected
    assert np.all(result.indices[:, 2] <= t)
    assert result.n >= len(expected)


@pytest.mark.parametrize("p", [1, 2, 5, 10])
def test_recall_does_not_depend_on_rank(clustered, p):
    expected = brute_force_pairs(clustered, 0.3)
    assert tdist(clustered, t=0.3, p=p).pairs() == expected


def test_distances_match_direct_computation(clustered):
    result = tdist(clustered, t=0.3, p=3)
    for i, j, d in result.indices:
        direct = np.linalg.norm(clustered[:, int(i)] - clustered[:, int(j)])
        assert d == pytest.approx(direct)


def test_rows_sorted_with_smaller_index_first(clustered):
    idx = tdist(clustered, t=0.3).indices
    assert np.all(idx[:, 0] < idx[:, 1])
    keys = list(map(tuple, idx[:, :2].tolist()))
    assert keys == sorted(keys)


@pytest.mark.parametrize("method", ["euclidean", "manhattan"])
def test_filter_modes_agree(clustered, method):
    t = THRESHOLDS[method]
    local = tdist(clustered, t=t, p=3, method=method, filter="local")
    distributed = tdist(clustered, t=t, p=3, method=method, filter="distributed", n_jobs=2)

    assert local.filter == "local"
    assert distributed.filter == "distributed"
    assert local.pairs() == distributed.pairs()
    assert local.n == distributed.n
    assert np.allclose(local.indices[:, 2], distributed.indices[:, 2])


def test_candidate_count_is_deterministic(clustered):
    first = tdist(clustered, t=0.3, p=5)
    second = tdist(clustered, t=0.3, p=5)
    assert first.n == second.n
    assert first.longest_run == second.longest_run


def test_larger_rank_never_adds_candidates():
    A = MatrixGenerator.clustered_columns(40, 400, n_clusters=30, spread=0.02, seed=11)
    low = tdist(A, t=0.2, p=1)
    high = tdist(A, t=0.2, p=10)
    assert high.n <= low.n
    assert high.pairs() == low.pairs()


@pytest.mark.parametrize("factorizer", ["svds", "rsvd", "numpy"])
def test_factorizer_choice_does_not_change_pairs(clustered, factorizer):
    expected = brute_force_pairs(clustered, 0.3)
    assert tdist(clustered, t=0.3, p=4, factorizer=factorizer).pairs() == expected


def test_sparse_input():
    dense = MatrixGenerator.sparse_random(30, 80, density=0.1, seed=3).toarray()
    dense = MatrixGenerator.with_duplicates(dense, [(0, 5), (10, 20)], noise=0.01, seed=3)
    A = sp.csr_matrix(dense)

    for method, t in (("euclidean", 0.5), ("manhattan", 1.0)):
        result = tdist(A, t=t, p=5, method=method)
        assert result.pairs() == brute_force_pairs(dense, t, method)
        assert {(0, 5), (10, 20)} <= result.pairs()


def test_default_threshold_is_smallest_column_norm(clustered):
    result = tdist(clustered)
    assert result.t == pytest.approx(default_threshold(clustered))
    assert result.pairs() == brute_force_pairs(clustered, result.t)


def test_zero_threshold_finds_exact_duplicates():
    A = MatrixGenerator.random_matrix(8, 30, seed=1)
    A = MatrixGenerator.with_duplicates(A, [(3, 17), (4, 29)])
    result = tdist(A, t=0.0, p=3)
    assert result.pairs() == {(3, 17), (4, 29)}
    assert np.all(result.indices[:, 2] == 0.0)


def test_svd_kwargs_are_forwarded(clustered):
    result = tdist(clustered, t=0.3, p=3, factorizer="rsvd", n_subspace_iters=0, seed=5)
    assert result.pairs() == brute_force_pairs(clustered, 0.3)
    with pytest.raises(TypeError):
        tdist(clustered, t=0.3, factorizer="numpy", bogus=1)


def test_result_metadata(clustered):
    result = tdist(clustered, t=0.3, p=3, method="man", filter="loc")
    assert result.method == "manhattan"
    assert result.filter == "local"
    assert result.p == 3
    assert result.longest_run >= 1
    assert 0.0 <= result.svd_time <= result.total_time
    assert len(result) == result.indices.shape[0]


def test_to_frame(clustered):
    result = tdist(clustered, t=0.3)
    frame = result.to_frame()
    assert isinstance(frame, pd.DataFrame)
    assert list(frame.columns) == ["i", "j", "distance"]
    assert len(frame) == len(result)
    assert frame["i"].dtype == np.int64


@pytest.mark.parametrize(
    "kwargs",
    [{"filter": "x"}, {"method": "cosine"}, {"factorizer": "lanczos"}, {"p": 0}, {"t": -1.0}],
)
def test_invalid_arguments(clustered, kwargs):
    with pytest.raises(InvalidArgument):
        tdist(clustered, **kwargs)


def test_invalid_filter_fails_before_any_work(monkeypatch):
    import tdist.core as core

    def _boom(*args, **kwargs):
        raise AssertionError("projection should not run")

    monkeypatch.setattr(core, "project", _boom)
    with pytest.raises(InvalidArgument):
        tdist(np.ones((3, 3)), filter="nope")


def test_non_matrix_input():
    with pytest.raises(InvalidArgument):
        tdist(np.ones(5))


def test_short_wide_matrix_uses_full_row_rank():
    A = np.random.default_rng(0).standard_normal((3, 50))
    A[:, 7] = A[:, 3]
    result = tdist(A, t=0.01, filter="local")

    assert result.p == 3
    assert result.pairs() == {(3, 7)}


@pytest.mark.parametrize("shape", [(1, 40), (2, 30), (4, 60)])
def test_few_rows_match_brute_force(shape):
    A = np.random.default_rng(1).standard_normal(shape)
    t = 0.3 * np.sqrt(shape[0])
    result = tdist(A, t=t)
    assert result.p == min(shape)
    assert result.pairs() == brute_force_pairs(A, t)
    assert tdist(sp.csr_matrix(A), t=t).pairs() == result.pairs()


def test_single_column_has_no_pairs():
    result = tdist(np.ones((5, 1)))
    assert result.p == 1
    assert result.indices.shape == (0, 3)


def test_dimension_error_for_matrix_without_rows():
    with pytest.raises(DimensionError):
        tdist(np.zeros((0, 5)), t=1.0)


def test_numeric_failure_propagates(monkeypatch, clustered):
    module = importlib.import_module("tdist.algos.svds_lowrank")

    def _fail(*args, **kwargs):
        raise ArpackNoConvergence("no convergence", np.array([]), np.array([]))

    monkeypatch.setattr(module, "svds", _fail)
    with pytest.raises(NumericFailure):
        tdist(clustered, t=0.3)
