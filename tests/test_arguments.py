import numpy as np
import pytest
import scipy.sparse as sp

from tdist.arguments import check_threshold, default_threshold, match_arg, reduce_rank
from tdist.errors import InvalidArgument


def test_match_arg_exact_and_prefix():
    choices = ("distributed", "local")
    assert match_arg("local", choices) == "local"
    assert match_arg("loc", choices) == "local"
    assert match_arg("d", choices) == "distributed"
    assert match_arg("LOCAL", choices) == "local"


def test_match_arg_none_returns_first_choice():
    assert match_arg(None, ("euclidean", "manhattan")) == "euclidean"


def test_match_arg_exact_match_beats_longer_choice():
    assert match_arg("ab", ("abc", "ab")) == "ab"


def test_match_arg_rejects_unknown_and_ambiguous():
    with pytest.raises(InvalidArgument, match="should be one of"):
        match_arg("x", ("distributed", "local"), "filter")
    with pytest.raises(InvalidArgument, match="ambiguous"):
        match_arg("lo", ("local", "locus"))
    with pytest.raises(InvalidArgument):
        match_arg("", ("local",))


def test_invalid_argument_is_value_error():
    with pytest.raises(ValueError):
        match_arg("nope", ("local",))


@pytest.mark.parametrize(
    "p, n, expected",
    [(10, 3, 1), (10, 5, 1), (10, 8, 3), (10, 1, 1), (10, 10, 10), (10, 200, 10), (4, 2, 1)],
)
def test_reduce_rank(p, n, expected):
    assert reduce_rank(p, n) == expected


@pytest.mark.parametrize("p", [0, -1, 2.5, True])
def test_reduce_rank_rejects_bad_rank(p):
    with pytest.raises(InvalidArgument):
        reduce_rank(p, 100)


def test_default_threshold_is_smallest_column_norm():
    A = np.array([[3.0, 1.0, 0.0], [4.0, 0.0, 2.0]])
    assert default_threshold(A) == pytest.approx(1.0)
    assert default_threshold(sp.csc_matrix(A)) == pytest.approx(1.0)


def test_default_threshold_needs_columns():
    with pytest.raises(InvalidArgument):
        default_threshold(np.zeros((3, 0)))


def test_check_threshold():
    assert check_threshold(2) == 2.0
    assert check_threshold(0) == 0.0
    for bad in (-1.0, np.inf, np.nan, "abc", None):
        with pytest.raises(InvalidArgument):
            check_threshold(bad)
