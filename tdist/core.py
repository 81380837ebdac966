"""Thresholded distances between matrix columns.

Unlike `scipy.spatial.distance.pdist`, which computes every distance between
rows, `tdist` returns only the pairs of *columns* within a threshold distance
of each other. Columns are first projected onto a rank-p singular subspace;
a pair whose projected distance is already too large is discarded without
ever touching the full columns, and the survivors are checked exactly.

Increase p to cut down the number of candidate pairs evaluated, at the
expense of a costlier truncated SVD.
"""

import logging
import time
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from .arguments import check_threshold, default_threshold
from .bounds import match_method, projected_limit
from .candidates import generate_candidates
from .errors import InvalidArgument
from .projection import project
from .verify import get_verifier, prepare_matrix

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

DEFAULT_RANK = 10
DEFAULT_FILTER = "distributed"
DEFAULT_METHOD = "euclidean"
DEFAULT_FACTORIZER = "svds"


@dataclass
class TdistResult:
    """Pairs of columns within the threshold distance.

    Attributes:
        indices: (k x 3) array; columns i, j (0-based, i < j) and distance
        longest_run: widest scan window; the largest count of columns,
            anchor included, that follow an anchor column in leading
            coordinate order with a leading coordinate within sqrt(normlim)
            of the anchor's (see `CandidateSet`)
        n: number of candidate pairs that could possibly meet the threshold
        svd_time: seconds spent in the rank-p factorization
        total_time: seconds for the whole call
    """

    indices: np.ndarray
    longest_run: int
    n: int
    svd_time: float
    total_time: float
    t: float = 0.0
    p: int = 0
    method: str = DEFAULT_METHOD
    filter: str = DEFAULT_FILTER
    examined: int = field(default=0, repr=False)

    def __len__(self):
        return int(self.indices.shape[0])

    def pairs(self):
        """Set of (i, j) column index tuples in the result."""
        return {(int(i), int(j)) for i, j in self.indices[:, :2]}

    def to_frame(self) -> pd.DataFrame:
        """Result pairs as a DataFrame with columns i, j and distance."""
        return pd.DataFrame(
            {
                "i": self.indices[:, 0].astype(np.int64),
                "j": self.indices[:, 1].astype(np.int64),
                "distance": self.indices[:, 2],
            }
        )


def _check_matrix(A):
    if getattr(A, "ndim", None) != 2:
        A = np.asarray(A)
        if A.ndim != 2:
            raise InvalidArgument(f"A must be a 2-D matrix, got {A.ndim} dimension(s)")
    return A


def tdist(
    A,
    t=None,
    p=DEFAULT_RANK,
    filter=DEFAULT_FILTER,
    method=DEFAULT_METHOD,
    factorizer=DEFAULT_FACTORIZER,
    n_jobs=None,
    **svd_kwargs,
) -> TdistResult:
    """
    Find all pairs of columns of A within distance t of each other.

    Args:
        A: (m x n) real numpy array or scipy sparse matrix
        t: distance threshold (default: the smallest column norm of A)
        p: projected subspace dimension (default: 10), reduced to
           max(1, n // 2 - 1) when A has fewer than p columns
        filter: "distributed" verifies candidates in parallel threads that
           share A, "local" verifies them sequentially; any unambiguous
           prefix is accepted
        method: "euclidean", "manhattan" or "chebyshev" (prefix matched)
        factorizer: rank-p backend from `tdist.algos` (default: "svds")
        n_jobs: worker count for the distributed filter (default: all cores)
        **svd_kwargs: forwarded to the factorizer (tol, maxiter, seed, ...)

    Returns:
        TdistResult

    Raises:
        InvalidArgument: unknown option tokens or bad threshold / rank
        DimensionError: rank incompatible with the matrix shape
        NumericFailure: the factorization did not converge
    """
    t0 = time.perf_counter()

    # Fail fast on option tokens before touching the data
    method = match_method(method)
    verifier = get_verifier(filter, n_jobs=n_jobs)

    A = prepare_matrix(_check_matrix(A))
    m, n = A.shape
    t = default_threshold(A) if t is None else check_threshold(t)

    projection = project(A, p, factorizer=factorizer, **svd_kwargs)

    normlim = projected_limit(method, t, m)
    candidates = generate_candidates(projection.coords, normlim)
    left, right, dist = verifier.verify(A, candidates, method, t)

    order = np.lexsort((right, left))
    indices = np.column_stack(
        [left[order].astype(np.float64), right[order].astype(np.float64), dist[order]]
    ).reshape(-1, 3)

    total_time = time.perf_counter() - t0
    logger.info(
        "tdist %dx%d t=%.4g p=%d %s/%s: %d candidates, %d pairs, %.3fs (svd %.3fs)",
        m, n, t, projection.rank, method, verifier.name, len(candidates),
        indices.shape[0], total_time, projection.svd_time,
    )

    return TdistResult(
        indices=indices,
        longest_run=candidates.longest_run,
        n=len(candidates),
        svd_time=projection.svd_time,
        total_time=total_time,
        t=t,
        p=projection.rank,
        method=method,
        filter=verifier.name,
        examined=candidates.examined,
    )
