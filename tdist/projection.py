"""Rank-p projection of matrix columns.

The projected coordinates of column j are ``Q^T a_j`` where Q is an
orthonormal basis for the leading left singular subspace. Because Q has
orthonormal columns, ``||Q^T (x - y)|| <= ||x - y||`` for any two columns,
whatever the accuracy of the solver that produced the subspace.
"""

import logging
import time
from dataclasses import dataclass

import numpy as np
import scipy.sparse as sp
from scipy.linalg import qr

from .algos import get_factorizer, numpy_svd_lowrank, svds_lowrank
from .arguments import reduce_rank

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Projection:
    """Projected column coordinates of one matrix."""

    coords: np.ndarray  # (rank x n), row 0 is the leading singular direction
    rank: int
    svd_time: float


def project(A, p, factorizer="svds", **svd_kwargs) -> Projection:
    """
    Project the columns of A onto their leading rank-p singular subspace.

    The rank is first reduced for matrices with fewer than p columns, then
    capped at min(m, n). The iterative `svds` backend needs a rank strictly
    below min(m, n); short or narrow matrices that leave it no room are
    decomposed with the dense SVD instead, and the iterative solver options
    are dropped.

    Args:
        A: (m x n) numpy array or scipy sparse matrix
        p: requested rank, reduced when A has fewer than p columns
        factorizer: name of a backend in `tdist.algos` or a callable
        **svd_kwargs: forwarded to the factorizer

    Returns:
        Projection with (rank x n) coordinates and the SVD stage time
    """
    m, n = A.shape
    rank = reduce_rank(p, n)
    if rank != p:
        logger.info("Matrix has %d columns, reducing rank from %d to %d", n, p, rank)

    limit = min(m, n)
    if rank > limit >= 1:
        logger.info("Matrix is %dx%d, reducing rank from %d to %d", m, n, rank, limit)
        rank = limit

    factorize = get_factorizer(factorizer)
    if factorize is svds_lowrank and rank >= limit >= 1:
        logger.info("Rank %d leaves svds no room on a %dx%d matrix, using dense SVD",
                    rank, m, n)
        factorize = numpy_svd_lowrank
        svd_kwargs = {}

    t0 = time.perf_counter()
    U, _, _ = factorize(A, rank, **svd_kwargs)
    svd_time = time.perf_counter() - t0
    logger.debug("Rank-%d factorization took %.4fs", rank, svd_time)

    # QR keeps the direction of the first column, so row 0 stays leading
    Q, _ = qr(np.asarray(U, dtype=np.float64), mode="economic")

    if sp.issparse(A):
        coords = np.asarray((A.T @ Q).T)
    else:
        coords = Q.T @ A
    coords = np.ascontiguousarray(coords, dtype=np.float64)

    return Projection(coords=coords, rank=rank, svd_time=svd_time)
