"""Iterative truncated SVD for large dense or sparse matrices.

Wraps ARPACK (via `scipy.sparse.linalg.svds`), which only touches the matrix
through products with it, so neither the matrix nor its Gram matrix ever has
to be decomposed in full.
"""

import logging

import numpy as np
import scipy.sparse as sp
from scipy.sparse.linalg import svds, ArpackNoConvergence

from ..errors import DimensionError, NumericFailure

logger = logging.getLogger(__name__)


def svds_lowrank(A, rank, tol=0, maxiter=None, v0=None, seed=0, solver="arpack"):
    """
    Truncated SVD using an iterative Lanczos solver.

    Args:
        A: (m x n) numpy array or scipy sparse matrix
        rank: int - number of singular triplets to compute
        tol: float - relative accuracy for singular values (0 = machine precision)
        maxiter: int - maximum number of solver iterations (default: solver's own)
        v0: (min(m, n),) numpy array - starting vector; drawn from `seed` if None
        seed: int - seed for the default starting vector
        solver: str - "arpack", "propack" or "lobpcg"

    Returns:
        U: (m x rank) numpy array - left singular vectors
        S: (rank,) numpy array - singular values in decreasing order
        Vt: (rank x n) numpy array - right singular vectors (transposed)

    Raises:
        DimensionError: If rank is invalid (< 1 or >= min(m, n))
        NumericFailure: If the solver does not converge
    """
    m, n = A.shape

    # Validate rank
    if rank < 1:
        raise DimensionError(f"Rank must be at least 1, got {rank}")
    if rank >= min(m, n):
        raise DimensionError(
            f"Rank must be less than min(m, n) = {min(m, n)}, got {rank}"
        )

    if sp.issparse(A):
        if not np.issubdtype(A.dtype, np.floating):
            A = A.astype(np.float64)
    else:
        A = np.asarray(A, dtype=np.result_type(A.dtype, np.float64))

    if v0 is None:
        # ARPACK picks a random start otherwise; fix it so runs are repeatable
        rng = np.random.default_rng(seed)
        v0 = rng.uniform(-1.0, 1.0, size=min(m, n))

    try:
        U, S, Vt = svds(A, k=rank, tol=tol, maxiter=maxiter, v0=v0, solver=solver)
    except ArpackNoConvergence as exc:
        raise NumericFailure(
            f"svds did not converge for rank {rank}: {exc}"
        ) from exc

    # svds returns singular values in increasing order
    order = np.argsort(S)[::-1]
    logger.debug("svds rank %d on %dx%d matrix, top singular value %.4g",
                 rank, m, n, S[order[0]])
    return U[:, order], S[order], Vt[order, :]
