"""Randomized SVD with a Gaussian range finder."""

import numpy as np
import scipy.sparse as sp
from scipy.linalg import qr, svd

from ..errors import DimensionError


def rsvd(A, rank, n_oversamples=10, n_subspace_iters=2, seed=0):
    """Randomized SVD.

    Samples the range of A with a Gaussian test matrix, sharpens it with a
    few subspace iterations and decomposes the small projected matrix.

    Args:
        A: (m x n) numpy array or scipy sparse matrix
        rank: desired rank
        n_oversamples: extra sample columns (default: 10)
        n_subspace_iters: number of power iterations (default: 2)
        seed: random seed for the test matrix

    Returns:
        U, S, Vt: Rank-k SVD factors
    """
    m, n = A.shape
    if rank < 1:
        raise DimensionError(f"Rank must be at least 1, got {rank}")
    if rank > min(m, n):
        raise DimensionError(f"Rank must be at most min(m, n) = {min(m, n)}, got {rank}")

    if not sp.issparse(A):
        A = np.asarray(A, dtype=np.result_type(A.dtype, np.float64))

    rng = np.random.default_rng(seed)
    ell = min(rank + n_oversamples, min(m, n))
    Omega = rng.standard_normal((n, ell))

    Y = np.asarray(A @ Omega)
    Q, _ = qr(Y, mode="economic")
    # Re-orthonormalize between products to keep small directions alive
    for _ in range(n_subspace_iters):
        Z, _ = qr(np.asarray(A.T @ Q), mode="economic")
        Q, _ = qr(np.asarray(A @ Z), mode="economic")

    B = np.asarray((A.T @ Q).T)
    Ub, S, Vt = svd(B, full_matrices=False)
    U = Q @ Ub
    return U[:, :rank], S[:rank], Vt[:rank, :]
