"""SVD-based low-rank factorizations for dense matrices.

Implements both a NumPy-based truncated SVD and a power iteration SVD with
deflation.
"""

import numpy as np
import scipy.sparse as sp

from ..errors import DimensionError, NumericFailure


def _dense(A):
    if sp.issparse(A):
        return A.toarray()
    return np.asarray(A, dtype=np.result_type(A.dtype, np.float64))


def numpy_svd_lowrank(A, rank):
    """
    Low-rank factorization using NumPy's SVD.

    Computes the full thin SVD and truncates it. Exact, but the cost grows
    with the full matrix size, so it only suits small or medium inputs.

    Args:
        A: (m x n) numpy array (sparse input is densified)
        rank: int - desired rank

    Returns:
        U: (m x rank) numpy array - left singular vectors
        S: (rank,) numpy array - singular values
        Vt: (rank x n) numpy array - right singular vectors (transposed)

    Raises:
        DimensionError: If rank is invalid (< 1 or > min(m, n))
    """
    A = _dense(A)
    m, n = A.shape

    # Validate rank
    if rank < 1:
        raise DimensionError(f"Rank must be at least 1, got {rank}")
    if rank > min(m, n):
        raise DimensionError(f"Rank must be at most min(m, n) = {min(m, n)}, got {rank}")

    U, S, Vt = np.linalg.svd(A, full_matrices=False)

    # Truncate to desired rank
    return U[:, :rank], S[:rank], Vt[:rank, :]


def power_svd_lowrank(A, rank, max_iters=10000, tol=1e-10, seed=0):
    """
    Low-rank factorization by power iteration with deflation.

    Finds one singular triplet at a time on A^T A, then removes it from a
    working copy of A. Slow, but needs nothing beyond matrix-vector products.

    Args:
        A: (m x n) numpy array (sparse input is densified)
        rank: int - desired rank
        max_iters: int - maximum iterations per triplet (default: 10000)
        tol: float - convergence tolerance (default: 1e-10)
        seed: int - seed for the starting vectors

    Returns:
        U: (m x rank) numpy array - left singular vectors
        S: (rank,) numpy array - singular values
        Vt: (rank x n) numpy array - right singular vectors (transposed)

    Raises:
        DimensionError: If rank is invalid
        NumericFailure: If power iteration fails to converge
    """
    A = _dense(A)
    m, n = A.shape

    # Validate rank
    if rank < 1:
        raise DimensionError(f"Rank must be at least 1, got {rank}")
    if rank > min(m, n):
        raise DimensionError(f"Rank must be at most min(m, n) = {min(m, n)}, got {rank}")

    rng = np.random.default_rng(seed)
    U = np.zeros((m, rank))
    S = np.zeros(rank)
    Vt = np.zeros((rank, n))

    # Work on a copy of A since we'll deflate it
    A_work = A.copy()

    for k in range(rank):
        u, sigma, v = _power_iteration(A_work, rng, max_iters, tol)

        U[:, k] = u
        S[k] = sigma
        Vt[k, :] = v

        # A_deflated = A - sigma * outer(u, v)
        A_work = A_work - sigma * np.outer(u, v)

    return U, S, Vt


def _power_iteration(A, rng, max_iters, tol):
    """
    Power iteration for the dominant singular triplet of A.

    Returns a zero triplet when A has been deflated down to (numerically)
    nothing, so rank-deficient inputs are not treated as failures.
    """
    m, n = A.shape

    v = rng.standard_normal(n)
    v = v / np.linalg.norm(v)

    for _ in range(max_iters):
        v_old = v

        # A^T (A v) rather than (A^T A) v
        v = A.T @ (A @ v)

        v_norm = np.linalg.norm(v)
        if v_norm < tol:
            return np.zeros(m), 0.0, np.zeros(n)
        v = v / v_norm

        if np.linalg.norm(v - v_old) < tol:
            break
    else:
        raise NumericFailure(
            f"Power iteration did not converge after {max_iters} iterations"
        )

    Av = A @ v
    sigma = np.linalg.norm(Av)
    if sigma < tol:
        return np.zeros(m), 0.0, v
    return Av / sigma, sigma, v
