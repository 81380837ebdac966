"""Exact verification of candidate column pairs.

Two strategies share one interface and differ only in how chunks of the
candidate set are mapped over:

    local        chunks are verified one after another in generation order
    distributed  chunks are fanned out to joblib threads that all read the
                 same in-process matrix, so nothing is serialized per worker
"""

import logging

import numpy as np
import scipy.sparse as sp
from joblib import Parallel, delayed

from .arguments import match_arg

logger = logging.getLogger(__name__)

FILTERS = ("distributed", "local")

# Upper bound on matrix entries gathered per chunk (about 32 MB of float64)
VERIFY_BLOCK_ELEMENTS = 1 << 22


def prepare_matrix(A):
    """Return A in a layout with cheap column access."""
    if sp.issparse(A):
        A = sp.csc_matrix(A)
        if not np.issubdtype(A.dtype, np.floating):
            A = A.astype(np.float64)
        return A
    return np.asarray(A, dtype=np.result_type(A.dtype, np.float64))


def column_distances(A, left, right, method):
    """
    True distances between pairs of columns of A.

    Args:
        A: (m x n) numpy array or scipy sparse matrix in CSC form
        left, right: integer arrays of column indices, same length
        method: "euclidean", "manhattan" or "chebyshev"

    Returns:
        (len(left),) numpy array of distances
    """
    left = np.asarray(left, dtype=np.intp)
    right = np.asarray(right, dtype=np.intp)
    if left.size == 0:
        return np.empty(0)

    diff = A[:, left] - A[:, right]

    if sp.issparse(diff):
        if method == "euclidean":
            out = np.sqrt(diff.multiply(diff).sum(axis=0))
        elif method == "manhattan":
            out = abs(diff).sum(axis=0)
        elif method == "chebyshev":
            out = abs(diff).max(axis=0).toarray()
        else:
            raise ValueError(f"Unknown method {method!r}")
        return np.asarray(out, dtype=np.float64).ravel()

    if method == "euclidean":
        return np.sqrt(np.einsum("ij,ij->j", diff, diff))
    if method == "manhattan":
        return np.abs(diff).sum(axis=0)
    if method == "chebyshev":
        if diff.shape[0] == 0:
            return np.zeros(diff.shape[1])
        return np.abs(diff).max(axis=0)
    raise ValueError(f"Unknown method {method!r}")


def _verify_chunk(A, left, right, method, t):
    dist = column_distances(A, left, right, method)
    keep = dist <= t
    return left[keep], right[keep], dist[keep]


class Verifier:
    """Base class: split candidates into chunks and verify each one."""

    name = None

    def chunk_size(self, A, total):
        return max(1, VERIFY_BLOCK_ELEMENTS // max(1, A.shape[0]))

    def map(self, fn, chunks):
        raise NotImplementedError

    def verify(self, A, candidates, method, t):
        """
        Keep the candidate pairs whose true distance is at most t.

        Args:
            A: matrix from `prepare_matrix`
            candidates: CandidateSet
            method: matched metric name
            t: distance threshold

        Returns:
            (left, right, distance) arrays of the verified pairs
        """
        total = len(candidates)
        size = self.chunk_size(A, total)
        chunks = [
            (candidates.left[s:s + size], candidates.right[s:s + size])
            for s in range(0, total, size)
        ]
        results = self.map(lambda c: _verify_chunk(A, c[0], c[1], method, t), chunks)

        if not results:
            empty = np.empty(0, dtype=np.intp)
            return empty, empty, np.empty(0)

        left = np.concatenate([r[0] for r in results])
        right = np.concatenate([r[1] for r in results])
        dist = np.concatenate([r[2] for r in results])
        logger.debug("%s verifier kept %d of %d candidates in %d chunks",
                     self.name, left.size, total, len(chunks))
        return left, right, dist


class LocalVerifier(Verifier):
    """Verify chunks sequentially in the calling thread."""

    name = "local"

    def map(self, fn, chunks):
        return [fn(c) for c in chunks]


class DistributedVerifier(Verifier):
    """Verify chunks in parallel threads sharing the matrix.

    Args:
        n_jobs: number of joblib workers (-1 = all cores)
        min_chunks: split into at least this many chunks when there are
            enough candidates, so small candidate sets still spread out
    """

    name = "distributed"

    def __init__(self, n_jobs=-1, min_chunks=8):
        self.n_jobs = n_jobs
        self.min_chunks = min_chunks

    def chunk_size(self, A, total):
        size = super().chunk_size(A, total)
        return max(1, min(size, -(-total // self.min_chunks)))

    def map(self, fn, chunks):
        if len(chunks) <= 1:
            return [fn(c) for c in chunks]
        return Parallel(n_jobs=self.n_jobs, backend="threading", verbose=0)(
            delayed(fn)(c) for c in chunks
        )


def get_verifier(filter="distributed", n_jobs=None):
    """Build the verification strategy named by `filter` (prefix matched)."""
    if isinstance(filter, Verifier):
        return filter
    name = match_arg(filter, FILTERS, "filter")
    if name == "local":
        return LocalVerifier()
    return DistributedVerifier(n_jobs=-1 if n_jobs is None else n_jobs)
