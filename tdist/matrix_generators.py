"""Matrix generators for testing thresholded distance screening.

This module provides reproducible test matrices whose columns are the vectors
being compared: unstructured random columns, clustered columns with near
duplicates, and sparse random matrices.
"""

from typing import Dict

import numpy as np
import scipy.sparse as sp


class MatrixGenerator:
    """Generate test matrices with controlled column geometry."""

    @staticmethod
    def random_matrix(m: int, n: int, seed: int = 42) -> np.ndarray:
        """
        Generate a random matrix with N(0, 1) entries.

        Columns of such a matrix are all roughly sqrt(2m) apart, so almost no
        pair meets a small threshold.

        Args:
            m: number of rows
            n: number of columns
            seed: random seed for reproducibility

        Returns:
            A: (m x n) matrix
        """
        rng = np.random.default_rng(seed)
        return rng.standard_normal((m, n))

    @staticmethod
    def clustered_columns(
        m: int,
        n: int,
        n_clusters: int,
        spread: float,
        true_rank: int = None,
        seed: int = 42,
    ) -> np.ndarray:
        """
        Generate columns scattered tightly around a few cluster centers.

        Algorithm:
            1. Draw n_clusters centers, optionally inside a random
               true_rank dimensional subspace
            2. Assign every column to a random center
            3. Add N(0, spread^2) noise to every entry

        Close pairs are then mostly pairs within one cluster, at a distance of
        about spread * sqrt(2m).

        Args:
            m: number of rows
            n: number of columns
            n_clusters: number of cluster centers
            spread: standard deviation of the per-entry noise
            true_rank: dimension of the subspace holding the centers
                       (None = centers are unrestricted)
            seed: random seed for reproducibility

        Returns:
            A: (m x n) matrix

        Raises:
            ValueError: if n_clusters < 1, spread < 0 or true_rank is invalid
        """
        if n_clusters < 1:
            raise ValueError(f"n_clusters must be at least 1, got {n_clusters}")
        if spread < 0:
            raise ValueError(f"spread must be non-negative, got {spread}")
        if true_rank is not None and not 1 <= true_rank <= m:
            raise ValueError(f"true_rank must be in [1, {m}], got {true_rank}")

        rng = np.random.default_rng(seed)

        if true_rank is None:
            centers = rng.standard_normal((m, n_clusters))
        else:
            basis = rng.standard_normal((m, true_rank)) / np.sqrt(true_rank)
            centers = basis @ rng.standard_normal((true_rank, n_clusters))
        centers *= np.sqrt(2.0)

        labels = rng.integers(0, n_clusters, size=n)
        A = centers[:, labels]
        if spread > 0:
            A = A + rng.standard_normal((m, n)) * spread
        return A

    @staticmethod
    def with_duplicates(A: np.ndarray, pairs, noise: float = 0.0, seed: int = 42) -> np.ndarray:
        """
        Copy columns onto other columns, optionally perturbed.

        Args:
            A: (m x n) matrix, not modified
            pairs: iterable of (source, target) column indices
            noise: standard deviation of noise added to each copy
            seed: random seed for reproducibility

        Returns:
            New matrix where column `target` equals column `source` plus noise
        """
        rng = np.random.default_rng(seed)
        B = np.array(A, dtype=np.float64, copy=True)
        for src, dst in pairs:
            B[:, dst] = B[:, src]
            if noise > 0:
                B[:, dst] += rng.standard_normal(B.shape[0]) * noise
        return B

    @staticmethod
    def sparse_random(m: int, n: int, density: float = 0.05, seed: int = 42) -> sp.csc_matrix:
        """
        Generate a sparse matrix with N(0, 1) nonzeros.

        Args:
            m: number of rows
            n: number of columns
            density: fraction of nonzero entries
            seed: random seed for reproducibility

        Returns:
            A: (m x n) scipy CSC matrix
        """
        if not 0 <= density <= 1:
            raise ValueError(f"density must be in [0, 1], got {density}")
        rng = np.random.default_rng(seed)
        return sp.random(
            m, n, density=density, format="csc", random_state=rng,
            data_rvs=rng.standard_normal,
        )

    @staticmethod
    def get_matrix_info(A) -> Dict:
        """
        Get information about a matrix for logging.

        Args:
            A: input matrix (dense or sparse)

        Returns:
            Dictionary with matrix properties:
                - shape: tuple of matrix dimensions
                - dtype: numpy data type
                - sparse: whether A is a scipy sparse matrix
                - density: fraction of nonzero entries
                - min_column_norm: default distance threshold
                - max_column_norm: largest column norm
        """
        if sp.issparse(A):
            sq = np.asarray(A.multiply(A).sum(axis=0)).ravel()
            nnz = A.nnz
        else:
            sq = np.einsum("ij,ij->j", A, A)
            nnz = np.count_nonzero(A)
        norms = np.sqrt(sq)
        return {
            "shape": A.shape,
            "dtype": A.dtype,
            "sparse": sp.issparse(A),
            "density": nnz / max(1, A.shape[0] * A.shape[1]),
            "min_column_norm": float(norms.min()) if norms.size else 0.0,
            "max_column_norm": float(norms.max()) if norms.size else 0.0,
        }
