"""Command line interface: thresholded column distances of a stored matrix.

Reads a matrix from a .npy file, a scipy sparse .npz file or a .csv file
(numeric table, one vector per column) and writes the pairs within the
threshold as CSV with columns i, j and distance.
"""

import argparse
import inspect
import logging
import sys
from pathlib import Path

import numpy as np
import pandas as pd
import scipy.sparse as sp

from .algos import get_factorizer
from .core import DEFAULT_FACTORIZER, DEFAULT_FILTER, DEFAULT_METHOD, DEFAULT_RANK, tdist
from .errors import TdistError


def load_matrix(path, transpose=False):
    """Load a dense or sparse matrix from disk.

    Args:
        path: .npy, .npz (scipy sparse) or .csv file
        transpose: treat rows of the stored table as the vectors

    Returns:
        numpy array or scipy sparse matrix
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Matrix file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".npy":
        A = np.load(path)
    elif suffix == ".npz":
        A = sp.load_npz(path)
    elif suffix == ".csv":
        df = pd.read_csv(path, header=None)
        df = df.apply(pd.to_numeric, errors="coerce")
        if df.isna().any().any():
            raise ValueError(f"{path} contains non-numeric entries")
        A = df.to_numpy(dtype=np.float64)
    else:
        raise ValueError(f"Unsupported matrix format: {suffix}")

    return A.T if transpose else A


def build_parser():
    parser = argparse.ArgumentParser(
        description="Find pairs of matrix columns within a threshold distance",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Euclidean pairs within 0.5, written to stdout
  python -m tdist.cli data.npy -t 0.5

  # Sparse input, Manhattan distance, sequential verification, rank 20
  python -m tdist.cli counts.npz -t 3 --method man --filter local -p 20 -o pairs.csv
        """,
    )
    parser.add_argument("matrix", type=str, help="Matrix file (.npy, .npz or .csv)")
    parser.add_argument("--threshold", "-t", type=float, default=None,
                        help="Distance threshold (default: smallest column norm)")
    parser.add_argument("--rank", "-p", type=int, default=DEFAULT_RANK,
                        help=f"Projected subspace dimension (default: {DEFAULT_RANK})")
    parser.add_argument("--filter", type=str, default=DEFAULT_FILTER,
                        help=f"distributed or local (default: {DEFAULT_FILTER})")
    parser.add_argument("--method", type=str, default=DEFAULT_METHOD,
                        help=f"euclidean, manhattan or chebyshev (default: {DEFAULT_METHOD})")
    parser.add_argument("--factorizer", type=str, default=DEFAULT_FACTORIZER,
                        help=f"svds, rsvd, numpy or power (default: {DEFAULT_FACTORIZER})")
    parser.add_argument("--n-jobs", type=int, default=None,
                        help="Workers for the distributed filter (default: all cores)")
    parser.add_argument("--tol", type=float, default=None,
                        help="Convergence tolerance forwarded to the factorizer")
    parser.add_argument("--maxiter", type=int, default=None,
                        help="Iteration cap forwarded to the svds factorizer")
    parser.add_argument("--rows-are-vectors", action="store_true",
                        help="Compare rows of the stored table instead of columns")
    parser.add_argument("--output", "-o", type=str, default=None,
                        help="CSV file for the pairs (default: stdout)")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log pipeline progress to stderr")
    return parser


def main(argv=None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    svd_kwargs = {}
    if args.tol is not None:
        svd_kwargs["tol"] = args.tol
    if args.maxiter is not None:
        svd_kwargs["maxiter"] = args.maxiter

    try:
        accepted = inspect.signature(get_factorizer(args.factorizer)).parameters
        for key in svd_kwargs:
            if key not in accepted:
                raise TdistError(
                    f"factorizer {args.factorizer!r} does not accept --{key}"
                )
        A = load_matrix(args.matrix, transpose=args.rows_are_vectors)
        result = tdist(
            A,
            t=args.threshold,
            p=args.rank,
            filter=args.filter,
            method=args.method,
            factorizer=args.factorizer,
            n_jobs=args.n_jobs,
            **svd_kwargs,
        )
    except (TdistError, FileNotFoundError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    frame = result.to_frame()
    if args.output:
        frame.to_csv(args.output, index=False)
    else:
        frame.to_csv(sys.stdout, index=False)

    print(
        f"{len(result)} pairs within t={result.t:.4g} "
        f"({result.n} candidates, longest run {result.longest_run}, rank {result.p}); "
        f"svd {result.svd_time:.4f}s, total {result.total_time:.4f}s",
        file=sys.stderr,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
