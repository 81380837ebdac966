"""Candidate pair generation by a windowed scan of the leading coordinate.

Columns are sorted along the leading singular direction. A gap along one
coordinate never exceeds the full projected distance, so for each column only
the following columns whose leading coordinate lies within sqrt(normlim) can
be viable. The window end only ever moves forward, which keeps the scan close
to linear when most columns are far apart.
"""

import logging
from dataclasses import dataclass

import numpy as np

from .bounds import slackened_limit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CandidateSet:
    """Column pairs that survived the projected-distance filter.

    `longest_run` is the widest scan window: taking each column in leading
    coordinate order as an anchor, count it together with the columns after
    it whose leading coordinate is within sqrt(normlim), with slack, of the
    anchor's. It is 1 when no window holds two columns and 0 for no columns.
    """

    left: np.ndarray  # column indices, left < right
    right: np.ndarray
    longest_run: int
    examined: int  # pairs whose full projected distance was computed

    def __len__(self):
        return int(self.left.size)


def sort_columns(leading):
    """Column order by leading coordinate, ties broken by column index."""
    return np.lexsort((np.arange(leading.size), leading))


def generate_candidates(coords, normlim) -> CandidateSet:
    """
    Find all column pairs whose projected squared distance is within normlim.

    Args:
        coords: (rank x n) projected coordinates, row 0 the leading direction
        normlim: projected squared-distance limit from `bounds.projected_limit`

    Returns:
        CandidateSet with original column indices sorted by (left, right)
    """
    coords = np.asarray(coords, dtype=np.float64)
    n = coords.shape[1]
    if n == 0:
        empty = np.empty(0, dtype=np.intp)
        return CandidateSet(left=empty, right=empty, longest_run=0, examined=0)

    order = sort_columns(coords[0])
    X = coords[:, order]
    lead = X[0]

    scale = float(np.sqrt(np.einsum("ij,ij->j", X, X).max()))
    limit = slackened_limit(normlim, scale)
    gap = np.sqrt(limit)

    left_parts = []
    right_parts = []
    longest_run = 1
    examined = 0

    hi = 1
    for lo in range(n):
        if hi <= lo:
            hi = lo + 1
        while hi < n and lead[hi] - lead[lo] <= gap:
            hi += 1

        width = hi - lo
        if width > longest_run:
            longest_run = width
        if width == 1:
            continue

        diff = X[:, lo + 1:hi] - X[:, lo:lo + 1]
        d2 = np.einsum("ij,ij->j", diff, diff)
        examined += d2.size

        keep = np.flatnonzero(d2 <= limit) + lo + 1
        if keep.size:
            left_parts.append(np.full(keep.size, lo, dtype=np.intp))
            right_parts.append(keep)

    if left_parts:
        a = order[np.concatenate(left_parts)]
        b = order[np.concatenate(right_parts)]
        left = np.minimum(a, b)
        right = np.maximum(a, b)
        idx = np.lexsort((right, left))
        left, right = left[idx], right[idx]
    else:
        left = right = np.empty(0, dtype=np.intp)

    logger.debug(
        "Scanned %d columns: longest run %d, %d projected distances, %d candidates",
        n, longest_run, examined, left.size,
    )
    return CandidateSet(left=left, right=right, longest_run=longest_run, examined=examined)
