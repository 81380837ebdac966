"""Argument matching and defaulting helpers.

Option tokens are matched the way users expect from short command line
flags: an exact match wins, otherwise any unambiguous prefix is accepted.
"""

import numpy as np
import scipy.sparse as sp

from .errors import InvalidArgument


def match_arg(value, choices, name="argument"):
    """Resolve `value` against `choices` by exact or unambiguous prefix match.

    Args:
        value: str - token supplied by the caller
        choices: sequence of str - accepted values, first one is the default
        name: str - argument name used in error messages

    Returns:
        The matching entry of `choices`.

    Raises:
        InvalidArgument: if nothing matches or the prefix is ambiguous
    """
    if value is None:
        return choices[0]
    if not isinstance(value, str) or not value:
        raise InvalidArgument(f"{name} must be a non-empty string, got {value!r}")

    token = value.lower()
    if token in choices:
        return token

    matches = [c for c in choices if c.startswith(token)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        raise InvalidArgument(
            f"{name} should be one of {', '.join(map(repr, choices))}, got {value!r}"
        )
    raise InvalidArgument(
        f"{name} {value!r} is ambiguous, could be any of {', '.join(map(repr, matches))}"
    )


def reduce_rank(p, n):
    """Shrink the projected rank for matrices with fewer than `p` columns."""
    if isinstance(p, bool) or int(p) != p or p < 1:
        raise InvalidArgument(f"Rank must be a positive integer, got {p!r}")
    p = int(p)
    if n < p:
        p = max(1, n // 2 - 1)
    return p


def default_threshold(A):
    """Smallest column norm of `A`, the threshold used when none is given."""
    if A.shape[1] == 0:
        raise InvalidArgument("Cannot derive a default threshold for a matrix with no columns")
    if sp.issparse(A):
        sq = np.asarray(A.multiply(A).sum(axis=0)).ravel()
    else:
        sq = np.einsum("ij,ij->j", A, A)
    return float(np.sqrt(sq.min()))


def check_threshold(t):
    """Validate a user supplied threshold and return it as a float."""
    try:
        t = float(t)
    except (TypeError, ValueError):
        raise InvalidArgument(f"Threshold must be a real number, got {t!r}") from None
    if not np.isfinite(t) or t < 0:
        raise InvalidArgument(f"Threshold must be finite and non-negative, got {t}")
    return t
