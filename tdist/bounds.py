"""Projected-space acceptance bounds.

Every supported metric dominates a multiple of the Euclidean distance, and
orthogonal projection never increases Euclidean distance, so a pair whose
projected squared distance exceeds `normlim` cannot meet the threshold:

    euclidean   ||x - y||_2                               normlim = t^2
    manhattan   ||x - y||_2 <= ||x - y||_1                normlim = t^2
    chebyshev   ||x - y||_2 <= sqrt(m) * ||x - y||_inf    normlim = m * t^2
"""

from .arguments import match_arg

METHODS = ("euclidean", "manhattan", "chebyshev")

# Relative slack on projected comparisons; rounding in the projection must not
# push a pair that sits exactly on the threshold out of the candidate set.
PROJECTION_RTOL = 1e-9


def match_method(method):
    return match_arg(method, METHODS, "method")


def projected_limit(method, t, m):
    """Largest projected squared distance a viable pair can have.

    Args:
        method: one of METHODS (already matched)
        t: distance threshold
        m: number of rows of the matrix

    Returns:
        normlim as a float
    """
    if method == "euclidean":
        return t * t
    if method == "manhattan":
        return t * t
    if method == "chebyshev":
        return m * t * t
    raise ValueError(f"Unknown method {method!r}")


def slackened_limit(normlim, scale):
    """Squared projected limit widened by rounding slack.

    `scale` is the largest projected column norm; the absolute part of the
    slack covers rounding in the projection itself when normlim is tiny.
    """
    return normlim * (1.0 + PROJECTION_RTOL) + PROJECTION_RTOL * scale * scale
