"""Rank-p factorizations.

Every backend shares one interface, ``factorize(A, rank, **kwargs)``,
returning ``(U, S, Vt)`` with singular values in decreasing order.
"""

from .svds_lowrank import svds_lowrank
from .rsvd import rsvd
from .svd_lowrank import numpy_svd_lowrank, power_svd_lowrank
from ..arguments import match_arg

FACTORIZERS = {
    "svds": svds_lowrank,
    "rsvd": rsvd,
    "numpy": numpy_svd_lowrank,
    "power": power_svd_lowrank,
}


def get_factorizer(name):
    """Look up a factorizer by name or unambiguous prefix."""
    if callable(name):
        return name
    return FACTORIZERS[match_arg(name, tuple(FACTORIZERS), "factorizer")]


__all__ = [
    "FACTORIZERS",
    "get_factorizer",
    "svds_lowrank",
    "rsvd",
    "numpy_svd_lowrank",
    "power_svd_lowrank",
]
