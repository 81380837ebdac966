"""Exceptions raised by thresholded distance screening."""


class TdistError(Exception):
    """Base class for all tdist errors."""


class InvalidArgument(TdistError, ValueError):
    """An option token or numeric argument could not be accepted."""


class DimensionError(TdistError, ValueError):
    """Requested rank is incompatible with the matrix shape."""


class NumericFailure(TdistError, RuntimeError):
    """A low-rank solver failed to converge."""
