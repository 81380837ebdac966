# Thresholded distances between matrix columns

from .core import tdist, TdistResult
from .errors import TdistError, InvalidArgument, DimensionError, NumericFailure
from .matrix_generators import MatrixGenerator

__all__ = [
    'tdist',
    'TdistResult',
    'TdistError',
    'InvalidArgument',
    'DimensionError',
    'NumericFailure',
    'MatrixGenerator',
]
