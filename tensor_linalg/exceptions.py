# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Exception hierarchy for tensor_linalg.

Everything raised on purpose by this package derives from `LinAlgError`.
Shape and option problems also derive from `ValueError` and data-dependent
failures from `ArithmeticError`, so callers written against the builtin
exceptions keep working.
"""

from typing import Optional


class LinAlgError(Exception):
    """Base exception for all tensor_linalg errors."""


class ShapeError(LinAlgError, ValueError):
    """
    Rank, dimension, squareness or batch compatibility violation.

    Raised by the shape resolver before any numeric work runs, and by the
    Hermitian checks of `cholesky` and `eigh`.
    """


class UnsupportedOptionError(LinAlgError, ValueError):
    """An enumerated option was given a value outside its declared set."""


class NotImplementedYetError(LinAlgError, NotImplementedError):
    """A documented combination that is not implemented (e.g. complex SVD)."""


class NumericalError(LinAlgError, ArithmeticError):
    """Base class for failures that depend on the data, not the shape."""


class SingularMatrixError(NumericalError):
    """
    A (near-)zero pivot or diagonal entry was about to be divided by.

    Attributes:
        matrix_name: which factor was singular, if known
        min_pivot: smallest absolute diagonal entry found, if computed
    """

    def __init__(
        self,
        message: str = "can't solve for singular matrix",
        matrix_name: Optional[str] = None,
        min_pivot: Optional[float] = None,
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.min_pivot = min_pivot


class NotPositiveDefiniteError(NumericalError):
    """Cholesky met a non-positive pivot."""

    def __init__(
        self,
        message: str = "matrix must be positive definite",
        min_pivot: Optional[float] = None,
    ):
        super().__init__(message)
        self.min_pivot = min_pivot
