# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Decomposition strategies.

The composite operations (solve, pinv, determinant, ...) only depend on
the `Decomposer` protocol. A strategy is picked per call through the
`decomposer=` keyword, never through global state, so concurrent calls
with different strategies cannot interfere.

Strategies receive arrays that were already validated by the shape
resolver and promoted to their floating dtype.
"""

from typing import Protocol, Tuple, Union, runtime_checkable

import numpy as np

from .cholesky import cholesky_banachiewicz
from .eigen import jacobi_eigh
from .elimination import forward_eliminate, permutation_matrix
from .exceptions import NotPositiveDefiniteError, UnsupportedOptionError
from .qr import householder_qr
from .svd import jacobi_svd


@runtime_checkable
class Decomposer(Protocol):
    """One method per primitive factorization."""

    @property
    def name(self) -> str: ...

    def cholesky(self, a: np.ndarray) -> np.ndarray: ...

    def lu(
        self, a: np.ndarray, eps: float
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]: ...

    def qr(
        self, a: np.ndarray, mode: str, eps: float
    ) -> Tuple[np.ndarray, np.ndarray]: ...

    def eigh(
        self, a: np.ndarray, max_iter: int, eps: float
    ) -> Tuple[np.ndarray, np.ndarray]: ...

    def svd(
        self, a: np.ndarray, max_iter: int, full_matrices: bool
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]: ...


class ReferenceDecomposer:
    """The engine's own batched algorithms."""

    name = "reference"

    def cholesky(self, a):
        return cholesky_banachiewicz(a)

    def lu(self, a, eps):
        L, U, perm = forward_eliminate(a, eps=eps)
        return permutation_matrix(perm, dtype=U.dtype), L, U

    def qr(self, a, mode, eps):
        return householder_qr(a, mode=mode, eps=eps)

    def eigh(self, a, max_iter, eps):
        return jacobi_eigh(a, max_iter=max_iter, eps=eps)

    def svd(self, a, max_iter, full_matrices):
        return jacobi_svd(a, max_iter=max_iter, full_matrices=full_matrices)

    def __repr__(self):
        return f"{type(self).__name__}()"


class LapackDecomposer(ReferenceDecomposer):
    """
    Delegates to numpy.linalg (LAPACK). Iteration limits and tolerances
    are ignored since LAPACK drives its own convergence. NumPy has no LU,
    so `lu` is inherited from the reference strategy.
    """

    name = "lapack"

    def cholesky(self, a):
        try:
            return np.linalg.cholesky(a)
        except np.linalg.LinAlgError as e:
            raise NotPositiveDefiniteError(str(e)) from e

    def qr(self, a, mode, eps):
        return np.linalg.qr(a, mode=mode)

    def eigh(self, a, max_iter, eps):
        return np.linalg.eigh(a)

    def svd(self, a, max_iter, full_matrices):
        return np.linalg.svd(a, full_matrices=full_matrices)


REFERENCE = ReferenceDecomposer()
LAPACK = LapackDecomposer()

_BY_NAME = {REFERENCE.name: REFERENCE, LAPACK.name: LAPACK}


def get_decomposer(decomposer: Union[None, str, Decomposer] = None) -> Decomposer:
    """
    Resolve the `decomposer=` argument of the public operations.

    None selects the reference strategy; 'reference' and 'lapack' select
    the built-in ones; any object implementing `Decomposer` is used as is.
    """
    if decomposer is None:
        return REFERENCE
    if isinstance(decomposer, str):
        if decomposer not in _BY_NAME:
            raise UnsupportedOptionError(
                f"unknown decomposer {decomposer!r}, expected one of {sorted(_BY_NAME)}"
            )
        return _BY_NAME[decomposer]
    if isinstance(decomposer, Decomposer):
        return decomposer
    raise UnsupportedOptionError(
        f"decomposer must be a name or implement Decomposer, got: {decomposer!r}"
    )
