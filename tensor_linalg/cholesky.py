# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import numpy as np

from .exceptions import NotPositiveDefiniteError
from .utils import flatten_batch, unflatten_batch


def cholesky_banachiewicz(A: np.ndarray) -> np.ndarray:
    """
    Lower-triangular L with L @ L^H = A for a batch of Hermitian
    positive-definite matrices, built one column at a time:

        L[j, j] = sqrt(A[j, j] - Σ_k |L[j, k]|²)
        L[i, j] = (A[i, j] - Σ_k L[i, k] conj(L[j, k])) / L[j, j],  i > j

    Raises
    ------
    NotPositiveDefiniteError : if a pivot is not strictly positive.
    """
    A, batch_shape = flatten_batch(np.asarray(A))
    B, n, _ = A.shape
    L = np.zeros_like(A)

    for j in range(n):
        row = L[:, j, :j]
        d2 = A[:, j, j].real - np.sum(np.abs(row) ** 2, axis=-1)
        if np.any(~(d2 > 0)):
            raise NotPositiveDefiniteError(min_pivot=float(np.nanmin(d2)))
        d = np.sqrt(d2)
        L[:, j, j] = d
        s = A[:, j + 1 :, j] - (L[:, j + 1 :, :j] @ np.conj(row)[:, :, None])[:, :, 0]
        L[:, j + 1 :, j] = s / d[:, None]

    return unflatten_batch(L, batch_shape)
