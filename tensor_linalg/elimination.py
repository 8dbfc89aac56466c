# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging
from typing import Tuple

import numpy as np

from .exceptions import SingularMatrixError
from .utils import DEFAULT_EPS, flatten_batch, scale_tol, unflatten_batch

logger = logging.getLogger(__name__)


def forward_eliminate(
    A: np.ndarray, eps: float = DEFAULT_EPS
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Gaussian elimination with partial pivoting on a batch of n-by-n
    matrices, recording the multipliers.

    Parameters
    ----------
    A : np.ndarray               (..., n, n)
        Floating or complex coefficient matrices.
    eps : float
        Pivot threshold, scaled by max(1, ‖A‖∞) per matrix. Entries of U
        at or below it are rounded to exactly zero, so a rank-deficient
        matrix produces exact zeros on the diagonal of U.

    Returns
    -------
    L    : np.ndarray            (..., n, n)
        Unit lower-triangular multipliers.
    U    : np.ndarray            (..., n, n)
        Upper-triangular row-echelon form.
    perm : np.ndarray            (..., n)
        Final row order: row i of U comes from original row perm[i].
    """
    U, batch_shape = flatten_batch(np.array(A, copy=True))
    B, n, _ = U.shape
    L = np.zeros_like(U)
    perm = np.tile(np.arange(n), (B, 1))
    rows = np.arange(B)

    pivot_tol = scale_tol(U, eps)
    logger.debug("forward_eliminate: batch=%d n=%d eps=%g", B, n, eps)

    for k in range(n):
        # The computation is more stable if we pick the largest
        # absolute value at or below the diagonal as the pivot.
        piv = k + np.argmax(np.abs(U[:, k:, k]), axis=-1)

        # Swap rows k and piv of every running array
        for arr in (U, L, perm):
            row_k = arr[rows, k].copy()
            arr[rows, k] = arr[rows, piv]
            arr[rows, piv] = row_k

        pivot = U[:, k, k]
        nonzero = np.abs(pivot) > pivot_tol
        U[~nonzero, k, k] = 0  # column is numerically zero

        factors = U[:, k + 1 :, k] / np.where(nonzero, pivot, 1)[:, None]
        factors[~nonzero] = 0
        L[:, k + 1 :, k] = factors

        # Eliminate entries below the pivot
        U[:, k + 1 :, k:] -= factors[:, :, None] * U[:, None, k, k:]
        U[:, k + 1 :, k] = 0
        trailing = U[:, k + 1 :, k + 1 :]
        trailing[np.abs(trailing) <= pivot_tol[:, None, None]] = 0

    L += np.eye(n, dtype=L.dtype)
    return (
        unflatten_batch(L, batch_shape),
        unflatten_batch(U, batch_shape),
        perm.reshape(batch_shape + (n,)),
    )


def permutation_matrix(perm: np.ndarray, dtype=np.float64) -> np.ndarray:
    """
    Build P with P[..., perm[i], i] = 1, so that P @ (rows of A in
    `perm` order) == A.
    """
    perm = np.asarray(perm)
    n = perm.shape[-1]
    cols = np.broadcast_to(np.arange(n), perm.shape)
    return (perm[..., :, None] == cols[..., None, :]).swapaxes(-1, -2).astype(dtype)


def permutation_from_matrix(P: np.ndarray) -> np.ndarray:
    """Inverse of `permutation_matrix`: position each column of P points at."""
    return np.argmax(np.abs(np.asarray(P)), axis=-2)


def forward_substitute(L: np.ndarray, c: np.ndarray) -> np.ndarray:
    """
    Solve L x = c for a batch of lower-triangular L (B, n, n) and
    right-hand sides c (B, n, k). One row per step: O(n²) per column.
    """
    n = L.shape[-1]
    x = np.zeros(c.shape, dtype=np.result_type(L, c))
    for i in range(n):
        s = c[:, i, :] - (L[:, i, None, :i] @ x[:, :i, :])[:, 0, :]
        x[:, i, :] = s / L[:, i, i, None]
    return x


def back_substitute(U: np.ndarray, c: np.ndarray) -> np.ndarray:
    """
    Solve U x = c for a batch of upper-triangular U (B, n, n) and
    right-hand sides c (B, n, k), from the last row upwards.
    """
    n = U.shape[-1]
    x = np.zeros(c.shape, dtype=np.result_type(U, c))
    for i in reversed(range(n)):
        s = c[:, i, :] - (U[:, i, None, i + 1 :] @ x[:, i + 1 :, :])[:, 0, :]
        x[:, i, :] = s / U[:, i, i, None]
    return x


def substitute(
    A: np.ndarray,
    b: np.ndarray,
    lower: bool = True,
    left_side: bool = True,
    transform: str = "none",
) -> np.ndarray:
    """
    Batched triangular solve of op(A) X = B, or X op(A) = B when
    `left_side` is False. Shapes and options must already be validated.

    Raises
    ------
    SingularMatrixError : if a diagonal entry of A is (near-)zero.
    """
    vector = b.ndim == A.ndim - 1

    if transform == "transpose":
        A = np.swapaxes(A, -1, -2)
        lower = not lower
    if not left_side:
        # X op(A) = B  <=>  op(A)^T X^T = B^T
        A = np.swapaxes(A, -1, -2)
        lower = not lower
        if not vector:
            b = np.swapaxes(b, -1, -2)
    if vector:
        b = b[..., None]

    diag = np.abs(np.diagonal(A, axis1=-2, axis2=-1))
    if np.any(diag <= scale_tol(A)[..., None]):
        raise SingularMatrixError(matrix_name="a", min_pivot=float(diag.min()))

    A_flat, batch_shape = flatten_batch(A)
    b_flat, _ = flatten_batch(b)
    if lower:
        x = forward_substitute(A_flat, b_flat)
    else:
        x = back_substitute(A_flat, b_flat)
    x = unflatten_batch(x, batch_shape)

    if vector:
        return x[..., 0]
    if not left_side:
        return np.swapaxes(x, -1, -2)
    return x
