# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

from typing import Tuple

import numpy as np

# Singularity tolerance, scaled to the matrix magnitude by `scale_tol`
EPS: float = 1e-12

# Option defaults
DEFAULT_EPS: float = 1e-10
EIGH_MAX_ITER: int = 1000
EIGH_EPS: float = 1e-4
SVD_MAX_ITER: int = 100

HERMITIAN_RTOL: float = 1e-5
HERMITIAN_ATOL: float = 1e-8


def to_floating(dtype) -> np.dtype:
    """Promote `dtype` to the type arithmetic is carried out in."""
    dtype = np.dtype(dtype)
    if dtype.kind == "c":
        return dtype
    if dtype.kind == "f":
        return dtype if dtype.itemsize >= 4 else np.dtype(np.float32)
    return np.dtype(np.float64)


def to_real(dtype) -> np.dtype:
    """Floating counterpart of `dtype` with the imaginary part dropped."""
    dtype = to_floating(dtype)
    if dtype.kind == "c":
        return np.dtype(np.float32) if dtype.itemsize == 8 else np.dtype(np.float64)
    return dtype


def merge_types(*dtypes) -> np.dtype:
    return to_floating(np.result_type(*dtypes))


def scale_tol(A: np.ndarray, eps: float = EPS) -> np.ndarray:
    """
    Absolute tolerance scaled to the magnitude of each matrix in the batch.

    Returns an array with the batch shape of `A`.
    """
    norm_inf = np.abs(A).sum(axis=-1).max(axis=-1)
    return eps * np.maximum(1.0, norm_inf)


def permutation_parity(perm: np.ndarray) -> np.ndarray:
    """
    Number of inversions of each permutation in a batch, modulo 2.

    `perm` has shape (..., n); entry i holds the position row i came from.
    Each inversion is one transposition, so even parity means sign +1.
    """
    perm = np.asarray(perm)
    n = perm.shape[-1]
    upper = np.triu(np.ones((n, n), dtype=bool), k=1)
    inversions = (perm[..., :, None] > perm[..., None, :]) & upper
    return inversions.sum(axis=(-2, -1)) % 2


def permutation_sign(perm: np.ndarray) -> np.ndarray:
    """Return +1 or -1 per batch entry depending on permutation parity."""
    return 1 - 2 * permutation_parity(perm)


def adjoint(A) -> np.ndarray:
    """
    Swap the two inner-most axes of A, conjugating complex input.

    Tensors of rank < 2 are only conjugated.
    """
    A = np.asarray(A)
    if A.ndim >= 2:
        A = np.swapaxes(A, -1, -2)
    if np.iscomplexobj(A):
        A = np.conj(A)
    return A


def batch_eye(shape: Tuple[int, ...], dtype=np.float64) -> np.ndarray:
    """Identity matrices broadcast to `shape` = (..., n, n)."""
    n = shape[-1]
    return np.broadcast_to(np.eye(n, dtype=dtype), shape).copy()


def is_hermitian(A: np.ndarray) -> bool:
    return bool(
        np.allclose(A, adjoint(A), rtol=HERMITIAN_RTOL, atol=HERMITIAN_ATOL)
    )


def flatten_batch(A: np.ndarray) -> Tuple[np.ndarray, Tuple[int, ...]]:
    """
    Collapse the batch axes of a (..., m, n) array into one.

    Returns the (B, m, n) array and the original batch shape so that
    `unflatten_batch` can restore it.
    """
    batch_shape = A.shape[:-2]
    return A.reshape((-1,) + A.shape[-2:]), batch_shape


def unflatten_batch(A: np.ndarray, batch_shape: Tuple[int, ...]) -> np.ndarray:
    return A.reshape(batch_shape + A.shape[1:])
