# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging

import numpy as np

from .decompositions import lu, svd
from .elimination import permutation_from_matrix
from .shape import normalize_ord, resolve
from .solvers import invert
from .utils import DEFAULT_EPS, adjoint, batch_eye, permutation_sign

logger = logging.getLogger(__name__)


def determinant(A, *, decomposer=None) -> np.ndarray:
    """
    Determinant of a batch of square matrices, always floating.

    2x2 and 3x3 use the closed (Leibniz / Sarrus) formulas; larger
    matrices go through A = P L U with

        det(A) = sign(P) * prod(diag(U))

    where sign(P) comes from the inversion count of the row permutation.
    A zero on the diagonal of U makes the result exactly 0. The LU path uses
    the default `lu` threshold, so a 4x4 or larger matrix with every entry
    below 1e-10 also has determinant 0.
    """
    A = np.asarray(A)
    (out,) = resolve("determinant", [A.shape], [A.dtype])
    a = A.astype(out.dtype)
    n = a.shape[-1]

    if n == 2:
        det = a[..., 0, 0] * a[..., 1, 1] - a[..., 0, 1] * a[..., 1, 0]
    elif n == 3:
        rows = np.arange(3)
        diagonals = sum(np.prod(a[..., rows, (rows + j) % 3], axis=-1) for j in range(3))
        anti_diagonals = sum(
            np.prod(a[..., rows, (j - rows) % 3], axis=-1) for j in range(3)
        )
        det = diagonals - anti_diagonals
    else:
        P, _L, U = lu(a, decomposer=decomposer)
        diag = np.diagonal(U, axis1=-2, axis2=-1)
        sign = permutation_sign(permutation_from_matrix(P))
        det = sign * np.prod(diag, axis=-1)
        # rank deficient: exactly zero, whatever the sign
        det = np.where(np.any(diag == 0, axis=-1), 0, det)

    return np.asarray(det).astype(out.dtype, copy=False)


def matrix_power(A, power: int, *, decomposer=None) -> np.ndarray:
    """
    A raised to an integer power by repeated batched matrix products.

    power == 0 gives the identity, power < 0 inverts A first. Positive
    powers use binary exponentiation: O(log power) products, and the
    input dtype is kept (integer matrices stay integer).
    """
    A = np.asarray(A)
    (out,) = resolve("matrix_power", [A.shape], [A.dtype], {"power": power})
    power = int(power)

    if power < 0:
        return matrix_power(invert(A, decomposer=decomposer), -power)
    if power == 0:
        return batch_eye(A.shape, dtype=out.dtype)

    result = None
    square = A
    while True:
        if power & 1:
            result = square if result is None else result @ square
        power >>= 1
        if not power:
            break
        square = square @ square
    return np.array(result, dtype=out.dtype)


def _p_norm(x: np.ndarray, p: int, axes=None) -> np.ndarray:
    """
    (Σ |x|^p)^(1/p), divided through by max|x| before raising to the
    power so that large entries or large p do not overflow.
    """
    abs_x = np.abs(x)
    scale = abs_x.max() if abs_x.size else 0.0
    if not scale > 0:
        scale = 1.0
    axis = tuple(axes) if axes is not None else None
    with np.errstate(divide="ignore"):
        total = np.sum((abs_x / scale) ** p, axis=axis)
        return total ** (1.0 / p) * scale


def norm(A, ord=None, axes=None, *, decomposer=None) -> np.ndarray:
    """
    Vector or matrix norm of a 1-D or 2-D tensor.

    | ord          | 2-D                          | 1-D                      |
    | ------------ | ---------------------------- | ------------------------ |
    | None / 2     | Frobenius norm               | 2-norm                   |
    | 'frobenius'  | Frobenius norm               | -                        |
    | 'nuclear'    | sum of singular values       | -                        |
    | 'inf'        | max(sum(abs(x), axis=1))     | max(abs(x))              |
    | 'neg_inf'    | min(sum(abs(x), axis=1))     | min(abs(x))              |
    | 0            | -                            | number of non-zeros      |
    | 1            | max(sum(abs(x), axis=0))     | as below                 |
    | -1           | min(sum(abs(x), axis=0))     | as below                 |
    | -2           | smallest singular value      | as below                 |
    | other int p  | -                            | (Σ |x|^p)^(1/p)          |

    `axes` only applies to the 2-norm / Frobenius reduction. `float('inf')`
    and the NumPy spellings 'fro' / 'nuc' are also accepted.

    >>> float(norm([3, 4]))
    5.0
    """
    A = np.asarray(A)
    (out,) = resolve("norm", [A.shape], [A.dtype], {"ord": ord, "axes": axes})
    ord = normalize_ord(ord)
    rank = A.ndim
    x = A.astype(out.dtype) if A.dtype.kind != "c" else A

    if ord is None or ord == "frobenius":
        result = _p_norm(x, 2, axes)
    elif ord == "nuclear":
        result = np.sum(svd(x, decomposer=decomposer).S)
    elif ord in ("inf", "neg_inf"):
        reduce = np.max if ord == "inf" else np.min
        abs_x = np.abs(x)
        result = reduce(abs_x.sum(axis=1) if rank == 2 else abs_x)
    elif rank == 1 and ord == 0:
        result = np.count_nonzero(x)
    elif rank == 2 and ord in (1, -1):
        reduce = np.max if ord == 1 else np.min
        result = reduce(np.abs(x).sum(axis=0))
    elif rank == 2 and ord == -2:
        result = np.min(svd(x, decomposer=decomposer).S)
    else:
        result = _p_norm(x, ord, axes)

    return np.asarray(result).astype(out.dtype, copy=False)


def pinv(A, eps: float = DEFAULT_EPS, *, decomposer=None) -> np.ndarray:
    """
    Moore-Penrose pseudo-inverse.

    A tensor whose entries are all within `eps` of zero maps to the zero
    tensor of the transposed shape. Otherwise scalars give 1/x, vectors
    conj(x)/‖x‖², and matrices V Σ⁺ U^H from the SVD, where singular
    values below `eps` are treated as zero instead of being inverted.
    """
    A = np.asarray(A)
    (out,) = resolve("pinv", [A.shape], [A.dtype])
    x = A.astype(out.dtype)

    if np.all(np.abs(x) <= eps):
        return np.zeros(out.shape, dtype=out.dtype)
    if x.ndim == 0:
        return np.asarray(1 / x).astype(out.dtype, copy=False)
    if x.ndim == 1:
        return (np.conj(x) / np.sum(np.abs(x) ** 2)).astype(out.dtype, copy=False)

    U, S, Vt = svd(x, decomposer=decomposer)
    small = np.abs(S) < eps
    s_inv = np.where(small, 0, 1 / np.where(small, 1, S))
    return ((adjoint(Vt) * s_inv[..., None, :]) @ adjoint(U)).astype(
        out.dtype, copy=False
    )


def matrix_rank(A, eps: float = DEFAULT_EPS, *, decomposer=None):
    """
    Number of singular values greater than eps * max(m, n) * max(S), as
    in Numerical Recipes' discussion of SVD least squares.
    """
    A = np.asarray(A)
    (out,) = resolve("matrix_rank", [A.shape], [A.dtype])
    m, n = A.shape[-2:]
    S = svd(A, decomposer=decomposer).S
    if S.shape[-1] == 0:
        return np.zeros(out.shape, dtype=out.dtype)[()]
    tol = eps * max(m, n) * S.max(axis=-1, keepdims=True)
    logger.debug("matrix_rank: tolerance %s", tol.ravel())
    return np.sum(S > tol, axis=-1).astype(out.dtype)
