# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import numpy as np

from .decompositions import qr
from .elimination import substitute
from .gradients import register_gradient
from .shape import resolve
from .utils import adjoint, batch_eye


def triangular_solve(
    A, B, lower: bool = True, left_side: bool = True, transform: str = "none"
) -> np.ndarray:
    """
    Solve op(A) X = B (or X op(A) = B when `left_side` is False) for a
    batch of triangular A by forward/back substitution.

    Parameters
    ----------
    A : (..., n, n) array_like
        Triangular matrices; only the half selected by `lower` is read.
    B : (..., n) or (..., n, k) array_like
        Right-hand sides with the same batch dimensions as A. For
        `left_side=False` the matrix case is (..., k, n).
    transform : 'none' | 'transpose'
        op(A). 'conjugate' raises NotImplementedYetError.

    Raises
    ------
    SingularMatrixError : if A has a (near-)zero diagonal entry.

    >>> triangular_solve([[3, 0, 0, 0], [2, 1, 0, 0], [1, 0, 1, 0], [1, 1, 1, 1]],
    ...                  [4, 2, 4, 2]).round(3)
    array([ 1.333, -0.667,  2.667, -1.333])
    """
    A, B = np.asarray(A), np.asarray(B)
    (out,) = resolve(
        "triangular_solve",
        [A.shape, B.shape],
        [A.dtype, B.dtype],
        {"lower": lower, "left_side": left_side, "transform": transform},
    )
    x = substitute(
        A.astype(out.dtype),
        B.astype(out.dtype),
        lower=lower,
        left_side=left_side,
        transform=transform,
    )
    return x.astype(out.dtype, copy=False)


def solve(A, B, *, decomposer=None) -> np.ndarray:
    """
    Solve A X = B for a batch of square A.

    A is factored as Q R; the system R X = Q^H B is then solved by back
    substitution. Going through the orthogonal factor keeps the solve
    well behaved for ill-conditioned A.

    B is (..., n) or (..., n, k); X has the shape of B.
    """
    A, B = np.asarray(A), np.asarray(B)
    (out,) = resolve("solve", [A.shape, B.shape], [A.dtype, B.dtype])
    a, b = A.astype(out.dtype), B.astype(out.dtype)

    vector = b.ndim == a.ndim - 1
    if vector:
        b = b[..., None]

    Q, R = qr(a, decomposer=decomposer)
    x = triangular_solve(R, adjoint(Q) @ b, lower=False)
    if vector:
        x = x[..., 0]
    return x.astype(out.dtype, copy=False)


def invert(A, *, decomposer=None) -> np.ndarray:
    """
    Inverse of a batch of square matrices, as solve(A, I).

    For non-square matrices use `pinv`.

    Raises
    ------
    SingularMatrixError : if any matrix of the batch is singular, including
        matrices whose diagonal after QR is below 1e-12 in magnitude.
    """
    A = np.asarray(A)
    (out,) = resolve("invert", [A.shape], [A.dtype])
    identity = batch_eye(A.shape, dtype=out.dtype)
    return solve(A.astype(out.dtype), identity, decomposer=decomposer)


@register_gradient("invert")
def invert_grad(ans: np.ndarray, g: np.ndarray) -> np.ndarray:
    """d invert(A) with upstream gradient G: -Y^H G Y^H, where Y = invert(A)."""
    ans_h = adjoint(ans)
    return -(ans_h @ g @ ans_h)
