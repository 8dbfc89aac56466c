# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Public factorizations of batched matrices.

Each function resolves its output templates first, so shape and option
errors are raised before any numeric work, then hands the promoted input
to the selected `Decomposer`.
"""

import logging
from typing import NamedTuple

import numpy as np

from .backends import get_decomposer
from .exceptions import ShapeError
from .shape import resolve
from .utils import (
    DEFAULT_EPS,
    EIGH_EPS,
    EIGH_MAX_ITER,
    SVD_MAX_ITER,
    is_hermitian,
)

logger = logging.getLogger(__name__)

HERMITIAN_MESSAGE = "matrix must be hermitian, a matrix is hermitian iff X = adjoint(X)"


class LUResult(NamedTuple):
    P: np.ndarray
    L: np.ndarray
    U: np.ndarray


class QRResult(NamedTuple):
    Q: np.ndarray
    R: np.ndarray


class EighResult(NamedTuple):
    eigenvalues: np.ndarray
    eigenvectors: np.ndarray


class SVDResult(NamedTuple):
    U: np.ndarray
    S: np.ndarray
    Vt: np.ndarray


def _select(op, decomposer):
    d = get_decomposer(decomposer)
    logger.debug("%s: using %s decomposer", op, d.name)
    return d


def _cast(x, template) -> np.ndarray:
    return np.asarray(x).astype(template.dtype, copy=False)


def cholesky(A, *, decomposer=None) -> np.ndarray:
    """
    Lower-triangular L with L @ L^H == A for a batch of Hermitian
    positive-definite matrices.

    >>> cholesky([[20.0, 17.6], [17.6, 16.0]]).round(3)
    array([[4.472, 0.   ],
           [3.935, 0.716]])
    """
    A = np.asarray(A)
    (out,) = resolve("cholesky", [A.shape], [A.dtype])
    a = A.astype(out.dtype)
    if not is_hermitian(a):
        raise ShapeError(HERMITIAN_MESSAGE)
    return _cast(_select("cholesky", decomposer).cholesky(a), out)


def lu(A, eps: float = DEFAULT_EPS, *, decomposer=None) -> LUResult:
    """
    A = P @ L @ U with partial pivoting, for a batch of square matrices.

    P is a permutation matrix in the input dtype, L is unit
    lower-triangular and U upper-triangular. Rank-deficient input gives
    exact zeros on the diagonal of U instead of raising.

    `eps` is an absolute threshold scaled by max(1, ‖A‖∞), so it never drops
    below `eps` itself: a matrix whose entries are all smaller than `eps`
    factors to U = 0. Pass a smaller `eps` for such matrices.
    """
    A = np.asarray(A)
    p_out, l_out, u_out = resolve("lu", [A.shape], [A.dtype], {"eps": eps})
    P, L, U = _select("lu", decomposer).lu(A.astype(l_out.dtype), eps)
    return LUResult(_cast(P, p_out), _cast(L, l_out), _cast(U, u_out))


def qr(A, mode: str = "reduced", eps: float = DEFAULT_EPS, *, decomposer=None) -> QRResult:
    """
    QR decomposition of a batch of m-by-n matrices, m >= n.

    mode='reduced' returns Q (..., m, k) and R (..., k, n) with k = min(m, n);
    mode='complete' returns Q (..., m, m) and R (..., m, n).
    """
    A = np.asarray(A)
    q_out, r_out = resolve("qr", [A.shape], [A.dtype], {"mode": mode})
    Q, R = _select("qr", decomposer).qr(A.astype(q_out.dtype), mode, eps)
    return QRResult(_cast(Q, q_out), _cast(R, r_out))


def eigh(
    A, max_iter: int = EIGH_MAX_ITER, eps: float = EIGH_EPS, *, decomposer=None
) -> EighResult:
    """
    Eigenvalues and eigenvectors of a batch of Hermitian matrices.

    Eigenvalues are not sorted. The reference strategy stops after
    `max_iter` sweeps even if `eps` was not reached and returns the
    approximation it has.
    """
    A = np.asarray(A)
    w_out, v_out = resolve("eigh", [A.shape], [A.dtype])
    a = A.astype(v_out.dtype)
    if not is_hermitian(a):
        raise ShapeError(HERMITIAN_MESSAGE)
    w, v = _select("eigh", decomposer).eigh(a, max_iter, eps)
    return EighResult(_cast(np.real(w), w_out), _cast(v, v_out))


def svd(
    A, max_iter: int = SVD_MAX_ITER, full_matrices: bool = False, *, decomposer=None
) -> SVDResult:
    """
    A = U @ diag(S) @ Vt for a batch of real matrices, S sorted from
    highest to lowest.

    Complex input raises NotImplementedYetError.
    """
    A = np.asarray(A)
    u_out, s_out, vt_out = resolve(
        "svd", [A.shape], [A.dtype], {"full_matrices": full_matrices}
    )
    U, S, Vt = _select("svd", decomposer).svd(
        A.astype(u_out.dtype), max_iter, full_matrices
    )
    return SVDResult(_cast(U, u_out), _cast(S, s_out), _cast(Vt, vt_out))
