# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging

import numpy as np

from .qr import householder_qr
from .utils import SVD_MAX_ITER, flatten_batch, unflatten_batch

logger = logging.getLogger(__name__)


def jacobi_svd(
    A: np.ndarray, max_iter: int = SVD_MAX_ITER, full_matrices: bool = False
):
    """
    Singular Value Decomposition of a batch of real m-by-n matrices using
    one-sided (Hestenes) Jacobi rotations.

    For m ≥ n this routine returns three objects:
        U : m-by-n matrix whose columns are orthonormal (m-by-m if full_matrices)
        s : length-n vector of singular values, sorted in descending order
        Vt: n-by-n matrix whose rows are orthonormal  (V.T)

    Algorithm outline
    -----------------
    1.  Start from W = A and V = I.
    2.  Sweep over every column pair (p, q) and rotate both W and V so
        that columns p and q of W become orthogonal:
            zeta = (‖w_q‖² - ‖w_p‖²) / (2 w_p·w_q)
            t    = sign(zeta) / (|zeta| + sqrt(1 + zeta²))
        A sweep without any rotation means convergence; at most
        `max_iter` sweeps are run.
    3.  The column norms of W are the singular values, W / s gives U.
    4.  Left singular vectors of zero singular values are completed to an
        orthonormal basis with a Householder QR of the known columns.
    """
    A = np.asarray(A)
    m, n = A.shape[-2:]

    # Handle the wide-matrix case by transposing and swapping the roles
    # of left and right singular vectors.
    if m < n:
        U, s, Vt = jacobi_svd(np.swapaxes(A, -1, -2), max_iter, full_matrices)
        return np.swapaxes(Vt, -1, -2), s, np.swapaxes(U, -1, -2)

    W, batch_shape = flatten_batch(np.array(A, copy=True))
    B = W.shape[0]
    V = np.broadcast_to(np.eye(n, dtype=W.dtype), (B, n, n)).copy()
    eps = np.finfo(W.dtype).eps
    tol = eps * m

    sweeps = 0
    converged = False
    while not converged and sweeps < max_iter:
        converged = True
        for p in range(n - 1):
            for q in range(p + 1, n):
                alpha = np.sum(W[:, :, p] ** 2, axis=-1)
                beta = np.sum(W[:, :, q] ** 2, axis=-1)
                gamma = np.sum(W[:, :, p] * W[:, :, q], axis=-1)
                active = np.abs(gamma) > tol * np.sqrt(alpha * beta)
                if not np.any(active):
                    continue
                converged = False

                zeta = (beta - alpha) / (2 * np.where(active, gamma, 1.0))
                t = np.where(zeta >= 0, 1.0, -1.0) / (
                    np.abs(zeta) + np.sqrt(1 + zeta**2)
                )
                t = np.where(active, t, 0.0)
                c = 1 / np.sqrt(1 + t**2)
                s = t * c
                for M in (W, V):
                    col_p, col_q = M[:, :, p].copy(), M[:, :, q].copy()
                    M[:, :, p] = c[:, None] * col_p - s[:, None] * col_q
                    M[:, :, q] = s[:, None] * col_p + c[:, None] * col_q
        sweeps += 1

    if not converged:
        logger.warning("svd: did not converge within max_iter=%d sweeps", max_iter)
    logger.debug("svd: batch=%d shape=(%d, %d) sweeps=%d", B, m, n, sweeps)

    # Singular values are the column norms; sort them largest first.
    s = np.linalg.norm(W, axis=-2)
    order = np.argsort(-s, axis=-1, kind="stable")
    s = np.take_along_axis(s, order, axis=-1)
    W = np.take_along_axis(W, order[:, None, :], axis=-1)
    V = np.take_along_axis(V, order[:, None, :], axis=-1)

    # Numerical rank: how many singular values are clearly non-zero?
    s_max = s[:, :1] if n else np.zeros((B, 1))
    nonzero = s > eps * max(m, n) * s_max
    U = W / np.where(nonzero, s, 1.0)[:, None, :]
    U[np.broadcast_to(~nonzero[:, None, :], U.shape)] = 0

    if full_matrices or not np.all(nonzero):
        basis, _ = householder_qr(U, mode="complete")
        U = np.where(nonzero[:, None, :], U, basis[:, :, :n])
        if full_matrices:
            U = np.concatenate([U, basis[:, :, n:]], axis=-1)

    return (
        unflatten_batch(U, batch_shape),
        s.reshape(batch_shape + s.shape[-1:]),
        unflatten_batch(np.swapaxes(V, -1, -2), batch_shape),
    )
