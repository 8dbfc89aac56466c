# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging
from typing import Tuple

import numpy as np

from .utils import EIGH_EPS, EIGH_MAX_ITER, flatten_batch, unflatten_batch

logger = logging.getLogger(__name__)


def off_diagonal_norm(A: np.ndarray) -> np.ndarray:
    """Frobenius norm of the strictly off-diagonal part, per matrix."""
    off = np.array(A, copy=True)
    idx = np.arange(A.shape[-1])
    off[..., idx, idx] = 0
    return np.linalg.norm(off, axis=(-2, -1))


def _rotate(A: np.ndarray, V: np.ndarray, p: int, q: int) -> None:
    """
    Zero A[:, p, q] for every matrix of the batch with one unitary
    Jacobi rotation G, in place: A <- G^H A G and V <- V G.

    For complex entries the rotation first removes the phase of A[p, q],
    then applies the real symmetric Schur rotation
        tau = (a_qq - a_pp) / (2 |a_pq|)
        t   = sign(tau) / (|tau| + sqrt(1 + tau²))
        c   = 1 / sqrt(1 + t²),  s = t c
    """
    apq = A[:, p, q]
    abs_apq = np.abs(apq)
    active = abs_apq > np.finfo(abs_apq.dtype).tiny
    if not np.any(active):
        return

    safe = np.where(active, abs_apq, 1.0)
    phase = np.where(active, apq / safe, 1.0)
    tau = (A[:, q, q].real - A[:, p, p].real) / (2 * safe)
    t = np.where(tau >= 0, 1.0, -1.0) / (np.abs(tau) + np.sqrt(1 + tau**2))
    t = np.where(active, t, 0.0)
    c = 1 / np.sqrt(1 + t**2)
    s = t * c

    g_pp, g_pq = c, s
    g_qp, g_qq = -s * np.conj(phase), c * np.conj(phase)

    # A G and V G: only columns p and q change
    for M in (A, V):
        col_p, col_q = M[:, :, p].copy(), M[:, :, q].copy()
        M[:, :, p] = col_p * g_pp[:, None] + col_q * g_qp[:, None]
        M[:, :, q] = col_p * g_pq[:, None] + col_q * g_qq[:, None]

    # G^H (A G): only rows p and q change
    row_p, row_q = A[:, p, :].copy(), A[:, q, :].copy()
    A[:, p, :] = np.conj(g_pp)[:, None] * row_p + np.conj(g_qp)[:, None] * row_q
    A[:, q, :] = np.conj(g_pq)[:, None] * row_p + np.conj(g_qq)[:, None] * row_q
    A[:, p, q] = 0
    A[:, q, p] = 0


def jacobi_eigh(
    A: np.ndarray, max_iter: int = EIGH_MAX_ITER, eps: float = EIGH_EPS
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Eigenvalues and eigenvectors of a batch of Hermitian matrices by the
    cyclic Jacobi method.

    One iteration is a full sweep over every (p, q) pair above the
    diagonal. Iteration stops once the off-diagonal norm of every matrix
    is at most `eps` times its Frobenius norm, or after `max_iter` sweeps.
    Stopping on `max_iter` is not an error: the current diagonal is
    returned as an approximation and a warning is logged.

    Parameters
    ----------
    A : (..., n, n) ndarray
        Hermitian (real symmetric or complex Hermitian) matrices.
    max_iter : int
        Maximum number of sweeps.
    eps : float
        Relative convergence tolerance on the off-diagonal norm.

    Returns
    -------
    eigenvalues : (..., n) real ndarray, in diagonal order (not sorted)
    eigenvectors : (..., n, n) ndarray, columns are unit eigenvectors
    """
    A, batch_shape = flatten_batch(np.array(A, copy=True))
    B, n, _ = A.shape
    V = np.broadcast_to(np.eye(n, dtype=A.dtype), (B, n, n)).copy()

    scale = np.linalg.norm(A, axis=(-2, -1))
    tol = eps * np.where(scale > 0, scale, 1.0)

    sweeps = 0
    converged = off_diagonal_norm(A) <= tol
    while not np.all(converged) and sweeps < max_iter:
        for p in range(n - 1):
            for q in range(p + 1, n):
                _rotate(A, V, p, q)
        sweeps += 1
        converged = off_diagonal_norm(A) <= tol

    if not np.all(converged):
        logger.warning(
            "eigh: %d of %d matrices did not converge within max_iter=%d sweeps",
            int(np.sum(~converged)),
            B,
            max_iter,
        )
    logger.debug("eigh: batch=%d n=%d sweeps=%d", B, n, sweeps)

    eigenvalues = np.diagonal(A, axis1=-2, axis2=-1).real.copy()
    return (
        eigenvalues.reshape(batch_shape + (n,)),
        unflatten_batch(V, batch_shape),
    )
