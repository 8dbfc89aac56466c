# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

from typing import Tuple

import numpy as np

from .utils import DEFAULT_EPS, flatten_batch, unflatten_batch


def householder_qr(
    A: np.ndarray, mode: str = "reduced", eps: float = DEFAULT_EPS
) -> Tuple[np.ndarray, np.ndarray]:
    """
    QR decomposition of a batch of m-by-n matrices (m >= n) using
    Householder reflections.

    A = QR
    H = I - 2 w w^H,  ‖w‖ = 1
    w ∝ x + e^{i arg x0} ‖x‖ e₁

    Every reflector is built for one column index at a time but for all
    matrices of the batch at once. A column whose entries below the
    diagonal are already within `eps` of zero is left untouched, so
    matrices that are already upper-triangular come back with Q = I.

    Parameters
    ----------
    A : (..., m, n) floating or complex ndarray, m >= n
    mode : 'reduced' | 'complete'
    eps : float
        Rounding threshold used to skip reflections during triangularization.

    Returns
    -------
    Q : (..., m, k) or (..., m, m) ndarray | orthonormal columns
    R : (..., k, n) or (..., m, n) ndarray | upper-triangular
    """
    R, batch_shape = flatten_batch(np.array(A, copy=True))
    B, m, n = R.shape
    Q = np.broadcast_to(np.eye(m, dtype=R.dtype), (B, m, m)).copy()

    for j in range(min(m - 1, n)):
        # ---- build the reflector for column j, per batch entry --------------
        x = R[:, j:, j]
        below = np.linalg.norm(x[:, 1:], axis=-1)
        active = below > eps
        if not np.any(active):
            continue
        norm_x = np.linalg.norm(x, axis=-1)
        x0 = x[:, 0]
        abs_x0 = np.abs(x0)
        phase = np.where(abs_x0 > 0, x0 / np.where(abs_x0 > 0, abs_x0, 1), 1)

        w = x.copy()
        w[:, 0] += phase * norm_x
        w_norm = np.linalg.norm(w, axis=-1)
        w /= np.where(active, w_norm, 1.0)[:, None]
        w[~active] = 0  # H = I for the skipped entries
        w = w[:, :, None]  # column
        w_h = np.conj(w).transpose(0, 2, 1)

        # ---- apply H = I - 2 w w^H to R (from the left) ---------------------
        R[:, j:, :] -= 2 * w @ (w_h @ R[:, j:, :])
        # ---- accumulate Q = Q H ---------------------------------------------
        Q[:, :, j:] -= 2 * (Q[:, :, j:] @ w) @ w_h

    # force exact upper-triangular shape / zero the reflected-away noise
    R = np.triu(R)

    if mode == "reduced":
        k = min(m, n)
        Q, R = Q[:, :, :k], R[:, :k, :]

    return unflatten_batch(Q, batch_shape), unflatten_batch(R, batch_shape)
