# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging

import numpy as np
import pytest

from tensor_linalg import qr
from tensor_linalg.exceptions import ShapeError, UnsupportedOptionError
from tensor_linalg.qr import householder_qr
from tensor_linalg.utils import adjoint, batch_eye

TEST_ITERATIONS = 20
logger = logging.getLogger(__name__)


@pytest.mark.parametrize("shape", [(5, 3), (4, 4), (3, 6, 4), (2, 3, 5, 5)])
def test_reconstruction_and_orthogonality(shape):
    rng = np.random.default_rng(sum(shape))
    A = rng.standard_normal(shape)

    Q, R = qr(A)
    k = shape[-1]
    assert Q.shape == shape[:-1] + (k,)
    assert R.shape == shape[:-2] + (k, k)

    np.testing.assert_allclose(Q @ R, A, atol=1e-10)
    np.testing.assert_allclose(adjoint(Q) @ Q, batch_eye(shape[:-2] + (k, k)), atol=1e-10)
    assert np.all(np.tril(R, -1) == 0)


def test_complete_mode():
    rng = np.random.default_rng(7)
    A = rng.standard_normal((2, 5, 3))

    Q, R = qr(A, mode="complete")
    assert Q.shape == (2, 5, 5)
    assert R.shape == (2, 5, 3)
    np.testing.assert_allclose(Q @ R, A, atol=1e-10)
    np.testing.assert_allclose(adjoint(Q) @ Q, batch_eye((2, 5, 5)), atol=1e-10)
    assert np.all(R[:, 3:, :] == 0)


def test_orthogonality_householder_qr():
    for _ in range(TEST_ITERATIONS):
        V = np.random.randn(100, 10)
        Q, _ = householder_qr(V)
        identity = Q.T @ Q
        assert np.allclose(identity, np.eye(10), atol=1e-10)


def test_upper_triangular_input_is_left_alone():
    A = np.array([[-3.0, 2.0, 1.0], [0.0, 1.0, 1.0], [0.0, 0.0, -1.0]])
    Q, R = qr(A)
    np.testing.assert_array_equal(Q, np.eye(3))
    np.testing.assert_array_equal(R, A)


def test_tall_matrix_values():
    A = np.array([[3, 2, 1], [0, 1, 1], [0, 0, 1], [0, 0, 1]])
    Q, R = qr(A)
    assert Q.dtype == np.float64
    np.testing.assert_allclose(np.abs(Q[:, 2]), [0, 0, 0.7071068, 0.7071068], atol=1e-6)
    np.testing.assert_allclose(np.abs(R[2, 2]), np.sqrt(2), atol=1e-12)
    np.testing.assert_allclose(R[:2], [[3, 2, 1], [0, 1, 1]], atol=1e-12)


def test_complex_input():
    rng = np.random.default_rng(11)
    A = rng.standard_normal((3, 4, 3)) + 1j * rng.standard_normal((3, 4, 3))

    Q, R = qr(A)
    assert Q.dtype == np.complex128
    np.testing.assert_allclose(Q @ R, A, atol=1e-10)
    np.testing.assert_allclose(adjoint(Q) @ Q, batch_eye((3, 3, 3)), atol=1e-10)


def test_matches_lapack_up_to_signs():
    rng = np.random.default_rng(3)
    A = rng.standard_normal((6, 4))

    Q, R = qr(A)
    Q_np, R_np = np.linalg.qr(A)
    signs = np.sign(np.diagonal(R)) * np.sign(np.diagonal(R_np))
    np.testing.assert_allclose(Q * signs, Q_np, atol=1e-10)
    np.testing.assert_allclose(R * signs[:, None], R_np, atol=1e-10)


def test_wide_matrix_raises():
    with pytest.raises(ShapeError, match="at least as many rows as columns"):
        qr(np.ones((3, 4)))


def test_vector_raises():
    with pytest.raises(ShapeError, match="at least rank 2, got rank 1 with shape"):
        qr([1.0, 2.0, 3.0])


def test_invalid_mode_raises():
    with pytest.raises(UnsupportedOptionError, match="invalid mode"):
        qr(np.eye(3), mode="full")
