# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import numpy as np
import pytest

from tensor_linalg import cholesky
from tensor_linalg.exceptions import NotPositiveDefiniteError, ShapeError
from tensor_linalg.utils import adjoint


def random_spd(shape, seed=0):
    rng = np.random.default_rng(seed)
    n = shape[-1]
    M = rng.standard_normal(shape)
    return M @ adjoint(M) + n * np.eye(n)


def test_two_by_two():
    L = cholesky([[20.0, 17.6], [17.6, 16.0]])
    np.testing.assert_allclose(L, [[4.472136, 0.0], [3.935479, 0.715542]], atol=1e-6)


def test_batched_values():
    L = cholesky([[[2.0, 3.0], [3.0, 5.0]], [[1.0, 0.0], [0.0, 1.0]]])
    np.testing.assert_allclose(
        L,
        [[[1.414214, 0.0], [2.121320, 0.707107]], [[1.0, 0.0], [0.0, 1.0]]],
        atol=1e-6,
    )


def test_integer_input_is_promoted():
    L = cholesky([[4, 2], [2, 2]])
    assert L.dtype == np.float64
    np.testing.assert_allclose(L, [[2, 0], [1, 1]])


@pytest.mark.parametrize("shape", [(6, 6), (3, 4, 4), (2, 2, 5, 5)])
def test_reconstruction(shape):
    A = random_spd(shape, seed=sum(shape))
    L = cholesky(A)
    assert np.all(np.triu(L, 1) == 0)
    assert np.all(np.diagonal(L, axis1=-2, axis2=-1) > 0)
    np.testing.assert_allclose(L @ adjoint(L), A, atol=1e-10)


def test_complex_hermitian():
    L = cholesky([[1, -2j], [2j, 5]])
    assert L.dtype == np.complex128
    np.testing.assert_allclose(L, [[1, 0], [2j, 1]], atol=1e-12)


def test_matches_lapack():
    A = random_spd((3, 5, 5), seed=4)
    np.testing.assert_allclose(cholesky(A), cholesky(A, decomposer="lapack"), atol=1e-10)


def test_non_hermitian_raises():
    with pytest.raises(ShapeError, match="matrix must be hermitian"):
        cholesky([[1.0, 2.0], [3.0, 4.0]])


def test_non_square_raises():
    with pytest.raises(ShapeError, match="cholesky/1 expects a square matrix"):
        cholesky(np.ones((2, 3)))


@pytest.mark.parametrize("decomposer", ["reference", "lapack"])
def test_not_positive_definite(decomposer):
    with pytest.raises(NotPositiveDefiniteError):
        cholesky([[1.0, 2.0], [2.0, 1.0]], decomposer=decomposer)


def test_not_positive_definite_reports_pivot():
    with pytest.raises(NotPositiveDefiniteError, match="positive definite") as info:
        cholesky([[1.0, 2.0], [2.0, 1.0]])
    assert info.value.min_pivot == pytest.approx(-3.0)
