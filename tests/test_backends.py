# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import numpy as np
import pytest

from tensor_linalg import (
    Decomposer,
    LapackDecomposer,
    ReferenceDecomposer,
    determinant,
    get_decomposer,
    invert,
    matrix_rank,
    norm,
    pinv,
    solve,
)
from tensor_linalg.exceptions import UnsupportedOptionError


class CountingDecomposer(ReferenceDecomposer):
    """Reference strategy that records which primitives were called."""

    name = "counting"

    def __init__(self):
        self.calls = []

    def lu(self, a, eps):
        self.calls.append("lu")
        return super().lu(a, eps)

    def qr(self, a, mode, eps):
        self.calls.append("qr")
        return super().qr(a, mode, eps)

    def svd(self, a, max_iter, full_matrices):
        self.calls.append("svd")
        return super().svd(a, max_iter, full_matrices)


def test_get_decomposer():
    assert isinstance(get_decomposer(), ReferenceDecomposer)
    assert get_decomposer("reference").name == "reference"
    assert isinstance(get_decomposer("lapack"), LapackDecomposer)

    custom = CountingDecomposer()
    assert get_decomposer(custom) is custom


@pytest.mark.parametrize("value", ["magma", object()])
def test_get_decomposer_rejects(value):
    with pytest.raises(UnsupportedOptionError):
        get_decomposer(value)


def test_builtins_implement_protocol():
    assert isinstance(ReferenceDecomposer(), Decomposer)
    assert isinstance(LapackDecomposer(), Decomposer)


def test_composites_use_injected_decomposer():
    A = np.random.default_rng(0).standard_normal((5, 5))

    d = CountingDecomposer()
    solve(A, np.ones(5), decomposer=d)
    invert(A, decomposer=d)
    determinant(A, decomposer=d)
    pinv(A, decomposer=d)
    matrix_rank(A, decomposer=d)
    norm(A, ord="nuclear", decomposer=d)
    assert d.calls == ["qr", "qr", "lu", "svd", "svd", "svd"]


@pytest.mark.parametrize("shape", [(6, 6), (3, 4, 4)])
def test_strategies_agree(shape):
    A = np.random.default_rng(sum(shape)).standard_normal(shape)
    b = np.random.default_rng(1).standard_normal(shape[:-1])
    for op, args in [
        (solve, (A, b)),
        (invert, (A,)),
        (determinant, (A,)),
        (pinv, (A,)),
        (matrix_rank, (A,)),
    ]:
        np.testing.assert_allclose(
            op(*args, decomposer="lapack"), op(*args, decomposer="reference"), atol=1e-9
        )
