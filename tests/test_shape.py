# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import numpy as np
import pytest

from tensor_linalg import Template, qr, resolve, solve
from tensor_linalg.exceptions import (
    NotImplementedYetError,
    ShapeError,
    UnsupportedOptionError,
)
from tensor_linalg.shape import TRANSFORMS, normalize_ord, validate_transform
from tensor_linalg.utils import to_floating, to_real


def test_qr_templates():
    q, r = resolve("qr", [(2, 5, 3)], [np.int64], {"mode": "complete"})
    assert q == Template((2, 5, 5), np.dtype(np.float64))
    assert r == Template((2, 5, 3), np.dtype(np.float64))

    q, r = resolve("qr", [(5, 3)], [np.float32])
    assert q.shape == (5, 3) and r.shape == (3, 3)
    assert q.dtype == np.float32


@pytest.mark.parametrize(
    "full_matrices,shapes",
    [(False, [(4, 6, 3), (4, 3), (4, 3, 3)]), (True, [(4, 6, 6), (4, 3), (4, 3, 3)])],
)
def test_svd_templates(full_matrices, shapes):
    templates = resolve("svd", [(4, 6, 3)], [np.float64], {"full_matrices": full_matrices})
    assert [t.shape for t in templates] == shapes


def test_eigh_eigenvalues_are_real():
    w, v = resolve("eigh", [(3, 3)], [np.complex64])
    assert w == Template((3,), np.dtype(np.float32))
    assert v == Template((3, 3), np.dtype(np.complex64))


def test_lu_keeps_input_type_for_p():
    p, l, u = resolve("lu", [(2, 4, 4)], [np.int32])
    assert p.dtype == np.int32
    assert l.dtype == u.dtype == np.float64
    assert p.shape == l.shape == u.shape == (2, 4, 4)


def test_batch_outputs():
    assert resolve("determinant", [(3, 2, 5, 5)], [np.float64])[0].shape == (3, 2)
    assert resolve("matrix_rank", [(7, 4, 2)], [np.float64])[0] == Template(
        (7,), np.dtype(np.int64)
    )
    assert resolve("pinv", [(7, 4, 2)], [np.int64])[0].shape == (7, 2, 4)
    assert resolve("pinv", [(3,)], [np.float64])[0].shape == (3,)


def test_matrix_power_types():
    assert resolve("matrix_power", [(3, 3)], [np.int64], {"power": 3})[0].dtype == np.int64
    assert resolve("matrix_power", [(3, 3)], [np.int64], {"power": -1})[0].dtype == np.float64
    with pytest.raises(UnsupportedOptionError):
        resolve("matrix_power", [(3, 3)], [np.int64], {"power": 1.5})


def test_norm_templates():
    assert resolve("norm", [(3, 4)], [np.float64])[0].shape == ()
    assert resolve("norm", [(3, 4)], [np.float64], {"axes": [1]})[0].shape == (3,)
    assert resolve("norm", [(3, 4)], [np.complex128], {"axes": [0]})[0] == Template(
        (4,), np.dtype(np.float64)
    )
    with pytest.raises(ShapeError, match="out of bounds"):
        resolve("norm", [(3, 4)], [np.float64], {"axes": [2]})


@pytest.mark.parametrize(
    "a_shape,b_shape,options,expected",
    [
        ((2, 3, 3), (2, 3), {}, (2, 3)),
        ((3, 3), (3, 5), {}, (3, 5)),
        ((3, 3), (5, 3), {"left_side": False}, (5, 3)),
    ],
)
def test_triangular_solve_templates(a_shape, b_shape, options, expected):
    (x,) = resolve(
        "triangular_solve", [a_shape, b_shape], [np.float64, np.int64], options
    )
    assert x == Template(expected, np.dtype(np.float64))


@pytest.mark.parametrize(
    "a_shape,b_shape",
    [((3, 3), (4,)), ((3, 3), (5, 3)), ((2, 3, 3), (3, 3)), ((3, 3), (2, 2, 3))],
)
def test_triangular_solve_incompatible(a_shape, b_shape):
    with pytest.raises(ShapeError, match="incompatible dimensions for a and b"):
        resolve("triangular_solve", [a_shape, b_shape], [np.float64, np.float64])


def test_square_message():
    with pytest.raises(ShapeError) as info:
        resolve("invert", [(2, 4)], [np.float64])
    assert str(info.value) == (
        "invert/1 expects a square matrix or a batch of square matrices, "
        "got tensor with shape: (2, 4)"
    )


@pytest.mark.parametrize(
    "op,shapes",
    [
        ("cholesky", [(3,)]),
        ("lu", [(2, 3)]),
        ("eigh", [(4, 3)]),
        ("determinant", [(5,)]),
        ("matrix_power", [(2, 3)]),
        ("solve", [(2, 3), (2,)]),
        ("matrix_rank", [(3,)]),
    ],
)
def test_shape_errors(op, shapes):
    with pytest.raises(ShapeError):
        resolve(op, shapes, [np.float64] * len(shapes))


def test_complex_not_implemented():
    with pytest.raises(NotImplementedYetError):
        resolve("svd", [(3, 3)], [np.complex128])
    with pytest.raises(NotImplementedYetError, match="complex numbers not supported yet"):
        resolve(
            "triangular_solve",
            [(3, 3), (3,)],
            [np.float64, np.float64],
            {"transform": "conjugate"},
        )


def test_unknown_op_and_arity():
    with pytest.raises(UnsupportedOptionError, match="unknown operation"):
        resolve("expm", [(3, 3)], [np.float64])
    with pytest.raises(ShapeError, match="expects 2 input"):
        resolve("solve", [(3, 3)], [np.float64])


def test_numeric_options_are_ignored():
    (l,) = resolve("cholesky", [(3, 3)], [np.float64], {"eps": 1e-3, "max_iter": 3})
    assert l.shape == (3, 3)


def test_shape_error_before_any_factorization():
    class Exploding:
        name = "exploding"

        def __getattr__(self, item):
            raise AssertionError("decomposer must not be reached")

    with pytest.raises(ShapeError):
        qr(np.ones((3, 4)), decomposer=Exploding())
    with pytest.raises(ShapeError):
        solve(np.ones((3, 3)), np.ones(4), decomposer=Exploding())


@pytest.mark.parametrize(
    "ord,expected",
    [
        (None, None),
        (2, 2),
        (-1, -1),
        ("fro", "frobenius"),
        ("nuc", "nuclear"),
        ("-inf", "neg_inf"),
        (float("inf"), "inf"),
        (-np.inf, "neg_inf"),
    ],
)
def test_normalize_ord(ord, expected):
    assert normalize_ord(ord) == expected


@pytest.mark.parametrize("ord", ["max", 1.5, True])
def test_normalize_ord_rejects(ord):
    with pytest.raises(UnsupportedOptionError):
        normalize_ord(ord)


@pytest.mark.parametrize(
    "dtype,floating,real",
    [
        (np.int8, np.float64, np.float64),
        (np.bool_, np.float64, np.float64),
        (np.float16, np.float32, np.float32),
        (np.float32, np.float32, np.float32),
        (np.complex64, np.complex64, np.float32),
        (np.complex128, np.complex128, np.float64),
    ],
)
def test_type_promotion(dtype, floating, real):
    assert to_floating(dtype) == floating
    assert to_real(dtype) == real


@pytest.mark.parametrize("transform", TRANSFORMS)
def test_validate_transform_accepts_declared_set(transform):
    if transform == "conjugate":
        with pytest.raises(NotImplementedYetError):
            validate_transform(transform)
    else:
        validate_transform(transform)


@pytest.mark.parametrize("transform", ["adjoint", "", None])
def test_validate_transform_rejects(transform):
    with pytest.raises(UnsupportedOptionError, match="invalid value for transform option"):
        validate_transform(transform)
