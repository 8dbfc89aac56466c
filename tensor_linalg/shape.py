# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Shape and type resolution.

Every public operation first maps its input shapes and dtypes to output
`Template`s here. Nothing in this module looks at data, so a shape mismatch
is reported before any factorization starts and before a decomposer is
picked.
"""

import numbers
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from .exceptions import NotImplementedYetError, ShapeError, UnsupportedOptionError
from .utils import merge_types, to_floating, to_real

Shape = Tuple[int, ...]

QR_MODES = ("reduced", "complete")
TRANSFORMS = ("none", "transpose", "conjugate")


@dataclass(frozen=True)
class Template:
    """Shape and dtype of a result, without data."""

    shape: Shape
    dtype: np.dtype

    @property
    def ndim(self) -> int:
        return len(self.shape)


def _template(shape, dtype) -> Template:
    return Template(tuple(int(d) for d in shape), np.dtype(dtype))


def _assert_square(op: str, shape: Shape) -> None:
    if len(shape) < 2 or shape[-1] != shape[-2]:
        raise ShapeError(
            f"{op} expects a square matrix or a batch of square matrices, "
            f"got tensor with shape: {shape}"
        )


def _assert_rank_2(shape: Shape) -> None:
    if len(shape) < 2:
        raise ShapeError(
            f"tensor must have at least rank 2, got rank {len(shape)} "
            f"with shape {shape}"
        )


def _assert_real(op: str, dtype) -> None:
    if np.dtype(dtype).kind == "c":
        raise NotImplementedYetError(
            f"{op} is not yet implemented for complex inputs"
        )


# ---------------------------------------------------------------------
# Decompositions
# ---------------------------------------------------------------------


def cholesky_shape(shape: Shape, dtype) -> Tuple[Template]:
    shape = tuple(shape)
    _assert_square("cholesky/1", shape)
    return (_template(shape, to_floating(dtype)),)


def lu_shape(shape: Shape, dtype) -> Tuple[Template, Template, Template]:
    """P keeps the input dtype, L and U are floating."""
    shape = tuple(shape)
    _assert_square("lu/2", shape)
    out = to_floating(dtype)
    return _template(shape, dtype), _template(shape, out), _template(shape, out)


def qr_shape(shape: Shape, dtype, mode: str = "reduced") -> Tuple[Template, Template]:
    shape = tuple(shape)
    if mode not in QR_MODES:
        raise UnsupportedOptionError(
            f"invalid mode received. Expected one of {list(QR_MODES)}, "
            f"received: {mode!r}"
        )
    _assert_rank_2(shape)
    *batch, m, n = shape
    if m < n:
        raise ShapeError(
            "tensor must have at least as many rows as columns in the last "
            f"two axes, got {m} rows and {n} columns"
        )
    out = to_floating(dtype)
    batch = tuple(batch)
    if mode == "reduced":
        k = min(m, n)
        return _template(batch + (m, k), out), _template(batch + (k, n), out)
    return _template(batch + (m, m), out), _template(batch + (m, n), out)


def eigh_shape(shape: Shape, dtype) -> Tuple[Template, Template]:
    """Eigenvalues of a Hermitian matrix are real even for complex input."""
    shape = tuple(shape)
    _assert_square("eigh/2", shape)
    return (
        _template(shape[:-1], to_real(dtype)),
        _template(shape, to_floating(dtype)),
    )


def svd_shape(
    shape: Shape, dtype, full_matrices: bool = False
) -> Tuple[Template, Template, Template]:
    shape = tuple(shape)
    _assert_real("svd/2", dtype)
    _assert_rank_2(shape)
    *batch, m, n = shape
    batch = tuple(batch)
    k = min(m, n)
    out = to_floating(dtype)
    if full_matrices:
        u_shape, vt_shape = batch + (m, m), batch + (n, n)
    else:
        u_shape, vt_shape = batch + (m, k), batch + (k, n)
    return (
        _template(u_shape, out),
        _template(batch + (k,), out),
        _template(vt_shape, out),
    )


# ---------------------------------------------------------------------
# Solvers
# ---------------------------------------------------------------------


def validate_transform(transform: str) -> None:
    if transform not in TRANSFORMS:
        raise UnsupportedOptionError(
            "invalid value for transform option, expected one of "
            f"{list(TRANSFORMS)}, got: {transform!r}"
        )
    if transform == "conjugate":
        raise NotImplementedYetError("complex numbers not supported yet")


def triangular_solve_shape(
    a_shape: Shape,
    b_shape: Shape,
    a_type,
    b_type,
    lower: bool = True,
    left_side: bool = True,
    transform: str = "none",
) -> Tuple[Template]:
    """
    `b` is either a batch of vectors, shape (..., n), or a batch of
    matrices whose row count (left_side) or column count (right side)
    is n. Batch dimensions of a and b must be identical.
    """
    a_shape, b_shape = tuple(a_shape), tuple(b_shape)
    validate_transform(transform)
    _assert_square("triangular_solve/3", a_shape)
    batch, n = a_shape[:-2], a_shape[-1]

    if len(b_shape) == len(a_shape) - 1:
        compatible = b_shape == batch + (n,)
    elif len(b_shape) == len(a_shape):
        matched = b_shape[-2] if left_side else b_shape[-1]
        compatible = b_shape[:-2] == batch and matched == n
    else:
        compatible = False

    if not compatible:
        raise ShapeError("incompatible dimensions for a and b on triangular solve")
    return (_template(b_shape, merge_types(a_type, b_type)),)


def solve_shape(a_shape: Shape, b_shape: Shape, a_type, b_type) -> Tuple[Template]:
    a_shape, b_shape = tuple(a_shape), tuple(b_shape)
    if len(a_shape) < 2 or a_shape[-1] != a_shape[-2]:
        raise ShapeError(
            "`a` tensor has incompatible dimensions, expected a square matrix "
            f"or a batch of square matrices, got: {a_shape}"
        )
    batch, n = a_shape[:-2], a_shape[-1]
    vector = batch + (n,)
    if len(b_shape) == len(a_shape) - 1:
        compatible = b_shape == vector
    elif len(b_shape) == len(a_shape):
        compatible = b_shape[:-1] == vector
    else:
        compatible = False
    if not compatible:
        raise ShapeError(
            "`b` tensor has incompatible dimensions, expected "
            f"{a_shape} or {vector}, got: {b_shape}"
        )
    return (_template(b_shape, merge_types(a_type, b_type)),)


def invert_shape(shape: Shape, dtype) -> Tuple[Template]:
    shape = tuple(shape)
    _assert_square("invert/1", shape)
    return (_template(shape, to_floating(dtype)),)


# ---------------------------------------------------------------------
# Derived quantities
# ---------------------------------------------------------------------


def determinant_shape(shape: Shape, dtype) -> Tuple[Template]:
    shape = tuple(shape)
    _assert_square("determinant/1", shape)
    return (_template(shape[:-2], to_floating(dtype)),)


def matrix_power_shape(shape: Shape, dtype, power: int = 1) -> Tuple[Template]:
    """Non-negative powers keep the input dtype; negative ones go through invert."""
    shape = tuple(shape)
    if isinstance(power, bool) or not isinstance(power, numbers.Integral):
        raise UnsupportedOptionError(
            f"matrix_power/2 expects an integer power, got: {power!r}"
        )
    _assert_square("matrix_power/2", shape)
    out = np.dtype(dtype) if power >= 0 else to_floating(dtype)
    return (_template(shape, out),)


def normalize_ord(ord):
    """
    Map the accepted spellings of `ord` onto one canonical value:
    None, an int, or one of 'inf', 'neg_inf', 'frobenius', 'nuclear'.
    """
    if ord is None:
        return None
    if isinstance(ord, str):
        aliases = {
            "inf": "inf",
            "neg_inf": "neg_inf",
            "-inf": "neg_inf",
            "fro": "frobenius",
            "frobenius": "frobenius",
            "nuc": "nuclear",
            "nuclear": "nuclear",
        }
        if ord in aliases:
            return aliases[ord]
    elif isinstance(ord, numbers.Integral) and not isinstance(ord, bool):
        return int(ord)
    elif isinstance(ord, numbers.Real) and np.isinf(ord):
        return "inf" if ord > 0 else "neg_inf"
    raise UnsupportedOptionError(f"unknown ord {ord!r}")


def _uses_axes(ord, rank: int) -> bool:
    """Only the p-norm reduction honours `axes`."""
    if ord is None or ord == "frobenius":
        return True
    if isinstance(ord, int):
        return rank == 1 or ord == 2
    return False


def norm_shape(
    shape: Shape, dtype, ord=None, axes: Optional[Sequence[int]] = None
) -> Tuple[Template]:
    shape = tuple(shape)
    rank = len(shape)
    if rank not in (1, 2):
        raise ShapeError(f"expected 1-D or 2-D tensor, got tensor with shape {shape}")

    ord = normalize_ord(ord)
    if ord == "frobenius" and rank == 1:
        raise ShapeError("expected a 2-D tensor for ord: frobenius, got a 1-D tensor")
    if ord == "nuclear":
        if rank != 2:
            raise ShapeError("nuclear norm not supported for rank != 2")
        _assert_real("norm/2", dtype)
    if rank == 2 and isinstance(ord, int):
        if ord not in (-2, -1, 1, 2):
            raise UnsupportedOptionError(f"invalid ord for 2-D tensor, got: {ord}")
        if ord == -2:
            _assert_real("norm/2", dtype)

    out_shape: Shape = ()
    if axes is not None and _uses_axes(ord, rank):
        reduced = set()
        for axis in axes:
            if not -rank <= axis < rank:
                raise ShapeError(
                    f"given axis {axis} is out of bounds for tensor with shape {shape}"
                )
            reduced.add(axis % rank)
        out_shape = tuple(d for i, d in enumerate(shape) if i not in reduced)
    return (_template(out_shape, to_real(dtype)),)


def pinv_shape(shape: Shape, dtype) -> Tuple[Template]:
    shape = tuple(shape)
    if len(shape) >= 2:
        shape = shape[:-2] + (shape[-1], shape[-2])
    return (_template(shape, to_floating(dtype)),)


def matrix_rank_shape(shape: Shape, dtype) -> Tuple[Template]:
    shape = tuple(shape)
    _assert_rank_2(shape)
    _assert_real("matrix_rank/2", dtype)
    return (_template(shape[:-2], np.int64),)


# ---------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------

_RESOLVERS: Dict[str, tuple] = {
    "cholesky": (cholesky_shape, 1),
    "lu": (lu_shape, 1),
    "qr": (qr_shape, 1),
    "eigh": (eigh_shape, 1),
    "svd": (svd_shape, 1),
    "triangular_solve": (triangular_solve_shape, 2),
    "solve": (solve_shape, 2),
    "invert": (invert_shape, 1),
    "determinant": (determinant_shape, 1),
    "matrix_power": (matrix_power_shape, 1),
    "norm": (norm_shape, 1),
    "pinv": (pinv_shape, 1),
    "matrix_rank": (matrix_rank_shape, 1),
}


def resolve(
    op: str,
    input_shapes: Sequence[Shape],
    input_types: Sequence,
    options: Optional[dict] = None,
) -> Tuple[Template, ...]:
    """
    Compute the output templates of `op` without touching any data.

    Options that do not influence shape or dtype (eps, max_iter, ...) may be
    passed but are ignored.

    Example
    -------
    >>> resolve("qr", [(2, 5, 3)], [np.int64], {"mode": "complete"})
    (Template(shape=(2, 5, 5), dtype=dtype('float64')), Template(shape=(2, 5, 3), dtype=dtype('float64')))
    """
    if op not in _RESOLVERS:
        raise UnsupportedOptionError(f"unknown operation {op!r}")
    fn, arity = _RESOLVERS[op]
    if len(input_shapes) != arity or len(input_types) != arity:
        raise ShapeError(
            f"{op} expects {arity} input(s), got {len(input_shapes)} shape(s) "
            f"and {len(input_types)} type(s)"
        )
    options = dict(options or {})
    for ignored in ("eps", "max_iter", "decomposer"):
        options.pop(ignored, None)
    return fn(*[tuple(s) for s in input_shapes], *input_types, **options)
