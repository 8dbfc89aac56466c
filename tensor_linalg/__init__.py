# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
tensor_linalg
=============

Batched linear algebra on N-dimensional NumPy arrays. The two trailing
axes of every input hold a matrix, the leading axes are an arbitrary batch
of independent matrices.

Public API
~~~~~~~~~~
- Decompositions
    - `cholesky`, `lu`, `qr`, `eigh`, `svd`
- Linear systems
    - `triangular_solve`, `solve`, `invert`
- Matrix functions
    - `determinant`, `matrix_power`, `norm`, `pinv`, `matrix_rank`,
      `adjoint`
- Shape resolution
    - `resolve`, `Template`
- Strategies
    - `Decomposer`, `ReferenceDecomposer`, `LapackDecomposer`,
      `get_decomposer`
- Gradients
    - `register_gradient`, `get_gradient`

Everything else lives in sub-modules and is **not** considered part of the
stable interface.

Example
-------
>>> import numpy as np, tensor_linalg as tla
>>> A = np.random.randn(4, 5, 3)
>>> Q, R = tla.qr(A)
>>> np.allclose(Q @ R, A)
True
"""

from importlib.metadata import version as _pkg_version

from .backends import (
    Decomposer,
    LapackDecomposer,
    ReferenceDecomposer,
    get_decomposer,
)
from .decompositions import (
    EighResult,
    LUResult,
    QRResult,
    SVDResult,
    cholesky,
    eigh,
    lu,
    qr,
    svd,
)
from .exceptions import (
    LinAlgError,
    NotImplementedYetError,
    NotPositiveDefiniteError,
    NumericalError,
    ShapeError,
    SingularMatrixError,
    UnsupportedOptionError,
)
from .gradients import get_gradient, register_gradient
from .matrix_functions import (
    determinant,
    matrix_power,
    matrix_rank,
    norm,
    pinv,
)
from .shape import Template, resolve
from .solvers import invert, solve, triangular_solve
from .utils import adjoint

__all__ = [
    "cholesky",
    "lu",
    "qr",
    "eigh",
    "svd",
    "triangular_solve",
    "solve",
    "invert",
    "determinant",
    "matrix_power",
    "norm",
    "pinv",
    "matrix_rank",
    "adjoint",
    "LUResult",
    "QRResult",
    "EighResult",
    "SVDResult",
    "Template",
    "resolve",
    "Decomposer",
    "ReferenceDecomposer",
    "LapackDecomposer",
    "get_decomposer",
    "register_gradient",
    "get_gradient",
    "LinAlgError",
    "ShapeError",
    "UnsupportedOptionError",
    "NotImplementedYetError",
    "NumericalError",
    "SingularMatrixError",
    "NotPositiveDefiniteError",
]

# ---------------------------------------------------------------------
# Version string (helps “pip show tensor-linalg”, Sphinx, etc.)
# ---------------------------------------------------------------------
try:  # installed via pip / build backend
    __version__ = _pkg_version("tensor-linalg")
except Exception:  # running from a checkout
    __version__ = "0.0.0.dev0"

# ---------------------------------------------------------------------
# Optional: lightweight default logging config so users see warnings
# only if they deliberately enable them.
# ---------------------------------------------------------------------
import logging as _logging

_logging.getLogger(__name__).addHandler(_logging.NullHandler())
