# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
PyTorch autograd bridge for the hand-written gradient rules.

Requires the `torch` extra. The forward pass runs on NumPy through
tensor_linalg; the backward pass calls the rule registered in
`tensor_linalg.gradients`.
"""

import numpy as np
import torch

from .gradients import get_gradient
from .solvers import invert


def _to_numpy(t: torch.Tensor) -> np.ndarray:
    return t.detach().cpu().numpy()


def _from_numpy(x: np.ndarray, like: torch.Tensor) -> torch.Tensor:
    return torch.from_numpy(np.ascontiguousarray(x)).to(device=like.device, dtype=like.dtype)


class Invert(torch.autograd.Function):
    @staticmethod
    def forward(ctx, a):
        ans = _from_numpy(invert(_to_numpy(a)), like=a)
        ctx.save_for_backward(ans)
        return ans

    @staticmethod
    def backward(ctx, g):
        (ans,) = ctx.saved_tensors
        rule = get_gradient("invert")
        return _from_numpy(rule(_to_numpy(ans), _to_numpy(g)), like=g)


def torch_invert(a: torch.Tensor) -> torch.Tensor:
    """Batched inverse of `a` that torch can differentiate."""
    return Invert.apply(a)
