# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Closed-form gradient rules, keyed by operation name.

An autodiff engine looks a rule up with `get_gradient(op)` and calls it as
`rule(ans, g)`, where `ans` is the forward result and `g` the upstream
gradient; the rule returns the gradient with respect to the input.
"""

from typing import Callable, Dict, List

import numpy as np

GradientRule = Callable[[np.ndarray, np.ndarray], np.ndarray]

_GRADIENTS: Dict[str, GradientRule] = {}


def register_gradient(op_name: str) -> Callable[[GradientRule], GradientRule]:
    def decorator(rule: GradientRule) -> GradientRule:
        _GRADIENTS[op_name] = rule
        return rule

    return decorator


def get_gradient(op_name: str) -> GradientRule:
    try:
        return _GRADIENTS[op_name]
    except KeyError:
        raise KeyError(f"no gradient registered for {op_name!r}") from None


def registered_gradients() -> List[str]:
    return sorted(_GRADIENTS)
