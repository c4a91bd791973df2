# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import xnes.common.typing as tp
from xnes.common.decorators import Registry


registry: Registry[tp.Callable[[np.ndarray], float]] = Registry()


@registry.register
def sphere(x: np.ndarray) -> float:
    """Squared euclidean norm, minimum 0 at the origin"""
    assert x.ndim == 1
    return float(np.sum(x ** 2))


@registry.register
def ellipsoid(x: np.ndarray) -> float:
    """Separable ill-conditioned quadratic, axis scales from 1 to 1e6"""
    scales = np.logspace(0, 6, num=x.size)
    return float(np.sum(scales * x ** 2))


@registry.register
def rastrigin(x: np.ndarray) -> float:
    """Highly multimodal, global minimum 0 at the origin"""
    return float(np.sum(x ** 2 - 10 * np.cos(2 * np.pi * x) + 10))


@registry.register
def rosenbrock(x: np.ndarray) -> float:
    # curved valley, minimum 0 at (1, ..., 1)
    valley = x[1:] - x[:-1] ** 2
    return float(np.sum(100 * valley ** 2 + (1 - x[:-1]) ** 2))
