# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
import numpy as np
from xnes.common import testing
from . import corefuncs


@testing.parametrized(**{name: (name, func) for name, func in corefuncs.registry.items()})
def testcorefuncs_function(name: str, func: tp.Callable[..., tp.Any]) -> None:
    x = np.random.normal(0, 1, 100)
    outputs = []
    for _ in range(2):
        np.random.seed(12)
        outputs.append(func(x))
    np.testing.assert_equal(outputs[0], outputs[1], f"Function {name} is not deterministic")
    assert isinstance(outputs[0], float)


@testing.parametrized(
    sphere=(corefuncs.sphere, [0, 0, 0]),
    ellipsoid=(corefuncs.ellipsoid, [0, 0, 0]),
    rastrigin=(corefuncs.rastrigin, [0, 0, 0]),
    rosenbrock=(corefuncs.rosenbrock, [1, 1, 1]),
)
def test_optimum_value(func: tp.Callable[[np.ndarray], float], optimum: tp.List[float]) -> None:
    np.testing.assert_almost_equal(func(np.array(optimum, dtype=float)), 0.0)


def test_function_values() -> None:
    np.testing.assert_almost_equal(corefuncs.sphere(np.array([1.0, 2.0, 3.0, 4.0])), 30.0)
    np.testing.assert_almost_equal(corefuncs.ellipsoid(np.array([1.0, 1.0])), 1e6 + 1)
    np.testing.assert_almost_equal(corefuncs.rastrigin(np.array([0.5])), 20.25)
    np.testing.assert_almost_equal(corefuncs.rosenbrock(np.array([0.0, 0.0])), 1.0)
