# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
import numpy as np
from . import tools
from . import testing


class _Dummy:
    def __init__(self, a: int = 1, b: tp.Optional[float] = None, _c: str = "c") -> None:
        self.a = a
        self.b = b
        self._c = _c


def test_different_from_defaults() -> None:
    instance = _Dummy(a=2, _c="d")
    output = tools.different_from_defaults(instance=instance)
    testing.printed_assert_equal(output, {"a": 2})
    output = tools.different_from_defaults(instance=instance, instance_dict={"a": 1, "b": 0.5, "_c": "c"})
    testing.printed_assert_equal(output, {"b": 0.5})


def test_different_from_defaults_mismatch() -> None:
    np.testing.assert_raises(
        RuntimeError,
        tools.different_from_defaults,
        instance=_Dummy(),
        instance_dict={"a": 1},
        check_mismatches=True,
    )


@testing.parametrized(
    float_val=(0.123456789, "0.123457"),
    np_float=(np.float64(1e-7), "1e-07"),
    int_val=(12, "12"),
    none=(None, "None"),
)
def test_format_value(value: tp.Any, expected: str) -> None:
    assert tools.format_value(value) == expected
