# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import warnings
import typing as tp
import numpy as np
from . import errors
from . import testing


def test_printed_assert_equal() -> None:
    testing.printed_assert_equal(0, 0)
    np.testing.assert_raises(AssertionError, testing.printed_assert_equal, 0, 1)


@testing.parametrized(
    one=(1, 2, 3),
    two=(2, 2, 4),
)
def test_parametrized(x: int, y: int, expected: int) -> None:
    assert x + y == expected


def test_suppress_xnes_warnings() -> None:
    with warnings.catch_warnings(record=True) as recorded:
        warnings.simplefilter("always")
        with testing.suppress_xnes_warnings():
            warnings.warn("blublu", errors.InefficientSettingsWarning)
        warnings.warn("other", UserWarning)
    categories: tp.List[tp.Any] = [w.category for w in recorded]
    assert categories == [UserWarning]
