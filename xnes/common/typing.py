# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Definitions of some convenient types.
If you know better practices, feel free to submit it ;)
"""
# pylint: disable=unused-import
# structures
from typing import Any as Any
from typing import Type as Type
from typing import TypeVar as TypeVar
from typing import Optional as Optional
from typing import Union as Union

# containers
from typing import Dict as Dict
from typing import Tuple as Tuple
from typing import List as List
from typing import Sequence as Sequence
from typing import NamedTuple as NamedTuple

# iterables
from typing import Iterator as Iterator
from typing import Iterable as Iterable

# others
from typing import Callable as Callable
from typing import Hashable as Hashable
from pathlib import Path as Path
from typing_extensions import Protocol

#
import numpy as _np


ArrayLike = Union[Tuple[float, ...], List[float], _np.ndarray]
PathLike = Union[str, Path]
FloatLoss = float
Loss = Union[float, ArrayLike]
BoundValue = Union[float, int, _np.integer, _np.floating, ArrayLike]


# %% Protocol definitions for collaborators typing


class ProblemLike(Protocol):
    # pylint: disable=pointless-statement

    @property
    def dimension(self) -> int:
        ...

    @property
    def bounds(self) -> Tuple[_np.ndarray, _np.ndarray]:
        ...

    @property
    def num_objectives(self) -> int:
        ...

    @property
    def num_constraints(self) -> int:
        ...

    @property
    def stochastic(self) -> bool:
        ...

    @property
    def num_evaluations(self) -> int:
        ...

    @property
    def name(self) -> str:
        ...

    def fitness(self, x: ArrayLike) -> _np.ndarray:
        ...

    def set_seed(self, seed: int) -> None:
        ...
