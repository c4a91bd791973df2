# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import copy
import numpy as np
import xnes.common.typing as tp
from xnes.common import errors
from . import corefuncs

P = tp.TypeVar("P", bound="Problem")


# pylint: disable=too-many-instance-attributes
class Problem:
    """Box-bounded black-box problem: combines a function, its bounds and its shape
    (number of objectives and constraints), and counts the evaluations.

    Parameters
    ----------
    function: callable
        the callable to minimize, taking a 1D np.ndarray and returning a float
        (or a sequence of num_objectives + num_constraints floats)
    lower: float or array-like
        lower bounds of the box (broadcasted to the dimension if a float is provided)
    upper: float or array-like
        upper bounds of the box
    dimension: int (optional)
        dimension of the space, required if both bounds are floats
    num_objectives: int
        number of objectives returned by the function
    num_constraints: int
        number of constraints returned by the function (after the objectives)
    noise_level: float
        standard deviation of an additive gaussian noise on the objectives.
        The problem is stochastic if it is strictly positive, and its seed can then be
        set through :code:`set_seed`.
    name: str (optional)
        name of the problem, defaults to the name of the function

    Note
    ----
    The function is never evaluated out of the bounds by the algorithms of this package,
    but calling :code:`fitness` out of the bounds is not forbidden.
    """

    def __init__(
        self,
        function: tp.Callable[[np.ndarray], tp.Loss],
        lower: tp.BoundValue,
        upper: tp.BoundValue,
        *,
        dimension: tp.Optional[int] = None,
        num_objectives: int = 1,
        num_constraints: int = 0,
        noise_level: float = 0.0,
        name: tp.Optional[str] = None,
    ) -> None:
        if not callable(function):
            raise errors.XnesTypeError(f"function must be callable, got {function!r}")
        bounds = [np.array(b, dtype=float).ravel() for b in (lower, upper)]
        size = max(b.size for b in bounds) if dimension is None else int(dimension)
        lower_, upper_ = (np.full(size, b[0]) if b.size == 1 else b for b in bounds)
        if not size or lower_.size != size or upper_.size != size:
            raise errors.XnesValueError(
                f"Bounds must be non-empty and of same length, got {lower_.size} and {upper_.size} values"
                + ("" if dimension is None else f" for dimension {dimension}")
            )
        if not (np.all(np.isfinite(lower_)) and np.all(np.isfinite(upper_))):
            raise errors.XnesValueError("Bounds must be finite")
        if np.any(lower_ > upper_):
            raise errors.XnesValueError(f"Lower bounds {lower_} must be lower or equal to upper bounds {upper_}")
        if num_objectives < 1:
            raise errors.XnesValueError(f"num_objectives must be at least 1, got {num_objectives}")
        if num_constraints < 0:
            raise errors.XnesValueError(f"num_constraints must be non-negative, got {num_constraints}")
        if noise_level < 0:
            raise errors.XnesValueError(f"noise_level must be non-negative, got {noise_level}")
        self._function = function
        self._lower = lower_
        self._upper = upper_
        self._num_objectives = int(num_objectives)
        self._num_constraints = int(num_constraints)
        self._noise_level = float(noise_level)
        self._num_evaluations = 0
        self._random_state: tp.Optional[np.random.RandomState] = None
        if name is None:
            name = function.__name__ if hasattr(function, "__name__") else function.__class__.__name__
        self._name = name

    @classmethod
    def from_registry(
        cls: tp.Type[P],
        function_name: str,
        dimension: int,
        lower: tp.BoundValue = -5.0,
        upper: tp.BoundValue = 5.0,
        noise_level: float = 0.0,
    ) -> P:
        """Creates a single objective problem from one of the core functions
        (eg: "sphere", "rosenbrock", "rastrigin")
        """
        if function_name not in corefuncs.registry:
            raise errors.XnesValueError(
                f'Unknown function "{function_name}", choose among {sorted(corefuncs.registry)}'
            )
        return cls(corefuncs.registry[function_name], lower, upper, dimension=dimension, noise_level=noise_level)

    @property
    def name(self) -> str:
        return self._name

    @property
    def dimension(self) -> int:
        return self._lower.size

    @property
    def bounds(self) -> tp.Tuple[np.ndarray, np.ndarray]:
        """Lower and upper bounds, as copies"""
        return self._lower.copy(), self._upper.copy()

    @property
    def num_objectives(self) -> int:
        return self._num_objectives

    @property
    def num_constraints(self) -> int:
        return self._num_constraints

    @property
    def noise_level(self) -> float:
        return self._noise_level

    @property
    def stochastic(self) -> bool:
        return self._noise_level > 0

    @property
    def num_evaluations(self) -> int:
        """int: number of calls to :code:`fitness` since creation"""
        return self._num_evaluations

    @property
    def random_state(self) -> np.random.RandomState:
        """Random state the noise is pulled from. It can be seeded through :code:`set_seed`."""
        if self._random_state is None:
            seed = np.random.randint(2 ** 32, dtype=np.uint32)
            self._random_state = np.random.RandomState(seed)
        return self._random_state

    def set_seed(self, seed: int) -> None:
        """Seeds the noise of a stochastic problem"""
        if not self.stochastic:
            raise errors.XnesRuntimeError(f"Cannot set the seed of deterministic problem {self.name}")
        self._random_state = np.random.RandomState(seed)

    def fitness(self, x: tp.ArrayLike) -> np.ndarray:
        """Evaluates the function at x and returns the fitness vector
        (objectives first, then constraints)
        """
        data = np.array(x, dtype=float, copy=True)
        if data.shape != (self.dimension,):
            raise errors.XnesValueError(f"Expected a decision vector of shape {(self.dimension,)}, got {data.shape}")
        value = np.array(self._function(data), dtype=float).ravel()
        expected = self._num_objectives + self._num_constraints
        if value.size != expected:
            raise errors.XnesValueError(
                f"Function {self.name} returned {value.size} value(s) while {expected} were expected"
            )
        self._num_evaluations += 1
        if self.stochastic:
            value[: self._num_objectives] += self._noise_level * self.random_state.normal(0, 1, self._num_objectives)
        return value

    def copy(self: P) -> P:
        """Provides an independent copy of the problem (including its evaluation counter and random state)"""
        return copy.deepcopy(self)

    def __repr__(self) -> str:
        params = [f"dimension={self.dimension}"]
        if self._num_objectives != 1:
            params.append(f"num_objectives={self._num_objectives}")
        if self._num_constraints:
            params.append(f"num_constraints={self._num_constraints}")
        if self.stochastic:
            params.append(f"noise_level={self._noise_level}")
        return "Instance of {}({})".format(self.name, ", ".join(params))
