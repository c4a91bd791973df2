# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import copy
import warnings
import numpy as np
import xnes.common.typing as tp
from xnes.common import errors

X = tp.TypeVar("X", bound="Population")


class Population:
    """Container of decision vectors and their fitness vectors for a given problem.
    Setting a decision vector evaluates it on the problem.

    Parameters
    ----------
    problem: Problem
        the problem the individuals are evaluated on (the population keeps its own copy)
    size: int
        number of individuals to sample uniformly within the bounds of the problem
    seed: int (optional)
        seed of the random state used to sample the initial individuals

    Note
    ----
    The champion (best individual ever set) is kept even if it is later replaced
    in the population.
    """

    def __init__(self, problem: tp.ProblemLike, size: int = 0, seed: tp.Optional[int] = None) -> None:
        if size < 0:
            raise errors.XnesValueError(f"Population size must be non-negative, got {size}")
        self._problem = copy.deepcopy(problem)
        dimension = self._problem.dimension
        num_outputs = self._problem.num_objectives + self._problem.num_constraints
        self._x = np.zeros((0, dimension))
        self._f = np.zeros((0, num_outputs))
        self._champion: tp.Optional[tp.Tuple[np.ndarray, np.ndarray]] = None
        if seed is None:
            seed = np.random.randint(2 ** 32, dtype=np.uint32)
        self.random_state = np.random.RandomState(seed)
        lower, upper = self._problem.bounds
        for _ in range(size):
            self.push_back(lower + self.random_state.uniform(0, 1, dimension) * (upper - lower))

    @property
    def problem(self) -> tp.ProblemLike:
        return self._problem

    def __len__(self) -> int:
        return self._x.shape[0]

    def push_back(self, x: tp.ArrayLike) -> None:
        """Evaluates a new decision vector and appends it to the population"""
        data, fitness = self._evaluate(x)
        self._x = np.vstack([self._x, data[None, :]])
        self._f = np.vstack([self._f, fitness[None, :]])
        self._update_champion(data, fitness)

    def set_x(self, index: int, x: tp.ArrayLike) -> None:
        """Evaluates a decision vector and sets it in place of the index-th individual"""
        if not 0 <= index < len(self):
            raise IndexError(f"Index {index} is out of range for a population of size {len(self)}")
        data, fitness = self._evaluate(x)
        self._x[index] = data
        self._f[index] = fitness
        self._update_champion(data, fitness)

    def get_x(self) -> np.ndarray:
        """Decision vectors, as a (size, dimension) array (copy)"""
        return self._x.copy()

    def get_f(self) -> np.ndarray:
        """Fitness vectors, as a (size, num_objectives + num_constraints) array (copy)"""
        return self._f.copy()

    def best_idx(self) -> int:
        """Index of the individual with the lowest fitness (first one in case of ties).
        NaN fitnesses are ignored, as long as at least one fitness is not NaN.
        """
        fitness = self._single_objective_fitness()
        return 0 if np.all(np.isnan(fitness)) else int(np.nanargmin(fitness))

    def worst_idx(self) -> int:
        """Index of the individual with the highest fitness (first one in case of ties).
        NaN fitnesses are ignored, as long as at least one fitness is not NaN.
        """
        fitness = self._single_objective_fitness()
        return 0 if np.all(np.isnan(fitness)) else int(np.nanargmax(fitness))

    @property
    def champion_x(self) -> np.ndarray:
        if self._champion is None:
            raise errors.XnesRuntimeError("No champion in an empty population")
        return self._champion[0].copy()

    @property
    def champion_f(self) -> np.ndarray:
        if self._champion is None:
            raise errors.XnesRuntimeError("No champion in an empty population")
        return self._champion[1].copy()

    def copy(self: X) -> X:
        """Provides an independent copy of the population, its problem and random state"""
        return copy.deepcopy(self)

    def _single_objective_fitness(self) -> np.ndarray:
        if self._problem.num_objectives != 1:
            raise errors.XnesValueError(
                f"Best and worst individuals are only defined for single objective problems, "
                f"but {self._problem.name} has {self._problem.num_objectives} objectives"
            )
        if not len(self):
            raise errors.XnesRuntimeError("Cannot find the best or worst individual of an empty population")
        return self._f[:, 0]

    def _evaluate(self, x: tp.ArrayLike) -> tp.Tuple[np.ndarray, np.ndarray]:
        data = np.array(x, dtype=float, copy=True).ravel()
        fitness = np.asarray(self._problem.fitness(data), dtype=float).ravel()
        if not np.all(np.isfinite(fitness)):
            warnings.warn(f"Recording non-finite fitness {fitness}", errors.BadLossWarning)
        return data, fitness

    def _update_champion(self, x: np.ndarray, fitness: np.ndarray) -> None:
        if self._problem.num_objectives != 1:
            return
        if self._champion is None or fitness[0] < self._champion[1][0] or np.isnan(self._champion[1][0]):
            self._champion = (x.copy(), fitness.copy())

    def __repr__(self) -> str:
        return f"Population of {len(self)} individual(s) on {self._problem!r}"
