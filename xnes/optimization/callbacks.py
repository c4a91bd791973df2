# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import json
import time
import warnings
import datetime
import logging
from pathlib import Path
import numpy as np
import xnes.common.typing as tp
from xnes.common import errors
from . import base
from .population import Population

global_logger = logging.getLogger(__name__)

# -------------------------------------------------------------------------------------


class OptimizationPrinter:
    """Printer to register as "generation" callback in an algorithm, for printing
    the best point regularly.

    Parameters
    ----------
    print_interval_generations: int
        max number of generations before performing another print
    print_interval_seconds: float
        max number of seconds before performing another print
    """

    def __init__(self, print_interval_generations: int = 1, print_interval_seconds: float = 60.0) -> None:
        assert print_interval_generations > 0
        assert print_interval_seconds > 0
        self._print_interval_generations = int(print_interval_generations)
        self._print_interval_seconds = print_interval_seconds
        self._next_gen = self._print_interval_generations
        self._next_time = time.time() + print_interval_seconds

    def __call__(self, algorithm: base.Algorithm, population: Population, gen: int) -> None:
        if time.time() >= self._next_time or gen >= self._next_gen:
            self._next_time = time.time() + self._print_interval_seconds
            self._next_gen = gen + self._print_interval_generations
            best = population.best_idx()
            print(f"After generation {gen}, best point is {population.get_x()[best]} "
                  f"with fitness {population.get_f()[best][0]}")

# -------------------------------------------------------------------------------------


class OptimizationLogger:
    """Logger to register as "generation" callback in an algorithm, for logging
    the best point regularly.

    Parameters
    ----------
    logger:
        given logger that callback will use to log
    log_level:
        log level that logger will write to
    log_interval_generations: int
        max number of generations before performing another log
    log_interval_seconds:
        max number of seconds before performing another log
    """

    def __init__(
        self,
        *,
        logger: logging.Logger = global_logger,
        log_level: int = logging.INFO,
        log_interval_generations: int = 1,
        log_interval_seconds: float = 60.0,
    ) -> None:
        assert log_interval_generations > 0
        assert log_interval_seconds > 0
        self._logger = logger
        self._log_level = log_level
        self._log_interval_generations = int(log_interval_generations)
        self._log_interval_seconds = log_interval_seconds
        self._next_gen = self._log_interval_generations
        self._next_time = time.time() + log_interval_seconds

    def __call__(self, algorithm: base.Algorithm, population: Population, gen: int) -> None:
        if time.time() >= self._next_time or gen >= self._next_gen:
            self._next_time = time.time() + self._log_interval_seconds
            self._next_gen = gen + self._log_interval_generations
            best = population.best_idx()
            self._logger.log(
                self._log_level,
                "After generation %s, best point is %s with fitness %s",
                gen,
                population.get_x()[best],
                population.get_f()[best][0],
            )

# -------------------------------------------------------------------------------------


class ParametersLogger:
    """Logs the search distribution and run information into a file (one json line
    per generation) during optimization.

    Parameters
    ----------
    filepath: str or pathlib.Path
        the path to dump data to
    append: bool
        whether to append the file (otherwise it replaces it)

    Example
    -------

    .. code-block:: python

        logger = ParametersLogger(filepath)
        algorithm.register_callback("generation",  logger)
        algorithm.evolve(population)
        list_of_dict_of_data = logger.load()

    Note
    ----
    Arrays are converted to lists
    """

    def __init__(self, filepath: tp.Union[str, Path], append: bool = True) -> None:
        self._session = datetime.datetime.now().strftime("%y-%m-%d %H:%M:%S")
        self._filepath = Path(filepath)
        if self._filepath.exists() and not append:
            self._filepath.unlink()
        self._filepath.parent.mkdir(exist_ok=True, parents=True)

    def __call__(self, algorithm: base.Algorithm, population: Population, gen: int) -> None:
        best = population.best_idx()
        data: tp.Dict[str, tp.Any] = {
            "#algorithm": algorithm.config.name,
            "#session": self._session,
            "#seed": algorithm.seed,
            "#generation": gen,
            "#num-evaluations": population.problem.num_evaluations,
            "#loss": float(population.get_f()[best][0]),
            "best": population.get_x()[best].tolist(),
        }
        data.update({"#config#" + x: y for x, y in algorithm.config.config().items()})
        state = getattr(algorithm, "state", None)
        if state is not None:
            data["mean"] = state.mean.tolist()
            data["sigma"] = state.sigma
        try:  # avoid bugging as much as possible
            with self._filepath.open("a") as f:
                f.write(json.dumps(data) + "\n")
        except Exception as e:  # pylint: disable=broad-except
            warnings.warn(f"Failing to json data: {e}", errors.XnesRuntimeWarning)

    def load(self) -> tp.List[tp.Dict[str, tp.Any]]:
        """Loads data from the log file"""
        data: tp.List[tp.Dict[str, tp.Any]] = []
        if self._filepath.exists():
            with self._filepath.open("r") as f:
                for line in f.readlines():
                    data.append(json.loads(line))
        return data

# -------------------------------------------------------------------------------------


class AlgorithmDump:
    """Dumps the algorithm to a pickle file at every call.

    Parameters
    ----------
    filepath: str or Path
        path to the pickle file
    """

    def __init__(self, filepath: tp.Union[str, Path]) -> None:
        self._filepath = filepath

    def __call__(self, algorithm: base.Algorithm, *args: tp.Any, **kwargs: tp.Any) -> None:
        algorithm.dump(self._filepath)

# -------------------------------------------------------------------------------------


class EarlyStopping:
    """Callback for stopping the :code:`evolve` method before all generations are run.
    The population of the current generation is returned.

    Parameters
    ----------
    stopping_criterion: func(algorithm, population) -> bool
        function that takes the current algorithm and population as input and returns True
        if the evolution must be stopped

    Example
    -------
    In the following code, the :code:`evolve` method will be stopped as soon as the
    best fitness is below 1e-3

    >>> early_stopping = EarlyStopping(lambda algo, pop: pop.get_f().min() < 1e-3)
    >>> algorithm.register_callback("generation", early_stopping)
    """

    def __init__(self, stopping_criterion: tp.Callable[[base.Algorithm, Population], bool]) -> None:
        self.stopping_criterion = stopping_criterion

    def __call__(self, algorithm: base.Algorithm, population: Population, gen: int) -> None:
        if self.stopping_criterion(algorithm, population):
            raise errors.XnesEarlyStopping(f"Early stopping criterion is reached at generation {gen}")

    @classmethod
    def timer(cls, max_duration: float) -> "EarlyStopping":
        """Early stop when max_duration seconds has been reached (from the first generation)"""
        return cls(_DurationCriterion(max_duration))


class _DurationCriterion:
    def __init__(self, max_duration: float) -> None:
        self._start = float("inf")
        self._max_duration = max_duration

    def __call__(self, algorithm: base.Algorithm, population: Population) -> bool:
        if np.isinf(self._start):
            self._start = time.time()
        return time.time() > self._start + self._max_duration
