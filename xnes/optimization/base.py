# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import pickle
import logging
from pathlib import Path
from numbers import Integral
import numpy as np
import xnes.common.typing as tp
from xnes.common import tools as xtools
from xnes.common import errors as errors
from xnes.common.decorators import Registry
from .population import Population


registry: Registry["ConfiguredAlgorithm"] = Registry()
_GenerationCallBack = tp.Callable[["Algorithm", Population, int], None]
X = tp.TypeVar("X", bound="Algorithm")
global_logger = logging.getLogger(__name__)


class LogEntry(tp.NamedTuple):
    """Single line of the log of an algorithm"""

    gen: int  # generation number
    fevals: int  # number of function evaluations since the start of the call
    best: float  # best fitness in the population
    dx: float  # spread of the samples in the decision space
    df: float  # fitness difference between the best and the worst individuals
    sigma: float  # step-size


_LOG_COLUMNS = ("Gen:", "Fevals:", "Best:", "dx:", "df:", "sigma:")
_LOG_WIDTHS = (7, 15, 15, 15, 15, 15)


def format_log_header() -> str:
    return "".join(name.rjust(width) for name, width in zip(_LOG_COLUMNS, _LOG_WIDTHS))


def format_log_entry(entry: LogEntry) -> str:
    return "".join(xtools.format_value(val).rjust(width) for val, width in zip(entry, _LOG_WIDTHS))


def load(cls: tp.Type[X], filepath: tp.PathLike) -> X:
    """Loads a pickle file and checks that it contains an algorithm.
    """
    filepath = Path(filepath)
    with filepath.open("rb") as f:
        algorithm = pickle.load(f)
    assert isinstance(algorithm, cls), f"You should only load {cls} with this method (found {type(algorithm)})"
    return algorithm


class Algorithm:  # pylint: disable=too-many-instance-attributes
    """Generational algorithm framework, with one main function:

    - :code:`evolve(population)` which evolves a population for a number of generations
      and returns the evolved population (the input population is not modified).

    This class is abstract, :code:`_internal_evolve` has to be overridden.
    The checks on the problem and the population are performed before any
    modification, and depend on the qualifiers of the class.

    Parameters
    ----------
    config: ConfiguredAlgorithm
        the (immutable) configuration of the algorithm
    seed: int (optional)
        seed of the random state of the algorithm (drawn randomly if not provided)
    """

    # algorithm qualifiers
    name = "Algorithm"
    constrained = False  # algorithm which can deal with constraints
    multiobjective = False  # algorithm which can deal with several objectives
    min_popsize = 1  # minimal number of individuals in the population

    def __init__(self, config: "ConfiguredAlgorithm", seed: tp.Optional[int] = None) -> None:
        self._config = config
        if seed is None:
            seed = int(np.random.randint(2 ** 32, dtype=np.uint32))
        self._seed = int(seed)
        # "seedable" random state: setting the seed provides deterministic behavior
        self._rng = np.random.RandomState(self._seed)
        self._verbosity = 0
        self._log: tp.List[LogEntry] = []
        self._num_printed_lines = 0
        self._callbacks: tp.Dict[str, tp.List[_GenerationCallBack]] = {}

    @property
    def config(self) -> "ConfiguredAlgorithm":
        return self._config

    @property
    def gen(self) -> int:
        """int: number of generations of each call to :code:`evolve`"""
        return int(self._config.gen)

    @property
    def seed(self) -> int:
        """int: seed of the random state of the algorithm. Setting it reseeds the random state."""
        return self._seed

    @seed.setter
    def seed(self, seed: int) -> None:
        self._seed = int(seed)
        self._rng.seed(self._seed)

    @property
    def verbosity(self) -> int:
        """int: 0 for no verbosity, N > 0 for printing and logging a line every N generations"""
        return self._verbosity

    @verbosity.setter
    def verbosity(self, level: int) -> None:
        if isinstance(level, bool) or not isinstance(level, Integral):
            raise errors.XnesTypeError(f"Verbosity must be an integer, got {level!r}")
        if level < 0:
            raise errors.XnesValueError(f"Verbosity must be non-negative, got {level}")
        self._verbosity = int(level)

    def get_log(self) -> tp.List[LogEntry]:
        """Log of the last call to :code:`evolve`, filled if verbosity is positive"""
        return list(self._log)

    def get_extra_info(self) -> str:
        """Human readable summary of the settings of the algorithm"""
        return f"\tGenerations: {self.gen}\n\tVerbosity: {self._verbosity}\n\tSeed: {self._seed}"

    def register_callback(self, name: str, callback: _GenerationCallBack) -> None:
        """Add a callback method called at the end of each generation, with the algorithm,
        the population and the generation number as arguments. This can be useful for custom logging.

        Parameters
        ----------
        name: str
            name of the event to register the callback for (only :code:`generation` for now)
        callback: callable
            a callable taking the algorithm, the population and the generation as arguments
        """
        assert name in ["generation"], f'Only "generation" events can have callbacks (not {name})'
        self._callbacks.setdefault(name, []).append(callback)

    def remove_all_callbacks(self) -> None:
        """Removes all registered callables"""
        self._callbacks = {}

    def dump(self, filepath: tp.Union[str, Path]) -> None:
        """Pickles the algorithm into a file (configuration, state, random state and log)."""
        filepath = Path(filepath)
        with filepath.open("wb") as f:
            pickle.dump(self, f)

    @classmethod
    def load(cls: tp.Type[X], filepath: tp.Union[str, Path]) -> X:
        """Loads a pickle and checks that the class is correct."""
        return load(cls, filepath)

    def __repr__(self) -> str:
        return f"Instance of {self._config.name}(seed={self._seed}, verbosity={self._verbosity})"

    def check_population(self, population: Population) -> None:
        """Raises an XnesValueError if the problem or the population is not supported"""
        problem = population.problem
        if problem.num_constraints and not self.constrained:
            raise errors.XnesValueError(
                f"Non linear constraints detected in {problem.name} instance. {self.name} cannot deal with them"
            )
        if problem.num_objectives != 1 and not self.multiobjective:
            raise errors.XnesValueError(
                f"Multiple objectives detected in {problem.name} instance. {self.name} cannot deal with them"
            )
        if len(population) < self.min_popsize:
            raise errors.XnesValueError(
                f"{self.name} needs at least {self.min_popsize} individuals in the population, "
                f"{len(population)} detected"
            )

    def evolve(self, population: Population) -> Population:
        """Evolves the population for the configured number of generations,
        or until a stopping criterion is met.

        Parameters
        ----------
        population: Population
            the population to evolve (left unchanged)

        Returns
        -------
        Population
            the evolved population (the input population itself if there are no generations to run)
        """
        self.check_population(population)
        if not self.gen:
            return population
        # no throws, all valid: we clear the logs
        self._log.clear()
        self._num_printed_lines = 0
        population = population.copy()
        try:
            return self._internal_evolve(population)
        except errors.XnesEarlyStopping as e:
            global_logger.info("%s", e)
            return population

    def _internal_evolve(self, population: Population) -> Population:
        raise NotImplementedError

    def _record(self, entry: LogEntry) -> None:
        """Prints a line in the table and appends it to the log"""
        if self._num_printed_lines % 50 == 0:
            print("\n" + format_log_header())
        print(format_log_entry(entry))
        self._num_printed_lines += 1
        self._log.append(entry)

    def _call_callbacks(self, population: Population, gen: int) -> None:
        for callback in self._callbacks.get("generation", []):
            callback(self, population, gen)


class ConfiguredAlgorithm:
    """Creates algorithm-like instances with configuration.
    The configuration is immutable once created.

    Parameters
    ----------
    AlgorithmClass: type
        class of the algorithm to configure
    config: dict
        dictionnary of all the configurations (each of them is also set as an attribute)

    Note
    ----
    This provides a default repr which can be bypassed through set_name
    """

    def __init__(self, AlgorithmClass: tp.Type[Algorithm], config: tp.Dict[str, tp.Any]) -> None:
        config.pop("self", None)  # self comes from "locals()"
        config.pop("__class__", None)  # self comes from "locals()"
        object.__setattr__(self, "_AlgorithmClass", AlgorithmClass)
        object.__setattr__(self, "_config", config)
        for key, value in config.items():
            object.__setattr__(self, key, value)
        diff = xtools.different_from_defaults(instance=self, instance_dict=config, check_mismatches=True)
        params = ", ".join(f"{x}={y!r}" for x, y in sorted(diff.items()))
        object.__setattr__(self, "name", f"{self.__class__.__name__}({params})")

    def __setattr__(self, name: str, value: tp.Any) -> None:
        raise errors.XnesRuntimeError(
            f"Configuration {self.name} is immutable, create a new one instead of setting {name}"
        )

    def config(self) -> tp.Dict[str, tp.Any]:
        return dict(self._config)

    def __call__(self, seed: tp.Optional[int] = None) -> Algorithm:
        """Creates an algorithm from the configuration

        Parameters
        ----------
        seed: int (optional)
            seed of the random state of the algorithm
        """
        algorithm = self._AlgorithmClass(config=self, seed=seed)
        global_logger.debug("Created %r", algorithm)
        return algorithm

    def __repr__(self) -> str:
        return self.name

    def set_name(self, name: str, register: bool = False) -> "ConfiguredAlgorithm":
        """Set a new representation for the instance"""
        object.__setattr__(self, "name", name)
        if register:
            registry.register_name(name, self)
        return self

    def load(self, filepath: tp.Union[str, Path]) -> Algorithm:
        """Loads a pickle and checks that it is an algorithm of the configured class."""
        return self._AlgorithmClass.load(filepath)

    def __eq__(self, other: tp.Any) -> tp.Any:
        if self.__class__ == other.__class__:
            if self._config == other._config:
                return True
        return False

    def __hash__(self) -> int:
        return hash((self.__class__, tuple(sorted(self._config.items()))))
