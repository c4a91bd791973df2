# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import logging
import warnings
import numpy as np
import xnes.common.typing as tp
from xnes.common import errors
from . import base
from . import utils
from .population import Population

global_logger = logging.getLogger(__name__)


class DistributionState:
    """Mutable parameters of the gaussian search distribution N(mean, A.A^T)

    Parameters
    ----------
    mean: np.ndarray
        center of the distribution
    A: np.ndarray
        linear transform from the standard normal space to the decision space
    sigma: float
        step-size, updated along the distribution for information only (it does
        not scale the samples)
    """

    def __init__(self, mean: tp.ArrayLike, A: tp.ArrayLike, sigma: float) -> None:  # pylint: disable=invalid-name
        self.mean = np.array(mean, dtype=float, copy=True)
        self.A = np.array(A, dtype=float, copy=True)  # pylint: disable=invalid-name
        self.sigma = float(sigma)

    @classmethod
    def empty(cls, sigma: float = 1.0) -> "DistributionState":
        """State of dimension 0, which is re-initialized at the first call"""
        return cls(np.zeros(0), np.zeros((0, 0)), sigma)

    @classmethod
    def from_population(cls, population: Population, sigma: float) -> "DistributionState":
        """Initial state: centered on the best individual, with a diagonal transform
        proportional to the width of the bounds in each direction (at least 1e-6)
        """
        lower, upper = population.problem.bounds
        widths = np.maximum(upper - lower, 1e-6)
        mean = population.get_x()[population.best_idx()]
        return cls(mean, np.diag(widths * sigma), sigma)

    @property
    def dimension(self) -> int:
        return self.mean.size

    @property
    def covariance(self) -> np.ndarray:
        return self.A.dot(self.A.T)

    def copy(self) -> "DistributionState":
        return DistributionState(self.mean, self.A, self.sigma)

    def __eq__(self, other: tp.Any) -> bool:
        if not isinstance(other, DistributionState):
            return False
        return (
            self.sigma == other.sigma
            and np.array_equal(self.mean, other.mean)
            and np.array_equal(self.A, other.A)
        )

    def __repr__(self) -> str:
        return f"DistributionState(dimension={self.dimension}, sigma={self.sigma})"


class _XNES(base.Algorithm):
    """Exponential Natural Evolution Strategies
    (see ParametrizedXNES for the documentation)
    """

    name = "xNES: Exponential Natural Evolution Strategies"
    min_popsize = 5

    def __init__(self, config: tp.Optional["ParametrizedXNES"] = None, seed: tp.Optional[int] = None) -> None:
        super().__init__(ParametrizedXNES() if config is None else config, seed=seed)
        self._xconfig: ParametrizedXNES = self._config  # type: ignore
        # adapted during each evolve call, remembered between calls if memory is True
        self._state = DistributionState.empty(self._initial_sigma())

    @property
    def state(self) -> DistributionState:
        """Copy of the current search distribution"""
        return self._state.copy()

    def _initial_sigma(self) -> float:
        return 1.0 if self._xconfig.sigma0 is None else float(self._xconfig.sigma0)

    def learning_rates(self, dimension: int) -> tp.Tuple[float, float, float]:
        """Learning rates (eta_mu, eta_sigma, eta_b) for a given dimension,
        replacing the automatic ones by their default values.
        """
        cfg = self._xconfig
        common_default = utils.default_learning_rate(dimension)
        eta_mu = 1.0 if cfg.eta_mu is None else float(cfg.eta_mu)
        eta_sigma = common_default if cfg.eta_sigma is None else float(cfg.eta_sigma)
        eta_b = common_default if cfg.eta_b is None else float(cfg.eta_b)
        return eta_mu, eta_sigma, eta_b

    def _initialize_state(self, population: Population) -> None:
        """Resets the distribution if memory is off or if the dimension has changed"""
        dimension = population.problem.dimension
        if self._state.dimension != dimension or not self._xconfig.memory:
            global_logger.debug("Initializing the search distribution in dimension %s", dimension)
            self._state = DistributionState.from_population(population, self._initial_sigma())

    def get_extra_info(self) -> str:
        cfg = self._xconfig
        values = [
            ("Generations", cfg.gen),
            ("eta_mu", cfg.eta_mu),
            ("eta_sigma", cfg.eta_sigma),
            ("eta_b", cfg.eta_b),
            ("sigma0", cfg.sigma0),
            ("Stopping xtol", cfg.xtol),
            ("Stopping ftol", cfg.ftol),
            ("Memory", cfg.memory),
            ("Verbosity", self.verbosity),
            ("Seed", self.seed),
        ]
        return "\n".join(f"\t{name}: {'auto' if val is None else val}" for name, val in values)

    # pylint: disable=too-many-locals
    def _internal_evolve(self, population: Population) -> Population:
        problem = population.problem
        dim = problem.dimension
        lower, upper = problem.bounds
        lam = len(population)
        fevals0 = problem.num_evaluations  # discount for the already made fevals
        eta_mu, eta_sigma, eta_b = self.learning_rates(dim)
        utilities = utils.utility_weights(lam)
        if lam < 4 + int(3 * np.log(dim)):
            warnings.warn(
                f"{self.name} is inefficient with a population of {lam} individuals in dimension {dim}",
                errors.InefficientSettingsWarning,
            )
        self._initialize_state(population)
        state = self._state
        if self.verbosity:
            print(f"{self.name}:")
            print(f"eta_mu: {eta_mu} - eta_sigma: {eta_sigma} - eta_b: {eta_b} - sigma0: {state.sigma}")
            print(f"utilities: {utilities.tolist()}")
        samples = np.zeros((lam, dim))
        for gen in range(1, self.gen + 1):
            if problem.stochastic:
                problem.set_seed(int(self._rng.randint(2 ** 32, dtype=np.uint32)))
            # sample, repair (only x, not z) and evaluate
            for i in range(lam):
                samples[i] = self._rng.normal(0, 1, dim)
                x = state.mean + state.A.dot(samples[i])
                population.set_x(i, utils.repair_bounds(x, lower, upper, self._rng))
            losses = population.get_f()[:, 0]
            order = utils.rank(losses)
            dx = float(np.linalg.norm(state.A.dot(samples[order[0]])))
            df = float(abs(losses[population.best_idx()] - losses[population.worst_idx()]))
            if not gen % 10 and self._converged(dx, df):
                return population
            if self.verbosity and (gen % self.verbosity == 1 or self.verbosity == 1):
                self._record(
                    base.LogEntry(
                        gen=gen,
                        fevals=problem.num_evaluations - fevals0,
                        best=float(losses[population.best_idx()]),
                        dx=dx,
                        df=df,
                        sigma=state.sigma,
                    )
                )
            self._update(samples[order], utilities, eta_mu, eta_sigma, eta_b)
            self._call_callbacks(population, gen)
        if self.verbosity:
            print(f"Exit condition -- generations = {self.gen}")
        return population

    def _converged(self, dx: float, df: float) -> bool:
        for name, value, tol in [("xtol", dx, self._xconfig.xtol), ("ftol", df, self._xconfig.ftol)]:
            if value < tol:
                global_logger.info("%s stopped on %s: %s < %s", self.name, name, value, tol)
                if self.verbosity:
                    print(f"Exit condition -- {name} < {tol}")
                return True
        return False

    def _update(
        self, ranked_samples: np.ndarray, utilities: np.ndarray, eta_mu: float, eta_sigma: float, eta_b: float
    ) -> None:
        """Natural gradient step on the mean, transform and step-size of the distribution.
        The state is left unchanged if the update is degenerate.
        """
        state = self._state
        grad = utils.natural_gradient(ranked_samples, utilities)
        step = utils.transform_step(grad, eta_sigma=eta_sigma, eta_b=eta_b)
        mean = state.mean + eta_mu * state.A.dot(grad.center)
        transform = state.A.dot(step)
        utils.check_distribution(mean, transform, step)
        state.mean = mean
        state.A = transform
        state.sigma *= float(np.exp(eta_sigma / 2.0 * grad.trace / state.dimension))


def _check_rate(name: str, value: tp.Optional[float]) -> None:
    if value is not None and not 0.0 < value <= 1.0:
        raise errors.XnesValueError(
            f"{name} must be in ]0, 1] or None if its value has to be initialized automatically, "
            f"a value of {value} was detected"
        )


def _check_non_negative(name: str, value: float) -> None:
    if not value >= 0:
        raise errors.XnesValueError(f"{name} must be non-negative, a value of {value} was detected")


class ParametrizedXNES(base.ConfiguredAlgorithm):
    """Exponential Natural Evolution Strategies, an algorithm closely related to CMA-ES
    and based on the adaptation of a gaussian sampling distribution via the natural gradient.

    At each generation, all the individuals of the population are replaced by samples
    of the adapted distribution, and the distribution mean, scale and shape are updated
    from the ranked samples. The update of the shape is multiplicative, through a
    matrix exponential, so that the covariance always stays positive definite.

    Parameters
    ----------
    gen: int
        number of generations of each call to :code:`evolve`
    eta_mu: float or None
        learning rate of the mean, in ]0, 1] (None for automatic: 1)
    eta_sigma: float or None
        learning rate of the step-size, in ]0, 1]
        (None for automatic: 0.6 * (3 + log(d)) / (d * sqrt(d)))
    eta_b: float or None
        learning rate of the covariance, in ]0, 1] (None for automatic, same as eta_sigma)
    sigma0: float or None
        initial step-size in ]0, 1], the initial search width along the i-th direction
        is sigma0 * (ub_i - lb_i) (None for automatic: 1)
    ftol: float
        stopping criterion on the fitness difference between the best and the worst individuals
    xtol: float
        stopping criterion on the spread of the samples in the decision space
    memory: bool
        when True the distribution parameters are not reset between successive calls
        to :code:`evolve` (unless the dimension of the problem changes)

    Note
    ----
    - Two changes to the original algorithm simplify its use: samples outside the bounds are
      forced back in (by uniform resampling of the faulty coordinates), and the initial covariance
      depends on the bounds width so that heterogeneously scaled variables are not a problem.
    - Since all individuals are replaced at each generation, xNES may not preserve the
      best individual (it is not elitist).
    - Stopping criteria are only checked every 10 generations.
    - Glasmachers, T., Schaul, T., Yi, S., Wierstra, D., & Schmidhuber, J. (2010).
      Exponential natural evolution strategies. In Proceedings of the 12th annual conference
      on Genetic and evolutionary computation (pp. 393-400). ACM.
    """

    # pylint: disable=unused-argument
    def __init__(
        self,
        *,
        gen: int = 1,
        eta_mu: tp.Optional[float] = None,
        eta_sigma: tp.Optional[float] = None,
        eta_b: tp.Optional[float] = None,
        sigma0: tp.Optional[float] = None,
        ftol: float = 1e-6,
        xtol: float = 1e-6,
        memory: bool = False,
    ) -> None:
        if isinstance(gen, bool) or int(gen) != gen or gen < 0:
            raise errors.XnesValueError(f"gen must be a non-negative integer, a value of {gen} was detected")
        _check_rate("eta_mu", eta_mu)
        _check_rate("eta_sigma", eta_sigma)
        _check_rate("eta_b", eta_b)
        _check_rate("sigma0", sigma0)
        _check_non_negative("ftol", ftol)
        _check_non_negative("xtol", xtol)
        super().__init__(_XNES, locals())

    def __call__(self, seed: tp.Optional[int] = None) -> _XNES:
        return super().__call__(seed=seed)  # type: ignore


XNES = ParametrizedXNES().set_name("XNES", register=True)
MemoryXNES = ParametrizedXNES(memory=True).set_name("MemoryXNES", register=True)
