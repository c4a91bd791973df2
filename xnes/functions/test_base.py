# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import pickle
import typing as tp
import pytest
import numpy as np
from xnes.common import errors
from xnes.common import testing
from . import base
from . import corefuncs


def test_problem_properties() -> None:
    problem = base.Problem(corefuncs.sphere, [-1, -2, -3], [1, 2, 3])
    assert problem.dimension == 3
    assert problem.name == "sphere"
    assert problem.num_objectives == 1
    assert problem.num_constraints == 0
    assert not problem.stochastic
    lower, upper = problem.bounds
    np.testing.assert_array_equal(lower, [-1, -2, -3])
    np.testing.assert_array_equal(upper, [1, 2, 3])
    lower[0] = 12  # bounds are copies
    np.testing.assert_array_equal(problem.bounds[0], [-1, -2, -3])
    assert repr(problem) == "Instance of sphere(dimension=3)"


def test_problem_scalar_bounds() -> None:
    problem = base.Problem(corefuncs.sphere, -5, 5, dimension=4)
    np.testing.assert_array_equal(problem.bounds[0], [-5] * 4)
    np.testing.assert_array_equal(problem.bounds[1], [5] * 4)
    problem = base.Problem(corefuncs.sphere, 0, [1, 2])
    np.testing.assert_array_equal(problem.bounds[0], [0, 0])


def test_problem_fitness_counts_evaluations() -> None:
    problem = base.Problem.from_registry("sphere", 2)
    assert problem.num_evaluations == 0
    fitness = problem.fitness([1.0, 2.0])
    np.testing.assert_array_equal(fitness, [5.0])
    assert problem.num_evaluations == 1
    copied = problem.copy()
    copied.fitness([0.0, 0.0])
    assert copied.num_evaluations == 2
    assert problem.num_evaluations == 1


@testing.parametrized(
    different_sizes=(dict(lower=[0, 0], upper=[1, 1, 1]),),
    empty=(dict(lower=[], upper=[]),),
    inverted=(dict(lower=[0, 2], upper=[1, 1]),),
    infinite=(dict(lower=[0, -np.inf], upper=[1, 1]),),
    wrong_dimension=(dict(lower=[0, 0], upper=[1, 1], dimension=3),),
    no_objective=(dict(lower=0, upper=1, dimension=2, num_objectives=0),),
    negative_constraints=(dict(lower=0, upper=1, dimension=2, num_constraints=-1),),
    negative_noise=(dict(lower=0, upper=1, dimension=2, noise_level=-1.0),),
)
def test_problem_errors(kwargs: tp.Dict[str, tp.Any]) -> None:
    with pytest.raises(errors.XnesValueError):
        base.Problem(corefuncs.sphere, **kwargs)


def test_problem_not_callable() -> None:
    with pytest.raises(errors.XnesTypeError):
        base.Problem(12, 0, 1, dimension=2)  # type: ignore


def test_problem_wrong_output_size() -> None:
    problem = base.Problem(corefuncs.sphere, 0, 1, dimension=2, num_objectives=2)
    with pytest.raises(errors.XnesValueError):
        problem.fitness([0.5, 0.5])
    with pytest.raises(errors.XnesValueError):
        problem.fitness([0.5, 0.5, 0.5])


def test_problem_multiple_outputs() -> None:
    problem = base.Problem(lambda x: [x[0], x[1], x[0] - x[1]], 0, 1, dimension=2, num_objectives=2, num_constraints=1)
    np.testing.assert_array_equal(problem.fitness([0.5, 0.25]), [0.5, 0.25, 0.25])


def test_unknown_registry_function() -> None:
    with pytest.raises(errors.XnesValueError):
        base.Problem.from_registry("blublu", 2)


def test_stochastic_problem_seed() -> None:
    problem = base.Problem.from_registry("sphere", 2, noise_level=0.1)
    assert problem.stochastic
    outputs = []
    for _ in range(2):
        problem.set_seed(12)
        outputs.append(problem.fitness([0.0, 0.0]))
    np.testing.assert_array_equal(outputs[0], outputs[1])
    assert outputs[0][0] != 0
    assert "noise_level=0.1" in repr(problem)


def test_deterministic_problem_seed() -> None:
    problem = base.Problem.from_registry("sphere", 2)
    with pytest.raises(errors.XnesRuntimeError):
        problem.set_seed(12)


def test_problem_pickle() -> None:
    problem = base.Problem.from_registry("rosenbrock", 3, noise_level=0.5)
    problem.set_seed(3)
    problem.fitness([0.0, 0.0, 0.0])
    loaded = pickle.loads(pickle.dumps(problem))
    assert loaded.num_evaluations == 1
    np.testing.assert_array_equal(loaded.fitness([1.0, 1.0, 1.0]), problem.fitness([1.0, 1.0, 1.0]))
