# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
from scipy import linalg
import xnes.common.typing as tp
from xnes.common import errors


def utility_weights(popsize: int) -> np.ndarray:
    """Rank-based utilities, from best (index 0) to worst.

    Raw utilities are max(0, log(popsize / 2 + 1) - log(i + 1)), they are then normalized
    to sum to 1 and shifted by -1/popsize, so that they sum to 0.
    """
    if popsize < 1:
        raise errors.XnesValueError(f"Utilities require a positive population size, got {popsize}")
    raw = np.maximum(0.0, np.log(popsize / 2.0 + 1.0) - np.log(np.arange(1, popsize + 1)))
    return raw / np.sum(raw) - 1.0 / popsize


def rank(losses: tp.ArrayLike) -> np.ndarray:
    """Indices sorting the losses from best (lowest) to worst, ties keeping their original order"""
    return np.argsort(np.asarray(losses, dtype=float), kind="stable")


def default_learning_rate(dimension: int) -> float:
    """Default learning rate of the scale and shape of the distribution"""
    dim = float(dimension)
    return 0.6 * (3.0 + np.log(dim)) / (dim * np.sqrt(dim))


def repair_bounds(
    x: np.ndarray, lower: np.ndarray, upper: np.ndarray, rng: np.random.RandomState
) -> np.ndarray:
    """Replaces each coordinate out of [lower, upper] by a uniform sample within the bounds.
    The input is left unchanged and a new array is returned.
    """
    out = np.array(x, copy=True)
    for j in range(out.size):
        # one draw per repaired coordinate, in coordinate order
        if out[j] < lower[j] or out[j] > upper[j]:
            out[j] = lower[j] + rng.uniform(0, 1) * (upper[j] - lower[j])
    return out


class NaturalGradient(tp.NamedTuple):
    """Natural gradient estimate of the search distribution parameters"""

    center: np.ndarray  # gradient of the mean, in standard normal coordinates
    shape: np.ndarray  # trace-free (anisotropic) part of the covariance gradient
    trace: float  # trace of the covariance gradient (isotropic part)


def natural_gradient(samples: np.ndarray, utilities: np.ndarray) -> NaturalGradient:
    """Estimates the natural gradient from standard normal samples sorted from best to worst

    Parameters
    ----------
    samples: np.ndarray
        (popsize, dimension) array of the ranked standard normal samples
    utilities: np.ndarray
        utilities of the ranked samples
    """
    popsize, dim = samples.shape
    if utilities.shape != (popsize,):
        raise errors.XnesValueError(f"Expected {popsize} utilities, got shape {utilities.shape}")
    identity = np.identity(dim)
    center = utilities.dot(samples)
    cov_grad = np.einsum("k,ki,kj->ij", utilities, samples, samples) - np.sum(utilities) * identity
    trace = float(np.trace(cov_grad))
    return NaturalGradient(center=center, shape=cov_grad - trace / dim * identity, trace=trace)


def transform_step(gradient: NaturalGradient, eta_sigma: float, eta_b: float) -> np.ndarray:
    """Multiplicative update of the transform matrix: A <- A . expm(d_A)"""
    dim = gradient.center.size
    d_a = 0.5 * (eta_sigma * gradient.trace / dim * np.identity(dim) + eta_b * gradient.shape)
    return linalg.expm(d_a)


def check_distribution(mean: np.ndarray, transform: np.ndarray, step: np.ndarray) -> None:
    """Raises NumericalDegeneracyError if the updated distribution has non-finite values
    or if the multiplicative step applied to the transform is singular to working precision.

    The transform itself is not tested for conditioning: bounds of very different widths
    yield an ill-conditioned initial transform.
    """
    if not (np.all(np.isfinite(mean)) and np.all(np.isfinite(transform)) and np.all(np.isfinite(step))):
        raise errors.NumericalDegeneracyError("Non-finite values in the search distribution")
    cond = np.linalg.cond(step)
    if not cond < 1.0 / np.finfo(float).eps:
        raise errors.NumericalDegeneracyError(
            f"Update step of the search distribution is singular (condition number {cond:.3g})"
        )
