"""
Self-adaptive mutation operators.

Every mutator first adapts the strategy parameters of a solution (step
sizes, and rotation angles for correlated mutation) and then perturbs the
object coefficients with the adapted step sizes. Mutation is in place and
touches only the solution it is given.

Canonical learning rates for a search space of size n:
- one-step:       tau0  = 1 / sqrt(n)
- n-steps:        tau'  = 1 / sqrt(2n)        (global, shared draw)
                  tau   = 1 / sqrt(2 sqrt(n)) (individual, per coordinate)
- rotation angles: beta = 0.0873 (about 5 degrees)
"""

import math
from typing import Dict, Type

import numpy as np

from ..core.random_source import RandomSource
from ..config import ConfigurationError, ExperimentParameters, MutationType
from .solution import Solution, number_of_rotation_angles


TWO_PI = 2.0 * math.pi


# =============================================================================
# Helpers
# =============================================================================

def wrap_angle(angle: float) -> float:
    """Map an angle into (-pi, pi] by adding or subtracting 2*pi."""
    if abs(angle) > 4.0 * math.pi:
        angle = math.fmod(angle, TWO_PI)
    while angle > math.pi:
        angle -= TWO_PI
    while angle <= -math.pi:
        angle += TWO_PI
    return angle


def wrap_angles(angles: np.ndarray) -> np.ndarray:
    """Vector version of wrap_angle (in place, also returned)."""
    for j in range(len(angles)):
        angles[j] = wrap_angle(float(angles[j]))
    return angles


def rotate(vector: np.ndarray, angles: np.ndarray) -> np.ndarray:
    """
    Apply the pairwise rotations to a perturbation vector.

    Rotations are applied in the order (0,1), (0,2), ..., (0,n-1), (1,2),
    ..., (n-2,n-1), angle j belonging to the j-th pair of that sequence.
    """
    z = np.array(vector, dtype=float)
    n = len(z)
    if len(angles) != number_of_rotation_angles(n):
        raise ValueError(
            f"Expected {number_of_rotation_angles(n)} rotation angles for a "
            f"{n}-dimensional vector, got {len(angles)}"
        )

    j = 0
    for k in range(n - 1):
        for l in range(k + 1, n):
            cos_a = math.cos(angles[j])
            sin_a = math.sin(angles[j])
            zk, zl = z[k], z[l]
            z[k] = zk * cos_a - zl * sin_a
            z[l] = zk * sin_a + zl * cos_a
            j += 1
    return z


# =============================================================================
# Mutators
# =============================================================================

class Mutator:
    """Interface: mutate(solution) -> solution."""

    def __init__(self, params: ExperimentParameters, rng: RandomSource):
        self.params = params
        self.rng = rng
        self.n = params.number_of_object_coefficients
        self.step_threshold = params.step_threshold

    def _check(self, solution: Solution, steps: int, angles: int) -> None:
        if (len(solution.object_coefficients) != self.n
                or len(solution.std_deviations_coefficients) != steps
                or len(solution.rotation_angles) != angles):
            raise ValueError(
                f"{type(self).__name__} expects ({self.n}, {steps}, {angles}) "
                f"object/step/angle lengths, got {solution!r}"
            )

    def mutate(self, solution: Solution) -> Solution:
        raise NotImplementedError


class OneStepMutator(Mutator):
    """Uncorrelated mutation with a single global step size."""

    def __init__(self, params: ExperimentParameters, rng: RandomSource):
        super().__init__(params, rng)
        self.learning_rate = params.one_step_learning_rate or 1.0 / math.sqrt(self.n)

    def mutate(self, solution: Solution) -> Solution:
        self._check(solution, 1, 0)

        sigma = solution.std_deviations_coefficients[0] * math.exp(self.learning_rate * self.rng.gauss())
        sigma = max(sigma, self.step_threshold)
        solution.std_deviations_coefficients[0] = sigma

        solution.object_coefficients += self.rng.gauss_vector(self.n) * sigma
        return solution


class NStepsMutator(Mutator):
    """Uncorrelated mutation with one step size per coordinate."""

    def __init__(self, params: ExperimentParameters, rng: RandomSource):
        super().__init__(params, rng)
        self.global_learning_rate = params.global_learning_rate or 1.0 / math.sqrt(2.0 * self.n)
        self.individual_learning_rate = (
            params.individual_learning_rate or 1.0 / math.sqrt(2.0 * math.sqrt(self.n))
        )

    def mutate_step_sizes(self, solution: Solution) -> None:
        global_draw = self.global_learning_rate * self.rng.gauss()
        local_draws = self.individual_learning_rate * self.rng.gauss_vector(self.n)
        sigmas = solution.std_deviations_coefficients * np.exp(global_draw + local_draws)
        np.maximum(sigmas, self.step_threshold, out=sigmas)
        solution.std_deviations_coefficients[:] = sigmas

    def mutate(self, solution: Solution) -> Solution:
        self._check(solution, self.n, 0)
        self.mutate_step_sizes(solution)
        solution.object_coefficients += self.rng.gauss_vector(self.n) * solution.std_deviations_coefficients
        return solution


class CorrelatedMutator(NStepsMutator):
    """
    Correlated mutation: n step sizes plus rotation angles.

    The independent perturbation N_i(0,1) * sigma_i is rotated through every
    pairwise rotation before it is added to the object coefficients, so the
    search ellipsoid can align with the fitness landscape.
    """

    def __init__(self, params: ExperimentParameters, rng: RandomSource):
        super().__init__(params, rng)
        self.beta = params.beta_learning_rate
        self.number_of_angles = number_of_rotation_angles(self.n)

    def mutate_rotation_angles(self, solution: Solution) -> None:
        solution.rotation_angles += self.beta * self.rng.gauss_vector(self.number_of_angles)
        wrap_angles(solution.rotation_angles)

    def mutate(self, solution: Solution) -> Solution:
        self._check(solution, self.n, self.number_of_angles)
        self.mutate_step_sizes(solution)
        self.mutate_rotation_angles(solution)

        perturbation = self.rng.gauss_vector(self.n) * solution.std_deviations_coefficients
        solution.object_coefficients += rotate(perturbation, solution.rotation_angles)
        return solution


MUTATORS: Dict[MutationType, Type[Mutator]] = {
    MutationType.UNCORRELATED_ONE_STEP: OneStepMutator,
    MutationType.UNCORRELATED_N_STEPS: NStepsMutator,
    MutationType.CORRELATED: CorrelatedMutator,
}


def get_mutator(params: ExperimentParameters, rng: RandomSource) -> Mutator:
    """Mutator for the configured mutation variant."""
    try:
        mutator_cls = MUTATORS[params.type_of_mutation]
    except KeyError:
        raise ConfigurationError(f"Unsupported mutation type: {params.type_of_mutation!r}") from None
    return mutator_cls(params, rng)
