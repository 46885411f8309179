"""
Initial population generation.

Each generator allocates solutions shaped for one mutation variant and fills
them with random object coefficients, the configured initial step size and,
for correlated mutation, random rotation angles.
"""

import math
from typing import Dict, List, Type

import numpy as np

from ..core.random_source import RandomSource
from ..config import ConfigurationError, ExperimentParameters, MutationType
from .solution import Solution, number_of_rotation_angles


class PopulationRandomGenerator:
    """Uniform object coefficients in [-range, range], constant initial step sizes."""

    def __init__(self, params: ExperimentParameters, rng: RandomSource):
        self.params = params
        self.rng = rng

    def _step_sizes(self, n: int) -> np.ndarray:
        return np.full(1, self.params.initial_step_size)

    def _rotation_angles(self, n: int) -> np.ndarray:
        return np.zeros(0)

    def generate_solution(self) -> Solution:
        n = self.params.number_of_object_coefficients
        bound = self.params.initial_coefficient_range
        coefficients = self.rng.generator.uniform(-bound, bound, size=n)
        return Solution(
            object_coefficients=coefficients,
            std_deviations_coefficients=self._step_sizes(n),
            rotation_angles=self._rotation_angles(n),
        )

    def generate_population(self, size: int) -> List[Solution]:
        if size < 1:
            raise ValueError(f"Population size must be positive, got {size}")
        return [self.generate_solution() for _ in range(size)]


class OsmPopulationRandomGenerator(PopulationRandomGenerator):
    """One-step mutation: a single global step size."""


class NsmPopulationRandomGenerator(PopulationRandomGenerator):
    """N-steps mutation: one step size per object coefficient."""

    def _step_sizes(self, n: int) -> np.ndarray:
        return np.full(n, self.params.initial_step_size)


class CmPopulationRandomGenerator(NsmPopulationRandomGenerator):
    """Correlated mutation: n step sizes plus rotation angles in (-pi, pi]."""

    def _rotation_angles(self, n: int) -> np.ndarray:
        angles = self.rng.generator.uniform(-math.pi, math.pi, size=number_of_rotation_angles(n))
        # uniform() is half-open at the top; map the excluded end onto +pi
        angles[angles == -math.pi] = math.pi
        return angles


POPULATION_GENERATORS: Dict[MutationType, Type[PopulationRandomGenerator]] = {
    MutationType.UNCORRELATED_ONE_STEP: OsmPopulationRandomGenerator,
    MutationType.UNCORRELATED_N_STEPS: NsmPopulationRandomGenerator,
    MutationType.CORRELATED: CmPopulationRandomGenerator,
}


def get_population_generator(params: ExperimentParameters, rng: RandomSource) -> PopulationRandomGenerator:
    """Population generator matching the configured mutation variant."""
    try:
        generator_cls = POPULATION_GENERATORS[params.type_of_mutation]
    except KeyError:
        raise ConfigurationError(f"Unsupported mutation type: {params.type_of_mutation!r}") from None
    return generator_cls(params, rng)

