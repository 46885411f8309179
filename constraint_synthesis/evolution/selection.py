"""
Parent and survivor selection.

Parent selectors draw a mating pool from the base population with
replacement. Survivor selectors truncate a candidate pool to the base
population size after a stable sort on fitness (lower is better).
"""

from typing import Dict, List, Sequence, Type

import numpy as np

from ..core.random_source import RandomSource
from ..config import (
    ConfigurationError,
    ExperimentParameters,
    ParentsSelectionType,
    SurvivorsSelectionType,
)
from .solution import Solution


def sort_by_fitness(solutions: Sequence[Solution]) -> List[Solution]:
    """Stable ascending sort; equal fitness keeps input order."""
    return sorted(solutions, key=lambda s: s.fitness)


# =============================================================================
# Parent Selection
# =============================================================================

class ParentsSelector:
    """Interface: select(population, count) -> mating pool (with replacement)."""

    def __init__(self, params: ExperimentParameters, rng: RandomSource):
        self.params = params
        self.rng = rng

    def _indices(self, population: Sequence[Solution], count: int) -> Sequence[int]:
        raise NotImplementedError

    def select(self, population: Sequence[Solution], count: int) -> List[Solution]:
        if not population:
            raise ValueError("Cannot select parents from an empty population")
        if count < 1:
            raise ValueError(f"Mating pool size must be positive, got {count}")
        return [population[i] for i in self._indices(population, count)]


class RandomParentsSelector(ParentsSelector):
    """Uniform draws."""

    def _indices(self, population, count):
        return [self.rng.next_int(len(population)) for _ in range(count)]


class RouletteParentsSelector(ParentsSelector):
    """
    Fitness-weighted draws for minimisation.

    Weight of a solution is 1 / (1 + f - f_min), so the best solution has
    weight 1 and worse ones decay towards 0.
    """

    def _indices(self, population, count):
        fitnesses = np.array([s.fitness for s in population], dtype=float)
        finite = np.isfinite(fitnesses)
        if not finite.any():
            return self.rng.choice_weighted(np.ones(len(population)), count)
        weights = np.zeros(len(population))
        weights[finite] = 1.0 / (1.0 + fitnesses[finite] - fitnesses[finite].min())
        return self.rng.choice_weighted(weights, count)


class TournamentParentsSelector(ParentsSelector):
    """
    Tournament selection with replacement.

    Each draw samples `tournament_size` contestants uniformly and keeps the
    one with the lowest fitness.
    """

    def _indices(self, population, count):
        size = min(self.params.tournament_size, len(population))
        winners = []
        for _ in range(count):
            contestants = [self.rng.next_int(len(population)) for _ in range(size)]
            winners.append(min(contestants, key=lambda i: population[i].fitness))
        return winners


PARENTS_SELECTORS: Dict[ParentsSelectionType, Type[ParentsSelector]] = {
    ParentsSelectionType.RANDOM: RandomParentsSelector,
    ParentsSelectionType.ROULETTE: RouletteParentsSelector,
    ParentsSelectionType.TOURNAMENT: TournamentParentsSelector,
}


# =============================================================================
# Survivor Selection
# =============================================================================

class SurvivorsSelector:
    """Interface: select(parents, offspring) -> next base population."""

    def __init__(self, params: ExperimentParameters):
        self.params = params
        self.base_population_size = params.base_population_size

    def _candidates(self, parents: Sequence[Solution], offspring: Sequence[Solution]) -> List[Solution]:
        raise NotImplementedError

    def select(self, parents: Sequence[Solution], offspring: Sequence[Solution]) -> List[Solution]:
        candidates = self._candidates(parents, offspring)
        if not candidates:
            raise ValueError("No candidates for survivor selection")
        return sort_by_fitness(candidates)[:self.base_population_size]


class PlusSurvivorsSelector(SurvivorsSelector):
    """(mu + lambda): parents compete with their offspring."""

    def _candidates(self, parents, offspring):
        return list(parents) + list(offspring)


class CommaSurvivorsSelector(SurvivorsSelector):
    """(mu, lambda): only offspring survive."""

    def _candidates(self, parents, offspring):
        return list(offspring)


SURVIVORS_SELECTORS: Dict[SurvivorsSelectionType, Type[SurvivorsSelector]] = {
    SurvivorsSelectionType.PLUS: PlusSurvivorsSelector,
    SurvivorsSelectionType.COMMA: CommaSurvivorsSelector,
}


def get_parents_selector(params: ExperimentParameters, rng: RandomSource) -> ParentsSelector:
    try:
        selector_cls = PARENTS_SELECTORS[params.type_of_parents_selection]
    except KeyError:
        raise ConfigurationError(
            f"Unsupported parents selection: {params.type_of_parents_selection!r}"
        ) from None
    return selector_cls(params, rng)


def get_survivors_selector(params: ExperimentParameters) -> SurvivorsSelector:
    try:
        selector_cls = SURVIVORS_SELECTORS[params.type_of_survivors_selection]
    except KeyError:
        raise ConfigurationError(
            f"Unsupported survivors selection: {params.type_of_survivors_selection!r}"
        ) from None
    return selector_cls(params)
