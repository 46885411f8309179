"""
Recombination operators.

Each recombiner handles exactly one vector of a solution: the object
coefficients, the step sizes or the rotation angles. The engine chains them
so that the object recombiner allocates the child and the others fill in
their vector.

Per recombination event a subset of the mating pool is drawn with
select_parents(); draws are uniform over the pool and a solution already
taken is rejected until enough distinct parents are collected.
"""

from typing import Dict, List, Optional, Sequence, Type

import numpy as np

from ..core.random_source import RandomSource
from ..config import ConfigurationError, ExperimentParameters, RecombinationType
from .mutation import wrap_angles
from .solution import Solution


VECTORS = {
    'object': 'object_coefficients',
    'std_devs': 'std_deviations_coefficients',
    'rotations': 'rotation_angles',
}


def select_parents(
    parents: Sequence[Solution],
    count: int,
    rng: RandomSource,
) -> List[Solution]:
    """
    Draw `count` distinct solutions from the pool without replacement.

    The mating pool may hold the same solution more than once; a draw that
    lands on an already chosen solution is discarded. When the pool holds
    fewer than `count` distinct solutions every one of them is returned, in
    draw order.
    """
    if not parents:
        raise ValueError("Cannot recombine an empty parent pool")

    target = min(count, len({id(p) for p in parents}))
    chosen: List[Solution] = []
    seen = set()
    while len(chosen) < target:
        solution = parents[rng.next_int(len(parents))]
        if id(solution) in seen:
            continue
        seen.add(id(solution))
        chosen.append(solution)
    return chosen


class Recombiner:
    """Interface: recombine(parents, child=None) -> child."""

    def __init__(
        self,
        params: ExperimentParameters,
        rng: RandomSource,
        vector: str,
    ):
        if vector not in VECTORS:
            raise ConfigurationError(f"Unknown recombination vector: {vector!r}")
        self.params = params
        self.rng = rng
        self.vector = vector
        self.attribute = VECTORS[vector]
        self.number_of_solutions_to_recombine = params.number_of_solutions_to_recombine

    def _combine(self, values: np.ndarray) -> np.ndarray:
        """values has one row per selected parent."""
        raise NotImplementedError

    def recombine(self, parents: Sequence[Solution], child: Optional[Solution] = None) -> Solution:
        selected = select_parents(parents, self.number_of_solutions_to_recombine, self.rng)
        values = np.vstack([getattr(p, self.attribute) for p in selected])

        if child is None:
            child = Solution.empty(self.params)
        target = getattr(child, self.attribute)
        if target.shape != values.shape[1:]:
            raise ValueError(
                f"Child {self.attribute} has length {len(target)}, "
                f"parents have {values.shape[1]}"
            )
        target[:] = self._combine(values)
        return child


class DiscreteRecombiner(Recombiner):
    """Each position is copied from a parent picked uniformly at random."""

    def _combine(self, values: np.ndarray) -> np.ndarray:
        rows = self.rng.generator.integers(len(values), size=values.shape[1])
        return values[rows, np.arange(values.shape[1])]


class IntermediateRecombiner(Recombiner):
    """Each position is the average over the selected parents."""

    def _combine(self, values: np.ndarray) -> np.ndarray:
        if self.vector != 'rotations':
            return values.mean(axis=0)
        # circular mean, then back into (-pi, pi]
        combined = np.arctan2(np.sin(values).mean(axis=0), np.cos(values).mean(axis=0))
        return wrap_angles(combined)


RECOMBINERS: Dict[RecombinationType, Type[Recombiner]] = {
    RecombinationType.DISCRETE: DiscreteRecombiner,
    RecombinationType.INTERMEDIATE: IntermediateRecombiner,
}


def _build(recombination_type: RecombinationType, params, rng, vector) -> Recombiner:
    try:
        recombiner_cls = RECOMBINERS[recombination_type]
    except KeyError:
        raise ConfigurationError(f"Unsupported recombination type: {recombination_type!r}") from None
    return recombiner_cls(params, rng, vector)


def get_object_recombiner(params: ExperimentParameters, rng: RandomSource) -> Recombiner:
    return _build(params.type_of_object_recombination, params, rng, 'object')


def get_std_devs_recombiner(params: ExperimentParameters, rng: RandomSource) -> Recombiner:
    return _build(params.type_of_std_devs_recombination, params, rng, 'std_devs')


def get_rotations_recombiner(params: ExperimentParameters, rng: RandomSource) -> Recombiner:
    return _build(params.type_of_rotations_recombination, params, rng, 'rotations')
