"""
Redundant constraint removal.

A constraint is redundant for a set of check points when it is never the
only constraint a point violates: dropping it leaves every point's
feasibility unchanged. The check points are uniform samples of the domain
space plus the reference points (the evaluator's positive and negative
sets), so the reduced set classifies the reference points exactly as the
original set did.
"""

from typing import List, Optional, Sequence

import numpy as np
from loguru import logger

from ..core.geometry import Constraint, Domain
from ..core.random_source import RandomSource
from ..sampling.points import DomainSpaceSampler


class RedundantConstraintsRemover:
    """Greedy removal of constraints that never bind on the check points."""

    def __init__(
        self,
        sampler: DomainSpaceSampler,
        rng: RandomSource,
        number_of_samples: int = 2000,
        reference_points: Optional[np.ndarray] = None,
    ):
        self.sampler = sampler
        self.rng = rng
        self.number_of_samples = number_of_samples
        self.reference_points = (
            None if reference_points is None else np.atleast_2d(np.asarray(reference_points, dtype=float))
        )

    def check_points(self, domains: Sequence[Domain]) -> np.ndarray:
        samples = self.sampler.sample(domains, self.number_of_samples, self.rng)
        if self.reference_points is None or self.reference_points.size == 0:
            return samples
        return np.vstack([samples, self.reference_points])

    def remove(self, constraints: Sequence[Constraint], domains: Sequence[Domain]) -> List[Constraint]:
        """
        Drop constraints that are never the sole violated one.

        Candidates are examined in order in a single pass: dropping a
        constraint never makes a kept one redundant.
        """
        remaining = list(constraints)
        if not remaining:
            return remaining

        X = self.check_points(domains)
        # violated[k, p]: constraint k rejects point p
        violated = np.vstack([~c.satisfied_mask(X) for c in remaining])

        k = 0
        while k < len(remaining):
            others = np.delete(violated, k, axis=0)
            if len(others):
                sole_violation = violated[k] & ~others.any(axis=0)
            else:
                sole_violation = violated[k]
            if sole_violation.any():
                k += 1
                continue
            logger.debug("Dropping redundant constraint {}", remaining[k])
            del remaining[k]
            violated = np.delete(violated, k, axis=0)

        logger.info(
            "Redundancy check kept {}/{} constraints over {} check points",
            len(remaining), len(constraints), len(X),
        )
        return remaining
