"""
Fitness evaluation for constraint synthesis.

A solution is decoded into linear constraints and scored against the
positive (inside) and negative (outside) sample points:

- a positive point is handled correctly when it satisfies every constraint
- a negative point is handled correctly when it violates at least one

fitness = misclassification_weight * misclassified
        + constraint_penalty * effective_constraints

Lower is better. A constraint is effective when at least one sample point
violates it; constraints that every point satisfies do not shape the
region and are not penalised.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Sequence

import numpy as np

from ..core.geometry import LinearConstraint, Point, points_to_array
from ..config import ExperimentParameters
from .solution import Solution


@dataclass
class ClassificationScores:
    """Confusion counts of a constraint set over the sample points."""
    true_positives: int      # positive points inside
    false_negatives: int     # positive points rejected
    true_negatives: int      # negative points rejected
    false_positives: int     # negative points accepted
    effective_constraints: int

    @property
    def misclassified(self) -> int:
        return self.false_negatives + self.false_positives

    @property
    def total(self) -> int:
        return self.true_positives + self.false_negatives + self.true_negatives + self.false_positives

    @property
    def accuracy(self) -> float:
        if self.total == 0:
            return 0.0
        return (self.true_positives + self.true_negatives) / self.total

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['misclassified'] = self.misclassified
        d['accuracy'] = self.accuracy
        return d

    def __repr__(self) -> str:
        return (
            f"ClassificationScores(tp={self.true_positives}, fn={self.false_negatives}, "
            f"tn={self.true_negatives}, fp={self.false_positives}, "
            f"acc={self.accuracy:.3f}, effective={self.effective_constraints})"
        )


def compute_fitness(scores: ClassificationScores, params: ExperimentParameters) -> float:
    """Weighted sum of misclassifications and effective constraint count."""
    return (
        params.misclassification_weight * scores.misclassified
        + params.constraint_penalty * scores.effective_constraints
    )


def decode_constraints(
    object_coefficients: np.ndarray,
    number_of_constraints: int,
    number_of_dimensions: int,
) -> List[LinearConstraint]:
    """
    Read constraints contiguously from a flattened coefficient vector.

    Each block holds number_of_dimensions term coefficients followed by the
    limiting value.

    Raises:
        ValueError: If the vector length does not match the shape
    """
    block = number_of_dimensions + 1
    expected = number_of_constraints * block
    if len(object_coefficients) != expected:
        raise ValueError(
            f"Expected {expected} object coefficients for {number_of_constraints} "
            f"constraints in {number_of_dimensions} dimensions, got {len(object_coefficients)}"
        )
    constraints = []
    for i in range(0, expected, block):
        constraints.append(
            LinearConstraint(object_coefficients[i:i + number_of_dimensions],
                             object_coefficients[i + number_of_dimensions])
        )
    return constraints


class Evaluator:
    """
    Scores solutions against fixed positive and negative point sets.

    The point sets are copied into read-only arrays on construction; the
    evaluator never modifies them.
    """

    def __init__(
        self,
        params: ExperimentParameters,
        positive_points: Sequence[Point],
        negative_points: Sequence[Point],
    ):
        self.params = params
        d = params.number_of_dimensions
        self.positive = self._freeze(points_to_array(positive_points, d), d)
        self.negative = self._freeze(points_to_array(negative_points, d), d)

    @staticmethod
    def _freeze(X: np.ndarray, dimensions: int) -> np.ndarray:
        X = np.array(X, dtype=float)
        if X.size == 0:
            X = X.reshape(0, dimensions)
        elif X.ndim != 2 or X.shape[1] != dimensions:
            raise ValueError(
                f"Expected points with {dimensions} coordinates, got array of shape {X.shape}"
            )
        X.setflags(write=False)
        return X

    @property
    def number_of_points(self) -> int:
        return len(self.positive) + len(self.negative)

    def decode(self, solution: Solution) -> List[LinearConstraint]:
        return decode_constraints(
            solution.object_coefficients,
            self.params.number_of_constraints,
            self.params.number_of_dimensions,
        )

    def classify(self, constraints: Sequence[Any]) -> ClassificationScores:
        """Confusion counts of an arbitrary constraint set."""
        positive_ok = np.ones(len(self.positive), dtype=bool)
        negative_in = np.ones(len(self.negative), dtype=bool)
        effective = 0

        for constraint in constraints:
            positive_mask = constraint.satisfied_mask(self.positive)
            negative_mask = constraint.satisfied_mask(self.negative)
            if not (positive_mask.all() and negative_mask.all()):
                effective += 1
            positive_ok &= positive_mask
            negative_in &= negative_mask

        true_positives = int(positive_ok.sum())
        false_positives = int(negative_in.sum())
        return ClassificationScores(
            true_positives=true_positives,
            false_negatives=len(self.positive) - true_positives,
            true_negatives=len(self.negative) - false_positives,
            false_positives=false_positives,
            effective_constraints=effective,
        )

    def score(self, solution: Solution) -> ClassificationScores:
        return self.classify(self.decode(solution))

    def fitness_of(self, object_coefficients: np.ndarray) -> float:
        """Fitness of a raw coefficient vector (no solution is touched)."""
        constraints = decode_constraints(
            np.asarray(object_coefficients, dtype=float),
            self.params.number_of_constraints,
            self.params.number_of_dimensions,
        )
        return compute_fitness(self.classify(constraints), self.params)

    def evaluate(self, solution: Solution) -> float:
        """Score a solution and store the fitness on it."""
        solution.fitness = self.fitness_of(solution.object_coefficients)
        return solution.fitness
