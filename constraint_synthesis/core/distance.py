"""
Point-to-point distance metrics.

Used by the negative point generator to compute nearest-neighbour radii
around positive points.
"""

from typing import Dict, Type
import numpy as np
from scipy.spatial.distance import cdist


class DistanceCalculator:
    """Pluggable metric: single pair via calculate(), matrices via pairwise()."""

    metric = ''

    def calculate(self, vector1: np.ndarray, vector2: np.ndarray) -> float:
        raise NotImplementedError

    def pairwise(self, A: np.ndarray, B: np.ndarray) -> np.ndarray:
        """Distance matrix between the rows of A and the rows of B."""
        A = np.atleast_2d(np.asarray(A, dtype=float))
        B = np.atleast_2d(np.asarray(B, dtype=float))
        if A.size == 0 or B.size == 0:
            return np.empty((len(A), len(B)))
        return cdist(A, B, metric=self.metric)


class CanberraDistanceCalculator(DistanceCalculator):
    """
    Canberra distance: sum(|a_i - b_i| / (|a_i| + |b_i|)).

    Terms with a zero denominator contribute nothing.
    """

    metric = 'canberra'

    def calculate(self, vector1: np.ndarray, vector2: np.ndarray) -> float:
        a = np.asarray(vector1, dtype=float)
        b = np.asarray(vector2, dtype=float)
        divider = np.abs(a) + np.abs(b)
        nonzero = divider != 0.0
        return float(np.sum(np.abs(a - b)[nonzero] / divider[nonzero]))


class EuclideanDistanceCalculator(DistanceCalculator):
    metric = 'euclidean'

    def calculate(self, vector1: np.ndarray, vector2: np.ndarray) -> float:
        a = np.asarray(vector1, dtype=float)
        b = np.asarray(vector2, dtype=float)
        return float(np.sqrt(np.sum((a - b) ** 2)))


DISTANCE_CALCULATORS: Dict[str, Type[DistanceCalculator]] = {
    'canberra': CanberraDistanceCalculator,
    'euclidean': EuclideanDistanceCalculator,
}


def get_distance_calculator(name: str) -> DistanceCalculator:
    """Look up a distance calculator by metric name."""
    key = name.lower()
    if key not in DISTANCE_CALCULATORS:
        raise ValueError(
            f"Unknown distance metric '{name}'. Available: {list(DISTANCE_CALCULATORS)}"
        )
    return DISTANCE_CALCULATORS[key]()
