"""
Sample point generation.

- PositivePointsGenerator: uniform draws inside the domains that satisfy the
  benchmark constraints.
- NegativePointsGenerator: uniform draws that violate the benchmark and lie
  outside the nearest-neighbour neighbourhood of every positive point.
- DomainSpaceSampler: plain uniform draws inside the domains.

Both labelled generators are rejection samplers with a per-point attempt
cap; running out of attempts raises PointGenerationError carrying the points
produced so far.
"""

from typing import List, Sequence

import numpy as np

from ..core.distance import DistanceCalculator
from ..core.geometry import Domain, Point, points_to_array, satisfied_mask
from ..core.random_source import RandomSource


class PointGenerationError(RuntimeError):
    """Rejection sampling ran out of attempts."""

    def __init__(self, message: str, points: List[Point]):
        super().__init__(message)
        self.points = points


class DomainSpaceSampler:
    """Uniform points inside a box of domains."""

    def sample(self, domains: Sequence[Domain], count: int, rng: RandomSource) -> np.ndarray:
        lower = [d.lower_limit for d in domains]
        upper = [d.upper_limit for d in domains]
        return rng.uniform_matrix(lower, upper, count)


class PointsGenerator:
    """Interface: generate_points(count, benchmark) -> list of Point."""

    def __init__(self, rng: RandomSource, max_attempts: int = 10000):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be positive, got {max_attempts}")
        self.rng = rng
        self.max_attempts = max_attempts
        self.sampler = DomainSpaceSampler()

    def _accept(self, candidate: np.ndarray, benchmark) -> bool:
        raise NotImplementedError

    def _draw(self, benchmark) -> np.ndarray:
        return self.sampler.sample(benchmark.domains, 1, self.rng)[0]

    def generate_points(self, count: int, benchmark) -> List[Point]:
        points: List[Point] = []
        for i in range(count):
            for _ in range(self.max_attempts):
                candidate = self._draw(benchmark)
                if self._accept(candidate, benchmark):
                    points.append(Point(candidate))
                    break
            else:
                raise PointGenerationError(
                    f"{type(self).__name__} gave up on point {i + 1}/{count} "
                    f"after {self.max_attempts} attempts",
                    points,
                )
        return points


class PositivePointsGenerator(PointsGenerator):
    """Points inside the benchmark region."""

    def _accept(self, candidate, benchmark) -> bool:
        return bool(satisfied_mask(benchmark.constraints, candidate)[0])


class NegativePointsGenerator(PointsGenerator):
    """
    Points outside the benchmark region and away from the positive points.

    Each positive point gets an exclusion radius equal to the distance to its
    nearest positive neighbour. With fewer than two positive points there is
    no neighbour and the radius is 0.
    """

    def __init__(
        self,
        positive_points: Sequence[Point],
        distance_calculator: DistanceCalculator,
        rng: RandomSource,
        max_attempts: int = 10000,
    ):
        super().__init__(rng, max_attempts)
        self.positive_points = list(positive_points)
        self.distance_calculator = distance_calculator
        self.calculate_nearest_neighbour_distances()

        dimensions = self.positive_points[0].dimensions if self.positive_points else 0
        self._centres = points_to_array(self.positive_points, dimensions)
        self._radii = np.array([p.distance_to_nearest_neighbour for p in self.positive_points])

    def calculate_nearest_neighbour_distances(self) -> None:
        """Store each positive point's distance to its nearest positive neighbour."""
        if len(self.positive_points) < 2:
            for point in self.positive_points:
                point.distance_to_nearest_neighbour = 0.0
            return

        X = points_to_array(self.positive_points)
        distances = self.distance_calculator.pairwise(X, X)
        np.fill_diagonal(distances, np.inf)
        nearest = distances.min(axis=1)
        for point, distance in zip(self.positive_points, nearest):
            point.distance_to_nearest_neighbour = float(distance)

    def is_outside_neighbourhoods(self, candidate: np.ndarray) -> bool:
        if len(self._centres) == 0:
            return True
        distances = self.distance_calculator.pairwise(candidate[np.newaxis, :], self._centres)[0]
        return bool(np.all(distances > self._radii))

    def _accept(self, candidate, benchmark) -> bool:
        if satisfied_mask(benchmark.constraints, candidate)[0]:
            return False
        return self.is_outside_neighbourhoods(candidate)
