"""
Geometric primitives for constraint synthesis.

A benchmark region is described by per-dimension domains and a set of
constraints. A point is feasible when it satisfies every constraint.

Constraint variants:
- LinearConstraint: sum(c_i * x_i) <= b
- BallConstraint: sum(c_i * (x_i - centre_i)^2) <= b
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Union
import numpy as np


@dataclass(frozen=True)
class Domain:
    """Closed interval bounding a single dimension."""
    lower_limit: float
    upper_limit: float

    def __post_init__(self):
        if self.lower_limit > self.upper_limit:
            raise ValueError(
                f"Domain lower limit {self.lower_limit} exceeds "
                f"upper limit {self.upper_limit}"
            )

    @property
    def width(self) -> float:
        return self.upper_limit - self.lower_limit

    def contains(self, value: float) -> bool:
        return self.lower_limit <= value <= self.upper_limit


@dataclass
class Point:
    """
    A sample point.

    Attributes:
        coordinates: Position in the problem space
        distance_to_nearest_neighbour: Filled in once for positive points,
            used as the exclusion radius when drawing negative points
    """
    coordinates: np.ndarray
    distance_to_nearest_neighbour: float = 0.0

    def __post_init__(self):
        self.coordinates = np.asarray(self.coordinates, dtype=float)

    @property
    def dimensions(self) -> int:
        return len(self.coordinates)


PointLike = Union[Point, Sequence[float], np.ndarray]


def _coordinates(point: PointLike) -> np.ndarray:
    if isinstance(point, Point):
        return point.coordinates
    return np.asarray(point, dtype=float)


class Constraint:
    """Base class for constraint variants."""

    kind = 'abstract'

    def __init__(self, terms_coefficients: Sequence[float], limiting_value: float):
        self.terms_coefficients = np.asarray(terms_coefficients, dtype=float)
        self.limiting_value = float(limiting_value)

    @property
    def dimensions(self) -> int:
        return len(self.terms_coefficients)

    def _left_hand_side(self, X: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def satisfied_mask(self, X: np.ndarray) -> np.ndarray:
        """Vectorised satisfaction test over the rows of X."""
        X = np.atleast_2d(np.asarray(X, dtype=float))
        if X.shape[1] != self.dimensions:
            raise ValueError(
                f"Points have {X.shape[1]} dimensions, constraint expects {self.dimensions}"
            )
        return self._left_hand_side(X) <= self.limiting_value

    def is_satisfying_constraint(self, point: PointLike) -> bool:
        return bool(self.satisfied_mask(_coordinates(point))[0])

    def to_dict(self) -> dict:
        return {
            'kind': self.kind,
            'terms_coefficients': self.terms_coefficients.tolist(),
            'limiting_value': self.limiting_value,
        }

    def __eq__(self, other) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return (
            np.array_equal(self.terms_coefficients, other.terms_coefficients)
            and self.limiting_value == other.limiting_value
        )

    def __repr__(self) -> str:
        coeffs = ', '.join(f"{c:g}" for c in self.terms_coefficients)
        return f"{type(self).__name__}([{coeffs}], {self.limiting_value:g})"


class LinearConstraint(Constraint):
    """Half-space: sum(c_i * x_i) <= b."""

    kind = 'linear'

    def _left_hand_side(self, X: np.ndarray) -> np.ndarray:
        return X @ self.terms_coefficients


class BallConstraint(Constraint):
    """Weighted ball: sum(c_i * (x_i - centre_i)^2) <= b."""

    kind = 'ball'

    def __init__(
        self,
        terms_coefficients: Sequence[float],
        limiting_value: float,
        centre: Optional[Sequence[float]] = None,
    ):
        super().__init__(terms_coefficients, limiting_value)
        if centre is None:
            self.centre = np.zeros(self.dimensions)
        else:
            self.centre = np.asarray(centre, dtype=float)
            if len(self.centre) != self.dimensions:
                raise ValueError(
                    f"Centre length ({len(self.centre)}) must match "
                    f"coefficients length ({self.dimensions})"
                )

    def _left_hand_side(self, X: np.ndarray) -> np.ndarray:
        return ((X - self.centre) ** 2) @ self.terms_coefficients

    def to_dict(self) -> dict:
        d = super().to_dict()
        d['centre'] = self.centre.tolist()
        return d

    def __eq__(self, other) -> bool:
        result = super().__eq__(other)
        if result is NotImplemented or not result:
            return result
        return np.array_equal(self.centre, other.centre)


def constraint_from_dict(data: dict) -> Constraint:
    """Rebuild a constraint serialised with Constraint.to_dict()."""
    kind = data.get('kind', 'linear')
    if kind == 'linear':
        return LinearConstraint(data['terms_coefficients'], data['limiting_value'])
    if kind == 'ball':
        return BallConstraint(
            data['terms_coefficients'], data['limiting_value'], data.get('centre')
        )
    raise ValueError(f"Unknown constraint kind: {kind}")


def satisfied_mask(constraints: Sequence[Constraint], X: np.ndarray) -> np.ndarray:
    """
    Feasibility of every row of X against a constraint set.

    A row is feasible iff every constraint is satisfied, so the result does
    not depend on constraint order. An empty set accepts everything.
    """
    X = np.atleast_2d(np.asarray(X, dtype=float))
    mask = np.ones(len(X), dtype=bool)
    for constraint in constraints:
        mask &= constraint.satisfied_mask(X)
    return mask


def constraints_satisfied(constraints: Sequence[Constraint], point: PointLike) -> bool:
    """Check a single point against every constraint."""
    coordinates = _coordinates(point)
    for constraint in constraints:
        if not constraint.is_satisfying_constraint(coordinates):
            return False
    return True


def points_to_array(points: Sequence[Point], dimensions: Optional[int] = None) -> np.ndarray:
    """Stack point coordinates into an (N x d) matrix."""
    if not points:
        return np.empty((0, dimensions or 0))
    return np.vstack([p.coordinates for p in points])
