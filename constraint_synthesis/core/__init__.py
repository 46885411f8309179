"""Core primitives: geometry, distances, random stream, export and storage."""

from .geometry import (
    Domain,
    Point,
    Constraint,
    LinearConstraint,
    BallConstraint,
    constraint_from_dict,
    constraints_satisfied,
    satisfied_mask,
    points_to_array,
)
from .distance import (
    DistanceCalculator,
    CanberraDistanceCalculator,
    EuclideanDistanceCalculator,
    get_distance_calculator,
)
from .random_source import RandomSource
from .lp_format import to_lp_format, parse_lp_format
from .persistence import ResultStore
from .log import setup_logger

__all__ = [
    'Domain',
    'Point',
    'Constraint',
    'LinearConstraint',
    'BallConstraint',
    'constraint_from_dict',
    'constraints_satisfied',
    'satisfied_mask',
    'points_to_array',
    'DistanceCalculator',
    'CanberraDistanceCalculator',
    'EuclideanDistanceCalculator',
    'get_distance_calculator',
    'RandomSource',
    'to_lp_format',
    'parse_lp_format',
    'ResultStore',
    'setup_logger',
]
