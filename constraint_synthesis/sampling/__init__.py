"""Positive, negative and domain-space point sampling."""

from .points import (
    PointGenerationError,
    DomainSpaceSampler,
    PointsGenerator,
    PositivePointsGenerator,
    NegativePointsGenerator,
)

__all__ = [
    'PointGenerationError',
    'DomainSpaceSampler',
    'PointsGenerator',
    'PositivePointsGenerator',
    'NegativePointsGenerator',
]
