"""Benchmark regions used to generate labelled sample points."""

from .shapes import (
    Benchmark,
    balln,
    cuben,
    simplexn,
    BENCHMARKS,
    get_benchmark,
    list_benchmarks,
)

__all__ = [
    'Benchmark',
    'balln',
    'cuben',
    'simplexn',
    'BENCHMARKS',
    'get_benchmark',
    'list_benchmarks',
]
