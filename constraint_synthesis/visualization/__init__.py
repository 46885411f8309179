"""Visualization utilities for synthesis runs."""

from .plots import (
    plot_constraints_2d,
    plot_fitness_history,
    save_figure,
)

__all__ = [
    'plot_constraints_2d',
    'plot_fitness_history',
    'save_figure',
]
