"""
Matplotlib-based visualization for synthesis runs.

These functions create static plots for analysis and documentation.
"""

import numpy as np
from typing import Optional, Sequence, Tuple

# Matplotlib imports with non-GUI backend
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from matplotlib.colors import ListedColormap

from ..core.geometry import Constraint, Domain, LinearConstraint, satisfied_mask
from ..evolution.history import EvolutionHistory


REGION_CMAP = ListedColormap(['#ecf0f1', '#a9dfbf'])


def plot_constraints_2d(
    constraints: Sequence[Constraint],
    domains: Sequence[Domain],
    positive_points: Optional[np.ndarray] = None,
    negative_points: Optional[np.ndarray] = None,
    reference_constraints: Optional[Sequence[Constraint]] = None,
    resolution: int = 200,
    title: Optional[str] = None,
    figsize: Tuple[int, int] = (7, 7),
    ax: Optional[plt.Axes] = None
) -> plt.Figure:
    """
    Plot the feasible region of a 2-D constraint set.

    Args:
        constraints: Synthesized constraints
        domains: Exactly two domains, giving the plot range
        positive_points: (n, 2) array of inside points
        negative_points: (n, 2) array of outside points
        reference_constraints: Benchmark constraints drawn as a dashed outline
        resolution: Grid resolution
        title: Plot title
        figsize: Figure size
        ax: Existing axes to plot on

    Returns:
        matplotlib Figure
    """
    if len(domains) != 2:
        raise ValueError(f"plot_constraints_2d needs 2 domains, got {len(domains)}")

    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    x_range = (domains[0].lower_limit, domains[0].upper_limit)
    y_range = (domains[1].lower_limit, domains[1].upper_limit)
    xx, yy = np.meshgrid(
        np.linspace(x_range[0], x_range[1], resolution),
        np.linspace(y_range[0], y_range[1], resolution)
    )
    grid = np.c_[xx.ravel(), yy.ravel()]

    feasible = satisfied_mask(constraints, grid).reshape(xx.shape).astype(int)
    ax.contourf(xx, yy, feasible, levels=[-0.5, 0.5, 1.5], cmap=REGION_CMAP, alpha=0.8)

    # Boundary line of each linear constraint
    xs = np.linspace(x_range[0], x_range[1], 2)
    for constraint in constraints:
        if not isinstance(constraint, LinearConstraint):
            continue
        a, b = constraint.terms_coefficients
        limit = constraint.limiting_value
        if abs(b) > 1e-12:
            ax.plot(xs, (limit - a * xs) / b, color='#2c3e50', linewidth=1)
        elif abs(a) > 1e-12:
            ax.axvline(limit / a, color='#2c3e50', linewidth=1)

    if reference_constraints:
        reference = satisfied_mask(reference_constraints, grid).reshape(xx.shape).astype(float)
        ax.contour(xx, yy, reference, levels=[0.5], colors='black', linestyles='dashed', linewidths=1.5)

    if positive_points is not None and len(positive_points):
        ax.scatter(positive_points[:, 0], positive_points[:, 1], c='#27ae60', s=12,
                   label='inside', zorder=10)
    if negative_points is not None and len(negative_points):
        ax.scatter(negative_points[:, 0], negative_points[:, 1], c='#e74c3c', s=12,
                   marker='x', label='outside', zorder=10)

    ax.set_xlim(x_range)
    ax.set_ylim(y_range)
    ax.set_xlabel('x₀')
    ax.set_ylabel('x₁')
    ax.set_title(title or f'{len(constraints)} synthesized constraints')
    if positive_points is not None or negative_points is not None:
        ax.legend(loc='upper right')
    ax.set_aspect('equal')

    return fig


def plot_fitness_history(
    history: EvolutionHistory,
    figsize: Tuple[int, int] = (10, 4),
    title: Optional[str] = None
) -> plt.Figure:
    """
    Plot fitness and mean step size over generations.

    Args:
        history: Recorded run history
        figsize: Figure size
        title: Plot title

    Returns:
        matplotlib Figure
    """
    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=figsize)

    generations = [g.generation for g in history.generations]

    # Fitness plot
    ax1.plot(generations, [g.mean_fitness for g in history.generations], 'b-', alpha=0.5, label='mean')
    ax1.plot(generations, history.fitness_trajectory, 'g-', linewidth=2, label='best')
    ax1.plot(generations, history.best_so_far_trajectory, 'k--', linewidth=1, label='best so far')
    ax1.set_xlabel('Generation')
    ax1.set_ylabel('Fitness')
    ax1.set_title('Fitness (lower is better)')
    ax1.grid(True, alpha=0.3)
    ax1.legend()

    # Step size plot
    ax2.plot(generations, [g.mean_step_size for g in history.generations], 'r-', linewidth=2)
    ax2.set_xlabel('Generation')
    ax2.set_ylabel('Mean step size')
    ax2.set_title('Strategy Parameters')
    ax2.grid(True, alpha=0.3)
    ax2.set_yscale('log')

    if title:
        fig.suptitle(title)

    plt.tight_layout()
    return fig


def save_figure(fig: plt.Figure, path: str, dpi: int = 100) -> None:
    """Write a figure to disk and release it."""
    fig.savefig(path, dpi=dpi, bbox_inches='tight')
    plt.close(fig)
