"""
Run statistics.

Records per-generation statistics of the base population for analysis,
plotting and the stagnation-based stopping rule.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

import numpy as np

from .solution import Solution


@dataclass
class GenerationStats:
    """Statistics for a single generation."""
    generation: int
    best_fitness: float
    mean_fitness: float
    worst_fitness: float
    std_fitness: float
    best_so_far: float
    mean_step_size: float
    success_ratio: Optional[float]
    evaluations_this_gen: int
    successes: int
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class EvolutionHistory:
    """
    Tracks evolution progress over generations.

    `fitness_trajectory` holds the best fitness of each recorded generation's
    base population; `best_so_far_trajectory` is its running minimum.
    """

    def __init__(self):
        self.generations: List[GenerationStats] = []
        self.fitness_trajectory: List[float] = []
        self.best_so_far_trajectory: List[float] = []

    def record_generation(
        self,
        generation: int,
        population: List[Solution],
        evaluations: int,
        successes: int = 0,
        success_ratio: Optional[float] = None,
    ) -> GenerationStats:
        """
        Record statistics for a completed generation.

        Args:
            generation: Generation number (0 = initial population)
            population: Evaluated base population
            evaluations: Fitness evaluations spent this generation
            successes: Offspring that beat their parent
            success_ratio: Windowed success ratio, when tracked

        Returns:
            GenerationStats for this generation
        """
        if not population:
            raise ValueError("Cannot record statistics of an empty population")

        fitnesses = np.array([s.fitness for s in population], dtype=float)
        steps = np.concatenate([s.std_deviations_coefficients for s in population])

        best = float(fitnesses.min())
        best_so_far = min(best, self.best_so_far_trajectory[-1]) if self.best_so_far_trajectory else best

        stats = GenerationStats(
            generation=generation,
            best_fitness=best,
            mean_fitness=float(fitnesses.mean()),
            worst_fitness=float(fitnesses.max()),
            std_fitness=float(fitnesses.std()),
            best_so_far=best_so_far,
            mean_step_size=float(steps.mean()),
            success_ratio=success_ratio,
            evaluations_this_gen=evaluations,
            successes=successes,
            timestamp=datetime.now().isoformat(),
        )

        self.generations.append(stats)
        self.fitness_trajectory.append(best)
        self.best_so_far_trajectory.append(best_so_far)
        return stats

    @property
    def total_evaluations(self) -> int:
        return sum(g.evaluations_this_gen for g in self.generations)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'generations': [g.to_dict() for g in self.generations],
            'fitness_trajectory': self.fitness_trajectory,
            'best_so_far_trajectory': self.best_so_far_trajectory,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EvolutionHistory':
        history = cls()
        history.generations = [GenerationStats(**g) for g in data.get('generations', [])]
        history.fitness_trajectory = data.get('fitness_trajectory', [])
        history.best_so_far_trajectory = data.get('best_so_far_trajectory', [])
        return history

    def should_early_stop(
        self,
        patience: int = 10,
        min_improvement: float = 1e-9,
    ) -> bool:
        """
        True when the best fitness has not dropped by at least
        `min_improvement` during the last `patience` generations.
        """
        if len(self.fitness_trajectory) <= patience:
            return False

        recent_best = min(self.fitness_trajectory[-patience:])
        older_best = min(self.fitness_trajectory[:-patience])
        return older_best - recent_best < min_improvement
