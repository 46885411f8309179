"""
Seedable random stream shared by every stochastic component of a run.

A single RandomSource is created per run and passed explicitly to the
point generators, population generator, mutators, recombiners and
selectors. Independent sub-streams for worker processes come from spawn().
"""

from typing import List, Optional, Sequence
import numpy as np


class RandomSource:
    """Thin wrapper over numpy's Generator with the draws the engine needs."""

    def __init__(self, seed: Optional[int] = None, seed_sequence: Optional[np.random.SeedSequence] = None):
        if seed_sequence is None:
            seed_sequence = np.random.SeedSequence(seed)
        self.seed = seed
        self._seed_sequence = seed_sequence
        self.generator = np.random.Generator(np.random.PCG64(seed_sequence))

    def next_double(self, lower: float = 0.0, upper: float = 1.0) -> float:
        """Uniform draw from [lower, upper)."""
        return float(self.generator.uniform(lower, upper))

    def next_int(self, exclusive_upper: int) -> int:
        """Uniform integer from [0, exclusive_upper)."""
        if exclusive_upper <= 0:
            raise ValueError(f"exclusive_upper must be positive, got {exclusive_upper}")
        return int(self.generator.integers(exclusive_upper))

    def gauss(self) -> float:
        """Single N(0, 1) draw."""
        return float(self.generator.standard_normal())

    def gauss_vector(self, size: int) -> np.ndarray:
        """Vector of independent N(0, 1) draws."""
        return self.generator.standard_normal(size)

    def uniform_matrix(self, lower: Sequence[float], upper: Sequence[float], rows: int) -> np.ndarray:
        """Rows of points drawn uniformly inside the given box."""
        lower = np.asarray(lower, dtype=float)
        upper = np.asarray(upper, dtype=float)
        return self.generator.uniform(lower, upper, size=(rows, len(lower)))

    def choice_weighted(self, weights: Sequence[float], size: int) -> np.ndarray:
        """Indices drawn with replacement proportionally to weights."""
        w = np.asarray(weights, dtype=float)
        total = w.sum()
        if total <= 0 or not np.isfinite(total):
            p = None
        else:
            p = w / total
        return self.generator.choice(len(w), size=size, replace=True, p=p)

    def spawn(self, n: int) -> List['RandomSource']:
        """Independent, deterministically seeded child streams."""
        return [
            RandomSource(seed_sequence=child)
            for child in self._seed_sequence.spawn(n)
        ]

    def __repr__(self) -> str:
        return f"RandomSource(seed={self.seed})"
