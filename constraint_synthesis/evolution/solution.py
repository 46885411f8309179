"""
Solution representation for the evolution strategy.

A Solution is the genome of a constraint set: the flattened object
coefficients (d term coefficients plus one limiting value per constraint),
the self-adaptive step sizes, and, for correlated mutation, the rotation
angles.

Shapes for n = len(object_coefficients):
- uncorrelated one-step: 1 step size, no angles
- uncorrelated n-steps: n step sizes, no angles
- correlated: n step sizes, n(n-1)/2 angles
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, TYPE_CHECKING
import numpy as np

from ..config import MutationType

if TYPE_CHECKING:
    from ..config import ExperimentParameters


def number_of_rotation_angles(n: int) -> int:
    """Pairwise rotations over an n-dimensional perturbation vector."""
    return n * (n - 1) // 2


def number_of_step_sizes(mutation_type: MutationType, n: int) -> int:
    if mutation_type is MutationType.UNCORRELATED_ONE_STEP:
        return 1
    return n


@dataclass(eq=False)
class Solution:
    """
    Genome of a candidate constraint set.

    Attributes:
        object_coefficients: Flattened constraints, (d + 1) values each
        std_deviations_coefficients: Step sizes (1 or n)
        rotation_angles: Rotation angles in (-pi, pi] (correlated only)
        fitness: Lower is better; inf until evaluated
    """
    object_coefficients: np.ndarray
    std_deviations_coefficients: np.ndarray
    rotation_angles: np.ndarray = field(default_factory=lambda: np.zeros(0))
    fitness: float = float('inf')

    def __post_init__(self):
        self.object_coefficients = np.array(self.object_coefficients, dtype=float)
        self.std_deviations_coefficients = np.array(self.std_deviations_coefficients, dtype=float)
        self.rotation_angles = np.array(self.rotation_angles, dtype=float)
        self.fitness = float(self.fitness)

        n = len(self.object_coefficients)
        if n == 0:
            raise ValueError("Solution needs at least one object coefficient")
        if len(self.std_deviations_coefficients) not in (1, n):
            raise ValueError(
                f"Step sizes length ({len(self.std_deviations_coefficients)}) must be 1 "
                f"or match object coefficients length ({n})"
            )
        if len(self.rotation_angles) not in (0, number_of_rotation_angles(n)):
            raise ValueError(
                f"Rotation angles length ({len(self.rotation_angles)}) must be 0 "
                f"or {number_of_rotation_angles(n)}"
            )

    @classmethod
    def empty(cls, params: 'ExperimentParameters') -> 'Solution':
        """Zero-filled solution shaped for the configured mutation variant."""
        n = params.number_of_object_coefficients
        angles = number_of_rotation_angles(n) if params.is_correlated else 0
        return cls(
            object_coefficients=np.zeros(n),
            std_deviations_coefficients=np.zeros(number_of_step_sizes(params.type_of_mutation, n)),
            rotation_angles=np.zeros(angles),
        )

    @property
    def dimensions(self) -> int:
        return len(self.object_coefficients)

    @property
    def is_evaluated(self) -> bool:
        return np.isfinite(self.fitness)

    def check_shape(self, params: 'ExperimentParameters') -> None:
        """
        Verify the vectors match the configured problem.

        Raises:
            ValueError: On any length mismatch
        """
        n = params.number_of_object_coefficients
        expected = (
            n,
            number_of_step_sizes(params.type_of_mutation, n),
            number_of_rotation_angles(n) if params.is_correlated else 0,
        )
        actual = (
            len(self.object_coefficients),
            len(self.std_deviations_coefficients),
            len(self.rotation_angles),
        )
        if actual != expected:
            raise ValueError(
                f"Solution shape {actual} does not match configuration {expected} "
                f"(object, step sizes, rotation angles)"
            )

    def copy(self) -> 'Solution':
        return Solution(
            object_coefficients=self.object_coefficients.copy(),
            std_deviations_coefficients=self.std_deviations_coefficients.copy(),
            rotation_angles=self.rotation_angles.copy(),
            fitness=self.fitness,
        )

    def __lt__(self, other: 'Solution') -> bool:
        return self.fitness < other.fitness

    def to_dict(self) -> Dict[str, Any]:
        return {
            'object_coefficients': self.object_coefficients.tolist(),
            'std_deviations_coefficients': self.std_deviations_coefficients.tolist(),
            'rotation_angles': self.rotation_angles.tolist(),
            'fitness': self.fitness if self.is_evaluated else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Solution':
        fitness = data.get('fitness')
        return cls(
            object_coefficients=data['object_coefficients'],
            std_deviations_coefficients=data['std_deviations_coefficients'],
            rotation_angles=data.get('rotation_angles', []),
            fitness=float('inf') if fitness is None else fitness,
        )

    def __repr__(self) -> str:
        fitness_str = f"{self.fitness:.4f}" if self.is_evaluated else "unevaluated"
        return (
            f"Solution(n={self.dimensions}, steps={len(self.std_deviations_coefficients)}, "
            f"angles={len(self.rotation_angles)}, fitness={fitness_str})"
        )


def best_solution(solutions) -> Optional[Solution]:
    """Lowest-fitness solution, first one on ties."""
    best = None
    for solution in solutions:
        if best is None or solution.fitness < best.fitness:
            best = solution
    return best
