"""
Experiment configuration.

ExperimentParameters carries every tunable constant of a run. It is created
once (defaults, JSON file or CLI overrides), validated at engine
construction, and treated as read-only afterwards.
"""

from dataclasses import dataclass, fields, asdict
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional
import hashlib
import json
import math


class ConfigurationError(ValueError):
    """Invalid or unsupported experiment configuration."""


class MutationType(Enum):
    UNCORRELATED_ONE_STEP = 'uncorrelated_one_step'
    UNCORRELATED_N_STEPS = 'uncorrelated_n_steps'
    CORRELATED = 'correlated'


class RecombinationType(Enum):
    DISCRETE = 'discrete'
    INTERMEDIATE = 'intermediate'


class ParentsSelectionType(Enum):
    RANDOM = 'random'
    ROULETTE = 'roulette'
    TOURNAMENT = 'tournament'


class SurvivorsSelectionType(Enum):
    PLUS = 'plus'      # (mu + lambda)
    COMMA = 'comma'    # (mu, lambda)


class BenchmarkType(Enum):
    BALLN = 'balln'
    CUBEN = 'cuben'
    SIMPLEXN = 'simplexn'


_ENUM_FIELDS = {
    'type_of_mutation': MutationType,
    'type_of_object_recombination': RecombinationType,
    'type_of_std_devs_recombination': RecombinationType,
    'type_of_rotations_recombination': RecombinationType,
    'type_of_parents_selection': ParentsSelectionType,
    'type_of_survivors_selection': SurvivorsSelectionType,
    'benchmark_type': BenchmarkType,
}


def parse_enum(enum_cls, value):
    """Accept an enum member, its name or its value."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        key = value.strip()
        if key.upper() in enum_cls.__members__:
            return enum_cls[key.upper()]
        for member in enum_cls:
            if member.value == key.lower():
                return member
    raise ConfigurationError(
        f"Unsupported {enum_cls.__name__}: {value!r}. "
        f"Expected one of {[m.name for m in enum_cls]}"
    )


@dataclass
class ExperimentParameters:
    """Configuration for a synthesis run."""
    # Problem shape
    number_of_dimensions: int = 2
    number_of_constraints: int = 2

    # Population sizes (mu, lambda)
    base_population_size: int = 15
    offspring_population_size: int = 100
    number_of_generations: int = 100

    # Operators
    type_of_mutation: MutationType = MutationType.UNCORRELATED_N_STEPS
    use_recombination: bool = False
    type_of_object_recombination: RecombinationType = RecombinationType.INTERMEDIATE
    type_of_std_devs_recombination: RecombinationType = RecombinationType.INTERMEDIATE
    type_of_rotations_recombination: RecombinationType = RecombinationType.DISCRETE
    type_of_parents_selection: ParentsSelectionType = ParentsSelectionType.RANDOM
    type_of_survivors_selection: SurvivorsSelectionType = SurvivorsSelectionType.PLUS
    number_of_parents_solutions_to_select: int = 5
    part_of_population_to_recombine: float = 0.2
    tournament_size: int = 3

    # Self-adaptation (None = canonical value for the search-space size)
    one_step_learning_rate: Optional[float] = None
    global_learning_rate: Optional[float] = None
    individual_learning_rate: Optional[float] = None
    step_threshold: float = 1e-4
    beta_learning_rate: float = 0.0873

    # Success rule (1/5 rule)
    use_success_rule: bool = False
    success_rule_window: int = 5
    success_rule_threshold: float = 0.2
    success_rule_factor: float = 0.82

    # Initial population
    initial_coefficient_range: float = 10.0
    initial_step_size: float = 1.0

    # Fitness weighting
    misclassification_weight: float = 1.0
    constraint_penalty: float = 0.01

    # Benchmark and sample points
    benchmark_type: BenchmarkType = BenchmarkType.BALLN
    balln_boundary_value: float = 2.7
    cuben_boundary_value: float = 2.7
    simplexn_boundary_value: float = 2.7
    number_of_positive_points: int = 200
    number_of_negative_points: int = 200
    max_point_generation_attempts: int = 10000
    distance_metric: str = 'canberra'

    # Termination
    target_fitness: Optional[float] = None
    early_stop_patience: Optional[int] = None
    early_stop_min_improvement: float = 1e-9

    # Post-processing
    use_redundant_constraints_removal: bool = True
    number_of_domain_samples: int = 2000

    # Execution
    seed: Optional[int] = None
    n_workers: Optional[int] = None

    def __post_init__(self):
        for name, enum_cls in _ENUM_FIELDS.items():
            setattr(self, name, parse_enum(enum_cls, getattr(self, name)))

    @property
    def number_of_object_coefficients(self) -> int:
        """ES search-space size: every constraint has d terms plus a limit."""
        return self.number_of_constraints * (self.number_of_dimensions + 1)

    @property
    def number_of_solutions_to_recombine(self) -> int:
        return max(1, int(self.part_of_population_to_recombine * self.base_population_size))

    @property
    def is_correlated(self) -> bool:
        return self.type_of_mutation is MutationType.CORRELATED

    def validate(self) -> None:
        """
        Check the configuration for consistency.

        Raises:
            ConfigurationError: On the first problem found
        """
        positive_ints = (
            'number_of_dimensions',
            'number_of_constraints',
            'base_population_size',
            'offspring_population_size',
            'number_of_parents_solutions_to_select',
            'tournament_size',
            'success_rule_window',
            'number_of_positive_points',
            'max_point_generation_attempts',
            'number_of_domain_samples',
        )
        for name in positive_ints:
            value = getattr(self, name)
            if not isinstance(value, int) or value < 1:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")

        if not isinstance(self.number_of_generations, int) or self.number_of_generations < 0:
            raise ConfigurationError(
                f"number_of_generations must be a non-negative integer, got {self.number_of_generations!r}"
            )
        if self.number_of_negative_points < 0:
            raise ConfigurationError("number_of_negative_points must be non-negative")

        if (self.type_of_survivors_selection is SurvivorsSelectionType.COMMA
                and self.offspring_population_size < self.base_population_size):
            raise ConfigurationError(
                f"Comma selection needs offspring_population_size "
                f"({self.offspring_population_size}) >= base_population_size "
                f"({self.base_population_size})"
            )

        if not 0.0 < self.part_of_population_to_recombine <= 1.0:
            raise ConfigurationError("part_of_population_to_recombine must lie in (0, 1]")

        for name in ('one_step_learning_rate', 'global_learning_rate', 'individual_learning_rate'):
            value = getattr(self, name)
            if value is not None and (not math.isfinite(value) or value <= 0):
                raise ConfigurationError(f"{name} must be positive, got {value!r}")

        if not self.step_threshold > 0:
            raise ConfigurationError("step_threshold must be positive")
        if self.beta_learning_rate < 0:
            raise ConfigurationError("beta_learning_rate must be non-negative")
        if not self.initial_step_size >= self.step_threshold:
            raise ConfigurationError("initial_step_size must be at least step_threshold")
        if not self.initial_coefficient_range > 0:
            raise ConfigurationError("initial_coefficient_range must be positive")

        if not 0.0 < self.success_rule_threshold < 1.0:
            raise ConfigurationError("success_rule_threshold must lie in (0, 1)")
        if not 0.0 < self.success_rule_factor < 1.0:
            raise ConfigurationError("success_rule_factor must lie in (0, 1)")

        if self.misclassification_weight <= 0 or self.constraint_penalty < 0:
            raise ConfigurationError(
                "misclassification_weight must be positive and constraint_penalty non-negative"
            )

        for name in ('balln_boundary_value', 'cuben_boundary_value', 'simplexn_boundary_value'):
            if not getattr(self, name) > 0:
                raise ConfigurationError(f"{name} must be positive")

        if self.early_stop_patience is not None and self.early_stop_patience < 1:
            raise ConfigurationError("early_stop_patience must be positive when set")
        if self.n_workers is not None and self.n_workers < 1:
            raise ConfigurationError("n_workers must be positive when set")

        from .core.distance import DISTANCE_CALCULATORS
        if self.distance_metric.lower() not in DISTANCE_CALCULATORS:
            raise ConfigurationError(f"Unknown distance metric: {self.distance_metric!r}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary (enums by name)."""
        d = asdict(self)
        for name in _ENUM_FIELDS:
            d[name] = getattr(self, name).name
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExperimentParameters':
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown parameters: {sorted(unknown)}")
        return cls(**data)

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2))

    @classmethod
    def load(cls, path: Path) -> 'ExperimentParameters':
        return cls.from_dict(json.loads(Path(path).read_text()))

    def hash_string(self) -> str:
        """Parameter values concatenated in name order."""
        d = self.to_dict()
        return ''.join(str(d[name]) for name in sorted(d) if name != 'n_workers')

    def digest(self) -> str:
        """Stable identifier of this parameter set."""
        return hashlib.sha256(self.hash_string().encode('utf-8')).hexdigest()
