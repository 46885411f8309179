"""
Benchmark regions with known ground-truth constraints.

Each benchmark scales with the number of dimensions n and a boundary value
that controls the size of the feasible region. The domains extend beyond
the feasible region so that negative points can be drawn around it.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List

from ..core.geometry import BallConstraint, Constraint, Domain, LinearConstraint
from ..config import BenchmarkType, ConfigurationError, ExperimentParameters


@dataclass
class Benchmark:
    """Ground truth: domains plus the constraints that define the region."""
    name: str
    domains: List[Domain]
    constraints: List[Constraint]

    @property
    def dimensions(self) -> int:
        return len(self.domains)


def balln(n: int, boundary_value: float) -> Benchmark:
    """
    Ball of radius b centred at (1, 2, ..., n).

    Domains: [i - 2b, i + 2b] for the i-th coordinate centre.
    """
    centre = [i + 1.0 for i in range(n)]
    domains = [Domain(c - 2 * boundary_value, c + 2 * boundary_value) for c in centre]
    constraint = BallConstraint([1.0] * n, boundary_value * boundary_value, centre=centre)
    return Benchmark('balln', domains, [constraint])


def cuben(n: int, boundary_value: float) -> Benchmark:
    """
    Axis-aligned box i <= x_i <= i * (1 + d) for i = 1..n.

    Two linear constraints per dimension; domains [i(1 - d), i(1 + 2d)].
    """
    d = boundary_value
    domains = []
    constraints = []
    for i in range(n):
        k = i + 1.0
        unit = [0.0] * n
        unit[i] = 1.0
        negated = [-u for u in unit]
        constraints.append(LinearConstraint(negated, -k))
        constraints.append(LinearConstraint(unit, k * (1 + d)))
        domains.append(Domain(k * (1 - d), k * (1 + 2 * d)))
    return Benchmark('cuben', domains, constraints)


def simplexn(n: int, boundary_value: float) -> Benchmark:
    """
    Simplex x_i >= 0, sum(x_i) <= s.

    n + 1 linear constraints; domains [-s, 2s].
    """
    s = boundary_value
    constraints = []
    for i in range(n):
        coefficients = [0.0] * n
        coefficients[i] = -1.0
        constraints.append(LinearConstraint(coefficients, 0.0))
    constraints.append(LinearConstraint([1.0] * n, s))
    domains = [Domain(-s, 2 * s) for _ in range(n)]
    return Benchmark('simplexn', domains, constraints)


BENCHMARKS: Dict[BenchmarkType, Callable[[ExperimentParameters], Benchmark]] = {
    BenchmarkType.BALLN: lambda p: balln(p.number_of_dimensions, p.balln_boundary_value),
    BenchmarkType.CUBEN: lambda p: cuben(p.number_of_dimensions, p.cuben_boundary_value),
    BenchmarkType.SIMPLEXN: lambda p: simplexn(p.number_of_dimensions, p.simplexn_boundary_value),
}


def get_benchmark(params: ExperimentParameters) -> Benchmark:
    """Benchmark for the configured type and dimensionality."""
    try:
        factory = BENCHMARKS[params.benchmark_type]
    except KeyError:
        raise ConfigurationError(f"Unsupported benchmark: {params.benchmark_type!r}") from None
    return factory(params)


def list_benchmarks() -> List[str]:
    return [b.value for b in BENCHMARKS]
