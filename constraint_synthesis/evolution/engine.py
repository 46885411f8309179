"""
Main evolution strategy engine.

Orchestrates the generation loop:
1. Initialize and evaluate the base population
2. Select a mating pool
3. Recombine (when configured) or copy parents into offspring
4. Mutate every offspring and apply the mutation rule supervisor
5. Evaluate offspring
6. Select survivors into the next base population
7. Repeat until the generation budget, the target fitness or stagnation

The four engine variants (correlated or uncorrelated mutation, with or
without recombination) share this loop and differ only in the operators
wired in by get_engine().
"""

from dataclasses import dataclass, field
from enum import Enum
from multiprocessing import Pool
from typing import Any, Callable, Dict, List, Optional, Sequence
import time

import numpy as np
from loguru import logger

from ..benchmarks import Benchmark, get_benchmark
from ..config import ConfigurationError, ExperimentParameters
from ..core.distance import get_distance_calculator
from ..core.geometry import Constraint, Domain, Point
from ..core.lp_format import to_lp_format
from ..core.random_source import RandomSource
from ..sampling.points import (
    DomainSpaceSampler,
    NegativePointsGenerator,
    PointGenerationError,
    PointsGenerator,
    PositivePointsGenerator,
)
from .fitness import ClassificationScores, Evaluator
from .history import EvolutionHistory
from .mutation import Mutator, get_mutator
from .population import PopulationRandomGenerator, get_population_generator
from .recombination import (
    Recombiner,
    get_object_recombiner,
    get_rotations_recombiner,
    get_std_devs_recombiner,
)
from .redundancy import RedundantConstraintsRemover
from .selection import (
    ParentsSelector,
    SurvivorsSelector,
    get_parents_selector,
    get_survivors_selector,
)
from .solution import Solution, best_solution
from .supervision import MutationRuleSupervisor, get_mutation_rule_supervisor


class EngineState(Enum):
    INITIALIZING = 'initializing'
    GENERATING = 'generating'
    RECOMBINING = 'recombining'
    MUTATING = 'mutating'
    EVALUATING = 'evaluating'
    SELECTING = 'selecting'
    TERMINATED = 'terminated'


@dataclass
class EvolutionResult:
    """Results from an evolution run."""
    best_solution: Solution
    constraints: List[Constraint]
    reduced_constraints: List[Constraint]
    domains: List[Domain]
    scores: ClassificationScores
    reduced_scores: ClassificationScores
    initial_best_fitness: float
    history: EvolutionHistory
    generations_completed: int
    total_evaluations: int
    runtime_seconds: float
    stop_reason: str
    variant: str
    lp_export: str = field(repr=False, default='')

    @property
    def best_fitness(self) -> float:
        return self.best_solution.fitness

    def summary(self) -> str:
        lines = [
            f"Engine: {self.variant}",
            f"Generations: {self.generations_completed}",
            f"Total evaluations: {self.total_evaluations}",
            f"Initial best fitness: {self.initial_best_fitness:.4f}",
            f"Best fitness: {self.best_fitness:.4f}",
            f"Accuracy: {self.scores.accuracy:.4f} "
            f"({self.scores.misclassified} misclassified)",
            f"Constraints: {len(self.constraints)} -> {len(self.reduced_constraints)} after redundancy removal",
            f"Runtime: {self.runtime_seconds:.1f}s",
            f"Stopped: {self.stop_reason}",
        ]
        return '\n'.join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'variant': self.variant,
            'best_solution': self.best_solution.to_dict(),
            'best_fitness': self.best_fitness,
            'initial_best_fitness': self.initial_best_fitness,
            'constraints': [c.to_dict() for c in self.constraints],
            'reduced_constraints': [c.to_dict() for c in self.reduced_constraints],
            'domains': [[d.lower_limit, d.upper_limit] for d in self.domains],
            'scores': self.scores.to_dict(),
            'reduced_scores': self.reduced_scores.to_dict(),
            'history': self.history.to_dict(),
            'generations_completed': self.generations_completed,
            'total_evaluations': self.total_evaluations,
            'runtime_seconds': self.runtime_seconds,
            'stop_reason': self.stop_reason,
        }


class EvolutionEngine:
    """
    Evolution strategy for constraint synthesis.

    Holds the base population (mu) and the offspring population (lambda) and
    runs the generation loop with the operators it was constructed with.
    """

    def __init__(
        self,
        params: ExperimentParameters,
        benchmark: Benchmark,
        evaluator: Evaluator,
        population_generator: PopulationRandomGenerator,
        mutator: Mutator,
        mutation_rule_supervisor: MutationRuleSupervisor,
        parents_selector: ParentsSelector,
        survivors_selector: SurvivorsSelector,
        object_recombiner: Optional[Recombiner] = None,
        std_devs_recombiner: Optional[Recombiner] = None,
        rotations_recombiner: Optional[Recombiner] = None,
        redundant_constraints_remover: Optional[RedundantConstraintsRemover] = None,
    ):
        """
        Initialize evolution engine.

        Raises:
            ConfigurationError: If the parameters are invalid or the
                recombiners do not match the configured variant
        """
        params.validate()
        if params.use_recombination:
            if object_recombiner is None or std_devs_recombiner is None:
                raise ConfigurationError("Recombination is enabled but recombiners are missing")
            if params.is_correlated and rotations_recombiner is None:
                raise ConfigurationError("Correlated recombination needs a rotations recombiner")

        self.params = params
        self.benchmark = benchmark
        self.evaluator = evaluator
        self.population_generator = population_generator
        self.mutator = mutator
        self.supervisor = mutation_rule_supervisor
        self.parents_selector = parents_selector
        self.survivors_selector = survivors_selector
        self.object_recombiner = object_recombiner
        self.std_devs_recombiner = std_devs_recombiner
        self.rotations_recombiner = rotations_recombiner
        self.remover = redundant_constraints_remover

        self.base_population: List[Solution] = []
        self.offspring_population: List[Solution] = []
        self.best_solution: Optional[Solution] = None
        self.history = EvolutionHistory()
        self.generation = 0
        self.total_evaluations = 0
        self.state = EngineState.INITIALIZING

    @property
    def variant(self) -> str:
        mutation = 'correlated' if self.params.is_correlated else 'uncorrelated'
        recombination = 'with' if self.params.use_recombination else 'without'
        return f"{mutation} mutation {recombination} recombination"

    def initialize_population(self) -> None:
        """Create and evaluate the base population."""
        self.state = EngineState.INITIALIZING
        population = self.population_generator.generate_population(self.params.base_population_size)
        for solution in population:
            solution.check_shape(self.params)

        evaluations = self.evaluate_population(population)
        self.base_population = population
        self.offspring_population = []
        self.generation = 0
        self.total_evaluations = evaluations
        self.history = EvolutionHistory()
        self.best_solution = best_solution(population).copy()
        self.history.record_generation(0, self.base_population, evaluations)
        logger.info(
            "Initial population of {} evaluated, best fitness {:.4f}",
            len(population), self.best_solution.fitness,
        )

    def evaluate_population(self, solutions: Sequence[Solution]) -> int:
        """
        Evaluate every solution, in worker processes when n_workers > 1.

        Returns:
            Number of evaluations performed
        """
        n_workers = self.params.n_workers or 1
        if n_workers > 1 and len(solutions) > 1:
            args = [s.object_coefficients for s in solutions]
            with Pool(n_workers, initializer=_init_worker, initargs=(self.evaluator,)) as pool:
                fitnesses = pool.map(_evaluate_worker, args)
            for solution, fitness in zip(solutions, fitnesses):
                solution.fitness = fitness
        else:
            for solution in solutions:
                self.evaluator.evaluate(solution)
        return len(solutions)

    def create_offspring(self) -> List[float]:
        """
        Fill the offspring population from the base population.

        Returns:
            Reference fitness per offspring (its parent's, or the best of its
            mating pool when recombining) for success counting
        """
        self.state = EngineState.GENERATING
        lam = self.params.offspring_population_size
        offspring: List[Solution] = []
        references: List[float] = []

        if self.params.use_recombination:
            self.state = EngineState.RECOMBINING
            for _ in range(lam):
                pool = self.parents_selector.select(
                    self.base_population, self.params.number_of_parents_solutions_to_select
                )
                child = self.object_recombiner.recombine(pool)
                self.std_devs_recombiner.recombine(pool, child)
                if self.params.is_correlated:
                    self.rotations_recombiner.recombine(pool, child)
                offspring.append(child)
                references.append(min(p.fitness for p in pool))
        else:
            for parent in self.parents_selector.select(self.base_population, lam):
                child = parent.copy()
                child.fitness = float('inf')
                offspring.append(child)
                references.append(parent.fitness)

        self.offspring_population = offspring
        return references

    def mutate_offspring(self) -> None:
        self.state = EngineState.MUTATING
        for solution in self.offspring_population:
            self.mutator.mutate(solution)
            self.supervisor.ensure(solution)

    def run_generation(self) -> None:
        """Execute one generation of evolution."""
        if not self.base_population:
            raise RuntimeError("Base population is empty; call initialize_population() first")
        self.generation += 1

        references = self.create_offspring()
        self.mutate_offspring()

        self.state = EngineState.EVALUATING
        evaluations = self.evaluate_population(self.offspring_population)
        self.total_evaluations += evaluations

        successes = sum(
            1 for child, reference in zip(self.offspring_population, references)
            if child.fitness < reference
        )
        self.supervisor.record(successes, len(self.offspring_population))

        self.state = EngineState.SELECTING
        self.base_population = self.survivors_selector.select(
            self.base_population, self.offspring_population
        )

        generation_best = best_solution(self.base_population)
        if generation_best.fitness < self.best_solution.fitness:
            self.best_solution = generation_best.copy()

        stats = self.history.record_generation(
            self.generation,
            self.base_population,
            evaluations,
            successes=successes,
            success_ratio=self.supervisor.success_ratio,
        )
        logger.debug(
            "Generation {}: best {:.4f}, mean {:.4f}, successes {}/{}, mean step {:.4g}",
            self.generation, stats.best_fitness, stats.mean_fitness,
            successes, evaluations, stats.mean_step_size,
        )

    def _stop_reason(self) -> Optional[str]:
        target = self.params.target_fitness
        if target is not None and self.best_solution.fitness <= target:
            return f"Reached target fitness {target}"
        patience = self.params.early_stop_patience
        if patience is not None and self.history.should_early_stop(
            patience=patience,
            min_improvement=self.params.early_stop_min_improvement,
        ):
            return f"No improvement > {self.params.early_stop_min_improvement} in {patience} generations"
        return None

    def evolve(
        self,
        n_generations: Optional[int] = None,
        progress_callback: Optional[Callable[[int, int, Dict], None]] = None,
    ) -> EvolutionResult:
        """
        Run the full optimization.

        The result is built from the best solution seen in any generation.
        Under plus selection that is also the best of the final population;
        under comma selection the final population may hold only worse
        solutions, and the earlier best is reported instead.

        Args:
            n_generations: Generation budget (defaults to the configured one)
            progress_callback: Optional callback(gen, total_gens, stats)

        Returns:
            EvolutionResult built from the best solution found
        """
        if n_generations is None:
            n_generations = self.params.number_of_generations
        start_time = time.time()
        logger.info("Starting {} for up to {} generations", self.variant, n_generations)

        if not self.base_population:
            self.initialize_population()
        initial_best = self.history.generations[0].best_fitness

        stop_reason = self._stop_reason()
        while stop_reason is None and self.generation < n_generations:
            self.run_generation()
            if progress_callback:
                progress_callback(self.generation, n_generations, self.history.generations[-1].to_dict())
            stop_reason = self._stop_reason()

        if stop_reason is None:
            stop_reason = f"Generation budget of {n_generations} exhausted"
        self.state = EngineState.TERMINATED

        result = self._build_result(initial_best, stop_reason, time.time() - start_time)
        logger.info("Finished: {} (best fitness {:.4f})", stop_reason, result.best_fitness)
        return result

    def _build_result(self, initial_best: float, stop_reason: str, runtime: float) -> EvolutionResult:
        best = self.best_solution.copy()
        constraints = self.evaluator.decode(best)
        domains = list(self.benchmark.domains)

        if self.remover is not None:
            reduced = self.remover.remove(constraints, domains)
        else:
            reduced = list(constraints)

        return EvolutionResult(
            best_solution=best,
            constraints=constraints,
            reduced_constraints=reduced,
            domains=domains,
            scores=self.evaluator.classify(constraints),
            reduced_scores=self.evaluator.classify(reduced),
            initial_best_fitness=initial_best,
            history=self.history,
            generations_completed=self.generation,
            total_evaluations=self.total_evaluations,
            runtime_seconds=runtime,
            stop_reason=stop_reason,
            variant=self.variant,
            lp_export=to_lp_format(reduced, domains),
        )


# =============================================================================
# Construction
# =============================================================================

def generate_points(generator: PointsGenerator, count: int, benchmark: Benchmark) -> List[Point]:
    """
    Run a point generator, falling back to a partial set on exhaustion.

    Raises:
        PointGenerationError: If not a single point could be generated
    """
    try:
        return generator.generate_points(count, benchmark)
    except PointGenerationError as e:
        if not e.points:
            raise
        logger.warning("{}; continuing with {} points", e, len(e.points))
        return e.points


def get_engine(
    params: ExperimentParameters,
    rng: Optional[RandomSource] = None,
) -> EvolutionEngine:
    """
    Build a fully wired engine for the configured variant.

    Generates the positive and negative points of the configured benchmark
    once, then wires the evaluator, operators and redundancy remover.

    Raises:
        ConfigurationError: On invalid or unsupported configuration
    """
    params.validate()
    if rng is None:
        rng = RandomSource(params.seed)

    benchmark = get_benchmark(params)
    positive_points = generate_points(
        PositivePointsGenerator(rng, params.max_point_generation_attempts),
        params.number_of_positive_points,
        benchmark,
    )
    negative_points = generate_points(
        NegativePointsGenerator(
            positive_points,
            get_distance_calculator(params.distance_metric),
            rng,
            params.max_point_generation_attempts,
        ),
        params.number_of_negative_points,
        benchmark,
    ) if params.number_of_negative_points else []
    logger.info(
        "Benchmark {} ({}D): {} positive and {} negative points",
        benchmark.name, benchmark.dimensions, len(positive_points), len(negative_points),
    )

    evaluator = Evaluator(params, positive_points, negative_points)

    remover = None
    if params.use_redundant_constraints_removal:
        remover = RedundantConstraintsRemover(
            DomainSpaceSampler(),
            rng,
            number_of_samples=params.number_of_domain_samples,
            reference_points=np.vstack([evaluator.positive, evaluator.negative]),
        )

    recombiners: Dict[str, Optional[Recombiner]] = {
        'object_recombiner': None,
        'std_devs_recombiner': None,
        'rotations_recombiner': None,
    }
    if params.use_recombination:
        recombiners['object_recombiner'] = get_object_recombiner(params, rng)
        recombiners['std_devs_recombiner'] = get_std_devs_recombiner(params, rng)
        if params.is_correlated:
            recombiners['rotations_recombiner'] = get_rotations_recombiner(params, rng)

    return EvolutionEngine(
        params=params,
        benchmark=benchmark,
        evaluator=evaluator,
        population_generator=get_population_generator(params, rng),
        mutator=get_mutator(params, rng),
        mutation_rule_supervisor=get_mutation_rule_supervisor(params),
        parents_selector=get_parents_selector(params, rng),
        survivors_selector=get_survivors_selector(params),
        redundant_constraints_remover=remover,
        **recombiners,
    )


_worker_evaluator: Optional[Evaluator] = None


def _init_worker(evaluator: Evaluator) -> None:
    global _worker_evaluator
    _worker_evaluator = evaluator


def _evaluate_worker(object_coefficients: np.ndarray) -> float:
    """
    Worker function for parallel fitness evaluation.

    This is a module-level function to enable pickling for multiprocessing.
    """
    return _worker_evaluator.fitness_of(object_coefficients)
