"""
Tests for evolution strategy operators: population generation, mutation,
mutation rule supervision, recombination and selection.

Run with: python -m pytest tests/test_operators.py -v
"""

import math

import pytest
import numpy as np
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from constraint_synthesis.config import (
    ExperimentParameters,
    MutationType,
    ParentsSelectionType,
    RecombinationType,
    SurvivorsSelectionType,
)
from constraint_synthesis.core.random_source import RandomSource
from constraint_synthesis.evolution.solution import Solution, best_solution, number_of_rotation_angles
from constraint_synthesis.evolution.population import (
    CmPopulationRandomGenerator,
    NsmPopulationRandomGenerator,
    OsmPopulationRandomGenerator,
    get_population_generator,
)
from constraint_synthesis.evolution.mutation import (
    CorrelatedMutator,
    NStepsMutator,
    OneStepMutator,
    get_mutator,
    rotate,
    wrap_angle,
    wrap_angles,
)
from constraint_synthesis.evolution.supervision import (
    MutationRuleSupervisor,
    SuccessRuleSupervisor,
    get_mutation_rule_supervisor,
)
from constraint_synthesis.evolution.recombination import (
    DiscreteRecombiner,
    IntermediateRecombiner,
    get_object_recombiner,
    get_rotations_recombiner,
    select_parents,
)
from constraint_synthesis.evolution.selection import (
    CommaSurvivorsSelector,
    PlusSurvivorsSelector,
    RandomParentsSelector,
    RouletteParentsSelector,
    TournamentParentsSelector,
    get_parents_selector,
    get_survivors_selector,
    sort_by_fitness,
)


def make_params(**overrides) -> ExperimentParameters:
    defaults = dict(number_of_dimensions=2, number_of_constraints=2)
    defaults.update(overrides)
    return ExperimentParameters(**defaults)


def make_solution(fitness: float, n: int = 6, value: float = 0.0) -> Solution:
    return Solution(np.full(n, value), np.ones(n), fitness=fitness)


class TestSolution:
    """Tests for Solution shapes."""

    def test_empty_shapes(self):
        params = make_params(type_of_mutation=MutationType.CORRELATED)
        solution = Solution.empty(params)
        assert solution.dimensions == 6
        assert len(solution.std_deviations_coefficients) == 6
        assert len(solution.rotation_angles) == 15
        assert not solution.is_evaluated

    def test_invalid_lengths_rejected(self):
        with pytest.raises(ValueError):
            Solution(np.zeros(3), np.ones(2))
        with pytest.raises(ValueError):
            Solution(np.zeros(3), np.ones(3), np.zeros(2))

    def test_check_shape(self):
        params = make_params(type_of_mutation=MutationType.UNCORRELATED_ONE_STEP)
        Solution(np.zeros(6), np.ones(1)).check_shape(params)
        with pytest.raises(ValueError):
            Solution(np.zeros(6), np.ones(6)).check_shape(params)

    def test_copy_is_independent(self):
        original = make_solution(1.0)
        clone = original.copy()
        clone.object_coefficients[0] = 99.0
        assert original.object_coefficients[0] == 0.0
        assert clone.fitness == 1.0

    def test_dict_roundtrip(self):
        original = Solution([1.0, 2.0], [0.5, 0.5], [0.1], fitness=3.0)
        restored = Solution.from_dict(original.to_dict())
        assert np.array_equal(restored.object_coefficients, original.object_coefficients)
        assert np.array_equal(restored.rotation_angles, original.rotation_angles)
        assert restored.fitness == 3.0
        assert Solution.from_dict(make_solution(float('inf')).to_dict()).fitness == float('inf')

    def test_best_solution_prefers_first_on_ties(self):
        a, b, c = make_solution(2.0), make_solution(1.0), make_solution(1.0)
        assert best_solution([a, b, c]) is b
        assert best_solution([]) is None


class TestPopulationGenerators:
    """Tests for initial population generation."""

    @pytest.mark.parametrize('mutation_type, generator_cls', [
        (MutationType.UNCORRELATED_ONE_STEP, OsmPopulationRandomGenerator),
        (MutationType.UNCORRELATED_N_STEPS, NsmPopulationRandomGenerator),
        (MutationType.CORRELATED, CmPopulationRandomGenerator),
    ])
    def test_shapes_match_variant(self, mutation_type, generator_cls):
        params = make_params(type_of_mutation=mutation_type)
        generator = get_population_generator(params, RandomSource(0))
        assert type(generator) is generator_cls

        population = generator.generate_population(10)
        assert len(population) == 10
        for solution in population:
            solution.check_shape(params)
            assert np.all(np.abs(solution.object_coefficients) <= params.initial_coefficient_range)
            assert np.all(solution.std_deviations_coefficients == params.initial_step_size)
            assert np.all(solution.rotation_angles > -math.pi)
            assert np.all(solution.rotation_angles <= math.pi)

    def test_invalid_size(self):
        generator = get_population_generator(make_params(), RandomSource(0))
        with pytest.raises(ValueError):
            generator.generate_population(0)


class TestRotation:
    """Tests for angle wrapping and rotations."""

    def test_wrap_angle(self):
        assert wrap_angle(0.5) == 0.5
        assert wrap_angle(math.pi) == math.pi
        assert wrap_angle(-math.pi) == pytest.approx(math.pi)
        assert wrap_angle(2.5 * math.pi) == pytest.approx(0.5 * math.pi)
        assert wrap_angle(-1.5 * math.pi) == pytest.approx(0.5 * math.pi)
        assert -math.pi < wrap_angle(1e6) <= math.pi

    def test_wrap_angles_in_place(self):
        angles = np.array([4.0, -4.0, 0.0])
        result = wrap_angles(angles)
        assert result is angles
        assert np.all((angles > -math.pi) & (angles <= math.pi))

    def test_zero_angles_are_identity(self):
        vector = np.array([1.0, -2.0, 3.0])
        assert np.allclose(rotate(vector, np.zeros(3)), vector)

    def test_quarter_turn(self):
        assert np.allclose(rotate(np.array([1.0, 0.0]), np.array([math.pi / 2])), [0.0, 1.0])

    def test_rotation_preserves_norm(self):
        rng = RandomSource(0)
        vector = rng.gauss_vector(5)
        angles = rng.generator.uniform(-math.pi, math.pi, size=number_of_rotation_angles(5))
        assert np.linalg.norm(rotate(vector, angles)) == pytest.approx(np.linalg.norm(vector))

    def test_angle_count_checked(self):
        with pytest.raises(ValueError):
            rotate(np.zeros(3), np.zeros(2))


class TestMutation:
    """Tests for self-adaptive mutators."""

    @pytest.mark.parametrize('mutation_type', list(MutationType))
    def test_deterministic_for_seed(self, mutation_type):
        params = make_params(type_of_mutation=mutation_type)
        results = []
        for _ in range(2):
            rng = RandomSource(3)
            solution = get_population_generator(params, rng).generate_solution()
            get_mutator(params, rng).mutate(solution)
            results.append(solution)
        assert np.array_equal(results[0].object_coefficients, results[1].object_coefficients)
        assert np.array_equal(results[0].std_deviations_coefficients, results[1].std_deviations_coefficients)
        assert np.array_equal(results[0].rotation_angles, results[1].rotation_angles)

    def test_canonical_learning_rates(self):
        params = make_params()
        rng = RandomSource(0)
        assert OneStepMutator(params, rng).learning_rate == pytest.approx(1 / math.sqrt(6))
        mutator = NStepsMutator(params, rng)
        assert mutator.global_learning_rate == pytest.approx(1 / math.sqrt(12))
        assert mutator.individual_learning_rate == pytest.approx(1 / math.sqrt(2 * math.sqrt(6)))

    def test_configured_learning_rate(self):
        params = make_params(one_step_learning_rate=0.5)
        assert OneStepMutator(params, RandomSource(0)).learning_rate == 0.5

    @pytest.mark.parametrize('mutation_type', list(MutationType))
    def test_step_sizes_never_below_threshold(self, mutation_type):
        params = make_params(type_of_mutation=mutation_type, step_threshold=1e-3)
        rng = RandomSource(5)
        mutator = get_mutator(params, rng)
        solution = get_population_generator(params, rng).generate_solution()
        solution.std_deviations_coefficients[:] = 1e-12
        for _ in range(50):
            mutator.mutate(solution)
            assert np.all(solution.std_deviations_coefficients >= 1e-3)

    @pytest.mark.parametrize('mutation_type', list(MutationType))
    def test_step_sizes_starting_at_threshold_stay_above_it(self, mutation_type):
        params = make_params(type_of_mutation=mutation_type, step_threshold=1e-3)
        rng = RandomSource(6)
        mutator = get_mutator(params, rng)
        solution = get_population_generator(params, rng).generate_solution()
        for _ in range(50):
            solution.std_deviations_coefficients[:] = params.step_threshold
            mutator.mutate(solution)
            assert np.all(solution.std_deviations_coefficients >= params.step_threshold)

    def test_angles_stay_in_range(self):
        params = make_params(type_of_mutation=MutationType.CORRELATED, beta_learning_rate=3.0)
        rng = RandomSource(6)
        mutator = CorrelatedMutator(params, rng)
        solution = get_population_generator(params, rng).generate_solution()
        solution.rotation_angles[:] = math.pi
        for _ in range(50):
            mutator.mutate(solution)
            assert np.all(solution.rotation_angles > -math.pi)
            assert np.all(solution.rotation_angles <= math.pi)

    def test_mutation_changes_coefficients(self):
        params = make_params()
        rng = RandomSource(7)
        solution = get_population_generator(params, rng).generate_solution()
        before = solution.object_coefficients.copy()
        get_mutator(params, rng).mutate(solution)
        assert not np.array_equal(before, solution.object_coefficients)

    def test_shape_mismatch_rejected(self):
        params = make_params()
        with pytest.raises(ValueError):
            OneStepMutator(params, RandomSource(0)).mutate(make_solution(1.0))


class TestSupervision:
    """Tests for mutation rule supervisors."""

    def test_factory(self):
        assert type(get_mutation_rule_supervisor(make_params())) is MutationRuleSupervisor
        assert isinstance(get_mutation_rule_supervisor(make_params(use_success_rule=True)), SuccessRuleSupervisor)

    def test_base_rule_floors_and_wraps(self):
        supervisor = MutationRuleSupervisor(make_params(step_threshold=0.01))
        solution = Solution(np.zeros(2), np.array([0.0, 0.5]), np.array([4.0]))
        supervisor.ensure(solution)
        assert solution.std_deviations_coefficients.tolist() == [0.01, 0.5]
        assert solution.rotation_angles[0] == pytest.approx(4.0 - 2 * math.pi)
        assert supervisor.success_ratio is None

    def test_success_rule_widens_after_successes(self):
        supervisor = SuccessRuleSupervisor(make_params(use_success_rule=True))
        supervisor.record(5, 10)
        solution = make_solution(1.0)
        supervisor.ensure(solution)
        assert supervisor.success_ratio == 0.5
        assert np.allclose(solution.std_deviations_coefficients, 1.0 / 0.82)

    def test_success_rule_narrows_after_failures(self):
        supervisor = SuccessRuleSupervisor(make_params(use_success_rule=True))
        supervisor.record(0, 10)
        solution = make_solution(1.0)
        supervisor.ensure(solution)
        assert np.allclose(solution.std_deviations_coefficients, 0.82)

    def test_success_rule_waits_for_records(self):
        supervisor = SuccessRuleSupervisor(make_params(use_success_rule=True))
        solution = make_solution(1.0)
        supervisor.ensure(solution)
        assert np.all(solution.std_deviations_coefficients == 1.0)

    def test_success_rule_window(self):
        supervisor = SuccessRuleSupervisor(make_params(use_success_rule=True, success_rule_window=2))
        supervisor.record(10, 10)
        supervisor.record(0, 10)
        supervisor.record(0, 10)
        assert supervisor.success_ratio == 0.0

    def test_invalid_record(self):
        supervisor = SuccessRuleSupervisor(make_params(use_success_rule=True))
        with pytest.raises(ValueError):
            supervisor.record(6, 5)


class TestRecombination:
    """Tests for recombination operators."""

    def test_select_parents_distinct(self):
        pool = [make_solution(float(i)) for i in range(5)]
        rng = RandomSource(0)
        for _ in range(20):
            chosen = select_parents(pool, 3, rng)
            assert len(chosen) == 3
            assert len({id(s) for s in chosen}) == 3

    def test_select_parents_capped_at_pool_size(self):
        pool = [make_solution(float(i)) for i in range(3)]
        chosen = select_parents(pool, 10, RandomSource(0))
        assert sorted(id(s) for s in chosen) == sorted(id(s) for s in pool)

    def test_select_parents_empty_pool(self):
        with pytest.raises(ValueError):
            select_parents([], 2, RandomSource(0))

    def test_select_parents_skips_repeated_solutions(self):
        a, b, c = make_solution(0.0), make_solution(1.0), make_solution(2.0)
        pool = [a, a, a, b, b, c]
        rng = RandomSource(4)
        for _ in range(50):
            chosen = select_parents(pool, 3, rng)
            assert len({id(s) for s in chosen}) == 3

    def test_select_parents_capped_at_distinct_solutions(self):
        a, b = make_solution(0.0), make_solution(1.0)
        chosen = select_parents([a, b, a, b, a], 4, RandomSource(0))
        assert len(chosen) == 2
        assert {id(s) for s in chosen} == {id(a), id(b)}

    def test_intermediate_recombination_over_duplicated_pool(self):
        params = make_params(base_population_size=2, part_of_population_to_recombine=1.0)
        low, high = make_solution(0.0, value=1.0), make_solution(0.0, value=5.0)
        recombiner = get_object_recombiner(params, RandomSource(2))
        for _ in range(10):
            child = recombiner.recombine([low, low, low, high])
            assert np.allclose(child.object_coefficients, 3.0)

    def test_intermediate_object_recombination(self):
        params = make_params(base_population_size=3, part_of_population_to_recombine=1.0)
        pool = [make_solution(0.0, value=v) for v in (1.0, 2.0, 6.0)]
        recombiner = get_object_recombiner(params, RandomSource(0))
        assert isinstance(recombiner, IntermediateRecombiner)
        child = recombiner.recombine(pool)
        assert np.allclose(child.object_coefficients, 3.0)
        assert not child.is_evaluated

    def test_discrete_takes_values_from_parents(self):
        params = make_params(
            base_population_size=4,
            part_of_population_to_recombine=1.0,
            type_of_object_recombination=RecombinationType.DISCRETE,
        )
        rng = RandomSource(1)
        pool = [Solution(rng.gauss_vector(6), np.ones(6)) for _ in range(4)]
        child = get_object_recombiner(params, rng).recombine(pool)
        assert isinstance(get_object_recombiner(params, rng), DiscreteRecombiner)
        for j, value in enumerate(child.object_coefficients):
            assert value in [p.object_coefficients[j] for p in pool]

    def test_intermediate_rotations_use_circular_mean(self):
        params = make_params(
            number_of_dimensions=1,
            number_of_constraints=1,
            type_of_mutation=MutationType.CORRELATED,
            base_population_size=2,
            part_of_population_to_recombine=1.0,
            type_of_rotations_recombination=RecombinationType.INTERMEDIATE,
        )
        pool = [
            Solution(np.zeros(2), np.ones(2), np.array([3.0])),
            Solution(np.zeros(2), np.ones(2), np.array([-3.0])),
        ]
        child = get_rotations_recombiner(params, RandomSource(0)).recombine(pool, Solution.empty(params))
        assert abs(child.rotation_angles[0]) == pytest.approx(math.pi)

    def test_child_shape_checked(self):
        params = make_params(base_population_size=2, part_of_population_to_recombine=1.0)
        pool = [make_solution(0.0), make_solution(1.0)]
        with pytest.raises(ValueError):
            get_object_recombiner(params, RandomSource(0)).recombine(pool, make_solution(0.0, n=3))


class TestParentsSelection:
    """Tests for parent selectors."""

    def test_factory(self):
        for selection_type, selector_cls in [
            (ParentsSelectionType.RANDOM, RandomParentsSelector),
            (ParentsSelectionType.ROULETTE, RouletteParentsSelector),
            (ParentsSelectionType.TOURNAMENT, TournamentParentsSelector),
        ]:
            params = make_params(type_of_parents_selection=selection_type)
            assert type(get_parents_selector(params, RandomSource(0))) is selector_cls

    @pytest.mark.parametrize('selection_type', list(ParentsSelectionType))
    def test_pool_size_and_membership(self, selection_type):
        population = [make_solution(float(i)) for i in range(5)]
        selector = get_parents_selector(make_params(type_of_parents_selection=selection_type), RandomSource(0))
        pool = selector.select(population, 12)
        assert len(pool) == 12
        assert all(any(s is p for p in population) for s in pool)

    def test_roulette_skips_unevaluated(self):
        population = [make_solution(float('inf')), make_solution(2.0), make_solution(float('inf'))]
        selector = RouletteParentsSelector(make_params(), RandomSource(0))
        assert all(s is population[1] for s in selector.select(population, 20))

    def test_roulette_favours_better(self):
        population = [make_solution(0.0), make_solution(50.0)]
        selector = RouletteParentsSelector(make_params(), RandomSource(0))
        pool = selector.select(population, 500)
        assert sum(s is population[0] for s in pool) > 400

    def test_tournament_never_picks_worst(self):
        population = [make_solution(float(i)) for i in range(4)]
        selector = TournamentParentsSelector(make_params(tournament_size=4), RandomSource(0))
        # with replacement the worst can only win if it is drawn four times
        pool = selector.select(population, 50)
        assert sum(s is population[3] for s in pool) < 5

    def test_empty_population(self):
        with pytest.raises(ValueError):
            RandomParentsSelector(make_params(), RandomSource(0)).select([], 3)


class TestSurvivorsSelection:
    """Tests for survivor selectors."""

    def test_sort_is_stable(self):
        a, b, c = make_solution(1.0), make_solution(0.5), make_solution(1.0)
        assert sort_by_fitness([a, b, c]) == [b, a, c]

    def test_plus_selection(self):
        params = make_params(base_population_size=2)
        parents = [make_solution(3.0), make_solution(1.0)]
        offspring = [make_solution(2.0), make_solution(0.5)]
        survivors = PlusSurvivorsSelector(params).select(parents, offspring)
        assert [s.fitness for s in survivors] == [0.5, 1.0]

    def test_comma_selection(self):
        params = make_params(base_population_size=2, type_of_survivors_selection=SurvivorsSelectionType.COMMA)
        parents = [make_solution(0.0), make_solution(0.1)]
        offspring = [make_solution(5.0), make_solution(2.0), make_solution(9.0)]
        selector = get_survivors_selector(params)
        assert isinstance(selector, CommaSurvivorsSelector)
        assert [s.fitness for s in selector.select(parents, offspring)] == [2.0, 5.0]

    def test_selection_idempotent_on_sorted_population(self):
        params = make_params(base_population_size=3)
        population = sort_by_fitness([make_solution(f) for f in (2.0, 0.0, 1.0)])
        assert PlusSurvivorsSelector(params).select(population, []) == population
        assert CommaSurvivorsSelector(params).select([], population) == population

    def test_survivors_count(self):
        params = make_params(base_population_size=4)
        offspring = [make_solution(float(i)) for i in range(10)]
        assert len(PlusSurvivorsSelector(params).select(offspring[:4], offspring[4:])) == 4

    def test_no_candidates(self):
        with pytest.raises(ValueError):
            CommaSurvivorsSelector(make_params()).select([make_solution(0.0)], [])
