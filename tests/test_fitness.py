"""
Tests for fitness evaluation and redundant constraint removal.

Run with: python -m pytest tests/test_fitness.py -v
"""

import pytest
import numpy as np
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from constraint_synthesis.config import ExperimentParameters
from constraint_synthesis.benchmarks import balln
from constraint_synthesis.core.geometry import Domain, LinearConstraint, Point
from constraint_synthesis.core.random_source import RandomSource
from constraint_synthesis.evolution.fitness import (
    ClassificationScores,
    Evaluator,
    compute_fitness,
    decode_constraints,
)
from constraint_synthesis.evolution.population import get_population_generator
from constraint_synthesis.evolution.redundancy import RedundantConstraintsRemover
from constraint_synthesis.evolution.solution import Solution
from constraint_synthesis.sampling import DomainSpaceSampler


def make_evaluator(number_of_constraints: int = 1, **overrides) -> Evaluator:
    params = ExperimentParameters(
        number_of_dimensions=2,
        number_of_constraints=number_of_constraints,
        **overrides
    )
    positive = [Point([0.0, 0.0]), Point([0.5, 0.2])]
    negative = [Point([5.0, 5.0]), Point([-4.0, 0.0])]
    return Evaluator(params, positive, negative)


class TestClassificationScores:
    """Tests for ClassificationScores."""

    def test_derived_counts(self):
        scores = ClassificationScores(
            true_positives=8, false_negatives=2, true_negatives=5, false_positives=5,
            effective_constraints=3,
        )
        assert scores.misclassified == 7
        assert scores.total == 20
        assert scores.accuracy == pytest.approx(0.65)
        assert scores.to_dict()['misclassified'] == 7

    def test_empty_accuracy(self):
        assert ClassificationScores(0, 0, 0, 0, 0).accuracy == 0.0

    def test_compute_fitness(self):
        params = ExperimentParameters(misclassification_weight=2.0, constraint_penalty=0.5)
        scores = ClassificationScores(1, 1, 1, 2, effective_constraints=4)
        assert compute_fitness(scores, params) == pytest.approx(2.0 * 3 + 0.5 * 4)


class TestDecoding:
    """Tests for coefficient decoding."""

    def test_contiguous_blocks(self):
        constraints = decode_constraints(np.arange(6, dtype=float), 2, 2)
        assert constraints[0] == LinearConstraint([0.0, 1.0], 2.0)
        assert constraints[1] == LinearConstraint([3.0, 4.0], 5.0)

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            decode_constraints(np.zeros(5), 2, 2)


class TestEvaluator:
    """Tests for Evaluator."""

    def test_separating_constraint(self):
        evaluator = make_evaluator()
        solution = Solution([1.0, 1.0, 1.0], [1.0])
        scores = evaluator.score(solution)
        assert scores.true_positives == 2
        assert scores.true_negatives == 1
        assert scores.false_positives == 1
        assert scores.effective_constraints == 1
        assert evaluator.evaluate(solution) == pytest.approx(1.0 + 0.01)
        assert solution.fitness == pytest.approx(1.01)

    def test_non_binding_constraint_is_not_penalised(self):
        evaluator = make_evaluator()
        solution = Solution([1.0, 1.0, 100.0], [1.0])
        scores = evaluator.score(solution)
        assert scores.effective_constraints == 0
        assert scores.false_positives == 2
        assert evaluator.evaluate(solution) == pytest.approx(2.0)

    def test_perfect_separation(self):
        evaluator = make_evaluator(number_of_constraints=2)
        # x0 + x1 <= 1 rejects (5, 5); -x0 <= 1 rejects (-4, 0)
        solution = Solution([1.0, 1.0, 1.0, -1.0, 0.0, 1.0], [1.0])
        scores = evaluator.score(solution)
        assert scores.misclassified == 0
        assert scores.accuracy == 1.0
        assert evaluator.evaluate(solution) == pytest.approx(0.02)

    def test_constraint_order_does_not_matter(self):
        evaluator = make_evaluator(number_of_constraints=2)
        forward = Solution([1.0, 1.0, 1.0, -1.0, 0.0, 1.0], [1.0])
        backward = Solution([-1.0, 0.0, 1.0, 1.0, 1.0, 1.0], [1.0])
        assert evaluator.evaluate(forward) == evaluator.evaluate(backward)

    def test_adding_constraints_never_accepts_more_negatives(self):
        evaluator = make_evaluator()
        rng = RandomSource(0)
        constraints = []
        previous = evaluator.classify(constraints).false_positives
        for _ in range(10):
            constraints.append(LinearConstraint(rng.gauss_vector(2), rng.gauss()))
            current = evaluator.classify(constraints).false_positives
            assert current <= previous
            previous = current

    def test_fitness_of_matches_evaluate(self):
        evaluator = make_evaluator()
        solution = Solution([0.3, -2.0, 0.1], [1.0])
        assert evaluator.fitness_of(solution.object_coefficients) == evaluator.evaluate(solution)

    def test_point_sets_are_read_only(self):
        evaluator = make_evaluator()
        assert evaluator.number_of_points == 4
        with pytest.raises(ValueError):
            evaluator.positive[0, 0] = 1.0

    def test_evaluation_leaves_solution_vectors_untouched(self):
        evaluator = make_evaluator()
        solution = Solution([1.0, 2.0, 3.0], [0.5])
        before = solution.object_coefficients.copy()
        evaluator.evaluate(solution)
        assert np.array_equal(solution.object_coefficients, before)
        assert solution.std_deviations_coefficients.tolist() == [0.5]

    def test_no_negative_points(self):
        params = ExperimentParameters(number_of_dimensions=2, number_of_constraints=1)
        evaluator = Evaluator(params, [Point([0.0, 0.0])], [])
        scores = evaluator.score(Solution([1.0, 1.0, 1.0], [1.0]))
        assert scores.total == 1
        assert scores.misclassified == 0

    def test_point_dimension_mismatch_rejected(self):
        params = ExperimentParameters(number_of_dimensions=2, number_of_constraints=1)
        points = [Point([1.0, 2.0, 3.0]), Point([4.0, 5.0, 6.0])]
        with pytest.raises(ValueError):
            Evaluator(params, points, [])
        with pytest.raises(ValueError):
            Evaluator(params, [Point([0.0, 0.0])], points)

    def test_empty_point_sets_take_configured_width(self):
        params = ExperimentParameters(number_of_dimensions=3, number_of_constraints=1)
        evaluator = Evaluator(params, [], [])
        assert evaluator.positive.shape == (0, 3)
        assert evaluator.negative.shape == (0, 3)


class TestRedundancyRemoval:
    """Tests for RedundantConstraintsRemover."""

    def test_dominated_constraint_removed(self):
        remover = RedundantConstraintsRemover(DomainSpaceSampler(), RandomSource(0), number_of_samples=2000)
        tight = LinearConstraint([1.0], 1.0)
        loose = LinearConstraint([1.0], 2.0)
        assert remover.remove([tight, loose], [Domain(-5.0, 5.0)]) == [tight]
        assert remover.remove([loose, tight], [Domain(-5.0, 5.0)]) == [tight]

    def test_independent_constraints_kept(self):
        remover = RedundantConstraintsRemover(DomainSpaceSampler(), RandomSource(1))
        constraints = [LinearConstraint([1.0, 0.0], 1.0), LinearConstraint([0.0, 1.0], 1.0)]
        assert remover.remove(constraints, [Domain(-5.0, 5.0), Domain(-5.0, 5.0)]) == constraints

    def test_never_binding_constraint_removed(self):
        remover = RedundantConstraintsRemover(DomainSpaceSampler(), RandomSource(2))
        binding = LinearConstraint([1.0, 1.0], 0.0)
        outside = LinearConstraint([1.0, 0.0], 100.0)
        assert remover.remove([binding, outside], [Domain(-5.0, 5.0), Domain(-5.0, 5.0)]) == [binding]

    def test_empty_set(self):
        remover = RedundantConstraintsRemover(DomainSpaceSampler(), RandomSource(0))
        assert remover.remove([], [Domain(0.0, 1.0)]) == []

    def test_classification_of_reference_points_preserved(self):
        params = ExperimentParameters(
            number_of_dimensions=2,
            number_of_constraints=6,
            initial_coefficient_range=3.0,
        )
        rng = RandomSource(3)
        benchmark = balln(2, 2.7)
        sampler = DomainSpaceSampler()
        X = sampler.sample(benchmark.domains, 200, rng)
        positive = [Point(x) for x in X[:100]]
        negative = [Point(x) for x in X[100:]]
        evaluator = Evaluator(params, positive, negative)
        remover = RedundantConstraintsRemover(
            sampler, rng,
            number_of_samples=500,
            reference_points=np.vstack([evaluator.positive, evaluator.negative]),
        )

        generator = get_population_generator(params, rng)
        for solution in generator.generate_population(10):
            constraints = evaluator.decode(solution)
            reduced = remover.remove(constraints, benchmark.domains)
            before = evaluator.classify(constraints)
            after = evaluator.classify(reduced)
            assert len(reduced) <= len(constraints)
            assert after.misclassified == before.misclassified
            assert after.effective_constraints <= before.effective_constraints
