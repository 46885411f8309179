"""
Mutation rule supervision.

A supervisor runs once per offspring after mutation and before evaluation.
It only corrects strategy parameters (step sizes and rotation angles),
never object coefficients.
"""

from collections import deque
from typing import Deque, Optional, Tuple

import numpy as np

from ..config import ExperimentParameters
from .mutation import wrap_angles
from .solution import Solution


class MutationRuleSupervisor:
    """Enforces the step-size floor and the (-pi, pi] angle range."""

    def __init__(self, params: ExperimentParameters):
        self.params = params
        self.step_threshold = params.step_threshold

    def ensure(self, solution: Solution) -> Solution:
        np.maximum(
            solution.std_deviations_coefficients,
            self.step_threshold,
            out=solution.std_deviations_coefficients,
        )
        if len(solution.rotation_angles):
            wrap_angles(solution.rotation_angles)
        return solution

    def record(self, successes: int, trials: int) -> None:
        """Outcome of a generation; the base rule ignores it."""

    @property
    def success_ratio(self) -> Optional[float]:
        return None


class SuccessRuleSupervisor(MutationRuleSupervisor):
    """
    Adds the 1/5 success rule on top of the base corrections.

    The success ratio is measured over the last `success_rule_window`
    generations. Above the threshold every step size is divided by the
    factor (c < 1, so the steps grow), below it they are multiplied by it.
    """

    def __init__(self, params: ExperimentParameters):
        super().__init__(params)
        self.threshold = params.success_rule_threshold
        self.factor = params.success_rule_factor
        self._history: Deque[Tuple[int, int]] = deque(maxlen=params.success_rule_window)

    def record(self, successes: int, trials: int) -> None:
        if trials < 0 or successes < 0 or successes > trials:
            raise ValueError(f"Invalid success record: {successes}/{trials}")
        self._history.append((successes, trials))

    @property
    def success_ratio(self) -> Optional[float]:
        trials = sum(t for _, t in self._history)
        if trials == 0:
            return None
        return sum(s for s, _ in self._history) / trials

    def ensure(self, solution: Solution) -> Solution:
        ratio = self.success_ratio
        if ratio is not None:
            if ratio > self.threshold:
                solution.std_deviations_coefficients /= self.factor
            elif ratio < self.threshold:
                solution.std_deviations_coefficients *= self.factor
        return super().ensure(solution)


def get_mutation_rule_supervisor(params: ExperimentParameters) -> MutationRuleSupervisor:
    if params.use_success_rule:
        return SuccessRuleSupervisor(params)
    return MutationRuleSupervisor(params)
