"""
Self-adaptive evolution strategy for constraint synthesis.

A solution encodes a fixed number of linear constraints as a flat
coefficient vector plus the strategy parameters (step sizes and, for
correlated mutation, rotation angles) that evolve alongside it.

Key components:
- Solution: Object coefficients plus strategy parameters
- Evaluator: Misclassification-based fitness over sample points
- Mutators / Recombiners / Selectors: Evolution strategy operators
- EvolutionEngine: Main generation loop
- RedundantConstraintsRemover: Post-processing of the best constraint set

Example usage:
    from constraint_synthesis.config import ExperimentParameters, MutationType
    from constraint_synthesis.evolution import get_engine

    params = ExperimentParameters(
        number_of_dimensions=2,
        number_of_constraints=4,
        type_of_mutation=MutationType.CORRELATED,
        seed=7,
    )
    engine = get_engine(params)
    result = engine.evolve(n_generations=50)

    print(result.summary())
    print(result.lp_export)
"""

from .solution import Solution, best_solution, number_of_rotation_angles, number_of_step_sizes
from .population import (
    PopulationRandomGenerator,
    OsmPopulationRandomGenerator,
    NsmPopulationRandomGenerator,
    CmPopulationRandomGenerator,
    get_population_generator,
)
from .mutation import (
    Mutator,
    OneStepMutator,
    NStepsMutator,
    CorrelatedMutator,
    get_mutator,
    rotate,
    wrap_angle,
    wrap_angles,
)
from .supervision import (
    MutationRuleSupervisor,
    SuccessRuleSupervisor,
    get_mutation_rule_supervisor,
)
from .recombination import (
    Recombiner,
    DiscreteRecombiner,
    IntermediateRecombiner,
    select_parents,
    get_object_recombiner,
    get_std_devs_recombiner,
    get_rotations_recombiner,
)
from .selection import (
    ParentsSelector,
    RandomParentsSelector,
    RouletteParentsSelector,
    TournamentParentsSelector,
    SurvivorsSelector,
    PlusSurvivorsSelector,
    CommaSurvivorsSelector,
    get_parents_selector,
    get_survivors_selector,
    sort_by_fitness,
)
from .fitness import ClassificationScores, Evaluator, compute_fitness, decode_constraints
from .redundancy import RedundantConstraintsRemover
from .history import EvolutionHistory, GenerationStats
from .engine import EngineState, EvolutionEngine, EvolutionResult, get_engine

__all__ = [
    # Core classes
    'Solution',
    'Evaluator',
    'ClassificationScores',
    'EvolutionEngine',
    'EvolutionResult',
    'EngineState',
    'EvolutionHistory',
    'GenerationStats',
    'RedundantConstraintsRemover',
    # Solution helpers
    'best_solution',
    'number_of_rotation_angles',
    'number_of_step_sizes',
    # Population
    'PopulationRandomGenerator',
    'OsmPopulationRandomGenerator',
    'NsmPopulationRandomGenerator',
    'CmPopulationRandomGenerator',
    'get_population_generator',
    # Mutation
    'Mutator',
    'OneStepMutator',
    'NStepsMutator',
    'CorrelatedMutator',
    'get_mutator',
    'rotate',
    'wrap_angle',
    'wrap_angles',
    'MutationRuleSupervisor',
    'SuccessRuleSupervisor',
    'get_mutation_rule_supervisor',
    # Recombination
    'Recombiner',
    'DiscreteRecombiner',
    'IntermediateRecombiner',
    'select_parents',
    'get_object_recombiner',
    'get_std_devs_recombiner',
    'get_rotations_recombiner',
    # Selection
    'ParentsSelector',
    'RandomParentsSelector',
    'RouletteParentsSelector',
    'TournamentParentsSelector',
    'SurvivorsSelector',
    'PlusSurvivorsSelector',
    'CommaSurvivorsSelector',
    'get_parents_selector',
    'get_survivors_selector',
    'sort_by_fitness',
    # Fitness
    'compute_fitness',
    'decode_constraints',
    # Engine
    'get_engine',
]
