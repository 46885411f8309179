#!/usr/bin/env python3
"""
Quick Start - Minimal example of constraint synthesis.

Evolves four linear constraints that approximate a 2-D ball from labelled
sample points and prints the resulting LP model.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from constraint_synthesis.config import ExperimentParameters, MutationType
from constraint_synthesis.core.log import setup_logger
from constraint_synthesis.evolution import get_engine

setup_logger(level="INFO")

print("Constraint Synthesis - Quick Start")
print("="*40)

params = ExperimentParameters(
    number_of_dimensions=2,
    number_of_constraints=4,
    base_population_size=20,
    offspring_population_size=100,
    type_of_mutation=MutationType.CORRELATED,
    number_of_positive_points=100,
    number_of_negative_points=100,
    seed=42,
)

engine = get_engine(params)
result = engine.evolve(n_generations=60)

print()
print(result.summary())
print("\nLP model:")
print(result.lp_export)
print("Try switching type_of_mutation or enabling use_recombination!")
