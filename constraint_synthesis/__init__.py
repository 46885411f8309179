"""
Constraint Synthesis - evolving linear constraint models of feasible regions.

Subpackages:
- core: geometry, distances, random stream, LP export, storage, logging
- benchmarks: reference regions (balln, cuben, simplexn)
- sampling: positive, negative and domain-space points
- evolution: the self-adaptive evolution strategy
- visualization: matplotlib plots of constraints and run history
"""

__version__ = '0.1.0'
