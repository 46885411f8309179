"""
Command-line entry point.

Usage:
    python -m constraint_synthesis [options]

Options:
    --config PATH        JSON file of ExperimentParameters
    --benchmark NAME     balln, cuben or simplexn
    --dimensions N       Number of dimensions
    --constraints N      Number of constraints to synthesize
    --mutation TYPE      one_step, n_steps or correlated
    --recombination      Enable recombination
    --success-rule       Enable the 1/5 success rule
    --generations N      Generation budget
    --workers N          Parallel evaluation workers
    --seed N             Random seed for reproducibility
    --output DIR         Store the run under DIR
    --plot PREFIX        Write PREFIX_history.png (and PREFIX_region.png in 2-D)
    --log-level LEVEL    DEBUG, INFO, WARNING, ...
"""

import argparse
import sys
from typing import List, Optional

from loguru import logger

from .config import ConfigurationError, ExperimentParameters, MutationType
from .core.log import setup_logger
from .core.persistence import ResultStore
from .evolution.engine import get_engine
from .sampling.points import PointGenerationError


MUTATION_CHOICES = {
    'one_step': MutationType.UNCORRELATED_ONE_STEP,
    'n_steps': MutationType.UNCORRELATED_N_STEPS,
    'correlated': MutationType.CORRELATED,
}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='constraint_synthesis',
        description='Synthesize linear constraints with a self-adaptive evolution strategy'
    )
    parser.add_argument(
        '--config', type=str, default=None,
        help='JSON file of experiment parameters'
    )
    parser.add_argument(
        '--benchmark', choices=['balln', 'cuben', 'simplexn'], default=None,
        help='Benchmark region (default: from config, else balln)'
    )
    parser.add_argument(
        '--dimensions', type=int, default=None,
        help='Number of dimensions'
    )
    parser.add_argument(
        '--constraints', type=int, default=None,
        help='Number of constraints to synthesize'
    )
    parser.add_argument(
        '--mutation', choices=sorted(MUTATION_CHOICES), default=None,
        help='Mutation type'
    )
    parser.add_argument(
        '--recombination', action='store_true',
        help='Enable recombination'
    )
    parser.add_argument(
        '--success-rule', action='store_true',
        help='Enable the 1/5 success rule'
    )
    parser.add_argument(
        '--generations', type=int, default=None,
        help='Generation budget'
    )
    parser.add_argument(
        '--workers', type=int, default=None,
        help='Number of parallel evaluation workers'
    )
    parser.add_argument(
        '--seed', type=int, default=None,
        help='Random seed for reproducibility'
    )
    parser.add_argument(
        '--output', type=str, default=None,
        help='Directory to store the run in'
    )
    parser.add_argument(
        '--plot', type=str, default=None,
        help='Prefix of the PNG files to write'
    )
    parser.add_argument(
        '--log-level', type=str, default='INFO',
        help='Log level (default: INFO)'
    )
    return parser.parse_args(argv)


def build_parameters(args: argparse.Namespace) -> ExperimentParameters:
    """Load the config file (if any) and apply command-line overrides."""
    params = ExperimentParameters.load(args.config) if args.config else ExperimentParameters()

    overrides = {
        'benchmark_type': args.benchmark,
        'number_of_dimensions': args.dimensions,
        'number_of_constraints': args.constraints,
        'type_of_mutation': MUTATION_CHOICES.get(args.mutation),
        'number_of_generations': args.generations,
        'n_workers': args.workers,
        'seed': args.seed,
    }
    data = params.to_dict()
    data.update({k: v for k, v in overrides.items() if v is not None})
    if args.recombination:
        data['use_recombination'] = True
    if args.success_rule:
        data['use_success_rule'] = True

    params = ExperimentParameters.from_dict(data)
    params.validate()
    return params


def progress_callback(gen: int, total: int, stats: dict):
    logger.info(
        "Gen {:4d}/{} | best {:.4f} | best so far {:.4f} | mean step {:.4g}",
        gen, total, stats['best_fitness'], stats['best_so_far'], stats['mean_step_size'],
    )


def write_plots(prefix: str, engine, result) -> None:
    from .visualization import plot_constraints_2d, plot_fitness_history, save_figure

    save_figure(plot_fitness_history(result.history, title=result.variant), f'{prefix}_history.png')
    if engine.params.number_of_dimensions == 2:
        fig = plot_constraints_2d(
            result.reduced_constraints,
            result.domains,
            positive_points=engine.evaluator.positive,
            negative_points=engine.evaluator.negative,
            reference_constraints=engine.benchmark.constraints,
        )
        save_figure(fig, f'{prefix}_region.png')
    logger.info("Plots written with prefix {}", prefix)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logger(level=args.log_level.upper())

    try:
        params = build_parameters(args)
        engine = get_engine(params)
    except (ConfigurationError, PointGenerationError) as e:
        logger.error("{}", e)
        return 2

    result = engine.evolve(progress_callback=progress_callback)

    print("=" * 60)
    print(result.summary())
    print("=" * 60)
    print(result.lp_export)

    if args.output:
        run_id = ResultStore(args.output).save_result(params, result)
        print(f"Stored as {run_id}")
    if args.plot:
        write_plots(args.plot, engine, result)
    return 0


if __name__ == '__main__':
    sys.exit(main())
