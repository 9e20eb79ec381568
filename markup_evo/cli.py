"""
Command-line runner for markup evolution.

Usage:
    python -m markup_evo SEED_FILE [options]

Options:
    --population N       Population size (default: 50)
    --generations N      Maximum generations (default: 20)
    --mutation-rate R    Mutation probability per offspring (default: 0.5)
    --crossover-rate R   Crossover probability per pair (default: 0.8)
    --elite N            Elites carried over each generation (default: 2)
    --tournament N       Tournament size (default: 3)
    --threshold T        Stop once the best fitness reaches T
    --seed N             Random seed for reproducibility
    --workers N          Parallel evaluation processes (default: 1)
    --config JSON        JSON file with EvolutionConfig fields
    --store PATH         JSON pattern store for seeding and saving results
    --output FILE        Write the run result as JSON
    --checkpoint-dir DIR Save checkpoints to DIR
    --resume PATH        Resume from a checkpoint file
    --log-level LEVEL    Logging level (default: WARNING)

Flags given on the command line override values from --config.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .evolution.engine import EvolutionConfig, EvolutionEngine, EvolutionResult
from .exceptions import EvolutionError
from .store import JsonPatternStore
from .utils.logger import setup_logger


# argparse dest -> EvolutionConfig field
FLAG_FIELDS = {
    'population': 'population_size',
    'generations': 'max_generations',
    'mutation_rate': 'mutation_rate',
    'crossover_rate': 'crossover_rate',
    'elite': 'elitism_count',
    'tournament': 'tournament_size',
    'threshold': 'fitness_threshold',
    'seed': 'seed',
    'workers': 'n_workers',
    'checkpoint_dir': 'checkpoint_dir',
}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='markup_evo',
        description='Evolve an HTML fragment toward more interactive, game-like markup',
    )
    parser.add_argument(
        'seed_file', nargs='?', default=None,
        help='File containing the seed markup fragment'
    )
    parser.add_argument(
        '--population', type=int, default=None,
        help='Population size (default: 50)'
    )
    parser.add_argument(
        '--generations', type=int, default=None,
        help='Maximum number of generations (default: 20)'
    )
    parser.add_argument(
        '--mutation-rate', type=float, default=None,
        help='Mutation probability per offspring (default: 0.5)'
    )
    parser.add_argument(
        '--crossover-rate', type=float, default=None,
        help='Crossover probability per parent pair (default: 0.8)'
    )
    parser.add_argument(
        '--elite', type=int, default=None,
        help='Number of elites carried over (default: 2)'
    )
    parser.add_argument(
        '--tournament', type=int, default=None,
        help='Tournament size (default: 3)'
    )
    parser.add_argument(
        '--threshold', type=float, default=None,
        help='Stop once the best fitness reaches this value'
    )
    parser.add_argument(
        '--seed', type=int, default=None,
        help='Random seed for reproducibility'
    )
    parser.add_argument(
        '--workers', type=int, default=None,
        help='Number of parallel evaluation processes (default: 1)'
    )
    parser.add_argument(
        '--config', type=str, default=None,
        help='JSON file with EvolutionConfig fields'
    )
    parser.add_argument(
        '--store', type=str, default=None,
        help='Path to a JSON pattern store'
    )
    parser.add_argument(
        '--output', type=str, default=None,
        help='Write the run result as JSON to this file'
    )
    parser.add_argument(
        '--checkpoint-dir', type=str, default=None,
        help='Directory for checkpoints'
    )
    parser.add_argument(
        '--resume', type=str, default=None,
        help='Path to checkpoint file to resume from'
    )
    parser.add_argument(
        '--log-level', type=str, default='WARNING',
        help='Logging level (default: WARNING)'
    )

    args = parser.parse_args(argv)
    if args.seed_file is None and args.resume is None:
        parser.error('a SEED_FILE or --resume checkpoint is required')
    return args


def build_config(args: argparse.Namespace) -> EvolutionConfig:
    """Config file values, then command-line overrides."""
    values: Dict[str, Any] = {}
    if args.config:
        values.update(json.loads(Path(args.config).read_text()))

    for dest, field_name in FLAG_FIELDS.items():
        value = getattr(args, dest)
        if value is not None:
            values[field_name] = value

    return EvolutionConfig.from_dict(values)


def print_banner():
    print("=" * 70)
    print("   MARKUP EVOLUTION")
    print("=" * 70)


def print_config(config: EvolutionConfig):
    print("\nConfiguration:")
    print(f"   Population size:    {config.population_size}")
    print(f"   Generations:        {config.max_generations}")
    print(f"   Elite count:        {config.elitism_count}")
    print(f"   Tournament size:    {config.tournament_size}")
    print(f"   Crossover rate:     {config.crossover_rate}")
    print(f"   Mutation rate:      {config.mutation_rate}")
    print(f"   Fitness threshold:  {config.fitness_threshold}")
    print(f"   Workers:            {config.n_workers}")
    print(f"   Seed:               {config.seed}")


def progress_callback(gen: int, total: int, stats: dict):
    """Print progress during evolution."""
    total = max(total, 1)
    pct = 100 * (gen + 1) / total
    print(
        f"\r   Gen {gen:3d}/{total} ({pct:5.1f}%) | "
        f"Best fitness: {stats.get('best_fitness', 0):.4f} | "
        f"Avg fitness: {stats.get('average_fitness', 0):.4f} | "
        f"Evaluations: {stats.get('evaluations', 0):,}",
        end='', flush=True
    )


def print_result(result: EvolutionResult):
    print("\n\n   Results:")
    print("   --------")
    for line in result.summary().splitlines():
        print(f"   {line}")

    print("\n   Top 5 Champions:")
    for i, champion in enumerate(result.champions[:5], 1):
        print(
            f"   {i}. {champion.organism_id:24s} | "
            f"Fitness: {champion.total_fitness:.3f} | "
            f"Patterns: {', '.join(sorted(champion.applied_patterns)) or '-'}"
        )

    print("\n   Best markup:")
    print(result.best_organism.markup)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logger(level=args.log_level)

    print_banner()

    try:
        store = JsonPatternStore(args.store) if args.store else None

        if args.resume:
            engine = EvolutionEngine.with_defaults(pattern_store=store)
            print(f"   Resuming from: {args.resume}")
            engine.load_checkpoint(Path(args.resume))
            print(f"   Resumed at generation {engine.generation}")
            print_config(engine.config)
            result = engine.resume(progress_callback=progress_callback)
        else:
            config = build_config(args)
            print_config(config)
            seed_markup = Path(args.seed_file).read_text()
            engine = EvolutionEngine.with_defaults(config=config, pattern_store=store)
            print("\n   Starting evolution...")
            result = engine.evolve(seed_markup, progress_callback=progress_callback)
    except (EvolutionError, OSError, ValueError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        return 1

    print_result(result)

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(result.to_dict(), indent=2))
        print(f"\n   Result saved to: {output_path}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
