"""
Population management for markup evolution.

Handles:
- Initial population creation (seed + stored patterns + seed mutations)
- Converting pattern-store hits into organisms
- Population statistics
"""

from typing import Any, Callable, Dict, List, Sequence, Tuple

import numpy as np

from .markup import augment_seed, ensure_runtime_behavior
from .organism import Organism, create_organism


# Mutation callable used at seeding: markup -> (mutated markup, applied operator names)
MutateFn = Callable[[str], Tuple[str, List[str]]]


def similar_to_organisms(similar_patterns: Sequence[Any], limit: int) -> List[Organism]:
    """
    Wrap pattern-store hits as generation-0 organisms.

    Each organism's lineage starts with the stored pattern's name and the
    patterns it was itself built from.

    Args:
        similar_patterns: SimilarPattern hits, best first
        limit: Maximum number of organisms to create

    Returns:
        List of unevaluated organisms
    """
    organisms = []
    for hit in list(similar_patterns)[:max(limit, 0)]:
        pattern = hit.pattern
        applied = [pattern.pattern_name, *pattern.applied_patterns]
        organisms.append(create_organism(
            ensure_runtime_behavior(pattern.markup),
            generation=0,
            applied=applied,
            prefix='stored',
        ))
    return organisms


def create_initial_population(
    seed_markup: str,
    population_size: int,
    mutate: MutateFn,
    similar_patterns: Sequence[Any] = (),
    augment: bool = True,
) -> List[Organism]:
    """
    Create generation 0.

    Composition:
    - slot 0: the seed (augmented with a score tracker when ``augment``)
    - next slots: stored patterns similar to the seed, best first
    - remaining slots: mutations of the seed

    Every organism is passed through ``ensure_runtime_behavior``.

    Args:
        seed_markup: Input fragment
        population_size: Total population size
        mutate: Mutation protocol bound to the run's operators and rng
        similar_patterns: Pattern-store hits for the seed
        augment: Whether to add the score tracker to the seed

    Returns:
        List of exactly population_size unevaluated organisms
    """
    base_markup = augment_seed(seed_markup) if augment else seed_markup
    seed = create_organism(ensure_runtime_behavior(base_markup), generation=0, prefix='seed')
    population = [seed]

    population.extend(similar_to_organisms(similar_patterns, population_size - 1))

    while len(population) < population_size:
        mutated, applied = mutate(seed.markup)
        population.append(create_organism(
            ensure_runtime_behavior(mutated),
            generation=0,
            parents=[seed],
            applied=applied,
            prefix='mut',
        ))

    return population


def count_unique_markups(population: Sequence[Organism]) -> int:
    return len({o.markup for o in population})


def get_population_stats(population: Sequence[Organism]) -> Dict[str, Any]:
    """
    Compute statistics about the population.

    Args:
        population: List of organisms

    Returns:
        Dictionary with population statistics
    """
    if not population:
        return {'size': 0}

    lengths = [len(o.markup) for o in population]

    evaluated = [o for o in population if o.fitness is not None]
    if evaluated:
        fitnesses = [o.fitness.total for o in evaluated]
        fitness_stats = {
            'min_fitness': float(min(fitnesses)),
            'max_fitness': float(max(fitnesses)),
            'mean_fitness': float(np.mean(fitnesses)),
            'std_fitness': float(np.std(fitnesses)),
            'evaluated_count': len(evaluated),
        }
    else:
        fitness_stats = {'evaluated_count': 0}

    pattern_counts: Dict[str, int] = {}
    for o in population:
        for name in o.applied_patterns:
            pattern_counts[name] = pattern_counts.get(name, 0) + 1

    return {
        'size': len(population),
        'unique_markups': count_unique_markups(population),
        'length_range': (min(lengths), max(lengths)),
        'mean_length': float(np.mean(lengths)),
        'pattern_counts': pattern_counts,
        **fitness_stats,
    }
