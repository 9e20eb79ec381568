"""
Markup evolution: genetic search over interactive markup fragments.

Evolves small HTML fragments ("organisms") toward more interactive,
game-like markup by repeated mutation, crossover and selection.

Key components:
- Organism: one candidate fragment plus lineage and fitness
- FitnessScores / MarkupFitnessEvaluator: multi-metric heuristic fitness
- MutationOperator / CrossoverOperator: named, weighted markup transforms
- EvolutionEngine: main evolutionary optimization loop

Example usage:
    from markup_evo.evolution import EvolutionEngine, EvolutionConfig

    config = EvolutionConfig(population_size=20, max_generations=10, seed=42)
    engine = EvolutionEngine.with_defaults(config)
    result = engine.evolve('<div class="game"><p>Hello</p></div>')

    print(f"Best fitness: {result.best_fitness:.3f}")
    print(result.best_organism.markup)
"""

from .organism import Organism, create_organism, generate_organism_id
from .fitness import (
    FitnessScores,
    MarkupFitnessEvaluator,
    evaluate_markup,
    weighted_fitness,
)
from .operators import (
    CrossoverOperator,
    MutationOperator,
    OperatorRegistry,
    apply_crossover,
    elitism_selection,
    mutate_markup,
    select_weighted,
    tournament_selection,
)
from .mutations import MUTATION_OPERATORS
from .crossover import CROSSOVER_OPERATORS
from .markup import augment_seed, ensure_runtime_behavior
from .population import create_initial_population, get_population_stats
from .engine import EvolutionEngine, EvolutionConfig, EvolutionResult
from .checkpoint import EvolutionCheckpoint, EvolutionHistory, GenerationRecord

__all__ = [
    # Core classes
    'Organism',
    'FitnessScores',
    'EvolutionEngine',
    'EvolutionConfig',
    'EvolutionResult',
    'EvolutionCheckpoint',
    'EvolutionHistory',
    'GenerationRecord',
    # Organism helpers
    'create_organism',
    'generate_organism_id',
    # Fitness
    'MarkupFitnessEvaluator',
    'evaluate_markup',
    'weighted_fitness',
    # Operators
    'MutationOperator',
    'CrossoverOperator',
    'OperatorRegistry',
    'MUTATION_OPERATORS',
    'CROSSOVER_OPERATORS',
    'select_weighted',
    'mutate_markup',
    'apply_crossover',
    'tournament_selection',
    'elitism_selection',
    # Markup
    'augment_seed',
    'ensure_runtime_behavior',
    # Population
    'create_initial_population',
    'get_population_stats',
]
