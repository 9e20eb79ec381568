"""
markup-evo: evolutionary search over interactive HTML fragments.

Subpackages:
- evolution: organisms, operators, fitness, and the evolution engine
- store: pattern store protocol, JSON store, and markup embeddings
- utils: logging setup
"""

__version__ = '0.1.0'

from .exceptions import (
    CollaboratorError,
    ConfigurationError,
    EvolutionError,
    OperatorError,
)
from .evolution import (
    EvolutionConfig,
    EvolutionEngine,
    EvolutionResult,
    FitnessScores,
    MarkupFitnessEvaluator,
    Organism,
)
from .store import JsonPatternStore, embed_markup

__all__ = [
    '__version__',
    'EvolutionEngine',
    'EvolutionConfig',
    'EvolutionResult',
    'FitnessScores',
    'MarkupFitnessEvaluator',
    'Organism',
    'JsonPatternStore',
    'embed_markup',
    'EvolutionError',
    'ConfigurationError',
    'OperatorError',
    'CollaboratorError',
]
