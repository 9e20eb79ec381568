"""
Organism representation for markup evolution.

An Organism is one candidate fragment plus its lineage and, once evaluated,
its fitness. Operators never see Organisms: they transform markup strings and
the engine wraps the results into new Organisms.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple, TYPE_CHECKING
import uuid

if TYPE_CHECKING:
    from .fitness import FitnessScores


def generate_organism_id(generation: int = 0, prefix: str = '') -> str:
    """Generate a unique organism identifier."""
    short_uuid = uuid.uuid4().hex[:8]
    if prefix:
        return f"{prefix}_gen{generation}_{short_uuid}"
    return f"gen{generation}_{short_uuid}"


@dataclass
class Organism:
    """
    One candidate markup fragment.

    Attributes:
        markup: The fragment itself
        organism_id: Unique identifier
        generation: Generation in which this organism was created
        parent_ids: Zero, one or two parent ids
        applied_patterns: Names of operators and stored patterns in the lineage
        fitness: Scores after evaluation (None if not yet evaluated)
    """
    markup: str
    organism_id: str
    generation: int = 0
    parent_ids: Tuple[str, ...] = ()
    applied_patterns: FrozenSet[str] = field(default_factory=frozenset)
    fitness: Optional['FitnessScores'] = None  # Populated after evaluation

    def __post_init__(self):
        """Validate organism consistency."""
        if not isinstance(self.markup, str):
            raise ValueError(f"Markup must be a string, got {type(self.markup).__name__}")
        if self.generation < 0:
            raise ValueError(f"Generation must be >= 0, got {self.generation}")
        self.parent_ids = tuple(self.parent_ids)
        if len(self.parent_ids) > 2:
            raise ValueError(f"At most 2 parents allowed, got {len(self.parent_ids)}")
        self.applied_patterns = frozenset(self.applied_patterns)

    @property
    def total_fitness(self) -> float:
        """Weighted total fitness, 0.0 when unevaluated."""
        return self.fitness.total if self.fitness is not None else 0.0

    @property
    def is_evaluated(self) -> bool:
        return self.fitness is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        d = {
            'markup': self.markup,
            'organism_id': self.organism_id,
            'generation': self.generation,
            'parent_ids': list(self.parent_ids),
            'applied_patterns': sorted(self.applied_patterns),
        }
        if self.fitness is not None:
            d['fitness'] = self.fitness.to_dict()
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Organism':
        """Create Organism from dictionary (e.g., loaded from JSON)."""
        # Import here to avoid circular dependency
        from .fitness import FitnessScores

        fitness = None
        if data.get('fitness') is not None:
            fitness = FitnessScores.from_dict(data['fitness'])

        return cls(
            markup=data['markup'],
            organism_id=data['organism_id'],
            generation=data.get('generation', 0),
            parent_ids=tuple(data.get('parent_ids', ())),
            applied_patterns=frozenset(data.get('applied_patterns', ())),
            fitness=fitness,
        )

    def copy(self) -> 'Organism':
        """Copy keeping id, generation and fitness (used for elites)."""
        return Organism(
            markup=self.markup,
            organism_id=self.organism_id,
            generation=self.generation,
            parent_ids=self.parent_ids,
            applied_patterns=self.applied_patterns,
            fitness=self.fitness,
        )

    def __repr__(self) -> str:
        fitness_str = f", fitness={self.fitness.total:.3f}" if self.fitness else ""
        return (
            f"Organism(id={self.organism_id}, gen={self.generation}, "
            f"chars={len(self.markup)}{fitness_str})"
        )


def create_organism(
    markup: str,
    generation: int,
    parents: Iterable['Organism'] = (),
    applied: Iterable[str] = (),
    prefix: str = '',
) -> Organism:
    """
    Create a fresh, unevaluated organism.

    Lineage is inherited: the child's applied patterns are the union of its
    parents' plus the names in ``applied``.

    Args:
        markup: Fragment for the new organism
        generation: Generation number for the new organism
        parents: Parent organisms (0 to 2)
        applied: Names of operators/patterns applied to produce it
        prefix: Prefix for the organism id

    Returns:
        A new Organism with fitness unset
    """
    parents = list(parents)
    lineage = set(applied)
    for parent in parents:
        lineage.update(parent.applied_patterns)

    return Organism(
        markup=markup,
        organism_id=generate_organism_id(generation, prefix),
        generation=generation,
        parent_ids=tuple(p.organism_id for p in parents),
        applied_patterns=frozenset(lineage),
    )
