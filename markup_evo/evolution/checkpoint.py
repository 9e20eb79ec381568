"""
Checkpointing for evolutionary runs.

Enables:
- Recording an append-only generation history
- Saving evolution state for resumption
- Preserving the best organisms found (champions)
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Iterator, List, Optional
from pathlib import Path
from datetime import datetime
import json
import uuid

import numpy as np

from .organism import Organism
from .population import count_unique_markups


@dataclass
class EvolutionCheckpoint:
    """
    Checkpoint for resuming evolutionary runs.

    Contains all state needed to continue evolution from a saved point.
    """
    run_id: str
    generation: int
    population: List[Dict[str, Any]]  # Serialized organisms
    champions: List[Dict[str, Any]]   # Best organisms found so far
    history: Dict[str, Any]           # Serialized EvolutionHistory
    config: Dict[str, Any]            # Evolution configuration
    seed_markup: str
    timestamp: str
    total_evaluations: int = 0
    stop_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EvolutionCheckpoint':
        """Create from dictionary."""
        return cls(**data)

    def save(self, path: Path) -> None:
        """Save checkpoint to JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: Path) -> 'EvolutionCheckpoint':
        """Load checkpoint from JSON file."""
        with open(path, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)

    def get_population(self) -> List[Organism]:
        """Deserialize population to Organism objects."""
        return [Organism.from_dict(o) for o in self.population]

    def get_champions(self) -> List[Organism]:
        """Deserialize champions to Organism objects."""
        return [Organism.from_dict(o) for o in self.champions]

    def get_history(self) -> 'EvolutionHistory':
        return EvolutionHistory.from_dict(self.history)


@dataclass
class GenerationRecord:
    """Summary of one completed generation."""
    generation: int
    best_fitness: float
    average_fitness: float
    population_snapshot: List[Organism]
    min_fitness: float = 0.0
    std_fitness: float = 0.0
    unique_markups: int = 0
    failed_evaluations: int = 0
    failed_operations: int = 0
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def best_organism(self) -> Optional[Organism]:
        """Fittest organism in the snapshot, first encountered on ties."""
        best = None
        for organism in self.population_snapshot:
            if best is None or organism.total_fitness > best.total_fitness:
                best = organism
        return best

    def to_dict(self) -> Dict[str, Any]:
        data = {k: v for k, v in self.__dict__.items() if k != 'population_snapshot'}
        data['population_snapshot'] = [o.to_dict() for o in self.population_snapshot]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GenerationRecord':
        data = dict(data)
        data['population_snapshot'] = [
            Organism.from_dict(o) for o in data.get('population_snapshot', [])
        ]
        return cls(**data)


class EvolutionHistory:
    """
    Tracks evolution progress over generations.

    Append-only: one GenerationRecord per completed generation.
    """

    def __init__(self):
        self.records: List[GenerationRecord] = []
        self.fitness_trajectory: List[float] = []
        self.diversity_trajectory: List[float] = []

    def record_generation(
        self,
        generation: int,
        population: List[Organism],
        failed_evaluations: int = 0,
        failed_operations: int = 0,
    ) -> GenerationRecord:
        """
        Record statistics for a completed generation.

        Args:
            generation: Generation number
            population: Current population with fitness evaluated
            failed_evaluations: Number of evaluator calls that raised
            failed_operations: Number of mutation/crossover calls that raised

        Returns:
            GenerationRecord for this generation
        """
        fitnesses = [o.total_fitness for o in population] or [0.0]
        unique = count_unique_markups(population)

        record = GenerationRecord(
            generation=generation,
            best_fitness=float(max(fitnesses)),
            average_fitness=float(np.mean(fitnesses)),
            population_snapshot=list(population),
            min_fitness=float(min(fitnesses)),
            std_fitness=float(np.std(fitnesses)),
            unique_markups=unique,
            failed_evaluations=failed_evaluations,
            failed_operations=failed_operations,
        )

        self.records.append(record)
        self.fitness_trajectory.append(record.best_fitness)
        self.diversity_trajectory.append(unique / len(population) if population else 0)

        return record

    def best_organism(self) -> Optional[Organism]:
        """Best organism across all recorded generations (earliest on ties)."""
        best = None
        for record in self.records:
            candidate = record.best_organism
            if candidate is None:
                continue
            if best is None or candidate.total_fitness > best.total_fitness:
                best = candidate
        return best

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[GenerationRecord]:
        return iter(self.records)

    def __getitem__(self, index: int) -> GenerationRecord:
        return self.records[index]

    def to_dict(self) -> Dict[str, Any]:
        """Convert history to dictionary for serialization."""
        return {
            'records': [r.to_dict() for r in self.records],
            'fitness_trajectory': self.fitness_trajectory,
            'diversity_trajectory': self.diversity_trajectory,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EvolutionHistory':
        """Restore history from dictionary."""
        history = cls()
        history.records = [
            GenerationRecord.from_dict(r) for r in data.get('records', [])
        ]
        history.fitness_trajectory = data.get('fitness_trajectory', [])
        history.diversity_trajectory = data.get('diversity_trajectory', [])
        return history

    def should_early_stop(
        self,
        patience: int = 10,
        min_improvement: float = 0.001,
    ) -> bool:
        """
        Check if evolution should stop early.

        Args:
            patience: Generations without improvement before stopping
            min_improvement: Minimum improvement to count as progress

        Returns:
            True if should stop, False otherwise
        """
        # Need at least patience + 1 generations to compare
        if len(self.fitness_trajectory) <= patience:
            return False

        recent_best = max(self.fitness_trajectory[-patience:])
        older_best = max(self.fitness_trajectory[:-patience])

        improvement = recent_best - older_best
        return improvement < min_improvement


def generate_run_id() -> str:
    """Generate unique run identifier."""
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    short_uuid = uuid.uuid4().hex[:6]
    return f"evo_{timestamp}_{short_uuid}"
