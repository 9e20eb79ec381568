"""
Main evolutionary optimization engine.

Orchestrates the evolution loop:
1. Seed the population (seed fragment, stored patterns, seed mutations)
2. Evaluate fitness (optionally in a process pool)
3. Record the generation and update champions
4. Check termination (generation budget, threshold, early stop, cancel)
5. Select parents and create offspring via crossover/mutation
6. Replace the population (elites + offspring)
7. Checkpoint progress
"""

import dataclasses
from dataclasses import dataclass, field, asdict, fields
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from pathlib import Path
from datetime import datetime
from multiprocessing import Pool
import random
import threading
import time

from loguru import logger

from ..exceptions import CollaboratorError, ConfigurationError, OperatorError
from ..store.base import PatternStore, SimilarPattern, StoredPattern
from ..store.embedding import DEFAULT_DIM, embed_markup
from .checkpoint import EvolutionCheckpoint, EvolutionHistory, GenerationRecord, generate_run_id
from .crossover import CROSSOVER_OPERATORS
from .fitness import FitnessScores, MarkupFitnessEvaluator
from .markup import ensure_runtime_behavior
from .mutations import MUTATION_OPERATORS
from .operators import (
    CrossoverOperator,
    MutationOperator,
    OperatorRegistry,
    apply_crossover,
    elitism_selection,
    mutate_markup,
    tournament_selection,
)
from .organism import Organism, create_organism
from .population import create_initial_population, get_population_stats


ProgressCallback = Callable[[int, int, Dict[str, Any]], None]

STOP_MAX_GENERATIONS = 'max_generations'
STOP_THRESHOLD = 'fitness_threshold'
STOP_EARLY = 'early_stop'
STOP_CANCELLED = 'cancelled'


@dataclass(frozen=True)
class EvolutionConfig:
    """Configuration for evolution run."""
    # Population parameters
    population_size: int = 50
    elitism_count: int = 2
    tournament_size: int = 3

    # Evolution rates
    mutation_rate: float = 0.5
    crossover_rate: float = 0.8
    max_mutation_chain: int = 8

    # Termination
    max_generations: int = 20
    fitness_threshold: Optional[float] = None
    early_stop_patience: Optional[int] = None
    early_stop_min_improvement: float = 0.001

    # Seeding
    augment_seed: bool = True
    similarity_threshold: float = 0.85
    similar_limit: int = 10
    pattern_type: str = 'game_mechanic'

    # Checkpointing
    checkpoint_every: int = 5
    checkpoint_dir: Optional[str] = None
    n_champions: int = 10

    # Parallelization
    n_workers: int = 1

    seed: Optional[int] = None

    def validate(self) -> None:
        """Check every field; raises one ConfigurationError listing all violations."""
        errors = []
        if self.population_size < 2:
            errors.append(f"population_size must be >= 2, got {self.population_size}")
        if self.max_generations < 0:
            errors.append(f"max_generations must be >= 0, got {self.max_generations}")
        for name in ('mutation_rate', 'crossover_rate'):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                errors.append(f"{name} must be in [0, 1], got {value}")
        if not 0 <= self.elitism_count < self.population_size:
            errors.append(
                f"elitism_count must be in [0, population_size), got {self.elitism_count}"
            )
        if self.tournament_size < 1:
            errors.append(f"tournament_size must be >= 1, got {self.tournament_size}")
        if self.fitness_threshold is not None and not 0.0 <= self.fitness_threshold <= 1.0:
            errors.append(f"fitness_threshold must be in [0, 1], got {self.fitness_threshold}")
        if self.max_mutation_chain < 1:
            errors.append(f"max_mutation_chain must be >= 1, got {self.max_mutation_chain}")
        if self.n_workers < 1:
            errors.append(f"n_workers must be >= 1, got {self.n_workers}")
        if self.early_stop_patience is not None and self.early_stop_patience < 1:
            errors.append(f"early_stop_patience must be >= 1, got {self.early_stop_patience}")
        if self.checkpoint_every < 1:
            errors.append(f"checkpoint_every must be >= 1, got {self.checkpoint_every}")
        if self.similar_limit < 0:
            errors.append(f"similar_limit must be >= 0, got {self.similar_limit}")
        if self.n_champions < 1:
            errors.append(f"n_champions must be >= 1, got {self.n_champions}")

        if errors:
            raise ConfigurationError('; '.join(errors), phase='configuring')

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EvolutionConfig':
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown config keys: {', '.join(unknown)}", phase='configuring'
            )
        return cls(**data)

    def replace(self, **overrides) -> 'EvolutionConfig':
        """Copy with some fields overridden."""
        return dataclasses.replace(self, **overrides)


@dataclass
class EvolutionResult:
    """Results from an evolution run."""
    run_id: str
    best_organism: Organism
    history: EvolutionHistory
    champions: List[Organism]
    final_population: List[Organism]
    generations_completed: int
    total_evaluations: int
    failed_evaluations: int
    failed_operations: int
    runtime_seconds: float
    stop_reason: str
    warnings: List[str] = field(default_factory=list)

    @property
    def best_fitness(self) -> float:
        return self.best_organism.total_fitness

    def summary(self) -> str:
        """Generate summary string."""
        lines = [
            f"Evolution Run: {self.run_id}",
            f"Generations: {self.generations_completed}",
            f"Total evaluations: {self.total_evaluations}",
            f"Failed evaluations: {self.failed_evaluations}",
            f"Failed operations: {self.failed_operations}",
            f"Best fitness: {self.best_fitness:.4f}",
            f"Best organism: {self.best_organism.organism_id} "
            f"(gen {self.best_organism.generation})",
            f"Runtime: {self.runtime_seconds:.1f}s",
            f"Stop reason: {self.stop_reason}",
        ]
        for warning in self.warnings:
            lines.append(f"Warning: {warning}")
        return '\n'.join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'run_id': self.run_id,
            'best_organism': self.best_organism.to_dict(),
            'champions': [o.to_dict() for o in self.champions],
            'generations_completed': self.generations_completed,
            'total_evaluations': self.total_evaluations,
            'failed_evaluations': self.failed_evaluations,
            'failed_operations': self.failed_operations,
            'runtime_seconds': self.runtime_seconds,
            'stop_reason': self.stop_reason,
            'warnings': list(self.warnings),
            'history': [
                {
                    'generation': r.generation,
                    'best_fitness': r.best_fitness,
                    'average_fitness': r.average_fitness,
                    'min_fitness': r.min_fitness,
                    'std_fitness': r.std_fitness,
                    'unique_markups': r.unique_markups,
                    'failed_evaluations': r.failed_evaluations,
                    'failed_operations': r.failed_operations,
                }
                for r in self.history
            ],
        }


class EvolutionEngine:
    """
    Main evolutionary optimization engine.

    Evolves markup fragments toward higher fitness. Operators and the
    evaluator are registered up front; ``evolve`` then owns the population
    for the whole run.
    """

    def __init__(
        self,
        config: Optional[EvolutionConfig] = None,
        pattern_store: Optional[PatternStore] = None,
    ):
        """
        Initialize evolution engine.

        Args:
            config: Default configuration for runs (overridable per call)
            pattern_store: Optional store used for seeding and persistence
        """
        self.config = config or EvolutionConfig()
        self.pattern_store = pattern_store

        self.mutation_operators: OperatorRegistry[MutationOperator] = OperatorRegistry('mutation')
        self.crossover_operators: OperatorRegistry[CrossoverOperator] = OperatorRegistry('crossover')
        self.fitness_evaluator = None

        self._reset_run_state()

    @classmethod
    def with_defaults(
        cls,
        config: Optional[EvolutionConfig] = None,
        pattern_store: Optional[PatternStore] = None,
        evaluator=None,
    ) -> 'EvolutionEngine':
        """Engine with the built-in operators and the markup fitness evaluator."""
        engine = cls(config=config, pattern_store=pattern_store)
        for operator in MUTATION_OPERATORS:
            engine.register_mutation_operator(operator)
        for operator in CROSSOVER_OPERATORS:
            engine.register_crossover_operator(operator)
        engine.set_fitness_evaluator(evaluator or MarkupFitnessEvaluator())
        return engine

    def _reset_run_state(self) -> None:
        self.run_id: Optional[str] = None
        self.seed_markup = ''
        self.population: List[Organism] = []
        self.champions: List[Organism] = []
        self.history = EvolutionHistory()
        self.generation = 0
        self.total_evaluations = 0
        self.failed_evaluations = 0
        self.failed_operations = 0
        self._pending_failed_operations = 0
        self._embedding: Optional[Sequence[float]] = None
        self.rng = random.Random(self.config.seed)

    # =========================================================================
    # Registration
    # =========================================================================

    def register_mutation_operator(self, operator: MutationOperator) -> None:
        if not isinstance(operator, MutationOperator):
            raise ConfigurationError(
                f"Expected MutationOperator, got {type(operator).__name__}"
            )
        self.mutation_operators.register(operator)

    def register_crossover_operator(self, operator: CrossoverOperator) -> None:
        if not isinstance(operator, CrossoverOperator):
            raise ConfigurationError(
                f"Expected CrossoverOperator, got {type(operator).__name__}"
            )
        self.crossover_operators.register(operator)

    def set_fitness_evaluator(self, evaluator) -> None:
        if not callable(getattr(evaluator, 'evaluate', None)):
            raise ConfigurationError(
                f"Fitness evaluator must have an evaluate() method, got {type(evaluator).__name__}"
            )
        self.fitness_evaluator = evaluator

    def _check_setup(self) -> None:
        if self.fitness_evaluator is None:
            raise ConfigurationError("Fitness evaluator not set", phase='configuring')
        if not self.mutation_operators:
            raise ConfigurationError("No mutation operators registered", phase='configuring')
        if not self.crossover_operators:
            raise ConfigurationError("No crossover operators registered", phase='configuring')

    # =========================================================================
    # Run
    # =========================================================================

    def evolve(
        self,
        seed_markup: str,
        config: Optional[EvolutionConfig] = None,
        *,
        embedding: Optional[Sequence[float]] = None,
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> EvolutionResult:
        """
        Run full evolutionary optimization.

        Args:
            seed_markup: Fragment to evolve from
            config: Configuration for this run (defaults to the engine's)
            embedding: Query vector for the pattern store (computed from the
                seed when omitted)
            cancel_event: Checked before evaluating each generation after 0
            progress_callback: Optional callback(gen, max_generations, stats)

        Returns:
            EvolutionResult with the best organism and the full history

        Raises:
            ConfigurationError: invalid config or incomplete setup
            CollaboratorError: the pattern store failed during seeding
        """
        config = config or self.config
        config.validate()
        self._check_setup()
        if not isinstance(seed_markup, str):
            raise ConfigurationError(
                f"Seed markup must be a string, got {type(seed_markup).__name__}",
                phase='configuring',
            )

        self.config = config
        self._reset_run_state()
        self.run_id = generate_run_id()
        self.seed_markup = seed_markup
        self._embedding = embedding
        start_time = time.time()

        logger.info(
            "[EvolutionEngine] Starting run {} (population={}, generations={}, seed={})",
            self.run_id, config.population_size, config.max_generations, config.seed,
        )

        similar = self._find_similar(seed_markup, embedding)
        self.population = create_initial_population(
            seed_markup,
            config.population_size,
            mutate=self._safe_mutate,
            similar_patterns=similar,
            augment=config.augment_seed,
        )
        logger.info("[EvolutionEngine] Seeded population with {} stored patterns", len(similar))

        return self._run_loop(start_time, cancel_event, progress_callback)

    def resume(
        self,
        *,
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> EvolutionResult:
        """
        Continue a run restored with ``load_checkpoint``.

        The checkpointed generation has already been recorded, so resumption
        starts by reproducing from it.
        """
        if not self.history:
            raise ConfigurationError("No checkpoint loaded", phase='resuming')
        self.config.validate()
        self._check_setup()
        start_time = time.time()

        stop_reason = self._check_termination(self.history[-1])
        if stop_reason is None:
            self.population = self._next_generation()
            self.generation += 1
            return self._run_loop(start_time, cancel_event, progress_callback)
        return self._finish(stop_reason, start_time)

    def _run_loop(
        self,
        start_time: float,
        cancel_event: Optional[threading.Event],
        progress_callback: Optional[ProgressCallback],
    ) -> EvolutionResult:
        config = self.config

        while True:
            if self.generation > 0 and cancel_event is not None and cancel_event.is_set():
                logger.info("[EvolutionEngine] Cancelled before generation {}", self.generation)
                stop_reason = STOP_CANCELLED
                break

            failed_evaluations = self.evaluate_population()
            record = self.history.record_generation(
                generation=self.generation,
                population=self.population,
                failed_evaluations=failed_evaluations,
                failed_operations=self._pending_failed_operations,
            )
            self._pending_failed_operations = 0
            self._update_champions()

            logger.info(
                "[EvolutionEngine] Gen {}: best={:.4f} avg={:.4f} unique={}/{} failed={}",
                record.generation, record.best_fitness, record.average_fitness,
                record.unique_markups, len(self.population),
                record.failed_evaluations + record.failed_operations,
            )

            if progress_callback:
                stats = {
                    'generation': record.generation,
                    'best_fitness': record.best_fitness,
                    'average_fitness': record.average_fitness,
                    'evaluations': self.total_evaluations,
                }
                progress_callback(record.generation, config.max_generations, stats)

            if config.checkpoint_dir and (self.generation + 1) % config.checkpoint_every == 0:
                self.save_checkpoint()

            stop_reason = self._check_termination(record)
            if stop_reason is not None:
                break

            self.population = self._next_generation()
            self.generation += 1

        return self._finish(stop_reason, start_time)

    def _check_termination(self, record: GenerationRecord) -> Optional[str]:
        config = self.config
        if config.fitness_threshold is not None and record.best_fitness >= config.fitness_threshold:
            logger.info(
                "[EvolutionEngine] Fitness threshold {} reached at generation {}",
                config.fitness_threshold, record.generation,
            )
            return STOP_THRESHOLD
        if record.generation >= config.max_generations - 1:
            return STOP_MAX_GENERATIONS
        if config.early_stop_patience is not None and self.history.should_early_stop(
            patience=config.early_stop_patience,
            min_improvement=config.early_stop_min_improvement,
        ):
            logger.info(
                "[EvolutionEngine] No improvement > {} in {} generations",
                config.early_stop_min_improvement, config.early_stop_patience,
            )
            return STOP_EARLY
        return None

    def _finish(self, stop_reason: str, start_time: float) -> EvolutionResult:
        best = self.history.best_organism()
        warnings = []

        if self.pattern_store is not None:
            try:
                self._store_best(best)
            except Exception as e:
                message = f"Failed to store best organism {best.organism_id}: {e}"
                logger.warning("[EvolutionEngine] {}", message)
                warnings.append(message)

        if self.config.checkpoint_dir:
            self.save_checkpoint(stop_reason=stop_reason)

        runtime = time.time() - start_time
        result = EvolutionResult(
            run_id=self.run_id,
            best_organism=best,
            history=self.history,
            champions=list(self.champions),
            final_population=list(self.population),
            generations_completed=len(self.history),
            total_evaluations=self.total_evaluations,
            failed_evaluations=self.failed_evaluations,
            failed_operations=self.failed_operations,
            runtime_seconds=runtime,
            stop_reason=stop_reason,
            warnings=warnings,
        )
        logger.info(
            "[EvolutionEngine] Run {} finished ({}): best={:.4f} after {} generations in {:.1f}s",
            self.run_id, stop_reason, result.best_fitness, result.generations_completed, runtime,
        )
        return result

    # =========================================================================
    # Pattern store
    # =========================================================================

    def _find_similar(
        self,
        seed_markup: str,
        embedding: Optional[Sequence[float]],
    ) -> List[SimilarPattern]:
        if self.pattern_store is None:
            return []

        config = self.config
        try:
            query = list(embedding) if embedding is not None else embed_markup(seed_markup).tolist()
            similar = self.pattern_store.find_similar(
                query,
                config.pattern_type,
                config.similarity_threshold,
                config.similar_limit,
            )
            return list(similar)
        except Exception as e:
            raise CollaboratorError(f"find_similar failed: {e}", phase='seeding') from e

    def _store_best(self, best: Organism) -> None:
        dim = len(self._embedding) if self._embedding is not None else DEFAULT_DIM
        pattern = StoredPattern(
            pattern_id=best.organism_id,
            pattern_name=f"evolved_{self.run_id}",
            pattern_type=self.config.pattern_type,
            markup=best.markup,
            embedding=embed_markup(best.markup, dim=dim).tolist(),
            effectiveness_score=best.total_fitness,
            applied_patterns=sorted(best.applied_patterns),
            metadata={
                'run_id': self.run_id,
                'generation': best.generation,
                'parent_ids': list(best.parent_ids),
            },
        )
        self.pattern_store.store(pattern)
        logger.info("[EvolutionEngine] Stored best organism {} as {}",
                    best.organism_id, pattern.pattern_name)

    # =========================================================================
    # Evaluation
    # =========================================================================

    def evaluate_population(self) -> int:
        """
        Evaluate fitness for all unevaluated organisms.

        Evaluator failures give the organism zero fitness and are counted.

        Returns:
            Number of failed evaluations
        """
        to_evaluate = [o for o in self.population if o.fitness is None]
        if not to_evaluate:
            return 0

        if self.config.n_workers > 1 and len(to_evaluate) > 1:
            results = self._parallel_evaluate(to_evaluate)
        else:
            results = [_evaluate_one(self.fitness_evaluator, o) for o in to_evaluate]

        failed = 0
        for organism, (scores, error) in zip(to_evaluate, results):
            if error is not None:
                failed += 1
                failure = OperatorError(
                    error,
                    phase='evaluating',
                    operator=type(self.fitness_evaluator).__name__,
                    organism_id=organism.organism_id,
                )
                logger.warning("[EvolutionEngine] Evaluation of {} failed: {}",
                               organism.organism_id, failure)
                scores = FitnessScores.zero()
            organism.fitness = scores

        self.total_evaluations += len(to_evaluate)
        self.failed_evaluations += failed
        return failed

    def _parallel_evaluate(
        self,
        organisms: List[Organism],
    ) -> List[Tuple[Optional[FitnessScores], Optional[str]]]:
        """
        Evaluate organisms in a process pool.

        The evaluator is pickled to each worker, so it must be a module-level
        class instance.
        """
        args_list = [(self.fitness_evaluator, o.to_dict()) for o in organisms]

        with Pool(min(self.config.n_workers, len(organisms))) as pool:
            results = pool.map(_evaluate_worker, args_list)

        return [
            (FitnessScores.from_dict(scores) if scores is not None else None, error)
            for scores, error in results
        ]

    # =========================================================================
    # Reproduction
    # =========================================================================

    def _record_operator_failure(self, error: OperatorError) -> None:
        self.failed_operations += 1
        self._pending_failed_operations += 1
        logger.warning("[EvolutionEngine] Operator failed, keeping input: {}", error)

    def _safe_mutate(self, markup: str) -> Tuple[str, List[str]]:
        """Mutation protocol; on operator failure the markup comes back unchanged."""
        try:
            return mutate_markup(
                markup,
                self.mutation_operators,
                self.config.mutation_rate,
                self.rng,
                max_chain=self.config.max_mutation_chain,
            )
        except OperatorError as e:
            self._record_operator_failure(e)
            return markup, []

    def _safe_crossover(self, parent1: Organism, parent2: Organism) -> Tuple[str, str, List[str]]:
        try:
            child1, child2, name = apply_crossover(
                parent1.markup, parent2.markup, self.crossover_operators, self.rng
            )
            return child1, child2, [name]
        except OperatorError as e:
            self._record_operator_failure(e)
            return parent1.markup, parent2.markup, []

    def _next_generation(self) -> List[Organism]:
        """Select, reproduce and replace: elites followed by offspring."""
        config = self.config
        n_offspring = config.population_size - config.elitism_count

        elite = elitism_selection(self.population, config.elitism_count)
        parents = tournament_selection(
            self.population,
            n_offspring,
            tournament_size=config.tournament_size,
            rng=self.rng,
        )
        offspring = self._reproduce(parents, n_offspring, self.generation + 1)

        return elite + offspring

    def _reproduce(
        self,
        parents: List[Organism],
        n_offspring: int,
        generation: int,
    ) -> List[Organism]:
        """
        Create exactly n_offspring children from the selected parents.

        Parents are paired in order; with an odd count the last one pairs
        with the first. Each pair is recombined with probability
        crossover_rate, otherwise both parents pass through. Each child is
        then mutated with probability mutation_rate.
        """
        config = self.config
        children: List[Tuple[str, List[Organism], List[str]]] = []

        for i in range(0, len(parents), 2):
            parent1 = parents[i]
            parent2 = parents[i + 1] if i + 1 < len(parents) else parents[0]

            if self.rng.random() < config.crossover_rate:
                child1, child2, applied = self._safe_crossover(parent1, parent2)
                children.append((child1, [parent1, parent2], applied))
                children.append((child2, [parent1, parent2], applied))
            else:
                children.append((parent1.markup, [parent1], []))
                children.append((parent2.markup, [parent2], []))

        offspring = []
        for markup, lineage, applied in children[:n_offspring]:
            if self.rng.random() < config.mutation_rate:
                markup, mutations = self._safe_mutate(markup)
                applied = applied + mutations
            offspring.append(create_organism(
                ensure_runtime_behavior(markup),
                generation=generation,
                parents=lineage,
                applied=applied,
            ))

        return offspring

    # =========================================================================
    # Champions & checkpoints
    # =========================================================================

    def _update_champions(self) -> None:
        """Update the list of best organisms found so far."""
        evaluated = [o for o in self.population if o.fitness is not None]
        all_candidates = self.champions + evaluated

        sorted_candidates = sorted(
            all_candidates,
            key=lambda o: o.total_fitness,
            reverse=True,
        )

        # Keep top n_champions (deduplicated by markup)
        seen = set()
        new_champions = []
        for o in sorted_candidates:
            if o.markup not in seen:
                seen.add(o.markup)
                new_champions.append(o.copy())
                if len(new_champions) >= self.config.n_champions:
                    break

        self.champions = new_champions

    def population_stats(self) -> Dict[str, Any]:
        return get_population_stats(self.population)

    def save_checkpoint(self, stop_reason: Optional[str] = None) -> Path:
        """Save current evolution state to checkpoint file."""
        if not self.config.checkpoint_dir:
            raise ConfigurationError("checkpoint_dir is not set", phase='checkpointing')

        checkpoint = EvolutionCheckpoint(
            run_id=self.run_id,
            generation=self.generation,
            population=[o.to_dict() for o in self.population],
            champions=[o.to_dict() for o in self.champions],
            history=self.history.to_dict(),
            config=self.config.to_dict(),
            seed_markup=self.seed_markup,
            timestamp=datetime.now().isoformat(),
            total_evaluations=self.total_evaluations,
            stop_reason=stop_reason,
        )

        checkpoint_dir = Path(self.config.checkpoint_dir)
        checkpoint_path = checkpoint_dir / f"{self.run_id}_gen{self.generation:03d}.json"
        checkpoint.save(checkpoint_path)
        logger.debug("[EvolutionEngine] Saved checkpoint {}", checkpoint_path)
        return checkpoint_path

    def load_checkpoint(self, checkpoint_path: Path) -> None:
        """Restore run state (config, population, champions, history) from a checkpoint."""
        checkpoint = EvolutionCheckpoint.load(checkpoint_path)

        self.config = EvolutionConfig.from_dict(checkpoint.config)
        self._reset_run_state()
        self.run_id = checkpoint.run_id
        self.seed_markup = checkpoint.seed_markup
        self.generation = checkpoint.generation
        self.population = checkpoint.get_population()
        self.champions = checkpoint.get_champions()
        self.history = checkpoint.get_history()
        self.total_evaluations = checkpoint.total_evaluations
        logger.info("[EvolutionEngine] Loaded checkpoint {} at generation {}",
                    checkpoint.run_id, checkpoint.generation)


def _evaluate_one(evaluator, organism: Organism) -> Tuple[Optional[FitnessScores], Optional[str]]:
    """Evaluate one organism, returning (scores, None) or (None, error message)."""
    try:
        scores = evaluator.evaluate(organism)
        return scores.clamped(), None
    except Exception as e:
        return None, f"{type(e).__name__}: {e}"


def _evaluate_worker(args: tuple) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
    """
    Worker function for parallel fitness evaluation.

    This is a module-level function to enable pickling for multiprocessing.
    """
    evaluator, organism_dict = args
    organism = Organism.from_dict(organism_dict)
    scores, error = _evaluate_one(evaluator, organism)
    return (scores.to_dict() if scores is not None else None), error
