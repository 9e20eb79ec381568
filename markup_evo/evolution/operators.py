"""
Evolutionary operators: registries, selection, and the mutation protocol.

These drive the evolutionary search by:
- Selecting fit organisms for reproduction (tournament, elitism)
- Drawing a weighted-random crossover or mutation operator
- Chaining mutations according to the mutation rate
- Wrapping operator failures as OperatorError

Concrete markup transforms live in ``mutations`` and ``crossover``.
"""

import random
from dataclasses import dataclass
from typing import Callable, Generic, Iterator, List, Optional, Sequence, Tuple, TypeVar

from loguru import logger

from ..exceptions import ConfigurationError, OperatorError
from .organism import Organism


MutationFn = Callable[[str, random.Random], str]
CrossoverFn = Callable[[str, str, random.Random], Tuple[str, str]]


# =============================================================================
# Operator values
# =============================================================================

def _check_operator(name: str, weight: float) -> None:
    if not name:
        raise ConfigurationError("Operator name must be a non-empty string")
    if not weight > 0:
        raise ConfigurationError(f"Operator '{name}' weight must be positive, got {weight}")


@dataclass(frozen=True)
class MutationOperator:
    """A named, weighted transform of one fragment into one fragment."""
    name: str
    weight: float
    apply: MutationFn

    def __post_init__(self):
        _check_operator(self.name, self.weight)

    def __call__(self, markup: str, rng: random.Random) -> str:
        return self.apply(markup, rng)


@dataclass(frozen=True)
class CrossoverOperator:
    """A named, weighted recombination of two fragments into two fragments."""
    name: str
    weight: float
    apply: CrossoverFn

    def __post_init__(self):
        _check_operator(self.name, self.weight)

    def __call__(self, markup1: str, markup2: str, rng: random.Random) -> Tuple[str, str]:
        return self.apply(markup1, markup2, rng)


OperatorT = TypeVar('OperatorT', MutationOperator, CrossoverOperator)


class OperatorRegistry(Generic[OperatorT]):
    """Ordered collection of operators with unique names."""

    def __init__(self, kind: str):
        self.kind = kind
        self._operators: List[OperatorT] = []

    def register(self, operator: OperatorT) -> None:
        if any(op.name == operator.name for op in self._operators):
            raise ConfigurationError(
                f"{self.kind} operator '{operator.name}' is already registered"
            )
        self._operators.append(operator)
        logger.debug("[OperatorRegistry] registered {} operator '{}' (weight={})",
                     self.kind, operator.name, operator.weight)

    def __len__(self) -> int:
        return len(self._operators)

    def __iter__(self) -> Iterator[OperatorT]:
        return iter(self._operators)

    def __getitem__(self, index: int) -> OperatorT:
        return self._operators[index]

    def __bool__(self) -> bool:
        return bool(self._operators)


def select_weighted(operators: Sequence[OperatorT], rng: random.Random) -> OperatorT:
    """
    Roulette-wheel draw over operator weights.

    Samples uniformly in [0, total_weight) and returns the first operator
    whose cumulative weight exceeds the sample.

    Args:
        operators: Non-empty sequence of operators
        rng: Random source

    Returns:
        The drawn operator
    """
    if not operators:
        raise ConfigurationError("Cannot draw from an empty operator registry")

    total_weight = sum(op.weight for op in operators)
    sample = rng.random() * total_weight

    cumulative = 0.0
    for operator in operators:
        cumulative += operator.weight
        if sample < cumulative:
            return operator

    # Float rounding can leave the sample at the very top of the range
    return operators[-1]


# =============================================================================
# Mutation protocol
# =============================================================================

def mutate_markup(
    markup: str,
    operators: Sequence[MutationOperator],
    mutation_rate: float,
    rng: random.Random,
    max_chain: int = 8,
) -> Tuple[str, List[str]]:
    """
    Apply the mutation protocol to a fragment.

    One drawn operator is always applied. Then, while a fresh uniform draw is
    below ``mutation_rate``, another drawn operator is applied to the already
    mutated result, so the expected number of extra applications is about
    ``mutation_rate / (1 - mutation_rate)``. The chain never exceeds
    ``max_chain`` applications.

    If the first draw leaves the fragment unchanged (e.g. a style that was
    already present), further draws are made, still within ``max_chain``.

    Args:
        markup: Fragment to mutate
        operators: Mutation operators to draw from
        mutation_rate: Probability of each additional application
        rng: Random source
        max_chain: Maximum operator applications for this event

    Returns:
        Tuple of (mutated markup, names of operators that were applied)
    """
    applied: List[str] = []
    mutated = markup

    while len(applied) < max_chain:
        operator = select_weighted(operators, rng)
        mutated = _apply_mutation(operator, mutated, rng)
        applied.append(operator.name)
        if mutated != markup:
            break

    while len(applied) < max_chain and rng.random() < mutation_rate:
        operator = select_weighted(operators, rng)
        logger.debug("[mutate_markup] additional mutation '{}'", operator.name)
        mutated = _apply_mutation(operator, mutated, rng)
        applied.append(operator.name)

    return mutated, applied


def _apply_mutation(operator: MutationOperator, markup: str, rng: random.Random) -> str:
    try:
        mutated = operator(markup, rng)
    except Exception as e:
        raise OperatorError(str(e), phase='mutation', operator=operator.name) from e
    if not isinstance(mutated, str):
        raise OperatorError(
            f"returned {type(mutated).__name__}, expected str",
            phase='mutation',
            operator=operator.name,
        )
    return mutated


def apply_crossover(
    markup1: str,
    markup2: str,
    operators: Sequence[CrossoverOperator],
    rng: random.Random,
) -> Tuple[str, str, str]:
    """
    Draw one crossover operator and apply it.

    Returns:
        Tuple of (child1 markup, child2 markup, operator name)

    Raises:
        OperatorError: if the operator raised or returned something other
            than two strings
    """
    operator = select_weighted(operators, rng)
    logger.debug("[apply_crossover] using '{}'", operator.name)
    try:
        children = operator(markup1, markup2, rng)
        child1, child2 = children
    except Exception as e:
        raise OperatorError(str(e), phase='crossover', operator=operator.name) from e
    if not isinstance(child1, str) or not isinstance(child2, str):
        raise OperatorError(
            "must return two strings",
            phase='crossover',
            operator=operator.name,
        )
    return child1, child2, operator.name


# =============================================================================
# Selection Operators
# =============================================================================

def tournament_selection(
    population: Sequence[Organism],
    n_select: int,
    tournament_size: int = 3,
    rng: Optional[random.Random] = None,
) -> List[Organism]:
    """
    Tournament selection with replacement.

    Draws tournament_size organisms uniformly (with replacement) and keeps the
    one with the highest total fitness; ties go to the first drawn. Repeated
    n_select times.

    Args:
        population: Current population with fitness scores
        n_select: Number of organisms to select
        tournament_size: Number of organisms per tournament
        rng: Random source

    Returns:
        List of selected organisms (may contain duplicates)
    """
    if not population:
        return []
    rng = rng or random.Random()

    selected = []
    for _ in range(n_select):
        winner = None
        for _ in range(tournament_size):
            contestant = population[rng.randrange(len(population))]
            if winner is None or contestant.total_fitness > winner.total_fitness:
                winner = contestant
        selected.append(winner)

    return selected


def elitism_selection(
    population: Sequence[Organism],
    n_elite: int = 2,
) -> List[Organism]:
    """
    Preserve the top n_elite organisms unchanged.

    Args:
        population: Current population with fitness scores
        n_elite: Number of elite organisms to preserve

    Returns:
        Copies of the top n_elite organisms, best first
    """
    if n_elite <= 0:
        return []

    # sorted() is stable, so equal totals keep population order
    sorted_pop = sorted(population, key=lambda o: o.total_fitness, reverse=True)
    return [o.copy() for o in sorted_pop[:n_elite]]
