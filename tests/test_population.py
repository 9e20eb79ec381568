"""
Tests for initial population creation and population statistics.

Run with: python -m pytest tests/test_population.py -v
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from markup_evo.evolution.fitness import FitnessScores
from markup_evo.evolution.markup import has_runtime_behavior
from markup_evo.evolution.organism import Organism
from markup_evo.evolution.population import (
    create_initial_population,
    get_population_stats,
    similar_to_organisms,
)
from markup_evo.store.base import SimilarPattern, StoredPattern


SEED = '<div class="game"><p>hello</p></div>'


def fake_mutate(markup):
    return markup + '<p>mutated</p>', ['fake_op']


def make_hit(name, markup, similarity=0.9):
    pattern = StoredPattern(
        pattern_id=f'id_{name}',
        pattern_name=name,
        pattern_type='interactive',
        markup=markup,
        applied_patterns=['modify_style'],
    )
    return SimilarPattern(pattern=pattern, similarity=similarity)


class TestInitialPopulation:
    """Tests for generation 0 composition."""

    def test_size_and_composition(self):
        """Seed first, then stored patterns, then mutations."""
        hits = [make_hit('alpha', '<section>a</section>'), make_hit('beta', '<aside>b</aside>')]
        population = create_initial_population(SEED, 6, fake_mutate, hits)

        assert len(population) == 6
        assert population[0].organism_id.startswith('seed_')
        assert [o.organism_id.split('_')[0] for o in population[1:3]] == ['stored', 'stored']
        assert all(o.organism_id.startswith('mut_') for o in population[3:])
        assert all(o.generation == 0 for o in population)
        assert all(o.fitness is None for o in population)

    def test_every_organism_has_runtime_behavior(self):
        """The behavior block is present on every member."""
        population = create_initial_population(SEED, 4, fake_mutate, [make_hit('a', '<p>x</p>')])
        assert all(has_runtime_behavior(o.markup) for o in population)

    def test_seed_is_augmented(self):
        """The seed gets the score tracker unless disabled."""
        augmented = create_initial_population(SEED, 1, fake_mutate)
        plain = create_initial_population(SEED, 1, fake_mutate, augment=False)

        assert 'progress-tracker' in augmented[0].markup
        assert 'progress-tracker' not in plain[0].markup

    def test_mutants_descend_from_seed(self):
        """Mutants record the seed as their single parent."""
        population = create_initial_population(SEED, 3, fake_mutate)
        seed = population[0]
        for mutant in population[1:]:
            assert mutant.parent_ids == (seed.organism_id,)
            assert 'fake_op' in mutant.applied_patterns
            assert 'mutated' in mutant.markup

    def test_stored_patterns_truncated(self):
        """Surplus store hits are dropped."""
        hits = [make_hit(f'p{i}', f'<p>{i}</p>') for i in range(5)]
        population = create_initial_population(SEED, 3, fake_mutate, hits)

        assert len(population) == 3
        assert all(o.organism_id.startswith('stored_') for o in population[1:])

    def test_stored_lineage(self):
        """Stored organisms carry the pattern name and its own lineage."""
        organisms = similar_to_organisms([make_hit('alpha', '<p>a</p>')], limit=5)
        assert organisms[0].applied_patterns == {'alpha', 'modify_style'}
        assert similar_to_organisms([make_hit('alpha', '<p>a</p>')], limit=0) == []


class TestPopulationStats:
    """Tests for population statistics."""

    def test_get_population_stats(self):
        """Test population statistics."""
        population = [
            Organism(markup='<p>a</p>', organism_id='a', fitness=FitnessScores(total=0.2),
                     applied_patterns={'x'}),
            Organism(markup='<p>a</p>', organism_id='b', fitness=FitnessScores(total=0.6),
                     applied_patterns={'x', 'y'}),
            Organism(markup='<p>bb</p>', organism_id='c'),
        ]
        stats = get_population_stats(population)

        assert stats['size'] == 3
        assert stats['unique_markups'] == 2
        assert stats['evaluated_count'] == 2
        assert stats['max_fitness'] == pytest.approx(0.6)
        assert stats['mean_fitness'] == pytest.approx(0.4)
        assert stats['pattern_counts'] == {'x': 2, 'y': 1}
        assert stats['length_range'] == (8, 9)

    def test_empty_population_stats(self):
        """An empty population only reports its size."""
        assert get_population_stats([]) == {'size': 0}
