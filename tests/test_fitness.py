"""
Tests for organisms and fitness evaluation.

Run with: python -m pytest tests/test_fitness.py -v
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from markup_evo.evolution.organism import (
    Organism,
    create_organism,
    generate_organism_id,
)
from markup_evo.evolution.fitness import (
    FITNESS_WEIGHTS,
    FitnessScores,
    MarkupFitnessEvaluator,
    evaluate_markup,
    weighted_fitness,
)


GAME_MARKUP = """
<div class="game" style="background-color: #222; transition: all 0.2s;">
  <div class="game-score" style="color: #fff;">Score: <span>0</span></div>
  <div class="game-player" style="position: absolute; left: 50%;" onkeydown="move(event)"></div>
  <div class="game-collectible" onclick="collect(this)" style="animation: float 2s infinite;"></div>
  <div class="obstacle"></div>
  <button onclick="score += 1">Click</button>
</div>
"""


class TestOrganism:
    """Tests for Organism class."""

    def test_organism_creation(self):
        """Test basic organism creation."""
        organism = Organism(markup='<div>x</div>', organism_id='org_001')

        assert organism.generation == 0
        assert organism.parent_ids == ()
        assert organism.applied_patterns == frozenset()
        assert organism.fitness is None
        assert not organism.is_evaluated
        assert organism.total_fitness == 0.0

    def test_organism_validation(self):
        """Test organism validation."""
        with pytest.raises(ValueError):
            Organism(markup=None, organism_id='bad')

        with pytest.raises(ValueError):
            Organism(markup='<p></p>', organism_id='bad', generation=-1)

        with pytest.raises(ValueError):
            Organism(markup='<p></p>', organism_id='bad', parent_ids=('a', 'b', 'c'))

    def test_organism_serialization(self):
        """Test organism to/from dict."""
        organism = Organism(
            markup='<div>x</div>',
            organism_id='org_002',
            generation=3,
            parent_ids=('p1', 'p2'),
            applied_patterns={'modify_style', 'attribute'},
            fitness=FitnessScores(interactivity=0.4, total=0.3),
        )

        d = organism.to_dict()
        assert d['parent_ids'] == ['p1', 'p2']
        assert d['applied_patterns'] == ['attribute', 'modify_style']

        restored = Organism.from_dict(d)
        assert restored.organism_id == organism.organism_id
        assert restored.parent_ids == organism.parent_ids
        assert restored.applied_patterns == organism.applied_patterns
        assert restored.fitness == organism.fitness

    def test_organism_copy(self):
        """Copies keep id, generation and fitness but are distinct objects."""
        organism = Organism(
            markup='<div>x</div>',
            organism_id='org_003',
            generation=2,
            fitness=FitnessScores(total=0.5),
        )
        copy = organism.copy()

        assert copy is not organism
        assert copy.organism_id == organism.organism_id
        assert copy.generation == 2
        assert copy.total_fitness == 0.5

    def test_create_organism_inherits_lineage(self):
        """Children carry the union of their parents' applied patterns."""
        p1 = Organism(markup='<a></a>', organism_id='p1', applied_patterns={'modify_style'})
        p2 = Organism(markup='<b></b>', organism_id='p2', applied_patterns={'add_animation'})

        child = create_organism('<i></i>', generation=1, parents=[p1, p2], applied=['subtree'])

        assert child.parent_ids == ('p1', 'p2')
        assert child.generation == 1
        assert child.applied_patterns == {'modify_style', 'add_animation', 'subtree'}
        assert child.fitness is None

    def test_generate_organism_id(self):
        """Ids embed the generation and are unique."""
        a = generate_organism_id(4, prefix='mut')
        b = generate_organism_id(4, prefix='mut')
        assert a.startswith('mut_gen4_')
        assert a != b


class TestFitnessScores:
    """Tests for FitnessScores."""

    def test_zero(self):
        """Zero scores have every metric and the total at 0."""
        scores = FitnessScores.zero()
        assert all(v == 0.0 for v in scores.metrics().values())
        assert scores.total == 0.0

    def test_metric_names(self):
        """There are eighteen sub-metrics, all weighted."""
        names = FitnessScores.metric_names()
        assert len(names) == 18
        assert 'total' not in names
        assert set(names) == set(FITNESS_WEIGHTS)

    def test_weighted_fitness(self):
        """Test weighted fitness calculation."""
        perfect = FitnessScores(**{name: 1.0 for name in FitnessScores.metric_names()})
        assert weighted_fitness(perfect) == pytest.approx(1.0)
        assert weighted_fitness(FitnessScores.zero()) == 0.0

        only_interactivity = FitnessScores(interactivity=1.0)
        expected = FITNESS_WEIGHTS['interactivity'] / sum(FITNESS_WEIGHTS.values())
        assert weighted_fitness(only_interactivity) == pytest.approx(expected)

    def test_clamped(self):
        """Out-of-range values are clipped into [0, 1]."""
        scores = FitnessScores(interactivity=1.5, performance=-0.2, total=2.0).clamped()
        assert scores.interactivity == 1.0
        assert scores.performance == 0.0
        assert scores.total == 1.0

    def test_clamped_nan(self):
        """NaN becomes 0."""
        scores = FitnessScores(novelty=float('nan'), total=float('nan')).clamped()
        assert scores.novelty == 0.0
        assert scores.total == 0.0

    def test_fitness_serialization(self):
        """Test FitnessScores to/from dict, ignoring unknown keys."""
        scores = FitnessScores(scoring=0.75, game_loop=0.4, total=0.2)
        d = scores.to_dict()
        d['unknown_metric'] = 3
        restored = FitnessScores.from_dict(d)
        assert restored == scores


class TestMarkupFitnessEvaluator:
    """Tests for the heuristic evaluator."""

    @pytest.mark.parametrize('markup', ['', 'just some text', '<script>var a = 1;</script>'])
    def test_element_free_markup_scores_zero(self, markup):
        """Markup without candidate elements yields all-zero scores."""
        assert evaluate_markup(markup) == FitnessScores.zero()

    def test_scores_in_range(self):
        """Every sub-metric and the total stay in [0, 1]."""
        scores = evaluate_markup(GAME_MARKUP, applied_patterns=['a', 'b'])
        for name, value in scores.metrics().items():
            assert 0.0 <= value <= 1.0, name
        assert 0.0 <= scores.total <= 1.0
        assert scores.total == pytest.approx(weighted_fitness(scores))

    def test_game_markup_scores_game_metrics(self):
        """Game elements, scoring and player control are recognised."""
        scores = evaluate_markup(GAME_MARKUP)
        assert scores.game_elements > 0
        assert scores.scoring > 0
        assert scores.player_control > 0
        assert scores.collectibles > 0
        assert scores.obstacles > 0
        assert scores.interactivity > 0
        assert scores.game_loop > 0

    def test_richer_markup_scores_higher(self):
        """A game fragment beats a bare paragraph."""
        assert evaluate_markup(GAME_MARKUP).total > evaluate_markup('<p>hello</p>').total

    def test_deterministic(self):
        """Identical markup and lineage give identical scores."""
        evaluator = MarkupFitnessEvaluator()
        organism = Organism(markup=GAME_MARKUP, organism_id='a', applied_patterns={'x'})
        twin = Organism(markup=GAME_MARKUP, organism_id='b', applied_patterns={'x'})
        assert evaluator.evaluate(organism) == evaluator.evaluate(twin)

    def test_novelty_from_lineage(self):
        """Novelty grows with applied patterns and saturates at five."""
        assert evaluate_markup('<div>x</div>').novelty == 0.0
        assert evaluate_markup('<div>x</div>', ['a', 'b']).novelty == pytest.approx(0.4)
        assert evaluate_markup('<div>x</div>', list('abcdefg')).novelty == 1.0

    def test_interactivity_counts_elements(self):
        """One interactive element out of a target of five."""
        scores = evaluate_markup('<div><button onclick="go()">Go</button></div>')
        assert scores.interactivity == pytest.approx(0.2)

    def test_performance_penalties(self):
        """Each crossed DOM-size threshold costs 0.2."""
        small = '<div>' + '<span>x</span>' * 10 + '</div>'
        medium = '<div>' + '<span>x</span>' * 59 + '</div>'
        large = '<div>' + '<span>x</span>' * 119 + '</div>'

        assert evaluate_markup(small).performance == pytest.approx(1.0)
        assert evaluate_markup(medium).performance == pytest.approx(0.8)
        assert evaluate_markup(large).performance == pytest.approx(0.6)

    def test_performance_timer_penalty(self):
        """Timer-heavy markup is penalized."""
        handler = 'setTimeout(f, 1);' * 6
        scores = evaluate_markup(f'<div onclick="{handler}">x</div>')
        assert scores.performance == pytest.approx(0.8)
