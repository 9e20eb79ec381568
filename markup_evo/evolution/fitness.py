"""
Fitness evaluation for markup organisms.

Scores a fragment on eighteen heuristic sub-metrics and combines them into a
weighted total used for selection.

Every sub-metric is a signal count normalized against a target count,
``min(count / target, 1)``, except:
- performance: starts at 1.0 and is penalized for DOM size, animation count,
  inline-style volume and timer calls
- game_loop: fraction of game-loop indicators present
- novelty: driven by the organism's lineage rather than its markup

The evaluator is deterministic: identical markup and lineage always produce
identical scores.
"""

import math
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, List

from bs4 import BeautifulSoup, Tag
from bs4.builder import ParserRejectedMarkup

from .markup import candidate_elements, parse_fragment
from .organism import Organism


@dataclass
class FitnessScores:
    """
    Multi-metric fitness scores for an organism.

    All sub-metrics are normalized to [0, 1] where higher is better; ``total``
    is their weighted mean.
    """
    interactivity: float = 0.0
    responsiveness: float = 0.0
    aesthetics: float = 0.0
    performance: float = 0.0
    novelty: float = 0.0
    user_input: float = 0.0
    state_management: float = 0.0
    feedback: float = 0.0
    progression: float = 0.0
    game_elements: float = 0.0
    social_elements: float = 0.0
    media_elements: float = 0.0
    nostalgia: float = 0.0
    player_control: float = 0.0
    collectibles: float = 0.0
    scoring: float = 0.0
    obstacles: float = 0.0
    game_loop: float = 0.0
    total: float = 0.0

    @classmethod
    def zero(cls) -> 'FitnessScores':
        """All-zero scores, used for unparseable markup and failed evaluations."""
        return cls()

    @classmethod
    def metric_names(cls) -> List[str]:
        """Names of the sub-metrics (everything except ``total``)."""
        return [f.name for f in fields(cls) if f.name != 'total']

    def metrics(self) -> Dict[str, float]:
        """Sub-metric values keyed by name."""
        return {name: getattr(self, name) for name in self.metric_names()}

    def clamped(self) -> 'FitnessScores':
        """Copy with every sub-metric and the total clipped to [0, 1]."""
        values = {name: _clip(value) for name, value in self.metrics().items()}
        return FitnessScores(total=_clip(self.total), **values)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FitnessScores':
        """Create from dictionary."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: float(v) for k, v in data.items() if k in known})

    def __repr__(self) -> str:
        return (
            f"FitnessScores(total={self.total:.3f}, "
            f"inter={self.interactivity:.2f}, "
            f"player={self.player_control:.2f}, "
            f"perf={self.performance:.2f})"
        )


# Weights for the total. Interactivity and player control weigh the most.
FITNESS_WEIGHTS = {
    'interactivity': 1.5,
    'responsiveness': 1.2,
    'aesthetics': 1.0,
    'performance': 1.0,
    'novelty': 0.8,
    'user_input': 1.2,
    'state_management': 1.0,
    'feedback': 1.0,
    'progression': 1.0,
    'game_elements': 1.2,
    'social_elements': 0.8,
    'media_elements': 0.8,
    'nostalgia': 0.8,
    'player_control': 1.5,
    'collectibles': 1.2,
    'scoring': 1.3,
    'obstacles': 1.1,
    'game_loop': 1.4,
}

# Count at which a sub-metric saturates at 1.0
TARGET_COUNTS = {
    'interactivity': 5,     # qualifying interactive elements
    'responsiveness': 3,    # elements with transition/animation/transform
    'aesthetics': 8,        # elements with colour/background/border/shadow
    'novelty': 5,           # distinct applied patterns in the lineage
    'user_input': 4,        # kinds of input handled (click, drag, keyboard, mouse)
    'state_management': 3,  # state-carrying elements
    'feedback': 4,          # feedback elements
    'progression': 2,       # progress/level/score elements
    'game_elements': 5,     # player/enemy/collectible/... elements
    'social_elements': 4,
    'media_elements': 2,
    'nostalgia': 4,         # retro desktop elements
    'player_control': 3,    # controllable elements (+1 when any can move)
    'collectibles': 4,
    'scoring': 3,           # score elements (+1 when any is wired to clicks)
    'obstacles': 3,
}

# Performance penalties: (signal, thresholds). Each crossed threshold costs 0.2.
PERFORMANCE_PENALTY = 0.2
PERFORMANCE_THRESHOLDS = {
    'elements': (50, 100),
    'animations': (10, 20),
    'inline_styles': (20, 40),
    'timers': (5, 10),
}

SELECTORS = {
    'interactivity': (
        '[onclick], [onmouseover], [ondrag], [draggable], [contenteditable], '
        'button, input, select, textarea'
    ),
    'responsiveness': '[style*="transition"], [style*="animation"], [style*="transform"]',
    'aesthetics': (
        '[style*="color"], [style*="background"], [style*="border"], '
        '[style*="shadow"], [style*="gradient"]'
    ),
    'state_management': (
        '[data-state], [data-score], [data-progress], .score, .progress, .state'
    ),
    'feedback': '[style*="transition"], [style*="animation"], .feedback, .alert, .notification',
    'progression': '.progress, .level, .score, .achievement, [data-progress], progress',
    'game_elements': (
        '.game, .player, .enemy, .collectible, .obstacle, .score, [data-game], '
        '.game-player, .game-collectible, .game-score'
    ),
    'social_elements': '.profile, .comment, .like, .share, .feed, .post, [data-social]',
    'media_elements': 'audio, video, canvas, [style*="preserve-3d"]',
    'nostalgia': (
        '.window, .desktop, .icon, .taskbar, .start-menu, [data-retro], [data-classic]'
    ),
    'player_control': (
        '.game-player, [data-player], [data-control], [onkeydown], [onkeyup], '
        '[onkeypress], [style*="position: absolute"]'
    ),
    'collectibles': (
        '.collectible, .game-collectible, .coin, .token, .power-up, .item, '
        '[data-collectible], [data-item]'
    ),
    'scoring': '.score, .points, [data-score], [data-points], .high-score, .game-score',
    'obstacles': '.obstacle, .enemy, .hazard, .barrier, [data-obstacle], [data-enemy]',
}

INPUT_HANDLERS = {
    'onclick': 'click',
    'ondrag': 'drag',
    'ondragstart': 'drag',
    'onkeydown': 'keyboard',
    'onkeyup': 'keyboard',
    'onmousemove': 'mouse',
    'onmouseover': 'mouse',
}

MOVEMENT_HANDLERS = ('onkeydown', 'onkeyup', 'onkeypress')
TIMER_CALLS = ('setTimeout', 'setInterval', 'requestAnimationFrame')


def weighted_fitness(scores: FitnessScores) -> float:
    """
    Compute the scalar total from the sub-metrics.

    Weighted mean over FITNESS_WEIGHTS, normalized by the weight sum so the
    result stays in [0, 1] whenever every sub-metric does.

    Args:
        scores: FitnessScores object (its ``total`` is ignored)

    Returns:
        Scalar fitness value
    """
    weight_sum = sum(FITNESS_WEIGHTS.values())
    total = sum(
        weight * getattr(scores, name)
        for name, weight in FITNESS_WEIGHTS.items()
    )
    return total / weight_sum


def _clip(value: float) -> float:
    value = float(value)
    if math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, value))


def _ratio(count: int, target: int) -> float:
    return min(count / target, 1.0)


def _style(tag: Tag) -> str:
    return tag.get('style') or ''


class MarkupFitnessEvaluator:
    """
    Heuristic fitness evaluator for markup fragments.

    Stateless and picklable, so one instance can be shipped to worker
    processes for parallel evaluation.
    """

    def evaluate(self, organism: Organism) -> FitnessScores:
        """
        Score one organism.

        Markup that is not a string or that contains no elements yields
        all-zero scores.
        """
        try:
            soup = parse_fragment(organism.markup)
        except (TypeError, ParserRejectedMarkup, AssertionError):
            return FitnessScores.zero()

        elements = candidate_elements(soup)
        if not elements:
            return FitnessScores.zero()

        scores = FitnessScores(
            interactivity=self._count_ratio(soup, 'interactivity'),
            responsiveness=self._count_ratio(soup, 'responsiveness'),
            aesthetics=self._count_ratio(soup, 'aesthetics'),
            performance=self.evaluate_performance(soup, organism.markup),
            novelty=_ratio(len(organism.applied_patterns), TARGET_COUNTS['novelty']),
            user_input=self.evaluate_user_input(elements),
            state_management=self._count_ratio(soup, 'state_management'),
            feedback=self._count_ratio(soup, 'feedback'),
            progression=self._count_ratio(soup, 'progression'),
            game_elements=self._count_ratio(soup, 'game_elements'),
            social_elements=self._count_ratio(soup, 'social_elements'),
            media_elements=self._count_ratio(soup, 'media_elements'),
            nostalgia=self._count_ratio(soup, 'nostalgia'),
            player_control=self.evaluate_player_control(soup),
            collectibles=self._count_ratio(soup, 'collectibles'),
            scoring=self.evaluate_scoring(soup),
            obstacles=self._count_ratio(soup, 'obstacles'),
            game_loop=self.evaluate_game_loop(soup),
        )
        scores.total = weighted_fitness(scores)
        return scores

    def _count_ratio(self, soup: BeautifulSoup, metric: str) -> float:
        return _ratio(len(soup.select(SELECTORS[metric])), TARGET_COUNTS[metric])

    def evaluate_performance(self, soup: BeautifulSoup, markup: str) -> float:
        """Start at 1.0 and subtract a fixed penalty per crossed threshold."""
        styled = [tag for tag in soup.find_all(True) if tag.has_attr('style')]
        signals = {
            'elements': len(soup.find_all(True)),
            'animations': sum(1 for tag in styled if 'animation' in _style(tag)),
            'inline_styles': len(styled),
            'timers': sum(markup.count(call) for call in TIMER_CALLS),
        }

        score = 1.0
        for signal, thresholds in PERFORMANCE_THRESHOLDS.items():
            for threshold in thresholds:
                if signals[signal] > threshold:
                    score -= PERFORMANCE_PENALTY
        return max(0.0, score)

    def evaluate_user_input(self, elements: List[Tag]) -> float:
        """Number of distinct input kinds handled anywhere in the fragment."""
        kinds = set()
        for tag in elements:
            for attr, kind in INPUT_HANDLERS.items():
                if tag.has_attr(attr):
                    kinds.add(kind)
        return _ratio(len(kinds), TARGET_COUNTS['user_input'])

    def evaluate_player_control(self, soup: BeautifulSoup) -> float:
        players = soup.select(SELECTORS['player_control'])
        can_move = any(
            any(tag.has_attr(h) for h in MOVEMENT_HANDLERS)
            or 'position: absolute' in _style(tag)
            for tag in players
        )
        return _ratio(len(players) + (1 if can_move else 0), TARGET_COUNTS['player_control'])

    def evaluate_scoring(self, soup: BeautifulSoup) -> float:
        score_elements = soup.select(SELECTORS['scoring'])
        wired = any(
            tag.has_attr('onclick')
            or (isinstance(tag.parent, Tag) and tag.parent.has_attr('onclick'))
            for tag in score_elements
        )
        return _ratio(len(score_elements) + (1 if wired else 0), TARGET_COUNTS['scoring'])

    def evaluate_game_loop(self, soup: BeautifulSoup) -> float:
        """Fraction of game-loop indicators present."""
        indicators = [
            soup.select_one('[style*="animation"]') is not None,
            soup.select_one('[style*="transition"]') is not None,
            soup.select_one('.game-player') is not None,
            soup.select_one('.game-score') is not None,
            soup.select_one('[onclick*="score"]') is not None,
        ]
        return sum(indicators) / len(indicators)


def evaluate_markup(markup: str, applied_patterns=()) -> FitnessScores:
    """Convenience wrapper scoring a bare markup string."""
    organism = Organism(
        markup=markup,
        organism_id='adhoc',
        applied_patterns=frozenset(applied_patterns),
    )
    return MarkupFitnessEvaluator().evaluate(organism)
