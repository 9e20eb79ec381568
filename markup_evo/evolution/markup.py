"""
Markup tree helpers shared by operators and the fitness evaluator.

Fragments are parsed with BeautifulSoup's ``html.parser`` backend, edited as a
tree, and serialized back to a string. Operators never keep a tree between
calls; every transform starts from the markup string it is given.

Also home to the two shared blocks an organism may carry:
- the runtime behavior script (``data-runtime="behavior"``), a ``gameState``
  container plus event wiring, added by ``ensure_runtime_behavior``
- the keyframes stylesheet (``data-keyframes``), registered once by the
  animation mutation
"""

import random
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, Tag


PARSER = 'html.parser'

# Elements that never receive children or get picked as mutation targets
VOID_ELEMENTS = {
    'area', 'base', 'br', 'col', 'embed', 'hr', 'img', 'input',
    'link', 'meta', 'source', 'track', 'wbr',
}
SKIPPED_ELEMENTS = {'script', 'style'}

RUNTIME_MARKER = 'data-runtime'
RUNTIME_MARKER_VALUE = 'behavior'
KEYFRAMES_MARKER = 'data-keyframes'

RUNTIME_BEHAVIOR_SCRIPT = """
window.gameState = window.gameState || {
    score: 0,
    health: 100,
    level: 1,
    updateScore: function(points) {
        this.score += points;
        document.querySelectorAll('.game-score span, .score span').forEach(function(el) {
            el.textContent = window.gameState.score;
        });
    },
    collect: function(el) {
        this.updateScore(5);
        el.remove();
    }
};
document.addEventListener('click', function(e) {
    if (e.target.closest('.interactive')) window.gameState.updateScore(1);
});
document.addEventListener('keydown', function(e) {
    var player = document.querySelector('.game-player');
    if (!player) return;
    var step = parseInt(player.dataset.speed || '5', 10);
    var left = parseInt(player.style.left || '0', 10);
    if (e.key === 'ArrowLeft') player.style.left = (left - step) + 'px';
    if (e.key === 'ArrowRight') player.style.left = (left + step) + 'px';
});
"""

KEYFRAMES_CSS = """
@keyframes bounce {
    0%, 100% { transform: translateY(0); }
    50% { transform: translateY(-10px); }
}
@keyframes pulse {
    0%, 100% { transform: scale(1); }
    50% { transform: scale(1.1); }
}
@keyframes rotate {
    from { transform: rotate(0deg); }
    to { transform: rotate(360deg); }
}
@keyframes float {
    0%, 100% { transform: translateY(0); }
    50% { transform: translateY(-6px); }
}
"""


# =============================================================================
# Parsing and serialization
# =============================================================================

def parse_fragment(markup: str) -> BeautifulSoup:
    """Parse a markup fragment into a tree."""
    if not isinstance(markup, str):
        raise TypeError(f"Markup must be a string, got {type(markup).__name__}")
    return BeautifulSoup(markup, PARSER)


def serialize(soup: BeautifulSoup) -> str:
    """Serialize a tree back to markup."""
    return str(soup)


# =============================================================================
# Node selection
# =============================================================================

def candidate_elements(soup: BeautifulSoup) -> List[Tag]:
    """
    All elements an operator may target, in document order.

    Script and style elements (and anything inside them) are excluded.
    """
    return [
        tag for tag in soup.find_all(True)
        if tag.name not in SKIPPED_ELEMENTS
        and tag.find_parent(list(SKIPPED_ELEMENTS)) is None
    ]


def container_elements(soup: BeautifulSoup) -> List[Tag]:
    """Candidate elements that can hold children."""
    return [tag for tag in candidate_elements(soup) if tag.name not in VOID_ELEMENTS]


def random_element(elements: List[Tag], rng: random.Random) -> Optional[Tag]:
    """Pick one element uniformly, or None when there are none."""
    if not elements:
        return None
    return elements[rng.randrange(len(elements))]


def element_depth(tag: Tag) -> int:
    """Number of element ancestors (0 for a top-level element)."""
    depth = 0
    for parent in tag.parents:
        if isinstance(parent, Tag) and not isinstance(parent, BeautifulSoup):
            depth += 1
    return depth


# =============================================================================
# Inline styles
# =============================================================================

def parse_style(style: Optional[str]) -> Dict[str, str]:
    """Parse an inline style attribute into an ordered property dict."""
    declarations: Dict[str, str] = {}
    if not style:
        return declarations
    for part in style.split(';'):
        if ':' not in part:
            continue
        prop, value = part.split(':', 1)
        prop = prop.strip().lower()
        value = value.strip()
        if prop and value:
            declarations[prop] = value
    return declarations


def format_style(declarations: Dict[str, str]) -> str:
    """Format a property dict as an inline style attribute value."""
    return '; '.join(f"{prop}: {value}" for prop, value in declarations.items()) + ';'


def update_style(tag: Tag, declarations: Dict[str, str]) -> None:
    """Merge declarations into a tag's inline style."""
    current = parse_style(tag.get('style'))
    current.update(declarations)
    tag['style'] = format_style(current)


def get_classes(tag: Tag) -> List[str]:
    """Class list of a tag, whether parsed or set as a plain string."""
    classes = tag.get('class') or []
    if isinstance(classes, str):
        return classes.split()
    return list(classes)


def add_class(tag: Tag, class_name: str) -> None:
    """Add a class to a tag if it is not already present."""
    classes = get_classes(tag)
    if class_name not in classes:
        classes.append(class_name)
    tag['class'] = classes


# =============================================================================
# Shared blocks
# =============================================================================

def has_keyframes(soup: BeautifulSoup) -> bool:
    return soup.find('style', attrs={KEYFRAMES_MARKER: True}) is not None


def register_keyframes(soup: BeautifulSoup) -> bool:
    """
    Insert the keyframes stylesheet at the top of the fragment.

    Returns:
        True if the block was inserted, False if it was already present
    """
    if has_keyframes(soup):
        return False
    style = soup.new_tag('style', attrs={KEYFRAMES_MARKER: 'evolution'})
    style.string = KEYFRAMES_CSS
    soup.insert(0, style)
    return True


def has_runtime_behavior(markup: str) -> bool:
    """Check whether a fragment already carries the runtime behavior block."""
    soup = parse_fragment(markup)
    return soup.find('script', attrs={RUNTIME_MARKER: RUNTIME_MARKER_VALUE}) is not None


def ensure_runtime_behavior(markup: str) -> str:
    """
    Make sure a fragment carries exactly one runtime behavior block.

    Idempotent. Duplicate behavior scripts and duplicate keyframe stylesheets
    (which crossover can produce by swapping subtrees) are removed, keeping
    the first of each.
    """
    soup = parse_fragment(markup)

    scripts = soup.find_all('script', attrs={RUNTIME_MARKER: RUNTIME_MARKER_VALUE})
    for extra in scripts[1:]:
        extra.decompose()

    keyframes = soup.find_all('style', attrs={KEYFRAMES_MARKER: True})
    for extra in keyframes[1:]:
        extra.decompose()

    if not scripts:
        script = soup.new_tag('script', attrs={RUNTIME_MARKER: RUNTIME_MARKER_VALUE})
        script.string = RUNTIME_BEHAVIOR_SCRIPT
        soup.append(script)

    return serialize(soup)


def augment_seed(markup: str) -> str:
    """
    Give a seed fragment a guaranteed interactive core.

    Adds a fixed score/progress tracker at the start of the first top-level
    container and a clickable element that advances it at the end. Fragments
    without any container are returned unchanged.
    """
    soup = parse_fragment(markup)
    containers = container_elements(soup)
    if not containers:
        return markup
    root = containers[0]

    tracker = soup.new_tag('div', attrs={
        'class': 'progress-tracker',
        'style': format_style({
            'position': 'fixed',
            'top': '10px',
            'right': '10px',
            'padding': '8px',
            'background-color': 'rgba(255, 255, 255, 0.9)',
            'border-radius': '4px',
            'box-shadow': '0 2px 4px rgba(0,0,0,0.1)',
        }),
    })
    score = soup.new_tag('div', attrs={'class': 'score', 'style': 'font-weight: bold;'})
    score.append('Score: ')
    score_value = soup.new_tag('span')
    score_value.string = '0'
    score.append(score_value)
    progress = soup.new_tag('div', attrs={'class': 'progress', 'style': 'margin-top: 4px;'})
    progress.append('Progress: ')
    progress_value = soup.new_tag('span')
    progress_value.string = '0%'
    progress.append(progress_value)
    tracker.append(score)
    tracker.append(progress)

    clicker = soup.new_tag('div', attrs={
        'class': 'interactive-element',
        'style': format_style({
            'cursor': 'pointer',
            'padding': '10px',
            'margin-top': '10px',
            'background-color': '#f0f0f0',
            'border-radius': '4px',
            'transition': 'transform 0.2s',
        }),
        'onclick': (
            "const s = document.querySelector('.score span');"
            " const score = parseInt(s.textContent) + 1; s.textContent = score;"
            " document.querySelector('.progress span').textContent ="
            " Math.min(100, score * 10) + '%';"
        ),
    })
    clicker.string = 'Click to Progress'

    root.insert(0, tracker)
    root.append(clicker)
    return serialize(soup)
