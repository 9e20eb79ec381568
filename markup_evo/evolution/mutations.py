"""
Mutation operators for markup organisms.

Each operator takes a fragment and a random source and returns a new fragment.
Operators are total: when no candidate element exists, or the fragment cannot
be parsed, the input is returned unchanged.

Built-in operators (all weight 1.0):
- add_interaction: click toggle, hover scale, or drag handlers
- modify_style: random-hue background, bordered card, or random-hue text
- add_animation: bounce, pulse or rotate (registers the keyframes once)
- change_layout: flex, auto-fit grid, or absolutely positioned children
- add_game_element: score display, player avatar, or collectible
"""

import random
from functools import wraps
from typing import Callable, List

from bs4 import BeautifulSoup, Tag
from bs4.builder import ParserRejectedMarkup
from loguru import logger

from .markup import (
    add_class,
    candidate_elements,
    container_elements,
    format_style,
    parse_fragment,
    random_element,
    register_keyframes,
    serialize,
    update_style,
)
from .operators import MutationOperator


def _total(fn: Callable[[str, random.Random], str]) -> Callable[[str, random.Random], str]:
    """Return the input unchanged when the fragment can't be handled."""
    @wraps(fn)
    def wrapper(markup: str, rng: random.Random) -> str:
        try:
            return fn(markup, rng)
        except (TypeError, ParserRejectedMarkup, AssertionError) as e:
            logger.debug("[{}] left markup unchanged: {}", fn.__name__, e)
            return markup
    return wrapper


def _hue(rng: random.Random) -> int:
    return rng.randrange(360)


# =============================================================================
# add_interaction
# =============================================================================

def _click_toggle(tag: Tag, rng: random.Random) -> None:
    tag['onclick'] = "this.classList.toggle('active')"
    add_class(tag, 'interactive')


def _hover_scale(tag: Tag, rng: random.Random) -> None:
    tag['onmouseover'] = "this.style.transform='scale(1.1)'"
    tag['onmouseout'] = "this.style.transform='scale(1)'"
    add_class(tag, 'hoverable')


def _drag_handlers(tag: Tag, rng: random.Random) -> None:
    tag['draggable'] = 'true'
    tag['ondragstart'] = "event.dataTransfer.setData('text', event.target.id)"
    tag['ondragend'] = "this.classList.remove('dragging')"
    add_class(tag, 'draggable')


INTERACTIONS = [_click_toggle, _hover_scale, _drag_handlers]


@_total
def add_interaction(markup: str, rng: random.Random) -> str:
    """Wire a random element to click, hover or drag events."""
    soup = parse_fragment(markup)
    element = random_element(candidate_elements(soup), rng)
    if element is None:
        return markup

    rng.choice(INTERACTIONS)(element, rng)
    return serialize(soup)


# =============================================================================
# modify_style
# =============================================================================

def _background_card(tag: Tag, rng: random.Random) -> None:
    update_style(tag, {
        'background-color': f"hsl({_hue(rng)}, 70%, 80%)",
        'border-radius': '8px',
        'padding': '10px',
    })


def _bordered_box(tag: Tag, rng: random.Random) -> None:
    update_style(tag, {
        'border': '2px solid #333',
        'box-shadow': '2px 2px 5px rgba(0,0,0,0.2)',
        'margin': '10px',
    })


def _colored_text(tag: Tag, rng: random.Random) -> None:
    update_style(tag, {
        'color': f"hsl({_hue(rng)}, 70%, 30%)",
        'font-weight': 'bold',
        'text-shadow': '1px 1px 2px rgba(0,0,0,0.1)',
    })


STYLES = [_background_card, _bordered_box, _colored_text]


@_total
def modify_style(markup: str, rng: random.Random) -> str:
    """Restyle a random element."""
    soup = parse_fragment(markup)
    element = random_element(candidate_elements(soup), rng)
    if element is None:
        return markup

    rng.choice(STYLES)(element, rng)
    return serialize(soup)


# =============================================================================
# add_animation
# =============================================================================

ANIMATIONS = [
    {'animation': 'bounce 1s infinite', 'transform': 'translateY(0)'},
    {'animation': 'pulse 2s infinite', 'transform': 'scale(1)'},
    {'animation': 'rotate 3s linear infinite', 'transform-origin': 'center'},
]


@_total
def add_animation(markup: str, rng: random.Random) -> str:
    """Animate a random element and make sure the keyframes are defined."""
    soup = parse_fragment(markup)
    element = random_element(candidate_elements(soup), rng)
    if element is None:
        return markup

    update_style(element, dict(rng.choice(ANIMATIONS)))
    register_keyframes(soup)
    return serialize(soup)


# =============================================================================
# change_layout
# =============================================================================

def _flex_layout(tag: Tag, rng: random.Random) -> None:
    update_style(tag, {
        'display': 'flex',
        'flex-direction': 'row' if rng.random() > 0.5 else 'column',
        'gap': '10px',
        'justify-content': 'space-between',
    })


def _grid_layout(tag: Tag, rng: random.Random) -> None:
    update_style(tag, {
        'display': 'grid',
        'grid-template-columns': 'repeat(auto-fit, minmax(100px, 1fr))',
        'gap': '15px',
    })


def _scattered_layout(tag: Tag, rng: random.Random) -> None:
    update_style(tag, {'position': 'relative'})
    for child in tag.find_all(True, recursive=False):
        update_style(child, {
            'position': 'absolute',
            'top': f"{rng.random() * 100:.1f}%",
            'left': f"{rng.random() * 100:.1f}%",
        })


LAYOUTS = [_flex_layout, _grid_layout, _scattered_layout]


@_total
def change_layout(markup: str, rng: random.Random) -> str:
    """Change how a random element lays out its children."""
    soup = parse_fragment(markup)
    element = random_element(candidate_elements(soup), rng)
    if element is None:
        return markup

    rng.choice(LAYOUTS)(element, rng)
    return serialize(soup)


# =============================================================================
# add_game_element
# =============================================================================

def _score_display(soup: BeautifulSoup, rng: random.Random) -> Tag:
    score = soup.new_tag('div', attrs={
        'class': 'game-score',
        'style': format_style({
            'position': 'absolute',
            'top': '10px',
            'right': '10px',
            'padding': '5px 10px',
            'background-color': '#333',
            'color': '#fff',
            'border-radius': '5px',
        }),
    })
    score.append('Score: ')
    value = soup.new_tag('span')
    value.string = '0'
    score.append(value)
    return score


def _player_avatar(soup: BeautifulSoup, rng: random.Random) -> Tag:
    player = soup.new_tag('div', attrs={
        'class': 'game-player',
        'data-speed': '5',
        'style': format_style({
            'width': '32px',
            'height': '32px',
            'background-color': '#f00',
            'position': 'absolute',
            'bottom': '20px',
            'left': '50%',
            'transform': 'translateX(-50%)',
        }),
    })
    return player


def _collectible(soup: BeautifulSoup, rng: random.Random) -> Tag:
    collectible = soup.new_tag('div', attrs={
        'class': 'game-collectible',
        'onclick': 'window.gameState && window.gameState.collect(this)',
        'style': format_style({
            'width': '16px',
            'height': '16px',
            'background-color': '#ff0',
            'position': 'absolute',
            'top': f"{rng.randrange(10, 90)}%",
            'left': f"{rng.randrange(10, 90)}%",
            'border-radius': '50%',
            'animation': 'float 2s infinite ease-in-out',
        }),
    })
    return collectible


GAME_ELEMENTS = [_score_display, _player_avatar, _collectible]


@_total
def add_game_element(markup: str, rng: random.Random) -> str:
    """
    Insert a score display, player avatar or collectible.

    The new element goes into a random container; fragments made only of
    void elements get it appended at the top level instead.
    """
    soup = parse_fragment(markup)
    if not candidate_elements(soup):
        return markup

    factory = rng.choice(GAME_ELEMENTS)
    target = random_element(container_elements(soup), rng)
    new_element = factory(soup, rng)
    if target is None:
        soup.append(new_element)
    else:
        target.append(new_element)
    return serialize(soup)


MUTATION_OPERATORS: List[MutationOperator] = [
    MutationOperator('add_interaction', 1.0, add_interaction),
    MutationOperator('modify_style', 1.0, modify_style),
    MutationOperator('add_animation', 1.0, add_animation),
    MutationOperator('change_layout', 1.0, change_layout),
    MutationOperator('add_game_element', 1.0, add_game_element),
]
