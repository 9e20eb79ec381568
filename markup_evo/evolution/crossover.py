"""
Crossover operators for markup organisms.

Each operator recombines two parent fragments into two child fragments. Both
parents are parsed into separate trees, one node is chosen in each, material
is exchanged between the two nodes, and both trees are serialized again.
The single-point and subtree operators exchange the inner content of the
chosen nodes; the nodes keep their own tag and attributes.

When either parent has no candidate element, or (for the attribute and
interaction operators) neither parent carries anything to exchange, the
parents are returned unchanged.
"""

import random
from functools import wraps
from typing import Callable, List, Optional, Tuple

from bs4 import Tag
from bs4.builder import ParserRejectedMarkup
from loguru import logger

from .markup import (
    candidate_elements,
    container_elements,
    get_classes,
    parse_fragment,
    random_element,
    serialize,
)
from .operators import CrossoverOperator


INTERACTION_ATTRIBUTES = [
    'onclick',
    'onmouseover',
    'onmouseout',
    'ondragstart',
    'ondragend',
    'draggable',
    'onkeydown',
    'onkeyup',
]

STYLE_ATTRIBUTES = ['style', 'class']


CrossoverFn = Callable[[str, str, random.Random], Tuple[str, str]]


def _total(fn: CrossoverFn) -> CrossoverFn:
    """Return the parents unchanged when either can't be handled."""
    @wraps(fn)
    def wrapper(markup1: str, markup2: str, rng: random.Random) -> Tuple[str, str]:
        try:
            return fn(markup1, markup2, rng)
        except (TypeError, ParserRejectedMarkup, AssertionError) as e:
            logger.debug("[{}] left parents unchanged: {}", fn.__name__, e)
            return markup1, markup2
    return wrapper


def _pick(elements: List[Tag], prefer: Callable[[Tag], bool], rng: random.Random) -> Optional[Tag]:
    """Choose among preferred elements, falling back to any element."""
    preferred = [e for e in elements if prefer(e)]
    return random_element(preferred or elements, rng)


def _has_any(tag: Tag, attributes: List[str]) -> bool:
    return any(tag.has_attr(attr) for attr in attributes)


def _swap_attributes(tag1: Tag, tag2: Tag, attributes: List[str]) -> None:
    """Exchange the listed attributes; an attribute missing on one side moves over."""
    for attr in attributes:
        value1 = tag1.get(attr)
        value2 = tag2.get(attr)
        if attr == 'class':
            value1 = get_classes(tag1) or None
            value2 = get_classes(tag2) or None
        if value2 is None:
            tag1.attrs.pop(attr, None)
        else:
            tag1[attr] = value2
        if value1 is None:
            tag2.attrs.pop(attr, None)
        else:
            tag2[attr] = value1


def _swap_contents(tag1: Tag, tag2: Tag) -> None:
    """Exchange the children of two elements; the elements themselves stay put."""
    contents1 = [child.extract() for child in list(tag1.contents)]
    contents2 = [child.extract() for child in list(tag2.contents)]
    for child in contents2:
        tag1.append(child)
    for child in contents1:
        tag2.append(child)


def _swap_inner(markup1: str, markup2: str, prefer: Callable[[Tag], bool],
                rng: random.Random) -> Tuple[str, str]:
    soup1 = parse_fragment(markup1)
    soup2 = parse_fragment(markup2)
    if not candidate_elements(soup1) or not candidate_elements(soup2):
        return markup1, markup2

    # void elements can't take content
    node1 = _pick(container_elements(soup1), prefer, rng)
    node2 = _pick(container_elements(soup2), prefer, rng)
    if node1 is None or node2 is None:
        return markup1, markup2

    _swap_contents(node1, node2)
    return serialize(soup1), serialize(soup2)


# =============================================================================
# Operators
# =============================================================================

@_total
def single_point(markup1: str, markup2: str, rng: random.Random) -> Tuple[str, str]:
    """
    Swap the inner content of one node in each parent.

    Any container may be chosen, preferring ones that have children. The
    chosen nodes keep their tag and attributes.
    """
    return _swap_inner(markup1, markup2, lambda t: bool(t.contents), rng)


@_total
def attribute(markup1: str, markup2: str, rng: random.Random) -> Tuple[str, str]:
    """Swap style and class between one element of each parent."""
    soup1 = parse_fragment(markup1)
    soup2 = parse_fragment(markup2)
    elements1 = candidate_elements(soup1)
    elements2 = candidate_elements(soup2)
    if not elements1 or not elements2:
        return markup1, markup2

    def styled(tag: Tag) -> bool:
        return _has_any(tag, STYLE_ATTRIBUTES)

    if not any(map(styled, elements1)) and not any(map(styled, elements2)):
        return markup1, markup2

    node1 = _pick(elements1, styled, rng)
    node2 = _pick(elements2, styled, rng)
    _swap_attributes(node1, node2, STYLE_ATTRIBUTES)

    return serialize(soup1), serialize(soup2)


@_total
def subtree(markup1: str, markup2: str, rng: random.Random) -> Tuple[str, str]:
    """Swap everything below one element per parent, preferring elements with element children."""
    return _swap_inner(markup1, markup2, lambda t: t.find(True) is not None, rng)


@_total
def interaction(markup1: str, markup2: str, rng: random.Random) -> Tuple[str, str]:
    """Swap event handlers and draggability between one element of each parent."""
    soup1 = parse_fragment(markup1)
    soup2 = parse_fragment(markup2)
    elements1 = candidate_elements(soup1)
    elements2 = candidate_elements(soup2)
    if not elements1 or not elements2:
        return markup1, markup2

    def interactive(tag: Tag) -> bool:
        return _has_any(tag, INTERACTION_ATTRIBUTES)

    if not any(map(interactive, elements1)) and not any(map(interactive, elements2)):
        return markup1, markup2

    node1 = _pick(elements1, interactive, rng)
    node2 = _pick(elements2, interactive, rng)
    _swap_attributes(node1, node2, INTERACTION_ATTRIBUTES)

    return serialize(soup1), serialize(soup2)


CROSSOVER_OPERATORS: List[CrossoverOperator] = [
    CrossoverOperator('single_point', 1.0, single_point),
    CrossoverOperator('attribute', 1.0, attribute),
    CrossoverOperator('subtree', 1.0, subtree),
    CrossoverOperator('interaction', 1.0, interaction),
]
