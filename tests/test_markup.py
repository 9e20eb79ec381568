"""
Tests for markup tree helpers.

Run with: python -m pytest tests/test_markup.py -v
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from markup_evo.evolution.markup import (
    RUNTIME_MARKER,
    KEYFRAMES_MARKER,
    add_class,
    augment_seed,
    candidate_elements,
    container_elements,
    element_depth,
    ensure_runtime_behavior,
    format_style,
    get_classes,
    has_runtime_behavior,
    parse_fragment,
    parse_style,
    register_keyframes,
    serialize,
    update_style,
)


class TestStyles:
    """Tests for inline style parsing and formatting."""

    def test_parse_style(self):
        """Declarations are split, trimmed and lower-cased by property."""
        assert parse_style(' Color: red ; padding:4px;;') == {
            'color': 'red',
            'padding': '4px',
        }

    def test_parse_empty_style(self):
        """Missing or empty styles parse to an empty dict."""
        assert parse_style(None) == {}
        assert parse_style('') == {}

    def test_format_style(self):
        """Formatting keeps insertion order."""
        assert format_style({'color': 'red', 'margin': '0'}) == 'color: red; margin: 0;'

    def test_update_style_merges(self):
        """New declarations override and extend existing ones."""
        soup = parse_fragment('<div style="color: red; margin: 0;">x</div>')
        div = soup.find('div')
        update_style(div, {'color': 'blue', 'padding': '2px'})
        assert parse_style(div['style']) == {
            'color': 'blue',
            'margin': '0',
            'padding': '2px',
        }


class TestNodeSelection:
    """Tests for candidate element enumeration."""

    def test_candidates_skip_script_and_style(self):
        """Script and style elements are never candidates."""
        soup = parse_fragment(
            '<style>p {}</style><div><p>a</p></div><script>var x;</script>'
        )
        names = [t.name for t in candidate_elements(soup)]
        assert names == ['div', 'p']

    def test_containers_skip_void_elements(self):
        """Void elements can't receive children."""
        soup = parse_fragment('<div><br/><img src="a.png"/></div>')
        assert [t.name for t in container_elements(soup)] == ['div']

    def test_element_depth(self):
        """Depth counts element ancestors."""
        soup = parse_fragment('<div><p><span>x</span></p></div>')
        assert element_depth(soup.find('div')) == 0
        assert element_depth(soup.find('span')) == 2

    def test_add_class_keeps_existing(self):
        """Adding a class appends once and keeps existing classes."""
        soup = parse_fragment('<div class="a b">x</div>')
        div = soup.find('div')
        add_class(div, 'c')
        add_class(div, 'c')
        assert get_classes(div) == ['a', 'b', 'c']

    def test_get_classes_from_plain_string(self):
        """Classes set as a plain string are split."""
        soup = parse_fragment('<div>x</div>')
        div = soup.find('div')
        div['class'] = 'one two'
        assert get_classes(div) == ['one', 'two']


class TestSharedBlocks:
    """Tests for the runtime behavior and keyframes blocks."""

    def test_ensure_runtime_behavior_adds_block(self):
        """A fragment without the block gets exactly one."""
        result = ensure_runtime_behavior('<div>x</div>')
        soup = parse_fragment(result)
        scripts = soup.find_all('script', attrs={RUNTIME_MARKER: 'behavior'})
        assert len(scripts) == 1
        assert 'gameState' in scripts[0].string
        assert has_runtime_behavior(result)

    def test_ensure_runtime_behavior_idempotent(self):
        """Applying the step twice gives the same markup."""
        once = ensure_runtime_behavior('<div class="game"><p>x</p></div>')
        assert ensure_runtime_behavior(once) == once

    def test_ensure_runtime_behavior_removes_duplicates(self):
        """Duplicate behavior and keyframe blocks are collapsed to one each."""
        block = ensure_runtime_behavior('<div>x</div>')
        soup = parse_fragment(block)
        register_keyframes(soup)
        doubled = serialize(soup) * 2

        result = parse_fragment(ensure_runtime_behavior(doubled))
        assert len(result.find_all('script', attrs={RUNTIME_MARKER: 'behavior'})) == 1
        assert len(result.find_all('style', attrs={KEYFRAMES_MARKER: True})) == 1

    def test_register_keyframes_once(self):
        """Keyframes are inserted only the first time."""
        soup = parse_fragment('<div>x</div>')
        assert register_keyframes(soup) is True
        assert register_keyframes(soup) is False
        assert len(soup.find_all('style')) == 1
        assert '@keyframes bounce' in soup.find('style').string

    def test_augment_seed(self):
        """The seed gets a score tracker and a clickable progress element."""
        result = parse_fragment(augment_seed('<div class="game"><p>x</p></div>'))
        root = result.find('div', class_='game')
        assert root.find('div', class_='progress-tracker') is not None
        assert root.find('div', class_='progress-tracker') is root.find('div')
        clicker = root.find('div', class_='interactive-element')
        assert clicker is not None
        assert clicker.has_attr('onclick')
        assert clicker.get_text() == 'Click to Progress'

    @pytest.mark.parametrize('markup', ['', 'plain text', '<br/>'])
    def test_augment_seed_without_container(self, markup):
        """Fragments with no container are returned unchanged."""
        assert augment_seed(markup) == markup

    def test_parse_rejects_non_string(self):
        """Only strings can be parsed."""
        with pytest.raises(TypeError):
            parse_fragment(None)
