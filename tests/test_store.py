"""
Tests for markup embeddings and the JSON pattern store.

Run with: python -m pytest tests/test_store.py -v
"""

import pytest
import numpy as np
import json
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from markup_evo.store import (
    JsonPatternStore,
    StoredPattern,
    cosine_similarity,
    embed_markup,
)
from markup_evo.store.embedding import markup_features


def make_pattern(pattern_id, embedding, pattern_type='interactive', **kwargs):
    return StoredPattern(
        pattern_id=pattern_id,
        pattern_name=f'name_{pattern_id}',
        pattern_type=pattern_type,
        markup=f'<div>{pattern_id}</div>',
        embedding=list(embedding),
        **kwargs,
    )


@pytest.fixture
def store(tmp_path):
    return JsonPatternStore(tmp_path / 'patterns.json')


class TestEmbedding:
    """Tests for markup embeddings."""

    def test_shape_and_norm(self):
        """Vectors have the requested length and unit norm."""
        vector = embed_markup('<div class="game"><p onclick="f()">x</p></div>', dim=32)
        assert vector.shape == (32,)
        assert np.linalg.norm(vector) == pytest.approx(1.0)

    def test_empty_markup_embeds_to_zeros(self):
        """Element-free fragments have no features."""
        assert not embed_markup('just text').any()
        assert not embed_markup('').any()

    def test_deterministic(self):
        """Same markup, same vector."""
        markup = '<div class="a b"><span>x</span></div>'
        assert np.array_equal(embed_markup(markup), embed_markup(markup))

    def test_text_does_not_matter(self):
        """Only structure contributes."""
        assert np.array_equal(
            embed_markup('<div class="card"><p>hello</p></div>'),
            embed_markup('<div class="card"><p>goodbye</p></div>'),
        )

    def test_structure_similarity(self):
        """Structurally close fragments are more similar than unrelated ones."""
        base = embed_markup('<div class="game"><button onclick="f()">a</button></div>')
        close = embed_markup('<div class="game"><button onclick="g()">b</button><p>c</p></div>')
        far = embed_markup('<table><tr><td>1</td></tr></table>')
        assert cosine_similarity(base, close) > cosine_similarity(base, far)

    def test_features(self):
        """Tags, classes and attribute names are features; scripts are not."""
        features = markup_features('<div class="a" id="x"><script>1</script></div>')
        assert features == ['tag:div', 'class:a', 'attr:id']

    def test_invalid_dim(self):
        """Dimension must be positive."""
        with pytest.raises(ValueError):
            embed_markup('<div></div>', dim=0)

    def test_cosine_similarity_edge_cases(self):
        """Zero vectors and mismatched shapes give 0."""
        assert cosine_similarity([0, 0], [1, 0]) == 0.0
        assert cosine_similarity([1, 0], [1, 0, 0]) == 0.0
        assert cosine_similarity([1, 0], [2, 0]) == pytest.approx(1.0)


class TestJsonPatternStore:
    """Tests for the file-backed pattern store."""

    def test_creates_file(self, tmp_path):
        """A new store writes an empty versioned document."""
        path = tmp_path / 'nested' / 'store.json'
        JsonPatternStore(path)
        data = json.loads(path.read_text())
        assert data == {'version': '1.0', 'patterns': {}}

    def test_store_and_get(self, store):
        """Stored patterns can be read back by id."""
        store.store(make_pattern('a', [1.0, 0.0], applied_patterns=['modify_style']))

        loaded = store.get('a')
        assert loaded.pattern_name == 'name_a'
        assert loaded.applied_patterns == ['modify_style']
        assert store.get('missing') is None
        assert len(store) == 1

    def test_store_replaces_by_id(self, store):
        """Storing the same id twice keeps one entry."""
        store.store(make_pattern('a', [1.0, 0.0], effectiveness_score=0.1))
        store.store(make_pattern('a', [1.0, 0.0], effectiveness_score=0.9))
        assert len(store) == 1
        assert store.get('a').effectiveness_score == 0.9

    def test_find_similar_threshold_and_order(self, store):
        """Only hits at or above the threshold, most similar first."""
        store.store(make_pattern('mid', [0.8, 0.6]))
        store.store(make_pattern('exact', [1.0, 0.0]))
        store.store(make_pattern('low', [0.6, 0.8]))
        store.store(make_pattern('opposite', [-1.0, 0.0]))

        hits = store.find_similar([1.0, 0.0], 'interactive', threshold=0.7, limit=10)
        assert [h.pattern.pattern_id for h in hits] == ['exact', 'mid']
        assert hits[0].similarity == pytest.approx(1.0)
        assert hits[1].similarity == pytest.approx(0.8)

    def test_find_similar_filters_type(self, store):
        """Other pattern types never match."""
        store.store(make_pattern('a', [1.0, 0.0], pattern_type='static'))
        assert store.find_similar([1.0, 0.0], 'interactive', threshold=0.0) == []
        assert len(store.find_similar([1.0, 0.0], 'static', threshold=0.0)) == 1

    def test_find_similar_limit(self, store):
        """At most ``limit`` hits are returned."""
        for i in range(5):
            store.store(make_pattern(f'p{i}', [1.0, 0.0]))
        hits = store.find_similar([1.0, 0.0], 'interactive', threshold=0.5, limit=3)
        assert [h.pattern.pattern_id for h in hits] == ['p0', 'p1', 'p2']

    def test_find_similar_skips_mismatched_dimensions(self, store):
        """Embeddings of a different length are ignored."""
        store.store(make_pattern('short', [1.0, 0.0]))
        store.store(make_pattern('long', [1.0, 0.0, 0.0]))
        hits = store.find_similar([1.0, 0.0, 0.0], 'interactive', threshold=0.5)
        assert [h.pattern.pattern_id for h in hits] == ['long']

    def test_find_similar_zero_query(self, store):
        """A zero query matches nothing."""
        store.store(make_pattern('a', [1.0, 0.0]))
        assert store.find_similar([0.0, 0.0], 'interactive', threshold=0.0) == []

    def test_persistence(self, tmp_path):
        """A second store on the same file sees earlier writes."""
        path = tmp_path / 'patterns.json'
        JsonPatternStore(path).store(make_pattern('a', [0.0, 1.0]))

        reopened = JsonPatternStore(path)
        assert len(reopened) == 1
        assert [p.pattern_id for p in reopened.list_patterns('interactive')] == ['a']
        assert reopened.list_patterns('static') == []

    def test_embedded_markup_round_trip(self, store):
        """Markup embedded and stored is found again by its own embedding."""
        markup = '<div class="game"><button onclick="f()">go</button></div>'
        vector = embed_markup(markup)
        store.store(StoredPattern(
            pattern_id='evolved',
            pattern_name='evolved',
            pattern_type='interactive',
            markup=markup,
            embedding=vector.tolist(),
        ))

        hits = store.find_similar(vector, 'interactive', threshold=0.85, limit=10)
        assert hits[0].pattern.markup == markup
        assert hits[0].similarity == pytest.approx(1.0)
