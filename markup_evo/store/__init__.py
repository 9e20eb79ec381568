"""
Pattern storage for markup evolution.

Provides:
- PatternStore protocol used by the evolution engine
- JsonPatternStore: file-backed store with cosine similarity search
- embed_markup: deterministic structural embedding of a fragment
"""

from .base import PatternStore, SimilarPattern, StoredPattern
from .embedding import cosine_similarity, embed_markup, markup_features
from .json_store import JsonPatternStore

__all__ = [
    'PatternStore',
    'SimilarPattern',
    'StoredPattern',
    'JsonPatternStore',
    'embed_markup',
    'markup_features',
    'cosine_similarity',
]
