"""
Deterministic markup embeddings.

Feature hashing over the structural vocabulary of a fragment: tag names,
class names and attribute names. Two fragments built from the same pieces
land close together under cosine similarity, whatever their text content.
"""

import hashlib
from typing import List

import numpy as np

from ..evolution.markup import candidate_elements, get_classes, parse_fragment


DEFAULT_DIM = 64


def _bucket(feature: str, dim: int) -> int:
    digest = hashlib.md5(feature.encode('utf-8')).digest()
    return int.from_bytes(digest[:4], 'little') % dim


def markup_features(markup: str) -> List[str]:
    """Structural tokens of a fragment, in document order."""
    soup = parse_fragment(markup)
    features = []
    for tag in candidate_elements(soup):
        features.append(f"tag:{tag.name}")
        for class_name in get_classes(tag):
            features.append(f"class:{class_name}")
        for attr in tag.attrs:
            if attr != 'class':
                features.append(f"attr:{attr}")
    return features


def embed_markup(markup: str, dim: int = DEFAULT_DIM) -> np.ndarray:
    """
    Embed a fragment as an L2-normalized feature-hash vector.

    Args:
        markup: Fragment to embed
        dim: Embedding dimension

    Returns:
        float64 vector of length ``dim`` (all zeros for element-free markup)
    """
    if dim < 1:
        raise ValueError(f"Embedding dimension must be >= 1, got {dim}")

    vector = np.zeros(dim, dtype=np.float64)
    for feature in markup_features(markup):
        vector[_bucket(feature, dim)] += 1.0

    norm = np.linalg.norm(vector)
    if norm > 0:
        vector /= norm
    return vector


def cosine_similarity(a, b) -> float:
    """Cosine similarity of two vectors, 0.0 if either is all zeros."""
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != b.shape:
        return 0.0
    denom = np.linalg.norm(a) * np.linalg.norm(b)
    if denom == 0:
        return 0.0
    return float(np.dot(a, b) / denom)
