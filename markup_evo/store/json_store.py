"""
File-backed pattern store.

Storage layout:
    <path>            # {"version": "1.0", "patterns": {pattern_id: {...}}}
    <path>.lock       # filelock guarding read-modify-write cycles

Similarity search is a brute-force cosine scan with numpy, which is plenty
for the few thousand patterns a local store accumulates.
"""

import json
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np
from filelock import FileLock
from loguru import logger

from .base import SimilarPattern, StoredPattern


STORE_VERSION = '1.0'


class JsonPatternStore:
    """
    Pattern store kept in a single JSON file.

    Safe to share between processes: every write holds the file lock for the
    whole read-modify-write cycle.
    """

    def __init__(self, path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

        if not self.path.exists():
            with self._get_lock():
                if not self.path.exists():
                    self._write({'version': STORE_VERSION, 'patterns': {}})

    def _get_lock(self) -> FileLock:
        """Get the file lock for atomic operations."""
        return FileLock(str(self.path) + '.lock')

    def _read(self) -> Dict:
        """Read the store file (caller should hold lock for read-modify-write)."""
        if self.path.exists():
            return json.loads(self.path.read_text())
        return {'version': STORE_VERSION, 'patterns': {}}

    def _write(self, data: Dict) -> None:
        """Write the store file (caller should hold lock for read-modify-write)."""
        self.path.write_text(json.dumps(data, indent=2))

    # =========================================================================
    # PatternStore protocol
    # =========================================================================

    def store(self, pattern: StoredPattern) -> None:
        """Insert or replace a pattern by id."""
        with self._get_lock():
            data = self._read()
            data['patterns'][pattern.pattern_id] = pattern.to_dict()
            self._write(data)
        logger.debug("[JsonPatternStore] stored pattern {} ({})",
                     pattern.pattern_id, pattern.pattern_type)

    def find_similar(
        self,
        embedding: Sequence[float],
        pattern_type: str,
        threshold: float = 0.85,
        limit: int = 10,
    ) -> List[SimilarPattern]:
        """
        Find stored patterns of a type whose cosine similarity meets a threshold.

        Args:
            embedding: Query vector
            pattern_type: Only patterns of this type are considered
            threshold: Minimum cosine similarity
            limit: Maximum number of results

        Returns:
            Matches ordered by similarity, highest first. Patterns whose
            embedding has a different dimension or zero norm never match.
        """
        query = np.asarray(embedding, dtype=np.float64)
        query_norm = np.linalg.norm(query)
        if query.ndim != 1 or query_norm == 0 or limit <= 0:
            return []

        with self._get_lock():
            data = self._read()

        candidates = [
            StoredPattern.from_dict(p) for p in data['patterns'].values()
            if p.get('pattern_type') == pattern_type
            and len(p.get('embedding', [])) == len(query)
        ]
        if not candidates:
            return []

        matrix = np.array([p.embedding for p in candidates], dtype=np.float64)
        norms = np.linalg.norm(matrix, axis=1)
        with np.errstate(divide='ignore', invalid='ignore'):
            similarities = np.where(norms > 0, matrix @ query / (norms * query_norm), 0.0)

        # Stable sort keeps insertion order among equal similarities
        order = np.argsort(-similarities, kind='stable')
        results = []
        for idx in order:
            similarity = float(similarities[idx])
            if similarity < threshold:
                break
            results.append(SimilarPattern(pattern=candidates[idx], similarity=similarity))
            if len(results) >= limit:
                break
        return results

    # =========================================================================
    # Convenience
    # =========================================================================

    def get(self, pattern_id: str) -> Optional[StoredPattern]:
        data = self._read()
        entry = data['patterns'].get(pattern_id)
        return StoredPattern.from_dict(entry) if entry else None

    def list_patterns(self, pattern_type: Optional[str] = None) -> List[StoredPattern]:
        """All stored patterns, newest first, optionally filtered by type."""
        data = self._read()
        patterns = [
            StoredPattern.from_dict(p) for p in data['patterns'].values()
            if pattern_type is None or p.get('pattern_type') == pattern_type
        ]
        patterns.sort(key=lambda p: p.created_at, reverse=True)
        return patterns

    def __len__(self) -> int:
        return len(self._read()['patterns'])
