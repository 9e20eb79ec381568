"""
Pattern store protocol and records.

A pattern store keeps previously evolved fragments with an embedding so that
new runs can start from similar work. The evolution engine touches a store
exactly twice per run: one ``find_similar`` at seeding and one ``store`` for
the best organism at completion.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, List, Protocol, Sequence


@dataclass
class StoredPattern:
    """A fragment persisted in a pattern store."""
    pattern_id: str
    pattern_name: str
    pattern_type: str
    markup: str
    embedding: List[float] = field(default_factory=list)
    effectiveness_score: float = 0.0
    usage_count: int = 0
    applied_patterns: List[str] = field(default_factory=list)
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StoredPattern':
        """Create from dictionary."""
        data = dict(data)
        data['embedding'] = [float(x) for x in data.get('embedding', [])]
        return cls(**data)


@dataclass
class SimilarPattern:
    """A search hit: a stored pattern and its cosine similarity to the query."""
    pattern: StoredPattern
    similarity: float


class PatternStore(Protocol):
    """What the evolution engine needs from a similarity-search store."""

    def find_similar(
        self,
        embedding: Sequence[float],
        pattern_type: str,
        threshold: float,
        limit: int,
    ) -> List[SimilarPattern]:
        ...

    def store(self, pattern: StoredPattern) -> None:
        ...
