"""Record types held by the adaptive memory engine.

Two kinds of record exist:

- **Memory** -- a learned behavioural *pattern* that is reinforced every time
  it is retrieved and re-scored during consolidation.
- **KnowledgeNode** -- a *concept* with free-form relationship metadata and a
  bounded confidence that moves with reported outcomes.

Both are plain mutable dataclasses owned by their store
(:mod:`adaptive_memory.store`).  Public store methods hand out copies, so
callers never mutate resident records directly.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(tz=timezone.utc)


def new_record_id() -> str:
    """Return a fresh opaque 128-bit record id.

    Stores re-draw on the (astronomically unlikely) event of a clash with a
    resident id, so ids are unique within a store.
    """
    return uuid.uuid4().hex


def clamp_confidence(value: float) -> float:
    """Clamp *value* into ``[0.0, 1.0]``."""
    return min(max(value, 0.0), 1.0)


# ---------------------------------------------------------------------------
# Memory
# ---------------------------------------------------------------------------


@dataclass
class Memory:
    """A stored behavioural pattern.

    Parameters
    ----------
    id:
        Opaque unique identifier.
    pattern:
        Text signature of the observed behaviour.
    frequency:
        Times the pattern was stored or reinforced (``>= 1``).  Only merges
        can add more than one at a time.
    importance:
        Growth-biased weight.  Never clamped upward; see
        :func:`adaptive_memory.scoring.grow_importance`.
    last_accessed:
        When the memory was last stored, retrieved or merged.
    connections:
        Ids of related records.  Part of the schema but not populated by
        any current algorithm.
    """

    id: str
    pattern: str
    frequency: int = 1
    importance: float = 0.5
    last_accessed: datetime = field(default_factory=utcnow)
    connections: list[str] = field(default_factory=list)

    def copy(self) -> Memory:
        return replace(self, connections=list(self.connections))

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-safe dict for tool responses."""
        return {
            "id": self.id,
            "pattern": self.pattern,
            "frequency": self.frequency,
            "importance": self.importance,
            "last_accessed": self.last_accessed.isoformat(),
            "connections": list(self.connections),
        }


# ---------------------------------------------------------------------------
# KnowledgeNode
# ---------------------------------------------------------------------------


@dataclass
class KnowledgeNode:
    """A stored concept with confidence scoring and relationship metadata.

    ``relationships`` maps attribute names to values; the ``domain`` key is
    what :meth:`~adaptive_memory.store.KnowledgeGraph.query_knowledge`
    filters on.  ``confidence`` stays within ``[0, 1]``.
    """

    id: str
    concept: str
    relationships: dict[str, str] = field(default_factory=dict)
    confidence: float = 1.0
    last_updated: datetime = field(default_factory=utcnow)

    def copy(self) -> KnowledgeNode:
        return replace(self, relationships=dict(self.relationships))

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-safe dict for tool responses."""
        return {
            "id": self.id,
            "concept": self.concept,
            "relationships": dict(self.relationships),
            "confidence": self.confidence,
            "last_updated": self.last_updated.isoformat(),
        }
