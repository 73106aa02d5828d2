"""In-memory record stores for patterns and concepts.

:class:`MemoryStore` holds :class:`~adaptive_memory.records.Memory` records
under a fixed capacity; :class:`KnowledgeGraph` holds
:class:`~adaptive_memory.records.KnowledgeNode` records.  Each store owns all
mutation of its records.

Concurrency:
    - A single ``threading.RLock`` per store serialises every operation,
      reads included, so each call is atomic with respect to the others.
    - The lock is re-entrant and exposed as :attr:`lock` so the
      consolidation engine can hold it across a whole pass while still
      calling the store's own methods.

Records handed back to callers are copies; mutating them has no effect on
the store.

Usage::

    from adaptive_memory.store import MemoryStore

    store = MemoryStore(capacity=1000)
    memory_id = store.insert("retry on 503 from upstream", importance=0.6)
    hits = store.retrieve_relevant("retry")   # reinforces every hit
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Callable, Iterator

from adaptive_memory.records import (
    KnowledgeNode,
    Memory,
    clamp_confidence,
    new_record_id,
    utcnow,
)
from adaptive_memory.scoring import eviction_candidates, eviction_score, step_confidence
from adaptive_memory.stats import MemoryStats, collect_stats

logger = logging.getLogger(__name__)


def _fresh_id(taken: Callable[[str], bool]) -> str:
    record_id = new_record_id()
    while taken(record_id):
        record_id = new_record_id()
    return record_id


# ---------------------------------------------------------------------------
# MemoryStore
# ---------------------------------------------------------------------------


class MemoryStore:
    """Capacity-bounded mapping from id to :class:`Memory`.

    Parameters
    ----------
    capacity:
        Maximum number of resident memories.  Every insert enforces it by
        evicting the lowest :func:`~adaptive_memory.scoring.eviction_score`
        records (oldest first among ties).
    active_importance:
        Threshold above which a memory counts as active in
        :meth:`get_stats`.
    """

    def __init__(self, capacity: int = 1000, active_importance: float = 0.5) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self.active_importance = active_importance
        self.lock = threading.RLock()
        # Dict order is insertion order; eviction and retrieval ties rely on it.
        self._memories: dict[str, Memory] = {}

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------

    def insert(self, pattern: str, importance: float = 0.5) -> str:
        """Store a new pattern and enforce capacity before returning its id.

        The new record itself may be evicted straight away when the store is
        full and it has the lowest score.
        """
        with self.lock:
            memory_id = _fresh_id(self._memories.__contains__)
            self._memories[memory_id] = Memory(
                id=memory_id,
                pattern=pattern,
                frequency=1,
                importance=importance,
                last_accessed=utcnow(),
            )
            self.enforce_capacity()
            return memory_id

    def retrieve_relevant(self, domain: str, limit: int = 10) -> list[Memory]:
        """Return up to *limit* memories whose pattern contains *domain*.

        Results are ordered by ``importance * frequency`` descending, ties in
        insertion order.  **This is not read-only**: each returned memory has
        its ``frequency`` incremented and ``last_accessed`` refreshed.  Use
        :meth:`peek` for a side-effect-free lookup.
        """
        with self.lock:
            hits = self._select(domain, limit)
            now = utcnow()
            for memory in hits:
                memory.frequency += 1
                memory.last_accessed = now
            return [m.copy() for m in hits]

    def peek(self, domain: str, limit: int = 10) -> list[Memory]:
        """Same selection as :meth:`retrieve_relevant` without reinforcement."""
        with self.lock:
            return [m.copy() for m in self._select(domain, limit)]

    def _select(self, domain: str, limit: int) -> list[Memory]:
        matches = [m for m in self._memories.values() if domain in m.pattern]
        # sorted() stays stable with reverse=True.  A negative limit selects
        # nothing instead of slicing from the end.
        return sorted(matches, key=eviction_score, reverse=True)[:max(limit, 0)]

    def enforce_capacity(self) -> int:
        """Evict the lowest-scoring memories until within capacity.

        Returns
        -------
        int
            Number of memories evicted.
        """
        with self.lock:
            victims = eviction_candidates(self._memories.values(), self.capacity)
            for memory in victims:
                del self._memories[memory.id]
            if victims:
                logger.debug("Evicted %d memories over capacity %d", len(victims), self.capacity)
            return len(victims)

    def get_stats(self) -> MemoryStats:
        with self.lock:
            return collect_stats(self._memories.values(), self.active_importance)

    # ------------------------------------------------------------------
    # Maintenance primitives (used by the consolidation engine)
    # ------------------------------------------------------------------

    def remove(self, memory_id: str) -> bool:
        """Delete a memory; ``False`` if it was not resident."""
        with self.lock:
            return self._memories.pop(memory_id, None) is not None

    def merge(self, winner_id: str, loser_id: str) -> Memory | None:
        """Fold *loser_id* into *winner_id* and delete the loser.

        The winner keeps its id, pattern and connections; frequencies are
        summed, importance becomes the larger of the two and
        ``last_accessed`` is refreshed.  No-op returning ``None`` when either
        id is absent or both are the same record.
        """
        with self.lock:
            winner = self._memories.get(winner_id)
            loser = self._memories.get(loser_id)
            if winner is None or loser is None or winner is loser:
                return None
            winner.frequency += loser.frequency
            winner.importance = max(winner.importance, loser.importance)
            winner.last_accessed = utcnow()
            del self._memories[loser_id]
            return winner.copy()

    def set_importance(self, memory_id: str, importance: float) -> None:
        with self.lock:
            memory = self._memories.get(memory_id)
            if memory is not None:
                memory.importance = importance

    # ------------------------------------------------------------------
    # Introspection helpers
    # ------------------------------------------------------------------

    def get(self, memory_id: str) -> Memory | None:
        with self.lock:
            memory = self._memories.get(memory_id)
            return memory.copy() if memory is not None else None

    def all(self) -> list[Memory]:
        """All memories in insertion order."""
        with self.lock:
            return [m.copy() for m in self._memories.values()]

    def ids(self) -> list[str]:
        with self.lock:
            return list(self._memories)

    def __len__(self) -> int:
        return len(self._memories)

    def __contains__(self, memory_id: object) -> bool:
        return memory_id in self._memories

    def __iter__(self) -> Iterator[Memory]:
        return iter(self.all())


# ---------------------------------------------------------------------------
# KnowledgeGraph
# ---------------------------------------------------------------------------

_UPDATABLE_NODE_FIELDS = frozenset({"concept", "relationships", "confidence"})


class KnowledgeGraph:
    """Mapping from id to :class:`KnowledgeNode` with confidence scoring.

    Parameters
    ----------
    confidence_step:
        Amount :meth:`update_confidence` moves confidence per outcome.
    related_limit:
        Maximum results from :meth:`find_related_concepts`.
    """

    def __init__(self, confidence_step: float = 0.1, related_limit: int = 10) -> None:
        self.confidence_step = confidence_step
        self.related_limit = related_limit
        self.lock = threading.RLock()
        self._nodes: dict[str, KnowledgeNode] = {}

    def add_node(self, concept: str, relationships: dict[str, str] | None = None) -> str:
        """Create a node with full confidence and return its id."""
        with self.lock:
            node_id = _fresh_id(self._nodes.__contains__)
            self._nodes[node_id] = KnowledgeNode(
                id=node_id,
                concept=concept,
                relationships=dict(relationships or {}),
                confidence=1.0,
                last_updated=utcnow(),
            )
            return node_id

    def update_node(self, node_id: str, **updates: Any) -> None:
        """Apply a partial update and refresh ``last_updated``.

        Accepts ``concept``, ``relationships`` and ``confidence`` (clamped to
        ``[0, 1]``).  Silently does nothing when *node_id* is absent.

        Raises
        ------
        ValueError
            If *updates* names a field that cannot be updated.
        """
        unknown = set(updates) - _UPDATABLE_NODE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update node fields: {', '.join(sorted(unknown))}")
        with self.lock:
            node = self._nodes.get(node_id)
            if node is None:
                return
            if "concept" in updates:
                node.concept = updates["concept"]
            if "relationships" in updates:
                node.relationships = dict(updates["relationships"])
            if "confidence" in updates:
                node.confidence = clamp_confidence(float(updates["confidence"]))
            node.last_updated = utcnow()

    def query_knowledge(self, domain: str) -> list[KnowledgeNode]:
        """Nodes whose ``relationships["domain"]`` equals *domain*, most confident first."""
        with self.lock:
            matches = [n for n in self._nodes.values() if n.relationships.get("domain") == domain]
            return [n.copy() for n in sorted(matches, key=lambda n: n.confidence, reverse=True)]

    def find_related_concepts(self, concept: str, limit: int | None = None) -> list[KnowledgeNode]:
        """Nodes whose serialised relationships mention *concept*.

        Matching is a plain substring test against the compact JSON text of
        each node's relationships (``{"k":"v"}``, no spaces), so keys as well
        as values can match.
        """
        if limit is None:
            limit = self.related_limit
        with self.lock:
            matches = [
                n for n in self._nodes.values()
                if concept in json.dumps(n.relationships, ensure_ascii=False, separators=(",", ":"))
            ]
            ranked = sorted(matches, key=lambda n: n.confidence, reverse=True)[:max(limit, 0)]
            return [n.copy() for n in ranked]

    def update_confidence(self, node_id: str, success: bool) -> None:
        """Nudge confidence up on success, down on failure; no-op if absent."""
        with self.lock:
            node = self._nodes.get(node_id)
            if node is None:
                return
            self.update_node(
                node_id,
                confidence=step_confidence(node.confidence, success, self.confidence_step),
            )

    def prune_nodes(self, threshold: float = 0.2) -> int:
        """Remove every node with ``confidence < threshold``; return the count."""
        with self.lock:
            doomed = [node_id for node_id, n in self._nodes.items() if n.confidence < threshold]
            for node_id in doomed:
                del self._nodes[node_id]
            if doomed:
                logger.debug("Pruned %d knowledge nodes below %.2f", len(doomed), threshold)
            return len(doomed)

    # ------------------------------------------------------------------
    # Introspection helpers
    # ------------------------------------------------------------------

    def get(self, node_id: str) -> KnowledgeNode | None:
        with self.lock:
            node = self._nodes.get(node_id)
            return node.copy() if node is not None else None

    def all(self) -> list[KnowledgeNode]:
        with self.lock:
            return [n.copy() for n in self._nodes.values()]

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes
