"""Central orchestrator for the adaptive memory engine.

The :class:`Brain` owns one :class:`~adaptive_memory.store.MemoryStore`, one
:class:`~adaptive_memory.store.KnowledgeGraph` and the
:class:`~adaptive_memory.consolidation.ConsolidationEngine` that maintains
them, and exposes a single high-level API surface that the MCP server calls.

There is **one Brain per MCP server process**.  All public methods return
plain dicts (not dataclasses) because their output is JSON-serialised for MCP
tool responses.  Store work runs in a worker thread via
:func:`anyio.to_thread.run_sync`; the stores' own locks keep each operation
atomic.

Usage::

    from adaptive_memory.brain import Brain

    brain = Brain()
    await brain.remember_pattern("timeout talking to billing-api", importance=0.7)
    context = await brain.context_for("billing-api")
    await brain.consolidate()
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, TypeVar

import anyio

from adaptive_memory.config import AdaptiveMemoryConfig, get_config
from adaptive_memory.consolidation import ConsolidationEngine
from adaptive_memory.store import KnowledgeGraph, MemoryStore

_T = TypeVar("_T")

logger = logging.getLogger(__name__)

HIGH_UTILIZATION_MESSAGE = "Memory utilization is high - consider cleanup or optimization"


class Brain:
    """The central orchestrator.  One brain per process.

    Parameters
    ----------
    config:
        Engine configuration; defaults to :func:`get_config`.
    """

    def __init__(self, config: AdaptiveMemoryConfig | None = None) -> None:
        self._config = config or get_config()
        self._memories = MemoryStore(
            capacity=self._config.memory.capacity,
            active_importance=self._config.memory.active_importance,
        )
        self._knowledge = KnowledgeGraph(
            confidence_step=self._config.knowledge.confidence_step,
            related_limit=self._config.knowledge.related_limit,
        )
        self._consolidation = ConsolidationEngine(
            self._memories, self._knowledge, self._config.consolidation
        )

    @property
    def memories(self) -> MemoryStore:
        return self._memories

    @property
    def knowledge(self) -> KnowledgeGraph:
        return self._knowledge

    async def _run(self, fn: Callable[..., _T], *args: Any, **kwargs: Any) -> _T:
        return await anyio.to_thread.run_sync(functools.partial(fn, *args, **kwargs))

    # ------------------------------------------------------------------
    # Memory side
    # ------------------------------------------------------------------

    async def remember_pattern(self, pattern: str, importance: float | None = None) -> dict[str, Any]:
        """Store a pattern; optionally consolidate right after.

        Returns
        -------
        dict
            ``memory_id``, the stored ``memory`` (``None`` if it was evicted
            immediately by capacity enforcement) and ``consolidation``
            (``None`` unless ``consolidate_on_insert`` is enabled).
        """
        if importance is None:
            importance = self._config.memory.default_importance
        memory_id = await self._run(self._memories.insert, pattern, importance)

        consolidation = None
        if self._config.consolidation.consolidate_on_insert:
            consolidation = (await self._run(self._consolidation.consolidate_memory)).to_dict()

        memory = self._memories.get(memory_id)
        logger.debug("Stored memory %s (resident=%s)", memory_id, memory is not None)
        return {
            "memory_id": memory_id,
            "memory": memory.to_dict() if memory is not None else None,
            "consolidation": consolidation,
        }

    async def recall_patterns(self, domain: str, limit: int | None = None) -> dict[str, Any]:
        """Retrieve and reinforce the memories matching *domain*."""
        if limit is None:
            limit = self._config.memory.retrieval_limit
        hits = await self._run(self._memories.retrieve_relevant, domain, limit)
        return {"memories": [m.to_dict() for m in hits], "count": len(hits)}

    async def memory_stats(self) -> dict[str, Any]:
        stats = await self._run(self._memories.get_stats)
        return stats.to_dict()

    # ------------------------------------------------------------------
    # Knowledge side
    # ------------------------------------------------------------------

    async def add_knowledge(self, concept: str, relationships: dict[str, str] | None = None) -> dict[str, Any]:
        node_id = await self._run(self._knowledge.add_node, concept, relationships or {})
        node = self._knowledge.get(node_id)
        return {"node_id": node_id, "node": node.to_dict() if node is not None else None}

    async def update_knowledge(
        self,
        node_id: str,
        concept: str | None = None,
        relationships: dict[str, str] | None = None,
        confidence: float | None = None,
    ) -> dict[str, Any]:
        """Partially update a node.  Unknown ids are a silent no-op."""
        updates: dict[str, Any] = {}
        if concept is not None:
            updates["concept"] = concept
        if relationships is not None:
            updates["relationships"] = relationships
        if confidence is not None:
            updates["confidence"] = confidence
        await self._run(self._knowledge.update_node, node_id, **updates)
        node = self._knowledge.get(node_id)
        return {"node_id": node_id, "node": node.to_dict() if node is not None else None}

    async def query_knowledge(self, domain: str) -> dict[str, Any]:
        nodes = await self._run(self._knowledge.query_knowledge, domain)
        return {"nodes": [n.to_dict() for n in nodes], "count": len(nodes)}

    async def related_concepts(self, concept: str) -> dict[str, Any]:
        nodes = await self._run(self._knowledge.find_related_concepts, concept)
        return {"nodes": [n.to_dict() for n in nodes], "count": len(nodes)}

    async def record_outcome(self, node_id: str, success: bool) -> dict[str, Any]:
        """Feed a success/failure signal into a node's confidence."""
        await self._run(self._knowledge.update_confidence, node_id, success)
        node = self._knowledge.get(node_id)
        return {
            "node_id": node_id,
            "confidence": node.confidence if node is not None else None,
        }

    async def prune_knowledge(self, threshold: float | None = None) -> dict[str, Any]:
        if threshold is None:
            threshold = self._config.knowledge.prune_threshold
        removed = await self._run(self._knowledge.prune_nodes, threshold)
        return {"removed": removed, "threshold": threshold}

    # ------------------------------------------------------------------
    # Maintenance and reporting
    # ------------------------------------------------------------------

    async def consolidate(self) -> dict[str, Any]:
        """Run memory consolidation followed by knowledge consolidation."""
        memory_result = await self._run(self._consolidation.consolidate_memory)
        knowledge_result = await self._run(self._consolidation.consolidate_knowledge)
        return {
            "memory": memory_result.to_dict(),
            "knowledge": knowledge_result.to_dict(),
            "stats": (await self.memory_stats()),
        }

    async def context_for(self, domain: str) -> dict[str, Any]:
        """Gather what the engine knows about *domain*.

        Returns the domain's knowledge nodes plus the relevant memories.
        Memory retrieval reinforces every memory it returns.
        """
        knowledge = await self.query_knowledge(domain)
        memories = await self.recall_patterns(domain)
        logger.info(
            "Context for %r: knowledge=%d  memories=%d",
            domain,
            knowledge["count"],
            memories["count"],
        )
        return {
            "domain": domain,
            "knowledge": knowledge["nodes"],
            "memories": memories["memories"],
        }

    async def recommendations(self) -> dict[str, Any]:
        stats = await self.memory_stats()
        items: list[str] = []
        if stats["utilization_rate"] > self._config.consolidation.utilization_threshold:
            items.append(HIGH_UTILIZATION_MESSAGE)
        return {"recommendations": items, "stats": stats}
