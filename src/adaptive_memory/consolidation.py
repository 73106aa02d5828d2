"""Memory consolidation: staleness pruning, merging and re-scoring.

The **consolidation engine** is the periodic maintenance pass over both
stores.  :meth:`ConsolidationEngine.consolidate_memory` runs, in order:

1. **Prune** -- only when mean importance (the utilisation rate) exceeds
   the configured threshold: memories with low importance that are either
   old or rarely reinforced are removed.
2. **Merge** -- every pair of memories whose patterns are near-identical by
   edit distance is fused; the earlier record absorbs the later one.
3. **Grow** -- every surviving memory's importance is multiplied by
   ``1 + frequency / divisor``.  Growth is unbounded.

:meth:`ConsolidationEngine.consolidate_knowledge` looks at low-confidence
concepts and, whenever one of them is related to a highly trusted concept,
prunes *every* node below the knowledge prune threshold, not just the one
under inspection.

Each pass holds its store's lock for its whole duration, so no insert or
retrieval can interleave with it.

Usage::

    from adaptive_memory.consolidation import ConsolidationEngine

    engine = ConsolidationEngine(memories, knowledge)
    result = engine.consolidate_memory()
    print(result.to_dict())
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from adaptive_memory.config import ConsolidationConfig, get_config
from adaptive_memory.records import utcnow
from adaptive_memory.scoring import grow_importance, is_stale
from adaptive_memory.similarity import similarity
from adaptive_memory.store import KnowledgeGraph, MemoryStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# ConsolidationResult
# ---------------------------------------------------------------------------


@dataclass
class ConsolidationResult:
    """Summary of a single consolidation pass.

    Attributes
    ----------
    pruned:
        Memories removed as stale.
    merged:
        Memory pairs fused (one record removed per merge).
    grown:
        Memories whose importance was re-scored.
    nodes_pruned:
        Knowledge nodes removed by confidence pruning.
    details:
        Per-action detail dicts for logging and debugging.
    """

    pruned: int = 0
    merged: int = 0
    grown: int = 0
    nodes_pruned: int = 0
    details: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "pruned": self.pruned,
            "merged": self.merged,
            "grown": self.grown,
            "nodes_pruned": self.nodes_pruned,
            "details": self.details,
        }


# ---------------------------------------------------------------------------
# ConsolidationEngine
# ---------------------------------------------------------------------------


class ConsolidationEngine:
    """Runs maintenance passes over a :class:`MemoryStore` and a :class:`KnowledgeGraph`.

    Parameters
    ----------
    memories:
        The pattern store to prune, merge and re-score.
    knowledge:
        The concept graph to prune.
    config:
        Tunables; defaults to the process configuration.
    """

    def __init__(
        self,
        memories: MemoryStore,
        knowledge: KnowledgeGraph,
        config: ConsolidationConfig | None = None,
    ) -> None:
        self._memories = memories
        self._knowledge = knowledge
        self._cfg = config or get_config().consolidation

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def consolidate_memory(self) -> ConsolidationResult:
        """Run prune → merge → grow over the memory store."""
        result = ConsolidationResult()
        with self._memories.lock:
            stats = self._memories.get_stats()
            if stats.utilization_rate > self._cfg.utilization_threshold:
                self._prune_stale(result)
            self._merge_similar(result)
            self._grow_importance(result)

        logger.info(
            "Memory consolidation complete: pruned=%d  merged=%d  grown=%d  remaining=%d",
            result.pruned,
            result.merged,
            result.grown,
            len(self._memories),
        )
        return result

    def consolidate_knowledge(self) -> ConsolidationResult:
        """Prune the graph when a weak concept is backed by a trusted one.

        Low-confidence nodes are visited most recently updated first.  For
        each one still resident, if any of its related concepts has
        confidence above the high threshold, a global
        :meth:`~KnowledgeGraph.prune_nodes` runs at the knowledge prune
        threshold.
        """
        cfg = self._cfg
        result = ConsolidationResult()
        with self._knowledge.lock:
            weak = [n for n in self._knowledge.all() if n.confidence < cfg.knowledge_low_confidence]
            weak.sort(key=lambda n: n.last_updated, reverse=True)

            for node in weak:
                if node.id not in self._knowledge:
                    continue
                related = self._knowledge.find_related_concepts(node.concept)
                if any(r.confidence > cfg.knowledge_high_confidence for r in related):
                    removed = self._knowledge.prune_nodes(cfg.knowledge_prune_threshold)
                    result.nodes_pruned += removed
                    result.details.append(
                        {"action": "prune_nodes", "trigger": node.id, "removed": removed}
                    )

        logger.info(
            "Knowledge consolidation complete: nodes_pruned=%d  remaining=%d",
            result.nodes_pruned,
            len(self._knowledge),
        )
        return result

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _prune_stale(self, result: ConsolidationResult) -> None:
        cfg = self._cfg
        now = utcnow()
        for memory in self._memories.all():
            if is_stale(
                memory,
                now,
                importance_below=cfg.stale_importance,
                after_days=cfg.stale_after_days,
                min_frequency=cfg.min_frequency,
            ):
                self._memories.remove(memory.id)
                result.pruned += 1
                result.details.append({"action": "prune", "memory_id": memory.id})

    def _merge_similar(self, result: ConsolidationResult) -> None:
        # Patterns never change during the pass, so one snapshot serves
        # every comparison; only residency has to be rechecked.
        patterns = {m.id: m.pattern for m in self._memories.all()}
        ids = list(patterns)

        for i, first_id in enumerate(ids):
            if first_id not in self._memories:
                continue
            for second_id in ids[i + 1:]:
                if second_id not in self._memories:
                    continue
                score = similarity(patterns[first_id], patterns[second_id])
                if score > self._cfg.merge_similarity:
                    self._memories.merge(first_id, second_id)
                    result.merged += 1
                    result.details.append(
                        {
                            "action": "merge",
                            "kept": first_id,
                            "absorbed": second_id,
                            "similarity": round(score, 4),
                        }
                    )

    def _grow_importance(self, result: ConsolidationResult) -> None:
        for memory in self._memories.all():
            self._memories.set_importance(
                memory.id, grow_importance(memory, self._cfg.growth_divisor)
            )
            result.grown += 1
