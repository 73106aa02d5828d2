"""Aggregate utilisation metrics derived from a memory store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from adaptive_memory.records import Memory


@dataclass(frozen=True)
class MemoryStats:
    """Snapshot of store utilisation.

    Attributes
    ----------
    total_memories:
        Number of resident memories.
    active_memories:
        Memories whose importance exceeds the active threshold.
    utilization_rate:
        Mean importance across all memories; ``0.0`` for an empty store.
        Importance is unbounded, so this can exceed 1.0.
    """

    total_memories: int = 0
    active_memories: int = 0
    utilization_rate: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_memories": self.total_memories,
            "active_memories": self.active_memories,
            "utilization_rate": self.utilization_rate,
        }


def collect_stats(memories: Iterable[Memory], active_importance: float = 0.5) -> MemoryStats:
    """Compute :class:`MemoryStats` over *memories*."""
    importances = [m.importance for m in memories]
    if not importances:
        return MemoryStats()
    return MemoryStats(
        total_memories=len(importances),
        active_memories=sum(1 for i in importances if i > active_importance),
        utilization_rate=sum(importances) / len(importances),
    )
