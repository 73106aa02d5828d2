"""Pure scoring functions shared by the stores and the consolidation engine.

Nothing here mutates a record; callers assign the returned values.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable

from adaptive_memory.records import Memory, clamp_confidence


def eviction_score(memory: Memory) -> float:
    """Capacity ranking score; lower means evicted sooner."""
    return memory.importance * memory.frequency


def eviction_candidates(memories: Iterable[Memory], capacity: int) -> list[Memory]:
    """Return the memories to drop so that at most *capacity* remain.

    *memories* must be in insertion order.  The sort is stable, so among
    equal scores the oldest insertions are evicted first.
    """
    ordered = list(memories)
    excess = len(ordered) - capacity
    if excess <= 0:
        return []
    return sorted(ordered, key=eviction_score)[:excess]


def grow_importance(memory: Memory, divisor: float = 100.0) -> float:
    """Consolidation-time importance growth: ``importance * (1 + frequency/divisor)``.

    Deliberately unbounded ("rich get richer"): a memory reinforced often
    keeps compounding on every pass.
    """
    return memory.importance * (1 + memory.frequency / divisor)


def is_stale(
    memory: Memory,
    now: datetime,
    *,
    importance_below: float = 0.3,
    after_days: int = 30,
    min_frequency: int = 3,
) -> bool:
    """Whether a low-importance memory is old or rarely used enough to prune."""
    if memory.importance >= importance_below:
        return False
    too_old = memory.last_accessed < now - timedelta(days=after_days)
    return too_old or memory.frequency < min_frequency


def step_confidence(confidence: float, success: bool, step: float = 0.1) -> float:
    """Move *confidence* up or down by *step*, clamped to ``[0, 1]``."""
    return clamp_confidence(confidence + step if success else confidence - step)
