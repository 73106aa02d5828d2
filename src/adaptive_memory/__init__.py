"""adaptive_memory -- self-consolidating pattern and concept store for agents.

Quick start::

    from adaptive_memory import Brain

    async def main():
        brain = Brain()
        await brain.remember_pattern("flaky test: test_upload times out", importance=0.6)
        hits = await brain.recall_patterns("flaky test")
        await brain.consolidate()

For lower-level, synchronous access, import from submodules::

    from adaptive_memory.store import MemoryStore, KnowledgeGraph
    from adaptive_memory.consolidation import ConsolidationEngine, ConsolidationResult
    from adaptive_memory.similarity import edit_distance, similarity
"""

from __future__ import annotations

__version__ = "0.1.0"

# Public API exports
from adaptive_memory.brain import Brain
from adaptive_memory.consolidation import ConsolidationEngine, ConsolidationResult
from adaptive_memory.records import KnowledgeNode, Memory
from adaptive_memory.stats import MemoryStats
from adaptive_memory.store import KnowledgeGraph, MemoryStore

__all__ = [
    "__version__",
    "Brain",
    "ConsolidationEngine",
    "ConsolidationResult",
    "KnowledgeGraph",
    "KnowledgeNode",
    "Memory",
    "MemoryStats",
    "MemoryStore",
]
