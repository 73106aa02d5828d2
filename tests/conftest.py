"""Shared fixtures and helpers for the adaptive memory test suite."""

from __future__ import annotations

from datetime import timedelta

import pytest

from adaptive_memory.brain import Brain
from adaptive_memory.config import AdaptiveMemoryConfig, ConsolidationConfig
from adaptive_memory.consolidation import ConsolidationEngine
from adaptive_memory.records import utcnow
from adaptive_memory.store import KnowledgeGraph, MemoryStore


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def memory_store() -> MemoryStore:
    """A fresh store with the default capacity of 1000."""
    return MemoryStore(capacity=1000)


@pytest.fixture
def knowledge() -> KnowledgeGraph:
    return KnowledgeGraph()


@pytest.fixture
def engine(memory_store: MemoryStore, knowledge: KnowledgeGraph) -> ConsolidationEngine:
    """A ConsolidationEngine with default tunables, independent of env vars."""
    return ConsolidationEngine(memory_store, knowledge, ConsolidationConfig())


@pytest.fixture
def brain() -> Brain:
    """A Brain built from default configuration (no env overrides)."""
    return Brain(AdaptiveMemoryConfig())


# ---------------------------------------------------------------------------
# Shared test helpers -- direct record edits bypassing the public API
# ---------------------------------------------------------------------------


def set_memory(
    store: MemoryStore,
    memory_id: str,
    *,
    importance: float | None = None,
    frequency: int | None = None,
    age_days: float | None = None,
) -> None:
    """Overwrite fields of a resident memory in place.

    ``age_days`` back-dates ``last_accessed`` relative to now.
    """
    memory = store._memories[memory_id]
    if importance is not None:
        memory.importance = importance
    if frequency is not None:
        memory.frequency = frequency
    if age_days is not None:
        memory.last_accessed = utcnow() - timedelta(days=age_days)


def set_node(
    graph: KnowledgeGraph,
    node_id: str,
    *,
    confidence: float | None = None,
    age_days: float | None = None,
) -> None:
    """Overwrite fields of a resident node without touching ``last_updated``
    unless ``age_days`` is given."""
    node = graph._nodes[node_id]
    if confidence is not None:
        node.confidence = confidence
    if age_days is not None:
        node.last_updated = utcnow() - timedelta(days=age_days)
