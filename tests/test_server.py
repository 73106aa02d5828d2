"""Tests for the adaptive_memory.server MCP tool layer.

Tests cover:
- Parameter normalization (empty strings -> None)
- _error_response structured error formatting
- Every tool delegating to the Brain
- Error handling in every tool (returns error dict, never raises)
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

import adaptive_memory.server as server_module
from adaptive_memory.brain import Brain
from adaptive_memory.config import AdaptiveMemoryConfig, KnowledgeConfig, MemoryConfig
from adaptive_memory.server import (
    _error_response,
    add_knowledge,
    consolidate,
    context,
    memory_stats,
    prune_knowledge,
    query_knowledge,
    recall_patterns,
    recommendations,
    record_outcome,
    related_concepts,
    remember_pattern,
    update_knowledge,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_brain():
    brain = MagicMock(spec=Brain)
    brain.remember_pattern = AsyncMock(
        return_value={"memory_id": "m1", "memory": {}, "consolidation": None}
    )
    brain.recall_patterns = AsyncMock(return_value={"memories": [], "count": 0})
    brain.memory_stats = AsyncMock(
        return_value={"total_memories": 0, "active_memories": 0, "utilization_rate": 0.0}
    )
    brain.consolidate = AsyncMock(return_value={"memory": {}, "knowledge": {}, "stats": {}})
    brain.add_knowledge = AsyncMock(return_value={"node_id": "n1", "node": {}})
    brain.update_knowledge = AsyncMock(return_value={"node_id": "n1", "node": {}})
    brain.query_knowledge = AsyncMock(return_value={"nodes": [], "count": 0})
    brain.related_concepts = AsyncMock(return_value={"nodes": [], "count": 0})
    brain.record_outcome = AsyncMock(return_value={"node_id": "n1", "confidence": 1.0})
    brain.prune_knowledge = AsyncMock(return_value={"removed": 0, "threshold": 0.2})
    brain.context_for = AsyncMock(return_value={"domain": "d", "knowledge": [], "memories": []})
    brain.recommendations = AsyncMock(return_value={"recommendations": [], "stats": {}})
    return brain


@pytest.fixture(autouse=True)
def patch_brain(mock_brain):
    with patch.object(server_module, "_brain", mock_brain):
        yield mock_brain


# ===================================================================
# TestParameterNormalization
# ===================================================================


class TestParameterNormalization:
    """Verify that empty strings sent by MCP clients are converted to None."""

    async def test_update_empty_concept_becomes_none(self, mock_brain):
        await update_knowledge(node_id="n1", concept="")
        _, kwargs = mock_brain.update_knowledge.call_args
        assert kwargs["concept"] is None

    async def test_update_nonempty_values_preserved(self, mock_brain):
        await update_knowledge(node_id="n1", concept="c", relationships={"domain": "x"}, confidence=0.3)
        _, kwargs = mock_brain.update_knowledge.call_args
        assert kwargs == {
            "node_id": "n1",
            "concept": "c",
            "relationships": {"domain": "x"},
            "confidence": 0.3,
        }


# ===================================================================
# TestErrorResponse
# ===================================================================


class TestErrorResponse:

    def test_structure(self):
        result = _error_response(ValueError("bad input"))
        assert result["error"] == "ValueError"
        assert result["detail"] == "bad input"
        assert result["traceback"] == "ValueError: bad input"


# ===================================================================
# TestDelegation
# ===================================================================


class TestDelegation:
    """Each tool forwards its arguments to the matching Brain method."""

    async def test_remember_pattern(self, mock_brain):
        result = await remember_pattern(pattern="p", importance=0.7)
        mock_brain.remember_pattern.assert_awaited_once_with(pattern="p", importance=0.7)
        assert result["memory_id"] == "m1"

    async def test_recall_patterns(self, mock_brain):
        await recall_patterns(domain="db", limit=3)
        mock_brain.recall_patterns.assert_awaited_once_with(domain="db", limit=3)

    async def test_memory_stats(self, mock_brain):
        result = await memory_stats()
        assert result["total_memories"] == 0

    async def test_consolidate(self, mock_brain):
        await consolidate()
        mock_brain.consolidate.assert_awaited_once()

    async def test_add_knowledge(self, mock_brain):
        await add_knowledge(concept="c", relationships={"domain": "x"})
        mock_brain.add_knowledge.assert_awaited_once_with(concept="c", relationships={"domain": "x"})

    async def test_query_knowledge(self, mock_brain):
        await query_knowledge(domain="x")
        mock_brain.query_knowledge.assert_awaited_once_with(domain="x")

    async def test_related_concepts(self, mock_brain):
        await related_concepts(concept="c")
        mock_brain.related_concepts.assert_awaited_once_with(concept="c")

    async def test_record_outcome(self, mock_brain):
        await record_outcome(node_id="n1", success=False)
        mock_brain.record_outcome.assert_awaited_once_with(node_id="n1", success=False)

    async def test_prune_knowledge(self, mock_brain):
        await prune_knowledge(threshold=0.4)
        mock_brain.prune_knowledge.assert_awaited_once_with(threshold=0.4)

    async def test_context(self, mock_brain):
        await context(domain="d")
        mock_brain.context_for.assert_awaited_once_with(domain="d")

    async def test_recommendations(self, mock_brain):
        await recommendations()
        mock_brain.recommendations.assert_awaited_once()


# ===================================================================
# TestErrorHandling
# ===================================================================


class TestErrorHandling:
    """Tools never raise; they return a structured error dict."""

    @pytest.mark.parametrize(
        ("method", "call"),
        [
            ("remember_pattern", lambda: remember_pattern(pattern="p")),
            ("recall_patterns", lambda: recall_patterns(domain="d")),
            ("memory_stats", lambda: memory_stats()),
            ("consolidate", lambda: consolidate()),
            ("add_knowledge", lambda: add_knowledge(concept="c")),
            ("update_knowledge", lambda: update_knowledge(node_id="n")),
            ("query_knowledge", lambda: query_knowledge(domain="d")),
            ("related_concepts", lambda: related_concepts(concept="c")),
            ("record_outcome", lambda: record_outcome(node_id="n", success=True)),
            ("prune_knowledge", lambda: prune_knowledge()),
            ("context_for", lambda: context(domain="d")),
            ("recommendations", lambda: recommendations()),
        ],
    )
    async def test_exception_becomes_error_dict(self, mock_brain, method, call):
        getattr(mock_brain, method).side_effect = RuntimeError("boom")
        result = await call()
        assert result["error"] == "RuntimeError"
        assert result["detail"] == "boom"


# ===================================================================
# TestConfiguredDefaults
# ===================================================================


class TestConfiguredDefaults:
    """Omitted tool arguments fall back to the Brain's configuration."""

    @pytest.fixture
    def configured_brain(self):
        brain = Brain(
            AdaptiveMemoryConfig(
                memory=MemoryConfig(default_importance=0.25, retrieval_limit=2),
                knowledge=KnowledgeConfig(prune_threshold=0.6),
            )
        )
        with patch.object(server_module, "_brain", brain):
            yield brain

    async def test_omitted_arguments_forwarded_as_none(self, mock_brain):
        await remember_pattern(pattern="p")
        await recall_patterns(domain="d")
        await prune_knowledge()
        assert mock_brain.remember_pattern.call_args.kwargs["importance"] is None
        assert mock_brain.recall_patterns.call_args.kwargs["limit"] is None
        assert mock_brain.prune_knowledge.call_args.kwargs["threshold"] is None

    async def test_default_importance_from_config(self, configured_brain):
        result = await remember_pattern(pattern="p")
        assert result["memory"]["importance"] == 0.25

    async def test_retrieval_limit_from_config(self, configured_brain):
        for i in range(4):
            await remember_pattern(pattern=f"job {i}")
        result = await recall_patterns(domain="job")
        assert result["count"] == 2

    async def test_prune_threshold_from_config(self, configured_brain):
        added = await add_knowledge(concept="c")
        configured_brain.knowledge.update_node(added["node_id"], confidence=0.5)
        result = await prune_knowledge()
        assert result == {"removed": 1, "threshold": 0.6}

    async def test_explicit_arguments_still_win(self, configured_brain):
        result = await remember_pattern(pattern="p", importance=0.9)
        assert result["memory"]["importance"] == 0.9
