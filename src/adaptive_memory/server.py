"""MCP server exposing the adaptive memory engine as tools via stdio transport.

This module is the sole interface between the outside world (an agent or any
other MCP client) and the :class:`~adaptive_memory.brain.Brain`.  Each public
method on the Brain is mapped 1-to-1 to an MCP tool with a descriptive
docstring that helps the calling model choose the right tool.

The ``mcp`` object is imported by :mod:`adaptive_memory.__main__` and launched
with ``mcp.run()`` over stdio.

Architecture notes
------------------
* A single global :pydata:`_brain` instance holds all state for the process.
  Nothing is persisted: restarting the server starts from an empty store.
* Empty-string parameters from MCP (which lacks first-class optionals) are
  normalised to ``None`` before forwarding to the Brain.
* All tools catch exceptions and return structured error dicts so the MCP
  server never crashes on a bad request.
"""

from __future__ import annotations

import logging
import traceback
from typing import Any

from mcp.server.fastmcp import FastMCP

from adaptive_memory.brain import Brain

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Server and Brain instances
# ---------------------------------------------------------------------------

mcp = FastMCP(
    "adaptive-memory",
    instructions=(
        "Adaptive memory: learned patterns that strengthen with use and "
        "concepts whose confidence follows reported outcomes"
    ),
)

_brain = Brain()


def _error_response(err: Exception) -> dict[str, Any]:
    """Create a structured error dict for MCP tool responses.

    Instead of letting exceptions propagate and crash the MCP server,
    every tool catches broadly and returns a dict with ``error`` and
    ``detail`` keys so the calling model can understand what went wrong.
    """
    return {
        "error": type(err).__name__,
        "detail": str(err),
        "traceback": traceback.format_exception_only(type(err), err)[-1].strip(),
    }


# ===================================================================
# Memory tools
# ===================================================================


@mcp.tool()
async def remember_pattern(pattern: str, importance: float | None = None) -> dict[str, Any]:
    """Store an observed behaviour pattern in adaptive memory.

    Patterns gain weight each time they are recalled and near-identical
    patterns are merged during consolidation.  The store is bounded; when
    full, the least valuable patterns (lowest importance x frequency) are
    evicted.

    Args:
        pattern: Short text signature of the behaviour, e.g.
            "python: ImportError after upgrading requests".
        importance: Initial weight, conventionally in [0, 1]. Omit to use the
            configured default (0.5 unless overridden).

    Returns:
        A dict with keys:
        - memory_id: The id of the new memory
        - memory: The stored memory, or null if it was evicted at once
        - consolidation: Consolidation summary when auto-consolidation is on
    """
    try:
        return await _brain.remember_pattern(pattern=pattern, importance=importance)
    except Exception as exc:
        logger.exception("remember_pattern failed")
        return _error_response(exc)


@mcp.tool()
async def recall_patterns(domain: str, limit: int | None = None) -> dict[str, Any]:
    """Recall the strongest patterns containing the given text.

    Note that recall reinforces: every returned pattern has its frequency
    increased and its last-access time refreshed.

    Args:
        domain: Substring to look for in stored patterns (case-sensitive).
        limit: Maximum number of patterns to return. Omit to use the
            configured retrieval limit (10 unless overridden).

    Returns:
        A dict with keys:
        - memories: Matching memories, strongest first
        - count: Number of memories returned
    """
    try:
        return await _brain.recall_patterns(domain=domain, limit=limit)
    except Exception as exc:
        logger.exception("recall_patterns failed")
        return _error_response(exc)


@mcp.tool()
async def memory_stats() -> dict[str, Any]:
    """Report memory store utilisation.

    Returns:
        A dict with keys:
        - total_memories: Number of stored patterns
        - active_memories: Patterns with importance above 0.5
        - utilization_rate: Mean importance (0 when empty)
    """
    try:
        return await _brain.memory_stats()
    except Exception as exc:
        logger.exception("memory_stats failed")
        return _error_response(exc)


@mcp.tool()
async def consolidate() -> dict[str, Any]:
    """Run a maintenance pass over memories and knowledge.

    Memories: prune stale low-importance patterns (only when utilisation is
    high), merge near-duplicates, then grow importance by frequency.
    Knowledge: prune weak concepts when they are related to trusted ones.

    Returns:
        A dict with keys:
        - memory: pruned / merged / grown counters and details
        - knowledge: nodes_pruned counter and details
        - stats: Memory statistics after the pass
    """
    try:
        return await _brain.consolidate()
    except Exception as exc:
        logger.exception("consolidate failed")
        return _error_response(exc)


# ===================================================================
# Knowledge tools
# ===================================================================


@mcp.tool()
async def add_knowledge(concept: str, relationships: dict[str, str] | None = None) -> dict[str, Any]:
    """Add a concept to the knowledge graph with full confidence.

    Args:
        concept: Label of the concept, e.g. "use connection pooling".
        relationships: Named attributes. The "domain" key is what
            query_knowledge filters on, e.g. {"domain": "postgres"}.

    Returns:
        A dict with keys:
        - node_id: The id of the new node
        - node: Full node details
    """
    try:
        return await _brain.add_knowledge(concept=concept, relationships=relationships)
    except Exception as exc:
        logger.exception("add_knowledge failed")
        return _error_response(exc)


@mcp.tool()
async def update_knowledge(
    node_id: str,
    concept: str = "",
    relationships: dict[str, str] | None = None,
    confidence: float | None = None,
) -> dict[str, Any]:
    """Partially update a knowledge node. Unknown ids are ignored.

    Args:
        node_id: The node to update.
        concept: New label. Leave empty to keep the current one.
        relationships: Replacement relationship map. Omit to keep.
        confidence: New confidence; clamped to [0, 1]. Omit to keep.

    Returns:
        A dict with keys:
        - node_id: The requested id
        - node: The node after the update, or null if it does not exist
    """
    try:
        return await _brain.update_knowledge(
            node_id=node_id,
            concept=concept or None,
            relationships=relationships,
            confidence=confidence,
        )
    except Exception as exc:
        logger.exception("update_knowledge failed")
        return _error_response(exc)


@mcp.tool()
async def query_knowledge(domain: str) -> dict[str, Any]:
    """List the concepts whose "domain" relationship equals the given domain.

    Returns:
        A dict with keys:
        - nodes: Matching nodes, most confident first
        - count: Number of nodes returned
    """
    try:
        return await _brain.query_knowledge(domain=domain)
    except Exception as exc:
        logger.exception("query_knowledge failed")
        return _error_response(exc)


@mcp.tool()
async def related_concepts(concept: str) -> dict[str, Any]:
    """Find up to 10 nodes whose relationships mention the given text.

    Returns:
        A dict with keys:
        - nodes: Matching nodes, most confident first
        - count: Number of nodes returned
    """
    try:
        return await _brain.related_concepts(concept=concept)
    except Exception as exc:
        logger.exception("related_concepts failed")
        return _error_response(exc)


@mcp.tool()
async def record_outcome(node_id: str, success: bool) -> dict[str, Any]:
    """Report whether applying a concept worked out.

    Success raises the node's confidence by 0.1, failure lowers it by 0.1;
    confidence always stays within [0, 1].

    Returns:
        A dict with keys:
        - node_id: The requested id
        - confidence: New confidence, or null if the node does not exist
    """
    try:
        return await _brain.record_outcome(node_id=node_id, success=success)
    except Exception as exc:
        logger.exception("record_outcome failed")
        return _error_response(exc)


@mcp.tool()
async def prune_knowledge(threshold: float | None = None) -> dict[str, Any]:
    """Remove every concept whose confidence is below the threshold.

    Args:
        threshold: Confidence cut-off. Omit to use the configured prune
            threshold (0.2 unless overridden).

    Returns:
        A dict with keys:
        - removed: Number of nodes deleted
        - threshold: The threshold used
    """
    try:
        return await _brain.prune_knowledge(threshold=threshold)
    except Exception as exc:
        logger.exception("prune_knowledge failed")
        return _error_response(exc)


# ===================================================================
# Combined tools
# ===================================================================


@mcp.tool()
async def context(domain: str) -> dict[str, Any]:
    """Gather knowledge and patterns relevant to a domain before a task.

    Returns the domain's concepts plus the strongest matching patterns
    (which are reinforced by being recalled).

    Returns:
        A dict with keys:
        - domain: The requested domain
        - knowledge: Concepts for the domain, most confident first
        - memories: Matching patterns, strongest first
    """
    try:
        return await _brain.context_for(domain=domain)
    except Exception as exc:
        logger.exception("context failed")
        return _error_response(exc)


@mcp.tool()
async def recommendations() -> dict[str, Any]:
    """Suggest maintenance actions based on memory utilisation.

    Returns:
        A dict with keys:
        - recommendations: List of human-readable suggestions
        - stats: Current memory statistics
    """
    try:
        return await _brain.recommendations()
    except Exception as exc:
        logger.exception("recommendations failed")
        return _error_response(exc)
