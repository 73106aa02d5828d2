"""Central configuration for the adaptive memory engine.

All tunables live here with sensible defaults.  Values can be overridden
through environment variables prefixed with ``ADAPTIVE_MEMORY_`` (nested keys
use double underscores, e.g. ``ADAPTIVE_MEMORY_MEMORY__CAPACITY=500``).

Usage::

    from adaptive_memory.config import get_config

    cfg = get_config()
    print(cfg.memory.capacity)
    print(cfg.consolidation.merge_similarity)
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field, fields
from typing import TypeVar, get_type_hints

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Nested configuration sections
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MemoryConfig:
    """Parameters for the pattern (Memory) store."""

    capacity: int = 1000
    retrieval_limit: int = 10
    default_importance: float = 0.5
    active_importance: float = 0.5
    """Memories with importance strictly above this count as active."""


@dataclass(frozen=True, slots=True)
class KnowledgeConfig:
    """Parameters for the concept (KnowledgeNode) graph."""

    confidence_step: float = 0.1
    prune_threshold: float = 0.2
    related_limit: int = 10


@dataclass(frozen=True, slots=True)
class ConsolidationConfig:
    """Parameters for pruning, merging and re-scoring."""

    utilization_threshold: float = 0.8
    """Staleness pruning only runs when mean importance exceeds this."""
    stale_importance: float = 0.3
    stale_after_days: int = 30
    min_frequency: int = 3
    merge_similarity: float = 0.8
    growth_divisor: float = 100.0
    """Importance grows by ``frequency / growth_divisor`` per pass.

    There is no ceiling: frequently reinforced memories compound on every
    consolidation."""
    knowledge_low_confidence: float = 0.5
    knowledge_high_confidence: float = 0.8
    knowledge_prune_threshold: float = 0.5
    consolidate_on_insert: bool = False
    """Run a memory consolidation pass after every ``remember_pattern`` call."""


# ---------------------------------------------------------------------------
# Top-level configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AdaptiveMemoryConfig:
    """Root configuration object for the adaptive memory engine."""

    log_level: str = "INFO"
    memory: MemoryConfig = field(default_factory=MemoryConfig)
    knowledge: KnowledgeConfig = field(default_factory=KnowledgeConfig)
    consolidation: ConsolidationConfig = field(default_factory=ConsolidationConfig)

    def __post_init__(self) -> None:
        if self.memory.capacity < 1:
            raise ValueError(f"memory.capacity must be >= 1, got {self.memory.capacity}")
        object.__setattr__(self, "log_level", self.log_level.upper())


# ---------------------------------------------------------------------------
# Environment-variable loader
# ---------------------------------------------------------------------------

_ENV_PREFIX = "ADAPTIVE_MEMORY_"
_NESTED_SEP = "__"


def _resolve_type_hints(dc_type: type) -> dict[str, type]:
    """Resolve stringified annotations back to real types.

    ``from __future__ import annotations`` turns all annotations into
    strings.  :func:`typing.get_type_hints` evaluates them in the correct
    module namespace so we get the actual :class:`type` objects.
    """
    module = sys.modules.get(dc_type.__module__, None)
    globalns = getattr(module, "__dict__", {}) if module else {}
    return get_type_hints(dc_type, globalns=globalns)


def _coerce(value: str, target_type: type[T]) -> T:
    """Cast an env-var string to the target field type."""
    if target_type is bool:
        return target_type(value.lower() in ("1", "true", "yes"))  # type: ignore[return-value]
    return target_type(value)  # type: ignore[return-value]


def _load_dataclass(dc_type: type[T], prefix: str) -> T:
    """Recursively build a dataclass from env-var overrides + defaults."""
    hints = _resolve_type_hints(dc_type)
    kwargs: dict[str, object] = {}

    for f in fields(dc_type):  # type: ignore[arg-type]
        field_type = hints[f.name]
        nested_prefix = f"{prefix}{f.name}{_NESTED_SEP}".upper()

        if hasattr(field_type, "__dataclass_fields__"):
            kwargs[f.name] = _load_dataclass(field_type, nested_prefix)
        else:
            env_key = f"{prefix}{f.name}".upper()
            raw = os.environ.get(env_key)
            if raw is not None:
                try:
                    kwargs[f.name] = _coerce(raw, field_type)
                except ValueError as exc:
                    raise ValueError(f"{env_key}={raw!r} is not a valid {field_type.__name__}") from exc

    return dc_type(**kwargs)  # type: ignore[return-value]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

_cached_config: AdaptiveMemoryConfig | None = None


def get_config(*, reload: bool = False) -> AdaptiveMemoryConfig:
    """Return the current :class:`AdaptiveMemoryConfig`.

    On the first call the config is built by merging defaults with any
    ``ADAPTIVE_MEMORY_*`` environment variables.  The result is cached for
    the lifetime of the process unless *reload* is ``True``.

    Parameters
    ----------
    reload:
        Force re-reading environment variables and rebuilding the config.
    """
    global _cached_config  # noqa: PLW0603
    if _cached_config is None or reload:
        _cached_config = _load_dataclass(AdaptiveMemoryConfig, _ENV_PREFIX)
    return _cached_config
