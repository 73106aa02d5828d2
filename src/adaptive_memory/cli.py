"""Command-line helpers for ``python -m adaptive_memory``.

Commands:

- ``config`` -- print the effective configuration (defaults merged with
  ``ADAPTIVE_MEMORY_*`` environment variables) as JSON.
- ``replay <file>`` -- feed one pattern per line into a fresh in-memory
  brain, optionally consolidate, and print the resulting statistics.  Handy
  for checking how capacity, merge and growth settings behave on a real
  pattern log.

Anything else falls through to the MCP server.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import sys
from pathlib import Path
from typing import Any

from adaptive_memory.brain import Brain
from adaptive_memory.config import get_config

COMMANDS = ("config", "replay")


def run_config() -> None:
    """Run config command."""
    print(json.dumps(dataclasses.asdict(get_config()), indent=2))


async def _replay(path: Path, importance: float, consolidate: bool) -> dict[str, Any]:
    brain = Brain()
    inserted = 0
    with path.open(encoding="utf-8") as fh:
        for line in fh:
            pattern = line.strip()
            if not pattern:
                continue
            await brain.remember_pattern(pattern, importance=importance)
            inserted += 1

    result: dict[str, Any] = {"inserted": inserted}
    if consolidate:
        result["consolidation"] = (await brain.consolidate())["memory"]
    result["stats"] = await brain.memory_stats()
    return result


def run_replay(args: list[str]) -> None:
    """Run replay command."""
    parser = argparse.ArgumentParser(
        prog="python -m adaptive_memory replay",
        description="Replay a pattern log (one pattern per line) through a fresh store.",
    )
    parser.add_argument("path", type=Path, help="Text file with one pattern per line")
    parser.add_argument("--importance", type=float, default=None, help="Initial importance for every pattern")
    parser.add_argument("--consolidate", action="store_true", help="Run one consolidation pass at the end")
    opts = parser.parse_args(args)

    if not opts.path.is_file():
        print(f"replay: no such file: {opts.path}", file=sys.stderr)
        sys.exit(1)

    importance = opts.importance
    if importance is None:
        importance = get_config().memory.default_importance

    result = asyncio.run(_replay(opts.path, importance, opts.consolidate))
    print(json.dumps(result, indent=2))


def dispatch(args: list[str]) -> None:
    """Main CLI dispatcher.

    Parameters
    ----------
    args:
        Command-line arguments after ``python -m adaptive_memory``.
        e.g. ``["config"]`` or ``["replay", "patterns.txt", "--consolidate"]``
    """
    if not args:
        return  # Fall through to MCP server.

    command = args[0]

    if command == "config":
        run_config()
        sys.exit(0)

    elif command == "replay":
        run_replay(args[1:])
        sys.exit(0)

    # Unknown command -- don't exit, fall through to MCP server.
