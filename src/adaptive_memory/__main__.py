"""Entry point for ``python -m adaptive_memory``.

Dispatches to CLI commands (config, replay) or starts the MCP server over
stdio transport if no CLI command is given.
"""

from __future__ import annotations

import logging
import sys


def main() -> None:
    """Dispatch CLI commands or run the MCP server."""
    from adaptive_memory.config import get_config

    # stdout carries the MCP stdio stream; logs go to stderr.
    logging.basicConfig(
        level=get_config().log_level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    args = sys.argv[1:]

    from adaptive_memory.cli import COMMANDS

    if args and args[0] in COMMANDS:
        from adaptive_memory.cli import dispatch
        dispatch(args)
        return

    # Each server process holds its own in-memory store.
    from adaptive_memory.server import mcp
    mcp.run()


if __name__ == "__main__":
    main()
