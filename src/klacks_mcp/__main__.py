"""
Command-line entry point: ``klacks-mcp`` / ``python -m klacks_mcp``.

Loads configuration, configures stderr logging, wires the backend client,
router and dispatcher, and runs the stdio transport loop until end-of-input
or SIGINT/SIGTERM.
"""

from __future__ import annotations

import asyncio
import contextlib
import signal
import sys

import yaml
from pydantic import ValidationError

from klacks_mcp.backend.client import KlacksApiClient
from klacks_mcp.config import AppConfig, load_config
from klacks_mcp.dispatcher import Dispatcher
from klacks_mcp.docs import StaticDocumentationProvider
from klacks_mcp.logging import get_logger, setup_logging
from klacks_mcp.server import MCPServer
from klacks_mcp.tools import build_router

logger = get_logger(__name__)


async def serve(config: AppConfig) -> None:
    """Run the MCP server with the given configuration."""
    docs = StaticDocumentationProvider()

    async with KlacksApiClient.from_config(config.backend) as api:
        router = build_router(api, docs)
        dispatcher = Dispatcher.from_config(config.server, router)
        server = MCPServer(dispatcher)

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            # Signal handlers are unavailable on some platforms (e.g. Windows)
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, server.stop)

        await server.run()


def main(argv: list[str] | None = None) -> int:
    """
    Start the server.

    Args:
        argv: Command-line arguments. If None, uses sys.argv.

    Returns:
        Process exit code.
    """
    try:
        config = load_config(cli_args=argv)
    except (FileNotFoundError, ValidationError, yaml.YAMLError) as e:
        print(f"klacks-mcp: invalid configuration: {e}", file=sys.stderr)
        return 2

    setup_logging(config.logging)

    if not config.backend.username:
        logger.warning("No backend username configured; backend calls will fail")

    try:
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
