"""
Stdio transport loop for the Klacks MCP Server.

MCPServer reads one JSON-RPC request per line from stdin, hands it to the
Dispatcher and writes exactly one response line to stdout, flushing after
every line. Requests are processed strictly one at a time: the next line is
not read before the previous response has been written.

The loop ends on end-of-input or when stop() is called. A pending read is
abandoned on stop; a request that is already being processed is finished.
"""

from __future__ import annotations

import asyncio
import contextlib
import sys
from typing import TYPE_CHECKING, TextIO

from klacks_mcp.logging import get_logger
from klacks_mcp.protocol import (
    JSONRPCError,
    create_internal_error,
    format_error_response,
    parse_request,
)

if TYPE_CHECKING:
    from klacks_mcp.dispatcher import Dispatcher

logger = get_logger(__name__)

# Maximum accepted request line length
STREAM_LIMIT = 16 * 1024 * 1024


async def process_request(request_json: str, dispatcher: Dispatcher) -> str:
    """
    Process a single request line and return the response line.

    A line that cannot be parsed into a request yields an internal error.
    Its id is echoed when it could be read from the line, otherwise null.

    Args:
        request_json: Raw JSON string containing the request.
        dispatcher: Dispatcher that handles parsed requests.

    Returns:
        JSON string containing the response.
    """
    try:
        request = parse_request(request_json)
    except JSONRPCError as e:
        logger.warning(
            "Malformed request line", extra={"error": e.data, "request_id": e.request_id}
        )
        return format_error_response(e.request_id, e).to_json()

    response = await dispatcher.handle(request)
    return response.to_json()


class MCPServer:
    """
    MCP Server that communicates via line-delimited JSON-RPC 2.0 over stdio.

    Example:
        >>> server = MCPServer(dispatcher)
        >>> await server.run()

    Attributes:
        dispatcher: Dispatcher handling parsed requests.
        running: Whether the server is currently running.
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
        reader: asyncio.StreamReader | None = None,
    ) -> None:
        """
        Initialize the MCP Server.

        Args:
            dispatcher: Dispatcher handling parsed requests.
            stdin: Optional stdin stream. Uses sys.stdin if not provided.
            stdout: Optional stdout stream. Uses sys.stdout if not provided.
            reader: Optional pre-connected StreamReader; when given, stdin
                is not used.
        """
        self.dispatcher = dispatcher
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdout = stdout if stdout is not None else sys.stdout
        self._reader = reader
        self._stop_event = asyncio.Event()
        self.running = False

    async def handle_request(self, request_json: str) -> str:
        """
        Handle a single request line.

        Args:
            request_json: Raw JSON string containing the request.

        Returns:
            JSON string containing the response.
        """
        return await process_request(request_json, self.dispatcher)

    async def run(self) -> None:
        """
        Run the server until end-of-input or stop().

        Each non-empty line is treated as one JSON-RPC request and answered
        with exactly one response line.
        """
        self.running = True
        self._stop_event.clear()
        logger.info(
            "MCP Server starting",
            extra={"methods": self.dispatcher.methods},
        )

        try:
            reader = self._reader or await self._connect_stdin()

            while self.running:
                try:
                    line = await self._next_line(reader)
                    if line is None:
                        break

                    try:
                        request_json = line.decode("utf-8").strip()
                    except UnicodeDecodeError as e:
                        logger.warning(
                            "Invalid UTF-8 encoding in request",
                            extra={"error": str(e)},
                        )
                        error = create_internal_error(
                            f"Invalid request encoding: UTF-8 required ({e})"
                        )
                        self._write_response(format_error_response(None, error).to_json())
                        continue

                    if not request_json:
                        continue

                    response = await self.handle_request(request_json)
                    self._write_response(response)

                except Exception as e:
                    logger.exception(
                        "Error in server loop",
                        extra={"error": str(e)},
                    )
                    error = create_internal_error(str(e))
                    self._write_response(format_error_response(None, error).to_json())

        finally:
            self.running = False
            logger.info("MCP Server stopped")

    def stop(self) -> None:
        """Stop the server gracefully after the current request."""
        self.running = False
        self._stop_event.set()

    async def _connect_stdin(self) -> asyncio.StreamReader:
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader(limit=STREAM_LIMIT)
        protocol = asyncio.StreamReaderProtocol(reader)
        await loop.connect_read_pipe(lambda: protocol, self._stdin)
        return reader

    async def _next_line(self, reader: asyncio.StreamReader) -> bytes | None:
        """Read the next line; None on end-of-input or stop()."""
        read = asyncio.ensure_future(reader.readline())
        stopped = asyncio.ensure_future(self._stop_event.wait())
        try:
            await asyncio.wait({read, stopped}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stopped.cancel()

        if not read.done():
            read.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await read
            return None

        line = read.result()
        return line or None

    def _write_response(self, response_json: str) -> None:
        """Write a response line to stdout."""
        self._stdout.write(response_json + "\n")
        self._stdout.flush()
