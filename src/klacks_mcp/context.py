"""
Per-call context for tool and resource handlers.

A ToolContext is built by the dispatcher for every tools/call and
resources/read request and handed to the handler together with its
arguments. It carries what handlers need for logging: the target name,
the correlation id and the receive time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from klacks_mcp.protocol import JSONRPCRequest


@dataclass
class ToolContext:
    """
    Encapsulates the context of a single tool call or resource read.

    Attributes:
        target: Tool name (e.g., "search_clients") or resource URI.
        method: The protocol method that triggered the call.
        request_id: Correlation identifier of the request (opaque).
        timestamp: When the request was received (UTC).
    """

    target: str
    method: str = "tools/call"
    request_id: Any = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def elapsed_ms(self) -> float:
        """Milliseconds since the request was received."""
        return (datetime.now(UTC) - self.timestamp).total_seconds() * 1000

    @classmethod
    def from_request(cls, request: JSONRPCRequest, target: str) -> ToolContext:
        """
        Create a ToolContext from a parsed JSON-RPC request.

        Args:
            request: The parsed JSONRPCRequest.
            target: Tool name or resource URI being addressed.

        Returns:
            A ToolContext instance for the request.

        Example:
            >>> from klacks_mcp.protocol import parse_request
            >>> req = parse_request('{"id":1,"method":"tools/call","params":{"name":"get_system_info","arguments":{}}}')
            >>> ctx = ToolContext.from_request(req, target="get_system_info")
        """
        return cls(target=target, method=request.method, request_id=request.id)
