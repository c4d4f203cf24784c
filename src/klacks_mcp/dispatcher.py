"""
Protocol dispatcher for the Klacks MCP Server.

The Dispatcher turns a parsed JSONRPCRequest into a JSONRPCResponse. It does
no I/O itself; tool and resource handlers reached through the Router may.

Routing table:
- initialize: server and protocol capability metadata
- tools/list: tool catalog
- tools/call: invoke a tool (params.name and params.arguments required)
- resources/list: resource catalog
- resources/read: read a resource (params.uri required)

Unknown methods yield -32601 with the method name as data. Any exception
escaping a handler yields -32603 with the exception message as data, so a
single failing request never stops the server.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from klacks_mcp import __version__
from klacks_mcp.context import ToolContext
from klacks_mcp.logging import get_logger
from klacks_mcp.protocol import (
    MCP_PROTOCOL_VERSION,
    JSONRPCError,
    JSONRPCRequest,
    JSONRPCResponse,
    create_internal_error,
    create_invalid_params_error,
    create_method_not_found_error,
    format_error_response,
    format_success_response,
)

if TYPE_CHECKING:
    from klacks_mcp.config import ServerConfig
    from klacks_mcp.routing import Router

logger = get_logger(__name__)

MethodHandler = Callable[[JSONRPCRequest], Awaitable[Any]]


class Dispatcher:
    """
    Routes JSON-RPC requests by method name.

    Example:
        >>> dispatcher = Dispatcher(router)
        >>> response = await dispatcher.handle(parse_request(line))
        >>> print(response.to_json())
    """

    def __init__(
        self,
        router: Router,
        *,
        name: str = "klacks-mcp-server",
        description: str = "Klacks Planning System MCP Server",
        version: str = __version__,
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            router: Router fulfilling tool calls and resource reads.
            name: Server name reported by initialize.
            description: Server description reported by initialize.
            version: Server version reported by initialize.
        """
        self.router = router
        self._server_info = {
            "name": name,
            "version": version,
            "description": description,
        }
        self._routes: dict[str, MethodHandler] = {
            "initialize": self._handle_initialize,
            "tools/list": self._handle_tools_list,
            "tools/call": self._handle_tools_call,
            "resources/list": self._handle_resources_list,
            "resources/read": self._handle_resources_read,
        }

    @classmethod
    def from_config(cls, config: ServerConfig, router: Router) -> Dispatcher:
        """Create a Dispatcher using the server identity from configuration."""
        return cls(router, name=config.name, description=config.description)

    @property
    def methods(self) -> list[str]:
        """Return the supported method names."""
        return list(self._routes)

    async def handle(self, request: JSONRPCRequest) -> JSONRPCResponse:
        """
        Handle one request and build its response.

        Args:
            request: The parsed request.

        Returns:
            A response echoing the request id, carrying a result or an error.
        """
        logger.debug(
            "Processing request",
            extra={"method": request.method, "request_id": request.id},
        )

        handler = self._routes.get(request.method)
        if handler is None:
            logger.warning("Method not found", extra={"method": request.method})
            return format_error_response(
                request.id, create_method_not_found_error(request.method)
            )

        try:
            result = await handler(request)
        except JSONRPCError as e:
            return format_error_response(request.id, e)
        except Exception as e:
            logger.exception(
                "Error handling method",
                extra={"method": request.method, "request_id": request.id},
            )
            return format_error_response(request.id, create_internal_error(str(e)))

        return format_success_response(request.id, result)

    # =========================================================================
    # Method handlers
    # =========================================================================

    async def _handle_initialize(self, _request: JSONRPCRequest) -> dict[str, Any]:
        return {
            "protocolVersion": MCP_PROTOCOL_VERSION,
            "capabilities": {"tools": {}, "resources": {}, "logging": {}},
            "serverInfo": dict(self._server_info),
        }

    async def _handle_tools_list(self, _request: JSONRPCRequest) -> dict[str, Any]:
        return {"tools": [tool.to_dict() for tool in self.router.list_tools()]}

    async def _handle_tools_call(self, request: JSONRPCRequest) -> dict[str, Any]:
        name = request.name
        if name is None:
            raise create_invalid_params_error("Missing tool name")
        arguments = request.arguments
        if arguments is None:
            raise create_invalid_params_error("Missing tool arguments")

        ctx = ToolContext.from_request(request, target=name)
        text = await self.router.call_tool(ctx, name, arguments)
        return {"content": [{"type": "text", "text": text}]}

    async def _handle_resources_list(self, _request: JSONRPCRequest) -> dict[str, Any]:
        return {
            "resources": [resource.to_dict() for resource in self.router.list_resources()]
        }

    async def _handle_resources_read(self, request: JSONRPCRequest) -> dict[str, Any]:
        uri = request.uri
        if uri is None:
            raise create_invalid_params_error("Missing resource URI")

        ctx = ToolContext.from_request(request, target=uri)
        content = await self.router.read_resource(ctx, uri)
        return {"contents": [content.to_dict()]}
