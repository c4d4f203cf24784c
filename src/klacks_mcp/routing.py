"""
Tool and resource routing for the Klacks MCP Server.

This module provides:
- ToolDescriptor / ResourceDescriptor: immutable catalog metadata
- Router: maps tool names and resource URIs to handler coroutines
- parse_arguments: validated extraction of a typed argument model

Operation-level failures (ToolError and its subclasses) never leave the
router as exceptions: they are turned into a human-readable failure text that
the dispatcher returns as a normal result. Any other exception propagates to
the dispatcher, which reports it as an internal error.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from klacks_mcp.errors import InvalidArgumentError, ToolError
from klacks_mcp.logging import get_logger

if TYPE_CHECKING:
    from klacks_mcp.context import ToolContext

logger = get_logger(__name__)

ArgsT = TypeVar("ArgsT", bound=BaseModel)

ToolHandler = Callable[["ToolContext", dict[str, Any]], Awaitable[str]]
ResourceHandler = Callable[["ToolContext", str], Awaitable[str]]

JSON_MIME_TYPE = "application/json"
MARKDOWN_MIME_TYPE = "text/markdown"
TEXT_MIME_TYPE = "text/plain"


class ToolArguments(BaseModel):
    """Base for typed tool arguments; keys are camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )


@dataclass(frozen=True)
class ToolDescriptor:
    """Catalog entry for a tool."""

    name: str
    description: str
    input_schema: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


@dataclass(frozen=True)
class ResourceDescriptor:
    """Catalog entry for a resource."""

    uri: str
    name: str
    description: str
    mime_type: str = JSON_MIME_TYPE

    def to_dict(self) -> dict[str, Any]:
        return {
            "uri": self.uri,
            "name": self.name,
            "description": self.description,
            "mimeType": self.mime_type,
        }


@dataclass(frozen=True)
class ResourceContent:
    """Text content of a resource read."""

    uri: str
    mime_type: str
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"uri": self.uri, "mimeType": self.mime_type, "text": self.text}


def parse_arguments(model: type[ArgsT], tool: str, arguments: dict[str, Any]) -> ArgsT:
    """
    Validate raw tool arguments into a typed argument model.

    Args:
        model: Pydantic model describing the tool's arguments.
        tool: Tool name, used in the failure message.
        arguments: The opaque arguments object of the request.

    Returns:
        A validated model instance.

    Raises:
        InvalidArgumentError: If a required argument is missing or malformed.

    Example:
        >>> args = parse_arguments(SearchClientsArgs, "search_clients", {"searchTerm": "Muster"})
    """
    try:
        return model.model_validate(arguments)
    except ValidationError as e:
        problems = []
        for err in e.errors(include_url=False):
            location = ".".join(str(part) for part in err["loc"]) or "arguments"
            problems.append(f"{location}: {err['msg']}")
        raise InvalidArgumentError(
            f"Invalid arguments for {tool}: {'; '.join(problems)}",
            details={"tool": tool, "problems": problems},
        ) from e


def format_failure(error: ToolError) -> str:
    """Render an operation failure as result text."""
    return f"Error: {error.message}"


class Router:
    """
    Maps tool names and resource URIs to handlers.

    Resources are matched by exact URI first, then by the longest registered
    prefix (used for the documentation pages).

    Example:
        >>> router = Router()
        >>> router.register_tool(ToolDescriptor("ping", "Reply with pong"), ping_handler)
        >>> text = await router.call_tool(ctx, "ping", {})
    """

    def __init__(self) -> None:
        """Initialize an empty router."""
        self._tools: dict[str, tuple[ToolDescriptor, ToolHandler]] = {}
        self._resources: dict[str, tuple[ResourceDescriptor, ResourceHandler]] = {}
        self._prefixes: dict[str, tuple[str, ResourceHandler]] = {}

    # =========================================================================
    # Registration
    # =========================================================================

    def register_tool(self, descriptor: ToolDescriptor, handler: ToolHandler) -> None:
        """
        Register a tool handler.

        Raises:
            ValueError: If a tool with the same name is already registered.
        """
        if descriptor.name in self._tools:
            raise ValueError(f"Tool '{descriptor.name}' is already registered")
        self._tools[descriptor.name] = (descriptor, handler)

    def register_resource(
        self, descriptor: ResourceDescriptor, handler: ResourceHandler
    ) -> None:
        """
        Register a handler for an exact resource URI.

        Raises:
            ValueError: If the URI is already registered.
        """
        if descriptor.uri in self._resources:
            raise ValueError(f"Resource '{descriptor.uri}' is already registered")
        self._resources[descriptor.uri] = (descriptor, handler)

    def register_resource_prefix(
        self,
        prefix: str,
        handler: ResourceHandler,
        mime_type: str = TEXT_MIME_TYPE,
    ) -> None:
        """
        Register a handler for every URI starting with prefix.

        Prefix handlers are not listed in the resource catalog.

        Raises:
            ValueError: If the prefix is already registered.
        """
        if prefix in self._prefixes:
            raise ValueError(f"Resource prefix '{prefix}' is already registered")
        self._prefixes[prefix] = (mime_type, handler)

    # =========================================================================
    # Catalog
    # =========================================================================

    def list_tools(self) -> list[ToolDescriptor]:
        """Return tool descriptors in registration order."""
        return [descriptor for descriptor, _ in self._tools.values()]

    def list_resources(self) -> list[ResourceDescriptor]:
        """Return resource descriptors in registration order."""
        return [descriptor for descriptor, _ in self._resources.values()]

    # =========================================================================
    # Dispatch
    # =========================================================================

    async def call_tool(
        self,
        ctx: ToolContext,
        name: str,
        arguments: dict[str, Any],
    ) -> str:
        """
        Invoke a tool and return its text result.

        Unknown tools and operation failures yield a descriptive text instead
        of an exception.

        Args:
            ctx: Context of the request.
            name: Tool name.
            arguments: Opaque arguments object.

        Returns:
            The tool's text result or a failure description.
        """
        entry = self._tools.get(name)
        if entry is None:
            logger.warning("Unknown tool requested", extra={"tool": name})
            return f"Unknown tool: {name}"

        _, handler = entry
        logger.info("Executing tool", extra={"tool": name, "request_id": ctx.request_id})
        try:
            result = await handler(ctx, arguments)
        except ToolError as e:
            logger.warning(
                "Tool failed",
                extra={
                    "tool": name,
                    "request_id": ctx.request_id,
                    "error_code": e.error_code,
                    "error": e.message,
                    "details": e.details or None,
                },
            )
            return format_failure(e)

        logger.info(
            "Tool completed",
            extra={
                "tool": name,
                "request_id": ctx.request_id,
                "duration_ms": round(ctx.elapsed_ms, 1),
            },
        )
        return result

    async def read_resource(self, ctx: ToolContext, uri: str) -> ResourceContent:
        """
        Read a resource and return its content.

        Args:
            ctx: Context of the request.
            uri: Resource locator.

        Returns:
            ResourceContent with the media type of the matched resource.
        """
        logger.info("Reading resource", extra={"uri": uri, "request_id": ctx.request_id})

        mime_type, handler = self._resolve_resource(uri)
        if handler is None:
            logger.warning("Unknown resource requested", extra={"uri": uri})
            return ResourceContent(uri=uri, mime_type=TEXT_MIME_TYPE, text=f"Unknown resource: {uri}")

        try:
            text = await handler(ctx, uri)
        except ToolError as e:
            logger.warning(
                "Resource read failed",
                extra={
                    "uri": uri,
                    "request_id": ctx.request_id,
                    "error_code": e.error_code,
                    "error": e.message,
                    "details": e.details or None,
                },
            )
            return ResourceContent(uri=uri, mime_type=TEXT_MIME_TYPE, text=format_failure(e))

        return ResourceContent(uri=uri, mime_type=mime_type, text=text)

    def _resolve_resource(self, uri: str) -> tuple[str, ResourceHandler | None]:
        entry = self._resources.get(uri)
        if entry is not None:
            descriptor, handler = entry
            return descriptor.mime_type, handler

        matches = [prefix for prefix in self._prefixes if uri.startswith(prefix)]
        if not matches:
            return TEXT_MIME_TYPE, None
        return self._prefixes[max(matches, key=len)]
