"""
System tools and resources.

- get_system_info: system description including the backend version
- klacks://system/status: health report; degrades instead of failing
  when the backend cannot be reached
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from klacks_mcp.errors import ToolError
from klacks_mcp.logging import get_logger
from klacks_mcp.routing import ResourceDescriptor, ToolDescriptor

if TYPE_CHECKING:
    from klacks_mcp.backend.client import KlacksApiClient
    from klacks_mcp.context import ToolContext

logger = get_logger(__name__)

SYSTEM_NAME = "Klacks Planning System"

CAPABILITIES = (
    "client_management",
    "contract_management",
    "search",
    "mcp_protocol",
    "documentation",
)
SUPPORTED_LANGUAGES = ("de", "en", "fr", "it")
FEATURES = (
    "LLM",
    "MCP",
    "WebUI",
    "ClientManagement",
    "ContractManagement",
    "Documentation",
)

GET_SYSTEM_INFO_TOOL = ToolDescriptor(
    name="get_system_info",
    description="Return information about the Klacks system",
)

SYSTEM_STATUS_RESOURCE = ResourceDescriptor(
    uri="klacks://system/status",
    name="System status",
    description="Current system status",
)


def _dump(payload: dict[str, Any]) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


async def handle_get_system_info(
    _ctx: ToolContext,
    _arguments: dict[str, Any],
    *,
    api: KlacksApiClient,
    tool_names: Sequence[str],
    doc_names: Sequence[str],
) -> str:
    """
    Handle the get_system_info tool call.

    Args:
        _ctx: The ToolContext for this request.
        _arguments: Tool arguments (none are used).
        api: Backend client used for the version request.
        tool_names: Names of the registered tools.
        doc_names: Names of the available documentation pages.

    Returns:
        Indented JSON text describing the system.
    """
    version = await api.get_version()
    return _dump(
        {
            "System": SYSTEM_NAME,
            "Version": version.version_string,
            "BuildTimestamp": version.build_timestamp,
            "Status": "running",
            "Capabilities": list(CAPABILITIES),
            "SupportedLanguages": list(SUPPORTED_LANGUAGES),
            "AvailableTools": list(tool_names),
            "AvailableDocs": list(doc_names),
        }
    )


async def handle_read_system_status(
    _ctx: ToolContext,
    _uri: str,
    *,
    api: KlacksApiClient,
) -> str:
    """
    Handle a read of klacks://system/status.

    A failing version request yields a "degraded" report carrying the error
    message rather than a failure text.
    """
    timestamp = datetime.now(UTC).isoformat()
    try:
        version = await api.get_version()
    except ToolError as e:
        logger.warning("System status degraded", extra={"error": e.message})
        return _dump(
            {
                "Status": "degraded",
                "Timestamp": timestamp,
                "Health": {"Database": "unknown", "API": "unreachable", "MCP": "healthy"},
                "Error": e.message,
            }
        )

    return _dump(
        {
            "Status": "running",
            "Timestamp": timestamp,
            "Version": version.version_string,
            "Features": list(FEATURES),
            "Health": {"Database": "healthy", "API": "healthy", "MCP": "healthy"},
        }
    )
