"""
Client tools and resources.

- create_client: create a client (employee) record
- search_clients: search client records by free text
- klacks://clients: first page of the client list as JSON
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pydantic import Field

from klacks_mcp.logging import get_logger
from klacks_mcp.routing import (
    ResourceDescriptor,
    ToolArguments,
    ToolDescriptor,
    parse_arguments,
)

if TYPE_CHECKING:
    from klacks_mcp.backend.client import KlacksApiClient
    from klacks_mcp.context import ToolContext

logger = get_logger(__name__)

DEFAULT_SEARCH_LIMIT = 10
MAX_SEARCH_LIMIT = 100
CLIENTS_RESOURCE_LIMIT = 50


# =============================================================================
# Arguments
# =============================================================================


class CreateClientArgs(ToolArguments):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str | None = None
    canton: str | None = None


class SearchClientsArgs(ToolArguments):
    search_term: str
    canton: str | None = None
    limit: int = Field(default=DEFAULT_SEARCH_LIMIT, ge=1, le=MAX_SEARCH_LIMIT)


# =============================================================================
# Catalog
# =============================================================================

CREATE_CLIENT_TOOL = ToolDescriptor(
    name="create_client",
    description="Create a new employee (client) in Klacks",
    input_schema={
        "type": "object",
        "properties": {
            "firstName": {"type": "string", "description": "First name of the employee"},
            "lastName": {"type": "string", "description": "Last name of the employee"},
            "email": {"type": "string", "format": "email", "description": "E-mail address"},
            "canton": {"type": "string", "description": "Canton (e.g. BE, ZH, SG)"},
        },
        "required": ["firstName", "lastName"],
    },
)

SEARCH_CLIENTS_TOOL = ToolDescriptor(
    name="search_clients",
    description="Search employees and customers in Klacks",
    input_schema={
        "type": "object",
        "properties": {
            "searchTerm": {"type": "string", "description": "Search term"},
            "canton": {"type": "string", "description": "Filter by canton"},
            "limit": {
                "type": "integer",
                "description": "Maximum number of results",
                "minimum": 1,
                "maximum": MAX_SEARCH_LIMIT,
            },
        },
        "required": ["searchTerm"],
    },
)

CLIENTS_RESOURCE = ResourceDescriptor(
    uri="klacks://clients",
    name="Client list",
    description="List of all clients",
)


# =============================================================================
# Handlers
# =============================================================================


async def handle_create_client(
    ctx: ToolContext,
    arguments: dict[str, Any],
    *,
    api: KlacksApiClient,
) -> str:
    """
    Handle the create_client tool call.

    Returns:
        Confirmation text with the new client id.
    """
    args = parse_arguments(CreateClientArgs, ctx.target, arguments)
    logger.info(
        "Creating client",
        extra={"first_name": args.first_name, "last_name": args.last_name},
    )

    created = await api.create_client(args.first_name, args.last_name, args.email)

    lines = [
        f"Employee {args.first_name} {args.last_name} created successfully.",
        f"ID: {created.id if created.id is not None else 'unknown'}",
    ]
    if args.email:
        lines.append(f"Email: {args.email}")
    if args.canton:
        lines.append(f"Canton: {args.canton}")
    return "\n".join(lines)


async def handle_search_clients(
    ctx: ToolContext,
    arguments: dict[str, Any],
    *,
    api: KlacksApiClient,
) -> str:
    """
    Handle the search_clients tool call.

    The canton filter is not supported by the backend list endpoint and is
    only echoed in the reply header.

    Returns:
        One line per match: "- First Last (Company) [ID: id]".
    """
    args = parse_arguments(SearchClientsArgs, ctx.target, arguments)
    logger.info("Searching clients", extra={"search_term": args.search_term})

    result = await api.search_clients(args.search_term, args.limit)

    lines = []
    for client in result.clients:
        line = f"- {client.first_name or ''} {client.name or ''}"
        if client.company:
            line += f" ({client.company})"
        lines.append(f"{line} [ID: {client.id}]")

    header = f"Found {len(result.clients)} employees matching '{args.search_term}'"
    if args.canton:
        header += f" in canton {args.canton}"
    return f"{header}:\n\n" + "\n".join(lines)


async def handle_read_clients(
    _ctx: ToolContext,
    _uri: str,
    *,
    api: KlacksApiClient,
) -> str:
    """Handle a read of klacks://clients."""
    clients = await api.list_clients(CLIENTS_RESOURCE_LIMIT)
    return json.dumps(
        {"Clients": clients, "LastUpdated": datetime.now(UTC).isoformat()},
        indent=2,
        ensure_ascii=False,
    )
