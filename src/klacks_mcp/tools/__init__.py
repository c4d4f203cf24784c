"""
MCP tools and resources of the Klacks MCP Server.

Modules:
- clients: create_client, search_clients, klacks://clients
- contracts: create_contract, klacks://contracts
- system: get_system_info, klacks://system/status
- calendar: validate_calendar_rule
- documentation: docs/<name>
"""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING

from klacks_mcp.routing import MARKDOWN_MIME_TYPE, Router
from klacks_mcp.tools.calendar import (
    VALIDATE_CALENDAR_RULE_TOOL,
    handle_validate_calendar_rule,
)
from klacks_mcp.tools.clients import (
    CLIENTS_RESOURCE,
    CREATE_CLIENT_TOOL,
    SEARCH_CLIENTS_TOOL,
    handle_create_client,
    handle_read_clients,
    handle_search_clients,
)
from klacks_mcp.tools.contracts import (
    CONTRACTS_RESOURCE,
    CREATE_CONTRACT_TOOL,
    handle_create_contract,
    handle_read_contracts,
)
from klacks_mcp.tools.documentation import DOC_URI_PREFIXES, doc_resource, handle_read_doc
from klacks_mcp.tools.system import (
    GET_SYSTEM_INFO_TOOL,
    SYSTEM_STATUS_RESOURCE,
    handle_get_system_info,
    handle_read_system_status,
)

if TYPE_CHECKING:
    from klacks_mcp.backend.client import KlacksApiClient
    from klacks_mcp.docs import DocumentationProvider

TOOL_NAMES = (
    CREATE_CLIENT_TOOL.name,
    SEARCH_CLIENTS_TOOL.name,
    CREATE_CONTRACT_TOOL.name,
    GET_SYSTEM_INFO_TOOL.name,
    VALIDATE_CALENDAR_RULE_TOOL.name,
)


def build_router(api: KlacksApiClient, docs: DocumentationProvider) -> Router:
    """
    Create a Router with every Klacks tool and resource registered.

    Args:
        api: Backend client shared by all backend-facing handlers.
        docs: Documentation provider for docs/<name> resources.

    Returns:
        A fully populated Router.
    """
    router = Router()

    router.register_tool(CREATE_CLIENT_TOOL, partial(handle_create_client, api=api))
    router.register_tool(SEARCH_CLIENTS_TOOL, partial(handle_search_clients, api=api))
    router.register_tool(CREATE_CONTRACT_TOOL, partial(handle_create_contract, api=api))
    router.register_tool(
        GET_SYSTEM_INFO_TOOL,
        partial(
            handle_get_system_info,
            api=api,
            tool_names=TOOL_NAMES,
            doc_names=docs.names(),
        ),
    )
    router.register_tool(VALIDATE_CALENDAR_RULE_TOOL, handle_validate_calendar_rule)

    router.register_resource(CLIENTS_RESOURCE, partial(handle_read_clients, api=api))
    router.register_resource(
        SYSTEM_STATUS_RESOURCE, partial(handle_read_system_status, api=api)
    )
    router.register_resource(CONTRACTS_RESOURCE, partial(handle_read_contracts, api=api))

    read_doc = partial(handle_read_doc, docs=docs)
    for name in docs.names():
        router.register_resource(doc_resource(name), read_doc)
    for prefix in DOC_URI_PREFIXES:
        router.register_resource_prefix(prefix, read_doc, mime_type=MARKDOWN_MIME_TYPE)

    return router


__all__ = [
    "TOOL_NAMES",
    "build_router",
]
