"""
Contract tools and resources.

- create_contract: create a contract record
- klacks://contracts: contract list as JSON
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pydantic import Field

from klacks_mcp.errors import InvalidArgumentError
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

# Monthly full-time hours recognised inside a contract type name
KNOWN_FULL_TIME_HOURS = (160, 180)


class CreateContractArgs(ToolArguments):
    client_id: str = Field(min_length=1)
    contract_type: str = Field(min_length=1)
    canton: str = Field(min_length=1)
    full_time_hours: float | None = Field(default=None, gt=0, le=744)


CREATE_CONTRACT_TOOL = ToolDescriptor(
    name="create_contract",
    description="Create a new contract for an employee",
    input_schema={
        "type": "object",
        "properties": {
            "clientId": {"type": "string", "description": "ID of the employee"},
            "contractType": {
                "type": "string",
                "description": "Contract type (e.g. Vollzeit 160)",
            },
            "canton": {"type": "string", "description": "Canton of the contract"},
            "fullTimeHours": {
                "type": "number",
                "description": "Monthly full-time hours; inferred from the contract "
                "type when it contains 160 or 180",
            },
        },
        "required": ["clientId", "contractType", "canton"],
    },
)

CONTRACTS_RESOURCE = ResourceDescriptor(
    uri="klacks://contracts",
    name="Contracts",
    description="List of all contracts",
)


def resolve_full_time_hours(contract_type: str, explicit: float | None = None) -> float:
    """
    Determine the monthly full-time hours of a contract.

    An explicit value wins. Otherwise the first known hour figure found in
    the contract type name is used.

    Raises:
        InvalidArgumentError: If no value is given and none can be inferred.
    """
    if explicit is not None:
        return explicit
    for hours in KNOWN_FULL_TIME_HOURS:
        if str(hours) in contract_type:
            return float(hours)
    raise InvalidArgumentError(
        f"Cannot infer full-time hours from contract type '{contract_type}'; "
        "pass fullTimeHours explicitly",
        details={"contract_type": contract_type},
    )


async def handle_create_contract(
    ctx: ToolContext,
    arguments: dict[str, Any],
    *,
    api: KlacksApiClient,
) -> str:
    """
    Handle the create_contract tool call.

    Returns:
        Confirmation text with type, client, canton and creation date.
    """
    args = parse_arguments(CreateContractArgs, ctx.target, arguments)
    full_time = resolve_full_time_hours(args.contract_type, args.full_time_hours)

    logger.info(
        "Creating contract",
        extra={"contract_type": args.contract_type, "client_id": args.client_id},
    )
    await api.create_contract(args.contract_type, full_time)

    return (
        f"Contract '{args.contract_type}' created for client {args.client_id} "
        f"in {args.canton}.\n"
        f"Created at: {datetime.now(UTC):%d.%m.%Y}\n"
        f"Canton: {args.canton}\n"
        f"Full-time hours: {full_time:g}"
    )


async def handle_read_contracts(
    _ctx: ToolContext,
    _uri: str,
    *,
    api: KlacksApiClient,
) -> str:
    """Handle a read of klacks://contracts."""
    contracts = await api.list_contracts()
    return json.dumps(
        {"Contracts": contracts, "LastUpdated": datetime.now(UTC).isoformat()},
        indent=2,
        ensure_ascii=False,
    )
