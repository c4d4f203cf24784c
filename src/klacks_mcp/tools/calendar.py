"""
Calendar rule validation tool.

validate_calendar_rule resolves a rule locally (no backend call) and reports
the date and weekday, or IsValid=false with an explanation.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from klacks_mcp.calendar_rules import validate_rule
from klacks_mcp.routing import ToolArguments, ToolDescriptor, parse_arguments

if TYPE_CHECKING:
    from klacks_mcp.context import ToolContext


class ValidateCalendarRuleArgs(ToolArguments):
    rule: str
    year: int | None = None


VALIDATE_CALENDAR_RULE_TOOL = ToolDescriptor(
    name="validate_calendar_rule",
    description="Validate a calendar rule and show the date it resolves to",
    input_schema={
        "type": "object",
        "properties": {
            "rule": {
                "type": "string",
                "description": "Calendar rule, e.g. 01/01, EASTER+39 or 09/15+00+SU",
            },
            "year": {
                "type": "integer",
                "description": "Year to resolve the rule for (default: current year)",
            },
        },
        "required": ["rule"],
    },
)


async def handle_validate_calendar_rule(
    ctx: ToolContext,
    arguments: dict[str, Any],
) -> str:
    """Handle the validate_calendar_rule tool call."""
    args = parse_arguments(ValidateCalendarRuleArgs, ctx.target, arguments)
    year = args.year if args.year is not None else datetime.now(UTC).year
    return json.dumps(validate_rule(args.rule, year).to_dict(), indent=2)
