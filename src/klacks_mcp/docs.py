"""
Static documentation pages served as docs/<name> resources.

The pages are short markdown guides for the host model. The provider is
read-only and lives for the whole process.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

_PAGES: dict[str, str] = {
    "general": """\
# Klacks Planning System

Klacks is a shift and workforce planning system. It manages clients
(employees, external employees and customers), their contracts, shifts,
and calendar rules for public holidays.

Available tools: `create_client`, `search_clients`, `create_contract`,
`get_system_info`, `validate_calendar_rule`.

Further pages: `clients`, `shifts`, `identity-providers`, `macros`,
`calendar-rules`, `ai-system`.
""",
    "clients": """\
# Clients

A client is any person or organisation known to Klacks: employees,
external employees and customers.

- Create a client with `create_client` (`firstName`, `lastName`, optional
  `email` and `canton`). The e-mail becomes the preferred communication.
- Find clients with `search_clients` (`searchTerm`, optional `limit`
  between 1 and 100, default 10).
- Contracts are attached with `create_contract` (`clientId`,
  `contractType`, `canton`, optional `fullTimeHours`).
""",
    "shifts": """\
# Shifts

Shifts describe when and where work is done. Each shift has a start and end
time, a location and the qualifications it requires. Shifts are planned per
group and assigned to clients whose contracts allow the hours.
""",
    "identity-providers": """\
# Identity Providers

Klacks can import users from external identity providers (LDAP, Active
Directory, OpenID Connect). Imported users are matched to existing clients
by e-mail. Synchronisation is configured by an administrator in the
settings area.
""",
    "macros": """\
# Macros

Macros are small scripts that compute values during planning, such as
surcharges for night, Saturday and Sunday work. They run on the server and
read the rates stored on a client's contract (`nightRate`, `holidayRate`,
`saRate`, `soRate`).
""",
    "calendar-rules": """\
# Calendar Rules

Calendar rules describe recurring dates such as public holidays.

Syntax: `BASE[(+|-)DD][(+|-)WD]`

- `BASE` is a fixed date `MM/DD` or `EASTER` (Easter Sunday).
- `(+|-)DD` shifts the date by a number of days.
- `(+|-)WD` moves to the first given weekday on or after (`+`) or on or
  before (`-`) the date. Weekdays: `MO TU WE TH FR SA SU`.

Examples:

| Rule | Meaning |
|---|---|
| `01/01` | New Year's Day |
| `EASTER-02` | Good Friday |
| `EASTER+39` | Ascension Day |
| `09/15+00+SU` | Federal Day of Thanksgiving (third Sunday of September) |
| `11/01+SU` | First Sunday in November |

Use `validate_calendar_rule` with `rule` and optional `year` to check a rule.
""",
    "ai-system": """\
# AI System

The Klacks assistant talks to the planning system through this MCP server.
Tools change or query data in Klacks; resources (`klacks://clients`,
`klacks://contracts`, `klacks://system/status`, `docs/<name>`) provide
read-only context. Every answer is plain text; failures are reported as
text as well.
""",
}


class DocumentationProvider(Protocol):
    """Read-only lookup of named documentation pages."""

    def get(self, name: str) -> str | None: ...

    def names(self) -> list[str]: ...


class StaticDocumentationProvider:
    """DocumentationProvider backed by an in-memory mapping."""

    def __init__(self, pages: Mapping[str, str] | None = None) -> None:
        self._pages = dict(pages if pages is not None else _PAGES)

    def get(self, name: str) -> str | None:
        """Return the markdown of a page, or None if it does not exist."""
        return self._pages.get(name)

    def names(self) -> list[str]:
        """Return the known page names in catalog order."""
        return list(self._pages)
