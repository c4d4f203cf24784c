"""
Pydantic models for Klacks backend payloads.

Field names follow the backend's camelCase JSON; Python attributes are
snake_case and mapped through aliases.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class BackendModel(BaseModel):
    """Base model accepting camelCase keys and ignoring unknown fields."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class LoginResponse(BackendModel):
    """Response of the LoginUser endpoint."""

    success: bool = False
    token: str = ""
    refresh_token: str = ""
    error_message: str | None = None
    exp_time: datetime


class VersionInfo(BackendModel):
    """Response of the version request."""

    version_string: str = "unknown"
    build_timestamp: str = ""


class ClientSummary(BackendModel):
    """One entry of the simple client list."""

    id: str | int
    first_name: str | None = None
    name: str | None = None
    company: str | None = None


class ClientList(BackendModel):
    """Response of the simple client list endpoint."""

    clients: list[ClientSummary] = Field(default_factory=list)
    max_items: int | None = None


class CreatedRecord(BackendModel):
    """Any create response; only the identifier is of interest."""

    id: Any = None
