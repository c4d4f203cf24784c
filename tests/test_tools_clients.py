"""
Tests for the client tools and the klacks://clients resource.
"""

from __future__ import annotations

import json

import httpx
import pytest

from klacks_mcp.backend.client import CLIENT_LIST_PATH, CLIENTS_PATH
from klacks_mcp.context import ToolContext
from klacks_mcp.errors import BackendError, InvalidArgumentError
from klacks_mcp.tools.clients import (
    handle_create_client,
    handle_read_clients,
    handle_search_clients,
)

SEARCH_RESULT = {
    "clients": [
        {"id": 7, "firstName": "Anna", "name": "Muster", "company": "Spitex Bern"},
        {"id": "8", "firstName": "Beat", "name": "Muster", "company": None},
    ],
    "maxItems": 2,
}


@pytest.fixture
def create_ctx() -> ToolContext:
    return ToolContext(target="create_client", request_id=1)


@pytest.fixture
def search_ctx() -> ToolContext:
    return ToolContext(target="search_clients", request_id=2)


# =============================================================================
# create_client
# =============================================================================


class TestCreateClient:
    """Tests for the create_client handler."""

    @pytest.mark.asyncio
    async def test_create_with_all_fields(self, create_ctx, api, backend) -> None:
        backend.queue("POST", f"/{CLIENTS_PATH}", httpx.Response(200, json={"id": 42}))

        text = await handle_create_client(
            create_ctx,
            {
                "firstName": "Anna",
                "lastName": "Muster",
                "email": "anna@example.com",
                "canton": "BE",
            },
            api=api,
        )

        assert text == (
            "Employee Anna Muster created successfully.\n"
            "ID: 42\n"
            "Email: anna@example.com\n"
            "Canton: BE"
        )

    @pytest.mark.asyncio
    async def test_create_minimal(self, create_ctx, api, backend) -> None:
        backend.queue("POST", f"/{CLIENTS_PATH}", httpx.Response(200, json={"id": 43}))

        text = await handle_create_client(
            create_ctx, {"firstName": "Beat", "lastName": "Muster"}, api=api
        )

        assert text == "Employee Beat Muster created successfully.\nID: 43"

    @pytest.mark.asyncio
    async def test_missing_id_in_response(self, create_ctx, api, backend) -> None:
        backend.queue("POST", f"/{CLIENTS_PATH}", httpx.Response(200, json={}))

        text = await handle_create_client(
            create_ctx, {"firstName": "Beat", "lastName": "Muster"}, api=api
        )

        assert "ID: unknown" in text

    @pytest.mark.asyncio
    async def test_missing_last_name(self, create_ctx, api, backend) -> None:
        with pytest.raises(InvalidArgumentError, match="lastName"):
            await handle_create_client(create_ctx, {"firstName": "Anna"}, api=api)

        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_backend_failure_propagates(self, create_ctx, api, backend) -> None:
        backend.queue("POST", f"/{CLIENTS_PATH}", httpx.Response(500, text="error"))

        with pytest.raises(BackendError):
            await handle_create_client(
                create_ctx, {"firstName": "Anna", "lastName": "Muster"}, api=api
            )


# =============================================================================
# search_clients
# =============================================================================


class TestSearchClients:
    """Tests for the search_clients handler."""

    @pytest.mark.asyncio
    async def test_search(self, search_ctx, api, backend) -> None:
        backend.queue("POST", f"/{CLIENT_LIST_PATH}", httpx.Response(200, json=SEARCH_RESULT))

        text = await handle_search_clients(search_ctx, {"searchTerm": "Muster"}, api=api)

        assert text == (
            "Found 2 employees matching 'Muster':\n\n"
            "- Anna Muster (Spitex Bern) [ID: 7]\n"
            "- Beat Muster [ID: 8]"
        )

    @pytest.mark.asyncio
    async def test_search_with_canton_and_limit(self, search_ctx, api, backend) -> None:
        backend.queue("POST", f"/{CLIENT_LIST_PATH}", httpx.Response(200, json=SEARCH_RESULT))

        text = await handle_search_clients(
            search_ctx, {"searchTerm": "Muster", "canton": "ZH", "limit": 25}, api=api
        )

        assert text.startswith("Found 2 employees matching 'Muster' in canton ZH:")
        body = json.loads(backend.requests_to(f"/{CLIENT_LIST_PATH}")[0].content)
        assert body["itemsPerPage"] == 25

    @pytest.mark.asyncio
    async def test_default_limit(self, search_ctx, api, backend) -> None:
        backend.queue("POST", f"/{CLIENT_LIST_PATH}", httpx.Response(200, json={"clients": []}))

        text = await handle_search_clients(search_ctx, {"searchTerm": "Nobody"}, api=api)

        assert text.startswith("Found 0 employees matching 'Nobody'")
        body = json.loads(backend.requests_to(f"/{CLIENT_LIST_PATH}")[0].content)
        assert body["itemsPerPage"] == 10

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [0, 101])
    async def test_limit_out_of_range(self, search_ctx, api, limit: int) -> None:
        with pytest.raises(InvalidArgumentError, match="limit"):
            await handle_search_clients(
                search_ctx, {"searchTerm": "x", "limit": limit}, api=api
            )

    @pytest.mark.asyncio
    async def test_missing_search_term(self, search_ctx, api) -> None:
        with pytest.raises(InvalidArgumentError, match="searchTerm"):
            await handle_search_clients(search_ctx, {}, api=api)


# =============================================================================
# klacks://clients
# =============================================================================


class TestClientsResource:
    """Tests for the klacks://clients resource."""

    @pytest.mark.asyncio
    async def test_read_clients(self, api, backend) -> None:
        backend.queue("POST", f"/{CLIENT_LIST_PATH}", httpx.Response(200, json=SEARCH_RESULT))
        ctx = ToolContext(target="klacks://clients", method="resources/read")

        text = await handle_read_clients(ctx, "klacks://clients", api=api)

        payload = json.loads(text)
        assert payload["Clients"] == SEARCH_RESULT
        assert "LastUpdated" in payload
        body = json.loads(backend.requests_to(f"/{CLIENT_LIST_PATH}")[0].content)
        assert body["searchString"] == ""
        assert body["itemsPerPage"] == 50
