"""
Pytest configuration for the Klacks MCP Server tests.

Provides a scripted fake Klacks backend served through httpx.MockTransport,
so backend client and tool tests run without network access.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import UTC, datetime, timedelta

import httpx
import pytest

from klacks_mcp.backend.client import LOGIN_PATH, KlacksApiClient
from klacks_mcp.docs import StaticDocumentationProvider

BASE_URL = "https://klacks.test/"


class FakeKlacksBackend:
    """
    Scripted Klacks backend.

    Responses are queued per (method, path). The last queued response for a
    route is repeated once the queue is down to one entry. Logins succeed
    with tokens "token-1", "token-2", ... unless login responses are queued.
    """

    def __init__(self) -> None:
        self.login_count = 0
        self.requests: list[httpx.Request] = []
        self._login_responses: list[httpx.Response] = []
        self._routes: dict[tuple[str, str], list[httpx.Response]] = defaultdict(list)

    @staticmethod
    def login_response(
        token: str, expires_in: timedelta = timedelta(hours=1)
    ) -> httpx.Response:
        """Build a successful LoginUser response."""
        return httpx.Response(
            200,
            json={
                "success": True,
                "token": token,
                "refreshToken": f"refresh-{token}",
                "errorMessage": None,
                "expTime": (datetime.now(UTC) + expires_in).isoformat(),
            },
        )

    def queue_login(self, *responses: httpx.Response) -> None:
        self._login_responses.extend(responses)

    def queue(self, method: str, path: str, *responses: httpx.Response) -> None:
        self._routes[(method.upper(), path)].extend(responses)

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path == f"/{LOGIN_PATH}":
            self.login_count += 1
            if self._login_responses:
                return self._login_responses.pop(0)
            return self.login_response(f"token-{self.login_count}")

        queued = self._routes.get((request.method, request.url.path))
        if not queued:
            return httpx.Response(404, text=f"no route for {request.method} {request.url.path}")
        scripted = queued.pop(0) if len(queued) > 1 else queued[0]
        return httpx.Response(
            scripted.status_code, headers=scripted.headers, content=scripted.content
        )


@pytest.fixture
def backend() -> FakeKlacksBackend:
    """A fresh fake backend."""
    return FakeKlacksBackend()


@pytest.fixture
def api(backend: FakeKlacksBackend) -> KlacksApiClient:
    """A KlacksApiClient talking to the fake backend."""
    http_client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(backend))
    return KlacksApiClient(
        base_url=BASE_URL,
        username="bot@example.com",
        password="s3cret",
        http_client=http_client,
    )


@pytest.fixture
def docs() -> StaticDocumentationProvider:
    """The built-in documentation pages."""
    return StaticDocumentationProvider()
