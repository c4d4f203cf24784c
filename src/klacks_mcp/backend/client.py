"""
Authenticated HTTP client for the Klacks backend.

This module implements KlacksApiClient, the single gateway to the Klacks
HTTPS API. Every backend call funnels through it so the login/refresh policy
is enforced uniformly:

- A bearer token is acquired lazily by logging in with the configured
  service account and cached in a CredentialCache.
- The token is attached to every request as an Authorization header.
- A 401 response clears the cache, triggers one fresh login and exactly one
  retry of the request. A second 401 is surfaced as a BackendError.

Per-call state machine:
    Unauthenticated -> (login ok) -> Authenticated -> (401) -> Unauthenticated
    -> (login ok) -> Authenticated -> (401) -> Failed

Requests are issued one at a time by the transport loop, so the refresh
transition needs no lock. Serving requests concurrently would require a
single-flight guard around ensure_authenticated().
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from klacks_mcp.backend.credentials import DEFAULT_REFRESH_MARGIN, CredentialCache
from klacks_mcp.backend.models import (
    ClientList,
    CreatedRecord,
    LoginResponse,
    VersionInfo,
)
from klacks_mcp.errors import AuthenticationError, BackendError, DecodeError
from klacks_mcp.logging import get_logger

if TYPE_CHECKING:
    from klacks_mcp.config import BackendConfig

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

LOGIN_PATH = "api/backend/accounts/LoginUser"
VERSION_PATH = "api/Version"
CLIENTS_PATH = "api/backend/clients"
CLIENT_LIST_PATH = "api/backend/clients/GetSimpleList"
CONTRACTS_PATH = "api/backend/contracts"

DEFAULT_TIMEOUT = 30.0


class KlacksApiClient:
    """
    Client for the Klacks HTTPS API with transparent login and refresh.

    Example:
        >>> async with KlacksApiClient("https://klacks.example.com/", "bot@example.com", "s3cret") as api:
        ...     version = await api.get_version()
    """

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        refresh_margin: timedelta = DEFAULT_REFRESH_MARGIN,
        verify_tls: bool = True,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: Base URL of the Klacks API.
            username: Login e-mail of the service account.
            password: Login password of the service account.
            timeout: Per-request timeout in seconds.
            refresh_margin: Safety margin before token expiry.
            verify_tls: Whether to verify the server certificate.
            http_client: Optional preconfigured httpx.AsyncClient. When given,
                its base URL, timeout and TLS settings are used as-is.
        """
        self.base_url = base_url
        self._username = username
        self._password = password
        self._credentials = CredentialCache(margin=refresh_margin)
        self._http = http_client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            verify=verify_tls,
        )

    @classmethod
    def from_config(
        cls,
        config: BackendConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> KlacksApiClient:
        """
        Create a KlacksApiClient from configuration.

        Args:
            config: BackendConfig with connection settings.
            http_client: Optional preconfigured httpx.AsyncClient.

        Returns:
            Configured KlacksApiClient instance.
        """
        return cls(
            base_url=config.base_url,
            username=config.username,
            password=config.password.get_secret_value(),
            timeout=config.timeout_seconds,
            refresh_margin=timedelta(seconds=config.token_refresh_margin_seconds),
            verify_tls=config.verify_tls,
            http_client=http_client,
        )

    async def __aenter__(self) -> KlacksApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._http.aclose()

    # =========================================================================
    # Authentication
    # =========================================================================

    @property
    def is_authenticated(self) -> bool:
        """Check whether a usable bearer token is cached."""
        return self._credentials.is_valid()

    async def ensure_authenticated(self) -> None:
        """
        Log in unless a usable token is already cached.

        Raises:
            AuthenticationError: If the login call fails for any reason.
                Login failures are not retried.
        """
        if self._credentials.is_valid():
            return

        logger.info(
            "Authenticating with Klacks API",
            extra={"base_url": self.base_url, "username": self._username},
        )

        try:
            response = await self._http.post(
                LOGIN_PATH,
                json={"email": self._username, "password": self._password},
            )
        except httpx.HTTPError as e:
            logger.error("Login request failed: %s", e)
            raise AuthenticationError(
                f"Authentication failed: {e}",
                details={"exception_type": type(e).__name__},
            ) from e

        if not response.is_success:
            logger.error("Login rejected with HTTP %d", response.status_code)
            raise AuthenticationError(
                f"Authentication failed: HTTP {response.status_code}",
                details={"status_code": response.status_code},
            )

        try:
            login = LoginResponse.model_validate_json(response.content)
        except ValidationError as e:
            logger.error("Malformed login response: %s", e)
            raise AuthenticationError(
                "Authentication failed: malformed login response"
            ) from e

        if not login.success or not login.token:
            raise AuthenticationError(
                f"Authentication failed: {login.error_message or 'No token returned'}"
            )

        self._credentials.set(login.token, login.exp_time)
        logger.info(
            "Authenticated successfully",
            extra={"username": self._username, "expires": login.exp_time.isoformat()},
        )

    # =========================================================================
    # Generic requests
    # =========================================================================

    async def get(self, path: str, model: type[ModelT] | None = None) -> Any:
        """
        Issue an authenticated GET request.

        Args:
            path: Path relative to the base URL.
            model: Optional pydantic model to validate the JSON body into.

        Returns:
            The decoded JSON body, or a model instance when model is given.

        Raises:
            AuthenticationError: If logging in fails.
            BackendError: If the request fails or is rejected.
            DecodeError: If the body is not the expected JSON.
        """
        return await self._request("GET", path, None, model)

    async def post(
        self,
        path: str,
        body: Any,
        model: type[ModelT] | None = None,
    ) -> Any:
        """
        Issue an authenticated POST request with a JSON body.

        Args:
            path: Path relative to the base URL.
            body: JSON-serializable request body.
            model: Optional pydantic model to validate the JSON body into.

        Returns:
            The decoded JSON body, or a model instance when model is given.

        Raises:
            AuthenticationError: If logging in fails.
            BackendError: If the request fails or is rejected.
            DecodeError: If the body is not the expected JSON.
        """
        return await self._request("POST", path, body, model)

    async def _request(
        self,
        method: str,
        path: str,
        body: Any,
        model: type[ModelT] | None,
    ) -> Any:
        await self.ensure_authenticated()
        response = await self._send(method, path, body)

        if response.status_code == httpx.codes.UNAUTHORIZED:
            logger.info(
                "Bearer token rejected, re-authenticating",
                extra={"method": method, "path": path},
            )
            self._credentials.clear()
            await self.ensure_authenticated()
            response = await self._send(method, path, body)

            if response.status_code == httpx.codes.UNAUTHORIZED:
                raise BackendError(
                    f"{method} {path} was rejected as unauthorized after re-authentication",
                    status_code=response.status_code,
                    body=response.text,
                )

        if not response.is_success:
            logger.warning(
                "Backend request failed",
                extra={
                    "method": method,
                    "path": path,
                    "status_code": response.status_code,
                },
            )
            raise BackendError(
                f"{method} {path} failed with HTTP {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        return self._decode(method, path, response, model)

    async def _send(self, method: str, path: str, body: Any) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self._credentials.token}"}
        try:
            if body is None:
                return await self._http.request(method, path, headers=headers)
            return await self._http.request(method, path, json=body, headers=headers)
        except httpx.TimeoutException as e:
            raise BackendError(f"{method} {path} timed out") from e
        except httpx.HTTPError as e:
            raise BackendError(f"{method} {path} failed: {e}") from e

    @staticmethod
    def _decode(
        method: str,
        path: str,
        response: httpx.Response,
        model: type[ModelT] | None,
    ) -> Any:
        if not response.content and model is None:
            return None

        try:
            data = response.json()
        except ValueError as e:
            raise DecodeError(
                f"{method} {path} returned invalid JSON: {e}",
                status_code=response.status_code,
                body=response.text,
            ) from e

        if model is None:
            return data

        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise DecodeError(
                f"{method} {path} returned an unexpected payload: "
                f"{e.error_count()} validation error(s)",
                status_code=response.status_code,
                details={"errors": e.errors(include_url=False)},
            ) from e

    # =========================================================================
    # Klacks operations
    # =========================================================================

    async def get_version(self) -> VersionInfo:
        """Return the backend version information."""
        return await self.get(VERSION_PATH, VersionInfo)

    async def search_clients(self, search_term: str, limit: int) -> ClientList:
        """
        Search clients (employees, external employees and customers).

        Args:
            search_term: Free-text search string.
            limit: Maximum number of entries to return.
        """
        return await self.post(
            CLIENT_LIST_PATH, _client_filter(search_term, limit), ClientList
        )

    async def list_clients(self, limit: int = 50) -> Any:
        """Return the raw first page of the client list."""
        return await self.post(CLIENT_LIST_PATH, _client_filter("", limit))

    async def create_client(
        self,
        first_name: str,
        last_name: str,
        email: str | None = None,
    ) -> CreatedRecord:
        """
        Create a client record.

        Args:
            first_name: First name.
            last_name: Last name.
            email: Optional e-mail, stored as the preferred communication.

        Returns:
            The created record (only its id is decoded).
        """
        communications = (
            [{"type": 0, "value": email, "isPreferred": True}] if email else []
        )
        record = {
            "firstName": first_name,
            "name": last_name,
            "gender": 0,
            "legalEntity": False,
            "idNumber": 0,
            "type": 0,
            "addresses": [],
            "communications": communications,
            "annotations": [],
            "clientContracts": [],
            "groupItems": [],
            "works": [],
        }
        created = await self.post(CLIENTS_PATH, record, CreatedRecord)
        logger.info(
            "Client created",
            extra={"client_id": created.id, "first_name": first_name, "last_name": last_name},
        )
        return created

    async def create_contract(self, contract_type: str, full_time_hours: float) -> Any:
        """
        Create a contract record valid from today (UTC).

        Args:
            contract_type: Contract name, e.g. "Vollzeit 160".
            full_time_hours: Monthly full-time hours of the contract.

        Returns:
            The decoded response body, or None for an empty body.
        """
        record = {
            "name": contract_type,
            "guaranteedHours": 0,
            "minimumHours": 0,
            "maximumHours": 0,
            "fullTime": full_time_hours,
            "nightRate": 0,
            "holidayRate": 0,
            "saRate": 0,
            "soRate": 0,
            "validFrom": datetime.now(UTC).date().isoformat(),
        }
        return await self.post(CONTRACTS_PATH, record)

    async def list_contracts(self) -> Any:
        """Return the raw contract list."""
        return await self.get(CONTRACTS_PATH)


def _client_filter(search_term: str, limit: int) -> dict[str, Any]:
    return {
        "searchString": search_term,
        "employee": True,
        "externEmp": True,
        "customer": True,
        "female": True,
        "male": True,
        "intersexuality": True,
        "activeMembership": True,
        "language": "de",
        "pageNr": 1,
        "itemsPerPage": limit,
    }
