"""
JSON-RPC 2.0 envelope handling for the Klacks MCP Server.

This module parses request lines into JSONRPCRequest objects and formats
JSONRPCResponse objects back into single JSON lines.

Error codes used by the server:
- -32601: Method not found (unknown method name, data = the method name)
- -32602: Invalid params (required parameter absent)
- -32603: Internal error (unparsable line, or a handler failure)

A line that cannot be parsed into a request envelope is reported as an
internal error. The id is echoed when the line is a JSON object, and is
null otherwise, because the original id cannot be recovered.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any

JSONRPC_VERSION = "2.0"

# MCP protocol revision echoed by initialize
MCP_PROTOCOL_VERSION = "2024-11-05"

# =============================================================================
# JSON-RPC Error Codes
# =============================================================================

METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


# =============================================================================
# Data Classes
# =============================================================================


class JSONRPCError(Exception):
    """
    Represents a JSON-RPC 2.0 error object.

    This class is both an Exception (so it can be raised) and a data container
    for JSON-RPC error information.

    Attributes:
        code: Integer JSON-RPC 2.0 error code.
        message: Human-readable error message.
        data: Optional diagnostic data (any JSON value).
        request_id: Identifier of the offending request, when it could be
            recovered from a malformed line. Not part of the error object.
    """

    def __init__(
        self,
        code: int,
        message: str,
        data: Any = None,
        request_id: Any = None,
    ) -> None:
        """
        Initialize a JSONRPCError.

        Args:
            code: Integer error code.
            message: Human-readable error message.
            data: Optional diagnostic data.
            request_id: Optional identifier of the request that failed.
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data
        self.request_id = request_id

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the error to a dictionary for JSON serialization.

        Returns:
            Dictionary with code, message, and optionally data.
        """
        result: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.data is not None:
            result["data"] = self.data
        return result

    def __repr__(self) -> str:
        """Return a detailed string representation."""
        return (
            f"JSONRPCError(code={self.code}, "
            f"message={self.message!r}, "
            f"data={self.data!r})"
        )


@dataclass
class JSONRPCRequest:
    """
    Represents a parsed JSON-RPC 2.0 request.

    The id is opaque: it is never interpreted, only echoed in the response.

    Attributes:
        jsonrpc: Protocol version tag.
        id: Correlation identifier (any JSON scalar or None).
        method: The method to invoke (non-empty).
        params: Parameters object (empty dict when absent).
    """

    jsonrpc: str
    id: Any
    method: str
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str | None:
        """Tool name from params.name, if it is a string."""
        value = self.params.get("name")
        return value if isinstance(value, str) else None

    @property
    def arguments(self) -> dict[str, Any] | None:
        """Tool arguments from params.arguments, if it is an object."""
        value = self.params.get("arguments")
        return value if isinstance(value, dict) else None

    @property
    def uri(self) -> str | None:
        """Resource locator from params.uri, if it is a string."""
        value = self.params.get("uri")
        return value if isinstance(value, str) else None


@dataclass
class JSONRPCResponse:
    """
    Represents a JSON-RPC 2.0 response.

    Exactly one of result or error is serialized.

    Attributes:
        jsonrpc: Protocol version (always "2.0").
        id: Request identifier (echoed, or None for unparsable lines).
        result: Success result (if not an error).
        error: Error object (if an error occurred).
    """

    jsonrpc: str
    id: Any
    result: Any | None = None
    error: JSONRPCError | None = None

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the response to a dictionary for JSON serialization.

        Returns:
            Dictionary with jsonrpc, id, and either result or error.
        """
        response: dict[str, Any] = {
            "jsonrpc": self.jsonrpc,
            "id": self.id,
        }
        if self.error is not None:
            response["error"] = self.error.to_dict()
        else:
            response["result"] = self.result
        return response

    def to_json(self) -> str:
        """
        Serialize the response to a single-line JSON string.

        Returns:
            JSON string representation of the response.
        """
        return json.dumps(self.to_dict(), separators=(",", ":"))


# =============================================================================
# Request Parsing
# =============================================================================


def parse_request(request_json: str) -> JSONRPCRequest:
    """
    Parse a JSON-RPC 2.0 request from one input line.

    Only field presence is checked: the line must be a JSON object with a
    non-empty string method and, if present, an object params. A missing
    jsonrpc tag defaults to "2.0". NaN, Infinity and numbers too large
    for a float are rejected, since they could not be echoed back as JSON.

    Args:
        request_json: Raw JSON string containing the request.

    Returns:
        Parsed JSONRPCRequest object.

    Raises:
        JSONRPCError: An internal error (-32603) carrying the parse failure
            message as data. When the line is an object, its id is attached
            as request_id.

    Example:
        >>> request = parse_request('{"jsonrpc":"2.0","id":1,"method":"tools/list"}')
        >>> print(request.method)
        tools/list
    """
    try:
        data = json.loads(
            request_json, parse_constant=_reject_constant, parse_float=_parse_float
        )
    except ValueError as e:
        raise create_internal_error(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise create_internal_error("Request must be a JSON object")

    request_id = data.get("id")

    method = data.get("method")
    if not isinstance(method, str) or not method:
        raise create_internal_error("'method' must be a non-empty string", request_id)

    params = data.get("params")
    if params is None:
        params = {}
    if not isinstance(params, dict):
        raise create_internal_error("'params' must be an object", request_id)

    jsonrpc = data.get("jsonrpc", JSONRPC_VERSION)

    return JSONRPCRequest(
        jsonrpc=jsonrpc if isinstance(jsonrpc, str) else JSONRPC_VERSION,
        id=request_id,
        method=method,
        params=params,
    )


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Unsupported constant {name}")


def _parse_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"Number out of range: {text}")
    return value


# =============================================================================
# Response Formatting
# =============================================================================


def format_success_response(request_id: Any, result: Any) -> JSONRPCResponse:
    """
    Format a successful JSON-RPC 2.0 response.

    Args:
        request_id: The request ID to echo.
        result: The result value to include in the response.

    Returns:
        JSONRPCResponse object representing a success response.

    Example:
        >>> response = format_success_response(7, {"tools": []})
        >>> print(response.to_json())
        {"jsonrpc":"2.0","id":7,"result":{"tools":[]}}
    """
    return JSONRPCResponse(
        jsonrpc=JSONRPC_VERSION,
        id=request_id,
        result=result,
        error=None,
    )


def format_error_response(request_id: Any, error: JSONRPCError) -> JSONRPCResponse:
    """
    Format a JSON-RPC 2.0 error response.

    Args:
        request_id: The request ID (None for unparsable lines).
        error: The JSONRPCError object describing the error.

    Returns:
        JSONRPCResponse object representing an error response.
    """
    return JSONRPCResponse(
        jsonrpc=JSONRPC_VERSION,
        id=request_id,
        result=None,
        error=error,
    )


# =============================================================================
# Error Constructors
# =============================================================================


def create_method_not_found_error(method: str) -> JSONRPCError:
    """
    Create a "Method not found" error echoing the unknown method name.

    Args:
        method: The method name that was not found.

    Returns:
        JSONRPCError with code -32601.
    """
    return JSONRPCError(code=METHOD_NOT_FOUND, message="Method not found", data=method)


def create_invalid_params_error(detail: str) -> JSONRPCError:
    """
    Create an "Invalid params" error.

    Args:
        detail: Which parameter is missing or malformed.

    Returns:
        JSONRPCError with code -32602.
    """
    return JSONRPCError(code=INVALID_PARAMS, message="Invalid params", data=detail)


def create_internal_error(detail: str, request_id: Any = None) -> JSONRPCError:
    """
    Create an internal error carrying the failure message as data.

    Args:
        detail: Error message describing what went wrong.
        request_id: Identifier of the failed request, if known.

    Returns:
        JSONRPCError with code -32603.
    """
    return JSONRPCError(
        code=INTERNAL_ERROR, message="Internal error", data=detail, request_id=request_id
    )
