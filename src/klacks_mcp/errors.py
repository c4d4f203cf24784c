"""
Error types for the Klacks MCP Server.

This module defines the ToolError base class and the operation-level errors
raised while fulfilling a tool call or resource read. Protocol faults
(unknown method, missing parameters, malformed lines) are JSONRPCError
instances from klacks_mcp.protocol and never pass through these classes.

ToolError instances do not become error envelopes: the router turns them into
a human-readable failure text returned as a normal result, so a failing
backend never breaks the one-line-in/one-line-out contract.
"""

from __future__ import annotations

from typing import Any


class ToolError(Exception):
    """
    Base exception class for tool and resource operation errors.

    Attributes:
        error_code: Internal error code string (e.g., "invalid_argument",
            "unauthenticated", "unavailable").
        message: Human-readable error message.
        details: Optional structured details (e.g., status code, argument name),
            logged by the router when the failure is reported.

    Example:
        >>> raise ToolError(
        ...     error_code="invalid_argument",
        ...     message="limit must be between 1 and 100",
        ...     details={"limit": 500},
        ... )
    """

    def __init__(
        self,
        error_code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize a ToolError.

        Args:
            error_code: Internal error code string identifying the error category.
            message: Human-readable error message.
            details: Optional dictionary with structured error details.
        """
        super().__init__(message)
        self.error_code = error_code
        self.message = message
        self.details = details or {}

    def __repr__(self) -> str:
        """Return a detailed string representation."""
        return (
            f"{self.__class__.__name__}("
            f"error_code={self.error_code!r}, "
            f"message={self.message!r}, "
            f"details={self.details!r})"
        )


class InvalidArgumentError(ToolError):
    """
    Error raised when a tool receives missing or invalid arguments.

    This error maps to the "invalid_argument" error code.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize an InvalidArgumentError."""
        super().__init__(
            error_code="invalid_argument", message=message, details=details
        )


class AuthenticationError(ToolError):
    """
    Error raised when logging in to the Klacks backend fails.

    Covers non-success login status, transport failures during login,
    malformed login responses, and responses reporting success=false.
    Login failures are never retried.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize an AuthenticationError."""
        super().__init__(
            error_code="unauthenticated", message=message, details=details
        )


class BackendError(ToolError):
    """
    Error raised when a backend call fails after authentication.

    Raised for any non-success HTTP status other than a single retried 401,
    for a repeated 401, and for transport failures or timeouts.

    Attributes:
        status_code: HTTP status code, or None for transport failures.
        body: Response body text, or None when no response was received.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize a BackendError."""
        merged: dict[str, Any] = {"status_code": status_code}
        if body is not None:
            merged["body"] = body
        merged.update(details or {})
        super().__init__(error_code="unavailable", message=message, details=merged)
        self.status_code = status_code
        self.body = body


class DecodeError(BackendError):
    """Error raised when a backend response body is not the expected JSON."""

