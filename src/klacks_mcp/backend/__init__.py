"""
Klacks backend access.

This package contains the authenticated HTTP client for the Klacks API, the
bearer credential cache it owns, and the pydantic models for backend payloads.
"""

from klacks_mcp.backend.client import KlacksApiClient
from klacks_mcp.backend.credentials import CredentialCache

__all__ = [
    "CredentialCache",
    "KlacksApiClient",
]
