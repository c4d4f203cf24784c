"""
Klacks MCP Server - stdio JSON-RPC bridge to the Klacks planning system.

This package implements the MCP protocol (line-delimited JSON-RPC over
stdin/stdout), routes tool calls and resource reads, and fulfils them through
an authenticated client for the Klacks HTTPS backend.
"""

__version__ = "1.0.0"
