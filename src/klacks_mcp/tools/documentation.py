"""
Documentation resources (docs/<name> and klacks://docs/<name>).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from klacks_mcp.routing import MARKDOWN_MIME_TYPE, ResourceDescriptor

if TYPE_CHECKING:
    from klacks_mcp.context import ToolContext
    from klacks_mcp.docs import DocumentationProvider

DOC_URI_PREFIXES = ("docs/", "klacks://docs/")


def doc_resource(name: str) -> ResourceDescriptor:
    """Build the catalog entry of a documentation page."""
    return ResourceDescriptor(
        uri=f"{DOC_URI_PREFIXES[0]}{name}",
        name=f"Documentation: {name}",
        description=f"Klacks documentation page '{name}'",
        mime_type=MARKDOWN_MIME_TYPE,
    )


def doc_name_from_uri(uri: str) -> str:
    for prefix in DOC_URI_PREFIXES:
        if uri.startswith(prefix):
            return uri[len(prefix) :].strip("/")
    return uri


async def handle_read_doc(
    _ctx: ToolContext,
    uri: str,
    *,
    docs: DocumentationProvider,
) -> str:
    """
    Return a documentation page.

    An unknown page name yields a text listing the known pages.
    """
    name = doc_name_from_uri(uri)
    page = docs.get(name)
    if page is None:
        known = ", ".join(docs.names())
        return f"Documentation '{name}' not found. Available documents: {known}"
    return page
