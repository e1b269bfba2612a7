"""
MCP Org Excalidraw
==================

MCP server linking Org-mode documents to Excalidraw drawings.

Supports:
- Creating drawings and inserting [[excalidraw:...]] links into documents
- Opening the drawing behind a link in the Excalidraw editor
- Regenerating SVG previews when drawings change (requires excalidraw_export)
- Returning previews for inline display

Transport modes:
- STDIO (default): For Claude Desktop and other MCP clients
- SSE: Server-Sent Events over HTTP
- HTTP: Streamable HTTP transport
"""

__version__ = "0.1.0"

from .app import OrgExcalidraw, setup
from .config import Settings
from .server import create_server, mcp

__all__ = ["OrgExcalidraw", "Settings", "create_server", "mcp", "setup", "__version__"]
