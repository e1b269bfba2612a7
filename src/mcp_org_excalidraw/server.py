#!/usr/bin/env python3
"""
MCP Org Excalidraw - Server Implementation
==========================================

Links Org documents to Excalidraw drawings.

Tools:
- excalidraw_create: Create a drawing and insert its link into a document
- excalidraw_open: Open the drawing behind a link or preview path
- excalidraw_preview: Return a preview image for inline display
- excalidraw_convert: Regenerate one drawing's SVG preview
- excalidraw_list: List the drawing links in a document

While the server runs, the drawing directory is watched and previews are
regenerated whenever the editor saves a drawing.
"""

import base64
import json
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated, Optional

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from .app import OrgExcalidraw, setup
from .config import PREVIEW_SUFFIX, Settings
from .documents import DocumentCursor, find_links, parse_link
from .drawings import validate_drawing_path
from .process import convert_to_preview

_app: Optional[OrgExcalidraw] = None
_sessions = 0


def _project_dir() -> Path:
    """Project directory from the environment, read on each call."""
    return Path(os.environ.get("MCP_PROJECT_DIR", os.getcwd())).resolve()


def _resolve_path(path: str) -> Path:
    """Resolve path relative to project directory and validate it stays within."""
    project_dir = _project_dir()
    resolved = (project_dir / path).resolve()
    try:
        resolved.relative_to(project_dir)
    except ValueError:
        raise ValueError(f"Path '{path}' escapes the project directory")
    return resolved


def _resolve_drawing_path(app: OrgExcalidraw, path: str) -> Path:
    """Resolve path relative to the drawing directory and validate it stays within."""
    storage_dir = app.settings.storage_dir.resolve()
    resolved = (storage_dir / Path(path).expanduser()).resolve()
    try:
        resolved.relative_to(storage_dir)
    except ValueError:
        raise ValueError(f"Path '{path}' is outside the drawing directory")
    return resolved


def configure(app: Optional[OrgExcalidraw]) -> None:
    """Install the component set the tools operate on."""
    global _app
    _app = app


def _get_app() -> OrgExcalidraw:
    # Tools called outside the server lifespan get an unwatched instance
    if _app is None:
        configure(setup(Settings.from_env(), watch=False))
    return _app


@asynccontextmanager
async def server_lifespan(server: FastMCP):
    """Share one watched setup across all sessions.

    The lifespan is entered once per client session; the first session runs
    setup and starts the watcher, the last one to leave stops it.
    """
    global _sessions
    if _sessions == 0:
        configure(setup(Settings.from_env()))
    _sessions += 1
    try:
        yield
    finally:
        _sessions -= 1
        if _sessions == 0:
            _app.close()
            configure(None)


# Initialize the MCP server
mcp = FastMCP("mcp-org-excalidraw", lifespan=server_lifespan)


def create_server() -> FastMCP:
    """Create and return the MCP server instance."""
    return mcp


# ============================================================================
# Drawing Creation
# ============================================================================

@mcp.tool()
def excalidraw_create(
    document: Annotated[str, Field(description="Org document path relative to project directory")],
    line: Annotated[Optional[int], Field(description="1-based line to insert the link on (default: end of document)")] = None,
    column: Annotated[int, Field(description="0-based column within the line")] = 0,
) -> str:
    """Create a new Excalidraw drawing and link it into an Org document.

    Writes an empty drawing into the drawing directory, inserts
    [[excalidraw:<drawing>.excalidraw.svg]] at the given position and opens
    the drawing in the Excalidraw editor. The SVG preview appears once the
    drawing is saved.

    Args:
        document: Org file to insert the link into (created if missing)
        line: Line number for the link; omitted means append at the end
        column: Column within that line

    Returns:
        JSON string with the drawing path, preview path and link
    """
    try:
        app = _get_app()
        doc_path = _resolve_path(document)

        if line is None:
            cursor = DocumentCursor(doc_path)
        else:
            cursor = DocumentCursor.at_line(doc_path, line, column)

        drawing = app.factory.create(cursor)

        return json.dumps({
            "success": True,
            "id": drawing.id,
            "drawing": str(drawing.path),
            "preview": str(drawing.preview_path),
            "link": drawing.link,
            "document": str(doc_path.relative_to(_project_dir()))
        }, indent=2)

    except ValueError as e:
        return json.dumps({"error": str(e)})
    except Exception as e:
        return json.dumps({"error": f"Failed to create drawing: {str(e)}"})


# ============================================================================
# Link Following
# ============================================================================

@mcp.tool()
def excalidraw_open(
    link: Annotated[str, Field(description="Org link ([[excalidraw:...]]) or path to a .excalidraw.svg preview")],
) -> str:
    """Open the drawing behind an Org link in the Excalidraw editor.

    Accepts a full link such as [[excalidraw:/notes/x.excalidraw.svg]] or a
    bare preview path. The .svg suffix is stripped to find the drawing.

    Returns:
        JSON string with the drawing path that was opened
    """
    try:
        app = _get_app()
        opened = app.registry.dispatch(link)
        return json.dumps({
            "success": True,
            "drawing": str(opened)
        }, indent=2)

    except (ValueError, LookupError) as e:
        return json.dumps({"error": str(e)})
    except Exception as e:
        return json.dumps({"error": f"Failed to open drawing: {str(e)}"})


# ============================================================================
# Previews
# ============================================================================

@mcp.tool()
def excalidraw_preview(
    link: Annotated[str, Field(description="Org link or preview file path inside the drawing directory")],
) -> str:
    """Return the SVG preview of a drawing for inline display.

    Returns:
        JSON string with the SVG as base64, or found=false if the preview
        does not exist yet
    """
    try:
        app = _get_app()
        parsed = parse_link(link)
        if parsed is not None:
            _resolve_drawing_path(app, parsed.path)
            data = app.registry.preview(parsed)
        else:
            data = app.links.preview_data(_resolve_drawing_path(app, link.strip()))

        if data is None:
            return json.dumps({"found": False, "link": link}, indent=2)

        return json.dumps({
            "found": True,
            "image": {
                "type": "base64",
                "media_type": "image/svg+xml",
                "data": base64.b64encode(data).decode('ascii')
            }
        }, indent=2)

    except ValueError as e:
        return json.dumps({"error": str(e)})
    except Exception as e:
        return json.dumps({"error": f"Failed to read preview: {str(e)}"})


@mcp.tool()
def excalidraw_convert(
    path: Annotated[str, Field(description="Drawing path (.excalidraw) inside the drawing directory")],
) -> str:
    """Regenerate the SVG preview of one drawing.

    The converter runs in the background; the preview shows up at
    <path>.svg once it finishes. Conversion errors are not reported.

    Returns:
        JSON string with the drawing and expected preview path
    """
    try:
        app = _get_app()
        drawing = _resolve_drawing_path(app, path)
        validate_drawing_path(drawing)

        if not drawing.exists():
            return json.dumps({"error": f"Drawing not found: {path}"})

        convert_to_preview(app.invoker, app.settings, drawing)
        return json.dumps({
            "success": True,
            "drawing": str(drawing),
            "preview": str(drawing) + PREVIEW_SUFFIX
        }, indent=2)

    except ValueError as e:
        return json.dumps({"error": str(e)})
    except Exception as e:
        return json.dumps({"error": f"Conversion failed: {str(e)}"})


@mcp.tool()
def excalidraw_list(
    document: Annotated[str, Field(description="Org document path relative to project directory")],
) -> str:
    """List the drawing links in an Org document.

    Returns:
        JSON string with one entry per link: link, drawing and preview
        paths, and whether each file exists
    """
    try:
        app = _get_app()
        doc_path = _resolve_path(document)

        if not doc_path.exists():
            return json.dumps({"error": f"File not found: {document}"})

        text = doc_path.read_text(encoding='utf-8')
        drawings = []
        for link in find_links(text, app.settings.link_prefix):
            preview = Path(link.path).expanduser()
            try:
                source = Path(app.links.source_path(preview))
            except ValueError:
                source = None
            drawings.append({
                "link": str(link),
                "preview": str(preview),
                "preview_exists": preview.is_file(),
                "drawing": str(source) if source else None,
                "drawing_exists": bool(source and source.is_file())
            })

        return json.dumps({
            "document": document,
            "drawings": drawings,
            "count": len(drawings)
        }, indent=2)

    except ValueError as e:
        return json.dumps({"error": str(e)})
    except Exception as e:
        return json.dumps({"error": f"Failed to list drawings: {str(e)}"})
