"""
Drawings
========

Creating drawings, following preview links back to their source, and
turning directory changes into converter runs.

A drawing is ``<id>.excalidraw`` inside the storage directory; its preview is
``<id>.excalidraw.svg`` next to it, written by the external converter. The
drawing content is never parsed here.
"""

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Protocol

from .config import DRAWING_EXTENSION, PREVIEW_SUFFIX, Settings
from .process import (
    Opener,
    PathLike,
    ProcessInvoker,
    convert_to_preview,
    default_opener,
    open_for_editing,
)

logger = logging.getLogger(__name__)


class DrawingPathError(ValueError):
    """Raised for a drawing path without the .excalidraw extension."""

    def __init__(self, path: PathLike):
        self.path = str(path)
        super().__init__(f"{self.path} must have the required extension ({DRAWING_EXTENSION})")


def validate_drawing_path(path: PathLike) -> str:
    """Return ``path`` as a string, or raise DrawingPathError unless it ends in .excalidraw."""
    path = str(path)
    if not path.endswith(DRAWING_EXTENSION):
        raise DrawingPathError(path)
    return path


def default_id() -> str:
    """Random UUID4 string; the default drawing id generator."""
    return str(uuid.uuid4())


# ============================================================================
# Change routing
# ============================================================================

@dataclass(frozen=True)
class ChangeEvent:
    """One notification from the directory watcher."""

    kind: str
    path: str
    dest_path: Optional[str] = None


class ChangeRouter:
    """Decides which directory changes should regenerate a preview."""

    def __init__(self, settings: Settings, invoker: ProcessInvoker):
        self.settings = settings
        self.invoker = invoker

    def route(self, event: ChangeEvent) -> None:
        """Convert the drawing a rename landed on; every other event is ignored."""
        if event.kind != "renamed":
            return
        # The "changed" branch can't be reached under the guard above; kept so
        # renamed events keep resolving to the destination path.
        filename = event.path if event.kind == "changed" else event.dest_path
        if filename and filename.endswith(DRAWING_EXTENSION):
            convert_to_preview(self.invoker, self.settings, filename)


# ============================================================================
# Drawing creation
# ============================================================================

class Cursor(Protocol):
    def insert(self, text: str) -> None: ...


@dataclass(frozen=True)
class Drawing:
    id: str
    path: Path
    link: str

    @property
    def preview_path(self) -> Path:
        return Path(str(self.path) + PREVIEW_SUFFIX)


class DrawingFactory:
    """Creates new drawings and links them into documents.

    ``id_generator`` and ``opener`` are strategies; the defaults produce a
    UUID4 identifier and pick the platform opener.
    """

    def __init__(
        self,
        settings: Settings,
        invoker: ProcessInvoker,
        id_generator: Callable[[], str] = default_id,
        opener: Opener = default_opener,
    ):
        self.settings = settings
        self.invoker = invoker
        self.id_generator = id_generator
        self.opener = opener

    def link_for(self, path: PathLike) -> str:
        """Org link to the preview of the drawing at ``path``."""
        return f"[[{self.settings.link_prefix}:{path}{PREVIEW_SUFFIX}]]"

    def create(self, cursor: Cursor) -> Drawing:
        """Insert a link at ``cursor``, write the template, open the drawing.

        The link goes in before the file is written and opened. Nothing is
        written if the generated path fails validation.
        """
        drawing_id = self.id_generator()
        filename = drawing_id + DRAWING_EXTENSION
        path = self.settings.storage_dir / filename
        link = self.link_for(path)
        validate_drawing_path(path)

        cursor.insert(link)
        path.write_text(self.settings.base_template, encoding="utf-8")
        logger.info("Created drawing %s", path)
        open_for_editing(self.invoker, self.settings, path, self.opener)
        return Drawing(id=drawing_id, path=path, link=link)


# ============================================================================
# Link following and previews
# ============================================================================

class LinkHandler:
    """Handles links that point at preview files."""

    def __init__(self, settings: Settings, invoker: ProcessInvoker, opener: Opener = default_opener):
        self.settings = settings
        self.invoker = invoker
        self.opener = opener

    def source_path(self, preview_path: PathLike) -> str:
        """Drawing path behind a preview path (drops the .svg suffix), validated."""
        path = str(preview_path)
        if path.endswith(PREVIEW_SUFFIX):
            path = path[: -len(PREVIEW_SUFFIX)]
        return validate_drawing_path(path)

    def follow(self, preview_path: PathLike) -> str:
        """Open the drawing behind ``preview_path``; returns the drawing path."""
        path = self.source_path(preview_path)
        open_for_editing(self.invoker, self.settings, path, self.opener)
        return path

    def preview_data(self, path: PathLike) -> Optional[bytes]:
        """Raw content of ``path`` for inline display, or None if it is missing."""
        target = Path(path).expanduser()
        if not target.is_file():
            return None
        return target.read_bytes()
