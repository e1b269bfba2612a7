"""Watches the drawing directory and feeds changes to a callback."""

import logging
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .drawings import ChangeEvent

logger = logging.getLogger(__name__)

_KINDS = {
    "created": "created",
    "deleted": "deleted",
    "modified": "changed",
    "moved": "renamed",
}


def to_change_event(event: FileSystemEvent) -> Optional[ChangeEvent]:
    """Translate a watchdog event; None for directories and unknown types."""
    if event.is_directory:
        return None
    kind = _KINDS.get(event.event_type)
    if kind is None:
        return None
    dest = getattr(event, "dest_path", None) or None
    return ChangeEvent(kind=kind, path=str(event.src_path), dest_path=str(dest) if dest else None)


class _ChangeHandler(FileSystemEventHandler):
    """Passes watchdog events to DrawingWatcher's callback."""

    def __init__(self, callback: Callable[[ChangeEvent], None]):
        self.callback = callback

    def on_any_event(self, event):
        change = to_change_event(event)
        if change is None:
            return
        logger.debug("Change %s: %s", change.kind, change.dest_path or change.path)
        self.callback(change)


class DrawingWatcher:
    """Non-recursive watch on one directory.

    ``start`` refuses to run on a missing directory. Callbacks run on the
    observer thread.
    """

    def __init__(self, directory: Path, callback: Callable[[ChangeEvent], None]):
        self.directory = Path(directory)
        self.handler = _ChangeHandler(callback)
        self.observer = None

    def start(self) -> None:
        if not self.directory.is_dir():
            raise FileNotFoundError(f"Drawing directory does not exist: {self.directory}")
        observer = Observer()
        observer.schedule(self.handler, str(self.directory), recursive=False)
        observer.start()
        self.observer = observer
        logger.info("Watching %s", self.directory)

    def stop(self) -> None:
        if self.observer is None:
            return
        self.observer.stop()
        self.observer.join()
        self.observer = None

    @property
    def running(self) -> bool:
        return self.observer is not None and self.observer.is_alive()
