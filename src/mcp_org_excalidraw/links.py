"""
Link Registry
=============

Routes followed links to handlers, either by link prefix
(``[[excalidraw:...]]``) or, for plain file links, by matching the target
path against registered file-app patterns.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from .documents import Link, parse_link

Handler = Callable[[str], Any]


@dataclass(frozen=True)
class LinkType:
    follow: Handler
    preview: Optional[Callable[[str], Optional[bytes]]] = None


class LinkRegistry:
    def __init__(self):
        self.link_types: dict = {}
        self.file_apps: list = []

    def register_link_type(self, prefix: str, follow: Handler, preview=None) -> None:
        self.link_types[prefix] = LinkType(follow=follow, preview=preview)

    def register_file_app(self, pattern: str, handler: Handler) -> None:
        compiled = re.compile(pattern)
        self.file_apps = [(p, h) for p, h in self.file_apps if p.pattern != pattern]
        self.file_apps.append((compiled, handler))

    def _coerce(self, link: Union[str, Link]) -> Link:
        if isinstance(link, Link):
            return link
        parsed = parse_link(link)
        if parsed is None:
            # A bare path behaves like a file link
            return Link("file", link.strip())
        return parsed

    def dispatch(self, link: Union[str, Link]) -> Any:
        """Follow ``link`` with its registered handler and return the result."""
        link = self._coerce(link)
        link_type = self.link_types.get(link.prefix)
        if link_type is not None:
            return link_type.follow(link.path)
        for pattern, handler in self.file_apps:
            if pattern.search(link.path):
                return handler(link.path)
        raise LookupError(f"No handler for link: {link}")

    def preview(self, link: Union[str, Link]) -> Optional[bytes]:
        link = self._coerce(link)
        link_type = self.link_types.get(link.prefix)
        if link_type is None or link_type.preview is None:
            return None
        return link_type.preview(link.path)
