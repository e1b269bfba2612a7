"""Org documents: inserting text at a position and finding drawing links."""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

_LINK_RE = re.compile(r"\[\[([A-Za-z][\w+-]*):([^\]]+)\](?:\[([^\]]*)\])?\]")


@dataclass(frozen=True)
class Link:
    prefix: str
    path: str
    description: Optional[str] = None

    def __str__(self) -> str:
        if self.description:
            return f"[[{self.prefix}:{self.path}][{self.description}]]"
        return f"[[{self.prefix}:{self.path}]]"


def parse_link(text: str) -> Optional[Link]:
    """Parse a single ``[[prefix:path]]`` link; None if ``text`` isn't one."""
    match = _LINK_RE.fullmatch(text.strip())
    if not match:
        return None
    return Link(match.group(1), match.group(2), match.group(3))


def find_links(text: str, prefix: Optional[str] = None) -> Iterator[Link]:
    for match in _LINK_RE.finditer(text):
        if prefix is None or match.group(1) == prefix:
            yield Link(match.group(1), match.group(2), match.group(3))


class DocumentCursor:
    """Insertion point in a UTF-8 text document.

    ``offset`` counts characters from the start of the file; None means the
    end. The document is created if it does not exist yet. ``lead`` is text
    put in front of the first insertion only, used to open a new line.
    """

    def __init__(self, document: Path, offset: Optional[int] = None, lead: str = ""):
        self.document = Path(document)
        self.offset = offset
        self.lead = lead

    @classmethod
    def at_line(cls, document: Path, line: int, column: int = 0) -> "DocumentCursor":
        """Cursor at 1-based ``line`` and 0-based ``column``.

        The line after the last one is allowed; if the document doesn't end
        with a newline, one is inserted first so the text starts a new line.
        """
        document = Path(document)
        text = _read(document)
        lines = text.splitlines(keepends=True)
        if line < 1 or line > len(lines) + 1:
            raise ValueError(f"Line {line} is outside {document} ({len(lines)} lines)")
        offset = sum(len(l) for l in lines[: line - 1])
        current = lines[line - 1].rstrip("\r\n") if line <= len(lines) else ""
        if column < 0 or column > len(current):
            raise ValueError(f"Column {column} is outside line {line} of {document}")
        lead = ""
        if line == len(lines) + 1 and lines and not lines[-1].endswith(("\n", "\r")):
            lead = "\r\n" if "\r\n" in text else "\n"
        return cls(document, offset + column, lead)

    def insert(self, text: str) -> None:
        content = _read(self.document)
        offset = len(content) if self.offset is None else self.offset
        if offset < 0 or offset > len(content):
            raise ValueError(f"Offset {offset} is outside {self.document} ({len(content)} chars)")
        text = self.lead + text
        self.lead = ""
        self.document.parent.mkdir(parents=True, exist_ok=True)
        self.document.write_text(content[:offset] + text + content[offset:], encoding="utf-8", newline="")
        if self.offset is not None:
            self.offset += len(text)


def _read(document: Path) -> str:
    if not document.exists():
        return ""
    with open(document, encoding="utf-8", newline="") as f:
        return f.read()
