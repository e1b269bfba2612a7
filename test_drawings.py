#!/usr/bin/env python3
"""Tests for drawing creation, link following and change routing."""

from pathlib import Path

import pytest

from mcp_org_excalidraw.config import DEFAULT_BASE_TEMPLATE, Settings
from mcp_org_excalidraw.drawings import (
    ChangeEvent,
    ChangeRouter,
    DrawingFactory,
    DrawingPathError,
    LinkHandler,
    validate_drawing_path,
)
from mcp_org_excalidraw.process import default_opener


class ListCursor:
    def __init__(self):
        self.inserted = []

    def insert(self, text):
        self.inserted.append(text)


# ============================================================================
# Validation
# ============================================================================

@pytest.mark.parametrize("path", ["a.svg", "/x/y.excalidraw.svg", "drawing.excalidraw.json", "", "excalidraw"])
def test_validate_rejects_other_extensions(path):
    with pytest.raises(DrawingPathError, match="must have the required extension"):
        validate_drawing_path(path)


@pytest.mark.parametrize("path", ["a.excalidraw", "/x/y.svg.excalidraw", Path("/tmp/z.excalidraw")])
def test_validate_accepts_drawings(path):
    assert validate_drawing_path(path) == str(path)


def test_path_error_is_value_error():
    assert issubclass(DrawingPathError, ValueError)


# ============================================================================
# Change routing
# ============================================================================

def test_router_converts_renamed_drawing(settings, invoker):
    router = ChangeRouter(settings, invoker)
    router.route(ChangeEvent("renamed", "/d/tmp123", "/d/a.excalidraw"))
    assert invoker.calls == [["excalidraw_export", "--rename_fonts=true", "/d/a.excalidraw"]]


@pytest.mark.parametrize("kind", ["created", "changed", "deleted", "attribute-changed", "stopped"])
def test_router_ignores_other_kinds(settings, invoker, kind):
    router = ChangeRouter(settings, invoker)
    router.route(ChangeEvent(kind, "/d/a.excalidraw", "/d/a.excalidraw"))
    assert invoker.calls == []


def test_router_ignores_non_drawings(settings, invoker):
    router = ChangeRouter(settings, invoker)
    router.route(ChangeEvent("renamed", "/d/a.excalidraw", "/d/a.excalidraw.svg"))
    router.route(ChangeEvent("renamed", "/d/a.excalidraw", None))
    assert invoker.calls == []


def test_router_uses_destination_of_rename(settings, invoker):
    router = ChangeRouter(settings, invoker)
    router.route(ChangeEvent("renamed", "/d/old.txt", "/d/new.excalidraw"))
    router.route(ChangeEvent("renamed", "/d/old.excalidraw", "/d/new.txt"))
    assert invoker.calls == [["excalidraw_export", "--rename_fonts=true", "/d/new.excalidraw"]]


def test_router_uses_configured_converter(drawing_dir, invoker):
    settings = Settings(directory=str(drawing_dir), convert_command="/opt/bin/export")
    ChangeRouter(settings, invoker).route(ChangeEvent("renamed", "a", "b.excalidraw"))
    assert invoker.calls[0][0] == "/opt/bin/export"


# ============================================================================
# Drawing creation
# ============================================================================

def test_create_drawing_end_to_end(tmp_path, invoker, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    (tmp_path / "x").mkdir()
    settings = Settings(directory="~/x", open_command="my-opener")
    factory = DrawingFactory(settings, invoker, id_generator=lambda: "abc-123")
    cursor = ListCursor()

    drawing = factory.create(cursor)

    expected = tmp_path / "x" / "abc-123.excalidraw"
    assert cursor.inserted == [f"[[excalidraw:{expected}.svg]]"]
    assert drawing.path == expected
    assert drawing.preview_path == tmp_path / "x" / "abc-123.excalidraw.svg"
    assert expected.read_text(encoding="utf-8") == DEFAULT_BASE_TEMPLATE
    assert invoker.calls == [["my-opener", str(expected)]]


def test_create_drawing_link_form(tmp_path, invoker):
    directory = tmp_path / "x"
    directory.mkdir()
    settings = Settings(directory=str(directory), open_command="my-opener")
    factory = DrawingFactory(settings, invoker, id_generator=lambda: "gen-id")
    cursor = ListCursor()

    factory.create(cursor)

    assert cursor.inserted == [f"[[excalidraw:{tmp_path}/x/gen-id.excalidraw.svg]]"]
    created = directory / "gen-id.excalidraw"
    assert created.read_text(encoding="utf-8") == settings.base_template
    assert invoker.calls == [["my-opener", f"{tmp_path}/x/gen-id.excalidraw"]]


def test_create_uses_custom_prefix_and_template(settings, invoker, drawing_dir):
    settings = settings.model_copy(update={"link_prefix": "draw", "base_template": "{}"})
    factory = DrawingFactory(settings, invoker, id_generator=lambda: "one")
    cursor = ListCursor()
    factory.create(cursor)
    assert cursor.inserted == [f"[[draw:{drawing_dir / 'one.excalidraw'}.svg]]"]
    assert (drawing_dir / "one.excalidraw").read_text() == "{}"


def test_create_overwrites_existing_file(settings, invoker, drawing_dir):
    (drawing_dir / "same.excalidraw").write_text("old")
    DrawingFactory(settings, invoker, id_generator=lambda: "same").create(ListCursor())
    assert (drawing_dir / "same.excalidraw").read_text() == settings.base_template


def test_create_aborts_on_bad_path_before_writing(settings, invoker, drawing_dir, monkeypatch):
    import mcp_org_excalidraw.drawings as drawings

    factory = DrawingFactory(settings, invoker, id_generator=lambda: "bad")

    def strict(path):
        raise DrawingPathError(path)

    monkeypatch.setattr(drawings, "validate_drawing_path", strict)
    cursor = ListCursor()
    with pytest.raises(DrawingPathError):
        factory.create(cursor)
    assert cursor.inserted == []
    assert list(drawing_dir.iterdir()) == []
    assert invoker.calls == []


def test_create_generates_unique_ids(settings, invoker):
    factory = DrawingFactory(settings, invoker)
    first = factory.create(ListCursor())
    second = factory.create(ListCursor())
    assert first.id != second.id
    assert first.path.exists() and second.path.exists()


def test_create_uses_injected_opener(settings, invoker, drawing_dir):
    factory = DrawingFactory(settings, invoker, id_generator=lambda: "o", opener=lambda s: ["open", "-a", "Excalidraw"])
    factory.create(ListCursor())
    assert invoker.calls == [["open", "-a", "Excalidraw", str(drawing_dir / "o.excalidraw")]]


# ============================================================================
# Opener selection
# ============================================================================

def test_opener_prefers_configured_command():
    settings = Settings(open_command="open -a 'Excalidraw App'")
    assert default_opener(settings, platform="darwin") == ["open", "-a", "Excalidraw App"]


def test_opener_platform_defaults():
    settings = Settings()
    assert default_opener(settings, platform="darwin") == ["open"]
    assert default_opener(settings, platform="linux") == ["xdg-open"]
    assert default_opener(settings, platform="win32") == ["xdg-open"]


# ============================================================================
# Link following and previews
# ============================================================================

def test_follow_opens_source_drawing(settings, invoker):
    handler = LinkHandler(settings, invoker)
    assert handler.follow("/d/a.excalidraw.svg") == "/d/a.excalidraw"
    assert invoker.calls == [["my-opener", "/d/a.excalidraw"]]


@pytest.mark.parametrize("path", ["/d/a.svg", "/d/a.png", "/d/a.excalidraw.svg.svg"])
def test_follow_rejects_non_drawing_previews(settings, invoker, path):
    handler = LinkHandler(settings, invoker)
    with pytest.raises(DrawingPathError, match="must have the required extension"):
        handler.follow(path)
    assert invoker.calls == []


def test_follow_is_idempotent(settings, invoker):
    handler = LinkHandler(settings, invoker)
    handler.follow("/d/a.excalidraw.svg")
    handler.follow("/d/a.excalidraw.svg")
    assert invoker.calls == [["my-opener", "/d/a.excalidraw"]] * 2


def test_preview_data_returns_content(settings, invoker, tmp_path):
    target = tmp_path / "p.excalidraw.svg"
    target.write_bytes(b"abc")
    assert LinkHandler(settings, invoker).preview_data(target) == b"abc"


def test_preview_data_is_verbatim(settings, invoker, tmp_path):
    target = tmp_path / "p.excalidraw.svg"
    payload = b"<svg>\r\n\xc3\xa9</svg>"
    target.write_bytes(payload)
    assert LinkHandler(settings, invoker).preview_data(str(target)) == payload


def test_preview_data_missing_file(settings, invoker, tmp_path):
    assert LinkHandler(settings, invoker).preview_data(tmp_path / "missing.svg") is None
    assert invoker.calls == []
