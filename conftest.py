"""Shared fixtures: a recording process invoker and settings on a temp directory."""

import pytest

from mcp_org_excalidraw.config import Settings
from mcp_org_excalidraw.process import ProcessInvoker


class RecordingInvoker(ProcessInvoker):
    """Records spawns instead of launching anything."""

    def __init__(self):
        self.calls = []

    def spawn(self, executable, args=()):
        self.calls.append([executable, *args])


@pytest.fixture
def invoker():
    return RecordingInvoker()


@pytest.fixture
def drawing_dir(tmp_path):
    directory = tmp_path / "drawings"
    directory.mkdir()
    return directory


@pytest.fixture
def settings(drawing_dir):
    return Settings(directory=str(drawing_dir), open_command="my-opener")
