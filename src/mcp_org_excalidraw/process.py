"""
Process Invoker
===============

External programs (the SVG converter and the platform opener) are launched
detached and never waited on. Exit codes and output are not collected, and a
program that fails to start is only logged. Callers get no guarantee that the
preview was produced or the editor actually opened.
"""

import logging
import shlex
import subprocess
import sys
from pathlib import Path
from typing import Callable, Sequence, Union

from .config import CONVERT_FLAGS, Settings

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
Opener = Callable[[Settings], list]


class ProcessInvoker:
    """Spawns external commands without waiting for them."""

    def spawn(self, executable: str, args: Sequence[str] = ()) -> None:
        cmd = [executable, *args]
        logger.debug("Spawning %s", shlex.join(cmd))
        try:
            subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            logger.warning("Could not launch %s: %s", executable, e)


def default_opener(settings: Settings, platform: str = sys.platform) -> list:
    """Return the opener command as ``[program, *args]``.

    A configured ``open_command`` wins; otherwise macOS uses ``open`` and
    everything else ``xdg-open``.
    """
    if settings.open_command:
        return shlex.split(settings.open_command)
    if platform == "darwin":
        return ["open"]
    return ["xdg-open"]


def convert_to_preview(invoker: ProcessInvoker, settings: Settings, path: PathLike) -> None:
    """Ask the converter to (re)generate ``<path>.svg``."""
    logger.info("Converting %s", path)
    invoker.spawn(settings.convert_command, [*CONVERT_FLAGS, str(path)])


def open_for_editing(
    invoker: ProcessInvoker,
    settings: Settings,
    path: PathLike,
    opener: Opener = default_opener,
) -> None:
    """Launch the opener program on ``path`` (the configured override, or the
    platform default)."""
    program, *args = opener(settings)
    logger.info("Opening %s with %s", path, program)
    invoker.spawn(program, [*args, str(path)])
