"""
Configuration
=============

All settings are read once at startup into a frozen ``Settings`` value and
handed to every component. Environment variables:

- ORG_EXCALIDRAW_DIRECTORY: where drawings live (default: ~/org-excalidraw)
- ORG_EXCALIDRAW_LINK_PREFIX: Org link type (default: excalidraw)
- ORG_EXCALIDRAW_BASE: JSON written into every new drawing
- ORG_EXCALIDRAW_OPEN_COMMAND: program used to open drawings
- ORG_EXCALIDRAW_CONVERT_COMMAND: converter program (default: excalidraw_export)
- ORG_EXCALIDRAW_INLINE_PREVIEWS: "0"/"false" disables the preview link type
"""

from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DRAWING_EXTENSION = ".excalidraw"
PREVIEW_SUFFIX = ".svg"
DEFAULT_LINK_PREFIX = "excalidraw"
CONVERT_FLAGS = ("--rename_fonts=true",)

DEFAULT_BASE_TEMPLATE = (
    '{"type":"excalidraw","version":2,"source":"https://excalidraw.com",'
    '"elements":[],"appState":{"gridSize":null,"viewBackgroundColor":"#ffffff"},'
    '"files":{}}'
)


class Settings(BaseSettings):
    """Immutable configuration shared by every component."""

    model_config = SettingsConfigDict(
        env_prefix="ORG_EXCALIDRAW_",
        env_ignore_empty=True,
        frozen=True,
        populate_by_name=True,
    )

    directory: str = Field(default="~/org-excalidraw", description="Drawing storage directory")
    link_prefix: str = Field(default=DEFAULT_LINK_PREFIX, description="Org link type for drawings")
    base_template: str = Field(
        default=DEFAULT_BASE_TEMPLATE,
        validation_alias=AliasChoices("base_template", "ORG_EXCALIDRAW_BASE"),
        description="Content of a new drawing",
    )
    open_command: Optional[str] = Field(default=None, description="Override for the opener program")
    convert_command: str = Field(default="excalidraw_export", description="SVG converter program")
    inline_previews: bool = Field(default=True, description="Host can show inline link previews")

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        """Build settings from ORG_EXCALIDRAW_* variables, then apply overrides."""
        return cls(**{k: v for k, v in overrides.items() if v is not None})

    @property
    def storage_dir(self) -> Path:
        """Storage directory with ``~`` expanded, made absolute."""
        return Path(self.directory).expanduser().absolute()
