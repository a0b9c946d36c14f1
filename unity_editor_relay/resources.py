"""
Help Resources

Read-only text documents offered to the agent as MCP resources: the
built-in VRChat help pages shipped in ``help/`` plus every regular file
of an optional user directory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

HELP_DIR = Path(__file__).parent / "help"
TEXT_MIME_TYPE = "text/plain"


@dataclass(frozen=True)
class ResourceDefinition:
    uri: str
    name: str
    description: str
    mime_type: str = TEXT_MIME_TYPE


@dataclass(frozen=True)
class TextResource:
    """A resource whose contents are read from disk on every request"""

    definition: ResourceDefinition
    path: Path

    @property
    def uri(self) -> str:
        return self.definition.uri

    def read(self) -> str:
        try:
            return self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error reading resource {self.path}: {e}")
            return f"Error loading text file: {self.path.name}"

    @classmethod
    def from_file(cls, path: Path) -> TextResource:
        return cls(
            ResourceDefinition(
                uri=f"file:///{path.name}",
                name=path.name,
                description=f"Text file: {path.name}",
            ),
            path,
        )


BUILTIN_RESOURCES: tuple[TextResource, ...] = (
    TextResource(
        ResourceDefinition(
            uri="help:///vrchat/world-building-notes",
            name="VRChatWorldNotes.md",
            description="VRChat world building notes and tips for UdonSharp and Unity.",
        ),
        HELP_DIR / "vrchat_world_notes.md",
    ),
    TextResource(
        ResourceDefinition(
            uri="help:///vrchat/udon-script-example",
            name="UdonScriptExample",
            description="Example of creating and attaching an UdonSharp script to a GameObject in Unity.",
        ),
        HELP_DIR / "udon_script_example.cs",
    ),
)


def load_text_resources(directory: Path) -> list[TextResource]:
    """One resource per regular file in directory, sorted by name"""
    try:
        files = sorted(p for p in directory.iterdir() if p.is_file())
    except OSError as e:
        logger.error(f"Error loading text resources from {directory}: {e}")
        return []
    return [TextResource.from_file(p) for p in files]


def get_all_resources(resource_dir: Path | None = None) -> list[TextResource]:
    resources = list(BUILTIN_RESOURCES)
    if resource_dir is not None:
        resources.extend(load_text_resources(resource_dir))
    return resources
