"""Unity Editor Relay: MCP tools bridged to a live Unity Editor over WebSocket."""

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version

try:
    __version__ = pkg_version("unity-editor-relay")
except PackageNotFoundError:
    __version__ = "0.0.0"
