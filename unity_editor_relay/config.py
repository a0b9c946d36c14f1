"""
Relay Configuration
===================

BridgeConfig holds every tunable of the relay. Values come from a TOML
file (``.unity-editor-relay.toml``) and may be overridden by CLI options.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .protocol import DEFAULT_HOST, DEFAULT_PORT, PACKAGE_PATH_PREFIX

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".unity-editor-relay.toml"

DEFAULT_COMMAND_TIMEOUT_MS = 60000
DEFAULT_STATE_TIMEOUT_MS = 30000
DEFAULT_LOG_CAPACITY = 1000
DEFAULT_CONNECT_RETRIES = 5
DEFAULT_CONNECT_RETRY_INTERVAL_MS = 5000


@dataclass
class BridgeConfig:
    """Configuration for the Unity Editor relay"""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    command_timeout_ms: int = DEFAULT_COMMAND_TIMEOUT_MS
    state_timeout_ms: int = DEFAULT_STATE_TIMEOUT_MS
    log_capacity: int = DEFAULT_LOG_CAPACITY
    # Connection gate: attempts x interval before NOT_CONNECTED
    connect_retries: int = DEFAULT_CONNECT_RETRIES
    connect_retry_interval_ms: int = DEFAULT_CONNECT_RETRY_INTERVAL_MS
    startup_wait_ms: int = 0
    exclude_package_paths: bool = False
    package_path_prefix: str = PACKAGE_PATH_PREFIX
    resource_dir: Path | None = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Reject values the relay cannot run with.

        Raises:
            ValueError: On an out-of-range value.
        """
        if not 0 <= self.port <= 65535:
            raise ValueError(f"port must be between 0 and 65535, got {self.port}")
        if self.command_timeout_ms <= 0:
            raise ValueError(f"command_timeout_ms must be positive, got {self.command_timeout_ms}")
        if self.state_timeout_ms <= 0:
            raise ValueError(f"state_timeout_ms must be positive, got {self.state_timeout_ms}")
        if self.log_capacity < 1:
            raise ValueError(f"log_capacity must be at least 1, got {self.log_capacity}")
        if self.connect_retries < 0:
            raise ValueError(f"connect_retries must not be negative, got {self.connect_retries}")
        if self.connect_retry_interval_ms < 0:
            raise ValueError(f"connect_retry_interval_ms must not be negative, got {self.connect_retry_interval_ms}")
        if self.startup_wait_ms < 0:
            raise ValueError(f"startup_wait_ms must not be negative, got {self.startup_wait_ms}")

    @classmethod
    def load(cls, config_path: Path | None = None) -> BridgeConfig:
        """Load configuration from TOML file.

        Search order:
        1. Explicit config_path if provided
        2. .unity-editor-relay.toml in current directory
        3. .unity-editor-relay.toml in Unity project root (parent of Assets/)
        4. Default values
        """
        toml_path = config_path if config_path and config_path.exists() else cls._find_config_file()

        if toml_path:
            try:
                with open(toml_path, "rb") as f:
                    data = tomllib.load(f)
            except (tomllib.TOMLDecodeError, OSError) as e:
                logger.warning(f"Ignoring unreadable config {toml_path}: {e}")
            else:
                logger.debug(f"Loaded config from {toml_path}")
                return cls._from_dict(data)

        return cls()

    @classmethod
    def _find_config_file(cls) -> Path | None:
        """Find config file in current directory or Unity project root"""
        cwd = Path.cwd()

        config_in_cwd = cwd / CONFIG_FILE_NAME
        if config_in_cwd.exists():
            return config_in_cwd

        for parent in [cwd, *list(cwd.parents)]:
            if (parent / "Assets").is_dir() and (parent / "ProjectSettings").is_dir():
                config_in_project = parent / CONFIG_FILE_NAME
                if config_in_project.exists():
                    return config_in_project
                break

        return None

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> BridgeConfig:
        """Create config from dictionary (TOML data)"""
        resource_dir = data.get("resource_dir")
        return cls(
            host=data.get("host", DEFAULT_HOST),
            port=int(data.get("port", DEFAULT_PORT)),
            command_timeout_ms=int(data.get("command_timeout_ms", DEFAULT_COMMAND_TIMEOUT_MS)),
            state_timeout_ms=int(data.get("state_timeout_ms", DEFAULT_STATE_TIMEOUT_MS)),
            log_capacity=int(data.get("log_capacity", DEFAULT_LOG_CAPACITY)),
            connect_retries=int(data.get("connect_retries", DEFAULT_CONNECT_RETRIES)),
            connect_retry_interval_ms=int(data.get("connect_retry_interval_ms", DEFAULT_CONNECT_RETRY_INTERVAL_MS)),
            startup_wait_ms=int(data.get("startup_wait_ms", 0)),
            exclude_package_paths=bool(data.get("exclude_package_paths", False)),
            package_path_prefix=data.get("package_path_prefix", PACKAGE_PATH_PREFIX),
            resource_dir=Path(resource_dir) if resource_dir else None,
        )

    def to_toml(self) -> str:
        """Generate TOML string from config"""
        resource_dir_str = f'"{self.resource_dir.as_posix()}"' if self.resource_dir else '""'
        return f'''# Unity Editor Relay Configuration

host = "{self.host}"
port = {self.port}
command_timeout_ms = {self.command_timeout_ms}
state_timeout_ms = {self.state_timeout_ms}
log_capacity = {self.log_capacity}

# Wait for the Unity Editor before failing a tool call
connect_retries = {self.connect_retries}
connect_retry_interval_ms = {self.connect_retry_interval_ms}
startup_wait_ms = {self.startup_wait_ms}

# Drop project_structure entries under this prefix from editor state
exclude_package_paths = {str(self.exclude_package_paths).lower()}
package_path_prefix = "{self.package_path_prefix}"

# Extra text files served as MCP resources
resource_dir = {resource_dir_str}
'''
